from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from sequenceable.core.modules.counter.models import Counter, CounterKey
from sequenceable.web.deps import AppDep
from sequenceable.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["counters"])

SuffixQuery = Annotated[str | None, Query(description="Counter suffix; omit for counters without one")]


class CounterStartRequest(BaseModel):
    """Request to seed or reset a counter."""

    suffix: str | None = Field(None, description="Counter suffix")
    start: int | None = Field(None, description="Value the next allocation (increment 1) returns; server default if omitted")


class DeleteCountersResponse(BaseModel):
    deleted: int = Field(..., ge=0, description="Number of counters removed")


@router.get(
    "/counters",
    summary="List counters",
    description="List counters ordered by namespace, prefix and suffix.",
    operation_id="listCounters",
)
async def list_counters(
    app: AppDep, namespace: Annotated[str | None, Query(description="Only counters in this namespace")] = None
) -> list[Counter]:
    return await app.list_counters(namespace)


@router.get(
    "/counters/{namespace}/{prefix}",
    summary="Get counter",
    description="Get counter state without allocating a value.",
    operation_id="getCounter",
    responses={404: {"model": ErrorResponse, "description": "Counter not found"}},
)
async def get_counter(namespace: str, prefix: str, app: AppDep, suffix: SuffixQuery = None) -> Counter:
    return await app.get_counter(CounterKey(namespace=namespace, prefix=prefix, suffix=suffix))


@router.post(
    "/counters/{namespace}/{prefix}/seed",
    summary="Seed counter",
    description="Create the counter so allocation starts at `start`. Existing counters are returned unchanged.",
    operation_id="seedCounter",
)
async def seed_counter(namespace: str, prefix: str, request: CounterStartRequest, app: AppDep) -> Counter:
    key = CounterKey(namespace=namespace, prefix=prefix, suffix=request.suffix)
    return await app.seed_counter(key, request.start)


@router.post(
    "/counters/{namespace}/{prefix}/reset",
    summary="Reset counter",
    description="Rewind (or create) the counter so the next allocation starts at `start`.",
    operation_id="resetCounter",
)
async def reset_counter(namespace: str, prefix: str, request: CounterStartRequest, app: AppDep) -> Counter:
    key = CounterKey(namespace=namespace, prefix=prefix, suffix=request.suffix)
    return await app.reset_counter(key, request.start)


@router.delete(
    "/counters/{namespace}/{prefix}",
    summary="Clear counter",
    description="Delete a single counter. The next allocation for its key starts over.",
    operation_id="clearCounter",
    status_code=204,
    responses={404: {"model": ErrorResponse, "description": "Counter not found"}},
)
async def clear_counter(namespace: str, prefix: str, app: AppDep, suffix: SuffixQuery = None) -> None:
    await app.clear_counter(CounterKey(namespace=namespace, prefix=prefix, suffix=suffix))


@router.delete(
    "/counters/{namespace}",
    summary="Clear namespace",
    description="Delete every counter in a namespace.",
    operation_id="clearNamespace",
)
async def clear_namespace(namespace: str, app: AppDep) -> DeleteCountersResponse:
    return DeleteCountersResponse(deleted=await app.clear_namespace(namespace))
