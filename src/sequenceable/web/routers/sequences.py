from fastapi import APIRouter
from pydantic import BaseModel, Field

from sequenceable.core.modules.sequence.models import GenerationOptions, SequenceResult
from sequenceable.web.deps import AppDep
from sequenceable.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["sequences"])


class GenerateSequenceRequest(BaseModel):
    """Request to allocate the next sequence. Unset options use the server defaults."""

    namespace: str | None = Field(None, description="Counter namespace; falls back to record_type, then the default")
    record_type: str | None = Field(None, description="Type of the record requesting the sequence")
    prefix: str | None = Field(None, description="Prefix; defaults to the current two-digit year")
    suffix: str | None = Field(None, description="Optional suffix")
    increment: int | None = Field(None, gt=0)
    length: int | None = Field(None, ge=0, description="Width the sequence number is padded to")
    pad: str | None = Field(None, min_length=1, description="Padding character(s)")
    separator: str | None = Field(None, description="Joins prefix, number and suffix")
    deadline: float | None = Field(None, gt=0, description="Seconds to keep retrying write conflicts")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"namespace": "Ticket", "prefix": "TZ", "length": 4},
                {"record_type": "Invoice", "prefix": "INV", "separator": "-", "length": 6},
            ]
        }
    }

    def to_options(self) -> GenerationOptions:
        return GenerationOptions(
            namespace=self.namespace,
            prefix=self.prefix,
            suffix=self.suffix,
            increment=self.increment,
            length=self.length,
            pad=self.pad,
            separator=self.separator,
        )


@router.post(
    "/sequences",
    summary="Generate sequence",
    description="Atomically allocate the next value of the counter identified by namespace, prefix and suffix, "
    "and return it formatted together with the counter state.",
    operation_id="generateSequence",
    responses={
        400: {"model": ErrorResponse, "description": "Options resolve to an invalid counter key"},
        502: {"model": ErrorResponse, "description": "Counter store failure"},
        503: {"model": ErrorResponse, "description": "Allocation kept conflicting until the deadline"},
    },
)
async def generate_sequence(request: GenerateSequenceRequest, app: AppDep) -> SequenceResult:
    return await app.generate_sequence(request.to_options(), request.record_type, request.deadline)
