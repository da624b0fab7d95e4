from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI, version: str) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Sequenceable API",
            version=version,
            summary="Atomic, formatted sequence numbers keyed by namespace, prefix and suffix",
            routes=app.routes,
        )
        openapi_schema["tags"] = [
            {"name": "sequences", "description": "Allocate and format the next sequence"},
            {"name": "counters", "description": "Inspect and manage counter state"},
        ]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Counter not found: Ticket/21/", "type": "not_found"},
                {"message": "Sequence allocation timed out, try again.", "type": "allocation_timeout"},
            ]
        }
    }
