import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from sequenceable.errors import (
    AllocationTimeoutError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, message: str, error_type: str | None = None) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)


async def sequence_error_handler(_: Request, exc: Exception) -> Response:
    """Handle SequenceError subclasses that escaped generation."""
    if isinstance(exc, ConfigurationError):
        return create_json_error_response(400, str(exc), "configuration_error")
    if isinstance(exc, AllocationTimeoutError | ConflictError):
        logger.warning("Sequence allocation timed out: %s", exc)
        return create_json_error_response(503, "Sequence allocation timed out, try again.", "allocation_timeout")
    if isinstance(exc, StoreError):
        logger.error("Counter store failure: %s", exc)
        return create_json_error_response(502, "Counter store is unavailable.", "store_error")
    logger.exception("Unexpected sequence error: %s", exc)
    return create_json_error_response(500, "An unexpected error occurred.", "internal_server_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
