"""Response envelope models.

Consistent response format for portal and monitoring endpoints.

The portal front-end checks a top-level ``success`` flag on every
response, so both envelopes carry it. Keys are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys.

    Accepts both ``session_token`` and ``sessionToken`` on input.
    Unknown keys are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class SuccessResponse(CamelModel):
    """Minimal success envelope: ``{"success": true}``."""

    success: bool = True


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "VALIDATION_ERROR").
        message: Human-readable error message.
        details: Optional list of field-level errors (for validation).
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope.

    All errors use ``{"success": false, "error": {...}}``.

    Usage in exception handlers:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(code=exc.code, message=exc.message)
            ).model_dump(),
        )
    """

    success: bool = False
    error: ErrorDetail
