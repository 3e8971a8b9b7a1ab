"""API error classes.

HTTP status codes and machine-readable error codes for the portal API.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for missing required fields (email, token) and other
    request-level input problems. Raised before any state change.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required (401).

    Use when no valid credentials were provided.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class InvalidOrExpiredTokenError(UnauthorizedError):
    """Magic-link token is absent, expired, or already used (401).

    Security: The message is identical for every cause so callers cannot
    tell a never-issued token from a consumed or expired one.
    """

    MESSAGE = "Invalid or expired token. Please request a new link."

    def __init__(self) -> None:
        APIError.__init__(
            self,
            code="INVALID_OR_EXPIRED_TOKEN",
            message=self.MESSAGE,
            status_code=401,
        )


class ForbiddenError(APIError):
    """Not allowed to access resource (403).

    Use when credentials are missing or wrong for an admin-only surface.
    """

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
        )


class NotFoundError(APIError):
    """Resource not found (404)."""

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
        )


class MethodNotAllowedError(APIError):
    """HTTP method not supported by the endpoint (405)."""

    def __init__(self, method: str) -> None:
        super().__init__(
            code="METHOD_NOT_ALLOWED",
            message=f"Method {method} not allowed",
            status_code=405,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions. Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )
