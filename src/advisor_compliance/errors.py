"""Error hierarchy for the advisor compliance engine.

Every error raised by the service and adapter layers derives from
ComplianceEngineError. The API layer maps each subclass to an HTTP status via
register_exception_handlers(); nothing in this hierarchy is fatal to the
process.

Errors:
- NotFoundError     a tenant-scoped record does not exist (404)
- ValidationError   a request violates a domain rule (422)
- ConflictError     an optimistic revision check failed (409)
- StoreReadError    the persistence store failed on a read (503)
- StoreWriteError   the persistence store failed on a write (503)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ComplianceEngineError(Exception):
    """Base error for the compliance engine.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status the API layer responds with.
    """

    status_code: int = 500
    error_code: str = "compliance_engine_error"

    def __init__(self, message: str) -> None:
        """Initialize ComplianceEngineError.

        Args:
            message: Error description.
        """
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Serialize the error for a JSON response body."""
        return {"error": self.error_code, "detail": self.message}


class NotFoundError(ComplianceEngineError):
    """Raised when a record does not exist for the requesting tenant."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str, resource_id: str) -> None:
        """Initialize NotFoundError.

        Args:
            resource: Resource type name, e.g. ComplianceCase.
            resource_id: Identifier that was looked up.
        """
        super().__init__(f"{resource} '{resource_id}' not found")
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(ComplianceEngineError):
    """Raised when a request violates a domain rule."""

    status_code = 422
    error_code = "validation_error"

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize ValidationError.

        Args:
            message: Error description.
            field: Name of the offending field, if any.
        """
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, str]:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class ConflictError(ComplianceEngineError):
    """Raised when an expected revision no longer matches the stored one."""

    status_code = 409
    error_code = "conflict"


class StoreError(ComplianceEngineError):
    """Base error for persistence store failures."""

    status_code = 503
    error_code = "store_unavailable"


class StoreReadError(StoreError):
    """Raised when a read query against the store fails."""


class StoreWriteError(StoreError):
    """Raised when a write against the store fails."""


class InsightServiceError(ComplianceEngineError):
    """Raised by the insight client for any failed or malformed response.

    The insight generator always catches this and falls back to heuristics,
    so it never reaches an API response.
    """

    status_code = 502
    error_code = "insight_service_error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize InsightServiceError.

        Args:
            message: Error description.
            status_code: HTTP status returned by the insight service, if any.
        """
        super().__init__(message)
        self.upstream_status = status_code


async def _handle_engine_error(request: Request, exc: ComplianceEngineError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Map the ComplianceEngineError hierarchy to JSON error responses.

    Args:
        app: The FastAPI application to register handlers on.
    """
    app.add_exception_handler(ComplianceEngineError, _handle_engine_error)
