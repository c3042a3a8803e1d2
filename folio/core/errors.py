"""
Application Errors

Typed exceptions raised by services and routers. Each carries the HTTP
status and error code that the handler registered in ``folio.main`` renders
as an ``ErrorResponse``.
"""

from typing import Any


class FolioError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500
    error: str = "internal_error"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(FolioError):
    """Bad input shape or policy violation (oversized file, wrong preset)."""

    status_code = 400
    error = "validation_error"
    default_message = "Validation failed"


class AuthorizationError(FolioError):
    """The caller is not allowed to perform the action."""

    status_code = 403
    error = "authorization_error"
    default_message = "Authorization error"


class NotFoundError(FolioError):
    status_code = 404
    error = "not_found"
    default_message = "Resource not found"


class InvalidRequestError(FolioError):
    """A downstream job reported a failure; the message is passed through verbatim."""

    status_code = 400
    error = "invalid_request"
    default_message = "Request invalid"


class StorageUnavailableError(FolioError):
    status_code = 503
    error = "storage_unavailable"
    default_message = "File storage is not configured"
