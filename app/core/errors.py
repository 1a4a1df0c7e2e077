"""Error taxonomy shared by services and the HTTP layer.

Every error carries the HTTP status it maps to. The FastAPI handlers in
``app.main`` render them as ``{"error": message}``.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors raised by the application."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Unsupported input, malformed body or bad path parameter."""

    status_code = 400


class PayloadTooLargeError(ValidationError):
    """Upload batch exceeds the transport size cap."""

    status_code = 413


class AuthError(AppError):
    """Missing or invalid credentials."""

    status_code = 401


class PermissionDeniedError(AuthError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403


class NotFoundError(AppError):
    """Referenced file or message does not exist."""

    status_code = 404


class ExtractionError(AppError):
    """Content extraction or indexing failed.

    Raised inside background ingestion only; it is recorded as file status
    ``error`` plus a bot message and never reaches an HTTP response.
    """


class RemoteServiceError(AppError):
    """Answering service or vector store unreachable or returned junk."""

    status_code = 500
