"""Error kinds and the application exception hierarchy."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure categories surfaced to the UI in result envelopes."""

    INVALID_INPUT = "InvalidInput"
    HTTP_ERROR = "HttpError"
    RATE_LIMITED = "RateLimited"
    DECODE_ERROR = "DecodeError"
    NOT_FOUND = "NotFound"
    PROVIDER_UNAVAILABLE = "ProviderUnavailable"


class AppException(Exception):
    """Base application exception with a structured error payload."""

    error_kind: ErrorKind = ErrorKind.PROVIDER_UNAVAILABLE
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_kind": self.error_kind.value,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class InvalidInputError(AppException):
    """Bad symbol, CIK, date range or price."""

    error_kind = ErrorKind.INVALID_INPUT
    message = "Invalid input"


class HttpError(AppException):
    """Non-2xx response that is not worth retrying."""

    error_kind = ErrorKind.HTTP_ERROR
    message = "Request failed"

    def __init__(self, status: int, url: str, message: str | None = None):
        self.status = status
        self.url = url
        super().__init__(
            message or f"Request failed with status {status} for {url}",
            details={"status": status, "url": url},
        )


class RateLimitedError(AppException):
    """Throttled host kept answering 429/503 after every retry."""

    error_kind = ErrorKind.RATE_LIMITED
    message = "Rate limit exceeded. Please try again in a moment."


class DecodeError(AppException):
    """Response body could not be decoded."""

    error_kind = ErrorKind.DECODE_ERROR
    message = "Malformed response payload"


class NotFoundError(AppException):
    """No document, company, filing or data matched."""

    error_kind = ErrorKind.NOT_FOUND
    message = "Resource not found"


class ProviderUnavailableError(AppException):
    """Provider credential missing or the provider call failed."""

    error_kind = ErrorKind.PROVIDER_UNAVAILABLE
    message = "Data provider unavailable"


def error_kind_of(exc: BaseException) -> ErrorKind:
    """Map any exception to the error kind reported to callers."""
    if isinstance(exc, AppException):
        return exc.error_kind
    return ErrorKind.PROVIDER_UNAVAILABLE


def register_exception_handlers(app) -> None:
    """Render stray exceptions as failure envelopes instead of error pages."""
    from fastapi import Request
    from fastapi.exceptions import RequestValidationError
    from fastapi.responses import JSONResponse

    from .logging import get_logger

    logger = get_logger("api.errors")

    def envelope(kind: ErrorKind, message: str, request: Request) -> JSONResponse:
        return JSONResponse(
            status_code=200,
            content={"ok": False, "error_kind": kind.value, "error": message},
            headers={"X-Request-ID": getattr(request.state, "request_id", "unknown")},
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return envelope(exc.error_kind, exc.message, request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = ", ".join(
            ".".join(str(loc) for loc in err.get("loc", ())[1:]) or "request"
            for err in exc.errors()
        )
        return envelope(ErrorKind.INVALID_INPUT, f"Invalid request: {fields}", request)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            extra={"path": request.url.path, "method": request.method},
        )
        return envelope(ErrorKind.PROVIDER_UNAVAILABLE, "An unexpected error occurred", request)
