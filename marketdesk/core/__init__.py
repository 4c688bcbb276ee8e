"""Core infrastructure: settings, logging, exceptions, data helpers."""

from .config import Settings, get_settings, settings
from .exceptions import (
    AppException,
    DecodeError,
    ErrorKind,
    HttpError,
    InvalidInputError,
    NotFoundError,
    ProviderUnavailableError,
    RateLimitedError,
)


__all__ = [
    "AppException",
    "DecodeError",
    "ErrorKind",
    "HttpError",
    "InvalidInputError",
    "NotFoundError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "Settings",
    "get_settings",
    "settings",
]
