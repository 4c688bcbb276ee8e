"""Uniform result envelope returned across the UI boundary.

Every externally facing operation returns an ``Envelope`` instead of raising,
so callers can render success and failure without exception handling.
"""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from marketdesk.core.exceptions import AppException, ErrorKind, error_kind_of


T = TypeVar("T")


class ProviderAttempt(BaseModel):
    """Outcome of one provider call made while answering a request."""

    provider: str
    ok: bool
    error_kind: ErrorKind | None = None
    message: str | None = None


class Envelope(BaseModel, Generic[T]):
    """``{ok: true, data, fetched_at}`` or ``{ok: false, error_kind, error}``."""

    ok: bool
    data: T | None = None
    fetched_at: datetime | None = None
    path: str | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None
    attempts: list[ProviderAttempt] = Field(default_factory=list)

    @classmethod
    def success(
        cls,
        data: T | None = None,
        fetched_at: datetime | None = None,
        *,
        path: str | None = None,
        attempts: list[ProviderAttempt] | None = None,
    ) -> "Envelope[T]":
        return cls(
            ok=True,
            data=data,
            fetched_at=fetched_at,
            path=path,
            attempts=attempts or [],
        )

    @classmethod
    def failure(
        cls,
        error_kind: ErrorKind,
        message: str,
        *,
        attempts: list[ProviderAttempt] | None = None,
    ) -> "Envelope[T]":
        return cls(ok=False, error_kind=error_kind, error=message, attempts=attempts or [])

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        attempts: list[ProviderAttempt] | None = None,
    ) -> "Envelope[T]":
        message = exc.message if isinstance(exc, AppException) else str(exc) or type(exc).__name__
        return cls.failure(error_kind_of(exc), message, attempts=attempts)
