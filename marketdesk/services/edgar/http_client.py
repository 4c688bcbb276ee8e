"""
Rate-limited HTTP client for SEC EDGAR.

SEC fair-access policy requires an identifying User-Agent and a modest
request rate. Every outbound request (including each redirect hop) waits on
one shared RequestScheduler, so requests from all callers are spaced at least
``min_interval`` apart. 429 and 503 responses are retried with exponential
backoff via tenacity; any other non-2xx status fails immediately.

Usage:
    scheduler = RequestScheduler(min_interval=0.150)
    client = RateLimitedHttpClient(scheduler, user_agent="MarketDesk/1.0 (contact: me@x.com)")

    submissions = await client.fetch_json("https://data.sec.gov/submissions/CIK0000320193.json")
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urljoin

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from marketdesk.core.exceptions import (
    DecodeError,
    HttpError,
    ProviderUnavailableError,
    RateLimitedError,
)
from marketdesk.core.logging import get_logger

logger = get_logger("edgar.http")

RETRYABLE_STATUSES = frozenset({429, 503})
MAX_REDIRECTS = 10

Sleep = Callable[[float], Awaitable[None]]


class _Throttled(Exception):
    """Internal: the host answered 429/503."""

    def __init__(self, status: int, url: str):
        self.status = status
        self.url = url
        super().__init__(f"Throttled with status {status} for {url}")


class RequestScheduler:
    """
    Owns the last-dispatch timestamp for one host.

    Shared by reference between every caller of the regulated host; waiting
    is serialized so concurrent callers are dispatched one spacing apart.
    """

    def __init__(
        self,
        min_interval: float = 0.150,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def last_dispatch(self) -> Optional[float]:
        return self._last_dispatch

    async def wait_turn(self) -> float:
        """Suspend until the spacing rule allows a request; return dispatch time."""
        async with self._lock:
            if self._last_dispatch is not None:
                elapsed = self._clock() - self._last_dispatch
                if elapsed < self.min_interval:
                    await self._sleep(self.min_interval - elapsed)
            self._last_dispatch = self._clock()
            return self._last_dispatch


class RateLimitedHttpClient:
    """GET JSON or bytes from SEC hosts with throttling, redirects and backoff."""

    def __init__(
        self,
        scheduler: RequestScheduler,
        user_agent: str,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.scheduler = scheduler
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        # Redirects are followed by hand so every hop goes through the scheduler
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=False,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_json(self, url: str) -> Any:
        response = await self._get(url, accept="application/json")
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Failed to parse JSON from {url}: {e}") from e

    async def fetch_binary(self, url: str) -> bytes:
        response = await self._get(url)
        return response.content

    async def _get(self, url: str, accept: Optional[str] = None) -> httpx.Response:
        headers = {"Accept": accept} if accept else {}
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries + 1),
                wait=wait_exponential(multiplier=self.backoff_seconds, exp_base=2),
                retry=retry_if_exception_type(_Throttled),
                sleep=self._sleep,
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await self._send_following_redirects(url, headers)
        except _Throttled as e:
            logger.warning(f"SEC rate limit persisted after {self.max_retries} retries: {e.url}")
            raise RateLimitedError(
                "SEC rate limit exceeded. Please try again in a moment.",
                details={"status": e.status, "url": e.url},
            ) from e

    async def _send_following_redirects(
        self, url: str, headers: dict[str, str]
    ) -> httpx.Response:
        current = url
        for _ in range(MAX_REDIRECTS + 1):
            await self.scheduler.wait_turn()
            try:
                response = await self._client.get(current, headers=headers)
            except httpx.HTTPError as e:
                raise ProviderUnavailableError(f"SEC request to {current} failed: {e}") from e

            status = response.status_code
            location = response.headers.get("location")
            if 300 <= status < 400 and location:
                current = urljoin(str(response.url), location)
                logger.debug(f"Following redirect {status} to {current}")
                continue
            if status in RETRYABLE_STATUSES:
                raise _Throttled(status, current)
            if not response.is_success:
                raise HttpError(status, current)
            return response

        raise HttpError(status, url, f"Too many redirects for {url}")
