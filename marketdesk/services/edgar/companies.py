"""Ticker/name to CIK resolution against the SEC company ticker directory."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from marketdesk.cache import JsonFileStore
from marketdesk.core.logging import get_logger
from marketdesk.domain import Company, normalize_cik, pad_cik

from .http_client import RateLimitedHttpClient

logger = get_logger("edgar.companies")

COMPANY_TICKERS_URL = "https://www.sec.gov/files/company_tickers.json"


def parse_directory(raw: Any) -> list[Company]:
    """Parse ``company_tickers.json`` ({"0": {cik_str, ticker, title}, ...})."""
    items = raw.values() if isinstance(raw, dict) else raw if isinstance(raw, list) else []
    companies = []
    for item in items:
        if not isinstance(item, dict):
            continue
        cik_numeric = normalize_cik(item.get("cik_str"))
        ticker = str(item.get("ticker") or "").strip()
        if not cik_numeric or not ticker:
            continue
        companies.append(
            Company(
                cik=pad_cik(cik_numeric),
                cik_numeric=cik_numeric,
                ticker=ticker,
                name=str(item.get("title") or "").strip(),
            )
        )
    return companies


def rank_key(company: Company, query: str) -> tuple[bool, bool, str]:
    """Exact ticker first, then ticker prefix, then alphabetical by ticker."""
    ticker = company.ticker.lower()
    return (ticker != query, not ticker.startswith(query), ticker)


class EdgarCompanyResolver:
    """
    Resolves free-text queries to companies.

    The directory is loaded once per process: from memory, else from the local
    snapshot, else from the SEC (then persisted). It is never refreshed.
    """

    def __init__(
        self,
        client: RateLimitedHttpClient,
        snapshot: JsonFileStore,
        limit: int = 25,
    ):
        self.client = client
        self.snapshot = snapshot
        self.limit = limit
        self._directory: Optional[list[Company]] = None
        self._lock = asyncio.Lock()

    async def load_directory(self) -> list[Company]:
        async with self._lock:
            if self._directory is not None:
                return self._directory

            raw = await self.snapshot.load()
            companies = parse_directory(raw) if raw is not None else []
            if not companies:
                logger.info("Fetching SEC company ticker directory")
                raw = await self.client.fetch_json(COMPANY_TICKERS_URL)
                companies = parse_directory(raw)
                if not companies:
                    logger.warning("SEC company directory was empty; will retry on next search")
                    return companies
                try:
                    await self.snapshot.save(raw)
                except OSError as e:
                    logger.warning(f"Could not persist company directory: {e}")

            self._directory = companies
            logger.debug(f"Company directory loaded: {len(companies)} entries")
            return companies

    async def search(self, query: str) -> list[Company]:
        q = str(query or "").strip().lower()
        if not q:
            return []

        directory = await self.load_directory()
        matches = [
            c for c in directory if q in c.ticker.lower() or q in c.name.lower()
        ]
        matches.sort(key=lambda c: rank_key(c, q))
        return matches[: self.limit]
