"""
Per-company filing history persisted on disk.

A stored record is served as-is regardless of age; only ``force_refresh``
re-fetches. The record always holds every form type, and form filtering
happens on read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from marketdesk.cache import JsonFileStore
from marketdesk.core.exceptions import InvalidInputError
from marketdesk.core.logging import get_logger
from marketdesk.domain import (
    Filing,
    FilingsCacheRecord,
    FilingsListing,
    normalize_cik,
    pad_cik,
)

from .http_client import RateLimitedHttpClient

logger = get_logger("edgar.filings")

SUBMISSIONS_BASE = "https://data.sec.gov/submissions"


def _column(block: dict[str, Any], name: str) -> list[Any]:
    values = block.get(name)
    return values if isinstance(values, list) else []


def parse_filings_block(block: Any, cik: str) -> list[Filing]:
    """Convert a column-oriented submissions block into Filing rows."""
    if not isinstance(block, dict):
        return []

    accessions = _column(block, "accessionNumber")
    forms = _column(block, "form")
    filing_dates = _column(block, "filingDate")
    report_dates = _column(block, "reportDate")
    primary_docs = _column(block, "primaryDocument")
    descriptions = _column(block, "primaryDocDescription")

    def at(values: list[Any], i: int) -> Any:
        return values[i] if i < len(values) else None

    cik_numeric = normalize_cik(cik)
    filings = []
    for i, accession in enumerate(accessions):
        if not accession:
            continue
        filings.append(
            Filing(
                cik=pad_cik(cik_numeric),
                cik_numeric=cik_numeric,
                accession_number=str(accession),
                form=str(at(forms, i) or "").strip(),
                filing_date=at(filing_dates, i),
                report_date=at(report_dates, i),
                primary_document=at(primary_docs, i),
                description=at(descriptions, i),
            )
        )
    return filings


def filter_forms(filings: Iterable[Filing], forms: Optional[Iterable[str]]) -> list[Filing]:
    """Case-insensitive form filter; an empty filter keeps everything."""
    wanted = {f.strip().upper() for f in (forms or []) if f and f.strip()}
    if not wanted:
        return list(filings)
    return [f for f in filings if f.form.upper() in wanted]


class FilingsStore:
    """Filing history per CIK, one JSON record per company."""

    def __init__(
        self,
        client: RateLimitedHttpClient,
        directory: Path,
        fetch_all_pages: bool = True,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.client = client
        self.directory = Path(directory)
        self.fetch_all_pages = fetch_all_pages
        self._now = now

    def record_path(self, cik: str) -> Path:
        return self.directory / f"CIK{cik}.json"

    async def list_filings(
        self,
        cik: Any,
        forms: Optional[Iterable[str]] = None,
        force_refresh: bool = False,
    ) -> FilingsListing:
        padded = pad_cik(cik)
        if not padded:
            raise InvalidInputError(f"Invalid CIK: {cik!r}")

        record = None if force_refresh else await self.load_record(padded)
        if record is None:
            record = await self.refresh(padded)

        return FilingsListing(
            last_fetched_at=record.last_fetched_at,
            filings=filter_forms(record.filings, forms),
        )

    async def load_record(self, padded_cik: str) -> Optional[FilingsCacheRecord]:
        """Stored record, or None when missing or corrupt."""
        raw = await JsonFileStore(self.record_path(padded_cik)).load()
        if raw is None:
            return None
        try:
            return FilingsCacheRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding corrupt filings record for CIK {padded_cik}: {e}")
            return None

    async def refresh(self, padded_cik: str) -> FilingsCacheRecord:
        """Fetch the complete, unfiltered filing list and overwrite the record."""
        submissions = await self.client.fetch_json(
            f"{SUBMISSIONS_BASE}/CIK{padded_cik}.json"
        )
        if not isinstance(submissions, dict):
            submissions = {}
        cik = normalize_cik(submissions.get("cik")) or normalize_cik(padded_cik)
        history = submissions.get("filings") or {}

        filings = parse_filings_block(history.get("recent"), cik)
        if self.fetch_all_pages:
            for page in history.get("files") or []:
                name = page.get("name") if isinstance(page, dict) else None
                if not name:
                    continue
                older = await self.client.fetch_json(f"{SUBMISSIONS_BASE}/{name}")
                filings.extend(parse_filings_block(older, cik))

        # Pages can overlap at their boundaries
        unique: dict[str, Filing] = {}
        for filing in filings:
            unique.setdefault(filing.accession_number, filing)

        record = FilingsCacheRecord(
            last_fetched_at=self._now(),
            filings=list(unique.values()),
        )
        try:
            await JsonFileStore(self.record_path(padded_cik)).save(
                record.model_dump(mode="json")
            )
        except OSError as e:
            logger.warning(f"Could not persist filings for CIK {padded_cik}: {e}")

        logger.info(f"Fetched {len(record.filings)} filings for CIK {padded_cik}")
        return record
