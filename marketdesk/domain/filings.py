"""SEC EDGAR domain models: companies, filings and the per-CIK filings record."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


def normalize_cik(value: Any) -> str | None:
    """Numeric CIK without leading zeros, or None when not a CIK."""
    text = str(value or "").strip()
    if text.upper().startswith("CIK"):
        text = text[3:]
    if not text.isdigit():
        return None
    number = int(text)
    if number <= 0:
        return None
    return str(number)


def pad_cik(value: Any) -> str | None:
    """Zero-padded 10-digit CIK as used in SEC URL paths."""
    numeric = normalize_cik(value)
    return numeric.zfill(10) if numeric else None


class Company(BaseModel):
    """A filer from the SEC ticker directory."""

    cik: str = Field(..., description="Zero-padded 10-digit CIK")
    cik_numeric: str = Field(..., description="CIK without leading zeros")
    ticker: str
    name: str


class Filing(BaseModel):
    """One filing submission; identity is (cik, accession_number)."""

    model_config = {"frozen": True}

    cik: str
    cik_numeric: str
    accession_number: str
    form: str
    filing_date: date | None = None
    report_date: date | None = None
    primary_document: str | None = None
    description: str | None = None

    @field_validator("filing_date", "report_date", "primary_document", "description", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class FilingsCacheRecord(BaseModel):
    """Persisted full filing history for one CIK (all form types)."""

    last_fetched_at: datetime
    filings: list[Filing] = Field(default_factory=list)


class FilingsListing(BaseModel):
    """Filtered view of a FilingsCacheRecord returned to callers."""

    last_fetched_at: datetime
    filings: list[Filing] = Field(default_factory=list)
