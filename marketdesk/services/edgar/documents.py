"""
Filing document lookup and download.

Prefers a PDF already present in the filing's archive directory. Otherwise
the primary document is handed to a DocumentFetcher; the default one stores
the document as published (HTML conversion is left to the desktop shell).
Downloads are cached on disk per (CIK, accession number) with no expiry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

from marketdesk.cache import write_bytes_atomic
from marketdesk.core.exceptions import AppException, InvalidInputError, NotFoundError
from marketdesk.core.logging import get_logger
from marketdesk.domain import normalize_cik

from .http_client import RateLimitedHttpClient

logger = get_logger("edgar.documents")

ARCHIVES_BASE = "https://www.sec.gov/Archives/edgar/data"


@dataclass(frozen=True)
class FilingDocuments:
    """Candidate artifacts for one filing."""

    pdf_url: Optional[str] = None
    primary_document_url: Optional[str] = None


class DocumentFetcher(Protocol):
    """Turns a primary document URL into a local file next to ``stem``."""

    async def fetch(self, url: str, stem: Path) -> Path: ...


class ArchiveDocumentFetcher:
    """Saves the primary document as published, keeping its extension."""

    def __init__(self, client: RateLimitedHttpClient):
        self.client = client

    async def fetch(self, url: str, stem: Path) -> Path:
        suffix = Path(urlparse(url).path).suffix or ".html"
        payload = await self.client.fetch_binary(url)
        return await write_bytes_atomic(stem.with_name(stem.name + suffix), payload)


def accession_key(accession_number: Any) -> str:
    return re.sub(r"[^0-9A-Za-z]", "", str(accession_number or ""))


class FilingDocumentLocator:
    def __init__(
        self,
        client: RateLimitedHttpClient,
        directory: Path,
        fetcher: Optional[DocumentFetcher] = None,
    ):
        self.client = client
        self.directory = Path(directory)
        self.fetcher = fetcher or ArchiveDocumentFetcher(client)

    def _identify(self, cik: Any, accession_number: Any) -> tuple[str, str]:
        cik_numeric = normalize_cik(cik)
        if not cik_numeric:
            raise InvalidInputError(f"Invalid CIK: {cik!r}")
        accession = accession_key(accession_number)
        if not accession:
            raise InvalidInputError(f"Invalid accession number: {accession_number!r}")
        return cik_numeric, accession

    def cached_path(self, cik: Any, accession_number: Any) -> Optional[Path]:
        """Previously downloaded artifact for this filing, if any."""
        cik_numeric, accession = self._identify(cik, accession_number)
        if not self.directory.is_dir():
            return None
        matches = sorted(self.directory.glob(f"{cik_numeric}-{accession}.*"))
        return matches[0] if matches else None

    async def locate(
        self,
        cik: Any,
        accession_number: Any,
        primary_document: Optional[str] = None,
    ) -> FilingDocuments:
        cik_numeric, accession = self._identify(cik, accession_number)
        base_url = f"{ARCHIVES_BASE}/{cik_numeric}/{accession}/"

        items: list[dict[str, Any]] = []
        try:
            index = await self.client.fetch_json(f"{base_url}index.json")
            listed = (index.get("directory") or {}).get("item") if isinstance(index, dict) else None
            if isinstance(listed, list):
                items = [item for item in listed if isinstance(item, dict)]
        except AppException as e:
            # Older filings may not have an index.json
            logger.debug(f"No directory listing for {cik_numeric}/{accession}: {e.message}")

        pdf_url = None
        for item in items:
            name = str(item.get("name") or "")
            if name.lower().endswith(".pdf"):
                pdf_url = f"{base_url}{name}"
                break

        primary_name = (primary_document or "").strip()
        if not primary_name and items:
            primary_name = str(items[0].get("name") or "")

        return FilingDocuments(
            pdf_url=pdf_url,
            primary_document_url=f"{base_url}{primary_name}" if primary_name else None,
        )

    async def download(
        self,
        cik: Any,
        accession_number: Any,
        primary_document: Optional[str] = None,
    ) -> Path:
        """Local path of the filing's document, downloading it on first use."""
        cached = self.cached_path(cik, accession_number)
        if cached is not None:
            logger.debug(f"Filing document cache hit: {cached}")
            return cached

        cik_numeric, accession = self._identify(cik, accession_number)
        stem = self.directory / f"{cik_numeric}-{accession}"
        documents = await self.locate(cik_numeric, accession_number, primary_document)

        if documents.pdf_url:
            payload = await self.client.fetch_binary(documents.pdf_url)
            path = await write_bytes_atomic(stem.with_name(stem.name + ".pdf"), payload)
        elif documents.primary_document_url:
            path = await self.fetcher.fetch(documents.primary_document_url, stem)
        else:
            raise NotFoundError(
                f"No available document found for filing {accession_number}"
            )

        logger.info(f"Downloaded filing document {path.name}")
        return path
