"""SEC EDGAR integration: throttled client, company search, filings, documents."""

from .companies import EdgarCompanyResolver
from .documents import (
    ArchiveDocumentFetcher,
    DocumentFetcher,
    FilingDocumentLocator,
    FilingDocuments,
)
from .filings import FilingsStore
from .http_client import RateLimitedHttpClient, RequestScheduler


__all__ = [
    "ArchiveDocumentFetcher",
    "DocumentFetcher",
    "EdgarCompanyResolver",
    "FilingDocumentLocator",
    "FilingDocuments",
    "FilingsStore",
    "RateLimitedHttpClient",
    "RequestScheduler",
]
