"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "MarketDesk"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(
        default="production",
        description="Environment: development, production",
    )

    # Local storage
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".marketdesk",
        description="Root directory for alerts, filings and downloaded documents",
    )

    # Primary market data provider (Financial Modeling Prep)
    fmp_api_key: str = Field(
        default="", description="FMP API key; empty skips the primary provider"
    )
    fmp_base_url: str = Field(
        default="https://financialmodelingprep.com/stable",
        description="FMP stable API base URL",
    )

    # External API timeouts
    external_api_timeout: int = Field(
        default=30, ge=5, le=120, description="External API timeout in seconds"
    )

    # Response cache
    response_cache_ttl: int = Field(
        default=60, ge=1, description="Market data cache TTL in seconds"
    )
    response_cache_max_entries: int = Field(
        default=512, ge=1, description="Maximum entries per market data cache"
    )

    # SEC EDGAR
    sec_contact: str = Field(
        default="admin@example.com",
        description="Operator contact sent in the SEC User-Agent header",
    )
    edgar_min_interval_ms: int = Field(
        default=150, ge=0, description="Minimum spacing between SEC requests"
    )
    edgar_max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries on SEC 429/503 responses"
    )
    edgar_retry_backoff_ms: int = Field(
        default=1000, ge=0, description="First retry delay, doubled per retry"
    )
    edgar_fetch_all_pages: bool = Field(
        default=True,
        description="Also fetch older submission pages listed by the SEC",
    )
    company_search_limit: int = Field(default=25, ge=1, le=500)

    # Price alerts
    alerts_enabled: bool = Field(
        default=True, description="Run the alert evaluator with the API"
    )
    alert_check_interval_seconds: int = Field(default=60, ge=5)
    alert_notify_urls: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Apprise URLs for alert notifications",
    )

    # Local API
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8765, ge=1, le=65535)

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="text", description="Log format: json or text")

    @field_validator("alert_notify_urls", mode="before")
    @classmethod
    def parse_notify_urls(cls, v):
        if isinstance(v, str):
            return [url.strip() for url in v.split(",") if url.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"json", "text"}:
            raise ValueError("log_format must be 'json' or 'text'")
        return lower

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def sec_user_agent(self) -> str:
        return f"{self.app_name}/{self.app_version} (contact: {self.sec_contact})"

    @property
    def alerts_path(self) -> Path:
        return self.data_dir / "alerts.json"

    @property
    def filings_dir(self) -> Path:
        return self.data_dir / "edgar-filings"

    @property
    def ticker_directory_path(self) -> Path:
        return self.data_dir / "edgar-company-tickers.json"

    @property
    def documents_dir(self) -> Path:
        return self.data_dir / "edgar-documents"


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()


settings = get_settings()
