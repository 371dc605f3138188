"""Configuration models and YAML loader for the APEC harvester."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


def _split_codes(v: Any) -> list[str]:
    """Accept a YAML list or a comma-separated string of codes."""
    if v is None:
        return []
    if isinstance(v, str):
        return [part.strip() for part in v.split(",") if part.strip()]
    if isinstance(v, (list, tuple)):
        return [str(item).strip() for item in v if item is not None and str(item).strip()]
    msg = f"expected a list or comma-separated string, got {type(v).__name__}"
    raise ValueError(msg)


class HarvestConfig(BaseModel):
    """Search inputs and run limits for one harvest."""

    keyword: str = ""
    location: str = ""
    department: str = ""
    contract_types: list[str] = Field(default_factory=list)
    remote_work: list[str] = Field(default_factory=list)
    results_wanted: int = Field(default=100, ge=1)
    max_pages: int = Field(default=5, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    collect_details: bool = True
    use_api: bool = True
    max_concurrency: int = Field(default=8, ge=1, le=64)
    request_delay_ms: int = Field(default=0, ge=0)
    start_urls: list[str] = Field(default_factory=list)
    time_budget_s: float | None = Field(default=None, gt=0)

    @field_validator("contract_types", "remote_work", "start_urls", mode="before")
    @classmethod
    def split_codes(cls, v: Any) -> list[str]:
        return _split_codes(v)

    @field_validator("keyword", "location", "department", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()


class HttpConfig(BaseModel):
    """Transport settings passed through to the HTTP client."""

    base_url: str = "https://www.apec.fr"
    timeout_s: float = Field(default=20.0, gt=0)
    proxy_url: str | None = None


class RetryPolicyConfig(BaseModel):
    """Retry ceiling and backoff for one call site."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay_s: float = Field(default=1.0, ge=0.0)
    jitter_s: float = Field(default=0.5, ge=0.0)


class RetryConfig(BaseModel):
    """Per-call-site retry policies. Detail fetches get a shorter ceiling."""

    search: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    detail: RetryPolicyConfig = Field(
        default_factory=lambda: RetryPolicyConfig(max_attempts=2, base_delay_s=0.5, jitter_s=0.25),
    )


class BrowserConfig(BaseModel):
    """Browser session configuration for the SPA render fallback."""

    render_fallback: bool = False
    headless: bool = True
    cookies_path: str | None = None
    timeout_ms: int = Field(default=30000, ge=1000)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/records.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    harvest: HarvestConfig = Field(default_factory=HarvestConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            msg = f"unknown log_level '{v}'"
            raise ValueError(msg)
        return level

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
