"""
Configuration management for scrapely using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scrapely.crawler.user_agents import DEFAULT_USER_AGENTS
from scrapely.exceptions import ValidationError

# --- Setup Logging ---
log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_CONCURRENCY = 3
DEFAULT_MAX_PAGES = 50
DEFAULT_CACHE_TTL = 5 * 60.0
DEFAULT_CACHE_MAX = 200
MAX_REDIRECTS = 10

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": DEFAULT_USER_AGENTS[0],
    "Accept": "text/html,application/xhtml+xml",
}


def default_status_validator(status: int) -> bool:
    """Accept 2xx and 3xx responses."""
    return 200 <= status < 400


# --- Nested Configuration Models ---


class CacheConfig(BaseModel):
    """Response cache policy."""

    model_config = ConfigDict(frozen=True)

    ttl: float = Field(default=DEFAULT_CACHE_TTL, ge=0, description="Seconds before a cached body is stale.")
    max_size: int = Field(default=DEFAULT_CACHE_MAX, ge=1, description="Maximum number of cached bodies.")


class FetchConfig(BaseModel):
    """Per-client fetch settings. Immutable once the client is built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="HTTP request timeout in seconds.")
    max_retries: int = Field(default=DEFAULT_RETRIES, ge=1, description="Total attempts per fetch.")
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY, ge=0, description="Base linear backoff in seconds.")
    headers: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_HEADERS))
    follow_redirects: bool = True
    validate_status: Callable[[int], bool] = default_status_validator
    rate_limit: Optional[float] = Field(default=None, ge=0, description="Requests per second, None to disable.")
    proxy: Optional[str] = None
    rotate_user_agent: bool = False
    cache: Optional[CacheConfig] = None

    @field_validator("headers", mode="before")
    @classmethod
    def merge_default_headers(cls, v: Any) -> Dict[str, str]:
        merged = dict(DEFAULT_HEADERS)
        if v:
            merged.update(v)
        return merged

    @field_validator("cache", mode="before")
    @classmethod
    def coerce_cache_policy(cls, v: Any) -> Any:
        if v is True:
            return CacheConfig()
        if v is False or v is None:
            return None
        return v

    @property
    def max_redirects(self) -> int:
        return MAX_REDIRECTS if self.follow_redirects else 0

    @classmethod
    def from_options(cls, **options: Any) -> FetchConfig:
        """Build a config from caller options, surfacing bad input as ``ValidationError``."""
        options = {k: v for k, v in options.items() if v is not None or k in ("rate_limit", "proxy", "cache")}
        try:
            return cls(**options)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            param = ".".join(str(part) for part in first.get("loc", ())) or "options"
            raise ValidationError(param, first.get("msg", str(e))) from e


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics for fetch events.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Settings(BaseSettings):
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    max_pages: int = Field(default=DEFAULT_MAX_PAGES, ge=1)

    model_config = SettingsConfigDict(env_prefix="SCRAPELY_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Settings:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        try:
            return cls.model_validate(yaml_data)
        except pydantic.ValidationError as e:
            raise ValidationError(str(path), str(e)) from e

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Settings:
        """Settings from ``path`` when given, otherwise from ``SCRAPELY_*`` environment variables."""
        if path is not None:
            return cls.from_yaml(path)
        try:
            return cls()
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            param = "SCRAPELY_" + "__".join(str(part) for part in first.get("loc", ())).upper()
            raise ValidationError(param, first.get("msg", str(e))) from e
