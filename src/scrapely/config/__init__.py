"""Configuration models for scrapely."""

from .config import CacheConfig, FetchConfig, MonitoringConfig, Settings

__all__ = ["CacheConfig", "FetchConfig", "MonitoringConfig", "Settings"]
