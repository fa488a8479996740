"""
Scrapely - declarative web scraping with rate limiting, retries and caching.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import CacheConfig, FetchConfig, Settings
from .crawler.events import CallbackObserver, FetchObserver
from .exceptions import (
    DownloadError,
    ExportError,
    FetchError,
    HttpStatusError,
    ScrapelyError,
    ValidationError,
)
from .extractor.schema import FieldDefinition, FieldKind
from .scraper.client import Scrapely
from .utils import data_utils as DataUtils

__all__ = [
    "__version__",
    "CacheConfig",
    "CallbackObserver",
    "DataUtils",
    "DownloadError",
    "ExportError",
    "FetchConfig",
    "FetchError",
    "FetchObserver",
    "FieldDefinition",
    "FieldKind",
    "HttpStatusError",
    "Scrapely",
    "ScrapelyError",
    "Settings",
    "ValidationError",
]
