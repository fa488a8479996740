"""
Pure helpers for cleaning scraped text and URLs.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, List, Optional, TypeVar
from urllib.parse import urljoin, urlparse, urlunparse

from dateutil import parser as dateutil_parser

T = TypeVar("T")

WHITESPACE_PATTERN = re.compile(r"\s+")
NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")
PRICE_STRIP_PATTERN = re.compile(r"[^\d.,]")
EUROPEAN_PRICE_PATTERN = re.compile(r"\d+\.\d{3},\d{2}$")
UNSAFE_FILENAME_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1F]')

# Type detection patterns, checked in order
TYPE_PATTERNS = (
    ("integer", re.compile(r"^\d+$")),
    ("float", re.compile(r"^\d+\.\d+$")),
    ("email", re.compile(r"^[\w.+-]+@[\w.-]+\.\w{2,}$")),
    ("url", re.compile(r"^https?://", re.IGNORECASE)),
    ("date", re.compile(r"^\d{4}-\d{2}-\d{2}")),
)


def clean_text(text: Any) -> str:
    """Collapse runs of whitespace and trim. Non-strings become ``""``."""
    if not isinstance(text, str):
        return ""
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def extract_numbers(text: Any) -> List[float]:
    if not isinstance(text, str):
        return []
    return [float(n) for n in NUMBER_PATTERN.findall(text)]


def parse_price(raw: Any) -> Optional[float]:
    """
    Parse a price string such as ``"$1,234.56"`` or ``"1.234,56 €"``.

    Returns:
        The numeric value, or None when nothing numeric is present
    """
    if not isinstance(raw, str):
        return None
    cleaned = PRICE_STRIP_PATTERN.sub("", raw)
    if not cleaned:
        return None

    if EUROPEAN_PRICE_PATTERN.search(cleaned):
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    else:
        cleaned = cleaned.replace(",", "")

    match = re.match(r"\d*\.?\d+", cleaned)
    return float(match.group(0)) if match else None


def parse_date(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return dateutil_parser.parse(raw)
    except (ValueError, OverflowError):
        return None


def get_domain(url: Any) -> Optional[str]:
    if not isinstance(url, str):
        return None
    try:
        return urlparse(url).hostname
    except ValueError:
        return None


def normalize_url(
    url: str,
    remove_query: bool = True,
    remove_fragment: bool = True,
    remove_trailing_slash: bool = False,
) -> str:
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url

    path = parsed.path or "/"
    if remove_trailing_slash:
        path = path.rstrip("/")
    return urlunparse(
        (
            parsed.scheme,
            parsed.netloc,
            path,
            parsed.params,
            "" if remove_query else parsed.query,
            "" if remove_fragment else parsed.fragment,
        )
    )


def sanitize_filename(name: Any) -> str:
    return UNSAFE_FILENAME_PATTERN.sub("_", str(name))


def detect_type(value: Any) -> str:
    """Classify a scalar as integer, float, email, url, date, empty or string."""
    if value is None or value == "":
        return "empty"
    v = str(value).strip()
    for name, pattern in TYPE_PATTERNS:
        if pattern.search(v):
            return name
    return "string"


def resolve_url(base: str, rel: str) -> str:
    try:
        return urljoin(base, rel)
    except ValueError:
        return rel


def same_domain(a: str, b: str) -> bool:
    host_a, host_b = get_domain(a), get_domain(b)
    return host_a is not None and host_a == host_b


def unique(items: Iterable[T]) -> List[T]:
    """De-duplicate preserving first-seen order."""
    return list(dict.fromkeys(items))
