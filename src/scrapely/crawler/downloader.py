"""
File and image downloads streamed through the transport.
"""

from __future__ import annotations

import asyncio
import posixpath
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlparse

import structlog

from scrapely.crawler.http_client import HttpClient
from scrapely.exceptions import DownloadError, ValidationError
from scrapely.extractor.document import DocumentView
from scrapely.utils.data_utils import resolve_url, sanitize_filename

logger = structlog.get_logger(__name__)


def image_filename(url: str, index: int) -> str:
    """Basename of the URL path, or ``image_{index}.jpg`` when there is none."""
    try:
        name = posixpath.basename(unquote(urlparse(url).path))
    except ValueError:
        name = ""
    return sanitize_filename(name) if name else f"image_{index}.jpg"


def image_sources(document: DocumentView, base_url: str, selector: str = "img") -> List[Tuple[int, str]]:
    """(position, absolute URL) for every match carrying ``src`` or ``data-src``."""
    sources = []
    for i, img in enumerate(document.select(selector)):
        src = img.attr("src") or img.attr("data-src")
        if src:
            sources.append((i, resolve_url(base_url, src)))
    return sources


def image_targets(sources: List[Tuple[int, str]], directory: str | Path) -> List[Tuple[str, Path]]:
    """Pair each source with a destination, prefixing the position when a name repeats."""
    targets = []
    used = set()
    for i, url in sources:
        name = image_filename(url, i)
        while name in used:
            name = f"{i}_{name}"
        used.add(name)
        targets.append((url, Path(directory) / name))
    return targets


class Downloader:
    """Writes remote resources to disk via an ``HttpClient``."""

    def __init__(self, client: HttpClient):
        self.client = client

    async def download_file(self, url: str, dest: str | Path) -> Path:
        if not isinstance(url, str) or not url:
            raise ValidationError("url", "must be a non-empty string")
        if not isinstance(dest, (str, Path)) or not str(dest):
            raise ValidationError("dest", "must be a non-empty string or path")

        abs_path = Path(dest).resolve()
        try:
            abs_path.parent.mkdir(parents=True, exist_ok=True)
            await self.client.stream_to(url, abs_path)
        except Exception as e:
            logger.warning("Download failed", url=url, dest=str(abs_path), error=str(e))
            raise DownloadError(url, str(abs_path), e) from e

        logger.debug("Downloaded file", url=url, dest=str(abs_path))
        return abs_path

    async def download_images(
        self,
        document: DocumentView,
        base_url: str,
        selector: str = "img",
        directory: str | Path = "./downloads",
        ignore_errors: bool = False,
    ) -> List[Path]:
        """Download every matched image concurrently; failures are dropped with ``ignore_errors``."""
        targets = image_targets(image_sources(document, base_url, selector), directory)
        results = await asyncio.gather(
            *(self.download_file(url, dest) for url, dest in targets), return_exceptions=True
        )

        paths: List[Path] = []
        first_error: Optional[BaseException] = None
        for outcome in results:
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                if first_error is None:
                    first_error = outcome
                continue
            paths.append(outcome)

        if first_error is not None and not ignore_errors:
            raise first_error

        logger.info("Downloaded images", page=base_url, requested=len(targets), saved=len(paths))
        return paths
