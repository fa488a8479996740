"""
HTTP transport used by the fetcher.

``HttpClient`` is the narrow protocol the fetch pipeline depends on;
``AiohttpClient`` is the production implementation backed by a shared
``aiohttp.ClientSession``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Optional, Protocol, runtime_checkable

import aiohttp
import structlog

from scrapely.exceptions import HttpStatusError
from scrapely.utils.atomic import atomic_write_stream

if TYPE_CHECKING:
    from scrapely.config.config import FetchConfig

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class HttpResponse:
    """Response from a single HTTP GET."""

    status: int
    body: str
    url: str
    final_url: str
    headers: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class HttpClient(Protocol):
    """Transport capability consumed by the fetch pipeline."""

    headers: Dict[str, str]

    async def get(self, url: str) -> HttpResponse:
        """GET ``url``; raise on transport failure or a rejected status."""
        ...

    async def stream_to(self, url: str, dest: Path) -> Path:
        """Stream the body of ``url`` into ``dest``, replacing it only once the body is complete."""
        ...

    async def close(self) -> None: ...


class AiohttpClient:
    """aiohttp-backed transport honoring timeout, redirects, status validation and proxy."""

    def __init__(self, config: FetchConfig):
        self.config = config
        self.timeout = config.timeout
        self.max_redirects = config.max_redirects
        self.validate_status: Callable[[int], bool] = config.validate_status
        self.proxy: Optional[str] = config.proxy

        # Default headers stay mutable after construction (set_headers / UA rotation).
        self.headers: Dict[str, str] = dict(config.headers)

        self.session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

        logger.debug(
            "HTTP client initialized",
            timeout=self.timeout,
            max_redirects=self.max_redirects,
            proxy=bool(self.proxy),
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self.session is None or self.session.closed:
                self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            return self.session

    def _request_kwargs(self) -> Dict[str, object]:
        kwargs: Dict[str, object] = {
            "headers": dict(self.headers),
            "allow_redirects": self.max_redirects > 0,
        }
        if self.max_redirects > 0:
            kwargs["max_redirects"] = self.max_redirects
        if self.proxy:
            kwargs["proxy"] = self.proxy
        return kwargs

    async def get(self, url: str) -> HttpResponse:
        session = await self._get_session()
        async with session.get(url, **self._request_kwargs()) as response:
            body = await response.text(errors="replace")
            if not self.validate_status(response.status):
                raise HttpStatusError(url, response.status)
            return HttpResponse(
                status=response.status,
                body=body,
                url=url,
                final_url=str(response.url),
                headers=dict(response.headers),
            )

    async def stream_to(self, url: str, dest: Path) -> Path:
        session = await self._get_session()
        async with session.get(url, **self._request_kwargs()) as response:
            if not self.validate_status(response.status):
                raise HttpStatusError(url, response.status)
            return await atomic_write_stream(dest, response.content.iter_chunked(CHUNK_SIZE))

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self.session is not None:
            await self.session.close()
            self.session = None
            logger.debug("HTTP client closed")

    async def __aenter__(self) -> AiohttpClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
