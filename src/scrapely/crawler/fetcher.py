"""
Resilient fetch pipeline: rate gate, user-agent rotation, response cache and
bounded linear-backoff retry around an ``HttpClient``.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

import structlog

from scrapely.crawler.cache import ResponseCache
from scrapely.crawler.events import ObserverHub
from scrapely.crawler.http_client import AiohttpClient, HttpClient
from scrapely.crawler.rate_limiter import RateGate
from scrapely.crawler.user_agents import UserAgentRotator
from scrapely.exceptions import FetchError, ValidationError
from scrapely.extractor.document import DocumentView, parse_html

if TYPE_CHECKING:
    from scrapely.config.config import FetchConfig

logger = structlog.get_logger(__name__)


def require_url(url: object, param: str = "url") -> str:
    if not isinstance(url, str) or not url:
        raise ValidationError(param, "must be a non-empty string")
    return url


class RetryingFetcher:
    """
    Produces document bodies with bounded retry.

    Rate-gate timestamp, user-agent index and cache are per-instance shared
    state; access is serialized so concurrent fetches never interleave
    mid-update.
    """

    def __init__(
        self,
        config: FetchConfig,
        client: Optional[HttpClient] = None,
        events: Optional[ObserverHub] = None,
        cache: Optional[ResponseCache] = None,
        rate_gate: Optional[RateGate] = None,
        user_agents: Optional[UserAgentRotator] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        parser: Callable[[str, Optional[str]], DocumentView] = parse_html,
    ):
        self.config = config
        self.client: HttpClient = client if client is not None else AiohttpClient(config)
        self.events = events if events is not None else ObserverHub()
        self.cache = cache if cache is not None else ResponseCache(config.cache)
        self.rate_gate = rate_gate if rate_gate is not None else RateGate(config.rate_limit, sleep=sleep)
        self.user_agents = user_agents if user_agents is not None else UserAgentRotator(
            enabled=config.rotate_user_agent
        )
        self._sleep = sleep
        self._parser = parser
        self._state_lock = asyncio.Lock()

    def backoff_delay(self, attempt: int) -> float:
        """Linear backoff: ``retry_delay * attempt`` seconds."""
        return self.config.retry_delay * attempt

    async def _rotate_user_agent(self) -> None:
        async with self._state_lock:
            agent = self.user_agents.next()
            self.client.headers["User-Agent"] = agent

    async def _cached(self, url: str) -> Optional[str]:
        async with self._state_lock:
            return self.cache.get(url)

    async def _store(self, url: str, body: str) -> None:
        async with self._state_lock:
            self.cache.put(url, body)

    async def fetch(self, url: str) -> str:
        """
        Fetch ``url`` and return its body as text.

        Raises:
            ValidationError: ``url`` is not a non-empty string
            FetchError: every attempt failed
        """
        require_url(url)
        await self.rate_gate.acquire()

        if self.config.rotate_user_agent:
            await self._rotate_user_agent()

        if self.cache.enabled:
            cached = await self._cached(url)
            if cached is not None:
                logger.debug("Cache hit", url=url)
                self.events.emit("cache_hit", url)
                return cached

        max_retries = self.config.max_retries
        attempt = 0

        while True:
            attempt += 1
            self.events.emit("request", url)
            try:
                response = await self.client.get(url)
            except Exception as e:
                logger.warning("Request failed", url=url, attempt=attempt, max_retries=max_retries, error=str(e))
                self.events.emit("retry", url, attempt, e)
                if attempt >= max_retries:
                    err = FetchError(url, attempt, e)
                    logger.error("All attempts failed", url=url, attempts=attempt, error=str(e))
                    self.events.emit("error", err)
                    raise err from e
                await self._sleep(self.backoff_delay(attempt))
                continue

            self.events.emit("response", url, response.status)
            body = response.body if isinstance(response.body, str) else str(response.body)
            if self.cache.enabled:
                await self._store(url, body)
            return body

    async def load(self, url: str) -> DocumentView:
        """Fetch ``url`` and parse it into a document view."""
        body = await self.fetch(url)
        return self._parser(body, url)
