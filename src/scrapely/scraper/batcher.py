"""
Windowed concurrent fan-out over many URLs.

URLs are processed in fixed windows of ``concurrency``; each window settles
completely before the next one starts. Results land in an indexed slot per
input, so output order follows input order regardless of completion order.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

import structlog

from scrapely.exceptions import ValidationError
from scrapely.extractor.document import DocumentView

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 3

Loader = Callable[[str], Awaitable[DocumentView]]
Handler = Callable[[DocumentView, str], Any]


@dataclass
class BatchOutcome(Generic[T]):
    """Result of one input: a value on success, the cause on failure."""

    index: int
    url: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConcurrencyBatcher:
    """Runs load+handler for many URLs, ``concurrency`` at a time."""

    def __init__(self, load: Loader, concurrency: Optional[int] = None, ignore_errors: bool = False):
        concurrency = DEFAULT_CONCURRENCY if concurrency is None else concurrency
        if not isinstance(concurrency, int) or concurrency < 1:
            raise ValidationError("concurrency", "must be a positive integer")
        self._load = load
        self.concurrency = concurrency
        self.ignore_errors = ignore_errors

    async def _process(self, index: int, url: str, handler: Handler) -> BatchOutcome[Any]:
        try:
            document = await self._load(url)
            value = handler(document, url)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            return BatchOutcome(index=index, url=url, error=e)
        return BatchOutcome(index=index, url=url, value=value)

    async def settle(self, urls: Sequence[str], handler: Handler) -> List[BatchOutcome[Any]]:
        """
        Process every window and return one outcome per input, in input order.

        Without ``ignore_errors`` the first failure of a window (by input
        position) is raised once that window settles; later windows never start.
        """
        if not isinstance(urls, (list, tuple)) or not all(isinstance(u, str) for u in urls):
            raise ValidationError("urls", "must be a list of strings")
        if not callable(handler):
            raise ValidationError("handler", "must be callable")

        slots: List[Optional[BatchOutcome[Any]]] = [None] * len(urls)

        for start in range(0, len(urls), self.concurrency):
            window = range(start, min(start + self.concurrency, len(urls)))
            outcomes = await asyncio.gather(*(self._process(i, urls[i], handler) for i in window))
            for outcome in outcomes:
                slots[outcome.index] = outcome

            failures = [o for o in outcomes if not o.ok]
            for failed in failures:
                logger.warning("Batch item failed", url=failed.url, index=failed.index, error=str(failed.error))
            if failures and not self.ignore_errors:
                raise failures[0].error  # type: ignore[misc]

        return [o for o in slots if o is not None]

    async def run(self, urls: Sequence[str], handler: Handler) -> List[Any]:
        """Successful handler results, in original input order."""
        outcomes = await self.settle(urls, handler)
        return [o.value for o in outcomes if o.ok]
