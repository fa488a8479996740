"""
Pagination driver.

Repeats fetch -> extract -> decide across a chain of "next page" links
until a stop condition, the page limit, or the end of the chain.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set

import structlog

from scrapely.exceptions import ValidationError
from scrapely.extractor.document import DocumentView, compile_selector
from scrapely.utils.data_utils import resolve_url

logger = structlog.get_logger(__name__)

DEFAULT_NEXT_SELECTOR = '.next, .pagination__next, a[rel="next"]'
DEFAULT_MAX_PAGES = 50

Loader = Callable[[str], Awaitable[DocumentView]]
DataExtractor = Callable[[DocumentView, str, int], Any]
StopCondition = Callable[[DocumentView, List[Any], int], bool]


class PageState(Enum):
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    DECIDING = "deciding"
    TERMINAL = "terminal"


@dataclass
class PaginationState:
    """Mutable cursor for one ``paginate`` run."""

    url: str
    page: int = 1
    results: List[Any] = field(default_factory=list)
    state: PageState = PageState.FETCHING
    pages_visited: int = 0
    visited: Set[str] = field(default_factory=set)


def resolve_next_url(document: DocumentView, current_url: str, next_selector: str) -> Optional[str]:
    """Absolute URL of the first next-link's ``href``, or None at the end of the chain."""
    matches = document.select(next_selector)
    if not matches:
        return None
    href = matches[0].attr("href")
    return resolve_url(current_url, href) if href else None


class Paginator:
    """Drives fetch+extract cycles across a discovered next-page chain."""

    def __init__(
        self,
        load: Loader,
        next_selector: Optional[str] = None,
        max_pages: Optional[int] = None,
        data_extractor: Optional[DataExtractor] = None,
        stop_when: Optional[StopCondition] = None,
        ignore_errors: bool = False,
    ):
        max_pages = DEFAULT_MAX_PAGES if max_pages is None else max_pages
        if not isinstance(max_pages, int) or max_pages < 1:
            raise ValidationError("max_pages", "must be a positive integer")

        self._load = load
        self.next_selector = next_selector or DEFAULT_NEXT_SELECTOR
        compile_selector(self.next_selector, "next_selector")
        self.max_pages = max_pages
        self.data_extractor = data_extractor
        self.stop_when = stop_when
        self.ignore_errors = ignore_errors

    async def _extract(self, document: DocumentView, state: PaginationState) -> None:
        if self.data_extractor is None:
            return
        data = self.data_extractor(document, state.url, state.page)
        if inspect.isawaitable(data):
            data = await data

        if isinstance(data, (list, tuple)):
            state.results.extend(data)
        elif data is not None:
            state.results.append(data)

    def _decide(self, document: DocumentView, state: PaginationState) -> None:
        if self.stop_when is not None and self.stop_when(document, state.results, state.page):
            logger.debug("Stop condition met", page=state.page, url=state.url)
            state.state = PageState.TERMINAL
            return
        if state.page >= self.max_pages:
            logger.debug("Page limit reached", max_pages=self.max_pages)
            state.state = PageState.TERMINAL
            return

        next_url = resolve_next_url(document, state.url, self.next_selector)
        if next_url is None:
            state.state = PageState.TERMINAL
            return
        if next_url in state.visited:
            logger.debug("Next link already visited, ending chain", page=state.page, next_url=next_url)
            state.state = PageState.TERMINAL
            return

        state.url = next_url
        state.page += 1
        state.state = PageState.FETCHING

    async def run(self, start_url: str) -> List[Any]:
        if not isinstance(start_url, str) or not start_url:
            raise ValidationError("start_url", "must be a non-empty string")

        state = PaginationState(url=start_url)
        while state.state is not PageState.TERMINAL:
            try:
                document = await self._load(state.url)
            except Exception as e:
                if not self.ignore_errors:
                    raise
                logger.warning("Pagination stopped on fetch failure", url=state.url, page=state.page, error=str(e))
                break

            state.pages_visited += 1
            state.visited.add(state.url)
            state.state = PageState.EXTRACTING
            await self._extract(document, state)

            state.state = PageState.DECIDING
            self._decide(document, state)

        logger.info("Pagination finished", start_url=start_url, pages=state.pages_visited, items=len(state.results))
        return state.results
