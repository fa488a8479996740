"""
Fetch event observers.

Observers receive fire-and-forget notifications about the fetch pipeline.
A failing observer is logged and ignored; it never changes the outcome of
a fetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

EVENTS = ("request", "response", "retry", "error", "cache_hit")


class FetchObserver:
    """Base observer. Override the hooks you care about."""

    def request(self, url: str) -> None:
        pass

    def response(self, url: str, status: int) -> None:
        pass

    def retry(self, url: str, attempt: int, cause: BaseException) -> None:
        pass

    def error(self, err: BaseException) -> None:
        pass

    def cache_hit(self, url: str) -> None:
        pass


@dataclass
class CallbackObserver(FetchObserver):
    """Observer built from optional callback slots."""

    on_request: Optional[Callable[[str], Any]] = None
    on_response: Optional[Callable[[str, int], Any]] = None
    on_retry: Optional[Callable[[str, int, BaseException], Any]] = None
    on_error: Optional[Callable[[BaseException], Any]] = None
    on_cache_hit: Optional[Callable[[str], Any]] = None

    def request(self, url: str) -> None:
        if self.on_request:
            self.on_request(url)

    def response(self, url: str, status: int) -> None:
        if self.on_response:
            self.on_response(url, status)

    def retry(self, url: str, attempt: int, cause: BaseException) -> None:
        if self.on_retry:
            self.on_retry(url, attempt, cause)

    def error(self, err: BaseException) -> None:
        if self.on_error:
            self.on_error(err)

    def cache_hit(self, url: str) -> None:
        if self.on_cache_hit:
            self.on_cache_hit(url)


class ObserverHub:
    """Fans events out to every registered observer."""

    def __init__(self, observers: Optional[List[FetchObserver]] = None):
        self._observers: List[FetchObserver] = list(observers or [])

    def add(self, observer: FetchObserver) -> None:
        self._observers.append(observer)

    def remove(self, observer: FetchObserver) -> None:
        self._observers.remove(observer)

    def __len__(self) -> int:
        return len(self._observers)

    def emit(self, event: str, *args: Any) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown fetch event: {event}")

        for observer in self._observers:
            try:
                getattr(observer, event)(*args)
            except Exception as e:
                logger.warning(
                    "Observer raised, ignoring",
                    observer=type(observer).__name__,
                    fetch_event=event,
                    error=str(e),
                )
