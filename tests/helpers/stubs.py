"""
In-memory transport and timing stubs for tests.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from scrapely.crawler.http_client import HttpResponse
from scrapely.exceptions import HttpStatusError

Outcome = Union[str, int, BaseException]


class StubHttpClient:
    """
    Scripted ``HttpClient``.

    Each URL maps to a queue of outcomes consumed one per call: a string is a
    200 body, an int is a rejected status, an exception is raised. The last
    outcome repeats once the queue is drained.
    """

    def __init__(self, routes: Optional[Dict[str, Union[Outcome, List[Outcome]]]] = None):
        self.headers: Dict[str, str] = {}
        self.routes: Dict[str, List[Outcome]] = {}
        self.calls: List[str] = []
        self.seen_headers: List[Dict[str, str]] = []
        self.closed = False
        for url, outcome in (routes or {}).items():
            self.route(url, outcome)

    def route(self, url: str, outcome: Union[Outcome, List[Outcome]]) -> None:
        self.routes[url] = list(outcome) if isinstance(outcome, list) else [outcome]

    def _next(self, url: str) -> Outcome:
        queue = self.routes.get(url)
        if not queue:
            raise ConnectionError(f"no route for {url}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def _resolve(self, url: str) -> str:
        outcome = self._next(url)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, int):
            raise HttpStatusError(url, outcome)
        return outcome

    async def get(self, url: str) -> HttpResponse:
        self.calls.append(url)
        self.seen_headers.append(dict(self.headers))
        body = self._resolve(url)
        return HttpResponse(status=200, body=body, url=url, final_url=url)

    async def stream_to(self, url: str, dest: Path) -> Path:
        self.calls.append(url)
        body = self._resolve(url)
        Path(dest).write_bytes(body.encode("utf-8"))
        return Path(dest)

    async def close(self) -> None:
        self.closed = True


async def no_sleep(delay: float) -> None:
    """Drop-in for ``asyncio.sleep`` that returns immediately."""


class RecordingSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def page_with_next(items: List[str], next_href: Optional[str] = None) -> str:
    """Build a listing page; ``next_href`` adds a ``rel="next"`` link."""
    lis = "".join(f'<li class="item">{item}</li>' for item in items)
    nav = f'<a rel="next" href="{next_href}">Next</a>' if next_href else ""
    return f"<html><body><ul>{lis}</ul>{nav}</body></html>"
