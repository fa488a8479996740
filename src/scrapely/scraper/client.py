"""
The ``Scrapely`` client: one object composing fetch resilience, schema
extraction, pagination, batching, downloads and exports.

Example::

    async with Scrapely(rate_limit=2, cache=True) as scraper:
        products = await scraper.extract_list(
            "https://shop.example/catalog",
            ".product",
            {"name": {"selector": "h2"}, "url": {"selector": "a", "kind": "attribute", "attribute": "href"}},
        )
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import structlog

from scrapely.config.config import FetchConfig
from scrapely.crawler.cache import ResponseCache
from scrapely.crawler.downloader import Downloader
from scrapely.crawler.events import FetchObserver, ObserverHub
from scrapely.crawler.fetcher import RetryingFetcher, require_url
from scrapely.crawler.http_client import HttpClient
from scrapely.dataset.exporter import export_csv, export_json
from scrapely.exceptions import ValidationError
from scrapely.extractor import structured
from scrapely.extractor.document import DocumentView, compile_selector
from scrapely.extractor.schema import FieldDefinition, FieldKind, SchemaExtractor, SchemaInput, compile_schema
from scrapely.observability.metrics import MetricsObserver
from scrapely.scraper.batcher import ConcurrencyBatcher, Handler
from scrapely.scraper.paginator import DataExtractor, Paginator, StopCondition

logger = structlog.get_logger(__name__)


class Scrapely:
    """
    Declarative web-scraping client.

    Options mirror ``FetchConfig``: ``timeout``, ``max_retries``,
    ``retry_delay``, ``headers``, ``follow_redirects``, ``validate_status``,
    ``rate_limit``, ``proxy``, ``rotate_user_agent`` and ``cache``. A
    prebuilt ``config`` may be passed instead. ``client`` replaces the
    aiohttp transport; ``observers`` receive fetch events. ``concurrency`` is
    the default window size for ``scrape_multiple``.
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        *,
        client: Optional[HttpClient] = None,
        observers: Optional[Sequence[FetchObserver]] = None,
        record_metrics: bool = True,
        concurrency: Optional[int] = None,
        **options: Any,
    ):
        if config is not None and options:
            raise ValidationError("options", "pass either a FetchConfig or keyword options, not both")
        self.config = config if config is not None else FetchConfig.from_options(**options)

        if concurrency is not None and (not isinstance(concurrency, int) or concurrency < 1):
            raise ValidationError("concurrency", "must be a positive integer")
        self.concurrency = concurrency
        self.events = ObserverHub(list(observers or []))
        if record_metrics:
            self.events.add(MetricsObserver())

        self._fetcher = RetryingFetcher(
            self.config,
            client=client,
            events=self.events,
            cache=ResponseCache(self.config.cache),
        )
        self._downloader = Downloader(self._fetcher.client)
        self._extractor = SchemaExtractor()

        logger.debug(
            "Scrapely client created",
            max_retries=self.config.max_retries,
            rate_limit=self.config.rate_limit,
            cache=self.config.cache is not None,
            rotate_user_agent=self.config.rotate_user_agent,
        )

    # --- lifecycle ---

    @property
    def client(self) -> HttpClient:
        return self._fetcher.client

    @property
    def fetcher(self) -> RetryingFetcher:
        return self._fetcher

    async def close(self) -> None:
        await self._fetcher.client.close()

    async def __aenter__(self) -> Scrapely:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def add_observer(self, observer: FetchObserver) -> None:
        self.events.add(observer)

    # --- fetching ---

    async def fetch(self, url: str) -> str:
        return await self._fetcher.fetch(url)

    async def load(self, url: str) -> DocumentView:
        return await self._fetcher.load(url)

    # --- single-selector reads ---

    async def _read(self, url: str, field: FieldDefinition) -> Any:
        document = await self.load(url)
        return self._extractor.extract(document, {"value": field})["value"]

    async def get_text(self, url: str, selector: str, multiple: bool = False) -> Union[str, List[str]]:
        return await self._read(url, FieldDefinition(selector=selector, multiple=multiple))

    async def get_attribute(
        self, url: str, selector: str, attribute: str, multiple: bool = False
    ) -> Union[Optional[str], List[Optional[str]]]:
        field = FieldDefinition(selector=selector, kind=FieldKind.ATTRIBUTE, attribute=attribute, multiple=multiple)
        return await self._read(url, field)

    async def get_html(self, url: str, selector: str, multiple: bool = False) -> Union[Optional[str], List[str]]:
        field = FieldDefinition(selector=selector, kind=FieldKind.HTML, multiple=multiple)
        return await self._read(url, field)

    async def exists(self, url: str, selector: str) -> bool:
        return await self.count(url, selector) > 0

    async def count(self, url: str, selector: str) -> int:
        document = await self.load(url)
        return len(document.select(selector))

    # --- schema extraction ---

    async def extract(self, url: str, schema: SchemaInput) -> Dict[str, Any]:
        """Extract one record from ``url`` using a declarative schema."""
        fields = compile_schema(schema)
        document = await self.load(url)
        return self._extractor.extract(document, fields)

    async def extract_list(self, url: str, container_selector: str, item_schema: SchemaInput) -> List[Dict[str, Any]]:
        """Extract one record per container element matched on ``url``."""
        compile_selector(container_selector, "container_selector")
        fields = compile_schema(item_schema, param="item_schema")
        document = await self.load(url)
        return self._extractor.extract_list(document, container_selector, fields)

    # --- multi-page / multi-url ---

    async def scrape_multiple(
        self,
        urls: Sequence[str],
        handler: Handler,
        concurrency: Optional[int] = None,
        ignore_errors: bool = False,
    ) -> List[Any]:
        if concurrency is None:
            concurrency = self.concurrency
        batcher = ConcurrencyBatcher(self.load, concurrency=concurrency, ignore_errors=ignore_errors)
        return await batcher.run(urls, handler)

    async def paginate(
        self,
        start_url: str,
        data_extractor: Optional[DataExtractor] = None,
        next_selector: Optional[str] = None,
        max_pages: Optional[int] = None,
        stop_when: Optional[StopCondition] = None,
        ignore_errors: bool = False,
    ) -> List[Any]:
        paginator = Paginator(
            self.load,
            next_selector=next_selector,
            max_pages=max_pages,
            data_extractor=data_extractor,
            stop_when=stop_when,
            ignore_errors=ignore_errors,
        )
        return await paginator.run(start_url)

    # --- structured extractors ---

    async def extract_table(self, url: str, selector: str = "table", all: bool = False):
        document = await self.load(url)
        return structured.extract_table(document, selector, all=all)

    async def extract_form(self, url: str, selector: str = "form"):
        document = await self.load(url)
        return structured.extract_forms(document, selector, base_url=url)

    async def extract_emails(self, url: str) -> List[str]:
        return structured.extract_emails(await self.fetch(url))

    async def extract_phone_numbers(self, url: str) -> List[str]:
        return structured.extract_phone_numbers(await self.fetch(url))

    async def extract_links(
        self,
        url: str,
        internal: bool = False,
        external: bool = False,
        pattern: Optional[str] = None,
        unique: bool = False,
    ) -> List[structured.LinkResult]:
        structured.compile_pattern(pattern)
        document = await self.load(url)
        return structured.extract_links(
            document, url, internal=internal, external=external, pattern=pattern, unique_only=unique
        )

    # --- downloads ---

    async def download_file(self, url: str, dest: Union[str, Path]) -> Path:
        return await self._downloader.download_file(url, dest)

    async def download_images(
        self,
        url: str,
        selector: str = "img",
        directory: Union[str, Path] = "./downloads",
        ignore_errors: bool = False,
    ) -> List[Path]:
        require_url(url)
        document = await self.load(url)
        return await self._downloader.download_images(
            document, url, selector=selector, directory=directory, ignore_errors=ignore_errors
        )

    # --- exports ---

    async def export_json(self, data: Any, filepath: Union[str, Path]) -> Path:
        return await self._run_sync(export_json, data, filepath)

    async def export_csv(self, data: Sequence[Mapping[str, Any]], filepath: Union[str, Path]) -> Path:
        return await self._run_sync(export_csv, data, filepath)

    @staticmethod
    async def _run_sync(func: Callable[..., Path], *args: Any) -> Path:
        # File writes happen off the event loop.
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # --- session state ---

    def set_headers(self, headers: Mapping[str, str]) -> None:
        if not isinstance(headers, Mapping):
            raise ValidationError("headers", "must be a mapping")
        self.client.headers.update(headers)

    def set_cookies(self, cookies: Union[str, Mapping[str, Any]]) -> None:
        if isinstance(cookies, str):
            value = cookies
        elif isinstance(cookies, Mapping):
            value = "; ".join(f"{k}={v}" for k, v in cookies.items())
        else:
            raise ValidationError("cookies", "must be a string or a mapping")
        self.set_headers({"Cookie": value})

    def clear_cache(self) -> None:
        self._fetcher.cache.clear()

    @property
    def cache_size(self) -> int:
        return self._fetcher.cache.size
