"""
End-to-end tests for the ``Scrapely`` client over a mocked network.

aioresponses stands in for the remote site, so the full stack runs:
config -> rate gate -> user-agent rotation -> cache -> retry -> aiohttp ->
parsing -> extraction -> export.
"""

import asyncio
import json
import time

import pytest
import pytest_asyncio
from aioresponses import aioresponses
from scrapely import CallbackObserver, FetchError, Scrapely, ValidationError
from scrapely.config.config import FetchConfig
from scrapely.extractor.structured import FormResult, TableResult
from tests.helpers import StubHttpClient, page_with_next

SITE = "https://shop.example"


class SlowStubHttpClient(StubHttpClient):
    """Stub transport that records how many requests overlap."""

    def __init__(self, routes):
        super().__init__(routes)
        self.in_flight = 0
        self.max_in_flight = 0

    async def get(self, url):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await super().get(url)
        finally:
            self.in_flight -= 1


@pytest_asyncio.fixture
async def scraper():
    client = Scrapely(retry_delay=0, max_retries=2, record_metrics=False)
    yield client
    await client.close()


@pytest.mark.integration
class TestReading:
    @pytest.mark.asyncio
    async def test_extract_list_over_network(self, scraper, sample_html):
        with aioresponses() as m:
            m.get(f"{SITE}/catalog", status=200, body=sample_html)

            products = await scraper.extract_list(
                f"{SITE}/catalog",
                ".product",
                {"name": {"selector": "h2"}, "url": {"selector": "a", "kind": "attribute", "attribute": "href"}},
            )

        assert [p["name"] for p in products] == ["Lamp", "Chair", "Desk"]
        assert products[0]["url"] == "/p/lamp"

    @pytest.mark.asyncio
    async def test_selector_helpers(self, sample_html):
        client = StubHttpClient({f"{SITE}/catalog": sample_html})
        async with Scrapely(client=client, record_metrics=False) as s:
            assert await s.get_text(f"{SITE}/catalog", "h1") == "Spring Catalog"
            assert await s.get_text(f"{SITE}/catalog", ".product h2", multiple=True) == ["Lamp", "Chair", "Desk"]
            assert await s.get_attribute(f"{SITE}/catalog", "a[title]", "title") == "About"
            assert await s.get_html(f"{SITE}/catalog", ".intro") == "<p>Hello <b>world</b></p>"
            assert await s.exists(f"{SITE}/catalog", ".product")
            assert not await s.exists(f"{SITE}/catalog", ".missing")
            assert await s.count(f"{SITE}/catalog", ".product") == 3
        assert client.closed

    @pytest.mark.asyncio
    async def test_structured_extractors(self, table_html, form_html, sample_html):
        client = StubHttpClient(
            {f"{SITE}/table": table_html, f"{SITE}/form": form_html, f"{SITE}/catalog": sample_html}
        )
        async with Scrapely(client=client, record_metrics=False) as s:
            table = await s.extract_table(f"{SITE}/table")
            form = await s.extract_form(f"{SITE}/form")
            emails = await s.extract_emails(f"{SITE}/catalog")
            phones = await s.extract_phone_numbers(f"{SITE}/catalog")
            links = await s.extract_links(f"{SITE}/catalog", internal=True, unique=True)

        assert isinstance(table, TableResult) and table.headers == ["Name", "Price"]
        assert isinstance(form, FormResult) and form.action == f"{SITE}/search"
        assert emails == ["sales@shop.example", "support@shop.example"]
        assert phones == ["+1 555-123-4567"]
        assert [link.href for link in links] == [f"{SITE}/p/lamp", f"{SITE}/p/chair", f"{SITE}/p/desk"]

    @pytest.mark.asyncio
    async def test_schema_validated_before_fetch(self):
        client = StubHttpClient()
        async with Scrapely(client=client, record_metrics=False) as s:
            with pytest.raises(ValidationError):
                await s.extract(f"{SITE}/x", "h1")
            with pytest.raises(ValidationError):
                await s.extract_list(f"{SITE}/x", "", {"a": {"selector": "a"}})
            with pytest.raises(ValidationError):
                await s.extract(f"{SITE}/x", {"a": {"selector": "a["}})
            with pytest.raises(ValidationError):
                await s.extract_list(f"{SITE}/x", "div[", {"a": {"selector": "a"}})
            with pytest.raises(ValidationError):
                await s.extract_links(f"{SITE}/x", pattern="(unclosed")
        assert client.calls == []


@pytest.mark.integration
class TestResilience:
    @pytest.mark.asyncio
    async def test_retry_then_success_over_network(self, scraper):
        with aioresponses() as m:
            m.get(f"{SITE}/flaky", status=503, body="")
            m.get(f"{SITE}/flaky", status=200, body="<p>ok</p>")

            assert await scraper.fetch(f"{SITE}/flaky") == "<p>ok</p>"

    @pytest.mark.asyncio
    async def test_exhausted_retries_over_network(self, scraper):
        with aioresponses() as m:
            m.get(f"{SITE}/down", status=500, repeat=True)

            with pytest.raises(FetchError) as exc_info:
                await scraper.fetch(f"{SITE}/down")

        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    async def test_cache_and_observers(self):
        events = []
        observer = CallbackObserver(
            on_request=lambda url: events.append("request"),
            on_cache_hit=lambda url: events.append("cache_hit"),
        )
        client = StubHttpClient({f"{SITE}/c": "<p>1</p>"})
        async with Scrapely(client=client, cache=True, observers=[observer], record_metrics=False) as s:
            await s.fetch(f"{SITE}/c")
            await s.fetch(f"{SITE}/c")
            assert s.cache_size == 1
            s.clear_cache()
            assert s.cache_size == 0
            await s.fetch(f"{SITE}/c")

        assert events == ["request", "cache_hit", "request"]
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_spaces_requests(self):
        client = StubHttpClient({f"{SITE}/r": "x"})
        async with Scrapely(client=client, rate_limit=20, record_metrics=False) as s:
            start = time.monotonic()
            for _ in range(3):
                await s.fetch(f"{SITE}/r")
            elapsed = time.monotonic() - start

        assert elapsed >= 0.09

    @pytest.mark.asyncio
    async def test_headers_and_cookies(self):
        client = StubHttpClient({f"{SITE}/h": "x"})
        async with Scrapely(client=client, record_metrics=False) as s:
            s.set_headers({"X-Api": "1"})
            s.set_cookies({"a": "1", "b": "2"})
            await s.fetch(f"{SITE}/h")
            s.set_cookies("raw=cookie")
            await s.fetch(f"{SITE}/h")

            with pytest.raises(ValidationError):
                s.set_cookies(42)

        assert client.seen_headers[0]["X-Api"] == "1"
        assert client.seen_headers[0]["Cookie"] == "a=1; b=2"
        assert client.seen_headers[1]["Cookie"] == "raw=cookie"

    def test_config_and_options_are_exclusive(self):
        with pytest.raises(ValidationError):
            Scrapely(FetchConfig(), timeout=5)

    def test_bad_option_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Scrapely(max_retries=0)
        assert exc_info.value.param == "max_retries"


@pytest.mark.integration
class TestMultiPage:
    @pytest.mark.asyncio
    async def test_paginate(self):
        client = StubHttpClient(
            {
                f"{SITE}/l/1": page_with_next(["a", "b"], "/l/2"),
                f"{SITE}/l/2": page_with_next(["c"], "/l/3"),
                f"{SITE}/l/3": page_with_next(["d"]),
            }
        )
        async with Scrapely(client=client, record_metrics=False) as s:
            results = await s.paginate(
                f"{SITE}/l/1",
                data_extractor=lambda doc, url, page: [li.text() for li in doc.select("li.item")],
                stop_when=lambda doc, results, page: page == 2,
            )
        assert results == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_scrape_multiple_with_failure(self):
        urls = [f"{SITE}/m/{i}" for i in range(1, 6)]
        client = StubHttpClient({url: f"<h1>{url[-1]}</h1>" for url in urls})
        client.route(urls[2], ConnectionError("down"))

        async with Scrapely(client=client, retry_delay=0, record_metrics=False) as s:
            results = await s.scrape_multiple(
                urls, lambda doc, url: doc.select("h1")[0].text(), concurrency=2, ignore_errors=True
            )

        assert results == ["1", "2", "4", "5"]

    @pytest.mark.asyncio
    async def test_client_concurrency_is_default_window(self):
        urls = [f"{SITE}/w/{i}" for i in range(4)]
        client = SlowStubHttpClient({url: "<h1>x</h1>" for url in urls})

        async with Scrapely(client=client, concurrency=1, record_metrics=False) as s:
            await s.scrape_multiple(urls, lambda doc, url: url)
        assert client.max_in_flight == 1

        client.max_in_flight = 0
        async with Scrapely(client=client, concurrency=1, record_metrics=False) as s:
            await s.scrape_multiple(urls, lambda doc, url: url, concurrency=4)
        assert client.max_in_flight == 4

    def test_invalid_client_concurrency(self):
        with pytest.raises(ValidationError) as exc_info:
            Scrapely(concurrency=0, record_metrics=False)
        assert exc_info.value.param == "concurrency"


@pytest.mark.integration
class TestOutput:
    @pytest.mark.asyncio
    async def test_exports(self, tmp_path):
        async with Scrapely(client=StubHttpClient(), record_metrics=False) as s:
            json_path = await s.export_json([{"a": 1}], tmp_path / "out.json")
            csv_path = await s.export_csv([{"a": 1}], tmp_path / "out.csv")

        assert json.loads(json_path.read_text()) == [{"a": 1}]
        assert csv_path.read_bytes() == b"a\r\n1\r\n"

    @pytest.mark.asyncio
    async def test_download_images(self, tmp_path):
        client = StubHttpClient(
            {f"{SITE}/g": '<img src="/i/x.png"><img src="/i/y.png">', f"{SITE}/i/x.png": "X", f"{SITE}/i/y.png": "Y"}
        )
        async with Scrapely(client=client, record_metrics=False) as s:
            paths = await s.download_images(f"{SITE}/g", directory=tmp_path)
            single = await s.download_file(f"{SITE}/i/x.png", tmp_path / "copy.png")

        assert sorted(p.name for p in paths) == ["x.png", "y.png"]
        assert single.read_text() == "X"
