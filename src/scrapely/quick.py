"""
One-shot helpers: build a client, run a single operation, close it.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from scrapely.extractor.document import DocumentView
from scrapely.extractor.schema import SchemaInput
from scrapely.scraper.client import Scrapely

T = TypeVar("T")


async def _once(options: Dict[str, Any], op: Callable[[Scrapely], Awaitable[T]]) -> T:
    async with Scrapely(**options) as scraper:
        return await op(scraper)


async def load(url: str, **options: Any) -> DocumentView:
    return await _once(options, lambda s: s.load(url))


async def get_text(url: str, selector: str, multiple: bool = False, **options: Any) -> Any:
    return await _once(options, lambda s: s.get_text(url, selector, multiple=multiple))


async def get_attribute(url: str, selector: str, attribute: str, multiple: bool = False, **options: Any) -> Any:
    return await _once(options, lambda s: s.get_attribute(url, selector, attribute, multiple=multiple))


async def extract(url: str, schema: SchemaInput, **options: Any) -> Dict[str, Any]:
    return await _once(options, lambda s: s.extract(url, schema))


async def extract_list(url: str, container_selector: str, item_schema: SchemaInput, **options: Any) -> List[Dict[str, Any]]:
    return await _once(options, lambda s: s.extract_list(url, container_selector, item_schema))


async def extract_table(url: str, selector: str = "table", all: bool = False, **options: Any) -> Any:
    return await _once(options, lambda s: s.extract_table(url, selector, all=all))


async def extract_emails(url: str, **options: Any) -> List[str]:
    return await _once(options, lambda s: s.extract_emails(url))


async def extract_links(
    url: str,
    internal: bool = False,
    external: bool = False,
    pattern: Optional[str] = None,
    unique: bool = False,
    **options: Any,
) -> List[Any]:
    return await _once(
        options,
        lambda s: s.extract_links(url, internal=internal, external=external, pattern=pattern, unique=unique),
    )
