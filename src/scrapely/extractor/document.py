"""
Parsed-document views.

``DocumentView`` and ``ElementHandle`` are the narrow read-only capabilities
the extractors use. ``HtmlDocument`` implements them on top of BeautifulSoup,
with CSS matching delegated to soupsieve.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

import soupsieve
from bs4 import BeautifulSoup, Tag

from scrapely.exceptions import ValidationError

PARSER = "html.parser"


@runtime_checkable
class ElementHandle(Protocol):
    """A single matched element."""

    @property
    def tag(self) -> str: ...

    def text(self) -> str: ...

    def html(self) -> str: ...

    def attr(self, name: str) -> Optional[str]: ...

    def select(self, selector: str) -> List["ElementHandle"]: ...


@runtime_checkable
class DocumentView(Protocol):
    """A parsed document that can be queried with CSS selectors."""

    url: Optional[str]

    def select(self, selector: str) -> List[ElementHandle]: ...

    def html(self) -> str: ...


def compile_selector(selector: str, param: str = "selector") -> soupsieve.SoupSieve:
    """Compile a CSS selector, reporting bad syntax as ``ValidationError``."""
    if not isinstance(selector, str) or not selector.strip():
        raise ValidationError(param, "must be a non-empty string")
    try:
        return soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as e:
        raise ValidationError(param, str(e).splitlines()[0]) from e


class HtmlElement:
    """ElementHandle backed by a ``bs4.Tag``."""

    __slots__ = ("_tag",)

    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def tag(self) -> str:
        return (self._tag.name or "").lower()

    def text(self) -> str:
        """Concatenated descendant text, untrimmed."""
        return self._tag.get_text()

    def html(self) -> str:
        """Inner markup."""
        return self._tag.decode_contents()

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if value is None:
            return None
        # Multi-valued attributes (class, rel, ...) come back as lists.
        if isinstance(value, list):
            return " ".join(value)
        return value

    def has_attr(self, name: str) -> bool:
        return self._tag.has_attr(name)

    def select(self, selector: str) -> List[HtmlElement]:
        return [HtmlElement(t) for t in compile_selector(selector).select(self._tag)]

    def children(self, selector: Optional[str] = None) -> List[HtmlElement]:
        """Direct child elements, optionally filtered by a selector."""
        kids = [c for c in self._tag.children if isinstance(c, Tag)]
        if selector:
            pattern = compile_selector(selector)
            kids = [c for c in kids if pattern.match(c)]
        return [HtmlElement(c) for c in kids]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, HtmlElement) and other._tag is self._tag

    def __hash__(self) -> int:
        return id(self._tag)

    def __repr__(self) -> str:
        return f"<HtmlElement {self.tag}>"


class HtmlDocument:
    """DocumentView backed by a BeautifulSoup tree."""

    def __init__(self, markup: str, url: Optional[str] = None, parser: str = PARSER):
        self.url = url
        self._soup = BeautifulSoup(markup, parser)

    def select(self, selector: str) -> List[HtmlElement]:
        return [HtmlElement(t) for t in compile_selector(selector).select(self._soup)]

    def html(self) -> str:
        return str(self._soup)

    def __repr__(self) -> str:
        return f"<HtmlDocument url={self.url!r}>"


def parse_html(markup: str, url: Optional[str] = None) -> HtmlDocument:
    """Parse ``markup`` into a document view."""
    return HtmlDocument(markup, url=url)
