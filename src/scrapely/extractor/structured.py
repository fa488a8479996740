"""
Extractors for common page structures: tables, forms, links, plus regex
scans for e-mail addresses and phone numbers in raw bodies.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Union
from urllib.parse import urljoin

import structlog

from scrapely.exceptions import ValidationError
from scrapely.extractor.document import HtmlDocument, HtmlElement
from scrapely.utils.data_utils import resolve_url, same_domain, unique

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{2,4}\)?[-.\s]?\d{3,4}[-.\s]?\d{3,4}")

TABLE_HEADER_SELECTOR = "thead th, thead td, tr:first-child th"
FORM_FIELD_SELECTOR = "input, select, textarea"


@dataclass
class TableResult:
    headers: List[str]
    rows: List[Dict[str, str]]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FormOption:
    value: Optional[str]
    label: str
    selected: bool


@dataclass
class FormField:
    tag: str
    name: Optional[str]
    type: str
    value: Optional[str]
    required: bool
    placeholder: Optional[str]
    options: Optional[List[FormOption]] = None


@dataclass
class FormResult:
    action: Optional[str]
    method: str
    fields: List[FormField] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LinkResult:
    href: str
    text: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --- Tables ---


def _parse_table(table: HtmlElement) -> TableResult:
    headers = [th.text().strip() for th in table.select(TABLE_HEADER_SELECTOR)]

    auto_headers = not headers
    if auto_headers:
        first_row = table.select("tr")[:1]
        col_count = len(first_row[0].children("td, th")) if first_row else 0
        headers = [f"col_{c + 1}" for c in range(col_count)]

    row_elements = table.select("tr")
    if not auto_headers:
        row_elements = [tr for tr in row_elements if not tr.select("th")]

    rows: List[Dict[str, str]] = []
    for tr in row_elements:
        cells = tr.children("td")
        if not cells:
            continue
        row: Dict[str, str] = {}
        for j, td in enumerate(cells):
            key = headers[j] if j < len(headers) and headers[j] else f"col_{j + 1}"
            row[key] = td.text().strip()
        rows.append(row)

    return TableResult(headers=headers, rows=rows)


def extract_tables(document: HtmlDocument, selector: str = "table") -> List[TableResult]:
    return [_parse_table(table) for table in document.select(selector)]


def extract_table(
    document: HtmlDocument, selector: str = "table", all: bool = False
) -> Union[TableResult, List[TableResult], None]:
    """First matching table (or every table with ``all=True``)."""
    tables = extract_tables(document, selector)
    if not tables:
        return [] if all else None
    return tables if all else tables[0]


# --- Forms ---


def _field_value(el: HtmlElement) -> Optional[str]:
    if el.tag == "textarea":
        return el.text()
    if el.tag == "select":
        chosen = [o for o in el.select("option") if o.has_attr("selected")]
        if chosen:
            return chosen[0].attr("value") or chosen[0].text().strip()
        return None
    return el.attr("value")


def _parse_form(form: HtmlElement, base_url: Optional[str]) -> FormResult:
    action = form.attr("action") or None
    if action and base_url:
        action = urljoin(base_url, action)

    result = FormResult(action=action, method=(form.attr("method") or "GET").upper())
    for el in form.select(FORM_FIELD_SELECTOR):
        info = FormField(
            tag=el.tag,
            name=el.attr("name") or None,
            type=el.attr("type") or el.tag,
            value=_field_value(el),
            required=el.has_attr("required"),
            placeholder=el.attr("placeholder") or None,
        )
        if el.tag == "select":
            info.options = [
                FormOption(value=o.attr("value"), label=o.text().strip(), selected=o.has_attr("selected"))
                for o in el.select("option")
            ]
        result.fields.append(info)
    return result


def extract_forms(
    document: HtmlDocument, selector: str = "form", base_url: Optional[str] = None
) -> Union[FormResult, List[FormResult]]:
    """A single ``FormResult`` when exactly one form matches, else a list."""
    forms = [_parse_form(form, base_url) for form in document.select(selector)]
    return forms[0] if len(forms) == 1 else forms


# --- Links ---


def compile_pattern(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """Compile a link filter, reporting a bad expression as ``ValidationError``."""
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError("pattern", str(e)) from e


def extract_links(
    document: HtmlDocument,
    base_url: str,
    internal: bool = False,
    external: bool = False,
    pattern: Optional[str] = None,
    unique_only: bool = False,
) -> List[LinkResult]:
    matcher = compile_pattern(pattern)
    links: List[LinkResult] = []
    seen = set()

    for a in document.select("a[href]"):
        href = resolve_url(base_url, a.attr("href") or "")

        if internal and not same_domain(base_url, href):
            continue
        if external and same_domain(base_url, href):
            continue
        if matcher and not matcher.search(href):
            continue
        if unique_only:
            if href in seen:
                continue
            seen.add(href)

        links.append(LinkResult(href=href, text=a.text().strip(), title=a.attr("title") or None))

    logger.debug("Extracted links", base_url=base_url, count=len(links))
    return links


# --- Raw body scans ---


def extract_emails(body: str) -> List[str]:
    return unique(EMAIL_PATTERN.findall(body or ""))


def extract_phone_numbers(body: str) -> List[str]:
    return unique(match.strip() for match in PHONE_PATTERN.findall(body or ""))
