"""Document parsing, declarative schema extraction and structured extractors."""

from .document import DocumentView, ElementHandle, HtmlDocument, HtmlElement, parse_html
from .schema import FieldDefinition, FieldKind, SchemaExtractor, compile_schema

__all__ = [
    "DocumentView",
    "ElementHandle",
    "FieldDefinition",
    "FieldKind",
    "HtmlDocument",
    "HtmlElement",
    "SchemaExtractor",
    "compile_schema",
    "parse_html",
]
