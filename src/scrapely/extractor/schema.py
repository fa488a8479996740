"""
Declarative schema extraction.

A schema maps output field names to field definitions::

    {
        "title": {"selector": "h1"},
        "links": {"selector": "a", "kind": "attribute", "attribute": "href", "multiple": True},
        "price": {"selector": ".price", "transform": lambda raw, doc, el: parse_price(raw)},
    }

Schemas are compiled up front so malformed definitions fail before any
document is touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import structlog

from scrapely.exceptions import ValidationError
from scrapely.extractor.document import DocumentView, ElementHandle, compile_selector

logger = structlog.get_logger(__name__)

Transform = Callable[[Any, DocumentView, Optional[ElementHandle]], Any]


class FieldKind(str, Enum):
    """How a matched element is read."""

    TEXT = "text"
    HTML = "html"
    ATTRIBUTE = "attribute"


def _coerce_kind(raw: Any) -> FieldKind:
    try:
        return FieldKind(raw)
    except ValueError:
        logger.debug("Unknown field kind, reading as text", kind=raw)
        return FieldKind.TEXT


@dataclass(frozen=True)
class FieldDefinition:
    """A single compiled schema field."""

    selector: str
    kind: FieldKind = FieldKind.TEXT
    attribute: Optional[str] = None
    multiple: bool = False
    transform: Optional[Transform] = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, FieldKind):
            object.__setattr__(self, "kind", _coerce_kind(self.kind))
        compile_selector(self.selector)
        if self.kind is FieldKind.ATTRIBUTE and not self.attribute:
            raise ValidationError("attribute", 'is required when kind is "attribute"')
        if self.transform is not None and not callable(self.transform):
            raise ValidationError("transform", "must be callable")

    @classmethod
    def from_mapping(cls, name: str, raw: Mapping[str, Any]) -> FieldDefinition:
        """Build a definition from a plain mapping (``type`` is accepted for ``kind``)."""
        if not isinstance(raw, Mapping):
            raise ValidationError(name, "field definition must be a mapping")

        try:
            return cls(
                selector=raw.get("selector"),  # type: ignore[arg-type]
                kind=raw.get("kind", raw.get("type", FieldKind.TEXT)),
                attribute=raw.get("attribute"),
                multiple=bool(raw.get("multiple", False)),
                transform=raw.get("transform"),
            )
        except ValidationError as e:
            raise ValidationError(f"{name}.{e.param}", e.reason) from e

    def read(self, element: Optional[ElementHandle]) -> Any:
        """Raw value of ``element`` according to this field's kind."""
        if self.kind is FieldKind.HTML:
            return element.html() if element is not None else None
        if self.kind is FieldKind.ATTRIBUTE:
            return element.attr(self.attribute) if element is not None else None  # type: ignore[arg-type]
        return element.text().strip() if element is not None else ""

    def value(self, element: Optional[ElementHandle], document: DocumentView) -> Any:
        raw = self.read(element)
        return self.transform(raw, document, element) if self.transform else raw


SchemaInput = Mapping[str, Union[FieldDefinition, Mapping[str, Any]]]
Schema = Dict[str, FieldDefinition]


def compile_schema(schema: SchemaInput, param: str = "schema") -> Schema:
    """Validate ``schema`` and normalize every field to a ``FieldDefinition``."""
    if not isinstance(schema, Mapping):
        raise ValidationError(param, "must be a mapping of field names to definitions")

    compiled: Schema = {}
    for name, raw in schema.items():
        compiled[name] = raw if isinstance(raw, FieldDefinition) else FieldDefinition.from_mapping(name, raw)
    return compiled


class SchemaExtractor:
    """Walks a compiled schema against a document."""

    def extract(self, document: DocumentView, schema: SchemaInput) -> Dict[str, Any]:
        fields = compile_schema(schema)
        result: Dict[str, Any] = {}
        for name, field in fields.items():
            result[name] = self._extract_field(document, document.select(field.selector), field)
        return result

    def extract_list(
        self, document: DocumentView, container_selector: str, item_schema: SchemaInput
    ) -> List[Dict[str, Any]]:
        compile_selector(container_selector, "container_selector")
        fields = compile_schema(item_schema, param="item_schema")

        items: List[Dict[str, Any]] = []
        for container in document.select(container_selector):
            item: Dict[str, Any] = {}
            for name, field in fields.items():
                # Scoped to the container, not the whole document.
                item[name] = self._extract_field(document, container.select(field.selector), field)
            items.append(item)

        logger.debug("Extracted list", container=container_selector, count=len(items))
        return items

    def _extract_field(self, document: DocumentView, matches: List[ElementHandle], field: FieldDefinition) -> Any:
        if field.multiple:
            return [field.value(el, document) for el in matches]
        return field.value(matches[0] if matches else None, document)


def extract(document: DocumentView, schema: SchemaInput) -> Dict[str, Any]:
    return SchemaExtractor().extract(document, schema)


def extract_list(document: DocumentView, container_selector: str, item_schema: SchemaInput) -> List[Dict[str, Any]]:
    return SchemaExtractor().extract_list(document, container_selector, item_schema)
