"""
Handles exporting scraped data to JSON and CSV files.
"""

from __future__ import annotations

import csv
import dataclasses
import io
import json
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Any, Mapping, Sequence

import structlog

from scrapely.exceptions import ExportError, ScrapelyError, ValidationError
from scrapely.utils.atomic import atomic_write_text

logger = structlog.get_logger(__name__)


def json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class BaseExporter(ABC):
    """Abstract base class for all exporters."""

    format_name: str = ""

    def export(self, data: Any, filepath: str | Path) -> Path:
        """Serialize ``data`` and write it atomically; returns the absolute path."""
        if not isinstance(filepath, (str, Path)) or not str(filepath):
            raise ValidationError("filepath", "must be a non-empty string or path")

        self.validate(data)
        try:
            content = self.serialize(data)
            path = atomic_write_text(Path(filepath), content)
        except ScrapelyError:
            raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Export failed", format=self.format_name, path=str(filepath), error=str(e))
            raise ExportError(str(filepath), e) from e

        logger.info("Export complete", format=self.format_name, path=str(path))
        return path

    def validate(self, data: Any) -> None:
        pass

    @abstractmethod
    def serialize(self, data: Any) -> str:
        """Render ``data`` to the file contents."""


class JsonExporter(BaseExporter):
    """Pretty-printed UTF-8 JSON."""

    format_name = "json"

    def serialize(self, data: Any) -> str:
        return json.dumps(data, indent=2, ensure_ascii=False, default=json_default)


class CsvExporter(BaseExporter):
    """CSV with a header taken from the first row's keys and CRLF line endings."""

    format_name = "csv"

    def validate(self, data: Any) -> None:
        if (
            not isinstance(data, Sequence)
            or isinstance(data, (str, bytes))
            or not data
            or not all(isinstance(row, Mapping) for row in data)
        ):
            raise ValidationError("data", "must be a non-empty list of mappings")

    def serialize(self, data: Sequence[Mapping[str, Any]]) -> str:
        headers = list(data[0].keys())
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
        writer.writerow(headers)
        for row in data:
            writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])
        return buffer.getvalue()


def get_exporter(format_name: str) -> BaseExporter:
    """Factory function to get the appropriate exporter."""
    if format_name == "json":
        return JsonExporter()
    elif format_name == "csv":
        return CsvExporter()
    else:
        raise ValidationError("format", f"unknown export format: {format_name}")


def export_json(data: Any, filepath: str | Path) -> Path:
    return JsonExporter().export(data, filepath)


def export_csv(data: Sequence[Mapping[str, Any]], filepath: str | Path) -> Path:
    return CsvExporter().export(data, filepath)
