"""Dataset export to JSON and CSV files."""

from .exporter import CsvExporter, JsonExporter, export_csv, export_json, get_exporter

__all__ = ["CsvExporter", "JsonExporter", "export_csv", "export_json", "get_exporter"]
