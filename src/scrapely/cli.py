"""Command-line interface for Scrapely."""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional, Tuple

import click
import structlog
import yaml

from scrapely import __version__
from scrapely.config.config import Settings
from scrapely.dataset.exporter import get_exporter, json_default
from scrapely.exceptions import ScrapelyError
from scrapely.extractor.document import compile_selector
from scrapely.extractor.schema import compile_schema, extract_list
from scrapely.extractor.schema import extract as extract_record
from scrapely.observability.logging import configure_logging
from scrapely.scraper.client import Scrapely

logger = structlog.get_logger(__name__)


def _fail(e: ScrapelyError) -> NoReturn:
    logger.error("Command failed", code=e.code, error=str(e))
    click.echo(json.dumps(e.to_dict(), default=str), err=True)
    sys.exit(1)


def _load_settings(config_path: Optional[Path], log_level: str) -> Settings:
    try:
        settings = Settings.load(config_path)
    except ScrapelyError as e:
        _fail(e)
    settings.monitoring.log_level = log_level
    configure_logging(settings.monitoring)
    return settings


def _plain(data: Any) -> Any:
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def _emit(data: Any, output: Optional[str], fmt: str) -> None:
    """Write ``data`` to ``output`` in ``fmt``, or JSON to stdout."""
    data = _plain(data)
    if output:
        try:
            path = get_exporter(fmt).export(data, output)
        except ScrapelyError as e:
            _fail(e)
        click.echo(f"Wrote {path}", err=True)
        return
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=json_default))


def _run(ctx: click.Context, op) -> Any:
    settings: Settings = ctx.obj["settings"]

    async def _main() -> Any:
        async with Scrapely(
            settings.fetch, record_metrics=settings.monitoring.metrics_enabled, concurrency=settings.concurrency
        ) as scraper:
            return await op(scraper, settings)

    try:
        return asyncio.run(_main())
    except ScrapelyError as e:
        _fail(e)


def _read_schema(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        schema = yaml.safe_load(f)
    if not isinstance(schema, dict):
        raise click.BadParameter("schema file must contain a mapping", param_hint="--schema")
    return schema


output_option = click.option("--output", "-o", type=click.Path(), help="Write results to a file instead of stdout")
format_option = click.option(
    "--format", "fmt", default="json", type=click.Choice(["json", "csv"]), help="Output file format"
)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file path")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: str) -> None:
    """Scrapely - declarative web scraping."""
    ctx.ensure_object(dict)
    ctx.obj["settings"] = _load_settings(Path(config) if config else None, log_level)


@cli.command()
@click.argument("url")
@click.pass_context
def fetch(ctx: click.Context, url: str) -> None:
    """Fetch URL and print the response body."""
    body = _run(ctx, lambda s, _: s.fetch(url))
    click.echo(body)


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--schema", "schema_path", required=True, type=click.Path(exists=True), help="YAML or JSON schema file")
@click.option("--container", default=None, help="Extract one record per element matching this selector")
@click.option("--ignore-errors", is_flag=True, help="Skip URLs that fail when several are given")
@output_option
@format_option
@click.pass_context
def extract(
    ctx: click.Context,
    urls: Tuple[str, ...],
    schema_path: str,
    container: Optional[str],
    ignore_errors: bool,
    output: Optional[str],
    fmt: str,
) -> None:
    """Extract structured data from one or more URLs using a declarative schema.

    Several URLs are fetched in windows of the configured concurrency.
    """
    schema = _read_schema(Path(schema_path))
    if len(urls) == 1:
        url = urls[0]
        if container:
            data = _run(ctx, lambda s, _: s.extract_list(url, container, schema))
        else:
            data = _run(ctx, lambda s, _: s.extract(url, schema))
        _emit(data, output, fmt)
        return

    try:
        fields = compile_schema(schema)
        if container:
            compile_selector(container, "container")
    except ScrapelyError as e:
        _fail(e)

    def handler(document: Any, _url: str) -> Any:
        if container:
            return extract_list(document, container, fields)
        return extract_record(document, fields)

    results = _run(ctx, lambda s, _: s.scrape_multiple(list(urls), handler, ignore_errors=ignore_errors))
    if container:
        results = [row for rows in results for row in rows]
    _emit(results, output, fmt)


@cli.command()
@click.argument("url")
@click.option("--internal", is_flag=True, help="Only links on the same host")
@click.option("--external", is_flag=True, help="Only links on other hosts")
@click.option("--pattern", default=None, help="Regex the absolute href must match")
@click.option("--unique", is_flag=True, help="Drop repeated hrefs")
@output_option
@format_option
@click.pass_context
def links(
    ctx: click.Context,
    url: str,
    internal: bool,
    external: bool,
    pattern: Optional[str],
    unique: bool,
    output: Optional[str],
    fmt: str,
) -> None:
    """List the links found on URL."""
    data = _run(
        ctx,
        lambda s, _: s.extract_links(url, internal=internal, external=external, pattern=pattern, unique=unique),
    )
    _emit(data, output, fmt)


@cli.command()
@click.argument("url")
@click.option("--selector", default="table", show_default=True, help="Table selector")
@output_option
@format_option
@click.pass_context
def table(ctx: click.Context, url: str, selector: str, output: Optional[str], fmt: str) -> None:
    """Extract the first matching table from URL."""
    result = _run(ctx, lambda s, _: s.extract_table(url, selector))
    if result is None:
        click.echo(f"No table matches {selector!r}", err=True)
        sys.exit(1)
    _emit(result.rows if fmt == "csv" else result, output, fmt)


@cli.command()
@click.argument("url")
@click.option("--schema", "schema_path", required=True, type=click.Path(exists=True), help="YAML or JSON schema file")
@click.option("--container", required=True, help="Selector for one record on each page")
@click.option("--next-selector", default=None, help="Selector for the next-page link")
@click.option("--max-pages", type=int, default=None, help="Page limit (defaults to configured max_pages)")
@click.option("--ignore-errors", is_flag=True, help="Return collected results when a page fails")
@output_option
@format_option
@click.pass_context
def paginate(
    ctx: click.Context,
    url: str,
    schema_path: str,
    container: str,
    next_selector: Optional[str],
    max_pages: Optional[int],
    ignore_errors: bool,
    output: Optional[str],
    fmt: str,
) -> None:
    """Follow next-page links from URL, extracting records on each page."""
    schema = _read_schema(Path(schema_path))
    data = _run(
        ctx,
        lambda s, settings: s.paginate(
            url,
            data_extractor=lambda doc, _url, _page: extract_list(doc, container, schema),
            next_selector=next_selector,
            max_pages=max_pages or settings.max_pages,
            ignore_errors=ignore_errors,
        ),
    )
    _emit(data, output, fmt)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
