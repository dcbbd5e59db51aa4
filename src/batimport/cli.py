"""Command-line interface for the statement import engine."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from batimport.core.config import settings
from batimport.core.models import Severity
from batimport.ingestion.auto_detect import detect_format, import_file
from batimport.ingestion.diagnostics import CollectingSink
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat


_SEPARATOR_NAMES = {"tab": "\t", "\\t": "\t", "space": " ", "none": None, "": None}


def _separator(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return _SEPARATOR_NAMES.get(value.lower(), value)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages")
def main(verbose: bool) -> None:
    """Bank statement import tools."""
    _configure_logging(verbose)


@main.command("list-formats")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def list_formats_command(json_output: bool) -> None:
    """List registered formats, in probing order."""
    parsers = ParserRegistry.list_parsers()
    if json_output:
        click.echo(json.dumps(parsers, indent=2))
    else:
        for p in parsers:
            click.echo(f"- {p['name']}: {p['label']}")
            click.echo(f"  {p['description']}")
            click.echo(f"  Contents: {', '.join(p['accepted_contents'])}")
            click.echo(f"  Priority: {p['detection_priority']}")
            click.echo("")


@main.command("detect")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--password", "-p", help="Password for encrypted PDF files")
def detect_command(file_path: Path, password: Optional[str]) -> None:
    """Show which format a file follows."""
    descriptor = detect_format(file_path, password=password)
    if descriptor is None:
        click.echo(f"{file_path.name}: not recognized", err=True)
        sys.exit(1)
    click.echo(f"{file_path.name}: {descriptor.name} ({descriptor.label})")


def _build_format(
    format_name: Optional[str],
    charset: Optional[str],
    date_format: Optional[str],
    field_sep: Optional[str],
    string_delim: Optional[str],
    decimal_sep: Optional[str],
    thousand_sep: Optional[str],
    headers: Optional[int],
) -> Optional[StreamFormat]:
    """Build a user dialect from the override options, if any was given."""
    changes: dict = {}
    if charset is not None:
        changes["charset"] = charset
    if date_format is not None:
        changes["date_format"] = date_format
    if field_sep is not None:
        changes["field_sep"] = _separator(field_sep)
    if string_delim is not None:
        changes["string_delim"] = _separator(string_delim)
    if decimal_sep is not None:
        changes["decimal_sep"] = decimal_sep
    if thousand_sep is not None:
        changes["thousand_sep"] = _separator(thousand_sep)
    if headers is not None:
        changes["headers_count"] = headers
    if not changes:
        return None
    base_name = format_name or "bank_csv"
    base = ParserRegistry.get(base_name).default_format()
    return base.replace(name="user", updatable=True, **changes)


@main.command("parse")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--format", "format_name", type=click.Choice(ParserRegistry.names()), help="Skip detection and use this format")
@click.option("--charset", help="Charset of the file (e.g. utf-8, iso-8859-15)")
@click.option("--date-format", help="strptime pattern of dates (e.g. %d/%m/%Y)")
@click.option("--field-sep", help="Field separator ('tab' for a tabulation)")
@click.option("--string-delim", help="String delimiter ('none' to disable)")
@click.option("--decimal-sep", help="Decimal separator")
@click.option("--thousand-sep", help="Thousands separator ('space', 'none')")
@click.option("--headers", type=int, help="Count of header lines to skip")
@click.option("--stop-on-error/--keep-going", default=None, help="Stop at the first row error, or count errors and go on")
@click.option("--tolerance", type=float, help="Same-row tolerance for PDF layouts")
@click.option("--password", "-p", help="Password for encrypted PDF files")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def parse_command(
    file_path: Path,
    format_name: Optional[str],
    charset: Optional[str],
    date_format: Optional[str],
    field_sep: Optional[str],
    string_delim: Optional[str],
    decimal_sep: Optional[str],
    thousand_sep: Optional[str],
    headers: Optional[int],
    stop_on_error: Optional[bool],
    tolerance: Optional[float],
    password: Optional[str],
    json_output: bool,
) -> None:
    """Parse a statement file and print its canonical records.

    Examples:
        batimport parse releve.pdf
        batimport parse export.csv --field-sep ';' --headers 1
    """
    stream_format = _build_format(
        format_name, charset, date_format, field_sep, string_delim, decimal_sep, thousand_sep, headers
    )
    sink = CollectingSink()
    result = import_file(
        file_path,
        stream_format=stream_format,
        sink=sink,
        stop_on_error=stop_on_error,
        tolerance=tolerance,
        password=password,
        format_name=format_name,
    )

    if json_output:
        payload = {
            "source": result.source_uri,
            "format": result.format_name,
            "label": result.format_label,
            "success": result.success,
            "error_count": result.error_count,
            "errors": result.errors,
            "warnings": result.warnings,
            "records": [rec.to_dict() for rec in result.records],
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for row in result.rows():
            click.echo("\t".join(row))
        for text in sink.by_severity(Severity.ERROR):
            click.echo(f"  - {text}", err=True)
        for text in sink.warnings:
            click.echo(f"  ! {text}", err=True)
        if result.fatal is None:
            click.echo(
                f"{result.record_count} detail record(s) with {result.format_label}, "
                f"{result.error_count} error(s)",
                err=True,
            )

    if result.fatal is not None:
        sys.exit(1)
