"""Deterministic format detection and the top-level import call."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

import pikepdf

from batimport.core.config import settings
from batimport.core.models import CanonicalRecord, Severity
from batimport.ingestion.base import ImportResult, ImportSource, ParseContext
from batimport.ingestion.diagnostics import LoggingSink, ProgressSink
from batimport.ingestion.errors import BatImportError, DocumentOpenError, FormatNotRecognizedError
from batimport.ingestion.registry import FormatDescriptor, ParserRegistry
from batimport.ingestion.stream_format import StreamFormat

# Import parsers to ensure registration
import batimport.ingestion.parsers  # noqa: F401


logger = logging.getLogger(__name__)


def _resolve_password(explicit_password: str | None) -> str | None:
    """Resolve the PDF password from an explicit value or the settings."""
    return explicit_password or settings.PDF_PASSWORD


def _validate_pdf_access(source: ImportSource, password: str | None) -> tuple[bool, str | None]:
    """Return whether the PDF can be opened with the provided password."""
    if not source.is_pdf:
        return True, None
    try:
        with pikepdf.open(io.BytesIO(source.data)):
            return True, None
    except pikepdf.PasswordError:
        if not password:
            return False, "Encrypted PDF requires password"
        try:
            with pikepdf.open(io.BytesIO(source.data), password=password):
                return True, None
        except pikepdf.PasswordError:
            return False, "Unable to decrypt PDF with provided password"
    except pikepdf.PdfError as exc:
        return False, f"Unable to open PDF: {exc}"


def _as_source(file: ImportSource | Path | str) -> ImportSource:
    if isinstance(file, ImportSource):
        return file
    return ImportSource.from_path(file)


def probe_format(
    descriptor: FormatDescriptor,
    stream_format: StreamFormat | None = None,
) -> StreamFormat:
    """Dialect used to probe and parse with a descriptor.

    The vendor default is used unless the vendor accepts overrides and one
    was given.
    """
    if stream_format is not None and descriptor.parser_cls.format_updatable():
        return stream_format
    return descriptor.parser_cls.default_format()


def detect_format(
    file: ImportSource | Path | str,
    stream_format: Optional[StreamFormat] = None,
    password: Optional[str] = None,
) -> Optional[FormatDescriptor]:
    """Detect the format by ordered first-match over parser-owned probes."""
    source = _as_source(file)
    password = _resolve_password(password)

    # PDF gate: wrong/missing password rejects before parser probing.
    can_open_pdf, pdf_error = _validate_pdf_access(source, password)
    if not can_open_pdf:
        logger.info("%s: %s", source.uri, pdf_error)
        return None

    for descriptor in ParserRegistry.descriptors():
        if not descriptor.accepts(source.content_type):
            continue
        fmt = probe_format(descriptor, stream_format)
        result = descriptor.create().probe(source, fmt, password=password)
        logger.debug("%s: probe %s (%s)", descriptor.name, result.matched, result.reason)
        if result.matched:
            return descriptor
    return None


def import_file(
    file: ImportSource | Path | str,
    stream_format: Optional[StreamFormat] = None,
    sink: Optional[ProgressSink] = None,
    stop_on_error: Optional[bool] = None,
    tolerance: Optional[float] = None,
    password: Optional[str] = None,
    format_name: Optional[str] = None,
    max_row_gap: Optional[float] = None,
) -> ImportResult:
    """Detect the format of one file and translate it into canonical records.

    Fatal errors never propagate: they produce a result without any record,
    ``fatal`` holding the message. Row errors are counted and the records
    parsed successfully are returned along with them.
    """
    sink = sink or LoggingSink()
    password = _resolve_password(password)

    try:
        source = _as_source(file)
    except OSError as exc:
        message = f"unable to read '{file}': {exc}"
        sink.message(Severity.ERROR, message)
        return ImportResult(records=[], source_uri=str(file), error_count=1, errors=[message], fatal=message)

    descriptor: Optional[FormatDescriptor] = None
    can_open_pdf, pdf_error = _validate_pdf_access(source, password)
    if not can_open_pdf:
        error: BatImportError = DocumentOpenError(pdf_error)
    elif format_name is not None:
        try:
            descriptor = ParserRegistry.descriptor(format_name)
        except KeyError:
            error = BatImportError(f"unknown format '{format_name}'")
    else:
        descriptor = detect_format(source, stream_format, password=password)
        error = FormatNotRecognizedError(source.uri)

    if descriptor is None:
        message = str(error)
        sink.message(Severity.ERROR, message)
        return ImportResult(records=[], source_uri=source.uri, error_count=1, errors=[message], fatal=message)

    ctx = ParseContext(
        source=source,
        format=probe_format(descriptor, stream_format),
        sink=sink,
        stop_on_error=settings.STOP_ON_ERROR if stop_on_error is None else stop_on_error,
        tolerance=settings.ROW_TOLERANCE if tolerance is None else tolerance,
        max_row_gap=settings.MAX_ROW_GAP if max_row_gap is None else max_row_gap,
        password=password,
    )
    result = ImportResult(
        records=[],
        source_uri=source.uri,
        format_name=descriptor.name,
        format_label=descriptor.label,
        metadata={"format": ctx.format.to_dict()},
    )
    if stream_format is not None and ctx.format is not stream_format:
        ctx.warning(
            f"format '{stream_format.name}' ignored: {descriptor.name} only reads "
            f"its own dialect '{ctx.format.name}'"
        )

    try:
        records: list[CanonicalRecord] = descriptor.create().parse(source, ctx)
    except BatImportError as exc:
        message = str(exc)
        if message not in ctx.errors:
            ctx.sink.message(Severity.ERROR, message)
        result.fatal = message
        result.error_count = max(ctx.error_count, 1)
        result.errors = ctx.errors or [message]
        result.warnings = ctx.warnings
        return result

    result.records = records
    result.error_count = ctx.error_count
    result.errors = ctx.errors
    result.warnings = ctx.warnings
    ctx.info(
        f"{source.uri}: {result.record_count} detail record(s) parsed "
        f"with {descriptor.label}, {ctx.error_count} error(s)"
    )
    return result
