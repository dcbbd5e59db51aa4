"""Base classes for statement parsers."""

from __future__ import annotations

import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from batimport.core.config import settings
from batimport.core.models import CanonicalRecord, Severity
from batimport.ingestion.diagnostics import LoggingSink, ProgressSink
from batimport.ingestion.stream_format import StreamFormat
from batimport.ingestion.text_utils import decode_content, split_lines


PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

mimetypes.add_type("application/vnd.ms-excel", ".xls")
mimetypes.add_type("text/csv", ".csv")


def guess_content_type(name: str, data: bytes = b"") -> str:
    """Guess the content type from the file name, then from magic bytes."""
    if data.startswith(b"%PDF"):
        return PDF_CONTENT_TYPE
    content_type, _ = mimetypes.guess_type(name)
    if content_type:
        return content_type
    return "text/plain" if data else DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class ImportSource:
    """A candidate file: its identifier, raw bytes and content type."""

    uri: str
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def from_path(cls, path: Path | str) -> "ImportSource":
        path = Path(path)
        data = path.read_bytes()
        return cls(uri=str(path), data=data, content_type=guess_content_type(path.name, data))

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        uri: str = "<memory>",
        content_type: Optional[str] = None,
    ) -> "ImportSource":
        return cls(uri=uri, data=data, content_type=content_type or guess_content_type(uri, data))

    @property
    def is_pdf(self) -> bool:
        return self.content_type == PDF_CONTENT_TYPE


@dataclass
class ParseContext:
    """Per-attempt state, created at the start of one import and discarded after."""

    source: ImportSource
    format: StreamFormat
    sink: ProgressSink = field(default_factory=LoggingSink)
    stop_on_error: bool = False
    tolerance: float = settings.ROW_TOLERANCE
    max_row_gap: float = settings.MAX_ROW_GAP
    password: Optional[str] = None
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def error(self, text: str) -> None:
        """Record a recoverable row-level error."""
        self.error_count += 1
        self.errors.append(text)
        self.sink.message(Severity.ERROR, text)

    def warning(self, text: str) -> None:
        self.warnings.append(text)
        self.sink.message(Severity.WARNING, text)

    def info(self, text: str) -> None:
        self.sink.message(Severity.STANDARD, text)

    @property
    def must_stop(self) -> bool:
        """Whether remaining rows must be abandoned after an error."""
        return self.stop_on_error and self.error_count > 0


@dataclass
class ImportResult:
    """Result of importing one file."""

    records: list[CanonicalRecord]
    source_uri: str
    format_name: Optional[str] = None
    format_label: Optional[str] = None
    error_count: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    fatal: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.fatal is None and self.error_count == 0

    @property
    def header(self) -> Optional[CanonicalRecord]:
        return next((rec for rec in self.records if rec.is_header), None)

    @property
    def details(self) -> list[CanonicalRecord]:
        return [rec for rec in self.records if not rec.is_header]

    @property
    def record_count(self) -> int:
        return len(self.details)

    def rows(self) -> list[list[str]]:
        return [rec.as_row() for rec in self.records]


@dataclass
class ParserProbeResult:
    """Result of lightweight parser relevance probing."""

    matched: bool
    reason: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


class BaseParser(ABC):
    """Abstract base class for all statement parsers.

    A parser is the extraction half of a format descriptor; its ``probe`` is
    the detection half. Parsers are stateless: everything produced during one
    attempt lives on the ``ParseContext``.
    """

    # Set by ParserRegistry.register
    name: str = "base"

    # Descriptive metadata
    label: str = "Base parser"
    description: str = "Base parser"
    bank_id: str = ""
    format: str = "unknown"                    # pdf, txt, csv
    version: int = 1

    # Detection metadata
    accepted_contents: tuple[str, ...] = ()
    detection_priority: int = 50               # Priority 0-100 (higher = checked first)

    @classmethod
    @abstractmethod
    def default_format(cls) -> StreamFormat:
        """Dialect proposed by this vendor."""

    @classmethod
    def format_updatable(cls) -> bool:
        """Whether a user-supplied dialect replaces the vendor default."""
        return cls.default_format().updatable

    @abstractmethod
    def can_parse(
        self,
        source: ImportSource,
        fmt: StreamFormat,
        password: Optional[str] = None,
    ) -> bool:
        """Cheap check that the source follows this format.

        Must only read what is needed to decide, and must not mutate any
        shared state.
        """

    @abstractmethod
    def parse(self, source: ImportSource, ctx: ParseContext) -> list[CanonicalRecord]:
        """Translate the source into canonical records.

        Raises:
            BatImportError on fatal conditions. Row-level problems are
            reported through ``ctx.error`` instead.
        """

    def probe(
        self,
        source: ImportSource,
        fmt: StreamFormat,
        password: Optional[str] = None,
    ) -> ParserProbeResult:
        """Uniform detection interface used by auto-detect."""
        try:
            matched = self.can_parse(source, fmt, password=password)
            return ParserProbeResult(matched=matched, reason="can_parse")
        except Exception as exc:  # noqa: BLE001
            return ParserProbeResult(matched=False, reason=f"probe_error:{exc}")

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": cls.name,
            "label": cls.label,
            "description": cls.description,
            "bank_id": cls.bank_id,
            "format": cls.format,
            "version": cls.version,
            "accepted_contents": list(cls.accepted_contents),
            "detection_priority": cls.detection_priority,
            "default_format": cls.default_format().to_dict(),
        }


class TextStatementParser(BaseParser):
    """Shared plumbing for tabulated or delimited text exports."""

    format = "txt"
    accepted_contents = ("text/plain", "text/csv", "application/vnd.ms-excel")

    @staticmethod
    def read_lines(
        source: ImportSource,
        fmt: StreamFormat,
        keep_blank: bool = False,
        limit: Optional[int] = None,
    ) -> list[str]:
        """Decode the buffer with the dialect charset and split it into lines.

        Probes pass ``limit`` to split only the leading lines they inspect.
        """
        return split_lines(decode_content(source.data, fmt.charset), keep_blank=keep_blank, limit=limit)
