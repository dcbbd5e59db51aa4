"""Ingestion module for bank statement files."""

from .base import BaseParser, ImportResult, ImportSource, ParseContext, ParserProbeResult
from .diagnostics import CollectingSink, LoggingSink, ProgressSink
from .errors import (
    BatImportError,
    CharsetError,
    DocumentOpenError,
    EmptyContentError,
    FormatNotRecognizedError,
    HeaderCountError,
    MissingAnchorError,
)
from .registry import FormatDescriptor, ParserRegistry
from .stream_format import StreamFormat
from .auto_detect import detect_format, import_file
from .parsers import (
    BankCsvParser,
    BoursoExcel2002Parser,
    BoursoExcel95Parser,
    BoursoPdfParser,
    LclPdfParser,
    LclTxtParser,
)

__all__ = [
    "BaseParser",
    "ImportResult",
    "ImportSource",
    "ParseContext",
    "ParserProbeResult",
    "CollectingSink",
    "LoggingSink",
    "ProgressSink",
    "BatImportError",
    "CharsetError",
    "DocumentOpenError",
    "EmptyContentError",
    "FormatNotRecognizedError",
    "HeaderCountError",
    "MissingAnchorError",
    "FormatDescriptor",
    "ParserRegistry",
    "StreamFormat",
    "detect_format",
    "import_file",
    "BankCsvParser",
    "BoursoExcel2002Parser",
    "BoursoExcel95Parser",
    "BoursoPdfParser",
    "LclPdfParser",
    "LclTxtParser",
]
