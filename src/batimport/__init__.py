"""Bank statement import engine."""

from batimport.core.models import CanonicalRecord, RecordKind, Severity
from batimport.ingestion import (
    ImportResult,
    ImportSource,
    StreamFormat,
    detect_format,
    import_file,
)

__version__ = "0.1.0"

__all__ = [
    "CanonicalRecord",
    "RecordKind",
    "Severity",
    "ImportResult",
    "ImportSource",
    "StreamFormat",
    "detect_format",
    "import_file",
]
