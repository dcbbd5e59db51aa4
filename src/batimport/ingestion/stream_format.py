"""Dialect description of one import attempt."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace as dc_replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser


_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class StreamFormat:
    """Charset, date pattern and separators expected in an input file.

    ``date_format`` is a ``strptime`` pattern; when it is ``None`` dates are
    read day-first by dateutil. ``field_sep`` is ``None`` for documents that
    are not delimited text (PDF statements).
    """

    name: str = "default"
    charset: str = "utf-8"
    date_format: Optional[str] = "%d/%m/%Y"
    decimal_sep: str = ","
    thousand_sep: Optional[str] = None
    field_sep: Optional[str] = ";"
    string_delim: Optional[str] = None
    headers_count: int = 0
    updatable: bool = False

    def __post_init__(self) -> None:
        if self.headers_count < 0:
            raise ValueError("headers_count must be positive or zero")
        if self.field_sep is not None and len(self.field_sep) != 1:
            raise ValueError("field separator must be a single character")
        if self.string_delim is not None and len(self.string_delim) != 1:
            raise ValueError("string delimiter must be a single character")

    def replace(self, **changes) -> "StreamFormat":
        """Return a copy with some attributes overridden."""
        return dc_replace(self, **changes)

    # ---- dates ----

    def parse_date(self, text: str | None) -> Optional[date]:
        """Parse a date written in this dialect, ``None`` when invalid."""
        value = (text or "").strip()
        if not value:
            return None
        if self.date_format:
            try:
                return datetime.strptime(value, self.date_format).date()
            except ValueError:
                return None
        try:
            return date_parser.parse(value, dayfirst=True).date()
        except (ValueError, OverflowError):
            return None

    def normalize_date(self, text: str | None) -> Optional[str]:
        """Return the ISO form of a date, ``""`` for empty input, ``None`` when invalid."""
        if not (text or "").strip():
            return ""
        parsed = self.parse_date(text)
        return parsed.isoformat() if parsed else None

    # ---- amounts ----

    def parse_amount(self, text: str | None) -> Optional[Decimal]:
        """Parse an amount written with this dialect's separators."""
        value = (text or "").strip()
        if not value:
            return None
        if self.thousand_sep and not self.thousand_sep.isspace():
            value = value.replace(self.thousand_sep, "")
        value = _WHITESPACE_RE.sub("", value)
        if self.decimal_sep and self.decimal_sep != ".":
            value = value.replace(self.decimal_sep, ".")
        if value.startswith("--"):
            # debit columns may already carry a sign
            value = value[2:]
        try:
            amount = Decimal(value)
        except InvalidOperation:
            return None
        if not amount.is_finite():
            return None
        return amount

    def normalize_amount(self, text: str | None) -> Optional[str]:
        """Return a plain decimal string, ``""`` for empty input, ``None`` when invalid."""
        if not (text or "").strip():
            return ""
        amount = self.parse_amount(text)
        return None if amount is None else str(amount)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "charset": self.charset,
            "date_format": self.date_format,
            "decimal_sep": self.decimal_sep,
            "thousand_sep": self.thousand_sep,
            "field_sep": self.field_sep,
            "string_delim": self.string_delim,
            "headers_count": self.headers_count,
            "updatable": self.updatable,
        }
