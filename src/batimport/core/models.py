"""Canonical record model shared by every statement format."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RecordKind(str, Enum):
    """Leading discriminator of a canonical row."""

    HEADER = "1"
    DETAIL = "2"


class Severity(str, Enum):
    """Severity of a diagnostics message."""

    STANDARD = "standard"
    WARNING = "warning"
    ERROR = "error"


HEADER_FIELDS = (
    "bank_id",
    "source_uri",
    "format_label",
    "account",
    "currency",
    "begin_date",
    "begin_solde",
    "begin_solde_set",
    "end_date",
    "end_solde",
    "end_solde_set",
)

DETAIL_FIELDS = (
    "operation_date",
    "value_date",
    "reference",
    "label",
    "amount",
    "currency",
)

FIELDS_BY_KIND = {
    RecordKind.HEADER: HEADER_FIELDS,
    RecordKind.DETAIL: DETAIL_FIELDS,
}


@dataclass(frozen=True)
class CanonicalRecord:
    """One format-independent row handed to the bookkeeping consumer."""

    kind: RecordKind
    fields: tuple[str, ...]

    def __post_init__(self) -> None:
        expected = len(FIELDS_BY_KIND[self.kind])
        if len(self.fields) != expected:
            raise ValueError(
                f"{self.kind.name.lower()} record expects {expected} fields, got {len(self.fields)}"
            )

    @property
    def is_header(self) -> bool:
        return self.kind is RecordKind.HEADER

    def get(self, name: str) -> str:
        """Return a field by its canonical name."""
        return self.fields[FIELDS_BY_KIND[self.kind].index(name)]

    def as_row(self) -> list[str]:
        return [self.kind.value, *self.fields]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        names = FIELDS_BY_KIND[self.kind]
        return {"kind": self.kind.name.lower(), **dict(zip(names, self.fields))}


def _flag(value: Optional[str]) -> str:
    return "Y" if value else "N"


def header_record(
    *,
    bank_id: str,
    source_uri: str,
    format_label: str,
    account: str = "",
    currency: str = "",
    begin_date: str = "",
    begin_solde: Optional[str] = None,
    end_date: str = "",
    end_solde: Optional[str] = None,
) -> CanonicalRecord:
    """Build the statement header row.

    A solde is flagged as set ("Y") whenever a value was extracted for it,
    otherwise it is emitted empty and flagged "N".
    """
    return CanonicalRecord(
        RecordKind.HEADER,
        (
            bank_id,
            source_uri,
            format_label,
            account,
            currency,
            begin_date,
            begin_solde or "",
            _flag(begin_solde),
            end_date,
            end_solde or "",
            _flag(end_solde),
        ),
    )


def detail_record(
    *,
    operation_date: str = "",
    value_date: str = "",
    reference: str = "",
    label: str = "",
    amount: str = "",
    currency: str = "",
) -> CanonicalRecord:
    return CanonicalRecord(
        RecordKind.DETAIL,
        (operation_date, value_date, reference, label, amount, currency),
    )
