"""Generic delimited bank statement in canonical column order."""

from __future__ import annotations

import logging
from typing import Optional

from batimport.core.models import DETAIL_FIELDS, CanonicalRecord, detail_record, header_record
from batimport.ingestion.base import ImportSource, ParseContext, TextStatementParser
from batimport.ingestion.errors import BatImportError, HeaderCountError
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat
from batimport.ingestion.text_utils import apply_headers_count, split_fields


logger = logging.getLogger(__name__)

# Positional columns of the statement row
STATEMENT_COLUMNS = (
    "bank_id",
    "account",
    "currency",
    "begin_date",
    "begin_solde",
    "end_date",
    "end_solde",
)


def _pad(fields: list[str], size: int) -> list[str]:
    return fields + [""] * (size - len(fields))


@ParserRegistry.register("bank_csv")
class BankCsvParser(TextStatementParser):
    """Delimited file already laid out in canonical order.

    Once the declared header rows are skipped, the first row describes the
    statement and every following row is a transaction. Values are passed
    through untouched: the consumer reads them with the same dialect.
    """

    label = "Canonical delimited text"
    description = "Generic delimited statement, canonical column order"
    bank_id = ""
    format = "csv"
    accepted_contents = ("text/csv", "text/plain")
    detection_priority = 10

    @classmethod
    def default_format(cls) -> StreamFormat:
        return StreamFormat(
            name="Canonical CSV",
            charset="utf-8",
            date_format="%d/%m/%Y",
            decimal_sep=",",
            field_sep=";",
            headers_count=0,
            updatable=True,
        )

    def can_parse(self, source: ImportSource, fmt: StreamFormat, password: Optional[str] = None) -> bool:
        if not fmt.field_sep:
            return False
        try:
            lines = self.read_lines(source, fmt, limit=fmt.headers_count + 1)
        except BatImportError:
            return False
        if len(lines) <= fmt.headers_count:
            return False
        return fmt.field_sep in lines[fmt.headers_count]

    def parse(self, source: ImportSource, ctx: ParseContext) -> list[CanonicalRecord]:
        fmt = ctx.format
        lines = self.read_lines(source, fmt)
        rows = apply_headers_count(lines, fmt.headers_count, source.uri)
        if not rows:
            raise HeaderCountError(fmt.headers_count, len(lines), source.uri)

        statement = dict(zip(STATEMENT_COLUMNS, _pad(split_fields(rows[0], fmt), len(STATEMENT_COLUMNS))))
        records = [
            header_record(
                bank_id=statement["bank_id"],
                source_uri=source.uri,
                format_label=self.label,
                account=statement["account"],
                currency=statement["currency"],
                begin_date=statement["begin_date"],
                begin_solde=statement["begin_solde"] or None,
                end_date=statement["end_date"],
                end_solde=statement["end_solde"] or None,
            )
        ]

        body = rows[1:]
        ctx.sink.start(len(body))
        for number, line in enumerate(body, 1):
            ctx.sink.progress(number, len(body))
            fields = split_fields(line, fmt)
            if len(fields) > len(DETAIL_FIELDS):
                ctx.error(f"[{number}] expected at most {len(DETAIL_FIELDS)} fields, found {len(fields)}")
                if ctx.must_stop:
                    break
                continue
            records.append(detail_record(**dict(zip(DETAIL_FIELDS, _pad(fields, len(DETAIL_FIELDS))))))
        return records
