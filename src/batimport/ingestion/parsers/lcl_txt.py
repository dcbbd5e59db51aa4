"""LCL tabulated text export.

There is no header line: each line is a transaction, except the last one
which carries the ending date, the ending solde and the account id.
"""

from __future__ import annotations

import logging
from typing import Optional

from batimport.core.models import CanonicalRecord, detail_record, header_record
from batimport.ingestion.bank_profiles import lcl
from batimport.ingestion.base import ImportSource, ParseContext, TextStatementParser
from batimport.ingestion.errors import MissingAnchorError
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat
from batimport.ingestion.text_utils import apply_headers_count, split_fields


logger = logging.getLogger(__name__)


def _field(fields: list[str], index: int) -> str:
    return fields[index] if index < len(fields) else ""


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


@ParserRegistry.register("lcl_txt")
class LclTxtParser(TextStatementParser):
    """Parser for the LCL tabulated text export."""

    label = lcl.TXT_LABEL
    description = "LCL tabulated text export"
    bank_id = lcl.BANK_ID
    detection_priority = 55

    @classmethod
    def default_format(cls) -> StreamFormat:
        return lcl.TXT_FORMAT

    @staticmethod
    def _fields(line: str, fmt: StreamFormat) -> list[str]:
        return [value.strip() for value in split_fields(line, fmt)]

    def can_parse(self, source: ImportSource, fmt: StreamFormat, password: Optional[str] = None) -> bool:
        lines = self.read_lines(source, fmt, limit=1)
        if not lines or fmt.field_sep is None:
            return False
        fields = self._fields(lines[0], fmt)
        if fmt.parse_date(_field(fields, 0)) is None:
            logger.debug("unable to parse the date: '%s'", _field(fields, 0))
            return False
        amount = fmt.parse_amount(_field(fields, 1))
        if not amount:
            logger.debug("unable to parse the amount: '%s'", _field(fields, 1))
            return False
        return True

    def parse(self, source: ImportSource, ctx: ParseContext) -> list[CanonicalRecord]:
        fmt = ctx.format
        lines = apply_headers_count(self.read_lines(source, fmt), fmt.headers_count, source.uri)
        if not lines:
            raise MissingAnchorError([("solde", "ending solde line not found")])

        header = self._parse_solde(source, self._fields(lines[-1], fmt), ctx)
        records = [header]

        body = lines[:-1]
        ctx.sink.start(len(body))
        for number, line in enumerate(body, 1):
            ctx.sink.progress(number, len(body))
            record = self._parse_detail(number, self._fields(line, fmt), ctx)
            if record is not None:
                records.append(record)
            elif ctx.must_stop:
                break
        return records

    def _parse_solde(self, source: ImportSource, fields: list[str], ctx: ParseContext) -> CanonicalRecord:
        """The last line: ending date, ending solde, two unused fields, then the account."""
        fmt = ctx.format
        end_date = fmt.normalize_date(_field(fields, 0))
        end_solde = fmt.normalize_amount(_field(fields, 1))
        problems = []
        if not end_date:
            problems.append(("end_date", f"invalid ending date '{_field(fields, 0)}'"))
        if not end_solde:
            problems.append(("end_solde", f"invalid ending solde '{_field(fields, 1)}'"))
        if problems:
            for _, message in problems:
                ctx.error(message)
            raise MissingAnchorError(problems)

        return header_record(
            bank_id=self.bank_id,
            source_uri=source.uri,
            format_label=self.label,
            account=_field(fields, 4),
            end_date=end_date,
            end_solde=end_solde,
        )

    def _parse_detail(self, number: int, fields: list[str], ctx: ParseContext) -> Optional[CanonicalRecord]:
        fmt = ctx.format
        value_date = fmt.normalize_date(_field(fields, 0))
        amount = fmt.normalize_amount(_field(fields, 1))
        if not value_date or not amount:
            ctx.error(
                f"[{number}] invalid line: value={_field(fields, 0)}, amount={_field(fields, 1)}"
            )
            return None

        reference = _join(lcl.payment_reference(_field(fields, 2)), _field(fields, 3))
        label = _join(_field(fields, 4), _field(fields, 5))
        return detail_record(
            value_date=value_date,
            reference=reference,
            label=label,
            amount=amount,
        )
