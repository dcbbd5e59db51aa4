"""Boursorama tabulated text exports (the ".xls" download).

As of 2014-06-01 the export reads, fields being tab-separated::

    "*** Période : 01/01/2014 - 01/06/2014"
    "*** Compte : 40618-80264-00040200033    -EUR "

    "DATE OPERATION"  "DATE VALEUR"  "LIBELLE"  "MONTANT"  "DEVISE"
    " 02/01/2014"  " 02/01/2014"  "*PRLV Cotisat. Boursorama Protection 0  "  -00000000001,50  "EUR "
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from batimport.core.models import CanonicalRecord, detail_record, header_record
from batimport.ingestion.bank_profiles import bourso
from batimport.ingestion.base import ImportSource, ParseContext, TextStatementParser
from batimport.ingestion.errors import MissingAnchorError
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat
from batimport.ingestion.text_utils import split_fields


logger = logging.getLogger(__name__)

DETAIL_FIELD_COUNT = 5
HEADER_LINE_COUNT = 4


@dataclass
class BoursoTxtHeader:
    begin_date: str
    end_date: str
    account: str
    currency: str


class _BoursoTxtParser(TextStatementParser):
    """Header state machine shared by both export variants.

    Expected lines, in strict order: the period line, the account line, one
    blank line and the column titles line.
    """

    bank_id = bourso.BANK_ID
    quoted_titles: bool = True

    @classmethod
    def default_format(cls) -> StreamFormat:
        return bourso.TXT_FORMAT

    @staticmethod
    def _parse_period_line(line: str, fmt: StreamFormat) -> Optional[tuple[str, str]]:
        if not line.startswith('"' + bourso.TXT_PERIOD_PREFIX):
            logger.debug("no '%s' prefix", bourso.TXT_PERIOD_PREFIX)
            return None
        found = line.find(bourso.TXT_PERIOD_MARKER)
        if found < 0:
            logger.debug("no '%s' marker", bourso.TXT_PERIOD_MARKER)
            return None
        begin = line[found + 8:found + 18].strip()
        end = line[found + 21:found + 31].strip()
        if fmt.parse_date(begin) is None or fmt.parse_date(end) is None:
            logger.debug("period dates not recognized: '%s' '%s'", begin, end)
            return None
        return begin, end

    @staticmethod
    def _parse_account_line(line: str) -> Optional[tuple[str, str]]:
        if not line.startswith('"' + bourso.TXT_ACCOUNT_PREFIX):
            logger.debug("no '%s' prefix", bourso.TXT_ACCOUNT_PREFIX)
            return None
        found = line.find(" -", 38)
        if found < 0:
            logger.debug("currency dash not found")
            return None
        return line[14:38].strip(), line[found + 2:found + 5].strip()

    @classmethod
    def _is_titles_line(cls, line: str) -> bool:
        titles = [value.strip() for value in line.split("\t")]
        if cls.quoted_titles:
            expected = [f'"{title}"' for title in bourso.TXT_COLUMNS]
        else:
            expected = list(bourso.TXT_COLUMNS)
        return [t.upper() for t in titles] == expected

    @classmethod
    def parse_header_lines(cls, lines: list[str], fmt: StreamFormat) -> Optional[BoursoTxtHeader]:
        """Run the header state machine over the first four lines."""
        if len(lines) < HEADER_LINE_COUNT:
            return None
        period = cls._parse_period_line(lines[0], fmt)
        if period is None:
            return None
        account = cls._parse_account_line(lines[1])
        if account is None:
            return None
        if lines[2].strip():
            logger.debug("third line is not empty: '%s'", lines[2])
            return None
        if not cls._is_titles_line(lines[3]):
            logger.debug("fourth line not recognized: '%s'", lines[3])
            return None
        return BoursoTxtHeader(period[0], period[1], account[0], account[1])

    def can_parse(self, source: ImportSource, fmt: StreamFormat, password: Optional[str] = None) -> bool:
        lines = self.read_lines(source, fmt, keep_blank=True, limit=HEADER_LINE_COUNT)
        return self.parse_header_lines(lines, fmt) is not None

    def parse(self, source: ImportSource, ctx: ParseContext) -> list[CanonicalRecord]:
        fmt = ctx.format
        lines = self.read_lines(source, fmt, keep_blank=True)
        header = self.parse_header_lines(lines, fmt)
        if header is None:
            ctx.error("statement header not recognized")
            raise MissingAnchorError([("header", "statement header not recognized")])

        records = [
            header_record(
                bank_id=self.bank_id,
                source_uri=source.uri,
                format_label=self.label,
                account=header.account,
                currency=header.currency,
                begin_date=fmt.normalize_date(header.begin_date) or "",
                end_date=fmt.normalize_date(header.end_date) or "",
            )
        ]

        body = lines[HEADER_LINE_COUNT:]
        ctx.sink.start(len(body))
        for number, line in enumerate(body, 1):
            ctx.sink.progress(number, len(body))
            if not line.strip():
                continue
            record = self._parse_detail(number, line, ctx)
            if record is not None:
                records.append(record)
            elif ctx.must_stop:
                break
        return records

    def _parse_detail(self, number: int, line: str, ctx: ParseContext) -> Optional[CanonicalRecord]:
        fmt = ctx.format
        fields = [value.strip() for value in split_fields(line, fmt)]
        if len(fields) != DETAIL_FIELD_COUNT:
            ctx.error(f"[{number}] expected {DETAIL_FIELD_COUNT} fields, found {len(fields)}: '{line}'")
            return None

        operation, value, label, amount, currency = fields
        operation_date = fmt.normalize_date(operation)
        value_date = fmt.normalize_date(value)
        norm_amount = fmt.normalize_amount(amount)
        if not operation_date or value_date is None or not norm_amount:
            ctx.error(
                f"[{number}] invalid line: operation={operation}, label={label}, "
                f"value={value}, amount={amount}"
            )
            return None

        return detail_record(
            operation_date=operation_date,
            value_date=value_date,
            label=label,
            amount=norm_amount,
            currency=currency,
        )


@ParserRegistry.register("bourso_txt_excel2002")
class BoursoExcel2002Parser(_BoursoTxtParser):
    label = bourso.TXT_EXCEL2002_LABEL
    description = "Boursorama tabulated text export, Excel 2002 flavour"
    detection_priority = 62
    quoted_titles = True


@ParserRegistry.register("bourso_txt_excel95")
class BoursoExcel95Parser(_BoursoTxtParser):
    label = bourso.TXT_EXCEL95_LABEL
    description = "Boursorama tabulated text export, Excel 95 flavour"
    detection_priority = 61
    quoted_titles = False
