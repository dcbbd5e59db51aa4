"""Boursorama PDF account statement."""

from __future__ import annotations

from batimport.ingestion.bank_profiles import bourso
from batimport.ingestion.pdf_statement import PdfStatementParser
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat


@ParserRegistry.register("bourso_pdf")
class BoursoPdfParser(PdfStatementParser):
    """Parser for Boursorama PDF statements.

    Header values come from the first page, except the ending solde which
    sits on the last page next to "Nouveau solde en". The transaction table
    starts under "SOLDE AU : " on the first page and under the "Crédit"
    column title on the following ones.
    """

    profile = bourso.PDF_PROFILE
    label = bourso.PDF_LABEL
    description = "Boursorama PDF account statement"
    bank_id = bourso.BANK_ID
    detection_priority = 70

    @classmethod
    def default_format(cls) -> StreamFormat:
        return bourso.PDF_FORMAT
