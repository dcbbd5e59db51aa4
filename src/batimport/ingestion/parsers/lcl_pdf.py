"""LCL PDF account statement."""

from __future__ import annotations

from batimport.ingestion.bank_profiles import lcl
from batimport.ingestion.pdf_statement import PdfStatementParser
from batimport.ingestion.registry import ParserRegistry
from batimport.ingestion.stream_format import StreamFormat


@ParserRegistry.register("lcl_pdf")
class LclPdfParser(PdfStatementParser):
    """Parser for LCL PDF statements.

    Header values may be spread over any page, so every page is scanned.
    Intermediate solde rows are discarded before merging.
    """

    profile = lcl.PDF_PROFILE
    label = lcl.PDF_LABEL
    description = "LCL PDF account statement"
    bank_id = lcl.BANK_ID
    detection_priority = 70

    @classmethod
    def default_format(cls) -> StreamFormat:
        return lcl.PDF_FORMAT
