"""Tests for the Boursorama PDF statement parser."""

from batimport.ingestion.auto_detect import detect_format, import_file
from batimport.ingestion.bank_profiles import bourso
from batimport.ingestion.base import ImportSource
from batimport.ingestion.parsers.bourso_pdf import BoursoPdfParser

from conftest import BOURSO_PAGES, FakeRenderer


EXPECTED_HEADER = (
    "boursorama",
    "releve.pdf",
    "Boursorama-PDF v1.2015",
    "FR76 1234 5678 9012",
    "EUR",
    "2015-01-01",
    "1000.00",
    "Y",
    "2015-01-31",
    "1200.00",
    "Y",
)


def test_detected(use_renderer, bourso_renderer, pdf_source):
    use_renderer(bourso_renderer)
    assert detect_format(pdf_source).name == "bourso_pdf"


def test_not_a_pdf():
    source = ImportSource.from_bytes(b"Extrait de votre compte en EUR BOURSORAMA", uri="releve.txt")
    assert not BoursoPdfParser().can_parse(source, bourso.PDF_FORMAT)


def test_full_statement(use_renderer, bourso_renderer, pdf_source, sink):
    use_renderer(bourso_renderer)
    result = import_file(pdf_source, sink=sink)

    assert result.success, result.errors
    assert result.format_name == "bourso_pdf"
    assert result.header.fields == EXPECTED_HEADER
    assert [rec.fields for rec in result.details] == [
        ("2015-01-05", "2015-01-05", "", "CARTE SUPERMARCHE PARIS 12", "-42.50", ""),
        ("2015-01-20", "2015-01-20", "", "VIR SALAIRE", "242.50", ""),
    ]
    assert sink.total == 2
    assert [step[:2] for step in sink.steps] == [(1, 2), (2, 2)]


def test_single_page_with_one_detail(use_renderer, pdf_source):
    page = [
        (20, 50, "Extrait de votre compte en EUR"),
        (20, 60, "BOURSORAMA"),
        (260, 270, "du"),
        (280, 270, "01/01/2015"),
        (350, 270, "au"),
        (370, 270, "31/01/2015"),
        (20, 300, "I.B.A.N. FR76 1234 5678 9012"),
        (20, 400, "SOLDE AU : 01/01/2015"),
        (500, 400, "1.000,00"),
        (20, 420, "05/01/2015 CARTE"),
        (310, 420, "05/01/2015"),
        (400, 420, "42,50"),
        (20, 440, "Nouveau solde en EUR"),
        (500, 440, "957,50"),
    ]
    use_renderer(FakeRenderer([page]))
    result = import_file(pdf_source)

    assert result.success
    assert result.header.get("end_solde") == "957.50"
    assert [rec.fields for rec in result.details] == [
        ("2015-01-05", "2015-01-05", "", "CARTE", "-42.50", ""),
    ]


def test_debit_solde_is_negative(use_renderer, pdf_source):
    pages = [list(page) for page in BOURSO_PAGES]
    pages[0][8] = (400, 400, "1.000,00")
    use_renderer(FakeRenderer(pages))
    result = import_file(pdf_source)
    assert result.header.get("begin_solde") == "-1000.00"


def test_missing_iban_is_fatal(use_renderer, pdf_source, sink):
    pages = [[item for item in page if not item[2].startswith("I.B.A.N.")] for page in BOURSO_PAGES]
    use_renderer(FakeRenderer(pages))
    result = import_file(pdf_source, sink=sink)

    assert result.records == []
    assert result.fatal == "IBAN not found"
    assert result.error_count == 1
    assert sink.errors == ["IBAN not found"]


def test_row_error_counted(use_renderer, pdf_source):
    pages = [list(page) for page in BOURSO_PAGES]
    # drop the value date of the first transaction
    del pages[0][10]
    use_renderer(FakeRenderer(pages))
    result = import_file(pdf_source)

    assert result.fatal is None
    assert result.error_count >= 1
    assert [rec.get("label") for rec in result.details] == ["VIR SALAIRE"]
