"""Layout constants for Boursorama statements."""

from __future__ import annotations

from batimport.ingestion.pdf_statement import Anchor, ColumnBoundaries, PdfVendorProfile, TableStart
from batimport.ingestion.stream_format import StreamFormat


BANK_ID = "boursorama"

PDF_LABEL = "Boursorama-PDF v1.2015"

HEADER_EXTRAIT = "Extrait de votre compte en "
HEADER_BANQUE = "BOURSORAMA"
HEADER_IBAN = "I.B.A.N. "
HEADER_BEGIN_SOLDE = "SOLDE AU : "
FOOTER_END_SOLDE = "Nouveau solde en "
PAGE_CREDIT = "Crédit"
PAGE_RECLAMATION = "A réception d'un extrait de compte"

# Top-left corner of the statement period block, widened by ten tolerances
PERIOD_X1 = 259
PERIOD_Y1 = 267
PERIOD_CORNER = (PERIOD_X1, PERIOD_Y1)
PERIOD_MARGIN_TOLERANCES = 10

COLUMNS = ColumnBoundaries(
    label_min_x=80,
    value_min_x=300,
    debit_min_x=355,
    credit_min_x=446,
)

PDF_PROFILE = PdfVendorProfile(
    bank_id=BANK_ID,
    label=PDF_LABEL,
    probe_texts=(HEADER_EXTRAIT, HEADER_BANQUE),
    anchors=(
        Anchor("currency", HEADER_EXTRAIT, "currency not found", value="remainder"),
        Anchor(
            "begin_date", "du", "beginning date not found",
            match="exact", region=PERIOD_CORNER, region_margin=PERIOD_MARGIN_TOLERANCES, width=10,
        ),
        Anchor(
            "end_date", "au", "ending date not found",
            match="exact", region=PERIOD_CORNER, region_margin=PERIOD_MARGIN_TOLERANCES, width=10,
            after="begin_date",
        ),
        Anchor("account", HEADER_IBAN, "IBAN not found", value="remainder"),
        Anchor("begin_solde", HEADER_BEGIN_SOLDE, "beginning solde not found"),
        Anchor(
            "end_solde", FOOTER_END_SOLDE, "ending solde not found",
            value="same_row", pages="last", min_x=COLUMNS.debit_min_x,
        ),
    ),
    columns=COLUMNS,
    table_starts=(
        TableStart(HEADER_BEGIN_SOLDE, first_page=True, x2_max=COLUMNS.debit_min_x),
        TableStart(PAGE_CREDIT, first_page=False, x2_min=COLUMNS.debit_min_x),
    ),
    stop_prefixes=(FOOTER_END_SOLDE, PAGE_RECLAMATION),
    start_below_tolerance=True,
    strip_label_prefix="*",
)

PDF_FORMAT = StreamFormat(
    name="Boursorama PDF",
    charset="utf-8",
    date_format="%d/%m/%Y",
    decimal_sep=",",
    thousand_sep=".",
    field_sep=None,
    string_delim=None,
)

# Tabulated text exports

TXT_EXCEL2002_LABEL = "Boursorama.xls (tabulated text) Excel 2002"
TXT_EXCEL95_LABEL = "Boursorama.xls (tabulated text) Excel 95"

TXT_PERIOD_PREFIX = "*** P"
TXT_PERIOD_MARKER = "riode : "
TXT_ACCOUNT_PREFIX = "*** Compte : "
TXT_COLUMNS = ("DATE OPERATION", "DATE VALEUR", "LIBELLE", "MONTANT", "DEVISE")

TXT_FORMAT = StreamFormat(
    name="Boursorama tabulated text",
    charset="iso-8859-15",
    date_format="%d/%m/%Y",
    decimal_sep=",",
    thousand_sep=None,
    field_sep="\t",
    string_delim='"',
)
