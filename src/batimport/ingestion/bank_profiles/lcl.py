"""Layout constants for LCL (Crédit Lyonnais) statements."""

from __future__ import annotations

from batimport.ingestion.pdf_statement import Anchor, ColumnBoundaries, PdfVendorProfile, TableStart
from batimport.ingestion.stream_format import StreamFormat


BANK_ID = "lcl"

PDF_LABEL = "LCL-PDF v2.2016"

HEADER_EXTRAIT = "RELEVE DE COMPTE"
HEADER_BANQUE = "CREDIT LYONNAIS"
HEADER_IBAN = "IBAN : "
HEADER_BEGIN_SOLDE = "ANCIEN SOLDE"
FOOTER_END_SOLDE = "SOLDE EN EUROS"
PAGE_CREDIT = "CREDIT"
PAGE_TOTAUX = "TOTAUX"
PAGE_SOLDE_INTERMED = "SOLDE INTERMEDIAIRE A"
PAGE_RECAPITULATIF = "Récapitulatif des frais perçus"

# "du 01.01.2016 au 31.01.2016 - N° 12"
PERIOD_RE = r"du\s+(\S+)\s+au\s+(\S+)"

COLUMNS = ColumnBoundaries(
    label_min_x=74,
    value_min_x=360,
    debit_min_x=409,
    credit_min_x=482,
)

DETAIL_MAX_Y = 820

PDF_PROFILE = PdfVendorProfile(
    bank_id=BANK_ID,
    label=PDF_LABEL,
    probe_texts=(HEADER_EXTRAIT, HEADER_BANQUE),
    anchors=(
        Anchor(
            "period", PERIOD_RE, "neither beginning nor ending dates found",
            match="regex", value="groups", pages="all",
            group_keys=("begin_date", "end_date"),
        ),
        Anchor("account", HEADER_IBAN, "IBAN not found", value="remainder", pages="all"),
        Anchor("begin_solde", HEADER_BEGIN_SOLDE, "beginning solde not found", match="exact", pages="all"),
        Anchor("end_solde", FOOTER_END_SOLDE, "ending solde not found", pages="all"),
    ),
    columns=COLUMNS,
    table_starts=(
        TableStart(HEADER_BEGIN_SOLDE, first_page=True),
        TableStart(PAGE_CREDIT, first_page=False),
    ),
    stop_prefixes=(PAGE_TOTAUX, PAGE_RECAPITULATIF),
    detail_max_y=DETAIL_MAX_Y,
    skip_label_prefixes=(PAGE_SOLDE_INTERMED,),
    currency="EUR",
)

PDF_FORMAT = StreamFormat(
    name="LCL PDF",
    charset="utf-8",
    date_format="%d.%m.%Y",
    decimal_sep=",",
    thousand_sep=" ",
    field_sep=None,
    string_delim=None,
)

# Tabulated text export

TXT_LABEL = "LCL.xls (tabulated text) 2014"

# Payment type as exported, and the reference prefix it becomes
PAYMENT_TYPES = {
    "Carte": "CB",
    "Virement": "VIR",
    "Prélèvement": "PREL",
    "Chèque": "CH",
    "TIP": "TIP",
}

TXT_FORMAT = StreamFormat(
    name="LCL tabulated text",
    charset="iso-8859-15",
    date_format="%d/%m/%Y",
    decimal_sep=",",
    thousand_sep=None,
    field_sep="\t",
    string_delim=None,
)


def payment_reference(payment_type: str | None) -> str:
    """Relabel the exported payment type, other values pass through."""
    value = (payment_type or "").strip()
    return PAYMENT_TYPES.get(value, value)
