"""Shared fixtures: in-memory page renderer and statement documents."""

from __future__ import annotations

import pytest

from batimport.ingestion import auto_detect, pdf_layout
from batimport.ingestion.base import ImportSource
from batimport.ingestion.diagnostics import CollectingSink
from batimport.ingestion.pdf_layout import GlyphBox

CHAR_WIDTH = 5.0
CHAR_HEIGHT = 8.0


class FakeRenderer:
    """Page renderer returning one glyph run per word.

    Each page is a list of ``(x, y, text)`` tuples; runs are numbered in
    the order given, which need not be reading order.
    """

    def __init__(self, pages: list[list[tuple[float, float, str]]]):
        self.pages = pages
        self.opened = 0

    def __call__(self, data: bytes, password=None) -> "FakeRenderer":
        self.opened += 1
        return self

    def __enter__(self) -> "FakeRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        return None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page_text(self, index: int) -> str:
        return "\n".join(text for _, _, text in self.pages[index])

    def glyph_boxes(self, index: int) -> list[GlyphBox]:
        return [
            GlyphBox(x, y, x + CHAR_WIDTH * len(text), y + CHAR_HEIGHT, text, run)
            for run, (x, y, text) in enumerate(self.pages[index])
        ]


BOURSO_PAGES = [
    [
        (20, 50, "Extrait de votre compte en EUR"),
        (20, 60, "BOURSORAMA"),
        (260, 270, "du"),
        (280, 270, "01/01/2015"),
        (350, 270, "au"),
        (370, 270, "31/01/2015"),
        (20, 300, "I.B.A.N. FR76 1234 5678 9012"),
        (20, 400, "SOLDE AU : 01/01/2015"),
        (500, 400, "1.000,00"),
        (20, 420, "05/01/2015 *CARTE SUPERMARCHE"),
        (310, 420, "05/01/2015"),
        (400, 420, "42,50"),
        (100, 432, "PARIS 12"),
    ],
    [
        (380, 50, "Crédit"),
        (20, 80, "20/01/2015 VIR SALAIRE"),
        (310, 80, "20/01/2015"),
        (460, 80, "242,50"),
        (20, 120, "Nouveau solde en EUR"),
        (500, 120, "1.200,00"),
        (20, 140, "A réception d'un extrait de compte, vérifiez-le"),
    ],
]

LCL_PAGES = [
    [
        (20, 40, "RELEVE DE COMPTE"),
        (20, 50, "CREDIT LYONNAIS"),
        (300, 60, "du 01.01.2016 au 31.01.2016 - N° 12"),
        (20, 80, "IBAN : FR76 3000 2000 1000"),
        (100, 200, "ANCIEN SOLDE"),
        (500, 200, "1 500,00"),
        (20, 220, "04.01.2016 CB MONOP"),
        (370, 220, "04.01.2016"),
        (420, 220, "12,30"),
        (100, 232, "PARIS"),
        (100, 250, "SOLDE INTERMEDIAIRE A 15.01.2016"),
        (500, 250, "1 487,70"),
        (20, 830, "page 1/2"),
    ],
    [
        (420, 50, "DEBIT"),
        (490, 50, "CREDIT"),
        (20, 70, "20.01.2016 VIR SALAIRE"),
        (370, 70, "20.01.2016"),
        (490, 70, "300,00"),
        (20, 90, "TOTAUX"),
        (100, 110, "SOLDE EN EUROS"),
        (500, 110, "1 787,70"),
    ],
]


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def pdf_source() -> ImportSource:
    return ImportSource.from_bytes(b"%PDF-1.4 placeholder", uri="releve.pdf")


@pytest.fixture
def bourso_renderer() -> FakeRenderer:
    return FakeRenderer([list(page) for page in BOURSO_PAGES])


@pytest.fixture
def lcl_renderer() -> FakeRenderer:
    return FakeRenderer([list(page) for page in LCL_PAGES])


@pytest.fixture
def use_renderer(monkeypatch):
    """Route every PDF opened by the parsers to the given fake renderer."""

    def _use(renderer: FakeRenderer) -> FakeRenderer:
        monkeypatch.setattr(pdf_layout, "open_renderer", renderer)
        monkeypatch.setattr(auto_detect, "_validate_pdf_access", lambda source, password: (True, None))
        return renderer

    return _use
