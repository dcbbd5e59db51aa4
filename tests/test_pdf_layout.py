"""Tests for glyph coalescing and reading-order extraction."""

import itertools

import pytest

from batimport.ingestion import pdf_layout
from batimport.ingestion.errors import DocumentOpenError
from batimport.ingestion.pdf_layout import GlyphBox, LayoutRectangle, PdfplumberRenderer, RectangleLayoutExtractor

from conftest import FakeRenderer


def _rect(x, y, text, page=0):
    return LayoutRectangle(page, x, y, x + 20, y + 8, text)


class TestCoalesce:
    def test_consecutive_glyphs_of_one_run_merge(self):
        glyphs = [
            GlyphBox(10, 100, 15, 108, "S", 0),
            GlyphBox(15, 100, 20, 108, "O", 0),
            GlyphBox(20, 99.5, 25, 108.5, "L", 0),
            GlyphBox(40, 100, 45, 108, "X", 1),
        ]
        rects = RectangleLayoutExtractor().coalesce(0, glyphs)

        assert [(r.text, r.count) for r in rects] == [("SOL", 3), ("X", 1)]
        assert (rects[0].x1, rects[0].y1, rects[0].x2, rects[0].y2) == (10, 99.5, 25, 108.5)

    def test_zero_size_and_blank_rectangles_dropped(self):
        glyphs = [
            GlyphBox(10, 100, 10.5, 100.5, "x", 0),
            GlyphBox(30, 100, 35, 108, " ", 1),
            GlyphBox(50, 100, 55, 108, "y", 2),
        ]
        rects = RectangleLayoutExtractor().coalesce(0, glyphs)
        assert [r.text for r in rects] == ["y"]


class TestOrder:
    def test_reading_order(self):
        rects = [_rect(200, 50, "c"), _rect(10, 10, "a"), _rect(10, 50.8, "b"), _rect(100, 9.5, "z")]
        ordered = RectangleLayoutExtractor(1.5).order(rects)

        assert [r.text for r in ordered] == ["a", "z", "b", "c"]
        assert [r.row for r in ordered] == [0, 0, 1, 1]

    def test_same_row_independent_of_arrival_order(self):
        rects = [_rect(300, 100.0, "amount"), _rect(10, 101.2, "date"), _rect(120, 100.6, "label"), _rect(10, 140, "next")]
        extractor = RectangleLayoutExtractor(1.5)
        for permutation in itertools.permutations(rects):
            ordered = extractor.order(list(permutation))
            assert [r.text for r in ordered] == ["date", "label", "amount", "next"]
            assert ordered[0].row == ordered[1].row == ordered[2].row

    def test_rows_chain_on_successive_members(self):
        rects = [_rect(10, 100.0, "a"), _rect(50, 101.4, "b"), _rect(90, 102.8, "c")]
        ordered = RectangleLayoutExtractor(1.5).order(rects)
        assert len({r.row for r in ordered}) == 1

    def test_exact_ties_counted(self):
        extractor = RectangleLayoutExtractor(2.0)
        extractor.order([_rect(10, 100.0, "a"), _rect(10, 102.0, "b")])
        assert extractor.last_ties == 1

    def test_tolerance_is_configurable(self):
        rects = [_rect(10, 100, "a"), _rect(50, 103, "b")]
        assert len({r.row for r in RectangleLayoutExtractor(1.5).order(rects)}) == 2
        assert len({r.row for r in RectangleLayoutExtractor(5).order(rects)}) == 1


def test_extract_from_renderer():
    renderer = FakeRenderer([[(300, 20, "right"), (10, 20, "left"), (10, 5, "top")]])
    ordered = RectangleLayoutExtractor().extract(renderer, 0)
    assert [r.text for r in ordered] == ["top", "left", "right"]
    assert all(r.page == 0 for r in ordered)


class _FakePage:
    def __init__(self, words, text):
        self._words = words
        self._text = text
        self.calls = []

    def extract_words(self, **kwargs):
        self.calls.append(kwargs)
        return self._words

    def extract_text(self):
        return self._text


class _FakePdf:
    def __init__(self, pages):
        self.pages = pages
        self.closed = False

    def close(self):
        self.closed = True


class TestPdfplumberRenderer:
    def test_chars_tagged_with_their_word(self, monkeypatch):
        words = [
            {"text": "du", "chars": [
                {"x0": 10, "top": 5, "x1": 15, "bottom": 13, "text": "d"},
                {"x0": 15, "top": 5, "x1": 20, "bottom": 13, "text": "u"},
            ]},
            {"text": "au", "chars": [
                {"x0": 40, "top": 5, "x1": 45, "bottom": 13, "text": "a"},
                {"x0": 45, "top": 5, "x1": 50, "bottom": 13, "text": "u"},
            ]},
        ]
        page = _FakePage(words, "du au")
        pdf = _FakePdf([page])
        monkeypatch.setattr(pdf_layout.pdfplumber, "open", lambda stream, password="": pdf)

        with PdfplumberRenderer(b"%PDF") as renderer:
            assert renderer.page_count == 1
            assert renderer.page_text(0) == "du au"
            boxes = renderer.glyph_boxes(0)
            rects = RectangleLayoutExtractor().extract(renderer, 0)

        assert [b.run for b in boxes] == [0, 0, 1, 1]
        assert [r.text for r in rects] == ["du", "au"]
        assert page.calls[0]["keep_blank_chars"] is True
        assert pdf.closed

    def test_open_failure(self, monkeypatch):
        def _boom(stream, password=""):
            raise ValueError("not a pdf")

        monkeypatch.setattr(pdf_layout.pdfplumber, "open", _boom)
        with pytest.raises(DocumentOpenError):
            PdfplumberRenderer(b"garbage")
