"""Page layout extraction: glyph boxes to reading-ordered text rectangles.

Coordinates follow the renderer convention used by pdfplumber: x grows to
the right, y grows downwards from the top of the page.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, replace
from typing import Optional, Protocol

import pdfplumber

from batimport.core.config import settings
from batimport.ingestion.errors import DocumentOpenError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlyphBox:
    """One raw rectangle as returned by the renderer.

    ``run`` identifies the selectable text run the glyph belongs to;
    consecutive glyphs of the same run are coalesced.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    text: str
    run: int


@dataclass(frozen=True)
class LayoutRectangle:
    page: int
    x1: float
    y1: float
    x2: float
    y2: float
    text: str
    count: int = 1
    row: int = -1

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1


class PageRenderer(Protocol):
    """Contract of the external page renderer."""

    @property
    def page_count(self) -> int:
        ...

    def page_text(self, index: int) -> str:
        ...

    def glyph_boxes(self, index: int) -> list[GlyphBox]:
        ...


class PdfplumberRenderer:
    """Page renderer backed by pdfplumber."""

    def __init__(self, data: bytes, password: Optional[str] = None):
        try:
            self._pdf = pdfplumber.open(io.BytesIO(data), password=password or "")
        except Exception as exc:  # noqa: BLE001
            raise DocumentOpenError(f"unable to open the PDF document: {exc}") from exc

    def __enter__(self) -> "PdfplumberRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._pdf.close()

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def page_text(self, index: int) -> str:
        return self._pdf.pages[index].extract_text() or ""

    def glyph_boxes(self, index: int) -> list[GlyphBox]:
        """Return one box per character, tagged with its word run."""
        page = self._pdf.pages[index]
        words = page.extract_words(keep_blank_chars=True, return_chars=True)
        boxes: list[GlyphBox] = []
        for run, word in enumerate(words):
            for char in word.get("chars") or []:
                boxes.append(
                    GlyphBox(
                        x1=float(char["x0"]),
                        y1=float(char["top"]),
                        x2=float(char["x1"]),
                        y2=float(char["bottom"]),
                        text=char["text"],
                        run=run,
                    )
                )
        return boxes


def open_renderer(data: bytes, password: Optional[str] = None) -> PdfplumberRenderer:
    return PdfplumberRenderer(data, password=password)


class RectangleLayoutExtractor:
    """Turn one rendered page into text rectangles in reading order.

    Two rectangles whose top-y values differ by less than ``tolerance`` are
    on the same row. Rows are chained on their successive members, so any
    such pair ends up together whatever the arrival order. Rows are sorted
    by ascending y, rectangles inside a row by ascending x.
    """

    def __init__(self, tolerance: float | None = None):
        self.tolerance = settings.ROW_TOLERANCE if tolerance is None else tolerance
        self.last_ties = 0

    @staticmethod
    def _is_zero_size(box: GlyphBox | LayoutRectangle) -> bool:
        return abs(box.x1 - box.x2) < 1 and abs(box.y1 - box.y2) < 1

    def coalesce(self, page: int, glyphs: list[GlyphBox]) -> list[LayoutRectangle]:
        """Merge consecutive glyphs of one text run into a single rectangle."""
        rects: list[LayoutRectangle] = []
        current: Optional[LayoutRectangle] = None
        current_run: Optional[int] = None
        for glyph in glyphs:
            if current is not None and glyph.run == current_run:
                current = replace(
                    current,
                    x1=min(current.x1, glyph.x1),
                    y1=min(current.y1, glyph.y1),
                    x2=max(current.x2, glyph.x2),
                    y2=max(current.y2, glyph.y2),
                    text=current.text + glyph.text,
                    count=current.count + 1,
                )
                continue
            if current is not None:
                rects.append(current)
            current = LayoutRectangle(page, glyph.x1, glyph.y1, glyph.x2, glyph.y2, glyph.text)
            current_run = glyph.run
        if current is not None:
            rects.append(current)

        out = []
        for rect in rects:
            text = rect.text.strip()
            if not text or self._is_zero_size(rect):
                continue
            out.append(replace(rect, text=text))
        return out

    def order(self, rects: list[LayoutRectangle]) -> list[LayoutRectangle]:
        """Sort rectangles into rows, then left to right."""
        self.last_ties = 0
        rows: list[list[LayoutRectangle]] = []
        prev_y: Optional[float] = None
        for rect in sorted(rects, key=lambda r: (r.y1, r.x1)):
            if prev_y is not None:
                gap = rect.y1 - prev_y
                if gap == self.tolerance:
                    self.last_ties += 1
                if gap < self.tolerance:
                    rows[-1].append(rect)
                    prev_y = rect.y1
                    continue
            rows.append([rect])
            prev_y = rect.y1

        ordered: list[LayoutRectangle] = []
        for index, row in enumerate(rows):
            for rect in sorted(row, key=lambda r: (r.x1, r.y1)):
                ordered.append(replace(rect, row=index))
        if self.last_ties:
            logger.debug("%d rectangle(s) exactly at the row tolerance %s", self.last_ties, self.tolerance)
        return ordered

    def extract(self, renderer: PageRenderer, page: int) -> list[LayoutRectangle]:
        glyphs = renderer.glyph_boxes(page)
        rects = self.coalesce(page, glyphs)
        logger.debug("page %d: %d glyph(s), %d rectangle(s)", page, len(glyphs), len(rects))
        return self.order(rects)
