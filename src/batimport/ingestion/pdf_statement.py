"""Shared pipeline for PDF bank statements.

Every vendor follows the same three passes over the reading-ordered page
rectangles:

1. rough: route each rectangle of the transaction table to a column by its
   left x, and collect the pieces of one visual row in a fragment;
2. merge: fold fragments into logical detail lines, a fragment with only a
   label continuing the previous line;
3. build: serialize the header anchors and the detail lines into canonical
   records.

Vendors only provide a ``PdfVendorProfile``: anchor texts, column
boundaries, table start/stop markers and label pre-filters.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from batimport.core.config import settings
from batimport.core.models import CanonicalRecord, detail_record, header_record
from batimport.ingestion.base import PDF_CONTENT_TYPE, BaseParser, ImportSource, ParseContext
from batimport.ingestion.errors import MissingAnchorError
from batimport.ingestion import pdf_layout
from batimport.ingestion.pdf_layout import LayoutRectangle, PageRenderer, RectangleLayoutExtractor
from batimport.ingestion.stream_format import StreamFormat


logger = logging.getLogger(__name__)


# ---- vendor configuration ----


@dataclass(frozen=True)
class ColumnBoundaries:
    """Left-x boundaries of the transaction table columns."""

    label_min_x: float
    value_min_x: float
    debit_min_x: float
    credit_min_x: float
    # width of the operation date at the start of the first column
    date_width: int = 10


@dataclass(frozen=True)
class Anchor:
    """A fixed text locating one header value.

    ``match`` is one of ``prefix``, ``exact`` or ``regex``. ``value`` says
    where the value is read from:

    - ``next``: the rectangle right after the anchor in reading order;
    - ``remainder``: the anchor rectangle text after the anchor literal;
    - ``same_row``: the first rectangle of the anchor row right of ``min_x``;
    - ``groups``: the regex groups, stored under ``group_keys``.

    ``pages`` restricts the scan to the ``first`` page, the ``last`` page or
    ``all`` pages. ``region`` is the top-left corner the anchor must lie
    below and right of, widened by ``region_margin`` row tolerances.
    """

    key: str
    text: str
    message: str
    match: str = "prefix"
    value: str = "next"
    pages: str = "first"
    region: Optional[tuple[float, float]] = None
    region_margin: float = 0
    width: Optional[int] = None
    min_x: Optional[float] = None
    after: Optional[str] = None
    group_keys: tuple[str, ...] = ()

    def matches(self, text: str) -> Optional[re.Match | bool]:
        if self.match == "exact":
            return text == self.text
        if self.match == "regex":
            return re.match(self.text, text)
        return text.startswith(self.text)

    def in_region(self, rect: LayoutRectangle, tolerance: float = 0) -> bool:
        if self.region is None:
            return True
        margin = self.region_margin * tolerance
        min_x, min_y = self.region
        return rect.x1 > min_x - margin and rect.y1 > min_y - margin

    def on_page(self, page: int, page_count: int) -> bool:
        if self.pages == "first":
            return page == 0
        if self.pages == "last":
            return page == page_count - 1
        return True

    @property
    def keys(self) -> tuple[str, ...]:
        return self.group_keys if self.value == "groups" else (self.key,)


@dataclass(frozen=True)
class TableStart:
    """Marker after which the transaction table begins on a page.

    ``first_page`` selects page zero (True) or the following pages (False).
    The marker right edge is optionally bounded by ``x2_min``/``x2_max``.
    """

    text: str
    first_page: bool
    x2_min: Optional[float] = None
    x2_max: Optional[float] = None

    def matches(self, page: int, rect: LayoutRectangle) -> bool:
        if (page == 0) != self.first_page:
            return False
        if not rect.text.startswith(self.text):
            return False
        if self.x2_min is not None and rect.x2 <= self.x2_min:
            return False
        if self.x2_max is not None and rect.x2 >= self.x2_max:
            return False
        return True


@dataclass(frozen=True)
class PdfVendorProfile:
    bank_id: str
    label: str
    probe_texts: tuple[str, ...]
    anchors: tuple[Anchor, ...]
    columns: ColumnBoundaries
    table_starts: tuple[TableStart, ...]
    stop_prefixes: tuple[str, ...] = ()
    # table starts one tolerance below the start marker
    start_below_tolerance: bool = False
    detail_max_y: Optional[float] = None
    skip_label_prefixes: tuple[str, ...] = ()
    strip_label_prefix: Optional[str] = None
    currency: Optional[str] = None
    solde_keys: tuple[str, ...] = ("begin_solde", "end_solde")
    date_keys: tuple[str, ...] = ("begin_date", "end_date")


# ---- fragments ----


@dataclass
class LineFragment:
    """Pieces of one visual table row, completed as rectangles arrive."""

    y: float
    page: int
    operation_date: Optional[str] = None
    label: Optional[str] = None
    value_date: Optional[str] = None
    amount: Optional[str] = None

    def append_label(self, text: str, sep: str = " ") -> None:
        if not text:
            return
        self.label = f"{self.label}{sep}{text}" if self.label else text

    def describe(self) -> str:
        return (
            f"operation={self.operation_date or ''}, label={self.label or ''}, "
            f"value={self.value_date or ''}, amount={self.amount or ''}"
        )


class RowAccumulator:
    """Collect fragments keyed by their y position, within a tolerance."""

    def __init__(self, tolerance: float):
        self.tolerance = tolerance
        self.fragments: list[LineFragment] = []

    def fragment_at(self, page: int, y: float) -> LineFragment:
        for fragment in self.fragments:
            if fragment.page == page and abs(fragment.y - y) <= self.tolerance:
                return fragment
        fragment = LineFragment(y=y, page=page)
        self.fragments.append(fragment)
        return fragment

    def __len__(self) -> int:
        return len(self.fragments)


# ---- header ----


def signed_amount(rect: LayoutRectangle, columns: ColumnBoundaries) -> str:
    """Amounts left of the credit column are debits."""
    return f"-{rect.text}" if rect.x1 < columns.credit_min_x else rect.text


def _anchor_values(
    anchor: Anchor,
    rects: list[LayoutRectangle],
    index: int,
    match,
    profile: PdfVendorProfile,
) -> Optional[dict[str, str]]:
    rect = rects[index]
    if anchor.value == "groups":
        return {key: match.group(i + 1).strip() for i, key in enumerate(anchor.group_keys)}

    target: Optional[LayoutRectangle] = None
    if anchor.value == "remainder":
        value = rect.text[len(anchor.text):].strip()
        return {anchor.key: value[: anchor.width] if anchor.width else value}
    if anchor.value == "next":
        target = rects[index + 1] if index + 1 < len(rects) else None
    elif anchor.value == "same_row":
        target = next(
            (
                r for r in rects[index + 1:]
                if r.row == rect.row and (anchor.min_x is None or r.x1 > anchor.min_x)
            ),
            None,
        )
    if target is None:
        return None
    if anchor.key in profile.solde_keys:
        return {anchor.key: signed_amount(target, profile.columns)}
    value = target.text[: anchor.width].strip() if anchor.width else target.text.strip()
    return {anchor.key: value}


def extract_header_values(
    pages: Iterable[tuple[int, list[LayoutRectangle]]],
    page_count: int,
    profile: PdfVendorProfile,
    tolerance: Optional[float] = None,
) -> tuple[dict[str, str], list[Anchor]]:
    """Scan pages for every anchor; return found values and missing anchors.

    Anchors are searched in a single pass over each page, so that an anchor
    declared ``after`` another is only looked for once the first one has
    been found.
    """
    tolerance = settings.ROW_TOLERANCE if tolerance is None else tolerance
    found: dict[str, str] = {}
    done: set[str] = set()
    for page, rects in pages:
        pending = [a for a in profile.anchors if a.key not in done and a.on_page(page, page_count)]
        if not pending:
            continue
        for index, rect in enumerate(rects):
            for anchor in pending:
                if anchor.key in done:
                    continue
                if anchor.after is not None and anchor.after not in done:
                    continue
                if not anchor.in_region(rect, tolerance):
                    continue
                match = anchor.matches(rect.text)
                if not match:
                    continue
                values = _anchor_values(anchor, rects, index, match, profile)
                if values is None:
                    continue
                logger.debug("anchor '%s' found on page %d: %s", anchor.key, page, values)
                found.update(values)
                done.add(anchor.key)
    missing = [a for a in profile.anchors if a.key not in done]
    return found, missing


# ---- detail passes ----


def rough_pass(
    page: int,
    rects: list[LayoutRectangle],
    profile: PdfVendorProfile,
    accumulator: RowAccumulator,
) -> int:
    """Route the transaction table rectangles of one page to fragments.

    Returns the number of routed rectangles.
    """
    columns = profile.columns
    tolerance = accumulator.tolerance
    first_y: Optional[float] = None
    routed = 0

    for rect in rects:
        if first_y is None:
            if any(start.matches(page, rect) for start in profile.table_starts):
                first_y = rect.y2 + (tolerance if profile.start_below_tolerance else 0)
            continue

        if profile.detail_max_y is not None and rect.y2 >= profile.detail_max_y:
            break
        if rect.y1 <= first_y:
            continue
        if any(rect.text.startswith(stop) for stop in profile.stop_prefixes):
            break

        fragment = accumulator.fragment_at(page, rect.y1)
        routed += 1
        if rect.x1 < columns.label_min_x:
            fragment.operation_date = rect.text[: columns.date_width].strip()
            rest = rect.text[columns.date_width:].strip()
            if rest:
                if profile.strip_label_prefix and rest.startswith(profile.strip_label_prefix):
                    rest = rest[len(profile.strip_label_prefix):]
                fragment.label = rest
        elif rect.x1 < columns.value_min_x:
            fragment.append_label(rect.text.strip())
        elif rect.x1 < columns.debit_min_x:
            fragment.value_date = rect.text[: columns.date_width].strip()
        else:
            fragment.amount = signed_amount(rect, columns)

    return routed


def merge_pass(
    fragments: list[LineFragment],
    profile: PdfVendorProfile,
    ctx: ParseContext,
) -> list[LineFragment]:
    """Fold rough fragments into logical detail lines.

    A fragment with an operation date starts a new line and must carry a
    value date and an amount. A label-only fragment continues the previous
    line unless it is too far below it. Anything else is a row error; under
    ``stop_on_error`` the remaining fragments are abandoned and the lines
    accepted so far are kept.
    """
    lines: list[LineFragment] = []
    prev: Optional[LineFragment] = None
    prev_y = 0.0
    prev_page = -1

    for number, fragment in enumerate(fragments, 1):
        if fragment.label and any(fragment.label.startswith(p) for p in profile.skip_label_prefixes):
            logger.debug("skipping pseudo-row '%s'", fragment.label)
            continue

        if fragment.operation_date:
            if not fragment.value_date or not fragment.amount:
                ctx.error(f"[{number}] invalid line: {fragment.describe()}")
                if ctx.stop_on_error:
                    break
                continue
            prev = LineFragment(
                y=fragment.y,
                page=fragment.page,
                operation_date=fragment.operation_date,
                label=fragment.label,
                value_date=fragment.value_date,
                amount=fragment.amount,
            )
            lines.append(prev)
            prev_y, prev_page = fragment.y, fragment.page
            continue

        too_far = fragment.page == prev_page and fragment.y - prev_y > ctx.max_row_gap
        if fragment.value_date or fragment.amount or prev is None or too_far:
            ctx.error(f"[{number}] invalid line: {fragment.describe()}")
            if ctx.stop_on_error:
                break
            continue

        prev.append_label(fragment.label or "")
        prev_y, prev_page = fragment.y, fragment.page

    return lines


def build_details(lines: list[LineFragment], ctx: ParseContext) -> list[CanonicalRecord]:
    """Serialize merged lines, normalizing dates and amounts."""
    fmt = ctx.format
    records: list[CanonicalRecord] = []
    for number, line in enumerate(lines, 1):
        operation = fmt.normalize_date(line.operation_date)
        value = fmt.normalize_date(line.value_date)
        amount = fmt.normalize_amount(line.amount)
        if operation is None or value is None or amount is None:
            ctx.error(f"[{number}] invalid date or amount: {line.describe()}")
            if ctx.stop_on_error:
                break
            continue
        records.append(
            detail_record(
                operation_date=operation,
                value_date=value,
                label=line.label or "",
                amount=amount,
            )
        )
    return records


# ---- parser ----


RendererFactory = Callable[[bytes, Optional[str]], PageRenderer]


class PdfStatementParser(BaseParser):
    """Base class of the PDF statement formats, driven by ``profile``."""

    profile: PdfVendorProfile
    format = "pdf"
    accepted_contents = (PDF_CONTENT_TYPE,)

    def __init__(self, renderer_factory: RendererFactory | None = None):
        self._renderer_factory = renderer_factory

    def _open(self, source: ImportSource, password: Optional[str] = None) -> PageRenderer:
        factory = self._renderer_factory or pdf_layout.open_renderer
        return factory(source.data, password)

    @classmethod
    def _matches_text(cls, text: str) -> bool:
        """Deterministic first-page rule for this vendor."""
        return all(marker in (text or "") for marker in cls.profile.probe_texts)

    def can_parse(self, source: ImportSource, fmt: StreamFormat, password: Optional[str] = None) -> bool:
        if not source.is_pdf:
            return False
        with self._open(source, password) as renderer:
            if renderer.page_count == 0:
                return False
            text = renderer.page_text(0)
        if not self._matches_text(text):
            logger.debug("%s: first page markers %s not found", self.name, self.profile.probe_texts)
            return False
        return True

    def parse(self, source: ImportSource, ctx: ParseContext) -> list[CanonicalRecord]:
        profile = self.profile
        extractor = RectangleLayoutExtractor(ctx.tolerance)

        with self._open(source, ctx.password) as renderer:
            page_count = renderer.page_count
            ctx.sink.start(page_count)

            header = self._parse_header(source, ctx, renderer, extractor)

            accumulator = RowAccumulator(ctx.tolerance)
            for page in range(page_count):
                rects = extractor.extract(renderer, page)
                routed = rough_pass(page, rects, profile, accumulator)
                ctx.sink.progress(page + 1, page_count, f"page {page + 1}: {routed} rectangle(s)")

        lines = merge_pass(accumulator.fragments, profile, ctx)
        details = build_details(lines, ctx)
        logger.debug(
            "%s: %d fragment(s) merged into %d line(s)", self.name, len(accumulator), len(lines)
        )
        return [header, *details]

    def _parse_header(
        self,
        source: ImportSource,
        ctx: ParseContext,
        renderer: PageRenderer,
        extractor: RectangleLayoutExtractor,
    ) -> CanonicalRecord:
        profile = self.profile
        page_count = renderer.page_count
        wanted = sorted({
            page
            for page in range(page_count)
            for anchor in profile.anchors
            if anchor.on_page(page, page_count)
        })
        pages = ((page, extractor.extract(renderer, page)) for page in wanted)
        values, missing = extract_header_values(pages, page_count, profile, ctx.tolerance)

        fmt = ctx.format
        invalid: list[tuple[str, str]] = []
        for key in profile.date_keys:
            if key in values:
                normalized = fmt.normalize_date(values[key])
                if not normalized:
                    invalid.append((key, f"invalid {key.replace('_', ' ')} '{values[key]}'"))
                else:
                    values[key] = normalized
        for key in profile.solde_keys:
            if key in values:
                normalized = fmt.normalize_amount(values[key])
                if not normalized:
                    invalid.append((key, f"invalid {key.replace('_', ' ')} '{values[key]}'"))
                else:
                    values[key] = normalized

        problems = [(a.key, a.message) for a in missing] + invalid
        if problems:
            for _, message in problems:
                ctx.error(message)
            raise MissingAnchorError(problems)

        return header_record(
            bank_id=profile.bank_id,
            source_uri=source.uri,
            format_label=profile.label,
            account=values.get("account", ""),
            currency=profile.currency or values.get("currency", ""),
            begin_date=values.get("begin_date", ""),
            begin_solde=values.get("begin_solde"),
            end_date=values.get("end_date", ""),
            end_solde=values.get("end_solde"),
        )
