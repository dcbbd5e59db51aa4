"""Line and field splitting for delimited statement exports.

A backslash ending a line or a field escapes the following line break or
separator: the backslash is dropped and the escaped character is kept in
the value. A field that really ends with a backslash cannot be told apart
from an escaped separator and is always read as an escape. Inside a field,
a backslash before a quote, a string delimiter, the separator or a line
break is dropped as well.
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import Iterable, Iterator, Optional

from batimport.ingestion.errors import CharsetError, EmptyContentError, HeaderCountError
from batimport.ingestion.stream_format import StreamFormat


logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
ESCAPE = "\\"


def decode_content(data: bytes, charset: str) -> str:
    """Decode the whole buffer once, before any splitting."""
    try:
        text = data.decode(charset)
    except (UnicodeDecodeError, LookupError) as exc:
        raise CharsetError(charset, str(exc)) from exc
    if text.startswith("\ufeff"):
        text = text[1:]
    return text


def _join_escaped(pieces: Iterable[str], joiner: str) -> Iterator[str]:
    current: Optional[str] = None
    for piece in pieces:
        current = piece if current is None else current + joiner + piece
        if current.endswith(ESCAPE):
            current = current[:-1]
            continue
        yield current
        current = None
    if current is not None:
        # escape on the very last piece has nothing to continue with
        yield current


def _raw_lines(text: str) -> Iterator[str]:
    start = 0
    for match in _LINE_BREAK_RE.finditer(text):
        yield text[start:match.start()]
        start = match.end()
    yield text[start:]


def split_lines(text: str, keep_blank: bool = False, limit: Optional[int] = None) -> list[str]:
    """Split a decoded buffer into logical lines.

    Empty lines are dropped unless ``keep_blank`` is set, in which case only
    the trailing empty lines are removed. With ``limit``, splitting stops
    once that many lines are produced.
    """
    lines: Iterable[str] = _join_escaped(_raw_lines(text), "\n")
    if not keep_blank:
        lines = (line for line in lines if line)
    lines = list(itertools.islice(lines, limit))
    while keep_blank and lines and not lines[-1]:
        lines.pop()
    return lines


def remove_string_delim(value: str, delim: Optional[str]) -> str:
    """Strip one matching leading/trailing pair of string delimiters."""
    if delim and len(value) >= 2 and value.startswith(delim) and value.endswith(delim):
        return value[1:-1]
    return value


def unescape_field(value: str, fmt: StreamFormat) -> str:
    """Drop the backslash of escaped quotes, delimiters, separators and line breaks."""
    if ESCAPE not in value:
        return value
    escaped = {'"', "\n", "\r"} | {c for c in (fmt.string_delim, fmt.field_sep) if c}
    pattern = re.escape(ESCAPE) + "([" + "".join(re.escape(c) for c in sorted(escaped)) + "])"
    return re.sub(pattern, r"\1", value)


def split_fields(line: str, fmt: StreamFormat) -> list[str]:
    """Split one logical line on the configured field separator."""
    if not fmt.field_sep:
        fields = [line]
    else:
        fields = list(_join_escaped(line.split(fmt.field_sep), fmt.field_sep))
    return [unescape_field(remove_string_delim(value, fmt.string_delim), fmt) for value in fields]


def split_content(text: str, fmt: StreamFormat) -> list[list[str]]:
    """Split a decoded buffer into a field matrix."""
    return [split_fields(line, fmt) for line in split_lines(text)]


def apply_headers_count(rows: list, headers_count: int, uri: str) -> list:
    """Drop the declared header rows.

    Raises when nothing was read, or when more header rows are declared than
    rows are available.
    """
    if not rows:
        raise EmptyContentError(uri)
    if headers_count > len(rows):
        raise HeaderCountError(headers_count, len(rows), uri)
    logger.debug("skipping %d header row(s) out of %d", headers_count, len(rows))
    return rows[headers_count:]
