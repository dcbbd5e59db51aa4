"""Fatal import errors.

Row-level problems are not exceptions: they are counted on the parse
context and reported through the diagnostics sink.
"""

from __future__ import annotations


class BatImportError(Exception):
    """Base class for errors that abort the import of one file."""


class CharsetError(BatImportError):
    """The buffer cannot be decoded with the configured charset."""

    def __init__(self, charset: str, detail: str):
        super().__init__(f"unable to convert the buffer from '{charset}' charset: {detail}")
        self.charset = charset


class FormatNotRecognizedError(BatImportError):
    """No registered format accepts the file."""

    def __init__(self, uri: str):
        super().__init__(f"'{uri}' is not recognized by any registered format")
        self.uri = uri


class MissingAnchorError(BatImportError):
    """One or more header anchors were not found in the document."""

    def __init__(self, missing: list[tuple[str, str]]):
        self.missing = missing
        messages = "; ".join(message for _, message in missing)
        super().__init__(messages)

    @property
    def keys(self) -> list[str]:
        return [key for key, _ in self.missing]


class HeaderCountError(BatImportError):
    """The declared header-row count does not fit the parsed lines."""

    def __init__(self, headers_count: int, line_count: int, uri: str):
        super().__init__(
            f"expected headers count={headers_count} greater than count of "
            f"lines={line_count} read from '{uri}' file"
        )
        self.headers_count = headers_count
        self.line_count = line_count


class EmptyContentError(BatImportError):
    """The file produced no line at all."""

    def __init__(self, uri: str):
        super().__init__(f"empty parsed set read from '{uri}' file")


class DocumentOpenError(BatImportError):
    """The PDF cannot be opened or decrypted."""
