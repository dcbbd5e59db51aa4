"""Progress and message reporting for import attempts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from batimport.core.models import Severity


logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Receiver of synchronous progress and diagnostics calls.

    Calls are delivered in order from the parsing thread and must not alter
    the parsing outcome.
    """

    def start(self, total: int) -> None:
        ...

    def progress(self, count: int, total: int, text: Optional[str] = None) -> None:
        ...

    def message(self, severity: Severity, text: str) -> None:
        ...


_LEVELS = {
    Severity.STANDARD: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingSink:
    """Default sink forwarding everything to the standard logging module."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def start(self, total: int) -> None:
        self.log.debug("starting, %d item(s) to process", total)

    def progress(self, count: int, total: int, text: Optional[str] = None) -> None:
        if text:
            self.log.debug("%d/%d %s", count, total, text)
        else:
            self.log.debug("%d/%d", count, total)

    def message(self, severity: Severity, text: str) -> None:
        self.log.log(_LEVELS[severity], text)


@dataclass
class CollectingSink:
    """Sink keeping every call in memory."""

    total: int = 0
    steps: list[tuple[int, int, Optional[str]]] = field(default_factory=list)
    messages: list[tuple[Severity, str]] = field(default_factory=list)

    def start(self, total: int) -> None:
        self.total = total

    def progress(self, count: int, total: int, text: Optional[str] = None) -> None:
        self.steps.append((count, total, text))

    def message(self, severity: Severity, text: str) -> None:
        self.messages.append((severity, text))

    def by_severity(self, severity: Severity) -> list[str]:
        return [text for sev, text in self.messages if sev is severity]

    @property
    def errors(self) -> list[str]:
        return self.by_severity(Severity.ERROR)

    @property
    def warnings(self) -> list[str]:
        return self.by_severity(Severity.WARNING)
