"""
Tagged report events.

Detectors describe what they find as a stream of tagged events; sinks
decide how to present them. The logging sink renders the console report,
the collecting sink keeps events in memory.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .utils.logging import ROOT_LOGGER, setup_logger


class EventKind(Enum):
    TITLE = "title"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    ANOMALY = "anomaly"
    SUCCESS = "success"


@dataclass(frozen=True)
class ReportEvent:
    kind: EventKind
    message: str

    def render(self) -> str:
        if self.kind is EventKind.TITLE:
            return f"--- {self.message.upper()} ---"
        return f"[{self.kind.name}] {self.message}"


class ReportSink(ABC):
    """Receives report events in emission order."""

    @abstractmethod
    def emit(self, event: ReportEvent) -> None:
        pass

    def title(self, message: str) -> None:
        self.emit(ReportEvent(EventKind.TITLE, message))

    def info(self, message: str) -> None:
        self.emit(ReportEvent(EventKind.INFO, message))

    def warning(self, message: str) -> None:
        self.emit(ReportEvent(EventKind.WARNING, message))

    def error(self, message: str) -> None:
        self.emit(ReportEvent(EventKind.ERROR, message))

    def anomaly(self, message: str) -> None:
        self.emit(ReportEvent(EventKind.ANOMALY, message))

    def success(self, message: str) -> None:
        self.emit(ReportEvent(EventKind.SUCCESS, message))


class CollectingReportSink(ReportSink):
    """Keeps every event; used by tests and programmatic callers."""

    def __init__(self):
        self.events: List[ReportEvent] = []

    def emit(self, event: ReportEvent) -> None:
        self.events.append(event)

    def of_kind(self, kind: EventKind) -> List[str]:
        return [e.message for e in self.events if e.kind is kind]


_LEVELS = {
    EventKind.WARNING: logging.WARNING,
    EventKind.ERROR: logging.ERROR,
}


class LoggingReportSink(ReportSink):
    """Renders events through a message-only logger."""

    def __init__(
        self, logger: Optional[logging.Logger] = None, log_file: Optional[Path] = None
    ):
        self.logger = logger or setup_logger(
            f"{ROOT_LOGGER}.report", log_file=log_file, fmt="%(message)s"
        )

    def emit(self, event: ReportEvent) -> None:
        level = _LEVELS.get(event.kind, logging.INFO)
        if event.kind is EventKind.TITLE:
            self.logger.log(level, "")
        self.logger.log(level, event.render())
