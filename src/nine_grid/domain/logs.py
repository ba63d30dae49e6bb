"""Domain models for the debug log."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class LogLevel(StrEnum):
    """Severity of a log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class LogEntry:
    """A single timestamped diagnostic event."""

    id: str
    timestamp: datetime
    level: LogLevel
    message: str
    details: dict[str, object] | None = None
