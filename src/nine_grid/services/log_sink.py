"""In-memory debug log shared by every service."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from threading import Lock
from uuid import uuid4

from nine_grid.domain.logs import LogEntry, LogLevel

_LOGGING_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass
class LogSink:
    """Append-only list of timestamped events for the debug view.

    Each entry is mirrored to the ``nine_grid.events`` logger so the same
    events reach the process log.
    """

    _entries: list[LogEntry] = field(default_factory=list)
    _lock: Lock = field(default_factory=Lock)
    _logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("nine_grid.events")
    )

    def add(
        self,
        message: str,
        level: LogLevel | str = LogLevel.INFO,
        details: dict[str, object] | None = None,
    ) -> LogEntry:
        """Record an event and return the stored entry."""
        resolved = LogLevel(level)
        entry = LogEntry(
            id=uuid4().hex,
            timestamp=datetime.now(tz=UTC),
            level=resolved,
            message=message,
            details=details,
        )
        with self._lock:
            self._entries.append(entry)
        self._logger.log(
            _LOGGING_LEVELS[resolved],
            "[%s] %s",
            resolved.value.upper(),
            message,
            extra={"details": details},
        )
        return entry

    def info(self, message: str, details: dict[str, object] | None = None) -> None:
        self.add(message, LogLevel.INFO, details)

    def success(self, message: str, details: dict[str, object] | None = None) -> None:
        self.add(message, LogLevel.SUCCESS, details)

    def warning(self, message: str, details: dict[str, object] | None = None) -> None:
        self.add(message, LogLevel.WARNING, details)

    def error(self, message: str, details: dict[str, object] | None = None) -> None:
        self.add(message, LogLevel.ERROR, details)

    def entries(self) -> list[LogEntry]:
        """Return entries newest first."""
        with self._lock:
            return list(reversed(self._entries))

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()


def error_details(exc: BaseException, **context: object) -> dict[str, object]:
    """Describe an exception for structured log details."""
    return {"error_type": type(exc).__name__, "error": str(exc), **context}
