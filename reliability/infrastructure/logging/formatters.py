"""
Log formatters for the different output formats.

Each formatter is a ``logging.Formatter`` whose rendering lives in a pure
``format_entry`` method. ``format`` accepts records produced by the facade
(which carry the entry as ``record.entry``) as well as plain stdlib records,
so the same formatters can be attached to ordinary ``logging`` handlers.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict

from reliability.core.serialization import json_default
from reliability.domain.models.log import LogEntry, LogLevel

RESET_COLOR = "\x1b[0m"

LEVEL_COLORS: Dict[LogLevel, str] = {
    LogLevel.DEBUG: "\x1b[36m",     # cyan
    LogLevel.INFO: "\x1b[32m",      # green
    LogLevel.WARN: "\x1b[33m",      # yellow
    LogLevel.ERROR: "\x1b[31m",     # red
    LogLevel.CRITICAL: "\x1b[35m",  # magenta
}


def level_for_number(levelno: int) -> LogLevel:
    """Snap a stdlib level number onto the closest LogLevel at or below it."""
    for level in sorted(LogLevel, reverse=True):
        if levelno >= level:
            return level
    return LogLevel.DEBUG


def entry_from_record(record: logging.LogRecord) -> LogEntry:
    """
    Get the structured entry behind a log record.

    Args:
        record: Record built by the facade or by any stdlib logger

    Returns:
        LogEntry: The facade's entry, or one converted from the stdlib fields
    """
    entry = getattr(record, "entry", None)
    if isinstance(entry, LogEntry):
        return entry

    data: Dict[str, Any] = {}
    if isinstance(getattr(record, "data", None), dict):
        data.update(record.data)
    if record.exc_info:
        data["exception"] = logging.Formatter().formatException(record.exc_info)

    return LogEntry(
        timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
        level=level_for_number(record.levelno),
        message=record.getMessage(),
        data=data or None,
        component=record.name,
        request_id=getattr(record, "correlation_id", None) or None,
    )


def iso_timestamp(timestamp: datetime) -> str:
    return timestamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EntryFormatter(logging.Formatter, ABC):
    """Base class for formatters that render a LogEntry."""

    def format(self, record: logging.LogRecord) -> str:
        return self.format_entry(entry_from_record(record))

    @abstractmethod
    def format_entry(self, entry: LogEntry) -> str:
        pass


class JsonFormatter(EntryFormatter):
    """
    JSON formatter for structured logging.

    Produces one JSON object per entry; optional fields are emitted only when set.
    """

    def format_entry(self, entry: LogEntry) -> str:
        return json.dumps(entry.to_dict(), default=json_default)


class ConsoleFormatter(EntryFormatter):
    """Human-readable formatter with optional ANSI level colors."""

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format_entry(self, entry: LogEntry) -> str:
        color = LEVEL_COLORS[entry.level] if self.use_colors else ""
        reset = RESET_COLOR if self.use_colors else ""

        formatted = f"{color}[{iso_timestamp(entry.timestamp)}] {entry.level.name}{reset}"

        if entry.component:
            formatted += f" [{entry.component}]"

        if entry.request_id:
            formatted += f" [req:{entry.request_id[:8]}]"

        formatted += f": {entry.message}"

        if entry.data:
            pretty = json.dumps(entry.data, indent=2, default=json_default)
            formatted += f"\n{color}Data:{reset} {pretty}"

        return formatted


class SimpleFormatter(EntryFormatter):
    """Plain single-line text output."""

    def format_entry(self, entry: LogEntry) -> str:
        timestamp = iso_timestamp(entry.timestamp)
        if entry.component:
            return f"{timestamp} {entry.level.name} [{entry.component}]: {entry.message}"
        return f"{timestamp} {entry.level.name}: {entry.message}"


class CompactFormatter(EntryFormatter):
    """Minimal output: local wall-clock time, level initial and message."""

    def format_entry(self, entry: LogEntry) -> str:
        time = entry.timestamp.astimezone().strftime("%H:%M:%S")
        return f"{time} {entry.level.name[0]} {entry.message}"
