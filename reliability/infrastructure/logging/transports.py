"""
Log transports for the different output destinations.

Transports are ``logging.Handler`` subclasses. The handler lock serializes
writes to a single transport, so concurrent callers never interleave lines or
race a file rotation. The logging facade calls ``deliver`` and sees failures;
when a transport is attached to a plain stdlib logger, ``emit`` routes
failures to ``handleError`` like any other handler.
"""
import logging
import os
from abc import ABC, abstractmethod
import sys
from collections import deque
from enum import Enum
from pathlib import Path
from typing import IO, Deque, List, Optional, Union

from reliability.domain.models.log import LogEntry, LogLevel, parse_log_level, should_log
from reliability.infrastructure.logging.formatters import (
    ConsoleFormatter,
    JsonFormatter,
    entry_from_record,
    level_for_number,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class Transport(logging.Handler, ABC):
    """
    Base class for log destinations.

    Subclasses implement ``write``; it runs with the handler lock held.
    """

    def __init__(
        self,
        name: str,
        min_level: Union[LogLevel, str, int] = LogLevel.INFO,
        formatter: Optional[logging.Formatter] = None
    ):
        super().__init__(level=int(parse_log_level(min_level)))
        self.name = name
        if formatter is not None:
            self.setFormatter(formatter)

    @property
    def min_level(self) -> LogLevel:
        return level_for_number(self.level)

    def admits(self, level: LogLevel) -> bool:
        """Check if entries at ``level`` should reach this transport."""
        return should_log(level, self.min_level)

    def deliver(self, record: logging.LogRecord) -> None:
        """
        Write a record, letting failures propagate to the caller.

        Args:
            record: Record carrying the entry to write
        """
        with self.lock:
            self.write(record)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.write(record)
        except Exception:
            self.handleError(record)

    @abstractmethod
    def write(self, record: logging.LogRecord) -> None:
        pass


class ConsoleTransport(Transport):
    """
    Console transport for development and debugging.

    DEBUG and INFO go to stdout, WARN and above go to stderr. Streams default
    to whatever ``sys.stdout``/``sys.stderr`` are at write time.
    """

    def __init__(
        self,
        min_level: Union[LogLevel, str, int] = LogLevel.INFO,
        use_colors: bool = True,
        stream: Optional[IO[str]] = None,
        error_stream: Optional[IO[str]] = None
    ):
        super().__init__("console", min_level, ConsoleFormatter(use_colors))
        self.stream = stream
        self.error_stream = error_stream

    def stream_for(self, level: LogLevel) -> IO[str]:
        if level >= LogLevel.WARN:
            return self.error_stream or sys.stderr
        return self.stream or sys.stdout

    def write(self, record: logging.LogRecord) -> None:
        stream = self.stream_for(level_for_number(record.levelno))
        stream.write(self.format(record) + "\n")
        stream.flush()


class FileState(str, Enum):
    """Lifecycle of the file transport's handle."""
    CLOSED = "closed"
    OPEN = "open"
    ROTATING = "rotating"


class FileTransport(Transport):
    """
    File transport writing newline-delimited JSON with size-based rotation.

    With ``app.log`` and ``max_files=3`` the files on disk are ``app.log``
    (active), then ``app.1.log`` (newest rotated) through ``app.3.log``.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        min_level: Union[LogLevel, str, int] = LogLevel.INFO,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        max_files: int = 5,
        formatter: Optional[logging.Formatter] = None
    ):
        if max_file_size <= 0:
            raise ValueError("max_file_size must be positive")
        if max_files < 1:
            raise ValueError("max_files must be at least 1")

        super().__init__("file", min_level, formatter or JsonFormatter())
        self.file_path = Path(file_path)
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.state = FileState.CLOSED
        self._stream: Optional[IO[str]] = None

        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock:
            self._open()

    def rotated_path(self, index: int) -> Path:
        """Path of the ``index``-th rotated file."""
        return self.file_path.with_name(f"{self.file_path.stem}.{index}{self.file_path.suffix}")

    def write(self, record: logging.LogRecord) -> None:
        formatted = self.format(record)

        # Check if the active file needs rotating before this write
        if self._stream is None:
            self._open()
        elif self._needs_rotation():
            self._rotate()
            self._open()

        self._stream.write(formatted + "\n")
        self._stream.flush()

    def close(self) -> None:
        with self.lock:
            self._close_stream()
        super().close()

    def _needs_rotation(self) -> bool:
        try:
            return self.file_path.stat().st_size >= self.max_file_size
        except FileNotFoundError:
            return False

    def _open(self) -> None:
        if self._needs_rotation():
            self._rotate()
        self._stream = open(self.file_path, "a", encoding="utf-8")
        self.state = FileState.OPEN

    def _close_stream(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        self.state = FileState.CLOSED

    def _rotate(self) -> None:
        self.state = FileState.ROTATING
        if self._stream is not None:
            self._stream.close()
            self._stream = None

        oldest = self.rotated_path(self.max_files)
        if oldest.exists():
            oldest.unlink()

        for index in range(self.max_files - 1, 0, -1):
            source = self.rotated_path(index)
            if source.exists():
                os.replace(source, self.rotated_path(index + 1))

        if self.file_path.exists():
            os.replace(self.file_path, self.rotated_path(1))

        self.state = FileState.CLOSED
        logger.debug(f"Rotated log file {self.file_path}")


class MemoryTransport(Transport):
    """Memory transport keeping the most recent entries, for tests and diagnostics."""

    def __init__(
        self,
        min_level: Union[LogLevel, str, int] = LogLevel.DEBUG,
        max_entries: int = 1000
    ):
        super().__init__("memory", min_level)
        self.max_entries = max_entries
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)

    def write(self, record: logging.LogRecord) -> None:
        self._entries.append(entry_from_record(record))

    def get_entries(self) -> List[LogEntry]:
        with self.lock:
            return list(self._entries)

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        with self.lock:
            return [entry for entry in self._entries if entry.level == level]

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()

    def get_count(self) -> int:
        with self.lock:
            return len(self._entries)


class NullTransport(Transport):
    """Transport that discards every entry."""

    def __init__(self):
        super().__init__("null", LogLevel.DEBUG)

    def write(self, record: logging.LogRecord) -> None:
        pass
