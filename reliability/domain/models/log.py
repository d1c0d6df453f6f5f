from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from reliability.core.exceptions import InvalidLogLevelError
from reliability.core.serialization import to_jsonable
from reliability.domain.models.error import utc_now


class LogLevel(IntEnum):
    """Totally ordered log levels, numbered like the stdlib logging levels."""
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    CRITICAL = 50


_LEVEL_NAMES: Dict[str, LogLevel] = {
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "warn": LogLevel.WARN,
    "warning": LogLevel.WARN,
    "error": LogLevel.ERROR,
    "critical": LogLevel.CRITICAL,
    "fatal": LogLevel.CRITICAL,
}


def parse_log_level(level: Union[str, int, LogLevel]) -> LogLevel:
    """
    Convert a level name or number into a LogLevel.

    Args:
        level: Level name (case-insensitive, ``warning``/``fatal`` accepted) or number

    Returns:
        LogLevel: The parsed level

    Raises:
        InvalidLogLevelError: If the value names no known level
    """
    if isinstance(level, LogLevel):
        return level
    if isinstance(level, int):
        try:
            return LogLevel(level)
        except ValueError:
            raise InvalidLogLevelError(str(level)) from None

    parsed = _LEVEL_NAMES.get(str(level).strip().lower())
    if parsed is None:
        raise InvalidLogLevelError(str(level))
    return parsed


def should_log(level: LogLevel, min_level: LogLevel) -> bool:
    return level >= min_level


class LogContext(BaseModel):
    """Ambient fields stamped on every entry written by a logger."""
    model_config = ConfigDict(frozen=True)

    component: Optional[str] = None
    request_id: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    operation: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def merge(self, override: Optional["LogContext"]) -> "LogContext":
        """
        Combine this context with a more specific one.

        Args:
            override: Context whose set fields win over this one's

        Returns:
            LogContext: New merged context; neither input is modified
        """
        if override is None:
            return self

        merged = {
            name: getattr(override, name) if getattr(override, name) is not None else getattr(self, name)
            for name in ("component", "request_id", "user_id", "session_id", "operation")
        }
        merged["metadata"] = {**self.metadata, **override.metadata}
        return LogContext(**merged)


class LogEntry(BaseModel):
    """A single structured log event, built once and shared by every transport."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)
    level: LogLevel
    message: str
    data: Optional[Dict[str, Any]] = None
    component: Optional[str] = None
    request_id: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe dictionary with optional fields present only when set."""
        payload: Dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.name,
            "message": self.message,
        }
        for name in ("component", "request_id", "user_id", "session_id"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.data is not None:
            payload["data"] = to_jsonable(self.data)
        return payload
