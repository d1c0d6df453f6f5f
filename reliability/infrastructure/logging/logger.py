"""
Structured logging facade.

A ``Logger`` builds one ``LogEntry`` per call and hands it to every transport
whose minimum level admits it. Transport failures never reach the caller;
they are reported through the stdlib module logger instead.
"""
import asyncio
import inspect
import logging
import time
import traceback
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reliability.core.exceptions import InvalidLogLevelError
from reliability.domain.models.log import LogContext, LogEntry, LogLevel, parse_log_level, should_log
from reliability.infrastructure.logging.transports import (
    ConsoleTransport,
    FileTransport,
    MemoryTransport,
    Transport,
)

if TYPE_CHECKING:
    from reliability.core.config import Settings

# Fallback console output for faults inside the facade itself
logger = logging.getLogger(__name__)


def normalize_data(data: Any) -> Optional[Dict[str, Any]]:
    """
    Coerce structured data into a string-keyed dict.

    Non-string keys are stringified; any other value is wrapped as ``{"value": data}``.
    """
    if data is None:
        return None
    if isinstance(data, dict):
        return {str(key): value for key, value in data.items()}
    return {"value": data}


class LoggerConfig(BaseModel):
    """Options for a Logger."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = "ai-toolkit"
    level: LogLevel = LogLevel.INFO
    transports: List[Transport] = Field(default_factory=lambda: [ConsoleTransport()])
    enable_stack_trace: bool = True
    enable_performance_tracking: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def parse_level(cls, value: Any) -> LogLevel:
        return parse_log_level(value)


class PerformanceTimer:
    """
    Measures a named operation in milliseconds.

    ``end`` may be called more than once; only the first call measures and
    logs. Also usable as a context manager.
    """

    def __init__(self, name: str, owner: "Logger"):
        self.name = name
        self.start_time = time.perf_counter()
        self.duration_ms: Optional[float] = None
        self._owner = owner

    def end(self) -> float:
        if self.duration_ms is None:
            self.duration_ms = (time.perf_counter() - self.start_time) * 1000
            if self._owner.enable_performance_tracking:
                self._owner.debug(
                    f"Performance: {self.name}",
                    {"duration": round(self.duration_ms, 3), "unit": "ms"}
                )
        return self.duration_ms

    def __enter__(self) -> "PerformanceTimer":
        return self

    def __exit__(self, exc_type, exc_value, tb) -> bool:
        self.end()
        return False


class Logger:
    """
    Leveled, structured logger with pluggable transports.

    Child loggers share the parent's transport list and carry a merged copy
    of its context; each instance keeps its own minimum level.

    Logging calls never raise. Transports are written one after another in
    registration order on the calling thread, so a slow transport delays the
    ones after it; attach slow sinks behind a queue if that matters.
    """

    def __init__(
        self,
        config: Optional[LoggerConfig] = None,
        context: Optional[LogContext] = None,
        transports: Optional[List[Transport]] = None
    ):
        """
        Initialize the logger.

        Args:
            config: Logger options, defaults to a console logger at INFO
            context: Context stamped on every entry
            transports: Existing transport list to share instead of the
                config's (used by ``child``)
        """
        self.config = config or LoggerConfig()
        self.name = self.config.name
        self.level = self.config.level
        self.enable_stack_trace = self.config.enable_stack_trace
        self.enable_performance_tracking = self.config.enable_performance_tracking
        self.context = context or LogContext()
        self.transports: List[Transport] = (
            transports if transports is not None else list(self.config.transports)
        )

    def child(self, context: LogContext) -> "Logger":
        """
        Create a child logger with additional context.

        Args:
            context: Fields overriding this logger's context

        Returns:
            Logger: New logger sharing this logger's transports
        """
        child = Logger(self.config, self.context.merge(context), transports=self.transports)
        child.level = self.level
        return child

    def add_transport(self, transport: Transport) -> None:
        self.transports.append(transport)

    def remove_transport(self, name: str) -> bool:
        """Remove the first transport called ``name``; returns whether one was found."""
        for index, transport in enumerate(self.transports):
            if transport.name == name:
                del self.transports[index]
                return True
        return False

    def get_transport(self, name: str) -> Optional[Transport]:
        for transport in self.transports:
            if transport.name == name:
                return transport
        return None

    def set_level(self, level: Union[LogLevel, str, int]) -> None:
        self.level = parse_log_level(level)

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None, context: Optional[LogContext] = None) -> None:
        self.log(LogLevel.DEBUG, message, data, context)

    def info(self, message: str, data: Optional[Dict[str, Any]] = None, context: Optional[LogContext] = None) -> None:
        self.log(LogLevel.INFO, message, data, context)

    def warn(self, message: str, data: Optional[Dict[str, Any]] = None, context: Optional[LogContext] = None) -> None:
        self.log(LogLevel.WARN, message, data, context)

    warning = warn

    def error(self, message: str, data: Optional[Dict[str, Any]] = None, context: Optional[LogContext] = None) -> None:
        self.log(LogLevel.ERROR, message, data, context)

    def critical(self, message: str, data: Optional[Dict[str, Any]] = None, context: Optional[LogContext] = None) -> None:
        self.log(LogLevel.CRITICAL, message, data, context)

    def log_error(
        self,
        error: BaseException,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        context: Optional[LogContext] = None
    ) -> None:
        """
        Log an exception at ERROR level.

        Args:
            error: The exception to describe
            message: Log message, defaults to the exception text
            data: Extra structured data
            context: Per-call context override
        """
        error_info: Dict[str, Any] = {"name": type(error).__name__, "message": str(error)}
        if self.enable_stack_trace:
            error_info["stack"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        self.log(LogLevel.ERROR, message or str(error), {**(data or {}), "error": error_info}, context)

    def log(
        self,
        level: Union[LogLevel, str, int],
        message: str,
        data: Optional[Dict[str, Any]] = None,
        context: Optional[LogContext] = None
    ) -> None:
        """
        Build an entry and dispatch it to every admitting transport.

        Args:
            level: Entry level
            message: Log message
            data: Extra structured data
            context: Per-call context override
        """
        try:
            level = parse_log_level(level)
        except InvalidLogLevelError as e:
            logger.error(f"Dropped log entry {message!r}: {e}")
            return
        if not should_log(level, self.level):
            return

        try:
            merged = self.context.merge(context)
            entry = LogEntry(
                level=level,
                message=str(message),
                data=normalize_data(data),
                component=merged.component,
                request_id=merged.request_id,
                user_id=merged.user_id,
                session_id=merged.session_id,
            )
        except Exception as e:
            logger.error(f"Failed to build log entry for {message!r}: {e}")
            return

        record = logging.makeLogRecord({
            "name": self.name,
            "levelno": int(level),
            "levelname": level.name,
            "msg": entry.message,
            "created": entry.timestamp.timestamp(),
            "entry": entry,
        })

        for transport in list(self.transports):
            if not transport.admits(level):
                continue
            try:
                transport.deliver(record)
            except Exception as e:
                # Transport errors must not break logging
                logger.error(f"Transport {transport.name} failed: {e}")

    def start_timer(self, name: str) -> PerformanceTimer:
        return PerformanceTimer(name, self)

    def with_timing(self, name: str, fn: Callable[[], Any]) -> Any:
        """
        Run ``fn`` under a timer.

        If ``fn`` returns an awaitable, an awaitable is returned and the timer
        ends when it settles. The timer ends on failure as well.

        Args:
            name: Timer name used in the performance entry
            fn: Zero-argument callable, sync or returning an awaitable

        Returns:
            The callable's result, or an awaitable resolving to it
        """
        timer = self.start_timer(name)
        try:
            result = fn()
        except BaseException:
            timer.end()
            raise

        if inspect.isawaitable(result):
            async def finish() -> Any:
                try:
                    return await result
                finally:
                    timer.end()
            return finish()

        timer.end()
        return result

    async def close(self) -> None:
        """Close every transport concurrently; one failure does not stop the others."""
        async def close_transport(transport: Transport) -> None:
            try:
                await asyncio.to_thread(transport.close)
            except Exception as e:
                logger.error(f"Failed to close transport {transport.name}: {e}")

        await asyncio.gather(*(close_transport(transport) for transport in list(self.transports)))


def create_logger(settings: "Settings") -> Logger:
    """
    Build a logger from application settings.

    Args:
        settings: Application settings

    Returns:
        Logger: Logger with console and/or file transports per the settings
    """
    return Logger(settings.logger_config())


def create_file_logger(
    file_path: str,
    level: Union[LogLevel, str, int] = LogLevel.INFO,
    include_console: bool = True
) -> Logger:
    """Create a logger writing to a rotating file and, optionally, the console."""
    level = parse_log_level(level)
    transports: List[Transport] = [FileTransport(file_path, level)]
    if include_console:
        transports.append(ConsoleTransport(level))

    return Logger(LoggerConfig(name="file-logger", level=level, transports=transports))


def create_test_logger() -> Logger:
    """Create a DEBUG logger that records entries in memory only."""
    return Logger(LoggerConfig(
        name="test-logger",
        level=LogLevel.DEBUG,
        transports=[MemoryTransport()],
    ))
