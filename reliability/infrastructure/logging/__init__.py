"""
Structured logging: facade, transports and formatters.
"""

from reliability.infrastructure.logging.formatters import (
    CompactFormatter,
    ConsoleFormatter,
    EntryFormatter,
    JsonFormatter,
    SimpleFormatter,
)

from reliability.infrastructure.logging.transports import (
    ConsoleTransport,
    FileState,
    FileTransport,
    MemoryTransport,
    NullTransport,
    Transport,
)

from reliability.infrastructure.logging.logger import (
    Logger,
    LoggerConfig,
    PerformanceTimer,
    create_file_logger,
    create_logger,
    create_test_logger,
)

__all__ = [
    # Formatters
    "CompactFormatter",
    "ConsoleFormatter",
    "EntryFormatter",
    "JsonFormatter",
    "SimpleFormatter",

    # Transports
    "ConsoleTransport",
    "FileState",
    "FileTransport",
    "MemoryTransport",
    "NullTransport",
    "Transport",

    # Facade
    "Logger",
    "LoggerConfig",
    "PerformanceTimer",
    "create_file_logger",
    "create_logger",
    "create_test_logger",
]
