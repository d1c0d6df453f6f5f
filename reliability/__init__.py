"""
Reliability core for the AI toolkit services.

Error taxonomy, recovery orchestration and structured logging.
"""

from reliability.core.exceptions import (
    DuplicateStrategyError,
    InvalidLogLevelError,
    ReliabilityException,
    ServiceNotStartedError,
    ToolkitError,
)
from reliability.domain.models import (
    BaseError,
    ErrorCategory,
    ErrorContext,
    ErrorMetrics,
    ErrorReport,
    ErrorSeverity,
    LogContext,
    LogEntry,
    LogLevel,
    RecoveryAction,
    RecoveryResult,
    TelemetrySummary,
    TroubleshootingStep,
    UserNotification,
    parse_log_level,
)
from reliability.adapters.interfaces import CallbackStrategy, RecoveryStrategy
from reliability.infrastructure.error import (
    ErrorHandler,
    ErrorHandlerConfig,
    RecoveryManager,
    TroubleshootingGuideManager,
    create_error,
)
from reliability.infrastructure.logging import (
    Logger,
    LoggerConfig,
    create_file_logger,
    create_logger,
    create_test_logger,
)
from reliability.core.config import Settings, get_settings
from reliability.service import ReliabilityService

__version__ = "0.1.0"

__all__ = [
    "BaseError",
    "CallbackStrategy",
    "DuplicateStrategyError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorHandler",
    "ErrorHandlerConfig",
    "ErrorMetrics",
    "ErrorReport",
    "ErrorSeverity",
    "InvalidLogLevelError",
    "LogContext",
    "LogEntry",
    "LogLevel",
    "Logger",
    "LoggerConfig",
    "RecoveryAction",
    "RecoveryManager",
    "RecoveryResult",
    "RecoveryStrategy",
    "ReliabilityException",
    "ReliabilityService",
    "ServiceNotStartedError",
    "Settings",
    "TelemetrySummary",
    "ToolkitError",
    "TroubleshootingGuideManager",
    "TroubleshootingStep",
    "UserNotification",
    "create_error",
    "create_file_logger",
    "create_logger",
    "create_test_logger",
    "get_settings",
    "parse_log_level",
]
