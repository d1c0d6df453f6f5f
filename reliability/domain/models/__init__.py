"""
Domain models for the reliability package.
Typed records for errors, reports, recovery outcomes and log entries.
"""

from reliability.domain.models.error import (
    BaseError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    RecoveryAction,
    TroubleshootingStep,
)

from reliability.domain.models.log import (
    LogContext,
    LogEntry,
    LogLevel,
    parse_log_level,
    should_log,
)

from reliability.domain.models.report import (
    ErrorMetrics,
    ErrorReport,
    RecoveryResult,
    TelemetrySummary,
    UserNotification,
)

__all__ = [
    # Taxonomy records
    "BaseError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "RecoveryAction",
    "TroubleshootingStep",

    # Logging records
    "LogContext",
    "LogEntry",
    "LogLevel",
    "parse_log_level",
    "should_log",

    # Outcome records
    "ErrorMetrics",
    "ErrorReport",
    "RecoveryResult",
    "TelemetrySummary",
    "UserNotification",
]
