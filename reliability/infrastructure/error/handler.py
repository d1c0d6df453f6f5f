"""
Error handling module for the reliability core.
Provides centralized error processing, recovery coordination and reporting.
"""
import threading
import time
import traceback
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from reliability.core.concurrency import maybe_await
from reliability.core.exceptions import ToolkitError
from reliability.domain.models.error import (
    BaseError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    RecoveryAction,
    TroubleshootingStep,
)
from reliability.domain.models.log import LogContext, LogLevel, parse_log_level
from reliability.domain.models.report import (
    ErrorMetrics,
    ErrorReport,
    TelemetrySummary,
    UserNotification,
)
from reliability.infrastructure.error.recovery import RecoveryManager
from reliability.infrastructure.logging.logger import Logger

ErrorListener = Callable[[BaseError, ErrorReport], Any]
TelemetryHook = Callable[[TelemetrySummary], Any]
NotificationHook = Callable[[UserNotification], Any]

GENERIC_ERROR_CODE = "GENERIC_ERROR"
GENERIC_USER_MESSAGE = "An unexpected error occurred. Please try again."


class HandlingStage(str, Enum):
    """Steps an error passes through inside ``handle_error``."""
    RECEIVED = "received"
    LOGGED = "logged"
    RECOVERY_ATTEMPTED = "recovery_attempted"
    RECOVERY_SKIPPED = "recovery_skipped"
    REPORT_BUILT = "report_built"
    LISTENERS_NOTIFIED = "listeners_notified"
    TELEMETRY_SENT = "telemetry_sent"
    TELEMETRY_SKIPPED = "telemetry_skipped"
    FAULTED = "faulted"


class ErrorHandlerConfig(BaseModel):
    """Options for the error handler."""
    enable_recovery: bool = True
    max_recovery_attempts: int = Field(default=3, ge=0)
    log_level: LogLevel = LogLevel.ERROR
    enable_telemetry: bool = True
    enable_user_notifications: bool = True
    recovery_attempt_timeout: Optional[float] = Field(default=None, gt=0)
    max_history_size: Optional[int] = Field(default=None, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_level(cls, value: Any) -> LogLevel:
        return parse_log_level(value)


class ErrorHandler:
    """
    Central error processing class that logs errors, coordinates recovery,
    keeps the report history and fans reports out to listeners and hooks.
    """

    def __init__(
        self,
        logger: Logger,
        config: Optional[ErrorHandlerConfig] = None,
        recovery_manager: Optional[RecoveryManager] = None,
        telemetry: Optional[TelemetryHook] = None,
        notifier: Optional[NotificationHook] = None
    ):
        """
        Initialize the error handler.

        Args:
            logger: Logger for error events
            config: Handler options
            recovery_manager: Recovery manager to delegate to; one with the
                built-in strategies is created if omitted
            telemetry: Optional hook receiving a redacted summary per report
            notifier: Optional hook receiving user-facing notifications
        """
        self.logger = logger
        self.config = config or ErrorHandlerConfig()
        self.recovery_manager = recovery_manager or RecoveryManager(
            logger,
            attempt_timeout=self.config.recovery_attempt_timeout
        )
        self.telemetry = telemetry
        self.notifier = notifier

        self._history: Deque[ErrorReport] = deque(maxlen=self.config.max_history_size)
        self._listeners: List[ErrorListener] = []
        self._lock = threading.Lock()

    async def handle_error(self, error: BaseError) -> ErrorReport:
        """
        Process an error through the full handling pipeline.

        Never raises: a fault inside the pipeline yields a report with
        ``handled=False``.

        Args:
            error: The error to handle

        Returns:
            ErrorReport: Outcome of handling the error
        """
        start_time = time.perf_counter()
        stage = HandlingStage.RECEIVED

        try:
            self._log_error(error)
            stage = HandlingStage.LOGGED

            recovered = False
            recovery_attempts = 0
            recovery_strategy = None

            # Recovery is only ever attempted for recoverable errors
            if self.config.enable_recovery and error.recoverable:
                result = await self.recovery_manager.attempt_recovery(
                    error,
                    self.config.max_recovery_attempts
                )
                recovered = result.success
                recovery_attempts = result.attempts
                recovery_strategy = result.strategy if result.strategy != "none" else None
                stage = HandlingStage.RECOVERY_ATTEMPTED
            else:
                stage = HandlingStage.RECOVERY_SKIPPED

            report = ErrorReport(
                error=error,
                handled=True,
                recovered=recovered,
                recovery_attempts=recovery_attempts,
                recovery_strategy=recovery_strategy,
                handling_duration_ms=self._elapsed_ms(start_time),
            )
        except Exception as e:
            self.logger.error("Error handler failed", {
                "original_error": error.message,
                "handling_error": str(e),
                "context": error.context,
            })
            self.logger.debug("Error handling faulted", {
                "stage": stage.value,
                "next_stage": HandlingStage.FAULTED.value,
            })

            report = ErrorReport(
                error=error,
                handled=False,
                recovered=False,
                recovery_attempts=0,
                handling_duration_ms=self._elapsed_ms(start_time),
            )
            self._append(report)
            return report

        self._append(report)
        await self._notify_listeners(error, report)
        await self._notify_user(error)
        await self._send_telemetry(report)
        return report

    async def handle_generic_error(
        self,
        error: BaseException,
        context: Optional[ErrorContext] = None,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM
    ) -> ErrorReport:
        """
        Wrap an untyped exception into an error record and handle it.

        Args:
            error: The exception that occurred
            context: Where the exception happened
            category: Category to file the error under
            severity: Severity; critical errors are marked unrecoverable

        Returns:
            ErrorReport: Outcome of handling the wrapped error
        """
        message = str(error) or type(error).__name__
        base_error = BaseError(
            code=GENERIC_ERROR_CODE,
            message=message,
            category=category,
            severity=severity,
            recoverable=severity != ErrorSeverity.CRITICAL,
            context=context or ErrorContext(),
            cause=error,
            recovery_actions=[
                RecoveryAction(
                    type="retry",
                    description="Retry the operation",
                    automated=True,
                    max_attempts=2,
                    delay_ms=1000,
                ),
            ],
            troubleshooting_steps=[
                TroubleshootingStep(
                    step=1,
                    description="Check error details",
                    action="Review the error message and stack trace",
                    expected="Error should provide context about the failure",
                ),
            ],
            user_message=GENERIC_USER_MESSAGE,
            technical_message=message,
        )

        return await self.handle_error(base_error)

    async def handle_exception(
        self,
        error: BaseException,
        context: Optional[ErrorContext] = None,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM
    ) -> ErrorReport:
        """
        Handle any exception, unwrapping categorized ones.

        A ``ToolkitError`` is handled as the record it carries; anything else
        goes through ``handle_generic_error``.
        """
        if isinstance(error, ToolkitError):
            return await self.handle_error(error.error)
        return await self.handle_generic_error(error, context, category, severity)

    def on_error(self, listener: ErrorListener) -> None:
        """Register a listener called with ``(error, report)``; it may be sync or async."""
        with self._lock:
            self._listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> bool:
        with self._lock:
            for index, registered in enumerate(self._listeners):
                if registered is listener or registered == listener:
                    del self._listeners[index]
                    return True
        return False

    def get_metrics(self) -> ErrorMetrics:
        """
        Get error metrics recomputed from the history.

        Returns:
            ErrorMetrics: Snapshot with every category and severity present
        """
        with self._lock:
            history = list(self._history)

        errors_by_category: Dict[ErrorCategory, int] = {category: 0 for category in ErrorCategory}
        errors_by_severity: Dict[ErrorSeverity, int] = {severity: 0 for severity in ErrorSeverity}
        total_recovered = 0
        total_handling_time = 0.0

        for report in history:
            errors_by_category[report.error.category] += 1
            errors_by_severity[report.error.severity] += 1
            if report.recovered:
                total_recovered += 1
            total_handling_time += report.handling_duration_ms

        total_errors = len(history)
        return ErrorMetrics(
            total_errors=total_errors,
            errors_by_category=errors_by_category,
            errors_by_severity=errors_by_severity,
            recovery_success_rate=total_recovered / total_errors if total_errors else 0.0,
            average_handling_time_ms=total_handling_time / total_errors if total_errors else 0.0,
        )

    def get_recent_errors(self, limit: int = 50) -> List[ErrorReport]:
        """
        Get recent reports, most recent first.

        Args:
            limit: Maximum number of reports to return

        Returns:
            List of at most ``limit`` reports
        """
        if limit <= 0:
            return []

        with self._lock:
            recent = list(self._history)[-limit:]
        recent.reverse()
        return recent

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    def _append(self, report: ErrorReport) -> None:
        with self._lock:
            self._history.append(report)

    def _log_error(self, error: BaseError) -> None:
        log_data: Dict[str, Any] = {
            "code": error.code,
            "message": error.message,
            "category": error.category.value,
            "severity": error.severity.value,
            "context": error.context,
            "details": error.details,
        }
        if error.cause is not None and error.cause.__traceback__ is not None:
            log_data["stack"] = "".join(
                traceback.format_exception(type(error.cause), error.cause, error.cause.__traceback__)
            )

        log_context = LogContext(
            component=error.context.component,
            request_id=error.context.request_id,
            user_id=error.context.user_id,
            session_id=error.context.session_id,
            operation=error.context.operation,
        )

        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.error("Critical error occurred", log_data, log_context)
        elif error.severity == ErrorSeverity.HIGH:
            self.logger.error("High severity error", log_data, log_context)
        elif error.severity == ErrorSeverity.MEDIUM:
            self.logger.warn("Medium severity error", log_data, log_context)
        elif self.config.log_level <= LogLevel.INFO:
            self.logger.info("Low severity error", log_data, log_context)

    async def _notify_listeners(self, error: BaseError, report: ErrorReport) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                await maybe_await(listener(error, report))
            except Exception as e:
                self.logger.error("Error listener failed", {"error": str(e)})

    async def _notify_user(self, error: BaseError) -> None:
        if not self.config.enable_user_notifications or self.notifier is None:
            return

        notification = UserNotification(
            code=error.code,
            severity=error.severity,
            user_message=error.user_message,
            troubleshooting_steps=error.troubleshooting_steps,
        )
        try:
            await maybe_await(self.notifier(notification))
        except Exception as e:
            self.logger.error("User notification failed", {"error": str(e), "code": error.code})

    async def _send_telemetry(self, report: ErrorReport) -> None:
        if not self.config.enable_telemetry:
            return

        summary = TelemetrySummary(
            category=report.error.category,
            severity=report.error.severity,
            recovered=report.recovered,
            duration_ms=report.handling_duration_ms,
        )

        if self.telemetry is None:
            self.logger.debug("Telemetry data prepared", summary.model_dump(mode="json"))
            return

        try:
            await maybe_await(self.telemetry(summary))
        except Exception as e:
            self.logger.error("Telemetry hook failed", {"error": str(e)})

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return max((time.perf_counter() - start_time) * 1000, 0.0)
