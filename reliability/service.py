"""
Service container wiring the logger, recovery manager and error handler.

Hosts construct one ``ReliabilityService`` and pass it (or its parts) to the
collaborators that need it; nothing here is a module-level singleton.
"""
from typing import Optional

from reliability.core.config import Settings, get_settings
from reliability.core.exceptions import ServiceNotStartedError
from reliability.domain.models.error import BaseError, ErrorContext
from reliability.domain.models.report import ErrorReport
from reliability.infrastructure.error.handler import ErrorHandler, NotificationHook, TelemetryHook
from reliability.infrastructure.error.recovery import RecoveryManager
from reliability.infrastructure.error.troubleshooting import TroubleshootingGuideManager
from reliability.infrastructure.logging.logger import Logger, create_logger


class ReliabilityService:
    """
    Owns the reliability components and their lifecycle.

    Usage::

        async with ReliabilityService(settings) as service:
            report = await service.error_handler.handle_error(error)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        logger: Optional[Logger] = None,
        recovery_manager: Optional[RecoveryManager] = None,
        telemetry: Optional[TelemetryHook] = None,
        notifier: Optional[NotificationHook] = None
    ):
        """
        Initialize the service without starting it.

        Args:
            settings: Settings to build components from, defaults to the cached settings
            logger: Logger to use instead of one built from settings; the caller keeps
                ownership and the service will not close it
            recovery_manager: Recovery manager to use instead of the default one
            telemetry: Optional hook receiving telemetry summaries
            notifier: Optional hook receiving user notifications
        """
        self.settings = settings or get_settings()
        self.guides = TroubleshootingGuideManager()
        self.telemetry = telemetry
        self.notifier = notifier

        self._logger = logger
        self._owns_logger = logger is None
        self._recovery_manager = recovery_manager
        self._owns_recovery_manager = recovery_manager is None
        self._error_handler: Optional[ErrorHandler] = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def logger(self) -> Logger:
        self._ensure_started()
        return self._logger

    @property
    def recovery_manager(self) -> RecoveryManager:
        self._ensure_started()
        return self._recovery_manager

    @property
    def error_handler(self) -> ErrorHandler:
        self._ensure_started()
        return self._error_handler

    def start(self) -> "ReliabilityService":
        """
        Build the components. Calling it again on a started service is a no-op.

        Returns:
            ReliabilityService: self, for chaining
        """
        if self._started:
            return self

        if self._logger is None:
            self._logger = create_logger(self.settings)

        handler_config = self.settings.error_handler_config()
        if self._recovery_manager is None:
            self._recovery_manager = RecoveryManager(
                self._logger,
                attempt_timeout=handler_config.recovery_attempt_timeout
            )

        self._error_handler = ErrorHandler(
            self._logger,
            handler_config,
            recovery_manager=self._recovery_manager,
            telemetry=self.telemetry,
            notifier=self.notifier,
        )
        self._started = True

        self._logger.info("Reliability service started", {
            "service": self.settings.SERVICE_NAME,
            "environment": self.settings.ENVIRONMENT,
            "strategies": self._recovery_manager.get_strategies(),
        })
        return self

    async def close(self) -> None:
        """Close the logger and drop the recovery manager if the service built them."""
        if not self._started:
            return

        self._logger.info("Shutting down reliability service")
        if self._owns_logger:
            await self._logger.close()
            self._logger = None
        if self._owns_recovery_manager:
            self._recovery_manager = None

        self._error_handler = None
        self._started = False

    async def handle_error(self, error: BaseError) -> ErrorReport:
        return await self.error_handler.handle_error(error)

    async def handle_exception(self, error: BaseException, context: Optional[ErrorContext] = None) -> ErrorReport:
        return await self.error_handler.handle_exception(error, context)

    def _ensure_started(self) -> None:
        if not self._started:
            raise ServiceNotStartedError()

    async def __aenter__(self) -> "ReliabilityService":
        return self.start()

    async def __aexit__(self, exc_type, exc_value, tb) -> None:
        await self.close()
