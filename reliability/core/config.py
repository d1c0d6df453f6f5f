import logging
import os
from functools import lru_cache
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reliability.domain.models.log import LogLevel, parse_log_level
from reliability.infrastructure.error.handler import ErrorHandlerConfig
from reliability.infrastructure.logging.logger import LoggerConfig
from reliability.infrastructure.logging.transports import (
    DEFAULT_MAX_FILE_SIZE,
    ConsoleTransport,
    FileTransport,
    Transport,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reliability configuration settings loaded from environment variables."""

    # Service identity
    SERVICE_NAME: str = "ai-toolkit"
    ENVIRONMENT: str = "development"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: Optional[str] = None
    LOG_MAX_FILE_SIZE: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)
    LOG_MAX_FILES: int = Field(default=5, ge=1)
    LOG_USE_COLORS: bool = True
    LOG_CONSOLE_ENABLED: bool = True
    ENABLE_STACK_TRACE: bool = True
    ENABLE_PERFORMANCE_TRACKING: bool = True

    # Error handling settings
    ENABLE_RECOVERY: bool = True
    MAX_RECOVERY_ATTEMPTS: int = Field(default=3, ge=0)
    RECOVERY_ATTEMPT_TIMEOUT: Optional[float] = Field(default=None, gt=0)
    LOG_LEVEL_ERRORS: str = "ERROR"  # Gates visibility of low-severity errors
    ENABLE_TELEMETRY: bool = True
    ENABLE_USER_NOTIFICATIONS: bool = True
    MAX_HISTORY_SIZE: Optional[int] = Field(default=None, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", "LOG_LEVEL_ERRORS")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Reject unknown level names early."""
        return parse_log_level(v).name

    @property
    def log_level(self) -> LogLevel:
        return parse_log_level(self.LOG_LEVEL)

    def logger_config(self) -> LoggerConfig:
        """
        Build logger options from these settings.

        Returns:
            LoggerConfig: Console and/or file transports at the configured level
        """
        transports: List[Transport] = []
        if self.LOG_CONSOLE_ENABLED:
            transports.append(ConsoleTransport(self.log_level, use_colors=self.LOG_USE_COLORS))
        if self.LOG_FILE_PATH:
            transports.append(FileTransport(
                self.LOG_FILE_PATH,
                self.log_level,
                max_file_size=self.LOG_MAX_FILE_SIZE,
                max_files=self.LOG_MAX_FILES,
            ))

        return LoggerConfig(
            name=self.SERVICE_NAME,
            level=self.log_level,
            transports=transports,
            enable_stack_trace=self.ENABLE_STACK_TRACE,
            enable_performance_tracking=self.ENABLE_PERFORMANCE_TRACKING,
        )

    def error_handler_config(self) -> ErrorHandlerConfig:
        return ErrorHandlerConfig(
            enable_recovery=self.ENABLE_RECOVERY,
            max_recovery_attempts=self.MAX_RECOVERY_ATTEMPTS,
            log_level=self.LOG_LEVEL_ERRORS,
            enable_telemetry=self.ENABLE_TELEMETRY,
            enable_user_notifications=self.ENABLE_USER_NOTIFICATIONS,
            recovery_attempt_timeout=self.RECOVERY_ATTEMPT_TIMEOUT,
            max_history_size=self.MAX_HISTORY_SIZE,
        )


def load_env_file(env_file: str = ".env") -> bool:
    """
    Load environment variables from specified .env file.

    Args:
        env_file: Path to the .env file, relative to the working directory

    Returns:
        bool: True if the file existed and was loaded
    """
    env_path = os.path.join(os.getcwd(), env_file)
    if os.path.exists(env_path):
        load_dotenv(env_path)
        return True

    logger.warning(f"Environment file {env_path} not found")
    return False


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings with caching for efficiency.

    Returns:
        Settings: Settings instance
    """
    return Settings()
