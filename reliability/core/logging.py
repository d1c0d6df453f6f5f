import logging
import sys
from typing import Optional

from reliability.core.config import Settings, get_settings
from reliability.infrastructure.logging.formatters import ConsoleFormatter, JsonFormatter


def configure_logging(settings: Optional[Settings] = None) -> logging.Handler:
    """
    Configure the stdlib root logger.

    Uses JSON output in production and the colored console format elsewhere,
    so records from third-party libraries look like the facade's own output.

    Args:
        settings: Settings to apply, defaults to the cached settings

    Returns:
        logging.Handler: The handler attached to the root logger
    """
    settings = settings or get_settings()

    # Clear existing handlers
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    root_logger.setLevel(int(settings.log_level))

    handler = logging.StreamHandler(sys.stdout)
    if settings.ENVIRONMENT == "production":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(use_colors=settings.LOG_USE_COLORS))

    root_logger.addHandler(handler)

    return handler
