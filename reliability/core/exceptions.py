from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from reliability.domain.models.error import BaseError


class ReliabilityException(Exception):
    """
    Base exception for the reliability package.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "reliability_error",
        context: Optional[Dict[str, Any]] = None
    ):
        self.detail = detail
        self.code = code
        self.context = context or {}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for consistent reporting format."""
        return {
            "error": {
                "code": self.code,
                "message": self.detail,
                "context": self.context
            }
        }


class ToolkitError(ReliabilityException):
    """
    Raisable carrier for a categorized error record.

    Collaborators raise this when they want a failure to travel up the call
    stack; the error handler unwraps ``error`` and processes the record.
    """

    def __init__(self, error: "BaseError"):
        super().__init__(
            detail=error.message,
            code=error.code,
            context={
                "category": error.category.value,
                "severity": error.severity.value,
            }
        )
        self.error = error


class InvalidLogLevelError(ReliabilityException, ValueError):
    """Exception raised when a log level name cannot be parsed."""

    def __init__(self, level: str):
        super().__init__(
            detail=f"Invalid log level: {level}",
            code="invalid_log_level",
            context={"level": level}
        )


class DuplicateStrategyError(ReliabilityException, ValueError):
    """Exception raised when a recovery strategy name is already registered."""

    def __init__(self, name: str):
        super().__init__(
            detail=f"Recovery strategy '{name}' is already registered",
            code="duplicate_strategy",
            context={"name": name}
        )


class ServiceNotStartedError(ReliabilityException, RuntimeError):
    """Exception raised when the reliability service is used before start()."""

    def __init__(self, detail: str = "Reliability service not started. Call start() first."):
        super().__init__(detail=detail, code="service_not_started")
