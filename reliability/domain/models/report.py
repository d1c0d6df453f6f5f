from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reliability.domain.models.error import (
    BaseError,
    ErrorCategory,
    ErrorSeverity,
    TroubleshootingStep,
    utc_now,
)


class RecoveryResult(BaseModel):
    """Outcome of a recovery attempt or of a whole recovery run."""
    success: bool
    attempts: int = Field(default=0, ge=0)
    strategy: str = "none"
    message: str = ""
    details: Optional[Dict[str, Any]] = None


class ErrorReport(BaseModel):
    """
    Outcome record produced once per handled error.

    Reports are frozen; the handler never mutates one after returning it.
    """
    model_config = ConfigDict(frozen=True)

    error: BaseError
    handled: bool
    recovered: bool
    recovery_attempts: int = Field(ge=0)
    recovery_strategy: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    handling_duration_ms: float = Field(ge=0)

    @model_validator(mode="after")
    def check_outcome_flags(self) -> "ErrorReport":
        """Reject flag combinations that cannot come out of the pipeline."""
        if self.recovered and self.recovery_attempts <= 0:
            raise ValueError("A recovered report must record at least one recovery attempt")
        if not self.handled and (self.recovered or self.recovery_attempts):
            raise ValueError("An unhandled report cannot carry recovery results")
        return self


class ErrorMetrics(BaseModel):
    """Snapshot derived from the error history."""
    total_errors: int = 0
    errors_by_category: Dict[ErrorCategory, int] = Field(default_factory=dict)
    errors_by_severity: Dict[ErrorSeverity, int] = Field(default_factory=dict)
    recovery_success_rate: float = 0.0
    average_handling_time_ms: float = 0.0


class TelemetrySummary(BaseModel):
    """Redacted view of a report sent to the telemetry hook."""
    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    severity: ErrorSeverity
    recovered: bool
    duration_ms: float


class UserNotification(BaseModel):
    """Payload for the user-facing notification channel."""
    model_config = ConfigDict(frozen=True)

    code: str
    severity: ErrorSeverity
    user_message: str
    troubleshooting_steps: List[TroubleshootingStep] = Field(default_factory=list)
