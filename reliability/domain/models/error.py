"""
Error taxonomy records.

Errors are plain, immutable, tagged records: a category and severity plus the
diagnostic and remediation data attached at construction. Default data per
category lives in the catalog (``reliability.infrastructure.error.catalog``),
not on the record types.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from reliability.core.serialization import to_jsonable


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorCategory(str, Enum):
    """Categorization of errors for processing and reporting."""
    CONNECTION = "connection"
    MODEL = "model"
    DOCUMENT_PROCESSING = "document_processing"
    WORKFLOW = "workflow"
    FILESYSTEM = "filesystem"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NETWORK = "network"
    DATABASE = "database"
    CACHE = "cache"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorContext(BaseModel):
    """Where and for whom an error happened."""
    model_config = ConfigDict(frozen=True)

    operation: Optional[str] = None
    component: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RecoveryAction(BaseModel):
    """A suggested remediation, ordered by preference on the error."""
    model_config = ConfigDict(frozen=True)

    type: Literal["retry", "fallback", "manual", "ignore"]
    description: str
    automated: bool = False
    max_attempts: Optional[int] = None
    delay_ms: Optional[int] = None


class TroubleshootingStep(BaseModel):
    """A numbered step a person can follow to diagnose the error."""
    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1)
    description: str
    action: str
    expected: str


class BaseError(BaseModel):
    """
    Immutable categorized failure record.

    ``category`` and ``severity`` are fixed once the record is built; the
    model is frozen so any later assignment raises. A record with
    ``recoverable=False`` is never handed to the recovery manager.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    code: str
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    recoverable: bool
    context: ErrorContext = Field(default_factory=ErrorContext)
    details: Dict[str, Any] = Field(default_factory=dict)
    cause: Optional[BaseException] = None
    recovery_actions: List[RecoveryAction] = Field(default_factory=list)
    troubleshooting_steps: List[TroubleshootingStep] = Field(default_factory=list)
    user_message: str = ""
    technical_message: str = ""

    @property
    def automated_actions(self) -> List[RecoveryAction]:
        """Recovery actions the system may take without a person."""
        return [action for action in self.recovery_actions if action.automated]

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-safe representation of the record.

        Returns:
            Dictionary with the cause rendered as its type and message
        """
        data = to_jsonable(self.model_dump(exclude={"cause"}))
        if self.cause is not None:
            data["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        else:
            data["cause"] = None
        return data
