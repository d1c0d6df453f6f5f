"""
Default diagnostic data for every error category.

The catalog is a lookup table keyed by ``(category, code)`` and populated once
at import time. Error records are built from it by ``create_error`` and the
convenience constructors below, so the records themselves stay plain data.
"""
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from reliability.domain.models.error import (
    BaseError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    RecoveryAction,
    TroubleshootingStep,
)


class CatalogEntry(BaseModel):
    """Defaults applied to an error of a given category and code."""
    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    code: str
    severity: ErrorSeverity
    recoverable: bool
    user_message: str
    recovery_actions: List[RecoveryAction] = Field(default_factory=list)
    troubleshooting_steps: List[TroubleshootingStep] = Field(default_factory=list)


class _DetailsMapping(dict):
    """Mapping for str.format_map that renders unknown placeholders as 'unknown'."""

    def __missing__(self, key: str) -> str:
        return "unknown"

    def __getitem__(self, key: str) -> Any:
        value = super().__getitem__(key)
        return "unknown" if value is None else value


def _render(template: str, details: Dict[str, Any]) -> str:
    return template.format_map(_DetailsMapping(details))


def _steps(*steps: Tuple[str, str, str]) -> List[TroubleshootingStep]:
    return [
        TroubleshootingStep(step=index, description=description, action=action, expected=expected)
        for index, (description, action, expected) in enumerate(steps, start=1)
    ]


_CATALOG: Dict[Tuple[ErrorCategory, str], CatalogEntry] = {}
_CATEGORY_DEFAULTS: Dict[ErrorCategory, str] = {}


def register_catalog_entry(entry: CatalogEntry, category_default: bool = False) -> None:
    """
    Add or replace a catalog entry.

    Args:
        entry: Entry to store under ``(entry.category, entry.code)``
        category_default: Use this entry for errors of the category that carry
            no code or an unknown code
    """
    _CATALOG[(entry.category, entry.code)] = entry
    if category_default or entry.category not in _CATEGORY_DEFAULTS:
        _CATEGORY_DEFAULTS[entry.category] = entry.code


def get_catalog_entry(category: ErrorCategory, code: Optional[str] = None) -> CatalogEntry:
    """
    Look up defaults for an error.

    Args:
        category: Error category
        code: Optional error code; unknown codes fall back to the category default

    Returns:
        CatalogEntry for the code, or the category's default entry
    """
    if code is not None and (category, code) in _CATALOG:
        return _CATALOG[(category, code)]
    return _CATALOG[(category, _CATEGORY_DEFAULTS[category])]


def catalog_entries() -> List[CatalogEntry]:
    """All registered entries in registration order."""
    return list(_CATALOG.values())


def create_error(
    category: ErrorCategory,
    message: str,
    context: Optional[ErrorContext] = None,
    *,
    code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
    severity: Optional[ErrorSeverity] = None,
    recoverable: Optional[bool] = None,
    user_message: Optional[str] = None,
    recovery_actions: Optional[List[RecoveryAction]] = None,
    troubleshooting_steps: Optional[List[TroubleshootingStep]] = None,
) -> BaseError:
    """
    Build an error record from catalog defaults.

    Args:
        category: Error category
        message: Technical message describing the failure
        context: Operation/user/session context, defaults to an empty context
        code: Error code; defaults to the category's default code
        details: Free-form diagnostic data, also used to fill message templates
        cause: Underlying exception, if any
        severity: Override for the catalog severity
        recoverable: Override for the catalog recoverability
        user_message: Override for the catalog user message
        recovery_actions: Override for the catalog recovery actions
        troubleshooting_steps: Override for the catalog troubleshooting steps

    Returns:
        BaseError: Immutable error record
    """
    entry = get_catalog_entry(category, code)
    details = dict(details or {})

    if troubleshooting_steps is None:
        troubleshooting_steps = [
            step.model_copy(update={"action": _render(step.action, details)})
            for step in entry.troubleshooting_steps
        ]

    return BaseError(
        code=code or entry.code,
        message=message,
        category=category,
        severity=severity if severity is not None else entry.severity,
        recoverable=recoverable if recoverable is not None else entry.recoverable,
        context=context or ErrorContext(),
        details=details,
        cause=cause,
        recovery_actions=list(recovery_actions if recovery_actions is not None else entry.recovery_actions),
        troubleshooting_steps=list(troubleshooting_steps),
        user_message=user_message if user_message is not None else _render(entry.user_message, details),
        technical_message=message,
    )


# Convenience constructors for the error kinds raised by the toolkit services

def connection_error(
    message: str,
    context: Optional[ErrorContext] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """Model server (Ollama) connection failure."""
    return create_error(ErrorCategory.CONNECTION, message, context, details=details, cause=cause)


def model_error(
    message: str,
    context: Optional[ErrorContext] = None,
    model_name: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """Requested model missing or failing to respond."""
    return create_error(
        ErrorCategory.MODEL,
        message,
        context,
        details={**(details or {}), "model_name": model_name},
        cause=cause,
    )


def document_processing_error(
    message: str,
    context: Optional[ErrorContext] = None,
    document_path: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """Document could not be parsed or analyzed."""
    return create_error(
        ErrorCategory.DOCUMENT_PROCESSING,
        message,
        context,
        details={**(details or {}), "document_path": document_path},
        cause=cause,
    )


def workflow_error(
    message: str,
    context: Optional[ErrorContext] = None,
    workflow_id: Optional[str] = None,
    step_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """A workflow step failed."""
    return create_error(
        ErrorCategory.WORKFLOW,
        message,
        context,
        details={**(details or {}), "workflow_id": workflow_id, "step_id": step_id},
        cause=cause,
    )


def filesystem_error(
    message: str,
    context: Optional[ErrorContext] = None,
    operation: Optional[str] = None,
    path: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """A file read/write/delete failed."""
    return create_error(
        ErrorCategory.FILESYSTEM,
        message,
        context,
        details={**(details or {}), "operation": operation, "path": path},
        cause=cause,
    )


def validation_error(
    message: str,
    context: Optional[ErrorContext] = None,
    field: Optional[str] = None,
    value: Any = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """Caller supplied invalid input."""
    return create_error(
        ErrorCategory.VALIDATION,
        message,
        context,
        details={**(details or {}), "field": field, "value": value},
        cause=cause,
    )


def configuration_error(
    message: str,
    context: Optional[ErrorContext] = None,
    config_key: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """A configuration value is missing or invalid."""
    return create_error(
        ErrorCategory.CONFIGURATION,
        message,
        context,
        details={**(details or {}), "config_key": config_key},
        cause=cause,
    )


def system_error(
    message: str,
    context: Optional[ErrorContext] = None,
    details: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> BaseError:
    """Unrecoverable runtime failure."""
    return create_error(ErrorCategory.SYSTEM, message, context, details=details, cause=cause)


# Built-in entries, one default per category

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.CONNECTION,
    code="CONNECTION_FAILED",
    severity=ErrorSeverity.HIGH,
    recoverable=True,
    user_message="Unable to connect to the model server. Please ensure Ollama is running and accessible.",
    recovery_actions=[
        RecoveryAction(
            type="retry",
            description="Retry connection with exponential backoff",
            automated=True,
            max_attempts=3,
            delay_ms=1000,
        ),
        RecoveryAction(type="manual", description="Check Ollama installation and start service"),
    ],
    troubleshooting_steps=_steps(
        ("Check if Ollama is installed", "Run 'ollama --version' in terminal",
         "Version information should be displayed"),
        ("Start Ollama service", "Run 'ollama serve' in terminal",
         "Ollama should start listening on default port"),
        ("Verify connection", "Check if http://localhost:11434 is accessible",
         "Ollama API should respond"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.MODEL,
    code="MODEL_ERROR",
    severity=ErrorSeverity.MEDIUM,
    recoverable=True,
    user_message="Model {model_name} is not available or failed to respond. Please check model availability.",
    recovery_actions=[
        RecoveryAction(type="fallback", description="Switch to alternative model", automated=True),
        RecoveryAction(type="manual", description="Download required model"),
    ],
    troubleshooting_steps=_steps(
        ("List available models", "Run 'ollama list' in terminal",
         "List of installed models should be displayed"),
        ("Download model if missing", "Run 'ollama pull {model_name}' in terminal",
         "Model should download successfully"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.DOCUMENT_PROCESSING,
    code="DOCUMENT_PROCESSING_FAILED",
    severity=ErrorSeverity.MEDIUM,
    recoverable=True,
    user_message="Failed to process document. The file may be corrupted or in an unsupported format.",
    recovery_actions=[
        RecoveryAction(type="fallback", description="Use basic text extraction", automated=True),
        RecoveryAction(type="manual", description="Convert document to supported format"),
    ],
    troubleshooting_steps=_steps(
        ("Check file format", "Verify file extension and MIME type of {document_path}",
         "File should be PDF, DOCX, or other supported format"),
        ("Check file integrity", "Try opening file in appropriate application",
         "File should open without errors"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.WORKFLOW,
    code="WORKFLOW_EXECUTION_FAILED",
    severity=ErrorSeverity.HIGH,
    recoverable=True,
    user_message="Workflow execution failed. Some steps may need to be retried or reconfigured.",
    recovery_actions=[
        RecoveryAction(
            type="retry",
            description="Retry failed step",
            automated=True,
            max_attempts=2,
            delay_ms=5000,
        ),
        RecoveryAction(type="fallback", description="Skip failed step and continue"),
    ],
    troubleshooting_steps=_steps(
        ("Check workflow configuration", "Review workflow definition for errors",
         "All steps should have valid configuration"),
        ("Check dependencies", "Verify all required services are running",
         "Ollama and other dependencies should be accessible"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.FILESYSTEM,
    code="FILE_SYSTEM_ERROR",
    severity=ErrorSeverity.MEDIUM,
    recoverable=True,
    user_message="File operation failed. Please check file permissions and disk space.",
    recovery_actions=[
        RecoveryAction(
            type="retry",
            description="Retry file operation",
            automated=True,
            max_attempts=2,
            delay_ms=1000,
        ),
        RecoveryAction(type="manual", description="Check file permissions and disk space"),
    ],
    troubleshooting_steps=_steps(
        ("Check file permissions", "Verify read/write permissions for {path}",
         "Application should have necessary permissions"),
        ("Check disk space", "Verify sufficient disk space is available",
         "At least 1GB free space recommended"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.VALIDATION,
    code="VALIDATION_ERROR",
    severity=ErrorSeverity.LOW,
    recoverable=True,
    user_message="Invalid input provided. Please check your data and try again.",
    recovery_actions=[
        RecoveryAction(type="manual", description="Correct input and retry"),
    ],
    troubleshooting_steps=_steps(
        ("Check input format", "Verify the value of '{field}' matches expected format",
         "Input should conform to validation rules"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.AUTHENTICATION,
    code="AUTHENTICATION_FAILED",
    severity=ErrorSeverity.HIGH,
    recoverable=False,
    user_message="Authentication failed. Please sign in again.",
    recovery_actions=[
        RecoveryAction(type="manual", description="Re-authenticate and retry the request"),
    ],
    troubleshooting_steps=_steps(
        ("Check credentials", "Verify the API key or token is present and not expired",
         "Credentials should be valid"),
        ("Check clock skew", "Compare the system clock with the identity provider",
         "Clocks should agree within a few seconds"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.AUTHORIZATION,
    code="AUTHORIZATION_DENIED",
    severity=ErrorSeverity.MEDIUM,
    recoverable=False,
    user_message="You do not have permission to perform this action.",
    recovery_actions=[
        RecoveryAction(type="manual", description="Request the required permission from an administrator"),
    ],
    troubleshooting_steps=_steps(
        ("Check assigned roles", "Review the roles granted to the current user",
         "User should hold a role that allows the operation"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.NETWORK,
    code="NETWORK_ERROR",
    severity=ErrorSeverity.MEDIUM,
    recoverable=True,
    user_message="A network error occurred. Please check your connection and try again.",
    recovery_actions=[
        RecoveryAction(
            type="retry",
            description="Retry request with exponential backoff",
            automated=True,
            max_attempts=3,
            delay_ms=1000,
        ),
    ],
    troubleshooting_steps=_steps(
        ("Check network connectivity", "Ping the target host or open it in a browser",
         "Host should be reachable"),
        ("Check proxy settings", "Verify HTTP(S)_PROXY environment variables",
         "Proxy settings should match the network"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.DATABASE,
    code="DATABASE_ERROR",
    severity=ErrorSeverity.HIGH,
    recoverable=True,
    user_message="A storage error occurred. Your data was not saved; please try again.",
    recovery_actions=[
        RecoveryAction(
            type="retry",
            description="Retry the database operation",
            automated=True,
            max_attempts=2,
            delay_ms=500,
        ),
        RecoveryAction(type="manual", description="Check database availability"),
    ],
    troubleshooting_steps=_steps(
        ("Check database file or server", "Verify the database is reachable and not locked",
         "Database should accept connections"),
        ("Check disk space", "Verify sufficient disk space is available",
         "Database should have room to write"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.CACHE,
    code="CACHE_ERROR",
    severity=ErrorSeverity.LOW,
    recoverable=True,
    user_message="A temporary caching problem occurred. Results may load more slowly.",
    recovery_actions=[
        RecoveryAction(type="ignore", description="Bypass the cache and use the source of truth", automated=True),
    ],
    troubleshooting_steps=_steps(
        ("Check cache service", "Verify the cache backend is running",
         "Cache should respond to a ping"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.CONFIGURATION,
    code="CONFIGURATION_ERROR",
    severity=ErrorSeverity.HIGH,
    recoverable=True,
    user_message="Configuration error detected. Please check your settings.",
    recovery_actions=[
        RecoveryAction(type="fallback", description="Use default configuration", automated=True),
        RecoveryAction(type="manual", description="Update configuration file"),
    ],
    troubleshooting_steps=_steps(
        ("Check configuration file", "Verify configuration file exists and is valid JSON",
         "Configuration should be properly formatted"),
        ("Validate configuration values", "Check that '{config_key}' and other required keys are present",
         "All required settings should be configured"),
    ),
))

register_catalog_entry(CatalogEntry(
    category=ErrorCategory.SYSTEM,
    code="SYSTEM_ERROR",
    severity=ErrorSeverity.CRITICAL,
    recoverable=False,
    user_message="A system error occurred. Please contact support if the problem persists.",
    recovery_actions=[
        RecoveryAction(type="manual", description="Restart application"),
    ],
    troubleshooting_steps=_steps(
        ("Check system resources", "Verify CPU and memory usage",
         "System should have adequate resources"),
        ("Check logs", "Review application logs for additional details",
         "Logs should provide more context about the error"),
    ),
))
