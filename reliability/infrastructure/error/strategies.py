"""
Built-in recovery strategies.

The strategies define the orchestration contract (which errors they cover,
attempt limits, backoff). The work that actually restores service is supplied
through hooks, so hosts plug in their own reconnect, extraction, file and
workflow logic.
"""
import os
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from reliability.adapters.interfaces.recovery import RecoveryStrategy
from reliability.core.concurrency import maybe_await
from reliability.domain.models.error import BaseError, ErrorCategory
from reliability.domain.models.report import RecoveryResult
from reliability.infrastructure.logging.logger import Logger

HookResult = Union[bool, Awaitable[bool]]

DEFAULT_FALLBACK_MODELS = ("llama2", "codellama", "mistral")


class ConnectionRetryStrategy(RecoveryStrategy):
    """Re-establish a lost connection to the model server or another endpoint."""
    name = "connection-retry"
    categories = frozenset({ErrorCategory.CONNECTION, ErrorCategory.NETWORK})
    max_attempts = 3
    delay = 2.0

    def __init__(
        self,
        logger: Logger,
        reconnect: Optional[Callable[[BaseError, int], HookResult]] = None
    ):
        self.logger = logger
        self.reconnect = reconnect

    async def execute(self, error: BaseError, attempt: int) -> RecoveryResult:
        self.logger.debug("Attempting reconnection", {"attempt": attempt})

        if self.reconnect is None:
            return RecoveryResult(
                success=False,
                attempts=attempt,
                strategy=self.name,
                message="No reconnect hook configured",
            )

        if await maybe_await(self.reconnect(error, attempt)):
            return RecoveryResult(
                success=True,
                attempts=attempt,
                strategy=self.name,
                message="Successfully reconnected",
            )

        return RecoveryResult(
            success=False,
            attempts=attempt,
            strategy=self.name,
            message=f"Connection attempt {attempt} failed",
        )


class ModelFallbackStrategy(RecoveryStrategy):
    """Switch to the next model in an ordered fallback list."""
    name = "model-fallback"
    categories = frozenset({ErrorCategory.MODEL})
    max_attempts = 2
    delay = 1.0

    def __init__(self, logger: Logger, fallback_models: Sequence[str] = DEFAULT_FALLBACK_MODELS):
        self.logger = logger
        self.fallback_models = list(fallback_models)

    def next_model(self, model_name: Optional[str]) -> Optional[str]:
        """Model following ``model_name`` in the list, or the first one if it is not listed."""
        if model_name in self.fallback_models:
            index = self.fallback_models.index(model_name) + 1
        else:
            index = 0
        return self.fallback_models[index] if index < len(self.fallback_models) else None

    async def execute(self, error: BaseError, attempt: int) -> RecoveryResult:
        model_name = error.details.get("model_name")
        self.logger.debug("Attempting model fallback", {"model_name": model_name, "attempt": attempt})

        next_model = self.next_model(model_name)
        if next_model:
            return RecoveryResult(
                success=True,
                attempts=attempt,
                strategy=self.name,
                message=f"Switched to fallback model: {next_model}",
                details={"fallback_model": next_model},
            )

        return RecoveryResult(
            success=False,
            attempts=attempt,
            strategy=self.name,
            message="No more fallback models available",
        )


class DocumentProcessingFallbackStrategy(RecoveryStrategy):
    """Fall back to basic text extraction when enhanced processing fails."""
    name = "document-processing-fallback"
    categories = frozenset({ErrorCategory.DOCUMENT_PROCESSING})
    max_attempts = 2
    delay = 0.5

    def __init__(self, logger: Logger, extract: Optional[Callable[[BaseError], HookResult]] = None):
        self.logger = logger
        self.extract = extract

    async def execute(self, error: BaseError, attempt: int) -> RecoveryResult:
        self.logger.debug("Attempting document processing fallback", {"attempt": attempt})

        # Basic extraction is only worth one try
        if attempt == 1:
            extracted = True if self.extract is None else await maybe_await(self.extract(error))
            if extracted:
                return RecoveryResult(
                    success=True,
                    attempts=attempt,
                    strategy=self.name,
                    message="Switched to basic text extraction",
                    details={"fallback_mode": "basic-extraction"},
                )

        return RecoveryResult(
            success=False,
            attempts=attempt,
            strategy=self.name,
            message="Basic extraction also failed",
        )


def probe_path(operation: Optional[str], path: Optional[str]) -> bool:
    """
    Check if a file operation could succeed now.

    Reads need a readable existing file; writes and anything else need a
    writable parent directory.
    """
    if not path:
        return False
    if operation == "read":
        return os.path.isfile(path) and os.access(path, os.R_OK)
    parent = os.path.dirname(os.path.abspath(path))
    return os.path.isdir(parent) and os.access(parent, os.W_OK)


class FileSystemRetryStrategy(RecoveryStrategy):
    """Retry a failed file operation."""
    name = "file-system-retry"
    categories = frozenset({ErrorCategory.FILESYSTEM})
    max_attempts = 3
    delay = 1.0

    def __init__(
        self,
        logger: Logger,
        retry_operation: Optional[Callable[[BaseError, int], HookResult]] = None
    ):
        self.logger = logger
        self.retry_operation = retry_operation

    async def execute(self, error: BaseError, attempt: int) -> RecoveryResult:
        operation = error.details.get("operation")
        path = error.details.get("path")
        self.logger.debug(
            "Retrying file system operation",
            {"operation": operation, "path": path, "attempt": attempt}
        )

        if self.retry_operation is not None:
            succeeded = await maybe_await(self.retry_operation(error, attempt))
        else:
            succeeded = probe_path(operation, path)

        if succeeded:
            return RecoveryResult(
                success=True,
                attempts=attempt,
                strategy=self.name,
                message=f"File operation {operation} succeeded on retry",
                details={"operation": operation, "path": path},
            )

        return RecoveryResult(
            success=False,
            attempts=attempt,
            strategy=self.name,
            message=f"File operation {operation} failed on attempt {attempt}",
        )


class WorkflowStepRetryStrategy(RecoveryStrategy):
    """Re-run a failed workflow step."""
    name = "workflow-step-retry"
    categories = frozenset({ErrorCategory.WORKFLOW})
    max_attempts = 2
    delay = 3.0

    def __init__(
        self,
        logger: Logger,
        rerun_step: Optional[Callable[[Optional[str], Optional[str], int], HookResult]] = None
    ):
        self.logger = logger
        self.rerun_step = rerun_step

    async def execute(self, error: BaseError, attempt: int) -> RecoveryResult:
        workflow_id = error.details.get("workflow_id")
        step_id = error.details.get("step_id")
        self.logger.debug(
            "Retrying workflow step",
            {"workflow_id": workflow_id, "step_id": step_id, "attempt": attempt}
        )

        if self.rerun_step is None:
            return RecoveryResult(
                success=False,
                attempts=attempt,
                strategy=self.name,
                message="No workflow step runner configured",
            )

        if await maybe_await(self.rerun_step(workflow_id, step_id, attempt)):
            return RecoveryResult(
                success=True,
                attempts=attempt,
                strategy=self.name,
                message=f"Workflow step {step_id} succeeded on retry",
                details={"workflow_id": workflow_id, "step_id": step_id},
            )

        return RecoveryResult(
            success=False,
            attempts=attempt,
            strategy=self.name,
            message=f"Workflow step {step_id} failed on attempt {attempt}",
        )


class ConfigurationFallbackStrategy(RecoveryStrategy):
    """Fall back to the default value of a broken configuration key."""
    name = "configuration-fallback"
    categories = frozenset({ErrorCategory.CONFIGURATION})
    max_attempts = 1
    delay = 0.0

    def __init__(self, logger: Logger, defaults: Optional[Mapping[str, Any]] = None):
        self.logger = logger
        self.defaults = dict(defaults or {})

    async def execute(self, error: BaseError, attempt: int) -> RecoveryResult:
        config_key = error.details.get("config_key")
        self.logger.debug("Applying configuration fallback", {"config_key": config_key})

        details: Dict[str, Any] = {"config_key": config_key, "fallback_applied": True}
        if config_key in self.defaults:
            details["default_value"] = self.defaults[config_key]

        return RecoveryResult(
            success=True,
            attempts=attempt,
            strategy=self.name,
            message="Applied default configuration",
            details=details,
        )


def default_strategies(
    logger: Logger,
    reconnect: Optional[Callable[[BaseError, int], HookResult]] = None,
    fallback_models: Sequence[str] = DEFAULT_FALLBACK_MODELS,
    extract: Optional[Callable[[BaseError], HookResult]] = None,
    retry_operation: Optional[Callable[[BaseError, int], HookResult]] = None,
    rerun_step: Optional[Callable[[Optional[str], Optional[str], int], HookResult]] = None,
    config_defaults: Optional[Mapping[str, Any]] = None,
) -> List[RecoveryStrategy]:
    """
    Build the built-in strategies in registration order.

    Args:
        logger: Logger the strategies report through
        reconnect: Connection hook for ``connection-retry``
        fallback_models: Ordered model list for ``model-fallback``
        extract: Basic extraction hook for ``document-processing-fallback``
        retry_operation: File hook for ``file-system-retry``
        rerun_step: Step runner for ``workflow-step-retry``
        config_defaults: Default values for ``configuration-fallback``

    Returns:
        List of strategies
    """
    return [
        ConnectionRetryStrategy(logger, reconnect),
        ModelFallbackStrategy(logger, fallback_models),
        DocumentProcessingFallbackStrategy(logger, extract),
        FileSystemRetryStrategy(logger, retry_operation),
        WorkflowStepRetryStrategy(logger, rerun_step),
        ConfigurationFallbackStrategy(logger, config_defaults),
    ]
