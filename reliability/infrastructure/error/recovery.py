"""
Recovery orchestration.

Matches an error against registered strategies and drives each candidate
through bounded, exponentially backed-off attempts until one succeeds.
"""
import asyncio
import threading
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_exponential

from reliability.adapters.interfaces.recovery import RecoveryStrategy
from reliability.core.concurrency import maybe_await
from reliability.core.exceptions import DuplicateStrategyError
from reliability.domain.models.error import BaseError
from reliability.domain.models.report import RecoveryResult
from reliability.infrastructure.error.strategies import default_strategies
from reliability.infrastructure.logging.logger import Logger

NO_STRATEGY_MESSAGE = "No recovery strategy available for this error type"
ALL_FAILED_MESSAGE = "All recovery attempts failed"


class RecoveryManager:
    """
    Ordered registry of recovery strategies and the loop that runs them.

    Candidates are tried in registration order. Within one candidate,
    attempts run strictly one after another: attempt 1 immediately and
    attempt k >= 2 after ``strategy.delay * 2 ** (k - 2)`` seconds.
    """

    def __init__(
        self,
        logger: Logger,
        strategies: Optional[Iterable[RecoveryStrategy]] = None,
        register_builtins: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        attempt_timeout: Optional[float] = None
    ):
        """
        Initialize the recovery manager.

        Args:
            logger: Logger for recovery events
            strategies: Extra strategies, registered after the built-ins
            register_builtins: Seed the built-in strategies (without hooks)
            sleep: Coroutine function used for backoff waits
            attempt_timeout: Seconds before a single attempt counts as failed;
                None disables the limit
        """
        self.logger = logger
        self.sleep = sleep
        self.attempt_timeout = attempt_timeout
        self._strategies: List[RecoveryStrategy] = []
        self._lock = threading.RLock()

        if register_builtins:
            for strategy in default_strategies(logger):
                self.register_strategy(strategy)

        for strategy in strategies or ():
            self.register_strategy(strategy)

    def register_strategy(self, strategy: RecoveryStrategy) -> None:
        """
        Add a strategy at the end of the registry.

        Args:
            strategy: Strategy to register

        Raises:
            DuplicateStrategyError: If a strategy with the same name exists
        """
        with self._lock:
            if any(existing.name == strategy.name for existing in self._strategies):
                raise DuplicateStrategyError(strategy.name)
            self._strategies.append(strategy)

        self.logger.debug(f"Registered recovery strategy: {strategy.name}")

    def remove_strategy(self, name: str) -> bool:
        """Remove a strategy by name; returns whether it was registered."""
        with self._lock:
            for index, strategy in enumerate(self._strategies):
                if strategy.name == name:
                    del self._strategies[index]
                    self.logger.debug(f"Removed recovery strategy: {name}")
                    return True
        return False

    def get_strategies(self) -> List[str]:
        with self._lock:
            return [strategy.name for strategy in self._strategies]

    async def attempt_recovery(self, error: BaseError, max_attempts: int = 3) -> RecoveryResult:
        """
        Try to recover from an error.

        Args:
            error: The error to recover from
            max_attempts: Attempt cap per strategy; each strategy also applies
                its own ``max_attempts``

        Returns:
            RecoveryResult: The first successful result, or a failure
        """
        with self._lock:
            candidates = [strategy for strategy in self._strategies if strategy.matches(error)]

        if not candidates:
            self.logger.warn(
                "No recovery strategy found for error",
                {"code": error.code, "category": error.category.value}
            )
            return RecoveryResult(
                success=False,
                attempts=0,
                strategy="none",
                message=NO_STRATEGY_MESSAGE,
            )

        for strategy in candidates:
            limit = min(max_attempts, strategy.max_attempts)
            if limit < 1:
                continue

            self.logger.info(
                f"Attempting recovery with strategy: {strategy.name}",
                {"code": error.code, "max_attempts": limit}
            )

            result = await self._run_strategy(strategy, error, limit)
            if result.success:
                self.logger.info(
                    "Recovery successful",
                    {"strategy": strategy.name, "attempts": result.attempts, "code": error.code}
                )
                return result

        self.logger.error(
            ALL_FAILED_MESSAGE,
            {"code": error.code, "strategies": [strategy.name for strategy in candidates]}
        )
        return RecoveryResult(
            success=False,
            attempts=max(max_attempts, 0),
            strategy=candidates[0].name,
            message=ALL_FAILED_MESSAGE,
        )

    async def _run_strategy(self, strategy: RecoveryStrategy, error: BaseError, limit: int) -> RecoveryResult:
        attempt = 0

        async def next_attempt() -> RecoveryResult:
            nonlocal attempt
            attempt += 1
            return await self._run_attempt(strategy, error, attempt)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(limit),
            wait=wait_exponential(multiplier=strategy.delay, exp_base=2),
            retry=retry_if_result(lambda result: not result.success),
            sleep=self.sleep,
            before_sleep=self._log_backoff(strategy),
            retry_error_callback=lambda state: state.outcome.result(),
        )
        return await retrying(next_attempt)

    async def _run_attempt(self, strategy: RecoveryStrategy, error: BaseError, attempt: int) -> RecoveryResult:
        try:
            outcome = strategy.execute(error, attempt)
            if self.attempt_timeout is not None and asyncio.iscoroutine(outcome):
                result = await asyncio.wait_for(outcome, self.attempt_timeout)
            else:
                result = await maybe_await(outcome)
        except asyncio.TimeoutError:
            self.logger.warn(
                f"Recovery attempt {attempt} timed out",
                {"strategy": strategy.name, "timeout": self.attempt_timeout}
            )
            return RecoveryResult(
                success=False,
                attempts=attempt,
                strategy=strategy.name,
                message=f"Recovery attempt {attempt} timed out",
            )
        except Exception as e:
            self.logger.warn(
                f"Recovery attempt {attempt} failed",
                {"strategy": strategy.name, "error": str(e)}
            )
            return RecoveryResult(
                success=False,
                attempts=attempt,
                strategy=strategy.name,
                message=f"Recovery attempt {attempt} raised {type(e).__name__}: {e}",
            )

        if not isinstance(result, RecoveryResult):
            return RecoveryResult(
                success=False,
                attempts=attempt,
                strategy=strategy.name,
                message="Strategy returned no recovery result",
            )

        return result.model_copy(update={"attempts": attempt, "strategy": strategy.name})

    def _log_backoff(self, strategy: RecoveryStrategy) -> Callable[[RetryCallState], None]:
        def log_backoff(retry_state: RetryCallState) -> None:
            self.logger.debug(
                f"Waiting before retrying strategy {strategy.name}",
                {
                    "attempt": retry_state.attempt_number,
                    "delay_seconds": retry_state.next_action.sleep if retry_state.next_action else 0,
                }
            )
        return log_backoff
