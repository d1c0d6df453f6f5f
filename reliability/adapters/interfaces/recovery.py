from abc import ABC, abstractmethod
from typing import Awaitable, Callable, FrozenSet, Iterable, Optional, Union

from reliability.domain.models.error import BaseError, ErrorCategory
from reliability.domain.models.report import RecoveryResult

StrategyOutcome = Union[RecoveryResult, Awaitable[RecoveryResult]]


class RecoveryStrategy(ABC):
    """
    Abstract base interface for recovery strategies.

    A strategy declares which errors it applies to through ``categories`` and
    ``codes``; an error matches if either set contains it. Strategies that need
    a computed rule override ``matches`` or use ``CallbackStrategy``.

    Attributes:
        name: Unique strategy name within a recovery manager
        categories: Error categories this strategy handles
        codes: Error codes this strategy handles
        max_attempts: Upper bound on attempts for one recovery run
        delay: Base backoff unit in seconds; attempt k >= 2 waits delay * 2 ** (k - 2)
    """
    name: str = ""
    categories: FrozenSet[ErrorCategory] = frozenset()
    codes: FrozenSet[str] = frozenset()
    max_attempts: int = 1
    delay: float = 0.0

    def matches(self, error: BaseError) -> bool:
        """
        Check if this strategy applies to an error.

        Args:
            error: The error being recovered

        Returns:
            bool: True if the category or code is declared by the strategy
        """
        return error.category in self.categories or error.code in self.codes

    @abstractmethod
    def execute(self, error: BaseError, attempt: int) -> StrategyOutcome:
        """
        Run one recovery attempt.

        Args:
            error: The error being recovered
            attempt: 1-based attempt number

        Returns:
            RecoveryResult, or an awaitable resolving to one
        """
        pass


class CallbackStrategy(RecoveryStrategy):
    """Strategy assembled from callables, for rules that cannot be declared up front."""

    def __init__(
        self,
        name: str,
        execute: Callable[[BaseError, int], StrategyOutcome],
        matcher: Optional[Callable[[BaseError], bool]] = None,
        categories: Iterable[ErrorCategory] = (),
        codes: Iterable[str] = (),
        max_attempts: int = 1,
        delay: float = 0.0
    ):
        self.name = name
        self.categories = frozenset(categories)
        self.codes = frozenset(codes)
        self.max_attempts = max_attempts
        self.delay = delay
        self._execute = execute
        self._matcher = matcher

    def matches(self, error: BaseError) -> bool:
        if self._matcher is not None:
            return self._matcher(error)
        return super().matches(error)

    def execute(self, error: BaseError, attempt: int) -> StrategyOutcome:
        return self._execute(error, attempt)
