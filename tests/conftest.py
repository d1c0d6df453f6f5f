"""
Shared fixtures for the reliability test suite
"""
from typing import List

import pytest

from reliability.domain.models import ErrorContext
from reliability.infrastructure.error.recovery import RecoveryManager
from reliability.infrastructure.logging import Logger, create_test_logger
from reliability.infrastructure.logging.transports import MemoryTransport


class RecordingSleep:
    """Async sleep stand-in that records requested delays without waiting"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def logger() -> Logger:
    """DEBUG logger writing only to memory"""
    return create_test_logger()


@pytest.fixture
def memory(logger: Logger) -> MemoryTransport:
    """The memory transport behind the test logger"""
    return logger.get_transport("memory")


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def recovery_manager(logger: Logger, sleep: RecordingSleep) -> RecoveryManager:
    """Recovery manager with no strategies and instant backoff"""
    return RecoveryManager(logger, register_builtins=False, sleep=sleep)


@pytest.fixture
def error_context() -> ErrorContext:
    return ErrorContext(
        operation="analyze_document",
        component="document-service",
        user_id="user-1",
        session_id="session-1",
        request_id="req-1234567890abcdef",
    )
