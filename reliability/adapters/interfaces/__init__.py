"""
Interfaces package for the reliability core.

Abstract contracts that collaborators implement to plug behavior into the
error handling pipeline.
"""

from .recovery import CallbackStrategy, RecoveryStrategy, StrategyOutcome

__all__ = [
    'CallbackStrategy',
    'RecoveryStrategy',
    'StrategyOutcome',
]
