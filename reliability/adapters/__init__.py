"""
Adapters package for the reliability core.

Contains the abstract interfaces external code implements to extend recovery.
"""

from . import interfaces

__all__ = [
    'interfaces',
]
