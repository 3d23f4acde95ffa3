"""Async executors for various event stores.

This module contains executors that bridge specific data sources to the
generic lineage query interface.
"""

from .memory import InMemoryQueryExecutor

__all__ = [
    'InMemoryQueryExecutor',
]
