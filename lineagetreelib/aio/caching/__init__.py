"""
Caching layer for LineageTreeLib - Optional performance optimization.

This module provides opt-in caching of executor responses, so repeated
tree builds for the same origins avoid hitting the event store again.
"""

from .adapter import CachingQueryExecutor

__all__ = [
    'CachingQueryExecutor',
]
