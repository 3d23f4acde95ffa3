"""Async query executor abstraction.

Defines the capability the traversal uses to reach the event store.
Executors bridge between the generic lineage traversal and a concrete
store; production executors build and dispatch real queries, test
executors serve canned records.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence, Set

from ...config import Schema, TimeRange
from .node import EventStats

Record = Mapping[str, Any]


class AsyncQueryExecutor(ABC):
    """Abstract base class for async query executors.

    The traversal never constructs queries itself. It asks an executor
    for the lifecycle records of a set of identifiers, for a bounded
    page of their descendants, and for aggregate statistics.
    """

    def __init__(self, max_concurrent: int = 100):
        """Initialize executor with concurrency control.

        Args:
            max_concurrent: Maximum concurrent store requests
        """
        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self._capabilities = self._define_capabilities()

    @abstractmethod
    async def search_ancestry(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> List[Record]:
        """Fetch the lifecycle records of the given identifiers.

        Args:
            nodes: Identifiers whose own records are wanted
            time_range: Time window for the search
            index_patterns: Indices to search
            schema: Field mapping for the request

        Returns:
            Records in store order (empty when none exist)
        """
        pass

    @abstractmethod
    async def search_descendants(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema,
        limit: int
    ) -> List[Record]:
        """Fetch descendants of the given identifiers.

        When the schema names an ancestry field an executor may return
        several generations at once; otherwise it returns direct children.

        Args:
            nodes: Identifiers whose descendants are wanted
            time_range: Time window for the search
            index_patterns: Indices to search
            schema: Field mapping for the request
            limit: Maximum number of records to return

        Returns:
            At most ``limit`` records in store order
        """
        pass

    async def search_stats(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> Dict[str, EventStats]:
        """Fetch aggregate event statistics for the given identifiers.

        The default implementation knows no statistics, which yields
        zero stats for every node.

        Returns:
            Mapping of identifier to EventStats (missing ids mean zero)
        """
        return {}

    def supports_capability(self, capability: str) -> bool:
        """Check if executor supports a specific capability.

        Args:
            capability: Capability name

        Returns:
            True if capability is supported
        """
        return capability in self._capabilities

    def _define_capabilities(self) -> Set[str]:
        """Define executor capabilities.

        Override in subclasses to declare supported features.

        Returns:
            Set of capability names
        """
        return {
            'search_ancestry',
            'search_descendants',
        }

    async def get_stats(self) -> dict:
        """Get executor statistics.

        Returns:
            Dictionary of statistics (request count, cache hits, etc.)
        """
        return {
            'max_concurrent': self.max_concurrent,
            'available_permits': getattr(self.semaphore, '_value', None),
        }

    async def close(self):
        """Clean up executor resources.

        Override if executor needs cleanup (close connections, etc.)
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
