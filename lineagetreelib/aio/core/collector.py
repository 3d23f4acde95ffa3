"""Async node collectors for lineage traversal.

Collectors turn the raw records produced by a traversal into tree
nodes. The statistics collector attaches aggregate event counts to
every node before the tree is handed back to the caller.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Union

from ...config import TreeOptions
from .adapter import AsyncQueryExecutor
from .fields import get_id_field
from .node import EventStats, LineageNode

logger = logging.getLogger(__name__)


class AsyncNodeCollector(ABC):
    """Abstract base class for async node collectors.

    Collectors process records after traversal to build nodes.
    They can maintain state and aggregate data.
    """

    def __init__(self):
        """Initialize collector with empty state."""
        self.reset()

    @abstractmethod
    async def collect(self, record: Mapping[str, Any]) -> Any:
        """Collect data from a single record.

        Args:
            record: Record to collect from

        Returns:
            Collected data (type depends on collector)
        """
        pass

    @abstractmethod
    def reset(self):
        """Reset collector state.

        Called before processing a new tree.
        """
        pass

    @abstractmethod
    def get_result(self) -> Any:
        """Get final collected result."""
        pass

    async def prepare(self, records: List[Mapping[str, Any]]) -> None:
        """Hook called with the whole tree before any record is collected."""
        pass

    async def process(self, records: Iterable[Mapping[str, Any]]) -> Any:
        """Process every record of a tree.

        Args:
            records: Records in tree order

        Returns:
            Final collected result
        """
        self.reset()
        records = list(records)
        await self.prepare(records)
        for record in records:
            await self.collect(record)
        return self.get_result()


class AsyncStatsCollector(AsyncNodeCollector):
    """Builds LineageNodes with aggregate event statistics attached.

    Statistics for the whole tree are fetched with one executor call.
    Nodes the executor reports nothing for get zero stats. An empty tree
    issues no call at all.
    """

    def __init__(self, executor: AsyncQueryExecutor, options: TreeOptions):
        """Initialize statistics collector.

        Args:
            executor: Capability providing ``search_stats``
            options: The tree request (schema, time range, indices)
        """
        self.executor = executor
        self.options = options
        super().__init__()

    def reset(self):
        """Reset collected nodes and statistics."""
        self.nodes: List[LineageNode] = []
        self.event_stats: Dict[str, EventStats] = {}

    async def prepare(self, records: List[Mapping[str, Any]]) -> None:
        """Fetch statistics for every identified record."""
        ids = []
        for record in records:
            node_id = get_id_field(record, self.options.schema)
            if node_id is not None:
                ids.append(node_id)

        if not ids or not self.executor.supports_capability('search_stats'):
            return

        raw = await self.executor.search_stats(
            ids,
            self.options.time_range,
            self.options.index_patterns,
            self.options.schema,
        )
        self.event_stats = {
            node_id: self._coerce(stats) for node_id, stats in (raw or {}).items()
        }
        logger.debug("attached statistics for %d of %d nodes", len(self.event_stats), len(ids))

    @staticmethod
    def _coerce(stats: Union[EventStats, Mapping[str, Any]]) -> EventStats:
        if isinstance(stats, EventStats):
            return stats
        return EventStats.from_dict(stats)

    async def collect(self, record: Mapping[str, Any]) -> LineageNode:
        """Build the node for a record.

        Args:
            record: Record to collect from

        Returns:
            LineageNode with statistics attached
        """
        node = LineageNode.from_record(record, self.options.schema)
        if node.id is not None and node.id in self.event_stats:
            node.stats = self.event_stats[node.id]
        self.nodes.append(node)
        return node

    def get_result(self) -> List[LineageNode]:
        """Get collected nodes in tree order."""
        return self.nodes
