"""In-memory query executor for lineage trees.

Serves lineage queries from a list of event records held in memory.
Useful for tests, examples and for replaying a captured event set
without a live store.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from ...config import Schema, TimeRange
from ..core import AsyncQueryExecutor, EventStats
from ..core.fields import (
    get_ancestry_field,
    get_field,
    get_id_field,
    get_parent_field,
)

Record = Mapping[str, Any]


class InMemoryQueryExecutor(AsyncQueryExecutor):
    """Query executor over an in-memory event list.

    Query semantics follow the event store:

    - ancestry search returns the records whose own id is queried
    - descendant search matches the ancestry array when the schema has
      one (several generations per call, closest generation first) and
      the parent field otherwise (direct children only)
    - every search keeps store order within a generation

    Example:
        executor = InMemoryQueryExecutor(records, stats={'1': {'total': 3}})
        nodes = await build_tree(options, executor)
    """

    def __init__(
        self,
        records: Sequence[Record],
        stats: Optional[Mapping[str, Union[EventStats, Mapping[str, Any]]]] = None,
        timestamp_field: Optional[str] = None,
        max_concurrent: int = 100,
        latency: float = 0.0
    ):
        """Initialize in-memory executor.

        Args:
            records: Event records in store order
            stats: Aggregate statistics by node id (None disables stats)
            timestamp_field: Field compared against the request time range
            max_concurrent: Maximum concurrent searches
            latency: Seconds each search sleeps to simulate a remote store
        """
        self.records = list(records)
        self.event_stats = dict(stats) if stats is not None else None
        self.timestamp_field = timestamp_field
        self.latency = latency
        self.request_count = 0
        super().__init__(max_concurrent=max_concurrent)

    def _define_capabilities(self) -> Set[str]:
        capabilities = super()._define_capabilities()
        capabilities.add('time_range')
        if self.event_stats is not None:
            capabilities.add('search_stats')
        return capabilities

    async def _enter(self) -> None:
        self.request_count += 1
        # Yield control like a remote call would
        await asyncio.sleep(self.latency)

    def _in_range(self, record: Record, time_range: TimeRange) -> bool:
        if not self.timestamp_field:
            return True
        value = get_field(record, self.timestamp_field)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            return False
        value = str(value)
        if time_range.start and value < time_range.start:
            return False
        if time_range.end and value > time_range.end:
            return False
        return True

    async def search_ancestry(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> List[Record]:
        """Return the records whose own id is in ``nodes``."""
        async with self.semaphore:
            await self._enter()
            wanted = set(nodes)
            return [
                record for record in self.records
                if get_id_field(record, schema) in wanted
                and self._in_range(record, time_range)
            ]

    async def search_descendants(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema,
        limit: int
    ) -> List[Record]:
        """Return up to ``limit`` descendants of ``nodes``."""
        async with self.semaphore:
            await self._enter()
            if limit <= 0:
                return []

            wanted = set(nodes)
            matches: List[Tuple[int, int, Record]] = []
            for position, record in enumerate(self.records):
                if get_id_field(record, schema) is None:
                    continue
                if not self._in_range(record, time_range):
                    continue
                distance = self._distance(record, wanted, schema)
                if distance is not None:
                    matches.append((distance, position, record))

            matches.sort(key=lambda match: (match[0], match[1]))
            return [record for _, _, record in matches[:limit]]

    @staticmethod
    def _distance(record: Record, wanted: Set[str], schema: Schema) -> Optional[int]:
        """Generations between a record and the nearest queried ancestor."""
        if schema.ancestry:
            for index, ancestor in enumerate(get_ancestry_field(record, schema)):
                if ancestor in wanted:
                    return index + 1
            return None

        if get_parent_field(record, schema) in wanted:
            return 1
        return None

    async def search_stats(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> Dict[str, EventStats]:
        """Return the configured statistics for ``nodes``."""
        async with self.semaphore:
            await self._enter()
            if not self.event_stats:
                return {}
            result = {}
            for node_id in nodes:
                stats = self.event_stats.get(node_id)
                if stats is None:
                    continue
                if not isinstance(stats, EventStats):
                    stats = EventStats.from_dict(stats)
                result[node_id] = stats
            return result

    async def get_stats(self) -> dict:
        """Get executor statistics including the request count."""
        stats = await super().get_stats()
        stats['requests'] = self.request_count
        stats['records'] = len(self.records)
        return stats
