"""Async execution planning for lineage tree builds.

This module provides the AsyncTreePlan class that orchestrates the
ancestor and descendant traversals, merges their results and attaches
statistics.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Set

from .core import (
    AsyncQueryExecutor,
    AsyncLineageTraverser,
    AsyncAncestorTraverser,
    AsyncDescendantTraverser,
    AsyncNodeCollector,
    AsyncStatsCollector,
    LineageNode,
    get_id_field,
)
from ..config import TreeOptions

logger = logging.getLogger(__name__)


class AsyncTreePlan:
    """Orchestrates a lineage tree build with option validation.

    This class brings together the executor, the two directional
    traversers and the statistics collector to answer one tree request.
    The two directions are independent and run concurrently; within a
    direction every query waits for the previous one. One plan may serve
    several builds at once; each walks with its own traverser copies.

    Example:
        plan = AsyncTreePlan(executor)
        nodes = await plan.tree(options)
    """

    def __init__(
        self,
        executor: AsyncQueryExecutor,
        ancestor_traverser: Optional[AsyncLineageTraverser] = None,
        descendant_traverser: Optional[AsyncLineageTraverser] = None
    ):
        """Initialize execution plan.

        Args:
            executor: Capability used to reach the event store
            ancestor_traverser: Traverser for the upward direction
            descendant_traverser: Traverser for the downward direction
        """
        self.executor = executor
        self.ancestor_traverser = ancestor_traverser or AsyncAncestorTraverser()
        self.descendant_traverser = descendant_traverser or AsyncDescendantTraverser()
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'ancestors': 0,
            'descendants': 0,
            'nodes': 0,
            'queries': 0,
            'termination': {'ancestors': None, 'descendants': None},
        }

    def _create_collector(self, options: TreeOptions) -> AsyncNodeCollector:
        """Create the collector that turns records into nodes."""
        return AsyncStatsCollector(self.executor, options)

    async def tree(self, options: TreeOptions) -> List[LineageNode]:
        """Build the lineage tree for a request.

        Args:
            options: The tree request

        Returns:
            Ancestors first, then descendants, each with statistics

        Raises:
            ValueError: If the options are invalid
            asyncio.TimeoutError: If ``timeout_seconds`` elapses first
        """
        errors = options.validate()
        if errors:
            raise ValueError(f"Invalid tree options: {', '.join(errors)}")

        missing = self.missing_capabilities(options)
        if missing:
            raise ValueError(f"Executor lacks capabilities: {', '.join(missing)}")

        if not (options.wants_ancestors or options.wants_descendants):
            self.stats = self._empty_stats()
            return []

        if options.timeout_seconds is not None:
            return await asyncio.wait_for(self._build(options), options.timeout_seconds)
        return await self._build(options)

    async def _build(self, options: TreeOptions) -> List[LineageNode]:
        # Each build walks with its own traversers so concurrent builds on
        # one plan never share traversal state
        ancestor_traverser = copy.copy(self.ancestor_traverser)
        descendant_traverser = copy.copy(self.descendant_traverser)
        ancestors, descendants = await self._run_directions(
            options, ancestor_traverser, descendant_traverser
        )
        records = self._merge(options, ancestors, descendants)

        stats = self._empty_stats()
        stats['ancestors'] = len(ancestors)
        stats['descendants'] = len(descendants)
        stats['nodes'] = len(records)
        for direction, traverser in (
            ('ancestors', ancestor_traverser),
            ('descendants', descendant_traverser),
        ):
            traverser_stats = traverser.get_stats()
            stats['queries'] += traverser_stats['queries']
            stats['termination'][direction] = traverser_stats['termination']
        self.stats = stats

        logger.debug(
            "tree for %d origins: %d ancestors, %d descendants, %d queries",
            len(options.nodes), len(ancestors), len(descendants), stats['queries'],
        )
        collector = self._create_collector(options)
        return await collector.process(records)

    async def _collect(
        self,
        traverser: AsyncLineageTraverser,
        options: TreeOptions
    ) -> List[Mapping[str, Any]]:
        return [record async for record in traverser.traverse(options, self.executor)]

    async def _run_directions(
        self,
        options: TreeOptions,
        ancestor_traverser: AsyncLineageTraverser,
        descendant_traverser: AsyncLineageTraverser
    ):
        """Run both directions concurrently.

        If either direction fails or the caller is cancelled, the other
        one is cancelled and awaited before the error propagates.
        """
        tasks = [
            asyncio.ensure_future(self._collect(ancestor_traverser, options)),
            asyncio.ensure_future(self._collect(descendant_traverser, options)),
        ]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    @staticmethod
    def _merge(
        options: TreeOptions,
        ancestors: List[Mapping[str, Any]],
        descendants: List[Mapping[str, Any]]
    ) -> List[Mapping[str, Any]]:
        """Concatenate both directions, dropping repeated identifiers."""
        seen: Set[str] = set()
        merged = []
        for record in ancestors + descendants:
            node_id = get_id_field(record, options.schema)
            if node_id is not None:
                if node_id in seen:
                    continue
                seen.add(node_id)
            merged.append(record)
        return merged

    def get_stats(self) -> dict:
        """Get statistics of the most recently completed build.

        Returns:
            Dictionary of statistics
        """
        return {
            **self.stats,
            'termination': dict(self.stats['termination']),
        }

    def missing_capabilities(self, options: TreeOptions) -> List[str]:
        """List executor capabilities the request needs but lacks.

        Returns:
            List of missing capabilities (empty if all supported)
        """
        required = set()
        if options.wants_ancestors:
            required.add('search_ancestry')
        if options.wants_descendants:
            required.add('search_descendants')

        return sorted(
            capability for capability in required
            if not self.executor.supports_capability(capability)
        )
