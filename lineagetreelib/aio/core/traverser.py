"""Async lineage traversal strategies.

Implements the two breadth-first expansions of a lineage tree: walking
up from the origins through their ancestors, and walking down through
their descendants page by page. Both traversers stream newly seen
records as AsyncIterators, level by level, in the order the executor
returned them.

Each level depends on the previous one, so a single traversal never
fans out across levels. Termination is decided in one place, by
``TraversalState.should_continue``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Set

from ...config import TreeOptions
from .adapter import AsyncQueryExecutor
from .fields import get_ancestry_as_array, get_id_field
from .leaves import get_leaf_nodes

logger = logging.getLogger(__name__)


class TraversalPhase(Enum):
    """Lifecycle of a single directional traversal."""
    EXPANDING = "expanding"
    TERMINATED = "terminated"


class TerminationReason(Enum):
    """Why a directional traversal stopped."""
    DISABLED = "disabled"                      # Options turned the direction off
    EMPTY_RESULT = "empty_result"              # Store returned nothing
    LEVEL_LIMIT = "level_limit"                # Requested depth reached
    NODE_LIMIT = "node_limit"                  # Requested node count reached
    FRONTIER_EXHAUSTED = "frontier_exhausted"  # Nothing left to query


@dataclass
class TraversalState:
    """Mutable state of one directional traversal.

    Attributes:
        frontier: Identifiers to query in the next iteration
        levels_left: Remaining depth budget
        nodes_left: Remaining record budget (None means unbounded)
        last_result_size: Number of records returned by the last query
        queries: Number of queries issued so far
        phase: EXPANDING until a termination condition holds
        reason: The condition that ended the traversal
    """

    frontier: List[str]
    levels_left: int
    nodes_left: Optional[int] = None
    last_result_size: Optional[int] = None
    queries: int = 0
    phase: TraversalPhase = TraversalPhase.EXPANDING
    reason: Optional[TerminationReason] = None

    def terminate(self, reason: TerminationReason) -> None:
        self.phase = TraversalPhase.TERMINATED
        self.reason = reason

    def _termination_reason(self) -> Optional[TerminationReason]:
        if self.last_result_size == 0:
            return TerminationReason.EMPTY_RESULT
        if self.levels_left <= 0:
            return TerminationReason.LEVEL_LIMIT
        if self.nodes_left is not None and self.nodes_left <= 0:
            return TerminationReason.NODE_LIMIT
        if not self.frontier:
            return TerminationReason.FRONTIER_EXHAUSTED
        return None

    def should_continue(self) -> bool:
        """Evaluate the continuation predicate once per iteration.

        Returns:
            True if another query should be issued
        """
        if self.phase is TraversalPhase.TERMINATED:
            return False

        reason = self._termination_reason()
        if reason is not None:
            self.terminate(reason)
            return False
        return True

    def advance(self, results_size: int, frontier: List[str]) -> None:
        """Record the outcome of one query."""
        self.queries += 1
        self.last_result_size = results_size
        self.frontier = frontier


class AsyncLineageTraverser(ABC):
    """Abstract base class for directional lineage traversers.

    A traverser instance keeps the state of its most recent traversal
    for inspection; the state itself is rebuilt on every call.
    """

    def __init__(self):
        self.state: Optional[TraversalState] = None

    @abstractmethod
    async def traverse(
        self,
        options: TreeOptions,
        executor: AsyncQueryExecutor
    ) -> AsyncIterator[Mapping[str, Any]]:
        """Traverse from the origins in ``options``.

        Args:
            options: The tree request
            executor: Capability used to reach the event store

        Yields:
            Records not seen before in this traversal, in level order
        """
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics of the last traversal.

        Returns:
            Dictionary with query count and termination reason
        """
        if self.state is None:
            return {'queries': 0, 'termination': None}
        return {
            'queries': self.state.queries,
            'termination': self.state.reason.value if self.state.reason else None,
        }

    @staticmethod
    def _unseen(
        results: List[Mapping[str, Any]],
        options: TreeOptions,
        visited: Set[str]
    ) -> List[Mapping[str, Any]]:
        """Filter out records whose identifier was already yielded.

        Records without an identifier cannot be matched and are kept.
        """
        fresh = []
        for record in results:
            node_id = get_id_field(record, options.schema)
            if node_id is not None:
                if node_id in visited:
                    continue
                visited.add(node_id)
            fresh.append(record)
        return fresh


class AsyncAncestorTraverser(AsyncLineageTraverser):
    """Walks from the origins towards the root.

    Each query returns the lifecycle records of the frontier. Every
    frontier id carries its depth above the origins (origins are depth
    0). A record answering an id at depth ``d`` places the entries of its
    ancestry array at depths ``d + 1``, ``d + 2`` and so on, truncated so
    no entry lands beyond the requested levels. One query can therefore
    cover several levels, and several origins share each level. Records
    without an ancestry array advance one level through their parent.
    """

    async def traverse(
        self,
        options: TreeOptions,
        executor: AsyncQueryExecutor
    ) -> AsyncIterator[Mapping[str, Any]]:
        """Traverse ancestors level by level."""
        state = TraversalState(
            frontier=list(options.nodes),
            levels_left=options.ancestors,
        )
        self.state = state
        if not options.wants_ancestors:
            state.terminate(TerminationReason.DISABLED)
            return

        visited: Set[str] = set()
        depths: Dict[str, int] = {node: 0 for node in state.frontier}
        levels_seen: Set[int] = set()
        queried: Set[str] = set()

        while state.should_continue():
            queried.update(state.frontier)
            results = list(await executor.search_ancestry(
                state.frontier,
                options.time_range,
                options.index_patterns,
                options.schema,
            ))

            # Records the store returns unasked for sit at the shallowest queried depth
            default_depth = min(depths[node] for node in state.frontier)
            fresh = self._unseen(results, options, visited)
            frontier: Dict[str, None] = {}
            for record in fresh:
                node_id = get_id_field(record, options.schema)
                depth = depths.get(node_id, default_depth)
                levels_seen.add(depth)

                reach = max(options.ancestors - 1 - depth, 0)
                ancestry = get_ancestry_as_array(record, options.schema)[:reach]
                for offset, ancestor in enumerate(ancestry):
                    if ancestor in visited or ancestor in queried:
                        continue
                    ancestor_depth = depth + 1 + offset
                    depths[ancestor] = min(depths.get(ancestor, ancestor_depth), ancestor_depth)
                    frontier[ancestor] = None

            state.levels_left = options.ancestors - len(levels_seen)

            logger.debug(
                "ancestor query %d: %d frontier ids, %d results, %d levels left",
                state.queries + 1, len(state.frontier), len(results), state.levels_left,
            )
            state.advance(len(results), list(frontier))

            for record in fresh:
                yield record

        logger.debug("ancestor traversal stopped: %s", state.reason.value)


class AsyncDescendantTraverser(AsyncLineageTraverser):
    """Walks from the origins towards the leaves.

    Each query asks for descendants of the frontier, capped at the
    remaining record budget. The leaves of the returned page become the
    next frontier; with ancestry arrays a page may cover several
    generations.
    """

    async def traverse(
        self,
        options: TreeOptions,
        executor: AsyncQueryExecutor
    ) -> AsyncIterator[Mapping[str, Any]]:
        """Traverse descendants page by page."""
        state = TraversalState(
            frontier=list(options.nodes),
            levels_left=options.descendant_levels,
            nodes_left=options.descendants,
        )
        self.state = state
        if not options.wants_descendants:
            state.terminate(TerminationReason.DISABLED)
            return

        visited: Set[str] = set()
        queried: Set[str] = set()

        while state.should_continue():
            limit = state.nodes_left
            queried.update(state.frontier)
            results = list(await executor.search_descendants(
                state.frontier,
                options.time_range,
                options.index_patterns,
                options.schema,
                limit,
            ))[:limit]

            state.levels_left -= 1
            state.nodes_left -= len(results)
            fresh = self._unseen(results, options, visited)
            leaves = get_leaf_nodes(results, state.frontier, options.schema)
            frontier = [leaf for leaf in leaves if leaf not in queried]

            logger.debug(
                "descendant query %d: %d frontier ids, limit %d, %d results, %d leaves",
                state.queries + 1, len(state.frontier), limit, len(results), len(frontier),
            )
            state.advance(len(results), frontier)

            for record in fresh:
                yield record

        logger.debug("descendant traversal stopped: %s", state.reason.value)
