"""Core abstractions for async lineage traversal.

This module defines the fundamental pieces of a lineage tree build:
the executor capability, field resolution, leaf detection, the two
directional traversers and the statistics collector.
"""

from .node import EventStats, LineageNode
from .adapter import AsyncQueryExecutor
from .fields import (
    get_field,
    get_id_field,
    get_parent_field,
    get_name_field,
    get_ancestry_field,
    get_ancestry_as_array,
)
from .leaves import get_leaf_nodes, detect_leaves
from .traverser import (
    AsyncLineageTraverser,
    AsyncAncestorTraverser,
    AsyncDescendantTraverser,
    TraversalState,
    TraversalPhase,
    TerminationReason,
)
from .collector import (
    AsyncNodeCollector,
    AsyncStatsCollector,
)

__all__ = [
    # Nodes
    'EventStats',
    'LineageNode',
    # Executor
    'AsyncQueryExecutor',
    # Fields
    'get_field',
    'get_id_field',
    'get_parent_field',
    'get_name_field',
    'get_ancestry_field',
    'get_ancestry_as_array',
    # Leaves
    'get_leaf_nodes',
    'detect_leaves',
    # Traversers
    'AsyncLineageTraverser',
    'AsyncAncestorTraverser',
    'AsyncDescendantTraverser',
    'TraversalState',
    'TraversalPhase',
    'TerminationReason',
    # Collectors
    'AsyncNodeCollector',
    'AsyncStatsCollector',
]
