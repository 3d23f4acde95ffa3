"""Asynchronous implementation of LineageTreeLib.

This package contains native async/await implementations of the lineage
tree build. Every store request goes through an injected executor and
can be cancelled by the caller.
"""

# Core abstractions
from .core import (
    AsyncQueryExecutor,
    AsyncLineageTraverser,
    AsyncAncestorTraverser,
    AsyncDescendantTraverser,
    AsyncNodeCollector,
    AsyncStatsCollector,
    EventStats,
    LineageNode,
    TraversalState,
    TerminationReason,
    get_leaf_nodes,
)

# Executors
from .adapters import InMemoryQueryExecutor

# Caching
from .caching import CachingQueryExecutor

# Error handling
from .error_handling import ErrorHandlingExecutor, create_resilient_executor
from .error_policies import (
    ErrorPolicy,
    FailFastPolicy,
    ContinueOnErrorsPolicy,
    CollectErrorsPolicy,
    ThresholdPolicy,
)

# Planning and orchestration
from .planning import AsyncTreePlan

# High-level API
from .api import (
    build_tree,
    build_tree_response,
    detect_leaves,
)

# Configuration (re-exported from the package root)
from ..config import (
    Schema,
    TimeRange,
    TreeOptions,
)

__all__ = [
    # Core abstractions
    'AsyncQueryExecutor',
    'AsyncLineageTraverser',
    'AsyncAncestorTraverser',
    'AsyncDescendantTraverser',
    'AsyncNodeCollector',
    'AsyncStatsCollector',
    'EventStats',
    'LineageNode',
    'TraversalState',
    'TerminationReason',
    'get_leaf_nodes',
    # Executors
    'InMemoryQueryExecutor',
    'CachingQueryExecutor',
    'ErrorHandlingExecutor',
    'create_resilient_executor',
    # Error policies
    'ErrorPolicy',
    'FailFastPolicy',
    'ContinueOnErrorsPolicy',
    'CollectErrorsPolicy',
    'ThresholdPolicy',
    # Planning
    'AsyncTreePlan',
    # Configuration
    'Schema',
    'TimeRange',
    'TreeOptions',
    # High-level API
    'build_tree',
    'build_tree_response',
    'detect_leaves',
]
