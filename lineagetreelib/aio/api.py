"""High-level async API for LineageTreeLib.

This module provides simple functions for the common lineage tree
operations. All functions use the structured modules underneath.
"""

from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..config import Schema, TreeOptions
from .core import AsyncQueryExecutor, LineageNode, get_leaf_nodes
from .planning import AsyncTreePlan


async def build_tree(
    options: TreeOptions,
    executor: AsyncQueryExecutor
) -> List[LineageNode]:
    """Build the lineage tree around the origins in ``options``.

    Returns an empty list without touching the executor when both
    directions are disabled or there are no origins. Executor errors
    propagate unchanged.

    Args:
        options: The tree request
        executor: Capability used to reach the event store

    Returns:
        Ancestors first (outward from the origins), then descendants in
        level order, each with statistics attached

    Example:
        >>> options = TreeOptions(nodes=['abc'], schema=schema, ancestors=5)
        >>> for node in await build_tree(options, executor):
        ...     print(node.id, node.stats.total)
    """
    return await AsyncTreePlan(executor).tree(options)


async def build_tree_response(
    options: TreeOptions,
    executor: AsyncQueryExecutor,
    include_identity: bool = False
) -> List[Dict[str, Any]]:
    """Build the lineage tree as plain dictionaries.

    Each entry has the shape ``{'data': record, 'stats': {'total': n,
    'byCategory': {...}}}``, ready to be serialized by a route handler.

    Args:
        options: The tree request
        executor: Capability used to reach the event store
        include_identity: Also include resolved id, parent and name

    Returns:
        List of node dictionaries in tree order
    """
    nodes = await build_tree(options, executor)
    return [node.to_dict(include_identity=include_identity) for node in nodes]


def detect_leaves(
    results: Iterable[Mapping[str, Any]],
    nodes: Sequence[str],
    schema: Schema
) -> List[str]:
    """Find the leaf identifiers of a descendant query page.

    Args:
        results: Records returned by a descendant query
        nodes: Identifiers that were queried
        schema: Field mapping for the request

    Returns:
        Identifiers whose children have not been fetched yet
    """
    return get_leaf_nodes(results, nodes, schema)
