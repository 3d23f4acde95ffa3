"""Leaf detection for paginated descendant queries.

A descendant query returns a page of records that may span several
generations below the queried identifiers. The leaves of that page are
the records furthest from the queried identifiers; their children are
the ones not fetched yet, so they become the next frontier.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ...config import Schema
from .fields import get_ancestry_as_array, get_id_field


def _distance(ancestry: List[str], queried: Set[str]) -> Optional[int]:
    """Generations between a record and its nearest queried ancestor."""
    for index, ancestor in enumerate(ancestry):
        if ancestor in queried:
            return index + 1
    return None


def get_leaf_nodes(
    results: Iterable[Mapping[str, Any]],
    nodes: Sequence[str],
    schema: Schema
) -> List[str]:
    """Find the leaf identifiers of a fetched batch.

    Every identifier in a record's ancestry array has a descendant in
    the batch. A record's distance from the queried ``nodes`` is the
    position of the nearest queried identifier in its ancestry array.
    Records without an ancestry field fall back to ``[parent]``, so in
    that case the direct children of the queried nodes are the leaves.
    The records at the greatest distance are returned.

    The ancestry array has a fixed captured depth. A queried subtree
    that ends before that depth is assumed complete, so its deepest
    records are not reported even if the page limit cut it short.

    Args:
        results: Records returned by a descendant query
        nodes: Identifiers that were queried
        schema: Field mapping for the request

    Returns:
        Leaf identifiers in record order, without duplicates
    """
    queried = set(nodes)
    # distance -> ordered set of ids
    by_distance: Dict[int, Dict[str, None]] = {}
    largest = 0

    for record in results:
        node_id = get_id_field(record, schema)
        if node_id is None:
            continue

        distance = _distance(get_ancestry_as_array(record, schema), queried)
        if distance is None:
            continue

        by_distance.setdefault(distance, {})[node_id] = None
        largest = max(largest, distance)

    return list(by_distance.get(largest, {}))


# Public name used by callers that only need leaf detection
detect_leaves = get_leaf_nodes
