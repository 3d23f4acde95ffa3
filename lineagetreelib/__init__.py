"""LineageTreeLib - Bounded process lineage trees from flat event stores.

LineageTreeLib reconstructs the ancestors and descendants of one or more
origin events by issuing bounded queries against a remote event store
and merging the results into a deduplicated, statistics-annotated tree.

Usage:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from lineagetreelib.aio import build_tree, TreeOptions, Schema

    schema = Schema(id='process.entity_id', parent='process.parent.entity_id',
                    ancestry='process.Ext.ancestry')
    options = TreeOptions(nodes=['abc'], schema=schema, ancestors=20,
                          descendant_levels=20, descendants=1000)
    nodes = await build_tree(options, executor)
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from . import aio
from .config import Schema, TimeRange, TreeOptions

__all__ = [
    "__version__",
    "aio",
    "Schema",
    "TimeRange",
    "TreeOptions",
]
