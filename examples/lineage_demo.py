#!/usr/bin/env python3
"""
Lineage tree example showing how LineageTreeLib rebuilds a process tree.

This example demonstrates:
- Building a tree around one process from an in-memory event set
- Caching repeated store requests
- Reading the per-node event statistics
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from lineagetreelib.aio import (
    AsyncTreePlan,
    CachingQueryExecutor,
    InMemoryQueryExecutor,
)
from lineagetreelib.config import Schema, TreeOptions


SCHEMA = Schema(
    id='process.entity_id',
    parent='process.parent.entity_id',
    ancestry='process.Ext.ancestry',
    name='process.name',
)

EVENTS = [
    {'process': {'entity_id': 'init', 'name': 'systemd'}},
    {'process': {'entity_id': 'sshd', 'name': 'sshd',
                 'parent': {'entity_id': 'init'}, 'Ext': {'ancestry': ['init']}}},
    {'process': {'entity_id': 'bash', 'name': 'bash',
                 'parent': {'entity_id': 'sshd'}, 'Ext': {'ancestry': ['sshd', 'init']}}},
    {'process': {'entity_id': 'curl', 'name': 'curl',
                 'parent': {'entity_id': 'bash'}, 'Ext': {'ancestry': ['bash', 'sshd']}}},
    {'process': {'entity_id': 'tar', 'name': 'tar',
                 'parent': {'entity_id': 'bash'}, 'Ext': {'ancestry': ['bash', 'sshd']}}},
    {'process': {'entity_id': 'gzip', 'name': 'gzip',
                 'parent': {'entity_id': 'tar'}, 'Ext': {'ancestry': ['tar', 'bash']}}},
]

STATS = {
    'bash': {'total': 12, 'byCategory': {'file': 9, 'network': 3}},
    'curl': {'total': 4, 'byCategory': {'network': 4}},
}


async def main():
    """Build the tree around the shell process twice."""
    origin = sys.argv[1] if len(sys.argv) > 1 else 'bash'

    store = InMemoryQueryExecutor(EVENTS, stats=STATS, latency=0.01)
    executor = CachingQueryExecutor(store)
    plan = AsyncTreePlan(executor)
    options = TreeOptions(
        nodes=[origin],
        schema=SCHEMA,
        ancestors=10,
        descendant_levels=10,
        descendants=100,
    )

    print(f"Lineage of: {origin}")
    print("-" * 50)

    for node in await plan.tree(options):
        marker = '*' if node.id == origin else ' '
        print(f"{marker} {node.name:<8} parent={node.parent or '-':<6} events={node.stats.total}")

    stats = plan.get_stats()
    print(f"\nQueries: {stats['queries']}")
    print(f"Stopped: {stats['termination']}")

    # The second build is served entirely from the cache
    await plan.tree(options)
    cache = executor.get_cache_stats()
    print(f"\nStore requests: {store.request_count}")
    print(f"Cache hit rate: {cache['hit_rate']:.0%}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("LineageTreeLib - Process Lineage Example")
    print("=" * 50)
    asyncio.run(main())
