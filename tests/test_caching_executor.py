"""
Test suite for CachingQueryExecutor with focus on concurrent access patterns.

Tests the caching layer's ability to:
1. Serve repeated searches from cache
2. Share one store request between concurrent identical searches
3. Keep cached responses safe from caller mutation
4. Never cache failures
"""

import asyncio
from typing import List

import pytest

from lineagetreelib.aio import (
    AsyncQueryExecutor,
    CachingQueryExecutor,
    InMemoryQueryExecutor,
    build_tree,
)
from lineagetreelib.config import Schema, TimeRange, TreeOptions


SCHEMA = Schema(id='id', parent='parent')
RANGE = TimeRange('a', 'b')


class MockSlowExecutor(AsyncQueryExecutor):
    """Mock executor that simulates a slow store with tracking."""

    def __init__(self, delay: float = 0.05, fail_times: int = 0):
        super().__init__()
        self.delay = delay
        self.fail_times = fail_times
        self.search_count = 0
        self.searched: List[List[str]] = []

    async def search_ancestry(self, nodes, time_range, index_patterns, schema):
        self.search_count += 1
        self.searched.append(list(nodes))
        await asyncio.sleep(self.delay)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise ConnectionError("store unavailable")
        return [{'id': node} for node in nodes]

    async def search_descendants(self, nodes, time_range, index_patterns, schema, limit):
        self.search_count += 1
        await asyncio.sleep(self.delay)
        return [{'id': f'{node}-child', 'parent': node} for node in nodes][:limit]


@pytest.mark.asyncio
async def test_repeated_search_hits_cache():
    base = MockSlowExecutor(delay=0)
    cached = CachingQueryExecutor(base)

    first = await cached.search_ancestry(['1'], RANGE, ['logs-*'], SCHEMA)
    second = await cached.search_ancestry(['1'], RANGE, ['logs-*'], SCHEMA)

    assert first == second == [{'id': '1'}]
    assert base.search_count == 1
    stats = cached.get_cache_stats()
    assert stats['cache_hits'] == 1
    assert stats['cache_misses'] == 1
    assert stats['hit_rate'] == 0.5


@pytest.mark.asyncio
async def test_key_includes_every_argument():
    base = MockSlowExecutor(delay=0)
    cached = CachingQueryExecutor(base)

    await cached.search_ancestry(['1'], RANGE, ['logs-*'], SCHEMA)
    await cached.search_ancestry(['1'], TimeRange('a', 'c'), ['logs-*'], SCHEMA)
    await cached.search_ancestry(['1'], RANGE, ['other-*'], SCHEMA)
    await cached.search_ancestry(['1'], RANGE, ['logs-*'], Schema(id='id', parent='ppid'))
    await cached.search_descendants(['1'], RANGE, ['logs-*'], SCHEMA, 5)
    await cached.search_descendants(['1'], RANGE, ['logs-*'], SCHEMA, 6)

    assert base.search_count == 6


@pytest.mark.asyncio
async def test_concurrent_searches_share_one_request():
    base = MockSlowExecutor(delay=0.05)
    cached = CachingQueryExecutor(base)

    results = await asyncio.gather(*[
        cached.search_ancestry(['1', '2'], RANGE, [], SCHEMA)
        for _ in range(5)
    ])

    assert base.search_count == 1
    assert all(result == [{'id': '1'}, {'id': '2'}] for result in results)
    assert cached.get_cache_stats()['concurrent_waits'] == 4


@pytest.mark.asyncio
async def test_cached_response_protected_from_mutation():
    base = MockSlowExecutor(delay=0)
    cached = CachingQueryExecutor(base)

    first = await cached.search_ancestry(['1'], RANGE, [], SCHEMA)
    first.append({'id': 'intruder'})
    second = await cached.search_ancestry(['1'], RANGE, [], SCHEMA)

    assert second == [{'id': '1'}]


@pytest.mark.asyncio
async def test_failures_are_not_cached():
    base = MockSlowExecutor(delay=0, fail_times=1)
    cached = CachingQueryExecutor(base)

    with pytest.raises(ConnectionError):
        await cached.search_ancestry(['1'], RANGE, [], SCHEMA)

    assert await cached.search_ancestry(['1'], RANGE, [], SCHEMA) == [{'id': '1'}]
    assert base.search_count == 2


@pytest.mark.asyncio
async def test_waiters_share_failure_of_in_flight_search():
    base = MockSlowExecutor(delay=0.05, fail_times=1)
    cached = CachingQueryExecutor(base)

    first, second = await asyncio.gather(
        cached.search_ancestry(['1'], RANGE, [], SCHEMA),
        cached.search_ancestry(['1'], RANGE, [], SCHEMA),
        return_exceptions=True,
    )

    assert isinstance(first, ConnectionError)
    assert isinstance(second, ConnectionError)
    assert base.search_count == 1
    assert cached.get_cache_stats()['cache_size'] == 0

    # The failure is not cached, so a later search reaches the store again
    assert await cached.search_ancestry(['1'], RANGE, [], SCHEMA) == [{'id': '1'}]
    assert base.search_count == 2


@pytest.mark.asyncio
async def test_clear_cache():
    base = MockSlowExecutor(delay=0)
    cached = CachingQueryExecutor(base, max_size=10, ttl=60)

    await cached.search_ancestry(['1'], RANGE, [], SCHEMA)
    cached.clear_cache()
    await cached.search_ancestry(['1'], RANGE, [], SCHEMA)

    assert base.search_count == 2
    stats = cached.get_cache_stats()
    assert stats['cache_size'] == 1
    assert stats['max_size'] == 10
    assert stats['ttl'] == 60


@pytest.mark.asyncio
async def test_capabilities_follow_base_executor():
    base = InMemoryQueryExecutor([], stats={})
    cached = CachingQueryExecutor(base)

    assert cached.supports_capability('search_stats')
    assert cached.supports_capability('caching')
    assert not CachingQueryExecutor(InMemoryQueryExecutor([])).supports_capability('search_stats')


@pytest.mark.asyncio
async def test_repeated_tree_builds_reuse_responses():
    records = [
        {'id': '0'},
        {'id': '1', 'parent': '0'},
        {'id': '2', 'parent': '1'},
    ]
    base = InMemoryQueryExecutor(records, stats={'1': {'total': 1, 'byCategory': {}}})
    cached = CachingQueryExecutor(base)
    options = TreeOptions(nodes=['1'], schema=SCHEMA, ancestors=3,
                          descendant_levels=2, descendants=10)

    first = await build_tree(options, cached)
    requests_after_first = base.request_count
    second = await build_tree(options, cached)

    assert [node.id for node in first] == [node.id for node in second] == ['1', '0', '2']
    assert second[0].stats.total == 1
    assert base.request_count == requests_after_first
