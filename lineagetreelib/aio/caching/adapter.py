"""
Caching executor implementation for LineageTreeLib.

Provides a transparent caching layer that can wrap any query executor,
so repeated tree builds over the same origins and time range reuse
earlier store responses.
"""

import asyncio
import logging
from typing import Any, Dict, Hashable, List, Optional, Sequence, Set, Tuple

from cachetools import TTLCache

from ...config import Schema, TimeRange
from ..core import AsyncQueryExecutor, EventStats

logger = logging.getLogger(__name__)


class CachingQueryExecutor(AsyncQueryExecutor):
    """
    Optional caching layer for any query executor.

    Caches every search response keyed by the method and all of its
    arguments. Uses Future-based coordination so concurrent identical
    searches share one store request and its outcome. Failed searches are
    never cached and never retried.

    Example:
        base = MyStoreExecutor(client)
        cached = CachingQueryExecutor(base, max_size=50000, ttl=30.0)

        nodes = await build_tree(options, cached)
    """

    def __init__(
        self,
        base_executor: AsyncQueryExecutor,
        max_size: int = 10000,
        ttl: float = 300.0  # 5 minutes
    ):
        """
        Initialize caching executor.

        Args:
            base_executor: The underlying executor to wrap
            max_size: Maximum number of cached responses
            ttl: Time-to-live for cached responses in seconds
        """
        self._executor = base_executor
        super().__init__(max_concurrent=base_executor.max_concurrent)
        self._cache = TTLCache(maxsize=max_size, ttl=ttl)
        self._searches_in_progress: Dict[Hashable, asyncio.Future] = {}

        # Statistics
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    def _define_capabilities(self) -> Set[str]:
        return set(self._executor._capabilities) | {'caching'}

    @staticmethod
    def _make_key(method: str, nodes: Sequence[str], time_range: TimeRange,
                  index_patterns: Sequence[str], schema: Schema,
                  limit: Optional[int] = None) -> Tuple:
        return (method, tuple(nodes), time_range, tuple(index_patterns), schema, limit)

    async def _cached(self, key: Tuple, search) -> Any:
        """
        Serve a search from cache, an in-flight twin, or the base executor.

        This method:
        1. Waits for an identical search already in progress, sharing its
           response or its failure
        2. Checks the cache for an earlier response
        3. Performs the search if needed and caches its response
        """
        # 1. Check if search already in progress
        if key in self._searches_in_progress:
            self.concurrent_waits += 1
            future = self._searches_in_progress[key]
            try:
                return self._copy(await asyncio.shield(future))
            except asyncio.CancelledError:
                # Owner was cancelled, so search on our own
                if not future.cancelled():
                    raise
                logger.debug("shared search %s was cancelled, searching again", key[0])

        # 2. Check cache
        if key in self._cache:
            self.cache_hits += 1
            return self._copy(self._cache[key])

        # 3. Cache miss - need to search
        self.cache_misses += 1
        future = asyncio.get_running_loop().create_future()
        self._searches_in_progress[key] = future

        try:
            result = await search()
            self._cache[key] = result
            future.set_result(result)
            return self._copy(result)
        except BaseException as e:
            if isinstance(e, asyncio.CancelledError):
                future.cancel()
            else:
                future.set_exception(e)
                # Retrieved here so an unawaited future does not warn
                future.exception()
            raise
        finally:
            if self._searches_in_progress.get(key) is future:
                del self._searches_in_progress[key]

    @staticmethod
    def _copy(result: Any) -> Any:
        # Callers get their own container; cached responses stay intact
        if isinstance(result, dict):
            return dict(result)
        return list(result)

    async def search_ancestry(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> List[Any]:
        key = self._make_key('ancestry', nodes, time_range, index_patterns, schema)
        return await self._cached(
            key,
            lambda: self._executor.search_ancestry(nodes, time_range, index_patterns, schema),
        )

    async def search_descendants(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema,
        limit: int
    ) -> List[Any]:
        key = self._make_key('descendants', nodes, time_range, index_patterns, schema, limit)
        return await self._cached(
            key,
            lambda: self._executor.search_descendants(
                nodes, time_range, index_patterns, schema, limit
            ),
        )

    async def search_stats(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> Dict[str, EventStats]:
        key = self._make_key('stats', nodes, time_range, index_patterns, schema)
        return await self._cached(
            key,
            lambda: self._executor.search_stats(nodes, time_range, index_patterns, schema),
        )

    def get_cache_stats(self) -> dict:
        """
        Get cache statistics for monitoring and debugging.
        """
        total_requests = self.cache_hits + self.cache_misses
        hit_rate = self.cache_hits / total_requests if total_requests > 0 else 0

        return {
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'hit_rate': hit_rate,
            'concurrent_waits': self.concurrent_waits,
            'cache_size': len(self._cache),
            'max_size': self._cache.maxsize,
            'ttl': self._cache.ttl
        }

    def clear_cache(self) -> None:
        """
        Clear all cached responses.
        """
        self._cache.clear()
        self.cache_hits = 0
        self.cache_misses = 0
        self.concurrent_waits = 0

    async def close(self):
        """Close the wrapped executor."""
        await self._executor.close()
