"""Test fixtures for LineageTreeLib consumers.

These fixtures provide scripted executors and record builders so that
code built on top of the tree build can be tested without an event
store.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from ..aio.core import AsyncQueryExecutor, EventStats
from ..config import Schema, TimeRange


def make_record(id: Optional[str] = None, parent: Optional[str] = None,
                ancestry: Optional[Sequence[str]] = None, **fields) -> Dict[str, Any]:
    """Build a record using the plain ``id``/``parent``/``ancestry`` fields.

    Example:
        make_record('2', '1', ancestry=['1', '0'])
        # {'id': '2', 'parent': '1', 'ancestry': ['1', '0']}
    """
    record: Dict[str, Any] = {}
    if ancestry is not None:
        record['ancestry'] = list(ancestry)
    if id is not None:
        record['id'] = id
    if parent is not None:
        record['parent'] = parent
    record.update(fields)
    return record


def zero_stats() -> Dict[str, Any]:
    """Statistics shape of a node the store has no events for."""
    return EventStats().to_dict()


class RecordingQueryExecutor(AsyncQueryExecutor):
    """Executor that replays scripted responses and records every call.

    Each search method consumes the next scripted response for that
    method. An exception in the script is raised instead of returned.
    Calling a method whose script is exhausted raises AssertionError, so
    a test can prove that no further query was issued.

    Example:
        executor = RecordingQueryExecutor(
            descendants=[level1, level2],
            ancestry=[RuntimeError('should not have called this')],
        )
        nodes = await build_tree(options, executor)
        assert len(executor.calls['search_descendants']) == 2
    """

    def __init__(
        self,
        ancestry: Optional[Sequence[Any]] = None,
        descendants: Optional[Sequence[Any]] = None,
        stats: Optional[Sequence[Any]] = None
    ):
        """Initialize with per-method response scripts.

        Args:
            ancestry: Responses for successive ``search_ancestry`` calls
            descendants: Responses for successive ``search_descendants`` calls
            stats: Responses for successive ``search_stats`` calls
                (None disables the statistics capability)
        """
        self._scripts: Dict[str, List[Any]] = {
            'search_ancestry': list(ancestry or []),
            'search_descendants': list(descendants or []),
            'search_stats': list(stats or []),
        }
        self._stats_enabled = stats is not None
        self.calls: Dict[str, List[Dict[str, Any]]] = {
            name: [] for name in self._scripts
        }
        super().__init__()

    def _define_capabilities(self) -> Set[str]:
        capabilities = super()._define_capabilities()
        if self._stats_enabled:
            capabilities.add('search_stats')
        return capabilities

    @property
    def call_count(self) -> int:
        """Total number of searches issued."""
        return sum(len(calls) for calls in self.calls.values())

    def _next(self, method: str, **arguments) -> Any:
        self.calls[method].append(arguments)
        script = self._scripts[method]
        if not script:
            raise AssertionError(f"unexpected call to {method}")
        response = script.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def search_ancestry(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> List[Mapping[str, Any]]:
        return list(self._next('search_ancestry', nodes=list(nodes)))

    async def search_descendants(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema,
        limit: int
    ) -> List[Mapping[str, Any]]:
        return list(self._next('search_descendants', nodes=list(nodes), limit=limit))

    async def search_stats(
        self,
        nodes: Sequence[str],
        time_range: TimeRange,
        index_patterns: Sequence[str],
        schema: Schema
    ) -> Dict[str, EventStats]:
        return dict(self._next('search_stats', nodes=list(nodes)))
