"""Lineage tree node abstraction.

A node pairs an opaque event record with the aggregate event statistics
attached to it after traversal. Identity fields are resolved once,
through the request's schema, when the node is built.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ...config import Schema
from .fields import get_id_field, get_name_field, get_parent_field


@dataclass
class EventStats:
    """Aggregate event counts for one node."""

    total: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'EventStats':
        """Build stats from the wire shape ``{total, byCategory}``."""
        return cls(
            total=int(data.get('total', 0)),
            by_category=dict(data.get('byCategory', {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'total': self.total, 'byCategory': dict(self.by_category)}


@dataclass
class LineageNode:
    """A node of the reconstructed lineage tree.

    Attributes:
        data: The raw event record as returned by the executor
        stats: Aggregate event statistics for the node
        id: Identifier resolved through the schema (None if missing)
        parent: Parent identifier resolved through the schema
        name: Display name resolved through the schema
    """

    data: Mapping[str, Any]
    stats: EventStats = field(default_factory=EventStats)
    id: Optional[str] = None
    parent: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        schema: Schema,
        stats: Optional[EventStats] = None
    ) -> 'LineageNode':
        """Create a node from a record, resolving its identity fields.

        Args:
            record: Event record
            schema: Field mapping for the request
            stats: Statistics to attach (zero stats if None)

        Returns:
            New LineageNode
        """
        return cls(
            data=record,
            stats=stats if stats is not None else EventStats(),
            id=get_id_field(record, schema),
            parent=get_parent_field(record, schema),
            name=get_name_field(record, schema),
        )

    def is_root(self) -> bool:
        """True when the record names no parent."""
        return self.parent is None

    def to_dict(self, include_identity: bool = False) -> Dict[str, Any]:
        """Convert to the response shape ``{data, stats}``.

        Args:
            include_identity: Also include the resolved id, parent and name

        Returns:
            Dictionary representation of the node
        """
        result: Dict[str, Any] = {}
        if include_identity:
            result['id'] = self.id
            result['parent'] = self.parent
            result['name'] = self.name
        result['data'] = self.data
        result['stats'] = self.stats.to_dict()
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, parent={self.parent!r})"
