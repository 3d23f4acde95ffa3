"""Configuration system for LineageTreeLib.

This module defines how callers describe a lineage tree request: which
records to start from, how far to walk in each direction, and how the
fields of the opaque event records map onto tree roles.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Schema:
    """Maps tree roles to field names in the event records.

    An empty field name never matches, so every record is treated as
    missing that role.
    """

    id: str                         # Field holding the node's own identifier
    parent: str                     # Field holding the direct parent identifier
    ancestry: Optional[str] = None  # Ancestor identifiers, closest first
    name: Optional[str] = None      # Human readable name for the node


@dataclass(frozen=True)
class TimeRange:
    """Time window forwarded to the query executor untouched."""

    start: str = ''
    end: str = ''


@dataclass
class TreeOptions:
    """Complete description of a lineage tree request.

    This is the primary way callers specify what they want from a
    traversal. The plan validates it before issuing any query.
    """

    # Origin identifiers, order preserved
    nodes: Sequence[str]

    # Field mapping
    schema: Schema

    # Ancestor direction
    ancestors: int = 0              # Levels of ancestors to retrieve

    # Descendant direction
    descendant_levels: int = 0      # Levels of descendants to retrieve
    descendants: int = 0            # Maximum number of descendant records

    # Passed through to the executor
    time_range: TimeRange = field(default_factory=TimeRange)
    index_patterns: Sequence[str] = field(default_factory=list)

    # Bound on the whole operation
    timeout_seconds: Optional[float] = None

    def __post_init__(self):
        # Collapse duplicate origins so a frontier never repeats an id.
        # A bare string is left for validate() to reject.
        if not isinstance(self.nodes, str):
            self.nodes = list(dict.fromkeys(self.nodes))
        self.index_patterns = list(self.index_patterns)

    # Convenience constructors for common requests

    @classmethod
    def ancestors_only(
        cls,
        nodes: Sequence[str],
        schema: Schema,
        levels: int,
        **kwargs
    ) -> 'TreeOptions':
        """Create options that only walk towards the root.

        Args:
            nodes: Origin identifiers
            schema: Field mapping
            levels: Number of ancestor levels to retrieve

        Returns:
            TreeOptions with the descendant direction disabled
        """
        return cls(nodes=nodes, schema=schema, ancestors=levels, **kwargs)

    @classmethod
    def descendants_only(
        cls,
        nodes: Sequence[str],
        schema: Schema,
        levels: int,
        limit: int,
        **kwargs
    ) -> 'TreeOptions':
        """Create options that only walk towards the leaves.

        Args:
            nodes: Origin identifiers
            schema: Field mapping
            levels: Number of descendant levels to retrieve
            limit: Maximum number of descendant records

        Returns:
            TreeOptions with the ancestor direction disabled
        """
        return cls(
            nodes=nodes,
            schema=schema,
            descendant_levels=levels,
            descendants=limit,
            **kwargs
        )

    @property
    def wants_ancestors(self) -> bool:
        """True when the ancestor direction would issue any query."""
        return self.ancestors > 0 and len(self.nodes) > 0

    @property
    def wants_descendants(self) -> bool:
        """True when the descendant direction would issue any query."""
        return (
            self.descendant_levels > 0
            and self.descendants > 0
            and len(self.nodes) > 0
        )

    def validate(self) -> List[str]:
        """Validate options for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Non-positive limits are allowed: they disable their direction
        for name in ('ancestors', 'descendant_levels', 'descendants'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be an integer")

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")

        if isinstance(self.nodes, str):
            errors.append("nodes must be a list of identifiers, not a string")
        elif any(not isinstance(node, str) for node in self.nodes):
            errors.append("nodes must be strings")

        return errors
