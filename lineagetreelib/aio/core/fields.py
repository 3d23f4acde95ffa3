"""Schema-driven field access for opaque event records.

Records come from the event store either as flat "fields" documents
(``{'process.entity_id': ['abc']}``) or as nested source documents
(``{'process': {'entity_id': 'abc'}}``). Both shapes are supported; the
flat key wins when present.
"""

from typing import Any, List, Mapping, Optional

from ...config import Schema

_MISSING = object()


def get_field(record: Mapping[str, Any], name: Optional[str]) -> Any:
    """Look up a field by exact key, then by dotted path.

    Args:
        record: Event record
        name: Field name, possibly dotted

    Returns:
        The raw value, or None when the field is absent
    """
    if not name or not isinstance(record, Mapping):
        return None

    value = record.get(name, _MISSING)
    if value is not _MISSING:
        return value

    current: Any = record
    for part in name.split('.'):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def first_non_null(value: Any) -> Optional[str]:
    """Reduce a scalar or list value to its first usable identifier."""
    if isinstance(value, (list, tuple)):
        for item in value:
            if item is not None and item != '':
                return str(item)
        return None
    if value is None or value == '' or isinstance(value, Mapping):
        return None
    return str(value)


def get_id_field(record: Mapping[str, Any], schema: Schema) -> Optional[str]:
    return first_non_null(get_field(record, schema.id))


def get_parent_field(record: Mapping[str, Any], schema: Schema) -> Optional[str]:
    return first_non_null(get_field(record, schema.parent))


def get_name_field(record: Mapping[str, Any], schema: Schema) -> Optional[str]:
    return first_non_null(get_field(record, schema.name))


def get_ancestry_field(record: Mapping[str, Any], schema: Schema) -> List[str]:
    """Return the ancestry array of a record, closest ancestor first.

    A scalar value is treated as a one element array. Null and empty
    entries are dropped.
    """
    value = get_field(record, schema.ancestry)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]

    ancestry = []
    for item in value:
        ancestor = first_non_null(item)
        if ancestor is not None:
            ancestry.append(ancestor)
    return ancestry


def get_ancestry_as_array(record: Mapping[str, Any], schema: Schema) -> List[str]:
    """Return the ancestry array, falling back to the direct parent.

    Returns:
        The ancestry field when it holds at least one identifier,
        otherwise ``[parent]`` when the parent field is set,
        otherwise an empty list
    """
    ancestry = get_ancestry_field(record, schema)
    if ancestry:
        return ancestry

    parent = get_parent_field(record, schema)
    if parent is not None:
        return [parent]
    return []
