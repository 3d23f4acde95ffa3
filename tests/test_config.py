"""Tests for tree request options and node representation."""

import pytest

from lineagetreelib.aio import build_tree_response
from lineagetreelib.aio.core import EventStats, LineageNode
from lineagetreelib.config import Schema, TimeRange, TreeOptions
from lineagetreelib.testing import RecordingQueryExecutor


SCHEMA = Schema(id='process.entity_id', parent='process.parent.entity_id',
                name='process.name')


class TestTreeOptions:

    def test_defaults_disable_both_directions(self):
        options = TreeOptions(nodes=['a'], schema=SCHEMA)

        assert options.time_range == TimeRange()
        assert options.index_patterns == []
        assert options.timeout_seconds is None
        assert not options.wants_ancestors
        assert not options.wants_descendants
        assert options.validate() == []

    def test_duplicate_origins_keep_first_occurrence(self):
        options = TreeOptions(nodes=['b', 'a', 'b', 'c', 'a'], schema=SCHEMA)

        assert options.nodes == ['b', 'a', 'c']

    def test_index_patterns_listified(self):
        options = TreeOptions(nodes=['a'], schema=SCHEMA, index_patterns=('logs-*',))

        assert options.index_patterns == ['logs-*']

    def test_ancestors_only(self):
        options = TreeOptions.ancestors_only(['a'], SCHEMA, levels=4)

        assert options.ancestors == 4
        assert options.wants_ancestors
        assert not options.wants_descendants

    def test_descendants_only(self):
        options = TreeOptions.descendants_only(['a'], SCHEMA, levels=2, limit=50,
                                               timeout_seconds=1.5)

        assert options.descendant_levels == 2
        assert options.descendants == 50
        assert options.timeout_seconds == 1.5
        assert options.wants_descendants
        assert not options.wants_ancestors

    def test_descendants_need_both_limits(self):
        assert not TreeOptions.descendants_only(['a'], SCHEMA, levels=0, limit=50).wants_descendants
        assert not TreeOptions.descendants_only(['a'], SCHEMA, levels=3, limit=0).wants_descendants

    def test_no_origins_wants_nothing(self):
        options = TreeOptions(nodes=[], schema=SCHEMA, ancestors=3,
                              descendant_levels=3, descendants=3)

        assert not options.wants_ancestors
        assert not options.wants_descendants

    def test_negative_limits_are_valid(self):
        options = TreeOptions(nodes=['a'], schema=SCHEMA, ancestors=-1,
                              descendant_levels=-5, descendants=-2)

        assert options.validate() == []
        assert not options.wants_ancestors
        assert not options.wants_descendants

    @pytest.mark.parametrize('kwargs,message', [
        ({'ancestors': '3'}, "ancestors must be an integer"),
        ({'descendants': 2.5}, "descendants must be an integer"),
        ({'descendant_levels': True}, "descendant_levels must be an integer"),
        ({'timeout_seconds': 0}, "timeout_seconds must be positive"),
        ({'nodes': ['a', 7]}, "nodes must be strings"),
        ({'nodes': 'abc'}, "nodes must be a list of identifiers, not a string"),
    ])
    def test_validation_errors(self, kwargs, message):
        params = {'nodes': ['a'], 'schema': SCHEMA}
        params.update(kwargs)

        assert message in TreeOptions(**params).validate()


class TestLineageNode:

    def test_from_record_resolves_identity(self):
        record = {
            'process.entity_id': ['a'],
            'process.parent.entity_id': ['root'],
            'process.name': ['bash'],
        }

        node = LineageNode.from_record(record, SCHEMA)

        assert node.id == 'a'
        assert node.parent == 'root'
        assert node.name == 'bash'
        assert not node.is_root()
        assert node.stats == EventStats()

    def test_record_without_parent_is_root(self):
        node = LineageNode.from_record({'process': {'entity_id': 'a'}}, SCHEMA)

        assert node.id == 'a'
        assert node.is_root()

    def test_to_dict_uses_wire_shape(self):
        record = {'process.entity_id': ['a']}
        stats = EventStats.from_dict({'total': 3, 'byCategory': {'network': 3}})

        node = LineageNode.from_record(record, SCHEMA, stats)

        assert node.to_dict() == {
            'data': record,
            'stats': {'total': 3, 'byCategory': {'network': 3}},
        }
        assert node.to_dict(include_identity=True)['id'] == 'a'

    def test_stats_from_partial_dict(self):
        assert EventStats.from_dict({}) == EventStats(total=0, by_category={})

    def test_repr(self):
        node = LineageNode.from_record({'process.entity_id': ['a']}, SCHEMA)

        assert repr(node) == "LineageNode(id='a', parent=None)"


@pytest.mark.asyncio
async def test_build_tree_response():
    executor = RecordingQueryExecutor(
        ancestry=[[{'process.entity_id': ['a']}]],
        stats=[{'a': {'total': 1, 'byCategory': {'file': 1}}}],
    )
    options = TreeOptions.ancestors_only(['a'], SCHEMA, levels=1)

    response = await build_tree_response(options, executor)

    assert response == [{
        'data': {'process.entity_id': ['a']},
        'stats': {'total': 1, 'byCategory': {'file': 1}},
    }]
