import re

import pytest

from treehighlight.definitions import (
    HighlightDefinition,
    HighlightFilter,
    HighlightStyle,
    HighlightType,
    generate_highlight_id,
)
from treehighlight.errors import InvalidDefinitionError
from treehighlight.node import FamilyNode


def test_generated_id_format():
    assert re.fullmatch(r"highlight_\d+_[0-9a-z]{9}", generate_highlight_id())


def test_generated_ids_differ():
    assert generate_highlight_id() != generate_highlight_id()


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "node_to_node", "from": 1},
        {"type": "connection_only", "to": 2},
        {"type": "ancestry_path"},
        {"type": "subtree", "maxDepth": 3},
        {"type": "rainbow"},
        {},
        {"type": "ancestry_path", "nodeId": 1, "maxDepth": -1},
        {"type": "ancestry_path", "nodeId": 1, "style": {"opacity": "high"}},
    ],
)
def test_invalid_payloads_raise(payload):
    with pytest.raises(InvalidDefinitionError):
        HighlightDefinition.from_dict(payload)


def test_tree_wide_needs_no_parameters():
    definition = HighlightDefinition.from_dict({"type": "tree_wide"})
    assert definition.type is HighlightType.TREE_WIDE
    assert definition.filter is None


def test_from_dict_accepts_camel_case():
    definition = HighlightDefinition.from_dict(
        {
            "id": "h1",
            "type": "subtree",
            "rootId": "r",
            "maxDepth": 2,
            "priority": 5,
            "createdAt": 1234,
            "style": {"color": "#00FF00", "strokeWidth": 6},
        }
    )
    assert definition.id == "h1"
    assert definition.root_id == "r"
    assert definition.max_depth == 2
    assert definition.priority == 5
    assert definition.created_at == 1234
    assert definition.style == HighlightStyle(color="#00FF00", opacity=0.6, stroke_width=6)


def test_defaults_applied():
    definition = HighlightDefinition.from_dict({"type": "ancestry_path", "nodeId": 1})
    assert definition.id.startswith("highlight_")
    assert definition.style.color == "#A13333"
    assert definition.style.opacity == 0.6
    assert definition.style.stroke_width == 4
    assert definition.priority == 0
    assert definition.created_at > 0


def test_direct_construction_validates():
    with pytest.raises(InvalidDefinitionError):
        HighlightDefinition(type=HighlightType.NODE_TO_NODE, from_id=1)
    definition = HighlightDefinition(type="connection_only", from_id=1, to_id=2)
    assert definition.type is HighlightType.CONNECTION_ONLY


def test_with_updates_merges_style():
    definition = HighlightDefinition.from_dict(
        {"id": "h1", "type": "node_to_node", "from": 1, "to": 2, "style": {"color": "#FF0000", "opacity": 0.5}}
    )
    updated = definition.with_updates({"style": {"color": "#0000FF", "strokeWidth": 6}})

    assert updated.style.color == "#0000FF"
    assert updated.style.stroke_width == 6
    assert updated.style.opacity == 0.5
    assert updated.id == "h1"
    assert updated.created_at == definition.created_at


def test_with_updates_keeps_id_and_changes_fields():
    definition = HighlightDefinition.from_dict({"id": "h1", "type": "ancestry_path", "nodeId": 1})
    updated = definition.with_updates({"id": "other", "nodeId": 4, "priority": 3})
    assert updated.id == "h1"
    assert updated.node_id == 4
    assert updated.priority == 3


def test_with_updates_revalidates():
    definition = HighlightDefinition.from_dict({"type": "ancestry_path", "nodeId": 1})
    with pytest.raises(InvalidDefinitionError):
        definition.with_updates({"type": "subtree"})


class TestHighlightFilter:
    node = FamilyNode(id="c", father_id="p", generation=3, munasib_id="m")
    plain = FamilyNode(id="d", father_id="p", generation=3)
    parent = FamilyNode(id="p", generation=2)

    def test_generation(self):
        assert HighlightFilter(generation=3).passes(self.node, self.parent)
        assert not HighlightFilter(generation=2).passes(self.node, self.parent)

    def test_spouse_only(self):
        spouse_filter = HighlightFilter.from_dict({"munasib_only": True})
        assert spouse_filter.passes(self.node, self.parent)
        assert not spouse_filter.passes(self.plain, self.parent)

    def test_predicate_result(self):
        only_d = HighlightFilter(predicate=lambda node, parent: node.id == "d")
        assert only_d.passes(self.plain, self.parent)
        assert not only_d.passes(self.node, self.parent)

    def test_raising_predicate_fails_closed(self, caplog):
        def boom(node, parent):
            raise RuntimeError("bad filter")

        assert not HighlightFilter(predicate=boom).passes(self.node, self.parent)
        assert "Filter predicate raised for node c" in caplog.text

    def test_non_callable_predicate_rejected(self):
        with pytest.raises(InvalidDefinitionError):
            HighlightFilter(predicate="not callable")
