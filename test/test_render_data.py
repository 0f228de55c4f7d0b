"""End-to-end render pipeline: overlap, culling, ordering and the documented scenarios."""

import unittest
from dataclasses import replace

import pytest

from treehighlight.engine import HighlightEngine
from treehighlight.node import FamilyNode
from treehighlight.path_calculator import PathCalculator
from treehighlight.segments import Viewport, segment_key


def build_state(engine, *definitions):
    state = {}
    for definition in definitions:
        state = engine.add_highlight(state, definition)
    return state


def test_empty_state_renders_nothing(engine, family_nodes):
    assert engine.get_render_data({}, family_nodes) == []


def test_overlapping_highlights_share_one_segment(engine, family_nodes):
    state = build_state(
        engine,
        {"id": "a", "type": "ancestry_path", "nodeId": 4, "style": {"color": "#FF0000"}},
        {"id": "b", "type": "ancestry_path", "nodeId": 5, "style": {"color": "#0000FF"}},
    )
    data = engine.get_render_data(state, family_nodes)

    by_key = {s.key: s for s in data}
    assert len(data) == 3
    assert by_key[segment_key(1, 2)].highlight_ids == ["a", "b"]
    assert by_key[segment_key(2, 4)].highlight_ids == ["a"]


def test_removed_highlight_never_rendered(engine, family_nodes):
    state = build_state(
        engine,
        {"id": "a", "type": "tree_wide"},
        {"id": "b", "type": "subtree", "rootId": 2},
    )
    state = engine.remove_highlight(state, "b")
    for segment in engine.get_render_data(state, family_nodes):
        assert "b" not in segment.highlight_ids


def test_viewport_culling(engine, family_nodes):
    state = build_state(engine, {"type": "tree_wide"})
    # Only the left half of generation 3 (x <= 450) plus edges touching it.
    data = engine.get_render_data(state, family_nodes, Viewport(0, 450, 400, 600))
    assert {(s.from_id, s.to_id) for s in data} == {(2, 4), (2, 5)}


def test_viewport_mapping_is_accepted(engine, family_nodes):
    state = build_state(engine, {"type": "tree_wide"})
    data = engine.get_render_data(
        state, family_nodes, {"minX": 750, "maxX": 900, "minY": 450, "maxY": 550}
    )
    assert {(s.from_id, s.to_id) for s in data} == {(3, 6)}


def test_malformed_viewport_disables_culling(engine, family_nodes):
    state = build_state(engine, {"type": "tree_wide"})
    data = engine.get_render_data(state, family_nodes, {"minX": 0})
    assert len(data) == 5


def test_fully_inside_segment_always_visible(engine, family_nodes):
    state = build_state(engine, {"type": "connection_only", "from": 3, "to": 6})
    data = engine.get_render_data(state, family_nodes, Viewport(0, 1000, 0, 1000))
    assert len(data) == 1


def test_priority_ordering(engine, family_nodes):
    state = build_state(
        engine,
        {"id": "low", "type": "connection_only", "from": 1, "to": 3, "priority": 1},
        {"id": "high", "type": "connection_only", "from": 2, "to": 4, "priority": 10},
        {"id": "mid", "type": "connection_only", "from": 3, "to": 6, "priority": 5},
    )
    data = engine.get_render_data(state, family_nodes)
    assert [s.highlight_ids[0] for s in data] == ["high", "mid", "low"]


def test_one_bad_definition_does_not_block_others(engine, family_nodes):
    state = build_state(
        engine,
        {"id": "bad", "type": "tree_wide", "filter": {"predicate": lambda n, p: 1 / 0}},
        {"id": "good", "type": "ancestry_path", "nodeId": 6},
    )
    data = engine.get_render_data(state, family_nodes)
    assert {hid for s in data for hid in s.highlight_ids} == {"good"}


def test_in_place_edits_to_nodes_map_are_seen(engine, family_nodes):
    state = build_state(engine, {"type": "node_to_node", "from": 4, "to": 6})
    before = engine.get_render_data(state, family_nodes)
    assert {(s.from_id, s.to_id) for s in before} == {(1, 2), (2, 4), (1, 3), (3, 6)}

    family_nodes[6] = replace(family_nodes[6], father_id=2)
    after = engine.get_render_data(state, family_nodes)
    assert {(s.from_id, s.to_id) for s in after} == {(2, 4), (2, 6)}


def test_cache_holds_only_the_latest_call(engine, family_nodes):
    first = build_state(engine, {"type": "node_to_node", "from": 4, "to": 6})
    engine.get_render_data(first, family_nodes)
    assert engine.path_calculator.cache.size > 0

    engine.get_render_data(build_state(engine, {"type": "tree_wide"}), family_nodes)
    assert engine.path_calculator.cache.size == 0


def test_engines_do_not_share_cache(family_nodes):
    first, second = HighlightEngine(), HighlightEngine()
    state = build_state(first, {"type": "node_to_node", "from": 4, "to": 5})
    first.get_render_data(state, family_nodes)
    assert second.path_calculator.cache.size == 0


def test_render_is_deterministic(engine, family_nodes):
    state = build_state(
        engine,
        {"id": "x", "type": "tree_wide"},
        {"id": "y", "type": "subtree", "rootId": 1, "priority": 2},
    )
    first = [s.to_dict() for s in engine.get_render_data(state, family_nodes)]
    second = [s.to_dict() for s in engine.get_render_data(state, family_nodes)]
    assert first == second


class TestScenarios(unittest.TestCase):
    @pytest.fixture(autouse=True)
    def _chains(self, chain_factory):
        self.make_chain = chain_factory

    def setUp(self):
        self.engine = HighlightEngine()

    def test_ancestry_cutoff(self):
        nodes = {
            "A": FamilyNode(id="A", x=0, y=0),
            "B": FamilyNode(id="B", father_id="A", x=0, y=10),
            "C": FamilyNode(id="C", father_id="B", x=0, y=20),
        }
        state = self.engine.add_highlight({}, {"type": "ancestry_path", "nodeId": "C", "maxDepth": 2})
        data = self.engine.get_render_data(state, nodes)
        self.assertEqual([(s.to_id, s.from_id) for s in data], [("C", "B"), ("B", "A")])

    def test_siblings_through_father(self):
        nodes = {
            "F": FamilyNode(id="F", x=50, y=0),
            "C1": FamilyNode(id="C1", father_id="F", x=0, y=100),
            "C2": FamilyNode(id="C2", father_id="F", x=100, y=100),
        }
        self.assertEqual(PathCalculator(nodes).find_lca("C1", "C2"), "F")
        state = self.engine.add_highlight({}, {"type": "node_to_node", "from": "C1", "to": "C2"})
        data = self.engine.get_render_data(state, nodes)
        self.assertEqual(len(data), 2)
        self.assertEqual({s.key for s in data}, {segment_key("C1", "F"), segment_key("F", "C2")})

    def test_overlap_priority(self):
        nodes = {
            "P": FamilyNode(id="P", x=0, y=0),
            "Q": FamilyNode(id="Q", father_id="P", x=0, y=10),
            "R": FamilyNode(id="R", father_id="Q", x=0, y=20),
        }
        state = build_state(
            self.engine,
            {"id": "one", "type": "connection_only", "from": "R", "to": "Q", "priority": 3},
            {"id": "five", "type": "connection_only", "from": "P", "to": "Q", "priority": 5},
            {"id": "low", "type": "connection_only", "from": "Q", "to": "P", "priority": 1},
        )
        data = self.engine.get_render_data(state, nodes)
        self.assertEqual(data[0].key, segment_key("P", "Q"))
        self.assertEqual(len(data[0].highlights), 2)
        self.assertEqual(data[1].key, segment_key("Q", "R"))

    def test_subtree_hard_ceiling(self):
        nodes = self.make_chain(25)
        state = self.engine.add_highlight({}, {"type": "subtree", "rootId": "g0"})
        data = self.engine.get_render_data(state, nodes)
        generations = {int(s.to_id[1:]) for s in data}
        self.assertEqual(len(data), 20)
        self.assertEqual(max(generations), 20)

    def test_cycle_safety(self):
        nodes = {
            "A": FamilyNode(id="A", father_id="B", x=0, y=0),
            "B": FamilyNode(id="B", father_id="A", x=1, y=1),
        }
        self.assertEqual(len(PathCalculator(nodes).calculate_path("A")), 2)
        state = self.engine.add_highlight({}, {"type": "subtree", "rootId": "A"})
        self.assertEqual(len(self.engine.get_render_data(state, nodes)), 1)
