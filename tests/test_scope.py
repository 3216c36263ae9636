"""Tests for selection scoping and anchor preservation."""

from __future__ import annotations

from factories import connect, module, slot

from flowlayout.graph import build_module_graph
from flowlayout.positioning import Box
from flowlayout.scope import LayoutScope, choose_anchor, resolve_scope, shift_to_anchor


NODES = [
    module("root"),
    slot("s0", "root", 0),
    slot("s1", "root", 1),
    module("a"),
    module("b"),
]


class TestResolveScope:
    def test_empty_selection_means_whole_graph(self):
        assert not resolve_scope(NODES, None).is_scoped
        assert not resolve_scope(NODES, []).is_scoped

    def test_slots_resolve_to_parent_once(self):
        scope = resolve_scope(NODES, ["s1", "a", "s0"])
        assert scope.module_ids == ["root", "a"]
        assert scope.selected_ids == ["s1", "a", "s0"]

    def test_unknown_ids_are_ignored(self):
        scope = resolve_scope(NODES, ["ghost", "b"])
        assert scope.module_ids == ["b"]

    def test_only_unknown_ids_means_whole_graph(self):
        assert not resolve_scope(NODES, ["ghost"]).is_scoped

    def test_contains(self):
        assert LayoutScope().contains("anything")
        assert LayoutScope(module_ids=["a"]).contains("a")
        assert not LayoutScope(module_ids=["a"]).contains("b")


class TestChooseAnchor:
    edges = [connect("s0", "a"), connect("a", "b")]

    def test_whole_graph_uses_root(self):
        graph = build_module_graph(NODES, self.edges)
        assert choose_anchor(NODES, graph, LayoutScope()) == "root"

    def test_scoped_prefers_first_top_level_module(self):
        scope = resolve_scope(NODES, ["s0", "b", "a"])
        graph = build_module_graph(NODES, self.edges, subset=scope.module_ids)
        assert choose_anchor(NODES, graph, scope) == "b"

    def test_scoped_slot_only_uses_its_parent(self):
        scope = resolve_scope(NODES, ["s1"])
        graph = build_module_graph(NODES, self.edges, subset=scope.module_ids)
        assert choose_anchor(NODES, graph, scope) == "root"

    def test_empty_graph_has_no_anchor(self):
        graph = build_module_graph([], [])
        assert choose_anchor([], graph, LayoutScope()) is None


class TestShiftToAnchor:
    def test_whole_graph_shifts_everything(self):
        before = {"r": Box(100, 100, 10, 10), "a": Box(0, 0, 10, 10)}
        after = {"r": Box(0, 720, 10, 10), "a": Box(350, 720, 10, 10)}
        shift = shift_to_anchor(before, after, "r", scoped=False)
        assert shift.delta == (100, -620)
        assert (shift.boxes["r"].x, shift.boxes["r"].y) == (100, 100)
        assert (shift.boxes["a"].x, shift.boxes["a"].y) == (450, 100)
        assert shift.shifted_ids == {"r", "a"}

    def test_scoped_leaves_unmoved_modules(self):
        before = {"r": Box(100, 100, 10, 10), "a": Box(350, 720, 10, 10)}
        after = {"r": Box(0, 720, 10, 10), "a": Box(350, 720, 10, 10)}
        shift = shift_to_anchor(before, after, "r", scoped=True)
        assert shift.boxes["a"] == Box(350, 720, 10, 10)
        assert shift.shifted_ids == {"r"}

    def test_missing_anchor_is_a_no_op(self):
        after = {"a": Box(1, 2, 3, 4)}
        shift = shift_to_anchor({}, after, "a", scoped=False)
        assert shift.boxes == after
        assert shift.delta == (0.0, 0.0)
