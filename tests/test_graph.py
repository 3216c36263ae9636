"""Tests for collapsing slots into the module graph."""

from __future__ import annotations

from factories import connect, module, slot

from flowlayout.graph import build_module_graph, group_slots, resolve_slot_parents


class TestSlotParents:
    def test_slots_resolve_to_existing_modules(self):
        nodes = [module("root"), slot("s0", "root", 0), slot("s1", "root", 1)]
        assert resolve_slot_parents(nodes) == {"s0": "root", "s1": "root"}

    def test_orphan_slot_is_left_out(self):
        nodes = [module("root"), slot("lost", "missing", 0)]
        assert resolve_slot_parents(nodes) == {}

    def test_group_slots_orders_by_index_then_input(self):
        nodes = [
            module("root"),
            slot("b", "root", 1),
            slot("a", "root", 0),
            slot("c", "root", 1),
            slot("d", "root", None),
        ]
        grouped = group_slots(nodes, resolve_slot_parents(nodes))
        assert [n.id for n in grouped["root"]] == ["a", "d", "b", "c"]


class TestBuildModuleGraph:
    def test_slot_edges_collapse_into_parent(self):
        nodes = [module("root"), slot("s0", "root", 0), slot("s1", "root", 1), module("c"), module("d")]
        edges = [connect("s0", "c"), connect("s1", "d")]
        graph = build_module_graph(nodes, edges)

        assert graph.module_ids == ["root", "c", "d"]
        assert [(e.source, e.target, e.slot_index) for e in graph.edges] == [
            ("root", "c", 0),
            ("root", "d", 1),
        ]
        assert graph.successors("root") == ["c", "d"]
        assert graph.predecessors("d") == ["root"]
        assert graph.is_branching("root")
        assert not graph.is_branching("c")

    def test_dangling_edges_are_dropped(self):
        nodes = [module("a"), module("b")]
        edges = [connect("a", "ghost"), connect("ghost", "b"), connect("a", "b")]
        graph = build_module_graph(nodes, edges)
        assert [(e.source, e.target) for e in graph.edges] == [("a", "b")]

    def test_collapsed_self_loops_are_dropped(self):
        nodes = [module("root"), slot("s0", "root", 0)]
        graph = build_module_graph(nodes, [connect("s0", "root")])
        assert graph.edges == []
        assert graph.in_degree["root"] == 0

    def test_orphan_slot_becomes_module(self):
        nodes = [module("a"), slot("lost", "missing", 0)]
        graph = build_module_graph(nodes, [connect("a", "lost")])
        assert graph.module_ids == ["a", "lost"]
        assert graph.edges[0].slot_index is None

    def test_anchors_are_carried(self):
        nodes = [module("a"), module("b")]
        graph = build_module_graph(nodes, [connect("a", "b", "bottom", "top")])
        edge = graph.edges[0]
        assert edge.has_anchor
        assert (edge.source_anchor.value, edge.target_anchor.value) == ("bottom", "top")


class TestRoots:
    def test_root_hint_wins(self):
        nodes = [module("a"), module("b")]
        graph = build_module_graph(nodes, [connect("a", "b")], root_hint="b")
        assert graph.roots == ["b"]

    def test_slot_hint_resolves_to_parent(self):
        nodes = [module("root"), slot("s0", "root", 0), module("a")]
        graph = build_module_graph(nodes, [connect("a", "root")], root_hint="s0")
        assert graph.roots == ["root"]

    def test_unknown_hint_falls_back_to_in_degree_zero(self):
        nodes = [module("a"), module("b"), module("c")]
        graph = build_module_graph(nodes, [connect("a", "b")], root_hint="nope")
        assert graph.roots == ["a", "c"]

    def test_fully_cyclic_graph_uses_first_module(self):
        nodes = [module("a"), module("b")]
        graph = build_module_graph(nodes, [connect("a", "b"), connect("b", "a")])
        assert graph.roots == ["a"]

    def test_empty_graph_has_no_root(self):
        graph = build_module_graph([], [])
        assert graph.roots == []
        assert graph.primary_root is None


class TestSubset:
    def test_edges_leaving_the_subset_are_dropped(self):
        nodes = [module("r"), module("a"), module("b")]
        edges = [connect("r", "a"), connect("a", "b")]
        graph = build_module_graph(nodes, edges, subset=["a", "b"])
        assert graph.module_ids == ["a", "b"]
        assert [(e.source, e.target) for e in graph.edges] == [("a", "b")]
        assert graph.roots == ["a"]

    def test_slots_of_out_of_scope_parents_are_still_grouped(self):
        nodes = [module("root"), slot("s0", "root", 0), module("a")]
        graph = build_module_graph(nodes, [connect("s0", "a")], subset=["a"])
        assert "root" not in graph
        assert [n.id for n in graph.slots_by_parent["root"]] == ["s0"]
