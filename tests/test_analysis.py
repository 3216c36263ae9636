"""Tests for component partitioning and flow summaries."""

from __future__ import annotations

import time

from factories import connect, module, slot

from flowlayout.analysis import (
    component_index,
    find_connected_components,
    find_cycles,
    find_strongly_connected_components,
    summarize_flow,
)
from flowlayout.graph import build_module_graph


def _diamond_ladder(count):
    """Chain of `count` diamonds: j0 -> (a0, b0) -> j1 -> (a1, b1) -> ..."""
    nodes = [module("j0")]
    edges = []
    for i in range(count):
        nodes += [module(f"a{i}"), module(f"b{i}"), module(f"j{i + 1}")]
        edges += [
            connect(f"j{i}", f"a{i}"),
            connect(f"j{i}", f"b{i}"),
            connect(f"a{i}", f"j{i + 1}"),
            connect(f"b{i}", f"j{i + 1}"),
        ]
    return nodes, edges


class TestConnectedComponents:
    def test_components_in_input_order(self):
        nodes = [module("x"), module("r"), module("a"), module("y")]
        graph = build_module_graph(nodes, [connect("r", "a"), connect("y", "x")])
        components = find_connected_components(graph)

        assert [c.index for c in components] == [0, 1]
        assert sorted(components[0].module_ids) == ["x", "y"]
        assert sorted(components[1].module_ids) == ["a", "r"]
        assert components[0].edge_count == 1
        assert component_index(components) == {"x": 0, "y": 0, "r": 1, "a": 1}

    def test_edges_are_undirected(self):
        nodes = [module("a"), module("b"), module("c")]
        graph = build_module_graph(nodes, [connect("a", "c"), connect("b", "c")])
        components = find_connected_components(graph)
        assert len(components) == 1
        assert components[0].size == 3

    def test_slots_join_their_parent_component(self):
        nodes = [module("root"), slot("s0", "root", 0), module("a"), module("b")]
        graph = build_module_graph(nodes, [connect("s0", "a")])
        components = find_connected_components(graph)
        assert [sorted(c.module_ids) for c in components] == [["a", "root"], ["b"]]

    def test_empty_graph(self):
        assert find_connected_components(build_module_graph([], [])) == []


class TestFindCycles:
    def test_each_cycle_reported_once(self):
        nodes = [module(i) for i in "abcd"]
        edges = [connect("a", "b"), connect("b", "c"), connect("c", "a"), connect("c", "d")]
        cycles = find_cycles(build_module_graph(nodes, edges))
        assert cycles == [["a", "b", "c", "a"]]

    def test_acyclic(self):
        nodes = [module("a"), module("b")]
        assert find_cycles(build_module_graph(nodes, [connect("a", "b")])) == []

    def test_separate_cycles_each_reported(self):
        nodes = [module(i) for i in "abcdef"]
        edges = [
            connect("a", "b"),
            connect("b", "a"),
            connect("b", "c"),
            connect("c", "d"),
            connect("d", "e"),
            connect("e", "f"),
            connect("f", "d"),
        ]
        cycles = find_cycles(build_module_graph(nodes, edges))
        assert cycles == [["a", "b", "a"], ["d", "e", "f", "d"]]

    def test_diamond_ladder_is_fast(self):
        nodes, edges = _diamond_ladder(24)
        graph = build_module_graph(nodes, edges)

        started = time.perf_counter()
        cycles = find_cycles(graph)
        assert time.perf_counter() - started < 1.0
        assert cycles == []


class TestStronglyConnectedComponents:
    def test_groups_cycle_members(self):
        nodes = [module(i) for i in "abcd"]
        edges = [connect("a", "b"), connect("b", "c"), connect("c", "a"), connect("c", "d")]
        components = find_strongly_connected_components(build_module_graph(nodes, edges))
        assert sorted(sorted(c) for c in components) == [["a", "b", "c"], ["d"]]

    def test_acyclic_modules_stand_alone(self):
        nodes, edges = _diamond_ladder(3)
        components = find_strongly_connected_components(build_module_graph(nodes, edges))
        assert len(components) == len(nodes)
        assert all(len(c) == 1 for c in components)


class TestSummarizeFlow:
    def test_branching_flow(self):
        nodes = [
            module("root"),
            slot("s0", "root", 0),
            slot("s1", "root", 1),
            module("c"),
            module("d"),
            module("loner"),
        ]
        edges = [connect("s0", "c"), connect("s1", "d"), connect("c", "ghost")]
        summary = summarize_flow(nodes, edges)

        assert summary.total_nodes == 6
        assert summary.total_edges == 3
        assert summary.module_count == 4
        assert summary.slot_count == 2
        assert summary.branching_count == 1
        assert summary.module_edge_count == 2
        assert summary.connected_components == 2
        assert summary.roots == ["root", "loner"]
        assert summary.depth == 2
        assert summary.crossings == 0
        assert summary.cycle_count == 0
        assert summary.orphan_count == 1

    def test_to_dict_and_root_hint(self):
        summary = summarize_flow([module("a"), module("b")], [connect("a", "b")], root_hint="b")
        data = summary.to_dict()
        assert data["roots"] == ["b"]
        assert data["depth"] == 1
        assert set(data) >= {"module_count", "crossings", "cycle_count"}

    def test_empty_flow(self):
        summary = summarize_flow([], [])
        assert summary.module_count == 0
        assert summary.depth == 0
        assert summary.roots == []
