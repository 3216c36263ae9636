"""Tests for BFS level assignment."""

from __future__ import annotations

import logging

from factories import connect, module

from flowlayout.graph import build_module_graph
from flowlayout.levels import assign_levels, group_by_level


def _graph(ids, pairs, root_hint=None):
    return build_module_graph(
        [module(i) for i in ids],
        [connect(s, t) for s, t in pairs],
        root_hint,
    )


class TestAssignLevels:
    def test_chain(self):
        graph = _graph(["r", "a", "b"], [("r", "a"), ("a", "b")])
        assert assign_levels(graph) == {"r": 0, "a": 1, "b": 2}

    def test_convergent_paths_take_the_longest(self):
        graph = _graph(
            ["r", "a", "b", "d", "c"],
            [("r", "a"), ("r", "b"), ("a", "c"), ("b", "d"), ("d", "c")],
        )
        levels = assign_levels(graph)
        assert levels["c"] == 3
        for edge in graph.edges:
            assert levels[edge.target] > levels[edge.source]

    def test_unreached_modules_stay_at_zero(self):
        graph = _graph(["r", "a", "x", "y"], [("r", "a"), ("x", "y")], root_hint="r")
        levels = assign_levels(graph)
        assert levels["x"] == 0
        assert levels["y"] == 0

    def test_levels_keep_input_order(self):
        graph = _graph(["b", "r"], [("r", "b")])
        assert list(assign_levels(graph)) == ["b", "r"]

    def test_cycle_terminates_and_warns(self, caplog):
        graph = _graph(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])
        with caplog.at_level(logging.WARNING, logger="flowlayout.levels"):
            levels = assign_levels(graph, max_updates=10)

        assert set(levels) == {"a", "b", "c"}
        assert all(0 <= level <= 3 * 10 for level in levels.values())
        assert "cycle" in caplog.text

    def test_update_cap_bounds_levels(self):
        graph = _graph(["a", "b"], [("a", "b"), ("b", "a")])
        levels = assign_levels(graph, max_updates=2)
        assert max(levels.values()) <= 4

    def test_long_chain_with_shared_exit(self, caplog):
        steps = [f"s{i}" for i in range(12)]
        pairs = list(zip(steps, steps[1:])) + [(s, "end") for s in steps]
        graph = _graph(steps + ["end"], pairs)
        with caplog.at_level(logging.WARNING, logger="flowlayout.levels"):
            levels = assign_levels(graph)

        assert levels["s11"] == 11
        assert levels["end"] == 12
        for edge in graph.edges:
            assert levels[edge.target] > levels[edge.source]
        assert caplog.records == []

    def test_low_configured_cap_is_raised_to_module_count(self):
        steps = [f"s{i}" for i in range(6)]
        pairs = list(zip(steps, steps[1:])) + [(s, "end") for s in steps]
        graph = _graph(steps + ["end"], pairs)
        levels = assign_levels(graph, max_updates=1)
        assert levels["end"] == 6

    def test_acyclic_input_does_not_warn(self, caplog):
        graph = _graph(["r", "a"], [("r", "a")])
        with caplog.at_level(logging.WARNING, logger="flowlayout.levels"):
            assign_levels(graph)
        assert caplog.records == []


class TestGroupByLevel:
    def test_ascending_levels_input_order_within(self):
        grouped = group_by_level({"c": 1, "a": 0, "b": 1, "d": 0})
        assert grouped == {0: ["a", "d"], 1: ["c", "b"]}
        assert list(grouped) == [0, 1]
