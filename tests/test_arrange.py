"""Tests for the arrange (radial satellite) layout."""
from __future__ import annotations

import math
from dataclasses import replace

import pytest

from chen_layout.arrange import arrange_layout
from chen_layout.geometry import angle_to, estimate_radius
from chen_layout.types import ArrangeOptions, ChenEdge, ChenGraph, ChenNode, Point


def _two_entities() -> ChenGraph:
    """E1 - R - E2, two attributes on each entity."""
    nodes = [
        ChenNode(id="E1", kind="entity", x=0, y=0, width=100, height=50),
        ChenNode(id="E2", kind="entity", x=100, y=0, width=100, height=50),
        ChenNode(id="R", kind="relationship", x=50, y=0, width=100, height=60),
    ]
    edges = [
        ChenEdge(id="e1", source="E1", target="R", kind="entity-relationship"),
        ChenEdge(id="e2", source="R", target="E2", kind="relationship-entity"),
    ]
    for eid in ("E1", "E2"):
        for i in range(2):
            aid = f"{eid}-a{i}"
            nodes.append(ChenNode(
                id=aid, kind="attribute", width=80, height=40, parent_entity=eid,
            ))
            edges.append(ChenEdge(id=f"{eid}-{aid}", source=eid, target=aid, kind="entity-attribute"))
    return ChenGraph(nodes=tuple(nodes), edges=tuple(edges))


def _reapply(graph: ChenGraph, targets: dict[str, Point]) -> ChenGraph:
    return ChenGraph(
        nodes=tuple(replace(n, x=targets[n.id].x, y=targets[n.id].y) for n in graph.nodes),
        edges=graph.edges,
    )


def _dist(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def _angle_gap(a: float, b: float) -> float:
    diff = abs(a - b) % (2 * math.pi)
    return min(diff, 2 * math.pi - diff)


# ============================================================================
# Two related entities
# ============================================================================


class TestTwoEntities:
    def test_entity_spacing_matches_system_radii(self):
        result = arrange_layout(_two_entities())
        # ring = 55.9 + 58.3 + 25, system = ring + 58.3 on both sides
        entity_r = math.hypot(100, 50) / 2
        rel_r = math.hypot(100, 60) / 2
        system = entity_r + rel_r + 25 + rel_r
        expected = system * 2 + 50
        assert _dist(result.targets["E1"], result.targets["E2"]) == pytest.approx(expected, abs=5)

    def test_relationship_sits_at_midpoint(self):
        t = arrange_layout(_two_entities()).targets
        mid = Point(x=(t["E1"].x + t["E2"].x) / 2, y=(t["E1"].y + t["E2"].y) / 2)
        assert _dist(t["R"], mid) < 1.0

    def test_attributes_spread_and_avoid_relationship(self):
        t = arrange_layout(_two_entities()).targets
        for eid in ("E1", "E2"):
            center = t[eid]
            rel_angle = angle_to(center, t["R"])
            a0 = angle_to(center, t[f"{eid}-a0"])
            a1 = angle_to(center, t[f"{eid}-a1"])
            assert _angle_gap(a0, a1) >= 0.35
            assert _angle_gap(a0, rel_angle) >= 0.175
            assert _angle_gap(a1, rel_angle) >= 0.175

    def test_fit_view_requested(self):
        assert arrange_layout(_two_entities()).fit_view is True

    def test_complete_and_deterministic(self):
        graph = _two_entities()
        first = arrange_layout(graph)
        second = arrange_layout(graph)
        assert set(first.targets) == {n.id for n in graph.nodes}
        assert first.targets == second.targets

    def test_no_overlaps(self):
        graph = _two_entities()
        t = arrange_layout(graph).targets
        nodes = graph.nodes
        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                gap = estimate_radius(a) + estimate_radius(b)
                assert _dist(t[a.id], t[b.id]) >= gap - 1.0

    def test_idempotent_on_its_own_output(self):
        graph = _two_entities()
        first = arrange_layout(graph).targets
        second = arrange_layout(_reapply(graph, first)).targets
        threshold = ArrangeOptions().convergence_threshold
        for node in graph.nodes:
            assert _dist(first[node.id], second[node.id]) < threshold, node.id

    def test_ring_order_survives_repeated_runs(self):
        # E2's free arc wraps past angle 0, around its westward relationship
        graph = _two_entities()
        runs = [arrange_layout(graph).targets]
        for _ in range(2):
            graph = _reapply(graph, runs[-1])
            runs.append(arrange_layout(graph).targets)
        for aid in ("E2-a0", "E2-a1"):
            assert _dist(runs[1][aid], runs[2][aid]) < 0.5

    def test_input_not_mutated(self):
        graph = _two_entities()
        arrange_layout(graph)
        assert graph.node_map()["E2"].x == 100


# ============================================================================
# Degenerate graphs
# ============================================================================


class TestDegenerate:
    def test_empty_graph(self):
        result = arrange_layout(ChenGraph())
        assert result.targets == {}

    def test_single_entity(self):
        graph = ChenGraph(nodes=(ChenNode(id="E", kind="entity", x=3, y=4),))
        t = arrange_layout(graph).targets
        assert (t["E"].x, t["E"].y) == (3, 4)

    def test_coincident_entities_are_pushed_apart(self):
        graph = ChenGraph(nodes=(
            ChenNode(id="E1", kind="entity"),
            ChenNode(id="E2", kind="entity"),
        ))
        t = arrange_layout(graph).targets
        assert _dist(t["E1"], t["E2"]) > estimate_radius(graph.nodes[0]) * 2

    def test_single_entity_relationship_orbits(self):
        graph = ChenGraph(
            nodes=(
                ChenNode(id="E", kind="entity", width=100, height=50),
                ChenNode(id="R", kind="relationship", width=100, height=60),
            ),
            edges=(ChenEdge(id="e", source="E", target="R"),),
        )
        t = arrange_layout(graph).targets
        ring = math.hypot(100, 50) / 2 + math.hypot(100, 60) / 2 + 25
        assert _dist(t["E"], t["R"]) == pytest.approx(ring, abs=1.0)

    def test_three_entity_relationship_is_kept(self):
        graph = ChenGraph(
            nodes=(
                ChenNode(id="A", kind="entity", x=0, y=0),
                ChenNode(id="B", kind="entity", x=400, y=0),
                ChenNode(id="C", kind="entity", x=0, y=400),
                ChenNode(id="R", kind="relationship", x=100, y=100),
            ),
            edges=(
                ChenEdge(id="1", source="A", target="R"),
                ChenEdge(id="2", source="B", target="R"),
                ChenEdge(id="3", source="C", target="R"),
            ),
        )
        result = arrange_layout(graph)
        assert set(result.targets) == {"A", "B", "C", "R"}
        assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in result.targets.values())

    def test_parallel_relationships_fan_out(self):
        graph = ChenGraph(
            nodes=(
                ChenNode(id="E1", kind="entity", x=0, y=0),
                ChenNode(id="E2", kind="entity", x=600, y=0),
                ChenNode(id="R1", kind="relationship"),
                ChenNode(id="R2", kind="relationship"),
            ),
            edges=(
                ChenEdge(id="1", source="E1", target="R1"),
                ChenEdge(id="2", source="R1", target="E2"),
                ChenEdge(id="3", source="E1", target="R2"),
                ChenEdge(id="4", source="R2", target="E2"),
            ),
        )
        t = arrange_layout(graph).targets
        rel_r = estimate_radius(graph.nodes[2])
        assert _dist(t["R1"], t["R2"]) >= rel_r * 2

    def test_options_change_spacing(self):
        graph = _two_entities()
        base = arrange_layout(graph).targets
        wide = arrange_layout(graph, ArrangeOptions(entity_gap=250)).targets
        assert _dist(wide["E1"], wide["E2"]) > _dist(base["E1"], base["E2"]) + 150
