"""Tests for the force-align (main chain + branches) layout."""
from __future__ import annotations

import math

import pytest

from chen_layout.builder import build_chen_graph
from chen_layout.force_align import compute_wedge_angles, force_align_layout
from chen_layout.geometry import estimate_radius
from chen_layout.types import (
    ChenEdge,
    ChenGraph,
    ChenNode,
    Column,
    ForceAlignOptions,
    Point,
    Relation,
    Table,
)


def _link(edges: list[ChenEdge], source: str, target: str) -> None:
    edges.append(ChenEdge(id=f"{source}->{target}", source=source, target=target))


def _chain() -> ChenGraph:
    """E1 - R - E2 with one attribute on E1."""
    nodes = (
        ChenNode(id="E1", kind="entity"),
        ChenNode(id="E2", kind="entity"),
        ChenNode(id="R", kind="relationship"),
        ChenNode(id="A", kind="attribute", parent_entity="E1"),
    )
    edges: list[ChenEdge] = []
    _link(edges, "E1", "R")
    _link(edges, "R", "E2")
    _link(edges, "E1", "A")
    return ChenGraph(nodes=nodes, edges=tuple(edges))


def _star() -> ChenGraph:
    """Hub entity H with three relationship spokes to E1..E3."""
    nodes = [ChenNode(id="H", kind="entity")]
    edges: list[ChenEdge] = []
    for i in range(1, 4):
        nodes.append(ChenNode(id=f"E{i}", kind="entity"))
        nodes.append(ChenNode(id=f"R{i}", kind="relationship"))
        _link(edges, "H", f"R{i}")
        _link(edges, f"R{i}", f"E{i}")
    return ChenGraph(nodes=tuple(nodes), edges=tuple(edges))


def _dist(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


# ============================================================================
# Wedge angles
# ============================================================================


class TestWedgeAngles:
    def test_zero_count(self):
        assert compute_wedge_angles([1.0], 0) == []

    def test_even_full_circle_without_anchors(self):
        angles = compute_wedge_angles([], 4)
        assert angles == pytest.approx([0, math.pi / 2, math.pi, 3 * math.pi / 2])

    def test_positive_side_uses_lower_half(self):
        angles = compute_wedge_angles([], 1, preferred_sign=1)
        assert angles == pytest.approx([math.pi / 2])

    def test_negative_side_uses_upper_half(self):
        angles = compute_wedge_angles([], 3, preferred_sign=-1)
        assert all(math.pi < a < 2 * math.pi for a in angles)
        assert angles == sorted(angles)

    def test_anchor_splits_half_circle(self):
        # Anchor at pi/2 leaves two equal arcs, one spoke each
        angles = compute_wedge_angles([math.pi / 2], 2, preferred_sign=1)
        assert angles == pytest.approx([math.pi / 4, 3 * math.pi / 4])

    def test_spokes_between_anchors(self):
        angles = compute_wedge_angles([0.0, math.pi], 2)
        assert angles == pytest.approx([math.pi / 2, 3 * math.pi / 2])

    def test_result_count_matches(self):
        for count in range(1, 7):
            assert len(compute_wedge_angles([0.3, 2.0, 4.1], count)) == count


# ============================================================================
# Main chain
# ============================================================================


class TestMainChain:
    def test_chain_is_horizontal_and_evenly_spaced(self):
        t = force_align_layout(_chain(), 1200).targets
        assert t["E1"].y == pytest.approx(t["R"].y)
        assert t["E2"].y == pytest.approx(t["R"].y)
        spacing = max(200, estimate_radius(ChenNode(id="x", kind="entity")) * 2 + 40)
        assert abs(t["E1"].x - t["R"].x) == pytest.approx(spacing)
        assert abs(t["E2"].x - t["R"].x) == pytest.approx(spacing)

    def test_complete_and_fit_view(self):
        graph = _chain()
        result = force_align_layout(graph, 1200)
        assert set(result.targets) == {n.id for n in graph.nodes}
        assert result.fit_view is True

    def test_deterministic(self):
        first = force_align_layout(_star(), 1200).targets
        second = force_align_layout(_star(), 1200).targets
        assert first == second

    def test_main_chain_survives_overlap_resolution(self):
        graph = _star()
        t = force_align_layout(graph, 1200).targets
        # Diameter: E1 - R1 - H - R2 - E2, all on one row
        row = [t[nid].y for nid in ("E1", "R1", "H", "R2", "E2")]
        assert max(row) - min(row) == pytest.approx(0.0)

    def test_attribute_rings_entity(self):
        t = force_align_layout(_chain(), 1200).targets
        entity_r = estimate_radius(ChenNode(id="x", kind="entity"))
        attr_r = estimate_radius(ChenNode(id="x", kind="attribute"))
        assert _dist(t["A"], t["E1"]) == pytest.approx(entity_r + attr_r + 8)


# ============================================================================
# Attributes
# ============================================================================


def _schema_chain() -> ChenGraph:
    """Tables a - b - c, six columns each, built with measured boxes."""
    columns = tuple(Column(name=f"column_{i}") for i in range(6))
    tables = [Table(name=name, columns=columns) for name in ("a", "b", "c")]
    relations = [Relation(from_table="a", to_table="b"), Relation(from_table="b", to_table="c")]
    return build_chen_graph(tables, relations)


class TestAttributes:
    def test_no_node_pair_overlaps(self):
        graph = _schema_chain()
        t = force_align_layout(graph, 1200).targets
        nodes = graph.nodes
        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                gap = estimate_radius(a) + estimate_radius(b)
                assert _dist(t[a.id], t[b.id]) >= gap - 1.0, (a.id, b.id)

    def test_attributes_do_not_move_the_chain(self):
        graph = _schema_chain()
        t = force_align_layout(graph, 1200).targets
        core = [n for n in graph.nodes if n.kind != "attribute"]
        assert len({round(t[n.id].y, 6) for n in core}) == 1

    def test_crowded_ring_grows(self):
        nodes = [ChenNode(id="E1", kind="entity")]
        edges: list[ChenEdge] = []
        for i in range(12):
            nodes.append(ChenNode(id=f"A{i:02d}", kind="attribute", parent_entity="E1"))
            _link(edges, "E1", f"A{i:02d}")
        graph = ChenGraph(nodes=tuple(nodes), edges=tuple(edges))
        t = force_align_layout(graph, 1200).targets
        entity_r = estimate_radius(nodes[0])
        attr_r = estimate_radius(nodes[1])
        assert min(_dist(t[n.id], t["E1"]) for n in nodes[1:]) > entity_r + attr_r + 8
        for i, a in enumerate(nodes[1:], start=1):
            for b in nodes[i + 1:]:
                assert _dist(t[a.id], t[b.id]) >= attr_r * 2 - 1.0


# ============================================================================
# Branches
# ============================================================================


class TestBranches:
    def test_branch_is_off_the_chain(self):
        t = force_align_layout(_star(), 1200).targets
        assert abs(t["R3"].y - t["H"].y) > 50
        assert abs(t["E3"].y - t["H"].y) > abs(t["R3"].y - t["H"].y)

    def test_branch_entity_sits_behind_its_relationship(self):
        t = force_align_layout(_star(), 1200).targets
        d_rel = _dist(t["H"], t["R3"])
        d_entity = _dist(t["H"], t["E3"])
        assert d_entity > d_rel

    def test_core_nodes_do_not_overlap(self):
        graph = _star()
        t = force_align_layout(graph, 1200).targets
        nodes = graph.nodes
        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                gap = estimate_radius(a) + estimate_radius(b)
                assert _dist(t[a.id], t[b.id]) >= gap - 1.0

    def test_two_branches_take_both_sides(self):
        nodes = [ChenNode(id=nid, kind="entity") for nid in ("A", "B", "H", "X", "Y")]
        nodes += [ChenNode(id=rid, kind="relationship") for rid in ("R1", "R2", "R3", "R4")]
        edges: list[ChenEdge] = []
        for rid, eid in (("R1", "A"), ("R2", "B"), ("R3", "X"), ("R4", "Y")):
            _link(edges, "H", rid)
            _link(edges, rid, eid)
        t = force_align_layout(ChenGraph(nodes=tuple(nodes), edges=tuple(edges)), 2000).targets
        hub_y = t["H"].y
        off_chain = [nid for nid in ("R1", "R2", "R3", "R4") if abs(t[nid].y - hub_y) > 1]
        signs = {math.copysign(1, t[nid].y - hub_y) for nid in off_chain}
        assert len(off_chain) == 2
        assert signs == {1.0, -1.0}


# ============================================================================
# Degenerate graphs and tiling
# ============================================================================


class TestDegenerate:
    def test_only_attributes_is_identity(self):
        graph = ChenGraph(nodes=(
            ChenNode(id="a", kind="attribute", x=1, y=2),
            ChenNode(id="b", kind="attribute", x=3, y=4),
        ))
        result = force_align_layout(graph, 800)
        assert (result.targets["a"].x, result.targets["a"].y) == (1, 2)
        assert result.fit_view is False

    def test_entities_without_relationships_are_tiled(self):
        graph = ChenGraph(nodes=tuple(ChenNode(id=f"E{i}", kind="entity") for i in range(3)))
        t = force_align_layout(graph, 5000).targets
        xs = sorted(t[f"E{i}"].x for i in range(3))
        assert len({round(t[f"E{i}"].y, 6) for i in range(3)}) == 1
        assert xs[1] - xs[0] == pytest.approx(xs[2] - xs[1])

    def test_narrow_container_wraps_rows(self):
        graph = ChenGraph(nodes=tuple(ChenNode(id=f"E{i}", kind="entity") for i in range(3)))
        t = force_align_layout(graph, 300).targets
        ys = sorted({round(t[f"E{i}"].y, 6) for i in range(3)})
        assert len(ys) == 3

    def test_three_entity_relationship_does_not_fail(self):
        nodes = [ChenNode(id=e, kind="entity") for e in ("A", "B", "C")]
        nodes.append(ChenNode(id="R", kind="relationship"))
        edges: list[ChenEdge] = []
        for e in ("A", "B", "C"):
            _link(edges, e, "R")
        result = force_align_layout(ChenGraph(nodes=tuple(nodes), edges=tuple(edges)), 1200)
        assert set(result.targets) == {"A", "B", "C", "R"}

    def test_options_change_chain_spacing(self):
        opts = ForceAlignOptions(min_chain_spacing=500)
        t = force_align_layout(_chain(), 1200, opts).targets
        assert abs(t["E1"].x - t["R"].x) == pytest.approx(500)
