"""Tests for the view-fit transform."""
from __future__ import annotations

import pytest

from chen_layout.types import ChenGraph, ChenNode, Point
from chen_layout.viewport import fit_view


def _pair() -> ChenGraph:
    return ChenGraph(nodes=(
        ChenNode(id="a", kind="entity", width=100, height=50),
        ChenNode(id="b", kind="entity", width=100, height=50),
    ))


class TestFitView:
    def test_zoom_and_translation(self):
        targets = {"a": Point(0, 0), "b": Point(200, 0)}
        view = fit_view(_pair(), targets, 800, 600)
        assert view.zoom == pytest.approx(2.4)
        assert view.translate_x == pytest.approx(160)
        assert view.translate_y == pytest.approx(300)

    def test_content_center_maps_to_container_center(self):
        targets = {"a": Point(-130, 75), "b": Point(410, 260)}
        view = fit_view(_pair(), targets, 1000, 700)
        center = view.apply(Point((-130 + 410) / 2, (75 + 260) / 2))
        assert center.x == pytest.approx(500)
        assert center.y == pytest.approx(350)

    def test_content_fits_inside_padding(self):
        targets = {"a": Point(0, 0), "b": Point(900, 400)}
        view = fit_view(_pair(), targets, 800, 600, padding=20)
        corner = view.apply(Point(950, 425))
        assert corner.x <= 780 + 1e-6
        assert corner.y <= 580 + 1e-6

    def test_missing_targets_use_current_position(self):
        graph = ChenGraph(nodes=(
            ChenNode(id="a", kind="entity", x=200, y=0, width=100, height=50),
            ChenNode(id="b", kind="entity", width=100, height=50),
        ))
        view = fit_view(graph, {"b": Point(0, 0)}, 800, 600)
        assert view.zoom == pytest.approx(2.4)

    def test_empty_graph(self):
        assert fit_view(ChenGraph(), {}, 800, 600) is None

    def test_zero_area_content(self):
        graph = ChenGraph(nodes=(ChenNode(id="a", kind="entity", width=0, height=0),))
        assert fit_view(graph, {}, 800, 600) is None
