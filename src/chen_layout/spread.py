from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .components import connected_components
from .geometry import node_size
from .types import ChenGraph, LayoutResult, Point, SpreadOptions

# ============================================================================
# Component spread
#
# Moves whole disconnected subgraphs onto arcs of a circle around the
# diagram center. Each component is treated as a rigid body: its members are
# rotated around the old centroid and translated to the new one, so the
# internal arrangement survives untouched.
# ============================================================================

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _ComponentMeta:
    ids: list[str]
    radius: float
    center: Point


def spread_disconnected_components(
    graph: ChenGraph,
    width: float,
    height: float,
    options: SpreadOptions | None = None,
) -> LayoutResult:
    """Spread disconnected components around the center of a width x height area."""
    opts = options or SpreadOptions()
    targets = {n.id: Point(x=n.x, y=n.y) for n in graph.nodes}
    if len(graph.nodes) < 2:
        return LayoutResult(targets=targets)

    node_map = graph.node_map()
    components = connected_components(
        node_map.keys(), ((e.source, e.target) for e in graph.edges)
    )
    if len(components) < 2:
        return LayoutResult(targets=targets)

    diagram_center = Point(x=width / 2, y=height / 2)

    metas: list[_ComponentMeta] = []
    for comp in components:
        min_x = min_y = math.inf
        max_x = max_y = -math.inf
        cx = cy = 0.0
        for nid in comp:
            node = node_map[nid]
            w, h = node_size(node)
            min_x = min(min_x, node.x - w / 2)
            max_x = max(max_x, node.x + w / 2)
            min_y = min(min_y, node.y - h / 2)
            max_y = max(max_y, node.y + h / 2)
            cx += node.x
            cy += node.y
        extent_w = max(opts.min_extent, max_x - min_x)
        extent_h = max(opts.min_extent, max_y - min_y)
        metas.append(_ComponentMeta(
            ids=comp,
            radius=math.hypot(extent_w, extent_h) / 2 + opts.radius_padding,
            center=Point(x=cx / len(comp), y=cy / len(comp)),
        ))

    gap = opts.gap
    total_span = sum(m.radius * 2 + gap for m in metas)
    orbit = min(
        max(
            total_span / (2 * math.pi),
            max(m.radius for m in metas) + gap + opts.orbit_padding,
            opts.min_orbit,
        ),
        opts.max_orbit,
    )

    angle_cursor = -math.pi / 2
    for meta in metas:
        angle_span = ((meta.radius * 2 + gap) / total_span) * math.pi * 2
        mid_angle = angle_cursor + angle_span / 2
        target_center = Point(
            x=diagram_center.x + orbit * math.cos(mid_angle),
            y=diagram_center.y + orbit * math.sin(mid_angle),
        )
        rotate = mid_angle + math.pi / 2
        cos_a = math.cos(rotate)
        sin_a = math.sin(rotate)

        for nid in meta.ids:
            node = node_map[nid]
            rel_x = node.x - meta.center.x
            rel_y = node.y - meta.center.y
            targets[nid] = Point(
                x=target_center.x + rel_x * cos_a - rel_y * sin_a,
                y=target_center.y + rel_x * sin_a + rel_y * cos_a,
            )
        angle_cursor += angle_span

    logger.debug("spread %d components on orbit %.1f", len(metas), orbit)
    return LayoutResult(targets=targets)
