from __future__ import annotations

import logging
import math

from .components import connected_components
from .geometry import KIND_SIZES, DEFAULT_KIND_SIZE, deterministic_hash, deterministic_random
from .types import ChenGraph, ChenNode, InitialPlacementOptions, LayoutResult, Point

# ============================================================================
# Initial component placement
#
# Runs before the first paint: nodes of a freshly built graph usually have no
# meaningful positions yet, so every disconnected component is dropped onto
# its own spot of a circle around the container center. A small per-node
# jitter keeps members from landing exactly on top of each other.
# ============================================================================

logger = logging.getLogger(__name__)


def _approx_radius(node: ChenNode, options: InitialPlacementOptions) -> float:
    size = KIND_SIZES.get(node.kind, DEFAULT_KIND_SIZE)
    return math.sqrt(size * size * 2) / 2 + options.radius_padding


def apply_initial_component_positions(
    graph: ChenGraph,
    width: float = 0,
    height: float = 0,
    seed: int = 0,
    options: InitialPlacementOptions | None = None,
) -> LayoutResult:
    """Distribute disconnected components evenly around the container center.

    Returns the current positions unchanged when the graph has fewer than two
    components.
    """
    opts = options or InitialPlacementOptions()
    targets = {n.id: Point(x=n.x, y=n.y) for n in graph.nodes}
    if len(graph.nodes) < 2:
        return LayoutResult(targets=targets)

    node_map = graph.node_map()
    components = connected_components(
        node_map.keys(), ((e.source, e.target) for e in graph.edges)
    )
    if len(components) < 2:
        return LayoutResult(targets=targets)

    w = width if width > 0 else opts.default_width
    h = height if height > 0 else opts.default_height
    center = Point(x=w / 2, y=h / 2)

    radii: list[float] = []
    for comp in components:
        r = max(
            [opts.min_component_radius]
            + [_approx_radius(node_map[nid], opts) for nid in comp]
        )
        extra = max(0, len(comp) - opts.crowd_threshold) * opts.crowd_penalty
        radii.append(r + extra)

    perimeter = sum(r * 2 for r in radii)
    orbit = min(
        max(opts.min_orbit, (perimeter + opts.component_gap * len(components)) / (2 * math.pi)),
        opts.max_orbit,
    )

    angle = -math.pi / 2
    angle_step = (math.pi * 2) / len(components)
    for comp, radius in zip(components, radii):
        cx = center.x + orbit * math.cos(angle)
        cy = center.y + orbit * math.sin(angle)
        spread = max(opts.min_jitter, radius * opts.jitter_scale)
        for nid in comp:
            h_id = deterministic_hash(nid, seed)
            targets[nid] = Point(
                x=cx + deterministic_random(h_id, seed) * spread,
                y=cy + deterministic_random(h_id + 1000, seed) * spread,
            )
        angle += angle_step

    logger.debug(
        "initial placement: %d components on orbit %.1f around (%.1f, %.1f)",
        len(components), orbit, center.x, center.y,
    )
    return LayoutResult(targets=targets)
