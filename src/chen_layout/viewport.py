from __future__ import annotations

import math
from dataclasses import dataclass

from .geometry import node_size
from .types import ChenGraph, Point

DEFAULT_FIT_PADDING = 40


@dataclass(frozen=True, slots=True)
class ViewTransform:
    """Uniform zoom followed by a translation, in container pixels."""
    zoom: float
    translate_x: float
    translate_y: float

    def apply(self, point: Point) -> Point:
        return Point(
            x=point.x * self.zoom + self.translate_x,
            y=point.y * self.zoom + self.translate_y,
        )


def fit_view(
    graph: ChenGraph,
    targets: dict[str, Point],
    width: float,
    height: float,
    padding: float = DEFAULT_FIT_PADDING,
) -> ViewTransform | None:
    """Transform that centers every node box inside a width x height container.

    Node boxes are taken at their target positions (current position for
    nodes missing from ``targets``). Returns None when the content has no
    area to scale, leaving the caller to fall back to its own fit.
    """
    if not graph.nodes:
        return None

    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for node in graph.nodes:
        pos = targets.get(node.id) or Point(x=node.x, y=node.y)
        w, h = node_size(node)
        min_x = min(min_x, pos.x - w / 2)
        max_x = max(max_x, pos.x + w / 2)
        min_y = min(min_y, pos.y - h / 2)
        max_y = max(max_y, pos.y + h / 2)

    content_w = max_x - min_x
    content_h = max_y - min_y
    if content_w == 0 or content_h == 0:
        return None

    zoom = min((width - padding * 2) / content_w, (height - padding * 2) / content_h)
    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2
    return ViewTransform(
        zoom=zoom,
        translate_x=width / 2 - center_x * zoom,
        translate_y=height / 2 - center_y * zoom,
    )
