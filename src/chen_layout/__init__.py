"""chen-layout -- Deterministic auto-layout for Chen-model ER diagrams."""

from __future__ import annotations

from typing import Union

from .types import (
    ChenNode,
    ChenEdge,
    ChenGraph,
    Column,
    Table,
    Relation,
    Point,
    LayoutResult,
    InitialPlacementOptions,
    SpreadOptions,
    ArrangeOptions,
    ForceAlignOptions,
)
from .geometry import deterministic_hash, deterministic_random, normalize_angle, estimate_radius
from .components import connected_components
from .initial import apply_initial_component_positions
from .spread import spread_disconnected_components
from .arrange import arrange_layout
from .force_align import force_align_layout, compute_wedge_angles
from .builder import build_chen_graph
from .viewport import ViewTransform, fit_view
from .serialization import graph_from_dict, graph_to_dict, targets_to_dict

__all__ = [
    "run_layout",
    "ALGORITHMS",
    "ChenNode",
    "ChenEdge",
    "ChenGraph",
    "Column",
    "Table",
    "Relation",
    "Point",
    "LayoutResult",
    "InitialPlacementOptions",
    "SpreadOptions",
    "ArrangeOptions",
    "ForceAlignOptions",
    "deterministic_hash",
    "deterministic_random",
    "normalize_angle",
    "estimate_radius",
    "connected_components",
    "apply_initial_component_positions",
    "spread_disconnected_components",
    "arrange_layout",
    "force_align_layout",
    "compute_wedge_angles",
    "build_chen_graph",
    "ViewTransform",
    "fit_view",
    "graph_from_dict",
    "graph_to_dict",
    "targets_to_dict",
]

ALGORITHMS = ("arrange", "force-align", "spread", "initial")

LayoutOptions = Union[
    InitialPlacementOptions, SpreadOptions, ArrangeOptions, ForceAlignOptions, None
]

_OPTION_TYPES: dict[str, type] = {
    "arrange": ArrangeOptions,
    "force-align": ForceAlignOptions,
    "spread": SpreadOptions,
    "initial": InitialPlacementOptions,
}


def run_layout(
    graph: ChenGraph,
    algorithm: str = "arrange",
    width: float = 0,
    height: float = 0,
    seed: int = 0,
    options: LayoutOptions = None,
) -> LayoutResult:
    """Run one layout algorithm by name.

    ``options`` must match the algorithm (e.g. ArrangeOptions for "arrange");
    None selects the defaults.
    """
    if algorithm not in _OPTION_TYPES:
        raise ValueError(
            f"Unknown layout algorithm {algorithm!r}; expected one of {', '.join(ALGORITHMS)}"
        )
    expected = _OPTION_TYPES[algorithm]
    if options is not None and not isinstance(options, expected):
        raise ValueError(
            f"Layout algorithm {algorithm!r} expects {expected.__name__}, "
            f"got {type(options).__name__}"
        )

    if algorithm == "arrange":
        return arrange_layout(graph, options)
    if algorithm == "force-align":
        return force_align_layout(graph, width, options)
    if algorithm == "spread":
        return spread_disconnected_components(graph, width, height, options)
    return apply_initial_component_positions(graph, width, height, seed, options)
