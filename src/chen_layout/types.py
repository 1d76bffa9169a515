from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# ============================================================================
# Graph snapshot -- the immutable input handed to every layout algorithm
# ============================================================================

NodeKind = Literal["entity", "attribute", "relationship"]

EdgeKind = Literal[
    "entity-attribute",
    "entity-relationship",
    "relationship-entity",
]

NODE_KINDS: tuple[str, ...] = ("entity", "attribute", "relationship")


@dataclass(frozen=True, slots=True)
class ChenNode:
    id: str
    kind: NodeKind
    # Current (last known) center position
    x: float = 0.0
    y: float = 0.0
    # Rendered bounding box; None when the shape has not been measured yet
    width: float | None = None
    height: float | None = None
    label: str = ""
    # Owning entity id, attributes only
    parent_entity: str | None = None
    is_primary_key: bool = False


@dataclass(frozen=True, slots=True)
class ChenEdge:
    id: str
    source: str
    target: str
    kind: EdgeKind | None = None
    label: str | None = None


@dataclass(frozen=True, slots=True)
class ChenGraph:
    nodes: tuple[ChenNode, ...] = ()
    edges: tuple[ChenEdge, ...] = ()

    def node_map(self) -> dict[str, ChenNode]:
        return {n.id: n for n in self.nodes}

    def nodes_of_kind(self, kind: NodeKind) -> list[ChenNode]:
        """Nodes of one kind, ordered by id."""
        return sorted((n for n in self.nodes if n.kind == kind), key=lambda n: n.id)


# ============================================================================
# Schema input -- tables and foreign-key relations fed to the graph builder
# ============================================================================

@dataclass(frozen=True, slots=True)
class Column:
    name: str
    type: str = ""
    is_primary_key: bool = False


@dataclass(frozen=True, slots=True)
class Table:
    name: str
    columns: tuple[Column, ...] = ()
    primary_keys: tuple[str, ...] = ()
    alias: str | None = None


@dataclass(frozen=True, slots=True)
class Relation:
    """Foreign key: ``from_table`` (many side) references ``to_table`` (one side)."""
    from_table: str
    to_table: str
    label: str = ""


# ============================================================================
# Layout output
# ============================================================================

@dataclass(slots=True)
class Point:
    x: float
    y: float


@dataclass(slots=True)
class LayoutResult:
    # Target center for every node of the input snapshot
    targets: dict[str, Point] = field(default_factory=dict)
    # Completion signal: the caller should fit the viewport once applied
    fit_view: bool = False


# ============================================================================
# Layout options -- named constants, overridable per call
# ============================================================================

@dataclass(frozen=True, slots=True)
class InitialPlacementOptions:
    default_width: float = 1200
    default_height: float = 800
    component_gap: float = 100
    min_orbit: float = 240
    max_orbit: float = 520
    min_component_radius: float = 30
    # Nodes beyond this count grow the component radius linearly
    crowd_threshold: int = 6
    crowd_penalty: float = 6
    radius_padding: float = 20
    min_jitter: float = 40
    jitter_scale: float = 0.4


@dataclass(frozen=True, slots=True)
class SpreadOptions:
    gap: float = 50
    radius_padding: float = 40
    orbit_padding: float = 40
    min_extent: float = 40
    min_orbit: float = 240
    max_orbit: float = 520


@dataclass(frozen=True, slots=True)
class ArrangeOptions:
    ring_padding: float = 25
    satellite_spacing: float = 18
    default_satellite_radius: float = 30
    # Entity relaxation
    entity_gap: float = 50
    max_iterations: int = 300
    spring_stiffness: float = 0.2
    spring_dead_zone: float = 1
    repulsion_damping: float = 0.5
    convergence_threshold: float = 0.5
    # Relationship clearance
    clearance_gap: float = 12
    clearance_passes: int = 3
    # Orbital satellites
    avoid_half_angle: float = 0.175
    # Relationship diamonds
    diamond_stack_gap: float = 16
    diamond_iterations: int = 80
    diamond_gap: float = 14
    entity_collision_padding: float = 20
    anchor_pull: float = 0.15
    # Global separation
    separation_iterations: int = 400
    separation_gap: float = 8
    separation_threshold: float = 0.3


@dataclass(frozen=True, slots=True)
class ForceAlignOptions:
    default_width: float = 1200
    min_chain_spacing: float = 200
    chain_padding: float = 40
    relationship_gap: float = 40
    branch_gap: float = 80
    component_gap: float = 240
    side_jitter: float = 0.35
    triplet_gap: float = 20
    midpoint_clearance: float = 40
    attribute_ring_padding: float = 8
    attribute_avoid_angle: float = 0.12
    attribute_jitter: float = 0.2
    attribute_gap: float = 8
    attribute_iterations: int = 300
    overlap_iterations: int = 120
    overlap_gap: float = 14
    overlap_threshold: float = 0.5
