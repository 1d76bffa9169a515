from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal

from .components import attribute_owners, relationship_connections
from .geometry import (
    TWO_PI,
    allocate_largest_remainder,
    angle_to,
    estimate_radius,
    normalize_angle,
    separation_axis,
)
from .types import ArrangeOptions, ChenGraph, ChenNode, LayoutResult, Point

# ============================================================================
# Arrange layout -- radial satellites around entity hubs
#
#   1. Every entity owns a ring of satellites: its attributes plus the
#      relationships touching it. The ring size gives the entity a "system
#      radius" (personal space) used while relaxing entity centers.
#   2. Entity centers relax under springs along two-entity relationships and
#      pairwise repulsion.
#   3. Attributes and single-anchor relationships orbit their entity, keeping
#      clear of the directions towards related entities.
#   4. Two-entity relationship diamonds sit between their entities, then a
#      final global pass pushes any remaining overlaps apart.
# ============================================================================

logger = logging.getLogger(__name__)

SatelliteKind = Literal["attr", "rel"]


@dataclass(slots=True)
class _Satellite:
    node: ChenNode
    kind: SatelliteKind
    # Entity on the other side of a relationship satellite
    other_entity: str | None = None


def _free_segments(avoid_angles: list[float], half_gap: float) -> list[tuple[float, float]]:
    """Arcs of the circle left after cutting a wedge around every avoid angle."""
    if not avoid_angles:
        return [(0.0, TWO_PI)]

    ordered = sorted(avoid_angles)
    segments: list[tuple[float, float]] = []
    for i, curr in enumerate(ordered):
        nxt = ordered[(i + 1) % len(ordered)] + (TWO_PI if i == len(ordered) - 1 else 0)
        start = curr + half_gap
        end = nxt - half_gap
        if end > start:
            segments.append((start, end))

    if sum(end - start for start, end in segments) <= 0:
        return [(0.0, TWO_PI)]
    return segments


# ============================================================================
# Main layout function
# ============================================================================


def arrange_layout(
    graph: ChenGraph,
    options: ArrangeOptions | None = None,
) -> LayoutResult:
    """Arrange satellites evenly around entities and relax entity spacing.

    Returns a target for every node and asks the caller to fit the view.
    """
    opts = options or ArrangeOptions()
    if not graph.nodes:
        return LayoutResult()

    radius = {n.id: estimate_radius(n) for n in graph.nodes}
    entities = graph.nodes_of_kind("entity")
    relationships = graph.nodes_of_kind("relationship")
    connections = relationship_connections(graph)
    owners = attribute_owners(graph)

    # 1. Collect satellites per entity
    satellites: dict[str, list[_Satellite]] = {e.id: [] for e in entities}
    for attr in graph.nodes_of_kind("attribute"):
        owner = owners.get(attr.id)
        if owner is not None:
            satellites[owner].append(_Satellite(node=attr, kind="attr"))
    for rel in relationships:
        connected = connections.get(rel.id, [])
        for eid in connected:
            others = [oid for oid in connected if oid != eid]
            satellites[eid].append(
                _Satellite(node=rel, kind="rel", other_entity=others[0] if others else None)
            )

    # 2. Ring and system radius per entity
    ring: dict[str, float] = {}
    system: dict[str, float] = {}
    for entity in entities:
        sats = satellites[entity.id]
        max_sat = max(
            (radius[s.node.id] for s in sats), default=opts.default_satellite_radius
        )
        ring_r = radius[entity.id] + max_sat + opts.ring_padding
        if len(sats) > 1:
            circumference = len(sats) * (max_sat * 2 + opts.satellite_spacing)
            ring_r = max(ring_r, circumference / (2 * math.pi))
        ring[entity.id] = ring_r
        system[entity.id] = ring_r + max_sat

    positions = {e.id: Point(x=e.x, y=e.y) for e in entities}
    pairs = [
        (rel.id, connections[rel.id][0], connections[rel.id][1])
        for rel in relationships
        if len(connections.get(rel.id, [])) == 2
    ]

    # 3. Relax entity centers
    iterations = _relax_entities(positions, system, pairs, opts)
    logger.debug("arrange: entity relaxation stopped after %d iterations", iterations)

    # 4. Keep room for the diamond between related entities
    for _ in range(opts.clearance_passes):
        _ensure_relationship_clearance(positions, ring, radius, pairs, opts)

    targets = {eid: Point(x=p.x, y=p.y) for eid, p in positions.items()}

    # 5. Orbital satellites
    for entity in entities:
        _place_orbitals(entity.id, satellites[entity.id], positions, ring[entity.id], targets, opts)

    # 6. Two-entity diamonds between their entities
    anchors = _place_diamonds(pairs, positions, radius, opts)
    targets.update({rid: Point(x=p.x, y=p.y) for rid, p in anchors.items()})

    # 7. Diamond-only relaxation
    if anchors:
        rel_ids = [rel.id for rel in relationships if rel.id in anchors]
        _relax_diamonds(rel_ids, anchors, connections, positions, ring, radius, targets, opts)

    # 8. Global separation over every node
    node_map = graph.node_map()
    for nid, node in node_map.items():
        if nid not in targets:
            targets[nid] = Point(x=node.x, y=node.y)
    iterations = _separate_all(targets, radius, opts)
    logger.debug("arrange: global separation stopped after %d iterations", iterations)

    logger.info(
        "arrange layout: %d entities, %d relationships, %d nodes placed",
        len(entities), len(relationships), len(targets),
    )
    return LayoutResult(targets=targets, fit_view=True)


# ============================================================================
# Steps
# ============================================================================


def _relax_entities(
    positions: dict[str, Point],
    system: dict[str, float],
    pairs: list[tuple[str, str, str]],
    opts: ArrangeOptions,
) -> int:
    entity_ids = sorted(positions)
    iteration = 0
    for iteration in range(1, opts.max_iterations + 1):
        max_move = 0.0

        # Springs along relationships
        for _rid, id_a, id_b in pairs:
            pos_a = positions[id_a]
            pos_b = positions[id_b]
            nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
            desired = system[id_a] + system[id_b] + opts.entity_gap
            diff = desired - dist
            if abs(diff) < opts.spring_dead_zone:
                continue
            move = (diff * opts.spring_stiffness) / 2
            pos_a.x -= nx * move
            pos_a.y -= ny * move
            pos_b.x += nx * move
            pos_b.y += ny * move
            max_move = max(max_move, abs(move))

        # Repulsion between every entity pair
        for i, id_a in enumerate(entity_ids):
            for id_b in entity_ids[i + 1:]:
                pos_a = positions[id_a]
                pos_b = positions[id_b]
                nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
                min_dist = system[id_a] + system[id_b] + opts.entity_gap
                if dist < min_dist:
                    move = (min_dist - dist) * 0.5 * opts.repulsion_damping
                    pos_a.x -= nx * move
                    pos_a.y -= ny * move
                    pos_b.x += nx * move
                    pos_b.y += ny * move
                    max_move = max(max_move, move)

        if max_move < opts.convergence_threshold:
            break
    return iteration


def _ensure_relationship_clearance(
    positions: dict[str, Point],
    ring: dict[str, float],
    radius: dict[str, float],
    pairs: list[tuple[str, str, str]],
    opts: ArrangeOptions,
) -> None:
    for rid, id_a, id_b in pairs:
        pos_a = positions[id_a]
        pos_b = positions[id_b]
        nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
        rel_r = radius[rid]
        min_half = max(
            ring[id_a] + rel_r + opts.clearance_gap,
            ring[id_b] + rel_r + opts.clearance_gap,
        )
        required = min_half * 2
        if dist >= required:
            continue
        missing = required - dist
        pos_a.x -= nx * missing / 2
        pos_a.y -= ny * missing / 2
        pos_b.x += nx * missing / 2
        pos_b.y += ny * missing / 2


def _place_orbitals(
    entity_id: str,
    sats: list[_Satellite],
    positions: dict[str, Point],
    ring_r: float,
    targets: dict[str, Point],
    opts: ArrangeOptions,
) -> None:
    if not sats:
        return
    center = positions[entity_id]

    avoid = [
        angle_to(center, positions[s.other_entity])
        for s in sats
        if s.kind == "rel" and s.other_entity is not None
    ]
    segments = _free_segments(avoid, opts.avoid_half_angle)

    orbitals = [s for s in sats if s.kind == "attr" or s.other_entity is None]
    if not orbitals:
        return
    # Keep the satellites' current circular order, measured from the start
    # of the first free segment
    origin = segments[0][0]
    orbitals.sort(key=lambda s: (
        normalize_angle(angle_to(center, Point(x=s.node.x, y=s.node.y)) - origin),
        s.node.id,
    ))

    counts = allocate_largest_remainder([end - start for start, end in segments], len(orbitals))
    idx = 0
    for (start, end), count in zip(segments, counts):
        if not count:
            continue
        step = (end - start) / count
        for i in range(count):
            angle = normalize_angle(start + step * (i + 0.5))
            targets[orbitals[idx].node.id] = Point(
                x=center.x + ring_r * math.cos(angle),
                y=center.y + ring_r * math.sin(angle),
            )
            idx += 1


def _place_diamonds(
    pairs: list[tuple[str, str, str]],
    positions: dict[str, Point],
    radius: dict[str, float],
    opts: ArrangeOptions,
) -> dict[str, Point]:
    """Midpoint anchors for two-entity relationships.

    Relationships sharing the same entity pair are fanned out perpendicular
    to the entity axis, ordered by id.
    """
    anchors: dict[str, Point] = {}
    grouped: dict[tuple[str, str], list[str]] = {}
    for rid, id_a, id_b in pairs:
        pos_a = positions[id_a]
        pos_b = positions[id_b]
        anchors[rid] = Point(x=(pos_a.x + pos_b.x) / 2, y=(pos_a.y + pos_b.y) / 2)
        grouped.setdefault((id_a, id_b), []).append(rid)

    for (id_a, id_b), rel_ids in grouped.items():
        if len(rel_ids) <= 1:
            continue
        pos_a = positions[id_a]
        pos_b = positions[id_b]
        nx, ny, _dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
        px, py = -ny, nx
        base_x = (pos_a.x + pos_b.x) / 2
        base_y = (pos_a.y + pos_b.y) / 2
        offset_step = max(radius[rid] for rid in rel_ids) * 2 + opts.diamond_stack_gap

        ordered = sorted(rel_ids)
        mid = (len(ordered) - 1) / 2
        for idx, rid in enumerate(ordered):
            offset = (idx - mid) * offset_step
            anchors[rid] = Point(x=base_x + px * offset, y=base_y + py * offset)

    return anchors


def _relax_diamonds(
    rel_ids: list[str],
    anchors: dict[str, Point],
    connections: dict[str, list[str]],
    positions: dict[str, Point],
    ring: dict[str, float],
    radius: dict[str, float],
    targets: dict[str, Point],
    opts: ArrangeOptions,
) -> None:
    rel_positions = {rid: Point(x=targets[rid].x, y=targets[rid].y) for rid in rel_ids}
    collision = {eid: ring[eid] + opts.entity_collision_padding for eid in positions}
    pull = opts.anchor_pull

    for _ in range(opts.diamond_iterations):
        for i, id_a in enumerate(rel_ids):
            pos_a = rel_positions[id_a]
            for id_b in rel_ids[i + 1:]:
                pos_b = rel_positions[id_b]
                nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
                min_dist = radius[id_a] + radius[id_b] + opts.diamond_gap
                if dist < min_dist:
                    push = (min_dist - dist) / 2
                    pos_a.x -= nx * push
                    pos_a.y -= ny * push
                    pos_b.x += nx * push
                    pos_b.y += ny * push

        for rid in rel_ids:
            pos = rel_positions[rid]
            for eid in connections[rid]:
                center = positions[eid]
                nx, ny, dist = separation_axis(center, pos, f"{eid}|{rid}")
                limit = collision[eid]
                if dist < limit:
                    pos.x += nx * (limit - dist)
                    pos.y += ny * (limit - dist)

        for rid in rel_ids:
            pos = rel_positions[rid]
            anchor = anchors[rid]
            pos.x = pos.x * (1 - pull) + anchor.x * pull
            pos.y = pos.y * (1 - pull) + anchor.y * pull

    targets.update(rel_positions)


def _separate_all(
    targets: dict[str, Point],
    radius: dict[str, float],
    opts: ArrangeOptions,
) -> int:
    ids = sorted(targets)
    iteration = 0
    for iteration in range(1, opts.separation_iterations + 1):
        max_move = 0.0
        for i, id_a in enumerate(ids):
            pos_a = targets[id_a]
            for id_b in ids[i + 1:]:
                pos_b = targets[id_b]
                nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
                min_dist = radius[id_a] + radius[id_b] + opts.separation_gap
                if dist < min_dist:
                    push = (min_dist - dist) / 2
                    pos_a.x -= nx * push
                    pos_a.y -= ny * push
                    pos_b.x += nx * push
                    pos_b.y += ny * push
                    max_move = max(max_move, push)
        if max_move < opts.separation_threshold:
            break
    return iteration
