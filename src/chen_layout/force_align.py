from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field

from .components import attribute_owners, connected_components
from .geometry import (
    TWO_PI,
    allocate_largest_remainder,
    angle_to,
    deterministic_hash,
    estimate_radius,
    normalize_angle,
    separation_axis,
    sign,
)
from .types import ChenGraph, ChenNode, ForceAlignOptions, LayoutResult, Point

# ============================================================================
# Force-align layout -- main chain plus recursive branches
#
# Attributes are ignored while the skeleton is built:
#
#   1. Entities and relationships form the core graph. In every connected
#      core component the longest path (diameter) becomes the main chain,
#      laid out horizontally.
#   2. Everything hanging off the chain is split into branches. Each branch
#      gets a side (+1 / -1) once, by a fixed precedence rule, and keeps it.
#   3. A breadth-first walk from the chain entities fans relationships out
#      into wedges on their branch side and drops the entity behind each
#      relationship further out along the same direction.
#   4. Components are tiled into rows and a few straightening passes run.
#      Core overlaps are resolved with the main chain held in place.
#   5. Attributes are ringed around their entities and pushed clear of each
#      other and of the fixed core nodes.
# ============================================================================

logger = logging.getLogger(__name__)

CORE_KINDS = ("entity", "relationship")


@dataclass(slots=True)
class _Topology:
    """Core (entity/relationship) graph shared by all passes of one call."""

    nodes: dict[str, ChenNode]
    radius: dict[str, float]
    adj: dict[str, set[str]]
    # Side sign per node; main-chain entities hold 0
    side: dict[str, int] = field(default_factory=dict)
    # Entity that fanned out each off-chain relationship
    fan_owner: dict[str, str] = field(default_factory=dict)

    def neighbors(self, nid: str) -> list[str]:
        return sorted(self.adj.get(nid, ()))

    def is_entity(self, nid: str) -> bool:
        node = self.nodes.get(nid)
        return node is not None and node.kind == "entity"

    def relationship_neighbors(self, nid: str) -> list[str]:
        return [
            nb for nb in self.neighbors(nid)
            if self.nodes[nb].kind == "relationship"
        ]

    def entity_neighbors(self, nid: str, exclude: str | None = None) -> list[str]:
        return [
            nb for nb in self.neighbors(nid)
            if self.nodes[nb].kind == "entity" and nb != exclude
        ]


@dataclass(slots=True)
class _ComponentLayout:
    targets: dict[str, Point]
    # min_x, min_y, max_x, max_y including node radii
    bounds: tuple[float, float, float, float]
    main_path: list[str]


# ============================================================================
# Main layout function
# ============================================================================


def force_align_layout(
    graph: ChenGraph,
    width: float = 0,
    options: ForceAlignOptions | None = None,
) -> LayoutResult:
    """Lay out each core component along its main chain, branches fanned out.

    ``width`` is the container width used to wrap component rows.
    """
    opts = options or ForceAlignOptions()
    node_map = graph.node_map()
    core_ids = sorted(n.id for n in graph.nodes if n.kind in CORE_KINDS)
    if not core_ids:
        return LayoutResult(targets={n.id: Point(x=n.x, y=n.y) for n in graph.nodes})

    topo = _build_topology(graph, node_map, core_ids)
    core_edges = [(a, b) for a, nbs in topo.adj.items() for b in nbs if a < b]
    components = connected_components(core_ids, core_edges)

    layouts = [_layout_component(comp, topo, opts) for comp in components]
    targets, main_ids = _tile_components(layouts, width if width > 0 else opts.default_width, opts)
    main_anchor = {nid: Point(x=targets[nid].x, y=targets[nid].y) for nid in main_ids}

    entity_ids = [nid for nid in core_ids if topo.is_entity(nid)]
    relationship_ids = [nid for nid in core_ids if not topo.is_entity(nid)]

    _even_side_spacing(entity_ids, main_ids, targets, topo, opts)
    _reproject_branches(entity_ids, main_ids, targets, topo, opts)
    _enforce_local_triplets(relationship_ids, main_ids, targets, topo, opts)
    _adjust_relationship_midpoints(relationship_ids, main_ids, targets, topo, opts)

    iterations = _resolve_core_overlaps(core_ids, main_ids, targets, topo, opts)
    logger.debug("force-align: overlap resolution stopped after %d iterations", iterations)

    for nid, pos in main_anchor.items():
        targets[nid] = Point(x=pos.x, y=pos.y)

    # Attributes ring the settled entities; the core nodes no longer move
    attr_ids = _place_attributes(graph, targets, topo, opts)
    iterations = _separate_attributes(attr_ids, core_ids, targets, topo, opts)
    logger.debug("force-align: attribute separation stopped after %d iterations", iterations)

    for nid, node in node_map.items():
        if nid not in targets:
            targets[nid] = Point(x=node.x, y=node.y)

    logger.info(
        "force-align layout: %d core components, %d main-chain nodes, %d nodes placed",
        len(components), len(main_ids), len(targets),
    )
    return LayoutResult(targets=targets, fit_view=True)


def _build_topology(
    graph: ChenGraph,
    node_map: dict[str, ChenNode],
    core_ids: list[str],
) -> _Topology:
    adj: dict[str, set[str]] = {nid: set() for nid in core_ids}
    for edge in graph.edges:
        source = node_map.get(edge.source)
        target = node_map.get(edge.target)
        if source is None or target is None or source.id == target.id:
            continue
        if source.kind in CORE_KINDS and target.kind in CORE_KINDS:
            adj[source.id].add(target.id)
            adj[target.id].add(source.id)
    return _Topology(
        nodes=node_map,
        radius={nid: estimate_radius(node_map[nid]) for nid in node_map},
        adj=adj,
    )


# ============================================================================
# Main chain
# ============================================================================


def _bfs_farthest(
    start: str, allowed: set[str], topo: _Topology
) -> tuple[str, dict[str, str]]:
    """Farthest node from ``start`` (first discovered on ties) and BFS parents."""
    dist = {start: 0}
    prev: dict[str, str] = {}
    queue = deque([start])
    while queue:
        cur = queue.popleft()
        for nb in topo.neighbors(cur):
            if nb not in allowed or nb in dist:
                continue
            dist[nb] = dist[cur] + 1
            prev[nb] = cur
            queue.append(nb)

    farthest = start
    for nid, d in dist.items():
        if d > dist[farthest]:
            farthest = nid
    return farthest, prev


def find_main_chain(ids: list[str], topo: _Topology) -> list[str]:
    """Diameter path of a component via double breadth-first search."""
    allowed = set(ids)
    end_a, _ = _bfs_farthest(ids[0], allowed, topo)
    end_b, prev = _bfs_farthest(end_a, allowed, topo)
    path = [end_b]
    while path[-1] in prev:
        path.append(prev[path[-1]])
    path.reverse()
    return path


def _assign_branch_sides(ids: list[str], main_set: set[str], topo: _Topology) -> None:
    """Give every branch hanging off the main chain a side sign.

    Branches are walked in sorted-id order. Precedence: a sign already held
    by a member, then a sign held by one of the chain anchors, then the next
    value of an alternation starting at +1.
    """
    alternate = 1
    visited: set[str] = set()
    for nid in sorted(i for i in ids if i not in main_set):
        if nid in visited:
            continue
        visited.add(nid)
        stack = [nid]
        branch: list[str] = []
        while stack:
            cur = stack.pop()
            branch.append(cur)
            for nb in topo.neighbors(cur):
                if nb in visited or nb in main_set:
                    continue
                visited.add(nb)
                stack.append(nb)

        anchors = sorted({nb for m in branch for nb in topo.neighbors(m) if nb in main_set})
        branch_sign = next((topo.side[m] for m in sorted(branch) if topo.side.get(m)), 0)
        if not branch_sign:
            branch_sign = next((topo.side[a] for a in anchors if topo.side.get(a)), 0)
        if not branch_sign:
            branch_sign = alternate
            alternate = -alternate
        for m in branch:
            topo.side[m] = branch_sign


# ============================================================================
# Branch fan-out
# ============================================================================


def compute_wedge_angles(
    anchors: list[float],
    count: int,
    preferred_sign: int = 0,
) -> list[float]:
    """Angles for ``count`` new spokes around an entity, sorted ascending.

    With a preferred side only the matching half circle is used: existing
    anchor angles inside it cut it into arcs and the spokes are split over
    the arcs by largest remainder. Without a side the spokes share the full
    circle, between the anchors if there are any.
    """
    if count <= 0:
        return []

    if preferred_sign:
        half_start = 0.0 if preferred_sign > 0 else math.pi
        half_end = half_start + math.pi
        in_half = sorted(
            a for a in (normalize_angle(x) for x in anchors)
            if half_start <= a < half_end
        )
        points = [half_start, *in_half, half_end]
        arcs = [(points[i], points[i + 1] - points[i]) for i in range(len(points) - 1)]
        extras = allocate_largest_remainder([length for _, length in arcs], count)

        result: list[float] = []
        for (start, length), n in zip(arcs, extras):
            if length <= 1e-6 or n <= 0:
                continue
            for k in range(1, n + 1):
                result.append(normalize_angle(start + length * k / (n + 1)))
        if not result:
            step = math.pi / (count + 1)
            result = [normalize_angle(half_start + step * (i + 1)) for i in range(count)]
        return sorted(result)

    if not anchors:
        step = TWO_PI / count
        return [normalize_angle(step * i) for i in range(count)]

    ordered = sorted(anchors)
    extended = ordered + [ordered[0] + TWO_PI]
    arcs = [(extended[i], extended[i + 1] - extended[i]) for i in range(len(ordered))]
    extras = allocate_largest_remainder([length for _, length in arcs], count)

    result = []
    for (start, length), n in zip(arcs, extras):
        for k in range(1, n + 1):
            result.append(normalize_angle(start + length * k / (n + 1)))
    return sorted(result)


def _leads_to_same_area(others_a: list[str], others_b: list[str], topo: _Topology) -> bool:
    """Whether two relationships reach the same or adjacent far entities."""
    if any(x in others_b for x in others_a):
        return True
    return any(y in topo.adj.get(x, ()) for x in others_a for y in others_b)


def _relationship_groups(unplaced: list[str], others: dict[str, list[str]], topo: _Topology) -> list[list[str]]:
    links: dict[str, set[str]] = {rid: set() for rid in unplaced}
    for i, a in enumerate(unplaced):
        for b in unplaced[i + 1:]:
            if _leads_to_same_area(others[a], others[b], topo):
                links[a].add(b)
                links[b].add(a)

    groups: list[list[str]] = []
    visited: set[str] = set()
    for rid in unplaced:
        if rid in visited:
            continue
        visited.add(rid)
        stack = [rid]
        group: list[str] = []
        while stack:
            cur = stack.pop()
            group.append(cur)
            for nb in sorted(links[cur]):
                if nb not in visited:
                    visited.add(nb)
                    stack.append(nb)
        groups.append(group)
    return groups


def _fan_out_entity(
    eid: str,
    targets: dict[str, Point],
    queue: deque[str],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> None:
    entity_pos = targets.get(eid)
    if entity_pos is None:
        return
    entity_r = topo.radius[eid]
    preferred = topo.side.get(eid, 0)
    next_alt = preferred or 1

    rel_neighbors = topo.relationship_neighbors(eid)
    if not rel_neighbors:
        return

    anchor_angles = {
        rid: angle_to(entity_pos, targets[rid]) for rid in rel_neighbors if rid in targets
    }
    unplaced = [rid for rid in rel_neighbors if rid not in targets]
    others = {rid: topo.entity_neighbors(rid, exclude=eid) for rid in unplaced}
    signed_anchors = [
        (ang, topo.side.get(rid) or sign(math.sin(ang)))
        for rid, ang in anchor_angles.items()
    ]

    for group in _relationship_groups(unplaced, others, topo):
        ordered = sorted(group)
        group_sign = 0
        for rid in ordered:
            if topo.side.get(rid):
                group_sign = topo.side[rid]
                break
            entity_sign = next((topo.side[o] for o in others[rid] if topo.side.get(o)), 0)
            if entity_sign:
                group_sign = entity_sign
                break
        if not group_sign:
            group_sign = next_alt
            next_alt = -next_alt

        side_anchors = [
            ang for ang, s in signed_anchors
            if (s >= 0 if group_sign > 0 else s <= 0)
        ]
        angles = compute_wedge_angles(
            side_anchors or list(anchor_angles.values()), len(group), group_sign
        )
        for idx, rid in enumerate(ordered):
            angle = angles[idx % len(angles)]
            dist = entity_r + topo.radius[rid] + opts.relationship_gap
            targets[rid] = Point(
                x=entity_pos.x + math.cos(angle) * dist,
                y=entity_pos.y + math.sin(angle) * dist,
            )
            if rid not in topo.side:
                topo.side[rid] = sign(math.sin(angle)) or group_sign or preferred or 1
            topo.fan_owner[rid] = eid

    # Drop the far entity of every relationship further out on the same spoke
    for rid in rel_neighbors:
        rel_pos = targets.get(rid)
        if rel_pos is None:
            continue
        angle = math.atan2(rel_pos.y - entity_pos.y, rel_pos.x - entity_pos.x)
        for oid in topo.entity_neighbors(rid, exclude=eid):
            if oid in targets:
                continue
            dist = entity_r + topo.radius[rid] + topo.radius[oid] + opts.branch_gap
            targets[oid] = Point(
                x=entity_pos.x + math.cos(angle) * dist,
                y=entity_pos.y + math.sin(angle) * dist,
            )
            if oid not in topo.side:
                topo.side[oid] = (
                    sign(math.sin(angle)) or topo.side.get(rid) or topo.side.get(eid) or 1
                )
            queue.append(oid)


def _layout_component(ids: list[str], topo: _Topology, opts: ForceAlignOptions) -> _ComponentLayout:
    spacing = max(
        opts.min_chain_spacing,
        max(topo.radius[nid] for nid in ids) * 2 + opts.chain_padding,
    )

    main_path = find_main_chain(ids, topo)
    main_set = set(main_path)
    targets: dict[str, Point] = {}
    start_x = -((len(main_path) - 1) * spacing) / 2
    for idx, nid in enumerate(main_path):
        targets[nid] = Point(x=start_x + idx * spacing, y=0.0)
        if topo.is_entity(nid):
            topo.side[nid] = 0

    _assign_branch_sides(ids, main_set, topo)

    queue = deque(nid for nid in main_path if topo.is_entity(nid))
    while queue:
        _fan_out_entity(queue.popleft(), targets, queue, topo, opts)

    for nid in ids:
        if nid not in targets:
            node = topo.nodes[nid]
            targets[nid] = Point(x=node.x, y=node.y)

    min_x = min(p.x - topo.radius[nid] for nid, p in targets.items())
    min_y = min(p.y - topo.radius[nid] for nid, p in targets.items())
    max_x = max(p.x + topo.radius[nid] for nid, p in targets.items())
    max_y = max(p.y + topo.radius[nid] for nid, p in targets.items())
    return _ComponentLayout(targets=targets, bounds=(min_x, min_y, max_x, max_y), main_path=main_path)


def _tile_components(
    layouts: list[_ComponentLayout],
    width: float,
    opts: ForceAlignOptions,
) -> tuple[dict[str, Point], set[str]]:
    """Place component layouts left to right, wrapping into new rows."""
    gap = opts.component_gap
    targets: dict[str, Point] = {}
    main_ids: set[str] = set()
    cursor_x = gap
    cursor_y = gap
    row_height = 0.0

    for layout in layouts:
        min_x, min_y, max_x, max_y = layout.bounds
        comp_w = (max_x - min_x) + gap
        comp_h = (max_y - min_y) + gap

        if cursor_x > gap and cursor_x + comp_w > width - gap / 2:
            cursor_x = gap
            cursor_y += row_height + gap
            row_height = 0.0

        offset_x = cursor_x - min_x
        offset_y = cursor_y - min_y
        for nid, pos in layout.targets.items():
            targets[nid] = Point(x=pos.x + offset_x, y=pos.y + offset_y)
        main_ids.update(layout.main_path)

        cursor_x += comp_w
        row_height = max(row_height, comp_h)

    return targets, main_ids


# ============================================================================
# Post-tiling passes
# ============================================================================


def _even_side_spacing(
    entity_ids: list[str],
    main_ids: set[str],
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> None:
    """Split each entity's off-chain relationships evenly per side.

    A relationship is only re-placed by the entity that fanned it out.
    """
    for eid in entity_ids:
        entity_pos = targets.get(eid)
        if entity_pos is None:
            continue
        rel_neighbors = topo.relationship_neighbors(eid)
        if not rel_neighbors:
            continue

        up: list[str] = []
        down: list[str] = []
        for rid in rel_neighbors:
            pos = targets.get(rid)
            side = topo.side.get(rid) or (sign(pos.y - entity_pos.y) if pos else 0) or 1
            (up if side >= 0 else down).append(rid)

        for group, side in ((up, 1), (down, -1)):
            group = [
                rid for rid in group
                if rid not in main_ids and topo.fan_owner.get(rid, eid) == eid
            ]
            if not group:
                continue
            jitter = (deterministic_hash(f"{eid}-{side}") % 1000) / 1000 * opts.side_jitter - opts.side_jitter / 2
            start = (0.0 if side > 0 else math.pi) + jitter
            step = math.pi / (len(group) + 1)
            reach = topo.radius[eid] + max(topo.radius[rid] for rid in group) + opts.relationship_gap
            for idx, rid in enumerate(sorted(group)):
                angle = start + step * (idx + 1)
                targets[rid] = Point(
                    x=entity_pos.x + math.cos(angle) * reach,
                    y=entity_pos.y + math.sin(angle) * reach,
                )
                topo.side[rid] = side


def _reproject_branches(
    entity_ids: list[str],
    main_ids: set[str],
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> None:
    """Move branch entities back onto the spoke of their relationship."""
    projected: set[str] = set()
    for eid in entity_ids:
        entity_pos = targets.get(eid)
        if entity_pos is None:
            continue
        for rid in topo.relationship_neighbors(eid):
            rel_pos = targets.get(rid)
            if rel_pos is None or rid in main_ids:
                continue
            angle = math.atan2(rel_pos.y - entity_pos.y, rel_pos.x - entity_pos.x)
            for oid in topo.entity_neighbors(rid, exclude=eid):
                if oid in main_ids:
                    continue
                dist = topo.radius[eid] + topo.radius[rid] + topo.radius[oid] + opts.branch_gap
                new_pos = Point(
                    x=entity_pos.x + math.cos(angle) * dist,
                    y=entity_pos.y + math.sin(angle) * dist,
                )
                existing = targets.get(oid)
                if existing is None or oid in projected:
                    targets[oid] = new_pos
                elif dist > math.hypot(existing.x - entity_pos.x, existing.y - entity_pos.y):
                    targets[oid] = new_pos
                projected.add(oid)
                topo.side[oid] = (
                    sign(math.sin(angle)) or topo.side.get(rid) or topo.side.get(eid) or 1
                )


def _enforce_local_triplets(
    relationship_ids: list[str],
    main_ids: set[str],
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> None:
    """Straighten entity-diamond-entity triplets off the main chain."""
    for rid in relationship_ids:
        entities = topo.entity_neighbors(rid)
        if len(entities) != 2:
            continue
        e1, e2 = entities
        if e1 in main_ids and e2 in main_ids and rid in main_ids:
            continue
        rel_pos = targets.get(rid)
        p1 = targets.get(e1)
        p2 = targets.get(e2)
        if rel_pos is None or p1 is None or p2 is None:
            continue

        d1 = math.hypot(rel_pos.x - p1.x, rel_pos.y - p1.y)
        d2 = math.hypot(rel_pos.x - p2.x, rel_pos.y - p2.y)
        anchor_id, move_id = (e1, e2) if d1 <= d2 else (e2, e1)
        if move_id in main_ids:
            continue

        ux, uy, _ = separation_axis(targets[anchor_id], rel_pos, f"{anchor_id}|{rid}")
        reach = topo.radius[move_id] + topo.radius[rid] + opts.triplet_gap
        targets[move_id] = Point(x=rel_pos.x + ux * reach, y=rel_pos.y + uy * reach)


def _adjust_relationship_midpoints(
    relationship_ids: list[str],
    main_ids: set[str],
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> None:
    """Snap off-chain diamonds onto their entity pair's midpoint when it fits."""
    for rid in relationship_ids:
        if rid in main_ids:
            continue
        entities = topo.entity_neighbors(rid)
        if len(entities) != 2:
            continue
        e1, e2 = entities
        p1 = targets.get(e1)
        p2 = targets.get(e2)
        if p1 is None or p2 is None:
            continue
        dist = math.hypot(p2.x - p1.x, p2.y - p1.y)
        if not dist:
            continue
        min_span = (
            topo.radius[e1] + topo.radius[e2] + topo.radius[rid] * 2 + opts.midpoint_clearance
        )
        if dist < min_span:
            continue
        targets[rid] = Point(x=(p1.x + p2.x) / 2, y=(p1.y + p2.y) / 2)


def _angular_distance(a: float, b: float) -> float:
    diff = abs(a - b)
    return min(diff, TWO_PI - diff)


def _place_attributes(
    graph: ChenGraph,
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> list[str]:
    """Ring attributes around their entity, clear of relationship spokes.

    Returns the ids of the attributes that were placed.
    """
    by_entity: dict[str, list[str]] = {}
    for aid, eid in attribute_owners(graph).items():
        by_entity.setdefault(eid, []).append(aid)

    placed: list[str] = []
    for eid in sorted(by_entity):
        center = targets.get(eid)
        if center is None:
            continue
        attrs = sorted(by_entity[eid])
        count = len(attrs)
        max_attr = max(topo.radius[aid] for aid in attrs)
        ring = topo.radius[eid] + max_attr + opts.attribute_ring_padding
        if count > 1:
            # Neighbors on the ring are one chord apart
            ring = max(ring, (max_attr * 2 + opts.attribute_gap) / (2 * math.sin(math.pi / count)))
        rel_angles = [
            angle_to(center, targets[rid]) if rid in targets else 0.0
            for rid in topo.relationship_neighbors(eid)
        ]

        step = TWO_PI / count
        for idx, aid in enumerate(attrs):
            seed = deterministic_hash(aid, idx) % 1000 / 1000
            angle = normalize_angle(step * idx + step * 0.35 + (seed - 0.5) * opts.attribute_jitter)
            for t in range(count):
                candidate = normalize_angle(angle + t * (step / (count + 1)))
                if not any(
                    _angular_distance(candidate, ra) < opts.attribute_avoid_angle
                    for ra in rel_angles
                ):
                    angle = candidate
                    break
            targets[aid] = Point(
                x=center.x + math.cos(angle) * ring,
                y=center.y + math.sin(angle) * ring,
            )
            placed.append(aid)
    return placed


def _separate_attributes(
    attr_ids: list[str],
    core_ids: list[str],
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> int:
    """Push attributes off each other and off core nodes; core nodes stay put."""
    iteration = 0
    for iteration in range(1, opts.attribute_iterations + 1):
        moved = 0.0
        for i, id_a in enumerate(attr_ids):
            pos_a = targets[id_a]
            for id_b in attr_ids[i + 1:]:
                pos_b = targets[id_b]
                nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
                min_dist = topo.radius[id_a] + topo.radius[id_b] + opts.attribute_gap
                if dist >= min_dist:
                    continue
                push = (min_dist - dist) / 2
                pos_a.x -= nx * push
                pos_a.y -= ny * push
                pos_b.x += nx * push
                pos_b.y += ny * push
                moved = max(moved, push)
            for cid in core_ids:
                pos_c = targets[cid]
                nx, ny, dist = separation_axis(pos_c, pos_a, f"{cid}|{id_a}")
                min_dist = topo.radius[cid] + topo.radius[id_a] + opts.attribute_gap
                if dist >= min_dist:
                    continue
                push = min_dist - dist
                pos_a.x += nx * push
                pos_a.y += ny * push
                moved = max(moved, push)
        if moved < opts.overlap_threshold:
            break
    return iteration


def _resolve_core_overlaps(
    core_ids: list[str],
    main_ids: set[str],
    targets: dict[str, Point],
    topo: _Topology,
    opts: ForceAlignOptions,
) -> int:
    """Push overlapping core nodes apart; main-chain nodes never move."""
    iteration = 0
    for iteration in range(1, opts.overlap_iterations + 1):
        moved = 0.0
        for i, id_a in enumerate(core_ids):
            pos_a = targets[id_a]
            fixed_a = id_a in main_ids
            for id_b in core_ids[i + 1:]:
                pos_b = targets[id_b]
                fixed_b = id_b in main_ids
                nx, ny, dist = separation_axis(pos_a, pos_b, f"{id_a}|{id_b}")
                min_dist = topo.radius[id_a] + topo.radius[id_b] + opts.overlap_gap
                if dist >= min_dist:
                    continue
                overlap = min_dist - dist
                push_a = 0.0 if fixed_a else overlap / (1 if fixed_b else 2)
                push_b = 0.0 if fixed_b else overlap / (1 if fixed_a else 2)
                pos_a.x -= nx * push_a
                pos_a.y -= ny * push_a
                pos_b.x += nx * push_b
                pos_b.y += ny * push_b
                moved = max(moved, push_a, push_b)
        if moved < opts.overlap_threshold:
            break
    return iteration
