from __future__ import annotations

from typing import Any

from .types import (
    NODE_KINDS,
    ChenEdge,
    ChenGraph,
    ChenNode,
    Column,
    Point,
    Relation,
    Table,
)

# ============================================================================
# JSON-shaped dicts <-> graph snapshots
#
# Keys are snake_case; the camelCase spellings written by browser front ends
# (nodeType, parentEntity, isPrimaryKey, edgeType) are accepted on input.
# ============================================================================

EDGE_KINDS = ("entity-attribute", "entity-relationship", "relationship-entity")


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def node_from_dict(data: dict[str, Any]) -> ChenNode:
    if "id" not in data:
        raise ValueError(f"Node without id: {data!r}")
    kind = _pick(data, "kind", "nodeType", "type")
    if kind not in NODE_KINDS:
        raise ValueError(f"Unknown node kind {kind!r} for node {data['id']!r}")
    return ChenNode(
        id=str(data["id"]),
        kind=kind,
        x=float(_pick(data, "x", default=0.0)),
        y=float(_pick(data, "y", default=0.0)),
        width=_optional_float(_pick(data, "width")),
        height=_optional_float(_pick(data, "height")),
        label=str(_pick(data, "label", default="")),
        parent_entity=_pick(data, "parent_entity", "parentEntity"),
        is_primary_key=bool(_pick(data, "is_primary_key", "isPrimaryKey", default=False)),
    )


def edge_from_dict(data: dict[str, Any], index: int = 0) -> ChenEdge:
    if "source" not in data or "target" not in data:
        raise ValueError(f"Edge without source/target: {data!r}")
    kind = _pick(data, "kind", "edgeType")
    if kind is not None and kind not in EDGE_KINDS:
        raise ValueError(f"Unknown edge kind {kind!r}")
    return ChenEdge(
        id=str(_pick(data, "id", default=f"edge-{index}")),
        source=str(data["source"]),
        target=str(data["target"]),
        kind=kind,
        label=_pick(data, "label"),
    )


def graph_from_dict(data: dict[str, Any]) -> ChenGraph:
    """Build a snapshot from ``{"nodes": [...], "edges": [...]}``.

    Raises ValueError for unknown kinds and duplicate node ids.
    """
    nodes = tuple(node_from_dict(n) for n in data.get("nodes", []))
    seen: set[str] = set()
    for node in nodes:
        if node.id in seen:
            raise ValueError(f"Duplicate node id: {node.id!r}")
        seen.add(node.id)
    edges = tuple(edge_from_dict(e, i) for i, e in enumerate(data.get("edges", [])))
    return ChenGraph(nodes=nodes, edges=edges)


def graph_to_dict(graph: ChenGraph) -> dict[str, Any]:
    nodes = []
    for node in graph.nodes:
        item: dict[str, Any] = {"id": node.id, "kind": node.kind, "x": node.x, "y": node.y}
        if node.width is not None and node.height is not None:
            item["width"] = node.width
            item["height"] = node.height
        if node.label:
            item["label"] = node.label
        if node.parent_entity:
            item["parent_entity"] = node.parent_entity
        if node.is_primary_key:
            item["is_primary_key"] = True
        nodes.append(item)

    edges = []
    for edge in graph.edges:
        item = {"id": edge.id, "source": edge.source, "target": edge.target}
        if edge.kind:
            item["kind"] = edge.kind
        if edge.label is not None:
            item["label"] = edge.label
        edges.append(item)

    return {"nodes": nodes, "edges": edges}


def targets_to_dict(targets: dict[str, Point]) -> dict[str, dict[str, float]]:
    """Target map as ``{id: {"x": ..., "y": ...}}`` in id order."""
    return {nid: {"x": targets[nid].x, "y": targets[nid].y} for nid in sorted(targets)}


# ============================================================================
# Schema input
# ============================================================================


def schema_from_dict(data: dict[str, Any]) -> tuple[list[Table], list[Relation]]:
    """Parse ``{"tables": [...], "relations": [...]}`` for the graph builder."""
    tables: list[Table] = []
    for t in data.get("tables", []):
        if "name" not in t:
            raise ValueError(f"Table without name: {t!r}")
        columns = tuple(
            Column(
                name=str(c["name"]) if isinstance(c, dict) else str(c),
                type=str(c.get("type", "")) if isinstance(c, dict) else "",
                is_primary_key=(
                    bool(_pick(c, "is_primary_key", "isPrimaryKey", default=False))
                    if isinstance(c, dict) else False
                ),
            )
            for c in t.get("columns", [])
        )
        tables.append(Table(
            name=str(t["name"]),
            columns=columns,
            primary_keys=tuple(_pick(t, "primary_keys", "primaryKeys", default=())),
            alias=t.get("alias"),
        ))

    relations: list[Relation] = []
    for r in _pick(data, "relations", "relationships", default=[]):
        from_table = _pick(r, "from_table", "from")
        to_table = _pick(r, "to_table", "to")
        if from_table is None or to_table is None:
            raise ValueError(f"Relation without from/to table: {r!r}")
        relations.append(Relation(
            from_table=str(from_table), to_table=str(to_table), label=str(r.get("label", "")),
        ))
    return tables, relations
