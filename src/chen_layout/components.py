from __future__ import annotations

from typing import Iterable

from grandalf.graphs import Vertex, Edge, Graph

from .types import ChenGraph

# ============================================================================
# Connected components
#
# grandalf holds the adjacency (Vertex.N) and splits the graph into connected
# cores. The smallest id of each core seeds a depth-first stack walk over
# sorted neighbor ids, and that walk fixes the member order. Components are
# listed by their seed id.
# ============================================================================


def build_graph(
    node_ids: Iterable[str],
    edges: Iterable[tuple[str, str]],
) -> tuple[Graph, dict[str, Vertex]]:
    """Undirected grandalf graph over ``node_ids``.

    Edges touching an id outside the set are ignored.
    """
    vertices: dict[str, Vertex] = {}
    for nid in sorted(set(node_ids)):
        vertices[nid] = Vertex(nid)

    links: list[Edge] = []
    for source, target in edges:
        src_v = vertices.get(source)
        tgt_v = vertices.get(target)
        if src_v is None or tgt_v is None:
            continue
        links.append(Edge(src_v, tgt_v))

    return Graph(list(vertices.values()), links), vertices


def sorted_neighbors(vertex: Vertex) -> list[str]:
    return sorted({nb.data for nb in vertex.N(0)})


def connected_components(
    node_ids: Iterable[str],
    edges: Iterable[tuple[str, str]],
) -> list[list[str]]:
    """Ordered partition of ``node_ids`` into connected components."""
    graph, vertices = build_graph(node_ids, edges)
    if not vertices:
        return []

    starts = sorted(min(v.data for v in core.V()) for core in graph.C)

    components: list[list[str]] = []
    visited: set[str] = set()
    for start in starts:
        if start in visited:
            continue
        stack = [start]
        visited.add(start)
        comp: list[str] = []
        while stack:
            cur = stack.pop()
            comp.append(cur)
            for nb in sorted_neighbors(vertices[cur]):
                if nb not in visited:
                    visited.add(nb)
                    stack.append(nb)
        components.append(comp)

    return components


# ============================================================================
# Chen graph topology
# ============================================================================


def relationship_connections(graph: ChenGraph) -> dict[str, list[str]]:
    """Relationship id -> sorted ids of the entities it is wired to."""
    node_map = graph.node_map()
    connections: dict[str, set[str]] = {}
    for edge in graph.edges:
        source = node_map.get(edge.source)
        target = node_map.get(edge.target)
        if source is None or target is None:
            continue
        if source.kind == "relationship" and target.kind == "entity":
            connections.setdefault(source.id, set()).add(target.id)
        elif target.kind == "relationship" and source.kind == "entity":
            connections.setdefault(target.id, set()).add(source.id)
    return {rid: sorted(ids) for rid, ids in connections.items()}


def attribute_owners(graph: ChenGraph) -> dict[str, str]:
    """Attribute id -> owning entity id.

    ``parent_entity`` wins; an attribute without one falls back to the first
    entity it is wired to.
    """
    node_map = graph.node_map()
    wired: dict[str, list[str]] = {}
    for edge in graph.edges:
        source = node_map.get(edge.source)
        target = node_map.get(edge.target)
        if source is None or target is None:
            continue
        if source.kind == "attribute" and target.kind == "entity":
            wired.setdefault(source.id, []).append(target.id)
        elif target.kind == "attribute" and source.kind == "entity":
            wired.setdefault(target.id, []).append(source.id)

    owners: dict[str, str] = {}
    for node in graph.nodes:
        if node.kind != "attribute":
            continue
        parent = node_map.get(node.parent_entity) if node.parent_entity else None
        if parent is not None and parent.kind == "entity":
            owners[node.id] = parent.id
        elif node.id in wired:
            owners[node.id] = sorted(wired[node.id])[0]
    return owners

