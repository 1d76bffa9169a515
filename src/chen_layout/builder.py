from __future__ import annotations

import logging
from typing import Sequence

from .styles import attribute_box, entity_box, relationship_box
from .types import ChenEdge, ChenGraph, ChenNode, Relation, Table

# ============================================================================
# Chen graph builder
#
# Every table becomes an entity rectangle, every column an attribute ellipse
# wired to it, and every foreign-key relation a relationship diamond between
# the referencing entity (N side) and the referenced one (1 side). Node ids
# embed names and indexes so rebuilding the same schema yields the same ids.
# ============================================================================

logger = logging.getLogger(__name__)


def build_chen_graph(
    tables: Sequence[Table],
    relations: Sequence[Relation] = (),
) -> ChenGraph:
    """Convert tables and foreign-key relations into a Chen graph snapshot.

    Nodes carry measured boxes but no positions; run a layout to place them.
    Relations naming an unknown table keep their diamond but lose the
    dangling edge.
    """
    nodes: list[ChenNode] = []
    edges: list[ChenEdge] = []
    entity_ids: dict[str, str] = {}

    for t_idx, table in enumerate(tables):
        entity_id = f"entity-{table.name}-{t_idx}"
        entity_ids[table.name] = entity_id
        if table.alias:
            entity_ids[table.alias] = entity_id

        width, height = entity_box(table.name)
        nodes.append(ChenNode(
            id=entity_id, kind="entity", width=width, height=height, label=table.name,
        ))

        for c_idx, column in enumerate(table.columns):
            attr_id = f"attr-{table.name}-{column.name}-{t_idx}-{c_idx}"
            width, height = attribute_box(column.name)
            nodes.append(ChenNode(
                id=attr_id,
                kind="attribute",
                width=width,
                height=height,
                label=column.name,
                parent_entity=entity_id,
                is_primary_key=column.is_primary_key or column.name in table.primary_keys,
            ))
            edges.append(ChenEdge(
                id=f"edge-{entity_id}-{attr_id}-{t_idx}-{c_idx}",
                source=entity_id,
                target=attr_id,
                kind="entity-attribute",
            ))

    for r_idx, rel in enumerate(relations):
        rel_id = f"rel-{rel.from_table}-{rel.to_table}-{rel.label}-{r_idx}"
        width, height = relationship_box(rel.label)
        nodes.append(ChenNode(
            id=rel_id, kind="relationship", width=width, height=height, label=rel.label,
        ))

        source_entity = entity_ids.get(rel.from_table)
        if source_entity is None:
            logger.warning("relation %s references unknown table %r", rel_id, rel.from_table)
        else:
            edges.append(ChenEdge(
                id=f"edge-entity-{rel.from_table}-{rel_id}-{r_idx}-1",
                source=source_entity,
                target=rel_id,
                kind="entity-relationship",
                label="N",
            ))

        target_entity = entity_ids.get(rel.to_table)
        if target_entity is None:
            logger.warning("relation %s references unknown table %r", rel_id, rel.to_table)
        else:
            edges.append(ChenEdge(
                id=f"edge-{rel_id}-entity-{rel.to_table}-{r_idx}-2",
                source=rel_id,
                target=target_entity,
                kind="relationship-entity",
                label="1",
            ))

    logger.debug("built chen graph: %d nodes, %d edges", len(nodes), len(edges))
    return ChenGraph(nodes=tuple(nodes), edges=tuple(edges))
