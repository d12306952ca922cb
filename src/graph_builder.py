"""Denormalise entity/relation rows into the 3D graph payload.

Each entity becomes a GraphNode carrying a palette colour and a size
value derived from its type; each relation becomes a GraphLink keyed by
the endpoint ids. The payload is rebuilt on every fetch and never stored.
"""

import logging
from typing import Iterable

from src.models import (
    DEFAULT_ENTITY_COLOR,
    ENTITY_COLORS,
    Entity,
    EntityType,
    GraphData,
    GraphLink,
    GraphNode,
    Relation,
)

logger = logging.getLogger(__name__)

ENTITY_SIZES = {
    EntityType.STAGE.value: 20,
    EntityType.DRUG.value: 15,
    EntityType.BIOMARKER.value: 12,
}
DEFAULT_ENTITY_SIZE = 10


def entity_color(entity_type: str) -> str:
    """Palette colour for an entity type, gray for unrecognised types."""
    return ENTITY_COLORS.get(entity_type, DEFAULT_ENTITY_COLOR)


def entity_size(entity_type: str) -> int:
    return ENTITY_SIZES.get(entity_type, DEFAULT_ENTITY_SIZE)


def to_graph_node(entity: Entity) -> GraphNode:
    return GraphNode(
        id=entity.id,
        name=entity.name,
        type=entity.entity_type,
        brief=entity.brief or entity.name,
        color=entity_color(entity.entity_type),
        val=entity_size(entity.entity_type),
        entity=entity,
    )


def to_graph_link(relation: Relation) -> GraphLink:
    return GraphLink(
        source=relation.from_entity_id,
        target=relation.to_entity_id,
        type=relation.relation_type,
        condition=relation.condition,
        evidence=relation.evidence_level,
    )


def build_graph_data(
    entities: Iterable[Entity],
    relations: Iterable[Relation],
) -> GraphData:
    """Join the entity and relation collections into a GraphData payload."""
    nodes = [to_graph_node(e) for e in entities]
    links = [to_graph_link(r) for r in relations]
    logger.debug("Built graph payload: %d nodes, %d links", len(nodes), len(links))
    return GraphData(nodes=nodes, links=links)
