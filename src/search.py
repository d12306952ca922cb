"""Free-text filter for the Graph Explorer."""

from typing import Set

from src.models import GraphData, GraphNode


def node_matches(node: GraphNode, query: str) -> bool:
    """Case-insensitive substring match against the node name and type."""
    needle = query.lower()
    return needle in node.name.lower() or needle in node.type.lower()


def filter_graph(data: GraphData, query: str) -> GraphData:
    """Return the nodes matching ``query`` and every link touching one of them.

    A link survives when at least one endpoint survives, so the result can
    reference nodes that were filtered out. An empty query returns ``data``
    unchanged; any other string, whitespace included, is matched as is.
    """
    if not query:
        return data

    nodes = [n for n in data.nodes if node_matches(n, query)]
    kept: Set[str] = {n.id for n in nodes}
    links = [
        link for link in data.links if link.source in kept or link.target in kept
    ]
    return GraphData(nodes=nodes, links=links)
