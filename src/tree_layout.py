"""Expandable tree layout for the interactive guideline flowcharts.

Given a static id -> FlowchartNodeRecord map, the set of expanded ids and
the root id, the builder produces the visible nodes (with x/y positions)
and the visible edges. A node is visible exactly when it is reachable from
the root through ancestors that are all expanded.

The layout runs in three passes:

1. Discovery: breadth-first from the root, grouping ids by level. Children
   are only enqueued for ids that declare children and are expanded.
2. Positions: each level splits a fixed total width into ``count + 1``
   equal slices; siblings are evenly spaced regardless of where their
   parent sits.
3. Materialisation: walk the same BFS order again and emit node records
   (with category styling) and parent -> child edges.

The result depends only on its inputs. Collapsed subtrees are never
traversed, so a rebuild is O(V + E) over the visible part of the tree.
"""

import logging
from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from src.models import (
    CATEGORY_COLORS,
    FlowEdge,
    FlowLayout,
    FlowNode,
    FlowchartNodeRecord,
    NodeCategory,
    NodeStyle,
    Position,
)

logger = logging.getLogger(__name__)

DEFAULT_ROOT = "nsclc"
TOTAL_WIDTH = 1200.0
LEVEL_HEIGHT = 150.0
TOP_OFFSET = 50.0

HIGHLIGHT_BORDER = "3px solid #facc15"

NodeMap = Dict[str, FlowchartNodeRecord]


# ═══════════════════════════════════════════════════════════════════════
# Expansion state
# ═══════════════════════════════════════════════════════════════════════


class ExpansionState:
    """Expanded ids and the hovered id for one flowchart canvas.

    Collapsing only removes the clicked id. Descendants keep their own
    flags, so re-expanding a node brings back its previously expanded
    subtree.
    """

    def __init__(self, root: str = DEFAULT_ROOT, expanded: Optional[Iterable[str]] = None):
        self.root = root
        self.expanded: Set[str] = {root}
        if expanded:
            self.expanded.update(expanded)
        self.hovered: Optional[str] = None

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self.expanded

    def toggle(self, node_id: str, nodes: NodeMap) -> bool:
        """Expand or collapse ``node_id``; returns the new expanded flag.

        Ids without a record or without children are left untouched.
        """
        record = nodes.get(node_id)
        if record is None or not record.has_children:
            return self.is_expanded(node_id)
        if node_id in self.expanded:
            self.expanded.discard(node_id)
            logger.debug("Collapsed %s", node_id)
            return False
        self.expanded.add(node_id)
        logger.debug("Expanded %s", node_id)
        return True

    def set_hover(self, node_id: Optional[str]) -> None:
        self.hovered = node_id

    def snapshot(self) -> FrozenSet[str]:
        return frozenset(self.expanded)


# ═══════════════════════════════════════════════════════════════════════
# Pass 1 - discovery
# ═══════════════════════════════════════════════════════════════════════


def _bfs(nodes: NodeMap, expanded: Iterable[str], root: str) -> Iterator[Tuple[str, int]]:
    """Yield ``(id, level)`` in breadth-first discovery order."""
    expanded_set = expanded if isinstance(expanded, (set, frozenset)) else set(expanded)
    visited: Set[str] = set()
    queue: Deque[Tuple[str, int]] = deque([(root, 0)])
    while queue:
        node_id, level = queue.popleft()
        if node_id in visited:
            continue
        record = nodes.get(node_id)
        if record is None:
            continue
        visited.add(node_id)
        yield node_id, level
        if record.has_children and node_id in expanded_set:
            for child in record.children:
                queue.append((child, level + 1))


def discover_levels(nodes: NodeMap, expanded: Iterable[str], root: str = DEFAULT_ROOT) -> List[List[str]]:
    """Visible ids grouped by level, in discovery order within each level."""
    levels: List[List[str]] = []
    for node_id, level in _bfs(nodes, expanded, root):
        while len(levels) <= level:
            levels.append([])
        levels[level].append(node_id)
    return levels


# ═══════════════════════════════════════════════════════════════════════
# Pass 2 - positions
# ═══════════════════════════════════════════════════════════════════════


def assign_positions(
    levels: List[List[str]],
    total_width: float = TOTAL_WIDTH,
    level_height: float = LEVEL_HEIGHT,
    top_offset: float = TOP_OFFSET,
) -> Dict[str, Position]:
    positions: Dict[str, Position] = {}
    for level, ids in enumerate(levels):
        slice_width = total_width / (len(ids) + 1)
        y = top_offset + level * level_height
        for i, node_id in enumerate(ids, start=1):
            positions[node_id] = Position(x=slice_width * i, y=y)
    return positions


# ═══════════════════════════════════════════════════════════════════════
# Pass 3 - materialisation
# ═══════════════════════════════════════════════════════════════════════


def node_style(category: NodeCategory, hovered: bool = False) -> NodeStyle:
    """Category colour; decision nodes are pills, everything else a rectangle."""
    is_decision = category == NodeCategory.DECISION
    return NodeStyle(
        background=CATEGORY_COLORS[category],
        border=HIGHLIGHT_BORDER if hovered else "none",
        border_radius="9999px" if is_decision else "6px",
        shape="pill" if is_decision else "rect",
        highlighted=hovered,
    )


def _materialise(
    nodes: NodeMap,
    expanded: FrozenSet[str],
    root: str,
    positions: Dict[str, Position],
    hovered: Optional[str],
) -> FlowLayout:
    flow_nodes: List[FlowNode] = []
    flow_edges: List[FlowEdge] = []
    for node_id, level in _bfs(nodes, expanded, root):
        record = nodes[node_id]
        is_expanded = node_id in expanded
        flow_nodes.append(
            FlowNode(
                id=node_id,
                position=positions[node_id],
                label=record.label,
                category=record.category,
                evidence=record.evidence,
                expandable=record.has_children,
                expanded=is_expanded,
                level=level,
                style=node_style(record.category, hovered == node_id),
            )
        )
        if record.has_children and is_expanded:
            for child in record.children:
                # dangling child ids are never discovered, so no edge either
                if child not in nodes:
                    continue
                flow_edges.append(
                    FlowEdge(id=f"e{node_id}-{child}", source=node_id, target=child)
                )
    return FlowLayout(nodes=flow_nodes, edges=flow_edges)


def build_layout(
    nodes: NodeMap,
    expanded: Iterable[str],
    root: str = DEFAULT_ROOT,
    hovered: Optional[str] = None,
    total_width: float = TOTAL_WIDTH,
    level_height: float = LEVEL_HEIGHT,
    top_offset: float = TOP_OFFSET,
) -> FlowLayout:
    """Run all three passes and return the visible layout."""
    frozen = frozenset(expanded)
    levels = discover_levels(nodes, frozen, root)
    positions = assign_positions(levels, total_width, level_height, top_offset)
    return _materialise(nodes, frozen, root, positions, hovered)


class TreeLayoutBuilder:
    """Layout builder bound to one flowchart map.

    Discovery and positions only depend on the expansion set, so they are
    cached per frozen set; a hover change only re-derives styles.
    """

    def __init__(
        self,
        nodes: NodeMap,
        root: str = DEFAULT_ROOT,
        total_width: float = TOTAL_WIDTH,
        level_height: float = LEVEL_HEIGHT,
        top_offset: float = TOP_OFFSET,
        cache_size: int = 64,
    ) -> None:
        self.nodes = nodes
        self.root = root
        self.total_width = total_width
        self.level_height = level_height
        self.top_offset = top_offset
        self.cache_size = cache_size
        self._positions: Dict[FrozenSet[str], Dict[str, Position]] = {}

    def _positions_for(self, expanded: FrozenSet[str]) -> Dict[str, Position]:
        cached = self._positions.get(expanded)
        if cached is not None:
            return cached
        levels = discover_levels(self.nodes, expanded, self.root)
        positions = assign_positions(
            levels, self.total_width, self.level_height, self.top_offset
        )
        if len(self._positions) >= self.cache_size:
            self._positions.pop(next(iter(self._positions)))
        self._positions[expanded] = positions
        return positions

    def build(self, expanded: Iterable[str], hovered: Optional[str] = None) -> FlowLayout:
        frozen = frozenset(expanded)
        positions = self._positions_for(frozen)
        return _materialise(self.nodes, frozen, self.root, positions, hovered)

    def build_for(self, state: ExpansionState) -> FlowLayout:
        return self.build(state.expanded, state.hovered)
