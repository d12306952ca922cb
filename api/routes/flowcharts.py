"""
ESMO Lung Cancer Knowledge Graph - Flowcharts Router
======================================================
Lists the guideline branches, computes the visible tree layout for an
expansion state, and resolves the detail panel for a single node.

The server holds no per-user expansion state: clients send their
expanded ids with every layout request.
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from config.settings import settings
from src.flowcharts import get_flowchart, get_flowchart_info, list_flowcharts
from src.metrics import record_layout_build
from src.panel import resolve_flowchart_panel
from src.tree_layout import TreeLayoutBuilder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["flowcharts"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------
class LayoutRequest(BaseModel):
    expanded: List[str] = Field(default_factory=list)
    hovered: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _get_builder(flowchart_id: str) -> TreeLayoutBuilder:
    """One cached builder per branch, kept in the shared app state."""
    from api.main import get_state

    try:
        nodes = get_flowchart(flowchart_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Flowchart '{flowchart_id}' not found")

    builders: Dict[str, TreeLayoutBuilder] = get_state().setdefault("layout_builders", {})
    builder = builders.get(flowchart_id)
    if builder is None:
        builder = TreeLayoutBuilder(
            nodes,
            root=settings.FLOWCHART_ROOT,
            total_width=settings.LAYOUT_TOTAL_WIDTH,
            level_height=settings.LAYOUT_LEVEL_HEIGHT,
            top_offset=settings.LAYOUT_TOP_OFFSET,
        )
        builders[flowchart_id] = builder
    return builder


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("/api/flowcharts")
async def get_flowcharts():
    """Branch metadata in tab order."""
    flowcharts = [info.model_dump() for info in list_flowcharts()]
    return {"flowcharts": flowcharts, "count": len(flowcharts)}


@router.post("/api/flowcharts/{flowchart_id}/layout")
async def build_flowchart_layout(flowchart_id: str, req: LayoutRequest):
    """Visible nodes and edges for the given expansion state."""
    builder = _get_builder(flowchart_id)

    # The root is always expanded.
    expanded = set(req.expanded)
    expanded.add(builder.root)

    layout = builder.build(expanded, req.hovered)
    record_layout_build(flowchart_id, len(layout.nodes))
    logger.debug(
        "Layout for %s: %d nodes, %d edges",
        flowchart_id, len(layout.nodes), len(layout.edges),
    )

    payload = layout.model_dump()
    payload["flowchart"] = get_flowchart_info(flowchart_id).model_dump()
    return payload


@router.get("/api/flowcharts/{flowchart_id}/nodes/{node_id}")
async def get_flowchart_node(flowchart_id: str, node_id: str):
    """Detail panel content for one flowchart node."""
    try:
        nodes = get_flowchart(flowchart_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Flowchart '{flowchart_id}' not found")

    panel = resolve_flowchart_panel(nodes, node_id)
    if panel is None:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")
    return panel.model_dump()
