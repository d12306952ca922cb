"""
ESMO Lung Cancer Knowledge Graph - Graph Router
=================================================
Serves the denormalised entity/relation payload for the 3D explorer,
optionally narrowed by the free-text search filter.
"""

import time
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from src.graph_builder import build_graph_data
from src.metrics import record_graph_fetch, record_graph_fetch_failure
from src.models import GraphData
from src.search import filter_graph

logger = logging.getLogger(__name__)

router = APIRouter(tags=["graph"])

GRAPH_FETCH_ERROR = "Failed to fetch graph data"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _load_graph() -> GraphData:
    from api.main import get_state

    state = get_state()
    store = state.get("store")
    if store is None:
        raise HTTPException(status_code=503, detail="Knowledge store not initialised")

    t0 = time.time()
    entities = store.fetch_entities()
    relations = store.fetch_relations()
    data = build_graph_data(entities, relations)
    record_graph_fetch(time.time() - t0, len(data.nodes), len(data.links))
    return data


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("/api/graph")
async def get_graph():
    """Every entity as a node and every relation as a link."""
    try:
        data = _load_graph()
    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Error fetching graph data: %s", exc, exc_info=True)
        record_graph_fetch_failure()
        return JSONResponse(status_code=500, content={"error": GRAPH_FETCH_ERROR})
    return data.model_dump()


@router.get("/api/graph/search")
async def search_graph(q: str = ""):
    """Graph payload filtered to nodes whose name or type contains ``q``."""
    try:
        data = _load_graph()
    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Error fetching graph data: %s", exc, exc_info=True)
        record_graph_fetch_failure()
        return JSONResponse(status_code=500, content={"error": GRAPH_FETCH_ERROR})

    filtered = filter_graph(data, q)
    payload = filtered.model_dump()
    payload["query"] = q
    return payload
