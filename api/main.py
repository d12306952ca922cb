"""
ESMO Lung Cancer Knowledge Graph - FastAPI Application
=======================================================
Read-only API behind the knowledge graph explorer: serves the
denormalised entity/relation graph from Supabase and the interactive
guideline flowchart layouts.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from config.settings import settings as _settings_instance
from src.flowcharts import list_flowcharts
from src.metrics import get_metrics_text
from src.store import KnowledgeStore, StoreError

from api.routes import flowcharts, graph

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Global application state
# ---------------------------------------------------------------------------
_state: Dict[str, Any] = {}

VERSION = "0.1.0"


def get_state() -> Dict[str, Any]:
    """Return the shared application state dict."""
    return _state


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the knowledge graph API."""
    logger.info("ESMO knowledge graph API starting up ...")

    settings = _settings_instance
    _state["settings"] = settings

    # -- Supabase ----------------------------------------------------------
    store = KnowledgeStore(
        url=settings.SUPABASE_URL,
        key=settings.SUPABASE_KEY,
        entities_table=settings.TABLE_ENTITIES,
        relations_table=settings.TABLE_RELATIONS,
    )
    try:
        store.connect()
    except StoreError as exc:
        # Graph requests will fail with a 500 until the store is reachable.
        logger.error("Could not connect to the knowledge store: %s", exc)
    _state["store"] = store

    logger.info("All services initialised.")

    yield  # --- application runs here ---

    logger.info("ESMO knowledge graph API shutting down ...")
    store.disconnect()
    _state.clear()
    logger.info("Shutdown complete.")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="ESMO Lung Cancer Knowledge Graph",
    description=(
        "Interactive visualisation of the ESMO Living Guidelines for NSCLC: "
        "3D entity/relation graph and expandable treatment flowcharts."
    ),
    version=VERSION,
    lifespan=lifespan,
)

# -- CORS ------------------------------------------------------------------
_cors_origins = [
    o.strip() for o in _settings_instance.CORS_ORIGINS.split(",") if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# -- Include routers -------------------------------------------------------
app.include_router(graph.router)
app.include_router(flowcharts.router)


# ---------------------------------------------------------------------------
# Core endpoints
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    """Service health check."""
    store: KnowledgeStore = _state.get("store")
    if store is None:
        raise HTTPException(status_code=503, detail="Service not initialised")

    services = {
        "supabase": store.is_connected(),
        "flowcharts": len(list_flowcharts()) > 0,
    }
    return {
        "status": "healthy" if all(services.values()) else "degraded",
        "version": VERSION,
        "services": services,
    }


@app.get("/metrics")
async def metrics():
    """Prometheus-compatible metrics endpoint."""
    if not _settings_instance.METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Metrics disabled")
    return PlainTextResponse(get_metrics_text(), media_type="text/plain; charset=utf-8")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=_settings_instance.LOG_LEVEL)
    uvicorn.run(
        "api.main:app",
        host=_settings_instance.API_HOST,
        port=_settings_instance.API_PORT,
        reload=False,
        log_level=_settings_instance.LOG_LEVEL.lower(),
    )
