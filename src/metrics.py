"""
Prometheus metrics for the ESMO Lung Cancer Knowledge Graph.

Counts graph payload fetches and their latency against the store, and
flowchart layout builds with the number of visible nodes they produce.

Served as text by the API ``/metrics`` endpoint.
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------
# Histograms
# -----------------------------------------------------------------------

GRAPH_FETCH_LATENCY = Histogram(
    "esmokg_graph_fetch_latency_seconds",
    "Latency for reading entities + relations and building the graph payload",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

LAYOUT_VISIBLE_NODES = Histogram(
    "esmokg_layout_visible_nodes",
    "Number of visible nodes produced per flowchart layout build",
    labelnames=["flowchart"],
    buckets=(1, 3, 5, 10, 15, 20, 30),
)

# -----------------------------------------------------------------------
# Counters
# -----------------------------------------------------------------------

GRAPH_FETCHES = Counter(
    "esmokg_graph_fetches_total",
    "Graph payload requests by outcome",
    labelnames=["outcome"],
)

LAYOUT_BUILDS = Counter(
    "esmokg_layout_builds_total",
    "Flowchart layout builds",
    labelnames=["flowchart"],
)

# -----------------------------------------------------------------------
# Gauges
# -----------------------------------------------------------------------

GRAPH_SIZE = Gauge(
    "esmokg_graph_size",
    "Size of the last graph payload served",
    labelnames=["kind"],
)


# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def record_graph_fetch(latency: float, nodes: int, links: int) -> None:
    GRAPH_FETCHES.labels(outcome="success").inc()
    GRAPH_FETCH_LATENCY.observe(latency)
    GRAPH_SIZE.labels(kind="nodes").set(nodes)
    GRAPH_SIZE.labels(kind="links").set(links)


def record_graph_fetch_failure() -> None:
    GRAPH_FETCHES.labels(outcome="error").inc()


def record_layout_build(flowchart: str, visible_nodes: int) -> None:
    LAYOUT_BUILDS.labels(flowchart=flowchart).inc()
    LAYOUT_VISIBLE_NODES.labels(flowchart=flowchart).observe(visible_nodes)


def get_metrics_text() -> str:
    """Return the current Prometheus metrics as text."""
    return generate_latest().decode("utf-8")
