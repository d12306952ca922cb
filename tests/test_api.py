"""
Tests for the FastAPI application.
===================================
The lifespan is not run: each test installs a KnowledgeStore backed by a
MagicMock Supabase client directly into the shared app state.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from api.main import app, get_state
from src.store import KnowledgeStore


@pytest.fixture
def client():
    state = get_state()
    state.clear()
    yield TestClient(app)
    state.clear()


@pytest.fixture
def with_store(client, store):
    get_state()["store"] = store
    return client


@pytest.fixture
def with_failing_store(client, failing_store):
    get_state()["store"] = failing_store
    return client


# ═══════════════════════════════════════════════════════════════════════════
# Core endpoints
# ═══════════════════════════════════════════════════════════════════════════


class TestHealth:

    def test_not_initialised(self, client):
        assert client.get("/health").status_code == 503

    def test_healthy(self, with_store):
        body = with_store.get("/health").json()
        assert body["status"] == "healthy"
        assert body["services"] == {"supabase": True, "flowcharts": True}

    def test_degraded_without_client(self, client):
        get_state()["store"] = KnowledgeStore()
        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["services"]["supabase"] is False


class TestMetrics:

    def test_metrics_text(self, with_store):
        with_store.get("/api/graph")
        resp = with_store.get("/metrics")
        assert resp.status_code == 200
        assert "esmokg_graph_fetches_total" in resp.text


# ═══════════════════════════════════════════════════════════════════════════
# Graph
# ═══════════════════════════════════════════════════════════════════════════


class TestGraph:

    def test_graph_payload(self, with_store):
        resp = with_store.get("/api/graph")
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["nodes"]) == 5
        assert len(body["links"]) == 3
        drug = next(n for n in body["nodes"] if n["id"] == "osimertinib")
        assert drug["color"] == "#2563eb"
        assert drug["val"] == 15
        link = next(link for link in body["links"] if link["target"] == "osimertinib")
        assert link["source"] == "egfr"
        assert link["type"] == "treated_with"

    def test_store_failure_returns_500(self, with_failing_store):
        resp = with_failing_store.get("/api/graph")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch graph data"}

    def test_not_connected_returns_500(self, client):
        get_state()["store"] = KnowledgeStore()
        resp = client.get("/api/graph")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch graph data"}

    def test_no_store_returns_503(self, client):
        assert client.get("/api/graph").status_code == 503

    def test_search(self, with_store):
        body = with_store.get("/api/graph/search", params={"q": "Drug"}).json()
        assert [n["id"] for n in body["nodes"]] == ["osimertinib"]
        assert len(body["links"]) == 1
        assert body["query"] == "Drug"

    def test_search_empty_query(self, with_store):
        body = with_store.get("/api/graph/search").json()
        assert len(body["nodes"]) == 5

    def test_search_store_failure(self, with_failing_store):
        resp = with_failing_store.get("/api/graph/search", params={"q": "x"})
        assert resp.status_code == 500


# ═══════════════════════════════════════════════════════════════════════════
# Flowcharts
# ═══════════════════════════════════════════════════════════════════════════


class TestFlowcharts:

    def test_list(self, client):
        body = client.get("/api/flowcharts").json()
        assert body["count"] == 5
        assert body["flowcharts"][0]["id"] == "stage-i"

    def test_initial_layout(self, client):
        resp = client.post("/api/flowcharts/stage-i/layout", json={})
        assert resp.status_code == 200
        body = resp.json()
        assert [n["id"] for n in body["nodes"]] == ["nsclc", "preop-evaluation"]
        assert body["edges"][0]["id"] == "ensclc-preop-evaluation"
        assert body["flowchart"]["title"] == "Stage I NSCLC"

    def test_root_always_expanded(self, client):
        body = client.post(
            "/api/flowcharts/stage-i/layout", json={"expanded": ["preop-evaluation"]}
        ).json()
        ids = [n["id"] for n in body["nodes"]]
        assert ids == ["nsclc", "preop-evaluation", "medically-operable"]

    def test_hovered(self, client):
        body = client.post(
            "/api/flowcharts/stage-i/layout", json={"hovered": "preop-evaluation"}
        ).json()
        hovered = next(n for n in body["nodes"] if n["id"] == "preop-evaluation")
        assert hovered["style"]["highlighted"] is True

    def test_positions(self, client):
        body = client.post("/api/flowcharts/stage-i/layout", json={}).json()
        root = body["nodes"][0]
        assert root["position"] == {"x": 600.0, "y": 50.0}
        assert body["nodes"][1]["position"]["y"] == 200.0

    def test_unknown_flowchart_layout(self, client):
        resp = client.post("/api/flowcharts/stage-v/layout", json={})
        assert resp.status_code == 404

    def test_node_panel(self, client):
        body = client.get("/api/flowcharts/stage-iv-oncogene/nodes/osimertinib-1l").json()
        assert body["kind"] == "drug"
        assert body["badges"] == {"Evidence": "[I, A]"}
        assert "FLAURA" in body["trials"]

    def test_unknown_node(self, client):
        resp = client.get("/api/flowcharts/stage-i/nodes/ghost")
        assert resp.status_code == 404

    def test_unknown_flowchart_node(self, client):
        resp = client.get("/api/flowcharts/stage-v/nodes/nsclc")
        assert resp.status_code == 404
