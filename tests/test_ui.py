"""
Tests for the Streamlit graph loader.
======================================
The ``st`` module inside ``app.esmo_ui`` is swapped for a MagicMock with a
plain dict as session state, so no Streamlit runtime is needed.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

import app.esmo_ui as esmo_ui
from src.models import GraphData


@pytest.fixture
def fake_st(monkeypatch):
    st = MagicMock(session_state={})
    monkeypatch.setattr(esmo_ui, "st", st)
    return st


class TestLoadGraph:

    def test_failed_fetch_is_not_retried(self, fake_st, monkeypatch):
        api_get = MagicMock(side_effect=esmo_ui.ApiError("Error: Failed to fetch graph data"))
        monkeypatch.setattr(esmo_ui, "api_get", api_get)

        assert esmo_ui.load_graph() is None
        assert esmo_ui.load_graph() is None

        assert api_get.call_count == 1
        assert fake_st.session_state["graph_error"] == "Error: Failed to fetch graph data"
        assert fake_st.error.call_count == 2
        fake_st.error.assert_called_with("Error: Failed to fetch graph data")
        assert "graph_data" not in fake_st.session_state

    def test_successful_fetch_is_cached(self, fake_st, monkeypatch):
        payload = {
            "nodes": [{
                "id": "egfr",
                "name": "EGFR",
                "type": "biomarker",
                "brief": "Epidermal growth factor receptor",
                "color": "#ea580c",
                "val": 12,
                "entity": {"id": "egfr", "entity_type": "biomarker", "name": "EGFR"},
            }],
            "links": [],
        }
        api_get = MagicMock(return_value=payload)
        monkeypatch.setattr(esmo_ui, "api_get", api_get)

        first = esmo_ui.load_graph()
        second = esmo_ui.load_graph()

        api_get.assert_called_once_with("/api/graph")
        assert isinstance(first, GraphData)
        assert second is first
        assert first.node_ids == ["egfr"]
        fake_st.error.assert_not_called()


class TestApiGet:

    def _session(self, monkeypatch, **get_kwargs):
        session = MagicMock()
        session.get = MagicMock(**get_kwargs)
        monkeypatch.setattr(esmo_ui, "get_api_session", lambda: session)
        return session

    def test_connection_error_raises(self, monkeypatch):
        self._session(monkeypatch, side_effect=esmo_ui.requests.exceptions.ConnectionError())
        with pytest.raises(esmo_ui.ApiError, match="Cannot connect to API"):
            esmo_ui.api_get("/api/graph")

    def test_http_error_uses_body_message(self, monkeypatch):
        response = MagicMock()
        response.json.return_value = {"error": "Failed to fetch graph data"}
        response.raise_for_status.side_effect = esmo_ui.requests.exceptions.HTTPError(
            "500 Server Error", response=response
        )
        self._session(monkeypatch, return_value=response)
        with pytest.raises(esmo_ui.ApiError, match="^Error: Failed to fetch graph data$"):
            esmo_ui.api_get("/api/graph")

    def test_returns_json(self, monkeypatch):
        response = MagicMock()
        response.json.return_value = {"status": "healthy"}
        self._session(monkeypatch, return_value=response)
        assert esmo_ui.api_get("/health") == {"status": "healthy"}
