"""
Shared pytest fixtures for the ESMO Lung Cancer Knowledge Graph test suite.
============================================================================
Provides a mock Supabase client, sample entity/relation rows, and small
flowchart maps for exercising the tree layout builder.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# ---------------------------------------------------------------------------
# Ensure src is importable
# ---------------------------------------------------------------------------
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from src.models import Entity, FlowchartNodeRecord, NodeCategory, Relation
from src.store import KnowledgeStore


# ---------------------------------------------------------------------------
# Sample rows
# ---------------------------------------------------------------------------
ENTITY_ROWS = [
    {
        "id": "stage-iv",
        "entity_type": "stage",
        "name": "Stage IV NSCLC",
        "brief": "Metastatic disease",
        "definition": "Distant metastases present (M1).",
    },
    {
        "id": "osimertinib",
        "entity_type": "drug",
        "name": "Osimertinib",
        "brief": "Third-generation EGFR TKI",
        "evidence_level": "I, A",
        "mcbs_score": "4",
        "metadata": {"first_line": True, "dose_mg": 80},
        "esmo_url": "https://www.esmo.org/guidelines/osimertinib",
    },
    {
        "id": "egfr",
        "entity_type": "biomarker",
        "name": "EGFR mutation",
        "escat_level": "I-A",
    },
    {
        "id": "sbrt",
        "entity_type": "procedure",
        "name": "SBRT",
    },
    {
        "id": "mystery",
        "entity_type": "unknown",
        "name": "Mystery Node",
    },
]

RELATION_ROWS = [
    {
        "id": "r1",
        "from_entity_id": "stage-iv",
        "to_entity_id": "egfr",
        "relation_type": "requires_testing",
    },
    {
        "id": "r2",
        "from_entity_id": "egfr",
        "to_entity_id": "osimertinib",
        "relation_type": "treated_with",
        "condition": "Exon 19 deletion or L858R",
        "evidence_level": "I, A",
    },
    {
        "id": "r3",
        "from_entity_id": "sbrt",
        "to_entity_id": "mystery",
        "relation_type": "related_to",
    },
]


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def sample_entities():
    return [Entity.model_validate(row) for row in ENTITY_ROWS]


@pytest.fixture
def sample_relations():
    return [Relation.model_validate(row) for row in RELATION_ROWS]


def _make_supabase_client(tables):
    """MagicMock mimicking ``client.table(name).select(...).execute()``."""
    client = MagicMock()

    def _table(name):
        query = MagicMock()
        response = MagicMock()
        rows = tables.get(name, [])
        response.data = rows
        response.count = len(rows)
        query.select.return_value = query
        query.limit.return_value = query
        query.execute.return_value = response
        return query

    client.table.side_effect = _table
    return client


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client serving the sample entity and relation rows."""
    return _make_supabase_client(
        {"esmokg_entities": ENTITY_ROWS, "esmokg_relations": RELATION_ROWS}
    )


@pytest.fixture
def failing_supabase_client():
    """Mock Supabase client whose queries raise on execute()."""
    client = MagicMock()
    client.table.return_value.select.return_value.execute.side_effect = (
        ConnectionError("connection refused")
    )
    return client


@pytest.fixture
def store(mock_supabase_client):
    return KnowledgeStore(client=mock_supabase_client)


@pytest.fixture
def failing_store(failing_supabase_client):
    return KnowledgeStore(client=failing_supabase_client)


# ---------------------------------------------------------------------------
# Flowchart maps
# ---------------------------------------------------------------------------
def _record(label, category, children=None, **fields):
    return FlowchartNodeRecord(
        label=label, category=category, children=children or [], **fields
    )


@pytest.fixture
def small_tree():
    """Three-level tree rooted at ``nsclc``.

    nsclc -> [staging, surgery]
    staging -> [operable, inoperable]
    operable -> [adjuvant]
    """
    return {
        "nsclc": _record("NSCLC", NodeCategory.STAGE, ["staging", "surgery"]),
        "staging": _record(
            "Staging\nWork-up", NodeCategory.DECISION, ["operable", "inoperable"],
            definition="PET-CT and brain MRI.",
        ),
        "surgery": _record("Surgery", NodeCategory.TREATMENT, evidence="[I, A]"),
        "operable": _record("Operable", NodeCategory.BIOMARKER, ["adjuvant"]),
        "inoperable": _record("Inoperable", NodeCategory.OUTCOME),
        "adjuvant": _record(
            "Adjuvant\nOsimertinib", NodeCategory.DRUG,
            evidence="[I, A]", trials=["ADAURA"],
        ),
    }


@pytest.fixture
def ghost_tree():
    """Root whose children include an id with no record."""
    return {
        "nsclc": _record("NSCLC", NodeCategory.STAGE, ["a", "ghost", "b"]),
        "a": _record("A", NodeCategory.TREATMENT),
        "b": _record("B", NodeCategory.TREATMENT),
    }
