"""
Tests for detail panel resolution.
===================================
"""

import sys
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from src.flowcharts import get_flowchart
from src.graph_builder import to_graph_node
from src.models import Entity
from src.panel import (
    EVIDENCE_LEVELS_GUIDE,
    format_metadata_value,
    humanize_key,
    resolve_entity_panel,
    resolve_flowchart_panel,
)


class TestFlowchartPanel:

    def test_none_selection(self, small_tree):
        assert resolve_flowchart_panel(small_tree, None) is None
        assert resolve_flowchart_panel(small_tree, "") is None

    def test_unknown_id(self, small_tree):
        assert resolve_flowchart_panel(small_tree, "ghost") is None

    def test_title_flattens_newlines(self, small_tree):
        panel = resolve_flowchart_panel(small_tree, "staging")
        assert panel.title == "Staging Work-up"
        assert panel.kind == "decision"
        assert panel.color == "#1e40af"

    def test_only_present_sections(self, small_tree):
        panel = resolve_flowchart_panel(small_tree, "staging")
        assert [s.heading for s in panel.sections] == ["Definition"]
        assert panel.badges == {}

    def test_evidence_badge_and_trials(self, small_tree):
        panel = resolve_flowchart_panel(small_tree, "adjuvant")
        assert panel.badges == {"Evidence": "[I, A]"}
        assert panel.trials == ["ADAURA"]

    def test_question_sections_in_order(self):
        nodes = get_flowchart("stage-ii")
        headings = [s.heading for s in resolve_flowchart_panel(nodes, "nsclc").sections]
        assert headings[:3] == ["What", "Why", "Who"]

    def test_narrative_sections(self):
        nodes = get_flowchart("stage-iii")
        headings = [s.heading for s in resolve_flowchart_panel(nodes, "nsclc").sections]
        assert "Clinical Notes" in headings
        assert "History" in headings


class TestEntityPanel:

    def test_none_selection(self):
        assert resolve_entity_panel(None) is None

    def test_drug_panel(self, sample_entities):
        panel = resolve_entity_panel(to_graph_node(sample_entities[1]))
        assert panel.title == "Osimertinib"
        assert panel.kind == "drug"
        assert panel.brief == "Third-generation EGFR TKI"
        assert panel.badges == {"Evidence Level": "[I, A]", "MCBS Score": "4"}
        assert ("First Line", "Yes") in panel.details
        assert ("Dose Mg", "80") in panel.details
        assert panel.link == "https://www.esmo.org/guidelines/osimertinib"

    def test_definition_section(self, sample_entities):
        panel = resolve_entity_panel(to_graph_node(sample_entities[0]))
        assert [s.heading for s in panel.sections] == ["Definition"]

    def test_escat_badge(self, sample_entities):
        panel = resolve_entity_panel(to_graph_node(sample_entities[2]))
        assert panel.badges == {"ESCAT Level": "I-A"}

    def test_unknown_type_gray(self, sample_entities):
        panel = resolve_entity_panel(to_graph_node(sample_entities[4]))
        assert panel.color == "#6b7280"

    def test_minimal_entity(self):
        panel = resolve_entity_panel(to_graph_node(Entity(id="x", entity_type="concept", name="X")))
        assert panel.sections == []
        assert panel.details == []
        assert panel.link is None


class TestFormatting:

    def test_humanize_key(self):
        assert humanize_key("first_line_only") == "First Line Only"

    def test_humanize_keeps_inner_case(self):
        assert humanize_key("pd_l1_TPS") == "Pd L1 TPS"

    def test_booleans(self):
        assert format_metadata_value(True) == "Yes"
        assert format_metadata_value(False) == "No"

    def test_other_values(self):
        assert format_metadata_value(80) == "80"
        assert format_metadata_value("daily") == "daily"

    def test_evidence_guide_covers_levels(self):
        assert [level for level, _ in EVIDENCE_LEVELS_GUIDE] == ["I", "II", "III", "A", "B", "C"]
