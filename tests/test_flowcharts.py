"""
Tests for the static guideline flowcharts.
==========================================
Every branch must be a tree rooted at ``nsclc``; the registry helpers
and the tree validator are exercised against good and broken maps.
"""

import sys
from pathlib import Path

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from src.flowcharts import (
    DEFAULT_FLOWCHART,
    FLOWCHART_ROOT,
    FLOWCHARTS,
    STAGE_IV_ONCOGENE_NODES,
    get_flowchart,
    get_flowchart_info,
    list_flowcharts,
    validate_flowchart,
)
from src.models import FlowchartNodeRecord, NodeCategory


EXPECTED_IDS = [
    "stage-i",
    "stage-ii",
    "stage-iii",
    "stage-iv-oncogene",
    "stage-iv-non-oncogene",
]


class TestRegistry:

    def test_five_branches_in_order(self):
        assert [info.id for info in list_flowcharts()] == EXPECTED_IDS

    def test_default_is_stage_i(self):
        assert DEFAULT_FLOWCHART == "stage-i"

    def test_node_counts_match_maps(self):
        for info in list_flowcharts():
            assert info.node_count == len(FLOWCHARTS[info.id])

    def test_titles_present(self):
        for info in list_flowcharts():
            assert info.title
            assert info.subtitle

    def test_get_flowchart_returns_records(self):
        nodes = get_flowchart("stage-i")
        assert all(isinstance(r, FlowchartNodeRecord) for r in nodes.values())

    def test_get_flowchart_unknown_raises(self):
        with pytest.raises(KeyError):
            get_flowchart("stage-v")

    def test_get_flowchart_info(self):
        info = get_flowchart_info("stage-iv-oncogene")
        assert info is not None
        assert info.title == "Stage IV - Oncogene Addicted"

    def test_get_flowchart_info_unknown(self):
        assert get_flowchart_info("nope") is None


class TestGuidelineContent:

    @pytest.mark.parametrize("flowchart_id", EXPECTED_IDS)
    def test_is_valid_tree(self, flowchart_id):
        assert validate_flowchart(get_flowchart(flowchart_id), FLOWCHART_ROOT) == []

    @pytest.mark.parametrize("flowchart_id", EXPECTED_IDS)
    def test_root_is_stage(self, flowchart_id):
        root = get_flowchart(flowchart_id)[FLOWCHART_ROOT]
        assert root.category == NodeCategory.STAGE
        assert root.has_children

    def test_oncogene_drivers(self):
        children = STAGE_IV_ONCOGENE_NODES["molecular-testing"]["children"]
        assert "egfr" in children
        assert "alk" in children

    def test_first_line_osimertinib_trials(self):
        record = get_flowchart("stage-iv-oncogene")["osimertinib-1l"]
        assert record.category == NodeCategory.DRUG
        assert record.evidence == "[I, A]"
        assert "FLAURA" in record.trials

    def test_stage_ii_uses_question_fields(self):
        root = get_flowchart("stage-ii")[FLOWCHART_ROOT]
        assert root.what
        assert root.why

    def test_stage_iii_uses_narrative_fields(self):
        root = get_flowchart("stage-iii")[FLOWCHART_ROOT]
        assert root.notes
        assert root.history


class TestValidateFlowchart:

    def _rec(self, *children):
        return FlowchartNodeRecord(label="x", category=NodeCategory.TREATMENT, children=list(children))

    def test_missing_root(self):
        assert validate_flowchart({"a": self._rec()}, "nsclc") == ["root 'nsclc' has no record"]

    def test_missing_child(self):
        problems = validate_flowchart({"nsclc": self._rec("ghost")})
        assert problems == ["'nsclc' references missing child 'ghost'"]

    def test_two_parents(self):
        nodes = {
            "nsclc": self._rec("a", "b"),
            "a": self._rec("c"),
            "b": self._rec("c"),
            "c": self._rec(),
        }
        problems = validate_flowchart(nodes)
        assert any("more than one parent" in p for p in problems)

    def test_cycle_back_to_root(self):
        nodes = {"nsclc": self._rec("a"), "a": self._rec("nsclc")}
        problems = validate_flowchart(nodes)
        assert problems == ["'a' points back to root 'nsclc' (cycle)"]

    def test_self_loop_on_root(self):
        problems = validate_flowchart({"nsclc": self._rec("nsclc")})
        assert problems == ["'nsclc' points back to root 'nsclc' (cycle)"]

    def test_unreachable(self):
        nodes = {"nsclc": self._rec(), "orphan": self._rec()}
        assert validate_flowchart(nodes) == ["'orphan' is unreachable from 'nsclc'"]

    def test_small_tree_is_valid(self, small_tree):
        assert validate_flowchart(small_tree) == []
