"""Detail panel content for both explorers.

The resolvers only decide *what* to show: they pick whichever optional
fields a record carries and return them as ordered sections. Rendering is
left to the UI. A missing selection resolves to ``None`` so the caller can
show the placeholder panel.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from src.graph_builder import entity_color
from src.models import CATEGORY_COLORS, FlowchartNodeRecord, GraphNode


PLACEHOLDER_TITLE = "ESMO Lung Cancer Knowledge Graph"
PLACEHOLDER_TEXT = (
    "Click on any node to see detailed information about treatments, drugs, "
    "biomarkers, and their relationships."
)
PLACEHOLDER_GUIDELINES = [
    "Early and Locally Advanced NSCLC (v1.0)",
    "Oncogene-Addicted Metastatic NSCLC (v1.2)",
    "Non-Oncogene-Addicted Metastatic NSCLC (v1.2)",
]

EVIDENCE_LEVELS_GUIDE: List[Tuple[str, str]] = [
    ("I", "Meta-analysis/multiple RCTs"),
    ("II", "Single RCT/large study"),
    ("III", "Prospective/case-control"),
    ("A", "Strong evidence"),
    ("B", "Moderate evidence"),
    ("C", "Weak evidence"),
]

FLOWCHART_EVIDENCE_LEGEND: List[Tuple[str, str, str]] = [
    ("[I, A]", "Strong recommendation", "green"),
    ("[II, B]", "Moderate recommendation", "blue"),
    ("[III, C]", "Weak recommendation", "orange"),
]

# (field, heading) in display order
_FLOWCHART_SECTIONS: List[Tuple[str, str]] = [
    ("definition", "Definition"),
    ("what", "What"),
    ("why", "Why"),
    ("who", "Who"),
    ("when", "When"),
    ("where", "Where"),
    ("how", "How"),
    ("notes", "Clinical Notes"),
    ("history", "History"),
    ("mechanism", "Mechanism"),
    ("clinical_pearl", "Clinical Pearl"),
    ("other_contexts", "Other Contexts"),
]


class PanelSection(BaseModel):
    heading: str
    body: str


class PanelContent(BaseModel):
    """Resolved content for the side panel."""
    title: str
    kind: str
    color: str
    brief: Optional[str] = None
    badges: Dict[str, str] = Field(default_factory=dict)
    sections: List[PanelSection] = Field(default_factory=list)
    trials: List[str] = Field(default_factory=list)
    details: List[Tuple[str, str]] = Field(default_factory=list)
    link: Optional[str] = None


def resolve_flowchart_panel(
    nodes: Dict[str, FlowchartNodeRecord],
    node_id: Optional[str],
) -> Optional[PanelContent]:
    """Panel content for a flowchart node, or ``None`` for no/unknown selection."""
    if not node_id:
        return None
    record = nodes.get(node_id)
    if record is None:
        return None

    sections = []
    for field_name, heading in _FLOWCHART_SECTIONS:
        value = getattr(record, field_name)
        if value:
            sections.append(PanelSection(heading=heading, body=value))

    badges = {"Evidence": record.evidence} if record.evidence else {}
    return PanelContent(
        title=record.label.replace("\n", " "),
        kind=record.category.value,
        color=CATEGORY_COLORS[record.category],
        badges=badges,
        sections=sections,
        trials=list(record.trials),
    )


def humanize_key(key: str) -> str:
    """``first_line_only`` -> ``First Line Only``; the rest of each word is kept."""
    return " ".join(word[:1].upper() + word[1:] for word in key.split("_") if word)


def format_metadata_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def resolve_entity_panel(node: Optional[GraphNode]) -> Optional[PanelContent]:
    """Panel content for a knowledge-graph node, or ``None`` when nothing is selected."""
    if node is None:
        return None
    entity = node.entity

    sections = []
    if entity.definition:
        sections.append(PanelSection(heading="Definition", body=entity.definition))

    badges: Dict[str, str] = {}
    if entity.evidence_level:
        badges["Evidence Level"] = f"[{entity.evidence_level}]"
    if entity.mcbs_score:
        badges["MCBS Score"] = entity.mcbs_score
    if entity.escat_level:
        badges["ESCAT Level"] = entity.escat_level

    details = [
        (humanize_key(k), format_metadata_value(v))
        for k, v in (entity.metadata or {}).items()
    ]

    return PanelContent(
        title=entity.name,
        kind=entity.entity_type,
        color=entity_color(entity.entity_type),
        brief=entity.brief,
        badges=badges,
        sections=sections,
        details=details,
        link=entity.esmo_url,
    )
