"""
ESMO Lung Cancer Knowledge Graph - Pydantic Models
====================================================
Persisted entity/relation records, the denormalised graph payload served
to the 3D explorer, and the static flowchart records plus the visible
node/edge types produced by the tree layout builder.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════
#  Enums
# ═══════════════════════════════════════════════════════════════════════════


class EntityType(str, Enum):
    """Clinical entity classification used by the knowledge graph store."""
    STAGE = "stage"
    TREATMENT = "treatment"
    DRUG = "drug"
    BIOMARKER = "biomarker"
    PROCEDURE = "procedure"
    OUTCOME = "outcome"
    CONCEPT = "concept"
    TRIAL = "trial"


class NodeCategory(str, Enum):
    """Six-way visual/semantic classification of flowchart nodes."""
    STAGE = "stage"
    DECISION = "decision"
    TREATMENT = "treatment"
    DRUG = "drug"
    BIOMARKER = "biomarker"
    OUTCOME = "outcome"


# ═══════════════════════════════════════════════════════════════════════════
#  Palettes
# ═══════════════════════════════════════════════════════════════════════════

ENTITY_COLORS: Dict[str, str] = {
    EntityType.STAGE.value: "#9333ea",      # Purple
    EntityType.TREATMENT.value: "#16a34a",  # Green
    EntityType.DRUG.value: "#2563eb",       # Blue
    EntityType.BIOMARKER.value: "#ea580c",  # Orange
    EntityType.PROCEDURE.value: "#0891b2",  # Cyan
    EntityType.OUTCOME.value: "#84cc16",    # Lime
    EntityType.CONCEPT.value: "#6b7280",    # Gray
    EntityType.TRIAL.value: "#f59e0b",      # Amber
}

DEFAULT_ENTITY_COLOR = "#6b7280"

CATEGORY_COLORS: Dict[NodeCategory, str] = {
    NodeCategory.STAGE: "#9333ea",
    NodeCategory.DECISION: "#1e40af",
    NodeCategory.TREATMENT: "#16a34a",
    NodeCategory.DRUG: "#2563eb",
    NodeCategory.BIOMARKER: "#ea580c",
    NodeCategory.OUTCOME: "#10b981",
}


# ═══════════════════════════════════════════════════════════════════════════
#  Persisted Records
# ═══════════════════════════════════════════════════════════════════════════


class Entity(BaseModel):
    """Clinical concept row from the entities table.

    ``entity_type`` is kept as a plain string so rows carrying a type this
    application does not know about still load (they render gray).
    """
    id: str
    entity_type: str
    name: str
    brief: Optional[str] = None
    definition: Optional[str] = None
    evidence_level: Optional[str] = None
    mcbs_score: Optional[str] = None
    escat_level: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    esmo_url: Optional[str] = None


class Relation(BaseModel):
    """Directed, typed edge between two entities."""
    id: str
    from_entity_id: str
    to_entity_id: str
    relation_type: str
    condition: Optional[str] = None
    evidence_level: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════
#  Graph Payload
# ═══════════════════════════════════════════════════════════════════════════


class GraphNode(BaseModel):
    """Entity decorated with rendering colour and size."""
    id: str
    name: str
    type: str
    brief: str
    color: str
    val: int
    entity: Entity


class GraphLink(BaseModel):
    source: str
    target: str
    type: str
    condition: Optional[str] = None
    evidence: Optional[str] = None


class GraphData(BaseModel):
    """Flat node/link payload consumed by the 3D force-directed renderer."""
    nodes: List[GraphNode] = Field(default_factory=list)
    links: List[GraphLink] = Field(default_factory=list)

    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def counts_by_type(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for node in self.nodes:
            counts[node.type] = counts.get(node.type, 0) + 1
        return counts


# ═══════════════════════════════════════════════════════════════════════════
#  Flowchart Records
# ═══════════════════════════════════════════════════════════════════════════


class FlowchartNodeRecord(BaseModel):
    """Static flowchart record.

    The five guideline variants attach different content fields (a plain
    definition, a what/why/who/when/where/how breakdown, or long-form
    narrative sections), so every content field is optional.
    """
    label: str
    category: NodeCategory
    definition: Optional[str] = None
    what: Optional[str] = None
    why: Optional[str] = None
    who: Optional[str] = None
    when: Optional[str] = None
    where: Optional[str] = None
    how: Optional[str] = None
    notes: Optional[str] = None
    history: Optional[str] = None
    mechanism: Optional[str] = None
    clinical_pearl: Optional[str] = None
    other_contexts: Optional[str] = None
    evidence: Optional[str] = None
    trials: List[str] = Field(default_factory=list)
    children: List[str] = Field(default_factory=list)

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0


class FlowchartInfo(BaseModel):
    """Tab metadata for one guideline branch."""
    id: str
    title: str
    subtitle: str
    node_count: int = 0


# ═══════════════════════════════════════════════════════════════════════════
#  Layout Output
# ═══════════════════════════════════════════════════════════════════════════


class Position(BaseModel):
    x: float
    y: float


class NodeStyle(BaseModel):
    """Rendering style derived from a node's category and hover state."""
    background: str
    color: str = "white"
    border: str = "none"
    border_radius: str = "6px"
    shape: str = "rect"  # "rect" or "pill"
    highlighted: bool = False


class FlowNode(BaseModel):
    """Visible flowchart node with its computed position."""
    id: str
    position: Position
    label: str
    category: NodeCategory
    evidence: Optional[str] = None
    expandable: bool = False
    expanded: bool = False
    level: int = 0
    style: NodeStyle


class FlowEdge(BaseModel):
    id: str
    source: str
    target: str
    animated: bool = True
    arrow: bool = True


class FlowLayout(BaseModel):
    """Visible nodes and edges for one expansion state."""
    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    @property
    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
