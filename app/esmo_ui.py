"""
ESMO Lung Cancer Knowledge Graph - Explorer UI
================================================
Streamlit application with two tabs: a 3D force-directed Knowledge Graph
of the ESMO NSCLC guideline entities, and interactive expandable
Flowcharts for each guideline branch.
"""

from typing import Dict, Optional

import pandas as pd
import requests
import streamlit as st
import streamlit.components.v1 as components

from config.settings import settings
from src.flowcharts import DEFAULT_FLOWCHART, get_flowchart, list_flowcharts
from src.models import CATEGORY_COLORS, ENTITY_COLORS, GraphData, GraphNode
from src.panel import (
    EVIDENCE_LEVELS_GUIDE,
    FLOWCHART_EVIDENCE_LEGEND,
    PLACEHOLDER_GUIDELINES,
    PLACEHOLDER_TEXT,
    PLACEHOLDER_TITLE,
    PanelContent,
    resolve_entity_panel,
    resolve_flowchart_panel,
)
from src.render import flowchart_svg, force_graph_html
from src.search import filter_graph
from src.tree_layout import ExpansionState, TreeLayoutBuilder

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
API_BASE = settings.API_BASE_URL
PAGE_TITLE = "ESMO Lung Cancer Knowledge Graph"
PAGE_ICON = "🫁"


# ---------------------------------------------------------------------------
# API Client
# ---------------------------------------------------------------------------
@st.cache_resource
def get_api_session():
    """Create a reusable requests session for the knowledge graph API."""
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json"})
    return session


class ApiError(RuntimeError):
    """Raised when the knowledge graph API cannot serve a request."""


def api_get(endpoint: str, params: Optional[dict] = None) -> dict:
    """GET request to the knowledge graph API; failures raise ApiError with a user-facing message."""
    session = get_api_session()
    try:
        resp = session.get(f"{API_BASE}{endpoint}", params=params, timeout=30)
        resp.raise_for_status()
        return resp.json()
    except requests.exceptions.ConnectionError as exc:
        raise ApiError(f"Cannot connect to API at {API_BASE}. Is the service running?") from exc
    except requests.exceptions.HTTPError as exc:
        try:
            body = exc.response.json()
            message = body.get("error") or body.get("detail") or str(exc)
        except ValueError:
            message = str(exc)
        raise ApiError(f"Error: {message}") from exc
    except requests.exceptions.RequestException as exc:
        raise ApiError(f"API error: {exc}") from exc


# ---------------------------------------------------------------------------
# Shared panel rendering
# ---------------------------------------------------------------------------
def render_placeholder_panel():
    st.subheader(PLACEHOLDER_TITLE)
    st.markdown(PLACEHOLDER_TEXT)
    st.markdown("**Guidelines included:**")
    for name in PLACEHOLDER_GUIDELINES:
        st.markdown(f"- {name}")
    st.markdown("**Evidence levels:**")
    for level, meaning in EVIDENCE_LEVELS_GUIDE:
        st.markdown(f"- **{level}:** {meaning}")


def render_panel(panel: Optional[PanelContent]):
    """Detail panel for the selected node, or the placeholder."""
    if panel is None:
        render_placeholder_panel()
        return

    st.markdown(
        f'<span style="background:{panel.color};color:white;padding:2px 8px;'
        f'border-radius:4px;font-size:12px;text-transform:uppercase;">{panel.kind}</span>',
        unsafe_allow_html=True,
    )
    st.subheader(panel.title)
    if panel.brief:
        st.markdown(f"*{panel.brief}*")

    if panel.badges:
        cols = st.columns(len(panel.badges))
        for col, (label, value) in zip(cols, panel.badges.items()):
            col.metric(label, value)

    for section in panel.sections:
        st.markdown(f"**{section.heading}**")
        st.markdown(section.body)

    if panel.trials:
        st.markdown("**Key Trials**")
        for trial in panel.trials:
            st.markdown(f"- {trial}")

    if panel.details:
        st.markdown("**Details**")
        for key, value in panel.details:
            st.markdown(f"- **{key}:** {value}")

    if panel.link:
        st.markdown(f"[View in ESMO Guidelines]({panel.link})")


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
def render_sidebar():
    """Render sidebar with branding and service status."""
    with st.sidebar:
        st.markdown("## ESMO Lung Cancer")
        st.markdown("*NSCLC Living Guidelines Explorer*")
        st.divider()

        # Service status
        st.markdown("### Service Status")
        try:
            health = api_get("/health")
        except ApiError as exc:
            health = None
            st.caption(str(exc))
        if health:
            status = health.get("status", "unknown")
            status_icon = "green" if status == "healthy" else "orange"
            st.markdown(f"**API:** :{status_icon}[{status}]")
            services = health.get("services", {})
            for svc, ok in services.items():
                icon = "green" if ok else "red"
                label = svc.replace("_", " ").title()
                st.markdown(f"- :{icon}[{label}]")
        else:
            st.markdown("**API:** :red[Offline]")

        st.divider()
        st.markdown("### Links")
        st.markdown("- [ESMO Living Guidelines](https://www.esmo.org/living-guidelines)")


# ---------------------------------------------------------------------------
# Tab 1: Knowledge Graph
# ---------------------------------------------------------------------------
def _render_graph_legend():
    chips = "".join(
        f'<span style="display:inline-block;margin:2px 8px 2px 0;">'
        f'<span style="display:inline-block;width:10px;height:10px;border-radius:50%;'
        f'background:{color};margin-right:4px;"></span>{etype.capitalize()}</span>'
        for etype, color in ENTITY_COLORS.items()
    )
    st.markdown(chips, unsafe_allow_html=True)


def load_graph() -> Optional[GraphData]:
    """Fetch the graph once per session.

    A failed fetch is remembered for the rest of the session: its message is
    shown again on every rerun and the API is not called a second time.
    """
    if "graph_error" in st.session_state:
        st.error(st.session_state["graph_error"])
        return None
    if "graph_data" not in st.session_state:
        try:
            with st.spinner("Loading knowledge graph..."):
                result = api_get("/api/graph")
        except ApiError as exc:
            st.session_state["graph_error"] = str(exc)
            st.error(str(exc))
            return None
        st.session_state["graph_data"] = GraphData.model_validate(result)
    return st.session_state["graph_data"]


def render_knowledge_graph():
    """3D force-directed graph with search and a detail panel."""
    st.header("Knowledge Graph")

    query = st.text_input(
        "Search entities",
        placeholder="Search by name or type, e.g. osimertinib, biomarker",
        key="graph_query",
    )

    full = load_graph()
    if full is None:
        return

    data = filter_graph(full, query)

    col1, col2 = st.columns(2)
    col1.metric("Entities", f"{len(data.nodes):,}")
    col2.metric("Relations", f"{len(data.links):,}")

    _render_graph_legend()

    graph_col, panel_col = st.columns([3, 1])
    with graph_col:
        components.html(
            force_graph_html(data, height=settings.GRAPH_HEIGHT),
            height=settings.GRAPH_HEIGHT,
        )

    nodes_by_id: Dict[str, GraphNode] = {n.id: n for n in data.nodes}
    with panel_col:
        selected = st.selectbox(
            "Select a node",
            options=[""] + sorted(nodes_by_id, key=lambda i: nodes_by_id[i].name.lower()),
            format_func=lambda i: nodes_by_id[i].name if i else "-",
            key="graph_selected",
        )
        render_panel(resolve_entity_panel(nodes_by_id.get(selected)))

    counts = data.counts_by_type()
    if counts:
        st.subheader("Entities by Type")
        df = pd.DataFrame([{"Type": k, "Count": v} for k, v in counts.items()])
        df = df.sort_values("Count", ascending=True)
        st.bar_chart(df.set_index("Type"), horizontal=True)


# ---------------------------------------------------------------------------
# Tab 2: Flowcharts
# ---------------------------------------------------------------------------
@st.cache_resource
def get_layout_builder(flowchart_id: str) -> TreeLayoutBuilder:
    return TreeLayoutBuilder(
        get_flowchart(flowchart_id),
        root=settings.FLOWCHART_ROOT,
        total_width=settings.LAYOUT_TOTAL_WIDTH,
        level_height=settings.LAYOUT_LEVEL_HEIGHT,
        top_offset=settings.LAYOUT_TOP_OFFSET,
    )


def get_expansion_state(flowchart_id: str) -> ExpansionState:
    """Per-branch expansion state; each branch starts with only the root expanded."""
    states = st.session_state.setdefault("flowchart_states", {})
    if flowchart_id not in states:
        states[flowchart_id] = ExpansionState(root=settings.FLOWCHART_ROOT)
    return states[flowchart_id]


def _render_category_legend():
    chips = "".join(
        f'<span style="display:inline-block;background:{color};color:white;'
        f'padding:2px 8px;margin:2px 6px 2px 0;border-radius:4px;font-size:12px;">'
        f"{category.value.capitalize()}</span>"
        for category, color in CATEGORY_COLORS.items()
    )
    st.markdown(chips, unsafe_allow_html=True)
    st.caption(
        " | ".join(f":{color}[{tag}] {text}" for tag, text, color in FLOWCHART_EVIDENCE_LEGEND)
    )


def render_flowcharts():
    """Expandable guideline flowcharts, one branch at a time."""
    st.header("Flowcharts")

    infos = {info.id: info for info in list_flowcharts()}
    flowchart_id = st.radio(
        "Guideline branch",
        options=list(infos),
        index=list(infos).index(DEFAULT_FLOWCHART),
        format_func=lambda i: infos[i].title,
        horizontal=True,
        key="flowchart_id",
    )
    st.caption(infos[flowchart_id].subtitle)

    nodes = get_flowchart(flowchart_id)
    builder = get_layout_builder(flowchart_id)
    state = get_expansion_state(flowchart_id)
    layout = builder.build_for(state)

    _render_category_legend()

    # Expand / collapse controls for every visible node with children.
    expandable = [n for n in layout.nodes if n.expandable]
    if expandable:
        st.markdown("**Expand / collapse**")
        cols = st.columns(4)
        for i, node in enumerate(expandable):
            marker = "−" if node.expanded else "+"
            label = node.label.replace("\n", " ")
            if cols[i % 4].button(f"{marker} {label}", key=f"toggle-{flowchart_id}-{node.id}"):
                state.toggle(node.id, nodes)
                st.rerun()

    canvas_col, panel_col = st.columns([3, 1])
    with panel_col:
        visible = layout.node_ids
        hovered = st.selectbox(
            "Inspect node",
            options=[""] + visible,
            format_func=lambda i: nodes[i].label.replace("\n", " ") if i else "-",
            key=f"hover-{flowchart_id}",
        )
        state.set_hover(hovered or None)
        render_panel(resolve_flowchart_panel(nodes, state.hovered))

    with canvas_col:
        layout = builder.build_for(state)
        height = max(n.position.y for n in layout.nodes) + 150 if layout.nodes else 200
        components.html(
            flowchart_svg(layout, width=settings.LAYOUT_TOTAL_WIDTH),
            height=int(height),
            scrolling=True,
        )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main():
    st.set_page_config(
        page_title=PAGE_TITLE,
        page_icon=PAGE_ICON,
        layout="wide",
        initial_sidebar_state="expanded",
    )

    render_sidebar()

    st.title(PAGE_TITLE)
    st.markdown(
        "Interactive visualisation of the ESMO Living Guidelines for "
        "non-small cell lung cancer."
    )

    tab1, tab2 = st.tabs([
        "Knowledge Graph",
        "Flowcharts",
    ])

    with tab1:
        render_knowledge_graph()

    with tab2:
        render_flowcharts()


if __name__ == "__main__":
    main()
