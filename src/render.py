"""HTML/SVG renderers used by the Streamlit explorer.

``force_graph_html`` embeds the 3d-force-graph browser library and feeds
it the graph payload. ``flowchart_svg`` draws a FlowLayout produced by the
tree layout builder as a static SVG.
"""

import html
import json
from collections import Counter
from typing import List

from src.models import FlowLayout, FlowNode, GraphData

FORCE_GRAPH_CDN = "https://unpkg.com/3d-force-graph@1"
BACKGROUND = "#0f172a"

NODE_WIDTH = 170.0
LINE_HEIGHT = 15.0
NODE_PADDING = 10.0
NODE_GAP = 10.0
CHAR_WIDTH = 6.5


# ═══════════════════════════════════════════════════════════════════════
# 3D knowledge graph
# ═══════════════════════════════════════════════════════════════════════

_FORCE_GRAPH_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ margin: 0; background: {background}; }}
    .tip {{ background: #111827; color: white; padding: 8px; border-radius: 4px; max-width: 280px; }}
    .tip .name {{ font-weight: bold; }}
    .tip .type {{ font-size: 11px; color: #d1d5db; }}
    .tip .brief {{ font-size: 13px; margin-top: 4px; }}
  </style>
  <script src="{cdn}"></script>
</head>
<body>
  <div id="graph"></div>
  <script>
    const data = {payload};
    const escape = (s) => String(s ?? "").replace(/[&<>"]/g, (c) => ({{"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;"}})[c]);
    const Graph = ForceGraph3D()(document.getElementById("graph"))
      .height({height})
      .backgroundColor("{background}")
      .showNavInfo(false)
      .graphData(data)
      .nodeLabel((n) => `<div class="tip"><div class="name">${{escape(n.name)}}</div><div class="type">${{escape(n.type)}}</div><div class="brief">${{escape(n.brief)}}</div></div>`)
      .nodeColor((n) => n.color)
      .nodeVal((n) => n.val)
      .nodeOpacity(0.9)
      .linkLabel((l) => l.condition ? `${{l.type}} (${{l.condition}})` : l.type)
      .linkColor(() => "rgba(255, 255, 255, 0.3)")
      .linkWidth(1)
      .linkOpacity(0.6)
      .linkDirectionalArrowLength(3)
      .linkDirectionalArrowRelPos(1)
      .onNodeClick((node) => {{
        const distance = 150;
        const ratio = 1 + distance / Math.hypot(node.x || 0, node.y || 0, node.z || 0);
        Graph.cameraPosition(
          {{ x: (node.x || 0) * ratio, y: (node.y || 0) * ratio, z: (node.z || 0) * ratio }},
          {{ x: node.x || 0, y: node.y || 0, z: node.z || 0 }},
          1000
        );
      }});
  </script>
</body>
</html>
"""


def force_graph_payload(data: GraphData) -> dict:
    """Renderer-ready dict; links pointing at absent nodes are dropped.

    The search filter keeps links with a single surviving endpoint, which
    3d-force-graph cannot draw.
    """
    present = set(data.node_ids)
    return {
        "nodes": [
            {
                "id": n.id,
                "name": n.name,
                "type": n.type,
                "brief": n.brief,
                "color": n.color,
                "val": n.val,
            }
            for n in data.nodes
        ],
        "links": [
            link.model_dump()
            for link in data.links
            if link.source in present and link.target in present
        ],
    }


def force_graph_html(data: GraphData, height: int = 720) -> str:
    payload = json.dumps(force_graph_payload(data)).replace("</", "<\\/")
    return _FORCE_GRAPH_TEMPLATE.format(
        background=BACKGROUND,
        cdn=FORCE_GRAPH_CDN,
        payload=payload,
        height=int(height),
    )


# ═══════════════════════════════════════════════════════════════════════
# Flowchart canvas
# ═══════════════════════════════════════════════════════════════════════


def _node_height(node: FlowNode) -> float:
    lines = node.label.count("\n") + 1 + (1 if node.evidence else 0)
    return lines * LINE_HEIGHT + 2 * NODE_PADDING


def node_width(siblings: int, width: float = 1200.0) -> float:
    """Rectangle width for a level of ``siblings`` nodes.

    Always narrower than the ``width / (siblings + 1)`` slice the layout
    gives each node, so neighbours never overlap.
    """
    slice_width = width / (siblings + 1)
    if slice_width > 2 * NODE_GAP:
        return min(NODE_WIDTH, slice_width - NODE_GAP)
    return slice_width * 0.8


def _clip(line: str, box_width: float) -> str:
    limit = max(1, int((box_width - 2 * NODE_PADDING) / CHAR_WIDTH))
    if len(line) <= limit:
        return line
    return line[: max(1, limit - 1)] + "…"


def _node_svg(node: FlowNode, w: float = NODE_WIDTH) -> List[str]:
    style = node.style
    h = _node_height(node)
    x = node.position.x - w / 2
    y = node.position.y
    rx = h / 2 if style.shape == "pill" else 6
    stroke = ' stroke="#facc15" stroke-width="3"' if style.highlighted else ""

    parts = [
        f'<g class="node" data-id="{html.escape(node.id)}">',
        f"<title>{html.escape(node.label.replace(chr(10), ' '))}</title>",
        f'<rect x="{x:.1f}" y="{y:.1f}" width="{w:.1f}" height="{h:.1f}" '
        f'rx="{rx:.1f}" fill="{style.background}"{stroke}/>',
    ]
    lines = node.label.split("\n")
    if node.evidence:
        lines.append(node.evidence)
    for i, line in enumerate(lines):
        ty = y + NODE_PADDING + (i + 0.8) * LINE_HEIGHT
        weight = ' font-weight="bold"' if node.level == 0 else ""
        parts.append(
            f'<text x="{node.position.x:.1f}" y="{ty:.1f}" text-anchor="middle" '
            f'fill="{style.color}" font-size="12"{weight}>{html.escape(_clip(line, w))}</text>'
        )
    if node.expandable:
        marker = "−" if node.expanded else "+"
        parts.append(
            f'<text x="{x + w - 10:.1f}" y="{y + 14:.1f}" text-anchor="middle" '
            f'fill="white" font-size="13" font-weight="bold">{marker}</text>'
        )
    parts.append("</g>")
    return parts


def flowchart_svg(layout: FlowLayout, width: float = 1200.0) -> str:
    """Render a layout as SVG; edges run from a parent's bottom to a child's top."""
    if not layout.nodes:
        return f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:.0f}" height="100"></svg>'

    by_id = {n.id: n for n in layout.nodes}
    height = max(n.position.y + _node_height(n) for n in layout.nodes) + 40

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:.0f}" height="{height:.0f}" '
        f'viewBox="0 0 {width:.0f} {height:.0f}" style="background:{BACKGROUND}">',
        "<defs>",
        '<marker id="arrow" viewBox="0 0 10 10" refX="10" refY="5" markerWidth="8" '
        'markerHeight="8" orient="auto-start-reverse">',
        '<path d="M 0 0 L 10 5 L 0 10 z" fill="#9ca3af"/>',
        "</marker>",
        "</defs>",
    ]
    for edge in layout.edges:
        src, tgt = by_id[edge.source], by_id[edge.target]
        dash = ' stroke-dasharray="6,4"' if edge.animated else ""
        parts.append(
            f'<line x1="{src.position.x:.1f}" y1="{src.position.y + _node_height(src):.1f}" '
            f'x2="{tgt.position.x:.1f}" y2="{tgt.position.y:.1f}" stroke="#9ca3af" '
            f'stroke-width="1.5"{dash} marker-end="url(#arrow)"/>'
        )
    per_level = Counter(n.level for n in layout.nodes)
    for node in layout.nodes:
        parts.extend(_node_svg(node, node_width(per_level[node.level], width)))
    parts.append("</svg>")
    return "\n".join(parts)
