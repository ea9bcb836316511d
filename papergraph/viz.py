"""Prepare graph data for a force-directed renderer (D3.js or similar)."""

from collections import defaultdict

from .config import (
    EDGE_COLORS,
    KIND_COLORS,
    MAX_LABEL_LENGTH,
    MIN_DEGREE_FOR_VIZ,
    MIN_VIZ_NODES,
    NEUTRAL_COLOR,
)


def truncate_label(label, max_length=MAX_LABEL_LENGTH):
    if len(label) > max_length:
        return label[:max_length] + "..."
    return label


def prepare_viz_data(graph, min_degree=MIN_DEGREE_FOR_VIZ, kind=None):
    """Convert a Graph snapshot into {"nodes": [...], "links": [...]}.

    Nodes below ``min_degree`` are dropped, falling back to lower thresholds
    if fewer than MIN_VIZ_NODES would remain. ``kind`` restricts nodes to
    one kind. Links are kept only when both endpoints are kept.
    """
    degree = defaultdict(int)
    for e in graph.edges.values():
        degree[e.source] += 1
        degree[e.target] += 1

    candidates = [n for n in graph.nodes.values()
                  if kind is None or n.kind.value == kind]

    keep = {n.id for n in candidates if degree.get(n.id, 0) >= min_degree}
    if len(keep) < MIN_VIZ_NODES:
        keep = {n.id for n in candidates if degree.get(n.id, 0) >= 1}
    if len(keep) < MIN_VIZ_NODES:
        keep = {n.id for n in candidates}

    nodes = []
    for n in candidates:
        if n.id not in keep:
            continue
        nodes.append({
            "id": n.id,
            "label": truncate_label(n.label),
            "full_label": n.label,
            "type": n.kind.value,
            "size": n.size,
            "degree": degree.get(n.id, 0),
            "color": n.color or KIND_COLORS.get(n.kind.value, NEUTRAL_COLOR),
            "position": n.position,
        })

    links = []
    for e in graph.edges.values():
        if e.source in keep and e.target in keep:
            links.append({
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "type": e.kind.value,
                "weight": e.weight,
                "label": e.label or "",
                "color": EDGE_COLORS.get(e.kind.value, NEUTRAL_COLOR),
                "width": max(1, e.weight * 2),
            })

    return {"nodes": nodes, "links": links}
