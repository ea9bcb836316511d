"""Node registry: canonical keys, stable node ids, and size/color hints."""

import re

from .config import (
    AUTHOR_SIZE,
    AUTHOR_SIZE_STEP,
    CATEGORY_COLORS,
    CITATION_SIZE,
    CITATION_SIZE_STEP,
    KEYWORD_SIZE,
    KEYWORD_SIZE_STEP,
    KIND_COLORS,
    NEUTRAL_COLOR,
    PAPER_MAX_SIZE,
    PAPER_MIN_SIZE,
    TOPIC_SIZE,
    TOPIC_SIZE_STEP,
)
from .models import PAYLOAD_TYPES, Node, NodeKind, PaperPayload

_WHITESPACE = re.compile(r"\s+")

# kind -> (initial size, growth per associated paper)
SIZE_RULES = {
    NodeKind.AUTHOR: (AUTHOR_SIZE, AUTHOR_SIZE_STEP),
    NodeKind.TOPIC: (TOPIC_SIZE, TOPIC_SIZE_STEP),
    NodeKind.KEYWORD: (KEYWORD_SIZE, KEYWORD_SIZE_STEP),
    NodeKind.CITATION: (CITATION_SIZE, CITATION_SIZE_STEP),
}


def canonical_key(label):
    """Collapse each run of whitespace to "_".

    Case and punctuation are left alone, so "Alice" and "alice" are
    different keys.
    """
    return _WHITESPACE.sub("_", label)


def node_id(kind, label):
    return f"{NodeKind(kind).value}_{canonical_key(label)}"


def paper_node_id(paper_id):
    return f"paper_{paper_id}"


def category_color(category):
    return CATEGORY_COLORS.get(category, NEUTRAL_COLOR)


def paper_size(citations):
    """Clamp ``citations / 10 + 10`` into the paper size range."""
    try:
        citations = float(citations or 0)
    except (TypeError, ValueError):
        citations = 0.0
    size = citations / 10 + 10
    return max(PAPER_MIN_SIZE, min(PAPER_MAX_SIZE, size))


def build_paper_node(paper, analysis):
    """Build a fresh paper node from a paper record and its analysis."""
    return Node(
        id=paper_node_id(paper.id),
        kind=NodeKind.PAPER,
        label=paper.title,
        payload=PaperPayload(paper=paper, analysis=analysis),
        size=paper_size(paper.citations),
        color=category_color(paper.category),
    )


class NodeRegistry:
    """Creates or reuses nodes in a graph's node map.

    Args:
        nodes: the graph's ``{id: Node}`` dict, mutated in place
    """

    def __init__(self, nodes):
        self.nodes = nodes

    def get_or_create(self, kind, label, payload=None):
        """Return the node for ``(kind, canonical_key(label))``, creating it if absent."""
        kind = NodeKind(kind)
        nid = node_id(kind, label)
        node = self.nodes.get(nid)
        if node is not None:
            return node

        initial_size, _ = SIZE_RULES[kind]
        node = Node(
            id=nid,
            kind=kind,
            label=label,
            payload=payload if payload is not None else PAYLOAD_TYPES[kind].for_label(label),
            size=initial_size,
            color=KIND_COLORS[kind.value],
        )
        self.nodes[nid] = node
        return node

    def record_association(self, node, paper_id):
        """Attach ``paper_id`` to the node and grow its size.

        Returns True if the paper was not associated before. Size never
        shrinks.
        """
        papers = node.payload.papers
        if paper_id in papers:
            return False
        papers.append(paper_id)
        minimum, step = SIZE_RULES[node.kind]
        node.size = max(node.size, minimum, len(papers) * step)
        return True

    def put_paper(self, node):
        """Insert a paper node, replacing any node with the same id.

        A replaced node moves to the end of storage order.
        """
        self.nodes.pop(node.id, None)
        self.nodes[node.id] = node
        return node
