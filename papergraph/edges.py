"""Edge synthesis: authorship, containment, collaboration, citation, similarity."""

import logging
import math

from .config import KEYWORD_EDGE_WEIGHT, SIMILARITY_THRESHOLD
from .models import Edge, EdgeKind, NodeKind
from .registry import node_id

logger = logging.getLogger(__name__)


def jaccard(a, b):
    """|A & B| / |A | B| over two iterables; 0.0 when both are empty."""
    a, b = set(a), set(b)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def similarity(analysis_a, analysis_b):
    """Average of keyword and topic Jaccard between two analysis records.

    Missing analysis on either side gives 0.0.
    """
    if analysis_a is None or analysis_b is None:
        return 0.0
    keyword_sim = jaccard(analysis_a.keywords, analysis_b.keywords)
    topic_sim = jaccard(analysis_a.topics, analysis_b.topics)
    return (keyword_sim + topic_sim) / 2


def percent_label(score):
    # Halves round up, not to even
    return f"{math.floor(score * 100 + 0.5)}% similar"


class EdgeSynthesizer:
    """Derives edges into a graph's ``{id: Edge}`` dict.

    Every rule is idempotent on edge id: an existing edge is never
    duplicated, only (for collaboration) re-weighted.
    """

    def __init__(self, edges):
        self.edges = edges

    def _ensure(self, edge_id, source, target, kind, weight=1, label=None):
        """Add the edge unless its id is taken. Returns (edge, created)."""
        edge = self.edges.get(edge_id)
        if edge is not None:
            return edge, False
        edge = Edge(id=edge_id, source=source, target=target, kind=kind,
                    weight=weight, label=label)
        self.edges[edge_id] = edge
        return edge, True

    def link_author(self, author_id, paper_id):
        edge, _ = self._ensure(f"{author_id}_authors_{paper_id}", author_id,
                               paper_id, EdgeKind.AUTHORED_BY)
        return edge

    def link_topic(self, paper_id, topic_id):
        edge, _ = self._ensure(f"{paper_id}_contains_{topic_id}", paper_id,
                               topic_id, EdgeKind.CONTAINS_TOPIC)
        return edge

    def link_keyword(self, paper_id, keyword_id):
        edge, _ = self._ensure(f"{paper_id}_contains_keyword_{keyword_id}",
                               paper_id, keyword_id, EdgeKind.CONTAINS_TOPIC,
                               weight=KEYWORD_EDGE_WEIGHT)
        return edge

    def link_citation(self, paper_id, citation_id):
        edge, _ = self._ensure(f"{paper_id}_cites_{citation_id}", paper_id,
                               citation_id, EdgeKind.CITES)
        return edge

    def link_collaborators(self, authors):
        """Connect every pair of authors on one paper, in listing order.

        The pair (authors[i], authors[j]) with i < j always yields the edge
        ``a_i -> a_j``; the same two authors listed the other way round on
        another paper get their own edge. Repeat pairs gain +1 weight.
        """
        ids = [node_id(NodeKind.AUTHOR, a) for a in authors or []]
        touched = []
        for i in range(len(ids)):
            for j in range(i + 1, len(ids)):
                source, target = ids[i], ids[j]
                if source == target:
                    continue
                edge, created = self._ensure(
                    f"{source}_collaborates_{target}", source, target,
                    EdgeKind.COLLABORATES_WITH,
                )
                if not created:
                    edge.weight += 1
                logger.debug("Collaboration %s -> %s (weight %s)",
                             source, target, edge.weight)
                touched.append(edge)
        return touched

    def link_similar(self, paper_node, others):
        """Link the anchor paper to each other paper scoring above the threshold.

        Only ``anchor -> other`` edges are made; existing pairs are not
        rescored.
        """
        anchor_analysis = paper_node.payload.analysis
        created_edges = []
        for other in others:
            if other.id == paper_node.id:
                continue
            score = similarity(anchor_analysis,
                               getattr(other.payload, "analysis", None))
            if score <= SIMILARITY_THRESHOLD:
                continue
            edge, created = self._ensure(
                f"{paper_node.id}_similar_{other.id}", paper_node.id, other.id,
                EdgeKind.SIMILAR_TO, weight=score, label=percent_label(score),
            )
            if created:
                logger.debug("Similarity %s -> %s: %.2f",
                             paper_node.id, other.id, score)
                created_edges.append(edge)
        return created_edges
