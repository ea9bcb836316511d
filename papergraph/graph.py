"""The knowledge graph: incremental paper ingestion and read-only queries."""

import copy
import json
import logging
from collections import Counter

from .config import MAX_CITATION_EDGES, MAX_KEYWORD_EDGES
from .edges import EdgeSynthesizer
from .errors import FormatError
from .locking import ReadWriteLock
from .models import (
    AnalysisRecord,
    EdgeKind,
    Graph,
    GraphMetadata,
    NodeKind,
    PaperRecord,
    utcnow,
)
from .registry import NodeRegistry, build_paper_node

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ("nodes", "edges", "metadata")


def _recount(graph):
    """Set the metadata counts from the live node set."""
    counts = Counter(n.kind for n in graph.nodes.values())
    meta = graph.metadata
    meta.paper_count = counts[NodeKind.PAPER]
    meta.author_count = counts[NodeKind.AUTHOR]
    meta.topic_count = counts[NodeKind.TOPIC]


def _as_paper(paper):
    if isinstance(paper, PaperRecord):
        return paper
    return PaperRecord.from_dict(paper or {})


def _as_analysis(analysis):
    if isinstance(analysis, AnalysisRecord):
        return analysis
    return AnalysisRecord.from_dict(analysis or {})


class KnowledgeGraph:
    """A growing graph of papers, authors, topics, keywords and citations.

    ``add_paper`` is the only ingestion path. Mutations (``add_paper``,
    ``import_graph``, ``reset``) hold the write lock for their whole run;
    queries hold the read lock, so a reader never sees half an ingestion.
    Nodes handed out by any method are copies taken under the lock; later
    ingestions do not change them.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._graph = Graph()

    # ── Ingestion ─────────────────────────────────────────────────────

    def add_paper(self, paper, analysis=None):
        """Ingest one paper record plus its analysis record.

        Args:
            paper: PaperRecord or dict with at least "id"
            analysis: AnalysisRecord, dict, or None

        Returns:
            A copy of the inserted paper Node.
        """
        paper = _as_paper(paper)
        analysis = _as_analysis(analysis)

        with self._lock.write():
            registry = NodeRegistry(self._graph.nodes)
            synth = EdgeSynthesizer(self._graph.edges)

            paper_node = registry.put_paper(build_paper_node(paper, analysis))
            pid = paper_node.id

            for author in paper.authors:
                node = registry.get_or_create(NodeKind.AUTHOR, author)
                registry.record_association(node, pid)
                synth.link_author(node.id, pid)

            for topic in analysis.topics:
                node = registry.get_or_create(NodeKind.TOPIC, topic)
                registry.record_association(node, pid)
                synth.link_topic(pid, node.id)

            for keyword in analysis.keywords[:MAX_KEYWORD_EDGES]:
                node = registry.get_or_create(NodeKind.KEYWORD, keyword)
                registry.record_association(node, pid)
                synth.link_keyword(pid, node.id)

            for reference in analysis.citations[:MAX_CITATION_EDGES]:
                node = registry.get_or_create(NodeKind.CITATION, reference)
                registry.record_association(node, pid)
                synth.link_citation(pid, node.id)

            synth.link_collaborators(paper.authors)

            others = [n for n in self._graph.nodes.values()
                      if n.kind == NodeKind.PAPER and n.id != pid]
            similar = synth.link_similar(paper_node, others)

            self._refresh_metadata()

            logger.info(
                "Ingested %s: %d authors, %d topics, %d similar papers "
                "(graph: %d nodes, %d edges)",
                pid, len(paper.authors), len(analysis.topics), len(similar),
                len(self._graph.nodes), len(self._graph.edges),
            )
            return copy.deepcopy(paper_node)

    def _refresh_metadata(self):
        _recount(self._graph)
        self._graph.metadata.updated_at = utcnow()

    # ── Queries ───────────────────────────────────────────────────────

    def get_graph(self):
        """Return a deep copy of the graph; mutating it does not affect this instance."""
        with self._lock.read():
            return copy.deepcopy(self._graph)

    def get_node(self, node_id):
        with self._lock.read():
            return copy.deepcopy(self._graph.nodes.get(node_id))

    def search(self, query):
        """Nodes whose label or paper abstract contains ``query``, ignoring case."""
        needle = (query or "").lower()
        with self._lock.read():
            return copy.deepcopy([
                n for n in self._graph.nodes.values()
                if needle in n.label.lower() or needle in n.payload.text.lower()
            ])

    def filter_by_kind(self, kind):
        try:
            kind = NodeKind(kind)
        except ValueError:
            return []
        with self._lock.read():
            return copy.deepcopy([n for n in self._graph.nodes.values() if n.kind == kind])

    def neighbors(self, node_id):
        """Distinct nodes one edge away from ``node_id``, in either direction.

        The node itself is only included through a self-loop.
        """
        with self._lock.read():
            adjacent = set()
            for edge in self._graph.edges.values():
                if edge.source == node_id:
                    adjacent.add(edge.target)
                if edge.target == node_id:
                    adjacent.add(edge.source)
            return copy.deepcopy([n for n in self._graph.nodes.values() if n.id in adjacent])

    def stats(self):
        """Node and edge counts per kind plus totals."""
        with self._lock.read():
            node_counts = Counter(n.kind for n in self._graph.nodes.values())
            edge_counts = Counter(e.kind for e in self._graph.edges.values())
            return {
                "nodes": {k.value: node_counts[k] for k in NodeKind},
                "edges": {k.value: edge_counts[k] for k in EdgeKind},
                "total": {
                    "nodes": len(self._graph.nodes),
                    "edges": len(self._graph.edges),
                },
            }

    @property
    def metadata(self):
        with self._lock.read():
            return copy.copy(self._graph.metadata)

    # ── Export / import / reset ───────────────────────────────────────

    def to_dict(self):
        with self._lock.read():
            return self._graph.to_dict()

    def export(self):
        """Serialize the whole graph to a JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def import_graph(self, blob):
        """Replace the graph with one previously produced by ``export``.

        Only the presence of the "nodes", "edges" and "metadata" sections is
        checked; edges pointing at missing nodes are accepted as-is. Metadata
        counts are recomputed from the imported nodes; timestamps are kept.
        On any failure the current graph is left untouched.

        Raises:
            FormatError: blob is not valid JSON, lacks a section, or holds a
                record that cannot be built.
        """
        if isinstance(blob, (str, bytes, bytearray)):
            try:
                data = json.loads(blob)
            except ValueError as e:
                logger.warning("Rejected graph import: %s", e)
                raise FormatError(f"Invalid graph data: {e}") from e
        else:
            data = blob

        if not isinstance(data, dict):
            raise FormatError("Invalid graph data: expected an object")
        missing = [s for s in REQUIRED_SECTIONS if s not in data]
        if missing:
            logger.warning("Rejected graph import: missing %s", ", ".join(missing))
            raise FormatError(f"Invalid graph data: missing {', '.join(missing)}")

        try:
            graph = Graph.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Rejected graph import: %s", e)
            raise FormatError(f"Invalid graph data: {e}") from e
        _recount(graph)

        with self._lock.write():
            self._graph = graph
        logger.info("Imported graph: %d nodes, %d edges",
                    len(graph.nodes), len(graph.edges))

    def reset(self):
        """Drop every node and edge and restart the metadata clock."""
        with self._lock.write():
            self._graph = Graph(metadata=GraphMetadata())
        logger.info("Graph reset")
