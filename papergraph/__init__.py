"""papergraph — Incremental knowledge graph of research papers, authors and topics."""

from .analysis import analyze, run_analysis
from .config import CATEGORY_COLORS, SIMILARITY_THRESHOLD
from .edges import EdgeSynthesizer, jaccard, similarity
from .errors import FormatError
from .graph import KnowledgeGraph
from .models import (
    AnalysisRecord,
    Edge,
    EdgeKind,
    Graph,
    GraphMetadata,
    Node,
    NodeKind,
    PaperRecord,
)
from .registry import NodeRegistry, canonical_key, node_id
from .viz import prepare_viz_data

__all__ = [
    "CATEGORY_COLORS",
    "SIMILARITY_THRESHOLD",
    "analyze",
    "run_analysis",
    "EdgeSynthesizer",
    "jaccard",
    "similarity",
    "FormatError",
    "KnowledgeGraph",
    "AnalysisRecord",
    "Edge",
    "EdgeKind",
    "Graph",
    "GraphMetadata",
    "Node",
    "NodeKind",
    "PaperRecord",
    "NodeRegistry",
    "canonical_key",
    "node_id",
    "prepare_viz_data",
]
