"""Records, nodes, edges and the graph container, with dict (de)serialization."""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class NodeKind(str, Enum):
    PAPER = "paper"
    AUTHOR = "author"
    TOPIC = "topic"
    KEYWORD = "keyword"
    CITATION = "citation"


class EdgeKind(str, Enum):
    CITES = "cites"
    AUTHORED_BY = "authored_by"
    CONTAINS_TOPIC = "contains_topic"
    SIMILAR_TO = "similar_to"
    COLLABORATES_WITH = "collaborates_with"


def utcnow():
    return datetime.now(timezone.utc)


def _as_list(value):
    """Coerce a missing or scalar field to a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _split_known(cls, data):
    """Split a dict into known dataclass fields and leftover extension fields."""
    known = {f.name for f in fields(cls)} - {"extra"}
    extra = {k: v for k, v in data.items() if k not in known}
    return {k: v for k, v in data.items() if k in known}, extra


# ── Input records ─────────────────────────────────────────────────────

@dataclass
class PaperRecord:
    """A paper as handed over by the importer. Unknown fields land in ``extra``."""

    id: str
    title: str = ""
    authors: List[str] = field(default_factory=list)
    year: Optional[int] = None
    category: str = ""
    citations: float = 0
    abstract: str = ""
    extra: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        known, extra = _split_known(cls, data)
        return cls(
            id=str(known.get("id", "")),
            title=known.get("title") or "",
            authors=[a for a in _as_list(known.get("authors")) if a],
            year=known.get("year"),
            category=known.get("category") or "",
            citations=known.get("citations") or 0,
            abstract=known.get("abstract") or "",
            extra=extra,
        )

    def to_dict(self):
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "year": self.year,
            "category": self.category,
            "citations": self.citations,
            "abstract": self.abstract,
        })
        return data


@dataclass
class AnalysisRecord:
    """Output of the text-analysis stage; every field is optional."""

    topics: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    summary: str = ""
    findings: List[str] = field(default_factory=list)
    methodology: List[str] = field(default_factory=list)
    sentiment: Optional[dict] = None
    citations: List[str] = field(default_factory=list)
    entities: List[dict] = field(default_factory=list)
    extra: Dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data):
        known, extra = _split_known(cls, data or {})
        return cls(
            topics=[t for t in _as_list(known.get("topics")) if t],
            keywords=[k for k in _as_list(known.get("keywords")) if k],
            summary=known.get("summary") or "",
            findings=_as_list(known.get("findings")),
            methodology=_as_list(known.get("methodology")),
            sentiment=known.get("sentiment"),
            citations=[c for c in _as_list(known.get("citations")) if c],
            entities=_as_list(known.get("entities")),
            extra=extra,
        )

    def to_dict(self):
        data = dict(self.extra)
        data.update({
            "topics": list(self.topics),
            "keywords": list(self.keywords),
            "summary": self.summary,
            "findings": list(self.findings),
            "methodology": list(self.methodology),
            "sentiment": self.sentiment,
            "citations": list(self.citations),
            "entities": list(self.entities),
        })
        return data


# ── Node payloads ─────────────────────────────────────────────────────

@dataclass
class PaperPayload:
    paper: PaperRecord
    analysis: Optional[AnalysisRecord] = None

    @property
    def text(self):
        return self.paper.abstract

    @classmethod
    def from_dict(cls, data):
        data = dict(data)
        analysis = data.pop("analysis", None)
        return cls(
            paper=PaperRecord.from_dict(data),
            analysis=AnalysisRecord.from_dict(analysis) if analysis is not None else None,
        )

    def to_dict(self):
        data = self.paper.to_dict()
        data["analysis"] = self.analysis.to_dict() if self.analysis is not None else None
        return data


@dataclass
class AssociationPayload:
    """Payload of nodes that keep a back-reference list of paper ids."""

    papers: List[str] = field(default_factory=list)
    extra: Dict[str, object] = field(default_factory=dict)

    label_field = "name"

    @property
    def text(self):
        return ""

    @classmethod
    def for_label(cls, label):
        return cls(**{cls.label_field: label})

    @classmethod
    def from_dict(cls, data):
        known, extra = _split_known(cls, data)
        return cls(**{
            cls.label_field: known.get(cls.label_field, ""),
            "papers": list(known.get("papers") or []),
            "extra": extra,
        })

    def to_dict(self):
        data = dict(self.extra)
        data[self.label_field] = getattr(self, self.label_field)
        data["papers"] = list(self.papers)
        return data


@dataclass
class AuthorPayload(AssociationPayload):
    name: str = ""


@dataclass
class TopicPayload(AssociationPayload):
    topic: str = ""

    label_field = "topic"


@dataclass
class KeywordPayload(AssociationPayload):
    keyword: str = ""

    label_field = "keyword"


@dataclass
class CitationPayload(AssociationPayload):
    reference: str = ""

    label_field = "reference"


PAYLOAD_TYPES = {
    NodeKind.PAPER: PaperPayload,
    NodeKind.AUTHOR: AuthorPayload,
    NodeKind.TOPIC: TopicPayload,
    NodeKind.KEYWORD: KeywordPayload,
    NodeKind.CITATION: CitationPayload,
}


# ── Graph structure ───────────────────────────────────────────────────

@dataclass
class Node:
    id: str
    kind: NodeKind
    label: str
    payload: object
    size: float
    color: str
    position: Optional[Dict[str, float]] = None

    @classmethod
    def from_dict(cls, data):
        kind = NodeKind(data["type"])
        return cls(
            id=data["id"],
            kind=kind,
            label=data.get("label", ""),
            payload=PAYLOAD_TYPES[kind].from_dict(data.get("data") or {}),
            size=data.get("size", 0),
            color=data.get("color", ""),
            position=data.get("position"),
        )

    def to_dict(self):
        data = {
            "id": self.id,
            "type": self.kind.value,
            "label": self.label,
            "data": self.payload.to_dict(),
            "size": self.size,
            "color": self.color,
        }
        if self.position is not None:
            data["position"] = dict(self.position)
        return data


@dataclass
class Edge:
    id: str
    source: str
    target: str
    kind: EdgeKind
    weight: float = 1
    label: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            kind=EdgeKind(data["type"]),
            weight=data.get("weight", 1),
            label=data.get("label"),
        )

    def to_dict(self):
        data = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.kind.value,
            "weight": self.weight,
        }
        if self.label is not None:
            data["label"] = self.label
        return data


def _parse_time(value):
    if isinstance(value, datetime):
        return value
    if not value:
        return utcnow()
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass
class GraphMetadata:
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    paper_count: int = 0
    author_count: int = 0
    topic_count: int = 0

    @classmethod
    def from_dict(cls, data):
        return cls(
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
            paper_count=int(data.get("paper_count", 0)),
            author_count=int(data.get("author_count", 0)),
            topic_count=int(data.get("topic_count", 0)),
        )

    def to_dict(self):
        return {
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "paper_count": self.paper_count,
            "author_count": self.author_count,
            "topic_count": self.topic_count,
        }


@dataclass
class Graph:
    """Nodes and edges keyed by id; dict order is storage order."""

    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: Dict[str, Edge] = field(default_factory=dict)
    metadata: GraphMetadata = field(default_factory=GraphMetadata)

    @classmethod
    def from_dict(cls, data):
        nodes = [Node.from_dict(n) for n in data["nodes"]]
        edges = [Edge.from_dict(e) for e in data["edges"]]
        return cls(
            nodes={n.id: n for n in nodes},
            edges={e.id: e for e in edges},
            metadata=GraphMetadata.from_dict(data["metadata"]),
        )

    def to_dict(self):
        return {
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [e.to_dict() for e in self.edges.values()],
            "metadata": self.metadata.to_dict(),
        }
