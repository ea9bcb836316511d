"""Configuration constants for the paper knowledge graph."""

# Initial node sizes per kind; paper size is derived from citation count
AUTHOR_SIZE = 15
TOPIC_SIZE = 12
KEYWORD_SIZE = 8
CITATION_SIZE = 6
PAPER_MIN_SIZE = 10
PAPER_MAX_SIZE = 50

# Size growth per associated paper
AUTHOR_SIZE_STEP = 3
TOPIC_SIZE_STEP = 2
KEYWORD_SIZE_STEP = 1.5
CITATION_SIZE_STEP = 1.5

MAX_KEYWORD_EDGES = 5  # only the first five keywords get nodes/edges
MAX_CITATION_EDGES = 10
KEYWORD_EDGE_WEIGHT = 0.5
SIMILARITY_THRESHOLD = 0.3  # strict: a score must exceed this

NEUTRAL_COLOR = "#6B7280"

CATEGORY_COLORS = {
    "Machine Learning": "#3B82F6",
    "Computer Science": "#6366F1",
    "Physics": "#8B5CF6",
    "Mathematics": "#A855F7",
    "Biology": "#10B981",
    "Chemistry": "#059669",
    "Engineering": "#DC2626",
    "Medicine": "#EA580C",
    "Psychology": "#D97706",
    "Economics": "#CA8A04",
    "Climate Science": "#65A30D",
    "Quantum Physics": "#7C3AED",
    "Biotechnology": "#059669",
    "Renewable Energy": "#16A34A",
    "Blockchain": "#2563EB",
}

KIND_COLORS = {
    "paper": "#3B82F6",
    "author": "#4F46E5",
    "topic": "#10B981",
    "keyword": "#F59E0B",
    "citation": "#EF4444",
}

EDGE_COLORS = {
    "authored_by": "#4F46E5",
    "contains_topic": "#10B981",
    "similar_to": "#F59E0B",
    "collaborates_with": "#8B5CF6",
    "cites": "#EF4444",
}

# Visualization
MAX_LABEL_LENGTH = 30
MIN_DEGREE_FOR_VIZ = 0
MIN_VIZ_NODES = 5
