"""Shared test fixtures for the paper graph test suite."""

import pytest


@pytest.fixture
def graph():
    from papergraph.graph import KnowledgeGraph

    return KnowledgeGraph()


@pytest.fixture
def paper_one():
    return {
        "id": "1",
        "title": "Attention Is All You Need",
        "authors": ["Alice", "Bob"],
        "year": 2017,
        "category": "Machine Learning",
        "citations": 100,
        "abstract": "We propose the Transformer, based solely on attention mechanisms.",
        "venue": "NeurIPS",
    }


@pytest.fixture
def analysis_one():
    return {
        "topics": ["nlp"],
        "keywords": ["transformer", "attention"],
        "summary": "A sequence model built from attention alone.",
        "findings": ["Attention suffices for translation"],
        "methodology": ["experimental"],
        "sentiment": {"label": "POSITIVE", "score": 0.9},
    }


@pytest.fixture
def paper_two():
    return {"id": "2", "title": "Transformers Revisited", "authors": ["Alice", "Bob"]}


@pytest.fixture
def analysis_two():
    return {"topics": ["nlp"], "keywords": ["transformer", "attention"]}


@pytest.fixture
def populated_graph(graph, paper_one, analysis_one, paper_two, analysis_two):
    """Graph after ingesting the two Alice/Bob papers."""
    graph.add_paper(paper_one, analysis_one)
    graph.add_paper(paper_two, analysis_two)
    return graph


@pytest.fixture
def sample_records(paper_one, analysis_one, paper_two, analysis_two):
    """Input file contents for the batch builder."""
    return [
        {"paper": paper_one, "analysis": analysis_one},
        {"paper": paper_two, "analysis": analysis_two},
        {"paper": {"id": "3", "title": "Protein Folding", "authors": ["Carol"],
                   "category": "Biology"},
         "analysis": {"topics": ["biology"], "keywords": ["protein"]}},
    ]
