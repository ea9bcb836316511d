"""Tests for papergraph.graph — ingestion, queries, export/import, locking."""

import json
import threading

import pytest


class TestAddPaper:
    def test_first_paper_nodes(self, graph, paper_one, analysis_one):
        paper = graph.add_paper(paper_one, analysis_one)
        g = graph.get_graph()

        assert paper.id == "paper_1"
        assert g.nodes["paper_1"].size == 20
        assert g.nodes["paper_1"].color == "#3B82F6"
        assert g.nodes["author_Alice"].size == 15
        assert g.nodes["author_Bob"].size == 15
        assert g.nodes["topic_nlp"].size == 12
        assert g.nodes["keyword_transformer"].size == 8
        assert g.nodes["keyword_attention"].size == 8
        assert len(g.nodes) == 6

    def test_first_paper_edges(self, graph, paper_one, analysis_one):
        from papergraph.models import EdgeKind

        graph.add_paper(paper_one, analysis_one)
        edges = graph.get_graph().edges

        authored = [e for e in edges.values() if e.kind == EdgeKind.AUTHORED_BY]
        contains = [e for e in edges.values() if e.kind == EdgeKind.CONTAINS_TOPIC]
        assert len(authored) == 2
        assert all(e.target == "paper_1" for e in authored)
        assert sorted(e.weight for e in contains) == [0.5, 0.5, 1]
        assert edges["paper_1_contains_topic_nlp"].weight == 1
        collab = edges["author_Alice_collaborates_author_Bob"]
        assert collab.weight == 1
        assert len(edges) == 6

    def test_second_paper_collaboration_and_similarity(self, populated_graph):
        edges = populated_graph.get_graph().edges

        assert edges["author_Alice_collaborates_author_Bob"].weight == 2
        similar = edges["paper_2_similar_paper_1"]
        assert similar.weight == pytest.approx(1.0)
        assert similar.label == "100% similar"
        assert "paper_1_similar_paper_2" not in edges

    def test_associations_accumulate(self, populated_graph):
        alice = populated_graph.get_node("author_Alice")
        topic = populated_graph.get_node("topic_nlp")
        assert alice.payload.papers == ["paper_1", "paper_2"]
        assert topic.payload.papers == ["paper_1", "paper_2"]
        assert alice.size == 15

    def test_paper_payload_keeps_records(self, graph, paper_one, analysis_one):
        node = graph.add_paper(paper_one, analysis_one)
        assert node.payload.paper.title == "Attention Is All You Need"
        assert node.payload.paper.extra == {"venue": "NeurIPS"}
        assert node.payload.analysis.keywords == ["transformer", "attention"]

    def test_only_first_five_keywords(self, graph):
        kws = [f"k{i}" for i in range(8)]
        graph.add_paper({"id": "1"}, {"keywords": kws})
        keywords = graph.filter_by_kind("keyword")
        assert [n.label for n in keywords] == kws[:5]

    def test_citations_become_nodes(self, graph):
        from papergraph.models import EdgeKind

        refs = [f"Ref {i}" for i in range(12)]
        graph.add_paper({"id": "1"}, {"citations": refs})
        citations = graph.filter_by_kind("citation")
        assert len(citations) == 10
        edges = graph.get_graph().edges
        cites = [e for e in edges.values() if e.kind == EdgeKind.CITES]
        assert len(cites) == 10
        assert "paper_1_cites_citation_Ref_0" in edges

    def test_missing_optional_fields(self, graph):
        node = graph.add_paper({"id": "x"})
        assert node.id == "paper_x"
        assert node.size == 10
        assert node.color == "#6B7280"
        assert len(graph.get_graph().nodes) == 1
        assert graph.get_graph().edges == {}

    def test_accepts_model_instances(self, graph):
        from papergraph.models import AnalysisRecord, PaperRecord

        graph.add_paper(PaperRecord(id="1", authors=["Ann"]), AnalysisRecord(topics=["t"]))
        assert graph.get_node("author_Ann") is not None
        assert graph.get_node("topic_t") is not None

    def test_author_count_matches_distinct_keys(self, graph):
        graph.add_paper({"id": "1", "authors": ["A", "B"]})
        graph.add_paper({"id": "2", "authors": ["B", "C"]})
        graph.add_paper({"id": "3", "authors": ["A", "C", "A  "]})
        g = graph.get_graph()
        assert g.metadata.author_count == 4  # A, B, C, "A_"
        assert len(graph.filter_by_kind("author")) == g.metadata.author_count

    def test_reversed_authors_second_edge(self, graph):
        graph.add_paper({"id": "1", "authors": ["A", "B"]})
        graph.add_paper({"id": "2", "authors": ["B", "A"]})
        edges = graph.get_graph().edges
        assert edges["author_A_collaborates_author_B"].weight == 1
        assert edges["author_B_collaborates_author_A"].weight == 1

    def test_similarity_only_from_new_paper(self, graph):
        graph.add_paper({"id": "1"}, {"topics": ["a"]})
        graph.add_paper({"id": "2"}, {"topics": ["a"]})
        graph.add_paper({"id": "3"}, {"topics": ["b"]})
        graph.add_paper({"id": "4"}, {"topics": ["a"]})
        similar = {e.id for e in graph.get_graph().edges.values()
                   if e.kind.value == "similar_to"}
        assert similar == {
            "paper_2_similar_paper_1",
            "paper_4_similar_paper_1",
            "paper_4_similar_paper_2",
        }


class TestReingest:
    def test_replaces_payload_keeps_edges(self, graph):
        graph.add_paper({"id": "1", "title": "Old", "authors": ["A"], "citations": 0},
                        {"topics": ["old"]})
        graph.add_paper({"id": "1", "title": "New", "authors": ["B"], "citations": 400},
                        {"topics": ["new"]})
        g = graph.get_graph()

        papers = [n for n in g.nodes.values() if n.id == "paper_1"]
        assert len(papers) == 1
        assert papers[0].label == "New"
        assert papers[0].size == 50
        assert "author_A_authors_paper_1" in g.edges
        assert "paper_1_contains_topic_old" in g.edges
        assert g.metadata.paper_count == 1


class TestMetadata:
    def test_counts_after_each_ingest(self, populated_graph):
        meta = populated_graph.metadata
        assert meta.paper_count == 2
        assert meta.author_count == 2
        assert meta.topic_count == 1

    def test_updated_at_advances(self, graph):
        before = graph.metadata.updated_at
        graph.add_paper({"id": "1"})
        assert graph.metadata.updated_at >= before


class TestSearch:
    def test_matches_label_case_insensitive(self, populated_graph):
        ids = [n.id for n in populated_graph.search("ALICE")]
        assert ids == ["author_Alice"]

    def test_matches_abstract(self, populated_graph):
        ids = [n.id for n in populated_graph.search("mechanisms")]
        assert ids == ["paper_1"]

    def test_storage_order(self, populated_graph):
        ids = [n.id for n in populated_graph.search("transformer")]
        assert ids == ["paper_1", "keyword_transformer", "paper_2"]

    def test_no_match(self, populated_graph):
        assert populated_graph.search("quantum") == []


class TestFilterByKind:
    def test_filters(self, populated_graph):
        from papergraph.models import NodeKind

        papers = populated_graph.filter_by_kind(NodeKind.PAPER)
        assert [n.id for n in papers] == ["paper_1", "paper_2"]
        assert len(populated_graph.filter_by_kind("author")) == 2

    def test_unknown_kind(self, populated_graph):
        assert populated_graph.filter_by_kind("venue") == []


class TestNeighbors:
    def test_union_of_both_directions(self, populated_graph):
        ids = {n.id for n in populated_graph.neighbors("paper_1")}
        assert ids == {"author_Alice", "author_Bob", "topic_nlp",
                       "keyword_transformer", "keyword_attention", "paper_2"}

    def test_no_duplicates(self, graph):
        graph.add_paper({"id": "1", "authors": ["A", "B"]})
        graph.add_paper({"id": "2", "authors": ["B", "A"]})
        ids = [n.id for n in graph.neighbors("author_A")]
        assert sorted(ids) == ["author_B", "paper_1", "paper_2"]

    def test_excludes_self_without_loop(self, populated_graph):
        ids = {n.id for n in populated_graph.neighbors("author_Alice")}
        assert "author_Alice" not in ids

    def test_self_loop_included(self, graph):
        blob = {
            "nodes": [{"id": "topic_x", "type": "topic", "label": "x",
                       "data": {"topic": "x", "papers": []}, "size": 12, "color": ""}],
            "edges": [{"id": "loop", "source": "topic_x", "target": "topic_x",
                       "type": "contains_topic", "weight": 1}],
            "metadata": {},
        }
        graph.import_graph(blob)
        assert [n.id for n in graph.neighbors("topic_x")] == ["topic_x"]

    def test_unknown_node(self, populated_graph):
        assert populated_graph.neighbors("paper_404") == []


class TestStats:
    def test_counts(self, populated_graph):
        stats = populated_graph.stats()
        assert stats["nodes"] == {"paper": 2, "author": 2, "topic": 1,
                                  "keyword": 2, "citation": 0}
        assert stats["edges"]["authored_by"] == 4
        assert stats["edges"]["contains_topic"] == 6
        assert stats["edges"]["collaborates_with"] == 1
        assert stats["edges"]["similar_to"] == 1
        assert stats["edges"]["cites"] == 0
        assert stats["total"] == {"nodes": 7, "edges": 12}

    def test_empty(self, graph):
        stats = graph.stats()
        assert stats["total"] == {"nodes": 0, "edges": 0}


class TestExportImport:
    def test_round_trip(self, populated_graph):
        from papergraph.graph import KnowledgeGraph

        blob = populated_graph.export()
        fresh = KnowledgeGraph()
        fresh.import_graph(blob)

        original = populated_graph.get_graph()
        restored = fresh.get_graph()
        assert list(restored.nodes) == list(original.nodes)
        assert restored.edges == original.edges
        assert restored.nodes == original.nodes
        assert restored.metadata.paper_count == 2

    def test_export_shape(self, populated_graph):
        data = json.loads(populated_graph.export())
        assert set(data) == {"nodes", "edges", "metadata"}
        paper = next(n for n in data["nodes"] if n["id"] == "paper_1")
        assert paper["type"] == "paper"
        assert paper["data"]["analysis"]["topics"] == ["nlp"]
        assert paper["data"]["venue"] == "NeurIPS"

    def test_import_continues_ingestion(self, populated_graph):
        from papergraph.graph import KnowledgeGraph

        fresh = KnowledgeGraph()
        fresh.import_graph(populated_graph.export())
        fresh.add_paper({"id": "3", "authors": ["Alice", "Bob"]})
        edges = fresh.get_graph().edges
        assert edges["author_Alice_collaborates_author_Bob"].weight == 3

    def test_dangling_edges_accepted(self, graph):
        blob = {"nodes": [], "edges": [{"id": "e", "source": "a", "target": "b",
                                        "type": "cites"}], "metadata": {}}
        graph.import_graph(blob)
        assert graph.stats()["total"] == {"nodes": 0, "edges": 1}
        assert graph.neighbors("a") == []

    @pytest.mark.parametrize("blob", [
        "not json",
        "[]",
        '{"nodes": [], "edges": []}',
        '{"nodes": [], "metadata": {}}',
        '{"nodes": [{"type": "paper"}], "edges": [], "metadata": {}}',
    ])
    def test_invalid_blob_leaves_graph(self, populated_graph, blob):
        from papergraph.errors import FormatError

        before = populated_graph.export()
        with pytest.raises(FormatError):
            populated_graph.import_graph(blob)
        assert populated_graph.export() == before

    def test_import_recounts_metadata(self, graph):
        blob = {
            "nodes": [{"id": "paper_1", "type": "paper", "label": "One",
                       "data": {"id": "1", "title": "One"}}],
            "edges": [],
            "metadata": {"created_at": "2024-01-02T03:04:05+00:00",
                         "updated_at": "2024-01-03T03:04:05+00:00",
                         "paper_count": 99, "author_count": 42, "topic_count": 7},
        }
        graph.import_graph(blob)
        meta = graph.metadata
        assert (meta.paper_count, meta.author_count, meta.topic_count) == (1, 0, 0)
        assert meta.created_at.year == 2024
        assert meta.updated_at.day == 3


class TestReset:
    def test_clears_everything(self, populated_graph):
        created = populated_graph.metadata.created_at
        populated_graph.reset()
        g = populated_graph.get_graph()
        assert g.nodes == {}
        assert g.edges == {}
        assert g.metadata.paper_count == 0
        assert g.metadata.created_at >= created


class TestSnapshot:
    def test_get_graph_is_a_copy(self, populated_graph):
        snapshot = populated_graph.get_graph()
        snapshot.nodes.clear()
        snapshot.edges["author_Alice_collaborates_author_Bob"].weight = 99
        g = populated_graph.get_graph()
        assert len(g.nodes) == 7
        assert g.edges["author_Alice_collaborates_author_Bob"].weight == 2

    def test_query_results_do_not_change_on_ingest(self, graph):
        graph.add_paper({"id": "1", "authors": ["A"]})
        [author] = graph.filter_by_kind("author")
        found = graph.search("A")
        around = graph.neighbors("author_A")
        node = graph.get_node("author_A")

        graph.add_paper({"id": "2", "authors": ["A"]})

        assert author.payload.papers == ["paper_1"]
        assert author.to_dict()["data"]["papers"] == ["paper_1"]
        assert node.payload.papers == ["paper_1"]
        assert [n.id for n in around] == ["paper_1"]
        assert next(n for n in found if n.id == "author_A").payload.papers == ["paper_1"]
        assert graph.get_node("author_A").payload.papers == ["paper_1", "paper_2"]

    def test_mutating_a_result_does_not_touch_graph(self, populated_graph):
        node = populated_graph.add_paper({"id": "3", "authors": ["Alice"]})
        node.label = "changed"
        [alice] = populated_graph.search("alice")
        alice.payload.papers.clear()
        assert populated_graph.get_node("paper_3").label == ""
        assert populated_graph.get_node("author_Alice").payload.papers == [
            "paper_1", "paper_2", "paper_3"]


class TestConcurrency:
    def test_readers_never_see_partial_ingestion(self, graph):
        """Every observed snapshot has one author per paper and matching counts."""
        errors = []
        done = threading.Event()

        def writer():
            for i in range(30):
                graph.add_paper({"id": str(i), "authors": [f"A{i}"]},
                                {"topics": ["shared"]})
            done.set()

        def reader():
            while not done.is_set():
                g = graph.get_graph()
                papers = sum(1 for n in g.nodes.values() if n.kind.value == "paper")
                authors = sum(1 for n in g.nodes.values() if n.kind.value == "author")
                if papers != authors or g.metadata.paper_count != papers:
                    errors.append((papers, authors, g.metadata.paper_count))

        threads = [threading.Thread(target=writer)] + [
            threading.Thread(target=reader, daemon=True) for _ in range(3)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []
        assert graph.metadata.paper_count == 30
