#!/usr/bin/env python3
"""
build_paper_graph.py — Build a paper knowledge graph from analyzed records.

The input is a JSON list of {"paper": {...}, "analysis": {...}} objects, as
written by the analysis stage. Each pair is ingested in order, then the graph
is exported as JSON.

Usage:
    python3 build_paper_graph.py --input <file.json>
    python3 build_paper_graph.py --input <file.json> --output <graph.json>
    python3 build_paper_graph.py --input <file.json> --viz      # also write viz data
    python3 build_paper_graph.py --input <file.json> --verbose  # log each ingestion
"""

import json
import logging
import sys
from pathlib import Path

from papergraph.graph import KnowledgeGraph
from papergraph.models import NodeKind
from papergraph.viz import prepare_viz_data


def load_records(input_file):
    """Read paper/analysis pairs, skipping entries without a paper id."""
    with open(input_file) as f:
        records = json.load(f)
    if isinstance(records, dict):
        records = [records]

    pairs = []
    for rec in records:
        paper = rec.get("paper") or {}
        if paper.get("id") in (None, ""):
            print(f"  skipping record without paper id: {str(paper.get('title') or '?')[:50]}")
            continue
        pairs.append((paper, rec.get("analysis")))
    return pairs


def build_graph(pairs, graph=None):
    graph = graph if graph is not None else KnowledgeGraph()
    for paper, analysis in pairs:
        graph.add_paper(paper, analysis)
    return graph


def main():
    args = sys.argv[1:]

    input_file = None
    output_file = None
    write_viz = False
    verbose = False

    i = 0
    while i < len(args):
        if args[i] == '--input' and i + 1 < len(args):
            input_file = Path(args[i + 1])
            i += 2
        elif args[i] == '--output' and i + 1 < len(args):
            output_file = Path(args[i + 1])
            i += 2
        elif args[i] == '--viz':
            write_viz = True
            i += 1
        elif args[i] == '--verbose':
            verbose = True
            i += 1
        else:
            i += 1

    if input_file is None:
        print("Error: --input <file.json> is required")
        print(__doc__)
        sys.exit(1)

    if not input_file.exists():
        print(f"Error: {input_file} not found")
        sys.exit(1)

    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if output_file is None:
        output_file = input_file.parent / "paper_graph.json"

    print(f"Reading {input_file}...")
    pairs = load_records(input_file)
    print(f"  {len(pairs)} papers")

    graph = build_graph(pairs)

    with open(output_file, 'w') as f:
        f.write(graph.export())

    stats = graph.stats()
    print(f"\nPaper graph saved to {output_file}")
    print(f"  {stats['total']['nodes']} nodes, {stats['total']['edges']} edges")
    for kind, count in stats["nodes"].items():
        print(f"  {kind:12s} {count}")

    if write_viz:
        viz_file = output_file.with_name(output_file.stem + "_viz.json")
        viz = prepare_viz_data(graph.get_graph())
        with open(viz_file, 'w') as f:
            json.dump(viz, f, indent=2)
        print(f"\nVisualization: {len(viz['nodes'])} nodes, {len(viz['links'])} links -> {viz_file}")

    # Show most prolific authors
    print(f"\n{'='*60}")
    print("MOST PROLIFIC AUTHORS (by paper count)")
    print(f"{'='*60}")
    authors = sorted(graph.filter_by_kind(NodeKind.AUTHOR),
                     key=lambda n: len(n.payload.papers), reverse=True)
    for a in authors[:20]:
        print(f"  {a.label:45s}  ({len(a.payload.papers)} papers)")


if __name__ == "__main__":
    main()
