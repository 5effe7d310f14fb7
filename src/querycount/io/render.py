"""Diagnostic text / JSON rendering of aggregated classes."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Iterable, List

from querycount.graph.labeled import LabeledGraph

if TYPE_CHECKING:
    from querycount.aggregate.canonical import CanonicalEntry


def format_graph(g: LabeledGraph) -> str:
    """
    '<n> <m>' line, the vertex labels line, then one 'src dst' line per edge.
    """
    lines = [f"{g.num_vertices} {g.num_edges}", " ".join(str(x) for x in g.labels)]
    lines.extend(f"{u} {v}" for u, v in g.edges)
    return "\n".join(lines)


def format_entry(entry: CanonicalEntry) -> str:
    return f"Count:{entry.total}\n{format_graph(entry.representative)}\n"


def render_text(entries: Iterable[CanonicalEntry]) -> str:
    return "\n".join(format_entry(e) for e in entries)


def entry_to_dict(entry: CanonicalEntry) -> dict:
    g = entry.representative
    return {
        "count": entry.total,
        "records": entry.records,
        "stages": sorted(entry.stages),
        "labels": list(g.labels),
        "edges": [list(e) for e in g.edges],
    }


def render_json(entries: Iterable[CanonicalEntry]) -> str:
    out: List[dict] = [entry_to_dict(e) for e in entries]
    return json.dumps(out, indent=2)
