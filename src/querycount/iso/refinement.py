"""WL-1 color refinement (equitable partition) for labeled directed multigraphs."""
from __future__ import annotations

from collections import Counter
from typing import Dict, List, Sequence, Tuple

from querycount.graph.labeled import LabeledGraph

# adj[u] = list of (neighbor, edge_label), one entry per parallel edge
Adjacency = List[List[Tuple[int, int]]]


def directed_adjacency(g: LabeledGraph, offset: int = 0) -> Tuple[Adjacency, Adjacency]:
    """Return (out_adj, in_adj) with vertex ids shifted by *offset*."""
    n = g.num_vertices
    out_adj: Adjacency = [[] for _ in range(n)]
    in_adj: Adjacency = [[] for _ in range(n)]
    for (u, v), lab in zip(g.edges, g.edge_labels):
        out_adj[u].append((v + offset, lab))
        in_adj[v].append((u + offset, lab))
    return out_adj, in_adj


def _compress(sigs: Sequence[object]) -> Tuple[int, ...]:
    uniq = {sig: i for i, sig in enumerate(sorted(set(sigs)))}  # type: ignore[type-var]
    return tuple(uniq[s] for s in sigs)


def _refine_colors(
    out_adj: Adjacency,
    in_adj: Adjacency,
    colors: Tuple[int, ...],
) -> Tuple[int, ...]:
    """One round: color := (color, out-neighbor color counts, in-neighbor color counts)."""
    sigs = []
    for u in range(len(colors)):
        out_cnt: Counter = Counter((colors[v], lab) for v, lab in out_adj[u])
        in_cnt: Counter = Counter((colors[v], lab) for v, lab in in_adj[u])
        sigs.append((colors[u], tuple(sorted(out_cnt.items())), tuple(sorted(in_cnt.items()))))
    return _compress(sigs)


def equitable_partition(
    out_adj: Adjacency,
    in_adj: Adjacency,
    labels: Sequence[int],
) -> Tuple[int, ...]:
    """
    Iterate refinement to a fixed point.

    The initial coloring is (vertex label, out-degree, in-degree).  Refinement
    only ever splits classes, so it stops once the class count is stable.
    """
    colors = _compress([
        (labels[u], len(out_adj[u]), len(in_adj[u])) for u in range(len(labels))
    ])
    n_classes = len(set(colors))
    while True:
        newc = _refine_colors(out_adj, in_adj, colors)
        n_new = len(set(newc))
        if n_new == n_classes:
            return newc
        colors, n_classes = newc, n_new


def joint_coloring(
    g1: LabeledGraph, g2: LabeledGraph
) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """
    Refine the disjoint union of g1 and g2 so that color ids are comparable
    across the two graphs.  Returns (colors1, colors2).
    """
    n1 = g1.num_vertices
    out1, in1 = directed_adjacency(g1)
    out2, in2 = directed_adjacency(g2, offset=n1)
    colors = equitable_partition(out1 + out2, in1 + in2, g1.labels + g2.labels)
    return colors[:n1], colors[n1:]


def color_classes(colors: Sequence[int]) -> Dict[int, List[int]]:
    """color -> vertices with that color, in vertex order."""
    groups: Dict[int, List[int]] = {}
    for v, c in enumerate(colors):
        groups.setdefault(c, []).append(v)
    return groups
