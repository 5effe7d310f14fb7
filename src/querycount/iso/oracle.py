"""Exact isomorphism test for equal-size labeled directed multigraphs.

Two graphs are isomorphic when some bijection of their vertices
preserves vertex labels and maps every directed edge (with its
multiplicity and edge label) onto a directed edge of the other graph.

Two engines are provided:

  "backtrack" -- color refinement on the disjoint union restricts each
                 vertex to candidates of its own color, then a
                 backtracking assignment checks edges against every
                 already-assigned vertex.
  "vf2"       -- networkx's MultiDiGraphMatcher.

Both count candidate pairings as steps and raise OracleBudgetExceeded
once a configured budget is spent; they never guess.
"""
from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional

import networkx.algorithms.isomorphism as iso

from querycount.errors import OracleBudgetExceeded
from querycount.graph.labeled import DEFAULT_LABEL, LabeledGraph
from querycount.iso.refinement import Adjacency, color_classes, directed_adjacency, joint_coloring


Mapping = Dict[int, int]


def _search_order(
    out_adj: Adjacency,
    in_adj: Adjacency,
    colors: tuple[int, ...],
) -> List[int]:
    """
    Vertex order for the search: start in the rarest color class, then
    repeatedly take the vertex with most edges into the ordered prefix
    (ties: rarer color, higher degree, lower index).
    """
    n = len(colors)
    class_size = Counter(colors)
    degree = [len(out_adj[u]) + len(in_adj[u]) for u in range(n)]
    links = [0] * n
    remaining = set(range(n))
    order: List[int] = []
    while remaining:
        u = min(remaining, key=lambda x: (-links[x], class_size[colors[x]], -degree[x], x))
        remaining.discard(u)
        order.append(u)
        for w, _ in out_adj[u]:
            links[w] += 1
        for w, _ in in_adj[u]:
            links[w] += 1
    return order


def _labels_edge_match(e1: dict, e2: dict) -> bool:
    """Parallel-edge bundles match when their label multisets agree."""
    return sorted(d.get("label", DEFAULT_LABEL) for d in e1.values()) == sorted(
        d.get("label", DEFAULT_LABEL) for d in e2.values()
    )


class _BudgetedMatcher(iso.MultiDiGraphMatcher):
    """VF2 matcher that counts feasibility checks against a budget."""

    def __init__(self, G1, G2, max_steps: Optional[int]) -> None:
        super().__init__(
            G1,
            G2,
            node_match=iso.categorical_node_match("label", DEFAULT_LABEL),
            edge_match=_labels_edge_match,
        )
        self.max_steps = max_steps
        self.steps = 0

    def syntactic_feasibility(self, G1_node, G2_node):
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise OracleBudgetExceeded(self.max_steps)
        return super().syntactic_feasibility(G1_node, G2_node)


class IsomorphismOracle:
    """
    Reusable isomorphism test with a per-comparison step budget.

    The counters (calls, fast_rejects, searches, steps) accumulate over
    the oracle's lifetime and are only diagnostics.
    """

    def __init__(self, *, max_steps: Optional[int] = None, method: str = "backtrack") -> None:
        if method not in ("backtrack", "vf2"):
            raise ValueError(f"unknown isomorphism method {method!r}")
        if max_steps is not None and max_steps < 1:
            raise ValueError(f"max_steps must be positive; got {max_steps}")
        self.max_steps = max_steps
        self.method = method
        self.calls = 0
        self.fast_rejects = 0
        self.searches = 0
        self.steps = 0

    def __call__(self, g1: LabeledGraph, g2: LabeledGraph) -> bool:
        return self.find_mapping(g1, g2) is not None

    def find_mapping(self, g1: LabeledGraph, g2: LabeledGraph) -> Optional[Mapping]:
        """Return a vertex mapping g1 -> g2, or None if not isomorphic."""
        self.calls += 1
        if g1.num_vertices != g2.num_vertices or g1.num_edges != g2.num_edges:
            self.fast_rejects += 1
            return None
        if Counter(g1.labels) != Counter(g2.labels):
            self.fast_rejects += 1
            return None
        self.searches += 1
        if self.method == "vf2":
            return self._vf2(g1, g2)
        return self._backtrack(g1, g2)

    def _vf2(self, g1: LabeledGraph, g2: LabeledGraph) -> Optional[Mapping]:
        matcher = _BudgetedMatcher(g1.to_nx(), g2.to_nx(), self.max_steps)
        try:
            mapping = next(matcher.isomorphisms_iter(), None)
        finally:
            self.steps += matcher.steps
        return dict(mapping) if mapping is not None else None

    def _backtrack(self, g1: LabeledGraph, g2: LabeledGraph) -> Optional[Mapping]:
        n = g1.num_vertices
        if n == 0:
            return {}

        colors1, colors2 = joint_coloring(g1, g2)
        if Counter(colors1) != Counter(colors2):
            return None

        table1 = g1.edge_table()
        table2 = g2.edge_table()
        out1, in1 = directed_adjacency(g1)
        order = _search_order(out1, in1, colors1)
        candidates = color_classes(colors2)

        mapping = [-1] * n
        used = [False] * n
        steps = 0
        budget = self.max_steps

        def consistent(u: int, v: int, depth: int) -> bool:
            if table1.get((u, u), ()) != table2.get((v, v), ()):
                return False
            for w in order[:depth]:
                x = mapping[w]
                if table1.get((u, w), ()) != table2.get((v, x), ()):
                    return False
                if table1.get((w, u), ()) != table2.get((x, v), ()):
                    return False
            return True

        # one candidate iterator per assigned depth; mapping[order[d]] holds
        # the candidate currently tried at depth d
        stack = [iter(candidates[colors1[order[0]]])]
        try:
            while stack:
                depth = len(stack) - 1
                u = order[depth]
                if mapping[u] != -1:
                    used[mapping[u]] = False
                    mapping[u] = -1
                for v in stack[-1]:
                    if used[v]:
                        continue
                    steps += 1
                    if budget is not None and steps > budget:
                        raise OracleBudgetExceeded(budget)
                    if consistent(u, v, depth):
                        mapping[u] = v
                        used[v] = True
                        break
                else:
                    stack.pop()
                    continue
                if depth + 1 == n:
                    return {w: mapping[w] for w in range(n)}
                stack.append(iter(candidates[colors1[order[depth + 1]]]))
        finally:
            self.steps += steps
        return None


def is_isomorphic(
    g1: LabeledGraph,
    g2: LabeledGraph,
    *,
    max_steps: Optional[int] = None,
    method: str = "backtrack",
) -> bool:
    """True iff g1 and g2 are isomorphic as labeled directed multigraphs."""
    return IsomorphismOracle(max_steps=max_steps, method=method)(g1, g2)


def find_isomorphism(
    g1: LabeledGraph,
    g2: LabeledGraph,
    *,
    max_steps: Optional[int] = None,
    method: str = "backtrack",
) -> Optional[Mapping]:
    """Return a label- and edge-preserving mapping g1 -> g2, or None."""
    return IsomorphismOracle(max_steps=max_steps, method=method).find_mapping(g1, g2)
