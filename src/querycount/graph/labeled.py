from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import networkx as nx


DEFAULT_LABEL = 0

Edge = Tuple[int, int]


class LabeledGraph:
    """
    Directed multigraph on vertices 0..n-1 with integer vertex labels.

    Edges keep insertion order.  Each edge also carries an integer label
    (edge_labels[i] belongs to edges[i]); nothing in the plan or count
    formats sets it, so it stays DEFAULT_LABEL, but the oracle and the
    digest both respect it.
    """

    __slots__ = ("labels", "edges", "edge_labels")

    def __init__(
        self,
        labels: Optional[Iterable[int]] = None,
        edges: Optional[Iterable[Edge]] = None,
        edge_labels: Optional[Iterable[int]] = None,
    ) -> None:
        self.labels: List[int] = list(labels) if labels is not None else []
        self.edges: List[Edge] = []
        self.edge_labels: List[int] = []
        edges = list(edges) if edges is not None else []
        elabels = list(edge_labels) if edge_labels is not None else [DEFAULT_LABEL] * len(edges)
        if len(elabels) != len(edges):
            raise ValueError(
                f"{len(elabels)} edge labels given for {len(edges)} edges"
            )
        for (u, v), lab in zip(edges, elabels):
            self.add_edge(u, v, lab)

    @classmethod
    def unlabeled(cls, n: int, edges: Iterable[Edge] = ()) -> "LabeledGraph":
        return cls([DEFAULT_LABEL] * n, edges)

    @property
    def num_vertices(self) -> int:
        return len(self.labels)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    def add_vertex(self, label: int = DEFAULT_LABEL) -> int:
        """Append a vertex and return its index."""
        self.labels.append(label)
        return len(self.labels) - 1

    def add_edge(self, u: int, v: int, label: int = DEFAULT_LABEL) -> None:
        n = len(self.labels)
        if not (0 <= u < n and 0 <= v < n):
            raise IndexError(f"edge ({u}, {v}) outside vertex range [0, {n})")
        self.edges.append((u, v))
        self.edge_labels.append(label)

    def copy(self) -> "LabeledGraph":
        g = LabeledGraph()
        g.labels = list(self.labels)
        g.edges = list(self.edges)
        g.edge_labels = list(self.edge_labels)
        return g

    def with_labels(self, labels: Sequence[int]) -> "LabeledGraph":
        """Return a copy whose vertex labels are *labels*, in index order."""
        if len(labels) != len(self.labels):
            raise ValueError(
                f"{len(labels)} labels given for {len(self.labels)} vertices"
            )
        g = self.copy()
        g.labels = list(labels)
        return g

    def edge_multiset(self) -> Counter:
        """(tail, head, edge_label) -> multiplicity."""
        return Counter(
            (u, v, lab) for (u, v), lab in zip(self.edges, self.edge_labels)
        )

    def edge_table(self) -> Dict[Edge, Tuple[int, ...]]:
        """(tail, head) -> sorted tuple of the labels of its parallel edges."""
        table: Dict[Edge, List[int]] = {}
        for e, lab in zip(self.edges, self.edge_labels):
            table.setdefault(e, []).append(lab)
        return {e: tuple(sorted(labs)) for e, labs in table.items()}

    def out_degrees(self) -> List[int]:
        deg = [0] * len(self.labels)
        for u, _ in self.edges:
            deg[u] += 1
        return deg

    def in_degrees(self) -> List[int]:
        deg = [0] * len(self.labels)
        for _, v in self.edges:
            deg[v] += 1
        return deg

    def same_structure(self, other: "LabeledGraph") -> bool:
        """Identical vertex labels and identical edge multiset (no relabeling)."""
        return (
            self.labels == other.labels
            and self.edge_multiset() == other.edge_multiset()
        )

    def to_nx(self) -> nx.MultiDiGraph:
        """Export as a networkx MultiDiGraph with 'label' node/edge attributes."""
        G = nx.MultiDiGraph()
        for v, lab in enumerate(self.labels):
            G.add_node(v, label=lab)
        for (u, v), lab in zip(self.edges, self.edge_labels):
            G.add_edge(u, v, label=lab)
        return G

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabeledGraph):
            return NotImplemented
        return (
            self.labels == other.labels
            and self.edges == other.edges
            and self.edge_labels == other.edge_labels
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"LabeledGraph(labels={self.labels!r}, edges={self.edges!r})"
