"""Extension plan: a rooted DAG of stages, each a graph shape.

Stage i owns the contiguous slice
    edges[node.edge_start : node.edge_start + node.edge_count]
of the shared edge table; those are its out-edges.  Plan edges refer to
stages by index only, so a Plan can be copied, pickled or shared freely.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from querycount.errors import StructuralIntegrityError


ROOT_VERTEX_COUNT = 2


@dataclass(frozen=True)
class PlanNode:
    index: int
    edge_start: int
    edge_count: int
    vertex_count: int
    is_query: bool = False

    @property
    def edge_range(self) -> range:
        return range(self.edge_start, self.edge_start + self.edge_count)


@dataclass(frozen=True)
class PlanOperation:
    """
    One directed edge added on a plan edge.

    a, b are vertex indices in the destination stage's numbering;
    forward=True adds a->b, forward=False adds b->a.
    """

    a: int
    b: int
    forward: bool = True

    @property
    def tail(self) -> int:
        return self.a if self.forward else self.b

    @property
    def head(self) -> int:
        return self.b if self.forward else self.a


@dataclass(frozen=True)
class PlanEdge:
    index: int
    source: int
    destination: int
    operations: Tuple[PlanOperation, ...] = ()


@dataclass(frozen=True)
class Plan:
    root: int
    nodes: Tuple[PlanNode, ...]
    edges: Tuple[PlanEdge, ...]

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, stage: int) -> PlanNode:
        if not 0 <= stage < len(self.nodes):
            raise StructuralIntegrityError(
                f"stage index out of range [0, {len(self.nodes)})", stage=stage
            )
        return self.nodes[stage]

    def edge(self, index: int) -> PlanEdge:
        if not 0 <= index < len(self.edges):
            raise StructuralIntegrityError(
                f"edge index out of range [0, {len(self.edges)})", edge=index
            )
        return self.edges[index]

    def out_edges(self, stage: int) -> List[PlanEdge]:
        """Plan edges leaving *stage*, in edge-table order."""
        return [self.edge(i) for i in self.node(stage).edge_range]

    def in_edges(self, stage: int) -> List[PlanEdge]:
        """Plan edges entering *stage*, in edge-table order."""
        self.node(stage)
        return [e for e in self.edges if e.destination == stage]

    def vertex_counts(self) -> List[int]:
        return [n.vertex_count for n in self.nodes]

    def query_stages(self) -> List[int]:
        return [n.index for n in self.nodes if n.is_query]

    def extensions(self, edge: PlanEdge) -> List[PlanOperation]:
        """Operations on *edge* that touch the vertex it adds."""
        new_vertex = self.node(edge.source).vertex_count
        return [op for op in edge.operations if max(op.a, op.b) == new_vertex]

    def intersections(self, edge: PlanEdge) -> List[PlanOperation]:
        """Operations on *edge* between vertices its source already has."""
        new_vertex = self.node(edge.source).vertex_count
        return [op for op in edge.operations if max(op.a, op.b) < new_vertex]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, *, require_tree: bool = False) -> None:
        """
        Check every structural invariant the graph builder relies on.

        Raises StructuralIntegrityError on the first violation found.
        With require_tree=True a stage with more than one incoming
        plan edge is also rejected.
        """
        n_nodes = len(self.nodes)
        if n_nodes == 0:
            raise StructuralIntegrityError("plan has no stages")
        root = self.node(self.root)
        if root.vertex_count != ROOT_VERTEX_COUNT:
            raise StructuralIntegrityError(
                f"root stage must have {ROOT_VERTEX_COUNT} vertices, "
                f"found {root.vertex_count}",
                stage=self.root,
            )

        for i, node in enumerate(self.nodes):
            if node.index != i:
                raise StructuralIntegrityError(
                    f"stage stored at position {i} claims index {node.index}",
                    stage=i,
                )
            if node.edge_start < 0 or node.edge_count < 0:
                raise StructuralIntegrityError("negative edge range", stage=i)
            if node.edge_count and node.edge_start + node.edge_count > len(self.edges):
                raise StructuralIntegrityError(
                    f"edge range [{node.edge_start}, "
                    f"{node.edge_start + node.edge_count}) exceeds "
                    f"{len(self.edges)} plan edges",
                    stage=i,
                )
            for e_idx in node.edge_range:
                if self.edges[e_idx].source != i:
                    raise StructuralIntegrityError(
                        f"edge in range of stage {i} has source "
                        f"{self.edges[e_idx].source}",
                        stage=i,
                        edge=e_idx,
                    )

        indegree = [0] * n_nodes
        for j, edge in enumerate(self.edges):
            if edge.index != j:
                raise StructuralIntegrityError(
                    f"edge stored at position {j} claims index {edge.index}",
                    edge=j,
                )
            self._check_edge(edge)
            indegree[edge.destination] += 1

        if indegree[self.root]:
            raise StructuralIntegrityError("root stage has incoming edges", stage=self.root)
        if require_tree:
            for stage, d in enumerate(indegree):
                if d > 1:
                    raise StructuralIntegrityError(
                        f"stage has {d} incoming plan edges; plan is not a tree",
                        stage=stage,
                    )

        order = self.topological_order()
        if len(order) != n_nodes:
            missing = sorted(set(range(n_nodes)) - set(order))
            raise StructuralIntegrityError(
                f"{len(missing)} stage(s) unreachable from the root",
                stage=missing[0],
            )

    def _check_edge(self, edge: PlanEdge) -> None:
        n_nodes = len(self.nodes)
        for end in (edge.source, edge.destination):
            if not 0 <= end < n_nodes:
                raise StructuralIntegrityError(
                    f"edge endpoint {end} outside [0, {n_nodes})", edge=edge.index
                )
        src = self.nodes[edge.source]
        dst = self.nodes[edge.destination]
        if edge.index not in src.edge_range:
            raise StructuralIntegrityError(
                "edge lies outside its source stage's edge range",
                stage=src.index,
                edge=edge.index,
            )
        delta = dst.vertex_count - src.vertex_count
        if delta not in (0, 1):
            raise StructuralIntegrityError(
                f"vertex count goes from {src.vertex_count} to "
                f"{dst.vertex_count}; a plan edge adds 0 or 1 vertex",
                edge=edge.index,
            )
        for op in edge.operations:
            for v in (op.a, op.b):
                if not 0 <= v < dst.vertex_count:
                    raise StructuralIntegrityError(
                        f"operation vertex {v} outside the destination's "
                        f"{dst.vertex_count} vertices",
                        edge=edge.index,
                    )

    def topological_order(self) -> List[int]:
        """
        Kahn order of the stages reachable from the root.

        Raises StructuralIntegrityError if a reachable cycle exists.
        """
        reachable: Dict[int, int] = {}
        seen = {self.root}
        q = deque([self.root])
        while q:
            cur = q.popleft()
            for edge in self.out_edges(cur):
                reachable[edge.destination] = reachable.get(edge.destination, 0) + 1
                if edge.destination not in seen:
                    seen.add(edge.destination)
                    q.append(edge.destination)

        order: List[int] = []
        ready = deque([self.root])
        while ready:
            cur = ready.popleft()
            order.append(cur)
            for edge in self.out_edges(cur):
                reachable[edge.destination] -= 1
                if reachable[edge.destination] == 0:
                    ready.append(edge.destination)

        stuck: Optional[int] = next(
            (s for s, d in reachable.items() if d > 0), None
        )
        if stuck is not None:
            raise StructuralIntegrityError("plan contains a cycle", stage=stuck)
        return order
