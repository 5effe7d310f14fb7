"""Reconstruct the unlabeled graph shape of every plan stage.

The root stage is the single directed edge 0 -> 1.  Walking the plan
breadth-first, each plan edge copies its source stage's graph, appends a
vertex when the destination has one more vertex, and adds one directed
edge per operation.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import List, Optional

from querycount.errors import StructuralIntegrityError
from querycount.graph.labeled import LabeledGraph
from querycount.plan.model import Plan, PlanEdge

log = logging.getLogger(__name__)


def root_graph() -> LabeledGraph:
    """Seed pattern: two unlabeled vertices and the edge 0 -> 1."""
    return LabeledGraph.unlabeled(2, [(0, 1)])


def extend_graph(parent: LabeledGraph, plan: Plan, edge: PlanEdge) -> LabeledGraph:
    """Apply one plan edge to a copy of its source stage's graph."""
    src = plan.node(edge.source)
    dst = plan.node(edge.destination)
    delta = dst.vertex_count - src.vertex_count
    if delta not in (0, 1):
        raise StructuralIntegrityError(
            f"vertex count goes from {src.vertex_count} to {dst.vertex_count}",
            edge=edge.index,
        )
    if parent.num_vertices != src.vertex_count:
        raise StructuralIntegrityError(
            f"source graph has {parent.num_vertices} vertices, "
            f"stage records {src.vertex_count}",
            stage=src.index,
        )

    child = parent.copy()
    if delta == 1:
        child.add_vertex()
    for op in edge.operations:
        try:
            child.add_edge(op.tail, op.head)
        except IndexError as exc:
            raise StructuralIntegrityError(str(exc), edge=edge.index) from None
    return child


def build_stage_graphs(plan: Plan, *, merge_policy: str = "agree") -> List[LabeledGraph]:
    """
    Return one template LabeledGraph per stage, indexed by stage.

    merge_policy decides what happens when a stage is reached through
    more than one plan edge:
      "agree" -- every reconstruction must be identical, else
                 StructuralIntegrityError;
      "tree"  -- such stages are rejected up front;
      "last"  -- each visit overwrites the slot and the stage is
                 re-expanded; the last copy in BFS order wins.
    """
    if merge_policy not in ("agree", "tree", "last"):
        raise ValueError(f"unknown merge policy {merge_policy!r}")
    plan.validate(require_tree=(merge_policy == "tree"))

    graphs: List[Optional[LabeledGraph]] = [None] * len(plan)
    graphs[plan.root] = root_graph()

    q = deque([plan.root])
    while q:
        cur = q.popleft()
        for edge in plan.out_edges(cur):
            child = extend_graph(graphs[cur], plan, edge)  # type: ignore[arg-type]
            previous = graphs[edge.destination]

            if previous is None:
                graphs[edge.destination] = child
                q.append(edge.destination)
                continue

            if merge_policy == "last":
                if not previous.same_structure(child):
                    log.warning(
                        "stage %d rebuilt differently via plan edge %d; "
                        "keeping the later copy",
                        edge.destination, edge.index,
                    )
                graphs[edge.destination] = child
                q.append(edge.destination)
            elif not previous.same_structure(child):
                raise StructuralIntegrityError(
                    "incoming plan edges reconstruct conflicting graphs",
                    stage=edge.destination,
                    edge=edge.index,
                )

    missing = [i for i, g in enumerate(graphs) if g is None]
    if missing:
        raise StructuralIntegrityError(
            f"{len(missing)} stage(s) never reached", stage=missing[0]
        )

    for stage, g in enumerate(graphs):
        if g.num_vertices != plan.nodes[stage].vertex_count:  # type: ignore[union-attr]
            raise StructuralIntegrityError(
                f"built graph has {g.num_vertices} vertices, "  # type: ignore[union-attr]
                f"stage records {plan.nodes[stage].vertex_count}",
                stage=stage,
            )

    log.info("built %d stage graphs from root stage %d", len(graphs), plan.root)
    return graphs  # type: ignore[return-value]
