"""Shared plan fixtures for the test suite."""
from querycount.plan.model import Plan, PlanEdge, PlanNode, PlanOperation

# root 0 (K2) -> 1 (path 0->1->2) -> 3 (directed triangle)
#        \-> 2 (path 2->0->1)
PLAN_TEXT = """\
0 0 0
0
4
0 2 2 0
2 1 3 1
3 0 3 1
3 0 3 1
3
0 1 1
1 2 1
0 2 1
2 0 1
1 3 1
2 0 1
"""


def make_plan(nodes, edges, root=0):
    """nodes: (edge_start, edge_count, vertex_count); edges: (src, dst, ops)."""
    return Plan(
        root=root,
        nodes=tuple(PlanNode(i, *n) for i, n in enumerate(nodes)),
        edges=tuple(PlanEdge(j, *e) for j, e in enumerate(edges)),
    )


def diamond(last_op):
    """0 -> 1 -> 3 and 0 -> 2 -> 3; stages 1 and 2 are both the path 0->1->2."""
    return make_plan(
        [(0, 2, 2), (2, 1, 3), (3, 1, 3), (4, 0, 3)],
        [
            (0, 1, (PlanOperation(1, 2),)),
            (0, 2, (PlanOperation(1, 2),)),
            (1, 3, (PlanOperation(2, 0),)),
            (2, 3, (last_op,)),
        ],
    )
