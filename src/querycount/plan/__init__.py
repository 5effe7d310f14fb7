from .model import Plan, PlanNode, PlanEdge, PlanOperation, ROOT_VERTEX_COUNT
from .reader import parse_plan, read_plan

__all__ = [
    "Plan",
    "PlanNode",
    "PlanEdge",
    "PlanOperation",
    "ROOT_VERTEX_COUNT",
    "parse_plan",
    "read_plan",
]
