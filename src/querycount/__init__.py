"""
querycount: rebuild plan-stage graph shapes and merge labeled subgraph
counts whose graphs are isomorphic.
"""

from .errors import (
    QueryCountError,
    StructuralIntegrityError,
    InputFormatError,
    OracleBudgetExceeded,
)
from .config import Settings

# Plan
from .plan.model import Plan, PlanNode, PlanEdge, PlanOperation
from .plan.reader import parse_plan, read_plan

# Graphs
from .graph.labeled import LabeledGraph, DEFAULT_LABEL
from .graph.builder import build_stage_graphs

# Isomorphism
from .iso.oracle import IsomorphismOracle, is_isomorphic, find_isomorphism

# Aggregation
from .aggregate.records import RawRecord, parse_counts, read_counts
from .aggregate.canonical import (
    CanonicalEntry,
    CanonicalTable,
    aggregate_records,
    structural_digest,
)
from .aggregate.parallel import aggregate, aggregate_parallel

__version__ = "0.1.0"

__all__ = [
    # Errors
    "QueryCountError",
    "StructuralIntegrityError",
    "InputFormatError",
    "OracleBudgetExceeded",
    # Config
    "Settings",
    # Plan
    "Plan",
    "PlanNode",
    "PlanEdge",
    "PlanOperation",
    "parse_plan",
    "read_plan",
    # Graphs
    "LabeledGraph",
    "DEFAULT_LABEL",
    "build_stage_graphs",
    # Isomorphism
    "IsomorphismOracle",
    "is_isomorphic",
    "find_isomorphism",
    # Aggregation
    "RawRecord",
    "parse_counts",
    "read_counts",
    "CanonicalEntry",
    "CanonicalTable",
    "aggregate_records",
    "structural_digest",
    "aggregate",
    "aggregate_parallel",
]
