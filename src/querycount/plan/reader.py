from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

from querycount.errors import InputFormatError
from querycount.io.tokens import TokenReader
from querycount.plan.model import Plan, PlanEdge, PlanNode, PlanOperation

log = logging.getLogger(__name__)

RESERVED_HEADER_INTS = 3


def _flag(reader: TokenReader, what: str) -> bool:
    v = reader.next_int(what)
    if v not in (0, 1):
        raise InputFormatError(
            f"{what} must be 0 or 1, found {v}", source=reader.source, line=reader.line
        )
    return v == 1


def _count(reader: TokenReader, what: str) -> int:
    v = reader.next_int(what)
    if v < 0:
        raise InputFormatError(
            f"{what} must be non-negative, found {v}", source=reader.source, line=reader.line
        )
    return v


def parse_plan(
    stream: Union[TextIO, Iterable[str]],
    *,
    source: Optional[str] = None,
    validate: bool = True,
    require_tree: bool = False,
) -> Plan:
    """
    Parse a plan from whitespace-separated integer tokens.

    Layout:
      3 reserved ints, root index, stage count S,
      S x (edge_start, edge_count, vertex_count, is_query),
      edge count E,
      E x (src, dst, K, K x (a, b, forward)).

    Tokens may be split across lines arbitrarily.  Non-integer or
    missing tokens raise InputFormatError; structural problems raise
    StructuralIntegrityError (unless validate=False).
    """
    reader = TokenReader(stream, source=source)
    for i in range(RESERVED_HEADER_INTS):
        reader.next_int(f"reserved header value {i}")
    root = reader.next_int("root stage index")

    n_nodes = _count(reader, "stage count")
    nodes: List[PlanNode] = []
    for idx in range(n_nodes):
        start = _count(reader, f"edge start of stage {idx}")
        length = _count(reader, f"edge count of stage {idx}")
        nverts = _count(reader, f"vertex count of stage {idx}")
        is_query = _flag(reader, f"query flag of stage {idx}")
        nodes.append(PlanNode(idx, start, length, nverts, is_query))

    n_edges = _count(reader, "plan edge count")
    edges: List[PlanEdge] = []
    for idx in range(n_edges):
        src = reader.next_int(f"source of plan edge {idx}")
        dst = reader.next_int(f"destination of plan edge {idx}")
        k = _count(reader, f"operation count of plan edge {idx}")
        ops = []
        for j in range(k):
            a = reader.next_int(f"operation {j} of plan edge {idx}")
            b = reader.next_int(f"operation {j} of plan edge {idx}")
            fwd = _flag(reader, f"direction of operation {j} of plan edge {idx}")
            ops.append(PlanOperation(a, b, fwd))
        edges.append(PlanEdge(idx, src, dst, tuple(ops)))

    trailing = reader.next_int_or_none("trailing data")
    if trailing is not None:
        log.warning("%s: ignoring data after the last plan edge (line %s)",
                    source or "<plan>", reader.line)

    plan = Plan(root=root, nodes=tuple(nodes), edges=tuple(edges))
    if validate:
        plan.validate(require_tree=require_tree)
    log.info("loaded plan %s: %d stages, %d edges, %d query stages",
             source or "<plan>", len(nodes), len(edges), len(plan.query_stages()))
    return plan


def read_plan(path: Union[str, Path], **kwargs) -> Plan:
    """Load and validate a plan file."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        return parse_plan(fh, source=str(path), **kwargs)
