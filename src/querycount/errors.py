"""Exception hierarchy shared by the plan, builder, oracle and aggregator."""
from __future__ import annotations

from typing import Optional


class QueryCountError(Exception):
    """Base class for all querycount failures."""


class StructuralIntegrityError(QueryCountError):
    """The plan is malformed: bad index, bad vertex-count delta, cycle, ..."""

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[int] = None,
        edge: Optional[int] = None,
    ) -> None:
        self.stage = stage
        self.edge = edge
        where = []
        if stage is not None:
            where.append(f"stage {stage}")
        if edge is not None:
            where.append(f"plan edge {edge}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)


class InputFormatError(QueryCountError):
    """A plan or count file could not be parsed."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        record: Optional[int] = None,
        line: Optional[int] = None,
    ) -> None:
        self.source = source
        self.record = record
        self.line = line
        where = []
        if source is not None:
            where.append(str(source))
        if line is not None:
            where.append(f"line {line}")
        if record is not None:
            where.append(f"record {record}")
        if where:
            message = f"{', '.join(where)}: {message}"
        super().__init__(message)


class OracleBudgetExceeded(QueryCountError):
    """The isomorphism search examined more candidate pairings than allowed."""

    def __init__(self, budget: int) -> None:
        self.budget = budget
        super().__init__(
            f"isomorphism search exceeded its budget of {budget} steps"
        )

    def __reduce__(self):
        return (type(self), (self.budget,))
