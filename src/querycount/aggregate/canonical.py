"""Group labeled graphs into isomorphism classes and sum their counts.

The table is two-level: a coarse structural digest selects a bucket,
and inside the bucket the isomorphism oracle decides equality.  Digest
collisions between non-isomorphic graphs only cost extra oracle calls.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from querycount.errors import InputFormatError
from querycount.graph.labeled import LabeledGraph
from querycount.iso.oracle import IsomorphismOracle
from querycount.aggregate.records import RawRecord, collapse_duplicates

log = logging.getLogger(__name__)


def structural_digest(g: LabeledGraph) -> int:
    """
    Isomorphism-invariant, deliberately coarse hash of a labeled graph.

    Folds the XOR of edge labels and the XOR of both endpoint labels of
    every edge (each seeded at 1) together with vertex and edge counts.
    """
    edge_xor = 1
    vertex_xor = 1
    for (u, v), lab in zip(g.edges, g.edge_labels):
        edge_xor ^= lab
        vertex_xor ^= g.labels[u] ^ g.labels[v]
    return hash((edge_xor + vertex_xor, g.num_vertices, g.num_edges))


@dataclass
class CanonicalEntry:
    """One isomorphism class: a representative graph and its running total."""

    representative: LabeledGraph
    total: int = 0
    records: int = 0
    stages: Set[int] = field(default_factory=set)

    def absorb(self, count: int, stage: Optional[int] = None) -> None:
        self.total += count
        self.records += 1
        if stage is not None:
            self.stages.add(stage)


def instantiate(templates: Sequence[LabeledGraph], record: RawRecord) -> LabeledGraph:
    """Apply a record's labels to its stage's template graph."""
    if not 0 <= record.stage < len(templates):
        raise InputFormatError(
            f"unknown stage id {record.stage} (plan has {len(templates)} stages)",
            source=record.source, record=record.record, line=record.line,
        )
    template = templates[record.stage]
    if len(record.labels) != template.num_vertices:
        raise InputFormatError(
            f"stage {record.stage} has {template.num_vertices} vertices but "
            f"{len(record.labels)} labels were given",
            source=record.source, record=record.record, line=record.line,
        )
    return template.with_labels(record.labels)


class CanonicalTable:
    """
    digest -> list of CanonicalEntry, with oracle-based equality.

    add() is the single mutator of running totals; the sum of all totals
    always equals the sum of the counts passed to add().
    """

    def __init__(
        self,
        *,
        max_steps: Optional[int] = None,
        method: str = "backtrack",
        oracle: Optional[IsomorphismOracle] = None,
    ) -> None:
        self.oracle = oracle or IsomorphismOracle(max_steps=max_steps, method=method)
        self._buckets: Dict[int, List[CanonicalEntry]] = {}
        self.input_total = 0
        self.input_records = 0

    def add(
        self,
        graph: LabeledGraph,
        count: int,
        *,
        stage: Optional[int] = None,
        digest: Optional[int] = None,
    ) -> CanonicalEntry:
        """Add *count* to the class of *graph*, creating the class if new."""
        if digest is None:
            digest = structural_digest(graph)
        bucket = self._buckets.setdefault(digest, [])
        self.input_total += count
        self.input_records += 1
        for entry in bucket:
            if self.oracle(entry.representative, graph):
                entry.absorb(count, stage)
                return entry
        entry = CanonicalEntry(graph)
        entry.absorb(count, stage)
        bucket.append(entry)
        return entry

    def add_record(self, templates: Sequence[LabeledGraph], record: RawRecord) -> CanonicalEntry:
        return self.add(instantiate(templates, record), record.count, stage=record.stage)

    def extend_entries(self, digest: int, entries: Iterable[CanonicalEntry]) -> None:
        """
        Adopt entries built elsewhere for *digest* without oracle checks.

        Callers guarantee none of them is isomorphic to an entry already
        held; this holds when digests were partitioned disjointly.
        """
        bucket = self._buckets.setdefault(digest, [])
        for entry in entries:
            bucket.append(entry)
            self.input_total += entry.total
            self.input_records += entry.records

    def buckets(self) -> Iterator[tuple[int, List[CanonicalEntry]]]:
        return iter(self._buckets.items())

    def __iter__(self) -> Iterator[CanonicalEntry]:
        for bucket in self._buckets.values():
            yield from bucket

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets.values())

    @property
    def total(self) -> int:
        return sum(e.total for e in self)

    def entries(self, *, sort: bool = False) -> List[CanonicalEntry]:
        """All entries; with sort=True by descending total, then shape."""
        out = list(self)
        if sort:
            out.sort(key=lambda e: (
                -e.total,
                e.representative.num_vertices,
                e.representative.num_edges,
                e.representative.labels,
                e.representative.edges,
            ))
        return out

    def stats(self) -> Dict[str, int]:
        return {
            "records": self.input_records,
            "entries": len(self),
            "buckets": len(self._buckets),
            "oracle_calls": self.oracle.calls,
            "oracle_searches": self.oracle.searches,
            "oracle_steps": self.oracle.steps,
        }


def aggregate_records(
    templates: Sequence[LabeledGraph],
    records: Iterable[RawRecord],
    *,
    max_steps: Optional[int] = None,
    method: str = "backtrack",
    duplicates: str = "sum",
) -> CanonicalTable:
    """
    Aggregate raw records into isomorphism classes.

    With duplicates="replace" repeated (stage, labels) records are first
    reduced to their last occurrence; "sum" streams records directly.
    """
    if duplicates == "replace":
        records = collapse_duplicates(records, "replace")
    elif duplicates != "sum":
        raise ValueError(f"unknown duplicate policy {duplicates!r}")

    table = CanonicalTable(max_steps=max_steps, method=method)
    for rec in records:
        table.add_record(templates, rec)
    log.info(
        "aggregated %d records into %d classes (%d oracle searches)",
        table.input_records, len(table), table.oracle.searches,
    )
    return table
