"""Digest-partitioned aggregation over a process pool.

Isomorphic graphs share a digest, so partitioning by digest never
splits a class across workers.  Each partition is owned by one worker,
which runs the ordinary scan-and-insert over it; the parent only
concatenates results.
"""
from __future__ import annotations

import logging
from multiprocessing import Pool, cpu_count
from typing import Iterable, List, Optional, Sequence, Tuple

from querycount.aggregate.canonical import (
    CanonicalEntry,
    CanonicalTable,
    aggregate_records,
    instantiate,
    structural_digest,
)
from querycount.aggregate.records import RawRecord, collapse_duplicates
from querycount.graph.labeled import LabeledGraph

log = logging.getLogger(__name__)

# (digest, graph, count, stage)
Job = Tuple[int, LabeledGraph, int, int]


def _worker(args: Tuple[List[Job], Optional[int], str]) -> List[Tuple[int, List[CanonicalEntry]]]:
    jobs, max_steps, method = args
    table = CanonicalTable(max_steps=max_steps, method=method)
    for digest, graph, count, stage in jobs:
        table.add(graph, count, stage=stage, digest=digest)
    return list(table.buckets())


def partition_jobs(
    templates: Sequence[LabeledGraph],
    records: Iterable[RawRecord],
    n_parts: int,
) -> List[List[Job]]:
    parts: List[List[Job]] = [[] for _ in range(n_parts)]
    for rec in records:
        g = instantiate(templates, rec)
        d = structural_digest(g)
        parts[d % n_parts].append((d, g, rec.count, rec.stage))
    return parts


def aggregate_parallel(
    templates: Sequence[LabeledGraph],
    records: Iterable[RawRecord],
    *,
    processes: int = max(1, cpu_count() - 1),
    max_steps: Optional[int] = None,
    method: str = "backtrack",
    duplicates: str = "sum",
) -> CanonicalTable:
    """
    Same result as aggregate_records, computed by *processes* workers.

    Records are instantiated in the parent so input errors surface
    before any worker starts.
    """
    if duplicates == "replace":
        records = collapse_duplicates(records, "replace")
    elif duplicates != "sum":
        raise ValueError(f"unknown duplicate policy {duplicates!r}")

    parts = partition_jobs(templates, records, processes)
    sizes = [len(p) for p in parts]
    log.info("aggregating %d records in %d partitions: %s", sum(sizes), processes, sizes)

    table = CanonicalTable(max_steps=max_steps, method=method)
    jobs = [(p, max_steps, method) for p in parts if p]
    if not jobs:
        return table

    with Pool(processes=min(processes, len(jobs))) as pool:
        for buckets in pool.imap_unordered(_worker, jobs, chunksize=1):
            for digest, entries in buckets:
                table.extend_entries(digest, entries)

    log.info("aggregated %d records into %d classes", table.input_records, len(table))
    return table


def aggregate(
    templates: Sequence[LabeledGraph],
    records: Iterable[RawRecord],
    *,
    processes: int = 1,
    max_steps: Optional[int] = None,
    method: str = "backtrack",
    duplicates: str = "sum",
) -> CanonicalTable:
    """Dispatch to in-process or pooled aggregation by *processes*."""
    if processes <= 1:
        return aggregate_records(
            templates, records, max_steps=max_steps, method=method, duplicates=duplicates
        )
    return aggregate_parallel(
        templates, records,
        processes=processes, max_steps=max_steps, method=method, duplicates=duplicates,
    )
