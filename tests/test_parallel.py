"""Tests for querycount.aggregate.parallel."""
import random

from querycount.aggregate.canonical import aggregate_records, structural_digest
from querycount.aggregate.parallel import aggregate, aggregate_parallel, partition_jobs
from querycount.aggregate.records import RawRecord
from querycount.graph.builder import build_stage_graphs
from querycount.plan.reader import parse_plan

from plans import PLAN_TEXT


def _templates():
    return build_stage_graphs(parse_plan(PLAN_TEXT.splitlines()))


def _records(seed, n):
    rng = random.Random(seed)
    recs = []
    for _ in range(n):
        stage = rng.randrange(4)
        k = 2 if stage == 0 else 3
        recs.append(RawRecord(stage, tuple(rng.randrange(3) for _ in range(k)), rng.randrange(1, 9)))
    return recs


def _shape(table):
    return sorted(
        (e.total, e.records, e.representative.num_vertices, e.representative.num_edges)
        for e in table
    )


def test_partitions_keep_digests_together():
    templates = _templates()
    parts = partition_jobs(templates, _records(1, 100), 3)
    assert sum(len(p) for p in parts) == 100
    owner = {}
    for i, part in enumerate(parts):
        for digest, graph, _, _ in part:
            assert structural_digest(graph) == digest
            assert owner.setdefault(digest, i) == i


def test_parallel_matches_serial():
    templates = _templates()
    recs = _records(2, 200)
    serial = aggregate_records(templates, recs)
    parallel = aggregate_parallel(templates, recs, processes=2)
    assert parallel.total == serial.total == sum(r.count for r in recs)
    assert len(parallel) == len(serial)
    assert _shape(parallel) == _shape(serial)


def test_parallel_empty_input():
    table = aggregate_parallel(_templates(), [], processes=2)
    assert len(table) == 0
    assert table.total == 0


def test_parallel_replace_duplicates():
    templates = _templates()
    recs = [RawRecord(1, (1, 2, 3), 3), RawRecord(1, (1, 2, 3), 4)]
    assert aggregate_parallel(templates, recs, processes=2, duplicates="replace").total == 4


def test_aggregate_dispatch():
    templates = _templates()
    recs = _records(3, 50)
    assert aggregate(templates, recs).total == aggregate(templates, recs, processes=2).total
