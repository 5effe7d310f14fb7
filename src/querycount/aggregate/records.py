"""Raw count records: (stage id, vertex labels, occurrence count)."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, TextIO, Tuple, Union

from querycount.errors import InputFormatError
from querycount.io.tokens import TokenReader

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawRecord:
    stage: int
    labels: Tuple[int, ...]
    count: int
    # position in the source, for error messages only
    record: Optional[int] = field(default=None, compare=False)
    line: Optional[int] = field(default=None, compare=False)
    source: Optional[str] = field(default=None, compare=False)

    @property
    def key(self) -> Tuple[int, Tuple[int, ...]]:
        return self.stage, self.labels


def parse_counts(
    stream: Union[TextIO, Iterable[str]],
    vertex_counts: Sequence[int],
    *,
    source: Optional[str] = None,
) -> Iterator[RawRecord]:
    """
    Stream RawRecords from whitespace-separated integer tokens.

    Each record is a stage id, vertex_counts[stage] labels and a count,
    repeated until end of input.  Unknown stages, short records,
    negative values and non-integer tokens raise InputFormatError.
    """
    reader = TokenReader(stream, source=source)
    n_stages = len(vertex_counts)
    idx = 0
    while True:
        stage = reader.next_int_or_none("stage id", record=idx)
        if stage is None:
            break
        line = reader.line
        if not 0 <= stage < n_stages:
            raise InputFormatError(
                f"unknown stage id {stage} (plan has {n_stages} stages)",
                source=source, record=idx, line=line,
            )
        n = vertex_counts[stage]
        labels = []
        for i in range(n):
            lab = reader.next_int(f"label {i} of {n} for stage {stage}", record=idx)
            if lab < 0:
                raise InputFormatError(
                    f"negative vertex label {lab}",
                    source=source, record=idx, line=reader.line,
                )
            labels.append(lab)
        count = reader.next_int(f"occurrence count for stage {stage}", record=idx)
        if count < 0:
            raise InputFormatError(
                f"negative occurrence count {count}",
                source=source, record=idx, line=reader.line,
            )
        yield RawRecord(stage, tuple(labels), count, record=idx, line=line, source=source)
        idx += 1
    log.info("read %d count records from %s", idx, source or "<counts>")


def read_counts(path: Union[str, Path], vertex_counts: Sequence[int]) -> Iterator[RawRecord]:
    """Lazily read a count file; the file stays open until exhausted."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        yield from parse_counts(fh, vertex_counts, source=str(path))


def collapse_duplicates(records: Iterable[RawRecord], policy: str = "sum") -> List[RawRecord]:
    """
    Merge records sharing (stage, labels).

    "sum" adds their counts; "replace" keeps only the count of the last
    occurrence.  First-seen order is preserved.
    """
    if policy not in ("sum", "replace"):
        raise ValueError(f"unknown duplicate policy {policy!r}")
    merged: Dict[Tuple[int, Tuple[int, ...]], RawRecord] = {}
    n_dupes = 0
    for rec in records:
        prev = merged.get(rec.key)
        if prev is None:
            merged[rec.key] = rec
            continue
        n_dupes += 1
        count = prev.count + rec.count if policy == "sum" else rec.count
        merged[rec.key] = RawRecord(
            rec.stage, rec.labels, count, prev.record, prev.line, prev.source
        )
    if n_dupes:
        log.info("collapsed %d duplicate record(s) with policy %r", n_dupes, policy)
    return list(merged.values())
