from .records import RawRecord, parse_counts, read_counts, collapse_duplicates
from .canonical import (
    CanonicalEntry,
    CanonicalTable,
    aggregate_records,
    instantiate,
    structural_digest,
)
from .parallel import aggregate, aggregate_parallel

__all__ = [
    "RawRecord",
    "parse_counts",
    "read_counts",
    "collapse_duplicates",
    "CanonicalEntry",
    "CanonicalTable",
    "aggregate_records",
    "instantiate",
    "structural_digest",
    "aggregate",
    "aggregate_parallel",
]
