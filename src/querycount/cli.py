"""querycount PLAN COUNTS -- merge counts of isomorphic labeled queries."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from querycount.aggregate import aggregate, read_counts
from querycount.config import DUPLICATE_POLICIES, MERGE_POLICIES, METHODS, Settings
from querycount.errors import InputFormatError, OracleBudgetExceeded, StructuralIntegrityError
from querycount.graph.builder import build_stage_graphs
from querycount.io.render import render_json, render_text
from querycount.plan.reader import read_plan

log = logging.getLogger("querycount")

EXIT_OK = 0
EXIT_INPUT = 2
EXIT_STRUCTURE = 3
EXIT_BUDGET = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="querycount",
        description="Aggregate labeled subgraph counts by isomorphism class.",
    )
    parser.add_argument("plan", help="plan file")
    parser.add_argument("counts", help="count file")
    parser.add_argument("--method", choices=METHODS, default=None,
                        help="isomorphism engine (default: backtrack)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="abort a single isomorphism test after this many steps")
    parser.add_argument("--merge-policy", choices=MERGE_POLICIES, default=None,
                        help="stages reached by several plan edges (default: agree)")
    parser.add_argument("--duplicates", choices=DUPLICATE_POLICIES, default=None,
                        help="repeated (stage, labels) records (default: sum)")
    parser.add_argument("--processes", type=int, default=None,
                        help="worker processes for aggregation (default: 1)")
    parser.add_argument("--json", action="store_true", help="emit JSON instead of text")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def run(args: argparse.Namespace, settings: Settings) -> str:
    plan = read_plan(args.plan, require_tree=(settings.merge_policy == "tree"))
    templates = build_stage_graphs(plan, merge_policy=settings.merge_policy)
    table = aggregate(
        templates,
        read_counts(args.counts, plan.vertex_counts()),
        processes=settings.processes,
        max_steps=settings.max_steps,
        method=settings.method,
        duplicates=settings.duplicates,
    )
    log.debug("table stats: %s", table.stats())
    entries = table.entries(sort=True)
    return render_json(entries) if args.json else render_text(entries)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = Settings.from_env().override(
            method=args.method,
            max_steps=args.max_steps,
            merge_policy=args.merge_policy,
            duplicates=args.duplicates,
            processes=args.processes,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        out = run(args, settings)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT
    except InputFormatError as exc:
        print(f"input error: {exc}", file=sys.stderr)
        return EXIT_INPUT
    except StructuralIntegrityError as exc:
        print(f"plan error: {exc}", file=sys.stderr)
        return EXIT_STRUCTURE
    except OracleBudgetExceeded as exc:
        print(f"search budget exceeded: {exc}", file=sys.stderr)
        return EXIT_BUDGET

    sys.stdout.write(out)
    if out and not out.endswith("\n"):
        sys.stdout.write("\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
