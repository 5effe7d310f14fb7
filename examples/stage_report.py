"""
Print each plan stage's reconstructed shape, then the merged counts.

  python examples/stage_report.py examples/sample_plan.txt examples/sample_counts.txt
"""
import argparse

from querycount import aggregate_records, build_stage_graphs, read_counts, read_plan
from querycount.io.render import format_graph, render_text


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("plan")
    parser.add_argument("counts")
    parser.add_argument("--max-steps", type=int, default=None)
    args = parser.parse_args()

    plan = read_plan(args.plan)
    templates = build_stage_graphs(plan)

    for stage, g in enumerate(templates):
        kind = "query" if plan.nodes[stage].is_query else "intermediate"
        print(f"--- stage {stage} ({kind})")
        print(format_graph(g))
        parents = [e.source for e in plan.in_edges(stage)]
        print(f"  parents: {parents or '-'}")
        print(f"  out-degrees: {g.out_degrees()}  in-degrees: {g.in_degrees()}")
        for edge in plan.out_edges(stage):
            ext = len(plan.extensions(edge))
            inter = len(plan.intersections(edge))
            print(f"  -> stage {edge.destination}: {ext} extension(s), {inter} intersection(s)")

    table = aggregate_records(
        templates, read_counts(args.counts, plan.vertex_counts()), max_steps=args.max_steps
    )
    print()
    print(f"{len(table)} classes from {table.input_records} records:")
    print(render_text(table.entries(sort=True)))


if __name__ == "__main__":
    main()
