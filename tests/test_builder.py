"""Tests for querycount.graph (LabeledGraph + stage graph builder)."""
import pytest

from querycount.errors import StructuralIntegrityError
from querycount.graph.builder import build_stage_graphs, extend_graph, root_graph
from querycount.graph.labeled import DEFAULT_LABEL, LabeledGraph
from querycount.plan.model import PlanOperation
from querycount.plan.reader import parse_plan

from plans import PLAN_TEXT, diamond, make_plan


# --- LabeledGraph ---

def test_labeled_graph_basics():
    g = LabeledGraph.unlabeled(2, [(0, 1)])
    assert g.num_vertices == 2
    assert g.num_edges == 1
    assert g.add_vertex(5) == 2
    g.add_edge(2, 0)
    assert g.labels == [DEFAULT_LABEL, DEFAULT_LABEL, 5]
    assert g.edges == [(0, 1), (2, 0)]
    assert g.out_degrees() == [1, 0, 1]
    assert g.in_degrees() == [1, 1, 0]


def test_labeled_graph_rejects_bad_edge():
    g = LabeledGraph.unlabeled(2)
    with pytest.raises(IndexError):
        g.add_edge(0, 2)


def test_with_labels_copies():
    g = LabeledGraph.unlabeled(3, [(0, 1), (1, 2)])
    h = g.with_labels([4, 5, 6])
    assert h.labels == [4, 5, 6]
    assert g.labels == [0, 0, 0]
    h.add_edge(2, 0)
    assert g.num_edges == 2
    with pytest.raises(ValueError):
        g.with_labels([1, 2])


def test_nx_export_keeps_multiplicity():
    g = LabeledGraph([3, 1, 2], [(0, 1), (0, 1), (2, 2)])
    G = g.to_nx()
    assert G.number_of_nodes() == 3
    assert G.number_of_edges() == 3
    assert G.nodes[0]["label"] == 3
    assert G.number_of_edges(0, 1) == 2
    assert [d["label"] for _, _, d in G.edges(data=True)] == g.edge_labels


def test_edge_table_keeps_multiplicity():
    g = LabeledGraph.unlabeled(2, [(0, 1), (0, 1)])
    assert g.edge_table() == {(0, 1): (0, 0)}


# --- builder ---

def test_root_shape():
    plan = parse_plan(PLAN_TEXT.splitlines())
    graphs = build_stage_graphs(plan)
    root = graphs[plan.root]
    assert root.num_vertices == 2
    assert root.edges == [(0, 1)]
    assert root.labels == [DEFAULT_LABEL, DEFAULT_LABEL]
    assert root == root_graph()


def test_child_adds_vertex_and_edge():
    plan = parse_plan(PLAN_TEXT.splitlines())
    graphs = build_stage_graphs(plan)
    assert graphs[1].num_vertices == 3
    assert set(graphs[1].edges) == {(0, 1), (1, 2)}


def test_all_stages_built():
    plan = parse_plan(PLAN_TEXT.splitlines())
    graphs = build_stage_graphs(plan)
    assert [g.num_vertices for g in graphs] == plan.vertex_counts()
    assert graphs[2].edges == [(0, 1), (2, 0)]
    # delta 0: only an edge is added
    assert graphs[3].edges == [(0, 1), (1, 2), (2, 0)]
    assert all(lab == DEFAULT_LABEL for g in graphs for lab in g.labels)


def test_backward_operation():
    plan = make_plan(
        [(0, 1, 2), (1, 0, 3)],
        [(0, 1, (PlanOperation(1, 2, forward=False),))],
    )
    graphs = build_stage_graphs(plan)
    assert graphs[1].edges == [(0, 1), (2, 1)]


def test_templates_are_independent():
    plan = parse_plan(PLAN_TEXT.splitlines())
    graphs = build_stage_graphs(plan)
    graphs[1].add_edge(2, 2)
    assert graphs[3].num_edges == 3
    assert graphs[0].num_edges == 1


def test_merge_policy_agree():
    graphs = build_stage_graphs(diamond(PlanOperation(2, 0)))
    assert graphs[3].edges == [(0, 1), (1, 2), (2, 0)]


def test_merge_policy_agree_conflict():
    with pytest.raises(StructuralIntegrityError, match="conflicting") as exc:
        build_stage_graphs(diamond(PlanOperation(0, 2)))
    assert exc.value.stage == 3


def test_merge_policy_last_keeps_later_copy():
    graphs = build_stage_graphs(diamond(PlanOperation(0, 2)), merge_policy="last")
    assert graphs[3].edges == [(0, 1), (1, 2), (0, 2)]


def test_merge_policy_tree():
    with pytest.raises(StructuralIntegrityError, match="not a tree"):
        build_stage_graphs(diamond(PlanOperation(2, 0)), merge_policy="tree")


def test_unknown_merge_policy():
    with pytest.raises(ValueError):
        build_stage_graphs(diamond(PlanOperation(2, 0)), merge_policy="first")


def test_malformed_plan_aborts():
    plan = make_plan([(0, 1, 2), (1, 0, 4)], [(0, 1, ())])
    with pytest.raises(StructuralIntegrityError):
        build_stage_graphs(plan)


def test_extend_graph_checks_operations():
    plan = make_plan([(0, 1, 2), (1, 0, 3)], [(0, 1, (PlanOperation(0, 7),))])
    with pytest.raises(StructuralIntegrityError, match="plan edge 0"):
        extend_graph(root_graph(), plan, plan.edges[0])


def test_extend_graph_checks_parent_size():
    plan = make_plan([(0, 1, 2), (1, 0, 3)], [(0, 1, ())])
    with pytest.raises(StructuralIntegrityError):
        extend_graph(LabeledGraph.unlabeled(3), plan, plan.edges[0])
