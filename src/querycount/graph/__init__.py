from .labeled import LabeledGraph, DEFAULT_LABEL
from .builder import build_stage_graphs, extend_graph, root_graph

__all__ = [
    "LabeledGraph",
    "DEFAULT_LABEL",
    "build_stage_graphs",
    "extend_graph",
    "root_graph",
]
