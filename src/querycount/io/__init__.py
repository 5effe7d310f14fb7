from .tokens import TokenReader, iter_tokens
from .render import format_graph, format_entry, render_text, render_json, entry_to_dict

__all__ = [
    "TokenReader",
    "iter_tokens",
    "format_graph",
    "format_entry",
    "render_text",
    "render_json",
    "entry_to_dict",
]
