"""Link graph traversal."""

from .traversal import (
    BOTH,
    IN,
    OUT,
    build_context_items_from_graphs,
    get_links_to_depth,
    traverse,
)

__all__ = ["BOTH", "IN", "OUT", "build_context_items_from_graphs", "get_links_to_depth", "traverse"]
