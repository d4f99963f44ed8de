"""Breadth-first link graph traversal.

Walks outbound or inbound wikilink edges from one or more roots up to a depth
bound, then folds the hits into ContextItems keyed by note.
"""

import logging
from typing import Iterable

from ..models import ContextItem, LinkGraphEntry
from ..vault.base import VaultBase, VaultSource

logger = logging.getLogger(__name__)

OUT = "out"
IN = "in"
BOTH = "both"
DIRECTIONS = (OUT, IN, BOTH)


def _neighbours(source: VaultSource, direction: str) -> list[str]:
    if direction == OUT:
        return [link.key for link in source.outlinks]
    return list(source.inlinks)


def get_links_to_depth(
    graph: VaultBase,
    roots: str | Iterable[str],
    max_depth: int,
    direction: str = OUT,
    include_self: bool = True,
) -> list[LinkGraphEntry]:
    """Collect every note within `max_depth` hops of the roots in one direction.

    Args:
        graph: Source of VaultSource nodes.
        roots: Root key or keys. Keys unknown to the graph are skipped.
        max_depth: Maximum hop count; nothing further away is returned.
        direction: OUT follows links a note makes, IN follows links made to it.
        include_self: Whether roots are reported at depth 0.

    Returns:
        Entries in discovery order; each key appears at most once, at the
        depth it was first reached.
    """
    if direction not in (OUT, IN):
        raise ValueError(f"Unknown link direction: {direction}")
    if isinstance(roots, str):
        roots = [roots]

    visited: set[str] = set()
    entries: list[LinkGraphEntry] = []
    frontier: list[VaultSource] = []

    for key in roots:
        source = graph.get(key)
        if source is None or key in visited:
            continue
        visited.add(key)
        frontier.append(source)
        if include_self:
            entries.append(LinkGraphEntry(depth=0, item=source, direction=direction))

    for depth in range(1, max(max_depth, 0) + 1):
        next_frontier: list[VaultSource] = []
        for source in frontier:
            for key in _neighbours(source, direction):
                if key in visited:
                    continue
                target = graph.get(key)
                if target is None:
                    continue
                visited.add(key)
                entries.append(LinkGraphEntry(depth=depth, item=target, direction=direction, via=source.key))
                next_frontier.append(target)
        if not next_frontier:
            break
        frontier = next_frontier

    return entries


def _embedded_by_root(key: str, root_sources: list[VaultSource]) -> bool:
    return any(
        link.key == key and link.embedded
        for root in root_sources
        for link in root.outlinks
    )


def build_context_items_from_graph(
    entries: list[LinkGraphEntry],
    root_sources: list[VaultSource] | None = None,
) -> dict[str, ContextItem]:
    """Turn traversal entries into ContextItems, smallest depth winning.

    A note embedded directly by a root is part of that root's body, so it is
    placed at depth 0 whatever its graph distance.
    """
    root_sources = root_sources or []
    items: dict[str, ContextItem] = {}

    for entry in entries:
        source = entry.item
        if source is None or not source.key:
            continue
        depth = entry.depth
        if depth > 0 and _embedded_by_root(source.key, root_sources):
            depth = 0

        existing = items.get(source.key)
        if existing is not None and existing.depth <= depth:
            continue
        items[source.key] = ContextItem(
            key=source.key,
            depth=depth,
            is_link=entry.via is not None,
            mtime=source.mtime,
            size=source.size,
            via=entry.via,
        )

    return items


def merge_context_item_maps(
    target: dict[str, ContextItem],
    incoming: dict[str, ContextItem],
) -> dict[str, ContextItem]:
    """Merge `incoming` into `target` in place, keeping the smaller depth."""
    for key, item in incoming.items():
        existing = target.get(key)
        if existing is None:
            target[key] = ContextItem(**vars(item))
            continue
        if item.depth < existing.depth:
            existing.depth = item.depth
            existing.via = item.via
        existing.is_link = existing.is_link and item.is_link
        existing.mtime = item.mtime
        existing.size = item.size
    return target


def build_context_items_from_graphs(
    outlink_graph: list[LinkGraphEntry] | None = None,
    inlink_graph: list[LinkGraphEntry] | None = None,
    root_sources: list[VaultSource] | None = None,
) -> dict[str, ContextItem]:
    """Merge outbound and inbound traversals.

    A key is an inlink only if it was reached inbound and never outbound.
    """
    outlink_items = build_context_items_from_graph(outlink_graph or [], root_sources)
    inlink_items = build_context_items_from_graph(inlink_graph or [], root_sources)

    merged = merge_context_item_maps({}, outlink_items)
    merge_context_item_maps(merged, inlink_items)

    for key, item in merged.items():
        item.is_inlink = key in inlink_items and key not in outlink_items
    return merged


def seed_root_embeds(
    graph: VaultBase,
    root_sources: list[VaultSource],
    items: dict[str, ContextItem],
) -> dict[str, ContextItem]:
    """Pin every note a root embeds at depth 0, however shallow the traversal.

    Embeds are part of their root's body, so they belong to the depth-0 set
    even when `max_depth` is 0 and traversal never reached them.
    """
    for root in root_sources:
        for link in root.outlinks:
            if not link.embedded:
                continue
            existing = items.get(link.key)
            if existing is not None and existing.depth == 0:
                continue
            target = graph.get(link.key)
            if target is None:
                continue
            items[link.key] = ContextItem(
                key=link.key,
                depth=0,
                is_link=True,
                mtime=target.mtime,
                size=target.size,
                via=root.key,
            )
    return items


def traverse(
    graph: VaultBase,
    roots: str | Iterable[str],
    max_depth: int,
    direction: str = BOTH,
    include_self: bool = True,
) -> dict[str, ContextItem]:
    """Run the traversal in the requested direction(s) and merge the results."""
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown link direction: {direction}")
    roots = [roots] if isinstance(roots, str) else list(roots)
    root_sources = [s for s in (graph.get(k) for k in roots) if s is not None]

    outlink_graph = (
        get_links_to_depth(graph, roots, max_depth, OUT, include_self)
        if direction in (OUT, BOTH) else []
    )
    inlink_graph = (
        get_links_to_depth(graph, roots, max_depth, IN, include_self)
        if direction in (IN, BOTH) else []
    )
    logger.debug(
        "Traversed %d root(s) to depth %d: %d out, %d in",
        len(root_sources), max_depth, len(outlink_graph), len(inlink_graph),
    )
    items = build_context_items_from_graphs(outlink_graph, inlink_graph, root_sources)
    return seed_root_embeds(graph, root_sources, items)
