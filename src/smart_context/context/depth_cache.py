"""Per-depth compile results, reused while the depth-0 output is unchanged."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..models import ContextItem, DepthInfo

logger = logging.getLogger(__name__)

TOKEN_CEILING = 50000
DEFAULT_DEPTHS = range(0, 6)


def approximate_tokens(char_count: int) -> int:
    """Rough token estimate (~4 chars per token)."""
    return math.ceil(char_count / 4)


@dataclass
class DepthCache:
    depth0_fingerprint: int
    depths_info: list[DepthInfo] = field(default_factory=list)


class DepthCacheStore:
    """Depth scans keyed by context key, valid only for a matching fingerprint."""

    def __init__(self):
        self._entries: dict[str, DepthCache] = {}

    def get(self, cache_key: str, fingerprint: int) -> DepthCache | None:
        entry = self._entries.get(cache_key)
        if entry is None or entry.depth0_fingerprint != fingerprint:
            return None
        return entry

    def put(self, cache_key: str, fingerprint: int, depths_info: list[DepthInfo]) -> DepthCache:
        entry = DepthCache(depth0_fingerprint=fingerprint, depths_info=depths_info)
        self._entries[cache_key] = entry
        return entry

    def invalidate(self, context_key: str | None = None) -> None:
        """Drop one context's entries (all inlink variants), or everything."""
        if context_key is None:
            self._entries.clear()
            return
        for cache_key in [k for k in self._entries if k.split("+")[0] == context_key]:
            del self._entries[cache_key]

    def __contains__(self, cache_key: str) -> bool:
        return cache_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _depth_label(depth: int, char_count: int, tokens: int) -> str:
    return f"Depth {depth} ({round(char_count / 1000)}k chars, {round(tokens / 1000)}k tokens)"


async def get_depths_info(
    context: Any,
    store: DepthCacheStore,
    depths: Iterable[int] = DEFAULT_DEPTHS,
    include_inlinks: bool | None = None,
    token_ceiling: int = TOKEN_CEILING,
) -> list[DepthInfo]:
    """Compile `context` at each depth, reusing the stored scan when possible.

    Depth 0 is always compiled fresh; its token estimate is the fingerprint.
    On a miss, depths are compiled in order until one exceeds `token_ceiling`;
    deeper ones are returned as uncalculated placeholders.
    """
    depths = list(depths)
    if include_inlinks is None:
        include_inlinks = context.include_inlinks
    cache_key = f"{context.key}+inlinks" if include_inlinks else context.key

    zero = await context.compile(link_depth=0, include_inlinks=include_inlinks)
    fingerprint = approximate_tokens(zero.stats.char_count)

    cached = store.get(cache_key, fingerprint)
    if cached is not None:
        logger.debug("Depth cache hit for %s (fingerprint %d)", cache_key, fingerprint)
        return cached.depths_info

    logger.debug("Depth cache miss for %s, recompiling %d depth(s)", cache_key, len(depths))
    depths_info: list[DepthInfo] = []
    stop_further = False

    for depth in depths:
        if stop_further:
            depths_info.append(DepthInfo(
                depth=depth,
                label=f"Depth {depth} (not calculated)",
                calculated=False,
            ))
            continue

        result = zero if depth == 0 else await context.compile(link_depth=depth, include_inlinks=include_inlinks)
        tokens = approximate_tokens(result.stats.char_count)
        label = _depth_label(depth, result.stats.char_count, tokens)
        if tokens > token_ceiling:
            label += f" [exceeds {token_ceiling // 1000}k; stopping further]"
            stop_further = True
        depths_info.append(DepthInfo(
            depth=depth,
            label=label,
            approx_tokens=tokens,
            stats=result.stats,
            context=result.context,
        ))

    store.put(cache_key, fingerprint, depths_info)
    return depths_info


def build_depth_suggestions(items: Iterable[ContextItem]) -> list[dict[str, Any]]:
    """Cumulative item counts and sizes per depth, with and without inlinks.

    Returns two rows per depth (outlinks only, then including inlinks), each
    {"depth", "count", "size", "sizes", "include_inlinks"}.
    """
    items = [it for it in items if not it.excluded]
    if not items:
        return []
    max_depth = max(it.depth for it in items)

    rows = []
    for depth in range(max_depth + 1):
        for with_inlinks in (False, True):
            row = {"depth": depth, "count": 0, "size": 0, "sizes": 0, "include_inlinks": with_inlinks}
            for it in items:
                if it.depth > depth or (it.is_inlink and not with_inlinks):
                    continue
                row["count"] += 1
                if it.size:
                    row["size"] += it.size
                    row["sizes"] += 1
            rows.append(row)
    return rows
