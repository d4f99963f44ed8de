"""SmartContext: a keyed set of notes compiled into one prompt-ready string.

A context holds explicitly added root items plus whatever link traversal has
discovered from them. Compiling reads every selected item through the vault,
inlines embeds, drops link-only lines that point at other selected items,
strips excluded heading sections and hands the result to `build_context`.

Callers must not run two compiles against the same SmartContext at once:
the item map is updated in place during traversal and no locking is done.
"""

import hashlib
import json
import logging
from typing import Any, Callable

from ..graph.traversal import BOTH, OUT, traverse
from ..models import CompileResult, ContextItem, ExclusionResult, LinkRecord
from ..text.embeds import inline_embedded_links
from ..text.headings import strip_excluded_sections
from ..text.links import remove_included_link_lines
from ..vault.base import VaultBase
from .compiler import build_context

logger = logging.getLogger(__name__)

ItemFilter = Callable[[str, ContextItem], bool]


class SmartContext:
    """Aggregate of context items and the settings used to compile them."""

    def __init__(
        self,
        vault: VaultBase,
        key: str = "",
        excluded_headings: list[str] | None = None,
        link_depth: int = 0,
        include_inlinks: bool = False,
        templates: dict[str, str] | None = None,
    ):
        self.vault = vault
        self._key = key
        self.items: dict[str, ContextItem] = {}
        self.excluded_headings = list(excluded_headings or [])
        self.link_depth = link_depth
        self.include_inlinks = include_inlinks
        self.templates = dict(templates or {})

    @classmethod
    def from_config(cls, config: dict[str, Any], vault: VaultBase, key: str = "") -> "SmartContext":
        return cls(
            vault,
            key=key,
            excluded_headings=config.get("excluded_headings", []),
            link_depth=config.get("link_depth", 0),
            include_inlinks=config.get("include_inlinks", False),
            templates=config.get("templates", {}),
        )

    @property
    def key(self) -> str:
        """Explicit key if set, else a stable hash of the root item keys."""
        if self._key:
            return self._key
        roots = sorted(k for k, item in self.items.items() if not item.is_link)
        digest = hashlib.sha256(json.dumps(roots).encode("utf-8")).hexdigest()
        return digest[:12]

    # --- item management -------------------------------------------------

    def add_item(self, key: str) -> ContextItem:
        """Add a root item. An existing linked or excluded entry is promoted."""
        mtime, size = self.vault.stat(key)
        item = self.items.get(key)
        if item is None:
            item = ContextItem(key=key, mtime=mtime, size=size)
            self.items[key] = item
        else:
            item.depth = 0
            item.is_link = False
            item.is_inlink = False
            item.excluded = False
            item.via = None
        return item

    def add_items(self, keys: list[str]) -> None:
        for key in keys:
            self.add_item(key)

    def add_codeblock_items(self, result: Any) -> None:
        """Merge paths gathered by `parse_codeblock` as root items."""
        self.add_items([self.vault.key_for_path(path) for path in result.items])

    def exclude_item(self, key: str) -> None:
        """Opt a key out. Traversal will never re-add or update it."""
        item = self.items.get(key)
        if item is None:
            item = ContextItem(key=key, is_link=True)
            self.items[key] = item
        item.excluded = True

    def remove_item(self, key: str) -> None:
        """Remove a key and every key nested under it (`key/...`, `key#...`)."""
        self.items = {
            k: v for k, v in self.items.items()
            if not (k == key or k.startswith(f"{key}/") or k.startswith(f"{key}#"))
        }

    # --- traversal -------------------------------------------------------

    def expand_links(self, max_depth: int, include_inlinks: bool = False) -> None:
        """Re-derive link items from the non-excluded roots.

        Link items from earlier traversals are dropped first, so removed
        roots and deleted links never leave stale entries behind. Roots and
        excluded entries are kept as they are.
        """
        self.items = {k: v for k, v in self.items.items() if v.excluded or not v.is_link}
        roots = [k for k, item in self.items.items() if not item.excluded]
        if not roots:
            return
        direction = BOTH if include_inlinks else OUT
        discovered = traverse(self.vault, roots, max_depth, direction)

        for key, found in discovered.items():
            if key in self.items:
                continue
            found.is_link = True
            self.items[key] = found

    def select(
        self,
        link_depth: int,
        include_inlinks: bool,
        filter: ItemFilter | None = None,
    ) -> dict[str, ContextItem]:
        """Items that a compile at this depth would include, in insertion order."""
        selected = {}
        for key, item in self.items.items():
            if item.excluded or item.depth > link_depth:
                continue
            if item.is_inlink and not include_inlinks:
                continue
            if filter is not None and not filter(key, item):
                continue
            selected[key] = item
        return selected

    # --- compile ---------------------------------------------------------

    async def compile(
        self,
        link_depth: int | None = None,
        include_inlinks: bool | None = None,
        filter: ItemFilter | None = None,
    ) -> CompileResult:
        return await compile_context(self, link_depth, include_inlinks, filter)

    async def read(self, key: str) -> str:
        """Read through the vault; a failed read yields an empty string."""
        try:
            return await self.vault.read(key) or ""
        except Exception as e:
            logger.warning("Could not read %s: %s", key, e)
            return ""


async def compile_context(
    context: SmartContext,
    link_depth: int | None = None,
    include_inlinks: bool | None = None,
    filter: ItemFilter | None = None,
) -> CompileResult:
    """Compile a context into a single string plus stats.

    Unset options fall back to the context's own settings.
    """
    depth = context.link_depth if link_depth is None else link_depth
    inlinks = context.include_inlinks if include_inlinks is None else include_inlinks
    vault = context.vault

    context.expand_links(depth, inlinks)
    selected = context.select(depth, inlinks, filter)
    included = set(selected)

    items: dict[str, str] = {}
    links: dict[str, LinkRecord] = {}
    mtimes: dict[str, float | None] = {}
    exclusions = ExclusionResult(processed_content="")

    for key, item in selected.items():
        # root embeds are already quoted inside their root
        if item.depth == 0 and item.is_link:
            continue
        raw = await context.read(key)
        text = await inline_embedded_links(
            raw,
            key,
            vault.resolve_link,
            context.read,
            context.excluded_headings,
            vault.embedded_keys,
        )
        text = remove_included_link_lines(text, included, lambda t: vault.resolve_link(t, key))
        filtered = strip_excluded_sections(text, context.excluded_headings)
        exclusions.merge(filtered)
        mtimes[key] = item.mtime

        if item.depth == 0:
            items[key] = filtered.processed_content
        elif item.is_inlink:
            links[key] = LinkRecord(filtered.processed_content, "IN-LINK", item.depth, to=item.via)
        else:
            links[key] = LinkRecord(filtered.processed_content, "OUT-LINK", item.depth, from_=item.via)

    result = build_context(items, links, context.templates, mtimes)
    result.stats.excluded_count = exclusions.excluded_count
    result.stats.excluded_sections = exclusions.excluded_sections
    logger.debug(
        "Compiled %s at depth %d: %d items, %d links, %d chars",
        context.key, depth, result.stats.item_count, result.stats.link_count, result.stats.char_count,
    )
    return result
