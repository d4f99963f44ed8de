"""Assemble cleaned item and link texts into one context string."""

from ..models import CompileResult, CompileStats, LinkRecord
from .file_tree import render_file_tree
from .templates import item_values, link_values, render_template

TEMPLATE_KEYS = (
    "before_context",
    "after_context",
    "before_item",
    "after_item",
    "before_link",
    "after_link",
)


def build_context(
    items: dict[str, str],
    links: dict[str, LinkRecord] | None = None,
    templates: dict[str, str] | None = None,
    mtimes: dict[str, float | None] | None = None,
) -> CompileResult:
    """Merge items and links, wrapping each with its before/after templates.

    Args:
        items: Ordered mapping of item key to already-cleaned content.
        links: Ordered mapping of linked key to LinkRecord.
        templates: Any of TEMPLATE_KEYS; missing ones are empty.
        mtimes: Modification times used for {{TIME_AGO}}.

    Returns:
        CompileResult whose char_count is measured on the final trimmed string.
    """
    links = links or {}
    mtimes = mtimes or {}
    tpl = {name: (templates or {}).get(name) or "" for name in TEMPLATE_KEYS}
    stats = CompileStats()
    parts: list[str] = []

    context_values = {"FILE_TREE": lambda: render_file_tree(list(items) + list(links))}

    if tpl["before_context"]:
        parts.append(render_template(tpl["before_context"], context_values))

    for key, content in items.items():
        stats.item_count += 1
        values = item_values(key, mtimes.get(key))
        if tpl["before_item"]:
            parts.append(render_template(tpl["before_item"], values))
        parts.append(content.strip())
        if tpl["after_item"]:
            parts.append(render_template(tpl["after_item"], values))

    for key, link in links.items():
        if link is None:
            continue
        stats.link_count += 1
        values = link_values(key, link.item_key, link.type, link.depth, mtimes.get(key))
        if tpl["before_link"]:
            parts.append(render_template(tpl["before_link"], values))
        parts.append(link.content.strip())
        if tpl["after_link"]:
            parts.append(render_template(tpl["after_link"], values))

    if tpl["after_context"]:
        parts.append(render_template(tpl["after_context"], context_values))

    context = "\n".join(parts).strip()
    stats.char_count = len(context)
    return CompileResult(context=context, stats=stats)
