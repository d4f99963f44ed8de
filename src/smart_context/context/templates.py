"""Placeholder substitution for before/after templates."""

import re
import time
from typing import Callable

PLACEHOLDER_RE = re.compile(r"\{\{([A-Z_]+)\}\}")

PLACEHOLDERS = frozenset({
    "FILE_TREE",
    "ITEM_PATH",
    "ITEM_NAME",
    "LINK_PATH",
    "LINK_NAME",
    "LINK_ITEM_PATH",
    "LINK_ITEM_NAME",
    "LINK_TYPE",
    "LINK_DEPTH",
    "KEY",
    "TIME_AGO",
})

Value = str | int | Callable[[], str] | None


def render_template(template: str, values: dict[str, Value]) -> str:
    """Substitute placeholders in one pass.

    Known placeholders missing from `values` render as an empty string;
    unknown `{{...}}` tokens are left as written. Callables are only invoked
    if their placeholder occurs in the template.
    """
    if not template:
        return ""

    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name not in PLACEHOLDERS:
            return match.group(0)
        value = values.get(name)
        if callable(value):
            value = value()
        return "" if value is None else str(value)

    return PLACEHOLDER_RE.sub(_sub, template)


def base_name(key: str) -> str:
    return key[key.rfind("/") + 1:]


def time_ago(mtime: float | None, now: float | None = None) -> str:
    """Human-readable age of a timestamp, e.g. "3 days ago"."""
    if not mtime:
        return "Missing"
    seconds = max(0, int((now if now is not None else time.time()) - mtime))
    if seconds < 60:
        return "just now"
    for unit, size in (("year", 31536000), ("month", 2592000), ("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def item_values(key: str, mtime: float | None = None) -> dict[str, Value]:
    return {
        "ITEM_PATH": key,
        "ITEM_NAME": base_name(key),
        "KEY": key,
        "TIME_AGO": lambda: time_ago(mtime),
    }


def link_values(key: str, item_key: str, link_type: str, depth: int, mtime: float | None = None) -> dict[str, Value]:
    return {
        "LINK_PATH": key,
        "LINK_NAME": base_name(key),
        "LINK_ITEM_PATH": item_key,
        "LINK_ITEM_NAME": base_name(item_key),
        "LINK_TYPE": link_type,
        "LINK_DEPTH": depth,
        "KEY": key,
        "TIME_AGO": lambda: time_ago(mtime),
    }
