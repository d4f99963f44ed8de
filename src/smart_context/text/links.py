"""Wikilink parsing and link-only line removal."""

import re
from typing import Callable

from .headings import FenceTracker

WIKILINK_RE = re.compile(r"(!?)\[\[([^\]|]+)(?:\|[^\]]+)?\]\]")
LINK_ONLY_LINE_RE = re.compile(r"^\[\[([^\[\]]+)\]\]$")


def link_target(inner: str) -> str:
    """Strip the alias from the inside of a `[[target|alias]]` marker."""
    return inner.split("|")[0].strip()


def parse_links(text: str) -> tuple[list[str], list[str]]:
    """Find wikilink targets in text, skipping fenced code.

    Returns:
        (links, embeds): targets of `[[...]]` and `![[...]]` markers, in order,
        without duplicates.
    """
    links: list[str] = []
    embeds: list[str] = []
    fence = FenceTracker()
    for line in text.split("\n"):
        if fence.feed(line) or fence.inside:
            continue
        for match in WIKILINK_RE.finditer(line):
            target = match.group(2).strip()
            bucket = embeds if match.group(1) else links
            if target and target not in bucket:
                bucket.append(target)
    return links, embeds


def remove_included_link_lines(
    content: str,
    included_keys: set[str],
    link_resolver: Callable[[str], str | None],
) -> str:
    """Drop lines that are nothing but a link to an already-included item.

    A line is removed only when, after trimming, it is exactly one `[[...]]`
    marker whose resolved target is in `included_keys`. Links mixed with other
    text, or pointing anywhere else, are kept verbatim.
    """
    kept = []
    for line in content.split("\n"):
        match = LINK_ONLY_LINE_RE.match(line.strip())
        if match:
            resolved = link_resolver(link_target(match.group(1)))
            if resolved and resolved in included_keys:
                continue
        kept.append(line)
    return "\n".join(kept)
