"""Inline `![[embed]]` markers with the filtered content of their targets."""

import logging
import re
from typing import Awaitable, Callable

from .headings import format_excluded_sections, strip_excluded_sections
from .links import link_target

logger = logging.getLogger(__name__)

EMBED_RE = re.compile(r"!\[\[([^\]]+)\]\]")

LinkResolver = Callable[[str, str], str | None]
ContentFetcher = Callable[[str], Awaitable[str]]
EmbeddedResolver = Callable[[str], set[str]]


def not_found_notice(link_text: str) -> str:
    return f'> [!embed] Embedded file not found\n> "{link_text}" could not be found'


def demote_embeds(text: str) -> str:
    """Turn every `![[x|alias]]` into a plain `[[x]]` reference."""
    return EMBED_RE.sub(lambda m: f"[[{link_target(m.group(1))}]]", text)


def quote_embedded(resolved_key: str, content: str, excluded_headings: list[str] | None) -> str:
    """Render an embed target as a quoted block with an embed header."""
    filtered = strip_excluded_sections(content, excluded_headings)
    body = demote_embeds(filtered.processed_content)
    quoted = "\n".join(
        f"> {line.strip()}" for line in body.splitlines() if line.strip()
    )

    notice = ""
    if filtered.excluded_count > 0:
        notice = (
            f"\n[!info] {filtered.excluded_count} section(s) excluded"
            + format_excluded_sections(filtered.excluded_sections)
        ).replace("\n", "\n> ")

    block = f"> [!embed] {resolved_key}{notice}"
    return f"{block}\n{quoted}" if quoted else block


async def inline_embedded_links(
    content: str,
    current_key: str,
    link_resolver: LinkResolver,
    fetch_content: ContentFetcher,
    excluded_headings: list[str] | None,
    embedded_resolver: EmbeddedResolver,
) -> str:
    """Replace every embed marker in `content`.

    Unresolvable markers become a "not found" notice. Markers resolving to one
    of `current_key`'s embeds are replaced by the target's quoted, heading
    filtered content. Anything else is demoted to a plain `[[link]]`.

    Inlined content is not scanned for further embeds; its markers are
    demoted instead.
    """
    matches = list(EMBED_RE.finditer(content))
    if not matches:
        return content

    embedded = embedded_resolver(current_key) or set()
    segments: list[str] = []
    last = 0

    for match in matches:
        segments.append(content[last:match.start()])
        last = match.end()

        text = link_target(match.group(1))
        resolved = link_resolver(text, current_key)

        if not resolved:
            logger.debug("Embed %r in %s could not be resolved", text, current_key)
            segments.append(not_found_notice(text))
        elif resolved in embedded:
            raw = await fetch_content(resolved)
            segments.append(quote_embedded(resolved, raw, excluded_headings))
        else:
            segments.append(f"[[{text}]]")

    segments.append(content[last:])
    return "".join(segments)
