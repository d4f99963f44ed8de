"""Heading-aware filtering of markdown text.

Sections are delimited by headings: a section runs from its heading line
through the last line before the next heading of the same or a shallower
level. Fenced code blocks (``` or ~~~) are opaque, so a ``# comment`` inside
a fence is never treated as a heading.
"""

import re

from ..models import ExclusionResult

HEADING_RE = re.compile(r"^(#+)\s+(.*)$")
FENCE_RE = re.compile(r"^(`{3,}|~{3,})")


class FenceTracker:
    """Tracks whether the scanner is inside a fenced code block."""

    def __init__(self):
        self.marker = ""

    @property
    def inside(self) -> bool:
        return bool(self.marker)

    def feed(self, line: str) -> bool:
        """Consume a line. Returns True if the line is a fence marker."""
        match = FENCE_RE.match(line.strip())
        if not match:
            return False
        symbol = match.group(1)
        if not self.marker:
            self.marker = symbol
        elif symbol[0] == self.marker[0] and len(symbol) >= len(self.marker):
            self.marker = ""
        return True


def strip_excluded_sections(content: str, excluded_headings: list[str] | None) -> ExclusionResult:
    """Remove every section whose heading text exactly matches an excluded heading.

    Args:
        content: Raw markdown text.
        excluded_headings: Heading texts to drop, compared after trimming.

    Returns:
        ExclusionResult with the filtered text and per-heading counters.
    """
    if not excluded_headings:
        return ExclusionResult(processed_content=content)

    excluded = set(excluded_headings)
    result = ExclusionResult(processed_content="")
    kept: list[str] = []
    fence = FenceTracker()
    exclude_level: int | None = None

    for line in content.split("\n"):
        if fence.feed(line) or fence.inside:
            if exclude_level is None:
                kept.append(line)
            continue

        match = HEADING_RE.match(line)
        if not match:
            if exclude_level is None:
                kept.append(line)
            continue

        level = len(match.group(1))
        text = match.group(2).strip()

        if text in excluded:
            result.excluded_count += 1
            result.excluded_sections[text] = result.excluded_sections.get(text, 0) + 1
            if exclude_level is None or level < exclude_level:
                exclude_level = level
            continue

        if exclude_level is not None:
            if level <= exclude_level:
                exclude_level = None
                kept.append(line)
        else:
            kept.append(line)

    result.processed_content = "\n".join(kept)
    return result


def format_excluded_sections(excluded_sections: dict[str, int]) -> str:
    """Render excluded section counters as a bullet list for notices."""
    if not excluded_sections:
        return ""
    lines = [
        f'  • "{section}"' if count == 1 else f'  • "{section}" ({count}×)'
        for section, count in excluded_sections.items()
    ]
    return ":\n" + "\n".join(lines)


def extract_fragment(content: str, fragment: str) -> str:
    """Return the part of `content` addressed by a `#Heading` or `#^block` fragment.

    Returns an empty string if the fragment is not found.
    """
    fragment = fragment.lstrip("#").strip()
    if not fragment:
        return content

    if fragment.startswith("^"):
        block_re = re.compile(rf"(?:^|\s){re.escape(fragment)}\s*$")
        for line in content.split("\n"):
            if block_re.search(line):
                return block_re.sub("", line).rstrip()
        return ""

    # Nested heading fragments (note#A#B) address the innermost heading.
    target = fragment.split("#")[-1].strip()
    fence = FenceTracker()
    section: list[str] = []
    section_level: int | None = None

    for line in content.split("\n"):
        if fence.feed(line) or fence.inside:
            if section_level is not None:
                section.append(line)
            continue
        match = HEADING_RE.match(line)
        if match:
            level = len(match.group(1))
            if section_level is not None and level <= section_level:
                break
            if section_level is None and match.group(2).strip() == target:
                section_level = level
        if section_level is not None:
            section.append(line)

    return "\n".join(section)
