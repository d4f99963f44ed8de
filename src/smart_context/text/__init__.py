"""Text transforms applied to every compiled item."""

from .embeds import inline_embedded_links
from .headings import extract_fragment, format_excluded_sections, strip_excluded_sections
from .links import parse_links, remove_included_link_lines

__all__ = [
    "extract_fragment",
    "format_excluded_sections",
    "inline_embedded_links",
    "parse_links",
    "remove_included_link_lines",
    "strip_excluded_sections",
]
