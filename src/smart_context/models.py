"""Data models used throughout smart-context."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ContextItem:
    """One key tracked by a SmartContext."""
    key: str
    depth: int = 0
    is_link: bool = False
    is_inlink: bool = False
    excluded: bool = False
    mtime: float | None = None
    size: int | None = None
    via: str | None = None  # key this item was discovered from


@dataclass
class LinkGraphEntry:
    """A single traversal hit. Never persisted."""
    depth: int
    item: Any  # VaultSource-like: key, outlinks, inlinks, mtime, size
    direction: str = "out"
    via: str | None = None


@dataclass
class ExclusionResult:
    """Output of the heading exclusion filter."""
    processed_content: str
    excluded_count: int = 0
    excluded_sections: dict[str, int] = field(default_factory=dict)

    def merge(self, other: "ExclusionResult") -> None:
        """Add another result's counters into this one."""
        self.excluded_count += other.excluded_count
        for heading, count in other.excluded_sections.items():
            self.excluded_sections[heading] = self.excluded_sections.get(heading, 0) + count


@dataclass
class LinkRecord:
    """A linked (depth > 0) item handed to the compiler."""
    content: str
    type: str  # "OUT-LINK" or "IN-LINK"
    depth: int
    to: str | None = None
    from_: str | None = None

    @property
    def item_key(self) -> str:
        return self.to or self.from_ or ""


@dataclass
class CompileStats:
    item_count: int = 0
    link_count: int = 0
    char_count: int = 0
    excluded_count: int = 0
    excluded_sections: dict[str, int] = field(default_factory=dict)


@dataclass
class CompileResult:
    context: str
    stats: CompileStats


@dataclass
class DepthInfo:
    """One row of the depth-selection scan."""
    depth: int
    label: str
    approx_tokens: int = 0
    stats: CompileStats | None = None
    context: str = ""
    calculated: bool = True
