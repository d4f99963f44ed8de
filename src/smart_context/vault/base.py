"""Abstract vault interface and factory function."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class OutLink:
    key: str
    embedded: bool = False


@dataclass
class VaultSource:
    """Graph node for one note: what it links to and what links to it."""
    key: str
    outlinks: list[OutLink] = field(default_factory=list)
    inlinks: list[str] = field(default_factory=list)
    mtime: float | None = None
    size: int | None = None


class VaultBase(ABC):
    """Collaborators the compilation engine reads notes and links through."""

    @abstractmethod
    async def read(self, key: str) -> str:
        """Return the text for a key. May raise if the key is missing."""

    @abstractmethod
    def resolve_link(self, link_text: str, current_key: str | None = None) -> str | None:
        """Resolve wikilink text, as written in `current_key`, to a vault key."""

    @abstractmethod
    def embedded_keys(self, key: str) -> set[str]:
        """Keys that `key` embeds (as opposed to merely links)."""

    @abstractmethod
    def links_for(self, key: str) -> dict[str, list[str]]:
        """Resolved outbound references of `key`: {"links": [...], "embeds": [...]}."""

    @abstractmethod
    def get(self, key: str) -> VaultSource | None:
        """Graph node for a key, or None if the key is not a vault note."""

    def stat(self, key: str) -> tuple[float | None, int | None]:
        """Provenance (mtime, size) for a key."""
        source = self.get(key)
        return (source.mtime, source.size) if source else (None, None)

    def key_for_path(self, path: str) -> str:
        """Map a filesystem path to the key this vault knows it by."""
        return path


def get_vault(config: dict[str, Any]) -> VaultBase:
    """Factory: return the vault described by config."""
    from .source import Vault
    return Vault(config["vault_path"])
