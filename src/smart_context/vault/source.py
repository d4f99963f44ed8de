"""Filesystem-backed vault of markdown notes linked with [[wikilinks]]."""

import asyncio
import logging
import posixpath
from pathlib import Path

from ..text.headings import extract_fragment
from ..text.links import parse_links
from .base import OutLink, VaultBase, VaultSource

logger = logging.getLogger(__name__)


def split_key(key: str) -> tuple[str, str]:
    """Split `path#fragment` into (path, fragment)."""
    path, _, fragment = key.partition("#")
    return path, fragment


class Vault(VaultBase):
    """Index of the notes under a directory, with resolved link edges.

    Keys are vault-relative POSIX paths such as ``notes/idea.md``. The index is
    built once on construction; call `refresh()` after files change.
    """

    def __init__(self, vault_path: str | Path):
        self.vault_path = Path(vault_path)
        self.sources: dict[str, VaultSource] = {}
        self._by_name: dict[str, list[str]] = {}
        self._embeds: dict[str, set[str]] = {}
        self._links: dict[str, dict[str, list[str]]] = {}
        self.refresh()

    def refresh(self) -> None:
        """Re-scan the vault and rebuild the link graph."""
        self.sources = {}
        self._by_name = {}
        raw_links: dict[str, tuple[list[str], list[str]]] = {}

        if not self.vault_path.exists():
            logger.warning("Vault not found: %s", self.vault_path)
            self._embeds, self._links = {}, {}
            return

        for md_file in sorted(self.vault_path.rglob("*.md")):
            rel = md_file.relative_to(self.vault_path)
            if any(part.startswith(".") for part in rel.parts):
                continue
            key = rel.as_posix()
            stat = md_file.stat()
            self.sources[key] = VaultSource(key=key, mtime=stat.st_mtime, size=stat.st_size)
            self._by_name.setdefault(md_file.stem.lower(), []).append(key)
            text = md_file.read_text(encoding="utf-8", errors="replace")
            raw_links[key] = parse_links(text)

        self._embeds = {}
        self._links = {}
        for key, (links, embeds) in raw_links.items():
            resolved_links = self._resolve_all(links, key)
            resolved_embeds = self._resolve_all(embeds, key)
            self._links[key] = {"links": resolved_links, "embeds": resolved_embeds}
            self._embeds[key] = set(resolved_embeds)

            source = self.sources[key]
            for target in resolved_links + resolved_embeds:
                if target == key or any(o.key == target for o in source.outlinks):
                    continue
                source.outlinks.append(OutLink(key=target, embedded=target in self._embeds[key]))
                inlinks = self.sources[target].inlinks
                if key not in inlinks:
                    inlinks.append(key)

        logger.debug("Indexed %d notes in %s", len(self.sources), self.vault_path)

    def _resolve_all(self, targets: list[str], current_key: str) -> list[str]:
        resolved = []
        for text in targets:
            key = self.resolve_link(text, current_key)
            if key and key not in resolved:
                resolved.append(key)
        return resolved

    def resolve_link(self, link_text: str, current_key: str | None = None) -> str | None:
        """Resolve link text the way Obsidian does, ignoring any #fragment.

        Tries the exact key, the key with `.md` appended, a path relative to
        the current note's folder, then a basename match anywhere in the vault
        (shortest path wins).
        """
        path, _ = split_key(link_text.strip())
        path = path.strip()
        if not path:
            return split_key(current_key)[0] if current_key else None

        candidates = [path] if path.endswith(".md") else [path, f"{path}.md"]
        if current_key:
            folder = posixpath.dirname(split_key(current_key)[0])
            if folder:
                candidates += [posixpath.normpath(posixpath.join(folder, c)) for c in list(candidates)]
        for candidate in candidates:
            if candidate in self.sources:
                return candidate

        name = posixpath.basename(path)
        if name.lower().endswith(".md"):
            name = name[:-3]
        matches = self._by_name.get(name.lower(), [])
        if matches:
            return min(matches, key=lambda k: (k.count("/"), k))
        return None

    def _path_for(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.vault_path / p

    async def read(self, key: str) -> str:
        """Read a note (or an absolute path), narrowing to `#fragment` if present."""
        path, fragment = split_key(key)
        text = await asyncio.to_thread(
            self._path_for(path).read_text, encoding="utf-8", errors="replace"
        )
        if fragment:
            return extract_fragment(text, fragment)
        return text

    def embedded_keys(self, key: str) -> set[str]:
        return set(self._embeds.get(split_key(key)[0], set()))

    def links_for(self, key: str) -> dict[str, list[str]]:
        found = self._links.get(split_key(key)[0], {"links": [], "embeds": []})
        return {"links": list(found["links"]), "embeds": list(found["embeds"])}

    def get(self, key: str) -> VaultSource | None:
        return self.sources.get(key)

    def stat(self, key: str) -> tuple[float | None, int | None]:
        """Provenance (mtime, size) for any key, including absolute paths."""
        path, _ = split_key(key)
        source = self.sources.get(path)
        if source:
            return source.mtime, source.size
        p = self._path_for(path)
        if p.is_file():
            st = p.stat()
            return st.st_mtime, st.st_size
        return None, None

    def key_for_path(self, path: str) -> str:
        """Vault-relative key for paths inside the vault, else the path itself."""
        try:
            return Path(path).resolve().relative_to(self.vault_path.resolve()).as_posix()
        except ValueError:
            return path

    def keys_under(self, folder: str) -> list[str]:
        """All note keys inside a folder. `foo` never matches `foobar/...`."""
        prefix = folder.strip().rstrip("/") + "/"
        if prefix == "/":
            return list(self.sources)
        return [k for k in self.sources if k.startswith(prefix)]
