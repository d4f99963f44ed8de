"""Expand ```smart-context fenced blocks into a set of file paths.

Each non-blank line of a block is a file or folder path relative to a base
directory. Folders expand recursively, honouring their .gitignore/.scignore.
"""

import logging
import re
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

logger = logging.getLogger(__name__)

CODEBLOCK_RE = re.compile(r"```smart-context([\s\S]*?)```")
IGNORE_FILES = (".gitignore", ".scignore")

TEXT_EXTENSIONS = {
    ".md", ".markdown", ".txt", ".text", ".log", ".csv", ".json", ".yaml", ".yml",
    ".toml", ".ini", ".cfg", ".html", ".htm", ".xml", ".css", ".js", ".ts",
    ".jsx", ".tsx", ".py", ".rb", ".go", ".rs", ".java", ".c", ".h", ".cpp",
    ".sh", ".sql", ".canvas",
}


@dataclass
class ExternalItem:
    path: str
    content: str
    char_count: int


@dataclass
class CodeblockResult:
    items: dict[str, ExternalItem] = field(default_factory=dict)
    ignored_patterns_matched: list[str] = field(default_factory=list)
    external_chars: int = 0


def load_ignore_patterns(base_path: Path, additional_excludes: list[str] | None = None) -> list[str]:
    """Read .gitignore/.scignore in `base_path`, minus blanks and comments."""
    patterns: list[str] = []
    for name in IGNORE_FILES:
        ignore_file = base_path / name
        if ignore_file.is_file():
            for line in ignore_file.read_text(encoding="utf-8", errors="replace").splitlines():
                line = line.strip()
                if line and not line.startswith("#") and not line.startswith("!"):
                    patterns.append(line)
    return patterns + list(additional_excludes or [])


def should_ignore(relative_path: str, patterns: list[str], matched: list[str] | None = None) -> bool:
    """Check a relative POSIX path against gitignore-style patterns."""
    parts = relative_path.split("/")
    for pattern in patterns:
        p = pattern.strip("/")
        if not p:
            continue
        if (
            fnmatch(relative_path, p)
            or relative_path.startswith(p + "/")
            or ("/" not in p and any(fnmatch(part, p) for part in parts))
        ):
            if matched is not None and pattern not in matched:
                matched.append(pattern)
            return True
    return False


def is_text_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in TEXT_EXTENSIONS


def list_files_recursive(dir_path: Path, patterns: list[str], matched: list[str] | None = None) -> list[str]:
    """Relative paths of all files under `dir_path` that are not ignored."""
    files: list[str] = []

    def walk(current: Path) -> None:
        for entry in sorted(current.iterdir()):
            if entry.name.startswith("."):
                continue
            rel = entry.relative_to(dir_path).as_posix()
            if should_ignore(rel, patterns, matched):
                continue
            if entry.is_dir():
                walk(entry)
            else:
                files.append(rel)

    walk(dir_path)
    return files


def find_codeblock_paths(text: str) -> list[str]:
    """Path lines from every ```smart-context block in `text`."""
    lines = []
    for match in CODEBLOCK_RE.finditer(text):
        lines += [line.strip() for line in match.group(1).split("\n") if line.strip()]
    return lines


def parse_codeblock(
    text: str,
    base_path: str | Path,
    include_non_text: bool = False,
    additional_excludes: list[str] | None = None,
) -> CodeblockResult:
    """Collect the files referenced by smart-context blocks in `text`.

    Args:
        text: Note text to scan.
        base_path: Directory the block paths are relative to.
        include_non_text: Keep files that fail the text extension check.
        additional_excludes: Extra ignore patterns applied everywhere.

    Returns:
        CodeblockResult keyed by absolute POSIX path, in first-seen order.
    """
    base = Path(base_path).expanduser().resolve()
    base_patterns = load_ignore_patterns(base, additional_excludes)
    result = CodeblockResult()
    paths: list[Path] = []

    for line in find_codeblock_paths(text):
        target = (base / line).resolve()
        if not target.exists():
            logger.warning("smart-context path not found: %s", target)
            continue

        if target.is_dir():
            patterns = load_ignore_patterns(target, additional_excludes)
            for rel in list_files_recursive(target, patterns, result.ignored_patterns_matched):
                if include_non_text or is_text_file(rel):
                    paths.append(target / rel)
        else:
            try:
                rel = target.relative_to(base).as_posix()
            except ValueError:
                rel = target.name
            if should_ignore(rel, base_patterns, result.ignored_patterns_matched):
                logger.debug("Ignored by pattern: %s", target)
                continue
            if include_non_text or is_text_file(target):
                paths.append(target)

    for path in dict.fromkeys(paths):
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            continue
        key = path.as_posix()
        result.items[key] = ExternalItem(path=key, content=content, char_count=len(content))
        result.external_chars += len(content)

    return result
