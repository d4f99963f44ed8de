"""Path tree rendering for the {{FILE_TREE}} placeholder."""

import re
from dataclasses import dataclass, field

EXTENSION_RE = re.compile(r"\.[a-zA-Z0-9]+$")


@dataclass
class TreeNode:
    name: str
    path: str = ""
    children: dict[str, "TreeNode"] = field(default_factory=dict)
    selected: bool = False
    is_file: bool = False


def filter_redundant_blocks(keys: list[str]) -> list[str]:
    """Drop `file.md#...` keys whose parent file is itself present."""
    parents = {k for k in keys if "#" not in k}
    return [k for k in keys if "#" not in k or k.split("#")[0] not in parents]


def _is_folder(key: str) -> bool:
    # heuristic: no extension means folder
    return "#" not in key and not EXTENSION_RE.search(key)


def build_path_tree(keys: list[str]) -> TreeNode:
    """Nest keys into a tree, skipping keys already covered by a selected folder."""
    keys = filter_redundant_blocks(list(dict.fromkeys(keys)))
    folders = [k.rstrip("/") for k in keys if _is_folder(k)]
    root = TreeNode(name="")

    for key in keys:
        path = key.rstrip("/") if _is_folder(key) else key
        if any(path.startswith(folder + "/") for folder in folders if folder != path):
            continue
        segments = [s for s in path.split("/") if s]
        node = root
        running = ""
        for idx, seg in enumerate(segments):
            running = f"{running}/{seg}" if running else seg
            last = idx == len(segments) - 1
            if seg not in node.children:
                node.children[seg] = TreeNode(
                    name=seg,
                    path=running,
                    is_file=last and not _is_folder(path),
                )
            node = node.children[seg]
            if last:
                node.selected = True
    return root


def _sorted_children(node: TreeNode) -> list[TreeNode]:
    return sorted(node.children.values(), key=lambda c: (c.is_file, c.name))


def render_file_tree(keys: list[str]) -> str:
    """Render keys as an indented tree, directories before files."""
    lines: list[str] = []

    def walk(node: TreeNode, prefix: str) -> None:
        children = _sorted_children(node)
        for i, child in enumerate(children):
            last = i == len(children) - 1
            label = child.name if child.is_file else f"{child.name}/"
            lines.append(f"{prefix}{'└── ' if last else '├── '}{label}")
            walk(child, prefix + ("    " if last else "│   "))

    walk(build_path_tree(keys), "")
    return "\n".join(lines)
