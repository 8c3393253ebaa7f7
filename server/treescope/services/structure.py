"""Read-only helpers over a scanned tree: text rendering, path lists, filtering and diffing."""

import math
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from treescope.models import DiffEntry, DirectoryNode, StructureDiff, TreeNode

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_size(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 B"
    i = min(int(math.log(num_bytes, 1024)), len(SIZE_UNITS) - 1)
    return f"{num_bytes / 1024 ** i:.2f} {SIZE_UNITS[i]}"


def format_as_tree(structure: DirectoryNode, show_size: bool = False, show_mod_time: bool = False) -> str:
    lines: List[str] = []

    def traverse(node: TreeNode, prefix: str, is_last: bool) -> None:
        connector = "└── " if is_last else "├── "
        line = f"{prefix}{connector}{node.name}"
        if node.type == "directory":
            line += "/"

        if show_size and node.size:
            line += f" ({format_size(node.size)})"
        if show_mod_time and node.type == "file" and node.modified_at is not None:
            day = datetime.fromtimestamp(node.modified_at, tz=timezone.utc).date().isoformat()
            line += f" [{day}]"
        lines.append(line)

        if node.type == "directory":
            child_prefix = prefix + ("    " if is_last else "│   ")
            for index, child in enumerate(node.children):
                traverse(child, child_prefix, index == len(node.children) - 1)

    traverse(structure, "", True)
    return "\n".join(lines) + "\n"


def to_paths(
    structure: DirectoryNode,
    include_files: bool = True,
    include_dirs: bool = True,
    relative: bool = True,
) -> List[str]:
    paths: List[str] = []

    def traverse(node: TreeNode) -> None:
        node_path = node.relative_path if relative else node.path
        if node.type == "directory":
            if include_dirs:
                paths.append(node_path)
            for child in node.children:
                traverse(child)
        elif include_files:
            paths.append(node_path)

    traverse(structure)
    return paths


def filter_tree(structure: TreeNode, predicate: Callable[[TreeNode], bool]) -> Optional[TreeNode]:
    """
    Return a copy of the tree keeping only nodes the predicate accepts.

    A rejected directory drops its whole subtree.
    """
    if not predicate(structure):
        return None
    if structure.type == "directory":
        kept = [filter_tree(child, predicate) for child in structure.children]
        return structure.model_copy(update={"children": [c for c in kept if c is not None]})
    return structure


def _path_map(structure: DirectoryNode) -> Dict[str, TreeNode]:
    mapping: Dict[str, TreeNode] = {}

    def traverse(node: TreeNode) -> None:
        # The root is always ".", so scans of differently named folders line up.
        mapping[node.relative_path] = node
        if node.type == "directory":
            for child in node.children:
                traverse(child)

    traverse(structure)
    return mapping


def diff_structures(
    structure_a: DirectoryNode,
    structure_b: DirectoryNode,
    compare_content: bool = False,
    compare_size: bool = True,
    compare_mod_time: bool = False,
) -> StructureDiff:
    """Compare two scans by relative path."""
    map_a = _path_map(structure_a)
    map_b = _path_map(structure_b)
    result = StructureDiff()

    for path, node_a in map_a.items():
        if path not in map_b:
            result.removed.append(DiffEntry(path=path, type=node_a.type))

    for path, node_b in map_b.items():
        node_a = map_a.get(path)
        if node_a is None:
            result.added.append(DiffEntry(path=path, type=node_b.type))
            continue

        changes: Dict[str, Dict] = {}
        if node_a.type != node_b.type:
            changes["type"] = {"from": node_a.type, "to": node_b.type}
        elif node_b.type == "file":
            if compare_size and node_a.size != node_b.size:
                changes["size"] = {"from": node_a.size, "to": node_b.size}
            if (
                compare_mod_time
                and node_a.modified_at is not None
                and node_b.modified_at is not None
                and node_a.modified_at != node_b.modified_at
            ):
                changes["modified_at"] = {"from": node_a.modified_at, "to": node_b.modified_at}
            if compare_content and node_a.content != node_b.content:
                changes["content"] = {"from": None, "to": None}
            if node_a.hash and node_b.hash and node_a.hash != node_b.hash:
                changes["hash"] = {"from": node_a.hash, "to": node_b.hash}

        entry = DiffEntry(path=path, type=node_b.type, modifications=changes)
        if changes:
            result.modified.append(entry)
        else:
            result.unchanged.append(entry)

    return result


def strip_content(structure: TreeNode) -> TreeNode:
    """Copy of the tree without file contents, for responses that only need the shape."""
    if structure.type == "directory":
        return structure.model_copy(
            update={"children": [strip_content(child) for child in structure.children]}
        )
    if structure.content is None:
        return structure
    return structure.model_copy(update={"content": None})
