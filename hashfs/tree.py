"""Turn flat index paths into a nested directory tree for JSON export."""

from __future__ import annotations

import re
from typing import Any, Iterable

ROOT_NAME = "."
_SEPARATORS = re.compile(r"[\\/]")


def split_segments(path: str) -> list[str]:
    """Split *path* on both separator styles, dropping empty segments."""
    return [segment for segment in _SEPARATORS.split(path) if segment]


def _child_directory(siblings: list[dict[str, Any]], name: str) -> list[dict[str, Any]]:
    for node in siblings:
        if node["name"] == name and "children" in node:
            return node["children"]
    node = {"name": name, "children": []}
    siblings.append(node)
    return node["children"]


def build_tree(entries: Iterable[tuple[str, int]]) -> dict[str, Any]:
    """Build ``{"name": ".", "children": [...]}`` from ``(path, size)`` pairs.

    Directories are matched by exact segment name with a linear scan of their
    siblings; files become ``{"name": ..., "value": size}`` leaves.
    """

    root: dict[str, Any] = {"name": ROOT_NAME, "children": []}
    for path, size in entries:
        segments = split_segments(path)
        if not segments:
            continue
        siblings = root["children"]
        for segment in segments[:-1]:
            siblings = _child_directory(siblings, segment)
        siblings.append({"name": segments[-1], "value": size})
    return root
