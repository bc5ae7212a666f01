"""Read-only JSON tree export of a finished index."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..store import MetadataStore
from ..tree import build_tree


def export_tree(database: Path | str) -> dict[str, Any]:
    """Return the nested directory tree for every record in *database*.

    Records without a hash are exported as well; only the size is used.
    """

    with MetadataStore.open(database, readonly=True) as store:
        return build_tree(store.iter_sizes())


def render_tree_json(tree: dict[str, Any]) -> str:
    return json.dumps(tree, ensure_ascii=False, indent=2)
