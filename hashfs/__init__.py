"""HashFS package initialization."""

from __future__ import annotations

from .services.export_service import export_tree
from .services.index_service import IndexResult, build_index
from .store import StoreError

__all__ = [
    "__version__",
    "IndexResult",
    "StoreError",
    "build_index",
    "export_tree",
    "get_version",
]

__version__ = "0.3.9"


def get_version() -> str:
    """Return the current package version."""
    return __version__
