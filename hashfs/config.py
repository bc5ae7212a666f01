"""Global configuration management for HashFS."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

DEFAULT_CONFIG_DIR = Path(os.path.expanduser("~")) / ".hashfs"
CONFIG_DIR = DEFAULT_CONFIG_DIR
CONFIG_FILE = CONFIG_DIR / "config.json"
DEFAULT_DATABASE = "hashes.db"
DEFAULT_CONCURRENCY = 6
DEFAULT_RUNNING_LONG_SECONDS = 60.0
DEFAULT_ABANDON_SECONDS = 300.0
DEFAULT_PROGRESS_INTERVAL_SECONDS = 10.0
DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass
class Config:
    concurrency: int = DEFAULT_CONCURRENCY
    running_long_seconds: float = DEFAULT_RUNNING_LONG_SECONDS
    abandon_seconds: float = DEFAULT_ABANDON_SECONDS
    progress_interval_seconds: float = DEFAULT_PROGRESS_INTERVAL_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    database: str = DEFAULT_DATABASE


def _coerce_int(value: object, default: int) -> int:
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 1 else default


def _coerce_seconds(value: object, default: float) -> float:
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def load_config() -> Config:
    if not CONFIG_FILE.exists():
        return Config()
    raw = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        return Config()
    return Config(
        concurrency=_coerce_int(raw.get("concurrency"), DEFAULT_CONCURRENCY),
        running_long_seconds=_coerce_seconds(
            raw.get("running_long_seconds"), DEFAULT_RUNNING_LONG_SECONDS
        ),
        abandon_seconds=_coerce_seconds(raw.get("abandon_seconds"), DEFAULT_ABANDON_SECONDS),
        progress_interval_seconds=_coerce_seconds(
            raw.get("progress_interval_seconds"), DEFAULT_PROGRESS_INTERVAL_SECONDS
        ),
        chunk_size=_coerce_int(raw.get("chunk_size"), DEFAULT_CHUNK_SIZE),
        database=(raw.get("database") or "").strip() or DEFAULT_DATABASE,
    )


def save_config(config: Config) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {
        "concurrency": config.concurrency,
        "running_long_seconds": config.running_long_seconds,
        "abandon_seconds": config.abandon_seconds,
        "progress_interval_seconds": config.progress_interval_seconds,
        "chunk_size": config.chunk_size,
    }
    if config.database:
        data["database"] = config.database
    CONFIG_FILE.write_text(
        json.dumps(data, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
