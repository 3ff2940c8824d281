"""Helpers for persisting and restoring scraper checkpoints."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from .error_codes import CheckpointParseError, StorageError
from .logging_utils import _scraper_event
from .records import AppRecord, Checkpoint
from .utils import log_line, write_json_atomic


def _as_int(data: dict[str, Any], key: str, default: int, *, path: Path) -> int:
    value = data.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise CheckpointParseError(f"{path}: {key!r} is not an integer ({value!r})") from exc


def checkpoint_from_dict(data: Any, *, path: Path) -> Checkpoint:
    """Build a ``Checkpoint`` from decoded JSON, applying presence checks only."""

    if not isinstance(data, dict):
        raise CheckpointParseError(f"{path}: expected a JSON object, got {type(data).__name__}")

    raw_apps = data.get("apps", [])
    if not isinstance(raw_apps, list):
        raise CheckpointParseError(f"{path}: 'apps' must be a list")
    if not all(isinstance(item, dict) for item in raw_apps):
        raise CheckpointParseError(f"{path}: every entry in 'apps' must be an object")

    apps = tuple(AppRecord.from_dict(item) for item in raw_apps)
    last_app_index = _as_int(data, "lastAppIndex", -1, path=path)
    if last_app_index != len(apps) - 1:
        _scraper_event(
            "state",
            phase="checkpoint",
            kind="index_mismatch",
            last_app_index=last_app_index,
            apps=len(apps),
            path=str(path),
        )
        last_app_index = len(apps) - 1

    return Checkpoint(
        last_page=max(0, _as_int(data, "lastPage", 0, path=path)),
        last_app_index=last_app_index,
        total_apps=max(0, _as_int(data, "totalApps", 0, path=path)),
        apps=apps,
    )


def load_checkpoint(path: Path) -> Checkpoint:
    """Load the persisted checkpoint, or an empty one if none exists yet."""

    path = Path(path)
    if not path.exists():
        return Checkpoint()

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise CheckpointParseError(f"{path}: invalid JSON ({exc})") from exc
    except OSError as exc:
        raise StorageError(f"Unable to read checkpoint {path}: {exc}") from exc

    checkpoint = checkpoint_from_dict(data, path=path)
    log_line(
        f"[STATE] Resuming after page {checkpoint.last_page + 1}, "
        f"{len(checkpoint.apps)} apps recorded (last index {checkpoint.last_app_index})"
    )
    return checkpoint


def save_checkpoint(checkpoint: Checkpoint, path: Path) -> None:
    """Persist the whole checkpoint, replacing any previous file."""

    try:
        write_json_atomic(Path(path), checkpoint.to_dict())
    except OSError as exc:
        raise StorageError(f"Unable to write checkpoint {path}: {exc}") from exc
    log_line(
        f"[STATE] Checkpoint saved: page {checkpoint.last_page}, "
        f"{len(checkpoint.apps)} apps total"
    )


def save_apps(apps: Iterable[AppRecord], path: Path) -> int:
    """Write the final apps list; return the number of records written."""

    payload = [app.to_dict() for app in apps]
    try:
        write_json_atomic(Path(path), payload)
    except OSError as exc:
        raise StorageError(f"Unable to write apps file {path}: {exc}") from exc
    log_line(f"[STATE] Saved {len(payload)} apps to {path}")
    return len(payload)


__all__ = [
    "checkpoint_from_dict",
    "load_checkpoint",
    "save_checkpoint",
    "save_apps",
]
