from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from . import config

LOGGER = logging.getLogger("aistudio_catalog")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE


def _configure_logger(log_path: Path, *, console: bool = True) -> None:
    """Configure the shared application logger to write to ``log_path``.

    With ``console=False`` lines only reach the file, which keeps stdout free
    for commands that print their own report.
    """

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    log_path.parent.mkdir(parents=True, exist_ok=True)

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)

    LOGGER.setLevel(logging.INFO)
    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        LOGGER.addHandler(stream_handler)
    LOGGER.addHandler(file_handler)
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    """Initialise the logger lazily using the default log file."""

    if _LOGGER_INITIALISED:
        return

    _configure_logger(config.LOG_FILE)


def setup_run_logger(
    log_dir: Path | None = None, *, prefix: str = "scrape", console: bool = True
) -> Path:
    """Rotate to a fresh timestamped ``<prefix>_<ts>.log`` file in ``log_dir``."""

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_path = Path(log_dir or config.LOG_DIR) / f"{prefix}_{timestamp}.log"
    _configure_logger(log_path, console=console)
    LOGGER.info("Logging to %s", log_path)
    return log_path


def get_current_log_path() -> Path:
    """Return the path to the log file currently receiving log lines."""

    _ensure_logger()
    return _CURRENT_LOG_FILE


def ensure_dirs(dirs: Iterable[Path]) -> list[Path]:
    """Create each directory in ``dirs`` if missing; return the ones created."""

    created: list[Path] = []
    for directory in dirs:
        path = Path(directory)
        if path.is_dir():
            continue
        path.mkdir(parents=True, exist_ok=True)
        created.append(path)
    return created


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.info(message)


def write_json_atomic(path: Path, payload: Any) -> None:
    """Serialise ``payload`` to ``path`` via a sibling temp file and rename."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.flush()
        os.fsync(handle.fileno())
    tmp_path.replace(path)


def load_json_file(path: Path, default: Any = None) -> Any:
    """Return the decoded JSON at ``path`` or ``default`` when unreadable."""

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError):
        return default


def save_json_file(path: Path, payload: Any) -> None:
    write_json_atomic(path, payload)


def is_writable_dir(path: Path) -> bool:
    """Return ``True`` when ``path`` exists (or can be created) and accepts writes."""

    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(path, os.W_OK)


__all__ = [
    "LOGGER",
    "ensure_dirs",
    "get_current_log_path",
    "is_writable_dir",
    "load_json_file",
    "log_line",
    "save_json_file",
    "setup_run_logger",
    "write_json_atomic",
]
