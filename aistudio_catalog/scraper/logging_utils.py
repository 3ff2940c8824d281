from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from .utils import log_line


def _render(value: Any) -> str:
    if isinstance(value, Enum):
        return repr(value.value)
    if isinstance(value, Path):
        return repr(str(value))
    return repr(value)


def _scraper_event(label: str = "", *, phase: Any = None, **fields: Any) -> None:
    """Emit one ``[SCRAPER][LABEL] key=value, ...`` line.

    ``label`` falls back to ``phase`` when empty. ``phase`` is always written
    first so lines from the same run stage line up; the remaining fields are
    sorted. Enum members (``RunPhase``) and paths are rendered by value.
    """

    try:
        tag = label or (_render(phase).strip("'\"") if phase else "event")
        parts = [f"phase={_render(phase)}"] if phase else []
        parts.extend(f"{key}={_render(value)}" for key, value in sorted(fields.items()))
        log_line(f"[SCRAPER][{tag.upper()}] {', '.join(parts)}")
    except Exception:
        # Never let logging break the scraper.
        return


__all__ = ["_scraper_event"]
