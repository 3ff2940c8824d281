"""App records, checkpoint structure and the identifier policy."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping

ID_PREFIX = "app_"
ID_WIDTH = 4
THUMBNAILS_PREFIX = "thumbnails"


def format_app_id(position: int) -> str:
    """Return the identifier for the ``position``-th record (1-based)."""

    if position < 1:
        raise ValueError(f"position must be >= 1, got {position}")
    return f"{ID_PREFIX}{position:0{ID_WIDTH}d}"


def thumbnail_path(app_id: str) -> str:
    return f"{THUMBNAILS_PREFIX}/{app_id}.png"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class RawApp:
    """One listing row as extracted, before an id is assigned."""

    title: str
    url: str
    description: str = ""
    last_modified: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RawApp":
        return cls(
            title=_text(data.get("title")),
            url=_text(data.get("url")),
            description=_text(data.get("description")),
            last_modified=_text(data.get("lastModified", data.get("last_modified"))),
        )


@dataclass(frozen=True)
class AppRecord:
    title: str
    url: str
    description: str
    last_modified: str
    id: str
    thumbnail: str

    @classmethod
    def from_raw(cls, raw: RawApp, position: int) -> "AppRecord":
        app_id = format_app_id(position)
        return cls(
            title=raw.title,
            url=raw.url,
            description=raw.description,
            last_modified=raw.last_modified,
            id=app_id,
            thumbnail=thumbnail_path(app_id),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppRecord":
        return cls(
            title=_text(data.get("title")),
            url=_text(data.get("url")),
            description=_text(data.get("description")),
            last_modified=_text(data.get("lastModified")),
            id=_text(data.get("id")),
            thumbnail=_text(data.get("thumbnail")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "lastModified": self.last_modified,
            "id": self.id,
            "thumbnail": self.thumbnail,
        }


@dataclass(frozen=True)
class Checkpoint:
    """Resume state: the last fully saved page and every record so far."""

    last_page: int = 0
    last_app_index: int = -1
    total_apps: int = 0
    apps: tuple[AppRecord, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.apps

    @property
    def resume_page(self) -> int:
        """First page index that has not been persisted yet."""

        return 0 if self.is_empty else self.last_page + 1

    @property
    def next_app_id(self) -> str:
        return format_app_id(len(self.apps) + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastPage": self.last_page,
            "lastAppIndex": self.last_app_index,
            "totalApps": self.total_apps,
            "apps": [app.to_dict() for app in self.apps],
        }

    def apps_as_dicts(self) -> List[Dict[str, str]]:
        return [app.to_dict() for app in self.apps]


def merge_page(
    checkpoint: Checkpoint,
    raw_apps: Iterable[RawApp],
    *,
    page_index: int,
    total_apps: int,
) -> tuple[Checkpoint, List[AppRecord]]:
    """Return ``checkpoint`` with ``raw_apps`` appended and the new records.

    Ids continue from the current record count. Rows whose URL is already in
    the checkpoint are dropped, so replaying a page cannot duplicate records
    or hand out a second id for the same app. The input checkpoint is left
    untouched.
    """

    seen_urls = {app.url for app in checkpoint.apps}
    apps = list(checkpoint.apps)
    added: List[AppRecord] = []
    for raw in raw_apps:
        if raw.url in seen_urls:
            continue
        seen_urls.add(raw.url)
        record = AppRecord.from_raw(raw, len(apps) + 1)
        apps.append(record)
        added.append(record)

    merged = replace(
        checkpoint,
        last_page=page_index,
        last_app_index=len(apps) - 1,
        total_apps=total_apps,
        apps=tuple(apps),
    )
    return merged, added


__all__ = [
    "AppRecord",
    "Checkpoint",
    "RawApp",
    "format_app_id",
    "merge_page",
    "thumbnail_path",
]
