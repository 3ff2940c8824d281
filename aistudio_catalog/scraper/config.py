"""Configuration constants for the AI Studio catalog scraper."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Tuple


def _env_path(env_var: str, default: Path) -> Path:
    raw = os.getenv(env_var, "").strip()
    return Path(raw) if raw else default


def _env_flag(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


# Unparsable values found while reading the environment; reported by validation.
ENV_ERRORS: list[str] = []


def _env_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        ENV_ERRORS.append(f"{env_var}={raw!r} is not an integer")
        return default


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


DEFAULT_BASE_URL: str = "https://aistudio.google.com/apps?source=user"

OUTPUT_DIR: Path = _env_path("CATALOG_OUTPUT_DIR", Path("./data"))
THUMBNAILS_DIR: Path = _env_path("CATALOG_THUMBNAILS_DIR", Path("./thumbnails"))
CHECKPOINT_FILE: Path = _env_path("CATALOG_CHECKPOINT_FILE", OUTPUT_DIR / "checkpoint.json")
APPS_FILE: Path = _env_path("CATALOG_APPS_FILE", OUTPUT_DIR / "apps.json")
LOG_DIR: Path = _env_path("CATALOG_LOG_DIR", OUTPUT_DIR / "logs")
LOG_FILE: Path = LOG_DIR / "latest.log"
SUMMARY_FILE: Path = _env_path("CATALOG_SUMMARY_FILE", OUTPUT_DIR / "last_summary.json")

BASE_URL: str = os.getenv("CATALOG_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL

# The listing renders a fixed page size; it is not selectable from the UI.
ITEMS_PER_PAGE: int = _env_int("CATALOG_ITEMS_PER_PAGE", 50)
SETTLE_DELAY_MS: int = _env_int("CATALOG_SETTLE_DELAY_MS", 1000)

# Playwright timeouts (seconds)
# Navigation timeout for page.goto and networkidle waits.
NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds("CATALOG_NAV_TIMEOUT_SECONDS", 30)
# Selector waits (app rows, range label, pagination controls).
SELECTOR_TIMEOUT_SECONDS: int = _parse_timeout_seconds("CATALOG_SELECTOR_TIMEOUT_SECONDS", 10)

HEADLESS: bool = _env_flag("CATALOG_HEADLESS", True)
EXTRACTOR: str = os.getenv("CATALOG_EXTRACTOR", "in_page").strip().lower() or "in_page"
PAGE_QUERY_PARAM: Optional[str] = os.getenv("CATALOG_PAGE_QUERY_PARAM", "").strip() or None
USER_DATA_DIR: Optional[Path] = (
    Path(os.environ["CATALOG_USER_DATA_DIR"])
    if os.getenv("CATALOG_USER_DATA_DIR", "").strip()
    else None
)

USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class ScraperConfig:
    """Every option the orchestrator recognises, fixed for the whole run."""

    base_url: str = DEFAULT_BASE_URL
    output_dir: Path = Path("./data")
    thumbnails_dir: Path = Path("./thumbnails")
    checkpoint_file: Path = Path("./data/checkpoint.json")
    apps_file: Path = Path("./data/apps.json")
    log_dir: Path = Path("./data/logs")
    summary_file: Path = Path("./data/last_summary.json")
    items_per_page: int = 50
    settle_delay_ms: int = 1000
    nav_timeout_seconds: int = 30
    selector_timeout_seconds: int = 10
    headless: bool = True
    extractor: str = "in_page"
    page_query_param: Optional[str] = None
    user_data_dir: Optional[Path] = None
    env_errors: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls) -> "ScraperConfig":
        """Build a config from the module-level (environment derived) values."""

        return cls(
            base_url=BASE_URL,
            output_dir=OUTPUT_DIR,
            thumbnails_dir=THUMBNAILS_DIR,
            checkpoint_file=CHECKPOINT_FILE,
            apps_file=APPS_FILE,
            log_dir=LOG_DIR,
            summary_file=SUMMARY_FILE,
            items_per_page=ITEMS_PER_PAGE,
            settle_delay_ms=SETTLE_DELAY_MS,
            nav_timeout_seconds=NAV_TIMEOUT_SECONDS,
            selector_timeout_seconds=SELECTOR_TIMEOUT_SECONDS,
            headless=HEADLESS,
            extractor=EXTRACTOR,
            page_query_param=PAGE_QUERY_PARAM,
            user_data_dir=USER_DATA_DIR,
            env_errors=tuple(ENV_ERRORS),
        )

    @classmethod
    def for_output_dir(cls, output_dir: Path, **overrides: Any) -> "ScraperConfig":
        """Return a config whose data files all live under ``output_dir``."""

        output_dir = Path(output_dir)
        base = cls.from_env()
        return replace(
            base,
            output_dir=output_dir,
            checkpoint_file=output_dir / "checkpoint.json",
            apps_file=output_dir / "apps.json",
            log_dir=output_dir / "logs",
            summary_file=output_dir / "last_summary.json",
            **overrides,
        )

    def with_overrides(self, **overrides: Any) -> "ScraperConfig":
        """Return a copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    @property
    def nav_timeout_ms(self) -> int:
        return self.nav_timeout_seconds * 1000

    @property
    def selector_timeout_ms(self) -> int:
        return self.selector_timeout_seconds * 1000


__all__ = ["ScraperConfig", "DEFAULT_BASE_URL"]
