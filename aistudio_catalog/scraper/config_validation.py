from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from .config import ScraperConfig
from .error_codes import ConfigError
from .extractors import EXTRACTORS
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["cli", "healthcheck", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ConfigError(message)


def validate_runtime_config(cfg: ScraperConfig, entrypoint: Entrypoint = "cli") -> None:
    """Validate ``cfg`` before any browser work starts.

    Raises ``ConfigError`` (a ``ValueError``) on the first blocking problem.
    """

    if cfg.env_errors:
        _raise_config_error(
            f"Invalid environment: {'; '.join(cfg.env_errors)}.",
            entrypoint=entrypoint,
            error="env_invalid",
        )

    parsed = urlparse(cfg.base_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        _raise_config_error(
            f"base_url must be an http(s) URL, got {cfg.base_url!r}.",
            entrypoint=entrypoint,
            error="base_url_invalid",
        )

    if cfg.items_per_page < 1:
        _raise_config_error(
            "items_per_page must be at least 1.",
            entrypoint=entrypoint,
            error="items_per_page_invalid",
        )

    if cfg.settle_delay_ms < 0:
        _raise_config_error(
            "settle_delay_ms must be non-negative.",
            entrypoint=entrypoint,
            error="settle_delay_invalid",
        )

    timeout_fields = [
        ("nav_timeout_seconds", cfg.nav_timeout_seconds),
        ("selector_timeout_seconds", cfg.selector_timeout_seconds),
    ]
    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
            )

    if cfg.extractor not in EXTRACTORS:
        _raise_config_error(
            f"Unknown extractor {cfg.extractor!r}; expected one of: {', '.join(sorted(EXTRACTORS))}.",
            entrypoint=entrypoint,
            error="extractor_unknown",
        )

    if cfg.page_query_param is not None and not cfg.page_query_param.strip():
        _raise_config_error(
            "page_query_param must not be blank when set.",
            entrypoint=entrypoint,
            error="page_query_param_blank",
        )


__all__ = ["validate_runtime_config", "Entrypoint"]
