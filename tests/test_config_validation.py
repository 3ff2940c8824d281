from __future__ import annotations

import pytest

from aistudio_catalog.scraper import config_validation
from aistudio_catalog.scraper.config_validation import validate_runtime_config
from aistudio_catalog.scraper.error_codes import ConfigError


def test_default_config_is_valid(make_config) -> None:
    validate_runtime_config(make_config(), "tests")


@pytest.mark.parametrize(
    "overrides",
    [
        {"base_url": "ftp://aistudio.google.com/apps"},
        {"base_url": "aistudio.google.com/apps"},
        {"items_per_page": 0},
        {"settle_delay_ms": -1},
        {"nav_timeout_seconds": 0},
        {"selector_timeout_seconds": -5},
        {"extractor": "regex"},
        {"page_query_param": "  "},
    ],
)
def test_invalid_values_raise(make_config, overrides: dict) -> None:
    with pytest.raises(ConfigError):
        validate_runtime_config(make_config(**overrides), "tests")


def test_config_error_is_a_value_error(make_config) -> None:
    with pytest.raises(ValueError):
        validate_runtime_config(make_config(items_per_page=-1), "tests")


def test_violation_emits_structured_event(make_config, monkeypatch: pytest.MonkeyPatch) -> None:
    events: list[tuple[str, dict]] = []
    monkeypatch.setattr(
        config_validation, "_scraper_event", lambda label, **fields: events.append((label, fields))
    )

    with pytest.raises(ConfigError):
        validate_runtime_config(make_config(settle_delay_ms=-10), "cli")

    label, fields = events[0]
    assert label == "error"
    assert fields["phase"] == "config"
    assert fields["error"] == "settle_delay_invalid"
    assert fields["entrypoint"] == "cli"


def test_unparsable_environment_is_config_error(make_config) -> None:
    cfg = make_config(env_errors=("CATALOG_SETTLE_DELAY_MS='1s' is not an integer",))

    with pytest.raises(ConfigError, match="CATALOG_SETTLE_DELAY_MS"):
        validate_runtime_config(cfg, "tests")
