from __future__ import annotations

from pathlib import Path

import pytest

from aistudio_catalog.scraper import config
from aistudio_catalog.scraper.config import ScraperConfig


def test_defaults_match_listing_constants() -> None:
    cfg = ScraperConfig()

    assert cfg.base_url == "https://aistudio.google.com/apps?source=user"
    assert cfg.items_per_page == 50
    assert cfg.settle_delay_ms == 1000
    assert cfg.selector_timeout_ms == 10_000
    assert cfg.checkpoint_file == Path("./data/checkpoint.json")
    assert cfg.apps_file == Path("./data/apps.json")


def test_config_is_immutable() -> None:
    cfg = ScraperConfig()

    with pytest.raises(AttributeError):
        cfg.items_per_page = 10  # type: ignore[misc]


def test_from_env_reads_module_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "BASE_URL", "https://example.com/apps")
    monkeypatch.setattr(config, "ITEMS_PER_PAGE", 25)
    monkeypatch.setattr(config, "EXTRACTOR", "html")

    cfg = ScraperConfig.from_env()

    assert cfg.base_url == "https://example.com/apps"
    assert cfg.items_per_page == 25
    assert cfg.extractor == "html"


def test_for_output_dir_relocates_data_files(tmp_path: Path) -> None:
    cfg = ScraperConfig.for_output_dir(tmp_path / "out", items_per_page=10)

    assert cfg.checkpoint_file == tmp_path / "out" / "checkpoint.json"
    assert cfg.apps_file == tmp_path / "out" / "apps.json"
    assert cfg.log_dir == tmp_path / "out" / "logs"
    assert cfg.summary_file == tmp_path / "out" / "last_summary.json"
    assert cfg.items_per_page == 10


def test_with_overrides_ignores_none() -> None:
    cfg = ScraperConfig().with_overrides(base_url=None, headless=False, settle_delay_ms=0)

    assert cfg.base_url == ScraperConfig().base_url
    assert cfg.headless is False
    assert cfg.settle_delay_ms == 0


def test_env_flag_parsing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_TEST_FLAG", "false")
    assert config._env_flag("CATALOG_TEST_FLAG", True) is False
    monkeypatch.setenv("CATALOG_TEST_FLAG", "1")
    assert config._env_flag("CATALOG_TEST_FLAG", False) is True
    monkeypatch.delenv("CATALOG_TEST_FLAG")
    assert config._env_flag("CATALOG_TEST_FLAG", True) is True


def test_timeout_parsing_falls_back_and_clamps(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_TEST_TIMEOUT", "abc")
    assert config._parse_timeout_seconds("CATALOG_TEST_TIMEOUT", 7) == 7
    monkeypatch.setenv("CATALOG_TEST_TIMEOUT", "0")
    assert config._parse_timeout_seconds("CATALOG_TEST_TIMEOUT", 7) == 1


def test_unparsable_integer_is_recorded_not_raised(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "ENV_ERRORS", [])
    monkeypatch.setenv("CATALOG_ITEMS_PER_PAGE", "fifty")

    assert config._env_int("CATALOG_ITEMS_PER_PAGE", 50) == 50
    assert config.ENV_ERRORS == ["CATALOG_ITEMS_PER_PAGE='fifty' is not an integer"]
    assert ScraperConfig.from_env().env_errors == ("CATALOG_ITEMS_PER_PAGE='fifty' is not an integer",)


def test_integer_env_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "ENV_ERRORS", [])
    monkeypatch.setenv("CATALOG_SETTLE_DELAY_MS", " 250 ")

    assert config._env_int("CATALOG_SETTLE_DELAY_MS", 1000) == 250
    assert config.ENV_ERRORS == []
