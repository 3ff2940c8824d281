from __future__ import annotations

from pathlib import Path

from aistudio_catalog.scraper import healthcheck, state
from aistudio_catalog.scraper.error_codes import ErrorCode, ExitCode
from aistudio_catalog.scraper.records import Checkpoint, RawApp, merge_page


def test_healthcheck_passes_on_empty_workspace(make_config) -> None:
    cfg = make_config()

    result = healthcheck.run_health_checks(cfg)

    assert result.ok is True
    assert result.exit_code == ExitCode.OK
    assert list(result.checks) == ["config", "filesystem", "checkpoint"]
    assert result.checks["checkpoint"]["exists"] is False
    assert result.checks["checkpoint"]["next_id"] == "app_0001"


def test_healthcheck_reports_checkpoint_progress(make_config, rows) -> None:
    cfg = make_config()
    saved, _ = merge_page(
        Checkpoint(),
        [RawApp.from_mapping(rows(1)), RawApp.from_mapping(rows(2))],
        page_index=0,
        total_apps=60,
    )
    state.save_checkpoint(saved, cfg.checkpoint_file)

    result = healthcheck.run_health_checks(cfg)

    assert result.ok is True
    assert result.checks["checkpoint"]["records"] == 2
    assert result.checks["checkpoint"]["last_page"] == 0
    assert result.checks["checkpoint"]["next_id"] == "app_0003"


def test_healthcheck_flags_invalid_config(make_config) -> None:
    result = healthcheck.run_health_checks(make_config(extractor="xpath"))

    assert result.ok is False
    assert result.checks["config"]["ok"] is False
    assert result.exit_code == ExitCode.CONFIG


def test_healthcheck_flags_unwritable_dirs(make_config, tmp_path: Path) -> None:
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")

    result = healthcheck.run_health_checks(make_config(thumbnails_dir=blocker))

    assert result.ok is False
    assert result.checks["filesystem"]["unwritable"] == ["thumbnails_dir"]
    assert result.checks["filesystem"]["error_code"] == ErrorCode.STORAGE
    assert result.exit_code == ExitCode.STORAGE


def test_healthcheck_flags_malformed_checkpoint(make_config) -> None:
    cfg = make_config()
    cfg.checkpoint_file.parent.mkdir(parents=True, exist_ok=True)
    cfg.checkpoint_file.write_text("[1, 2", encoding="utf-8")

    result = healthcheck.run_health_checks(cfg)

    assert result.ok is False
    assert result.checks["checkpoint"]["error_code"] == ErrorCode.CHECKPOINT_PARSE
    assert result.exit_code == ExitCode.CHECKPOINT_PARSE


def test_healthcheck_emits_event(make_config, monkeypatch) -> None:
    events: list[tuple[str, dict]] = []
    monkeypatch.setattr(
        healthcheck, "_scraper_event", lambda label, **fields: events.append((label, fields))
    )

    healthcheck.run_health_checks(make_config())

    label, fields = events[-1]
    assert label == "state"
    assert fields["phase"] == "health"
    assert fields["ok"] is True
