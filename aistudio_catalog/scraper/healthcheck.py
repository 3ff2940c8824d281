from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .config import ScraperConfig
from .config_validation import validate_runtime_config
from .error_codes import ErrorCode, ExitCode, ScrapeError, exit_code_for
from .logging_utils import _scraper_event
from .state import load_checkpoint
from .utils import is_writable_dir

# Order decides which failing check supplies the exit code.
_CHECK_ERROR_CODES = (
    ("config", ErrorCode.CONFIG),
    ("filesystem", ErrorCode.STORAGE),
    ("checkpoint", ErrorCode.CHECKPOINT_PARSE),
)


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]

    @property
    def exit_code(self) -> int:
        if self.ok:
            return ExitCode.OK
        for name, code in _CHECK_ERROR_CODES:
            check = self.checks.get(name)
            if check is not None and not check.get("ok", False):
                return exit_code_for(check.get("error_code", code))
        return ExitCode.INTERNAL


def run_health_checks(cfg: Optional[ScraperConfig] = None) -> HealthResult:
    cfg = cfg or ScraperConfig.from_env()
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(cfg, "healthcheck")
        checks["config"] = {"ok": True, "extractor": cfg.extractor}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc), "error_code": ErrorCode.CONFIG}

    dirs = {
        "output_dir": Path(cfg.output_dir),
        "thumbnails_dir": Path(cfg.thumbnails_dir),
        "checkpoint_dir": Path(cfg.checkpoint_file).parent,
        "log_dir": Path(cfg.log_dir),
    }
    unwritable = [name for name, path in dirs.items() if not is_writable_dir(path)]
    checks["filesystem"] = {
        "ok": not unwritable,
        "output_dir": str(cfg.output_dir),
        "unwritable": unwritable,
    }
    if unwritable:
        checks["filesystem"]["error_code"] = ErrorCode.STORAGE

    try:
        checkpoint = load_checkpoint(cfg.checkpoint_file)
        checks["checkpoint"] = {
            "ok": True,
            "exists": Path(cfg.checkpoint_file).exists(),
            "last_page": checkpoint.last_page,
            "records": len(checkpoint.apps),
            "next_id": checkpoint.next_app_id,
        }
    except ScrapeError as exc:
        checks["checkpoint"] = {"ok": False, "error": str(exc), "error_code": exc.error_code}

    overall_ok = all(check.get("ok", False) for check in checks.values())

    _scraper_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


__all__ = ["HealthResult", "run_health_checks"]
