"""Playwright-based scraper for the Google AI Studio "Created by you" apps.

Workflow:

- Load (or start) the checkpoint in ``data/checkpoint.json``.
- Open https://aistudio.google.com/apps?source=user and select the
  "Created by you" tab.
- Read the total from the "1 – 50 of N" range label and derive the page count.
- Skip ahead to the first page the checkpoint has not saved yet.
- For every remaining page: extract the app rows, assign ``app_NNNN`` ids,
  persist the checkpoint, click "Next page".
- Write ``data/apps.json`` for the catalog generator.

A failed run keeps every page saved so far; rerunning resumes after the last
saved page.
"""

from __future__ import annotations

import argparse
import time
from contextlib import AbstractContextManager
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from playwright.sync_api import (
    Error as PWError,
    Page,
    TimeoutError as PWTimeout,
)

from .browser import browser_session, click, goto, wait_for_network_idle, wait_for_selector, wait_settle
from .config import ScraperConfig
from .config_validation import validate_runtime_config
from .error_codes import (
    ErrorCode,
    ExitCode,
    ExtractionMismatchError,
    ScrapeError,
    StorageError,
    TRANSIENT_ERROR_CODES,
    exit_code_for,
)
from .extractors import RowExtractor, get_extractor
from .logging_utils import _scraper_event
from .pagination import (
    advance_page,
    compute_total_pages,
    expected_rows_on_page,
    read_total_apps,
    seek_to_page,
)
from .records import Checkpoint, merge_page
from .selectors_ai_studio import AI_STUDIO_SELECTORS, AIStudioSelectors
from .state import load_checkpoint, save_apps, save_checkpoint
from .utils import ensure_dirs, log_line, save_json_file, setup_run_logger

SessionFactory = Callable[[ScraperConfig], AbstractContextManager]


class RunPhase(str, Enum):
    INIT = "init"
    NAVIGATING = "navigating"
    SELECTING_TAB = "selecting_tab"
    COUNTING = "counting"
    FAST_FORWARDING = "fast_forwarding"
    PROCESSING_PAGE = "processing_page"
    COMPLETED = "completed"
    FAILED = "failed"


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _short_error_message(exc: BaseException, max_length: int = 200) -> str:
    message = str(exc) or exc.__class__.__name__
    if len(message) > max_length:
        return message[: max_length - 3] + "..."
    return message


def classify_error(exc: BaseException) -> str:
    """Return the ``ErrorCode`` for an exception that ended a run."""

    if isinstance(exc, ScrapeError):
        return exc.error_code
    if isinstance(exc, PWTimeout):
        return ErrorCode.READINESS_TIMEOUT
    if isinstance(exc, PWError):
        return ErrorCode.NAVIGATION
    if isinstance(exc, OSError):
        return ErrorCode.STORAGE
    return ErrorCode.INTERNAL


class ScrapeOrchestrator:
    """Drive one scrape from checkpoint load to the final apps file.

    The checkpoint held here always mirrors the file on disk: a page's
    records are merged into a copy, the copy is saved, and only then does it
    replace ``self.checkpoint``.
    """

    def __init__(
        self,
        cfg: ScraperConfig,
        *,
        extractor: Optional[RowExtractor] = None,
        session_factory: Optional[SessionFactory] = None,
        selectors: AIStudioSelectors = AI_STUDIO_SELECTORS,
        fresh: bool = False,
    ) -> None:
        self.cfg = cfg
        self.selectors = selectors
        self.extractor = extractor or get_extractor(cfg.extractor, selectors)
        self.session_factory = session_factory or browser_session
        self.fresh = fresh

        self.phase = RunPhase.INIT
        self.checkpoint = Checkpoint()
        self.total_apps = 0
        self.total_pages = 0
        self.start_page = 0
        self.pages_processed = 0
        self.records_added = 0

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _enter(self, phase: RunPhase, **fields: Any) -> None:
        self.phase = phase
        _scraper_event("state", phase="run", run_phase=phase.value, **fields)

    def _prepare(self) -> None:
        self._enter(RunPhase.INIT)
        dirs = [
            self.cfg.output_dir,
            self.cfg.thumbnails_dir,
            Path(self.cfg.checkpoint_file).parent,
            Path(self.cfg.apps_file).parent,
        ]
        try:
            for created in ensure_dirs(dirs):
                log_line(f"[RUN] Created directory: {created}")
        except OSError as exc:
            raise StorageError(f"Unable to create output directories: {exc}") from exc

        if self.fresh:
            log_line("[RUN] Fresh run requested; ignoring any existing checkpoint.")
            self.checkpoint = Checkpoint()
        else:
            self.checkpoint = load_checkpoint(self.cfg.checkpoint_file)

    def _open_listing(self, page: Page) -> None:
        self._enter(RunPhase.NAVIGATING, url=self.cfg.base_url)
        goto(page, self.cfg.base_url, cfg=self.cfg, label="apps listing")

        self._enter(RunPhase.SELECTING_TAB)
        click(page, self.selectors.created_by_you_tab, cfg=self.cfg, label="'Created by you' tab")
        wait_for_network_idle(page, cfg=self.cfg, label="tab selection")
        wait_settle(page, self.cfg.settle_delay_ms)

    def _count(self, page: Page) -> None:
        self._enter(RunPhase.COUNTING)
        self.total_apps = read_total_apps(page, cfg=self.cfg, selectors=self.selectors)
        self.total_pages = compute_total_pages(self.total_apps, self.cfg.items_per_page)
        log_line(f"[RUN] Total apps found: {self.total_apps} ({self.total_pages} pages)")

        previous_total = self.checkpoint.total_apps
        if not self.checkpoint.is_empty and previous_total and previous_total != self.total_apps:
            log_line(
                f"[RUN][WARN] Listing total changed since last run ({previous_total} -> "
                f"{self.total_apps}); page replay may shift records."
            )

    def _fast_forward(self, page: Page) -> None:
        self.start_page = self.checkpoint.resume_page
        if self.start_page <= 0:
            return
        if self.start_page >= self.total_pages:
            log_line(
                f"[RUN] Checkpoint already covers all {self.total_pages} pages; nothing left to extract."
            )
            return
        self._enter(RunPhase.FAST_FORWARDING, target_page=self.start_page)
        seek_to_page(page, self.start_page, cfg=self.cfg, selectors=self.selectors)

    def _process_page(self, page: Page, page_index: int) -> None:
        self._enter(RunPhase.PROCESSING_PAGE, page_index=page_index, total_pages=self.total_pages)
        log_line(f"[RUN] Processing page {page_index + 1}/{self.total_pages}...")

        wait_for_selector(
            page,
            self.selectors.app_link_selector,
            timeout_ms=self.cfg.selector_timeout_ms,
            label="app rows",
        )
        wait_settle(page, self.cfg.settle_delay_ms)

        raw_apps = self.extractor.extract(page)
        expected = expected_rows_on_page(
            page_index, total_apps=self.total_apps, items_per_page=self.cfg.items_per_page
        )
        log_line(f"[RUN]    Found {len(raw_apps)} apps on this page (expected {expected})")
        if not raw_apps and expected > 0:
            raise ExtractionMismatchError(
                f"Page {page_index + 1} should list {expected} apps but no rows matched "
                f"{self.selectors.row_selector!r} with an app link; the layout may have changed."
            )

        merged, added = merge_page(
            self.checkpoint,
            raw_apps,
            page_index=page_index,
            total_apps=self.total_apps,
        )
        skipped = len(raw_apps) - len(added)
        if skipped:
            _scraper_event("state", phase="merge", kind="duplicates_skipped", page_index=page_index, count=skipped)

        save_checkpoint(merged, self.cfg.checkpoint_file)
        self.checkpoint = merged
        self.pages_processed += 1
        self.records_added += len(added)
        for record in added:
            log_line(f"[RUN]    {record.id}: {record.title}")

    def _complete(self) -> None:
        self._enter(RunPhase.COMPLETED, records=len(self.checkpoint.apps))
        count = save_apps(self.checkpoint.apps, self.cfg.apps_file)
        log_line(f"[RUN] Scraping complete: {count} apps saved to {self.cfg.apps_file}")
        log_line(
            "[RUN] Next step: capture thumbnails into "
            f"{self.cfg.thumbnails_dir} and build the catalog from {self.cfg.apps_file}."
        )

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def run(self) -> Checkpoint:
        """Run every phase; raises on the first failure."""

        self._prepare()
        with self.session_factory(self.cfg) as page:
            self._open_listing(page)
            self._count(page)
            self._fast_forward(page)
            for page_index in range(self.start_page, self.total_pages):
                self._process_page(page, page_index)
                if page_index < self.total_pages - 1:
                    log_line("[RUN]    Moving to next page...")
                    advance_page(page, page_index + 1, cfg=self.cfg, selectors=self.selectors)
        self._complete()
        return self.checkpoint


def run_scrape(
    cfg: Optional[ScraperConfig] = None,
    *,
    extractor: Optional[RowExtractor] = None,
    session_factory: Optional[SessionFactory] = None,
    fresh: bool = False,
) -> Dict[str, Any]:
    """Public entrypoint: run once, never raise, return the run summary."""

    cfg = cfg or ScraperConfig.from_env()
    started_at = _now_iso()

    orchestrator: Optional[ScrapeOrchestrator] = None
    log_path: Optional[Path] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    failed_phase = RunPhase.INIT

    try:
        try:
            log_path = setup_run_logger(cfg.log_dir)
        except OSError as exc:
            raise StorageError(f"Unable to open log directory {cfg.log_dir}: {exc}") from exc
        log_line("[RUN] Starting AI Studio apps scraper")
        validate_runtime_config(cfg, "cli")
        orchestrator = ScrapeOrchestrator(
            cfg,
            extractor=extractor,
            session_factory=session_factory,
            fresh=fresh,
        )
        orchestrator.run()
    except Exception as exc:  # noqa: BLE001
        error_code = classify_error(exc)
        error_message = _short_error_message(exc)
        if orchestrator is not None:
            failed_phase = orchestrator.phase
            orchestrator.phase = RunPhase.FAILED
        _scraper_event(
            "error",
            phase=failed_phase.value,
            error_code=error_code,
            error=error_message,
            exception=exc.__class__.__name__,
        )
        log_line(f"[RUN][ERROR] Error during scraping ({error_code}): {error_message}")
        if orchestrator is not None:
            log_line(
                f"[RUN] Progress is saved: {len(orchestrator.checkpoint.apps)} apps "
                f"in {cfg.checkpoint_file}."
            )
        if error_code in TRANSIENT_ERROR_CODES:
            log_line("[RUN] Run the scraper again to resume from where it left off.")
        else:
            log_line("[RUN] Fix the reported problem, then run the scraper again to resume.")

    checkpoint = orchestrator.checkpoint if orchestrator is not None else Checkpoint()
    summary: Dict[str, Any] = {
        "status": "failed" if error_code else "completed",
        "phase": (failed_phase if error_code else RunPhase.COMPLETED).value,
        "error_code": error_code,
        "error": error_message,
        "exit_code": exit_code_for(error_code),
        "total_apps": orchestrator.total_apps if orchestrator else 0,
        "total_pages": orchestrator.total_pages if orchestrator else 0,
        "start_page": orchestrator.start_page if orchestrator else 0,
        "pages_processed": orchestrator.pages_processed if orchestrator else 0,
        "records_added": orchestrator.records_added if orchestrator else 0,
        "records_total": len(checkpoint.apps),
        "last_page": checkpoint.last_page,
        "checkpoint_file": str(cfg.checkpoint_file),
        "apps_file": str(cfg.apps_file) if not error_code else None,
        "log_file": str(log_path) if log_path is not None else None,
        "started_at": started_at,
        "ended_at": _now_iso(),
    }
    try:
        save_json_file(cfg.summary_file, summary)
    except OSError as exc:
        log_line(f"[RUN][WARN] Unable to write run summary: {exc}")
    return summary


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape the AI Studio 'Created by you' apps listing")
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--output-dir", type=Path, default=None, help="Directory for checkpoint, apps and logs")
    parser.add_argument("--thumbnails-dir", type=Path, default=None)
    parser.add_argument("--items-per-page", type=int, default=None)
    parser.add_argument("--settle-delay-ms", type=int, default=None)
    parser.add_argument("--extractor", default=None, help="Extraction strategy (in_page, html)")
    parser.add_argument(
        "--page-query-param",
        default=None,
        help="Query parameter that addresses a listing page directly; enables seek instead of click replay",
    )
    parser.add_argument("--user-data-dir", type=Path, default=None, help="Persistent Chromium profile")
    headless = parser.add_mutually_exclusive_group()
    headless.add_argument("--headless", dest="headless", action="store_true", default=None)
    headless.add_argument("--headed", dest="headless", action="store_false")
    parser.set_defaults(headless=None)
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Start from an empty checkpoint (the existing file is overwritten at the first page save)",
    )
    parser.add_argument("--check", action="store_true", help="Run health checks and exit")
    return parser


def config_from_args(args: argparse.Namespace) -> ScraperConfig:
    if args.output_dir is not None:
        cfg = ScraperConfig.for_output_dir(args.output_dir)
    else:
        cfg = ScraperConfig.from_env()
    return cfg.with_overrides(
        base_url=args.base_url,
        thumbnails_dir=args.thumbnails_dir,
        items_per_page=args.items_per_page,
        settle_delay_ms=args.settle_delay_ms,
        extractor=args.extractor,
        page_query_param=args.page_query_param,
        user_data_dir=args.user_data_dir,
        headless=args.headless,
    )


def _cli_entrypoint(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    cfg = config_from_args(args)

    if args.check:
        from .healthcheck import run_health_checks

        try:
            setup_run_logger(cfg.log_dir, prefix="health")
        except OSError as exc:
            log_line(f"[HEALTH] Log directory {cfg.log_dir} unavailable: {exc}")
        result = run_health_checks(cfg)
        for name, info in result.checks.items():
            status = "OK" if info.get("ok") else "FAIL"
            log_line(f"[HEALTH] {name}: {status} {info}")
        return result.exit_code

    summary = run_scrape(cfg, fresh=args.fresh)
    return int(summary.get("exit_code", ExitCode.INTERNAL))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(_cli_entrypoint())

__all__ = [
    "RunPhase",
    "ScrapeOrchestrator",
    "classify_error",
    "config_from_args",
    "run_scrape",
    "_cli_entrypoint",
]
