"""Scoped Playwright session and bounded page waits."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from playwright.sync_api import (
    Error as PWError,
    Page,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .config import ScraperConfig
from .error_codes import NavigationError, ReadinessTimeout
from .logging_utils import _scraper_event
from .utils import log_line


@contextmanager
def browser_session(cfg: ScraperConfig) -> Iterator[Page]:
    """Yield a fresh page; the browser is closed on every exit path.

    With ``cfg.user_data_dir`` set a persistent Chromium profile is used, which
    is how a signed-in Google session is carried between runs.
    """

    with sync_playwright() as pw:
        browser = None
        if cfg.user_data_dir is not None:
            log_line(f"[BROWSER] Using persistent profile: {cfg.user_data_dir}")
            context = pw.chromium.launch_persistent_context(
                user_data_dir=str(cfg.user_data_dir),
                headless=cfg.headless,
                viewport={"width": 1440, "height": 900},
                args=["--disable-dev-shm-usage"],
            )
            page = context.pages[0] if context.pages else context.new_page()
        else:
            browser = pw.chromium.launch(headless=cfg.headless)
            context = browser.new_context(user_agent=config.USER_AGENT, locale="en-US")
            page = context.new_page()
        page.set_default_timeout(cfg.selector_timeout_ms)
        page.set_default_navigation_timeout(cfg.nav_timeout_ms)
        _scraper_event("browser", step="launched", headless=cfg.headless)
        try:
            yield page
        finally:
            try:
                context.close()
            finally:
                if browser is not None:
                    browser.close()
            _scraper_event("browser", step="closed")


def wait_settle(page: Optional[Page], delay_ms: int) -> None:
    """Wait ``delay_ms`` only if *page* remains open."""

    if page is None or delay_ms <= 0:
        return
    if not page.is_closed():
        page.wait_for_timeout(delay_ms)


def goto(page: Page, url: str, *, cfg: ScraperConfig, label: str) -> None:
    """Navigate to ``url`` and wait for network idle, raising on failure."""

    _scraper_event("nav", step="goto", target=label, url=url)
    try:
        page.goto(url, wait_until="networkidle", timeout=cfg.nav_timeout_ms)
    except PWTimeout as exc:
        raise ReadinessTimeout(f"Timed out loading {label} ({url}): {exc}") from exc
    except PWError as exc:
        raise NavigationError(f"Failed to load {label} ({url}): {exc}") from exc
    wait_settle(page, cfg.settle_delay_ms)


def wait_for_network_idle(page: Page, *, cfg: ScraperConfig, label: str) -> None:
    """Best-effort network idle wait; long-polling pages never go idle."""

    try:
        page.wait_for_load_state("networkidle", timeout=cfg.nav_timeout_ms)
    except PWTimeout:
        log_line(f"[NAV] networkidle timeout after {label}; continuing.")


def click(page: Page, selector: str, *, cfg: ScraperConfig, label: str) -> None:
    """Click the first element matching ``selector``; missing target is a navigation error."""

    _scraper_event("nav", step="click", target=label)
    try:
        page.locator(selector).first.click(timeout=cfg.selector_timeout_ms)
    except PWTimeout as exc:
        raise NavigationError(f"Control not found: {label} ({selector})") from exc
    except PWError as exc:
        raise NavigationError(f"Unable to click {label}: {exc}") from exc


def wait_for_selector(page: Page, selector: str, *, timeout_ms: int, label: str) -> None:
    """Wait for ``selector`` to be attached; expiry raises ``ReadinessTimeout``."""

    try:
        page.wait_for_selector(selector, timeout=timeout_ms)
    except PWTimeout as exc:
        _scraper_event("error", phase="wait", target=label, timeout_ms=timeout_ms)
        raise ReadinessTimeout(
            f"{label} did not appear within {timeout_ms / 1000:.0f}s ({selector})"
        ) from exc
    except PWError as exc:
        raise NavigationError(f"Waiting for {label} failed: {exc}") from exc


__all__ = [
    "browser_session",
    "click",
    "goto",
    "wait_for_network_idle",
    "wait_for_selector",
    "wait_settle",
]
