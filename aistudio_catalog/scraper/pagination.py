"""Pagination for the apps listing: counting, advancing and seeking."""
from __future__ import annotations

import math
import re
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from playwright.sync_api import (
    Error as PWError,
    Page,
    TimeoutError as PWTimeout,
)

from .browser import click, goto, wait_for_selector, wait_settle
from .config import ScraperConfig
from .error_codes import NavigationError
from .logging_utils import _scraper_event
from .selectors_ai_studio import AI_STUDIO_SELECTORS, AIStudioSelectors
from .utils import log_line

# "1 – 50 of 125", also tolerating plain/em dashes and "1,234" style totals.
RANGE_LABEL_RE = re.compile(r"(\d[\d,]*)\s*[–—-]\s*(\d[\d,]*)\s+of\s+(\d[\d,]*)", re.IGNORECASE)


def parse_total_apps(text: str | None) -> int:
    """Return the trailing total of a ``"<start> – <end> of <total>"`` label, else 0."""

    if not text:
        return 0
    match = RANGE_LABEL_RE.search(text)
    if not match:
        return 0
    return int(match.group(3).replace(",", ""))


def compute_total_pages(total_apps: int, items_per_page: int) -> int:
    if items_per_page <= 0:
        raise ValueError(f"items_per_page must be positive, got {items_per_page}")
    if total_apps <= 0:
        return 0
    return math.ceil(total_apps / items_per_page)


def expected_rows_on_page(page_index: int, *, total_apps: int, items_per_page: int) -> int:
    """Number of records page ``page_index`` should hold given the total."""

    remaining = total_apps - page_index * items_per_page
    return max(0, min(items_per_page, remaining))


def read_total_apps(
    page: Page,
    *,
    cfg: ScraperConfig,
    selectors: AIStudioSelectors = AI_STUDIO_SELECTORS,
) -> int:
    """Read the total app count from the listing's range label."""

    label = page.locator(selectors.range_label).first
    try:
        text = label.text_content(timeout=cfg.selector_timeout_ms)
    except PWTimeout as exc:
        raise NavigationError(
            "Pagination label ('<start> – <end> of <total>') not found on the listing"
        ) from exc
    except PWError as exc:
        raise NavigationError(f"Unable to read pagination label: {exc}") from exc

    total = parse_total_apps(text)
    if total == 0:
        log_line(f"[PAGINATION] No total found in label {text!r}; treating listing as empty.")
    _scraper_event("pagination", step="count", label_text=(text or "").strip(), total_apps=total)
    return total


def advance_page(
    page: Page,
    target_index: int,
    *,
    cfg: ScraperConfig,
    selectors: AIStudioSelectors = AI_STUDIO_SELECTORS,
) -> None:
    """Click "Next page" and wait until the listing shows page ``target_index``."""

    click(page, selectors.next_page_button, cfg=cfg, label="next page")
    first_item = target_index * cfg.items_per_page + 1
    wait_for_selector(
        page,
        selectors.range_label_starting_at(first_item),
        timeout_ms=cfg.selector_timeout_ms,
        label=f"page {target_index + 1} range label",
    )
    wait_settle(page, cfg.settle_delay_ms)


def page_url(base_url: str, param: str, page_index: int) -> str:
    """Return ``base_url`` with ``param=page_index`` set in its query string."""

    parsed = urlparse(base_url)
    query = [(key, value) for key, value in parse_qsl(parsed.query, keep_blank_values=True) if key != param]
    query.append((param, str(page_index)))
    return urlunparse(parsed._replace(query=urlencode(query)))


def seek_to_page(
    page: Page,
    target_index: int,
    *,
    cfg: ScraperConfig,
    selectors: AIStudioSelectors = AI_STUDIO_SELECTORS,
) -> None:
    """Bring the listing to page ``target_index`` (0-based) without extracting.

    A directly addressable listing (``cfg.page_query_param``) is loaded in one
    navigation. Otherwise "Next page" is replayed from the first page, which
    assumes the listing order is the same as on the previous run.
    """

    if target_index <= 0:
        return

    if cfg.page_query_param:
        url = page_url(cfg.base_url, cfg.page_query_param, target_index)
        _scraper_event("pagination", step="seek", mode="direct", target_page=target_index)
        goto(page, url, cfg=cfg, label=f"listing page {target_index + 1}")
        return

    log_line(f"[PAGINATION] Fast-forwarding to page {target_index + 1}...")
    for index in range(1, target_index + 1):
        advance_page(page, index, cfg=cfg, selectors=selectors)
        _scraper_event("pagination", step="seek", mode="replay", page_index=index, target_page=target_index)


__all__ = [
    "advance_page",
    "compute_total_pages",
    "expected_rows_on_page",
    "page_url",
    "parse_total_apps",
    "read_total_apps",
    "seek_to_page",
]
