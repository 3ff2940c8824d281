from __future__ import annotations

import html
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest
from playwright.sync_api import Error as PWError, TimeoutError as PWTimeout

from aistudio_catalog.scraper import config, utils
from aistudio_catalog.scraper.config import ScraperConfig
from aistudio_catalog.scraper.selectors_ai_studio import AI_STUDIO_SELECTORS

LISTING_URL = "https://aistudio.google.com/apps?source=user"


@pytest.fixture(autouse=True)
def _isolated_logger(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "LOG_FILE", tmp_path / "logs" / "latest.log")
    monkeypatch.setattr(utils, "_LOGGER_INITIALISED", False)


def app_row(index: int, **overrides: str) -> Dict[str, str]:
    row = {
        "title": f"App {index}",
        "url": f"https://aistudio.google.com/apps/drive/{index:05d}",
        "description": f"Description {index}",
        "lastModified": f"Last modified: Oct {index % 28 + 1}, 2025",
    }
    row.update(overrides)
    return row


def render_rows(rows: List[Dict[str, str]]) -> str:
    cells = []
    for row in rows:
        href = row["url"].replace("https://aistudio.google.com", "")
        cells.append(
            "<tr>"
            f"<td><a href=\"{html.escape(href)}\">{html.escape(row['title'])}</a>"
            f"<p>{html.escape(row['description'])}</p></td>"
            f"<td><span>{html.escape(row['lastModified'])}</span></td>"
            "</tr>"
        )
    return f"<html><body><table><tbody>{''.join(cells)}</tbody></table></body></html>"


class FakeLocator:
    def __init__(self, page: "FakeListingPage", selector: str) -> None:
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def click(self, timeout: Optional[float] = None) -> None:
        self.page._click(self.selector)

    def text_content(self, timeout: Optional[float] = None) -> Optional[str]:
        return self.page._text(self.selector)


class FakeListingPage:
    """Stand-in for a Playwright ``Page`` showing a paginated apps listing."""

    def __init__(
        self,
        pages: List[List[Dict[str, str]]],
        *,
        total: Optional[int] = None,
        items_per_page: int = 50,
        label_text: Optional[str] = None,
        missing_label: bool = False,
        missing_next: bool = False,
        fail_evaluate_on: Optional[int] = None,
        stuck_after_click: bool = False,
    ) -> None:
        self.pages = pages
        self.total = sum(len(rows) for rows in pages) if total is None else total
        self.items_per_page = items_per_page
        self.label_text = label_text
        self.missing_label = missing_label
        self.missing_next = missing_next
        self.fail_evaluate_on = fail_evaluate_on
        self.stuck_after_click = stuck_after_click

        self.url = "about:blank"
        self.current = 0
        self.tab_selected = False
        self.visited: List[str] = []
        self.next_clicks = 0
        self.extracted_pages: List[int] = []
        self.settle_waits: List[int] = []

    # Page API -----------------------------------------------------------

    def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> None:
        self.visited.append(url)
        self.url = url
        if "page=" in url:
            self.current = int(url.rsplit("page=", 1)[1].split("&")[0])
        else:
            self.current = 0

    def wait_for_load_state(self, state: str = "load", timeout: Optional[float] = None) -> None:
        return None

    def wait_for_timeout(self, timeout: float) -> None:
        self.settle_waits.append(int(timeout))

    def is_closed(self) -> bool:
        return False

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> None:
        sel = AI_STUDIO_SELECTORS
        if selector == sel.app_link_selector:
            if self._rows():
                return None
            raise PWTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")
        first_item = self.current * self.items_per_page + 1
        if not self.stuck_after_click and selector == sel.range_label_starting_at(first_item):
            return None
        raise PWTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if self.fail_evaluate_on is not None and self.current == self.fail_evaluate_on:
            raise PWError("Target page, context or browser has been closed")
        self.extracted_pages.append(self.current)
        return [dict(row) for row in self._rows()]

    def content(self) -> str:
        self.extracted_pages.append(self.current)
        return render_rows(self._rows())

    # Helpers ------------------------------------------------------------

    def _rows(self) -> List[Dict[str, str]]:
        if 0 <= self.current < len(self.pages):
            return self.pages[self.current]
        return []

    def _click(self, selector: str) -> None:
        sel = AI_STUDIO_SELECTORS
        if selector == sel.created_by_you_tab:
            self.tab_selected = True
            return
        if selector == sel.next_page_button:
            if self.missing_next or self.current >= len(self.pages) - 1:
                raise PWTimeout(f"Timeout exceeded waiting for {selector}")
            self.next_clicks += 1
            if not self.stuck_after_click:
                self.current += 1
            return
        raise PWTimeout(f"Timeout exceeded waiting for {selector}")

    def _text(self, selector: str) -> Optional[str]:
        if selector != AI_STUDIO_SELECTORS.range_label or self.missing_label:
            raise PWTimeout(f"Timeout exceeded waiting for {selector}")
        if self.label_text is not None:
            return self.label_text
        start = self.current * self.items_per_page + 1
        end = min(self.total, start + self.items_per_page - 1)
        return f"{start} – {end} of {self.total}"


class FakeSession:
    """Session factory that hands out one fake page and counts open/close."""

    def __init__(self, page: FakeListingPage) -> None:
        self.page = page
        self.opened = 0
        self.closed = 0

    @contextmanager
    def __call__(self, cfg: ScraperConfig) -> Iterator[FakeListingPage]:
        self.opened += 1
        try:
            yield self.page
        finally:
            self.closed += 1


def build_config(tmp_path: Path, **overrides: Any) -> ScraperConfig:
    data_dir = tmp_path / "data"
    values: Dict[str, Any] = {
        "base_url": LISTING_URL,
        "output_dir": data_dir,
        "thumbnails_dir": tmp_path / "thumbnails",
        "checkpoint_file": data_dir / "checkpoint.json",
        "apps_file": data_dir / "apps.json",
        "log_dir": data_dir / "logs",
        "summary_file": data_dir / "last_summary.json",
        "items_per_page": 50,
        "settle_delay_ms": 0,
        "headless": True,
    }
    values.update(overrides)
    return ScraperConfig(**values)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., ScraperConfig]:
    def _make(**overrides: Any) -> ScraperConfig:
        return build_config(tmp_path, **overrides)

    return _make


@pytest.fixture
def listing() -> Callable[..., FakeListingPage]:
    return FakeListingPage


@pytest.fixture
def session_for() -> Callable[[FakeListingPage], FakeSession]:
    return FakeSession


@pytest.fixture
def rows() -> Callable[..., Dict[str, str]]:
    return app_row


@pytest.fixture
def html_for_rows() -> Callable[[List[Dict[str, str]]], str]:
    return render_rows
