"""Pluggable extraction strategies for one rendered listing page.

Orchestration only relies on ``RowExtractor.extract(page)``; the DOM
knowledge for a given listing layout lives here so a layout change means a
new strategy, not a change to the run loop.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Protocol
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from playwright.sync_api import Page

from .error_codes import ConfigError
from .records import RawApp
from .selectors_ai_studio import AI_STUDIO_SELECTORS, AIStudioSelectors


class RowExtractor(Protocol):
    name: str

    def extract(self, page: Page) -> List[RawApp]:
        ...


_IN_PAGE_SCRIPT = """
(sel) => {
  const text = (el) => (el && el.textContent ? el.textContent.trim() : '');
  const label = sel.last_modified_label.toLowerCase();
  const findLastModified = (row) => {
    const stamp = row.querySelector(sel.last_modified_selector);
    if (stamp) {
      return text(stamp);
    }
    const leaf = Array.from(row.querySelectorAll('*')).find(
      (el) => el.children.length === 0 && (el.textContent || '').toLowerCase().includes(label)
    );
    return text(leaf);
  };
  const apps = [];
  document.querySelectorAll(sel.row_selector).forEach((row) => {
    const link = row.querySelector(sel.app_link_selector);
    if (!link) {
      return;
    }
    const title = text(link);
    const url = link.href;
    if (!title || !url) {
      return;
    }
    apps.push({
      title: title,
      url: url,
      description: text(row.querySelector(sel.description_selector)),
      lastModified: findLastModified(row),
    });
  });
  return apps;
}
"""


class InPageRowExtractor:
    """Run the row query inside the browser with a single ``evaluate`` call."""

    name = "in_page"

    def __init__(self, selectors: AIStudioSelectors = AI_STUDIO_SELECTORS) -> None:
        self.selectors = selectors

    def extract(self, page: Page) -> List[RawApp]:
        rows = page.evaluate(_IN_PAGE_SCRIPT, self.selectors.as_js_arg()) or []
        apps: List[RawApp] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            app = RawApp.from_mapping(row)
            if app.title and app.url:
                apps.append(app)
        return apps


class HtmlRowExtractor:
    """Parse a snapshot of the page HTML with BeautifulSoup.

    Slower than ``InPageRowExtractor`` but works on saved HTML, which makes
    it the strategy to reach for when debugging a layout change offline.
    """

    name = "html"

    def __init__(self, selectors: AIStudioSelectors = AI_STUDIO_SELECTORS) -> None:
        self.selectors = selectors
        self._label_re = re.compile(re.escape(selectors.last_modified_label), re.IGNORECASE)

    def extract(self, page: Page) -> List[RawApp]:
        return self.extract_html(page.content(), base_url=page.url)

    def extract_html(self, html: str, *, base_url: str = "") -> List[RawApp]:
        soup = BeautifulSoup(html, "html5lib")
        apps: List[RawApp] = []
        for row in soup.select(self.selectors.row_selector):
            app = self._extract_row(row, base_url=base_url)
            if app is not None:
                apps.append(app)
        return apps

    def _extract_row(self, row: Tag, *, base_url: str) -> RawApp | None:
        link = row.select_one(self.selectors.app_link_selector)
        if link is None:
            return None

        title = link.get_text(strip=True)
        href = (link.get("href") or "").strip()
        url = urljoin(base_url, href) if href else ""
        if not title or not url:
            return None

        desc_el = row.select_one(self.selectors.description_selector)
        description = desc_el.get_text(strip=True) if desc_el is not None else ""

        return RawApp(
            title=title,
            url=url,
            description=description,
            last_modified=self._last_modified(row),
        )

    def _last_modified(self, row: Tag) -> str:
        stamp = row.select_one(self.selectors.last_modified_selector)
        if stamp is not None:
            return stamp.get_text(strip=True)
        for element in row.find_all(True):
            if element.find(True) is not None:
                continue
            text = element.get_text(strip=True)
            if self._label_re.search(text):
                return text
        return ""


EXTRACTORS: Dict[str, Callable[[AIStudioSelectors], Any]] = {
    InPageRowExtractor.name: InPageRowExtractor,
    HtmlRowExtractor.name: HtmlRowExtractor,
}


def get_extractor(
    name: str, selectors: AIStudioSelectors = AI_STUDIO_SELECTORS
) -> RowExtractor:
    """Return the extraction strategy registered under ``name``."""

    factory = EXTRACTORS.get((name or "").strip().lower())
    if factory is None:
        known = ", ".join(sorted(EXTRACTORS))
        raise ConfigError(f"Unknown extractor {name!r}; expected one of: {known}")
    return factory(selectors)


__all__ = [
    "EXTRACTORS",
    "HtmlRowExtractor",
    "InPageRowExtractor",
    "RowExtractor",
    "get_extractor",
]
