from __future__ import annotations

"""Selectors and text patterns for the AI Studio apps listing."""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class AIStudioSelectors:
    """Selector hints for the "Created by you" apps listing.

    Rows are matched loosely (a table body row or anything with an ARIA row
    role) because the listing has shipped as both a mat-table and a grid. A
    row only counts as an app when it carries a link into ``/apps/``.
    """

    row_selector: str = "table tbody tr, [role='row']"
    app_link_selector: str = "a[href*='/apps/']"
    description_selector: str = "p, [class*='description']"
    last_modified_selector: str = "time"
    last_modified_label: str = "Last modified"
    created_by_you_tab: str = "button:has-text('Created by you')"
    next_page_button: str = "button[aria-label='Next page']"
    range_label: str = r"text=/[\d,]+\s*[–—-]\s*[\d,]+\s+of\s+[\d,]+/"

    def range_label_starting_at(self, first_item: int) -> str:
        """Selector for the range label once it shows ``first_item`` first."""

        return rf"text=/^\s*(?:{first_item}|{first_item:,})\s*[–—-]\s*[\d,]+\s+of\s+[\d,]+/"

    def as_js_arg(self) -> Dict[str, Any]:
        return asdict(self)


AI_STUDIO_SELECTORS = AIStudioSelectors()

__all__ = [
    "AIStudioSelectors",
    "AI_STUDIO_SELECTORS",
]
