"""Scraper for public Notion database pages.

Notion renders its tables client-side, so the page is loaded in headless
Chromium and rows are read from the rendered DOM. The column mapping only
knows about the first cell (the row title); other columns are left for the
user to fill in.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from playwright.sync_api import sync_playwright

from funding_pipeline.config import ScraperSettings, SourceSettings

from .base import ScrapeResult, Scraper, partial_opportunity
from .registry import register_scraper

logger = logging.getLogger(__name__)

CONTENT_SELECTOR = "[data-block-id]"
ROW_SELECTOR = ".notion-table-view-row, .notion-collection-item"
CELL_SELECTOR = ".notion-table-view-cell"

INSPECT_HINTS = (
    'document.querySelectorAll(".notion-table-view-row")',
    'document.querySelectorAll("[data-block-id]")',
)


class NotionScraper(Scraper):
    def __init__(
        self,
        settings: SourceSettings,
        scraper_settings: ScraperSettings | None = None,
    ) -> None:
        super().__init__(settings, scraper_settings)
        self.navigation_timeout_ms = self.scraper_settings.navigation_timeout_seconds * 1000
        self.render_timeout_ms = self.scraper_settings.render_timeout_seconds * 1000

    def scrape(self) -> ScrapeResult:
        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(headless=self.scraper_settings.headless)
                try:
                    page = browser.new_page()
                    page.goto(
                        self.settings.url,
                        wait_until="networkidle",
                        timeout=self.navigation_timeout_ms,
                    )
                    page.wait_for_selector(CONTENT_SELECTOR, timeout=self.render_timeout_ms)
                    opportunities = self._extract_opportunities(page)
                finally:
                    browser.close()
        except Exception as exc:  # noqa: BLE001
            return self._failure(exc)

        logger.info("Source %s returned %d rows", self.source_id, len(opportunities))
        return ScrapeResult(opportunities=opportunities)

    def inspect(self, on_ready: Callable[[], None] | None = None) -> None:
        """Open a visible browser on the source page and block until killed."""
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=False)
            page = browser.new_page()
            page.goto(self.settings.url, wait_until="networkidle")
            if on_ready is not None:
                on_ready()
            while True:
                time.sleep(1)

    def _extract_opportunities(self, page: Any) -> list[dict[str, Any]]:
        opportunities: list[dict[str, Any]] = []

        for row in page.query_selector_all(ROW_SELECTOR):
            try:
                cells = row.query_selector_all(CELL_SELECTOR)
                texts = [(cell.text_content() or "").strip() for cell in cells]
            except Exception as exc:  # noqa: BLE001
                logger.debug("Skipping unreadable row on %s: %s", self.settings.url, exc)
                continue

            if texts and texts[0]:
                opportunities.append(
                    partial_opportunity(name=texts[0], source=self.settings.source)
                )

        return opportunities


@register_scraper("notion")
def _build_notion_scraper(
    settings: SourceSettings,
    scraper_settings: ScraperSettings,
) -> Scraper:
    return NotionScraper(settings, scraper_settings)
