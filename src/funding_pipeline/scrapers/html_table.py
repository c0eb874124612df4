from __future__ import annotations

import html as html_lib
import logging
import re
from typing import Any

import requests

from funding_pipeline.config import ScraperSettings, SourceSettings
from funding_pipeline.utils.url_utils import resolve_url

from .base import ScrapeResult, Scraper, partial_opportunity
from .registry import register_scraper

logger = logging.getLogger(__name__)

_ROW = re.compile(r"<tr\b[^>]*>(.*?)</tr>", re.IGNORECASE | re.DOTALL)
_CELL = re.compile(r"<td\b[^>]*>(.*?)</td>", re.IGNORECASE | re.DOTALL)
_LINK = re.compile(r"<a\b[^>]*href=[\"']([^\"']+)[\"']", re.IGNORECASE)
_HTML_TAGS = re.compile(r"<[^>]+>")
_MULTISPACE = re.compile(r"\s+")


class HtmlTableScraper(Scraper):
    """Reads table rows from pages that render server-side."""

    def __init__(
        self,
        settings: SourceSettings,
        scraper_settings: ScraperSettings | None = None,
    ) -> None:
        super().__init__(settings, scraper_settings)
        timeout_raw = settings.options.get("timeout_seconds")
        self.timeout_seconds = (
            int(timeout_raw)
            if timeout_raw is not None
            else self.scraper_settings.navigation_timeout_seconds
        )

    def scrape(self) -> ScrapeResult:
        headers = {"User-Agent": "funding-pipeline/0.1 (+https://github.com/)"}
        try:
            response = requests.get(self.settings.url, timeout=self.timeout_seconds, headers=headers)
            response.raise_for_status()
            opportunities = self._extract_opportunities(response.text)
        except Exception as exc:  # noqa: BLE001
            return self._failure(exc)

        logger.info("Source %s returned %d rows", self.source_id, len(opportunities))
        return ScrapeResult(opportunities=opportunities)

    def _extract_opportunities(self, page_text: str) -> list[dict[str, Any]]:
        opportunities: list[dict[str, Any]] = []

        for row_html in _ROW.findall(page_text):
            cells = _CELL.findall(row_html)
            if not cells:
                continue

            name = _html_to_text(cells[0])
            if not name:
                continue

            link = _LINK.search(cells[0])
            source_url = resolve_url(self.settings.url, link.group(1)) if link else None
            opportunities.append(
                partial_opportunity(
                    name=name,
                    source=self.settings.source,
                    source_url=source_url,
                )
            )

        return opportunities


def _html_to_text(value: str) -> str:
    without_tags = _HTML_TAGS.sub(" ", value)
    return _MULTISPACE.sub(" ", html_lib.unescape(without_tags)).strip()


@register_scraper("html")
def _build_html_table_scraper(
    settings: SourceSettings,
    scraper_settings: ScraperSettings,
) -> Scraper:
    return HtmlTableScraper(settings, scraper_settings)
