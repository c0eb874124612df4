"""Best-effort directory scrapers and their registry."""

from .base import ScrapeResult, Scraper, partial_opportunity
from .html_table import HtmlTableScraper
from .notion import NotionScraper
from .registry import (
    ScraperRegistrationError,
    create_scraper,
    register_scraper,
    registered_scraper_types,
)

__all__ = [
    "HtmlTableScraper",
    "NotionScraper",
    "ScrapeResult",
    "Scraper",
    "ScraperRegistrationError",
    "create_scraper",
    "partial_opportunity",
    "register_scraper",
    "registered_scraper_types",
]
