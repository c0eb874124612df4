from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from funding_pipeline.config import ScraperSettings, SourceSettings
from funding_pipeline.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScrapeResult:
    """Whatever a scrape found, plus the errors it ran into.

    Opportunities are partial records keyed like the stored documents
    (camelCase); they have not been validated.
    """

    opportunities: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    scraped_at: datetime = field(default_factory=utc_now)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_document(self) -> dict[str, Any]:
        return {
            "opportunities": list(self.opportunities),
            "errors": list(self.errors),
            "scrapedAt": self.scraped_at.isoformat().replace("+00:00", "Z"),
        }


def partial_opportunity(
    *,
    name: str,
    source: str,
    source_url: str | None = None,
    created_at: datetime | None = None,
) -> dict[str, Any]:
    moment = created_at or utc_now()
    record: dict[str, Any] = {
        "name": name,
        "source": source,
        "createdAt": moment.isoformat().replace("+00:00", "Z"),
    }
    if source_url:
        record["sourceUrl"] = source_url
    return record


class Scraper(ABC):
    def __init__(
        self,
        settings: SourceSettings,
        scraper_settings: ScraperSettings | None = None,
    ) -> None:
        self.settings = settings
        self.scraper_settings = scraper_settings or ScraperSettings()

    @property
    def source_id(self) -> str:
        return self.settings.id

    @abstractmethod
    def scrape(self) -> ScrapeResult:
        """Fetch the source page and extract partial opportunities. Never raises."""

    def inspect(self, on_ready: Callable[[], None] | None = None) -> None:
        raise NotImplementedError(
            f"Sources of type '{self.settings.type}' cannot be inspected interactively"
        )

    def _failure(self, exc: Exception) -> ScrapeResult:
        message = f"Failed to scrape {self.settings.url}: {exc}"
        logger.warning(message)
        return ScrapeResult(errors=[message])
