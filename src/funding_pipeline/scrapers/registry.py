from __future__ import annotations

from typing import Callable

from funding_pipeline.config import ScraperSettings, SourceSettings

from .base import Scraper

ScraperFactory = Callable[[SourceSettings, ScraperSettings], Scraper]

_REGISTRY: dict[str, ScraperFactory] = {}


class ScraperRegistrationError(ValueError):
    """Raised when an unknown source type is used."""


def register_scraper(source_type: str) -> Callable[[ScraperFactory], ScraperFactory]:
    def decorator(factory: ScraperFactory) -> ScraperFactory:
        _REGISTRY[source_type] = factory
        return factory

    return decorator


def create_scraper(
    settings: SourceSettings,
    scraper_settings: ScraperSettings | None = None,
) -> Scraper:
    factory = _REGISTRY.get(settings.type)
    if factory is None:
        available = ", ".join(sorted(_REGISTRY)) or "none"
        raise ScraperRegistrationError(
            f"Unknown source type '{settings.type}'. Registered source types: {available}"
        )
    return factory(settings, scraper_settings or ScraperSettings())


def registered_scraper_types() -> list[str]:
    return sorted(_REGISTRY)
