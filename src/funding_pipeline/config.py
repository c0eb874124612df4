from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_DATA_DIR = "data"


class ConfigError(ValueError):
    """Raised when configuration is invalid."""


@dataclass(slots=True)
class SourceSettings:
    """A directory page the scraper can read opportunities from."""

    id: str
    type: str
    url: str
    name: str = ""
    source: str = ""
    description: str | None = None
    requires_js_rendering: bool = False
    last_scraped: str | None = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass(slots=True)
class ScraperSettings:
    headless: bool = True
    navigation_timeout_seconds: int = 30
    render_timeout_seconds: int = 10


@dataclass(slots=True)
class StorageSettings:
    data_dir: str = DEFAULT_DATA_DIR


@dataclass(slots=True)
class AppConfig:
    sources: list[SourceSettings] = field(default_factory=list)
    storage: StorageSettings = field(default_factory=StorageSettings)
    scraper: ScraperSettings = field(default_factory=ScraperSettings)
    log_level: str = "INFO"

    def find_source(self, source_id: str) -> SourceSettings | None:
        for source in self.sources:
            if source.id == source_id:
                return source
        return None

    def first_source_of_type(self, source_type: str) -> SourceSettings | None:
        for source in self.sources:
            if source.type == source_type:
                return source
        return None


_BOOL_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def _as_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value

    key = str(value).strip().lower() if isinstance(value, (int, str)) else None
    if key in _BOOL_WORDS:
        return _BOOL_WORDS[key]
    raise ConfigError(f"{field_name} must be a boolean (got {value!r})")


def _as_int(value: Any, *, field_name: str, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be an integer")

    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc

    if minimum is not None and parsed < minimum:
        raise ConfigError(f"{field_name} must be >= {minimum}")
    return parsed


def _as_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_mapping(value: Any, *, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{field_name} must be a mapping")
    return value


def _resolve_relative_path(config_path: Path, raw_path: str) -> str:
    candidate = Path(raw_path).expanduser()
    if candidate.is_absolute():
        return str(candidate)
    return str((config_path.parent / candidate).resolve())


def _parse_source(index: int, source: Any) -> SourceSettings:
    if not isinstance(source, dict):
        raise ConfigError(f"Source entry #{index} must be a mapping")

    source_id = str(source.get("id", "")).strip()
    source_type = str(source.get("type", "")).strip()
    source_url = str(source.get("url", "")).strip()
    if not source_id or not source_type or not source_url:
        raise ConfigError(f"Source entry #{index} missing one of: id, type, url")

    known = {
        "id",
        "type",
        "url",
        "name",
        "source",
        "description",
        "requires_js_rendering",
        "last_scraped",
    }
    options = {key: value for key, value in source.items() if key not in known}
    if "timeout_seconds" in options:
        options["timeout_seconds"] = _as_int(
            options["timeout_seconds"],
            field_name=f"sources[{index}].timeout_seconds",
            minimum=1,
        )

    return SourceSettings(
        id=source_id,
        type=source_type,
        url=source_url,
        name=str(source.get("name") or source_id).strip(),
        source=str(source.get("source") or source_id).strip(),
        description=_as_optional_text(source.get("description")),
        requires_js_rendering=_as_bool(
            source.get("requires_js_rendering", False),
            field_name=f"sources[{index}].requires_js_rendering",
        ),
        last_scraped=_as_optional_text(source.get("last_scraped")),
        options=options,
    )


def load_config(path: str | Path) -> AppConfig:
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            parsed = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigError("Config root must be a mapping")

    raw_sources = parsed.get("sources", []) or []
    if not isinstance(raw_sources, list):
        raise ConfigError("sources must be a list")

    sources = [
        _parse_source(index, source) for index, source in enumerate(raw_sources, start=1)
    ]

    seen_ids: set[str] = set()
    for source in sources:
        if source.id in seen_ids:
            raise ConfigError(f"Duplicate source id: {source.id}")
        seen_ids.add(source.id)

    raw_storage = _as_mapping(parsed.get("storage"), field_name="storage")
    data_dir = str(raw_storage.get("data_dir", DEFAULT_DATA_DIR)).strip() or DEFAULT_DATA_DIR
    storage_settings = StorageSettings(data_dir=_resolve_relative_path(config_path, data_dir))

    raw_scraper = _as_mapping(parsed.get("scraper"), field_name="scraper")
    scraper_settings = ScraperSettings(
        headless=_as_bool(raw_scraper.get("headless", True), field_name="scraper.headless"),
        navigation_timeout_seconds=_as_int(
            raw_scraper.get("navigation_timeout_seconds", 30),
            field_name="scraper.navigation_timeout_seconds",
            minimum=1,
        ),
        render_timeout_seconds=_as_int(
            raw_scraper.get("render_timeout_seconds", 10),
            field_name="scraper.render_timeout_seconds",
            minimum=1,
        ),
    )

    return AppConfig(
        sources=sources,
        storage=storage_settings,
        scraper=scraper_settings,
        log_level=str(parsed.get("log_level", "INFO")).upper(),
    )
