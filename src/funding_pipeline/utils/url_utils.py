from __future__ import annotations

from urllib.parse import urljoin, urlsplit


def is_well_formed_url(url: str) -> bool:
    value = (url or "").strip()
    if not value or any(char.isspace() for char in value):
        return False

    try:
        parsed = urlsplit(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def resolve_url(base_url: str, href: str) -> str:
    value = (href or "").strip()
    if not value:
        return value
    if value.startswith(("http://", "https://")):
        return value
    return urljoin(base_url, value)
