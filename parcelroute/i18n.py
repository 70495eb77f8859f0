"""
Message catalogs for user-visible text.

Catalogs are YAML files in parcelroute/locales/<locale>.yaml mapping message
keys to str.format templates. Adding a language means adding a file.
"""

import logging
from functools import lru_cache
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
FALLBACK_LOCALE = "en"


class _KeepMissing(dict):
    """Leave unknown placeholders in place instead of raising."""

    def __missing__(self, key):
        return "{" + key + "}"


@lru_cache(maxsize=None)
def load_catalog(locale: str) -> dict:
    """Load a locale catalog. Unknown locales yield an empty catalog."""
    path = LOCALES_DIR / f"{locale}.yaml"
    if not path.exists():
        logger.warning(f"No message catalog for locale '{locale}'")
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def available_locales() -> list[str]:
    return sorted(p.stem for p in LOCALES_DIR.glob("*.yaml"))


class Localizer:
    """Renders message keys in one locale, falling back to English."""

    def __init__(self, locale: str = FALLBACK_LOCALE, fallback: str = FALLBACK_LOCALE):
        self.locale = locale
        self.fallback = fallback
        self._catalog = load_catalog(locale)
        self._fallback_catalog = load_catalog(fallback)

    def text(self, key: str, **params) -> str:
        template = self._catalog.get(key) or self._fallback_catalog.get(key)
        if template is None:
            logger.warning(f"Missing message key '{key}' for locale '{self.locale}'")
            return key
        return template.format_map(_KeepMissing(params))

    def error(self, error) -> str:
        """Render an error's code and params; the provider detail fills {message}."""
        params = dict(error.params)
        params.setdefault("message", error.detail or "")
        return self.text(error.code, **params).strip()

    def user_message(self, error) -> str:
        """Text safe to show an end customer."""
        if getattr(error, "audience", "user") == "operator":
            return self.text("service_misconfigured")
        return self.error(error)


@lru_cache(maxsize=None)
def get_localizer(locale: str) -> Localizer:
    return Localizer(locale)


def negotiate_locale(accept_language: str | None, default: str) -> str:
    """Pick the first Accept-Language entry we have a catalog for."""
    if not accept_language:
        return default
    known = set(available_locales())
    for part in accept_language.split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in known:
            return primary
    return default
