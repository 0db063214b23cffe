"""Locale bundles and translator lookup."""
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .relationship_types import Translate

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).resolve().parent / "locales"
SUPPORTED_LOCALES = ("en", "es-ES", "it-IT")
DEFAULT_LOCALE = "en"
LOCALE_COOKIE = "locale"


def is_supported_locale(value: Optional[str]) -> bool:
    return value in SUPPORTED_LOCALES


def normalize_locale(value: Optional[str]) -> Optional[str]:
    """Map 'es', 'es_es', 'IT-it' etc. onto a supported locale, or None."""
    if not value:
        return None
    value = value.strip().replace("_", "-")
    for loc in SUPPORTED_LOCALES:
        if value.lower() == loc.lower():
            return loc
    lang = value.split("-", 1)[0].lower()
    for loc in SUPPORTED_LOCALES:
        if loc.split("-", 1)[0].lower() == lang:
            return loc
    return None


def pick_locale(cookie: Optional[str] = None, accept_language: Optional[str] = None,
                user_locale: Optional[str] = None) -> str:
    """Cookie first, then Accept-Language (in header order), then the account setting."""
    loc = normalize_locale(cookie)
    if loc:
        return loc
    if accept_language:
        for part in accept_language.split(","):
            loc = normalize_locale(part.split(";", 1)[0])
            if loc:
                return loc
    return normalize_locale(user_locale) or DEFAULT_LOCALE


@lru_cache(maxsize=None)
def load_messages(locale: str) -> dict:
    if not is_supported_locale(locale):
        locale = DEFAULT_LOCALE
    path = LOCALES_DIR / f"{locale}.json"
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Missing locale bundle %s", path)
        return {}


def _lookup(messages: dict, dotted: str) -> Optional[str]:
    node = messages
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def get_translator(locale: str, namespace: str = "") -> Translate:
    """Return ``translate(key)`` scoped to ``namespace``.

    Missing keys fall back to the default locale, then to the key itself.
    """
    messages = load_messages(locale if is_supported_locale(locale) else DEFAULT_LOCALE)
    fallback = load_messages(DEFAULT_LOCALE)

    def translate(key: str) -> str:
        dotted = f"{namespace}.{key}" if namespace else key
        value = _lookup(messages, dotted)
        if value is None:
            value = _lookup(fallback, dotted)
        return value if value is not None else key

    return translate
