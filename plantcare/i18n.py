"""
Bilingual string tables for the dashboard.

Usage:
    from plantcare.i18n import t

    t("status.wet", "ar")      # -> "رطب"
    t("time.minAgo", "en", n=5)  # -> "5 min ago"

Keys missing from a language fall back to English, then to the key itself.
"""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from .models import Language

_LOCALES_DIR = Path(__file__).parent / "locales"
_FALLBACK = Language.EN


@lru_cache(maxsize=4)
def _load_locale(lang: Language) -> dict:
    path = _LOCALES_DIR / f"{lang.value}.json"
    if not path.exists():
        path = _LOCALES_DIR / f"{_FALLBACK.value}.json"
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _lookup(locale: dict, key: str) -> str | None:
    node: Any = locale
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def t(key: str, lang: Language | str | None = None, **params: Any) -> str:
    """Translate a dot-separated key, formatting any ``{name}`` placeholders."""
    language = Language.resolve(lang)
    text = _lookup(_load_locale(language), key)
    if text is None and language is not _FALLBACK:
        text = _lookup(_load_locale(_FALLBACK), key)
    if text is None:
        return key
    return text.format(**params) if params else text


def table(lang: Language | str | None = None) -> dict:
    """The whole string table for a language (served to the browser)."""
    return copy.deepcopy(_load_locale(Language.resolve(lang)))
