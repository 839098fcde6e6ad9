"""
Internationalization (i18n) support for the travel booking API.
Resolves response codes to localized messages for pt-BR, en-US and es.
Delegates to booking_api.services.translations for the canonical message store.
"""

from typing import Dict, Optional
from enum import Enum

from fastapi import Request

from booking_api.core.config import settings


class Language(str, Enum):
    """Supported languages."""
    PT_BR = "pt-BR"
    EN_US = "en-US"
    ES = "es"


# Supported language codes set
SUPPORTED_LANGS = {lang.value for lang in Language}


def normalize_language(lang: Optional[str]) -> str:
    """Map a language tag to a supported one, falling back to the default."""
    if not lang:
        return settings.default_language
    lang = lang.strip()
    for supported in SUPPORTED_LANGS:
        if supported.lower() == lang.lower():
            return supported
    return settings.default_language


def language_from_header(accept_language: Optional[str]) -> str:
    """Pick the first supported tag from an Accept-Language header."""
    if not accept_language:
        return settings.default_language
    known = {lang.lower() for lang in SUPPORTED_LANGS}
    for part in accept_language.split(","):
        tag = part.split(";")[0].strip()
        if tag.lower() in known:
            return normalize_language(tag)
    return settings.default_language


def get_translation(key: str, lang: str = "pt-BR", **kwargs) -> str:
    """Get translated string for a code in specified language."""
    from booking_api.services.translations import t
    return t(key, normalize_language(lang), **kwargs)


def load_messages(lang: str = "pt-BR") -> Dict[str, str]:
    """Get the full code -> message table for a language (default language fills gaps)."""
    from booking_api.services.translations import _TRANSLATIONS
    lang = normalize_language(lang)
    fallback = settings.default_language
    result = {}
    for key, lang_dict in _TRANSLATIONS.items():
        val = lang_dict.get(lang) or lang_dict.get(fallback)
        if val:
            result[key] = val
    return result


class Messages:
    """Per-request message table. Missing codes resolve to the code itself."""

    def __init__(self, lang: str = "pt-BR"):
        self.lang = normalize_language(lang)
        self._table = load_messages(self.lang)

    def get(self, code: Optional[str], **kwargs) -> Optional[str]:
        if code is None:
            return None
        text = self._table.get(code, code)
        if kwargs:
            try:
                text = text.format(**kwargs)
            except (KeyError, IndexError):
                pass
        return text

    def __getitem__(self, code: str) -> str:
        return self.get(code)


def get_messages(request: Request) -> Messages:
    """FastAPI dependency: message table for the request's Accept-Language."""
    return Messages(language_from_header(request.headers.get("accept-language")))


def get_supported_languages() -> list:
    """Get list of supported languages with metadata."""
    return [
        {"code": "pt-BR", "name": "Portuguese (Brazil)", "native_name": "Português (Brasil)"},
        {"code": "en-US", "name": "English (US)", "native_name": "English (US)"},
        {"code": "es", "name": "Spanish", "native_name": "Español"},
    ]
