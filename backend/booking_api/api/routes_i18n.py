"""
Internationalization (i18n) API routes.
Exposes the response-code message tables for pt-BR, en-US and es.
"""

from fastapi import APIRouter, Query, HTTPException
from typing import Dict, List

from booking_api.core.i18n import (
    get_translation,
    get_supported_languages,
    load_messages,
    normalize_language,
    SUPPORTED_LANGS,
)
from booking_api.core.config import settings

router = APIRouter(tags=["i18n"], prefix="/i18n")


@router.get("/languages", response_model=List[Dict[str, str]])
def list_supported_languages():
    """
    Get list of supported languages with metadata.

    Returns:
        [
            {"code": "pt-BR", "name": "Portuguese (Brazil)", "native_name": "Português (Brasil)"},
            ...
        ]
    """
    return get_supported_languages()


@router.get("/messages/{lang}", response_model=Dict[str, str])
def get_messages_table(lang: str):
    """
    Get every code -> message pair for a language.

    Args:
        lang: Language tag (pt-BR, en-US, es), case insensitive
    """
    if lang.lower() not in {supported.lower() for supported in SUPPORTED_LANGS}:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported language: {lang}. Supported: {', '.join(sorted(SUPPORTED_LANGS))}"
        )
    return load_messages(lang)


@router.get("/translate")
def translate_code(
    code: str = Query(..., description="Response code, e.g. E111"),
    lang: str = Query(settings.default_language, description="Language tag")
):
    """
    Resolve a single code.

    Returns:
        {"code": "E111", "message": "...", "lang": "en-US"}
    """
    lang = normalize_language(lang)
    return {
        "code": code,
        "message": get_translation(code, lang),
        "lang": lang
    }
