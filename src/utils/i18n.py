from __future__ import annotations

"""
Internationalization (i18n) utility module for user-facing messages.

This module provides functionality for:
- Loading gettext catalogues for the supported languages
- Translating message keys into the caller's preferred language
- Falling back to the raw .po catalogue when compiled .mo files are stale
- Normalising language preferences stored on user records

Every error raised by the authentication domain resolves its message
through `get_translated_message`, so new message keys must be added to
`locales/<lang>/LC_MESSAGES/messages.po`.
"""

import gettext
import os
from typing import Dict, Optional

from src.core.config.settings import settings
from src.core.logging import logger

SUPPORTED_LANGUAGES = ("en",)

# Store translations for each language
_translations: Dict[str, gettext.NullTranslations] = {}

# Parsed .po catalogues, consulted when gettext returns the msgid unchanged.
_fallback_catalogs: Dict[str, Dict[str, str]] = {}


def _parse_po_file(po_path: str) -> Dict[str, str]:
    catalog: Dict[str, str] = {}
    current_msgid: Optional[str] = None
    with open(po_path, "r", encoding="utf-8") as po_file:
        for raw_line in po_file:
            line = raw_line.strip()
            if line.startswith("msgid "):
                current_msgid = line[6:].strip().strip('"')
            elif line.startswith("msgstr ") and current_msgid is not None:
                msgstr = line[7:].strip().strip('"')
                catalog[current_msgid] = msgstr or current_msgid
                current_msgid = None
    return catalog


def setup_i18n(locales_path: Optional[str] = None) -> None:
    """
    Initialize the internationalization system by loading translations.

    Args:
        locales_path: Directory holding the catalogues. Defaults to the
            repository level ``locales`` directory.

    Raises:
        FileNotFoundError: If the locales directory is not found.
    """
    if locales_path is None:
        base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
        locales_path = os.path.join(base_dir, "locales")

    if not os.path.exists(locales_path):
        raise FileNotFoundError(f"Locales directory not found: {locales_path}")

    for lang in SUPPORTED_LANGUAGES:
        _translations[lang] = gettext.translation(
            domain="messages",
            localedir=locales_path,
            languages=[lang],
            fallback=True,
        )

        po_path = os.path.join(locales_path, lang, "LC_MESSAGES", "messages.po")
        catalog: Dict[str, str] = {}
        if os.path.exists(po_path):
            file_size = os.path.getsize(po_path)
            if file_size > 10 * 1024 * 1024:  # 10MB limit
                logger.warning("i18n_po_file_too_large", lang=lang, size=file_size)
            else:
                catalog = _parse_po_file(po_path)

        _fallback_catalogs[lang] = catalog
        logger.debug("i18n_initialized", language=lang, entries=len(catalog))


def get_translated_message(key: str, locale: Optional[str] = None) -> str:
    """
    Retrieve a translated message for the given key and locale.

    Unknown locales fall back to the default language and unknown keys fall
    back to the key itself, so callers always get a printable string.

    Args:
        key: The message key to translate.
        locale: The target language code (defaults to DEFAULT_LANGUAGE).

    Returns:
        The translated message or the original key if translation fails.
    """
    if not _translations:
        setup_i18n()

    locale = normalize_language(locale)
    translation = _translations.get(locale)
    if translation is None:
        logger.error("translation_missing_for_locale", locale=locale)
        return key

    translated = translation.gettext(key)
    if translated == key:
        translated = _fallback_catalogs.get(locale, {}).get(key, key)
        if translated == key:
            logger.warning("translation_key_not_found", key=key, locale=locale)

    return translated


def normalize_language(language: Optional[str]) -> str:
    """Map a stored or requested language tag such as ``en-GB`` onto a supported code."""
    if not language:
        return settings.DEFAULT_LANGUAGE
    code = language.split(";")[0].strip().split("-")[0].lower()
    if code in SUPPORTED_LANGUAGES:
        return code
    return settings.DEFAULT_LANGUAGE
