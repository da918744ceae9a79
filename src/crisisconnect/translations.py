"""ABOUTME: Translation utilities for user-facing error messages
ABOUTME: Provides gettext functions that work both in Flask context and standalone"""

import os
from gettext import GNUTranslations
from typing import Any

from flask import current_app, has_app_context
from flask_babel import gettext as flask_gettext

_translations: dict[str, GNUTranslations] = {}
_default_locale = "en"


def _get_text_fallback(message: str, **kwargs: Any) -> str:
    """Fallback gettext that works without Flask context."""
    locale = os.environ.get("CRISISCONNECT_LOCALE", _default_locale)

    translated = _translations[locale].gettext(message) if locale in _translations else message

    if kwargs:
        try:
            return translated % kwargs
        except (KeyError, ValueError, TypeError):
            # a broken translation must not hide the original message
            return message % kwargs

    return translated


def gettext(message: str, **kwargs: Any) -> str:
    """Get translated string - works both in Flask context and standalone."""
    if has_app_context() and "babel" in current_app.extensions:
        return str(flask_gettext(message, **kwargs))

    return _get_text_fallback(message, **kwargs)


_ = gettext


def load_translations(locale_dir: str, languages: list[str]) -> None:
    """Load compiled catalogues from locale directory for fallback usage."""
    for locale in languages:
        locale_path = os.path.join(locale_dir, locale, "LC_MESSAGES", "messages.mo")
        if os.path.exists(locale_path):
            with open(locale_path, "rb") as fp:
                _translations[locale] = GNUTranslations(fp)
