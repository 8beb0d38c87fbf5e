"""
Internationalization (i18n) module for the DMARC summary tool.

Provides translations for all user-facing CLI messages in English (en) and
German (de). The report itself is never translated.
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"en", "de"})
DEFAULT_LANGUAGE = "en"


# Translation dictionary with all messages
# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Configuration errors
    "error.config": {
        "en": "Configuration error: {message}",
        "de": "Konfigurationsfehler: {message}",
    },
    "error.config_file": {
        "en": "Could not load config from {path}",
        "de": "Konfiguration konnte nicht aus {path} geladen werden",
    },

    # Fatal ingestion errors
    "error.decode": {
        "en": "Malformed report: {message}",
        "de": "Fehlerhafter Bericht: {message}",
    },
    "error.validation": {
        "en": "Invalid report content: {message}",
        "de": "Ungültiger Berichtsinhalt: {message}",
    },
    "error.zip": {
        "en": "Zip archive error: {message}",
        "de": "Fehler im Zip-Archiv: {message}",
    },

    # Run summary
    "summary.done": {
        "en": "{reports} report(s) from {streams} stream(s), {rows} row(s) written",
        "de": "{reports} Bericht(e) aus {streams} Datenstrom/-strömen, {rows} Zeile(n) geschrieben",
    },
    "summary.skipped": {
        "en": "{count} stream(s) skipped:",
        "de": "{count} Datenstrom/-ströme übersprungen:",
    },
    "summary.skipped_item": {
        "en": "  - {source}: {message}",
        "de": "  - {source}: {message}",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'error.config')
        language: Language code ('en' or 'de'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('error.config', 'de', message='unknown sort option')
        'Konfigurationsfehler: unknown sort option'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # If formatting fails, return the unformatted message
            pass

    return message


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def get_missing_translations(language: str) -> set[str]:
    """
    Get all message keys that are missing translations for a language.

    Args:
        language: The language code to check

    Returns:
        Set of message keys missing translations for the specified language.
    """
    return {key for key, translations in TRANSLATIONS.items() if language not in translations}
