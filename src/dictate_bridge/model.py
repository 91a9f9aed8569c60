"""Locale resolution and Vosk model loading.

A locale selects the speech model: ``en-IN`` loads the Indian English
model, ``fr`` the French one. Vosk finds models in its local cache and
downloads the small variant for a language on first use.
"""

import locale as _locale
import re
from pathlib import Path

import vosk

from dictate_bridge.constants import FALLBACK_LOCALE
from dictate_bridge.env import LOGGER, quiet_stdout
from dictate_bridge.errors import UnsupportedLocaleError

_LOCALE_RE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{2,8})*$")

# Tags whose Vosk model name differs from the language tag.
_MODEL_LANG_ALIASES = {
    "en": "en-us",
    "zh": "cn",
    "zh-cn": "cn",
    "ja-jp": "ja",
    "ko-kr": "ko",
    "de-de": "de",
    "fr-fr": "fr",
    "es-es": "es",
    "it-it": "it",
    "ru-ru": "ru",
}


def normalize_locale(tag: str) -> str:
    """Normalize a locale tag to Vosk's lowercase, hyphenated form.

    Accepts POSIX (``en_IN.UTF-8``) and BCP 47 (``en-IN``) spellings.
    """
    cleaned = tag.strip().split(".", 1)[0].split("@", 1)[0]
    cleaned = cleaned.replace("_", "-").lower()
    if not _LOCALE_RE.match(cleaned):
        raise UnsupportedLocaleError(f"invalid locale {tag!r}")
    return cleaned


def platform_locale() -> str:
    """Locale of the current process, or the fallback when unset."""
    lang, _ = _locale.getlocale()
    if not lang or lang in ("C", "POSIX"):
        return FALLBACK_LOCALE
    try:
        return normalize_locale(lang)
    except UnsupportedLocaleError:
        LOGGER.debug("Ignoring unusable platform locale %r", lang)
        return FALLBACK_LOCALE


def resolve_locale(tag: str | None) -> str:
    """Normalize *tag*, or pick the platform locale when it is None."""
    if tag is None:
        return platform_locale()
    return normalize_locale(tag)


def model_lang(locale: str) -> str:
    """Vosk model language name for a normalized locale."""
    return _MODEL_LANG_ALIASES.get(locale, locale)


def load_model(locale: str, model_path: str | None = None) -> vosk.Model:
    """Load the speech model for *locale*, or from *model_path* if given."""
    with quiet_stdout():
        if model_path:
            path = Path(model_path).expanduser()
            LOGGER.info("Loading speech model from %s", path)
            return vosk.Model(model_path=str(path))
        lang = model_lang(locale)
        LOGGER.info("Loading speech model for %s", lang)
        try:
            return vosk.Model(lang=lang)
        except SystemExit as exc:
            # vosk exits the interpreter when no model exists for a language.
            raise UnsupportedLocaleError(
                f"no speech model for locale {locale!r}"
            ) from exc


def create_recognizer(model: vosk.Model, sample_rate: int) -> vosk.KaldiRecognizer:
    """Create an open-vocabulary dictation recognizer bound to *model*."""
    recognizer = vosk.KaldiRecognizer(model, sample_rate)
    recognizer.SetWords(True)
    return recognizer
