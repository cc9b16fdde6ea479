"""
Language helpers.

Maps between short codes ("zh"), recognition/synthesis locales ("zh-CN")
and display names, and provides a script-based fallback for detecting
the language of recognized text.
"""
import re
from typing import Dict, List, Optional

from voice_translator.config.constants import (
    AUTO_LANGUAGE,
    ESTIMATED_CJK_CHARS_PER_MINUTE,
    ESTIMATED_WORDS_PER_MINUTE,
    LANGUAGE_CODE_MAP,
    SUPPORTED_LANGUAGES,
)

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")
_KANA_RE = re.compile(r"[\u3040-\u30ff]")
_HANGUL_RE = re.compile(r"[\uac00-\ud7af]")

_LOCALES_BY_LOWER = {locale.lower(): locale for locale in SUPPORTED_LANGUAGES}


def normalize_language_code(language: str) -> str:
    """
    Reduce a locale to its short code ("zh-CN" -> "zh", "en-us" -> "en").

    "auto" is returned unchanged.
    """
    if not language:
        return language
    if language == AUTO_LANGUAGE:
        return language
    return language.replace("_", "-").split("-")[0].lower()


def to_locale(language: str) -> str:
    """Expand a short code to its default locale; known locales pass through."""
    canonical = _LOCALES_BY_LOWER.get(language.replace("_", "-").lower())
    if canonical:
        return canonical
    return LANGUAGE_CODE_MAP.get(normalize_language_code(language), language)


def translation_code(language: str) -> str:
    """Language code expected by text translation providers."""
    locale = to_locale(language)
    if locale == "zh-TW":
        return "zh-TW"
    return normalize_language_code(language)


def is_supported(language: str) -> bool:
    if not language:
        return False
    if language.replace("_", "-").lower() in _LOCALES_BY_LOWER:
        return True
    return normalize_language_code(language) in LANGUAGE_CODE_MAP


def same_language(source: str, target: str) -> bool:
    if source == AUTO_LANGUAGE:
        return False
    return translation_code(source) == translation_code(target)


def default_voice(language: str) -> Optional[str]:
    entry = SUPPORTED_LANGUAGES.get(to_locale(language))
    return entry[1] if entry else None


def get_supported_languages() -> List[Dict[str, str]]:
    return [
        {"code": code, "display_name": name}
        for code, (name, _voice) in SUPPORTED_LANGUAGES.items()
    ]


def detect_language_from_text(text: str) -> str:
    """Guess a short language code from the script used in the text."""
    if _KANA_RE.search(text):
        return "ja"
    if _HANGUL_RE.search(text):
        return "ko"
    if _CJK_RE.search(text):
        return "zh"
    return "en"


def estimate_speech_duration(text: str, speaking_rate: float = 1.0) -> float:
    """
    Rough spoken duration of text in seconds (at least 1s).

    CJK text is counted per character, everything else per word.
    """
    rate = speaking_rate if speaking_rate > 0 else 1.0
    if _CJK_RE.search(text):
        minutes = len(text) / (ESTIMATED_CJK_CHARS_PER_MINUTE * rate)
    else:
        minutes = len(text.split()) / (ESTIMATED_WORDS_PER_MINUTE * rate)
    return max(minutes * 60.0, 1.0)
