import pytest

from voice_translator.services.languages import (
    default_voice,
    detect_language_from_text,
    estimate_speech_duration,
    is_supported,
    normalize_language_code,
    same_language,
    to_locale,
    translation_code,
)


@pytest.mark.parametrize(
    "code,expected",
    [("zh-CN", "zh"), ("en_us", "en"), ("JA", "ja"), ("auto", "auto")],
)
def test_normalize_language_code(code, expected):
    assert normalize_language_code(code) == expected


def test_locale_mapping():
    assert to_locale("zh") == "zh-CN"
    assert to_locale("zh-tw") == "zh-TW"
    assert to_locale("en-GB") == "en-GB"
    assert translation_code("zh-TW") == "zh-TW"
    assert translation_code("zh-CN") == "zh"


def test_is_supported():
    assert is_supported("fr")
    assert is_supported("pt-BR")
    assert not is_supported("tlh")
    assert not is_supported("")


def test_same_language():
    assert same_language("en", "en-GB")
    assert not same_language("zh", "zh-TW")
    assert not same_language("auto", "en")


def test_default_voice():
    assert default_voice("ja") == "ja-JP-Wavenet-A"
    assert default_voice("tlh") is None


@pytest.mark.parametrize(
    "text,expected",
    [("你好世界", "zh"), ("こんにちは", "ja"), ("안녕하세요", "ko"), ("hello", "en")],
)
def test_detect_language_from_text(text, expected):
    assert detect_language_from_text(text) == expected


def test_estimate_speech_duration():
    words = " ".join(["word"] * 150)
    assert estimate_speech_duration(words) == pytest.approx(60.0)
    assert estimate_speech_duration(words, speaking_rate=2.0) == pytest.approx(30.0)
    assert estimate_speech_duration("hi") == 1.0
