"""
Tests for audio and language admission checks
"""
import pytest

from helpers import make_wav
from voice_translator.services.audio import AudioValidator
from voice_translator.services.exceptions import InvalidInputError


@pytest.fixture
def validator():
    return AudioValidator(max_bytes=1024 * 1024, max_duration_sec=2.0)


def test_accepts_short_wav(validator):
    validator.validate(make_wav(seconds=1.0), "wav")


def test_rejects_empty_audio(validator):
    with pytest.raises(InvalidInputError, match="empty"):
        validator.validate(b"", "wav")


def test_rejects_non_bytes(validator):
    with pytest.raises(InvalidInputError):
        validator.validate("not audio", "wav")


def test_rejects_oversized_audio():
    validator = AudioValidator(max_bytes=100)
    with pytest.raises(InvalidInputError, match="too large"):
        validator.validate(b"\x00" * 101, "mp3")


def test_rejects_unsupported_format(validator):
    with pytest.raises(InvalidInputError, match="Unsupported audio format"):
        validator.validate(b"\x00" * 32, "aac")


def test_format_is_case_insensitive(validator):
    validator.validate(make_wav(seconds=0.5), ".WAV")


def test_rejects_malformed_wav(validator):
    with pytest.raises(InvalidInputError, match="Malformed WAV"):
        validator.validate(b"definitely not a riff header", "wav")


def test_rejects_too_long_wav(validator):
    with pytest.raises(InvalidInputError, match="too long"):
        validator.validate(make_wav(seconds=3.0), "wav")


def test_non_wav_duration_not_checked(validator):
    # Compressed containers are only size-checked up front
    validator.validate(b"\xff\xfb" * 64, "mp3")


def test_languages_auto_source_is_allowed(validator):
    validator.validate_languages("auto", ["zh", "ja"])


def test_languages_accept_locales(validator):
    validator.validate_languages("en-US", ["zh-TW", "fr"])


@pytest.mark.parametrize(
    "source,targets,message",
    [
        ("xx", ["zh"], "source"),
        ("en", [], "At least one"),
        ("en", ["klingon"], "target"),
        ("en", ["auto"], "target"),
        ("en", ["zh", "zh"], "Duplicate"),
    ],
)
def test_languages_rejected(validator, source, targets, message):
    with pytest.raises(InvalidInputError, match=message):
        validator.validate_languages(source, targets)
