"""
Audio Validator - Cheap input checks run before any expensive work.

Rejects empty, oversized or unsupported audio and unsupported
language pairs with InvalidInputError. Pure and synchronous.

Usage:
    from voice_translator.services.audio.validator import AudioValidator

    validator = AudioValidator(max_bytes=10 * 1024 * 1024)
    validator.validate(audio_bytes, "wav")
"""

import io
import logging
import wave
from dataclasses import dataclass
from typing import Iterable, Tuple

from voice_translator.config.constants import AUTO_LANGUAGE, SUPPORTED_AUDIO_FORMATS
from voice_translator.services.exceptions import InvalidInputError
from voice_translator.services.languages import is_supported

logger = logging.getLogger(__name__)


@dataclass
class AudioValidator:
    """
    Validates raw audio buffers and requested languages.

    Attributes:
        max_bytes: Largest accepted buffer
        max_duration_sec: Longest accepted WAV recording
        supported_formats: Accepted container formats
    """

    max_bytes: int = 10 * 1024 * 1024
    max_duration_sec: float = 60.0
    supported_formats: Tuple[str, ...] = SUPPORTED_AUDIO_FORMATS

    def validate(self, audio_bytes: bytes, audio_format: str = "wav") -> None:
        """
        Check an audio buffer.

        Raises:
            InvalidInputError: if the buffer is empty, too large, of an
                unsupported format, or (for WAV) unreadable or too long
        """
        if not isinstance(audio_bytes, (bytes, bytearray, memoryview)):
            raise InvalidInputError("Audio data must be bytes")

        size = len(audio_bytes)
        if size == 0:
            raise InvalidInputError("Audio data is empty")

        if size > self.max_bytes:
            raise InvalidInputError(
                f"Audio is too large: {size} bytes "
                f"(max {self.max_bytes / 1024 / 1024:.0f}MB)"
            )

        fmt = (audio_format or "").lower().lstrip(".")
        if fmt not in self.supported_formats:
            raise InvalidInputError(f"Unsupported audio format: {audio_format!r}")

        if fmt == "wav":
            duration = self._wav_duration(bytes(audio_bytes))
            if duration > self.max_duration_sec:
                raise InvalidInputError(
                    f"Audio is too long: {duration:.1f}s (max {self.max_duration_sec:.0f}s)"
                )

    def validate_languages(self, source_language: str, target_languages: Iterable[str]) -> None:
        """
        Check the requested language pair(s).

        Raises:
            InvalidInputError: for an unsupported source, no targets, or
                an unsupported target
        """
        if source_language != AUTO_LANGUAGE and not is_supported(source_language):
            raise InvalidInputError(f"Unsupported source language: {source_language}")

        targets = list(target_languages)
        if not targets:
            raise InvalidInputError("At least one target language is required")

        for target in targets:
            if target == AUTO_LANGUAGE or not is_supported(target):
                raise InvalidInputError(f"Unsupported target language: {target}")

        if len(set(targets)) != len(targets):
            raise InvalidInputError("Duplicate target languages")

    @staticmethod
    def _wav_duration(audio_bytes: bytes) -> float:
        try:
            with wave.open(io.BytesIO(audio_bytes), "rb") as wav:
                frames = wav.getnframes()
                rate = wav.getframerate()
        except (wave.Error, EOFError) as e:
            raise InvalidInputError(f"Malformed WAV data: {e}") from e

        if rate <= 0:
            raise InvalidInputError("Malformed WAV data: invalid sample rate")
        return frames / float(rate)
