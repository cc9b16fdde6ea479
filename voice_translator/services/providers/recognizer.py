"""
Speech Recognizer - Speech-to-text stage adapter.
"""

import logging

from voice_translator.config.constants import AUTO_LANGUAGE
from voice_translator.services.audio.preprocessor import NormalizedAudio
from voice_translator.services.core.cache import content_hash
from voice_translator.services.exceptions import RecognitionError
from voice_translator.services.languages import (
    detect_language_from_text,
    normalize_language_code,
)
from voice_translator.services.models import TranscriptionResult
from voice_translator.services.providers.base import StageAdapter

logger = logging.getLogger(__name__)


class SpeechRecognizer(StageAdapter):
    """Converts normalized audio into text with a confidence score."""

    stage = "recognition"
    error_cls = RecognitionError

    async def recognize(self, audio: NormalizedAudio, language_hint: str) -> TranscriptionResult:
        """
        Transcribe normalized audio.

        Args:
            audio: 16kHz mono PCM16 audio from the preprocessor
            language_hint: Source language, or "auto" to detect it

        Returns:
            TranscriptionResult whose detected_language is a short code

        Raises:
            RecognitionError: if no provider returns usable text
        """
        hint = normalize_language_code(language_hint)
        audio_hash = content_hash(audio.pcm)

        cached = await self.cache.get_transcription(audio_hash, hint)
        if cached:
            logger.debug(f"[SpeechRecognizer] cache hit for {audio_hash[:12]} ({hint})")
            return cached

        raw = await self._run(
            "transcribe",
            (audio.pcm, language_hint, audio.sample_rate),
            accept=lambda r: r is not None and bool(r.text.strip()),
            describe=f"{audio.duration_seconds:.1f}s audio ({hint})",
        )

        detected = raw.detected_language
        if not detected:
            detected = detect_language_from_text(raw.text) if hint == AUTO_LANGUAGE else hint

        result = TranscriptionResult(
            text=raw.text.strip(),
            confidence=raw.confidence,
            detected_language=normalize_language_code(detected),
            word_timings=raw.word_timings,
        )

        await self.cache.set_transcription(audio_hash, hint, result)
        logger.info(
            f"[SpeechRecognizer] recognized {len(result.text)} chars "
            f"(lang={result.detected_language}, confidence={result.confidence:.2f})"
        )
        return result
