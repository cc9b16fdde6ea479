"""
GCP Speech Provider

Handles Google Cloud Speech-to-Text recognition.
"""

from typing import Optional

from google.cloud import speech

from voice_translator.config.constants import (
    AUTO_DETECT_ALTERNATIVES,
    AUTO_LANGUAGE,
    DEFAULT_RECOGNITION_LOCALE,
)
from voice_translator.config.settings import Settings, settings as default_settings
from voice_translator.services.gcp.credentials import ensure_credentials
from voice_translator.services.languages import to_locale
from voice_translator.services.models import TranscriptionResult, WordTiming


class GCPSpeechService:
    """Speech-to-Text provider backed by Google Cloud Speech."""

    name = "gcp"

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = settings or default_settings
        if client is None:
            ensure_credentials(self.settings)
            client = speech.SpeechClient()
        self._client = client

    def _build_config(self, language_code: str, sample_rate: int) -> speech.RecognitionConfig:
        if language_code == AUTO_LANGUAGE:
            primary = DEFAULT_RECOGNITION_LOCALE
            alternatives = list(AUTO_DETECT_ALTERNATIVES)
        else:
            primary = to_locale(language_code)
            alternatives = []

        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=primary,
            alternative_language_codes=alternatives,
            enable_automatic_punctuation=True,
            enable_word_time_offsets=True,
        )

    def transcribe(self, audio_data: bytes, language_code: str, sample_rate: int) -> TranscriptionResult:
        """Transcribe a mono PCM16 buffer."""
        config = self._build_config(language_code, sample_rate)
        audio = speech.RecognitionAudio(content=audio_data)

        response = self._client.recognize(
            config=config,
            audio=audio,
            timeout=self.settings.STT_TIMEOUT_SEC,
        )

        texts = []
        confidences = []
        timings = []
        detected = ""
        for result in response.results:
            if not result.alternatives:
                continue
            best = result.alternatives[0]
            if best.transcript.strip():
                texts.append(best.transcript.strip())
                confidences.append(best.confidence)
            for word in best.words:
                timings.append(WordTiming(
                    word=word.word,
                    start=word.start_time.total_seconds(),
                    end=word.end_time.total_seconds(),
                ))
            if not detected and result.language_code:
                detected = result.language_code

        return TranscriptionResult(
            text=" ".join(texts).strip(),
            confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            detected_language=detected or ("" if language_code == AUTO_LANGUAGE else language_code),
            word_timings=tuple(timings),
        )

    def ping(self) -> bool:
        """Recognize 100ms of silence."""
        self._client.recognize(
            config=self._build_config(DEFAULT_RECOGNITION_LOCALE, 16000),
            audio=speech.RecognitionAudio(content=b"\x00\x00" * 1600),
            timeout=self.settings.STT_TIMEOUT_SEC,
        )
        return True
