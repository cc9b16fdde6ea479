"""
Protocol definitions for speech pipeline providers.

This module defines interfaces (Python Protocols) that allow:
- Swapping implementations (e.g., GCP -> Azure -> Local)
- Testing without real API credentials
- Ordering several providers as primary/fallback for one stage

Providers are plain blocking clients. The stage adapters in
voice_translator.services.providers run them in a worker pool, add
caching, timeouts and retries, and translate their failures into the
engine's error types.

Usage:
    from voice_translator.services.protocols import SpeechToTextProvider

    def transcribe(provider: SpeechToTextProvider, audio: bytes):
        return provider.transcribe(audio, "en-US", 16000)
"""

from typing import Optional, Protocol, runtime_checkable

from voice_translator.services.models import (
    SynthesisResult,
    TranscriptionResult,
    TranslationResult,
    VoiceOptions,
)


@runtime_checkable
class SpeechToTextProvider(Protocol):
    """
    Interface for speech-to-text providers.
    """

    name: str

    def transcribe(
        self,
        audio_data: bytes,
        language_code: str,
        sample_rate: int,
    ) -> TranscriptionResult:
        """
        Transcribe audio to text.

        Args:
            audio_data: Raw PCM16 mono audio bytes
            language_code: Locale (e.g. "en-US") or "auto" for detection
            sample_rate: Sample rate of audio_data in Hz

        Returns:
            TranscriptionResult; an empty text means nothing was recognized
        """
        ...

    def ping(self) -> bool:
        """Lightweight availability check."""
        ...


@runtime_checkable
class TranslationProvider(Protocol):
    """
    Interface for text translation providers.
    """

    name: str

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
    ) -> TranslationResult:
        """
        Translate text from source to target language.

        Args:
            text: Text to translate
            source_lang: Source language code (e.g. "en")
            target_lang: Target language code (e.g. "zh")

        Returns:
            TranslationResult
        """
        ...

    def ping(self) -> bool:
        ...


@runtime_checkable
class TextToSpeechProvider(Protocol):
    """
    Interface for text-to-speech providers.
    """

    name: str

    def synthesize(
        self,
        text: str,
        language_code: str,
        options: VoiceOptions,
        voice_name: Optional[str] = None,
    ) -> SynthesisResult:
        """
        Synthesize speech from text.

        Args:
            text: Text to synthesize
            language_code: Locale (e.g. "zh-CN")
            options: Voice type, speaking rate and pitch
            voice_name: Provider voice to use

        Returns:
            SynthesisResult with the encoded audio
        """
        ...

    def ping(self) -> bool:
        ...
