"""
GCP Text-to-Speech Provider

Handles Google Cloud Text-to-Speech operations.
"""

from typing import Optional

from google.cloud import texttospeech

from voice_translator.config.constants import TTS_AUDIO_ENCODING, TTS_SAMPLE_RATE_HZ
from voice_translator.config.settings import Settings, settings as default_settings
from voice_translator.services.gcp.credentials import ensure_credentials
from voice_translator.services.languages import estimate_speech_duration
from voice_translator.services.models import SynthesisResult, VoiceOptions


class GCPTextToSpeechService:
    """Text-to-Speech provider backed by Google Cloud TTS."""

    name = "gcp"

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = settings or default_settings
        if client is None:
            ensure_credentials(self.settings)
            client = texttospeech.TextToSpeechClient()
        self._client = client

    def synthesize(
        self,
        text: str,
        language_code: str,
        options: VoiceOptions,
        voice_name: Optional[str] = None,
    ) -> SynthesisResult:
        """Synthesize text to speech audio."""
        gender = texttospeech.SsmlVoiceGender[options.voice_type.upper()]
        voice_params = texttospeech.VoiceSelectionParams(
            language_code=language_code,
            name=voice_name or "",
            ssml_gender=gender,
        )

        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding[TTS_AUDIO_ENCODING],
            sample_rate_hertz=TTS_SAMPLE_RATE_HZ,
            speaking_rate=options.speaking_rate,
            pitch=options.pitch,
        )

        synthesis_input = texttospeech.SynthesisInput(text=text)

        response = self._client.synthesize_speech(
            input=synthesis_input,
            voice=voice_params,
            audio_config=audio_config,
            timeout=self.settings.TTS_TIMEOUT_SEC,
        )

        return SynthesisResult(
            audio=response.audio_content,
            encoding=TTS_AUDIO_ENCODING,
            sample_rate=TTS_SAMPLE_RATE_HZ,
            duration_seconds=estimate_speech_duration(text, options.speaking_rate),
        )

    def ping(self) -> bool:
        response = self._client.list_voices(language_code="en-US", timeout=self.settings.TTS_TIMEOUT_SEC)
        return bool(response.voices)
