"""
GCP Providers Package

Exports the Google Cloud speech, translation and synthesis providers.
"""

from voice_translator.services.gcp.speech import GCPSpeechService
from voice_translator.services.gcp.translate import GCPTranslationService
from voice_translator.services.gcp.tts import GCPTextToSpeechService

__all__ = [
    "GCPSpeechService",
    "GCPTranslationService",
    "GCPTextToSpeechService",
]
