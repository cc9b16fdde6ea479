"""
Stage Adapters Module

Narrow capability interfaces in front of the provider clients:
- SpeechRecognizer: audio -> TranscriptionResult
- Translator: text -> TranslationResult (same-language short-circuit)
- SpeechSynthesizer: text -> SynthesisResult

Each adapter consults the cache first, stores successes only, and
applies per-call timeouts, stage-scoped retries and provider fallback.

Usage:
    from voice_translator.services.providers import SpeechRecognizer, RetryPolicy

    recognizer = SpeechRecognizer([GCPSpeechService()], cache, retry=RetryPolicy(attempts=3))
"""

from voice_translator.services.providers.base import RetryPolicy, StageAdapter, UnusableResult
from voice_translator.services.providers.recognizer import SpeechRecognizer
from voice_translator.services.providers.translator import Translator
from voice_translator.services.providers.synthesizer import SpeechSynthesizer

__all__ = [
    "RetryPolicy",
    "StageAdapter",
    "UnusableResult",
    "SpeechRecognizer",
    "Translator",
    "SpeechSynthesizer",
]
