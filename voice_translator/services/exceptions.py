"""
Voice Translation Exceptions

Error kinds surfaced by the translation engine. Callers only ever see
these types, never raw provider exceptions.
"""
from typing import Optional


class VoiceTranslationError(Exception):
    """Base exception for voice translation errors"""
    code = "error"


class InvalidInputError(VoiceTranslationError):
    """Raised for malformed, oversized or unsupported audio, or unsupported languages"""
    code = "invalid_input"


class LowQualityError(VoiceTranslationError):
    """Raised when audio scores below the quality threshold"""
    code = "low_quality"

    def __init__(self, score: float, threshold: float):
        self.score = score
        self.threshold = threshold
        super().__init__(
            f"Audio quality too low: {score:.2f} (threshold {threshold:.2f})"
        )


class ProviderError(VoiceTranslationError):
    """Raised when an upstream provider stage fails after all retries"""
    code = "provider_error"
    stage = "provider"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        attempts: int = 0
    ):
        self.cause = cause
        self.attempts = attempts
        super().__init__(message)


class RecognitionError(ProviderError):
    """Raised when no recognition provider returns usable text"""
    code = "recognition_failed"
    stage = "recognition"


class TranslationError(ProviderError):
    """Raised when text translation fails"""
    code = "translation_failed"
    stage = "translation"


class SynthesisError(ProviderError):
    """Raised when speech synthesis fails"""
    code = "synthesis_failed"
    stage = "synthesis"


class QueueFullError(VoiceTranslationError):
    """Raised by submit() when the pending queue is at capacity"""
    code = "queue_full"

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"Translation queue is full ({capacity} pending tasks)")


class CacheUnavailableError(VoiceTranslationError):
    """Raised internally when the cache store cannot be reached"""
    code = "cache_unavailable"
