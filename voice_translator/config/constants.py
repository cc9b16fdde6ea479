"""
Engine-wide constants for audio handling, caching and tuning.

This file centralizes magic numbers used across the translation engine
so they can be tuned in one place.

Note: Environment-dependent settings (Redis, credentials, queue sizing,
thresholds) belong in settings.py. This file is for operational
parameters that rarely change between environments.
"""

# ==============================================================================
# AUDIO CONFIGURATION
# ==============================================================================

# Sample rate expected by the speech recognizer (Hz)
AUDIO_SAMPLE_RATE: int = 16000

# Bytes per sample (16-bit PCM = 2 bytes)
AUDIO_BYTES_PER_SAMPLE: int = 2

# Mono output
AUDIO_CHANNELS: int = 1

# Containers accepted by the validator
SUPPORTED_AUDIO_FORMATS: tuple[str, ...] = ("wav", "mp3", "flac", "ogg", "webm")

# ==============================================================================
# AUDIO PREPROCESSING
# ==============================================================================

# Band-pass filter applied when audio enhancement is requested (Hz)
HIGHPASS_CUTOFF_HZ: int = 80
LOWPASS_CUTOFF_HZ: int = 8000

# Peak level after gain normalization (fraction of full scale)
GAIN_NORMALIZE_PEAK: float = 0.9

# ffmpeg binary used to transcode non-WAV containers
FFMPEG_BINARY: str = "ffmpeg"

# ffmpeg transcode timeout (seconds)
FFMPEG_TIMEOUT_SEC: float = 30.0

# ==============================================================================
# QUALITY GATE
# ==============================================================================

# Mean volume (dBFS) mapped to a score of 0; 0 dBFS maps to 1
QUALITY_FLOOR_DB: float = -60.0

# Number of recent quality scores kept by the stats collector
QUALITY_SAMPLE_WINDOW: int = 1000

# ==============================================================================
# CACHE
# ==============================================================================

# Prefix for every key written by the engine
CACHE_KEY_PREFIX: str = "voice_translation"

# Key under which the stats aggregate is persisted
STATS_CACHE_KEY: str = "voice_translation_stats"

# Stats persistence TTL (seconds)
STATS_CACHE_TTL_SEC: int = 86400

# SCAN batch size used when clearing the cache
CACHE_SCAN_COUNT: int = 500

# ==============================================================================
# TEXT TO SPEECH
# ==============================================================================

# Default encoding of synthesized audio
TTS_AUDIO_ENCODING: str = "MP3"

# Sample rate requested from the synthesizer (Hz)
TTS_SAMPLE_RATE_HZ: int = 24000

# Speaking speed used to estimate spoken duration
ESTIMATED_WORDS_PER_MINUTE: int = 150
ESTIMATED_CJK_CHARS_PER_MINUTE: int = 200

# ==============================================================================
# TIMING - SCHEDULER
# ==============================================================================

# Default per-file timeout for batch translation (seconds)
BATCH_TRANSLATION_TIMEOUT_SEC: float = 60.0

# ==============================================================================
# LANGUAGES
# ==============================================================================

# Source language value that asks the recognizer to detect the language
AUTO_LANGUAGE: str = "auto"

# Recognition locale used when the source language is "auto"
DEFAULT_RECOGNITION_LOCALE: str = "en-US"

# Alternative locales offered to the recognizer for "auto" (max 3 for GCP)
AUTO_DETECT_ALTERNATIVES: tuple[str, ...] = ("zh-CN", "ja-JP", "es-ES")

# Supported languages: locale -> (display name, default TTS voice)
SUPPORTED_LANGUAGES: dict[str, tuple[str, str]] = {
    "zh-CN": ("Chinese (Simplified)", "cmn-CN-Wavenet-A"),
    "zh-TW": ("Chinese (Traditional)", "cmn-TW-Wavenet-A"),
    "en-US": ("English (US)", "en-US-Wavenet-D"),
    "en-GB": ("English (UK)", "en-GB-Wavenet-A"),
    "ja-JP": ("Japanese", "ja-JP-Wavenet-A"),
    "ko-KR": ("Korean", "ko-KR-Wavenet-A"),
    "fr-FR": ("French", "fr-FR-Wavenet-A"),
    "de-DE": ("German", "de-DE-Wavenet-A"),
    "es-ES": ("Spanish", "es-ES-Wavenet-B"),
    "it-IT": ("Italian", "it-IT-Wavenet-A"),
    "pt-BR": ("Portuguese (Brazil)", "pt-BR-Wavenet-A"),
    "ru-RU": ("Russian", "ru-RU-Wavenet-A"),
    "ar-XA": ("Arabic", "ar-XA-Wavenet-A"),
    "hi-IN": ("Hindi", "hi-IN-Wavenet-A"),
    "th-TH": ("Thai", "th-TH-Standard-A"),
    "vi-VN": ("Vietnamese", "vi-VN-Wavenet-A"),
}

# Short code -> default locale
LANGUAGE_CODE_MAP: dict[str, str] = {
    "zh": "zh-CN",
    "en": "en-US",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "fr": "fr-FR",
    "de": "de-DE",
    "es": "es-ES",
    "it": "it-IT",
    "pt": "pt-BR",
    "ru": "ru-RU",
    "ar": "ar-XA",
    "hi": "hi-IN",
    "th": "th-TH",
    "vi": "vi-VN",
}
