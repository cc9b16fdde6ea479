"""
Audio Processing Module

This module contains the audio admission and preparation stages:
- AudioValidator: Size/format/duration checks before any expensive work
- QualityGate: Loudness-based quality scoring and rejection
- AudioPreprocessor: Decoding, resampling and enhancement for the recognizer

Usage:
    from voice_translator.services.audio import AudioValidator, QualityGate, AudioPreprocessor
"""

from voice_translator.services.audio.validator import AudioValidator
from voice_translator.services.audio.quality import QualityGate, QualityScorer, MeanVolumeScorer
from voice_translator.services.audio.preprocessor import (
    AudioPreprocessor,
    DecodedAudio,
    NormalizedAudio,
    decode_wav,
    encode_wav,
)

__all__ = [
    "AudioValidator",
    "QualityGate",
    "QualityScorer",
    "MeanVolumeScorer",
    "AudioPreprocessor",
    "DecodedAudio",
    "NormalizedAudio",
    "decode_wav",
    "encode_wav",
]
