"""
Quality Gate - Rejects audio whose signal quality is too low to be
worth sending to the recognizer.

The score is a coarse loudness heuristic, not a measure of
intelligibility. The scoring function is a strategy (QualityScorer)
so it can be replaced without touching the gate.

Usage:
    from voice_translator.services.audio.quality import QualityGate

    gate = QualityGate(threshold=0.7)
    score = gate.score(wav_bytes)
    gate.check(score)  # raises LowQualityError below threshold
"""

import logging
from typing import Optional, Protocol

import numpy as np

from voice_translator.config.constants import QUALITY_FLOOR_DB
from voice_translator.services.audio.preprocessor import decode_wav
from voice_translator.services.exceptions import LowQualityError

logger = logging.getLogger(__name__)


class QualityScorer(Protocol):
    def __call__(self, samples: np.ndarray) -> float:
        """Map a float waveform in [-1, 1] to a score in [0, 1]."""
        ...


class MeanVolumeScorer:
    """
    Scores audio by its mean volume.

    mean_volume (dBFS) = 10 * log10(mean(x^2)); the score maps
    floor_db..0 dBFS linearly onto 0..1 and clamps.
    """

    def __init__(self, floor_db: float = QUALITY_FLOOR_DB):
        self.floor_db = floor_db

    def mean_volume_db(self, samples: np.ndarray) -> float:
        data = np.asarray(samples, dtype=np.float64).ravel()
        if data.size == 0:
            return float("-inf")
        mean_square = float(np.mean(data ** 2))
        if mean_square <= 0.0:
            return float("-inf")
        return 10.0 * np.log10(mean_square)

    def __call__(self, samples: np.ndarray) -> float:
        mean_db = self.mean_volume_db(samples)
        if mean_db == float("-inf"):
            return 0.0
        score = (mean_db - self.floor_db) / -self.floor_db
        return float(max(0.0, min(1.0, score)))


class QualityGate:
    """
    Admission check on audio quality.

    Args:
        threshold: Minimum admitted score (inclusive)
        scorer: Scoring strategy (default: MeanVolumeScorer)
    """

    def __init__(self, threshold: float = 0.7, scorer: Optional[QualityScorer] = None):
        self.threshold = threshold
        self.scorer = scorer or MeanVolumeScorer()

    def score(self, audio_bytes: bytes) -> float:
        """Score a WAV buffer, or raw little-endian PCM16 when there is no RIFF header."""
        if bytes(audio_bytes[:4]) == b"RIFF":
            samples = decode_wav(bytes(audio_bytes)).samples
        else:
            usable = len(audio_bytes) - (len(audio_bytes) % 2)
            samples = np.frombuffer(bytes(audio_bytes[:usable]), dtype="<i2").astype(np.float32) / 32768.0
        return self.score_samples(samples)

    def score_samples(self, samples: np.ndarray) -> float:
        return float(max(0.0, min(1.0, self.scorer(samples))))

    def admits(self, score: float) -> bool:
        return score >= self.threshold

    def check(self, score: float) -> float:
        """
        Raise LowQualityError if the score is below the threshold.

        Returns:
            The score, for chaining
        """
        if not self.admits(score):
            logger.info(f"[QualityGate] rejected audio: score={score:.3f} < {self.threshold:.3f}")
            raise LowQualityError(score, self.threshold)
        return score
