"""
Stats Collector - Process-lifetime translation statistics.

Tracks attempts, successes and failures, a running average latency,
per language pair usage and a bounded window of recent quality scores.

Thread-safe: Protected by a lock, since tasks record from the
scheduler while callers read snapshots.

Persistence to the cache store is best effort: losing stats on a crash
is acceptable.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Optional

import numpy as np

from voice_translator.config.constants import (
    QUALITY_SAMPLE_WINDOW,
    STATS_CACHE_KEY,
    STATS_CACHE_TTL_SEC,
)
from voice_translator.services.models import StatsView, TaskOutcome

logger = logging.getLogger(__name__)


@dataclass
class StatsCollector:
    """
    Aggregates task outcomes.

    Attributes:
        quality_window: Number of recent quality scores kept
    """

    quality_window: int = QUALITY_SAMPLE_WINDOW

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    partial: int = 0
    cache_hits: int = 0
    average_processing_time_ms: float = 0.0
    total_audio_bytes: int = 0
    language_usage: Dict[str, int] = field(default_factory=dict)
    error_counts: Dict[str, int] = field(default_factory=dict)
    _quality_scores: Deque[float] = field(init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def __post_init__(self):
        self._quality_scores = deque(maxlen=self.quality_window)

    def record(self, outcome: TaskOutcome) -> None:
        """Fold one finished task into the aggregate."""
        with self._lock:
            self.attempted += 1
            if outcome.success:
                self.succeeded += 1
                if outcome.partial:
                    self.partial += 1
            else:
                self.failed += 1
                code = outcome.error_code or "error"
                self.error_counts[code] = self.error_counts.get(code, 0) + 1

            # Incremental mean: avg_n = avg_{n-1} + (x - avg_{n-1}) / n
            self.average_processing_time_ms += (
                outcome.processing_time_ms - self.average_processing_time_ms
            ) / self.attempted

            for target in outcome.target_languages:
                pair = f"{outcome.source_language}-{target}"
                self.language_usage[pair] = self.language_usage.get(pair, 0) + 1

            if outcome.quality_score > 0:
                self._quality_scores.append(outcome.quality_score)

            self.total_audio_bytes += outcome.audio_bytes

    def record_cache_hit(self) -> None:
        with self._lock:
            self.cache_hits += 1

    def snapshot(self, queue_length: int = 0, is_processing: bool = False) -> StatsView:
        """Return a read-only copy of the current statistics."""
        with self._lock:
            scores = np.fromiter(self._quality_scores, dtype=np.float64)
            if scores.size:
                avg_quality = float(scores.mean())
                p50, p90 = (float(v) for v in np.percentile(scores, [50, 90]))
            else:
                avg_quality = p50 = p90 = 0.0

            success_rate = (
                round(self.succeeded / self.attempted * 100, 2) if self.attempted else 0.0
            )

            return StatsView(
                attempted=self.attempted,
                succeeded=self.succeeded,
                failed=self.failed,
                partial=self.partial,
                cache_hits=self.cache_hits,
                success_rate=success_rate,
                average_processing_time_ms=round(self.average_processing_time_ms, 2),
                average_quality_score=round(avg_quality, 4),
                quality_p50=round(p50, 4),
                quality_p90=round(p90, 4),
                total_audio_bytes=self.total_audio_bytes,
                language_usage=dict(self.language_usage),
                error_counts=dict(self.error_counts),
                queue_length=queue_length,
                is_processing=is_processing,
            )

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "attempted": self.attempted,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "partial": self.partial,
                "cache_hits": self.cache_hits,
                "average_processing_time_ms": self.average_processing_time_ms,
                "total_audio_bytes": self.total_audio_bytes,
                "language_usage": dict(self.language_usage),
                "error_counts": dict(self.error_counts),
                "quality_scores": list(self._quality_scores),
            }

    def load_dict(self, data: dict) -> None:
        with self._lock:
            self.attempted = int(data.get("attempted", 0))
            self.succeeded = int(data.get("succeeded", 0))
            self.failed = int(data.get("failed", 0))
            self.partial = int(data.get("partial", 0))
            self.cache_hits = int(data.get("cache_hits", 0))
            self.average_processing_time_ms = float(data.get("average_processing_time_ms", 0.0))
            self.total_audio_bytes = int(data.get("total_audio_bytes", 0))
            self.language_usage = dict(data.get("language_usage", {}))
            self.error_counts = dict(data.get("error_counts", {}))
            self._quality_scores = deque(
                (float(s) for s in data.get("quality_scores", [])),
                maxlen=self.quality_window,
            )

    async def persist(self, cache) -> bool:
        """Write the aggregate to the cache store. Never raises."""
        stored = await cache.set(STATS_CACHE_KEY, self.to_dict(), ttl=STATS_CACHE_TTL_SEC)
        if stored:
            logger.debug("[StatsCollector] stats persisted")
        return stored

    async def load(self, cache) -> bool:
        """Restore a previously persisted aggregate, if any."""
        data: Optional[dict] = await cache.get(STATS_CACHE_KEY)
        if not data:
            return False
        self.load_dict(data)
        logger.info(f"[StatsCollector] restored stats ({self.attempted} attempts)")
        return True
