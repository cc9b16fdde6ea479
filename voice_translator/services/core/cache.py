"""
Cache Layer - Content-addressed result cache over Redis.

Caches transcriptions, translations, synthesized audio and whole
pipeline results so identical inputs from different callers share
entries.

Example benefit:
- Two users send the same recording for "en" -> "zh"
- First request runs the full pipeline and stores the result
- Second request is answered from the pipeline cache without any
  provider call

Caching is an optimization only: when Redis is unreachable every read
is a miss and every write is a no-op.
"""
import hashlib
import json
import logging
from typing import Any, Dict, Iterable, Optional

from redis.exceptions import RedisError

from voice_translator.config.constants import CACHE_KEY_PREFIX, CACHE_SCAN_COUNT
from voice_translator.services.exceptions import CacheUnavailableError
from voice_translator.services.metrics import cache_requests
from voice_translator.services.models import (
    SynthesisResult,
    TranscriptionResult,
    TranslationResult,
)

logger = logging.getLogger(__name__)


def content_hash(content) -> str:
    """sha256 hex digest of bytes or text."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


class CacheLayer:
    """Key/value cache with TTL backed by an async Redis client."""

    def __init__(
        self,
        redis_client: Optional[Any],
        default_ttl: int = 3600,
        enabled: bool = True,
        prefix: str = CACHE_KEY_PREFIX,
    ):
        """
        Initialize the cache layer.

        Args:
            redis_client: redis.asyncio.Redis (or compatible) client; None
                          disables caching
            default_ttl: TTL in seconds used when set() gets none
            enabled: Master switch; when False every get() is a miss
            prefix: Namespace for every key
        """
        self._redis = redis_client
        self.default_ttl = default_ttl
        self.enabled = enabled and redis_client is not None
        self.prefix = prefix
        self._hits = 0
        self._misses = 0
        self._errors = 0

    # ------------------------------------------------------------------
    # Key builders
    # ------------------------------------------------------------------

    def transcription_key(self, audio_hash: str, source_language: str) -> str:
        return f"{self.prefix}:stt:{audio_hash}:{source_language}"

    def translation_key(self, text: str, source_language: str, target_language: str) -> str:
        return f"{self.prefix}:translate:{content_hash(text)}:{source_language}-{target_language}"

    def synthesis_key(self, text: str, target_language: str, voice_hash: str) -> str:
        return f"{self.prefix}:tts:{content_hash(text)}:{target_language}:{voice_hash}"

    def pipeline_key(self, audio_hash: str, source_language: str, target_language: str) -> str:
        return f"{self.prefix}:full_translation:{audio_hash}:{source_language}-{target_language}"

    # ------------------------------------------------------------------
    # Raw operations
    # ------------------------------------------------------------------

    async def _call(self, op: str, *args, **kwargs):
        try:
            return await getattr(self._redis, op)(*args, **kwargs)
        except (RedisError, OSError) as e:
            self._errors += 1
            raise CacheUnavailableError(f"cache {op} failed: {e}") from e

    def _kind(self, key: str) -> str:
        parts = key.split(":")
        return parts[1] if len(parts) > 2 and parts[0] == self.prefix else "other"

    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached value.

        Returns:
            The decoded value, or None on miss / unavailable store
        """
        if not self.enabled:
            return None

        kind = self._kind(key)
        try:
            raw = await self._call("get", key)
        except CacheUnavailableError as e:
            logger.warning(f"[CacheLayer] {e}; treating as miss")
            cache_requests.labels(kind=kind, result="error").inc()
            return None

        if raw is None:
            self._misses += 1
            cache_requests.labels(kind=kind, result="miss").inc()
            logger.debug(f"[CacheLayer] MISS {key}")
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"[CacheLayer] Corrupt entry {key}: {e}; treating as miss")
            self._misses += 1
            cache_requests.labels(kind=kind, result="miss").inc()
            return None

        self._hits += 1
        cache_requests.labels(kind=kind, result="hit").inc()
        logger.debug(f"[CacheLayer] HIT {key}")
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a JSON-serializable value.

        Returns:
            True if stored, False if caching is disabled or the store failed
        """
        if not self.enabled:
            return False

        payload = json.dumps(value, ensure_ascii=False)
        try:
            await self._call("set", key, payload, ex=ttl or self.default_ttl)
        except CacheUnavailableError as e:
            logger.warning(f"[CacheLayer] {e}; value not cached")
            return False
        return True

    async def invalidate(self, keys: Iterable[str]) -> int:
        """Delete the given keys. Returns the number removed."""
        keys = list(keys)
        if not self.enabled or not keys:
            return 0
        try:
            return int(await self._call("delete", *keys))
        except CacheUnavailableError as e:
            logger.warning(f"[CacheLayer] {e}; keys not invalidated")
            return 0

    async def clear(self) -> int:
        """
        Remove every key under this cache's prefix.

        Raises:
            CacheUnavailableError: if the store cannot be reached
        """
        if not self.enabled:
            return 0

        deleted = 0
        batch = []
        try:
            async for key in self._redis.scan_iter(match=f"{self.prefix}:*", count=CACHE_SCAN_COUNT):
                batch.append(key)
                if len(batch) >= CACHE_SCAN_COUNT:
                    deleted += await self._redis.delete(*batch)
                    batch = []
            if batch:
                deleted += await self._redis.delete(*batch)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"cache clear failed: {e}") from e

        logger.info(f"[CacheLayer] cleared {deleted} entries")
        return deleted

    async def ping(self) -> bool:
        if self._redis is None:
            return False
        try:
            return bool(await self._call("ping"))
        except CacheUnavailableError as e:
            logger.warning(f"[CacheLayer] {e}")
            return False

    # ------------------------------------------------------------------
    # Typed stage helpers
    # ------------------------------------------------------------------

    async def get_transcription(self, audio_hash: str, source_language: str) -> Optional[TranscriptionResult]:
        data = await self.get(self.transcription_key(audio_hash, source_language))
        return TranscriptionResult.from_dict(data) if data else None

    async def set_transcription(self, audio_hash: str, source_language: str, result: TranscriptionResult) -> bool:
        return await self.set(self.transcription_key(audio_hash, source_language), result.to_dict())

    async def get_translation(self, text: str, source_language: str, target_language: str) -> Optional[TranslationResult]:
        data = await self.get(self.translation_key(text, source_language, target_language))
        return TranslationResult.from_dict(data) if data else None

    async def set_translation(self, text: str, source_language: str, target_language: str, result: TranslationResult) -> bool:
        return await self.set(self.translation_key(text, source_language, target_language), result.to_dict())

    async def get_synthesis(self, text: str, target_language: str, voice_hash: str) -> Optional[SynthesisResult]:
        data = await self.get(self.synthesis_key(text, target_language, voice_hash))
        return SynthesisResult.from_dict(data) if data else None

    async def set_synthesis(self, text: str, target_language: str, voice_hash: str, result: SynthesisResult) -> bool:
        return await self.set(self.synthesis_key(text, target_language, voice_hash), result.to_dict())

    async def get_pipeline_entry(self, audio_hash: str, source_language: str, target_language: str) -> Optional[Dict[str, Any]]:
        return await self.get(self.pipeline_key(audio_hash, source_language, target_language))

    async def set_pipeline_entry(self, audio_hash: str, source_language: str, target_language: str, entry: Dict[str, Any]) -> bool:
        return await self.set(self.pipeline_key(audio_hash, source_language, target_language), entry)

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            Dict with hits, misses, errors, hit_rate_percent
        """
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0

        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate_percent": round(hit_rate, 2),
        }
