"""
Tests for the Redis-backed cache layer
"""
import hashlib

import pytest

from helpers import BrokenRedis
from voice_translator.services.core import CacheLayer, content_hash
from voice_translator.services.exceptions import CacheUnavailableError
from voice_translator.services.models import SynthesisResult, TranscriptionResult, WordTiming


def test_content_hash_is_sha256():
    assert content_hash(b"abc") == hashlib.sha256(b"abc").hexdigest()
    assert content_hash("你好") == hashlib.sha256("你好".encode("utf-8")).hexdigest()


def test_keys_are_namespaced(cache):
    assert cache.pipeline_key("h", "en", "zh") == "voice_translation:full_translation:h:en-zh"
    assert cache.transcription_key("h", "auto").startswith("voice_translation:stt:h")
    assert cache.translation_key("hi", "en", "fr") == (
        f"voice_translation:translate:{content_hash('hi')}:en-fr"
    )


@pytest.mark.asyncio
async def test_set_then_get_with_ttl(cache, fake_redis):
    assert await cache.set("voice_translation:test:k", {"a": 1}, ttl=120)
    assert await cache.get("voice_translation:test:k") == {"a": 1}
    ttl = await fake_redis.ttl("voice_translation:test:k")
    assert 0 < ttl <= 120


@pytest.mark.asyncio
async def test_default_ttl_applied(cache, fake_redis):
    await cache.set("voice_translation:test:k", "v")
    ttl = await fake_redis.ttl("voice_translation:test:k")
    assert 3500 < ttl <= 3600


@pytest.mark.asyncio
async def test_miss_returns_none_and_counts(cache):
    assert await cache.get("voice_translation:test:missing") is None
    assert cache.get_stats()["misses"] == 1


@pytest.mark.asyncio
async def test_corrupt_entry_is_a_miss(cache, fake_redis):
    await fake_redis.set("voice_translation:test:bad", b"{not json")
    assert await cache.get("voice_translation:test:bad") is None


@pytest.mark.asyncio
async def test_typed_helpers_preserve_results(cache):
    transcription = TranscriptionResult(
        text="hello world",
        confidence=0.9,
        detected_language="en",
        word_timings=(WordTiming("hello", 0.0, 0.4), WordTiming("world", 0.4, 0.9)),
    )
    await cache.set_transcription("abc", "auto", transcription)
    assert await cache.get_transcription("abc", "auto") == transcription

    synthesis = SynthesisResult(audio=b"\x00\xffmp3", encoding="MP3", sample_rate=24000, duration_seconds=1.5)
    await cache.set_synthesis("你好", "zh", "voicehash", synthesis)
    assert await cache.get_synthesis("你好", "zh", "voicehash") == synthesis


@pytest.mark.asyncio
async def test_disabled_cache_never_hits(fake_redis):
    cache = CacheLayer(fake_redis, enabled=False)
    assert await cache.set("voice_translation:test:k", 1) is False
    assert await cache.get("voice_translation:test:k") is None
    assert await fake_redis.get("voice_translation:test:k") is None


@pytest.mark.asyncio
async def test_unavailable_store_degrades_to_miss():
    cache = CacheLayer(BrokenRedis())
    assert await cache.get("voice_translation:test:k") is None
    assert await cache.set("voice_translation:test:k", 1) is False
    assert await cache.invalidate(["voice_translation:test:k"]) == 0
    assert await cache.ping() is False
    assert cache.get_stats()["errors"] >= 4


@pytest.mark.asyncio
async def test_clear_raises_when_store_unavailable():
    cache = CacheLayer(BrokenRedis())
    with pytest.raises(CacheUnavailableError):
        await cache.clear()


@pytest.mark.asyncio
async def test_clear_only_removes_own_keys(cache, fake_redis):
    await fake_redis.set("other_app:key", "keep")
    for i in range(3):
        await cache.set(f"voice_translation:test:{i}", i)

    assert await cache.clear() == 3
    assert await fake_redis.get("other_app:key") == b"keep"
    assert await cache.get("voice_translation:test:0") is None


@pytest.mark.asyncio
async def test_invalidate(cache):
    await cache.set("voice_translation:test:a", 1)
    await cache.set("voice_translation:test:b", 2)
    assert await cache.invalidate(["voice_translation:test:a", "voice_translation:test:zzz"]) == 1
    assert await cache.get("voice_translation:test:b") == 2


@pytest.mark.asyncio
async def test_ping(cache):
    assert await cache.ping() is True
