"""
Tests for the stage adapters: caching, retries, fallback and timeouts
"""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from helpers import FAST_RETRY, NO_RETRY, FakeSpeech, FakeTranslate, FakeTTS
from voice_translator.services.audio import NormalizedAudio
from voice_translator.services.exceptions import RecognitionError, SynthesisError, TranslationError
from voice_translator.services.models import VoiceOptions
from voice_translator.services.providers import (
    RetryPolicy,
    SpeechRecognizer,
    SpeechSynthesizer,
    Translator,
)


def pcm_audio(seconds: float = 0.5) -> NormalizedAudio:
    return NormalizedAudio(pcm=b"\x01\x00" * int(16000 * seconds))


def test_retry_policy_backoff():
    policy = RetryPolicy(attempts=4, base_delay=0.2, backoff=2.0)
    assert [policy.delay(n) for n in (1, 2, 3)] == pytest.approx([0.2, 0.4, 0.8])


def test_adapter_requires_a_provider(cache):
    with pytest.raises(ValueError):
        Translator([], cache)


@pytest.mark.asyncio
async def test_same_language_short_circuits_without_cache_or_provider():
    provider = Mock()
    cache = Mock()
    cache.get_translation = AsyncMock()
    cache.set_translation = AsyncMock()
    translator = Translator([provider], cache)

    result = await translator.translate("hello there", "en", "en-US")

    assert result.text == "hello there"
    assert result.confidence == 1.0
    provider.translate.assert_not_called()
    cache.get_translation.assert_not_called()
    cache.set_translation.assert_not_called()


@pytest.mark.asyncio
async def test_auto_source_is_never_short_circuited(cache):
    provider = FakeTranslate()
    translator = Translator([provider], cache, retry=NO_RETRY)
    await translator.translate("hello", "auto", "en")
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_translation_is_cached(cache):
    provider = FakeTranslate()
    translator = Translator([provider], cache, retry=NO_RETRY)

    first = await translator.translate("hello", "en", "zh-CN")
    second = await translator.translate("hello", "en-US", "zh")

    assert first.text == second.text == "你好"
    assert provider.calls == [("hello", "en", "zh")]


@pytest.mark.asyncio
async def test_zh_tw_keeps_region_for_translation(cache):
    provider = FakeTranslate()
    translator = Translator([provider], cache, retry=NO_RETRY)
    await translator.translate("hello", "en", "zh-TW")
    assert provider.calls[0][2] == "zh-TW"


@pytest.mark.asyncio
async def test_transient_failure_is_retried(cache):
    provider = FakeTranslate(failures=2)
    translator = Translator([provider], cache, retry=FAST_RETRY)

    result = await translator.translate("hello", "en", "ja")

    assert result.text == "こんにちは"
    assert len(provider.calls) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_stage_error(cache):
    provider = FakeTranslate(fail_for=("fr",))
    translator = Translator([provider], cache, retry=FAST_RETRY)

    with pytest.raises(TranslationError) as exc_info:
        await translator.translate("hello", "en", "fr")

    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert len(provider.calls) == 3
    assert await cache.get_translation("hello", "en", "fr") is None


@pytest.mark.asyncio
async def test_fallback_provider_used_when_primary_fails(cache):
    primary = FakeTranslate(name="primary", fail_for=("zh",))
    secondary = FakeTranslate(name="secondary", table={"hello": {"zh": "您好"}})
    translator = Translator([primary, secondary], cache, retry=NO_RETRY)

    result = await translator.translate("hello", "en", "zh")

    assert result.text == "您好"
    assert len(primary.calls) == 1
    assert len(secondary.calls) == 1


@pytest.mark.asyncio
async def test_provider_timeout_becomes_stage_error(cache):
    provider = FakeTranslate(delay=0.3)
    translator = Translator([provider], cache, timeout=0.05, retry=NO_RETRY)

    with pytest.raises(TranslationError) as exc_info:
        await translator.translate("hello", "en", "zh")
    assert isinstance(exc_info.value.cause, asyncio.TimeoutError)


@pytest.mark.asyncio
async def test_empty_transcript_raises_without_retry(cache):
    provider = FakeSpeech(text="   ")
    recognizer = SpeechRecognizer([provider], cache, retry=FAST_RETRY)

    with pytest.raises(RecognitionError) as exc_info:
        await recognizer.recognize(pcm_audio(), "en")

    assert exc_info.value.code == "recognition_failed"
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_recognizer_normalizes_detected_language(cache):
    provider = FakeSpeech(text="  hello  ", detected_language="en-us")
    recognizer = SpeechRecognizer([provider], cache, retry=NO_RETRY)

    result = await recognizer.recognize(pcm_audio(), "auto")

    assert result.text == "hello"
    assert result.detected_language == "en"
    assert provider.calls[0] == (16000, "auto", 16000)


@pytest.mark.asyncio
async def test_recognizer_falls_back_to_script_detection(cache):
    provider = FakeSpeech(text="こんにちは", detected_language="")
    recognizer = SpeechRecognizer([provider], cache, retry=NO_RETRY)
    result = await recognizer.recognize(pcm_audio(), "auto")
    assert result.detected_language == "ja"


@pytest.mark.asyncio
async def test_recognition_is_cached_per_audio(cache):
    provider = FakeSpeech()
    recognizer = SpeechRecognizer([provider], cache, retry=NO_RETRY)

    await recognizer.recognize(pcm_audio(), "en")
    await recognizer.recognize(pcm_audio(), "en")
    await recognizer.recognize(pcm_audio(seconds=0.25), "en")

    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_synthesizer_uses_default_voice_and_locale(cache):
    provider = FakeTTS()
    synthesizer = SpeechSynthesizer([provider], cache, retry=NO_RETRY)

    result = await synthesizer.synthesize("你好", "zh", VoiceOptions())

    assert result.audio == "audio:zh-CN:你好".encode("utf-8")
    assert provider.calls == [("你好", "zh-CN", "cmn-CN-Wavenet-A")]


@pytest.mark.asyncio
async def test_synthesis_cache_depends_on_voice_options(cache):
    provider = FakeTTS()
    synthesizer = SpeechSynthesizer([provider], cache, retry=NO_RETRY)

    await synthesizer.synthesize("bonjour", "fr", VoiceOptions())
    await synthesizer.synthesize("bonjour", "fr", VoiceOptions())
    await synthesizer.synthesize("bonjour", "fr", VoiceOptions(speaking_rate=1.5))

    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_synthesis_failure(cache):
    synthesizer = SpeechSynthesizer([FakeTTS(fail_for=("ja-JP",))], cache, retry=NO_RETRY)
    with pytest.raises(SynthesisError):
        await synthesizer.synthesize("こんにちは", "ja", VoiceOptions())


@pytest.mark.asyncio
async def test_health_check_tries_every_provider(cache):
    broken = FakeSpeech(fail=True)
    healthy = FakeSpeech()
    assert await SpeechRecognizer([broken], cache).health_check() is False
    assert await SpeechRecognizer([broken, healthy], cache).health_check() is True
