"""
Tests for end-to-end stage orchestration
"""
import hashlib

import pytest

from helpers import FakeSpeech, FakeTranslate, FakeTTS, build_pipeline, make_wav
from voice_translator.services.exceptions import (
    InvalidInputError,
    LowQualityError,
    RecognitionError,
    TranslationError,
)
from voice_translator.services.models import TranslationTask, VoiceOptions


@pytest.mark.asyncio
async def test_auto_detect_to_chinese(cache, fake_redis):
    wav = make_wav(seconds=2.0, amplitude=0.8)
    stt = FakeSpeech(text="hello", confidence=0.9, detected_language="en")
    translate = FakeTranslate(table={"hello": {"zh": "你好"}}, confidence=0.95)
    pipeline = build_pipeline(cache, stt=stt, translate=translate)
    task = TranslationTask(audio_bytes=wav, source_language="auto", target_languages=("zh",))

    result = await pipeline.run(task)

    assert result.original_text == "hello"
    assert result.detected_language == "en"
    assert result.translated_text == "你好"
    assert result.translations["zh"].confidence == 0.95
    assert result.synthesized_audio
    assert result.quality_score >= 0.7
    assert result.from_cache is False

    audio_hash = hashlib.sha256(wav).hexdigest()
    assert await fake_redis.exists(cache.pipeline_key(audio_hash, "en", "zh"))
    assert await fake_redis.exists(cache.pipeline_key(audio_hash, "auto", "zh"))


@pytest.mark.asyncio
async def test_multiple_targets_in_one_result(cache):
    pipeline = build_pipeline(cache)
    task = TranslationTask(make_wav(), "en", ("zh", "ja", "fr"))

    result = await pipeline.run(task)

    assert list(result.translations) == ["zh", "ja", "fr"]
    assert result.translations["ja"].translated_text == "こんにちは"
    assert result.translations["fr"].translated_text == "bonjour"
    assert result.succeeded_languages == ("zh", "ja", "fr")


@pytest.mark.asyncio
async def test_partial_synthesis_failure_keeps_other_languages(cache, fake_redis):
    wav = make_wav()
    tts = FakeTTS(fail_for=("ja-JP",))
    pipeline = build_pipeline(cache, tts=tts)

    result = await pipeline.run(TranslationTask(wav, "en", ("zh", "ja")))

    zh, ja = result.translations["zh"], result.translations["ja"]
    assert zh.synthesized_audio and zh.error is None
    assert ja.translated_text == "こんにちは"
    assert ja.synthesized_audio is None
    assert ja.error.startswith("synthesis_failed")
    assert result.failed_languages == ("ja",)

    audio_hash = hashlib.sha256(wav).hexdigest()
    assert await fake_redis.exists(cache.pipeline_key(audio_hash, "en", "zh"))
    assert not await fake_redis.exists(cache.pipeline_key(audio_hash, "en", "ja"))


@pytest.mark.asyncio
async def test_translation_failure_for_one_language(cache):
    pipeline = build_pipeline(cache, translate=FakeTranslate(fail_for=("fr",)))

    result = await pipeline.run(TranslationTask(make_wav(), "en", ("zh", "fr")))

    assert result.translations["zh"].ok
    assert not result.translations["fr"].ok
    assert result.translations["fr"].error.startswith("translation_failed")


@pytest.mark.asyncio
async def test_every_language_failing_raises(cache):
    pipeline = build_pipeline(cache, translate=FakeTranslate(fail_for=("zh", "fr")))
    with pytest.raises(TranslationError):
        await pipeline.run(TranslationTask(make_wav(), "en", ("zh", "fr")))


@pytest.mark.asyncio
async def test_low_quality_stops_before_recognition(cache):
    stt = FakeSpeech()
    pipeline = build_pipeline(cache, stt=stt)

    with pytest.raises(LowQualityError) as exc_info:
        await pipeline.run(TranslationTask(make_wav(amplitude=0.01), "en", ("zh",)))

    assert exc_info.value.score < 0.7
    assert stt.calls == []


@pytest.mark.asyncio
async def test_invalid_audio_rejected(cache):
    stt = FakeSpeech()
    pipeline = build_pipeline(cache, stt=stt)
    with pytest.raises(InvalidInputError):
        await pipeline.run(TranslationTask(b"", "en", ("zh",)))
    assert stt.calls == []


@pytest.mark.asyncio
async def test_recognition_failure_propagates(cache):
    pipeline = build_pipeline(cache, stt=FakeSpeech(text=""))
    with pytest.raises(RecognitionError):
        await pipeline.run(TranslationTask(make_wav(), "en", ("zh",)))


@pytest.mark.asyncio
async def test_same_language_target_skips_translation(cache):
    translate = FakeTranslate()
    pipeline = build_pipeline(cache, translate=translate)

    result = await pipeline.run(TranslationTask(make_wav(), "en", ("en",)))

    assert result.translated_text == "hello"
    assert translate.calls == []


@pytest.mark.asyncio
async def test_synthesis_can_be_disabled(cache):
    tts = FakeTTS()
    pipeline = build_pipeline(cache, tts=tts)
    options = VoiceOptions(synthesize=False)

    result = await pipeline.run(TranslationTask(make_wav(), "en", ("zh",), options=options))

    assert result.translated_text == "你好"
    assert result.synthesized_audio is None
    assert tts.calls == []
