import asyncio
import io
import time
import wave
from typing import Dict, Optional

import numpy as np
from redis.exceptions import ConnectionError as RedisConnectionError

from voice_translator.config.settings import Settings
from voice_translator.services.audio import AudioPreprocessor, AudioValidator, QualityGate
from voice_translator.services.core import CacheLayer, StatsCollector
from voice_translator.services.engine import VoiceTranslationEngine
from voice_translator.services.models import (
    SynthesisResult,
    TranscriptionResult,
    TranslationResult,
    VoiceOptions,
)
from voice_translator.services.pipeline import TranslationPipeline
from voice_translator.services.providers import (
    RetryPolicy,
    SpeechRecognizer,
    SpeechSynthesizer,
    Translator,
)

NO_RETRY = RetryPolicy(attempts=1, base_delay=0.0)
FAST_RETRY = RetryPolicy(attempts=3, base_delay=0.0)


def make_wav(
    seconds: float = 1.0,
    amplitude: float = 0.8,
    sample_rate: int = 16000,
    frequency: float = 440.0,
    channels: int = 1,
) -> bytes:
    """16-bit sine-wave WAV."""
    t = np.arange(int(seconds * sample_rate)) / float(sample_rate)
    tone = amplitude * np.sin(2 * np.pi * frequency * t)
    if channels > 1:
        tone = np.repeat(tone[:, None], channels, axis=1)
    pcm = (tone * 32767).astype("<i2").tobytes()
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


class FakeSpeech:
    """Speech-to-text provider returning a fixed transcript."""

    def __init__(self, text: str = "hello", detected_language: str = "en-US",
                 confidence: float = 0.95, name: str = "fake-stt", fail: bool = False):
        self.name = name
        self.text = text
        self.detected_language = detected_language
        self.confidence = confidence
        self.fail = fail
        self.calls = []

    def transcribe(self, audio_data: bytes, language_code: str, sample_rate: int) -> TranscriptionResult:
        self.calls.append((len(audio_data), language_code, sample_rate))
        if self.fail:
            raise RuntimeError("speech backend down")
        return TranscriptionResult(
            text=self.text,
            confidence=self.confidence,
            detected_language=self.detected_language,
        )

    def ping(self) -> bool:
        if self.fail:
            raise RuntimeError("speech backend down")
        return True


class FakeTranslate:
    """Dictionary backed translation provider."""

    def __init__(self, table: Optional[Dict[str, Dict[str, str]]] = None,
                 name: str = "fake-translate", fail_for: tuple = (), failures: int = 0,
                 delay: float = 0.0, confidence: float = 1.0):
        self.name = name
        self.confidence = confidence
        self.table = table or {"hello": {"zh": "你好", "ja": "こんにちは", "fr": "bonjour"}}
        self.fail_for = fail_for
        self.failures = failures
        self.delay = delay
        self.calls = []

    def translate(self, text: str, source_lang: str, target_lang: str) -> TranslationResult:
        self.calls.append((text, source_lang, target_lang))
        if self.delay:
            time.sleep(self.delay)
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("transient translation failure")
        if target_lang in self.fail_for:
            raise RuntimeError(f"no model for {target_lang}")
        translated = self.table.get(text, {}).get(target_lang, f"[{target_lang}] {text}")
        return TranslationResult(text=translated, confidence=self.confidence)

    def ping(self) -> bool:
        return True


class FakeTTS:
    """Text-to-speech provider returning deterministic bytes."""

    def __init__(self, name: str = "fake-tts", fail_for: tuple = ()):
        self.name = name
        self.fail_for = fail_for
        self.calls = []

    def synthesize(self, text: str, language_code: str, options: VoiceOptions,
                   voice_name: Optional[str] = None) -> SynthesisResult:
        self.calls.append((text, language_code, voice_name))
        if language_code in self.fail_for:
            raise RuntimeError(f"no voice for {language_code}")
        return SynthesisResult(
            audio=f"audio:{language_code}:{text}".encode("utf-8"),
            encoding="MP3",
            sample_rate=24000,
            duration_seconds=1.0,
        )

    def ping(self) -> bool:
        return True


class BrokenRedis:
    """Async Redis stand-in whose every call fails like an unreachable server."""

    def _fail(self, *args, **kwargs):
        raise RedisConnectionError("Connection refused")

    async def get(self, *args, **kwargs):
        self._fail()

    async def set(self, *args, **kwargs):
        self._fail()

    async def delete(self, *args, **kwargs):
        self._fail()

    async def ping(self, *args, **kwargs):
        self._fail()

    async def scan_iter(self, *args, **kwargs):
        self._fail()
        yield  # pragma: no cover


def build_adapters(cache, stt=None, translate=None, tts=None, retry=NO_RETRY, timeout=5.0):
    stt = stt or FakeSpeech()
    translate = translate or FakeTranslate()
    tts = tts or FakeTTS()
    recognizer = SpeechRecognizer([stt], cache, timeout=timeout, retry=retry)
    translator = Translator([translate], cache, timeout=timeout, retry=retry)
    synthesizer = SpeechSynthesizer([tts], cache, timeout=timeout, retry=retry)
    return recognizer, translator, synthesizer


def build_pipeline(cache, stt=None, translate=None, tts=None, threshold=0.7):
    recognizer, translator, synthesizer = build_adapters(cache, stt, translate, tts)
    return TranslationPipeline(
        validator=AudioValidator(),
        quality_gate=QualityGate(threshold=threshold),
        preprocessor=AudioPreprocessor(),
        recognizer=recognizer,
        translator=translator,
        synthesizer=synthesizer,
        cache=cache,
    )


def build_engine(redis_client, stt=None, translate=None, tts=None, **overrides) -> VoiceTranslationEngine:
    values = dict(
        BATCH_INTERVAL_SEC=0.01,
        BATCH_SIZE=5,
        MAX_PENDING_TASKS=100,
        METRICS_ENABLED=False,
        STATS_PERSIST_INTERVAL_SEC=3600,
    )
    values.update(overrides)
    settings = Settings(**values)
    cache = CacheLayer(redis_client, default_ttl=settings.CACHE_TTL_SEC)
    recognizer, translator, synthesizer = build_adapters(cache, stt, translate, tts)
    return VoiceTranslationEngine(
        recognizer=recognizer,
        translator=translator,
        synthesizer=synthesizer,
        cache=cache,
        stats=StatsCollector(),
        settings=settings,
    )


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(interval)
