"""
Voice Translation Engine - Public facade over the translation pipeline.

Wires the admission checks, stage adapters, cache, task queue and stats
collector together and exposes the operations callers use:

- submit / translate: queue one recording for one or more target languages
- translate_batch: translate several recordings concurrently
- get_supported_languages, get_stats, health_check, clear_cache

Usage:
    engine = await create_engine(settings)
    async with engine:
        result = await engine.translate(wav_bytes, "auto", ["zh"])
        print(result.translated_text)
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

from voice_translator.config.constants import AUTO_LANGUAGE, BATCH_TRANSLATION_TIMEOUT_SEC
from voice_translator.config.redis import close_redis, get_redis
from voice_translator.config.settings import Settings, settings as default_settings
from voice_translator.services.audio import AudioPreprocessor, AudioValidator, QualityGate
from voice_translator.services.core import CacheLayer, StatsCollector
from voice_translator.services.exceptions import (
    CacheUnavailableError,
    InvalidInputError,
    VoiceTranslationError,
)
from voice_translator.services.gcp import (
    GCPSpeechService,
    GCPTextToSpeechService,
    GCPTranslationService,
)
from voice_translator.services.languages import get_supported_languages
from voice_translator.services.metrics import start_metrics_server
from voice_translator.services.models import (
    PipelineResult,
    StatsView,
    TranslationTask,
    VoiceOptions,
)
from voice_translator.services.pipeline import TranslationPipeline
from voice_translator.services.protocols import (
    SpeechToTextProvider,
    TextToSpeechProvider,
    TranslationProvider,
)
from voice_translator.services.providers import (
    RetryPolicy,
    SpeechRecognizer,
    SpeechSynthesizer,
    Translator,
)
from voice_translator.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)


# Provider name (as used in settings) -> client class
STT_PROVIDER_REGISTRY: Dict[str, Type[SpeechToTextProvider]] = {"gcp": GCPSpeechService}
TRANSLATION_PROVIDER_REGISTRY: Dict[str, Type[TranslationProvider]] = {"gcp": GCPTranslationService}
TTS_PROVIDER_REGISTRY: Dict[str, Type[TextToSpeechProvider]] = {"gcp": GCPTextToSpeechService}


@dataclass
class BatchItem:
    """Outcome of one file in a batch translation."""
    name: str
    result: Optional[PipelineResult] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass
class BatchReport:
    """Aggregate outcome of translate_batch()."""
    items: List[BatchItem] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.items)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failure_count(self) -> int:
        return self.total_files - self.success_count


class VoiceTranslationEngine:
    """
    Voice translation service: speech in, translated text and speech out.

    Every collaborator is injected so tests can swap providers and the
    cache store; create_engine() builds the production wiring.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        translator: Translator,
        synthesizer: SpeechSynthesizer,
        cache: CacheLayer,
        validator: Optional[AudioValidator] = None,
        quality_gate: Optional[QualityGate] = None,
        preprocessor: Optional[AudioPreprocessor] = None,
        stats: Optional[StatsCollector] = None,
        settings: Optional[Settings] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.settings = settings or default_settings
        self.recognizer = recognizer
        self.translator = translator
        self.synthesizer = synthesizer
        self.cache = cache
        self.validator = validator or AudioValidator(
            max_bytes=self.settings.MAX_AUDIO_BYTES,
            max_duration_sec=self.settings.MAX_AUDIO_DURATION_SEC,
        )
        self.quality_gate = quality_gate or QualityGate(threshold=self.settings.QUALITY_THRESHOLD)
        self.preprocessor = preprocessor or AudioPreprocessor()
        self.stats = stats or StatsCollector()
        self._executor = executor
        self._started = False

        self.pipeline = TranslationPipeline(
            validator=self.validator,
            quality_gate=self.quality_gate,
            preprocessor=self.preprocessor,
            recognizer=recognizer,
            translator=translator,
            synthesizer=synthesizer,
            cache=cache,
        )
        self.queue = TaskQueue(
            self.pipeline,
            cache,
            self.stats,
            batch_size=self.settings.BATCH_SIZE,
            batch_interval=self.settings.BATCH_INTERVAL_SEC,
            max_pending=self.settings.MAX_PENDING_TASKS,
            stats_persist_interval=self.settings.STATS_PERSIST_INTERVAL_SEC,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._started:
            return
        logger.info("🚀 Starting voice translation engine...")

        if await self.stats.load(self.cache):
            logger.info("✅ Stats restored from cache")

        if self.settings.METRICS_ENABLED:
            start_metrics_server(self.settings.METRICS_PORT)

        await self.queue.start()
        self._started = True
        logger.info("✅ Voice translation engine started")

    async def stop(self, drain: bool = True) -> None:
        if not self._started:
            return
        logger.info("🛑 Stopping voice translation engine...")
        await self.queue.stop(drain=drain)
        self._started = False

    async def __aenter__(self) -> "VoiceTranslationEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    async def submit(
        self,
        audio_bytes: bytes,
        source_language: str,
        target_languages: Iterable[str],
        options: Optional[VoiceOptions] = None,
    ) -> asyncio.Future:
        """
        Queue a recording for translation.

        Args:
            audio_bytes: Raw audio (WAV unless options.audio_format says otherwise)
            source_language: Spoken language, or "auto" to detect it
            target_languages: One or more target languages
            options: Voice and processing options

        Returns:
            Future settled with a PipelineResult, or with a
            VoiceTranslationError subclass if the task fails

        Raises:
            InvalidInputError: non-bytes audio, unsupported source or target languages
            QueueFullError: the pending queue is at capacity
            VoiceTranslationError: the engine has been stopped
        """
        if not isinstance(audio_bytes, (bytes, bytearray)):
            raise InvalidInputError("Audio data must be bytes")
        targets: Tuple[str, ...] = tuple(target_languages)
        self.validator.validate_languages(source_language, targets)

        task = TranslationTask(
            audio_bytes=audio_bytes,
            source_language=source_language,
            target_languages=targets,
            options=options or VoiceOptions(),
        )
        return await self.queue.submit(task)

    async def translate(
        self,
        audio_bytes: bytes,
        source_language: str,
        target_languages: Iterable[str],
        options: Optional[VoiceOptions] = None,
    ) -> PipelineResult:
        """
        Submit a recording and wait for its result.

        An engine that was never started is started here; a stopped engine
        rejects the call.
        """
        if not self._started and not self.queue.closed:
            await self.start()
        future = await self.submit(audio_bytes, source_language, target_languages, options)
        return await future

    async def translate_batch(
        self,
        files: Sequence[Tuple[str, bytes]],
        target_languages: Iterable[str],
        source_language: str = AUTO_LANGUAGE,
        options: Optional[VoiceOptions] = None,
        timeout: float = BATCH_TRANSLATION_TIMEOUT_SEC,
    ) -> BatchReport:
        """
        Translate several recordings; one file failing never affects the others.

        Args:
            files: (name, audio bytes) pairs
            timeout: Per-file limit in seconds

        Returns:
            BatchReport with one item per file, in input order
        """
        targets = tuple(target_languages)

        async def run_one(name: str, audio_bytes: bytes) -> BatchItem:
            try:
                result = await asyncio.wait_for(
                    self.translate(audio_bytes, source_language, targets, options),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"[Engine] batch item {name} timed out after {timeout}s")
                return BatchItem(name=name, error=f"timed out after {timeout}s", error_code="timeout")
            except VoiceTranslationError as e:
                logger.warning(f"[Engine] batch item {name} failed: {e}")
                return BatchItem(name=name, error=str(e), error_code=e.code)
            return BatchItem(name=name, result=result)

        items = await asyncio.gather(*(run_one(name, data) for name, data in files))
        report = BatchReport(items=list(items))
        logger.info(
            f"[Engine] batch finished: {report.success_count}/{report.total_files} files translated"
        )
        return report

    # ------------------------------------------------------------------
    # Introspection / maintenance
    # ------------------------------------------------------------------

    def get_supported_languages(self) -> List[Dict[str, str]]:
        return get_supported_languages()

    def get_stats(self) -> StatsView:
        return self.stats.snapshot(
            queue_length=self.queue.queue_length,
            is_processing=self.queue.is_processing,
        )

    async def health_check(self) -> Dict[str, bool]:
        """Probe every external dependency. Never raises."""
        recognizer, translator, synthesizer, cache = await asyncio.gather(
            self.recognizer.health_check(),
            self.translator.health_check(),
            self.synthesizer.health_check(),
            self.cache.ping(),
        )
        status = {
            "recognizer": recognizer,
            "translator": translator,
            "synthesizer": synthesizer,
            "cache": cache,
        }
        if not all(status.values()):
            logger.warning(f"[Engine] health check degraded: {status}")
        return status

    async def clear_cache(self) -> bool:
        """Drop every cached result. Returns False if the store is unreachable."""
        try:
            deleted = await self.cache.clear()
        except CacheUnavailableError as e:
            logger.error(f"[Engine] clear_cache failed: {e}")
            return False
        logger.info(f"[Engine] cache cleared ({deleted} entries)")
        return True


def _build_providers(names: Sequence[str], registry: dict, settings: Settings, stage: str) -> list:
    providers = []
    for name in names:
        provider_cls = registry.get(name)
        if provider_cls is None:
            raise ValueError(f"Unknown {stage} provider: {name!r} (known: {sorted(registry)})")
        providers.append(provider_cls(settings))
    return providers


async def create_engine(settings: Optional[Settings] = None) -> VoiceTranslationEngine:
    """Build an engine with the configured providers and a Redis-backed cache."""
    settings = settings or default_settings

    redis_client = await get_redis(settings) if settings.CACHE_ENABLED else None
    cache = CacheLayer(
        redis_client,
        default_ttl=settings.CACHE_TTL_SEC,
        enabled=settings.CACHE_ENABLED,
    )

    executor = ThreadPoolExecutor(
        max_workers=settings.PROVIDER_WORKERS,
        thread_name_prefix="voice_providers",
    )
    retry = RetryPolicy(
        attempts=settings.RETRY_ATTEMPTS,
        base_delay=settings.RETRY_BASE_DELAY_SEC,
        backoff=settings.RETRY_BACKOFF,
    )

    recognizer = SpeechRecognizer(
        _build_providers(settings.STT_PROVIDERS, STT_PROVIDER_REGISTRY, settings, "speech-to-text"),
        cache,
        executor=executor,
        timeout=settings.STT_TIMEOUT_SEC,
        retry=retry,
    )
    translator = Translator(
        _build_providers(settings.TRANSLATION_PROVIDERS, TRANSLATION_PROVIDER_REGISTRY, settings, "translation"),
        cache,
        executor=executor,
        timeout=settings.TRANSLATE_TIMEOUT_SEC,
        retry=retry,
    )
    synthesizer = SpeechSynthesizer(
        _build_providers(settings.TTS_PROVIDERS, TTS_PROVIDER_REGISTRY, settings, "text-to-speech"),
        cache,
        executor=executor,
        timeout=settings.TTS_TIMEOUT_SEC,
        retry=retry,
    )

    return VoiceTranslationEngine(
        recognizer=recognizer,
        translator=translator,
        synthesizer=synthesizer,
        cache=cache,
        settings=settings,
        executor=executor,
    )


async def shutdown_engine(engine: VoiceTranslationEngine) -> None:
    """Stop the engine and release its worker pool and the shared Redis connection."""
    await engine.stop()
    if engine._executor is not None:
        engine._executor.shutdown(wait=False)
    await close_redis()
