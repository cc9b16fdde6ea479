"""
Translation Pipeline - Runs every stage for one translation task.

validate -> decode -> quality gate -> normalize -> recognize ->
(translate -> synthesize) per target language -> cache store

Target languages are processed in parallel and isolated from each
other: a translation or synthesis failure for one language becomes an
error annotation on that language's entry and does not touch the
others.

Usage:
    pipeline = TranslationPipeline(validator, quality_gate, preprocessor,
                                   recognizer, translator, synthesizer, cache)
    result = await pipeline.run(task)
"""

import asyncio
import logging
import time
from typing import Dict, Optional

from voice_translator.services.audio.preprocessor import AudioPreprocessor
from voice_translator.services.audio.quality import QualityGate
from voice_translator.services.audio.validator import AudioValidator
from voice_translator.services.core.cache import CacheLayer
from voice_translator.services.exceptions import (
    SynthesisError,
    TranslationError,
)
from voice_translator.services.languages import normalize_language_code, translation_code
from voice_translator.services.metrics import stage_latency
from voice_translator.services.models import (
    LanguageResult,
    PipelineResult,
    TranslationTask,
    VoiceOptions,
)
from voice_translator.services.providers import SpeechRecognizer, SpeechSynthesizer, Translator

logger = logging.getLogger(__name__)


class TranslationPipeline:
    """
    Stage orchestration for a single task.

    Holds no per-task state, so one instance serves every task of a
    batch concurrently.
    """

    def __init__(
        self,
        validator: AudioValidator,
        quality_gate: QualityGate,
        preprocessor: AudioPreprocessor,
        recognizer: SpeechRecognizer,
        translator: Translator,
        synthesizer: SpeechSynthesizer,
        cache: CacheLayer,
    ):
        self.validator = validator
        self.quality_gate = quality_gate
        self.preprocessor = preprocessor
        self.recognizer = recognizer
        self.translator = translator
        self.synthesizer = synthesizer
        self.cache = cache

    async def run(self, task: TranslationTask) -> PipelineResult:
        """
        Execute the full pipeline for a task.

        Returns:
            PipelineResult; languages that failed carry an error annotation

        Raises:
            InvalidInputError: malformed or unsupported audio
            LowQualityError: audio below the quality threshold
            RecognitionError: no usable transcript
            TranslationError: translation failed for every target language
        """
        started = time.perf_counter()
        options = task.options

        self.validator.validate(task.audio_bytes, options.audio_format)

        with stage_latency.labels(stage="decode").time():
            decoded = await self.preprocessor.decode(task.audio_bytes, options.audio_format)

        quality_score = self.quality_gate.check(
            self.quality_gate.score_samples(decoded.samples)
        )

        with stage_latency.labels(stage="normalize").time():
            normalized = self.preprocessor.normalize_decoded(decoded, enhance=options.enhance_audio)

        with stage_latency.labels(stage="recognize").time():
            transcription = await self.recognizer.recognize(normalized, task.source_language)

        source = (
            transcription.detected_language
            if task.auto_detect
            else normalize_language_code(task.source_language)
        )

        results = await asyncio.gather(*(
            self._process_language(transcription.text, source, target, options)
            for target in task.target_languages
        ))
        translations: Dict[str, LanguageResult] = {r.target_language: r for r in results}

        if not any(r.ok for r in results):
            errors = "; ".join(f"{r.target_language}: {r.error}" for r in results)
            raise TranslationError(f"translation failed for every target language ({errors})")

        result = PipelineResult(
            task_id=task.task_id,
            original_text=transcription.text,
            source_language=task.source_language,
            detected_language=source,
            translations=translations,
            quality_score=quality_score,
            processing_time_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        await self._store(task, result)

        logger.info(
            f"[TranslationPipeline] task {task.task_id[:8]} done in {result.processing_time_ms:.0f}ms "
            f"({len(result.succeeded_languages)}/{len(translations)} languages ok)"
        )
        return result

    async def _process_language(
        self,
        text: str,
        source: str,
        target: str,
        options: VoiceOptions,
    ) -> LanguageResult:
        """Translate and synthesize for a single target language."""
        try:
            with stage_latency.labels(stage="translate").time():
                translation = await self.translator.translate(text, source, target)
        except TranslationError as e:
            logger.warning(f"[TranslationPipeline] translation to {target} failed: {e}")
            return LanguageResult(target_language=target, error=f"{e.code}: {e}")

        audio: Optional[bytes] = None
        encoding: Optional[str] = None
        error: Optional[str] = None
        if options.synthesize:
            try:
                with stage_latency.labels(stage="synthesize").time():
                    synthesis = await self.synthesizer.synthesize(translation.text, target, options)
                audio, encoding = synthesis.audio, synthesis.encoding
            except SynthesisError as e:
                logger.warning(f"[TranslationPipeline] synthesis for {target} failed: {e}")
                error = f"{e.code}: {e}"

        return LanguageResult(
            target_language=target,
            translated_text=translation.text,
            confidence=translation.confidence,
            synthesized_audio=audio,
            audio_encoding=encoding,
            error=error,
        )

    async def _store(self, task: TranslationTask, result: PipelineResult) -> None:
        """Cache fully successful languages under the requested and detected source."""
        sources = {normalize_language_code(task.source_language), result.detected_language}
        for target, entry in result.translations.items():
            if not entry.ok or entry.error:
                continue
            payload = result.cache_entry(target)
            for source in sources:
                await self.cache.set_pipeline_entry(
                    task.audio_hash, source, translation_code(target), payload
                )
