"""
Task Queue - Admission control and periodic batch draining.

Lifecycle of a task:

    SUBMITTED -> RESOLVED                          (whole-pipeline cache hit)
    SUBMITTED -> QUEUED -> RUNNING -> RESOLVED | REJECTED

How it works:
1. submit() checks the whole-pipeline cache; a hit resolves immediately
2. On a miss the task joins the pending list, unless the list is at
   capacity, in which case QueueFullError is raised right away
3. A scheduler loop wakes every batch interval and, when no batch is
   running, drains up to batch_size tasks in FIFO order
4. Tasks of a batch run concurrently; each task's future is settled on
   its own, so one failure never affects its siblings

Usage:
    queue = TaskQueue(pipeline, cache, stats, batch_size=5, batch_interval=1.0)
    await queue.start()
    future = await queue.submit(task)
    result = await future
    await queue.stop()
"""

import asyncio
import logging
import time
from collections import deque
from typing import Deque, Dict, Optional, Union

from voice_translator.services.core.cache import CacheLayer
from voice_translator.services.core.stats import StatsCollector
from voice_translator.services.exceptions import (
    LowQualityError,
    QueueFullError,
    VoiceTranslationError,
)
from voice_translator.services.languages import normalize_language_code, translation_code
from voice_translator.services.metrics import queue_depth_gauge, tasks_processed
from voice_translator.services.models import (
    PipelineResult,
    TaskOutcome,
    TaskState,
    TranslationTask,
)
from voice_translator.services.pipeline import TranslationPipeline

logger = logging.getLogger(__name__)


class TaskQueue:
    """
    Producer/consumer queue with a single logical batch scheduler.

    submit() never waits for pipeline work; the pending list is the only
    state it shares with the scheduler and is guarded by a lock.
    """

    def __init__(
        self,
        pipeline: TranslationPipeline,
        cache: CacheLayer,
        stats: StatsCollector,
        batch_size: int = 5,
        batch_interval: float = 1.0,
        max_pending: int = 100,
        stats_persist_interval: float = 30.0,
    ):
        self.pipeline = pipeline
        self.cache = cache
        self.stats = stats
        self.batch_size = batch_size
        self.batch_interval = batch_interval
        self.max_pending = max_pending
        self.stats_persist_interval = stats_persist_interval

        self._pending: Deque[TranslationTask] = deque()
        self._lock = asyncio.Lock()
        self._draining = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._last_persist = time.monotonic()

    @property
    def queue_length(self) -> int:
        return len(self._pending)

    @property
    def is_processing(self) -> bool:
        return self._draining

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, task: TranslationTask) -> asyncio.Future:
        """
        Admit a task.

        Tasks submitted before start() wait until the scheduler runs or
        drain_once() is called.

        Returns:
            Future settled with a PipelineResult or a VoiceTranslationError

        Raises:
            VoiceTranslationError: once stop() has begun
            QueueFullError: when the pending list is at capacity
        """
        if self._closed:
            raise VoiceTranslationError("Task queue is stopped; no new tasks are accepted")

        loop = asyncio.get_running_loop()
        task.future = loop.create_future()

        cached = await self._lookup_cache(task)
        if cached is not None:
            task.state = TaskState.RESOLVED
            task.future.set_result(cached)
            self.stats.record_cache_hit()
            tasks_processed.labels(status="cache_hit").inc()
            logger.info(f"[TaskQueue] task {task.task_id[:8]} served from cache")
            return task.future

        async with self._lock:
            if self._closed:
                raise VoiceTranslationError("Task queue is stopped; no new tasks are accepted")
            if len(self._pending) >= self.max_pending:
                tasks_processed.labels(status="queue_full").inc()
                logger.warning(f"[TaskQueue] rejecting task {task.task_id[:8]}: queue full")
                raise QueueFullError(self.max_pending)
            self._pending.append(task)
            task.state = TaskState.QUEUED
            queue_depth_gauge.set(len(self._pending))
            position = len(self._pending)

        logger.debug(f"[TaskQueue] task {task.task_id[:8]} queued at position {position}")
        return task.future

    async def _lookup_cache(self, task: TranslationTask) -> Optional[PipelineResult]:
        """Whole-pipeline hit only when every requested target is cached."""
        source = normalize_language_code(task.source_language)
        entries: Dict[str, dict] = {}
        for target in task.target_languages:
            entry = await self.cache.get_pipeline_entry(task.audio_hash, source, translation_code(target))
            if not entry:
                return None
            if task.options.synthesize and not entry["translation"].get("synthesized_audio"):
                return None
            entries[target] = entry
        return PipelineResult.from_cache_entries(task.task_id, task.source_language, entries)

    # ------------------------------------------------------------------
    # Draining
    # ------------------------------------------------------------------

    async def drain_once(self) -> int:
        """
        Run one batch of up to batch_size pending tasks.

        Returns:
            Number of tasks processed (0 if a batch is already running)
        """
        if self._draining:
            return 0
        self._draining = True
        self._idle.clear()
        try:
            async with self._lock:
                batch = [
                    self._pending.popleft()
                    for _ in range(min(self.batch_size, len(self._pending)))
                ]
                queue_depth_gauge.set(len(self._pending))

            if not batch:
                return 0

            logger.info(f"[TaskQueue] processing batch of {len(batch)} tasks")
            for task in batch:
                task.state = TaskState.RUNNING

            outcomes = await asyncio.gather(
                *(self._execute(task) for task in batch),
                return_exceptions=True,
            )
            for task, outcome in zip(batch, outcomes):
                self._settle(task, outcome)
            return len(batch)
        finally:
            self._draining = False
            self._idle.set()

    async def _execute(self, task: TranslationTask) -> PipelineResult:
        started = time.perf_counter()
        try:
            result = await self.pipeline.run(task)
        except Exception as e:
            elapsed = (time.perf_counter() - started) * 1000
            code = e.code if isinstance(e, VoiceTranslationError) else "internal"
            if not isinstance(e, VoiceTranslationError):
                logger.exception(f"[TaskQueue] task {task.task_id[:8]} crashed")
            self.stats.record(TaskOutcome(
                source_language=task.source_language,
                target_languages=task.target_languages,
                processing_time_ms=elapsed,
                quality_score=e.score if isinstance(e, LowQualityError) else 0.0,
                success=False,
                audio_bytes=len(task.audio_bytes),
                error_code=code,
            ))
            if isinstance(e, VoiceTranslationError):
                raise
            raise VoiceTranslationError(f"Internal error while processing task: {e}") from e

        self.stats.record(TaskOutcome(
            source_language=task.source_language,
            target_languages=task.target_languages,
            processing_time_ms=result.processing_time_ms,
            quality_score=result.quality_score,
            success=True,
            audio_bytes=len(task.audio_bytes),
            partial=bool(result.failed_languages),
        ))
        return result

    def _settle(self, task: TranslationTask, outcome: Union[PipelineResult, BaseException]) -> None:
        if isinstance(outcome, BaseException):
            task.state = TaskState.REJECTED
            tasks_processed.labels(status="rejected").inc()
            logger.info(f"[TaskQueue] task {task.task_id[:8]} rejected: {outcome}")
        else:
            task.state = TaskState.RESOLVED
            tasks_processed.labels(status="partial" if outcome.failed_languages else "resolved").inc()

        if task.future is None or task.future.done():
            # Caller discarded the handle
            return
        if isinstance(outcome, BaseException):
            task.future.set_exception(outcome)
        else:
            task.future.set_result(outcome)

    # ------------------------------------------------------------------
    # Scheduler loop
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.running:
            return
        self._closed = False
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="voice-translation-scheduler")
        logger.info(
            f"[TaskQueue] scheduler started (batch_size={self.batch_size}, "
            f"interval={self.batch_interval}s, max_pending={self.max_pending})"
        )

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.batch_interval)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break

            try:
                if self._pending:
                    await self.drain_once()
                await self._maybe_persist_stats()
            except Exception:
                logger.exception("[TaskQueue] scheduler tick failed")

    async def _maybe_persist_stats(self) -> None:
        now = time.monotonic()
        if now - self._last_persist >= self.stats_persist_interval:
            self._last_persist = now
            await self.stats.persist(self.cache)

    async def stop(self, drain: bool = True) -> None:
        """
        Stop the scheduler.

        Args:
            drain: Run the remaining pending tasks before returning; when
                   False they are rejected
        """
        self._closed = True
        self._stop_event.set()
        if self._task is not None:
            # The loop exits after its current batch; running tasks are never cancelled
            await self._task
            self._task = None

        if drain:
            # A batch started elsewhere through drain_once() must finish first
            while self._pending or self._draining:
                await self._idle.wait()
                await self.drain_once()
        else:
            async with self._lock:
                leftover = list(self._pending)
                self._pending.clear()
                queue_depth_gauge.set(0)
            for task in leftover:
                self._settle(task, VoiceTranslationError("Engine stopped before the task ran"))

        await self.stats.persist(self.cache)
        logger.info("[TaskQueue] scheduler stopped")
