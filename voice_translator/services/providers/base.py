"""
Shared machinery for the stage adapters.

Every provider call runs in a bounded worker pool (the provider client
libraries are blocking), carries a per-call timeout, and is retried
with backoff inside its own stage only. Providers are tried in
configured order on every attempt, so a failing primary falls through
to the fallbacks before the stage backs off and retries.
"""

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Type

from voice_translator.services.exceptions import ProviderError

logger = logging.getLogger(__name__)


class UnusableResult(Exception):
    """A provider answered, but with nothing the stage can use."""


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attributes:
        attempts: Total attempts per stage (1 = no retry)
        base_delay: Delay before the first retry (seconds)
        backoff: Multiplier applied to the delay after each retry
    """
    attempts: int = 3
    base_delay: float = 0.2
    backoff: float = 2.0

    def delay(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        return self.base_delay * (self.backoff ** (attempt - 1))


class StageAdapter:
    """
    Base class for SpeechRecognizer, Translator and SpeechSynthesizer.

    Args:
        providers: Providers in primary -> fallback order
        cache: CacheLayer consulted before any provider call
        executor: Worker pool for blocking provider calls (None = loop default)
        timeout: Per-call timeout in seconds
        retry: Stage retry policy
    """

    stage = "provider"
    error_cls: Type[ProviderError] = ProviderError

    def __init__(
        self,
        providers: Sequence[Any],
        cache,
        executor: Optional[Executor] = None,
        timeout: float = 10.0,
        retry: Optional[RetryPolicy] = None,
    ):
        if not providers:
            raise ValueError(f"{type(self).__name__} needs at least one provider")
        self.providers = list(providers)
        self.cache = cache
        self.executor = executor
        self.timeout = timeout
        self.retry = retry or RetryPolicy()

    async def _call(self, func: Callable[..., Any], *args) -> Any:
        loop = asyncio.get_running_loop()
        return await asyncio.wait_for(
            loop.run_in_executor(self.executor, lambda: func(*args)),
            timeout=self.timeout,
        )

    async def _run(
        self,
        method: str,
        args: tuple,
        accept: Callable[[Any], bool],
        describe: str,
    ) -> Any:
        """
        Call `method` on each provider until one returns an accepted result.

        Raises:
            error_cls: when no provider produced a usable result after all
                attempts; the last underlying exception is attached
        """
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.retry.attempts + 1):
            transient = False
            for provider in self.providers:
                name = getattr(provider, "name", type(provider).__name__)
                try:
                    result = await self._call(getattr(provider, method), *args)
                except asyncio.TimeoutError as e:
                    transient = True
                    last_error = e
                    logger.warning(
                        f"[{type(self).__name__}] {name} timed out after {self.timeout}s "
                        f"({describe}, attempt {attempt}/{self.retry.attempts})"
                    )
                    continue
                except Exception as e:
                    transient = True
                    last_error = e
                    logger.warning(
                        f"[{type(self).__name__}] {name} failed: {e} "
                        f"({describe}, attempt {attempt}/{self.retry.attempts})"
                    )
                    continue

                if accept(result):
                    return result

                last_error = UnusableResult(f"{name} returned no usable {self.stage} result")
                logger.info(f"[{type(self).__name__}] {last_error} ({describe})")

            if not transient:
                # Every provider answered and none had anything usable; retrying won't help
                raise self.error_cls(
                    f"{self.stage} failed for {describe}: no usable result",
                    cause=last_error,
                    attempts=attempt,
                )

            if attempt < self.retry.attempts:
                await asyncio.sleep(self.retry.delay(attempt))

        raise self.error_cls(
            f"{self.stage} failed for {describe} after {self.retry.attempts} attempts: {last_error}",
            cause=last_error,
            attempts=self.retry.attempts,
        )

    async def health_check(self) -> bool:
        """True if any provider answers its ping."""
        for provider in self.providers:
            name = getattr(provider, "name", type(provider).__name__)
            try:
                if await self._call(provider.ping):
                    return True
            except Exception as e:
                logger.warning(f"[{type(self).__name__}] health check of {name} failed: {e}")
        return False
