"""
Speech Synthesizer - Text-to-speech stage adapter.
"""

import logging

from voice_translator.services.exceptions import SynthesisError
from voice_translator.services.languages import default_voice, to_locale, translation_code
from voice_translator.services.models import SynthesisResult, VoiceOptions
from voice_translator.services.providers.base import StageAdapter

logger = logging.getLogger(__name__)


class SpeechSynthesizer(StageAdapter):
    """Converts translated text into target-language audio."""

    stage = "synthesis"
    error_cls = SynthesisError

    async def synthesize(self, text: str, target_lang: str, options: VoiceOptions) -> SynthesisResult:
        """
        Synthesize speech for one target language.

        Raises:
            SynthesisError: if every provider fails after all retries
        """
        target = translation_code(target_lang)
        voice_hash = options.voice_options_hash()

        cached = await self.cache.get_synthesis(text, target, voice_hash)
        if cached:
            logger.debug(f"[SpeechSynthesizer] cache hit for {target}")
            return cached

        voice_name = options.voice_name or default_voice(target_lang)
        result = await self._run(
            "synthesize",
            (text, to_locale(target_lang), options, voice_name),
            accept=lambda r: r is not None and bool(r.audio),
            describe=f"{target} ({len(text)} chars)",
        )

        await self.cache.set_synthesis(text, target, voice_hash, result)
        logger.debug(
            f"[SpeechSynthesizer] synthesized {len(result.audio)} bytes for {target}"
        )
        return result
