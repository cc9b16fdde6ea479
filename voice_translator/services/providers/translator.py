"""
Translator - Text translation stage adapter.
"""

import logging

from voice_translator.services.exceptions import TranslationError
from voice_translator.services.languages import same_language, translation_code
from voice_translator.services.models import TranslationResult
from voice_translator.services.providers.base import StageAdapter

logger = logging.getLogger(__name__)


class Translator(StageAdapter):
    """Translates text between a source and a target language."""

    stage = "translation"
    error_cls = TranslationError

    async def translate(self, text: str, source_lang: str, target_lang: str) -> TranslationResult:
        """
        Translate text.

        Same-language requests return the input unchanged with
        confidence 1.0 without touching the cache or any provider.

        Raises:
            TranslationError: if every provider fails after all retries
        """
        if same_language(source_lang, target_lang):
            return TranslationResult(text=text, confidence=1.0)

        source = translation_code(source_lang)
        target = translation_code(target_lang)

        cached = await self.cache.get_translation(text, source, target)
        if cached:
            logger.debug(f"[Translator] cache hit for {source}->{target}")
            return cached

        result = await self._run(
            "translate",
            (text, source, target),
            accept=lambda r: r is not None and bool(r.text.strip()),
            describe=f"{source}->{target}",
        )

        await self.cache.set_translation(text, source, target, result)
        logger.debug(
            f"[Translator] Translated to {target}: "
            f"'{text[:30]}...' -> '{result.text[:30]}...'"
        )
        return result
