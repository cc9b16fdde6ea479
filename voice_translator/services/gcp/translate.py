"""
GCP Translation Provider

Handles Google Cloud Translation operations.
"""

from typing import Optional

from google.cloud import translate

from voice_translator.config.settings import Settings, settings as default_settings
from voice_translator.services.gcp.credentials import ensure_credentials
from voice_translator.services.models import TranslationResult


class GCPTranslationService:
    """Translation provider backed by Google Cloud Translation v3."""

    name = "gcp"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        location: str = "global",
        client=None,
    ):
        self.settings = settings or default_settings
        self.project_id = self.settings.GOOGLE_PROJECT_ID
        if not self.project_id:
            raise RuntimeError(
                "GOOGLE_PROJECT_ID is not set. Please update .env accordingly."
            )
        self.location = location
        if client is None:
            ensure_credentials(self.settings)
            client = translate.TranslationServiceClient()
        self._client = client

    @property
    def parent(self) -> str:
        return f"projects/{self.project_id}/locations/{self.location}"

    def translate(self, text: str, source_lang: str, target_lang: str) -> TranslationResult:
        """Translate text from source to target language."""
        response = self._client.translate_text(
            request={
                "parent": self.parent,
                "contents": [text],
                "mime_type": "text/plain",
                "source_language_code": source_lang,
                "target_language_code": target_lang,
            },
            timeout=self.settings.TRANSLATE_TIMEOUT_SEC,
        )

        if not response.translations:
            return TranslationResult(text="", confidence=0.0)

        # The Translation API does not report a confidence score
        return TranslationResult(
            text=response.translations[0].translated_text,
            confidence=1.0,
        )

    def ping(self) -> bool:
        response = self._client.get_supported_languages(
            request={"parent": self.parent, "display_language_code": "en"},
            timeout=self.settings.TRANSLATE_TIMEOUT_SEC,
        )
        return bool(response.languages)
