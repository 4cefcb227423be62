"""Sarvam regional translation backend."""

import os
import time
from typing import List, Optional

import httpx

from videospeak.core.exceptions import ConfigurationError, ProviderError, ValidationError
from videospeak.core.models import TranslationMethod, find_language
from videospeak.utils.logger import get_logger
from ..base import (
    ProviderOptions,
    ProviderResponse,
    TranslationProvider,
    raise_for_provider_status,
    transport_error,
)

logger = get_logger(__name__)


class SarvamBackend(TranslationProvider):
    """
    Specialised translation API for Indian languages.

    One structured call per chunk with explicit source/target codes. The API
    caps input at 2,000 characters per call, so longer text must be chunked
    by the caller.
    """

    name = "sarvam"
    method = TranslationMethod.REGIONAL
    max_input_chars = 2000

    MODELS = ["sarvam-translate:v1", "mayura:v1"]
    MODES = ("formal", "modern-colloquial", "classic-colloquial", "code-mixed")

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "sarvam-translate:v1",
        base_url: str = "https://api.sarvam.ai",
        mode: str = "formal",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        api_key = api_key or os.getenv("SARVAM_API_KEY")
        if not api_key or not api_key.strip():
            raise ConfigurationError("Sarvam API key is required", config_key="api_keys.sarvam")
        if mode not in self.MODES:
            raise ConfigurationError(
                f"Unknown Sarvam mode: {mode}",
                config_key="providers.sarvam.mode",
                invalid_value=mode,
                valid_values=list(self.MODES)
            )

        super().__init__(api_key, model)
        self.base_url = base_url.rstrip("/")
        self.mode = mode
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _headers(self):
        return {
            "api-subscription-key": self.api_key,
            "Content-Type": "application/json"
        }

    def _build_payload(
        self,
        text: str,
        target_language: str,
        source_language: str,
        options: ProviderOptions
    ) -> dict:
        payload = {
            "input": text.strip(),
            "source_language_code": source_language or "auto",
            "target_language_code": target_language,
            "model": options.model or self.model,
            "mode": options.mode or self.mode,
            "enable_preprocessing": True,
            "numerals_format": "international",
        }
        if options.speaker_gender:
            payload["speaker_gender"] = options.speaker_gender
        if options.output_script:
            payload["output_script"] = options.output_script
        return payload

    async def translate_text(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        options: Optional[ProviderOptions] = None
    ) -> ProviderResponse:
        """Translate one piece of text (at most 2,000 characters)."""
        options = options or ProviderOptions()

        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty", field="text")
        if len(text) > self.max_input_chars:
            raise ValidationError(
                f"Input text exceeds maximum length of {self.max_input_chars} characters for Sarvam API",
                field="text"
            )
        if find_language(target_language) is None:
            raise ValidationError(f"Unsupported target language for Sarvam API: {target_language}", field="target_language")

        payload = self._build_payload(text, target_language, source_language, options)
        start_time = time.time()

        try:
            response = await self.client.post(
                f"{self.base_url}/translate",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout
            )
        except httpx.TransportError as e:
            raise transport_error(self.name, e) from e

        raise_for_provider_status(self.name, response)

        data = response.json()
        translated = data.get("translated_text")
        if not translated:
            raise ProviderError(self.name, "No translation in response", retryable=False)

        return ProviderResponse(
            translated_text=translated,
            source_language=data.get("source_language_code", payload["source_language_code"]),
            target_language=target_language,
            model_used=payload["model"],
            request_id=data.get("request_id"),
            metadata={
                "processing_time": time.time() - start_time,
                "mode": payload["mode"],
            }
        )

    def get_supported_models(self) -> List[str]:
        return list(self.MODELS)

    async def validate_credentials(self) -> bool:
        """Issue a minimal translation to check the subscription key."""
        try:
            response = await self.client.post(
                f"{self.base_url}/translate",
                json={
                    "input": "test",
                    "source_language_code": "en-IN",
                    "target_language_code": "hi-IN"
                },
                headers=self._headers(),
                timeout=5.0
            )
        except httpx.HTTPError as e:
            logger.error(f"Sarvam API key validation failed: {e}")
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
