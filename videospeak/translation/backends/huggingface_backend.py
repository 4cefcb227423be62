"""HuggingFace translation backend using the Inference API."""

import os
import time
from typing import Any, List, Optional

import httpx

from videospeak.core.exceptions import ProviderError, ValidationError
from videospeak.core.models import TranslationMethod
from videospeak.utils.logger import get_logger
from ..base import (
    ProviderOptions,
    ProviderResponse,
    TokenUsage,
    TranslationProvider,
    raise_for_provider_status,
    transport_error,
)

logger = get_logger(__name__)

MBART_CODES = {
    "English": "en_XX",
    "Hindi": "hi_IN",
    "Kannada": "kn_IN",
    "Telugu": "te_IN",
    "Bengali": "bn_IN",
    "Tamil": "ta_IN",
    "Marathi": "mr_IN",
    "Gujarati": "gu_IN",
    "Malayalam": "ml_IN",
    "Punjabi": "pa_IN",
    "Urdu": "ur_PK",
    "Nepali": "ne_NP",
}


def mbart_language_code(language: str) -> str:
    """Map a language name or BCP-47 code to an mBART language tag (English if unknown)."""
    if language in MBART_CODES:
        return MBART_CODES[language]
    prefix = language.split("-")[0].lower()
    for code in MBART_CODES.values():
        if code.startswith(prefix + "_"):
            return code
    return "en_XX"


class HuggingFaceBackend(TranslationProvider):
    """
    HuggingFace Inference API backend.

    Supports various translation models:
    - facebook/mbart-large-50-many-to-many-mmt
    - Helsinki-NLP/opus-mt-en-ROMANCE, Helsinki-NLP/opus-mt-en-mul
    - t5-base

    FREE tier available with rate limits, so this is the default fallback
    among the LLM providers.
    """

    name = "huggingface"
    method = TranslationMethod.LLM
    is_free = True

    MODELS = [
        "facebook/mbart-large-50-many-to-many-mmt",
        "Helsinki-NLP/opus-mt-en-ROMANCE",
        "Helsinki-NLP/opus-mt-en-mul",
        "t5-base",
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "facebook/mbart-large-50-many-to-many-mmt",
        base_url: str = "https://api-inference.huggingface.co/models",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(api_key=api_key or os.getenv("HUGGINGFACE_API_KEY"), model=model)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def is_available(self) -> bool:
        """Public models work without a key."""
        return True

    def _headers(self):
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _format_input(self, text: str, model: str, target_language: str, source_language: str) -> str:
        if "mbart" in model:
            return f">>{mbart_language_code(target_language)}<< {text}"
        if "t5" in model:
            return f"translate {source_language} to {target_language}: {text}"
        return text

    @staticmethod
    def _extract_text(result: Any) -> str:
        """Handle the different response shapes the Inference API returns."""
        if isinstance(result, list) and result:
            first = result[0]
            if isinstance(first, dict):
                return first.get("translation_text") or first.get("generated_text") or ""
            if isinstance(first, str):
                return first
        elif isinstance(result, dict):
            return result.get("translation_text") or result.get("generated_text") or ""
        elif isinstance(result, str):
            return result
        return ""

    async def translate_text(
        self,
        text: str,
        target_language: str,
        source_language: str = "English",
        options: Optional[ProviderOptions] = None
    ) -> ProviderResponse:
        options = options or ProviderOptions()
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty", field="text")

        model = options.model or self.model
        payload = {
            "inputs": self._format_input(text, model, target_language, source_language),
            "parameters": {
                "max_length": options.max_tokens or 512,
                "temperature": options.temperature if options.temperature is not None else 0.7
            },
            "options": {
                "wait_for_model": True,
                "use_cache": True
            }
        }

        start_time = time.time()
        try:
            response = await self.client.post(
                f"{self.base_url}/{model}",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout
            )
        except httpx.TransportError as e:
            raise transport_error(self.name, e) from e

        raise_for_provider_status(self.name, response)

        translated = self._extract_text(response.json()).strip()
        if not translated:
            raise ProviderError(self.name, "Could not extract translated text from response", retryable=False)

        # The Inference API does not report usage
        prompt_tokens = self.estimate_tokens(text, model)
        completion_tokens = self.estimate_tokens(translated, model)

        return ProviderResponse(
            translated_text=translated,
            source_language=source_language,
            target_language=target_language,
            model_used=model,
            token_usage=TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
            confidence_score=0.8,
            metadata={"processing_time": time.time() - start_time}
        )

    def get_supported_models(self) -> List[str]:
        return list(self.MODELS)

    async def validate_credentials(self) -> bool:
        try:
            response = await self.client.post(
                f"{self.base_url}/{self.model}",
                json={"inputs": "Hello", "options": {"use_cache": True}},
                headers=self._headers(),
                timeout=5.0
            )
        except httpx.HTTPError as e:
            logger.error(f"HuggingFace API key validation failed: {e}")
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
