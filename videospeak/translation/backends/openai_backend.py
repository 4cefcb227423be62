"""OpenAI translation backend."""

import os
import time
from typing import List, Optional

import openai
from openai import AsyncOpenAI

from videospeak.core.exceptions import (
    CredentialError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from videospeak.core.models import TranslationMethod
from ..base import ProviderOptions, ProviderResponse, TokenUsage, TranslationProvider
from ..prompts import build_prompts


def map_openai_error(provider: str, error: Exception) -> ProviderError:
    """Translate an openai SDK exception into the provider error taxonomy."""
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CredentialError(provider, str(error), status_code=error.status_code, original_error=error)
    if isinstance(error, openai.RateLimitError):
        return RateLimitError(provider, str(error), original_error=error)
    if isinstance(error, openai.APIStatusError):
        return ProviderError(provider, str(error), status_code=error.status_code, original_error=error)
    if isinstance(error, openai.APIConnectionError):
        return ProviderError(provider, f"network error: {error}", retryable=True, original_error=error)
    return ProviderError(provider, str(error), retryable=False, original_error=error)


class OpenAIBackend(TranslationProvider):
    """OpenAI GPT-based translation backend."""

    name = "openai"
    method = TranslationMethod.LLM

    # USD per 1k tokens
    PRICING = {
        "gpt-4o": {"input": 0.005, "output": 0.015},
        "gpt-4-turbo": {"input": 0.01, "output": 0.03},
        "gpt-4": {"input": 0.03, "output": 0.06},
        "gpt-3.5-turbo": {"input": 0.0015, "output": 0.002},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-3.5-turbo",
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        super().__init__(api_key, model)

        if client is not None:
            self.async_client = client
        elif self.api_key:
            self.async_client = AsyncOpenAI(api_key=self.api_key, base_url=base_url)
        else:
            self.async_client = None

    def is_available(self) -> bool:
        return self.async_client is not None

    def _build_messages(self, text: str, target_language: str, source_language: str, options: ProviderOptions):
        system, user = build_prompts(
            text,
            target_language,
            source_language,
            system_prompt=options.system_prompt,
            user_prompt=options.user_prompt,
            context_prompt=options.context_prompt,
            domain_hint=options.domain_hint,
        )
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    async def translate_text(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        options: Optional[ProviderOptions] = None
    ) -> ProviderResponse:
        """Translate via chat completions; the first choice is the translation."""
        if not self.async_client:
            raise CredentialError(self.name, "OpenAI API key not configured")
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty", field="text")

        options = options or ProviderOptions()
        model = options.model or self.model
        start_time = time.time()

        try:
            response = await self.async_client.chat.completions.create(
                model=model,
                messages=self._build_messages(text, target_language, source_language, options),
                temperature=options.temperature if options.temperature is not None else 0.3,
                max_tokens=options.max_tokens or 4000
            )
        except openai.OpenAIError as e:
            raise map_openai_error(self.name, e) from e

        if not response.choices or not response.choices[0].message.content:
            raise ProviderError(self.name, "No translation in response", retryable=False)
        translated = response.choices[0].message.content.strip()

        usage = response.usage
        if usage is not None:
            token_usage = TokenUsage(usage.prompt_tokens, usage.completion_tokens, usage.total_tokens)
        else:
            prompt_tokens = self.estimate_tokens(text, model)
            completion_tokens = self.estimate_tokens(translated, model)
            token_usage = TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens)

        return ProviderResponse(
            translated_text=translated,
            source_language=source_language,
            target_language=target_language,
            model_used=response.model or model,
            token_usage=token_usage,
            confidence_score=0.9,
            request_id=getattr(response, "id", None),
            metadata={
                "processing_time": time.time() - start_time,
                "finish_reason": response.choices[0].finish_reason,
            }
        )

    def get_supported_models(self) -> List[str]:
        return list(self.PRICING)

    async def validate_credentials(self) -> bool:
        if not self.async_client:
            return False
        try:
            await self.async_client.models.list()
        except openai.OpenAIError:
            return False
        return True

    async def aclose(self) -> None:
        if self.async_client is not None:
            await self.async_client.close()
