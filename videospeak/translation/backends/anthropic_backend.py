"""Anthropic Claude translation backend."""

import os
import time
from typing import List, Optional

import anthropic
from anthropic import AsyncAnthropic

from videospeak.core.exceptions import (
    CredentialError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from videospeak.core.models import TranslationMethod
from ..base import ProviderOptions, ProviderResponse, TokenUsage, TranslationProvider
from ..prompts import build_prompts


def map_anthropic_error(provider: str, error: Exception) -> ProviderError:
    if isinstance(error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return CredentialError(provider, str(error), status_code=error.status_code, original_error=error)
    if isinstance(error, anthropic.RateLimitError):
        return RateLimitError(provider, str(error), original_error=error)
    if isinstance(error, anthropic.APIStatusError):
        return ProviderError(provider, str(error), status_code=error.status_code, original_error=error)
    if isinstance(error, anthropic.APIConnectionError):
        return ProviderError(provider, f"network error: {error}", retryable=True, original_error=error)
    return ProviderError(provider, str(error), retryable=False, original_error=error)


class AnthropicBackend(TranslationProvider):
    """Anthropic Claude-based translation backend."""

    name = "anthropic"
    method = TranslationMethod.LLM

    PRICING = {
        "claude-3-5-sonnet-20241022": {"input": 0.003, "output": 0.015},
        "claude-3-opus-20240229": {"input": 0.015, "output": 0.075},
        "claude-3-haiku-20240307": {"input": 0.00025, "output": 0.00125},
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-3-5-sonnet-20241022",
        client: Optional[AsyncAnthropic] = None
    ):
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        super().__init__(api_key, model)

        if client is not None:
            self.async_client = client
        elif self.api_key:
            self.async_client = AsyncAnthropic(api_key=self.api_key)
        else:
            self.async_client = None

    def is_available(self) -> bool:
        return self.async_client is not None

    async def translate_text(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        options: Optional[ProviderOptions] = None
    ) -> ProviderResponse:
        if not self.async_client:
            raise CredentialError(self.name, "Anthropic API key not configured")
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty", field="text")

        options = options or ProviderOptions()
        model = options.model or self.model
        system, user = build_prompts(
            text,
            target_language,
            source_language,
            system_prompt=options.system_prompt,
            user_prompt=options.user_prompt,
            context_prompt=options.context_prompt,
            domain_hint=options.domain_hint,
        )

        start_time = time.time()
        try:
            message = await self.async_client.messages.create(
                model=model,
                max_tokens=options.max_tokens or 4096,
                temperature=options.temperature if options.temperature is not None else 0.3,
                system=system,
                messages=[{"role": "user", "content": user}]
            )
        except anthropic.AnthropicError as e:
            raise map_anthropic_error(self.name, e) from e

        parts = [block.text for block in message.content if getattr(block, "type", None) == "text"]
        translated = "".join(parts).strip()
        if not translated:
            raise ProviderError(self.name, "No translation in response", retryable=False)

        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens

        return ProviderResponse(
            translated_text=translated,
            source_language=source_language,
            target_language=target_language,
            model_used=message.model or model,
            token_usage=TokenUsage(input_tokens, output_tokens, input_tokens + output_tokens),
            confidence_score=0.9,
            request_id=getattr(message, "id", None),
            metadata={
                "processing_time": time.time() - start_time,
                "stop_reason": message.stop_reason,
            }
        )

    def get_supported_models(self) -> List[str]:
        return list(self.PRICING)

    async def validate_credentials(self) -> bool:
        """Send a one-token request; auth failures come back as errors."""
        if not self.async_client:
            return False
        try:
            await self.async_client.messages.create(
                model=self.model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}]
            )
        except anthropic.AnthropicError:
            return False
        return True

    async def aclose(self) -> None:
        if self.async_client is not None:
            await self.async_client.close()
