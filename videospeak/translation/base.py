"""
Base translation provider interface.
All translation backends must inherit from TranslationProvider.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from videospeak.core.exceptions import CredentialError, ProviderError, RateLimitError
from videospeak.core.models import Language, TranslationMethod, SUPPORTED_LANGUAGES

CHARS_PER_TOKEN = 4
PROMPT_SHARE = 0.7


@dataclass
class ProviderOptions:
    """Per-call knobs; each backend reads the ones it understands."""
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None
    # Chunk-context prompt built by the chunking engine
    context_prompt: Optional[str] = None
    domain_hint: Optional[str] = None
    # Structured fields for the regional backend
    mode: Optional[str] = None
    speaker_gender: Optional[str] = None
    output_script: Optional[str] = None


@dataclass
class TokenUsage:
    prompt: int = 0
    completion: int = 0
    total: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            prompt=self.prompt + other.prompt,
            completion=self.completion + other.completion,
            total=self.total + other.total,
        )


@dataclass
class ProviderResponse:
    """Response from a translation provider."""
    translated_text: str
    source_language: str
    target_language: str
    model_used: str
    token_usage: Optional[TokenUsage] = None
    confidence_score: Optional[float] = None
    request_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static facts about a provider used for selection and accounting."""
    name: str
    method: TranslationMethod
    models: List[str]
    token_estimator: Callable[[str, str], int]
    cost_estimator: Callable[[int, str], float]
    is_free: bool = False
    max_input_chars: Optional[int] = None


class TranslationProvider(ABC):
    """Abstract base class for translation providers."""

    name = "provider"
    method = TranslationMethod.LLM
    is_free = False
    # None means no per-call length cap beyond chunking
    max_input_chars: Optional[int] = None
    # Per-1k-token prices: {"model": {"input": x, "output": y}}
    PRICING: Dict[str, Dict[str, float]] = {}

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def translate_text(
        self,
        text: str,
        target_language: str,
        source_language: str,
        options: Optional[ProviderOptions] = None
    ) -> ProviderResponse:
        """
        Translate text asynchronously.

        Args:
            text: Text to translate
            target_language: Target language code or name
            source_language: Source language code or name ('auto' if unknown)
            options: Per-call options

        Returns:
            ProviderResponse with the translation and accounting data
        """

    @abstractmethod
    def get_supported_models(self) -> List[str]:
        """Model identifiers this provider accepts."""

    def get_supported_languages(self) -> List[Language]:
        return [lang for lang in SUPPORTED_LANGUAGES if lang.is_supported]

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Check that the configured credentials are accepted."""

    def estimate_tokens(self, text: str, model: Optional[str] = None) -> int:
        """Character-count heuristic: about four characters per token."""
        return math.ceil(len(text) / CHARS_PER_TOKEN)

    def estimate_cost(self, token_count: int, model: Optional[str] = None) -> float:
        """Split tokens 70/30 between prompt and completion and price them."""
        if not self.PRICING:
            return 0.0
        pricing = self.PRICING.get(model or self.model or "")
        if pricing is None:
            pricing = next(iter(self.PRICING.values()))
        input_tokens = token_count * PROMPT_SHARE
        output_tokens = token_count * (1 - PROMPT_SHARE)
        return (input_tokens / 1000) * pricing["input"] + (output_tokens / 1000) * pricing["output"]

    def describe(self) -> ProviderDescriptor:
        return ProviderDescriptor(
            name=self.name,
            method=self.method,
            models=self.get_supported_models(),
            token_estimator=self.estimate_tokens,
            cost_estimator=self.estimate_cost,
            is_free=self.is_free,
            max_input_chars=self.max_input_chars,
        )

    def is_available(self) -> bool:
        """Check if provider is configured."""
        return self.api_key is not None

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "method": self.method.value,
            "model": self.model,
            "free": self.is_free,
            "available": self.is_available()
        }

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


def raise_for_provider_status(provider: str, response: httpx.Response) -> None:
    """Map a non-2xx HTTP response onto the provider error taxonomy."""
    if response.is_success:
        return

    status = response.status_code
    try:
        body = response.text[:200]
    except httpx.ResponseNotRead:
        body = ""
    message = f"HTTP {status}: {body}" if body else f"HTTP {status}"

    if status in (401, 403):
        raise CredentialError(provider, message, status_code=status)
    if status == 429:
        retry_after = response.headers.get("retry-after")
        try:
            retry_after_seconds = float(retry_after) if retry_after else None
        except ValueError:
            retry_after_seconds = None
        raise RateLimitError(provider, message, retry_after=retry_after_seconds)
    raise ProviderError(provider, message, status_code=status)


def transport_error(provider: str, error: httpx.TransportError) -> ProviderError:
    """Wrap a network failure as a retryable provider error."""
    return ProviderError(provider, f"network error: {error}", retryable=True, original_error=error)
