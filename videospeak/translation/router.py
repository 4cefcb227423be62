"""
Translation strategy router.

Resolves a method preference to a provider, runs the (possibly chunked)
translation through the retry policy, and on failure makes exactly one
attempt with the alternate method family. Successful output is scored by
the quality evaluator.
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from videospeak.core.cancellation import CancellationToken
from videospeak.core.exceptions import (
    CancellationError,
    TranslationError,
    ValidationError,
    VideoSpeakError,
)
from videospeak.core.models import ProviderMetadata, TranslationMethod, TranslationResult
from videospeak.evaluation.metrics import QualityEvaluator, is_low_accuracy
from videospeak.utils.cache import TranslationCache
from videospeak.utils.logger import get_logger
from videospeak.utils.retry import TRANSLATION_RETRY_POLICY, RetryPolicy
from .base import ProviderOptions, TokenUsage, TranslationProvider
from .chunking import ChunkedTranslation, ChunkedTranslator, ProgressCallback
from .providers import ProviderRegistry

logger = get_logger(__name__)


@dataclass
class TranslationConfig:
    """Router settings."""
    default_method: TranslationMethod = TranslationMethod.LLM
    max_chunk_size: int = 1500
    chunk_overlap: int = 200
    overlap_threshold: float = 0.5
    enable_fallback: bool = True
    enable_caching: bool = True
    cache_ttl: int = 3600
    retry_policy: RetryPolicy = TRANSLATION_RETRY_POLICY

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TranslationConfig":
        translation = config.get("translation", {})
        retry = config.get("retry", {})
        policy = TRANSLATION_RETRY_POLICY.with_overrides(
            max_attempts=retry.get("max_attempts"),
            base_delay=retry.get("base_delay"),
            max_delay=retry.get("max_delay"),
            backoff_factor=retry.get("backoff_factor"),
        )
        return cls(
            default_method=TranslationMethod.parse(translation.get("default_method")) or TranslationMethod.LLM,
            max_chunk_size=translation.get("max_chunk_size", 1500),
            chunk_overlap=translation.get("chunk_overlap", 200),
            overlap_threshold=translation.get("overlap_threshold", 0.5),
            enable_fallback=translation.get("enable_fallback", True),
            enable_caching=translation.get("enable_caching", True),
            cache_ttl=translation.get("cache_ttl", 3600),
            retry_policy=policy,
        )


class TranslationRouter:
    """Method selection with a single fallback to the alternate family."""

    def __init__(
        self,
        providers: ProviderRegistry,
        config: Optional[TranslationConfig] = None,
        evaluator: Optional[QualityEvaluator] = None,
        cache: Optional[TranslationCache] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.providers = providers
        self.config = config or TranslationConfig()
        self.evaluator = evaluator or QualityEvaluator()
        if cache is None and self.config.enable_caching:
            cache = TranslationCache(ttl=self.config.cache_ttl)
        self.cache = cache
        self.chunked = ChunkedTranslator(
            max_chunk_size=self.config.max_chunk_size,
            overlap_size=self.config.chunk_overlap,
            overlap_threshold=self.config.overlap_threshold,
            retry_policy=self.config.retry_policy,
            sleep=sleep,
        )
        self._stats = {"translations": 0, "fallbacks": 0, "failures": 0, "cache_hits": 0}

    async def translate(
        self,
        text: str,
        target_language: str,
        source_language: str = "auto",
        method: Union[TranslationMethod, str, None] = None,
        options: Optional[ProviderOptions] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> TranslationResult:
        """
        Translate ``text`` with the preferred method, falling back once.

        Raises:
            ValidationError: Empty text
            ConfigurationError: No provider configured for the preferred method
            CancellationError: The job was cancelled between chunks
            TranslationError: Preferred and fallback methods both failed
        """
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty", field="text")

        preferred = TranslationMethod.parse(method) or self.config.default_method
        source_language = source_language or "auto"

        cache_key = None
        if self.cache is not None:
            cache_key = TranslationCache.make_key(text, source_language, target_language, preferred.value)
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._stats["cache_hits"] += 1
                logger.debug(f"Cache hit for {preferred.value} translation to {target_language}")
                return cached

        provider = self.providers.select(preferred)
        attempts: List[Dict[str, Any]] = []

        try:
            result = await self._translate_with(
                provider, text, target_language, source_language, options, progress, cancel_token
            )
        except CancellationError:
            raise
        except Exception as primary_error:
            attempts.append(self._attempt_record(provider, primary_error))
            logger.warning(f"Translation failed with {preferred.value} method ({provider.name}): {primary_error}")

            alternate = preferred.alternate
            if not self.config.enable_fallback or not self.providers.has_method(alternate):
                self._stats["failures"] += 1
                raise TranslationError(
                    f"Translation failed with {preferred.value} method and no fallback is configured: {primary_error}",
                    retryable=_retryable(primary_error),
                    attempts=attempts
                ) from primary_error

            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            fallback_provider = self.providers.select(alternate)
            logger.info(f"Falling back to {alternate.value} translation ({fallback_provider.name})")
            self._stats["fallbacks"] += 1

            try:
                result = await self._translate_with(
                    fallback_provider, text, target_language, source_language, options, progress,
                    cancel_token, fallback_used=True
                )
            except CancellationError:
                raise
            except Exception as fallback_error:
                attempts.append(self._attempt_record(fallback_provider, fallback_error))
                self._stats["failures"] += 1
                raise TranslationError(
                    f"Translation failed with both {preferred.value} and {alternate.value} methods: {fallback_error}",
                    retryable=_retryable(primary_error) or _retryable(fallback_error),
                    attempts=attempts
                ) from fallback_error

        self._stats["translations"] += 1
        if cache_key is not None:
            self.cache.set(cache_key, result)
        return result

    async def _translate_with(
        self,
        provider: TranslationProvider,
        text: str,
        target_language: str,
        source_language: str,
        options: Optional[ProviderOptions],
        progress: Optional[ProgressCallback],
        cancel_token: Optional[CancellationToken],
        fallback_used: bool = False
    ) -> TranslationResult:
        outcome = await self.chunked.translate(
            provider,
            text,
            target_language,
            source_language,
            options=options,
            progress=progress,
            cancel_token=cancel_token,
        )
        return self._build_result(provider, text, target_language, source_language, outcome, fallback_used)

    def _build_result(
        self,
        provider: TranslationProvider,
        text: str,
        target_language: str,
        source_language: str,
        outcome: ChunkedTranslation,
        fallback_used: bool
    ) -> TranslationResult:
        method = provider.method
        metrics = self.evaluator.score(text, outcome.text, method)
        model = outcome.model_used or provider.model or provider.name

        usage = outcome.token_usage
        if not outcome.has_token_usage:
            prompt_tokens = provider.estimate_tokens(text, model)
            completion_tokens = provider.estimate_tokens(outcome.text, model)
            usage = TokenUsage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens)

        detected_source = outcome.responses[0].source_language if outcome.responses else source_language

        return TranslationResult(
            translated_text=outcome.text,
            source_language_code=detected_source or source_language,
            target_language_code=target_language,
            request_id=outcome.request_id or f"{method.value}-{uuid.uuid4().hex}",
            translation_accuracy=metrics.overall_accuracy,
            confidence_score=metrics.confidence_score,
            quality_metrics=metrics,
            method=method,
            provider_metadata=ProviderMetadata(
                provider=provider.name,
                model=model,
                prompt_tokens=usage.prompt,
                completion_tokens=usage.completion,
                total_tokens=usage.total,
                processing_time=round(outcome.processing_time, 3),
                estimated_cost=provider.estimate_cost(usage.total, model),
                chunk_count=outcome.chunk_count,
                fallback_used=fallback_used,
            ),
        )

    @staticmethod
    def _attempt_record(provider: TranslationProvider, error: Exception) -> Dict[str, Any]:
        return {
            "provider": provider.name,
            "method": provider.method.value,
            "error": str(error),
            "error_type": type(error).__name__,
        }

    def is_low_accuracy(self, result: TranslationResult) -> bool:
        return is_low_accuracy(result)

    def get_low_accuracy_warning(self, result: TranslationResult) -> str:
        accuracy = round(result.translation_accuracy)
        method = "LLM" if result.method is TranslationMethod.LLM else "Sarvam API"
        return (
            f"Translation accuracy is {accuracy}% using {method}. "
            "Consider checking the source audio quality or trying a different translation method."
        )

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self._stats)
        if self.cache is not None:
            stats["cache"] = self.cache.get_stats()
        return stats


def _retryable(error: BaseException) -> bool:
    if isinstance(error, VideoSpeakError):
        return error.retryable
    return True
