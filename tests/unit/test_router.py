"""
Tests for the translation router.

Tests:
- Preferred method success and result assembly
- Exactly one fallback to the alternate method
- Configuration errors when the preferred method has no provider
- Caching, cancellation and the low-accuracy warning
"""

import pytest

from videospeak.core.cancellation import CancellationToken
from videospeak.core.exceptions import (
    CancellationError,
    ConfigurationError,
    CredentialError,
    ProviderError,
    RateLimitError,
    TranslationError,
    ValidationError,
)
from videospeak.core.models import TranslationMethod
from videospeak.translation.providers import ProviderRegistry
from videospeak.translation.router import TranslationConfig, TranslationRouter
from videospeak.utils.config_loader import get_default_config


def make_router(registry, no_sleep, **config):
    return TranslationRouter(registry, TranslationConfig(**config), sleep=no_sleep)


@pytest.mark.asyncio
async def test_regional_translation(registry, regional_provider, no_sleep):
    """Test a successful regional translation end to end."""
    router = make_router(registry, no_sleep)
    result = await router.translate("Hello world", "hi-IN", "en-IN", method="regional")

    assert result.translated_text == "नमस्ते दुनिया"
    assert result.method is TranslationMethod.REGIONAL
    assert result.source_language_code == "en-IN"
    assert result.target_language_code == "hi-IN"
    assert result.request_id == "sarvam-req-1"
    assert result.translation_accuracy == 83.75
    assert result.confidence_score == 93.75
    assert result.provider_metadata.provider == "sarvam"
    assert result.provider_metadata.fallback_used is False
    assert result.provider_metadata.chunk_count == 1
    assert len(regional_provider.calls) == 1


@pytest.mark.asyncio
async def test_default_method_is_used(registry, llm_provider, regional_provider, no_sleep):
    router = make_router(registry, no_sleep, default_method=TranslationMethod.LLM)
    result = await router.translate("Hello world", "hi-IN")

    assert result.method is TranslationMethod.LLM
    assert len(llm_provider.calls) == 1
    assert regional_provider.calls == []


@pytest.mark.asyncio
async def test_empty_text_is_rejected(registry, no_sleep):
    with pytest.raises(ValidationError):
        await make_router(registry, no_sleep).translate("   ", "hi-IN")


@pytest.mark.asyncio
async def test_falls_back_once_to_alternate_method(registry, regional_provider, llm_provider, no_sleep):
    """Test a failed regional call is served by the LLM family."""
    regional_provider.failures = [ProviderError("sarvam", "bad request", status_code=400)]
    router = make_router(registry, no_sleep)

    result = await router.translate("Hello world", "hi-IN", "en-IN", method=TranslationMethod.REGIONAL)

    assert result.method is TranslationMethod.LLM
    assert result.provider_metadata.provider == "openai"
    assert result.provider_metadata.fallback_used is True
    assert len(regional_provider.calls) == 1
    assert len(llm_provider.calls) == 1
    assert router.get_stats()["fallbacks"] == 1


@pytest.mark.asyncio
async def test_retries_are_exhausted_before_fallback(registry, regional_provider, llm_provider, no_sleep):
    regional_provider.failures = [RateLimitError("sarvam") for _ in range(3)]
    router = make_router(registry, no_sleep)

    result = await router.translate("Hello world", "hi-IN", method="regional")

    assert len(regional_provider.calls) == 3
    assert no_sleep.delays == [1.0, 2.0]
    assert result.provider_metadata.fallback_used is True


@pytest.mark.asyncio
async def test_both_methods_fail(registry, regional_provider, llm_provider, no_sleep):
    regional_provider.failures = [ProviderError("sarvam", "bad request", status_code=400)]
    llm_provider.failures = [CredentialError("openai", status_code=401)]
    router = make_router(registry, no_sleep)

    with pytest.raises(TranslationError) as error:
        await router.translate("Hello world", "hi-IN", method="regional")

    assert [a["provider"] for a in error.value.attempts] == ["sarvam", "openai"]
    assert not error.value.retryable
    # Exactly one fallback: each provider called once
    assert len(regional_provider.calls) == 1
    assert len(llm_provider.calls) == 1
    assert router.get_stats()["failures"] == 1


@pytest.mark.asyncio
async def test_fallback_disabled(registry, regional_provider, llm_provider, no_sleep):
    regional_provider.failures = [ProviderError("sarvam", "bad request", status_code=400)]
    router = make_router(registry, no_sleep, enable_fallback=False)

    with pytest.raises(TranslationError) as error:
        await router.translate("Hello world", "hi-IN", method="regional")

    assert len(error.value.attempts) == 1
    assert llm_provider.calls == []


@pytest.mark.asyncio
async def test_no_alternate_provider_configured(fake_provider_factory, no_sleep):
    regional = fake_provider_factory(
        name="sarvam",
        method=TranslationMethod.REGIONAL,
        failures=[ProviderError("sarvam", "down", status_code=503) for _ in range(3)],
    )
    router = make_router(ProviderRegistry([regional]), no_sleep)

    with pytest.raises(TranslationError) as error:
        await router.translate("Hello world", "hi-IN", method="regional")
    assert error.value.retryable


@pytest.mark.asyncio
async def test_missing_preferred_provider_is_configuration_error(fake_provider_factory, no_sleep):
    llm = fake_provider_factory(name="openai")
    router = make_router(ProviderRegistry([llm]), no_sleep)

    with pytest.raises(ConfigurationError):
        await router.translate("Hello world", "hi-IN", method="regional")
    assert llm.calls == []


@pytest.mark.asyncio
async def test_cancellation_is_not_a_fallback_trigger(registry, regional_provider, llm_provider, no_sleep):
    token = CancellationToken("job-1")
    token.cancel()
    router = make_router(registry, no_sleep)

    with pytest.raises(CancellationError):
        await router.translate("Hello world", "hi-IN", method="regional", cancel_token=token)
    assert regional_provider.calls == []
    assert llm_provider.calls == []


@pytest.mark.asyncio
async def test_cache_hit_skips_provider(registry, regional_provider, no_sleep):
    router = make_router(registry, no_sleep)
    first = await router.translate("Hello world", "hi-IN", "en-IN", method="regional")
    second = await router.translate("Hello world", "hi-IN", "en-IN", method="regional")

    assert second is first
    assert len(regional_provider.calls) == 1
    assert router.get_stats()["cache_hits"] == 1


@pytest.mark.asyncio
async def test_caching_can_be_disabled(registry, regional_provider, no_sleep):
    router = make_router(registry, no_sleep, enable_caching=False)
    await router.translate("Hello world", "hi-IN", method="regional")
    await router.translate("Hello world", "hi-IN", method="regional")

    assert router.cache is None
    assert len(regional_provider.calls) == 2


@pytest.mark.asyncio
async def test_request_id_and_usage_are_synthesised(fake_provider_factory, no_sleep):
    provider = fake_provider_factory(name="sarvam", method=TranslationMethod.REGIONAL,
                                     report_usage=False, with_request_id=False)
    router = make_router(ProviderRegistry([provider]), no_sleep)

    result = await router.translate("Hello world", "hi-IN", method="regional")

    assert result.request_id.startswith("regional-")
    assert result.provider_metadata.prompt_tokens == 3
    assert result.provider_metadata.total_tokens > result.provider_metadata.prompt_tokens


@pytest.mark.asyncio
async def test_long_text_is_chunked(registry, llm_provider, no_sleep):
    text = "This sentence repeats to make a long document. " * 100
    router = make_router(registry, no_sleep, max_chunk_size=1000, chunk_overlap=100)

    result = await router.translate(text, "hi-IN", method="llm")

    assert result.provider_metadata.chunk_count == len(llm_provider.calls)
    assert result.provider_metadata.chunk_count >= 5


@pytest.mark.asyncio
async def test_low_accuracy_warning(fake_provider_factory, no_sleep):
    provider = fake_provider_factory(name="openai", responder=lambda text: text)
    router = make_router(ProviderRegistry([provider]), no_sleep)

    result = await router.translate("Hello world", "hi-IN", method="llm")

    assert router.is_low_accuracy(result) == (result.translation_accuracy < 70)
    warning = router.get_low_accuracy_warning(result)
    assert warning.startswith(f"Translation accuracy is {round(result.translation_accuracy)}% using LLM.")


def test_config_from_dict():
    config = get_default_config()
    config["translation"]["default_method"] = "sarvam"
    config["translation"]["enable_fallback"] = False
    config["retry"]["max_attempts"] = 5

    parsed = TranslationConfig.from_dict(config)

    assert parsed.default_method is TranslationMethod.REGIONAL
    assert parsed.enable_fallback is False
    assert parsed.retry_policy.max_attempts == 5
    assert parsed.retry_policy.name == "translation"
