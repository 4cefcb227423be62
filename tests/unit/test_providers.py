"""Tests for provider registration and selection."""

import pytest

from videospeak.core.exceptions import ConfigurationError
from videospeak.core.models import TranslationMethod
from videospeak.translation.backends import HuggingFaceBackend, OpenAIBackend, SarvamBackend
from videospeak.translation.providers import ProviderRegistry, select_any
from videospeak.utils.config_loader import get_default_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SARVAM_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "HUGGINGFACE_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_register_and_lookup(fake_provider_factory):
    provider = fake_provider_factory(name="alpha")
    registry = ProviderRegistry([provider])

    assert "alpha" in registry
    assert len(registry) == 1
    assert registry.get("alpha") is provider
    assert registry.names() == ["alpha"]
    assert registry.unregister("alpha") is provider
    assert registry.get("alpha") is None


def test_for_method_skips_unavailable(fake_provider_factory):
    available = fake_provider_factory(name="a")
    missing = fake_provider_factory(name="b", available=False)
    regional = fake_provider_factory(name="c", method=TranslationMethod.REGIONAL)
    registry = ProviderRegistry([available, missing, regional])

    assert registry.for_method(TranslationMethod.LLM) == [available]
    assert registry.has_method(TranslationMethod.REGIONAL)


class TestSelect:
    def test_free_provider_wins(self, fake_provider_factory):
        paid = fake_provider_factory(name="openai")
        free = fake_provider_factory(name="community", is_free=True)
        registry = ProviderRegistry([paid, free])

        assert registry.select(TranslationMethod.LLM) is free

    def test_configured_default_before_registration_order(self, fake_provider_factory):
        first = fake_provider_factory(name="openai")
        default = fake_provider_factory(name="anthropic")
        registry = ProviderRegistry([first, default], default_names={TranslationMethod.LLM: "anthropic"})

        assert registry.select(TranslationMethod.LLM) is default

    def test_any_provider_as_last_resort(self, fake_provider_factory):
        only = fake_provider_factory(name="custom-regional", method=TranslationMethod.REGIONAL)
        registry = ProviderRegistry([only])

        assert registry.select(TranslationMethod.REGIONAL) is only

    def test_custom_selector_list(self, fake_provider_factory):
        paid = fake_provider_factory(name="openai")
        free = fake_provider_factory(name="community", is_free=True)
        registry = ProviderRegistry([paid, free], selectors=[select_any])

        assert registry.select(TranslationMethod.LLM) is paid

    def test_no_provider_raises(self, fake_provider_factory):
        registry = ProviderRegistry([fake_provider_factory()])
        with pytest.raises(ConfigurationError):
            registry.select(TranslationMethod.REGIONAL)

    def test_explicit_name(self, fake_provider_factory):
        llm = fake_provider_factory(name="openai")
        registry = ProviderRegistry([llm])

        assert registry.select(TranslationMethod.LLM, name="openai") is llm
        with pytest.raises(ConfigurationError):
            registry.select(TranslationMethod.REGIONAL, name="openai")
        with pytest.raises(ConfigurationError):
            registry.select(TranslationMethod.LLM, name="missing")


def test_from_config_without_keys_registers_free_provider_only():
    registry = ProviderRegistry.from_config(get_default_config())

    assert registry.names() == ["huggingface"]
    assert isinstance(registry.get("huggingface"), HuggingFaceBackend)
    assert not registry.has_method(TranslationMethod.REGIONAL)


def test_from_config_with_keys():
    config = get_default_config()
    config["api_keys"]["sarvam"] = "sarvam-key"
    config["api_keys"]["openai"] = "sk-test"
    config["providers"]["sarvam"]["mode"] = "code-mixed"

    registry = ProviderRegistry.from_config(config)

    assert registry.names() == ["sarvam", "openai", "huggingface"]
    assert isinstance(registry.get("sarvam"), SarvamBackend)
    assert registry.get("sarvam").mode == "code-mixed"
    assert isinstance(registry.get("openai"), OpenAIBackend)
    assert registry.select(TranslationMethod.REGIONAL).name == "sarvam"
    # The free provider is preferred among LLM providers
    assert registry.select(TranslationMethod.LLM).name == "huggingface"


def test_describe_all(fake_provider_factory):
    registry = ProviderRegistry([fake_provider_factory(name="x", max_input_chars=100)])
    descriptor = registry.describe_all()[0]

    assert descriptor.name == "x"
    assert descriptor.max_input_chars == 100
    assert descriptor.token_estimator("abcdefgh", "m") == 2


@pytest.mark.asyncio
async def test_aclose_closes_every_provider(fake_provider_factory):
    providers = [fake_provider_factory(name="a"), fake_provider_factory(name="b")]
    await ProviderRegistry(providers).aclose()
    assert all(p.closed for p in providers)
