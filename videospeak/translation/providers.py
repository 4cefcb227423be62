"""
Provider registry.

Maps provider names to instances and resolves a method family to a concrete
provider by walking an explicit, ordered list of selectors.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from videospeak.core.exceptions import ConfigurationError
from videospeak.core.models import TranslationMethod
from videospeak.utils.logger import get_logger
from .base import ProviderDescriptor, TranslationProvider

logger = get_logger(__name__)

# A selector inspects the registry and proposes a provider for a method, or passes.
ProviderSelector = Callable[["ProviderRegistry", TranslationMethod], Optional[TranslationProvider]]

DEFAULT_PROVIDER_NAMES = {
    TranslationMethod.REGIONAL: "sarvam",
    TranslationMethod.LLM: "huggingface",
}


def select_free(registry: "ProviderRegistry", method: TranslationMethod) -> Optional[TranslationProvider]:
    """First available provider flagged as free."""
    for provider in registry.for_method(method):
        if provider.is_free:
            return provider
    return None


def select_default(registry: "ProviderRegistry", method: TranslationMethod) -> Optional[TranslationProvider]:
    """The provider configured as this method's default."""
    name = registry.default_names.get(method)
    provider = registry.get(name) if name else None
    if provider is not None and provider.method is method and provider.is_available():
        return provider
    return None


def select_any(registry: "ProviderRegistry", method: TranslationMethod) -> Optional[TranslationProvider]:
    """Any available provider of the method, in registration order."""
    providers = registry.for_method(method)
    return providers[0] if providers else None


DEFAULT_SELECTORS: List[ProviderSelector] = [select_free, select_default, select_any]


class ProviderRegistry:
    """Named translation providers plus the selection rule between them."""

    def __init__(
        self,
        providers: Optional[Iterable[TranslationProvider]] = None,
        default_names: Optional[Dict[TranslationMethod, str]] = None,
        selectors: Optional[List[ProviderSelector]] = None
    ):
        self._providers: Dict[str, TranslationProvider] = {}
        self.default_names = dict(DEFAULT_PROVIDER_NAMES)
        if default_names:
            self.default_names.update(default_names)
        self.selectors = list(selectors) if selectors is not None else list(DEFAULT_SELECTORS)

        for provider in providers or []:
            self.register(provider)

    def register(self, provider: TranslationProvider, name: Optional[str] = None) -> None:
        key = name or provider.name
        if key in self._providers:
            logger.warning(f"Replacing registered provider: {key}")
        self._providers[key] = provider

    def unregister(self, name: str) -> Optional[TranslationProvider]:
        return self._providers.pop(name, None)

    def get(self, name: str) -> Optional[TranslationProvider]:
        return self._providers.get(name)

    def names(self) -> List[str]:
        return list(self._providers)

    def __contains__(self, name: str) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def for_method(self, method: TranslationMethod) -> List[TranslationProvider]:
        """Available providers of a method family, in registration order."""
        return [
            provider for provider in self._providers.values()
            if provider.method is method and provider.is_available()
        ]

    def has_method(self, method: TranslationMethod) -> bool:
        return bool(self.for_method(method))

    def select(self, method: TranslationMethod, name: Optional[str] = None) -> TranslationProvider:
        """
        Resolve a method family to a provider.

        Args:
            method: Method family to serve
            name: Explicit provider name; bypasses the selector list

        Returns:
            The chosen provider

        Raises:
            ConfigurationError: If no provider can serve the method
        """
        if name is not None:
            provider = self._providers.get(name)
            if provider is None:
                raise ConfigurationError(
                    f"Unknown translation provider: {name}",
                    config_key="translation.provider",
                    invalid_value=name,
                    valid_values=self.names()
                )
            if provider.method is not method:
                raise ConfigurationError(
                    f"Provider '{name}' does not serve the {method.value} method",
                    config_key="translation.provider",
                    invalid_value=name
                )
            if not provider.is_available():
                raise ConfigurationError(f"Provider '{name}' is not configured", config_key=f"api_keys.{name}")
            return provider

        for selector in self.selectors:
            provider = selector(self, method)
            if provider is not None:
                logger.debug(f"Selected provider '{provider.name}' for {method.value} via {selector.__name__}")
                return provider

        raise ConfigurationError(
            f"No translation provider configured for the {method.value} method",
            config_key="translation.default_method",
            invalid_value=method.value
        )

    def describe_all(self) -> List[ProviderDescriptor]:
        return [provider.describe() for provider in self._providers.values()]

    def get_info(self) -> List[Dict[str, Any]]:
        return [provider.get_info() for provider in self._providers.values()]

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ProviderRegistry":
        """
        Build the registry from a loaded configuration.

        Keyed providers are only registered when their API key is present;
        the free HuggingFace provider is always registered.
        """
        from .backends import AnthropicBackend, HuggingFaceBackend, OpenAIBackend, SarvamBackend

        api_keys = config.get("api_keys", {})
        provider_config = config.get("providers", {})
        translation_config = config.get("translation", {})

        registry = cls(default_names={
            TranslationMethod.LLM: translation_config.get("default_llm_provider", "huggingface"),
        })

        if api_keys.get("sarvam"):
            sarvam = provider_config.get("sarvam", {})
            registry.register(SarvamBackend(
                api_key=api_keys["sarvam"],
                model=sarvam.get("model", "sarvam-translate:v1"),
                base_url=sarvam.get("base_url", "https://api.sarvam.ai"),
                mode=sarvam.get("mode", "formal"),
            ))

        if api_keys.get("openai"):
            openai_cfg = provider_config.get("openai", {})
            registry.register(OpenAIBackend(
                api_key=api_keys["openai"],
                model=openai_cfg.get("model", "gpt-3.5-turbo"),
                base_url=openai_cfg.get("base_url"),
            ))

        if api_keys.get("anthropic"):
            anthropic_cfg = provider_config.get("anthropic", {})
            registry.register(AnthropicBackend(
                api_key=api_keys["anthropic"],
                model=anthropic_cfg.get("model", "claude-3-5-sonnet-20241022"),
            ))

        hf_cfg = provider_config.get("huggingface", {})
        registry.register(HuggingFaceBackend(
            api_key=api_keys.get("huggingface") or None,
            model=hf_cfg.get("model", "facebook/mbart-large-50-many-to-many-mmt"),
            base_url=hf_cfg.get("base_url", "https://api-inference.huggingface.co/models"),
        ))

        logger.info(f"Registered translation providers: {', '.join(registry.names())}")
        return registry
