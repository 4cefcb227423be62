"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path
from typing import Callable, List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from videospeak.core.models import TranslationMethod
from videospeak.translation.base import ProviderOptions, ProviderResponse, TokenUsage, TranslationProvider
from videospeak.translation.providers import ProviderRegistry


class FakeProvider(TranslationProvider):
    """
    In-memory provider.

    ``responder`` maps the chunk text to a translation; ``failures`` is a list
    of exceptions raised (in order) before any call succeeds.
    """

    def __init__(
        self,
        name: str = "fake",
        method: TranslationMethod = TranslationMethod.LLM,
        responder: Optional[Callable[[str], str]] = None,
        failures: Optional[List[Exception]] = None,
        is_free: bool = False,
        max_input_chars: Optional[int] = None,
        available: bool = True,
        delay: float = 0.0,
        report_usage: bool = True,
        with_request_id: bool = True
    ):
        super().__init__(api_key="test-key", model=f"{name}-model")
        self.name = name
        self.method = method
        self.is_free = is_free
        self.max_input_chars = max_input_chars
        self.responder = responder or (lambda text: f"[{name}] {text}")
        self.failures = list(failures or [])
        self.available = available
        self.delay = delay
        self.report_usage = report_usage
        self.with_request_id = with_request_id
        self.calls: List[dict] = []
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    async def translate_text(self, text, target_language, source_language="auto", options=None):
        self.calls.append({
            "text": text,
            "target_language": target_language,
            "source_language": source_language,
            "options": options or ProviderOptions(),
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures:
            raise self.failures.pop(0)

        translated = self.responder(text)
        usage = TokenUsage(10, 12, 22) if self.report_usage else None
        return ProviderResponse(
            translated_text=translated,
            source_language=source_language,
            target_language=target_language,
            model_used=self.model,
            token_usage=usage,
            request_id=f"{self.name}-req-{len(self.calls)}" if self.with_request_id else None,
        )

    def get_supported_models(self):
        return [self.model]

    async def validate_credentials(self) -> bool:
        return self.available

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_provider_factory():
    """Build FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def regional_provider():
    """Regional provider that answers 'Hello world' in Hindi."""
    return FakeProvider(
        name="sarvam",
        method=TranslationMethod.REGIONAL,
        responder=lambda text: "नमस्ते दुनिया" if text == "Hello world" else text,
        max_input_chars=2000,
    )


@pytest.fixture
def llm_provider():
    """LLM provider that echoes its input."""
    return FakeProvider(name="openai", method=TranslationMethod.LLM, responder=lambda text: text)


@pytest.fixture
def registry(regional_provider, llm_provider):
    """Registry with one provider per method family."""
    return ProviderRegistry([regional_provider, llm_provider])


@pytest.fixture
def no_sleep():
    """Backoff sleep that records delays instead of waiting."""
    delays = []

    async def sleep(delay):
        delays.append(delay)

    sleep.delays = delays
    return sleep
