"""
Tests for the concrete translation backends.

HTTP backends run against httpx.MockTransport; SDK backends get a mocked
async client.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from videospeak.core.exceptions import (
    ConfigurationError,
    CredentialError,
    ProviderError,
    RateLimitError,
    ValidationError,
)
from videospeak.core.models import TranslationMethod
from videospeak.translation.backends import AnthropicBackend, HuggingFaceBackend, OpenAIBackend, SarvamBackend
from videospeak.translation.backends.huggingface_backend import mbart_language_code
from videospeak.translation.base import ProviderOptions


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SARVAM_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "HUGGINGFACE_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def sdk_request(url="https://api.example.com/v1/messages"):
    return httpx.Request("POST", url)


class TestSarvamBackend:
    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            SarvamBackend(api_key=None)

    def test_rejects_unknown_mode(self):
        with pytest.raises(ConfigurationError):
            SarvamBackend(api_key="key", mode="shouting")

    def test_descriptor(self):
        descriptor = SarvamBackend(api_key="key").describe()
        assert descriptor.method is TranslationMethod.REGIONAL
        assert descriptor.max_input_chars == 2000
        assert "sarvam-translate:v1" in descriptor.models

    @pytest.mark.asyncio
    async def test_translate(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "translated_text": "नमस्ते दुनिया",
                "source_language_code": "en-IN",
                "request_id": "sarvam-123",
            })

        backend = SarvamBackend(api_key="key", client=mock_client(handler))
        response = await backend.translate_text(
            "  Hello world ", "hi-IN", "auto", ProviderOptions(speaker_gender="Female")
        )

        assert response.translated_text == "नमस्ते दुनिया"
        assert response.source_language == "en-IN"
        assert response.request_id == "sarvam-123"
        assert response.token_usage is None
        assert seen["url"] == "https://api.sarvam.ai/translate"
        assert seen["headers"]["api-subscription-key"] == "key"
        assert seen["body"]["input"] == "Hello world"
        assert seen["body"]["target_language_code"] == "hi-IN"
        assert seen["body"]["mode"] == "formal"
        assert seen["body"]["speaker_gender"] == "Female"
        assert "output_script" not in seen["body"]

    @pytest.mark.asyncio
    async def test_input_validation(self):
        backend = SarvamBackend(api_key="key", client=mock_client(lambda request: httpx.Response(500)))
        with pytest.raises(ValidationError):
            await backend.translate_text("   ", "hi-IN")
        with pytest.raises(ValidationError):
            await backend.translate_text("x" * 2001, "hi-IN")
        with pytest.raises(ValidationError):
            await backend.translate_text("Hello", "fr-FR")

    @pytest.mark.asyncio
    async def test_status_mapping(self):
        responses = iter([
            httpx.Response(401, text="bad key"),
            httpx.Response(429, headers={"retry-after": "3"}),
            httpx.Response(503, text="unavailable"),
            httpx.Response(400, text="bad request"),
        ])
        backend = SarvamBackend(api_key="key", client=mock_client(lambda request: next(responses)))

        with pytest.raises(CredentialError):
            await backend.translate_text("Hello", "hi-IN")
        with pytest.raises(RateLimitError) as rate_limited:
            await backend.translate_text("Hello", "hi-IN")
        assert rate_limited.value.retry_after == 3.0
        with pytest.raises(ProviderError) as server_error:
            await backend.translate_text("Hello", "hi-IN")
        assert server_error.value.retryable
        with pytest.raises(ProviderError) as client_error:
            await backend.translate_text("Hello", "hi-IN")
        assert not client_error.value.retryable

    @pytest.mark.asyncio
    async def test_network_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend = SarvamBackend(api_key="key", client=mock_client(handler))
        with pytest.raises(ProviderError) as error:
            await backend.translate_text("Hello", "hi-IN")
        assert error.value.retryable
        assert error.value.status_code is None

    @pytest.mark.asyncio
    async def test_validate_credentials(self):
        backend = SarvamBackend(api_key="key", client=mock_client(lambda request: httpx.Response(403)))
        assert await backend.validate_credentials() is False

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        client = mock_client(lambda request: httpx.Response(200))
        backend = SarvamBackend(api_key="key", client=client)
        await backend.aclose()
        assert not client.is_closed


class TestHuggingFaceBackend:
    def test_mbart_codes(self):
        assert mbart_language_code("hi-IN") == "hi_IN"
        assert mbart_language_code("Tamil") == "ta_IN"
        assert mbart_language_code("zz-ZZ") == "en_XX"

    def test_free_and_always_available(self):
        backend = HuggingFaceBackend()
        assert backend.is_free
        assert backend.is_available()
        assert backend.estimate_cost(1000) == 0.0

    @pytest.mark.asyncio
    async def test_translate(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[{"translation_text": " नमस्ते दुनिया "}])

        backend = HuggingFaceBackend(api_key="hf-key", client=mock_client(handler))
        response = await backend.translate_text("Hello world", "hi-IN", "en-IN")

        assert response.translated_text == "नमस्ते दुनिया"
        assert response.token_usage.total == response.token_usage.prompt + response.token_usage.completion
        assert response.confidence_score == 0.8
        assert seen["url"].endswith("/facebook/mbart-large-50-many-to-many-mmt")
        assert seen["headers"]["authorization"] == "Bearer hf-key"
        assert seen["body"]["inputs"] == ">>hi_IN<< Hello world"

    @pytest.mark.asyncio
    async def test_t5_prompt_format(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"generated_text": "Bonjour"})

        backend = HuggingFaceBackend(model="t5-base", client=mock_client(handler))
        response = await backend.translate_text("Hello", "French", "English")

        assert response.translated_text == "Bonjour"
        assert seen["body"]["inputs"] == "translate English to French: Hello"

    @pytest.mark.asyncio
    async def test_unreadable_response(self):
        backend = HuggingFaceBackend(client=mock_client(lambda request: httpx.Response(200, json={"error": "?"})))
        with pytest.raises(ProviderError):
            await backend.translate_text("Hello", "hi-IN")


class TestOpenAIBackend:
    def _client(self, **create_kwargs):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(**create_kwargs)
        client.close = AsyncMock()
        return client

    def test_unconfigured_backend_is_unavailable(self):
        assert not OpenAIBackend().is_available()

    @pytest.mark.asyncio
    async def test_unconfigured_backend_raises_credential_error(self):
        with pytest.raises(CredentialError):
            await OpenAIBackend().translate_text("Hello", "hi-IN")

    @pytest.mark.asyncio
    async def test_translate(self):
        completion = SimpleNamespace(
            id="chatcmpl-1",
            model="gpt-3.5-turbo",
            choices=[SimpleNamespace(message=SimpleNamespace(content=" नमस्ते "), finish_reason="stop")],
            usage=SimpleNamespace(prompt_tokens=20, completion_tokens=5, total_tokens=25),
        )
        client = self._client(return_value=completion)
        backend = OpenAIBackend(api_key="sk-test", client=client)

        response = await backend.translate_text("Hello", "hi-IN", "en-IN", ProviderOptions(context_prompt="CTX"))

        assert response.translated_text == "नमस्ते"
        assert response.request_id == "chatcmpl-1"
        assert response.token_usage.total == 25
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["messages"][0]["role"] == "system"
        assert "Hindi" in kwargs["messages"][0]["content"]
        assert kwargs["messages"][1]["content"] == "CTX"

    @pytest.mark.asyncio
    async def test_sdk_errors_are_mapped(self):
        request = sdk_request("https://api.openai.com/v1/chat/completions")
        client = self._client(side_effect=[
            openai.RateLimitError("slow down", response=httpx.Response(429, request=request), body=None),
            openai.AuthenticationError("bad key", response=httpx.Response(401, request=request), body=None),
            openai.InternalServerError("oops", response=httpx.Response(500, request=request), body=None),
            openai.APIConnectionError(request=request),
        ])
        backend = OpenAIBackend(api_key="sk-test", client=client)

        with pytest.raises(RateLimitError):
            await backend.translate_text("Hello", "hi-IN")
        with pytest.raises(CredentialError):
            await backend.translate_text("Hello", "hi-IN")
        with pytest.raises(ProviderError) as server_error:
            await backend.translate_text("Hello", "hi-IN")
        assert server_error.value.status_code == 500
        assert server_error.value.retryable
        with pytest.raises(ProviderError) as network_error:
            await backend.translate_text("Hello", "hi-IN")
        assert network_error.value.retryable

    def test_cost_estimate(self):
        backend = OpenAIBackend(api_key="sk-test", client=self._client())
        # 700 prompt tokens at 0.0015/1k plus 300 completion tokens at 0.002/1k
        assert backend.estimate_cost(1000, "gpt-3.5-turbo") == pytest.approx(0.00105 + 0.0006)


class TestAnthropicBackend:
    @pytest.mark.asyncio
    async def test_translate(self):
        message = SimpleNamespace(
            id="msg_1",
            model="claude-3-5-sonnet-20241022",
            content=[SimpleNamespace(type="text", text="नमस्ते "), SimpleNamespace(type="text", text="दुनिया")],
            usage=SimpleNamespace(input_tokens=30, output_tokens=8),
            stop_reason="end_turn",
        )
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=message)
        backend = AnthropicBackend(api_key="sk-ant", client=client)

        response = await backend.translate_text("Hello world", "hi-IN", "en-IN")

        assert response.translated_text == "नमस्ते दुनिया"
        assert response.token_usage.total == 38
        assert response.request_id == "msg_1"
        kwargs = client.messages.create.call_args.kwargs
        assert "Hindi" in kwargs["system"]
        assert kwargs["messages"][0]["role"] == "user"

    @pytest.mark.asyncio
    async def test_rate_limit_is_mapped(self):
        request = sdk_request()
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=anthropic.RateLimitError(
            "slow down", response=httpx.Response(429, request=request), body=None
        ))
        backend = AnthropicBackend(api_key="sk-ant", client=client)

        with pytest.raises(RateLimitError):
            await backend.translate_text("Hello", "hi-IN")
