"""Concrete translation providers."""

from .sarvam_backend import SarvamBackend
from .openai_backend import OpenAIBackend
from .anthropic_backend import AnthropicBackend
from .huggingface_backend import HuggingFaceBackend

__all__ = [
    "SarvamBackend",
    "OpenAIBackend",
    "AnthropicBackend",
    "HuggingFaceBackend",
]
