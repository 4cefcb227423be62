"""Translation providers, chunking and method routing."""

from .base import ProviderOptions, ProviderResponse, TokenUsage, TranslationProvider
from .chunking import ChunkMerger, ChunkedTranslator, TextChunker
from .providers import ProviderRegistry
from .router import TranslationConfig, TranslationRouter

__all__ = [
    'ProviderOptions',
    'ProviderResponse',
    'TokenUsage',
    'TranslationProvider',
    'TextChunker',
    'ChunkMerger',
    'ChunkedTranslator',
    'ProviderRegistry',
    'TranslationConfig',
    'TranslationRouter',
]
