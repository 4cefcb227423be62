"""
Chunking and merging for long translations.

Long text is split into overlapping chunks at paragraph or sentence
boundaries, translated one chunk at a time with neighbouring context, and
stitched back together by detecting and dropping the duplicated overlap.
"""

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, List, Optional

from videospeak.core.cancellation import CancellationToken
from videospeak.core.exceptions import ChunkMergeError
from videospeak.core.models import Chunk
from videospeak.utils.logger import get_logger
from videospeak.utils.retry import TRANSLATION_RETRY_POLICY, RetryPolicy, execute_with_retry
from .base import ProviderOptions, ProviderResponse, TokenUsage, TranslationProvider
from .prompts import create_chunk_context_prompt

logger = get_logger(__name__)

DEFAULT_MAX_CHUNK_SIZE = 1500
DEFAULT_OVERLAP_SIZE = 200
DEFAULT_OVERLAP_THRESHOLD = 0.5

PARAGRAPH_BREAKS = ("\n\n", "\r\n\r\n")
SENTENCE_BREAKS = (". ", "! ", "? ", ".\n", "!\n", "?\n")

MAX_PROBE = 200
MIN_PROBE = 10
PROBE_STEP = 10


class TextChunker:
    """Split text into overlapping, semantically bounded chunks."""

    def __init__(self, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE, overlap_size: int = DEFAULT_OVERLAP_SIZE):
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if overlap_size < 0 or overlap_size >= max_chunk_size:
            raise ValueError("overlap_size must be in [0, max_chunk_size)")
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size

    def needs_chunking(self, text: str) -> bool:
        return len(text) > self.max_chunk_size

    @staticmethod
    def _last_break(text: str, delimiters, start: int, end: int) -> int:
        """Position just past the last delimiter fully inside text[start:end], or ``start``."""
        best = start
        for delimiter in delimiters:
            pos = text.rfind(delimiter, start, end)
            if pos != -1 and pos + len(delimiter) > best:
                best = pos + len(delimiter)
        return best

    def _cut_point(self, text: str, start: int) -> int:
        end = min(start + self.max_chunk_size, len(text))
        if end == len(text):
            return end

        paragraph = self._last_break(text, PARAGRAPH_BREAKS, start, end)
        if paragraph > start + self.max_chunk_size / 2:
            return paragraph

        sentence = self._last_break(text, SENTENCE_BREAKS, start, end)
        if sentence > start + self.max_chunk_size / 3:
            return sentence

        return end

    def split(self, text: str) -> List[Chunk]:
        """
        Split ``text`` into chunks.

        Text at or under ``max_chunk_size`` comes back as a single chunk equal
        to the input. Otherwise each window is cut at the last paragraph break
        past half the window, else the last sentence end past a third of it,
        else at the window boundary; the next window starts ``overlap_size``
        characters before the cut.

        Chunk text is the raw slice, so dropping each chunk's declared
        ``overlap`` from its head and concatenating reproduces ``text``.
        """
        if not text or len(text) <= self.max_chunk_size:
            return [Chunk(text=text, index=0, overlap=0, start=0, end=len(text))]

        chunks: List[Chunk] = []
        start = 0
        previous_end = 0

        while True:
            end = self._cut_point(text, start)
            chunks.append(Chunk(
                text=text[start:end],
                index=len(chunks),
                overlap=previous_end - start if chunks else 0,
                start=start,
                end=end,
            ))
            if end >= len(text):
                break

            previous_end = end
            # Always make progress, even when the cut lands inside the overlap
            start = max(start + 1, end - self.overlap_size)

        return chunks


def similarity(a: str, b: str) -> float:
    """Position-wise, case-insensitive character match ratio."""
    if not a or not b:
        return 0.0
    a = a.lower()
    b = b.lower()
    length = min(len(a), len(b))
    matches = sum(1 for i in range(length) if a[i] == b[i])
    return matches / length


class ChunkMerger:
    """
    Stitch translated chunks back together.

    Overlap detection is a greedy largest-first probe using position-wise
    character matching, not a true alignment. Texts with repeated substrings
    can be misdetected.
    """

    def __init__(self, overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD, strict: bool = False):
        self.overlap_threshold = overlap_threshold
        self.strict = strict

    def find_overlap(self, accumulated: str, chunk: str) -> int:
        """Largest probed overlap length whose similarity meets the threshold, else 0."""
        candidate = int(min(MAX_PROBE, min(len(accumulated), len(chunk)) / 3))
        while candidate >= MIN_PROBE:
            tail = accumulated[-candidate:]
            head = chunk[:candidate]
            if similarity(tail, head) >= self.overlap_threshold:
                return candidate
            candidate -= PROBE_STEP
        return 0

    def merge(self, translated_chunks: List[str]) -> str:
        if not translated_chunks:
            return ""
        if len(translated_chunks) == 1:
            return translated_chunks[0]

        result = translated_chunks[0]
        for index, chunk in enumerate(translated_chunks[1:], start=1):
            if not chunk:
                error = ChunkMergeError(f"Translated chunk {index} is empty", chunk_index=index)
                if self.strict:
                    raise error
                logger.warning(str(error))
                continue
            overlap = self.find_overlap(result, chunk)
            logger.debug(f"Chunk {index}: dropping {overlap} overlapping characters")
            result += chunk[overlap:]
        return result


def join_chunks(chunks: List[Chunk]) -> str:
    """Reassemble source chunks by dropping each declared overlap."""
    return "".join(chunk.text[chunk.overlap:] for chunk in chunks)


ProgressCallback = Callable[[int, int], Any]


@dataclass
class ChunkedTranslation:
    """Merged output of a chunked translation plus per-call accounting."""
    text: str
    chunks: List[Chunk]
    responses: List[ProviderResponse]
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    processing_time: float = 0.0

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def model_used(self) -> Optional[str]:
        return self.responses[-1].model_used if self.responses else None

    @property
    def request_id(self) -> Optional[str]:
        return self.responses[0].request_id if self.responses else None

    @property
    def has_token_usage(self) -> bool:
        return any(r.token_usage is not None for r in self.responses)


class ChunkedTranslator:
    """
    Translate text through one provider, chunking when it is too long.

    Chunks go out strictly one after another: each chunk's prompt carries the
    previous chunk's translation, so no chunk can start before its
    predecessor finishes. Any chunk failure aborts the whole translation.
    """

    def __init__(
        self,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        overlap_size: int = DEFAULT_OVERLAP_SIZE,
        overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
        retry_policy: RetryPolicy = TRANSLATION_RETRY_POLICY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size
        self.merger = ChunkMerger(overlap_threshold)
        self.retry_policy = retry_policy
        self.sleep = sleep

    def chunker_for(self, provider: TranslationProvider) -> TextChunker:
        """Shrink the window to the provider's per-call cap when it is tighter."""
        size = self.max_chunk_size
        if provider.max_input_chars is not None:
            size = min(size, provider.max_input_chars)
        return TextChunker(size, min(self.overlap_size, size // 2))

    async def _translate_one(
        self,
        provider: TranslationProvider,
        text: str,
        target_language: str,
        source_language: str,
        options: ProviderOptions
    ) -> ProviderResponse:
        async def call():
            return await provider.translate_text(text, target_language, source_language, options)

        return await execute_with_retry(call, self.retry_policy, sleep=self.sleep)

    async def translate(
        self,
        provider: TranslationProvider,
        text: str,
        target_language: str,
        source_language: str,
        options: Optional[ProviderOptions] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ChunkedTranslation:
        """
        Translate ``text`` with ``provider``.

        Args:
            provider: Provider to call (each call wrapped in the retry policy)
            text: Source text
            target_language: Target language code
            source_language: Source language code or 'auto'
            options: Base per-call options
            progress: Called with (chunks_done, chunk_total) after each chunk
            cancel_token: Checked before every chunk

        Returns:
            ChunkedTranslation with the merged text
        """
        options = options or ProviderOptions()
        chunks = self.chunker_for(provider).split(text)
        total = len(chunks)
        start_time = time.time()

        if total > 1:
            logger.info(f"Split {len(text)} characters into {total} chunks for {provider.name}")

        translated: List[str] = []
        responses: List[ProviderResponse] = []
        usage = TokenUsage()

        for i, chunk in enumerate(chunks):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            chunk_text = chunk.text.strip()
            chunk_options = options
            if total > 1:
                chunk_options = replace(options, context_prompt=create_chunk_context_prompt(
                    chunk_text,
                    target_language,
                    previous_context=translated[i - 1] if i > 0 else None,
                    following_context=chunks[i + 1].text.strip() if i < total - 1 else None,
                ))

            response = await self._translate_one(provider, chunk_text, target_language, source_language, chunk_options)
            translated.append(response.translated_text)
            responses.append(response)
            if response.token_usage is not None:
                usage = usage + response.token_usage

            if progress is not None:
                progress(i + 1, total)

        merged = translated[0] if total == 1 else self.merger.merge(translated)

        return ChunkedTranslation(
            text=merged,
            chunks=chunks,
            responses=responses,
            token_usage=usage,
            processing_time=time.time() - start_time,
        )
