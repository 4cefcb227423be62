"""
Job stage pipeline.

Runs one job through validate -> extract -> transcribe -> translate. Text
jobs pass straight through the extraction and transcription stages; video
jobs call the external collaborators, each wrapped in its own retry policy.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from videospeak.translation.base import ProviderOptions
from videospeak.translation.router import TranslationRouter
from videospeak.utils.logger import get_logger
from videospeak.utils.retry import (
    TRANSCRIPTION_RETRY_POLICY,
    VIDEO_RETRY_POLICY,
    RetryPolicy,
    execute_with_retry,
)
from .cancellation import CancellationToken
from .exceptions import TranscriptionError, ValidationError, VideoSourceError
from .models import (
    STAGE_PROGRESS,
    ProcessingJob,
    ProcessingResults,
    ProcessingStage,
    TextInput,
    Transcription,
    VideoInput,
    VideoMetadata,
    find_language,
)

logger = get_logger(__name__)

# Translation progress climbs from the Translating boundary toward this value
TRANSLATION_PROGRESS_CEILING = 95

StageReporter = Callable[[ProcessingStage, int], Any]


@runtime_checkable
class VideoSource(Protocol):
    """Video-acquisition collaborator."""

    async def validate(self, url: str) -> bool: ...

    async def extract_id(self, url: str) -> Optional[str]: ...

    async def extract_audio(self, video_id: str) -> bytes: ...

    async def get_metadata(self, video_id: str) -> VideoMetadata: ...


@runtime_checkable
class Transcriber(Protocol):
    """Speech-to-text collaborator."""

    async def transcribe(self, audio: bytes) -> Transcription: ...


class JobPipeline:
    """Stage runner shared by all orchestrator workers."""

    def __init__(
        self,
        router: TranslationRouter,
        video_source: Optional[VideoSource] = None,
        transcriber: Optional[Transcriber] = None,
        video_retry: RetryPolicy = VIDEO_RETRY_POLICY,
        transcription_retry: RetryPolicy = TRANSCRIPTION_RETRY_POLICY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.router = router
        self.video_source = video_source
        self.transcriber = transcriber
        self.video_retry = video_retry
        self.transcription_retry = transcription_retry
        self.sleep = sleep

    @staticmethod
    def _enter(stage: ProcessingStage, report: StageReporter, token: CancellationToken) -> None:
        token.raise_if_cancelled()
        report(stage, STAGE_PROGRESS[stage])

    async def run(
        self,
        job: ProcessingJob,
        token: CancellationToken,
        report: StageReporter,
        options: Optional[ProviderOptions] = None
    ) -> ProcessingResults:
        """
        Process ``job`` to completion.

        Args:
            job: Snapshot of the job being processed
            token: Cancellation token, checked before every stage and chunk
            report: Receives (stage, progress) at each boundary
            options: Provider options forwarded to the router

        Returns:
            ProcessingResults for the completed job
        """
        self._enter(ProcessingStage.VALIDATING_INPUT, report, token)
        if find_language(job.target_language) is None:
            raise ValidationError(f"Unsupported target language: {job.target_language}", field="target_language")

        video_metadata = None
        transcription = None
        source_language = job.source_language

        if isinstance(job.input, TextInput):
            if not job.input.text or not job.input.text.strip():
                raise ValidationError("Input text cannot be empty", field="text")
            text = job.input.text
            source_language = source_language or job.input.source_language
            # Nothing to extract or transcribe for text input
            self._enter(ProcessingStage.EXTRACTING_AUDIO, report, token)
            self._enter(ProcessingStage.TRANSCRIBING, report, token)
        elif isinstance(job.input, VideoInput):
            video_id = await self._validate_video(job.input)
            self._enter(ProcessingStage.EXTRACTING_AUDIO, report, token)
            audio, video_metadata = await self._extract(video_id)

            self._enter(ProcessingStage.TRANSCRIBING, report, token)
            transcription = await self._transcribe(audio)
            text = transcription.text
            source_language = source_language or transcription.detected_language
        else:
            raise ValidationError(f"Unsupported job input: {type(job.input).__name__}", field="input")

        self._enter(ProcessingStage.TRANSLATING, report, token)
        start = STAGE_PROGRESS[ProcessingStage.TRANSLATING]
        span = TRANSLATION_PROGRESS_CEILING - start

        def on_chunk(done: int, total: int) -> None:
            report(ProcessingStage.TRANSLATING, start + span * done // total)

        translation = await self.router.translate(
            text,
            job.target_language,
            source_language or "auto",
            method=job.method,
            options=options,
            progress=on_chunk,
            cancel_token=token,
        )
        token.raise_if_cancelled()

        return ProcessingResults(
            original_text=text,
            translation=translation,
            video_metadata=video_metadata,
            transcription=transcription,
        )

    async def _validate_video(self, video: VideoInput) -> str:
        if not video.url or not video.url.strip():
            raise ValidationError("Video URL is required", field="url")
        if self.video_source is None:
            raise VideoSourceError("No video source configured")

        if not await self.video_source.validate(video.url):
            raise ValidationError("Invalid video URL", field="url")
        video_id = await self.video_source.extract_id(video.url)
        if not video_id:
            raise ValidationError("Could not extract video ID from URL", field="url")
        return video_id

    async def _extract(self, video_id: str):
        source = self.video_source

        async def extract():
            return await source.extract_audio(video_id)

        async def metadata():
            return await source.get_metadata(video_id)

        video_metadata = await execute_with_retry(metadata, self.video_retry, sleep=self.sleep)
        if not video_metadata.has_audio:
            raise VideoSourceError("Video has no audio track", details={"video_id": video_id})

        audio = await execute_with_retry(extract, self.video_retry, sleep=self.sleep)
        logger.info(f"Extracted {len(audio)} bytes of audio from {video_id} ({video_metadata.duration:.0f}s)")
        return audio, video_metadata

    async def _transcribe(self, audio: bytes) -> Transcription:
        if self.transcriber is None:
            raise TranscriptionError("No transcriber configured", retryable=False)

        async def transcribe():
            return await self.transcriber.transcribe(audio)

        transcription = await execute_with_retry(transcribe, self.transcription_retry, sleep=self.sleep)
        if not transcription.text or not transcription.text.strip():
            raise TranscriptionError("Transcription produced no text", retryable=False)
        return transcription
