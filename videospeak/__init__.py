"""
VideoSpeak: asynchronous translation jobs for Indian languages.

Text (typed in, or transcribed from a video by external collaborators) is
translated by a regional translation API or an LLM provider, with chunking
for long input, retries, a single fallback between the two method families,
and heuristic quality scores.

Usage:
    from videospeak import VideoSpeakService

    async with VideoSpeakService.from_config() as service:
        job = await service.process_text("Hello world", "hi-IN", method="regional")
        status = service.job_status(job["job_id"])
"""

__version__ = "1.0.0"
__author__ = "VideoSpeak Team"
__license__ = "MIT"

from videospeak.core.exceptions import (
    VideoSpeakError,
    ValidationError,
    ConfigurationError,
    ProviderError,
    RateLimitError,
    CredentialError,
    ChunkMergeError,
    CancellationError,
    TranslationError,
    JobNotFoundError,
)
from videospeak.core.models import (
    JobStatus,
    ProcessingStage,
    TranslationMethod,
    Language,
    SUPPORTED_LANGUAGES,
    TextInput,
    VideoInput,
    ProcessingJob,
    ProcessingResults,
    QualityMetrics,
    TranslationResult,
)
from videospeak.service import VideoSpeakService

__all__ = [
    "__version__",
    "VideoSpeakService",
    "VideoSpeakError",
    "ValidationError",
    "ConfigurationError",
    "ProviderError",
    "RateLimitError",
    "CredentialError",
    "ChunkMergeError",
    "CancellationError",
    "TranslationError",
    "JobNotFoundError",
    "JobStatus",
    "ProcessingStage",
    "TranslationMethod",
    "Language",
    "SUPPORTED_LANGUAGES",
    "TextInput",
    "VideoInput",
    "ProcessingJob",
    "ProcessingResults",
    "QualityMetrics",
    "TranslationResult",
]
