"""
Request-layer facade.

VideoSpeakService validates incoming requests, submits jobs to the
orchestrator and renders job state for callers. It owns the provider
registry and releases it on close.
"""

from typing import Any, Dict, List, Optional, Union

from videospeak.core.exceptions import ValidationError
from videospeak.core.models import (
    SUPPORTED_LANGUAGES,
    JobStatus,
    Language,
    TextInput,
    TranslationMethod,
    VideoInput,
    find_language,
)
from videospeak.core.orchestrator import JobOrchestrator
from videospeak.core.pipeline import JobPipeline, Transcriber, VideoSource
from videospeak.evaluation.metrics import is_low_accuracy
from videospeak.translation.providers import ProviderRegistry
from videospeak.translation.router import TranslationConfig, TranslationRouter
from videospeak.utils.config_loader import load_config
from videospeak.utils.logger import get_logger

logger = get_logger(__name__)


class VideoSpeakService:
    """Entry point for processing requests."""

    def __init__(
        self,
        orchestrator: JobOrchestrator,
        router: TranslationRouter,
        providers: Optional[ProviderRegistry] = None
    ):
        self.orchestrator = orchestrator
        self.router = router
        self.providers = providers if providers is not None else router.providers

    @classmethod
    def from_config(
        cls,
        config: Optional[Dict[str, Any]] = None,
        video_source: Optional[VideoSource] = None,
        transcriber: Optional[Transcriber] = None,
        providers: Optional[ProviderRegistry] = None
    ) -> "VideoSpeakService":
        """Wire providers, router, pipeline and orchestrator from configuration."""
        config = config if config is not None else load_config()
        if providers is None:
            providers = ProviderRegistry.from_config(config)
        router = TranslationRouter(providers, TranslationConfig.from_dict(config))
        pipeline = JobPipeline(router, video_source=video_source, transcriber=transcriber)
        orchestrator = JobOrchestrator.from_config(pipeline, config)
        return cls(orchestrator, router, providers)

    @staticmethod
    def _validate_target(target_language: str) -> None:
        if not target_language:
            raise ValidationError("Target language is required", field="target_language")
        if find_language(target_language) is None:
            raise ValidationError(
                f"Unsupported target language: {target_language}",
                field="target_language",
                details={"supported_languages": [lang.code for lang in SUPPORTED_LANGUAGES if lang.is_supported]}
            )

    @staticmethod
    def _parse_method(method: Union[TranslationMethod, str, None]) -> Optional[TranslationMethod]:
        try:
            return TranslationMethod.parse(method)
        except ValueError:
            raise ValidationError(
                f"Unknown translation method: {method}",
                field="method",
                details={"valid_methods": [m.value for m in TranslationMethod]}
            ) from None

    async def process_video(
        self,
        url: str,
        target_language: str,
        source_language: Optional[str] = None,
        method: Union[TranslationMethod, str, None] = None
    ) -> Dict[str, Any]:
        """Queue a video job; returns ``{job_id, status, message}`` immediately."""
        if not url or not url.strip():
            raise ValidationError("Video URL is required", field="url")
        self._validate_target(target_language)

        job_id = await self.orchestrator.submit(
            VideoInput(url.strip()),
            target_language,
            method=self._parse_method(method),
            source_language=source_language,
        )
        return {
            "job_id": job_id,
            "status": JobStatus.PENDING.value,
            "message": "Video processing job created successfully",
        }

    async def process_text(
        self,
        text: str,
        target_language: str,
        source_language: Optional[str] = None,
        method: Union[TranslationMethod, str, None] = None
    ) -> Dict[str, Any]:
        """Queue a translation job for text that needs no transcription."""
        if not text or not text.strip():
            raise ValidationError("Input text cannot be empty", field="text")
        self._validate_target(target_language)

        job_id = await self.orchestrator.submit(
            TextInput(text, source_language),
            target_language,
            method=self._parse_method(method),
            source_language=source_language,
        )
        return {
            "job_id": job_id,
            "status": JobStatus.PENDING.value,
            "message": "Translation job created successfully",
        }

    def job_status(self, job_id: str) -> Dict[str, Any]:
        """
        Status view of a job.

        Raises:
            JobNotFoundError: Unknown or already evicted job id
        """
        job = self.orchestrator.require_status(job_id)
        status = job.to_dict()
        if job.result is not None and is_low_accuracy(job.result.translation):
            status["warning"] = self.router.get_low_accuracy_warning(job.result.translation)
        return status

    def supported_languages(self) -> List[Language]:
        return [lang for lang in SUPPORTED_LANGUAGES if lang.is_supported]

    def translation_methods(self) -> Dict[str, Any]:
        return {
            "methods": [
                {
                    "id": TranslationMethod.LLM.value,
                    "name": "LLM Translation",
                    "description": "Uses Large Language Models for translation",
                    "providers": [p.name for p in self.providers.for_method(TranslationMethod.LLM)],
                },
                {
                    "id": TranslationMethod.REGIONAL.value,
                    "name": "Sarvam API",
                    "description": "Uses Sarvam API for Indian language translation",
                    "providers": [p.name for p in self.providers.for_method(TranslationMethod.REGIONAL)],
                },
            ],
            "default_method": self.router.config.default_method.value,
        }

    def cancel_job(self, job_id: str) -> bool:
        return self.orchestrator.cancel(job_id)

    def stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self.orchestrator.stats())
        stats["translation"] = self.router.get_stats()
        return stats

    async def health(self) -> Dict[str, Any]:
        """Credential check for every registered provider."""
        services = {}
        for name in self.providers.names():
            provider = self.providers.get(name)
            services[name] = await provider.validate_credentials()
        healthy = bool(services) and all(services.values())
        return {"status": "healthy" if healthy else "degraded", "services": services}

    async def close(self, purge: bool = False) -> None:
        await self.orchestrator.shutdown(purge=purge)
        await self.providers.aclose()

    async def __aenter__(self) -> "VideoSpeakService":
        self.orchestrator.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
