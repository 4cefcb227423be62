"""
Core data models for VideoSpeak.

This module defines the job record, translation result and supporting
value types shared by the orchestrator, the router and the providers.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Dict, Optional, Any, Union
from datetime import datetime


class JobStatus(str, Enum):
    """Lifecycle status of a processing job."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Allowed forward transitions; status never moves backward.
STATUS_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class ProcessingStage(str, Enum):
    """Pipeline stage of a processing job."""
    VALIDATING_INPUT = "validating_input"
    EXTRACTING_AUDIO = "extracting_audio"
    TRANSCRIBING = "transcribing"
    TRANSLATING = "translating"
    COMPLETED = "completed"


STAGE_PROGRESS = {
    ProcessingStage.VALIDATING_INPUT: 10,
    ProcessingStage.EXTRACTING_AUDIO: 40,
    ProcessingStage.TRANSCRIBING: 60,
    ProcessingStage.TRANSLATING: 70,
    ProcessingStage.COMPLETED: 100,
}


class TranslationMethod(str, Enum):
    """Provider family that produced (or should produce) a translation."""
    REGIONAL = "regional"
    LLM = "llm"

    @property
    def alternate(self) -> "TranslationMethod":
        return TranslationMethod.LLM if self is TranslationMethod.REGIONAL else TranslationMethod.REGIONAL

    @classmethod
    def parse(cls, value: Union[str, "TranslationMethod", None]) -> Optional["TranslationMethod"]:
        """Accept enum members, their values, and the legacy 'sarvam' alias."""
        if value is None or isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "sarvam":
            return cls.REGIONAL
        return cls(normalized)


class AudioQuality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Language:
    """A language the system can translate into."""
    code: str
    name: str
    native_name: str
    is_supported: bool = True


SUPPORTED_LANGUAGES: List[Language] = [
    Language("hi-IN", "Hindi", "हिन्दी"),
    Language("kn-IN", "Kannada", "ಕನ್ನಡ"),
    Language("te-IN", "Telugu", "తెలుగు"),
    Language("bn-IN", "Bengali", "বাংলা"),
    Language("gu-IN", "Gujarati", "ગુજરાતી"),
    Language("ml-IN", "Malayalam", "മലയാളം"),
    Language("mr-IN", "Marathi", "मराठी"),
    Language("od-IN", "Odia", "ଓଡ଼ିଆ"),
    Language("pa-IN", "Punjabi", "ਪੰਜਾਬੀ"),
    Language("ta-IN", "Tamil", "தமிழ்"),
    Language("as-IN", "Assamese", "অসমীয়া"),
    Language("brx-IN", "Bodo", "बर'"),
    Language("doi-IN", "Dogri", "डोगरी"),
    Language("kok-IN", "Konkani", "कोंकणी"),
    Language("ks-IN", "Kashmiri", "کٲشُر"),
    Language("mai-IN", "Maithili", "मैथिली"),
    Language("mni-IN", "Manipuri", "ꯃꯤꯇꯩ ꯂꯣꯟ"),
    Language("ne-IN", "Nepali", "नेपाली"),
    Language("sa-IN", "Sanskrit", "संस्कृतम्"),
    Language("sat-IN", "Santali", "ᱥᱟᱱᱛᱟᱲᱤ"),
    Language("sd-IN", "Sindhi", "سنڌي"),
    Language("ur-IN", "Urdu", "اردو"),
    Language("en-IN", "English", "English"),
]


def find_language(code: str) -> Optional[Language]:
    """Look up a supported language by its code."""
    for lang in SUPPORTED_LANGUAGES:
        if lang.code == code and lang.is_supported:
            return lang
    return None


@dataclass(frozen=True)
class TextInput:
    """Job input that is already text; extraction and transcription are passed through."""
    text: str
    source_language: Optional[str] = None

    @property
    def kind(self) -> str:
        return "text"

    def describe(self) -> str:
        preview = self.text[:40].replace("\n", " ")
        return f"text({len(self.text)} chars: {preview!r})"


@dataclass(frozen=True)
class VideoInput:
    """Job input that references a video the external collaborators must process."""
    url: str

    @property
    def kind(self) -> str:
        return "video"

    def describe(self) -> str:
        return f"video({self.url})"


JobInput = Union[TextInput, VideoInput]


@dataclass(frozen=True)
class QualityMetrics:
    """Heuristic quality scores, each in [0, 100]."""
    fluency: float
    adequacy: float
    semantic_similarity: float
    grammar_score: float
    overall_accuracy: float
    confidence_score: float


@dataclass(frozen=True)
class ProviderMetadata:
    """What a provider reported about how it produced a translation."""
    provider: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    processing_time: float = 0.0
    estimated_cost: float = 0.0
    chunk_count: int = 1
    fallback_used: bool = False


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of one successful translation; immutable once attached to a job."""
    translated_text: str
    source_language_code: str
    target_language_code: str
    request_id: str
    translation_accuracy: float
    confidence_score: float
    quality_metrics: QualityMetrics
    method: TranslationMethod
    provider_metadata: Optional[ProviderMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["method"] = self.method.value
        return data


@dataclass(frozen=True)
class Chunk:
    """A slice of input text and how much of it repeats the previous chunk."""
    text: str
    index: int
    overlap: int = 0
    start: int = 0
    end: int = 0

    def __len__(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class VideoMetadata:
    video_id: str
    duration: float
    has_audio: bool
    is_short_video: bool
    audio_quality: AudioQuality = AudioQuality.MEDIUM
    title: Optional[str] = None


@dataclass(frozen=True)
class TranscriptionSegment:
    text: str
    start_time: float
    end_time: float
    confidence: float


@dataclass(frozen=True)
class Transcription:
    text: str
    detected_language: str
    confidence: float
    segments: List[TranscriptionSegment] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessingResults:
    """Everything a completed job produced."""
    original_text: str
    translation: TranslationResult
    video_metadata: Optional[VideoMetadata] = None
    transcription: Optional[Transcription] = None

    @property
    def translated_text(self) -> str:
        return self.translation.translated_text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_text": self.original_text,
            "translated_text": self.translated_text,
            "translation": self.translation.to_dict(),
            "video_metadata": _enum_safe(asdict(self.video_metadata)) if self.video_metadata else None,
            "transcription": asdict(self.transcription) if self.transcription else None,
        }


def _enum_safe(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


@dataclass
class ProcessingJob:
    """
    A unit of work tracked by the orchestrator.

    Status only advances Pending -> Processing -> Completed|Failed, progress
    never decreases while processing, and a job holds either a result or an
    error, never both. The registry enforces these rules; callers only see
    copies.
    """
    job_id: str
    input: JobInput
    target_language: str
    source_language: Optional[str] = None
    method: Optional[TranslationMethod] = None
    status: JobStatus = JobStatus.PENDING
    stage: ProcessingStage = ProcessingStage.VALIDATING_INPUT
    progress: int = 0
    result: Optional[ProcessingResults] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    retryable: Optional[bool] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        """Status view for the request layer."""
        return {
            "job_id": self.job_id,
            "input": self.input.describe(),
            "target_language": self.target_language,
            "status": self.status.value,
            "stage": self.stage.value,
            "progress": self.progress,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "error_code": self.error_code,
            "retryable": self.retryable,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
