"""
Exception hierarchy for VideoSpeak.

Every error carries a ``retryable`` flag so the request layer can decide
whether to offer the user a retry action.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List


class VideoSpeakError(Exception):
    """Base exception for all VideoSpeak errors."""

    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
        suggestion: Optional[str] = None
    ):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            details: Additional error details
            retryable: Whether the caller may retry the operation
            suggestion: Suggested fix or workaround
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.retryable = retryable
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
            "suggestion": self.suggestion
        }

    def __str__(self) -> str:
        result = self.message
        if self.suggestion:
            result += f"\nSuggestion: {self.suggestion}"
        return result


class ValidationError(VideoSpeakError):
    """Raised for bad input. Never retried."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details, retryable=False)
        self.field = field


class ConfigurationError(VideoSpeakError):
    """Raised when configuration is invalid or a required provider is missing."""

    code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        invalid_value: Optional[Any] = None,
        valid_values: Optional[List[Any]] = None
    ):
        details = {
            "config_key": config_key,
            "invalid_value": invalid_value,
            "valid_values": valid_values
        }

        suggestion = None
        if config_key and valid_values:
            suggestion = f"Valid values for {config_key}: {', '.join(map(str, valid_values))}"
        elif config_key:
            suggestion = f"Check configuration for '{config_key}'"

        super().__init__(message, details, retryable=False, suggestion=suggestion)
        self.config_key = config_key
        self.invalid_value = invalid_value
        self.valid_values = valid_values


class ProviderError(VideoSpeakError):
    """
    Raised when a translation backend rejects or fails a call.

    Retryability follows the HTTP status: 429 and 5xx are transient,
    400/401/403/422 are not. Transport failures (no status) are transient.
    """

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
        original_error: Optional[Exception] = None
    ):
        if retryable is None:
            retryable = status_code is None or status_code == 429 or status_code >= 500
        details = {
            "provider": provider,
            "status_code": status_code,
            "original_error": str(original_error) if original_error else None
        }
        super().__init__(f"Provider '{provider}' failed: {message}", details, retryable=retryable)
        self.provider = provider
        self.status_code = status_code
        self.original_error = original_error


class RateLimitError(ProviderError):
    """Provider-side throttling. Always retryable with backoff."""

    code = "RATE_LIMIT_ERROR"

    def __init__(
        self,
        provider: str,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(provider, message, status_code=429, retryable=True, original_error=original_error)
        self.retry_after = retry_after
        self.details["retry_after"] = retry_after


class CredentialError(ProviderError):
    """Bad or missing API key. Never retried, surfaced as configuration failure."""

    code = "API_KEY_ERROR"

    def __init__(
        self,
        provider: str,
        message: str = "Invalid or missing API key",
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(provider, message, status_code=status_code, retryable=False, original_error=original_error)
        self.suggestion = f"Check the API key for {provider}. Set it in the config file or via environment variable."


class ChunkMergeError(VideoSpeakError):
    """Overlap detection produced an inconsistent merge."""

    code = "CHUNK_MERGE_ERROR"

    def __init__(self, message: str, chunk_index: Optional[int] = None):
        super().__init__(message, {"chunk_index": chunk_index}, retryable=True)
        self.chunk_index = chunk_index


class CancellationError(VideoSpeakError):
    """User-initiated cancellation. Terminal, never retried."""

    code = "CANCELLED"

    def __init__(self, message: str = "Job cancelled by user", job_id: Optional[str] = None):
        super().__init__(message, {"job_id": job_id}, retryable=False)
        self.job_id = job_id


class TranslationError(VideoSpeakError):
    """Raised when both the preferred and the fallback method failed."""

    code = "TRANSLATION_ERROR"

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        attempts: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message, {"attempts": attempts or []}, retryable=retryable)
        self.attempts = attempts or []


class VideoSourceError(VideoSpeakError):
    """Raised by the video-acquisition collaborator."""

    code = "VIDEO_ERROR"

    def __init__(self, message: str, retryable: bool = False, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, retryable=retryable)


class TranscriptionError(VideoSpeakError):
    """Raised by the transcription collaborator."""

    code = "TRANSCRIPTION_ERROR"

    def __init__(self, message: str, retryable: bool = True, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, retryable=retryable)


class JobNotFoundError(VideoSpeakError):
    """Raised when a job id is unknown (or already evicted)."""

    code = "JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}", {"job_id": job_id}, retryable=False)
        self.job_id = job_id


_FRIENDLY_MESSAGES = {
    "CONFIGURATION_ERROR": "Service configuration error. Please contact support.",
    "API_KEY_ERROR": "Service configuration error. Please contact support.",
    "TRANSCRIPTION_ERROR": (
        "Failed to transcribe the video audio. This might be due to poor audio "
        "quality or unsupported audio format."
    ),
    "RATE_LIMIT_ERROR": "Too many requests. Please wait a moment before trying again.",
    "CANCELLED": "The job was cancelled.",
}


def user_friendly_message(error: Exception) -> str:
    """Turn a technical error into a message suitable for end users."""
    if not isinstance(error, VideoSpeakError):
        return "An unexpected error occurred. Please try again later."

    if error.code in ("VALIDATION_ERROR", "JOB_NOT_FOUND"):
        return error.message
    if error.code == "VIDEO_ERROR":
        lowered = error.message.lower()
        if "private" in lowered:
            return "This video is private and cannot be processed. Please use a public video."
        if "not found" in lowered:
            return "Video not found. Please check the URL and try again."
        return "Unable to process this video. Please try a different video."
    if error.code in ("TRANSLATION_ERROR", "PROVIDER_ERROR", "CHUNK_MERGE_ERROR"):
        if "rate limit" in error.message.lower():
            return "Translation service is temporarily busy. Please try again in a few minutes."
        return "Failed to translate the text. Please try again or check your internet connection."
    return _FRIENDLY_MESSAGES.get(error.code, "An unexpected error occurred. Please try again later.")
