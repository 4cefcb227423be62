"""Translation quality evaluation."""

from .metrics import (
    LLM_PROFILE,
    REGIONAL_PROFILE,
    QualityEvaluator,
    ScoringProfile,
    is_low_accuracy,
)

__all__ = [
    "QualityEvaluator",
    "ScoringProfile",
    "REGIONAL_PROFILE",
    "LLM_PROFILE",
    "is_low_accuracy",
]
