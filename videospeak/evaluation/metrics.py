"""
Heuristic translation quality metrics.

Scores are cheap, deterministic signals rather than linguistic evaluation:
- Fluency: average word length, punctuation density, sentence length
- Adequacy: translated/source word-count ratio
- Semantic similarity: naive word overlap (cognates, proper nouns)
- Grammar: sentence capitalisation and word repetition

Each method family starts from its own prior; LLM output is assumed to be
better formed than the regional API's, so its bases are higher and its
adjustments gentler.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from videospeak.core.models import QualityMetrics, TranslationMethod, TranslationResult

LOW_ACCURACY_THRESHOLD = 70.0

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[.,!?;:]")
_SENTENCE_END = re.compile(r"[.!?]+")
# Latin capitals, Latin-1 letters and the Indic script blocks (Devanagari .. Sinhala)
_SENTENCE_START = re.compile(r"^[A-Z\u00C0-\u00FF\u0900-\u0DFF]")


@dataclass(frozen=True)
class ScoringProfile:
    """Bases and adjustments for one method family."""
    fluency_base: float
    adequacy_base: float
    semantic_base: float
    grammar_base: float
    word_length_penalty: float
    punctuation_penalty: float
    sentence_length_bonus: float
    ratio_bonus: float
    ratio_penalty: float
    truncation_penalty: float
    overlap_weight: float
    capitalization_bonus: float
    repetition_penalty: float
    no_sentence_penalty: float = 30.0
    identical_score: float = 30.0


REGIONAL_PROFILE = ScoringProfile(
    fluency_base=80, adequacy_base=75, semantic_base=75, grammar_base=80,
    word_length_penalty=10, punctuation_penalty=15, sentence_length_bonus=10,
    ratio_bonus=15, ratio_penalty=20, truncation_penalty=30,
    overlap_weight=20,
    capitalization_bonus=10, repetition_penalty=20,
)

LLM_PROFILE = ScoringProfile(
    fluency_base=85, adequacy_base=85, semantic_base=88, grammar_base=90,
    word_length_penalty=5, punctuation_penalty=10, sentence_length_bonus=5,
    ratio_bonus=10, ratio_penalty=15, truncation_penalty=25,
    overlap_weight=10,
    capitalization_bonus=5, repetition_penalty=15,
)

PROFILES: Dict[TranslationMethod, ScoringProfile] = {
    TranslationMethod.REGIONAL: REGIONAL_PROFILE,
    TranslationMethod.LLM: LLM_PROFILE,
}


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def _words(text: str) -> List[str]:
    return [w for w in _WHITESPACE.split(text.strip()) if w]


def _sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_END.split(text) if s.strip()]


class QualityEvaluator:
    """Score (source, translation) pairs with a method-specific profile."""

    def __init__(self, profiles: Optional[Dict[TranslationMethod, ScoringProfile]] = None):
        self.profiles = dict(PROFILES)
        if profiles:
            self.profiles.update(profiles)

    def profile_for(self, method: TranslationMethod) -> ScoringProfile:
        return self.profiles[method]

    def fluency(self, text: str, profile: ScoringProfile) -> float:
        words = _words(text)
        if not words:
            return 0.0

        score = profile.fluency_base

        avg_word_length = sum(len(w) for w in words) / len(words)
        if avg_word_length < 3 or avg_word_length > 12:
            score -= profile.word_length_penalty

        if len(_PUNCTUATION.findall(text)) / len(words) > 0.3:
            score -= profile.punctuation_penalty

        sentences = _sentences(text)
        if sentences:
            avg_sentence_length = len(words) / len(sentences)
            if 5 <= avg_sentence_length <= 20:
                score += profile.sentence_length_bonus

        return _clamp(score)

    def adequacy(self, source: str, translated: str, profile: ScoringProfile) -> float:
        source_words = _words(source)
        translated_words = _words(translated)
        if not source_words or not translated_words:
            return 0.0

        score = profile.adequacy_base
        ratio = len(translated_words) / len(source_words)
        if 0.7 <= ratio <= 1.5:
            score += profile.ratio_bonus
        elif ratio < 0.5 or ratio > 2.0:
            score -= profile.ratio_penalty

        # Likely truncated
        if len(translated_words) < len(source_words) * 0.3:
            score -= profile.truncation_penalty

        return _clamp(score)

    def semantic_similarity(self, source: str, translated: str, profile: ScoringProfile) -> float:
        if not source.strip() or not translated.strip():
            return 0.0
        if source.lower() == translated.lower():
            return profile.identical_score

        source_words = _words(source.lower())
        translated_words = _words(translated.lower())
        common = [
            word for word in source_words
            if len(word) > 3 and any(word in t or t in word for t in translated_words)
        ]
        overlap = len(common) / max(len(source_words), len(translated_words))

        return _clamp(profile.semantic_base + overlap * profile.overlap_weight)

    def grammar(self, text: str, profile: ScoringProfile) -> float:
        words = _words(text)
        if not words:
            return 0.0

        score = profile.grammar_base
        sentences = _sentences(text)
        if not sentences:
            score -= profile.no_sentence_penalty
        else:
            capitalised = sum(1 for s in sentences if _SENTENCE_START.match(s.strip()))
            if capitalised / len(sentences) > 0.7:
                score += profile.capitalization_bonus

        unique = {w.lower() for w in words}
        if 1 - len(unique) / len(words) > 0.5:
            score -= profile.repetition_penalty

        return _clamp(score)

    def score(
        self,
        source_text: str,
        translated_text: str,
        method: TranslationMethod = TranslationMethod.REGIONAL
    ) -> QualityMetrics:
        """
        Score a translation.

        Args:
            source_text: Original text
            translated_text: Candidate translation
            method: Method family that produced the translation

        Returns:
            QualityMetrics with every value in [0, 100], rounded to 2 decimals
        """
        profile = self.profile_for(method)

        fluency = self.fluency(translated_text, profile)
        adequacy = self.adequacy(source_text, translated_text, profile)
        semantic = self.semantic_similarity(source_text, translated_text, profile)
        grammar = self.grammar(translated_text, profile)

        overall = (fluency + adequacy + semantic + grammar) / 4
        confidence = min(overall + 10, 100.0)

        return QualityMetrics(
            fluency=round(fluency, 2),
            adequacy=round(adequacy, 2),
            semantic_similarity=round(semantic, 2),
            grammar_score=round(grammar, 2),
            overall_accuracy=round(overall, 2),
            confidence_score=round(confidence, 2),
        )


def is_low_accuracy(result: Union[TranslationResult, QualityMetrics, float]) -> bool:
    """True when overall accuracy is under 70."""
    if isinstance(result, TranslationResult):
        accuracy = result.translation_accuracy
    elif isinstance(result, QualityMetrics):
        accuracy = result.overall_accuracy
    else:
        accuracy = float(result)
    return accuracy < LOW_ACCURACY_THRESHOLD
