"""
Instant voice-impact estimates for single edits.

Uses a lighter metric set than ``FeatureExtractor`` so it works on any
length of text, including one-line edits, and memoises results per
``(original, modified)`` pair.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

from voiceprint.models import ImpactConfidence, VoiceImpact
from voiceprint.utils import clamp, mean, std_dev

logger = logging.getLogger(__name__)

VOICE_SAFE_THRESHOLD = 70

AFFECTED_DELTA = 10.0
PRESERVED_DELTA = 5.0

MEMO_MAX_SIZE = 100
MEMO_KEEP = 50

# Sentence-length standard deviation that maps to zero flow
FLOW_STD_DEV_SCALE = 20.0

DIMENSION_WEIGHTS: Dict[str, float] = {
    "Vocabulary": 1.2,
    "Flow": 1.0,
    "Formality": 0.8,
    "Emotion": 0.9,
    "Clarity": 1.1,
    "Originality": 1.0,
}

SENTENCE_SPLIT = re.compile(r"[.!?]+")
PASSIVE_PATTERN = re.compile(r"\b(was|were|been|being|is|are|am)\s+\w+ed\b", re.IGNORECASE)
COMPLEX_PATTERN = re.compile(
    r"\b(although|whereas|while|since|because|therefore|however|moreover)\b",
    re.IGNORECASE,
)

CLICHES = (
    "at the end of the day",
    "think outside the box",
    "low-hanging fruit",
    "paradigm shift",
    "synergy",
    "leverage",
    "deep dive",
)
INFORMAL_WORDS = frozenset(["got", "gonna", "wanna", "yeah", "ok", "okay", "stuff", "things"])
FORMAL_WORDS = frozenset(["therefore", "however", "moreover", "furthermore", "consequently"])


@dataclass
class SimpleMetrics:
    """Cheap per-text metrics used for impact scoring."""

    avg_sentence_length: float
    sentence_length_std_dev: float
    vocabulary_diversity: float
    formality_score: float
    passive_voice_ratio: float
    complex_sentence_ratio: float
    cliche_ratio: float


def simple_metrics(text: str) -> SimpleMetrics:
    """Compute ``SimpleMetrics`` for *text* of any length."""
    sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
    words = text.lower().split()
    lengths = [len(s.split()) for s in sentences]

    sentence_count = len(sentences)
    word_count = len(words)
    lower = text.lower()

    cliche_count = sum(1 for cliche in CLICHES if cliche in lower)
    informal = sum(1 for w in words if w in INFORMAL_WORDS)
    formal = sum(1 for w in words if w in FORMAL_WORDS)

    return SimpleMetrics(
        avg_sentence_length=mean(lengths),
        sentence_length_std_dev=std_dev(lengths),
        vocabulary_diversity=len(set(words)) / word_count if word_count else 0.0,
        formality_score=clamp((formal - informal) / word_count + 0.5) if word_count else 0.5,
        passive_voice_ratio=(
            len(PASSIVE_PATTERN.findall(text)) / sentence_count if sentence_count else 0.0
        ),
        complex_sentence_ratio=(
            len(COMPLEX_PATTERN.findall(text)) / sentence_count if sentence_count else 0.0
        ),
        cliche_ratio=cliche_count / word_count if word_count else 0.0,
    )


class VoiceImpactCalculator:
    """Scores how an edit changes the writer's voice and AI-detection risk.

    Args:
        threshold: Minimum similarity for an edit to count as voice-safe.
    """

    def __init__(self, threshold: int = VOICE_SAFE_THRESHOLD) -> None:
        self.threshold = threshold
        self._memo: Dict[Tuple[str, str], VoiceImpact] = {}

    def calculate(self, original_text: str, modified_text: str) -> VoiceImpact:
        """Estimate the voice impact of replacing *original_text* with *modified_text*."""
        key = (original_text, modified_text)
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        original = simple_metrics(original_text)
        modified = simple_metrics(modified_text)

        deltas = self.dimension_deltas(original, modified)
        similarity = round(self._aggregate(deltas))
        affected = [name for name, delta in deltas.items() if abs(delta) > AFFECTED_DELTA]
        preserved = [name for name, delta in deltas.items() if abs(delta) <= PRESERVED_DELTA]

        impact = VoiceImpact(
            similarity=similarity,
            dimensions_affected=affected,
            preserved_traits=preserved,
            risk_delta=self.risk_delta(original, modified),
            confidence=self._confidence(original_text, modified_text),
            explanation=self._explain(similarity, affected, preserved),
        )

        self._memo[key] = impact
        if len(self._memo) > MEMO_MAX_SIZE:
            self._prune()
        return impact

    @staticmethod
    def dimension_deltas(
        original: SimpleMetrics, modified: SimpleMetrics
    ) -> Dict[str, float]:
        """Per-dimension change in points (0-100 scale), positive = increase."""
        return {
            "Vocabulary": (modified.vocabulary_diversity - original.vocabulary_diversity) * 100,
            "Flow": (
                original.sentence_length_std_dev - modified.sentence_length_std_dev
            ) / FLOW_STD_DEV_SCALE * 100,
            "Formality": (modified.formality_score - original.formality_score) * 100,
            "Emotion": (original.passive_voice_ratio - modified.passive_voice_ratio) * 100,
            "Clarity": (
                original.complex_sentence_ratio - modified.complex_sentence_ratio
            ) * 100,
            "Originality": (original.cliche_ratio - modified.cliche_ratio) * 100,
        }

    @staticmethod
    def _aggregate(deltas: Dict[str, float]) -> float:
        total_weight = sum(DIMENSION_WEIGHTS.values())
        weighted = sum(abs(deltas[name]) * w for name, w in DIMENSION_WEIGHTS.items())
        return max(0.0, 100.0 - weighted / total_weight)

    @staticmethod
    def risk_delta(original: SimpleMetrics, modified: SimpleMetrics) -> int:
        """Change in AI-detection risk; positive means more machine-like."""
        return round(
            (modified.formality_score - original.formality_score) * 20
            + (modified.passive_voice_ratio - original.passive_voice_ratio) * 30
            + (modified.cliche_ratio - original.cliche_ratio) * 40
            + (original.vocabulary_diversity - modified.vocabulary_diversity) * 10
        )

    @staticmethod
    def _confidence(original_text: str, modified_text: str) -> ImpactConfidence:
        original_words = len(original_text.split())
        modified_words = len(modified_text.split())
        if original_words < 5:
            return ImpactConfidence.LOW

        change_ratio = abs(original_words - modified_words) / original_words
        if change_ratio > 0.5:
            return ImpactConfidence.LOW
        if original_words < 20 or change_ratio > 0.3:
            return ImpactConfidence.MEDIUM
        return ImpactConfidence.HIGH

    def _explain(
        self, similarity: int, affected: List[str], preserved: List[str]
    ) -> str:
        if self.is_voice_safe(similarity):
            if preserved:
                return (
                    f"This change preserves your {preserved[0].lower()} "
                    f"while maintaining {similarity}% voice similarity"
                )
            return f"Voice-safe edit with {similarity}% similarity to your style"
        if affected:
            return f"This may alter your {affected[0].lower()} ({similarity}% match)"
        return f"Significant voice change detected ({similarity}% match)"

    def _prune(self) -> None:
        keep = list(self._memo.items())[-MEMO_KEEP:]
        self._memo = dict(keep)
        logger.debug("Impact memo pruned to %d entries", len(self._memo))

    @property
    def memo_size(self) -> int:
        return len(self._memo)

    def is_voice_safe(self, similarity: float) -> bool:
        return similarity >= self.threshold

    @staticmethod
    def format_similarity_dots(similarity: float) -> str:
        """Ten-dot gauge, e.g. ``●●●●●●●○○○`` for 70."""
        filled = int(clamp(round(similarity / 10), 0, 10))
        return "●" * filled + "○" * (10 - filled)


__all__ = [
    "VoiceImpactCalculator",
    "SimpleMetrics",
    "simple_metrics",
    "DIMENSION_WEIGHTS",
    "VOICE_SAFE_THRESHOLD",
]
