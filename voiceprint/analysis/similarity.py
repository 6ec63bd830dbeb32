"""
Voice similarity and evolution scoring.

``compare_voices`` combines six weighted sub-similarities between two
fingerprints into a 0-100 score.  ``calculate_voice_similarity`` scores an
edit against either the original text or a stored fingerprint, and
``detect_voice_evolution`` measures drift between two sets of samples.

Everything here is pure and synchronous: identical inputs always give
identical outputs.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from voiceprint.analysis.features import FeatureExtractor
from voiceprint.analysis.fingerprint import FingerprintAggregator, traits_from_metrics
from voiceprint.config import ExtractionConfig, SimilarityConfig
from voiceprint.exceptions import InsufficientSamplesError
from voiceprint.models import (
    EvolutionTrend,
    SampleInput,
    StylometricMetrics,
    VoiceEvolution,
    VoiceprintTraits,
    VoiceSimilarity,
    sample_text,
)
from voiceprint.utils import clamp, mean

logger = logging.getLogger(__name__)

# Overall markers added when an edit is scored against a stored profile
PROFILE_MARKERS = (
    ("overall_style", 90),
    ("voice_character", 70),
    ("writing_identity", 50),
)

RECOMMENDATIONS: Dict[str, str] = {
    "vocabulary": (
        "Your vocabulary usage has shifted. "
        "Consider if this aligns with your intended audience."
    ),
    "sentence_structure": (
        "Your sentence structure has evolved. This may affect readability."
    ),
    "formality": (
        "Your level of formality has changed. "
        "Check that it still suits your readers."
    ),
    "emotional_tone": (
        "Your emotional tone has changed. "
        "Ensure this matches your communication goals."
    ),
}


def _jaccard(a: Sequence[str], b: Sequence[str]) -> float:
    """Jaccard index of two collections; two empty collections are identical."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 1.0
    return len(set_a & set_b) / len(union)


class VoiceSimilarityEngine:
    """Compares fingerprints and texts.

    Args:
        config: Weights and thresholds.  Defaults to ``SimilarityConfig()``.
        aggregator: Fingerprint aggregator used for sample sets.  Its
            extractor is reused for single-text analysis.
    """

    def __init__(
        self,
        config: Optional[SimilarityConfig] = None,
        aggregator: Optional[FingerprintAggregator] = None,
        extraction_config: Optional[ExtractionConfig] = None,
    ) -> None:
        self.config = config or SimilarityConfig()
        self.aggregator = aggregator or FingerprintAggregator(extraction_config)

    @property
    def extractor(self) -> FeatureExtractor:
        return self.aggregator.extractor

    # ------------------------------------------------------------------
    # FINGERPRINT COMPARISON
    # ------------------------------------------------------------------

    def compare_dimensions(
        self, a: VoiceprintTraits, b: VoiceprintTraits
    ) -> Dict[str, float]:
        """Return the six named sub-similarities, each in ``[0, 1]``."""
        sentence_diff = abs(
            a.syntactic_signature.sentence_complexity
            - b.syntactic_signature.sentence_complexity
        )
        formality_diff = abs(
            a.semantic_signature.formality_level - b.semantic_signature.formality_level
        )

        return {
            "vocabulary": _jaccard(
                a.lexical_signature.preferred_words,
                b.lexical_signature.preferred_words,
            ),
            "sentence_structure": max(
                0.0, 1.0 - sentence_diff / self.config.sentence_length_scale
            ),
            "tone": (
                1.0
                if a.semantic_signature.tonal_profile == b.semantic_signature.tonal_profile
                else 0.5
            ),
            "formality": max(0.0, 1.0 - formality_diff),
            "punctuation": self._compare_punctuation(
                a.syntactic_signature.punctuation_style,
                b.syntactic_signature.punctuation_style,
            ),
            "unique_phrases": _jaccard(
                a.lexical_signature.phrase_patterns,
                b.lexical_signature.phrase_patterns,
            ),
        }

    def compare_voices(self, a: VoiceprintTraits, b: VoiceprintTraits) -> int:
        """Weighted composite similarity of two fingerprints, 0-100.

        ``compare_voices(p, p)`` is always 100.
        """
        similarities = self.compare_dimensions(a, b)
        weights = self.config.weights

        weighted_sum = sum(similarities[dim] * w for dim, w in weights.items())
        total_weight = sum(weights.values())
        return round(weighted_sum / total_weight * 100)

    @staticmethod
    def _compare_punctuation(a: Dict[str, float], b: Dict[str, float]) -> float:
        keys = list(dict.fromkeys([*a, *b]))
        if not keys:
            return 1.0
        avg_diff = mean([abs(a.get(k, 0.0) - b.get(k, 0.0)) for k in keys])
        return max(0.0, 1.0 - avg_diff)

    # ------------------------------------------------------------------
    # TEXT COMPARISON
    # ------------------------------------------------------------------

    def calculate_voice_similarity(
        self,
        original_text: str,
        modified_text: str,
        profile: Optional[VoiceprintTraits] = None,
    ) -> VoiceSimilarity:
        """Score how closely *modified_text* keeps the writer's voice.

        Without a profile the two texts are diffed directly on vocabulary
        richness, sentence length and formality.  With a profile,
        *modified_text* becomes a one-sample fingerprint compared against it.

        Raises:
            SampleTooShortError: If a text needed for the comparison is too
                short to analyse.
        """
        modified = self.extractor.extract(modified_text)

        if profile is None:
            original = self.extractor.extract(original_text)
            return VoiceSimilarity(
                similarity=self._quick_compare(original, modified),
                affected_dimensions=self.affected_dimensions(
                    original.lexical.vocabulary_richness,
                    modified.lexical.vocabulary_richness,
                    original.syntactic.avg_sentence_length,
                    modified.syntactic.avg_sentence_length,
                    original.semantic.formality_level,
                    modified.semantic.formality_level,
                ),
            )

        temp_profile = traits_from_metrics(modified)
        similarity = self.compare_voices(profile, temp_profile)
        affected = self.trait_differences(profile, temp_profile)
        affected.extend(name for name, floor in PROFILE_MARKERS if similarity < floor)

        logger.debug("Edit scored against profile: %d%% (%s)", similarity, affected)
        return VoiceSimilarity(similarity=similarity, affected_dimensions=affected)

    def _quick_compare(
        self, original: StylometricMetrics, modified: StylometricMetrics
    ) -> int:
        vocab = 1.0 - abs(
            original.lexical.vocabulary_richness - modified.lexical.vocabulary_richness
        )
        length = 1.0 - abs(
            original.syntactic.avg_sentence_length - modified.syntactic.avg_sentence_length
        ) / self.config.sentence_length_scale
        formality = 1.0 - abs(
            original.semantic.formality_level - modified.semantic.formality_level
        )
        return round(clamp((vocab + length + formality) / 3) * 100)

    def affected_dimensions(
        self,
        vocabulary_a: float,
        vocabulary_b: float,
        sentence_a: float,
        sentence_b: float,
        formality_a: float,
        formality_b: float,
    ) -> List[str]:
        """Name the dimensions whose deltas exceed the configured thresholds."""
        affected: List[str] = []
        if abs(vocabulary_a - vocabulary_b) > self.config.vocabulary_delta:
            affected.append("vocabulary")
        if abs(sentence_a - sentence_b) > self.config.sentence_length_delta:
            affected.append("sentence_structure")
        if abs(formality_a - formality_b) > self.config.formality_delta:
            affected.append("formality")
        return affected

    def trait_differences(
        self, a: VoiceprintTraits, b: VoiceprintTraits
    ) -> List[str]:
        """Threshold tests applied across two fingerprints."""
        return self.affected_dimensions(
            a.lexical_signature.vocabulary_richness,
            b.lexical_signature.vocabulary_richness,
            a.syntactic_signature.sentence_complexity,
            b.syntactic_signature.sentence_complexity,
            a.semantic_signature.formality_level,
            b.semantic_signature.formality_level,
        )

    # ------------------------------------------------------------------
    # EVOLUTION
    # ------------------------------------------------------------------

    def detect_voice_evolution(
        self,
        old_samples: Sequence[SampleInput],
        new_samples: Sequence[SampleInput],
    ) -> VoiceEvolution:
        """Measure how a writer's voice drifted between two sample sets.

        Args:
            old_samples: Earlier writing, at least ``min_samples`` items.
            new_samples: Recent writing, at least ``min_samples`` items.

        Returns:
            Drift score, changed dimensions, trend and recommendations.

        Raises:
            InsufficientSamplesError: If either set is too small.
            SampleTooShortError: If any sample is too short to analyse.
        """
        old_metrics = self._extract_all(old_samples)
        new_metrics = self._extract_all(new_samples)

        old_profile = self.aggregator.fingerprint_from_metrics(old_metrics)
        new_profile = self.aggregator.fingerprint_from_metrics(new_metrics)

        changed = self.trait_differences(old_profile, new_profile)
        if (
            old_profile.semantic_signature.tonal_profile
            != new_profile.semantic_signature.tonal_profile
        ):
            changed.append("emotional_tone")

        evolution = VoiceEvolution(
            drift_score=100 - self.compare_voices(old_profile, new_profile),
            changed_dimensions=changed,
            trend=self._classify_trend(old_metrics, new_metrics),
            recommendations=[RECOMMENDATIONS[dim] for dim in changed],
        )
        logger.info(
            "Voice evolution: drift=%d, trend=%s, changed=%s",
            evolution.drift_score,
            evolution.trend.value,
            changed,
        )
        return evolution

    def _extract_all(self, samples: Sequence[SampleInput]) -> List[StylometricMetrics]:
        required = self.aggregator.config.min_samples
        if len(samples) < required:
            raise InsufficientSamplesError(len(samples), required)
        return [self.extractor.extract(sample_text(s)) for s in samples]

    def _classify_trend(
        self,
        old_metrics: List[StylometricMetrics],
        new_metrics: List[StylometricMetrics],
    ) -> EvolutionTrend:
        old_avg = self.aggregator.aggregate_metrics(old_metrics)
        new_avg = self.aggregator.aggregate_metrics(new_metrics)
        diff = abs(old_avg.lexical.vocabulary_richness - new_avg.lexical.vocabulary_richness)

        if diff < self.config.stable_trend_max:
            return EvolutionTrend.STABLE
        if diff < self.config.evolving_trend_max:
            return EvolutionTrend.EVOLVING
        return EvolutionTrend.SHIFTING


__all__ = [
    "VoiceSimilarityEngine",
    "RECOMMENDATIONS",
    "PROFILE_MARKERS",
]
