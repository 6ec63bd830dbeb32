"""
Vector projections of a voice fingerprint.

A ``VoiceDNA`` record stores a fingerprint as a flat float vector (compared
with cosine similarity) plus grouped ``feature_stats``.  This module owns
both projections so that every writer produces vectors in the same order.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Sequence, Tuple

from voiceprint.analysis.fingerprint import traits_from_metrics
from voiceprint.models import FeatureStats, StylometricMetrics, VoiceprintTraits
from voiceprint.utils import clamp

logger = logging.getLogger(__name__)

PUNCTUATION_KEYS = ("commas", "semicolons", "colons", "dashes", "exclamations", "questions")

# Scales that map unbounded features into [0, 1]
WORD_LENGTH_SCALE = 10.0
SENTENCE_LENGTH_SCALE = 50.0
PARAGRAPH_LENGTH_SCALE = 200.0


def _punctuation(key: str) -> Callable[[VoiceprintTraits], float]:
    return lambda t: clamp(t.syntactic_signature.punctuation_style.get(key, 0.0))


# Fixed component order of the DNA vector
DNA_VECTOR_COMPONENTS: Tuple[Tuple[str, Callable[[VoiceprintTraits], float]], ...] = (
    ("vocabulary_richness", lambda t: t.lexical_signature.vocabulary_richness),
    (
        "avg_word_length",
        lambda t: clamp(t.lexical_signature.word_length_profile.mean / WORD_LENGTH_SCALE),
    ),
    ("short_words", lambda t: t.lexical_signature.word_length_profile.short),
    ("medium_words", lambda t: t.lexical_signature.word_length_profile.medium),
    ("long_words", lambda t: t.lexical_signature.word_length_profile.long),
    (
        "sentence_length",
        lambda t: clamp(t.syntactic_signature.sentence_complexity / SENTENCE_LENGTH_SCALE),
    ),
    (
        "paragraph_length",
        lambda t: clamp(
            t.syntactic_signature.paragraph_rhythm.avg_paragraph_length
            / PARAGRAPH_LENGTH_SCALE
        ),
    ),
    *((f"punctuation_{key}", _punctuation(key)) for key in PUNCTUATION_KEYS),
    ("formality", lambda t: t.semantic_signature.formality_level),
    (
        "active_voice",
        lambda t: t.stylistic_signature.voice_characteristics.active_voice_preference,
    ),
    (
        "contractions",
        lambda t: t.stylistic_signature.voice_characteristics.contraction_usage,
    ),
    (
        "first_person",
        lambda t: t.stylistic_signature.voice_characteristics.personal_pronoun_usage,
    ),
    ("transitions", lambda t: t.stylistic_signature.writing_patterns.transition_style),
)

DNA_VECTOR_LENGTH = len(DNA_VECTOR_COMPONENTS)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 and logs a warning when the lengths differ or either vector
    has zero magnitude.  Never raises.
    """
    if len(a) != len(b):
        logger.warning("Vector length mismatch: %d vs %d", len(a), len(b))
        return 0.0

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        logger.warning("Cannot compare zero-magnitude vector")
        return 0.0

    return dot / (norm_a * norm_b)


def traits_to_vector(traits: VoiceprintTraits) -> List[float]:
    """Project a fingerprint onto the fixed DNA vector layout."""
    return [float(component(traits)) for _, component in DNA_VECTOR_COMPONENTS]


def metrics_to_vector(metrics: StylometricMetrics) -> List[float]:
    """DNA vector of a single analysed sample."""
    return traits_to_vector(traits_from_metrics(metrics))


def feature_stats_from_traits(traits: VoiceprintTraits) -> FeatureStats:
    """Project a fingerprint into the persisted ``feature_stats`` groups."""
    lexical = traits.lexical_signature
    syntactic = traits.syntactic_signature
    voice = traits.stylistic_signature.voice_characteristics
    patterns = traits.stylistic_signature.writing_patterns

    rhythm = syntactic.paragraph_rhythm
    if rhythm.avg_paragraph_length > 0:
        paragraph_consistency = clamp(
            1.0 - rhythm.paragraph_variation / rhythm.avg_paragraph_length
        )
    else:
        paragraph_consistency = 0.0

    punctuation_used = sum(
        1 for key in PUNCTUATION_KEYS if syntactic.punctuation_style.get(key, 0.0) > 0
    )

    # Shorter sentences and shorter words read more easily
    readability = clamp(
        1.0
        - 0.5 * clamp(syntactic.sentence_complexity / SENTENCE_LENGTH_SCALE)
        - 0.5 * clamp(lexical.word_length_profile.mean / WORD_LENGTH_SCALE)
    )

    return {
        "lexical": {
            "vocabulary_size": float(len(set(lexical.preferred_words))),
            "avg_word_length": lexical.word_length_profile.mean,
            "unique_word_ratio": lexical.vocabulary_richness,
        },
        "syntactic": {
            "avg_sentence_length": syntactic.sentence_complexity,
            "sentence_complexity": clamp(
                syntactic.sentence_complexity / SENTENCE_LENGTH_SCALE
            ),
            "passive_voice_ratio": clamp(1.0 - voice.active_voice_preference),
        },
        "stylistic": {
            "formality_score": traits.semantic_signature.formality_level,
            "punctuation_diversity": punctuation_used / len(PUNCTUATION_KEYS),
            "paragraph_consistency": paragraph_consistency,
        },
        "cognitive": {
            "readability_score": readability,
            "coherence_score": patterns.transition_style,
            "authenticity_markers": clamp(
                voice.contraction_usage + voice.personal_pronoun_usage
            ),
        },
    }


def feature_stats_from_metrics(metrics: StylometricMetrics) -> FeatureStats:
    return feature_stats_from_traits(traits_from_metrics(metrics))


__all__ = [
    "DNA_VECTOR_COMPONENTS",
    "DNA_VECTOR_LENGTH",
    "cosine_similarity",
    "traits_to_vector",
    "metrics_to_vector",
    "feature_stats_from_traits",
    "feature_stats_from_metrics",
]
