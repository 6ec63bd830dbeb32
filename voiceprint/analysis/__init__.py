"""
Stylometric analysis for the voice profile core.

Pure, synchronous, CPU-bound components:

- ``FeatureExtractor``: Per-sample stylometric metrics.
- ``FingerprintAggregator``: Combines samples into one voice fingerprint.
- ``VoiceSimilarityEngine``: Fingerprint comparison and voice drift.
- ``VoiceImpactCalculator``: Instant voice impact of a single edit.
- ``cosine_similarity`` and the DNA vector projections.
"""

from voiceprint.analysis.features import FeatureExtractor
from voiceprint.analysis.fingerprint import FingerprintAggregator, traits_from_metrics
from voiceprint.analysis.impact import VoiceImpactCalculator
from voiceprint.analysis.similarity import VoiceSimilarityEngine
from voiceprint.analysis.tokenizer import (
    tokenize_paragraphs,
    tokenize_sentences,
    tokenize_words,
)
from voiceprint.analysis.vectors import (
    cosine_similarity,
    feature_stats_from_metrics,
    feature_stats_from_traits,
    metrics_to_vector,
    traits_to_vector,
)

__all__ = [
    "FeatureExtractor",
    "FingerprintAggregator",
    "traits_from_metrics",
    "VoiceImpactCalculator",
    "VoiceSimilarityEngine",
    "tokenize_words",
    "tokenize_sentences",
    "tokenize_paragraphs",
    "cosine_similarity",
    "traits_to_vector",
    "metrics_to_vector",
    "feature_stats_from_traits",
    "feature_stats_from_metrics",
]
