"""
Tests for voiceprint.analysis.vectors.

Covers:
    - cosine_similarity: identity, symmetry, orthogonality, degenerate input
    - DNA vector layout and bounds
    - feature_stats projections
"""

import logging

import pytest

from voiceprint.analysis.features import FeatureExtractor
from voiceprint.analysis.fingerprint import FingerprintAggregator, traits_from_metrics
from voiceprint.analysis.vectors import (
    DNA_VECTOR_COMPONENTS,
    DNA_VECTOR_LENGTH,
    cosine_similarity,
    feature_stats_from_metrics,
    feature_stats_from_traits,
    metrics_to_vector,
    traits_to_vector,
)
from voiceprint.models import DEFAULT_FEATURE_STATS


# ===================================================================
# cosine_similarity
# ===================================================================


class TestCosineSimilarity:
    """Pure vector comparison."""

    def test_identical(self) -> None:
        """A vector is fully similar to itself."""
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_symmetric(self) -> None:
        a, b = [0.2, 0.7, 0.1], [0.9, 0.3, 0.4]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_orthogonal(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_length_mismatch_returns_zero(self, caplog) -> None:
        """Mismatched lengths score zero instead of raising."""
        with caplog.at_level(logging.WARNING, logger="voiceprint.analysis.vectors"):
            assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0
        assert "length mismatch" in caplog.text

    def test_zero_vector_returns_zero(self) -> None:
        """A zero-magnitude vector has no direction to compare."""
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0

    def test_empty_vectors(self) -> None:
        assert cosine_similarity([], []) == 0.0


# ===================================================================
# DNA vector
# ===================================================================


class TestDnaVector:
    """Fixed-layout projection of a fingerprint."""

    def test_layout(self) -> None:
        """The DNA vector has 18 uniquely named components."""
        names = [name for name, _ in DNA_VECTOR_COMPONENTS]
        assert DNA_VECTOR_LENGTH == len(names) == 18
        assert len(set(names)) == len(names)
        assert names[0] == "vocabulary_richness"

    def test_values_in_unit_interval(self, formal_samples, informal_samples) -> None:
        """Every component is normalised into [0, 1]."""
        aggregator = FingerprintAggregator()
        for samples in (formal_samples, informal_samples):
            vector = traits_to_vector(aggregator.create_fingerprint(samples))
            assert len(vector) == DNA_VECTOR_LENGTH
            assert all(0.0 <= v <= 1.0 for v in vector)

    def test_metrics_to_vector_matches_single_sample_profile(self, formal_samples) -> None:
        """One sample projects the same as its single-sample profile."""
        metrics = FeatureExtractor().extract(formal_samples[0])
        assert metrics_to_vector(metrics) == traits_to_vector(traits_from_metrics(metrics))

    def test_similar_writers_are_close(self, formal_samples, informal_samples) -> None:
        extractor = FeatureExtractor()
        formal_a = metrics_to_vector(extractor.extract(formal_samples[0]))
        formal_b = metrics_to_vector(extractor.extract(formal_samples[1]))
        informal = metrics_to_vector(extractor.extract(informal_samples[0]))
        assert cosine_similarity(formal_a, formal_b) > cosine_similarity(formal_a, informal)


# ===================================================================
# feature_stats
# ===================================================================


class TestFeatureStats:
    """Grouped statistics persisted alongside the vector."""

    def test_groups_match_defaults(self, formal_samples) -> None:
        """Projected stats carry exactly the default groups and fields."""
        traits = FingerprintAggregator().create_fingerprint(formal_samples)
        stats = feature_stats_from_traits(traits)
        assert set(stats) == set(DEFAULT_FEATURE_STATS)
        for group, fields in DEFAULT_FEATURE_STATS.items():
            assert set(stats[group]) == set(fields)

    def test_values(self, formal_samples) -> None:
        traits = FingerprintAggregator().create_fingerprint(formal_samples)
        stats = feature_stats_from_traits(traits)
        voice = traits.stylistic_signature.voice_characteristics

        assert stats["stylistic"]["formality_score"] == traits.semantic_signature.formality_level
        assert stats["syntactic"]["passive_voice_ratio"] == pytest.approx(
            1.0 - voice.active_voice_preference
        )
        assert stats["lexical"]["vocabulary_size"] == len(
            set(traits.lexical_signature.preferred_words)
        )
        assert 0.0 <= stats["cognitive"]["readability_score"] <= 1.0

    def test_single_sample_stats(self) -> None:
        metrics = FeatureExtractor().extract(" ".join(["alpha"] * 60) + ".")
        stats = feature_stats_from_metrics(metrics)
        assert stats["lexical"]["vocabulary_size"] == 1.0
        assert stats["stylistic"]["punctuation_diversity"] == 0.0
        assert stats["stylistic"]["paragraph_consistency"] == 1.0
