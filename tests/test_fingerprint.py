"""
Tests for voiceprint.analysis.fingerprint.

Covers:
    - Sample-count and sample-length guards of create_fingerprint
    - Consistency and confidence scoring
    - aggregate_metrics: true mean, majority tone, device threshold
    - _rank_across ordering
    - traits_from_metrics single-sample profiles
"""

import pytest

from voiceprint.analysis.features import FeatureExtractor
from voiceprint.analysis.fingerprint import (
    FingerprintAggregator,
    _rank_across,
    traits_from_metrics,
)
from voiceprint.exceptions import InsufficientSamplesError, SampleTooShortError
from voiceprint.models import WritingSample


REPEATED_WORD_TEXT = " ".join(["alpha"] * 60) + "."
DEVICE_TEXT = "We build things here. " * 15 + "Why not?"


@pytest.fixture
def aggregator() -> FingerprintAggregator:
    return FingerprintAggregator()


@pytest.fixture
def extractor() -> FeatureExtractor:
    return FeatureExtractor()


# ===================================================================
# create_fingerprint guards
# ===================================================================


class TestCreateFingerprintGuards:
    """Validation happens before and during extraction."""

    def test_two_samples_rejected(self, aggregator, formal_samples) -> None:
        """At least three samples are needed for a fingerprint."""
        with pytest.raises(InsufficientSamplesError) as exc_info:
            aggregator.create_fingerprint(formal_samples[:2])
        assert exc_info.value.got == 2
        assert exc_info.value.required == 3

    def test_count_checked_before_length(self, aggregator) -> None:
        """Too few short samples report the count, not the length."""
        with pytest.raises(InsufficientSamplesError):
            aggregator.create_fingerprint(["short", "tiny"])

    def test_short_sample_rejected(self, aggregator, formal_samples) -> None:
        with pytest.raises(SampleTooShortError):
            aggregator.create_fingerprint(formal_samples[:2] + ["Too short."])

    def test_fingerprint_from_metrics_checks_count(self, aggregator, extractor) -> None:
        metrics = [extractor.extract(REPEATED_WORD_TEXT)]
        with pytest.raises(InsufficientSamplesError):
            aggregator.fingerprint_from_metrics(metrics)


# ===================================================================
# Scoring
# ===================================================================


class TestScoring:
    """Consistency and confidence."""

    def test_similar_samples_reach_confidence_floor(self, aggregator, formal_samples) -> None:
        """Confidence blends consistency with the sample-count bonus."""
        traits = aggregator.create_fingerprint(formal_samples)
        assert traits.sample_count == 3
        assert 0.0 <= traits.consistency <= 1.0
        assert traits.confidence >= 0.5
        assert traits.confidence == pytest.approx(traits.consistency * 0.7 + 0.6 * 0.3)

    def test_identical_samples(self, aggregator) -> None:
        """Identical samples are perfectly consistent."""
        traits = aggregator.create_fingerprint([REPEATED_WORD_TEXT] * 3)
        assert traits.consistency == 1.0
        assert traits.confidence == pytest.approx(0.88)

    def test_sample_bonus_caps_at_optimum(self, aggregator) -> None:
        """Samples beyond the optimum add no further confidence."""
        assert aggregator.calculate_confidence(5, 1.0) == pytest.approx(1.0)
        assert aggregator.calculate_confidence(12, 1.0) == pytest.approx(1.0)

    def test_consistency_of_single_metric(self, extractor) -> None:
        metrics = [extractor.extract(REPEATED_WORD_TEXT)]
        assert FingerprintAggregator.calculate_consistency(metrics) == 1.0

    def test_accepts_writing_samples(self, aggregator, formal_samples) -> None:
        samples = [WritingSample(text=t, title=f"post {i}") for i, t in enumerate(formal_samples)]
        from_objects = aggregator.create_fingerprint(samples)
        from_strings = aggregator.create_fingerprint(formal_samples)
        assert from_objects == from_strings


# ===================================================================
# aggregate_metrics
# ===================================================================


class TestAggregateMetrics:
    """Field-by-field aggregation across samples."""

    def test_true_mean(self, aggregator, extractor, formal_samples) -> None:
        """Numeric features are averaged across every sample."""
        metrics = [extractor.extract(t) for t in formal_samples]
        aggregated = aggregator.aggregate_metrics(metrics)

        expected = sum(m.lexical.vocabulary_richness for m in metrics) / 3
        assert aggregated.lexical.vocabulary_richness == pytest.approx(expected)
        expected = sum(m.syntactic.avg_sentence_length for m in metrics) / 3
        assert aggregated.syntactic.avg_sentence_length == pytest.approx(expected)

    def test_majority_tone(self, aggregator, extractor, formal_samples, informal_samples) -> None:
        """The most common emotional tone wins."""
        metrics = [
            extractor.extract(formal_samples[0]),
            extractor.extract(informal_samples[0]),
            extractor.extract(informal_samples[1]),
        ]
        assert aggregator.aggregate_metrics(metrics).semantic.emotional_tone == "joy"

    def test_tone_tie_goes_to_first_sample(self, aggregator, extractor, formal_samples, informal_samples) -> None:
        """A tone tie resolves to the earliest sample."""
        metrics = [extractor.extract(formal_samples[0]), extractor.extract(informal_samples[0])]
        assert aggregator.aggregate_metrics(metrics).semantic.emotional_tone == "neutral"

    def test_devices_kept_when_half_share_them(self, aggregator, extractor) -> None:
        """A device survives when at least half the samples use it."""
        with_devices = extractor.extract(DEVICE_TEXT)
        without = extractor.extract(REPEATED_WORD_TEXT)

        half = aggregator.aggregate_metrics([with_devices, without])
        assert "anaphora" in half.stylistic.rhetorical_devices

        minority = aggregator.aggregate_metrics([with_devices, without, without])
        assert minority.stylistic.rhetorical_devices == []

    def test_single_metric_returned_unchanged(self, aggregator, extractor) -> None:
        metrics = extractor.extract(REPEATED_WORD_TEXT)
        assert aggregator.aggregate_metrics([metrics]) is metrics

    def test_empty_raises(self, aggregator) -> None:
        with pytest.raises(ValueError):
            aggregator.aggregate_metrics([])


# ===================================================================
# Helpers
# ===================================================================


class TestHelpers:
    """_rank_across and traits_from_metrics."""

    def test_rank_across_counts_lists_not_occurrences(self) -> None:
        """Ranking counts samples containing an item, not repeats within one."""
        lists = [["a", "b", "b"], ["b", "c"], ["b", "a"]]
        assert _rank_across(lists, 2) == ["b", "a"]

    def test_rank_across_first_appearance_breaks_ties(self) -> None:
        assert _rank_across([["x", "y"], ["z"]], 3) == ["x", "y", "z"]

    def test_single_sample_profile(self, extractor) -> None:
        metrics = extractor.extract(REPEATED_WORD_TEXT)
        traits = traits_from_metrics(metrics)
        assert traits.sample_count == 1
        assert traits.confidence == 1.0
        assert traits.lexical_signature.preferred_words == ["alpha"]
        assert traits.semantic_signature.formality_level == 0.5
        assert traits.syntactic_signature.sentence_complexity == 60.0
