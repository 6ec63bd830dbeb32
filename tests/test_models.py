"""
Tests for voiceprint.models.

Covers:
    - str-based enums
    - sample_text for strings and WritingSample
    - create_default_stats / merge_stats
    - VoiceDNA row round trip
"""

from datetime import datetime, timezone

from voiceprint.models import (
    DEFAULT_FEATURE_STATS,
    CacheEntry,
    EvolutionTrend,
    ImpactConfidence,
    VoiceDNA,
    WritingSample,
    create_default_stats,
    merge_stats,
    sample_text,
)


# ===================================================================
# Enums and inputs
# ===================================================================


class TestEnums:
    """Enums compare equal to their string values."""

    def test_evolution_trend(self) -> None:
        assert EvolutionTrend.STABLE == "stable"
        assert EvolutionTrend("shifting") is EvolutionTrend.SHIFTING

    def test_impact_confidence(self) -> None:
        assert [c.value for c in ImpactConfidence] == ["high", "medium", "low"]


class TestSampleText:
    def test_plain_string(self) -> None:
        assert sample_text("hello") == "hello"

    def test_writing_sample(self) -> None:
        assert sample_text(WritingSample(text="hello", title="Greeting")) == "hello"


# ===================================================================
# feature_stats helpers
# ===================================================================


class TestFeatureStats:
    """Default blob and group-wise merging."""

    def test_defaults_are_copied(self) -> None:
        """Each call gets its own copy of the default stats."""
        stats = create_default_stats()
        stats["lexical"]["vocabulary_size"] = 99.0
        assert DEFAULT_FEATURE_STATS["lexical"]["vocabulary_size"] == 0.0

    def test_partial_overlay(self) -> None:
        stats = create_default_stats({"stylistic": {"formality_score": 0.8}})
        assert stats["stylistic"]["formality_score"] == 0.8
        assert stats["stylistic"]["punctuation_diversity"] == 0.0
        assert set(stats) == set(DEFAULT_FEATURE_STATS)

    def test_merge_keeps_untouched_groups(self) -> None:
        """Merging overlays fields and never mutates the input."""
        existing = {"lexical": {"a": 1.0}, "syntactic": {"b": 2.0}}
        merged = merge_stats(existing, {"lexical": {"c": 3.0}, "cognitive": {"d": 4.0}})
        assert merged == {
            "lexical": {"a": 1.0, "c": 3.0},
            "syntactic": {"b": 2.0},
            "cognitive": {"d": 4.0},
        }
        assert existing == {"lexical": {"a": 1.0}, "syntactic": {"b": 2.0}}

    def test_merge_with_nothing(self) -> None:
        existing = {"lexical": {"a": 1.0}}
        merged = merge_stats(existing, None)
        assert merged == existing
        assert merged is not existing


# ===================================================================
# VoiceDNA
# ===================================================================


class TestVoiceDNA:
    """Supabase row conversion."""

    def test_defaults(self) -> None:
        record = VoiceDNA(user_id="u1", dna_vector=[0.5])
        assert record.confidence == 0.5
        assert record.samples_analyzed == 1
        assert set(record.feature_stats) == set(DEFAULT_FEATURE_STATS)

    def test_to_row_omits_unset_fields(self) -> None:
        """Store-assigned columns are left out of the upsert row."""
        row = VoiceDNA(user_id="u1", dna_vector=[0.5]).to_row()
        assert "id" not in row
        assert "created_at" not in row
        assert row["dna_vector"] == [0.5]

    def test_row_round_trip(self, sample_utc_now) -> None:
        record = VoiceDNA(
            id="dna-1",
            user_id="u1",
            dna_vector=[0.1, 0.2],
            confidence=0.75,
            samples_analyzed=3,
            created_at=sample_utc_now,
            updated_at=sample_utc_now,
        )
        assert VoiceDNA.from_row(record.to_row()) == record

    def test_from_row_parses_z_suffix_and_naive(self) -> None:
        """Timestamps come back timezone-aware in UTC."""
        record = VoiceDNA.from_row({
            "user_id": "u1",
            "dna_vector": ["0.5", 1],
            "created_at": "2025-06-15T12:00:00Z",
            "updated_at": "2025-06-15T12:00:00",
        })
        expected = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
        assert record.created_at == expected
        assert record.updated_at == expected
        assert record.updated_at.tzinfo is not None
        assert record.dna_vector == [0.5, 1.0]


class TestCacheEntry:
    def test_access_count_starts_at_one(self) -> None:
        entry = CacheEntry(data=VoiceDNA(user_id="u1", dna_vector=[1.0]), timestamp=0.0)
        assert entry.access_count == 1
