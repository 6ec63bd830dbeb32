"""
Centralized shared data types for the voice profile core.

Hierarchy of types
------------------
- **Enums**: ``EvolutionTrend``, ``ImpactConfidence``
- **Input**: ``WritingSample``
- **Extraction output**: ``LexicalFeatures``, ``SyntacticFeatures``,
  ``SemanticFeatures``, ``StylisticMarkers``, ``TextMetadata``,
  ``StylometricMetrics``
- **Fingerprint**: four signature dataclasses and ``VoiceprintTraits``
- **Comparison results**: ``VoiceSimilarity``, ``VoiceEvolution``,
  ``VoiceImpact``
- **Persistence**: ``VoiceDNA`` plus ``FeatureStats`` helpers
- **Cache**: ``CacheEntry``
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from voiceprint.utils import ensure_utc


# =============================================================================
# ENUMS
# =============================================================================


class EvolutionTrend(str, Enum):
    """
    Direction of a writer's voice over time.

    Inherits from ``str`` so ``EvolutionTrend.STABLE == "stable"``.
    """

    STABLE = "stable"
    EVOLVING = "evolving"
    SHIFTING = "shifting"


class ImpactConfidence(str, Enum):
    """How much an impact estimate can be trusted given the edit size."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# INPUT
# =============================================================================


@dataclass
class WritingSample:
    """Raw text submitted for analysis.  Never persisted by the core."""

    text: str
    timestamp: Optional[datetime] = None
    title: Optional[str] = None


SampleInput = Union[str, WritingSample]


def sample_text(sample: SampleInput) -> str:
    """Return the text of a ``WritingSample`` or a plain string."""
    if isinstance(sample, WritingSample):
        return sample.text
    return sample


# =============================================================================
# EXTRACTION OUTPUT
# =============================================================================


@dataclass
class WordLengthDistribution:
    """Word-length statistics.  Bucket values are fractions of all words."""

    mean: float
    std_dev: float
    short: float  # <= 3 chars
    medium: float  # 4-7 chars
    long: float  # > 7 chars


@dataclass
class LexicalFeatures:
    vocabulary_richness: float  # type-token ratio
    avg_word_length: float
    word_length_distribution: WordLengthDistribution
    unique_word_preferences: List[str]  # top-20 most frequent words
    common_phrases: List[str]  # up to 10 frequent 2-3 word n-grams
    lexical_diversity: float  # unique / sqrt(total)


@dataclass
class ParagraphStructure:
    avg_paragraph_length: float
    paragraph_variation: float


@dataclass
class SyntacticFeatures:
    avg_sentence_length: float
    sentence_length_variation: float
    clause_complexity: float
    punctuation_patterns: Dict[str, float]  # mark name -> count per sentence
    paragraph_structure: ParagraphStructure


@dataclass
class SentimentPatterns:
    positive: float
    negative: float
    neutral: float


@dataclass
class SemanticFeatures:
    topic_preferences: List[str]
    sentiment_patterns: SentimentPatterns
    formality_level: float  # 0=casual, 1=formal
    emotional_tone: str  # joy | sadness | anger | fear | neutral
    abstractness_level: float


@dataclass
class StylisticMarkers:
    transition_words_usage: float
    active_vs_passive_ratio: float
    contraction_frequency: float
    idiom_usage: int
    first_person_usage: float
    rhetorical_devices: List[str]


@dataclass
class TextMetadata:
    word_count: int
    sentence_count: int
    paragraph_count: int
    avg_words_per_sentence: float
    avg_sentences_per_paragraph: float


@dataclass
class StylometricMetrics:
    """
    Output of one feature-extraction pass over a single text.

    All ratio fields are in ``[0, 1]``; ``metadata.word_count`` is always
    positive for a successfully extracted sample.
    """

    lexical: LexicalFeatures
    syntactic: SyntacticFeatures
    semantic: SemanticFeatures
    stylistic: StylisticMarkers
    metadata: TextMetadata

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return asdict(self)


# =============================================================================
# FINGERPRINT ("VOICE DNA" TRAITS)
# =============================================================================


@dataclass
class LexicalSignature:
    vocabulary_richness: float
    preferred_words: List[str]
    phrase_patterns: List[str]
    word_length_profile: WordLengthDistribution


@dataclass
class SyntacticSignature:
    sentence_complexity: float  # mean sentence length in words
    punctuation_style: Dict[str, float]
    paragraph_rhythm: ParagraphStructure


@dataclass
class SemanticSignature:
    tonal_profile: str
    formality_level: float
    topical_interests: List[str]


@dataclass
class VoiceCharacteristics:
    active_voice_preference: float
    contraction_usage: float
    personal_pronoun_usage: float


@dataclass
class WritingPatterns:
    transition_style: float
    rhetorical_devices: List[str]


@dataclass
class StylisticSignature:
    voice_characteristics: VoiceCharacteristics
    writing_patterns: WritingPatterns


@dataclass
class VoiceprintTraits:
    """
    Aggregate stylometric fingerprint of one writer.

    Built from at least ``ExtractionConfig.min_samples`` samples by the
    fingerprint aggregator, or from a single sample as a temporary profile
    when scoring an edit against a stored voice.

    Attributes:
        consistency: How stable vocabulary richness is across samples,
            ``1 - coefficient_of_variation`` floored at 0.
        confidence: ``consistency * 0.7 + sample_bonus * 0.3``.
        sample_count: Number of samples the fingerprint was built from.
    """

    lexical_signature: LexicalSignature
    syntactic_signature: SyntacticSignature
    semantic_signature: SemanticSignature
    stylistic_signature: StylisticSignature
    consistency: float
    confidence: float
    sample_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return asdict(self)


# =============================================================================
# COMPARISON RESULTS
# =============================================================================


@dataclass
class VoiceSimilarity:
    """Similarity of an edited text to the original text or stored voice."""

    similarity: int  # 0-100
    affected_dimensions: List[str] = field(default_factory=list)


@dataclass
class VoiceEvolution:
    """Transient comparison between an older and a newer fingerprint."""

    drift_score: int  # 0-100, higher = more drift
    changed_dimensions: List[str]
    trend: EvolutionTrend
    recommendations: List[str]


@dataclass
class VoiceImpact:
    """Instant feedback on how an edit changes the writer's voice.

    Attributes:
        similarity: 0-100, higher means the edit keeps the voice.
        dimensions_affected: Dimensions that moved by more than 10 points.
        preserved_traits: Dimensions that moved by 5 points or less.
        risk_delta: Estimated change in AI-detection risk (positive means
            the edit reads as more machine-like).
        confidence: Trust level of the estimate given the edit size.
        explanation: One-line human readable summary.
    """

    similarity: int
    dimensions_affected: List[str]
    preserved_traits: List[str]
    risk_delta: int
    confidence: ImpactConfidence
    explanation: str


# =============================================================================
# PERSISTENCE
# =============================================================================

FeatureStats = Dict[str, Dict[str, float]]

# Every group/field a persisted feature_stats blob carries, with defaults.
DEFAULT_FEATURE_STATS: FeatureStats = {
    "lexical": {
        "vocabulary_size": 0.0,
        "avg_word_length": 0.0,
        "unique_word_ratio": 0.0,
    },
    "syntactic": {
        "avg_sentence_length": 0.0,
        "sentence_complexity": 0.0,
        "passive_voice_ratio": 0.0,
    },
    "stylistic": {
        "formality_score": 0.5,
        "punctuation_diversity": 0.0,
        "paragraph_consistency": 0.0,
    },
    "cognitive": {
        "readability_score": 0.0,
        "coherence_score": 0.0,
        "authenticity_markers": 0.0,
    },
}


def create_default_stats(partial: Optional[FeatureStats] = None) -> FeatureStats:
    """Build a full ``feature_stats`` blob, overlaying any *partial* values."""
    stats = copy.deepcopy(DEFAULT_FEATURE_STATS)
    return merge_stats(stats, partial)


def merge_stats(
    existing: FeatureStats, updates: Optional[FeatureStats] = None
) -> FeatureStats:
    """Merge *updates* into *existing* field by field, group by group.

    Groups missing from *updates* are kept as they are; groups missing from
    *existing* are taken from *updates*.
    """
    merged = copy.deepcopy(existing)
    if not updates:
        return merged
    for group, values in updates.items():
        merged.setdefault(group, {}).update(values or {})
    return merged


@dataclass
class VoiceDNA:
    """
    Persisted per-user voice fingerprint (one row of ``voice_dna``).

    Owned exclusively by ``user_id``; mutated only by the cache's incremental
    update or an explicit save.
    """

    user_id: str
    dna_vector: List[float]
    feature_stats: FeatureStats = field(default_factory=create_default_stats)
    confidence: float = 0.5
    samples_analyzed: int = 1
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "VoiceDNA":
        """Build a record from a Supabase row dict."""
        return cls(
            id=row.get("id"),
            user_id=row["user_id"],
            dna_vector=[float(v) for v in (row.get("dna_vector") or [])],
            feature_stats=row.get("feature_stats") or create_default_stats(),
            confidence=float(row.get("confidence", 0.5)),
            samples_analyzed=int(row.get("samples_analyzed", 1)),
            created_at=_parse_timestamp(row.get("created_at")),
            updated_at=_parse_timestamp(row.get("updated_at")),
        )

    def to_row(self) -> Dict[str, Any]:
        """Serialize to a Supabase row dict.

        ``id`` and ``created_at`` are omitted when unset so the database
        defaults apply on first insert.
        """
        row: Dict[str, Any] = {
            "user_id": self.user_id,
            "dna_vector": list(self.dna_vector),
            "feature_stats": self.feature_stats,
            "confidence": self.confidence,
            "samples_analyzed": self.samples_analyzed,
        }
        if self.id is not None:
            row["id"] = self.id
        if self.created_at is not None:
            row["created_at"] = self.created_at.isoformat()
        if self.updated_at is not None:
            row["updated_at"] = self.updated_at.isoformat()
        return row


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        # Supabase returns ISO strings, sometimes with a trailing "Z"
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return ensure_utc(value)


# =============================================================================
# CACHE
# =============================================================================


@dataclass
class CacheEntry:
    """L1 wrapper around a ``VoiceDNA`` record.

    ``timestamp`` is a monotonic clock reading taken when the entry was
    created or refreshed; it drives both TTL expiry and eviction order.
    """

    data: VoiceDNA
    timestamp: float
    access_count: int = 1


# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    "EvolutionTrend",
    "ImpactConfidence",
    "WritingSample",
    "SampleInput",
    "sample_text",
    "WordLengthDistribution",
    "LexicalFeatures",
    "ParagraphStructure",
    "SyntacticFeatures",
    "SentimentPatterns",
    "SemanticFeatures",
    "StylisticMarkers",
    "TextMetadata",
    "StylometricMetrics",
    "LexicalSignature",
    "SyntacticSignature",
    "SemanticSignature",
    "VoiceCharacteristics",
    "WritingPatterns",
    "StylisticSignature",
    "VoiceprintTraits",
    "VoiceSimilarity",
    "VoiceEvolution",
    "VoiceImpact",
    "FeatureStats",
    "DEFAULT_FEATURE_STATS",
    "create_default_stats",
    "merge_stats",
    "VoiceDNA",
    "CacheEntry",
]
