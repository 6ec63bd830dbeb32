"""
Fingerprint aggregation: many writing samples -> one voice fingerprint.

Each sample is analysed on its own by ``FeatureExtractor``; the per-sample
metrics are then averaged field by field into a single
``StylometricMetrics`` and reshaped into the four signatures of a
``VoiceprintTraits`` record.

Aggregation rules:
    - numeric features: arithmetic mean across samples
    - word / phrase / topic lists: ranked by how many samples share them
    - emotional tone: majority vote (first sample wins ties)
    - rhetorical devices: kept when present in at least half the samples
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from voiceprint.analysis.features import FeatureExtractor
from voiceprint.config import ExtractionConfig
from voiceprint.exceptions import InsufficientSamplesError
from voiceprint.models import (
    LexicalFeatures,
    LexicalSignature,
    ParagraphStructure,
    SampleInput,
    SemanticFeatures,
    SemanticSignature,
    SentimentPatterns,
    StylisticMarkers,
    StylisticSignature,
    StylometricMetrics,
    SyntacticFeatures,
    SyntacticSignature,
    TextMetadata,
    VoiceCharacteristics,
    VoiceprintTraits,
    WordLengthDistribution,
    WritingPatterns,
    sample_text,
)
from voiceprint.utils import mean, std_dev

logger = logging.getLogger(__name__)

SIGNATURE_WORDS_LIMIT = 20
SIGNATURE_PHRASES_LIMIT = 20
AGGREGATE_WORDS_LIMIT = 20
AGGREGATE_PHRASES_LIMIT = 10
AGGREGATE_TOPICS_LIMIT = 10

CONSISTENCY_WEIGHT = 0.7
SAMPLE_BONUS_WEIGHT = 0.3


def _rank_across(lists: Iterable[List[str]], limit: int) -> List[str]:
    """Rank items by how many lists contain them; first appearance breaks ties."""
    counts: Counter = Counter()
    for items in lists:
        counts.update(dict.fromkeys(items, 1))
    return [item for item, _ in counts.most_common(limit)]


def _mean_of(values: Iterable[float]) -> float:
    return mean(list(values))


class FingerprintAggregator:
    """Builds ``VoiceprintTraits`` from multiple writing samples.

    Args:
        config: Sample-size limits.  Defaults to ``ExtractionConfig()``.
        extractor: Feature extractor to use.  A new one sharing *config* is
            created when ``None``.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        extractor: Optional[FeatureExtractor] = None,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.extractor = extractor or FeatureExtractor(self.config)

    # ------------------------------------------------------------------
    # FINGERPRINT CREATION
    # ------------------------------------------------------------------

    def create_fingerprint(self, samples: Sequence[SampleInput]) -> VoiceprintTraits:
        """Create a voice fingerprint from writing samples.

        Args:
            samples: Plain strings or ``WritingSample`` objects.

        Returns:
            The aggregated fingerprint with consistency and confidence.

        Raises:
            InsufficientSamplesError: If fewer than ``config.min_samples``
                samples are supplied.
            SampleTooShortError: If any sample is too short to analyse.
        """
        if len(samples) < self.config.min_samples:
            raise InsufficientSamplesError(len(samples), self.config.min_samples)

        metrics = [self.extractor.extract(sample_text(s)) for s in samples]
        return self.fingerprint_from_metrics(metrics)

    def fingerprint_from_metrics(
        self, metrics: Sequence[StylometricMetrics]
    ) -> VoiceprintTraits:
        """Build a fingerprint from already-extracted per-sample metrics."""
        if len(metrics) < self.config.min_samples:
            raise InsufficientSamplesError(len(metrics), self.config.min_samples)

        aggregated = self.aggregate_metrics(metrics)
        consistency = self.calculate_consistency(metrics)
        confidence = self.calculate_confidence(len(metrics), consistency)

        traits = traits_from_metrics(
            aggregated,
            preferred_words=_rank_across(
                (m.lexical.unique_word_preferences for m in metrics),
                SIGNATURE_WORDS_LIMIT,
            ),
            phrase_patterns=_rank_across(
                (m.lexical.common_phrases for m in metrics),
                SIGNATURE_PHRASES_LIMIT,
            ),
            consistency=consistency,
            confidence=confidence,
            sample_count=len(metrics),
        )

        logger.info(
            "Fingerprint created from %d samples: consistency=%.2f, confidence=%.2f",
            len(metrics),
            consistency,
            confidence,
        )
        return traits

    # ------------------------------------------------------------------
    # AGGREGATION
    # ------------------------------------------------------------------

    def aggregate_metrics(
        self, metrics: Sequence[StylometricMetrics]
    ) -> StylometricMetrics:
        """Average per-sample metrics into one ``StylometricMetrics``.

        Raises:
            ValueError: If *metrics* is empty.
        """
        if not metrics:
            raise ValueError("Cannot aggregate an empty list of metrics")
        if len(metrics) == 1:
            return metrics[0]

        lexical = [m.lexical for m in metrics]
        syntactic = [m.syntactic for m in metrics]
        semantic = [m.semantic for m in metrics]
        stylistic = [m.stylistic for m in metrics]
        metadata = [m.metadata for m in metrics]

        punctuation_keys: Dict[str, None] = {}
        for s in syntactic:
            punctuation_keys.update(dict.fromkeys(s.punctuation_patterns))

        tones = Counter(s.emotional_tone for s in semantic)
        device_counts = Counter(d for s in stylistic for d in dict.fromkeys(s.rhetorical_devices))
        devices = [d for d, n in device_counts.items() if n * 2 >= len(metrics)]

        return StylometricMetrics(
            lexical=LexicalFeatures(
                vocabulary_richness=_mean_of(x.vocabulary_richness for x in lexical),
                avg_word_length=_mean_of(x.avg_word_length for x in lexical),
                word_length_distribution=WordLengthDistribution(
                    mean=_mean_of(x.word_length_distribution.mean for x in lexical),
                    std_dev=_mean_of(x.word_length_distribution.std_dev for x in lexical),
                    short=_mean_of(x.word_length_distribution.short for x in lexical),
                    medium=_mean_of(x.word_length_distribution.medium for x in lexical),
                    long=_mean_of(x.word_length_distribution.long for x in lexical),
                ),
                unique_word_preferences=_rank_across(
                    (x.unique_word_preferences for x in lexical), AGGREGATE_WORDS_LIMIT
                ),
                common_phrases=_rank_across(
                    (x.common_phrases for x in lexical), AGGREGATE_PHRASES_LIMIT
                ),
                lexical_diversity=_mean_of(x.lexical_diversity for x in lexical),
            ),
            syntactic=SyntacticFeatures(
                avg_sentence_length=_mean_of(x.avg_sentence_length for x in syntactic),
                sentence_length_variation=_mean_of(
                    x.sentence_length_variation for x in syntactic
                ),
                clause_complexity=_mean_of(x.clause_complexity for x in syntactic),
                punctuation_patterns={
                    key: _mean_of(x.punctuation_patterns.get(key, 0.0) for x in syntactic)
                    for key in punctuation_keys
                },
                paragraph_structure=ParagraphStructure(
                    avg_paragraph_length=_mean_of(
                        x.paragraph_structure.avg_paragraph_length for x in syntactic
                    ),
                    paragraph_variation=_mean_of(
                        x.paragraph_structure.paragraph_variation for x in syntactic
                    ),
                ),
            ),
            semantic=SemanticFeatures(
                topic_preferences=_rank_across(
                    (x.topic_preferences for x in semantic), AGGREGATE_TOPICS_LIMIT
                ),
                sentiment_patterns=SentimentPatterns(
                    positive=_mean_of(x.sentiment_patterns.positive for x in semantic),
                    negative=_mean_of(x.sentiment_patterns.negative for x in semantic),
                    neutral=_mean_of(x.sentiment_patterns.neutral for x in semantic),
                ),
                formality_level=_mean_of(x.formality_level for x in semantic),
                emotional_tone=tones.most_common(1)[0][0],
                abstractness_level=_mean_of(x.abstractness_level for x in semantic),
            ),
            stylistic=StylisticMarkers(
                transition_words_usage=_mean_of(x.transition_words_usage for x in stylistic),
                active_vs_passive_ratio=_mean_of(x.active_vs_passive_ratio for x in stylistic),
                contraction_frequency=_mean_of(x.contraction_frequency for x in stylistic),
                idiom_usage=round(_mean_of(x.idiom_usage for x in stylistic)),
                first_person_usage=_mean_of(x.first_person_usage for x in stylistic),
                rhetorical_devices=devices,
            ),
            metadata=TextMetadata(
                word_count=round(_mean_of(x.word_count for x in metadata)),
                sentence_count=round(_mean_of(x.sentence_count for x in metadata)),
                paragraph_count=round(_mean_of(x.paragraph_count for x in metadata)),
                avg_words_per_sentence=_mean_of(x.avg_words_per_sentence for x in metadata),
                avg_sentences_per_paragraph=_mean_of(
                    x.avg_sentences_per_paragraph for x in metadata
                ),
            ),
        )

    # ------------------------------------------------------------------
    # SCORING
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_consistency(metrics: Sequence[StylometricMetrics]) -> float:
        """``1 - coefficient of variation`` of vocabulary richness, floored at 0."""
        if len(metrics) < 2:
            return 1.0
        richness = [m.lexical.vocabulary_richness for m in metrics]
        avg = mean(richness)
        if avg == 0:
            return 0.0
        return max(0.0, 1.0 - std_dev(richness) / avg)

    def calculate_confidence(self, sample_count: int, consistency: float) -> float:
        """Blend consistency with a sample-count bonus that caps at the optimum."""
        sample_bonus = min(1.0, sample_count / self.config.optimal_samples)
        return consistency * CONSISTENCY_WEIGHT + sample_bonus * SAMPLE_BONUS_WEIGHT


def traits_from_metrics(
    metrics: StylometricMetrics,
    preferred_words: Optional[List[str]] = None,
    phrase_patterns: Optional[List[str]] = None,
    consistency: float = 1.0,
    confidence: float = 1.0,
    sample_count: int = 1,
) -> VoiceprintTraits:
    """Reshape metrics into the four fingerprint signatures.

    With the defaults this yields the one-sample temporary profile used to
    score an edited text against a stored voice.
    """
    return VoiceprintTraits(
        lexical_signature=LexicalSignature(
            vocabulary_richness=metrics.lexical.vocabulary_richness,
            preferred_words=list(
                metrics.lexical.unique_word_preferences
                if preferred_words is None
                else preferred_words
            ),
            phrase_patterns=list(
                metrics.lexical.common_phrases
                if phrase_patterns is None
                else phrase_patterns
            ),
            word_length_profile=metrics.lexical.word_length_distribution,
        ),
        syntactic_signature=SyntacticSignature(
            sentence_complexity=metrics.syntactic.avg_sentence_length,
            punctuation_style=dict(metrics.syntactic.punctuation_patterns),
            paragraph_rhythm=metrics.syntactic.paragraph_structure,
        ),
        semantic_signature=SemanticSignature(
            tonal_profile=metrics.semantic.emotional_tone,
            formality_level=metrics.semantic.formality_level,
            topical_interests=list(metrics.semantic.topic_preferences),
        ),
        stylistic_signature=StylisticSignature(
            voice_characteristics=VoiceCharacteristics(
                active_voice_preference=metrics.stylistic.active_vs_passive_ratio,
                contraction_usage=metrics.stylistic.contraction_frequency,
                personal_pronoun_usage=metrics.stylistic.first_person_usage,
            ),
            writing_patterns=WritingPatterns(
                transition_style=metrics.stylistic.transition_words_usage,
                rhetorical_devices=list(metrics.stylistic.rhetorical_devices),
            ),
        ),
        consistency=consistency,
        confidence=confidence,
        sample_count=sample_count,
    )


__all__ = [
    "FingerprintAggregator",
    "traits_from_metrics",
]
