"""
Stylometric feature extraction.

Computes four feature groups from a single writing sample:

    1. **Lexical** -- vocabulary richness, word-length profile, favourite
       words and phrases
    2. **Syntactic** -- sentence length, punctuation density, clause and
       paragraph rhythm
    3. **Semantic** -- sentiment, formality, topics, emotional tone,
       abstractness
    4. **Stylistic** -- transitions, passive voice, contractions, idioms,
       first-person usage, rhetorical devices

Every detector is a regex or keyword heuristic, so extraction is fully
deterministic for identical input.
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from typing import Dict, List, Optional

from voiceprint.analysis.tokenizer import (
    tokenize_paragraphs,
    tokenize_sentences,
    tokenize_words,
)
from voiceprint.config import ExtractionConfig
from voiceprint.exceptions import SampleTooShortError
from voiceprint.models import (
    LexicalFeatures,
    ParagraphStructure,
    SemanticFeatures,
    SentimentPatterns,
    StylisticMarkers,
    StylometricMetrics,
    SyntacticFeatures,
    TextMetadata,
    WordLengthDistribution,
)
from voiceprint.utils import clamp, mean, std_dev

logger = logging.getLogger(__name__)


# =============================================================================
# KEYWORD LISTS
# =============================================================================

POSITIVE_WORDS = frozenset(
    ["good", "great", "excellent", "happy", "wonderful", "amazing", "love", "best"]
)
NEGATIVE_WORDS = frozenset(
    ["bad", "terrible", "awful", "hate", "worst", "horrible", "poor", "sad"]
)

INFORMAL_MARKERS = frozenset(
    ["gonna", "wanna", "gotta", "kinda", "sorta", "yeah", "yep", "nope"]
)

# Words longer than this count as "formal" vocabulary
FORMAL_WORD_MIN_LENGTH = 9

# Checked in order; on equal counts the earlier emotion wins
EMOTION_KEYWORDS: Dict[str, frozenset] = {
    "joy": frozenset(["happy", "joy", "excited", "thrilled", "delighted"]),
    "sadness": frozenset(["sad", "depressed", "unhappy", "melancholy"]),
    "anger": frozenset(["angry", "furious", "mad", "irritated"]),
    "fear": frozenset(["afraid", "scared", "anxious", "worried"]),
    "neutral": frozenset(["okay", "fine", "normal", "regular"]),
}
DEFAULT_EMOTION = "neutral"

TRANSITION_WORDS = frozenset([
    "however",
    "therefore",
    "moreover",
    "furthermore",
    "nevertheless",
    "consequently",
    "additionally",
    "meanwhile",
    "subsequently",
])

IDIOMS = (
    "piece of cake",
    "break a leg",
    "hit the nail",
    "costs an arm",
    "once in a blue moon",
)

FIRST_PERSON = frozenset(
    ["i", "me", "my", "mine", "myself", "we", "us", "our", "ours", "ourselves"]
)

CONTRACTION_PATTERN = re.compile(r"\w+['’]\w+")
PASSIVE_PATTERN = re.compile(r"\b(was|were|been|being|is|are|am)\s+\w+ed\b", re.IGNORECASE)
ABSTRACT_SUFFIX_PATTERN = re.compile(r"(ness|ity|tion|ment|ism|ance|ence)$", re.IGNORECASE)
DASH_PATTERN = re.compile(r"—|–|--|\s-\s")

PUNCTUATION_PATTERNS: Dict[str, re.Pattern] = {
    "commas": re.compile(r","),
    "semicolons": re.compile(r";"),
    "colons": re.compile(r":"),
    "dashes": DASH_PATTERN,
    "exclamations": re.compile(r"!"),
    "questions": re.compile(r"\?"),
}

TOP_WORDS_LIMIT = 20
TOP_PHRASES_LIMIT = 10
TOP_TOPICS_LIMIT = 10


class FeatureExtractor:
    """Extracts ``StylometricMetrics`` from raw text.

    Args:
        config: Sample-size limits.  Defaults to ``ExtractionConfig()``.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None) -> None:
        self.config = config or ExtractionConfig()

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    def extract(self, text: str) -> StylometricMetrics:
        """Analyse one writing sample.

        Args:
            text: Raw sample text.

        Returns:
            The four feature groups plus count metadata.

        Raises:
            SampleTooShortError: If the trimmed text has fewer than
                ``config.min_sample_words`` words.
        """
        cleaned = (text or "").strip()
        words = tokenize_words(cleaned)
        if len(words) < self.config.min_sample_words:
            raise SampleTooShortError(len(words), self.config.min_sample_words)

        sentences = tokenize_sentences(cleaned) or [cleaned]
        paragraphs = tokenize_paragraphs(cleaned) or [cleaned]
        lower_words = [w.lower() for w in words]

        metrics = StylometricMetrics(
            lexical=self._lexical(words, lower_words),
            syntactic=self._syntactic(cleaned, sentences, paragraphs),
            semantic=self._semantic(cleaned, words, lower_words),
            stylistic=self._stylistic(cleaned, lower_words, sentences),
            metadata=TextMetadata(
                word_count=len(words),
                sentence_count=len(sentences),
                paragraph_count=len(paragraphs),
                avg_words_per_sentence=len(words) / len(sentences),
                avg_sentences_per_paragraph=len(sentences) / len(paragraphs),
            ),
        )

        logger.debug(
            "Extracted features: %d words, %d sentences, formality=%.2f",
            len(words),
            len(sentences),
            metrics.semantic.formality_level,
        )
        return metrics

    # ------------------------------------------------------------------
    # LEXICAL
    # ------------------------------------------------------------------

    def _lexical(self, words: List[str], lower_words: List[str]) -> LexicalFeatures:
        total = len(words)
        unique = len(set(lower_words))
        lengths = [len(w) for w in words]
        avg_length = mean(lengths)

        frequency = Counter(lower_words)
        top_words = [word for word, _ in frequency.most_common(TOP_WORDS_LIMIT)]

        return LexicalFeatures(
            vocabulary_richness=unique / total,
            avg_word_length=avg_length,
            word_length_distribution=WordLengthDistribution(
                mean=avg_length,
                std_dev=std_dev(lengths),
                short=sum(1 for n in lengths if n <= 3) / total,
                medium=sum(1 for n in lengths if 3 < n <= 7) / total,
                long=sum(1 for n in lengths if n > 7) / total,
            ),
            unique_word_preferences=top_words,
            common_phrases=self._common_phrases(lower_words),
            lexical_diversity=unique / math.sqrt(total),
        )

    @staticmethod
    def _common_phrases(lower_words: List[str]) -> List[str]:
        """Most frequent 2- and 3-word n-grams, first occurrence breaks ties."""
        phrases: Counter = Counter()
        for i in range(len(lower_words) - 1):
            phrases[" ".join(lower_words[i:i + 2])] += 1
            if i + 3 <= len(lower_words):
                phrases[" ".join(lower_words[i:i + 3])] += 1
        return [phrase for phrase, _ in phrases.most_common(TOP_PHRASES_LIMIT)]

    # ------------------------------------------------------------------
    # SYNTACTIC
    # ------------------------------------------------------------------

    def _syntactic(
        self, text: str, sentences: List[str], paragraphs: List[str]
    ) -> SyntacticFeatures:
        sentence_count = len(sentences)
        sentence_lengths = [len(tokenize_words(s)) for s in sentences]
        paragraph_lengths = [len(tokenize_words(p)) for p in paragraphs]

        punctuation = {
            name: len(pattern.findall(text)) / sentence_count
            for name, pattern in PUNCTUATION_PATTERNS.items()
        }

        # Comma count as a proxy for clauses
        clause_complexity = mean([s.count(",") + 1 for s in sentences])

        return SyntacticFeatures(
            avg_sentence_length=mean(sentence_lengths),
            sentence_length_variation=std_dev(sentence_lengths),
            clause_complexity=clause_complexity,
            punctuation_patterns=punctuation,
            paragraph_structure=ParagraphStructure(
                avg_paragraph_length=mean(paragraph_lengths),
                paragraph_variation=std_dev(paragraph_lengths),
            ),
        )

    # ------------------------------------------------------------------
    # SEMANTIC
    # ------------------------------------------------------------------

    def _semantic(
        self, text: str, words: List[str], lower_words: List[str]
    ) -> SemanticFeatures:
        total = len(words)
        positive = sum(1 for w in lower_words if w in POSITIVE_WORDS) / total
        negative = sum(1 for w in lower_words if w in NEGATIVE_WORDS) / total

        return SemanticFeatures(
            topic_preferences=self._topics(words),
            sentiment_patterns=SentimentPatterns(
                positive=positive,
                negative=negative,
                neutral=clamp(1.0 - positive - negative),
            ),
            formality_level=self._formality(text, words, lower_words),
            emotional_tone=self._emotional_tone(lower_words),
            abstractness_level=sum(
                1 for w in lower_words if ABSTRACT_SUFFIX_PATTERN.search(w)
            ) / total,
        )

    @staticmethod
    def _formality(text: str, words: List[str], lower_words: List[str]) -> float:
        contractions = len(CONTRACTION_PATTERN.findall(text))
        formal_words = sum(1 for w in words if len(w) >= FORMAL_WORD_MIN_LENGTH)
        informal = sum(1 for w in lower_words if w in INFORMAL_MARKERS)
        # 0.5 is neutral; formal vocabulary pushes up, casual markers down
        score = (formal_words - contractions - informal) / len(words)
        return clamp(0.5 + score)

    @staticmethod
    def _topics(words: List[str]) -> List[str]:
        capitalized = Counter(w for w in words if w[:1].isupper() and len(w) > 3)
        return [word for word, _ in capitalized.most_common(TOP_TOPICS_LIMIT)]

    @staticmethod
    def _emotional_tone(lower_words: List[str]) -> str:
        dominant = DEFAULT_EMOTION
        best = 0
        for emotion, markers in EMOTION_KEYWORDS.items():
            count = sum(1 for w in lower_words if w in markers)
            if count > best:
                best = count
                dominant = emotion
        return dominant

    # ------------------------------------------------------------------
    # STYLISTIC
    # ------------------------------------------------------------------

    def _stylistic(
        self, text: str, lower_words: List[str], sentences: List[str]
    ) -> StylisticMarkers:
        total = len(lower_words)
        sentence_count = len(sentences)

        transitions = sum(1 for w in lower_words if w in TRANSITION_WORDS)
        passive = sum(1 for s in sentences if PASSIVE_PATTERN.search(s))
        lower_text = text.lower()

        return StylisticMarkers(
            transition_words_usage=clamp(transitions / sentence_count),
            active_vs_passive_ratio=1.0 - passive / sentence_count,
            contraction_frequency=clamp(len(CONTRACTION_PATTERN.findall(text)) / total),
            idiom_usage=sum(1 for idiom in IDIOMS if idiom in lower_text),
            first_person_usage=sum(1 for w in lower_words if w in FIRST_PERSON) / total,
            rhetorical_devices=self._rhetorical_devices(sentences),
        )

    @staticmethod
    def _rhetorical_devices(sentences: List[str]) -> List[str]:
        devices: List[str] = []

        if any(s.endswith("?") for s in sentences):
            devices.append("rhetorical_questions")

        first_words = [
            tokens[0].lower()
            for tokens in (tokenize_words(s) for s in sentences)
            if tokens
        ]
        if len(first_words) != len(set(first_words)):
            devices.append("anaphora")

        lengths = [len(tokenize_words(s)) for s in sentences]
        if any(abs(lengths[i] - lengths[i - 1]) < 2 for i in range(1, len(lengths))):
            devices.append("parallelism")

        return devices


__all__ = [
    "FeatureExtractor",
    "POSITIVE_WORDS",
    "NEGATIVE_WORDS",
    "INFORMAL_MARKERS",
    "EMOTION_KEYWORDS",
    "TRANSITION_WORDS",
    "IDIOMS",
    "FIRST_PERSON",
]
