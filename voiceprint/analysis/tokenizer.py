"""Text tokenization: words, sentences and paragraphs.

Pure functions with no state.  Word tokens keep inner apostrophes, straight
or typographic, so contractions ("don't", "it’s") count as a single word.
Typographic apostrophes come back as straight ones.
"""

import re
from typing import List

WORD_PATTERN = re.compile(r"\b[\w'’]+\b")
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+")
PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def tokenize_words(text: str) -> List[str]:
    """Split *text* into word tokens, preserving case."""
    return [word.replace("’", "'") for word in WORD_PATTERN.findall(text)]


def tokenize_sentences(text: str) -> List[str]:
    """Split *text* into sentences ending in ``.``, ``!`` or ``?``.

    A trailing fragment without a terminator still counts as a sentence
    when it contains at least one word.
    """
    sentences: List[str] = []
    end = 0
    for match in SENTENCE_PATTERN.finditer(text):
        sentence = match.group().strip()
        if WORD_PATTERN.search(sentence):
            sentences.append(sentence)
        end = match.end()

    tail = text[end:].strip()
    if WORD_PATTERN.search(tail):
        sentences.append(tail)
    return sentences


def tokenize_paragraphs(text: str) -> List[str]:
    """Split *text* on blank lines, dropping empty paragraphs."""
    return [p.strip() for p in PARAGRAPH_SPLIT.split(text) if p.strip()]


__all__ = [
    "tokenize_words",
    "tokenize_sentences",
    "tokenize_paragraphs",
]
