#!/usr/bin/env python3
"""
Per-chunk completeness scoring.

A sentence unit is complete when it is longer than ten characters and does
not end in a truncation marker. A chunk's completeness is the fraction of
its sentence units that are complete.
"""

from chunkwise.utils.text import (
    MIN_SENTENCE_LENGTH,
    ends_with_terminal_punctuation,
    is_truncated,
    sentence_spans,
)


def is_complete_sentence(sentence: str) -> bool:
    stripped = sentence.strip()
    return len(stripped) > MIN_SENTENCE_LENGTH and not is_truncated(stripped)


def chunk_completeness(content: str) -> float:
    """Fraction of well-formed sentence units in ``content``."""
    spans = sentence_spans(content)
    if not spans:
        return 0.0
    complete = sum(1 for start, end in spans if is_complete_sentence(content[start:end]))
    return complete / len(spans)


def structural_score(content: str) -> float:
    """
    Surface well-formedness of a chunk.

    Base 0.5, +0.2 for terminal punctuation, +0.1 for an upper-case (or
    non-alphabetic) start, +0.2 for a length between 50 and 2000 characters.
    """
    stripped = content.strip()
    if not stripped:
        return 0.0

    score = 0.5
    if ends_with_terminal_punctuation(stripped):
        score += 0.2
    first = stripped[0]
    if first.isupper() or not first.isalpha():
        score += 0.1
    if 50 < len(stripped) < 2000:
        score += 0.2
    return min(1.0, score)


def chunk_quality_score(content: str) -> float:
    """Per-chunk quality: mean of completeness and structural score."""
    return (chunk_completeness(content) + structural_score(content)) / 2
