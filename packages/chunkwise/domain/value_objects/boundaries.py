#!/usr/bin/env python3
"""
Boundary value objects used by the semantic boundary detector and the
coherence analyzer.
"""

from dataclasses import dataclass
from enum import Enum


class BoundaryType(str, Enum):
    """Kind of cut between two consecutive segments."""

    SENTENCE = "Sentence"
    PARAGRAPH = "Paragraph"
    TOPIC_CHANGE = "TopicChange"


@dataclass(frozen=True)
class BoundaryPoint:
    """
    A detected boundary after segment ``segment_index``.

    The boundary sits between segments ``segment_index`` and
    ``segment_index + 1``.
    """

    segment_index: int
    similarity: float
    confidence: float
    type: BoundaryType

    def __post_init__(self) -> None:
        if not -1.0 <= self.similarity <= 1.0:
            raise ValueError(f"Similarity must be between -1.0 and 1.0, got {self.similarity}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")


@dataclass(frozen=True)
class ChunkBoundary:
    """A proposed cut span over raw content."""

    start_position: int
    end_position: int
    coherence_score: float
    reason: str
    content_preview: str

    @property
    def length(self) -> int:
        return self.end_position - self.start_position
