#!/usr/bin/env python3
"""
Coherence analysis result types.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class CoherenceLevel(IntEnum):
    """Ordered cohesion levels; comparisons follow the numeric order."""

    VERY_LOW = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    VERY_HIGH = 4

    @classmethod
    def from_score(cls, score: float) -> "CoherenceLevel":
        if score >= 0.8:
            return cls.VERY_HIGH
        if score >= 0.65:
            return cls.HIGH
        if score >= 0.5:
            return cls.MEDIUM
        if score >= 0.35:
            return cls.LOW
        return cls.VERY_LOW


class CoherenceIssueType(str, Enum):
    TOPIC_SHIFT = "TopicShift"
    INCOMPLETE_THOUGHT = "IncompleteThought"
    BROKEN_REFERENCE = "BrokenReference"
    MISSING_CONTEXT = "MissingContext"


class IssueSeverity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def penalty(self) -> float:
        """Multiplier applied to the coherence score per issue of this severity."""
        return {IssueSeverity.HIGH: 0.8, IssueSeverity.MEDIUM: 0.9, IssueSeverity.LOW: 0.95}[self]


@dataclass(frozen=True)
class CoherenceIssue:
    type: CoherenceIssueType
    description: str
    position: int
    severity: IssueSeverity


@dataclass
class CoherenceAnalysisResult:
    """Intra-chunk coherence of one chunk."""

    coherence_score: float
    intra_sentence_similarity: float
    similarity_variance: float
    level: CoherenceLevel
    issues: list[CoherenceIssue] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    sentence_count: int = 0
    degraded: bool = False
