#!/usr/bin/env python3
"""
Quality measurement and benchmark result types.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


@dataclass
class ChunkingQualityMetrics:
    """
    Document-level chunking quality.

    ``overall_score`` is the weighted average documented on
    ``ChunkQualityEngine.OVERALL_WEIGHTS``. ``degraded`` is set when an
    embedding provider was unavailable and statistical approximations were
    used for consistency and boundary quality.
    """

    average_completeness: float = 0.0
    content_consistency: float = 0.0
    boundary_quality: float = 0.0
    overall_score: float = 0.0
    average_chunk_size: float = 0.0
    chunk_size_std_dev: float = 0.0
    total_chunks: int = 0
    per_chunk_scores: list[float] = field(default_factory=list)
    size_distribution: float = 0.0
    overlap_effectiveness: float = 0.0
    information_density: float = 0.0
    degraded: bool = False


class RecommendationType(str, Enum):
    CHUNK_SIZE = "ChunkSize"
    BOUNDARY_DETECTION = "BoundaryDetection"
    CHUNKING_STRATEGY = "ChunkingStrategy"
    OVERLAP_CONFIGURATION = "OverlapConfiguration"


class RecommendationPriority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


@dataclass(frozen=True)
class QualityRecommendation:
    type: RecommendationType
    priority: RecommendationPriority
    description: str
    expected_improvement: float
    suggested_parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class QualityReport:
    """Result of a full chunking-and-scoring pass over one document."""

    document_id: str
    strategy_name: str
    metrics: ChunkingQualityMetrics
    recommendations: list[QualityRecommendation] = field(default_factory=list)
    processing_time: float = 0.0


@dataclass
class StrategyBenchmarkResult:
    """
    One strategy's slot in a benchmark.

    ``error`` is set instead of raising when the strategy failed.
    """

    strategy: str
    quality_score: float = 0.0
    processing_time: float = 0.0
    chunk_count: int = 0
    avg_chunk_size: float = 0.0
    metrics: ChunkingQualityMetrics | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class QualityBenchmarkResult:
    document_id: str
    recommended_strategy: str | None
    per_strategy_results: list[StrategyBenchmarkResult] = field(default_factory=list)
    recommendation_reason: str = ""
    recommendations: list[str] = field(default_factory=list)

    @property
    def successful_results(self) -> list[StrategyBenchmarkResult]:
        return [result for result in self.per_strategy_results if result.succeeded]

    @property
    def failed_results(self) -> list[StrategyBenchmarkResult]:
        return [result for result in self.per_strategy_results if not result.succeeded]


class QuestionType(str, Enum):
    FACTUAL = "Factual"
    CONCEPTUAL = "Conceptual"
    ANALYTICAL = "Analytical"
    PROCEDURAL = "Procedural"


@dataclass
class QABenchmarkResult:
    """Answerability of generated questions against a chunk set."""

    question_count: int = 0
    answerable_count: int = 0
    coverage_percentage: float = 0.0
    question_type_distribution: dict[QuestionType, int] = field(default_factory=dict)
    skipped: bool = False
    skip_reason: str | None = None
