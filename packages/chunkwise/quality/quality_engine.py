#!/usr/bin/env python3
"""
Chunk quality measurement.

Aggregates per-chunk signals into document-level metrics and derives
rule-based recommendations from them.
"""

import logging
from typing import Any

import numpy as np

from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
from chunkwise.config.base import ChunkingSettings
from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.services.completeness import chunk_completeness, chunk_quality_score
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.quality import (
    ChunkingQualityMetrics,
    QualityRecommendation,
    RecommendationPriority,
    RecommendationType,
)
from chunkwise.embedding.base import EmbeddingProvider
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import content_words, ends_with_terminal_punctuation, jaccard, sentence_spans, words

logger = logging.getLogger(__name__)

SIZE_DISTRIBUTION_THRESHOLD = 0.7
MIN_SUGGESTED_CHUNK_SIZE = 256
LOW_OVERLAP_EFFECTIVENESS = 0.05


def _core(chunk: Chunk) -> str:
    """Chunk content without the overlap copied from the previous chunk."""
    return chunk.content[chunk.overlap_with_previous :].strip() or chunk.content


def _first_sentence(content: str) -> str:
    spans = sentence_spans(content)
    return content[spans[0][0] : spans[0][1]] if spans else content


def _last_sentence(content: str) -> str:
    spans = sentence_spans(content)
    return content[spans[-1][0] : spans[-1][1]] if spans else content


class ChunkQualityEngine:
    """
    Document-level chunking quality.

    ``overall_score`` is a weighted average of completeness, content
    consistency, boundary quality and size distribution, see
    ``OVERALL_WEIGHTS``. Consistency and boundary quality use embeddings
    when a provider is configured and lexical similarity otherwise, in
    which case the metrics are marked degraded.
    """

    OVERALL_WEIGHTS = {
        "average_completeness": 0.35,
        "content_consistency": 0.25,
        "boundary_quality": 0.25,
        "size_distribution": 0.15,
    }

    def __init__(
        self,
        embedding_provider: EmbeddingProvider | None = None,
        boundary_detector: SemanticBoundaryDetector | None = None,
        settings: ChunkingSettings | None = None,
    ) -> None:
        self.settings = settings or ChunkingSettings()
        self.boundary_detector = boundary_detector or SemanticBoundaryDetector.from_settings(
            self.settings, embedding_provider
        )

    async def evaluate_chunks(
        self,
        chunks: list[Chunk],
        cancellation: CancellationToken | None = None,
    ) -> ChunkingQualityMetrics:
        """Compute quality metrics for an ordered chunk sequence."""
        if not chunks:
            return ChunkingQualityMetrics(degraded=self.boundary_detector.embedding_provider is None)

        sizes = np.array([len(chunk.content) for chunk in chunks], dtype=np.float64)
        per_chunk_scores = []
        completeness = []
        for index, chunk in enumerate(chunks):
            check_cancelled(cancellation, "evaluate_chunks", index)
            completeness.append(chunk_completeness(chunk.content))
            score = chunk.quality_score if chunk.quality_score is not None else chunk_quality_score(chunk.content)
            per_chunk_scores.append(score)

        consistency, consistency_degraded = await self._content_consistency(chunks, cancellation)
        boundary_quality, boundary_degraded = await self._boundary_quality(chunks, cancellation)

        metrics = ChunkingQualityMetrics(
            average_completeness=float(np.mean(completeness)),
            content_consistency=consistency,
            boundary_quality=boundary_quality,
            average_chunk_size=float(sizes.mean()),
            chunk_size_std_dev=float(sizes.std()),
            total_chunks=len(chunks),
            per_chunk_scores=per_chunk_scores,
            size_distribution=self._size_distribution(sizes),
            overlap_effectiveness=self._overlap_effectiveness(chunks),
            information_density=self._information_density(chunks),
            degraded=consistency_degraded or boundary_degraded,
        )
        metrics.overall_score = self.overall_score(metrics)
        logger.debug(
            f"Evaluated {len(chunks)} chunks: overall {metrics.overall_score:.3f}, "
            f"completeness {metrics.average_completeness:.3f}, consistency {metrics.content_consistency:.3f}, "
            f"boundaries {metrics.boundary_quality:.3f} (degraded: {metrics.degraded})"
        )
        return metrics

    def overall_score(self, metrics: ChunkingQualityMetrics) -> float:
        total = sum(getattr(metrics, name) * weight for name, weight in self.OVERALL_WEIGHTS.items())
        return max(0.0, min(1.0, total))

    async def _content_consistency(
        self, chunks: list[Chunk], cancellation: CancellationToken | None
    ) -> tuple[float, bool]:
        """Mean topical similarity of neighbouring chunks."""
        if len(chunks) < 2:
            return 1.0, self.boundary_detector.embedding_provider is None

        similarities, degraded = await self.boundary_detector.pairwise_similarities_with_status(
            [_core(chunk) for chunk in chunks], cancellation
        )
        return float(np.mean([max(0.0, similarity) for similarity in similarities])), degraded

    async def _boundary_quality(
        self, chunks: list[Chunk], cancellation: CancellationToken | None
    ) -> tuple[float, bool]:
        """
        Fraction of cuts that align with a semantic boundary.

        A cut is aligned when the chunk before it ends a sentence and the
        sentences on either side of it are less similar than the detector's
        boundary threshold.
        """
        if len(chunks) < 2:
            return 1.0, self.boundary_detector.embedding_provider is None

        segments: list[str] = []
        for before, after in zip(chunks, chunks[1:]):
            segments.append(_last_sentence(before.content))
            segments.append(_first_sentence(_core(after)))

        similarities, degraded = await self.boundary_detector.pairwise_similarities_with_status(
            segments, cancellation
        )
        threshold = self.boundary_detector.similarity_threshold
        aligned = 0
        for cut, chunk in enumerate(chunks[:-1]):
            if ends_with_terminal_punctuation(chunk.content.strip()) and similarities[cut * 2] < threshold:
                aligned += 1
        return aligned / (len(chunks) - 1), degraded

    def _size_distribution(self, sizes: np.ndarray) -> float:
        """1 - coefficient of variation of chunk sizes."""
        mean = sizes.mean()
        if len(sizes) < 2 or mean == 0:
            return 1.0
        return max(0.0, 1.0 - float(sizes.std() / mean))

    def _overlap_effectiveness(self, chunks: list[Chunk]) -> float:
        if len(chunks) < 2:
            return 1.0
        scores = [
            jaccard(set(words(before.content)), set(words(after.content)))
            for before, after in zip(chunks, chunks[1:])
        ]
        return float(np.mean(scores))

    def _information_density(self, chunks: list[Chunk]) -> float:
        densities = []
        for chunk in chunks:
            tokens = words(chunk.content)
            densities.append(len(content_words(chunk.content)) / len(tokens) if tokens else 0.0)
        return float(np.mean(densities))

    def generate_recommendations(
        self, metrics: ChunkingQualityMetrics, options: ChunkingOptions
    ) -> list[QualityRecommendation]:
        """Rule-based recommendations, highest expected improvement first."""
        settings = self.settings
        recommendations = []

        if metrics.average_completeness < settings.COMPLETENESS_THRESHOLD:
            recommendations.append(
                QualityRecommendation(
                    type=RecommendationType.CHUNKING_STRATEGY,
                    priority=RecommendationPriority.HIGH,
                    description="Switch to Smart chunking to keep sentences complete",
                    expected_improvement=0.2,
                    suggested_parameters={
                        "Strategy": ChunkingStrategyType.SMART.value,
                        "Reason": f"Average completeness {metrics.average_completeness:.2f} is below "
                        f"{settings.COMPLETENESS_THRESHOLD:.2f}",
                    },
                )
            )

        if metrics.content_consistency < settings.CONSISTENCY_THRESHOLD:
            recommendations.append(
                QualityRecommendation(
                    type=RecommendationType.CHUNK_SIZE,
                    priority=RecommendationPriority.MEDIUM,
                    description="Reduce chunk size so that each chunk stays on one topic",
                    expected_improvement=0.15,
                    suggested_parameters=self._smaller_size(options, "Neighbouring chunks share little content"),
                )
            )

        if metrics.boundary_quality < settings.BOUNDARY_QUALITY_THRESHOLD:
            critical = metrics.boundary_quality < 0.6
            recommendations.append(
                QualityRecommendation(
                    type=RecommendationType.BOUNDARY_DETECTION,
                    priority=RecommendationPriority.CRITICAL if critical else RecommendationPriority.HIGH,
                    description="Use semantic boundary detection to cut at topic changes",
                    expected_improvement=0.25,
                    suggested_parameters={
                        "Strategy": (
                            ChunkingStrategyType.INTELLIGENT.value if critical else ChunkingStrategyType.SEMANTIC.value
                        ),
                        "Reason": "Current strategy produces poor semantic boundaries",
                    },
                )
            )

        if metrics.total_chunks > 1 and metrics.size_distribution < SIZE_DISTRIBUTION_THRESHOLD:
            recommendations.append(
                QualityRecommendation(
                    type=RecommendationType.CHUNK_SIZE,
                    priority=RecommendationPriority.HIGH,
                    description="Consider adjusting chunk size for better size distribution uniformity",
                    expected_improvement=0.15,
                    suggested_parameters=self._smaller_size(options, "Current chunking produces uneven chunk sizes"),
                )
            )

        if (
            metrics.total_chunks > 1
            and options.overlap_size == 0
            and metrics.overlap_effectiveness < LOW_OVERLAP_EFFECTIVENESS
        ):
            recommendations.append(
                QualityRecommendation(
                    type=RecommendationType.OVERLAP_CONFIGURATION,
                    priority=RecommendationPriority.LOW,
                    description="Add overlap between chunks to preserve context across cuts",
                    expected_improvement=0.08,
                    suggested_parameters={"OverlapSize": max(1, options.max_chunk_size // 10)},
                )
            )

        return sorted(recommendations, key=lambda recommendation: recommendation.expected_improvement, reverse=True)

    def _smaller_size(self, options: ChunkingOptions, reason: str) -> dict[str, Any]:
        return {
            "MaxChunkSize": max(MIN_SUGGESTED_CHUNK_SIZE, int(options.max_chunk_size * 0.8)),
            "Reason": reason,
        }
