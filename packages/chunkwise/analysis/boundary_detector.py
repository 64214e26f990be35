#!/usr/bin/env python3
"""
Semantic boundary detection between consecutive text segments.

Consecutive segments are embedded and compared; pairs whose similarity
falls below the boundary threshold become boundary points. Without an
embedding provider (or when it fails) similarities fall back to a
lexical term-frequency cosine.
"""

import logging
from dataclasses import replace

import numpy as np
from numpy.typing import NDArray

from chunkwise.config.base import ChunkingSettings
from chunkwise.domain.value_objects.boundaries import BoundaryPoint, BoundaryType, ChunkBoundary
from chunkwise.embedding.base import EmbeddingProvider
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import (
    ends_with_terminal_punctuation,
    find_cut_before,
    lexical_similarity,
    paragraph_spans,
    sentence_spans,
)

logger = logging.getLogger(__name__)

MERGE_DISTANCE = 2
LENGTH_RATIO_BOOST_THRESHOLD = 0.3
LENGTH_RATIO_BOOST = 1.2
MIN_SPAN_RATIO = 0.3
MAX_SPAN_RATIO = 1.5
SPLIT_COHERENCE_FACTOR = 0.9
FINAL_SPAN_COHERENCE = 0.8
PREVIEW_LENGTH = 100


class SemanticBoundaryDetector:
    """
    Scores similarity between consecutive segments and classifies cuts.

    Classification of a pair with similarity ``s``:

    - ``s < topic_change_threshold``: TopicChange, whatever the punctuation
    - ``s < similarity_threshold`` and the first segment ends a sentence: Sentence
    - otherwise: Paragraph
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider | None = None,
        similarity_threshold: float = 0.7,
        topic_change_threshold: float = 0.5,
        batch_size: int = 32,
    ) -> None:
        if not 0.0 <= topic_change_threshold <= similarity_threshold <= 1.0:
            raise ValueError(
                "Thresholds must satisfy 0 <= topic_change_threshold <= similarity_threshold <= 1, "
                f"got {topic_change_threshold} and {similarity_threshold}"
            )
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self.embedding_provider = embedding_provider
        self.similarity_threshold = similarity_threshold
        self.topic_change_threshold = topic_change_threshold
        self.batch_size = batch_size

    @classmethod
    def from_settings(
        cls, settings: ChunkingSettings, embedding_provider: EmbeddingProvider | None = None
    ) -> "SemanticBoundaryDetector":
        return cls(
            embedding_provider,
            similarity_threshold=settings.BOUNDARY_SIMILARITY_THRESHOLD,
            topic_change_threshold=settings.TOPIC_CHANGE_THRESHOLD,
            batch_size=settings.EMBEDDING_BATCH_SIZE,
        )

    def with_threshold(self, similarity_threshold: float) -> "SemanticBoundaryDetector":
        """Copy of this detector using a different boundary threshold."""
        return SemanticBoundaryDetector(
            self.embedding_provider,
            similarity_threshold=similarity_threshold,
            topic_change_threshold=min(self.topic_change_threshold, similarity_threshold),
            batch_size=self.batch_size,
        )

    def classify(self, similarity: float, first_segment: str) -> BoundaryType:
        if similarity < self.topic_change_threshold:
            return BoundaryType.TOPIC_CHANGE
        if similarity < self.similarity_threshold and ends_with_terminal_punctuation(first_segment):
            return BoundaryType.SENTENCE
        return BoundaryType.PARAGRAPH

    def confidence(self, similarity: float) -> float:
        return min(1.0, abs(similarity - self.similarity_threshold) * 2)

    async def detect_boundaries(
        self,
        segments: list[str],
        cancellation: CancellationToken | None = None,
    ) -> list[BoundaryPoint]:
        """
        Boundary points between consecutive segments, ordered by segment index.

        Raises:
            OperationCancelledError: If ``cancellation`` fires between segments
        """
        boundaries, _ = await self.detect_boundaries_with_status(segments, cancellation)
        return boundaries

    async def detect_boundaries_with_status(
        self,
        segments: list[str],
        cancellation: CancellationToken | None = None,
    ) -> tuple[list[BoundaryPoint], bool]:
        """Boundary points plus whether lexical similarity stood in for embeddings."""
        if len(segments) < 2:
            return [], self.embedding_provider is None

        similarities, degraded = await self._similarities(segments, cancellation)

        boundaries = []
        for index, similarity in enumerate(similarities):
            check_cancelled(cancellation, "detect_boundaries", index)
            if similarity < self.similarity_threshold:
                boundaries.append(
                    BoundaryPoint(
                        segment_index=index,
                        similarity=similarity,
                        confidence=self.confidence(similarity),
                        type=self.classify(similarity, segments[index]),
                    )
                )

        return self._post_process(boundaries, segments), degraded

    async def pairwise_similarities(
        self,
        segments: list[str],
        cancellation: CancellationToken | None = None,
    ) -> list[float]:
        """Similarity of each segment with the next one."""
        similarities, _ = await self._similarities(segments, cancellation)
        return similarities

    async def pairwise_similarities_with_status(
        self,
        segments: list[str],
        cancellation: CancellationToken | None = None,
    ) -> tuple[list[float], bool]:
        """Consecutive similarities plus whether lexical similarity stood in for embeddings."""
        if len(segments) < 2:
            return [], self.embedding_provider is None
        return await self._similarities(segments, cancellation)

    async def _similarities(
        self,
        segments: list[str],
        cancellation: CancellationToken | None,
    ) -> tuple[list[float], bool]:
        embeddings = await self._embed_segments(segments, cancellation)
        similarities = []
        for index in range(len(segments) - 1):
            check_cancelled(cancellation, "pairwise_similarities", index)
            if embeddings is None:
                similarity = lexical_similarity(segments[index], segments[index + 1])
            else:
                similarity = self.embedding_provider.similarity(embeddings[index], embeddings[index + 1])  # type: ignore[union-attr]
            similarities.append(max(-1.0, min(1.0, float(similarity))))
        return similarities, embeddings is None

    async def _embed_segments(
        self,
        segments: list[str],
        cancellation: CancellationToken | None,
    ) -> NDArray[np.float32] | None:
        """Embed segments batch by batch; None means use lexical similarity."""
        if self.embedding_provider is None:
            return None

        batches = []
        for offset in range(0, len(segments), self.batch_size):
            check_cancelled(cancellation, "embed_segments", offset)
            batch = segments[offset : offset + self.batch_size]
            try:
                batches.append(await self.embedding_provider.embed_batch(batch))
            except Exception as e:
                logger.warning(f"Embedding provider failed, using lexical similarity: {e}")
                return None
        return np.vstack(batches)

    def _post_process(self, boundaries: list[BoundaryPoint], segments: list[str]) -> list[BoundaryPoint]:
        """Merge boundaries within two segments of each other and boost uneven-length cuts."""
        merged: list[BoundaryPoint] = []
        for boundary in boundaries:
            if merged and boundary.segment_index - merged[-1].segment_index <= MERGE_DISTANCE:
                if boundary.confidence > merged[-1].confidence:
                    merged[-1] = boundary
                continue
            merged.append(boundary)

        processed = []
        for boundary in merged:
            current_length = len(segments[boundary.segment_index])
            next_length = len(segments[boundary.segment_index + 1])
            longest = max(current_length, next_length)
            if longest and min(current_length, next_length) / longest < LENGTH_RATIO_BOOST_THRESHOLD:
                boundary = replace(boundary, confidence=min(1.0, boundary.confidence * LENGTH_RATIO_BOOST))
            processed.append(boundary)
        return processed

    async def suggest_boundaries(
        self,
        content: str,
        max_chunk_size: int,
        cancellation: CancellationToken | None = None,
    ) -> list[ChunkBoundary]:
        """
        Propose chunk spans over ``content``.

        Spans shorter than 0.3 x ``max_chunk_size`` are merged into a
        neighbor; spans longer than 1.5 x ``max_chunk_size`` are split into
        two halves that keep 90% of the parent's coherence score.
        """
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")

        spans = self._segment_spans(content, max_chunk_size)
        if not spans:
            return []

        segments = [content[start:end] for start, end in spans]
        points = await self.detect_boundaries(segments, cancellation)

        boundaries = []
        span_start = spans[0][0]
        for point in points:
            span_end = spans[point.segment_index][1]
            boundaries.append(
                ChunkBoundary(
                    start_position=span_start,
                    end_position=span_end,
                    coherence_score=max(0.0, min(1.0, 1.0 - point.similarity)),
                    reason=f"{point.type.value} boundary (confidence: {point.confidence:.2f})",
                    content_preview=_preview(content, span_start, span_end),
                )
            )
            span_start = spans[point.segment_index + 1][0]

        if span_start < spans[-1][1]:
            boundaries.append(
                ChunkBoundary(
                    start_position=span_start,
                    end_position=spans[-1][1],
                    coherence_score=FINAL_SPAN_COHERENCE,
                    reason="End of content",
                    content_preview=_preview(content, span_start, spans[-1][1]),
                )
            )

        return self._normalize_spans(content, boundaries, max_chunk_size)

    def _segment_spans(self, content: str, max_chunk_size: int) -> list[tuple[int, int]]:
        """Paragraph spans, with over-long paragraphs packed sentence by sentence."""
        spans = []
        for start, end in paragraph_spans(content):
            if end - start <= max_chunk_size:
                spans.append((start, end))
                continue

            current_start: int | None = None
            current_end = start
            for sentence_start, sentence_end in sentence_spans(content, start, end):
                if current_start is not None and sentence_end - current_start > max_chunk_size:
                    spans.append((current_start, current_end))
                    current_start = None
                if current_start is None:
                    current_start = sentence_start
                current_end = sentence_end
            if current_start is not None:
                spans.append((current_start, current_end))
        return spans

    def _normalize_spans(
        self, content: str, boundaries: list[ChunkBoundary], max_chunk_size: int
    ) -> list[ChunkBoundary]:
        merged: list[ChunkBoundary] = []
        pending: ChunkBoundary | None = None
        for boundary in boundaries:
            if pending is not None:
                boundary = _merge(content, pending, boundary)
                pending = None
            if boundary.length < max_chunk_size * MIN_SPAN_RATIO:
                if merged:
                    merged[-1] = _merge(content, merged[-1], boundary)
                else:
                    pending = boundary
                continue
            merged.append(boundary)
        if pending is not None:
            merged.append(pending)

        normalized = []
        for boundary in merged:
            if boundary.length <= max_chunk_size * MAX_SPAN_RATIO:
                normalized.append(boundary)
                continue

            midpoint = find_cut_before(content, boundary.start_position, boundary.start_position + boundary.length // 2)
            coherence = boundary.coherence_score * SPLIT_COHERENCE_FACTOR
            normalized.append(
                replace(
                    boundary,
                    end_position=midpoint,
                    coherence_score=coherence,
                    reason=f"{boundary.reason} (split for size)",
                    content_preview=_preview(content, boundary.start_position, midpoint),
                )
            )
            normalized.append(
                ChunkBoundary(
                    start_position=midpoint,
                    end_position=boundary.end_position,
                    coherence_score=coherence,
                    reason="Continuation (split for size)",
                    content_preview=_preview(content, midpoint, boundary.end_position),
                )
            )
        return normalized


def _merge(content: str, first: ChunkBoundary, second: ChunkBoundary) -> ChunkBoundary:
    return ChunkBoundary(
        start_position=first.start_position,
        end_position=second.end_position,
        coherence_score=(first.coherence_score + second.coherence_score) / 2,
        reason=first.reason if first.length >= second.length else second.reason,
        content_preview=_preview(content, first.start_position, second.end_position),
    )


def _preview(content: str, start: int, end: int) -> str:
    """First 100 characters of a span, cut back to a word with an ellipsis when truncated."""
    preview = content[start : min(end, start + PREVIEW_LENGTH)]
    if end - start > PREVIEW_LENGTH:
        last_space = preview.rfind(" ")
        if last_space > 0:
            preview = preview[:last_space]
        preview += "..."
    return preview.replace("\n", " ").strip()
