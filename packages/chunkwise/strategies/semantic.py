#!/usr/bin/env python3
"""
Semantic chunking strategy.

Groups sentences until the size budget is approached and also closes a
chunk at a detected topic change or paragraph boundary once the chunk holds
enough content. Without an embedding provider the detected boundaries are
replaced by the document's paragraph breaks.
"""

import asyncio
import logging
from collections.abc import Callable

from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.exceptions import ConfigurationError
from chunkwise.domain.value_objects.boundaries import BoundaryType
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, split_to_budget
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import PARAGRAPH_BREAK_PATTERN, sentence_spans

logger = logging.getLogger(__name__)

MIN_FILL_RATIO = 0.3
CLOSING_BOUNDARY_TYPES = (BoundaryType.PARAGRAPH, BoundaryType.TOPIC_CHANGE)


class SemanticChunkingStrategy(ChunkingStrategy):
    """
    Sentence packing guided by semantic boundaries.

    Strategy options:
        SimilarityThreshold (float, detector default 0.7): boundary threshold
    """

    def __init__(self, boundary_detector: SemanticBoundaryDetector | None = None) -> None:
        super().__init__(ChunkingStrategyType.SEMANTIC.value)
        self.boundary_detector = boundary_detector or SemanticBoundaryDetector()

    def _detector_for(self, options: ChunkingOptions) -> SemanticBoundaryDetector:
        threshold = options.get_strategy_option("SimilarityThreshold", self.boundary_detector.similarity_threshold)
        if not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(
                f"SimilarityThreshold must be between 0.0 and 1.0, got {threshold}",
                {"option": "strategy_options.SimilarityThreshold", "value": threshold},
            )
        if threshold == self.boundary_detector.similarity_threshold:
            return self.boundary_detector
        return self.boundary_detector.with_threshold(threshold)

    async def chunk_async(
        self,
        document: DocumentContent | str,
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Chunk]:
        document = DocumentContent.coerce(document)
        if document.is_blank:
            return []

        text = document.text
        sentences = sentence_spans(text)
        cuts, degraded = await self._closing_cuts(text, sentences, options, cancellation)
        spans = self._pack(text, sentences, cuts, degraded, options, cancellation)
        chunks = self._build_chunks(document, spans, options, progress_callback, cancellation)
        return self._post_process(chunks, spans)

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        sentences = sentence_spans(text)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            cuts, degraded = asyncio.run(self._closing_cuts(text, sentences, options, cancellation))
        else:
            logger.warning(
                f"Semantic.chunk called from a running event loop for '{document.document_id}'; "
                "using paragraph breaks (use chunk_async for embedding boundaries)"
            )
            cuts, degraded = self._paragraph_cuts(text, sentences), True
        return self._pack(text, sentences, cuts, degraded, options, cancellation)

    async def _closing_cuts(
        self,
        text: str,
        sentences: list[tuple[int, int]],
        options: ChunkingOptions,
        cancellation: CancellationToken | None,
    ) -> tuple[set[int], bool]:
        """Sentence indices after which a chunk may close, and whether analysis was degraded."""
        detector = self._detector_for(options)
        if detector.embedding_provider is None or len(sentences) < 2:
            return self._paragraph_cuts(text, sentences), detector.embedding_provider is None

        segments = [text[start:end] for start, end in sentences]
        points, degraded = await detector.detect_boundaries_with_status(segments, cancellation)
        if degraded:
            return self._paragraph_cuts(text, sentences), True
        return {point.segment_index for point in points if point.type in CLOSING_BOUNDARY_TYPES}, False

    def _paragraph_cuts(self, text: str, sentences: list[tuple[int, int]]) -> set[int]:
        return {
            index
            for index in range(len(sentences) - 1)
            if PARAGRAPH_BREAK_PATTERN.search(text, sentences[index][1], sentences[index + 1][0])
        }

    def _pack(
        self,
        text: str,
        sentences: list[tuple[int, int]],
        cuts: set[int],
        degraded: bool,
        options: ChunkingOptions,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        budget = options.effective_chunk_size
        min_fill = budget * MIN_FILL_RATIO
        attributes = {ChunkPropsKeys.DEGRADED: degraded}

        spans: list[ChunkSpan] = []
        current: tuple[int, int] | None = None
        for index, (start, end) in enumerate(sentences):
            check_cancelled(cancellation, "Semantic.pack", index)
            if end - start > budget:
                if current is not None:
                    spans.append(ChunkSpan(*current, attributes=dict(attributes)))
                    current = None
                spans.extend(ChunkSpan(s, e, attributes=dict(attributes)) for s, e in split_to_budget(text, start, end, budget))
                continue

            if current is not None and end - current[0] > budget:
                spans.append(ChunkSpan(*current, attributes=dict(attributes)))
                current = None
            current = (start, end) if current is None else (current[0], end)

            if index in cuts and current[1] - current[0] >= min_fill:
                spans.append(ChunkSpan(*current, attributes=dict(attributes)))
                current = None

        if current is not None:
            spans.append(ChunkSpan(*current, attributes=dict(attributes)))

        logger.debug(f"Semantic strategy produced {len(spans)} spans from {len(sentences)} sentences")
        return spans
