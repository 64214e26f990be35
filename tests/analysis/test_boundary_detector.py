#!/usr/bin/env python3
"""Tests for SemanticBoundaryDetector."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
from chunkwise.domain.exceptions import OperationCancelledError
from chunkwise.domain.value_objects.boundaries import BoundaryPoint, BoundaryType
from chunkwise.utils.cancellation import CancellationToken

SEGMENTS = [
    "Cats purr when they sleep.",
    "Cats purr when they eat.",
    "Stock markets fell sharply today.",
]


class TestBoundaryClassification:
    """Test suite for boundary classification rules."""

    @pytest.fixture()
    def detector(self):
        return SemanticBoundaryDetector()

    def test_topic_change_ignores_punctuation(self, detector):
        """Test a very low similarity is a topic change even after a full stop."""
        assert detector.classify(0.2, "The paragraph ends here.") == BoundaryType.TOPIC_CHANGE

    def test_sentence_boundary(self, detector):
        """Test a moderate similarity after terminal punctuation is a sentence boundary."""
        assert detector.classify(0.6, "The paragraph ends here.") == BoundaryType.SENTENCE

    def test_paragraph_boundary(self, detector):
        """Test a moderate similarity without terminal punctuation is a paragraph boundary."""
        assert detector.classify(0.6, "a heading without punctuation") == BoundaryType.PARAGRAPH

    def test_confidence(self, detector):
        """Test confidence grows with the distance from the threshold."""
        assert detector.confidence(0.7) == 0.0
        assert detector.confidence(0.45) == pytest.approx(0.5)
        assert detector.confidence(-1.0) == 1.0

    @pytest.mark.parametrize(("similarity", "topic_change"), [(0.5, 0.6), (1.2, 0.5)])
    def test_invalid_thresholds(self, similarity, topic_change):
        """Test inconsistent thresholds are rejected."""
        with pytest.raises(ValueError, match="Thresholds"):
            SemanticBoundaryDetector(similarity_threshold=similarity, topic_change_threshold=topic_change)

    def test_with_threshold_keeps_order(self, detector):
        """Test lowering the boundary threshold also caps the topic-change threshold."""
        lowered = detector.with_threshold(0.4)

        assert lowered.similarity_threshold == 0.4
        assert lowered.topic_change_threshold == 0.4

    def test_boundary_point_validation(self):
        """Test boundary points reject out-of-range values."""
        with pytest.raises(ValueError):
            BoundaryPoint(segment_index=0, similarity=1.5, confidence=0.5, type=BoundaryType.SENTENCE)


class TestBoundaryDetection:
    """Test suite for boundary detection over segments."""

    @pytest.mark.asyncio()
    async def test_detects_topic_change(self, embedding_provider):
        """Test an unrelated segment produces a topic-change boundary."""
        # Arrange
        detector = SemanticBoundaryDetector(embedding_provider)

        # Act
        boundaries, degraded = await detector.detect_boundaries_with_status(SEGMENTS)

        # Assert
        assert not degraded
        assert len(boundaries) == 1
        assert boundaries[0].segment_index == 1
        assert boundaries[0].type == BoundaryType.TOPIC_CHANGE

    @pytest.mark.asyncio()
    async def test_single_segment(self, embedding_provider):
        """Test fewer than two segments have no boundaries."""
        detector = SemanticBoundaryDetector(embedding_provider)

        assert await detector.detect_boundaries(["Only one segment."]) == []

    @pytest.mark.asyncio()
    async def test_lexical_fallback_is_degraded(self):
        """Test lexical similarity is used and reported without a provider."""
        detector = SemanticBoundaryDetector()

        similarities, degraded = await detector.pairwise_similarities_with_status(SEGMENTS)

        assert degraded
        assert len(similarities) == 2
        assert similarities[0] > similarities[1]

    @pytest.mark.asyncio()
    async def test_provider_failure_falls_back(self):
        """Test a failing provider degrades to lexical similarity instead of raising."""
        provider = MagicMock()
        provider.embed_batch = AsyncMock(side_effect=RuntimeError("timeout"))
        detector = SemanticBoundaryDetector(provider)

        boundaries, degraded = await detector.detect_boundaries_with_status(SEGMENTS)

        assert degraded
        assert all(boundary.segment_index in (0, 1) for boundary in boundaries)

    @pytest.mark.asyncio()
    async def test_batches_embeddings(self, embedding_provider):
        """Test segments are embedded in batches of batch_size."""
        provider = MagicMock(wraps=embedding_provider)
        provider.embed_batch = AsyncMock(side_effect=embedding_provider.embed_batch)
        provider.similarity = embedding_provider.similarity
        detector = SemanticBoundaryDetector(provider, batch_size=2)

        await detector.pairwise_similarities(SEGMENTS)

        assert provider.embed_batch.await_count == 2

    @pytest.mark.asyncio()
    async def test_cancellation(self, embedding_provider):
        """Test a cancelled token stops detection."""
        token = CancellationToken()
        token.cancel()
        detector = SemanticBoundaryDetector(embedding_provider)

        with pytest.raises(OperationCancelledError):
            await detector.detect_boundaries(SEGMENTS, token)


class TestSuggestBoundaries:
    """Test suite for span suggestions."""

    @pytest.mark.asyncio()
    async def test_spans_cover_content_in_order(self, embedding_provider, sample_text):
        """Test suggested spans are ordered, non-overlapping and carry previews."""
        # Arrange
        detector = SemanticBoundaryDetector(embedding_provider)

        # Act
        spans = await detector.suggest_boundaries(sample_text, 300)

        # Assert
        assert spans
        for previous, span in zip(spans, spans[1:]):
            assert previous.end_position <= span.start_position
        for span in spans:
            assert span.start_position < span.end_position
            assert 0.0 <= span.coherence_score <= 1.0
            assert len(span.content_preview) <= 103

    @pytest.mark.asyncio()
    async def test_invalid_size(self):
        """Test a non-positive size is rejected."""
        with pytest.raises(ValueError):
            await SemanticBoundaryDetector().suggest_boundaries("Some text.", 0)

    @pytest.mark.asyncio()
    async def test_empty_content(self):
        """Test blank content yields no spans."""
        assert await SemanticBoundaryDetector().suggest_boundaries("   ", 100) == []

    @pytest.mark.asyncio()
    async def test_short_span_merges_into_previous(self):
        """Test a span under 0.3 x max size joins the span before it with averaged coherence."""
        # Arrange
        first = "The storage layer writes every record to disk before a request is acknowledged."
        short = "Short note."
        last = "Replication copies each record to two other nodes in the cluster for safety."
        content = f"{first}\n\n{short}\n\n{last}"
        detector = SemanticBoundaryDetector()
        detector.detect_boundaries = AsyncMock(
            return_value=[
                BoundaryPoint(0, 0.2, 1.0, BoundaryType.TOPIC_CHANGE),
                BoundaryPoint(1, 0.4, 0.6, BoundaryType.TOPIC_CHANGE),
            ]
        )

        # Act
        spans = await detector.suggest_boundaries(content, 100)

        # Assert
        assert [(span.start_position, span.end_position) for span in spans] == [
            (0, content.index(short) + len(short)),
            (content.index(last), len(content)),
        ]
        assert spans[0].coherence_score == pytest.approx((0.8 + 0.6) / 2)
        assert spans[0].reason == "TopicChange boundary (confidence: 1.00)"
        assert spans[1].coherence_score == pytest.approx(0.8)
        assert spans[1].reason == "End of content"

    @pytest.mark.asyncio()
    async def test_short_first_span_merges_forward(self):
        """Test a short leading span is held and merged into the span after it."""
        short = "Short note."
        middle = "The storage layer writes every record to disk before a request is acknowledged."
        last = "Replication copies each record to two other nodes in the cluster for safety."
        content = f"{short}\n\n{middle}\n\n{last}"
        detector = SemanticBoundaryDetector()
        detector.detect_boundaries = AsyncMock(
            return_value=[
                BoundaryPoint(0, 0.4, 0.6, BoundaryType.TOPIC_CHANGE),
                BoundaryPoint(1, 0.2, 1.0, BoundaryType.TOPIC_CHANGE),
            ]
        )

        spans = await detector.suggest_boundaries(content, 100)

        assert [(span.start_position, span.end_position) for span in spans] == [
            (0, content.index(middle) + len(middle)),
            (content.index(last), len(content)),
        ]
        assert spans[0].coherence_score == pytest.approx(0.7)

    @pytest.mark.asyncio()
    async def test_long_span_splits_in_half(self):
        """Test a span over 1.5 x max size splits near its middle and both halves keep 90% coherence."""
        # Arrange
        paragraphs = [
            "The storage layer writes every record to disk before a request is acknowledged.",
            "Replication copies each record to two other nodes in the cluster for safety.",
            "Compaction merges small files in the background to keep reads fast and cheap.",
            "Backups run nightly and are kept for thirty days in a separate storage region.",
        ]
        content = "\n\n".join(paragraphs)
        detector = SemanticBoundaryDetector()
        detector.detect_boundaries = AsyncMock(return_value=[])

        # Act
        spans = await detector.suggest_boundaries(content, 100)

        # Assert
        assert len(spans) == 2
        head, tail = spans
        assert head.start_position == 0
        assert head.end_position == tail.start_position
        assert tail.end_position == len(content)
        assert len(content) // 6 <= head.end_position <= len(content) // 2
        assert content[: head.end_position].rstrip().endswith(".")
        assert head.coherence_score == pytest.approx(0.8 * 0.9)
        assert tail.coherence_score == pytest.approx(0.8 * 0.9)
        assert head.reason == "End of content (split for size)"
        assert tail.reason == "Continuation (split for size)"
