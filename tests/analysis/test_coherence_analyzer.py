#!/usr/bin/env python3
"""Tests for ChunkCoherenceAnalyzer."""

import math
from statistics import mean, pstdev

import numpy as np
import pytest

from chunkwise.analysis.coherence_analyzer import ChunkCoherenceAnalyzer, split_sentences
from chunkwise.domain.exceptions import OperationCancelledError
from chunkwise.domain.value_objects.coherence import CoherenceIssueType, CoherenceLevel, IssueSeverity
from chunkwise.embedding.base import EmbeddingProvider
from chunkwise.utils.cancellation import CancellationToken

COHESIVE_CHUNK = (
    "Cats purr while sleeping in the sun. "
    "Cats purr while eating fresh fish. "
    "Cats purr while playing with yarn."
)

MIXED_CHUNK = (
    "Cats purr while sleeping in the sun. "
    "Stock markets fell sharply on Monday. "
    "Rainfall totals broke regional records."
)


class TestSplitSentences:
    """Test suite for sentence splitting."""

    def test_splits_on_terminal_punctuation(self):
        assert len(split_sentences(COHESIVE_CHUNK)) == 3

    def test_falls_back_to_lines(self):
        """Test unpunctuated text is split on newlines."""
        assert split_sentences("first line\nsecond line\nthird line") == ["first line", "second line", "third line"]


class TestChunkCoherenceAnalyzer:
    """Test suite for ChunkCoherenceAnalyzer."""

    @pytest.fixture()
    def analyzer(self, embedding_provider):
        return ChunkCoherenceAnalyzer(embedding_provider)

    @pytest.mark.asyncio()
    async def test_single_sentence(self, analyzer):
        """Test a single sentence gets the fixed single-sentence score."""
        result = await analyzer.analyze("Cats purr while sleeping in the sun.")

        assert result.coherence_score == pytest.approx(0.8)
        assert result.level == CoherenceLevel.HIGH
        assert result.sentence_count == 1

    @pytest.mark.asyncio()
    async def test_empty_chunk(self, analyzer):
        """Test empty content scores zero with a missing-context issue."""
        result = await analyzer.analyze("   ")

        assert result.coherence_score == 0.0
        assert result.level == CoherenceLevel.VERY_LOW
        assert result.issues[0].type == CoherenceIssueType.MISSING_CONTEXT

    @pytest.mark.asyncio()
    async def test_cohesive_beats_mixed(self, analyzer):
        """Test a single-topic chunk scores higher than a mixed-topic chunk."""
        # Act
        cohesive = await analyzer.analyze(COHESIVE_CHUNK)
        mixed = await analyzer.analyze(MIXED_CHUNK)

        # Assert
        assert cohesive.coherence_score > mixed.coherence_score
        assert not cohesive.degraded
        assert any(issue.type == CoherenceIssueType.TOPIC_SHIFT for issue in mixed.issues)
        assert any("topic shifts" in suggestion for suggestion in mixed.suggestions)
        assert 0.0 <= mixed.coherence_score <= 1.0

    @pytest.mark.asyncio()
    async def test_severe_topic_shift_is_high(self, analyzer):
        """Test unrelated sentences produce high-severity topic shifts."""
        result = await analyzer.analyze(MIXED_CHUNK)

        shifts = [issue for issue in result.issues if issue.type == CoherenceIssueType.TOPIC_SHIFT]
        assert any(issue.severity == IssueSeverity.HIGH for issue in shifts)

    @pytest.mark.asyncio()
    async def test_without_provider_skips_topic_shifts(self):
        """Test lexical fallback is degraded and never reports topic shifts."""
        analyzer = ChunkCoherenceAnalyzer()

        result = await analyzer.analyze(MIXED_CHUNK)

        assert result.degraded
        assert all(issue.type != CoherenceIssueType.TOPIC_SHIFT for issue in result.issues)

    @pytest.mark.asyncio()
    async def test_reference_and_short_sentence_issues(self, analyzer):
        """Test a leading pronoun and short edge sentences are flagged."""
        result = await analyzer.analyze("It was fine. The committee approved the annual budget. Done.")

        types = [issue.type for issue in result.issues]
        assert CoherenceIssueType.BROKEN_REFERENCE in types
        assert types.count(CoherenceIssueType.INCOMPLETE_THOUGHT) == 2

    @pytest.mark.asyncio()
    async def test_analyze_chunks_flags_below_average(self, analyzer):
        """Test a chunk well below the batch average gets a restructuring hint."""
        # Act
        results = await analyzer.analyze_chunks([COHESIVE_CHUNK, MIXED_CHUNK])

        # Assert
        assert len(results) == 2
        assert any("below average" in suggestion for suggestion in results[1].suggestions)
        assert not any("below average" in suggestion for suggestion in results[0].suggestions)

    @pytest.mark.asyncio()
    async def test_cancellation(self, analyzer):
        """Test a cancelled token stops batch analysis."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await analyzer.analyze_chunks([COHESIVE_CHUNK], token)


class ScriptedEmbeddingProvider(EmbeddingProvider):
    """Returns a fixed two-dimensional vector per sentence."""

    def __init__(self, vectors):
        self.vectors = vectors

    @property
    def dimension(self) -> int:
        return 2

    async def embed(self, text, **kwargs):
        return np.asarray(self.vectors[text], dtype=np.float32)


class TestCoherenceScoring:
    """Test suite for the coherence score formula."""

    @pytest.mark.asyncio()
    async def test_score_from_mean_and_spread(self):
        """Test the score is mean x (1 - spread / 2) with one high-severity topic shift penalty."""
        # Arrange
        analyzer = ChunkCoherenceAnalyzer(
            ScriptedEmbeddingProvider(
                {
                    "The engine converts fuel into motion.": [1.0, 0.0],
                    "Pistons move inside each cylinder.": [0.6, 0.8],
                    "Gardens need water during summer.": [0.0, 1.0],
                }
            )
        )
        similarities = [0.6, 0.0, 0.8]
        spread = pstdev(similarities)

        # Act
        result = await analyzer.analyze(
            "The engine converts fuel into motion. Pistons move inside each cylinder. Gardens need water during summer."
        )

        # Assert
        assert not result.degraded
        assert result.intra_sentence_similarity == pytest.approx(mean(similarities), abs=1e-6)
        assert result.similarity_variance == pytest.approx(spread, abs=1e-6)
        assert [(issue.type, issue.severity) for issue in result.issues] == [
            (CoherenceIssueType.TOPIC_SHIFT, IssueSeverity.HIGH)
        ]
        assert result.issues[0].position == 0
        assert result.coherence_score == pytest.approx(mean(similarities) * (1 - spread * 0.5) * 0.8, abs=1e-6)

    @pytest.mark.asyncio()
    async def test_penalties_multiply(self):
        """Test a medium topic shift, a short opener and a leading pronoun each apply their penalty."""
        # Arrange
        analyzer = ChunkCoherenceAnalyzer(
            ScriptedEmbeddingProvider(
                {
                    "It runs.": [1.0, 0.0],
                    "Pistons move inside each cylinder.": [0.25, math.sqrt(1 - 0.25**2)],
                }
            )
        )

        # Act
        result = await analyzer.analyze("It runs. Pistons move inside each cylinder.")

        # Assert
        assert [(issue.type, issue.severity) for issue in result.issues] == [
            (CoherenceIssueType.TOPIC_SHIFT, IssueSeverity.MEDIUM),
            (CoherenceIssueType.INCOMPLETE_THOUGHT, IssueSeverity.MEDIUM),
            (CoherenceIssueType.BROKEN_REFERENCE, IssueSeverity.MEDIUM),
        ]
        assert result.similarity_variance == pytest.approx(0.0, abs=1e-6)
        assert result.coherence_score == pytest.approx(0.25 * 0.9 * 0.9 * 0.9, abs=1e-6)
        assert result.level == CoherenceLevel.VERY_LOW
