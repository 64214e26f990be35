#!/usr/bin/env python3
"""Tests for the provider-aware strategies: Semantic and Intelligent."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
from chunkwise.domain.exceptions import ConfigurationError
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions
from chunkwise.strategies.intelligent import IntelligentChunkingStrategy, UnitKind, unit_importance
from chunkwise.strategies.semantic import SemanticChunkingStrategy

# Two sentences that fill more than half of a 100-character budget, then a short unrelated one.
FIRST_PARAGRAPH = "Revenue grew strongly across all regions during the quarter."
SECOND_PARAGRAPH = "The office moved downtown."
TWO_TOPICS = f"{FIRST_PARAGRAPH}\n\n{SECOND_PARAGRAPH}"

STRUCTURED_DOCUMENT = (
    "# Report\n\n"
    "The quarterly numbers are summarised below.\n\n"
    "| Region | Sales |\n"
    "|--------|-------|\n"
    "| North  | 120   |\n"
    "| South  | 95    |\n\n"
    "- Hire two engineers\n"
    "- Open the new office\n\n"
    "```\nprint('report')\n```"
)


def make_completion_provider(reply="YES", side_effect=None):
    provider = MagicMock()
    provider.name = "mock-llm"
    provider.MAX_TIMEOUT = 5.0
    provider.complete = AsyncMock(return_value=reply, side_effect=side_effect)
    return provider


class TestSemanticChunkingStrategy:
    """Test suite for SemanticChunkingStrategy."""

    @pytest.fixture()
    def strategy(self, embedding_provider):
        return SemanticChunkingStrategy(SemanticBoundaryDetector(embedding_provider))

    def test_chunks_within_budget(self, strategy, sample_text, small_options):
        """Test chunks respect the size limit and are not degraded with a provider."""
        # Act
        chunks = strategy.chunk(sample_text, small_options)

        # Assert
        assert len(chunks) > 1
        assert all(len(chunk.content) <= small_options.max_chunk_size for chunk in chunks)
        assert all(chunk.props[ChunkPropsKeys.DEGRADED] is False for chunk in chunks)

    def test_without_provider_is_degraded(self, sample_text, small_options):
        """Test paragraph breaks stand in for embeddings and the result is marked degraded."""
        strategy = SemanticChunkingStrategy()

        chunks = strategy.chunk(sample_text, small_options)

        assert chunks
        assert all(chunk.props[ChunkPropsKeys.DEGRADED] is True for chunk in chunks)

    @pytest.mark.asyncio()
    async def test_chunk_async_uses_provider(self, strategy, sample_text, small_options):
        """Test the async path consults the embedding provider."""
        chunks = await strategy.chunk_async(sample_text, small_options)

        assert chunks
        assert all(chunk.props[ChunkPropsKeys.DEGRADED] is False for chunk in chunks)

    @pytest.mark.asyncio()
    async def test_sync_call_inside_event_loop_degrades(self, strategy, sample_text, small_options):
        """Test the sync entry point falls back to paragraph breaks inside a running loop."""
        chunks = strategy.chunk(sample_text, small_options)

        assert chunks
        assert all(chunk.props[ChunkPropsKeys.DEGRADED] is True for chunk in chunks)

    def test_invalid_threshold_option(self, strategy, sample_text):
        """Test an out-of-range SimilarityThreshold is rejected."""
        options = ChunkingOptions(strategy_options={"SimilarityThreshold": 1.5})

        with pytest.raises(ConfigurationError):
            strategy.chunk(sample_text, options)

    def test_provider_failure_degrades(self, sample_text, small_options):
        """Test a failing embedding provider degrades instead of raising."""
        provider = MagicMock()
        provider.embed_batch = AsyncMock(side_effect=RuntimeError("model offline"))
        strategy = SemanticChunkingStrategy(SemanticBoundaryDetector(provider))

        chunks = strategy.chunk(sample_text, small_options)

        assert chunks
        assert all(chunk.props[ChunkPropsKeys.DEGRADED] is True for chunk in chunks)


class TestIntelligentChunkingStrategy:
    """Test suite for IntelligentChunkingStrategy."""

    @pytest.fixture()
    def options(self):
        return ChunkingOptions(max_chunk_size=100, overlap_size=0)

    def test_unit_extraction(self):
        """Test headings attach to their block and tables, lists and code stay whole."""
        # Act
        units = IntelligentChunkingStrategy().extract_units(STRUCTURED_DOCUMENT, 1000)

        # Assert
        assert [unit.kind for unit in units] == [UnitKind.PARAGRAPH, UnitKind.TABLE, UnitKind.LIST, UnitKind.CODE]
        assert units[0].heading_led
        assert STRUCTURED_DOCUMENT[units[1].start : units[1].end].count("\n") == 3

    def test_table_kept_whole(self):
        """Test a table that fits the budget is never cut."""
        strategy = IntelligentChunkingStrategy()
        table = STRUCTURED_DOCUMENT[STRUCTURED_DOCUMENT.index("| Region") : STRUCTURED_DOCUMENT.index("\n\n- Hire")]
        options = ChunkingOptions(max_chunk_size=120, overlap_size=0)

        chunks = strategy.chunk(STRUCTURED_DOCUMENT, options)

        assert any(table in chunk.content for chunk in chunks)
        assert all(len(chunk.content) <= options.max_chunk_size for chunk in chunks)

    def test_importance(self):
        """Test importance rises with important keywords and is maximal for headings."""
        assert unit_importance("Plain text.", False) == pytest.approx(0.5)
        assert unit_importance("A key summary note.", False) == pytest.approx(0.8)
        assert unit_importance("# Title", True) == 1.0

    def test_without_provider_not_degraded(self, options):
        """Test structure-only packing without a provider is the normal mode."""
        chunks = IntelligentChunkingStrategy().chunk(TWO_TOPICS, options)

        assert len(chunks) == 1
        assert chunks[0].props[ChunkPropsKeys.DEGRADED] is False
        assert ChunkPropsKeys.IMPORTANCE in chunks[0].props

    @pytest.mark.asyncio()
    async def test_provider_splits_topics(self, options):
        """Test a NO answer closes the chunk before the next unit."""
        # Arrange
        provider = make_completion_provider("NO")
        strategy = IntelligentChunkingStrategy(provider)

        # Act
        chunks = await strategy.chunk_async(TWO_TOPICS, options)

        # Assert
        assert [chunk.content for chunk in chunks] == [FIRST_PARAGRAPH, SECOND_PARAGRAPH]
        provider.complete.assert_awaited_once()
        assert all(chunk.props[ChunkPropsKeys.DEGRADED] is False for chunk in chunks)

    @pytest.mark.asyncio()
    async def test_provider_merges_same_topic(self, options):
        """Test a YES answer keeps both units together."""
        strategy = IntelligentChunkingStrategy(make_completion_provider("YES"))

        chunks = await strategy.chunk_async(TWO_TOPICS, options)

        assert len(chunks) == 1

    @pytest.mark.asyncio()
    async def test_provider_failure_degrades(self, options):
        """Test a failing provider falls back to structure-only packing."""
        provider = make_completion_provider(side_effect=RuntimeError("rate limited"))
        strategy = IntelligentChunkingStrategy(provider)

        chunks = await strategy.chunk_async(TWO_TOPICS, options)

        assert len(chunks) == 1
        assert chunks[0].props[ChunkPropsKeys.DEGRADED] is True

    def test_sync_call_runs_provider(self, options):
        """Test the sync entry point drives the provider when no loop is running."""
        provider = make_completion_provider("NO")
        strategy = IntelligentChunkingStrategy(provider)

        chunks = strategy.chunk(TWO_TOPICS, options)

        assert len(chunks) == 2
        provider.complete.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_sync_call_inside_event_loop_degrades(self, options):
        """Test the sync entry point skips the provider inside a running loop."""
        provider = make_completion_provider("NO")
        strategy = IntelligentChunkingStrategy(provider)

        chunks = strategy.chunk(TWO_TOPICS, options)

        assert len(chunks) == 1
        assert chunks[0].props[ChunkPropsKeys.DEGRADED] is True
        provider.complete.assert_not_called()

    @pytest.mark.asyncio()
    async def test_completion_call_cap(self, options):
        """Test no questions are asked once MaxCompletionCalls is used up."""
        provider = make_completion_provider("NO")
        strategy = IntelligentChunkingStrategy(provider)
        capped = ChunkingOptions(max_chunk_size=100, overlap_size=0, strategy_options={"MaxCompletionCalls": 0})

        chunks = await strategy.chunk_async(TWO_TOPICS, capped)

        assert len(chunks) == 1
        provider.complete.assert_not_called()
