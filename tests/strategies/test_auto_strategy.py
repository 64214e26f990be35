#!/usr/bin/env python3
"""Tests for Auto strategy selection and delegation."""

import pytest

from chunkwise.domain.exceptions import ConfigurationError, OperationCancelledError
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions
from chunkwise.strategies.auto import AutoChunkingStrategy, selection_confidence
from chunkwise.strategies.fixed_size import FixedSizeChunkingStrategy
from chunkwise.strategies.paragraph import ParagraphChunkingStrategy
from chunkwise.strategies.registry import StrategyMetadata, StrategyRegistry
from chunkwise.strategies.smart import SmartChunkingStrategy
from chunkwise.utils.cancellation import CancellationToken

NUMBERED_PROCEDURE = "\n".join(
    f"{number}. Step {number} of the procedure is described in this sentence." for number in range(1, 7)
)

OUTLINED_DOCUMENT = (
    "# Overview\n\nThe system has three parts.\n\n"
    "## Storage\n\nData is written to disk.\n\n"
    "## Indexing\n\nVectors are indexed in memory."
)

CJK_DOCUMENT = "这是一个关于文本分块的测试文档。" * 30

EXPLICIT_SIZES = ChunkingOptions(max_chunk_size=1000, overlap_size=100)


class FailingParagraphStrategy(ParagraphChunkingStrategy):
    """Paragraph strategy that always rejects its options."""

    def _split(self, text, options, document, cancellation):
        raise ConfigurationError("paragraph options rejected")


class CancellingParagraphStrategy(ParagraphChunkingStrategy):
    def _split(self, text, options, document, cancellation):
        raise OperationCancelledError("Paragraph.split")


def make_registry(paragraph_factory):
    registry = StrategyRegistry()
    registry.register("Auto", lambda registry: AutoChunkingStrategy(registry), StrategyMetadata(description="auto"))
    registry.register("Smart", lambda registry: SmartChunkingStrategy(), StrategyMetadata(description="smart"))
    registry.register("Paragraph", paragraph_factory, StrategyMetadata(description="paragraph"))
    registry.register("FixedSize", lambda registry: FixedSizeChunkingStrategy(), StrategyMetadata(description="fixed"))
    return registry.freeze()


class TestAutoSelection:
    """Test suite for AutoChunkingStrategy.select."""

    @pytest.fixture()
    def auto(self, registry):
        return registry.get("Auto")

    def test_numbered_sections_select_paragraph(self, auto):
        """Test five or more numbered sections select Paragraph."""
        # Act
        selection = auto.select(NUMBERED_PROCEDURE, EXPLICIT_SIZES)

        # Assert
        assert selection.strategy_name == "Paragraph"
        assert selection.confidence == pytest.approx(0.70)
        assert selection.reasoning.startswith("Detected 6 numbered sections")

    def test_headings_select_hierarchical(self, auto):
        """Test three or more headings select Hierarchical."""
        selection = auto.select(OUTLINED_DOCUMENT, EXPLICIT_SIZES)

        assert selection.strategy_name == "Hierarchical"
        assert "3 headings" in selection.reasoning

    def test_plain_text_selects_smart(self, auto, sample_text):
        """Test unstructured text selects Smart."""
        selection = auto.select(sample_text, EXPLICIT_SIZES)

        assert selection.strategy_name == "Smart"
        assert selection.size_multiplier == 1.0
        assert selection.options.max_chunk_size == 1000

    def test_cjk_text_shrinks_chunks(self, auto):
        """Test CJK-heavy text scales the sizes down in proportion to the CJK ratio."""
        # Act
        selection = auto.select(CJK_DOCUMENT, EXPLICIT_SIZES)

        # Assert
        assert selection.strategy_name == "Smart"
        assert selection.cjk_ratio > 0.9
        assert selection.size_multiplier == pytest.approx(1 - 0.85 * (selection.cjk_ratio - 0.3) / 0.7)
        assert selection.options.max_chunk_size == int(1000 * selection.size_multiplier)
        assert selection.options.overlap_size < selection.options.max_chunk_size
        assert selection.reasoning.startswith("CJK ratio")

    def test_cjk_prefer_speed(self, auto):
        """Test PreferSpeed routes CJK text to Semantic."""
        options = ChunkingOptions(max_chunk_size=1000, overlap_size=100, strategy_options={"PreferSpeed": True})

        selection = auto.select(CJK_DOCUMENT, options)

        assert selection.strategy_name == "Semantic"
        assert selection.reasoning.endswith("[Speed optimized]")

    def test_force_strategy(self, auto, sample_text):
        """Test ForceStrategy bypasses the heuristics."""
        options = ChunkingOptions(max_chunk_size=1000, overlap_size=100, strategy_options={"ForceStrategy": "fixedsize"})

        selection = auto.select(sample_text, options)

        assert selection.strategy_name == "FixedSize"
        assert selection.reasoning == "Forced strategy: FixedSize"

    @pytest.mark.parametrize("forced", ["Auto", "DoesNotExist"])
    def test_invalid_force_strategy_ignored(self, auto, forced):
        """Test forcing Auto itself or an unknown strategy falls back to the heuristics."""
        options = ChunkingOptions(max_chunk_size=1000, overlap_size=100, strategy_options={"ForceStrategy": forced})

        selection = auto.select(NUMBERED_PROCEDURE, options)

        assert selection.strategy_name == "Paragraph"

    def test_low_confidence_uses_default(self, auto):
        """Test a selection below the confidence threshold falls back to Smart."""
        options = ChunkingOptions(
            max_chunk_size=1000, overlap_size=100, strategy_options={"ConfidenceThreshold": 0.75}
        )

        selection = auto.select(NUMBERED_PROCEDURE, options)

        assert selection.strategy_name == "Smart"
        assert selection.reasoning.startswith("Low confidence (70%) for Paragraph")

    def test_default_sizes_are_optimized(self, auto, sample_text):
        """Test default sizes are replaced by the document type optimizer's sizes."""
        selection = auto.select(sample_text, ChunkingOptions())

        assert selection.options.max_chunk_size < 1024
        assert selection.options.overlap_size < selection.options.max_chunk_size

    def test_auto_parameters_disabled(self, auto, sample_text):
        """Test UseAutoParameters=False keeps the caller's sizes."""
        options = ChunkingOptions(strategy_options={"UseAutoParameters": False})

        selection = auto.select(sample_text, options)

        assert selection.options.max_chunk_size == 1024
        assert selection.options.overlap_size == 128

    def test_selection_confidence_table(self):
        """Test the confidence table and its default."""
        assert selection_confidence("Smart") == pytest.approx(0.85)
        assert selection_confidence("Hierarchical") == pytest.approx(0.60)


class TestAutoChunking:
    """Test suite for Auto chunking and labelling."""

    def test_chunks_record_selection(self, registry):
        """Test every chunk records the selected strategy and reasoning."""
        # Arrange
        auto = registry.get("Auto")

        # Act
        chunks = auto.chunk(NUMBERED_PROCEDURE, EXPLICIT_SIZES)

        # Assert
        assert chunks
        for chunk in chunks:
            assert chunk.strategy_name == "Auto(Paragraph)"
            assert chunk.props[ChunkPropsKeys.AUTO_SELECTED_STRATEGY] == "Paragraph"
            assert chunk.props[ChunkPropsKeys.SELECTION_CONFIDENCE] == pytest.approx(0.70)
            assert chunk.props[ChunkPropsKeys.OPTIMIZED_MAX_CHUNK_SIZE] == 1000
            assert "numbered sections" in chunk.props[ChunkPropsKeys.SELECTION_REASONING]
            assert ChunkPropsKeys.AUTO_FALLBACK_REASON not in chunk.props

    @pytest.mark.asyncio()
    async def test_chunk_async(self, registry, sample_text):
        """Test the async path delegates the same way."""
        auto = registry.get("Auto")

        chunks = await auto.chunk_async(sample_text, EXPLICIT_SIZES)

        assert chunks
        assert all(chunk.strategy_name == "Auto(Smart)" for chunk in chunks)

    def test_blank_document(self, registry):
        """Test blank input produces no chunks."""
        assert registry.get("Auto").chunk("  ", EXPLICIT_SIZES) == []

    def test_failure_falls_back_to_smart(self):
        """Test a failing selected strategy falls back to Smart and records why."""
        # Arrange
        registry = make_registry(lambda registry: FailingParagraphStrategy())
        auto = registry.get("Auto")

        # Act
        chunks = auto.chunk(NUMBERED_PROCEDURE, EXPLICIT_SIZES)

        # Assert
        assert chunks
        assert all(chunk.strategy_name == "Auto(Smart)" for chunk in chunks)
        assert all(
            chunk.props[ChunkPropsKeys.AUTO_FALLBACK_REASON] == "Paragraph failed: paragraph options rejected"
            for chunk in chunks
        )

    def test_cancellation_is_not_masked(self):
        """Test cancellation propagates instead of triggering the fallback."""
        registry = make_registry(lambda registry: CancellingParagraphStrategy())
        auto = registry.get("Auto")

        with pytest.raises(OperationCancelledError):
            auto.chunk(NUMBERED_PROCEDURE, EXPLICIT_SIZES)

    def test_cancelled_token(self, registry, sample_text):
        """Test a cancelled token stops the delegated strategy."""
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            registry.get("Auto").chunk(sample_text, EXPLICIT_SIZES, cancellation=token)

    def test_estimate_chunks_uses_smart(self, registry):
        """Test Auto estimates like Smart."""
        options = ChunkingOptions(max_chunk_size=200, overlap_size=40)

        assert registry.get("Auto").estimate_chunks(1000, options) == registry.get("Smart").estimate_chunks(1000, options)
