#!/usr/bin/env python3
"""Tests for BenchmarkChunkingUseCase."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from chunkwise.application.dto.requests import BenchmarkRequest
from chunkwise.application.use_cases.benchmark_chunking import BenchmarkChunkingUseCase
from chunkwise.domain.exceptions import ConfigurationError, OperationCancelledError
from chunkwise.domain.value_objects.quality import StrategyBenchmarkResult
from chunkwise.quality.quality_engine import ChunkQualityEngine


class TestBenchmarkChunkingUseCase:
    """Test suite for BenchmarkChunkingUseCase."""

    @pytest.fixture()
    def use_case(self, registry, embedding_provider, settings):
        return BenchmarkChunkingUseCase(registry, ChunkQualityEngine(embedding_provider), settings)

    @pytest.mark.asyncio()
    async def test_results_follow_request_order(self, use_case, sample_text, small_options):
        """Test one result per strategy in the order they were requested."""
        # Arrange
        request = BenchmarkRequest(sample_text, ["Smart", "FixedSize"], small_options)

        # Act
        result = await use_case.execute(request)

        # Assert
        assert [slot.strategy for slot in result.per_strategy_results] == ["Smart", "FixedSize"]
        assert all(slot.succeeded for slot in result.per_strategy_results)
        assert all(slot.chunk_count > 1 for slot in result.per_strategy_results)
        assert result.recommended_strategy in ("Smart", "FixedSize")
        assert result.recommendations[0].startswith("Best performing strategy:")

    @pytest.mark.asyncio()
    async def test_unknown_strategy_gets_failed_slot(self, use_case, sample_text, small_options):
        """Test an unknown name fails its own slot without affecting the others."""
        # Act
        result = await use_case.execute(BenchmarkRequest(sample_text, ["Magic", "Smart"], small_options))

        # Assert
        failed = result.per_strategy_results[0]
        assert not failed.succeeded
        assert "Magic" in failed.error
        assert result.per_strategy_results[1].succeeded
        assert result.recommended_strategy == "Smart"
        assert any(line.startswith("Magic failed:") for line in result.recommendations)

    @pytest.mark.asyncio()
    async def test_raising_strategy_is_isolated(self, registry, sample_text, small_options):
        """Test an exception inside a strategy is recorded in its slot."""
        # Arrange
        broken = MagicMock()
        broken.name = "Broken"
        broken.chunk_async = AsyncMock(side_effect=RuntimeError("out of memory"))
        mock_registry = MagicMock()
        mock_registry.get.side_effect = lambda name: broken if name == "Broken" else registry.get(name)
        use_case = BenchmarkChunkingUseCase(mock_registry)

        # Act
        result = await use_case.execute(BenchmarkRequest(sample_text, ["Broken", "Paragraph"], small_options))

        # Assert
        assert "out of memory" in result.per_strategy_results[0].error
        assert result.per_strategy_results[1].succeeded
        assert result.recommended_strategy == "Paragraph"

    @pytest.mark.asyncio()
    async def test_cancelled_slot_cancels_siblings(self, sample_text, small_options):
        """Test a cancellation in one slot stops the slots still running."""
        # Arrange
        started = asyncio.Event()
        sibling_cancelled = []

        async def slow_chunk(*args):
            started.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                sibling_cancelled.append(True)
                raise

        async def cancelled_chunk(*args):
            await started.wait()
            raise OperationCancelledError("Cancelled.chunk")

        slow = MagicMock()
        slow.name = "Slow"
        slow.chunk_async = slow_chunk
        cancelled = MagicMock()
        cancelled.name = "Cancelled"
        cancelled.chunk_async = cancelled_chunk
        mock_registry = MagicMock()
        mock_registry.get.side_effect = lambda name: slow if name == "Slow" else cancelled
        use_case = BenchmarkChunkingUseCase(mock_registry)

        # Act
        with pytest.raises(OperationCancelledError):
            await use_case.execute(BenchmarkRequest(sample_text, ["Slow", "Cancelled"], small_options))

        # Assert
        assert sibling_cancelled == [True]

    @pytest.mark.asyncio()
    async def test_all_failed(self, use_case, sample_text):
        """Test no recommendation is made when every strategy fails."""
        result = await use_case.execute(BenchmarkRequest(sample_text, ["Magic", "Unknown"]))

        assert result.recommended_strategy is None
        assert result.recommendation_reason == "All strategies failed"
        assert len(result.failed_results) == 2

    def test_recommend_prefers_faster_within_tolerance(self, use_case):
        """Test a faster strategy wins when its quality is close to the best."""
        results = [
            StrategyBenchmarkResult("Semantic", quality_score=0.80, processing_time=0.5),
            StrategyBenchmarkResult("FixedSize", quality_score=0.78, processing_time=0.01),
        ]

        recommended, reason = use_case.recommend(results)

        assert recommended == "FixedSize"
        assert "faster" in reason

    def test_recommend_best_quality(self, use_case):
        """Test the best strategy wins when the faster one is clearly worse."""
        results = [
            StrategyBenchmarkResult("Semantic", quality_score=0.80, processing_time=0.5),
            StrategyBenchmarkResult("FixedSize", quality_score=0.60, processing_time=0.01),
            StrategyBenchmarkResult("Broken", error="boom"),
        ]

        recommended, reason = use_case.recommend(results)

        assert recommended == "Semantic"
        assert reason == "Highest quality score (0.800)"

    @pytest.mark.parametrize("names", [[], ["Smart", "smart"], ["Smart", "  "]])
    def test_invalid_requests(self, names, sample_text):
        """Test empty, blank and duplicate strategy lists are rejected."""
        with pytest.raises(ConfigurationError):
            BenchmarkRequest(sample_text, names).validate()
