"""
Benchmark Chunking Use Case.

Runs several strategies on the same document with bounded parallelism,
scores each run and recommends a strategy.
"""

import asyncio
import logging
import time

from chunkwise.application.dto.requests import BenchmarkRequest
from chunkwise.application.session import ChunkingSession
from chunkwise.config.base import ChunkingSettings
from chunkwise.domain.exceptions import BenchmarkStrategyFailure, OperationCancelledError
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.domain.value_objects.quality import QualityBenchmarkResult, StrategyBenchmarkResult
from chunkwise.quality.quality_engine import ChunkQualityEngine
from chunkwise.strategies.registry import StrategyRegistry
from chunkwise.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

AVOID_QUALITY_GAP = 0.1
LARGE_AVERAGE_CHUNK_SIZE = 2000
SMALL_AVERAGE_CHUNK_SIZE = 200


class BenchmarkChunkingUseCase:
    """
    Use case for comparing chunking strategies on one document.

    This use case:
    - Runs every requested strategy independently, at most
      ``BENCHMARK_MAX_PARALLELISM`` at a time
    - Records a failing strategy in its own result slot
    - Recommends the best strategy, preferring a faster one whose quality is
      within ``BENCHMARK_QUALITY_TOLERANCE`` of the best
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        quality_engine: ChunkQualityEngine | None = None,
        settings: ChunkingSettings | None = None,
        session: ChunkingSession | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or ChunkingSettings()
        self.quality_engine = quality_engine or ChunkQualityEngine(settings=self.settings)
        self.session = session

    async def execute(
        self, request: BenchmarkRequest, cancellation: CancellationToken | None = None
    ) -> QualityBenchmarkResult:
        """
        Execute the benchmark.

        Returns exactly one result per requested strategy, in request order.

        Raises:
            ConfigurationError: If the request is invalid
            OperationCancelledError: If ``cancellation`` fires
        """
        request.validate()
        document = DocumentContent.coerce(request.document)
        if self.session is not None:
            document = self.session.prepare(document)
        options = request.options or ChunkingOptions(
            max_chunk_size=self.settings.DEFAULT_MAX_CHUNK_SIZE,
            overlap_size=self.settings.DEFAULT_OVERLAP_SIZE,
        )

        semaphore = asyncio.Semaphore(self.settings.BENCHMARK_MAX_PARALLELISM)
        tasks = [
            asyncio.ensure_future(self._run_slot(name, document, options, semaphore, cancellation))
            for name in request.strategy_names
        ]
        try:
            results = await asyncio.gather(*tasks)
        finally:
            # No slot outlives the benchmark
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        recommended, reason = self.recommend(list(results))
        benchmark = QualityBenchmarkResult(
            document_id=document.document_id,
            recommended_strategy=recommended,
            per_strategy_results=list(results),
            recommendation_reason=reason,
            recommendations=self._overall_recommendations(list(results)),
        )
        logger.info(
            f"Benchmarked {len(results)} strategies on '{document.document_id}' "
            f"({len(benchmark.failed_results)} failed); recommended: {recommended}"
        )
        return benchmark

    async def _run_slot(
        self,
        name: str,
        document: DocumentContent,
        options: ChunkingOptions,
        semaphore: asyncio.Semaphore,
        cancellation: CancellationToken | None,
    ) -> StrategyBenchmarkResult:
        async with semaphore:
            start_time = time.perf_counter()
            try:
                strategy = self.registry.get(name)
                chunks = await strategy.chunk_async(document, options.with_strategy(strategy.name), None, cancellation)
                processing_time = time.perf_counter() - start_time
                metrics = await self.quality_engine.evaluate_chunks(chunks, cancellation)
            except OperationCancelledError:
                raise
            except Exception as e:
                failure = BenchmarkStrategyFailure(name, document.document_id, e)
                logger.error(failure.message)
                return StrategyBenchmarkResult(
                    strategy=name,
                    processing_time=time.perf_counter() - start_time,
                    error=failure.message,
                )

        return StrategyBenchmarkResult(
            strategy=name,
            quality_score=metrics.overall_score,
            processing_time=processing_time,
            chunk_count=len(chunks),
            avg_chunk_size=metrics.average_chunk_size,
            metrics=metrics,
        )

    def recommend(self, results: list[StrategyBenchmarkResult]) -> tuple[str | None, str]:
        """Best-quality strategy, or a faster one within the quality tolerance."""
        successful = [result for result in results if result.succeeded]
        if not successful:
            return None, "All strategies failed"

        best = max(successful, key=lambda result: result.quality_score)
        tolerance = self.settings.BENCHMARK_QUALITY_TOLERANCE
        faster = [
            result
            for result in successful
            if result is not best
            and result.processing_time < best.processing_time
            and best.quality_score - result.quality_score < tolerance
        ]
        if faster:
            balanced = min(faster, key=lambda result: result.processing_time)
            return balanced.strategy, (
                f"{balanced.strategy} is within {tolerance:.2f} quality of {best.strategy} "
                f"({balanced.quality_score:.3f} vs {best.quality_score:.3f}) and faster "
                f"({balanced.processing_time * 1000:.1f}ms vs {best.processing_time * 1000:.1f}ms)"
            )
        return best.strategy, f"Highest quality score ({best.quality_score:.3f})"

    def _overall_recommendations(self, results: list[StrategyBenchmarkResult]) -> list[str]:
        successful = [result for result in results if result.succeeded]
        if not successful:
            return ["All chunking strategies failed. Check document format and processing pipeline."]

        best = max(successful, key=lambda result: result.quality_score)
        worst = min(successful, key=lambda result: result.quality_score)
        recommendations = [f"Best performing strategy: {best.strategy} (Score: {best.quality_score:.3f})"]

        if best.quality_score - worst.quality_score > AVOID_QUALITY_GAP:
            recommendations.append(f"Consider avoiding {worst.strategy} strategy for this document type")

        average_size = sum(result.avg_chunk_size for result in successful) / len(successful)
        if average_size > LARGE_AVERAGE_CHUNK_SIZE:
            recommendations.append("Large average chunk size detected - consider reducing MaxChunkSize parameter")
        elif average_size < SMALL_AVERAGE_CHUNK_SIZE:
            recommendations.append("Small average chunk size detected - consider increasing MaxChunkSize parameter")

        for result in results:
            if not result.succeeded:
                recommendations.append(f"{result.strategy} failed: {result.error}")
        return recommendations
