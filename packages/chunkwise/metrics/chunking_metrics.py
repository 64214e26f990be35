"""Performance monitoring for chunking runs.

The monitor is owned by whoever runs chunking (a use case, a benchmark);
there is no process-wide instance.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

SLOW_CHARS_PER_SECOND = 50_000


@dataclass
class ChunkingMetrics:
    """Container for one chunking run's performance figures."""

    strategy: str
    document_id: str
    input_chars: int
    output_chunks: int = 0
    duration_seconds: float = 0.0
    chars_per_second: float = 0.0
    chars_per_chunk: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


class ChunkingPerformanceMonitor:
    """Measure and log chunking runs."""

    def __init__(self, history_limit: int = 1000) -> None:
        self.history_limit = history_limit
        self.metrics_history: list[ChunkingMetrics] = []

    @contextmanager
    def measure_chunking(
        self,
        strategy: str,
        document_id: str,
        text_length: int,
        metadata: dict[str, Any] | None = None,
    ) -> Iterator[ChunkingMetrics]:
        """Context manager to measure one chunking run.

        Example:
            with monitor.measure_chunking("Smart", "doc-1", len(text)) as metrics:
                chunks = strategy.chunk(text, options)
                metrics.output_chunks = len(chunks)
        """
        start_time = time.perf_counter()
        metrics = ChunkingMetrics(
            strategy=strategy,
            document_id=document_id,
            input_chars=text_length,
            metadata=metadata or {},
        )

        try:
            yield metrics
        except Exception as e:
            metrics.error = str(e)
            raise
        finally:
            metrics.duration_seconds = time.perf_counter() - start_time
            if metrics.duration_seconds > 0:
                metrics.chars_per_second = metrics.input_chars / metrics.duration_seconds
            if metrics.output_chunks > 0:
                metrics.chars_per_chunk = metrics.input_chars / metrics.output_chunks

            self._log_metrics(metrics)
            self._record(metrics)

    def _record(self, metrics: ChunkingMetrics) -> None:
        self.metrics_history.append(metrics)
        if len(self.metrics_history) > self.history_limit:
            del self.metrics_history[: len(self.metrics_history) - self.history_limit]

    def _log_metrics(self, metrics: ChunkingMetrics) -> None:
        if metrics.error:
            logger.error(
                f"Chunking failed - Strategy: {metrics.strategy}, Doc: {metrics.document_id}, Error: {metrics.error}"
            )
            return

        log_level = logging.INFO
        if metrics.input_chars > 0 and metrics.chars_per_second < SLOW_CHARS_PER_SECOND:
            log_level = logging.WARNING

        logger.log(
            log_level,
            f"Chunking performance - Strategy: {metrics.strategy}, "
            f"Doc: {metrics.document_id}, "
            f"Chunks: {metrics.output_chunks}, "
            f"Duration: {metrics.duration_seconds:.3f}s, "
            f"Avg size: {metrics.chars_per_chunk:.0f} chars/chunk",
        )
        if metrics.metadata:
            logger.debug(f"Chunking metadata: {metrics.metadata}")

    def get_strategy_summary(self, strategy: str) -> dict[str, Any]:
        """Summary statistics for successful runs of one strategy."""
        strategy_metrics = [m for m in self.metrics_history if m.strategy == strategy and not m.error]

        if not strategy_metrics:
            return {"strategy": strategy, "no_data": True}

        total_chunks = sum(m.output_chunks for m in strategy_metrics)
        total_time = sum(m.duration_seconds for m in strategy_metrics)

        return {
            "strategy": strategy,
            "total_documents": len(strategy_metrics),
            "total_chunks": total_chunks,
            "total_time": total_time,
            "avg_chars_per_chunk": sum(m.chars_per_chunk for m in strategy_metrics) / len(strategy_metrics),
            "failures": sum(1 for m in self.metrics_history if m.strategy == strategy and m.error),
        }
