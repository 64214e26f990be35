"""Chunking performance metrics."""

from .chunking_metrics import ChunkingMetrics, ChunkingPerformanceMonitor

__all__ = ["ChunkingMetrics", "ChunkingPerformanceMonitor"]
