"""
Application layer for chunking.

Use cases orchestrate strategies, analysis and quality measurement; the
caller-held session caches per-document analysis.
"""

from chunkwise.application.session import ChunkingSession
from chunkwise.application.use_cases import (
    AnalyzeQualityUseCase,
    BenchmarkChunkingUseCase,
    ChunkDocumentUseCase,
    QABenchmarkUseCase,
)

__all__ = [
    "AnalyzeQualityUseCase",
    "BenchmarkChunkingUseCase",
    "ChunkDocumentUseCase",
    "ChunkingSession",
    "QABenchmarkUseCase",
]
