"""Document chunking engine for retrieval-augmented generation pipelines.

Typical use:

    registry = build_default_registry()
    use_case = ChunkDocumentUseCase(registry)
    response = await use_case.execute(ChunkDocumentRequest(text))
"""

from chunkwise.application import (
    AnalyzeQualityUseCase,
    BenchmarkChunkingUseCase,
    ChunkDocumentUseCase,
    ChunkingSession,
    QABenchmarkUseCase,
)
from chunkwise.application.dto import AnalyzeQualityRequest, BenchmarkRequest, ChunkDocumentRequest, QABenchmarkRequest
from chunkwise.config import ChunkingSettings
from chunkwise.domain import Chunk, ChunkingOptions, ChunkingStrategyType, DocumentContent
from chunkwise.strategies import StrategyRegistry, build_default_registry

__version__ = "0.1.0"

__all__ = [
    "AnalyzeQualityRequest",
    "AnalyzeQualityUseCase",
    "BenchmarkChunkingUseCase",
    "BenchmarkRequest",
    "Chunk",
    "ChunkDocumentRequest",
    "ChunkDocumentUseCase",
    "ChunkingOptions",
    "ChunkingSession",
    "ChunkingSettings",
    "ChunkingStrategyType",
    "DocumentContent",
    "QABenchmarkRequest",
    "QABenchmarkUseCase",
    "StrategyRegistry",
    "build_default_registry",
]
