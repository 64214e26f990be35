"""
Use cases for chunking application layer.

Each use case represents a complete business operation with clear
boundaries and single responsibility.
"""

from chunkwise.application.use_cases.analyze_quality import AnalyzeQualityUseCase
from chunkwise.application.use_cases.benchmark_chunking import BenchmarkChunkingUseCase
from chunkwise.application.use_cases.chunk_document import ChunkDocumentUseCase
from chunkwise.application.use_cases.qa_benchmark import GeneratedQuestion, QABenchmarkUseCase

__all__ = [
    "AnalyzeQualityUseCase",
    "BenchmarkChunkingUseCase",
    "ChunkDocumentUseCase",
    "GeneratedQuestion",
    "QABenchmarkUseCase",
]
