"""Data transfer objects for the chunking use cases."""

from chunkwise.application.dto.requests import (
    AnalyzeQualityRequest,
    BenchmarkRequest,
    ChunkDocumentRequest,
    QABenchmarkRequest,
)
from chunkwise.application.dto.responses import ChunkDocumentResponse, ChunkDTO

__all__ = [
    "AnalyzeQualityRequest",
    "BenchmarkRequest",
    "ChunkDTO",
    "ChunkDocumentRequest",
    "ChunkDocumentResponse",
    "QABenchmarkRequest",
]
