"""
Response DTOs for chunking application layer.

These DTOs define the output contracts for use cases.
"""

from dataclasses import dataclass
from typing import Any

from chunkwise.domain.entities.chunk import Chunk


@dataclass
class ChunkDTO:
    """DTO representing a text chunk."""

    chunk_id: str
    content: str
    position: int
    start_offset: int
    end_offset: int
    token_count: int
    strategy_name: str
    quality_score: float | None
    props: dict[str, Any]

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkDTO":
        return cls(
            chunk_id=chunk.id,
            content=chunk.content,
            position=chunk.index,
            start_offset=chunk.start_offset,
            end_offset=chunk.end_offset,
            token_count=chunk.metadata.token_count,
            strategy_name=chunk.strategy_name,
            quality_score=chunk.quality_score,
            props=dict(chunk.props),
        )


@dataclass
class ChunkDocumentResponse:
    """Output DTO for the chunk document use case."""

    document_id: str
    requested_strategy: str
    strategy_used: str
    chunks: list[Chunk]
    processing_time_ms: float
    fallback_warning: str | None = None

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "document_id": self.document_id,
            "requested_strategy": self.requested_strategy,
            "strategy_used": self.strategy_used,
            "total_chunks": self.total_chunks,
            "processing_time_ms": self.processing_time_ms,
            "fallback_warning": self.fallback_warning,
            "chunks": [vars(ChunkDTO.from_chunk(chunk)) for chunk in self.chunks],
        }
