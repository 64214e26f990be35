#!/usr/bin/env python3
"""
Chunk entity representing a single text chunk.

A chunk is created once by a strategy invocation. Afterwards only its
``props`` and quality score change, and only by the enrichment step.
"""

from chunkwise.domain.exceptions import InvalidChunkError
from chunkwise.domain.value_objects.chunk_metadata import ChunkMetadata
from chunkwise.domain.value_objects.chunk_props import ChunkProps, ChunkPropsKeys


class Chunk:
    """
    Entity representing a single text chunk.

    Identity is the chunk id carried in the metadata.
    """

    def __init__(
        self,
        content: str,
        metadata: ChunkMetadata,
        props: ChunkProps | None = None,
    ) -> None:
        """
        Initialize a chunk with content and metadata.

        Args:
            content: The text content of the chunk
            metadata: Immutable metadata for the chunk
            props: Optional initial properties

        Raises:
            InvalidChunkError: If chunk violates business rules
        """
        self._validate_content(content)

        self._content = content
        self._metadata = metadata
        self._props = props if props is not None else ChunkProps()
        self._quality_score: float | None = None

    @property
    def id(self) -> str:
        return self._metadata.chunk_id

    @property
    def content(self) -> str:
        """Get the text content of the chunk."""
        return self._content

    @property
    def metadata(self) -> ChunkMetadata:
        """Get the immutable metadata of the chunk."""
        return self._metadata

    @property
    def index(self) -> int:
        return self._metadata.chunk_index

    @property
    def start_offset(self) -> int:
        return self._metadata.start_offset

    @property
    def end_offset(self) -> int:
        return self._metadata.end_offset

    @property
    def strategy_name(self) -> str:
        return self._metadata.strategy_name

    @property
    def props(self) -> ChunkProps:
        return self._props

    @property
    def quality_score(self) -> float | None:
        """Get the quality score if evaluated."""
        return self._quality_score

    @property
    def overlap_with_previous(self) -> int:
        """Characters at the head of this chunk repeated from the previous chunk."""
        return self._props.get_or_default(ChunkPropsKeys.OVERLAP_WITH_PREVIOUS, 0)

    def set_quality_score(self, score: float) -> None:
        """
        Set the quality score for the chunk.

        Raises:
            InvalidChunkError: If score is out of range
        """
        if not 0.0 <= score <= 1.0:
            raise InvalidChunkError(f"Quality score must be between 0.0 and 1.0, got {score}", {"chunk_id": self.id})
        self._quality_score = score

    def is_high_quality(self, threshold: float = 0.7) -> bool:
        if self._quality_score is None:
            return False
        return self._quality_score >= threshold

    def _validate_content(self, content: str) -> None:
        if not content:
            raise InvalidChunkError("Chunk content cannot be empty")

        if not content.strip():
            raise InvalidChunkError("Chunk content cannot be only whitespace")

    def __repr__(self) -> str:
        """String representation of the chunk."""
        preview = self._content[:50] + "..." if len(self._content) > 50 else self._content
        return (
            f"Chunk(id={self._metadata.chunk_id}, "
            f"index={self._metadata.chunk_index}, "
            f"strategy={self._metadata.strategy_name}, "
            f"content='{preview}')"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chunk):
            return False
        return self._metadata.chunk_id == other._metadata.chunk_id

    def __hash__(self) -> int:
        return hash(self._metadata.chunk_id)
