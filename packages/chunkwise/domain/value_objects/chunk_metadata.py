#!/usr/bin/env python3
"""
Chunk metadata value object.

Immutable positional and provenance information for a chunk within its
source document.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChunkMetadata:
    """
    Immutable metadata for a text chunk.

    Offsets index into the source document text; ``end_offset`` is exclusive.
    """

    chunk_id: str
    document_id: str
    chunk_index: int  # 0-based, contiguous within one document
    start_offset: int
    end_offset: int
    token_count: int
    strategy_name: str

    hierarchy_level: int | None = None
    section_title: str | None = None

    def __post_init__(self) -> None:
        """Validate metadata after initialization."""
        if self.start_offset < 0:
            raise ValueError(f"Start offset must be non-negative, got {self.start_offset}")

        if self.end_offset <= self.start_offset:
            raise ValueError(f"End offset ({self.end_offset}) must be greater than start offset ({self.start_offset})")

        if self.chunk_index < 0:
            raise ValueError(f"Chunk index must be non-negative, got {self.chunk_index}")

        if self.token_count <= 0:
            raise ValueError(f"Token count must be positive, got {self.token_count}")

        if self.hierarchy_level is not None and self.hierarchy_level < 0:
            raise ValueError(f"Hierarchy level must be non-negative, got {self.hierarchy_level}")
