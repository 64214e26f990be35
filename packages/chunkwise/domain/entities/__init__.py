"""Domain entities."""

from chunkwise.domain.entities.chunk import Chunk

__all__ = ["Chunk"]
