"""Chunk quality measurement."""

from chunkwise.quality.quality_engine import ChunkQualityEngine

__all__ = ["ChunkQualityEngine"]
