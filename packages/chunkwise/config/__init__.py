"""Configuration for the chunking engine."""

from .base import ChunkingSettings

__all__ = ["ChunkingSettings"]
