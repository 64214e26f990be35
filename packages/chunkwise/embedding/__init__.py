"""Embedding provider contract."""

from .base import EmbeddingProvider, cosine_similarity

__all__ = ["EmbeddingProvider", "cosine_similarity"]
