"""Built-in embedding providers."""

from .hashing import HashingEmbeddingProvider

__all__ = ["HashingEmbeddingProvider"]
