"""Base abstraction for embedding providers."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from numpy.typing import NDArray


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    The chunking core depends only on this contract. Implementations must
    implement ``embed`` and ``dimension``; ``embed_batch`` defaults to
    concurrent single embeddings and should be overridden where the backend
    has a native batch call.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Get the embedding dimension."""

    @abstractmethod
    async def embed(self, text: str, **kwargs: Any) -> NDArray[np.float32]:
        """Generate an embedding for a single text.

        Args:
            text: Text to embed
            **kwargs: Implementation-specific options

        Returns:
            numpy array of shape (dimension,)

        Raises:
            ValueError: If text is invalid
            RuntimeError: If embedding generation fails
        """

    async def embed_batch(self, texts: list[str], **kwargs: Any) -> NDArray[np.float32]:
        """Generate embeddings for multiple texts.

        Returns:
            numpy array of shape (len(texts), dimension)
        """
        if not texts:
            return np.zeros((0, self.dimension), dtype=np.float32)
        vectors = await asyncio.gather(*(self.embed(text, **kwargs) for text in texts))
        return np.vstack(vectors).astype(np.float32)

    def similarity(self, first: NDArray[np.float32], second: NDArray[np.float32]) -> float:
        """Cosine similarity clipped to [-1, 1]; zero vectors have similarity 0."""
        return cosine_similarity(first, second)


def cosine_similarity(first: NDArray[np.float32], second: NDArray[np.float32]) -> float:
    first_norm = float(np.linalg.norm(first))
    second_norm = float(np.linalg.norm(second))
    if first_norm == 0.0 or second_norm == 0.0:
        return 0.0
    value = float(np.dot(first, second) / (first_norm * second_norm))
    return max(-1.0, min(1.0, value))
