"""Feature-hashing embedding provider.

Maps each word to a signed bucket of a fixed-size vector, so texts sharing
vocabulary get similar embeddings. It needs no model download and is fully
deterministic, which makes it suitable for offline use and tests.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from chunkwise.embedding.base import EmbeddingProvider
from chunkwise.utils.text import STOPWORDS, words

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


class HashingEmbeddingProvider(EmbeddingProvider):
    """Deterministic bag-of-words embeddings via the hashing trick.

    Features:
    - No GPU or model files required
    - Same text always yields the same vector
    - Stopwords are dropped so similarity tracks content words
    """

    def __init__(self, dimension: int = 384, *, normalize: bool = True, drop_stopwords: bool = True) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension
        self._normalize = normalize
        self._drop_stopwords = drop_stopwords

    @property
    def dimension(self) -> int:
        return self._dimension

    def _bucket(self, token: str) -> tuple[int, float]:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        value = int.from_bytes(digest, "little")
        sign = 1.0 if value & 1 else -1.0
        return (value >> 1) % self._dimension, sign

    def _generate_embedding(self, text: str) -> NDArray[np.float32]:
        embedding = np.zeros(self._dimension, dtype=np.float32)
        for token in words(text):
            if self._drop_stopwords and token in STOPWORDS:
                continue
            index, sign = self._bucket(token)
            embedding[index] += sign

        if self._normalize:
            norm = np.linalg.norm(embedding)
            if norm > 0:
                embedding = embedding / norm
        return embedding

    async def embed(self, text: str, **kwargs: Any) -> NDArray[np.float32]:
        if not isinstance(text, str):
            raise ValueError("text must be a string")
        return self._generate_embedding(text)

    async def embed_batch(self, texts: list[str], **kwargs: Any) -> NDArray[np.float32]:
        if not isinstance(texts, list):
            raise ValueError("texts must be a list of strings")
        if not texts:
            return np.zeros((0, self._dimension), dtype=np.float32)

        embeddings = np.vstack([self._generate_embedding(text) for text in texts])
        logger.debug(f"Hashing provider generated {len(texts)} embeddings with dimension {self._dimension}")
        return embeddings
