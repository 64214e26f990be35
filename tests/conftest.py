"""Shared test configuration and fixtures."""

import pytest

from chunkwise.config.base import ChunkingSettings
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions
from chunkwise.embedding.providers.hashing import HashingEmbeddingProvider
from chunkwise.strategies.registry import build_default_registry

SAMPLE_TEXT = (
    "Vector databases store embeddings for fast similarity search. They index high-dimensional vectors "
    "so that nearest neighbours can be found quickly. Most systems use approximate algorithms such as HNSW.\n\n"
    "Chunking decides what each embedding represents. Chunks that are too large blur several topics together. "
    "Chunks that are too small lose the context a reader needs to understand them.\n\n"
    "Overlap repeats a little text from the previous chunk. This keeps sentences that straddle a boundary "
    "retrievable from both sides. Too much overlap wastes storage and slows indexing.\n\n"
    "Evaluation closes the loop. Teams measure retrieval quality on real questions and tune the chunk size "
    "until answers are found reliably. The best settings differ between document collections."
)


@pytest.fixture()
def settings():
    """Default engine settings."""
    return ChunkingSettings()


@pytest.fixture()
def embedding_provider():
    """Deterministic local embedding provider."""
    return HashingEmbeddingProvider(dimension=384)


@pytest.fixture()
def registry():
    """Frozen registry with the built-in strategies and no providers."""
    return build_default_registry()


@pytest.fixture()
def sample_text():
    """Four-paragraph English document."""
    return SAMPLE_TEXT


@pytest.fixture()
def small_options():
    """Small sizes so that the sample document yields several chunks."""
    return ChunkingOptions(max_chunk_size=200, overlap_size=40)
