#!/usr/bin/env python3
"""
Pure domain layer for chunking.

Entities, value objects, exceptions and stateless services, independent of
providers and of how documents were read.
"""

from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.exceptions import (
    BenchmarkStrategyFailure,
    ChunkingDomainError,
    ConfigurationError,
    InvalidChunkError,
    InvalidStateError,
    OperationCancelledError,
    OverlapConfigurationError,
    ProviderError,
    RegistryFrozenError,
    UnknownStrategyError,
)
from chunkwise.domain.value_objects.chunk_metadata import ChunkMetadata
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent

__all__ = [
    # Entities
    "Chunk",
    # Value Objects
    "ChunkMetadata",
    "ChunkingOptions",
    "ChunkingStrategyType",
    "DocumentContent",
    # Exceptions
    "BenchmarkStrategyFailure",
    "ChunkingDomainError",
    "ConfigurationError",
    "InvalidChunkError",
    "InvalidStateError",
    "OperationCancelledError",
    "OverlapConfigurationError",
    "ProviderError",
    "RegistryFrozenError",
    "UnknownStrategyError",
]
