#!/usr/bin/env python3
"""
Domain-specific exceptions for chunking operations.

These exceptions represent business rule violations and domain errors.
Provider failures during analysis are not raised from here; they degrade
the affected result instead.
"""

from typing import Any


class ChunkingDomainError(Exception):
    """Base exception for all chunking domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional details."""
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidStateError(ChunkingDomainError):
    """Raised when an operation is attempted in an invalid state."""


class RegistryFrozenError(InvalidStateError):
    """Raised when a strategy is registered after the registry was frozen."""

    def __init__(self, strategy_name: str) -> None:
        super().__init__(
            f"Cannot register strategy '{strategy_name}': registry is frozen",
            {"strategy_name": strategy_name},
        )
        self.strategy_name = strategy_name


class InvalidChunkError(ChunkingDomainError):
    """Raised when a chunk doesn't meet business requirements."""


class ConfigurationError(ChunkingDomainError):
    """Raised when chunking options violate business rules."""


class OverlapConfigurationError(ConfigurationError):
    """Raised when overlap configuration is invalid."""

    def __init__(self, overlap: int, chunk_size: int) -> None:
        """Initialize with overlap information."""
        super().__init__(
            f"Overlap {overlap} must be less than chunk size {chunk_size}",
            {"option": "overlap_size", "overlap": overlap, "chunk_size": chunk_size},
        )
        self.overlap = overlap
        self.chunk_size = chunk_size


class UnknownStrategyError(ChunkingDomainError, LookupError):
    """Raised when a requested chunking strategy is not registered."""

    def __init__(self, strategy_name: str, available: list[str] | None = None) -> None:
        """Initialize with strategy name and the names that are registered."""
        available = available or []
        super().__init__(
            f"Strategy '{strategy_name}' not found. Available strategies: {', '.join(available) or 'none'}",
            {"strategy_name": strategy_name, "available": available},
        )
        self.strategy_name = strategy_name
        self.available = available


class OperationCancelledError(ChunkingDomainError):
    """Raised when a cancellation token fires during a long-running operation."""

    def __init__(self, operation: str, processed: int | None = None) -> None:
        details: dict[str, Any] = {"operation": operation}
        if processed is not None:
            details["processed_segments"] = processed
        super().__init__(f"Operation '{operation}' was cancelled", details)
        self.operation = operation


class ProviderError(ChunkingDomainError):
    """Raised when an embedding or text-completion provider fails."""

    def __init__(self, provider: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"{provider} provider failed: {message}", {"provider": provider, **(details or {})})
        self.provider = provider


class BenchmarkStrategyFailure(ChunkingDomainError):
    """Failure of a single strategy inside a multi-strategy benchmark.

    Benchmarks record this in the failing strategy's result slot instead of
    raising it, so the remaining strategies still report results.
    """

    def __init__(self, strategy_name: str, document_id: str, cause: BaseException) -> None:
        super().__init__(
            f"Strategy '{strategy_name}' failed on document '{document_id}': {cause}",
            {
                "strategy_name": strategy_name,
                "document_id": document_id,
                "error_type": type(cause).__name__,
            },
        )
        self.strategy_name = strategy_name
        self.document_id = document_id
        self.cause = cause
