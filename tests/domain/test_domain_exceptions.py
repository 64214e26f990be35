#!/usr/bin/env python3
"""Tests for domain exceptions and cancellation."""

import pytest

from chunkwise.domain.exceptions import (
    BenchmarkStrategyFailure,
    ChunkingDomainError,
    ConfigurationError,
    OperationCancelledError,
    OverlapConfigurationError,
    RegistryFrozenError,
    UnknownStrategyError,
)
from chunkwise.utils.cancellation import CancellationToken, check_cancelled


class TestDomainExceptions:
    """Test suite for the exception hierarchy."""

    def test_base_error_details(self):
        """Test details default to an empty dict."""
        error = ChunkingDomainError("Something went wrong")

        assert error.message == "Something went wrong"
        assert error.details == {}
        assert str(error) == "Something went wrong"

    def test_overlap_error_is_configuration_error(self):
        """Test overlap errors can be caught as configuration errors."""
        error = OverlapConfigurationError(200, 100)

        assert isinstance(error, ConfigurationError)
        assert "200" in error.message
        assert error.details["chunk_size"] == 100

    def test_unknown_strategy_lists_available(self):
        """Test unknown strategy errors list the registered names."""
        error = UnknownStrategyError("Magic", ["Smart", "FixedSize"])

        assert isinstance(error, LookupError)
        assert error.strategy_name == "Magic"
        assert "Smart, FixedSize" in error.message

    def test_registry_frozen_error(self):
        """Test the frozen registry error names the strategy."""
        error = RegistryFrozenError("Custom")

        assert error.strategy_name == "Custom"
        assert "frozen" in error.message

    def test_benchmark_failure_wraps_cause(self):
        """Test benchmark failures record the cause type."""
        cause = RuntimeError("boom")

        failure = BenchmarkStrategyFailure("Semantic", "doc-1", cause)

        assert failure.cause is cause
        assert failure.details["error_type"] == "RuntimeError"
        assert "boom" in failure.message


class TestCancellationToken:
    """Test suite for cooperative cancellation."""

    def test_not_cancelled_by_default(self):
        """Test a fresh token does not raise."""
        token = CancellationToken()

        check_cancelled(token, "op")
        check_cancelled(None, "op")

        assert not token.is_cancelled

    def test_cancel_raises(self):
        """Test a cancelled token raises with the operation name."""
        # Arrange
        token = CancellationToken()

        # Act
        token.cancel()

        # Assert
        with pytest.raises(OperationCancelledError) as exc_info:
            check_cancelled(token, "chunking", 3)
        assert exc_info.value.operation == "chunking"
        assert exc_info.value.details["processed_segments"] == 3
