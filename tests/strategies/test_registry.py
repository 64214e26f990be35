#!/usr/bin/env python3
"""Tests for the strategy registry."""

import pytest

from chunkwise.domain.exceptions import InvalidStateError, RegistryFrozenError, UnknownStrategyError
from chunkwise.domain.value_objects.document_type_info import DocumentCategory
from chunkwise.strategies.fixed_size import FixedSizeChunkingStrategy
from chunkwise.strategies.registry import StrategyMetadata, StrategyRegistry
from chunkwise.strategies.smart import SmartChunkingStrategy


def fixed_size_factory(registry):
    return FixedSizeChunkingStrategy()


class TestStrategyRegistry:
    """Test suite for StrategyRegistry."""

    def test_default_registry_contents(self, registry):
        """Test all eight strategies are registered, best first."""
        names = registry.names()

        assert len(names) == 8
        assert names[0] == "Auto"
        assert names[-1] == "FixedSize"
        assert registry.is_frozen

    def test_lookup_is_case_insensitive(self, registry):
        """Test names match regardless of case and surrounding whitespace."""
        assert registry.get("smart").name == "Smart"
        assert registry.get("  PAGELEVEL ").name == "PageLevel"
        assert registry.contains("hierarchical")

    def test_get_unknown_strategy(self, registry):
        """Test get raises for unknown names."""
        with pytest.raises(UnknownStrategyError) as exc_info:
            registry.get("Magic")

        assert "Smart" in exc_info.value.available

    def test_resolve_falls_back(self, registry):
        """Test resolve returns the fallback strategy with a warning."""
        # Act
        resolution = registry.resolve("Magic")

        # Assert
        assert resolution.fallback_used
        assert resolution.strategy.name == "FixedSize"
        assert resolution.requested == "Magic"
        assert "Magic" in resolution.warning

    def test_resolve_known_strategy(self, registry):
        """Test resolve of a registered name carries no warning."""
        resolution = registry.resolve("Semantic")

        assert not resolution.fallback_used
        assert resolution.warning is None

    def test_resolve_without_fallback(self):
        """Test resolve raises when no fallback is configured."""
        # Arrange
        registry = StrategyRegistry(fallback_strategy=None)
        registry.register("FixedSize", fixed_size_factory, StrategyMetadata(description="fixed"))
        registry.freeze()

        # Act & Assert
        with pytest.raises(UnknownStrategyError):
            registry.resolve("Magic")

    def test_register_after_freeze(self, registry):
        """Test registration is rejected once the registry is frozen."""
        with pytest.raises(RegistryFrozenError):
            registry.register("Custom", fixed_size_factory, StrategyMetadata(description="custom"))

    def test_lookup_before_freeze(self):
        """Test lookups require a frozen registry."""
        registry = StrategyRegistry()
        registry.register("FixedSize", fixed_size_factory, StrategyMetadata(description="fixed"))

        with pytest.raises(InvalidStateError, match="frozen"):
            registry.get("FixedSize")

    def test_duplicate_registration(self):
        """Test a name can only be registered once, ignoring case."""
        registry = StrategyRegistry()
        registry.register("FixedSize", fixed_size_factory, StrategyMetadata(description="fixed"))

        with pytest.raises(InvalidStateError, match="already registered"):
            registry.register("fixedsize", fixed_size_factory, StrategyMetadata(description="fixed"))

    def test_freeze_requires_fallback_registration(self):
        """Test freezing fails when the fallback strategy is missing."""
        registry = StrategyRegistry(fallback_strategy="FixedSize")
        registry.register("Smart", lambda registry: SmartChunkingStrategy(), StrategyMetadata(description="smart"))

        with pytest.raises(InvalidStateError, match="Fallback"):
            registry.freeze()

    def test_freeze_is_idempotent(self, registry):
        """Test freezing twice keeps the same strategy instances."""
        smart = registry.get("Smart")

        registry.freeze()

        assert registry.get("Smart") is smart

    def test_strategies_for_category(self, registry):
        """Test category lookup returns suited strategies."""
        legal = registry.strategies_for(DocumentCategory.LEGAL)

        assert "Smart" in legal
        assert "Semantic" in legal
        assert "FixedSize" not in legal

    def test_metadata_dict(self, registry):
        """Test metadata converts to a plain dictionary."""
        metadata = registry.metadata("Intelligent").to_metadata_dict()

        assert metadata["performance"]["requires_llm"] is True
        assert "technical" in [category.lower() for category in metadata["document_categories"]]
