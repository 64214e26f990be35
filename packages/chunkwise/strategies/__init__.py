#!/usr/bin/env python3
"""
Chunking strategies and the strategy registry.

Use ``build_default_registry`` to obtain a frozen registry with the eight
built-in strategies.
"""

from chunkwise.strategies.auto import AutoChunkingStrategy, StrategySelection
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, pack_spans, split_to_budget
from chunkwise.strategies.fixed_size import FixedSizeChunkingStrategy
from chunkwise.strategies.hierarchical import HierarchicalChunkingStrategy
from chunkwise.strategies.intelligent import IntelligentChunkingStrategy
from chunkwise.strategies.page_level import PageLevelChunkingStrategy
from chunkwise.strategies.paragraph import ParagraphChunkingStrategy
from chunkwise.strategies.registry import (
    DEFAULT_STRATEGY_METADATA,
    StrategyMetadata,
    StrategyPerformance,
    StrategyRegistry,
    StrategyResolution,
    build_default_registry,
)
from chunkwise.strategies.semantic import SemanticChunkingStrategy
from chunkwise.strategies.smart import SmartChunkingStrategy

__all__ = [
    "DEFAULT_STRATEGY_METADATA",
    "AutoChunkingStrategy",
    "ChunkSpan",
    "ChunkingStrategy",
    "FixedSizeChunkingStrategy",
    "HierarchicalChunkingStrategy",
    "IntelligentChunkingStrategy",
    "PageLevelChunkingStrategy",
    "ParagraphChunkingStrategy",
    "SemanticChunkingStrategy",
    "SmartChunkingStrategy",
    "StrategyMetadata",
    "StrategyPerformance",
    "StrategyRegistry",
    "StrategyResolution",
    "StrategySelection",
    "build_default_registry",
    "pack_spans",
    "split_to_budget",
]
