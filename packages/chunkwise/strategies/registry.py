#!/usr/bin/env python3
"""
Strategy registry.

The registry has two phases. During registration a single writer adds
factories; ``freeze`` instantiates every strategy and publishes a read-only
table, after which lookups need no locking and further registration fails.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from chunkwise.domain.exceptions import InvalidStateError, RegistryFrozenError, UnknownStrategyError
from chunkwise.domain.value_objects.chunking_options import ChunkingStrategyType
from chunkwise.domain.value_objects.document_type_info import DocumentCategory
from chunkwise.strategies.base import ChunkingStrategy

if TYPE_CHECKING:
    from chunkwise.config.base import ChunkingSettings
    from chunkwise.embedding.base import EmbeddingProvider
    from chunkwise.llm.base import TextCompletionProvider

logger = logging.getLogger(__name__)

StrategyFactory = Callable[["StrategyRegistry"], ChunkingStrategy]


@dataclass(frozen=True)
class StrategyPerformance:
    speed: str
    quality: str
    memory_usage: str
    requires_llm: bool = False


@dataclass(frozen=True)
class StrategyMetadata:
    """Canonical description of an individual chunking strategy."""

    description: str
    optimal_for: tuple[str, ...] = ()
    strengths: tuple[str, ...] = ()
    limitations: tuple[str, ...] = ()
    priority: int = 50
    performance: StrategyPerformance = field(default_factory=lambda: StrategyPerformance("medium", "medium", "low"))
    document_categories: tuple[DocumentCategory, ...] = ()

    def to_metadata_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "optimal_for": list(self.optimal_for),
            "strengths": list(self.strengths),
            "limitations": list(self.limitations),
            "priority": self.priority,
            "performance": {
                "speed": self.performance.speed,
                "quality": self.performance.quality,
                "memory_usage": self.performance.memory_usage,
                "requires_llm": self.performance.requires_llm,
            },
            "document_categories": [category.value for category in self.document_categories],
        }


@dataclass(frozen=True)
class StrategyResolution:
    """Outcome of resolving a requested strategy name."""

    strategy: ChunkingStrategy
    requested: str
    fallback_used: bool = False
    warning: str | None = None


@dataclass(frozen=True)
class _Registration:
    name: str
    factory: StrategyFactory
    metadata: StrategyMetadata


class StrategyRegistry:
    """
    Name to strategy lookup, immutable after ``freeze``.

    Names are matched case-insensitively. An unknown name resolves to the
    fallback strategy when one is configured.
    """

    def __init__(self, fallback_strategy: str | None = ChunkingStrategyType.FIXED_SIZE.value) -> None:
        self._fallback_strategy = fallback_strategy
        self._registrations: dict[str, _Registration] = {}
        self._strategies: Mapping[str, ChunkingStrategy] = MappingProxyType({})
        self._metadata: Mapping[str, StrategyMetadata] = MappingProxyType({})
        self._canonical_names: Mapping[str, str] = MappingProxyType({})
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def fallback_strategy(self) -> str | None:
        return self._fallback_strategy

    def register(self, name: str, factory: StrategyFactory, metadata: StrategyMetadata) -> None:
        """
        Register a strategy factory.

        Raises:
            RegistryFrozenError: If the registry was already frozen
            InvalidStateError: If the name is already registered
        """
        if self._frozen:
            raise RegistryFrozenError(name)

        key = name.strip().lower()
        if key in self._registrations:
            raise InvalidStateError(f"Strategy '{name}' is already registered", {"strategy_name": name})

        self._registrations[key] = _Registration(name.strip(), factory, metadata)
        logger.debug(f"Registered strategy {name} (priority {metadata.priority})")

    def freeze(self) -> "StrategyRegistry":
        """Instantiate all strategies and publish the read-only lookup tables."""
        if self._frozen:
            return self

        if self._fallback_strategy and self._fallback_strategy.lower() not in self._registrations:
            raise InvalidStateError(
                f"Fallback strategy '{self._fallback_strategy}' is not registered",
                {"strategy_name": self._fallback_strategy},
            )

        strategies = {}
        for key, registration in self._registrations.items():
            strategies[key] = registration.factory(self)

        self._strategies = MappingProxyType(strategies)
        self._metadata = MappingProxyType({key: r.metadata for key, r in self._registrations.items()})
        self._canonical_names = MappingProxyType({key: r.name for key, r in self._registrations.items()})
        self._frozen = True
        logger.info(f"Strategy registry frozen with {len(strategies)} strategies: {', '.join(self.names())}")
        return self

    def _require_frozen(self) -> None:
        if not self._frozen:
            raise InvalidStateError("Strategy registry must be frozen before lookups")

    def names(self) -> list[str]:
        """Registered names ordered by descending priority."""
        self._require_frozen()
        ordered = sorted(self._metadata.items(), key=lambda item: item[1].priority, reverse=True)
        return [self._canonical_names[key] for key, _ in ordered]

    def contains(self, name: str) -> bool:
        self._require_frozen()
        return name.strip().lower() in self._strategies

    def get(self, name: str) -> ChunkingStrategy:
        """
        Strategy registered under ``name``.

        Raises:
            UnknownStrategyError: If no strategy is registered under ``name``
        """
        self._require_frozen()
        strategy = self._strategies.get(name.strip().lower())
        if strategy is None:
            raise UnknownStrategyError(name, self.names())
        return strategy

    def resolve(self, name: str) -> StrategyResolution:
        """
        Strategy for ``name``, or the fallback strategy with a warning.

        Raises:
            UnknownStrategyError: If ``name`` is unknown and no fallback is configured
        """
        self._require_frozen()
        strategy = self._strategies.get(name.strip().lower())
        if strategy is not None:
            return StrategyResolution(strategy=strategy, requested=name)

        if not self._fallback_strategy:
            raise UnknownStrategyError(name, self.names())

        warning = f"Strategy '{name}' is not registered; using '{self._fallback_strategy}' instead"
        logger.warning(warning)
        return StrategyResolution(
            strategy=self.get(self._fallback_strategy),
            requested=name,
            fallback_used=True,
            warning=warning,
        )

    def metadata(self, name: str) -> StrategyMetadata:
        self._require_frozen()
        metadata = self._metadata.get(name.strip().lower())
        if metadata is None:
            raise UnknownStrategyError(name, self.names())
        return metadata

    def strategies_for(self, category: DocumentCategory) -> list[str]:
        """Names of strategies suited to ``category``, best first."""
        return [name for name in self.names() if category in self.metadata(name).document_categories]


ALL_CATEGORIES = tuple(DocumentCategory)

DEFAULT_STRATEGY_METADATA: dict[ChunkingStrategyType, StrategyMetadata] = {
    ChunkingStrategyType.AUTO: StrategyMetadata(
        description="Analyzes document structure and selects the best strategy automatically",
        optimal_for=("Mixed document collections", "Unknown document types"),
        strengths=("No configuration needed", "Adapts to each document", "Records its reasoning"),
        limitations=("Extra analysis pass", "Heuristic selection"),
        priority=100,
        performance=StrategyPerformance("medium", "high", "low"),
        document_categories=ALL_CATEGORIES,
    ),
    ChunkingStrategyType.SMART: StrategyMetadata(
        description="Sentence-aware chunking with a guaranteed completeness floor",
        optimal_for=("Legal documents", "Medical documents", "Academic papers"),
        strengths=("At least 70% complete sentences", "Sentence-aligned overlap", "Abbreviation aware"),
        limitations=("Chunk sizes vary more", "Slower than fixed-size"),
        priority=90,
        performance=StrategyPerformance("medium", "high", "low"),
        document_categories=(
            DocumentCategory.LEGAL,
            DocumentCategory.MEDICAL,
            DocumentCategory.ACADEMIC,
            DocumentCategory.GENERAL,
        ),
    ),
    ChunkingStrategyType.INTELLIGENT: StrategyMetadata(
        description="Groups semantic units (sections, tables, lists, code) and can consult a completion model",
        optimal_for=("Technical documentation", "API references", "Structured reports"),
        strengths=("Keeps tables and code whole", "Headings stay with their content", "Optional model guidance"),
        limitations=("Slow with a completion provider", "Depends on markup quality"),
        priority=85,
        performance=StrategyPerformance("slow", "very_high", "medium", requires_llm=True),
        document_categories=(DocumentCategory.TECHNICAL, DocumentCategory.BUSINESS, DocumentCategory.FINANCIAL),
    ),
    ChunkingStrategyType.HIERARCHICAL: StrategyMetadata(
        description="Follows the heading hierarchy and links sections to their parents",
        optimal_for=("Manuals", "Markdown documentation", "Books with chapters"),
        strengths=("Preserves document outline", "Parent and child navigation", "Section paths on every chunk"),
        limitations=("Needs headings or section hints", "Uneven sizes for flat documents"),
        priority=82,
        performance=StrategyPerformance("fast", "high", "low"),
        document_categories=(DocumentCategory.TECHNICAL, DocumentCategory.ACADEMIC),
    ),
    ChunkingStrategyType.SEMANTIC: StrategyMetadata(
        description="Sentence packing that closes chunks at detected topic changes",
        optimal_for=("Essays", "Articles", "Narrative text"),
        strengths=("Topic-coherent chunks", "Embedding-driven boundaries"),
        limitations=("Requires an embedding provider for full effect", "Slower processing"),
        priority=75,
        performance=StrategyPerformance("slow", "high", "medium"),
        document_categories=(DocumentCategory.LEGAL, DocumentCategory.MEDICAL, DocumentCategory.CREATIVE),
    ),
    ChunkingStrategyType.PAGE_LEVEL: StrategyMetadata(
        description="One chunk per page, splitting only oversized pages",
        optimal_for=("PDF exports", "Slide decks", "Scanned documents"),
        strengths=("Page-accurate citations", "Predictable mapping to source"),
        limitations=("Needs page boundaries", "Pages vary widely in size"),
        priority=70,
        performance=StrategyPerformance("very_fast", "medium", "low"),
        document_categories=(DocumentCategory.FINANCIAL, DocumentCategory.BUSINESS),
    ),
    ChunkingStrategyType.PARAGRAPH: StrategyMetadata(
        description="Paragraph-based chunking that merges short paragraphs and keeps procedures together",
        optimal_for=("Procedures", "Numbered instructions", "Business reports"),
        strengths=("Natural reading units", "No mid-paragraph cuts", "Headings start new chunks"),
        limitations=("Large size variance", "Long paragraphs still need splitting"),
        priority=60,
        performance=StrategyPerformance("fast", "medium", "low"),
        document_categories=(DocumentCategory.BUSINESS, DocumentCategory.CREATIVE, DocumentCategory.GENERAL),
    ),
    ChunkingStrategyType.FIXED_SIZE: StrategyMetadata(
        description="Simple fixed-size chunking by estimated token count",
        optimal_for=("Logs", "Plain text dumps", "Uniform batch processing"),
        strengths=("Predictable chunk sizes", "Fast processing", "Low memory usage"),
        limitations=("May split sentences or paragraphs", "No semantic coherence"),
        priority=50,
        performance=StrategyPerformance("very_fast", "moderate", "low"),
        document_categories=(DocumentCategory.GENERAL,),
    ),
}


def build_default_registry(
    embedding_provider: "EmbeddingProvider | None" = None,
    completion_provider: "TextCompletionProvider | None" = None,
    settings: "ChunkingSettings | None" = None,
) -> StrategyRegistry:
    """Register the eight built-in strategies and freeze the registry."""
    from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
    from chunkwise.config.base import ChunkingSettings
    from chunkwise.strategies.auto import AutoChunkingStrategy
    from chunkwise.strategies.fixed_size import FixedSizeChunkingStrategy
    from chunkwise.strategies.hierarchical import HierarchicalChunkingStrategy
    from chunkwise.strategies.intelligent import IntelligentChunkingStrategy
    from chunkwise.strategies.page_level import PageLevelChunkingStrategy
    from chunkwise.strategies.paragraph import ParagraphChunkingStrategy
    from chunkwise.strategies.semantic import SemanticChunkingStrategy
    from chunkwise.strategies.smart import SmartChunkingStrategy

    settings = settings or ChunkingSettings()
    detector = SemanticBoundaryDetector.from_settings(settings, embedding_provider)

    factories: dict[ChunkingStrategyType, StrategyFactory] = {
        ChunkingStrategyType.AUTO: lambda registry: AutoChunkingStrategy(registry, settings=settings),
        ChunkingStrategyType.SMART: lambda registry: SmartChunkingStrategy(),
        ChunkingStrategyType.INTELLIGENT: lambda registry: IntelligentChunkingStrategy(completion_provider),
        ChunkingStrategyType.HIERARCHICAL: lambda registry: HierarchicalChunkingStrategy(),
        ChunkingStrategyType.SEMANTIC: lambda registry: SemanticChunkingStrategy(detector),
        ChunkingStrategyType.PAGE_LEVEL: lambda registry: PageLevelChunkingStrategy(),
        ChunkingStrategyType.PARAGRAPH: lambda registry: ParagraphChunkingStrategy(),
        ChunkingStrategyType.FIXED_SIZE: lambda registry: FixedSizeChunkingStrategy(),
    }

    registry = StrategyRegistry(fallback_strategy=settings.fallback_strategy)
    for strategy_type, factory in factories.items():
        registry.register(strategy_type.value, factory, DEFAULT_STRATEGY_METADATA[strategy_type])
    return registry.freeze()
