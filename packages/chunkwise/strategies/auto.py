#!/usr/bin/env python3
"""
Auto chunking strategy.

Scans the document's structure, picks one of the registered strategies and
delegates to it. The selection and its reasoning are recorded on every
produced chunk.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from chunkwise.config.base import ChunkingSettings
from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.exceptions import ChunkingDomainError, InvalidStateError, OperationCancelledError
from chunkwise.domain.services.document_type_optimizer import DocumentTypeOptimizer
from chunkwise.domain.services.structure_analyzer import DocumentStructureAnalyzer
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.domain.value_objects.document_type_info import DocumentTypeInfo
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan
from chunkwise.strategies.registry import StrategyRegistry
from chunkwise.utils.cancellation import CancellationToken
from chunkwise.utils.text import cjk_size_multiplier

logger = logging.getLogger(__name__)

SELECTION_CONFIDENCE = {
    ChunkingStrategyType.SMART.value: 0.85,
    ChunkingStrategyType.INTELLIGENT.value: 0.80,
    ChunkingStrategyType.SEMANTIC.value: 0.75,
    ChunkingStrategyType.PARAGRAPH.value: 0.70,
    ChunkingStrategyType.FIXED_SIZE.value: 0.65,
}
DEFAULT_SELECTION_CONFIDENCE = 0.60


def selection_confidence(strategy_name: str) -> float:
    return SELECTION_CONFIDENCE.get(strategy_name, DEFAULT_SELECTION_CONFIDENCE)


@dataclass(frozen=True)
class StrategySelection:
    """Outcome of Auto selection for one document."""

    strategy_name: str
    reasoning: str
    confidence: float
    cjk_ratio: float
    size_multiplier: float
    options: ChunkingOptions
    document_type: DocumentTypeInfo


class AutoChunkingStrategy(ChunkingStrategy):
    """
    Heuristic strategy selection.

    Rules, first match wins:
        1. numbered section markers >= threshold -> Paragraph
        2. Markdown headings >= threshold -> Hierarchical
        3. CJK ratio > threshold -> shrink sizes, then Smart (or Semantic with PreferSpeed)
        4. otherwise -> Smart

    Strategy options:
        ForceStrategy (str): bypass the heuristics
        PreferSpeed / PreferQuality (bool, False): CJK documents use Semantic / Smart
        UseAutoParameters (bool, True): take sizes from the document type optimizer
            when the caller kept the default sizes
        ConfidenceThreshold (float, settings): below it the selection falls back to Smart
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        settings: ChunkingSettings | None = None,
        structure_analyzer: DocumentStructureAnalyzer | None = None,
        optimizer: DocumentTypeOptimizer | None = None,
    ) -> None:
        super().__init__(ChunkingStrategyType.AUTO.value)
        self.registry = registry
        self.settings = settings or ChunkingSettings()
        self.structure_analyzer = structure_analyzer or DocumentStructureAnalyzer()
        self.optimizer = optimizer or DocumentTypeOptimizer()

    def select(self, document: DocumentContent | str, options: ChunkingOptions) -> StrategySelection:
        """Pick a strategy and the options it should run with."""
        document = DocumentContent.coerce(document)
        text = document.text
        profile = self.structure_analyzer.analyze(text)
        document_type = document.document_type or self.optimizer.detect_document_type(text)
        multiplier = 1.0

        forced = options.get_strategy_option("ForceStrategy", "").strip()
        if forced and forced.lower() != ChunkingStrategyType.AUTO.value.lower() and self.registry.contains(forced):
            name = self.registry.get(forced).name
            reasoning = f"Forced strategy: {name}"
        else:
            if forced:
                logger.warning(f"Ignoring ForceStrategy '{forced}': not a registered concrete strategy")
            name, reasoning, multiplier = self._apply_heuristics(
                profile.numbered_section_count, profile.heading_count, profile.cjk_ratio, options
            )

            threshold = options.get_strategy_option("ConfidenceThreshold", self.settings.AUTO_CONFIDENCE_THRESHOLD)
            confidence = selection_confidence(name)
            if confidence < threshold:
                reasoning = f"Low confidence ({confidence:.0%}) for {name}, using default strategy"
                name = ChunkingStrategyType.SMART.value

        effective = self._effective_options(options, document_type, multiplier).with_strategy(name)
        selection = StrategySelection(
            strategy_name=name,
            reasoning=reasoning,
            confidence=selection_confidence(name),
            cjk_ratio=profile.cjk_ratio,
            size_multiplier=multiplier,
            options=effective,
            document_type=document_type,
        )
        logger.info(
            f"Auto selected {name} for '{document.document_id}' "
            f"(confidence {selection.confidence:.2f}, max size {effective.max_chunk_size}): {reasoning}"
        )
        return selection

    def _apply_heuristics(
        self, numbered_sections: int, headings: int, cjk_ratio: float, options: ChunkingOptions
    ) -> tuple[str, str, float]:
        settings = self.settings
        if numbered_sections >= settings.NUMBERED_SECTION_THRESHOLD:
            return (
                ChunkingStrategyType.PARAGRAPH.value,
                f"Detected {numbered_sections} numbered sections; paragraph chunking keeps procedures together",
                1.0,
            )

        if headings >= settings.HEADING_THRESHOLD:
            return (
                ChunkingStrategyType.HIERARCHICAL.value,
                f"Detected {headings} headings; following the document outline",
                1.0,
            )

        if cjk_ratio > settings.CJK_RATIO_THRESHOLD:
            multiplier = cjk_size_multiplier(cjk_ratio, settings.CJK_RATIO_THRESHOLD, settings.CJK_MIN_MULTIPLIER)
            reasoning = f"CJK ratio {cjk_ratio:.2f}; chunk size scaled by {multiplier:.2f}"
            if options.get_strategy_option("PreferSpeed", False):
                return ChunkingStrategyType.SEMANTIC.value, reasoning + " [Speed optimized]", multiplier
            if options.get_strategy_option("PreferQuality", False):
                return ChunkingStrategyType.SMART.value, reasoning + " [Quality optimized]", multiplier
            return ChunkingStrategyType.SMART.value, reasoning, multiplier

        return ChunkingStrategyType.SMART.value, "No dominant structure detected; using sentence-aware chunking", 1.0

    def _effective_options(
        self, options: ChunkingOptions, document_type: DocumentTypeInfo, multiplier: float
    ) -> ChunkingOptions:
        max_size, overlap = options.max_chunk_size, options.overlap_size

        if options.get_strategy_option("UseAutoParameters", True) and options.uses_default_sizes:
            optimized = self.optimizer.get_optimal_options(document_type, options)
            max_size, overlap = optimized.max_chunk_size, optimized.overlap_size

        if multiplier < 1.0:
            max_size = max(1, int(max_size * multiplier))
            overlap = min(int(overlap * multiplier), max_size - 1)

        if (max_size, overlap) == (options.max_chunk_size, options.overlap_size):
            return options
        return options.with_sizes(max_size, overlap)

    def chunk(
        self,
        document: DocumentContent | str,
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Chunk]:
        document = DocumentContent.coerce(document)
        if document.is_blank:
            return []

        selection = self.select(document, options)
        strategy = self.registry.get(selection.strategy_name)
        fallback_reason = None
        try:
            chunks = strategy.chunk(document, selection.options, progress_callback, cancellation)
        except ChunkingDomainError as e:
            fallback_reason = self._fallback_reason(selection, e)
            smart = self.registry.get(ChunkingStrategyType.SMART.value)
            chunks = smart.chunk(document, self._smart_options(selection), progress_callback, cancellation)
        return self._label(chunks, selection, fallback_reason)

    async def chunk_async(
        self,
        document: DocumentContent | str,
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Chunk]:
        document = DocumentContent.coerce(document)
        if document.is_blank:
            return []

        selection = self.select(document, options)
        strategy = self.registry.get(selection.strategy_name)
        fallback_reason = None
        try:
            chunks = await strategy.chunk_async(document, selection.options, progress_callback, cancellation)
        except ChunkingDomainError as e:
            fallback_reason = self._fallback_reason(selection, e)
            smart = self.registry.get(ChunkingStrategyType.SMART.value)
            chunks = await smart.chunk_async(document, self._smart_options(selection), progress_callback, cancellation)
        return self._label(chunks, selection, fallback_reason)

    def _fallback_reason(self, selection: StrategySelection, error: ChunkingDomainError) -> str:
        if isinstance(error, OperationCancelledError) or selection.strategy_name == ChunkingStrategyType.SMART.value:
            raise error
        reason = f"{selection.strategy_name} failed: {error.message}"
        logger.warning(f"Auto falling back to Smart: {reason}")
        return reason

    def _smart_options(self, selection: StrategySelection) -> ChunkingOptions:
        return selection.options.with_strategy(ChunkingStrategyType.SMART.value)

    def _label(
        self, chunks: list[Chunk], selection: StrategySelection, fallback_reason: str | None
    ) -> list[Chunk]:
        used = ChunkingStrategyType.SMART.value if fallback_reason else selection.strategy_name
        labeled = []
        for chunk in chunks:
            props = chunk.props
            props[ChunkPropsKeys.AUTO_SELECTED_STRATEGY] = used
            props[ChunkPropsKeys.SELECTION_REASONING] = selection.reasoning
            props[ChunkPropsKeys.SELECTION_CONFIDENCE] = selection_confidence(used)
            props[ChunkPropsKeys.OPTIMIZED_MAX_CHUNK_SIZE] = selection.options.max_chunk_size
            props[ChunkPropsKeys.OPTIMIZED_OVERLAP_SIZE] = selection.options.overlap_size
            props[ChunkPropsKeys.DETECTED_DOCUMENT_CATEGORY] = selection.document_type.category.value
            props[ChunkPropsKeys.CJK_RATIO] = round(selection.cjk_ratio, 4)
            if fallback_reason:
                props[ChunkPropsKeys.AUTO_FALLBACK_REASON] = fallback_reason

            metadata = replace(chunk.metadata, strategy_name=f"Auto({used})")
            labeled.append(Chunk(chunk.content, metadata, props))
        return labeled

    def estimate_chunks(self, content_length: int, options: ChunkingOptions) -> int:
        return self.registry.get(ChunkingStrategyType.SMART.value).estimate_chunks(content_length, options)

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        raise InvalidStateError("Auto delegates splitting to the selected strategy", {"strategy_name": self.name})
