#!/usr/bin/env python3
"""
Open property map attached to every chunk.

Strategies, the Auto selector and the enrichment step write well-known keys
from ``ChunkPropsKeys``; callers may add their own. Typed accessors keep call
sites from depending on whatever type happened to be stored.
"""

from typing import Any, TypeVar

T = TypeVar("T")


class ChunkPropsKeys:
    """Well-known chunk property keys."""

    # Auto selection
    AUTO_SELECTED_STRATEGY = "AutoSelectedStrategy"
    SELECTION_REASONING = "SelectionReasoning"
    SELECTION_CONFIDENCE = "SelectionConfidence"
    OPTIMIZED_MAX_CHUNK_SIZE = "OptimizedMaxChunkSize"
    OPTIMIZED_OVERLAP_SIZE = "OptimizedOverlapSize"
    DETECTED_DOCUMENT_CATEGORY = "DetectedDocumentCategory"
    CJK_RATIO = "CjkRatio"
    AUTO_FALLBACK_REASON = "AutoFallbackReason"

    # Registry
    STRATEGY_FALLBACK_WARNING = "StrategyFallbackWarning"

    # Chunk metadata
    CONTENT_TYPE = "metadata.contentType"
    STRUCTURAL_ROLE = "metadata.structuralRole"
    TOKEN_COUNT = "metadata.tokenCount"
    OVERLAP_WITH_PREVIOUS = "metadata.overlapWithPrevious"

    # Navigation
    PREVIOUS_CHUNK_ID = "nav.previousChunkId"
    NEXT_CHUNK_ID = "nav.nextChunkId"
    PARENT_CHUNK_ID = "nav.parentChunkId"

    # Hierarchy
    HIERARCHY_LEVEL = "hierarchy.level"
    HIERARCHY_CHUNK_TYPE = "hierarchy.chunkType"
    SECTION_PATH = "hierarchy.sectionPath"
    CHILD_CHUNK_IDS = "hierarchy.childChunkIds"

    # Source
    START_PAGE = "source.startPage"
    END_PAGE = "source.endPage"

    # Quality
    COMPLETENESS = "quality.completeness"
    QUALITY_SCORE = "quality.score"
    IMPORTANCE = "quality.importance"
    COMPLETENESS_FLOOR_MET = "quality.completenessFloorMet"

    # Analysis
    DEGRADED = "analysis.degraded"


class ChunkProps(dict[str, Any]):
    """String-keyed property map with typed accessors."""

    def try_get(self, key: str, expected_type: type[T]) -> T | None:
        """
        Return the value under ``key`` if it has the expected type.

        ``bool`` values are not accepted where an ``int`` or ``float`` is
        expected, and ints are accepted where a float is expected.
        """
        if key not in self:
            return None

        value = self[key]
        if isinstance(value, bool) and expected_type is not bool:
            return None
        if expected_type is float and isinstance(value, int):
            return float(value)  # type: ignore[return-value]
        if isinstance(value, expected_type):
            return value
        return None

    def get_or_default(self, key: str, default: T) -> T:
        """Return the value under ``key`` when it matches the default's type."""
        value = self.try_get(key, type(default))
        return default if value is None else value
