#!/usr/bin/env python3
"""
Value objects for the chunking domain.

Value objects are immutable objects that represent concepts in the domain
without identity.
"""

from chunkwise.domain.value_objects.boundaries import BoundaryPoint, BoundaryType, ChunkBoundary
from chunkwise.domain.value_objects.chunk_metadata import ChunkMetadata
from chunkwise.domain.value_objects.chunk_props import ChunkProps, ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import (
    DEFAULT_MAX_CHUNK_SIZE,
    DEFAULT_OVERLAP_SIZE,
    ChunkingOptions,
    ChunkingStrategyType,
)
from chunkwise.domain.value_objects.coherence import (
    CoherenceAnalysisResult,
    CoherenceIssue,
    CoherenceIssueType,
    CoherenceLevel,
    IssueSeverity,
)
from chunkwise.domain.value_objects.document_content import DocumentContent, SectionHint
from chunkwise.domain.value_objects.document_type_info import (
    CategoryProfile,
    DocumentCategory,
    DocumentTypeInfo,
    StructuralElement,
    StructuralElementType,
)
from chunkwise.domain.value_objects.quality import (
    ChunkingQualityMetrics,
    QABenchmarkResult,
    QualityBenchmarkResult,
    QualityRecommendation,
    QualityReport,
    QuestionType,
    RecommendationPriority,
    RecommendationType,
    StrategyBenchmarkResult,
)

__all__ = [
    "DEFAULT_MAX_CHUNK_SIZE",
    "DEFAULT_OVERLAP_SIZE",
    "BoundaryPoint",
    "BoundaryType",
    "CategoryProfile",
    "ChunkBoundary",
    "ChunkMetadata",
    "ChunkProps",
    "ChunkPropsKeys",
    "ChunkingOptions",
    "ChunkingQualityMetrics",
    "ChunkingStrategyType",
    "CoherenceAnalysisResult",
    "CoherenceIssue",
    "CoherenceIssueType",
    "CoherenceLevel",
    "DocumentCategory",
    "DocumentContent",
    "DocumentTypeInfo",
    "IssueSeverity",
    "QABenchmarkResult",
    "QualityBenchmarkResult",
    "QualityRecommendation",
    "QualityReport",
    "QuestionType",
    "RecommendationPriority",
    "RecommendationType",
    "SectionHint",
    "StrategyBenchmarkResult",
    "StructuralElement",
    "StructuralElementType",
]
