#!/usr/bin/env python3
"""
Pure domain services for chunking.

Structure scanning, completeness scoring, document type optimization and
chunk metadata enrichment. None of these hold document-scoped state.
"""

from chunkwise.domain.services.completeness import (
    chunk_completeness,
    chunk_quality_score,
    is_complete_sentence,
    structural_score,
)
from chunkwise.domain.services.document_type_optimizer import CATEGORY_PROFILES, DocumentTypeOptimizer
from chunkwise.domain.services.metadata_enricher import ChunkMetadataEnricher, classify_content_type
from chunkwise.domain.services.structure_analyzer import DocumentStructureAnalyzer, DocumentStructureProfile

__all__ = [
    "CATEGORY_PROFILES",
    "ChunkMetadataEnricher",
    "DocumentStructureAnalyzer",
    "DocumentStructureProfile",
    "DocumentTypeOptimizer",
    "chunk_completeness",
    "chunk_quality_score",
    "classify_content_type",
    "is_complete_sentence",
    "structural_score",
]
