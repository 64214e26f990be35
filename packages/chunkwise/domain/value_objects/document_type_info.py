#!/usr/bin/env python3
"""
Document type value objects produced by the document type optimizer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DocumentCategory(str, Enum):
    """Broad document categories used to tune chunking defaults."""

    TECHNICAL = "Technical"
    LEGAL = "Legal"
    ACADEMIC = "Academic"
    FINANCIAL = "Financial"
    MEDICAL = "Medical"
    BUSINESS = "Business"
    CREATIVE = "Creative"
    GENERAL = "General"


class StructuralElementType(str, Enum):
    HEADER = "Header"
    CODE_BLOCK = "CodeBlock"
    LIST = "List"
    TABLE = "Table"


@dataclass(frozen=True)
class StructuralElement:
    """Count and average size of one kind of structural element."""

    type: StructuralElementType
    count: int
    average_size: float
    importance: float


@dataclass(frozen=True)
class CategoryProfile:
    """Known-good chunking parameters for a document category."""

    token_range: tuple[int, int]
    overlap_percent_range: tuple[int, int]
    recommended_strategy: str
    optimization_hints: tuple[str, ...] = ()


@dataclass(frozen=True)
class DocumentTypeInfo:
    """
    Classification of one document.

    Computed once per document and read-only afterwards.
    """

    category: DocumentCategory
    confidence: float
    language: str
    complexity_score: float
    sub_type: str | None = None
    average_sentence_length: float = 0.0
    structural_elements: tuple[StructuralElement, ...] = ()
    category_scores: dict[DocumentCategory, float] = field(default_factory=dict)
    characteristics: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")
        if not 0.0 <= self.complexity_score <= 1.0:
            raise ValueError(f"Complexity score must be between 0.0 and 1.0, got {self.complexity_score}")

    def element(self, element_type: StructuralElementType) -> StructuralElement | None:
        """Return the structural element record of the given type, if detected."""
        for element in self.structural_elements:
            if element.type == element_type:
                return element
        return None
