#!/usr/bin/env python3
"""
Document type detection and category-tuned chunking options.

Classification is keyword-density based: each category scores the share of
its keywords among all words. Tuned options come from per-category ranges
that are narrowed by the document's complexity.
"""

import logging
import re
from statistics import mean

from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_type_info import (
    CategoryProfile,
    DocumentCategory,
    DocumentTypeInfo,
    StructuralElement,
    StructuralElementType,
)
from chunkwise.utils.text import (
    CODE_FENCE_PATTERN,
    HEADING_PATTERN,
    LIST_ITEM_PATTERN,
    TABLE_ROW_PATTERN,
    words,
)

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS: dict[DocumentCategory, tuple[str, ...]] = {
    DocumentCategory.TECHNICAL: (
        "code", "function", "api", "algorithm", "system", "software", "implementation",
        "class", "method", "debug", "compile", "syntax",
    ),
    DocumentCategory.LEGAL: (
        "legal", "law", "contract", "agreement", "clause", "liability", "court",
        "statute", "regulation", "compliance", "attorney", "pursuant",
    ),
    DocumentCategory.ACADEMIC: (
        "research", "study", "hypothesis", "methodology", "abstract", "conclusion",
        "literature", "citation", "reference", "analysis", "findings",
    ),
    DocumentCategory.FINANCIAL: (
        "finance", "investment", "revenue", "profit", "market", "portfolio", "asset",
        "equity", "dividend", "fiscal", "budget", "earnings",
    ),
    DocumentCategory.MEDICAL: (
        "patient", "diagnosis", "treatment", "medical", "clinical", "symptom", "disease",
        "therapy", "medication", "health", "physician", "hospital",
    ),
    DocumentCategory.BUSINESS: (
        "business", "strategy", "management", "market", "customer", "product", "service",
        "growth", "performance", "stakeholder", "competitive",
    ),
    DocumentCategory.CREATIVE: (
        "story", "character", "plot", "narrative", "creative", "artistic", "design",
        "aesthetic", "inspiration", "imagination", "expression",
    ),
}

CATEGORY_PROFILES: dict[DocumentCategory, CategoryProfile] = {
    DocumentCategory.TECHNICAL: CategoryProfile(
        (500, 800),
        (20, 30),
        ChunkingStrategyType.AUTO.value,
        ("Preserve code blocks intact", "Maintain API documentation structure", "Keep examples with explanations"),
    ),
    DocumentCategory.LEGAL: CategoryProfile(
        (300, 500),
        (15, 25),
        ChunkingStrategyType.SEMANTIC.value,
        ("Preserve clause boundaries", "Maintain legal citations", "Keep definitions with context"),
    ),
    DocumentCategory.ACADEMIC: CategoryProfile(
        (200, 400),
        (25, 35),
        ChunkingStrategyType.AUTO.value,
        ("Preserve citations and references", "Maintain methodology sections", "Keep conclusions with supporting data"),
    ),
    DocumentCategory.FINANCIAL: CategoryProfile(
        (400, 600),
        (20, 30),
        ChunkingStrategyType.AUTO.value,
        ("Use element-based chunking for tables", "Preserve numerical data integrity", "Maintain temporal context"),
    ),
    DocumentCategory.MEDICAL: CategoryProfile(
        (350, 550),
        (20, 30),
        ChunkingStrategyType.SEMANTIC.value,
        (
            "Preserve medical terminology context",
            "Maintain patient information boundaries",
            "Keep treatment protocols together",
        ),
    ),
    DocumentCategory.BUSINESS: CategoryProfile(
        (400, 700),
        (15, 25),
        ChunkingStrategyType.PARAGRAPH.value,
        ("Maintain executive summary integrity", "Preserve bullet points and lists", "Keep recommendations with rationale"),
    ),
    DocumentCategory.CREATIVE: CategoryProfile(
        (500, 900),
        (10, 20),
        ChunkingStrategyType.PARAGRAPH.value,
        ("Preserve narrative flow", "Maintain character and plot continuity", "Keep dialogue sections intact"),
    ),
    DocumentCategory.GENERAL: CategoryProfile(
        (400, 600),
        (15, 25),
        ChunkingStrategyType.AUTO.value,
        ("Use adaptive chunking", "Detect and preserve structure", "Balance size and coherence"),
    ),
}

MIN_CATEGORY_SCORE = 0.3
GENERAL_CONFIDENCE = 0.5

_KEYWORD_PATTERNS = {
    category: re.compile(r"\b(?:" + "|".join(re.escape(keyword) for keyword in keywords) + r")\b")
    for category, keywords in CATEGORY_KEYWORDS.items()
}
_SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?。！？]+")
_HANGUL_PATTERN = re.compile(r"[ㄱ-ㆎ가-힣]")
_KANA_PATTERN = re.compile(r"[぀-ゟ゠-ヿ]")
_HAN_PATTERN = re.compile(r"[一-鿿]")


class DocumentTypeOptimizer:
    """
    Classifies documents into categories and derives tuned chunking options.

    Stateless; per-document caching belongs to the caller's session.
    """

    def __init__(
        self,
        profiles: dict[DocumentCategory, CategoryProfile] | None = None,
        min_category_score: float = MIN_CATEGORY_SCORE,
    ) -> None:
        self.profiles = profiles or CATEGORY_PROFILES
        self.min_category_score = min_category_score

    def profile_for(self, category: DocumentCategory) -> CategoryProfile:
        return self.profiles.get(category, CATEGORY_PROFILES[DocumentCategory.GENERAL])

    def detect_document_type(self, text: str) -> DocumentTypeInfo:
        """Classify ``text`` and collect the signals used for tuning."""
        scores = self.score_categories(text)
        category, confidence = self._select_category(scores)
        structural_elements = self.detect_structural_elements(text)
        sub_type = self._detect_sub_type(category, text)

        info = DocumentTypeInfo(
            category=category,
            confidence=confidence,
            language=self.detect_language(text),
            complexity_score=self.calculate_complexity(text),
            sub_type=sub_type,
            average_sentence_length=self._average_sentence_length(text),
            structural_elements=tuple(structural_elements),
            category_scores=scores,
            characteristics=self._characteristics(text, structural_elements),
        )
        logger.debug(
            f"Detected document category {info.category.value} "
            f"(confidence {info.confidence:.2f}, complexity {info.complexity_score:.2f})"
        )
        return info

    def score_categories(self, text: str) -> dict[DocumentCategory, float]:
        """Keyword density per category: min(1, keyword hits / words * 100)."""
        lowered = text.lower()
        word_count = len(words(lowered))
        if word_count == 0:
            return {category: 0.0 for category in CATEGORY_KEYWORDS}

        return {
            category: min(1.0, len(pattern.findall(lowered)) / word_count * 100)
            for category, pattern in _KEYWORD_PATTERNS.items()
        }

    def _select_category(self, scores: dict[DocumentCategory, float]) -> tuple[DocumentCategory, float]:
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        if not ranked or ranked[0][1] < self.min_category_score:
            return DocumentCategory.GENERAL, GENERAL_CONFIDENCE

        top_category, top_score = ranked[0]
        second_score = ranked[1][1] if len(ranked) > 1 else 0.0
        confidence = min(1.0, (top_score - second_score) * 2 + top_score)
        return top_category, confidence

    def get_optimal_options(self, info: DocumentTypeInfo, base: ChunkingOptions | None = None) -> ChunkingOptions:
        """
        Options tuned to the category's size and overlap ranges.

        Complex documents move toward the lower bound of the size range,
        simple ones toward the upper bound.
        """
        base = base or ChunkingOptions()
        profile = self.profile_for(info.category)
        low, high = profile.token_range
        overlap_low, overlap_high = profile.overlap_percent_range

        max_size = (low + high) // 2
        overlap = int((overlap_low + overlap_high) / 2 * max_size / 100)

        if info.complexity_score > 0.7:
            max_size = low
            overlap = int(overlap_high * max_size / 100)
        elif info.complexity_score < 0.3:
            max_size = high
            overlap = int(overlap_low * max_size / 100)

        strategy = profile.recommended_strategy

        table = info.element(StructuralElementType.TABLE)
        if table is not None and table.count > 0:
            max_size = min(int(max_size * 1.5), int(high * 1.5))

        header = info.element(StructuralElementType.HEADER)
        if header is not None and header.count > 10 and strategy == ChunkingStrategyType.PARAGRAPH.value:
            strategy = ChunkingStrategyType.SEMANTIC.value

        return base.with_sizes(max_size, overlap).with_strategy(strategy)

    def calculate_complexity(self, text: str) -> float:
        """
        Weighted complexity in [0, 1].

        0.3 x normalized average word length, 0.4 x normalized average
        sentence length (words), 0.3 x (1 - unique word ratio).
        """
        tokens = words(text)
        if not tokens:
            return 0.0

        average_word_length = mean(len(token) for token in tokens)
        unique_ratio = len(set(tokens)) / len(tokens)

        score = (
            min(1.0, average_word_length / 10) * 0.3
            + min(1.0, self._average_sentence_length(text) / 30) * 0.4
            + (1 - unique_ratio) * 0.3
        )
        return max(0.0, min(1.0, score))

    def _average_sentence_length(self, text: str) -> float:
        sentences = [part for part in _SENTENCE_SPLIT_PATTERN.split(text) if part.strip()]
        if not sentences:
            return 0.0
        return mean(len(words(sentence)) for sentence in sentences)

    def detect_language(self, text: str) -> str:
        if _HANGUL_PATTERN.search(text):
            return "ko"
        if _KANA_PATTERN.search(text):
            return "ja"
        if _HAN_PATTERN.search(text):
            return "zh"
        return "en"

    def _detect_sub_type(self, category: DocumentCategory, text: str) -> str | None:
        lowered = text.lower()
        if category == DocumentCategory.TECHNICAL:
            if "API" in text or "endpoint" in lowered:
                return "API Documentation"
            if "README" in text or "installation" in lowered:
                return "README"
            if "class" in lowered and "method" in lowered:
                return "Code Documentation"
            return "Technical Documentation"
        if category == DocumentCategory.LEGAL:
            if "agreement" in lowered or "contract" in lowered:
                return "Contract"
            if "patent" in lowered:
                return "Patent"
            if "compliance" in lowered:
                return "Compliance"
            return "Legal Document"
        if category == DocumentCategory.ACADEMIC:
            if "abstract" in lowered and "methodology" in lowered:
                return "Research Paper"
            if "thesis" in lowered:
                return "Thesis"
            if "review" in lowered:
                return "Literature Review"
            return "Academic Paper"
        return None

    def detect_structural_elements(self, text: str) -> list[StructuralElement]:
        elements = []

        headings = HEADING_PATTERN.findall(text)
        if headings:
            elements.append(
                StructuralElement(
                    StructuralElementType.HEADER, len(headings), mean(len(h.strip()) for h in headings), 0.9
                )
            )

        fences = [match.start() for match in CODE_FENCE_PATTERN.finditer(text)]
        if len(fences) >= 2:
            blocks = [fences[i + 1] - fences[i] for i in range(0, len(fences) - 1, 2)]
            elements.append(StructuralElement(StructuralElementType.CODE_BLOCK, len(blocks), mean(blocks), 0.8))

        list_items = LIST_ITEM_PATTERN.findall(text)
        if list_items:
            elements.append(StructuralElement(StructuralElementType.LIST, len(list_items), 50.0, 0.6))

        table_rows = TABLE_ROW_PATTERN.findall(text)
        if len(table_rows) > 3:
            elements.append(
                StructuralElement(
                    StructuralElementType.TABLE,
                    self._count_table_blocks(text),
                    mean(len(row.strip()) for row in table_rows),
                    0.7,
                )
            )

        return elements

    def _count_table_blocks(self, text: str) -> int:
        blocks = 0
        in_table = False
        for line in text.split("\n"):
            is_row = bool(TABLE_ROW_PATTERN.match(line))
            if is_row and not in_table:
                blocks += 1
            in_table = is_row
        return blocks

    def _characteristics(self, text: str, elements: list[StructuralElement]) -> dict[str, object]:
        present = {element.type for element in elements}
        return {
            "WordCount": len(words(text)),
            "LineCount": text.count("\n") + 1 if text else 0,
            "HasCode": StructuralElementType.CODE_BLOCK in present,
            "HasTables": StructuralElementType.TABLE in present,
            "HasLists": StructuralElementType.LIST in present,
            "HasHeaders": StructuralElementType.HEADER in present,
        }
