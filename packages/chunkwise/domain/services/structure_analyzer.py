#!/usr/bin/env python3
"""
Cheap structural scan of a document used to drive Auto strategy selection.
"""

import re
from dataclasses import dataclass

from chunkwise.utils.text import (
    CODE_FENCE_PATTERN,
    HEADING_PATTERN,
    LIST_ITEM_PATTERN,
    TABLE_ROW_PATTERN,
    cjk_ratio,
)

# Numbered section markers at line start: "1.", "2)", "3-1.", "1.2", "IV.",
# "(1)", "①", and Korean ordinal syllables such as "가." or "나)".
NUMBERED_SECTION_PATTERNS = (
    re.compile(r"^[ \t]*\d+[.)\]][ \t]+\S", re.MULTILINE),
    re.compile(r"^[ \t]*\d+(?:[.\-]\d+)+[.)]?\s+\S", re.MULTILINE),
    re.compile(r"^[ \t]*[IVX]+[.)\]]\s+\S", re.MULTILINE),
    re.compile(r"^[ \t]*\(\d+\)\s*\S", re.MULTILINE),
    re.compile(r"^[ \t]*[①-⑳❶-❿]\s*\S", re.MULTILINE),
    re.compile(r"^[ \t]*[가-힣][.)\]]\s", re.MULTILINE),
)


@dataclass(frozen=True)
class DocumentStructureProfile:
    """Structural signals of a document."""

    numbered_section_count: int
    heading_count: int
    cjk_ratio: float
    has_code: bool
    has_tables: bool
    has_lists: bool
    line_count: int
    character_count: int


class DocumentStructureAnalyzer:
    """Heuristic scan for headings, numbered sections, CJK share, code and tables."""

    def count_numbered_sections(self, text: str) -> int:
        """Count lines that open with a numbered-section marker, each line once."""
        line_starts: set[int] = set()
        for pattern in NUMBERED_SECTION_PATTERNS:
            for match in pattern.finditer(text):
                line_starts.add(text.rfind("\n", 0, match.start() + 1) + 1)
        return len(line_starts)

    def count_headings(self, text: str) -> int:
        return len(HEADING_PATTERN.findall(text))

    def analyze(self, text: str) -> DocumentStructureProfile:
        table_rows = len(TABLE_ROW_PATTERN.findall(text))
        return DocumentStructureProfile(
            numbered_section_count=self.count_numbered_sections(text),
            heading_count=self.count_headings(text),
            cjk_ratio=cjk_ratio(text),
            has_code=bool(CODE_FENCE_PATTERN.search(text)),
            has_tables=table_rows > 1,
            has_lists=bool(LIST_ITEM_PATTERN.search(text)),
            line_count=text.count("\n") + 1 if text else 0,
            character_count=len(text),
        )
