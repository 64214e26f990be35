#!/usr/bin/env python3
"""
Hierarchical chunking strategy.

Follows the document's heading outline: each section becomes one chunk (or
a section chunk plus continuations when it exceeds the budget), and chunks
are linked to the chunk of their parent section.
"""

import logging
import re
from dataclasses import dataclass, field

from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, pack_spans
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import paragraph_spans, trim_span

logger = logging.getLogger(__name__)

HEADING_LINE_PATTERN = re.compile(r"^[ \t]{0,3}(#{1,6})[ \t]+(.+?)[ \t#]*$", re.MULTILINE)

SECTION_CHUNK = "section"
CONTINUATION_CHUNK = "continuation"


@dataclass
class _Section:
    start: int
    end: int
    level: int
    title: str
    path: list[str]
    parent: int | None = None

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass
class _SectionSpan(ChunkSpan):
    section_index: int = 0
    parent_section_index: int | None = None
    is_section_head: bool = True
    path: list[str] = field(default_factory=list)


class HierarchicalChunkingStrategy(ChunkingStrategy):
    """
    Outline-driven chunking.

    Strategy options:
        MaxHierarchyDepth (int, options.max_heading_level): deepest heading level that opens a section
        MinSectionLength (int, 100): shorter sections merge into the next one when it fits
    """

    def __init__(self) -> None:
        super().__init__(ChunkingStrategyType.HIERARCHICAL.value)

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        max_depth = options.get_strategy_option("MaxHierarchyDepth", options.max_heading_level)
        min_section_length = options.get_strategy_option("MinSectionLength", 100)
        budget = options.effective_chunk_size

        sections = self._parse_sections(text, document, max_depth)
        sections = self._merge_short_sections(sections, min_section_length, budget)
        self._assign_parents(sections)

        spans: list[ChunkSpan] = []
        for index, section in enumerate(sections):
            check_cancelled(cancellation, "Hierarchical.split", index)
            pieces = pack_spans(text, paragraph_spans(text, section.start, section.end), budget)
            for position, (start, end) in enumerate(pieces):
                chunk_type = SECTION_CHUNK if position == 0 else CONTINUATION_CHUNK
                spans.append(
                    _SectionSpan(
                        start,
                        end,
                        attributes={
                            ChunkPropsKeys.HIERARCHY_LEVEL: section.level,
                            ChunkPropsKeys.HIERARCHY_CHUNK_TYPE: chunk_type,
                            ChunkPropsKeys.SECTION_PATH: list(section.path),
                        },
                        hierarchy_level=section.level,
                        section_title=section.title or None,
                        section_index=index,
                        parent_section_index=section.parent,
                        is_section_head=position == 0,
                        path=list(section.path),
                    )
                )

        logger.debug(f"Hierarchical strategy found {len(sections)} sections and produced {len(spans)} spans")
        return spans

    def _parse_sections(self, text: str, document: DocumentContent, max_depth: int) -> list[_Section]:
        headings = [
            (hint.start_offset, hint.level, hint.title)
            for hint in document.sections
            if hint.level <= max_depth and 0 <= hint.start_offset < len(text)
        ]
        if not headings:
            headings = [
                (match.start(), len(match.group(1)), match.group(2).strip())
                for match in HEADING_LINE_PATTERN.finditer(text)
                if len(match.group(1)) <= max_depth
            ]
        headings.sort(key=lambda heading: heading[0])

        sections = []
        if not headings or headings[0][0] > 0:
            first_heading = headings[0][0] if headings else len(text)
            start, end = trim_span(text, 0, first_heading)
            if end > start:
                sections.append(_Section(start, end, 0, "", []))

        stack: list[tuple[int, str]] = []
        for position, (start, level, title) in enumerate(headings):
            end = headings[position + 1][0] if position + 1 < len(headings) else len(text)
            while stack and stack[-1][0] >= level:
                stack.pop()
            stack.append((level, title))
            span = trim_span(text, start, end)
            if span[1] > span[0]:
                sections.append(_Section(span[0], span[1], level, title, [entry[1] for entry in stack]))
        return sections

    def _merge_short_sections(self, sections: list[_Section], min_length: int, budget: int) -> list[_Section]:
        merged: list[_Section] = []
        index = 0
        while index < len(sections):
            section = sections[index]
            while (
                section.length < min_length
                and index + 1 < len(sections)
                and sections[index + 1].level >= section.level
                and sections[index + 1].end - section.start <= budget
            ):
                index += 1
                section = _Section(section.start, sections[index].end, section.level, section.title, section.path)
            merged.append(section)
            index += 1
        return merged

    def _assign_parents(self, sections: list[_Section]) -> None:
        """Link each section to the nearest preceding heading of a shallower level; the preamble is never a parent."""
        for index, section in enumerate(sections):
            for candidate in range(index - 1, -1, -1):
                if 1 <= sections[candidate].level < section.level:
                    section.parent = candidate
                    break

    def _post_process(self, chunks: list[Chunk], spans: list[ChunkSpan]) -> list[Chunk]:
        if len(chunks) != len(spans):
            logger.warning("Hierarchical chunks and spans are misaligned; skipping parent links")
            return chunks

        head_chunk: dict[int, Chunk] = {}
        for chunk, span in zip(chunks, spans, strict=True):
            if isinstance(span, _SectionSpan) and span.is_section_head:
                head_chunk[span.section_index] = chunk

        for chunk, span in zip(chunks, spans, strict=True):
            if not isinstance(span, _SectionSpan):
                continue
            if span.is_section_head:
                parent = head_chunk.get(span.parent_section_index) if span.parent_section_index is not None else None
            else:
                parent = head_chunk.get(span.section_index)
            if parent is None or parent is chunk:
                continue
            chunk.props[ChunkPropsKeys.PARENT_CHUNK_ID] = parent.id
            parent.props.setdefault(ChunkPropsKeys.CHILD_CHUNK_IDS, []).append(chunk.id)

        return chunks
