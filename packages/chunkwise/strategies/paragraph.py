#!/usr/bin/env python3
"""
Paragraph-based chunking strategy.

Splits on blank lines, combines short paragraphs, and packs paragraphs into
chunks. A paragraph is only cut internally when it alone exceeds the budget.
"""

import logging

from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, pack_spans, split_to_budget
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import HEADING_PATTERN, paragraph_spans, sentence_spans

logger = logging.getLogger(__name__)


class _Paragraph:
    __slots__ = ("start", "end", "is_header", "weight")

    def __init__(self, start: int, end: int, is_header: bool = False, weight: int = 1) -> None:
        self.start = start
        self.end = end
        self.is_header = is_header
        # Paragraphs combined from short ones count once toward MaxParagraphsPerChunk
        self.weight = weight

    @property
    def length(self) -> int:
        return self.end - self.start


class ParagraphChunkingStrategy(ChunkingStrategy):
    """
    Paragraph chunking.

    Strategy options:
        CombineShortParagraphs (bool, True): join consecutive short paragraphs
        MinParagraphLength (int, 50): paragraphs shorter than this are short
        MaxParagraphsPerChunk (int, 3): paragraph limit per chunk
        PreserveHeaders (bool, True): a heading always starts a new chunk
        SplitLongParagraphs (bool, True): split oversized paragraphs at
            sentence, clause or word boundaries; when False they are split
            at sentence ends only (single sentences over the budget are still cut)
    """

    def __init__(self) -> None:
        super().__init__(ChunkingStrategyType.PARAGRAPH.value)

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        combine_short = options.get_strategy_option("CombineShortParagraphs", True)
        min_length = options.get_strategy_option("MinParagraphLength", 50)
        max_paragraphs = max(1, options.get_strategy_option("MaxParagraphsPerChunk", 3))
        preserve_headers = options.get_strategy_option("PreserveHeaders", True)
        split_long = options.get_strategy_option("SplitLongParagraphs", True)
        budget = options.effective_chunk_size

        paragraphs = self._extract_paragraphs(text, preserve_headers)
        if combine_short:
            paragraphs = self._combine_short(paragraphs, min_length, budget)
        paragraphs = self._split_long(text, paragraphs, budget, split_long)

        spans: list[ChunkSpan] = []
        current: list[_Paragraph] = []

        def flush() -> None:
            if current:
                spans.append(ChunkSpan(current[0].start, current[-1].end))
                current.clear()

        for position, paragraph in enumerate(paragraphs):
            check_cancelled(cancellation, "Paragraph.split", position)
            if current:
                too_long = paragraph.end - current[0].start > budget
                too_many = sum(p.weight for p in current) + paragraph.weight > max_paragraphs
                if too_long or too_many or paragraph.is_header:
                    flush()
            current.append(paragraph)
        flush()

        logger.debug(f"Paragraph strategy packed {len(paragraphs)} paragraphs into {len(spans)} spans")
        return spans

    def _extract_paragraphs(self, text: str, preserve_headers: bool) -> list[_Paragraph]:
        paragraphs = []
        for start, end in paragraph_spans(text):
            line_end = text.find("\n", start, end)
            first_line = text[start : end if line_end == -1 else line_end]
            paragraphs.append(_Paragraph(start, end, is_header=preserve_headers and bool(HEADING_PATTERN.match(first_line))))
        return paragraphs

    def _combine_short(self, paragraphs: list[_Paragraph], min_length: int, budget: int) -> list[_Paragraph]:
        combined: list[_Paragraph] = []
        pending: _Paragraph | None = None
        for paragraph in paragraphs:
            if paragraph.is_header or paragraph.length >= min_length:
                if pending is not None:
                    combined.append(pending)
                    pending = None
                combined.append(paragraph)
                continue

            if pending is not None and paragraph.end - pending.start <= budget:
                pending.end = paragraph.end
            else:
                if pending is not None:
                    combined.append(pending)
                pending = _Paragraph(paragraph.start, paragraph.end)
        if pending is not None:
            combined.append(pending)
        return combined

    def _split_long(
        self, text: str, paragraphs: list[_Paragraph], budget: int, split_long: bool
    ) -> list[_Paragraph]:
        result = []
        for paragraph in paragraphs:
            if paragraph.length <= budget:
                result.append(paragraph)
                continue

            if split_long:
                pieces = split_to_budget(text, paragraph.start, paragraph.end, budget)
            else:
                pieces = pack_spans(text, sentence_spans(text, paragraph.start, paragraph.end), budget)
            for index, (start, end) in enumerate(pieces):
                result.append(_Paragraph(start, end, is_header=paragraph.is_header and index == 0))
        return result
