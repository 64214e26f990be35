#!/usr/bin/env python3
"""
Fixed-size chunking strategy.

Creates chunks of approximately equal estimated token count, cutting at the
last whitespace inside the window so words are not split.
"""

import logging

from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import CHARS_PER_TOKEN, trim_span

logger = logging.getLogger(__name__)


class FixedSizeChunkingStrategy(ChunkingStrategy):
    """
    Token-budgeted chunking.

    The budget is ``(max_chunk_size - overlap_size) // 4`` estimated tokens,
    at four characters per token. Overlap is the character window the base
    class copies from the previous chunk's tail.
    """

    def __init__(self) -> None:
        super().__init__(ChunkingStrategyType.FIXED_SIZE.value)

    def token_budget(self, options: ChunkingOptions) -> int:
        return options.effective_chunk_size // CHARS_PER_TOKEN

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        budget = self.token_budget(options) * CHARS_PER_TOKEN or options.effective_chunk_size

        spans = []
        cursor, end = trim_span(text, 0, len(text))
        while cursor < end:
            check_cancelled(cancellation, "FixedSize.split", len(spans))
            limit = min(end, cursor + budget)
            cut = limit if limit == end else self._find_word_cut(text, cursor, limit)
            span = trim_span(text, cursor, cut)
            if span[1] > span[0]:
                spans.append(ChunkSpan(*span))
            cursor = trim_span(text, cut, end)[0]

        logger.debug(f"FixedSize produced {len(spans)} spans with a budget of {budget} characters")
        return spans

    def _find_word_cut(self, text: str, start: int, limit: int) -> int:
        """Last whitespace in the back half of the window, else a hard cut at ``limit``."""
        floor = start + (limit - start) // 2
        for position in range(limit, floor, -1):
            if text[position].isspace():
                return position
        return limit
