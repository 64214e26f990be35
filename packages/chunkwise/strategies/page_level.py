#!/usr/bin/env python3
"""
Page-level chunking strategy.

One chunk per page. Page boundaries come from the reader's page offsets or,
when none are supplied, from form-feed characters.
"""

import logging

from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, pack_spans
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import paragraph_spans, sentence_spans, trim_span

logger = logging.getLogger(__name__)

FORM_FEED = "\f"


class PageLevelChunkingStrategy(ChunkingStrategy):
    """
    Page-aligned chunking.

    Strategy options:
        MergeSmallPages (bool, False): merge pages shorter than MinPageLength into the next page
        MinPageLength (int, 200): page length below which a page counts as small
    """

    def __init__(self) -> None:
        super().__init__(ChunkingStrategyType.PAGE_LEVEL.value)

    def page_ranges(self, document: DocumentContent) -> list[tuple[int, int]]:
        """Character ranges of the document's pages, in order."""
        text = document.text
        if document.page_offsets:
            offsets = [offset for offset in document.page_offsets if offset < len(text)]
            if not offsets or offsets[0] != 0:
                offsets.insert(0, 0)
        else:
            offsets = [0]
            position = text.find(FORM_FEED)
            while position != -1:
                offsets.append(position + 1)
                position = text.find(FORM_FEED, position + 1)

        bounds = offsets + [len(text)]
        return [(bounds[i], bounds[i + 1]) for i in range(len(offsets)) if bounds[i + 1] > bounds[i]]

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        merge_small = options.get_strategy_option("MergeSmallPages", False)
        min_page_length = options.get_strategy_option("MinPageLength", 200)
        budget = options.effective_chunk_size

        # (start, end, first page, last page), pages are 1-based
        pages: list[tuple[int, int, int, int]] = []
        for number, (start, end) in enumerate(self.page_ranges(document), start=1):
            start, end = trim_span(text, start, end)
            if end > start:
                pages.append((start, end, number, number))

        if merge_small:
            pages = self._merge_small_pages(pages, min_page_length, budget)

        spans = []
        for position, (start, end, first_page, last_page) in enumerate(pages):
            check_cancelled(cancellation, "PageLevel.split", position)
            attributes = {ChunkPropsKeys.START_PAGE: first_page, ChunkPropsKeys.END_PAGE: last_page}
            # Overlap never reaches back into the previous page
            if end - start <= budget:
                spans.append(ChunkSpan(start, end, attributes=attributes, allow_overlap=False))
                continue
            for piece, (piece_start, piece_end) in enumerate(self._split_page(text, start, end, budget)):
                spans.append(ChunkSpan(piece_start, piece_end, attributes=dict(attributes), allow_overlap=piece > 0))

        logger.debug(f"PageLevel strategy produced {len(spans)} spans from {len(pages)} pages")
        return spans

    def _merge_small_pages(
        self, pages: list[tuple[int, int, int, int]], min_length: int, budget: int
    ) -> list[tuple[int, int, int, int]]:
        merged: list[tuple[int, int, int, int]] = []
        pending: tuple[int, int, int, int] | None = None
        for page in pages:
            if pending is not None:
                if page[1] - pending[0] <= budget:
                    page = (pending[0], page[1], pending[2], page[3])
                else:
                    merged.append(pending)
                pending = None
            if page[1] - page[0] < min_length:
                pending = page
                continue
            merged.append(page)
        if pending is not None:
            if merged and pending[1] - merged[-1][0] <= budget:
                last = merged.pop()
                pending = (last[0], pending[1], last[2], pending[3])
            merged.append(pending)
        return merged

    def _split_page(self, text: str, start: int, end: int, budget: int) -> list[tuple[int, int]]:
        """Oversized pages split by paragraph, then by sentence."""
        units: list[tuple[int, int]] = []
        for paragraph_start, paragraph_end in paragraph_spans(text, start, end):
            if paragraph_end - paragraph_start <= budget:
                units.append((paragraph_start, paragraph_end))
            else:
                units.extend(sentence_spans(text, paragraph_start, paragraph_end))
        return pack_spans(text, units, budget)
