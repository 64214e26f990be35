#!/usr/bin/env python3
"""
Chunking strategy base class.

Every strategy splits the document into non-overlapping core spans sized to
``max_chunk_size - overlap_size``. The base class then turns spans into
chunks, prepending the tail of the previous span as overlap so that each
chunk stays within ``max_chunk_size``.
"""

import asyncio
import functools
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.exceptions import InvalidChunkError
from chunkwise.domain.value_objects.chunk_metadata import ChunkMetadata
from chunkwise.domain.value_objects.chunk_props import ChunkProps, ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import estimate_tokens, find_cut_before, snap_forward_to_word, trim_span

logger = logging.getLogger(__name__)


@dataclass
class ChunkSpan:
    """A core span produced by a strategy, before overlap is applied."""

    start: int
    end: int
    attributes: dict[str, Any] = field(default_factory=dict)
    hierarchy_level: int | None = None
    section_title: str | None = None
    # False when the span must not repeat text from the previous span
    allow_overlap: bool = True

    @property
    def length(self) -> int:
        return self.end - self.start


def split_to_budget(
    text: str,
    start: int,
    end: int,
    budget: int,
    cut_finder: Callable[[str, int, int], int] = find_cut_before,
) -> list[tuple[int, int]]:
    """
    Cut ``text[start:end]`` into trimmed pieces of at most ``budget`` characters.

    With the default ``cut_finder`` cuts prefer sentence ends, then clause
    punctuation, then whitespace, and fall back to a hard cut inside a single
    unbroken token.
    """
    pieces = []
    cursor, end = trim_span(text, start, end)
    while end - cursor > budget:
        cut = cut_finder(text, cursor, cursor + budget)
        piece = trim_span(text, cursor, cut)
        if piece[1] > piece[0]:
            pieces.append(piece)
        cursor = trim_span(text, cut, end)[0]
    if end > cursor:
        pieces.append((cursor, end))
    return pieces


def pack_spans(
    text: str,
    units: list[tuple[int, int]],
    budget: int,
    cut_finder: Callable[[str, int, int], int] = find_cut_before,
) -> list[tuple[int, int]]:
    """
    Greedily group consecutive unit spans into groups of at most ``budget`` characters.

    Units that alone exceed the budget are split with ``split_to_budget``.
    """
    groups: list[tuple[int, int]] = []
    current: tuple[int, int] | None = None
    for start, end in units:
        if end - start > budget:
            if current is not None:
                groups.append(current)
                current = None
            groups.extend(split_to_budget(text, start, end, budget, cut_finder))
            continue
        if current is not None and end - current[0] <= budget:
            current = (current[0], end)
        else:
            if current is not None:
                groups.append(current)
            current = (start, end)
    if current is not None:
        groups.append(current)
    return groups


class ChunkingStrategy(ABC):
    """
    Single abstract base class for all chunking strategies.

    Strategies are stateless with respect to documents: one instance may
    chunk many documents, also concurrently.
    """

    def __init__(self, name: str) -> None:
        """
        Initialize the strategy with a name.

        Args:
            name: The name of the strategy
        """
        self._name = name

    @property
    def name(self) -> str:
        """Get the strategy name."""
        return self._name

    def chunk(
        self,
        document: DocumentContent | str,
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Chunk]:
        """
        Apply the chunking strategy to break a document into chunks.

        Args:
            document: The document (or plain text) to chunk
            options: Validated chunking options
            progress_callback: Optional callback to report progress (0-100)
            cancellation: Optional token checked between spans

        Returns:
            Ordered list of chunks; empty for blank documents
        """
        document = DocumentContent.coerce(document)
        if document.is_blank:
            return []

        spans = self._split(document.text, options, document, cancellation)
        chunks = self._build_chunks(document, spans, options, progress_callback, cancellation)
        return self._post_process(chunks, spans)

    async def chunk_async(
        self,
        document: DocumentContent | str,
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Chunk]:
        """
        Asynchronous chunking.

        CPU-bound strategies run in the default executor; strategies that
        consult providers override this.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(self.chunk, document, options, progress_callback, cancellation),
        )

    @abstractmethod
    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        """
        Produce ordered, non-overlapping core spans.

        Each span must be at most ``options.effective_chunk_size`` characters.
        """

    def _post_process(self, chunks: list[Chunk], spans: list[ChunkSpan]) -> list[Chunk]:
        """Hook for strategies that link chunks after creation."""
        return chunks

    def estimate_chunks(self, content_length: int, options: ChunkingOptions) -> int:
        """Estimate the number of chunks for ``content_length`` characters."""
        if content_length <= 0:
            return 0
        return max(1, math.ceil(content_length / options.effective_chunk_size))

    def _overlap_start(self, text: str, floor: int, start: int, options: ChunkingOptions) -> int:
        """Where the overlap copied from the previous span begins; word aligned."""
        candidate = max(floor, start - options.overlap_size)
        return snap_forward_to_word(text, candidate, start)

    def _build_chunks(
        self,
        document: DocumentContent,
        spans: list[ChunkSpan],
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None,
        cancellation: CancellationToken | None,
    ) -> list[Chunk]:
        text = document.text
        chunks: list[Chunk] = []
        previous: tuple[int, int] | None = None

        for position, span in enumerate(spans):
            check_cancelled(cancellation, f"{self.name}.build_chunks", position)

            core_start, core_end = trim_span(text, span.start, span.end)
            if core_end <= core_start:
                continue

            start = core_start
            if previous is not None and options.overlap_size > 0 and span.allow_overlap:
                start = self._overlap_start(text, previous[0], core_start, options)
                start = trim_span(text, start, core_end)[0]
                if core_end - start > options.max_chunk_size:
                    start = snap_forward_to_word(text, core_end - options.max_chunk_size, core_start)
                start = min(start, core_start)

            content = text[start:core_end]
            if len(content) > options.max_chunk_size:
                logger.debug(
                    f"{self.name} chunk {len(chunks)} of '{document.document_id}' is {len(content)} characters "
                    f"(limit {options.max_chunk_size})"
                )

            index = len(chunks)
            metadata = ChunkMetadata(
                chunk_id=f"{document.document_id}-{self.name.lower()}-{index:04d}",
                document_id=document.document_id,
                chunk_index=index,
                start_offset=start,
                end_offset=core_end,
                token_count=estimate_tokens(content),
                strategy_name=self.name,
                hierarchy_level=span.hierarchy_level,
                section_title=span.section_title,
            )
            props = ChunkProps(span.attributes)
            props[ChunkPropsKeys.OVERLAP_WITH_PREVIOUS] = core_start - start

            try:
                chunks.append(Chunk(content, metadata, props))
            except InvalidChunkError as e:
                e.details.update({"document_id": document.document_id, "strategy_name": self.name})
                raise

            previous = (core_start, core_end)
            if progress_callback:
                progress_callback((position + 1) / len(spans) * 100)

        return chunks
