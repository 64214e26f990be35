#!/usr/bin/env python3
"""
Intelligent chunking strategy.

Splits the document into semantic units (headings with their following
block, paragraphs, lists, tables and code blocks) and packs them into
chunks. A text-completion provider, when configured, decides the ambiguous
merges; without one the structure-only heuristic decides.
"""

import asyncio
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.llm.base import TextCompletionProvider
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, pack_spans, split_to_budget
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import (
    CODE_FENCE_PATTERN,
    HEADING_PATTERN,
    LIST_ITEM_PATTERN,
    PARAGRAPH_BREAK_PATTERN,
    TABLE_ROW_PATTERN,
    line_spans,
)

logger = logging.getLogger(__name__)

IMPORTANT_KEYWORD_PATTERN = re.compile(
    r"\b(important|key|summary|conclusion|note|warning|attention|critical|must)\b", re.IGNORECASE
)

DEFAULT_MAX_COMPLETION_CALLS = 16
AMBIGUOUS_FILL_RATIO = 0.5
PROMPT_EXCERPT_LENGTH = 600

SAME_TOPIC_SYSTEM_PROMPT = "You judge whether two passages of one document belong in the same retrieval chunk."
SAME_TOPIC_PROMPT = (
    "Do these two passages discuss the same topic? Answer YES or NO.\n\n"
    "Passage A:\n{first}\n\nPassage B:\n{second}"
)


class UnitKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    CODE = "code"


@dataclass
class SemanticUnit:
    start: int
    end: int
    kind: UnitKind
    importance: float
    # True when the unit opens with a heading
    heading_led: bool = False

    @property
    def length(self) -> int:
        return self.end - self.start


class _Decision(Enum):
    MERGE = "merge"
    CLOSE = "close"
    ASK = "ask"


def unit_importance(content: str, is_heading: bool) -> float:
    if is_heading:
        return 1.0
    hits = len(IMPORTANT_KEYWORD_PATTERN.findall(content))
    return min(1.0, 0.5 + 0.1 * hits)


class IntelligentChunkingStrategy(ChunkingStrategy):
    """
    Semantic-unit chunking with optional completion-model guidance.

    Strategy options:
        MaxCompletionCalls (int, 16): cap on provider questions per document
        UseCompletionProvider (bool, True): consult the provider when one is configured
    """

    def __init__(self, completion_provider: TextCompletionProvider | None = None) -> None:
        super().__init__(ChunkingStrategyType.INTELLIGENT.value)
        self.completion_provider = completion_provider

    def _provider_for(self, options: ChunkingOptions) -> TextCompletionProvider | None:
        if not options.get_strategy_option("UseCompletionProvider", True):
            return None
        return self.completion_provider

    async def chunk_async(
        self,
        document: DocumentContent | str,
        options: ChunkingOptions,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[Chunk]:
        document = DocumentContent.coerce(document)
        if document.is_blank:
            return []

        spans = await self._plan(document, options, cancellation)
        chunks = self._build_chunks(document, spans, options, progress_callback, cancellation)
        return self._post_process(chunks, spans)

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        if self._provider_for(options) is None:
            units = self.extract_units(text, options.effective_chunk_size)
            return self._to_spans(self._pack_structural(text, units, options, cancellation), degraded=False)

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._plan(document, options, cancellation))

        logger.warning(
            f"Intelligent.chunk called from a running event loop for '{document.document_id}'; "
            "using structure-only packing (use chunk_async to consult the completion provider)"
        )
        units = self.extract_units(text, options.effective_chunk_size)
        return self._to_spans(self._pack_structural(text, units, options, cancellation), degraded=True)

    async def _plan(
        self,
        document: DocumentContent,
        options: ChunkingOptions,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        text = document.text
        units = self.extract_units(text, options.effective_chunk_size)
        provider = self._provider_for(options)
        if provider is None:
            return self._to_spans(self._pack_structural(text, units, options, cancellation), degraded=False)

        groups, degraded = await self._pack_with_provider(text, units, options, provider, cancellation)
        return self._to_spans(groups, degraded=degraded)

    def extract_units(self, text: str, budget: int) -> list[SemanticUnit]:
        """Semantic units in document order; headings are attached to the block after them."""
        lines = line_spans(text)
        raw: list[SemanticUnit] = []
        index = 0
        while index < len(lines):
            start, end = lines[index]
            line = text[start:end]

            if CODE_FENCE_PATTERN.match(line):
                closing = index + 1
                while closing < len(lines) and not CODE_FENCE_PATTERN.match(text[lines[closing][0] : lines[closing][1]]):
                    closing += 1
                closing = min(closing, len(lines) - 1)
                raw.append(SemanticUnit(start, lines[closing][1], UnitKind.CODE, 0.5))
                index = closing + 1
                continue

            if HEADING_PATTERN.match(line):
                raw.append(SemanticUnit(start, end, UnitKind.HEADING, 1.0, heading_led=True))
                index += 1
                continue

            kind, pattern = UnitKind.PARAGRAPH, None
            if TABLE_ROW_PATTERN.match(line):
                kind, pattern = UnitKind.TABLE, TABLE_ROW_PATTERN
            elif LIST_ITEM_PATTERN.match(line):
                kind, pattern = UnitKind.LIST, LIST_ITEM_PATTERN

            last = index
            while last + 1 < len(lines):
                next_start, next_end = lines[last + 1]
                next_line = text[next_start:next_end]
                if CODE_FENCE_PATTERN.match(next_line) or HEADING_PATTERN.match(next_line):
                    break
                blank_gap = PARAGRAPH_BREAK_PATTERN.search(text, lines[last][1], next_start) is not None
                is_item = LIST_ITEM_PATTERN.match(next_line) is not None
                is_row = TABLE_ROW_PATTERN.match(next_line) is not None
                if pattern is TABLE_ROW_PATTERN:
                    if blank_gap or not is_row:
                        break
                elif pattern is LIST_ITEM_PATTERN:
                    # Items may be separated by blank lines; continuation lines may not
                    if is_row or (blank_gap and not is_item):
                        break
                elif blank_gap or is_item or is_row:
                    break
                last += 1
            unit_end = lines[last][1]
            raw.append(SemanticUnit(start, unit_end, kind, unit_importance(text[start:unit_end], False)))
            index = last + 1

        return self._attach_headings(raw, budget)

    def _attach_headings(self, units: list[SemanticUnit], budget: int) -> list[SemanticUnit]:
        attached: list[SemanticUnit] = []
        pending: SemanticUnit | None = None
        for unit in units:
            if pending is not None:
                if unit.end - pending.start <= budget and unit.kind != UnitKind.HEADING:
                    unit = SemanticUnit(
                        pending.start, unit.end, unit.kind, max(pending.importance, unit.importance), heading_led=True
                    )
                else:
                    attached.append(pending)
                pending = None
            if unit.kind == UnitKind.HEADING:
                pending = unit
                continue
            attached.append(unit)
        if pending is not None:
            attached.append(pending)
        return attached

    def _decide(self, group: SemanticUnit | None, unit: SemanticUnit, budget: int) -> _Decision:
        if group is None:
            return _Decision.MERGE
        if unit.end - group.start > budget:
            return _Decision.CLOSE
        if unit.heading_led:
            return _Decision.CLOSE if group.length >= budget * AMBIGUOUS_FILL_RATIO else _Decision.MERGE
        if group.length >= budget * AMBIGUOUS_FILL_RATIO:
            return _Decision.ASK
        return _Decision.MERGE

    def _pack_structural(
        self,
        text: str,
        units: list[SemanticUnit],
        options: ChunkingOptions,
        cancellation: CancellationToken | None,
    ) -> list[SemanticUnit]:
        budget = options.effective_chunk_size
        groups: list[SemanticUnit] = []
        current: SemanticUnit | None = None
        for index, unit in enumerate(units):
            check_cancelled(cancellation, "Intelligent.pack", index)
            if unit.length > budget:
                if current is not None:
                    groups.append(current)
                    current = None
                groups.extend(self._split_unit(text, unit, budget))
                continue
            if self._decide(current, unit, budget) == _Decision.CLOSE:
                groups.append(current)  # type: ignore[arg-type]
                current = None
            current = self._merge(current, unit)
        if current is not None:
            groups.append(current)
        return groups

    async def _pack_with_provider(
        self,
        text: str,
        units: list[SemanticUnit],
        options: ChunkingOptions,
        provider: TextCompletionProvider,
        cancellation: CancellationToken | None,
    ) -> tuple[list[SemanticUnit], bool]:
        budget = options.effective_chunk_size
        calls_left = options.get_strategy_option("MaxCompletionCalls", DEFAULT_MAX_COMPLETION_CALLS)
        degraded = False

        groups: list[SemanticUnit] = []
        current: SemanticUnit | None = None
        for index, unit in enumerate(units):
            check_cancelled(cancellation, "Intelligent.pack", index)
            if unit.length > budget:
                if current is not None:
                    groups.append(current)
                    current = None
                groups.extend(self._split_unit(text, unit, budget))
                continue

            decision = self._decide(current, unit, budget)
            if decision == _Decision.ASK:
                if degraded or calls_left <= 0:
                    decision = _Decision.MERGE
                else:
                    calls_left -= 1
                    try:
                        same_topic = await self._same_topic(
                            provider, text[current.start : current.end], text[unit.start : unit.end]  # type: ignore[union-attr]
                        )
                    except Exception as e:
                        logger.warning(f"Completion provider {provider.name} failed, using structure-only packing: {e}")
                        degraded = True
                        same_topic = True
                    decision = _Decision.MERGE if same_topic else _Decision.CLOSE

            if decision == _Decision.CLOSE:
                groups.append(current)  # type: ignore[arg-type]
                current = None
            current = self._merge(current, unit)

        if current is not None:
            groups.append(current)
        return groups, degraded

    async def _same_topic(self, provider: TextCompletionProvider, first: str, second: str) -> bool:
        prompt = SAME_TOPIC_PROMPT.format(
            first=first[-PROMPT_EXCERPT_LENGTH:], second=second[:PROMPT_EXCERPT_LENGTH]
        )
        answer = await asyncio.wait_for(
            provider.complete(prompt, system_prompt=SAME_TOPIC_SYSTEM_PROMPT, max_tokens=3, temperature=0.0),
            timeout=provider.MAX_TIMEOUT,
        )
        return not answer.strip().upper().startswith("NO")

    def _merge(self, group: SemanticUnit | None, unit: SemanticUnit) -> SemanticUnit:
        if group is None:
            return SemanticUnit(unit.start, unit.end, unit.kind, unit.importance, unit.heading_led)
        return SemanticUnit(
            group.start, unit.end, group.kind, max(group.importance, unit.importance), group.heading_led
        )

    def _split_unit(self, text: str, unit: SemanticUnit, budget: int) -> list[SemanticUnit]:
        """Oversized tables, lists and code split between lines; prose between sentences."""
        if unit.kind in (UnitKind.TABLE, UnitKind.LIST, UnitKind.CODE):
            pieces = pack_spans(text, line_spans(text, unit.start, unit.end), budget)
        else:
            pieces = split_to_budget(text, unit.start, unit.end, budget)
        return [
            SemanticUnit(start, end, unit.kind, unit.importance, unit.heading_led and position == 0)
            for position, (start, end) in enumerate(pieces)
        ]

    def _to_spans(self, groups: list[SemanticUnit], degraded: bool) -> list[ChunkSpan]:
        return [
            ChunkSpan(
                group.start,
                group.end,
                attributes={ChunkPropsKeys.IMPORTANCE: group.importance, ChunkPropsKeys.DEGRADED: degraded},
            )
            for group in groups
        ]
