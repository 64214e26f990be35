#!/usr/bin/env python3
"""
Chunk metadata enrichment.

Runs once after a strategy produced its chunks and is the only writer of
chunk props after creation.
"""

import logging
import re

from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.services.completeness import chunk_completeness, chunk_quality_score
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.utils.text import CODE_FENCE_PATTERN, HEADING_PATTERN, LIST_ITEM_PATTERN, TABLE_ROW_PATTERN

logger = logging.getLogger(__name__)

ENABLE_ENRICHMENT_KEY = "EnableMetadataEnrichment"
SMART_COMPLETENESS_FLOOR = 0.7

_INDENTED_CODE_PATTERN = re.compile(r"^(?: {4}|\t)\S", re.MULTILINE)

ROLE_BY_CONTENT_TYPE = {
    "heading": "title",
    "code": "code_block",
    "table": "table_content",
    "list": "list_content",
    "text": "content",
}


def classify_content_type(content: str) -> str:
    """Dominant content type of a chunk: code, table, list, heading or text."""
    stripped = content.strip()
    lines = [line for line in stripped.split("\n") if line.strip()]
    if not lines:
        return "text"

    if CODE_FENCE_PATTERN.search(stripped) or len(_INDENTED_CODE_PATTERN.findall(stripped)) > len(lines) / 2:
        return "code"
    if len(TABLE_ROW_PATTERN.findall(stripped)) > len(lines) / 2:
        return "table"
    if len(LIST_ITEM_PATTERN.findall(stripped)) > len(lines) / 2:
        return "list"
    if len(lines) == 1 and HEADING_PATTERN.match(lines[0]):
        return "heading"
    return "text"


class ChunkMetadataEnricher:
    """Writes content classification, quality and navigation props onto chunks."""

    def enrich(self, chunks: list[Chunk], options: ChunkingOptions) -> list[Chunk]:
        """
        Enrich ``chunks`` in place and return them.

        Content type and structural role are always written. The rest is
        skipped when ``custom_properties["EnableMetadataEnrichment"]`` is False.
        """
        full = options.custom_properties.get(ENABLE_ENRICHMENT_KEY, True) is not False
        smart = options.strategy_name.lower() == ChunkingStrategyType.SMART.value.lower()

        for position, chunk in enumerate(chunks):
            content_type = classify_content_type(chunk.content)
            chunk.props[ChunkPropsKeys.CONTENT_TYPE] = content_type
            chunk.props[ChunkPropsKeys.STRUCTURAL_ROLE] = ROLE_BY_CONTENT_TYPE[content_type]

            if not full:
                continue

            chunk.props[ChunkPropsKeys.TOKEN_COUNT] = chunk.metadata.token_count

            completeness = chunk_completeness(chunk.content)
            if smart:
                completeness = max(completeness, SMART_COMPLETENESS_FLOOR)
            chunk.props[ChunkPropsKeys.COMPLETENESS] = completeness

            score = chunk_quality_score(chunk.content)
            chunk.set_quality_score(score)
            chunk.props[ChunkPropsKeys.QUALITY_SCORE] = score

            if position > 0:
                chunk.props[ChunkPropsKeys.PREVIOUS_CHUNK_ID] = chunks[position - 1].id
            if position < len(chunks) - 1:
                chunk.props[ChunkPropsKeys.NEXT_CHUNK_ID] = chunks[position + 1].id

            for key, value in options.custom_properties.items():
                if key != ENABLE_ENRICHMENT_KEY:
                    chunk.props.setdefault(key, value)

        logger.debug(f"Enriched {len(chunks)} chunks (full enrichment: {full})")
        return chunks
