#!/usr/bin/env python3
"""
Caller-held chunking session.

Caches per-document analysis (currently the detected document type) for the
lifetime of the session. There is no process-wide cache.
"""

import logging
from dataclasses import replace

from chunkwise.domain.services.document_type_optimizer import DocumentTypeOptimizer
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.domain.value_objects.document_type_info import DocumentTypeInfo

logger = logging.getLogger(__name__)


class ChunkingSession:
    """Document type cache keyed by document id."""

    def __init__(self, optimizer: DocumentTypeOptimizer | None = None) -> None:
        self.optimizer = optimizer or DocumentTypeOptimizer()
        self._document_types: dict[str, DocumentTypeInfo] = {}

    def document_type(self, document: DocumentContent | str) -> DocumentTypeInfo:
        document = DocumentContent.coerce(document)
        if document.document_type is not None:
            return document.document_type

        cached = self._document_types.get(document.document_id)
        if cached is None:
            cached = self.optimizer.detect_document_type(document.text)
            self._document_types[document.document_id] = cached
        else:
            logger.debug(f"Using cached document type for '{document.document_id}'")
        return cached

    def prepare(self, document: DocumentContent | str) -> DocumentContent:
        """Return the document with its (cached) document type attached."""
        document = DocumentContent.coerce(document)
        if document.document_type is not None:
            return document
        return replace(document, document_type=self.document_type(document))

    def forget(self, document_id: str) -> None:
        self._document_types.pop(document_id, None)

    def clear(self) -> None:
        self._document_types.clear()

    def __len__(self) -> int:
        return len(self._document_types)
