#!/usr/bin/env python3
"""Tests for the caller-held ChunkingSession."""

from unittest.mock import MagicMock

import pytest

from chunkwise.application.session import ChunkingSession
from chunkwise.domain.services.document_type_optimizer import DocumentTypeOptimizer
from chunkwise.domain.value_objects.document_content import DocumentContent


class TestChunkingSession:
    """Test suite for ChunkingSession."""

    @pytest.fixture()
    def optimizer(self):
        return MagicMock(wraps=DocumentTypeOptimizer())

    @pytest.fixture()
    def session(self, optimizer):
        return ChunkingSession(optimizer)

    def test_detection_is_cached(self, session, optimizer, sample_text):
        """Test a document type is detected once per document id."""
        # Arrange
        document = DocumentContent(text=sample_text, document_id="guide")

        # Act
        first = session.document_type(document)
        second = session.document_type(document)

        # Assert
        assert first is second
        optimizer.detect_document_type.assert_called_once_with(sample_text)
        assert len(session) == 1

    def test_prepare_attaches_type(self, session, sample_text):
        """Test prepare returns a copy carrying the detected type."""
        prepared = session.prepare(DocumentContent(text=sample_text, document_id="guide"))

        assert prepared.document_type is not None
        assert session.prepare(prepared) is prepared

    def test_prepared_documents_bypass_cache(self, session, optimizer, sample_text):
        """Test a document that already carries a type is not detected again."""
        prepared = session.prepare(DocumentContent(text=sample_text, document_id="guide"))
        session.clear()

        session.document_type(prepared)

        assert optimizer.detect_document_type.call_count == 1
        assert len(session) == 0

    def test_forget_and_clear(self, session):
        """Test cached entries can be dropped individually or all at once."""
        session.document_type(DocumentContent(text="First document.", document_id="a"))
        session.document_type(DocumentContent(text="Second document.", document_id="b"))

        session.forget("a")
        assert len(session) == 1

        session.forget("missing")
        session.clear()
        assert len(session) == 0
