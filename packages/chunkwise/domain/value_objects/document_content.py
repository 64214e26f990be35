#!/usr/bin/env python3
"""
Input document value object.

Format-specific readers are external; the engine only needs the extracted
text, an opaque identifier and optional structural hints.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chunkwise.domain.value_objects.document_type_info import DocumentTypeInfo


@dataclass(frozen=True)
class SectionHint:
    """A section heading supplied by a reader, positioned in the text."""

    title: str
    level: int
    start_offset: int


@dataclass(frozen=True)
class DocumentContent:
    """
    Extracted document text plus optional structural hints.

    ``page_offsets`` lists the character offset at which each page starts,
    in ascending order. ``document_type`` is filled by a session when the
    document type has already been detected for this document.
    """

    text: str
    document_id: str = "doc"
    sections: tuple[SectionHint, ...] = ()
    page_offsets: tuple[int, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    document_type: "DocumentTypeInfo | None" = None

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError(f"Document text must be a string, got {type(self.text).__name__}")

        previous = -1
        for offset in self.page_offsets:
            if offset < 0 or offset <= previous:
                raise ValueError(f"Page offsets must be non-negative and strictly ascending: {self.page_offsets}")
            previous = offset

    @classmethod
    def coerce(cls, document: "DocumentContent | str") -> "DocumentContent":
        """Accept either plain text or a prepared document."""
        if isinstance(document, DocumentContent):
            return document
        return cls(text=document)

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()
