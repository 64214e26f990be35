"""
Request DTOs for chunking application layer.

These DTOs define the input contracts for use cases.
"""

from dataclasses import dataclass, field

from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.exceptions import ConfigurationError
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions
from chunkwise.domain.value_objects.document_content import DocumentContent

MAX_QA_QUESTIONS = 100


@dataclass
class ChunkDocumentRequest:
    """Input DTO for chunking one document."""

    document: DocumentContent | str
    options: ChunkingOptions | None = None

    def validate(self) -> None:
        """
        Validate request parameters.

        Raises:
            ConfigurationError: If the document is not text
        """
        if not isinstance(self.document, (DocumentContent, str)):
            raise ConfigurationError(
                f"document must be text or DocumentContent, got {type(self.document).__name__}",
                {"option": "document"},
            )


@dataclass
class AnalyzeQualityRequest(ChunkDocumentRequest):
    """Input DTO for a chunk-and-score pass."""


@dataclass
class BenchmarkRequest:
    """Input DTO for comparing strategies on one document."""

    document: DocumentContent | str
    strategy_names: list[str] = field(default_factory=list)
    options: ChunkingOptions | None = None

    def validate(self) -> None:
        if not self.strategy_names:
            raise ConfigurationError("At least one strategy is required for a benchmark", {"option": "strategy_names"})

        for name in self.strategy_names:
            if not isinstance(name, str) or not name.strip():
                raise ConfigurationError("Strategy names cannot be empty", {"option": "strategy_names"})

        lowered = [name.strip().lower() for name in self.strategy_names]
        if len(set(lowered)) != len(lowered):
            raise ConfigurationError(
                "Strategy names must be unique", {"option": "strategy_names", "value": self.strategy_names}
            )


@dataclass
class QABenchmarkRequest:
    """Input DTO for the question-answering benchmark over an existing chunk set."""

    document: DocumentContent | str
    chunks: list[Chunk]
    question_count: int = 8

    def validate(self) -> None:
        if not 1 <= self.question_count <= MAX_QA_QUESTIONS:
            raise ConfigurationError(
                f"question_count must be between 1 and {MAX_QA_QUESTIONS}, got {self.question_count}",
                {"option": "question_count", "value": self.question_count},
            )
