"""
Chunk Document Use Case.

Resolves the requested strategy, chunks the document and enriches the
produced chunks.
"""

import logging
import time
from collections.abc import Callable

from chunkwise.application.dto.requests import ChunkDocumentRequest
from chunkwise.application.dto.responses import ChunkDocumentResponse
from chunkwise.application.session import ChunkingSession
from chunkwise.config.base import ChunkingSettings
from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.services.metadata_enricher import ChunkMetadataEnricher
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.metrics.chunking_metrics import ChunkingPerformanceMonitor
from chunkwise.strategies.registry import StrategyRegistry
from chunkwise.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class ChunkDocumentUseCase:
    """
    Use case for chunking a single document.

    This use case:
    - Resolves the strategy, falling back (with a recorded warning) for unknown names
    - Runs the strategy under the performance monitor
    - Enriches the chunks with content type, quality and navigation props
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        settings: ChunkingSettings | None = None,
        enricher: ChunkMetadataEnricher | None = None,
        monitor: ChunkingPerformanceMonitor | None = None,
        session: ChunkingSession | None = None,
    ) -> None:
        """
        Initialize the use case with dependencies.

        Args:
            registry: Frozen strategy registry
            settings: Engine settings supplying option defaults
            enricher: Chunk metadata enricher
            monitor: Performance monitor owned by this use case
            session: Optional caller-held session caching document types
        """
        self.registry = registry
        self.settings = settings or ChunkingSettings()
        self.enricher = enricher or ChunkMetadataEnricher()
        self.monitor = monitor or ChunkingPerformanceMonitor()
        self.session = session

    def default_options(self) -> ChunkingOptions:
        return ChunkingOptions(
            strategy=self.settings.DEFAULT_STRATEGY,
            max_chunk_size=self.settings.DEFAULT_MAX_CHUNK_SIZE,
            overlap_size=self.settings.DEFAULT_OVERLAP_SIZE,
        )

    async def execute(
        self,
        request: ChunkDocumentRequest,
        progress_callback: Callable[[float], None] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ChunkDocumentResponse:
        """
        Execute the chunking use case.

        Raises:
            ConfigurationError: If the request or options are invalid
            UnknownStrategyError: If the strategy is unknown and no fallback is configured
            OperationCancelledError: If ``cancellation`` fires
        """
        request.validate()
        options = request.options or self.default_options()
        document = DocumentContent.coerce(request.document)
        if self.session is not None:
            document = self.session.prepare(document)

        resolution = self.registry.resolve(options.strategy_name)
        strategy = resolution.strategy

        start_time = time.perf_counter()
        with self.monitor.measure_chunking(
            strategy.name,
            document.document_id,
            len(document.text),
            metadata={"requested_strategy": options.strategy_name},
        ) as metrics:
            chunks = await strategy.chunk_async(document, options, progress_callback, cancellation)
            metrics.output_chunks = len(chunks)
        processing_time_ms = (time.perf_counter() - start_time) * 1000

        if resolution.warning:
            for chunk in chunks:
                chunk.props[ChunkPropsKeys.STRATEGY_FALLBACK_WARNING] = resolution.warning

        self.enricher.enrich(chunks, options.with_strategy(self._produced_by(strategy.name, chunks)))

        return ChunkDocumentResponse(
            document_id=document.document_id,
            requested_strategy=options.strategy_name,
            strategy_used=chunks[0].strategy_name if chunks else strategy.name,
            chunks=chunks,
            processing_time_ms=processing_time_ms,
            fallback_warning=resolution.warning,
        )

    def _produced_by(self, strategy_name: str, chunks: list[Chunk]) -> str:
        """Concrete strategy behind the chunks; Auto records its selection on each chunk."""
        if strategy_name == ChunkingStrategyType.AUTO.value and chunks:
            return chunks[0].props.get_or_default(ChunkPropsKeys.AUTO_SELECTED_STRATEGY, strategy_name)
        return strategy_name
