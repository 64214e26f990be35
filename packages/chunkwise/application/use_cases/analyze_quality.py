"""
Analyze Quality Use Case.

Runs a full chunking pass and scores the result.
"""

import logging
import time

from chunkwise.application.dto.requests import AnalyzeQualityRequest
from chunkwise.application.use_cases.chunk_document import ChunkDocumentUseCase
from chunkwise.domain.value_objects.quality import QualityReport
from chunkwise.quality.quality_engine import ChunkQualityEngine
from chunkwise.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class AnalyzeQualityUseCase:
    """Chunk a document, compute quality metrics and derive recommendations."""

    def __init__(self, chunk_use_case: ChunkDocumentUseCase, quality_engine: ChunkQualityEngine) -> None:
        self.chunk_use_case = chunk_use_case
        self.quality_engine = quality_engine

    async def execute(
        self, request: AnalyzeQualityRequest, cancellation: CancellationToken | None = None
    ) -> QualityReport:
        start_time = time.perf_counter()
        response = await self.chunk_use_case.execute(request, cancellation=cancellation)
        options = request.options or self.chunk_use_case.default_options()

        metrics = await self.quality_engine.evaluate_chunks(response.chunks, cancellation)
        recommendations = self.quality_engine.generate_recommendations(metrics, options)

        report = QualityReport(
            document_id=response.document_id,
            strategy_name=response.strategy_used,
            metrics=metrics,
            recommendations=recommendations,
            processing_time=time.perf_counter() - start_time,
        )
        logger.info(
            f"Quality of '{report.document_id}' with {report.strategy_name}: "
            f"{metrics.overall_score:.3f} ({len(recommendations)} recommendations)"
        )
        return report
