#!/usr/bin/env python3
"""
Intra-chunk coherence analysis.

A chunk is split into sentences, every sentence is embedded, and the mean
and spread of all pairwise similarities give the base score. Detected
issues then apply multiplicative penalties.
"""

import logging
import re
from statistics import mean, pstdev

from chunkwise.analysis.boundary_detector import SemanticBoundaryDetector
from chunkwise.domain.value_objects.boundaries import ChunkBoundary
from chunkwise.domain.value_objects.coherence import (
    CoherenceAnalysisResult,
    CoherenceIssue,
    CoherenceIssueType,
    CoherenceLevel,
    IssueSeverity,
)
from chunkwise.embedding.base import EmbeddingProvider
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import lexical_similarity

logger = logging.getLogger(__name__)

SENTENCE_SPLIT_PATTERN = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
PRONOUN_PATTERN = re.compile(r"\b(this|that|these|those|it|they)\b", re.IGNORECASE)

SINGLE_SENTENCE_SCORE = 0.8
TOPIC_SHIFT_THRESHOLD = 0.3
SEVERE_TOPIC_SHIFT_THRESHOLD = 0.2
SHORT_SENTENCE_LENGTH = 20
MULTI_TOPIC_THRESHOLD = 0.5
BELOW_AVERAGE_RATIO = 0.8


def split_sentences(content: str) -> list[str]:
    """Split on terminal punctuation followed by an upper-case letter, else on newlines."""
    sentences = [part.strip() for part in SENTENCE_SPLIT_PATTERN.split(content) if part.strip()]
    if len(sentences) < 2:
        lines = [line.strip() for line in content.split("\n") if line.strip()]
        if len(lines) > len(sentences):
            return lines
    return sentences


class ChunkCoherenceAnalyzer:
    """
    Scores how well the sentences of a chunk belong together.

    The analysis is a pure function of the chunk text and the provider's
    embeddings. Without a provider, or when the provider fails, lexical
    similarity is used, topic-shift detection is skipped and the result is
    marked degraded.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider | None = None,
        boundary_detector: SemanticBoundaryDetector | None = None,
    ) -> None:
        self.embedding_provider = embedding_provider
        self.boundary_detector = boundary_detector or SemanticBoundaryDetector(embedding_provider)

    async def analyze(self, content: str, cancellation: CancellationToken | None = None) -> CoherenceAnalysisResult:
        if not content or not content.strip():
            return CoherenceAnalysisResult(
                coherence_score=0.0,
                intra_sentence_similarity=0.0,
                similarity_variance=0.0,
                level=CoherenceLevel.VERY_LOW,
                issues=[
                    CoherenceIssue(
                        CoherenceIssueType.MISSING_CONTEXT, "Empty chunk", 0, IssueSeverity.HIGH
                    )
                ],
            )

        sentences = split_sentences(content)
        if len(sentences) < 2:
            return CoherenceAnalysisResult(
                coherence_score=SINGLE_SENTENCE_SCORE,
                intra_sentence_similarity=1.0,
                similarity_variance=0.0,
                level=CoherenceLevel.HIGH,
                sentence_count=len(sentences),
            )

        pairs, degraded = await self._pairwise_similarities(sentences, cancellation)
        similarities = [similarity for _, _, similarity in pairs]
        average = mean(similarities)
        variance = pstdev(similarities, average)

        issues = self._detect_issues(sentences, pairs, detect_topic_shifts=not degraded)
        score = average * (1 - variance * 0.5)
        for issue in issues:
            score *= issue.severity.penalty
        score = max(0.0, min(1.0, score))

        level = CoherenceLevel.from_score(score)
        return CoherenceAnalysisResult(
            coherence_score=score,
            intra_sentence_similarity=average,
            similarity_variance=variance,
            level=level,
            issues=issues,
            suggestions=self._suggestions(issues, level, average),
            sentence_count=len(sentences),
            degraded=degraded,
        )

    async def analyze_chunks(
        self, contents: list[str], cancellation: CancellationToken | None = None
    ) -> list[CoherenceAnalysisResult]:
        """Analyze each chunk and flag the ones well below the batch average."""
        results = []
        for index, content in enumerate(contents):
            check_cancelled(cancellation, "analyze_chunks", index)
            results.append(await self.analyze(content, cancellation))

        if len(results) > 1:
            average = mean(result.coherence_score for result in results)
            for result in results:
                if result.coherence_score < average * BELOW_AVERAGE_RATIO:
                    result.suggestions.append(
                        f"This chunk's coherence ({result.coherence_score:.2f}) is below average "
                        f"({average:.2f}). Consider restructuring."
                    )
        return results

    async def suggest_boundaries(
        self,
        content: str,
        max_chunk_size: int,
        cancellation: CancellationToken | None = None,
    ) -> list[ChunkBoundary]:
        return await self.boundary_detector.suggest_boundaries(content, max_chunk_size, cancellation)

    async def _pairwise_similarities(
        self, sentences: list[str], cancellation: CancellationToken | None
    ) -> tuple[list[tuple[int, int, float]], bool]:
        embeddings = None
        if self.embedding_provider is not None:
            check_cancelled(cancellation, "analyze_coherence", 0)
            try:
                embeddings = await self.embedding_provider.embed_batch(sentences)
            except Exception as e:
                logger.warning(f"Embedding provider failed during coherence analysis, using lexical similarity: {e}")

        pairs = []
        for i in range(len(sentences) - 1):
            check_cancelled(cancellation, "analyze_coherence", i)
            for j in range(i + 1, len(sentences)):
                if embeddings is None:
                    similarity = lexical_similarity(sentences[i], sentences[j])
                else:
                    similarity = self.embedding_provider.similarity(embeddings[i], embeddings[j])  # type: ignore[union-attr]
                pairs.append((i, j, similarity))
        return pairs, embeddings is None

    def _detect_issues(
        self,
        sentences: list[str],
        pairs: list[tuple[int, int, float]],
        detect_topic_shifts: bool,
    ) -> list[CoherenceIssue]:
        issues = []

        if detect_topic_shifts:
            for i, j, similarity in pairs:
                if similarity < TOPIC_SHIFT_THRESHOLD:
                    issues.append(
                        CoherenceIssue(
                            CoherenceIssueType.TOPIC_SHIFT,
                            f"Potential topic shift between sentences {i + 1} and {j + 1}",
                            i,
                            IssueSeverity.HIGH if similarity < SEVERE_TOPIC_SHIFT_THRESHOLD else IssueSeverity.MEDIUM,
                        )
                    )

        if len(sentences[0]) < SHORT_SENTENCE_LENGTH:
            issues.append(
                CoherenceIssue(
                    CoherenceIssueType.INCOMPLETE_THOUGHT,
                    "Chunk starts with a very short sentence",
                    0,
                    IssueSeverity.MEDIUM,
                )
            )
        if len(sentences[-1]) < SHORT_SENTENCE_LENGTH:
            issues.append(
                CoherenceIssue(
                    CoherenceIssueType.INCOMPLETE_THOUGHT,
                    "Chunk ends with a very short sentence",
                    len(sentences) - 1,
                    IssueSeverity.MEDIUM,
                )
            )

        if PRONOUN_PATTERN.search(sentences[0]):
            issues.append(
                CoherenceIssue(
                    CoherenceIssueType.BROKEN_REFERENCE,
                    "First sentence contains pronouns that may reference missing context",
                    0,
                    IssueSeverity.MEDIUM,
                )
            )

        return issues

    def _suggestions(self, issues: list[CoherenceIssue], level: CoherenceLevel, average: float) -> list[str]:
        suggestions = []
        if level <= CoherenceLevel.LOW:
            suggestions.append("Consider restructuring this chunk for better coherence")
        if average < MULTI_TOPIC_THRESHOLD:
            suggestions.append("The content appears to cover multiple topics. Consider splitting into separate chunks.")

        topic_shifts = sum(1 for issue in issues if issue.type == CoherenceIssueType.TOPIC_SHIFT)
        if topic_shifts:
            suggestions.append(f"Found {topic_shifts} potential topic shifts. Review chunk boundaries.")
        if any(issue.type == CoherenceIssueType.BROKEN_REFERENCE for issue in issues):
            suggestions.append("Add context for pronouns and references at the beginning of the chunk.")
        if any(issue.type == CoherenceIssueType.INCOMPLETE_THOUGHT for issue in issues):
            suggestions.append("Ensure complete thoughts at chunk boundaries.")

        if not suggestions and level >= CoherenceLevel.HIGH:
            suggestions.append("Chunk has good coherence. No major improvements needed.")
        return suggestions
