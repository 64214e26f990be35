"""
Q&A Benchmark Use Case.

Asks a text-completion provider for questions about a document and checks
how many of them a chunk set can answer. The benchmark is skipped when no
provider is configured.
"""

import asyncio
import logging
import re

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from chunkwise.application.dto.requests import QABenchmarkRequest
from chunkwise.domain.entities.chunk import Chunk
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.domain.value_objects.quality import QABenchmarkResult, QuestionType
from chunkwise.llm.base import TextCompletionProvider
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import content_words

logger = logging.getLogger(__name__)

ANSWER_COVERAGE_THRESHOLD = 0.6
PROMPT_CONTENT_LIMIT = 6000

QUESTION_SYSTEM_PROMPT = "You write evaluation questions for document retrieval systems. Reply with JSON only."
QUESTION_PROMPT = (
    "Write {count} {type} questions that can be answered from the document below. "
    "Reply with a JSON array of objects with the keys \"question\" and \"answer\", where "
    "\"answer\" quotes or closely paraphrases the document.\n\nDocument:\n{content}"
)

QUESTION_TYPE_GUIDANCE = {
    QuestionType.FACTUAL: "factual (specific facts, names, numbers)",
    QuestionType.CONCEPTUAL: "conceptual (definitions and explanations)",
    QuestionType.ANALYTICAL: "analytical (causes, consequences, significance)",
    QuestionType.PROCEDURAL: "procedural (steps and processes)",
}

_JSON_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)


class GeneratedQuestion(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


_QUESTIONS_ADAPTER = TypeAdapter(list[GeneratedQuestion])


def distribute_questions(question_count: int) -> dict[QuestionType, int]:
    """Spread ``question_count`` evenly over the question types; earlier types take the remainder."""
    types = list(QuestionType)
    base, remainder = divmod(question_count, len(types))
    return {question_type: base + (1 if index < remainder else 0) for index, question_type in enumerate(types)}


def parse_questions(reply: str) -> list[GeneratedQuestion]:
    """
    Parse a provider reply into questions.

    Raises:
        ValueError: If the reply holds no valid JSON question array
    """
    match = _JSON_ARRAY_PATTERN.search(reply)
    if match is None:
        raise ValueError("Reply contains no JSON array")
    try:
        return _QUESTIONS_ADAPTER.validate_json(match.group(0))
    except ValidationError as e:
        raise ValueError(f"Invalid question list: {e.error_count()} validation errors") from e


def is_answerable(answer: str, chunks: list[Chunk], threshold: float = ANSWER_COVERAGE_THRESHOLD) -> bool:
    """True when one chunk contains at least ``threshold`` of the answer's content words."""
    answer_words = content_words(answer)
    if not answer_words:
        return False
    for chunk in chunks:
        covered = len(answer_words & content_words(chunk.content)) / len(answer_words)
        if covered >= threshold:
            return True
    return False


class QABenchmarkUseCase:
    """Question-answering coverage of a chunk set."""

    def __init__(self, completion_provider: TextCompletionProvider | None = None) -> None:
        self.completion_provider = completion_provider

    async def execute(
        self, request: QABenchmarkRequest, cancellation: CancellationToken | None = None
    ) -> QABenchmarkResult:
        request.validate()
        if self.completion_provider is None:
            logger.info("Skipping Q&A benchmark: no text-completion provider configured")
            return QABenchmarkResult(skipped=True, skip_reason="No text-completion provider configured")

        document = DocumentContent.coerce(request.document)
        questions: list[tuple[QuestionType, GeneratedQuestion]] = []
        for position, (question_type, count) in enumerate(distribute_questions(request.question_count).items()):
            check_cancelled(cancellation, "qa_benchmark", position)
            if count == 0:
                continue
            generated = await self._generate(document.text, question_type, count)
            questions.extend((question_type, question) for question in generated[:count])

        if not questions:
            return QABenchmarkResult(skipped=True, skip_reason="The provider returned no usable questions")

        distribution = {question_type: 0 for question_type in QuestionType}
        answerable = 0
        for question_type, question in questions:
            distribution[question_type] += 1
            if is_answerable(question.answer, request.chunks):
                answerable += 1

        result = QABenchmarkResult(
            question_count=len(questions),
            answerable_count=answerable,
            coverage_percentage=answerable / len(questions) * 100,
            question_type_distribution=distribution,
        )
        logger.info(
            f"Q&A benchmark for '{document.document_id}': {answerable}/{len(questions)} answerable "
            f"({result.coverage_percentage:.1f}%)"
        )
        return result

    async def _generate(self, content: str, question_type: QuestionType, count: int) -> list[GeneratedQuestion]:
        provider = self.completion_provider
        prompt = QUESTION_PROMPT.format(
            count=count,
            type=QUESTION_TYPE_GUIDANCE[question_type],
            content=content[:PROMPT_CONTENT_LIMIT],
        )
        try:
            reply = await asyncio.wait_for(
                provider.complete(prompt, system_prompt=QUESTION_SYSTEM_PROMPT, temperature=0.3),  # type: ignore[union-attr]
                timeout=provider.MAX_TIMEOUT,  # type: ignore[union-attr]
            )
            return parse_questions(reply)
        except Exception as e:
            logger.warning(f"Question generation failed for {question_type.value} questions: {e}")
            return []
