#!/usr/bin/env python3
"""
Smart chunking strategy.

Packs whole sentences, cutting oversized ones where no truncation marker
is left behind, then moves and merges chunk boundaries until the average
sentence completeness of the produced chunks reaches the floor.
"""

import logging
from statistics import mean

from chunkwise.domain.services.completeness import chunk_completeness
from chunkwise.domain.value_objects.chunk_props import ChunkPropsKeys
from chunkwise.domain.value_objects.chunking_options import ChunkingOptions, ChunkingStrategyType
from chunkwise.domain.value_objects.document_content import DocumentContent
from chunkwise.strategies.base import ChunkingStrategy, ChunkSpan, pack_spans
from chunkwise.utils.cancellation import CancellationToken, check_cancelled
from chunkwise.utils.text import find_complete_cut_before, sentence_spans, trim_span

logger = logging.getLogger(__name__)

DEFAULT_MIN_COMPLETENESS = 0.7


class SmartChunkingStrategy(ChunkingStrategy):
    """
    Sentence-aware chunking with a completeness floor.

    Strategy options:
        MinCompleteness (float, 0.7): required average completeness
        SmartOverlap (bool, True): overlap begins at a sentence start
    """

    def __init__(self) -> None:
        super().__init__(ChunkingStrategyType.SMART.value)

    def _split(
        self,
        text: str,
        options: ChunkingOptions,
        document: DocumentContent,
        cancellation: CancellationToken | None,
    ) -> list[ChunkSpan]:
        min_completeness = options.get_strategy_option("MinCompleteness", DEFAULT_MIN_COMPLETENESS)
        budget = options.effective_chunk_size

        sentences = sentence_spans(text)
        groups = pack_spans(text, sentences, budget, cut_finder=find_complete_cut_before)
        groups = self._adjust_cuts(text, groups, budget, min_completeness, cancellation)
        groups = self._rebalance(text, groups, budget, min_completeness, cancellation)

        scores = [chunk_completeness(text[start:end]) for start, end in groups]
        average = mean(scores) if scores else 0.0
        floor_met = average >= min_completeness
        if not floor_met:
            logger.warning(
                f"Smart chunking of '{document.document_id}' reached completeness {average:.2f} "
                f"below the {min_completeness:.2f} floor"
            )

        return [
            ChunkSpan(start, end, attributes={ChunkPropsKeys.COMPLETENESS_FLOOR_MET: floor_met})
            for start, end in groups
        ]

    def _adjust_cuts(
        self,
        text: str,
        groups: list[tuple[int, int]],
        budget: int,
        min_completeness: float,
        cancellation: CancellationToken | None,
    ) -> list[tuple[int, int]]:
        """Move the cut between two neighbors when that raises their combined completeness."""
        groups = list(groups)
        scores = [chunk_completeness(text[start:end]) for start, end in groups]

        moved = True
        rounds = 0
        while moved and rounds < len(groups) and scores and mean(scores) < min_completeness:
            check_cancelled(cancellation, "Smart.adjust_cuts", rounds)
            rounds += 1
            moved = False
            for index in range(len(groups) - 1):
                if scores[index] >= 1.0 and scores[index + 1] >= 1.0:
                    continue
                left_start, right_end = groups[index][0], groups[index + 1][1]
                best_total = scores[index] + scores[index + 1]
                best = None
                for cut in self._cut_candidates(text, left_start, right_end, budget):
                    left = trim_span(text, left_start, cut)
                    right = trim_span(text, cut, right_end)
                    if left[1] <= left[0] or right[1] <= right[0]:
                        continue
                    if left[1] - left[0] > budget or right[1] - right[0] > budget:
                        continue
                    pair_scores = (
                        chunk_completeness(text[left[0] : left[1]]),
                        chunk_completeness(text[right[0] : right[1]]),
                    )
                    if sum(pair_scores) > best_total + 1e-9:
                        best_total = sum(pair_scores)
                        best = (left, right, pair_scores)
                if best is not None:
                    groups[index], groups[index + 1] = best[0], best[1]
                    scores[index], scores[index + 1] = best[2]
                    moved = True

        if rounds:
            logger.debug(f"Smart cut adjustment ran {rounds} rounds")
        return groups

    def _cut_candidates(self, text: str, start: int, end: int, budget: int) -> list[int]:
        """Sentence ends inside ``text[start:end]`` plus the cleanest cut that fits the budget."""
        candidates = {span_end for _, span_end in sentence_spans(text, start, end, min_length=0)}
        if end - start > budget:
            candidates.add(find_complete_cut_before(text, start, start + budget))
        return sorted(cut for cut in candidates if start < cut < end)

    def _rebalance(
        self,
        text: str,
        groups: list[tuple[int, int]],
        budget: int,
        min_completeness: float,
        cancellation: CancellationToken | None,
    ) -> list[tuple[int, int]]:
        """Merge the least complete chunk into a neighbor while the floor is unmet and the budget allows."""
        groups = list(groups)
        scores = [chunk_completeness(text[start:end]) for start, end in groups]
        blocked: set[tuple[int, int]] = set()

        iteration = 0
        while scores and mean(scores) < min_completeness:
            check_cancelled(cancellation, "Smart.rebalance", iteration)
            iteration += 1

            candidates = [
                index for index in range(len(groups)) if scores[index] < min_completeness and groups[index] not in blocked
            ]
            if not candidates:
                break
            worst = min(candidates, key=lambda index: scores[index])

            neighbors = [
                neighbor
                for neighbor in (worst - 1, worst + 1)
                if 0 <= neighbor < len(groups)
                and max(groups[worst][1], groups[neighbor][1]) - min(groups[worst][0], groups[neighbor][0]) <= budget
            ]
            if not neighbors:
                blocked.add(groups[worst])
                continue

            partner = min(neighbors, key=lambda index: groups[index][1] - groups[index][0])
            first, second = sorted((worst, partner))
            merged = (groups[first][0], groups[second][1])
            groups[first : second + 1] = [merged]
            scores[first : second + 1] = [chunk_completeness(text[merged[0] : merged[1]])]

        if iteration:
            logger.debug(f"Smart rebalancing ran {iteration} iterations, {len(groups)} chunks remain")
        return groups

    def _overlap_start(self, text: str, floor: int, start: int, options: ChunkingOptions) -> int:
        if not options.get_strategy_option("SmartOverlap", True):
            return super()._overlap_start(text, floor, start, options)

        candidate = max(floor, start - options.overlap_size)
        for sentence_start, _ in sentence_spans(text, floor, start, min_length=0):
            if sentence_start >= candidate:
                return sentence_start
        return super()._overlap_start(text, floor, start, options)
