#!/usr/bin/env python3
"""
Text segmentation helpers shared by strategies and analyzers.

All segmentation functions work on offsets into the original text so that
chunks can always be traced back to the characters they came from.
"""

import math
import re
from collections import Counter

CHARS_PER_TOKEN = 4

MIN_SENTENCE_LENGTH = 10

WORD_PATTERN = re.compile(r"\w+", re.UNICODE)
PARAGRAPH_BREAK_PATTERN = re.compile(r"\n[ \t]*\n\s*")
HEADING_PATTERN = re.compile(r"^[ \t]{0,3}#{1,6}\s+\S.*$", re.MULTILINE)
LIST_ITEM_PATTERN = re.compile(r"^[ \t]*(?:[-*+•]|\d+[.)])\s+\S", re.MULTILINE)
TABLE_ROW_PATTERN = re.compile(r"^[ \t]*\|.*\|[ \t]*$", re.MULTILINE)
CODE_FENCE_PATTERN = re.compile(r"^[ \t]*(```|~~~)", re.MULTILINE)

# Terminal punctuation followed by optional closing quotes or brackets.
_SENTENCE_END_PATTERN = re.compile(r"[.!?]+[\"'”’)\]]*(?=\s|$)|[。！？]+[」』）”]*")
_STRUCTURAL_LINE_PATTERN = re.compile(r"[ \t]*(?:#{1,6}\s|[-*+•]\s|\d+[.)]\s|\||```|~~~)")
_CLAUSE_BREAK_PATTERN = re.compile(r"[,;:，；：、](?=\s|$)|[,;:，；：、]")

ABBREVIATIONS = frozenset(
    {"mr", "mrs", "ms", "dr", "prof", "sr", "jr", "st", "vs", "etc", "inc", "ltd", "co", "no", "fig", "al", "approx", "dept"}
)
_DOTTED_ABBREVIATIONS = ("e.g.", "i.e.", "a.m.", "p.m.", "u.s.")

TRUNCATION_MARKERS = ("...", "…", ",", ";", "-", "–")
TERMINAL_PUNCTUATION = (".", "!", "?", "。", "！", "？", '."', '!"', '?"', ".”", ".)", ".'")

STOPWORDS = frozenset(
    {
        "a", "an", "the", "and", "or", "but", "if", "then", "of", "to", "in", "on", "at", "by", "for", "with",
        "is", "are", "was", "were", "be", "been", "being", "it", "its", "this", "that", "these", "those", "as",
        "from", "into", "not", "no", "so", "than", "too", "very", "can", "will", "just", "do", "does", "did",
        "has", "have", "had", "we", "you", "they", "he", "she", "i", "our", "your", "their", "his", "her",
    }
)

# Hangul syllables and jamo, CJK unified ideographs (plus extension A),
# Hiragana and Katakana.
_CJK_RANGES = (
    (0xAC00, 0xD7AF),
    (0x1100, 0x11FF),
    (0x3130, 0x318F),
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x3040, 0x309F),
    (0x30A0, 0x30FF),
)


def words(text: str) -> list[str]:
    """Lower-cased word tokens."""
    return [match.group(0).lower() for match in WORD_PATTERN.finditer(text)]


def content_words(text: str) -> set[str]:
    """Distinct lower-cased words excluding stopwords and single characters."""
    return {word for word in words(text) if len(word) > 1 and word not in STOPWORDS}


def estimate_tokens(text: str) -> int:
    """Character-based token estimate (one token per four characters)."""
    if not text:
        return 0
    return max(1, math.ceil(len(text) / CHARS_PER_TOKEN))


def is_cjk(character: str) -> bool:
    code = ord(character)
    return any(low <= code <= high for low, high in _CJK_RANGES)


def cjk_ratio(text: str) -> float:
    """Share of non-whitespace code points that belong to CJK scripts."""
    total = 0
    cjk = 0
    for character in text:
        if character.isspace():
            continue
        total += 1
        if is_cjk(character):
            cjk += 1
    return cjk / total if total else 0.0


def cjk_size_multiplier(ratio: float, threshold: float = 0.3, floor: float = 0.15) -> float:
    """
    Chunk-size multiplier for CJK-heavy text.

    Returns 1.0 up to ``threshold`` and decreases linearly from there,
    reaching ``floor`` at ratio 1.0.
    """
    ratio = min(1.0, max(0.0, ratio))
    if ratio <= threshold:
        return 1.0
    return 1.0 - (1.0 - floor) * (ratio - threshold) / (1.0 - threshold)


def trim_span(text: str, start: int, end: int) -> tuple[int, int]:
    """Shrink a span so it neither starts nor ends with whitespace."""
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def paragraph_spans(text: str, start: int = 0, end: int | None = None) -> list[tuple[int, int]]:
    """Spans of blank-line separated paragraphs inside ``text[start:end]``."""
    end = len(text) if end is None else end
    spans = []
    cursor = start
    for match in PARAGRAPH_BREAK_PATTERN.finditer(text, start, end):
        span = trim_span(text, cursor, match.start())
        if span[1] > span[0]:
            spans.append(span)
        cursor = match.end()
    span = trim_span(text, cursor, end)
    if span[1] > span[0]:
        spans.append(span)
    return spans


def line_spans(text: str, start: int = 0, end: int | None = None) -> list[tuple[int, int]]:
    """Spans of non-blank lines inside ``text[start:end]``."""
    end = len(text) if end is None else end
    spans = []
    cursor = start
    while cursor < end:
        newline = text.find("\n", cursor, end)
        line_end = end if newline == -1 else newline
        span = trim_span(text, cursor, line_end)
        if span[1] > span[0]:
            spans.append(span)
        cursor = line_end + 1
    return spans


def _is_abbreviation(text: str, terminator_start: int) -> bool:
    if text[terminator_start] != ".":
        return False
    window = text[max(0, terminator_start - 5) : terminator_start + 1].lower()
    if window.endswith(_DOTTED_ABBREVIATIONS):
        return True
    word_start = terminator_start
    while word_start > 0 and text[word_start - 1].isalpha():
        word_start -= 1
    word = text[word_start:terminator_start]
    if word.lower() in ABBREVIATIONS:
        return True
    # Single capital initials such as "J. Smith"
    return len(word) == 1 and word.isupper()


def _sentence_cut_points(text: str, start: int, end: int) -> list[int]:
    cuts = set()
    for match in _SENTENCE_END_PATTERN.finditer(text, start, end):
        terminator = match.group(0)
        if terminator.startswith(".."):
            continue
        if terminator.startswith(".") and _is_abbreviation(text, match.start()):
            continue
        cuts.add(match.end())

    for match in PARAGRAPH_BREAK_PATTERN.finditer(text, start, end):
        cuts.add(match.start())

    # A single newline is a boundary when the next line is structural
    # (heading, list item, table row, code fence) or the previous line was a heading.
    position = text.find("\n", start, end)
    while position != -1:
        line_start = text.rfind("\n", start, position) + 1
        previous_line = text[max(line_start, start) : position]
        if _STRUCTURAL_LINE_PATTERN.match(text, position + 1) or previous_line.lstrip().startswith("#"):
            cuts.add(position)
        position = text.find("\n", position + 1, end)

    return sorted(cut for cut in cuts if start < cut < end)


def sentence_spans(
    text: str,
    start: int = 0,
    end: int | None = None,
    min_length: int = MIN_SENTENCE_LENGTH,
) -> list[tuple[int, int]]:
    """
    Spans of sentence units inside ``text[start:end]``.

    Ellipses and common abbreviations do not end a sentence. Units of
    ``min_length`` characters or fewer are folded into the preceding unit
    (or the following one when there is no preceding unit).
    """
    end = len(text) if end is None else end
    raw = []
    cursor = start
    for cut in _sentence_cut_points(text, start, end):
        span = trim_span(text, cursor, cut)
        if span[1] > span[0]:
            raw.append(span)
        cursor = cut
    span = trim_span(text, cursor, end)
    if span[1] > span[0]:
        raw.append(span)

    if min_length <= 0:
        return raw

    folded: list[tuple[int, int]] = []
    pending_start: int | None = None
    for span_start, span_end in raw:
        if pending_start is not None:
            span_start = pending_start
            pending_start = None
        if span_end - span_start <= min_length:
            # Short headings attach to what follows them, everything else to what precedes.
            if folded and text[span_start] != "#":
                folded[-1] = (folded[-1][0], span_end)
            else:
                pending_start = span_start
            continue
        folded.append((span_start, span_end))
    if pending_start is not None:
        if folded:
            folded[-1] = (folded[-1][0], raw[-1][1])
        else:
            folded.append((pending_start, raw[-1][1]))
    return folded


def is_truncated(sentence: str) -> bool:
    """A sentence ending in a truncation marker was cut off."""
    return sentence.rstrip().endswith(TRUNCATION_MARKERS)


def ends_with_terminal_punctuation(text: str) -> bool:
    stripped = text.rstrip()
    return stripped.endswith(TERMINAL_PUNCTUATION) and not stripped.endswith("...")


def find_cut_before(text: str, start: int, limit: int) -> int:
    """
    Best cut position in ``(start, limit]``.

    Prefers a sentence end, then clause punctuation, then whitespace, and
    cuts hard at ``limit`` when the window holds a single unbroken token.
    """
    if limit >= len(text):
        return len(text)

    window_floor = start + max(1, (limit - start) // 3)

    sentence_cuts = [cut for cut in _sentence_cut_points(text, start, limit + 1) if window_floor <= cut <= limit]
    if sentence_cuts:
        return sentence_cuts[-1]

    clause_cut = -1
    for match in _CLAUSE_BREAK_PATTERN.finditer(text, window_floor, limit):
        clause_cut = match.end()
    if clause_cut > start:
        return clause_cut

    for position in range(limit, start, -1):
        if text[position - 1].isspace() or text[position].isspace():
            return position

    return limit


_DETACHABLE_MARKERS = frozenset(",;-–…")


def _leaves_marker(text: str, start: int, cut: int) -> bool:
    while cut > start and text[cut - 1].isspace():
        cut -= 1
    return text[max(start, cut - 3) : cut].endswith(TRUNCATION_MARKERS)


def find_complete_cut_before(text: str, start: int, limit: int) -> int:
    """
    Cut position in ``(start, limit]`` whose piece does not end in a truncation marker.

    Prefers a sentence end, then whitespace after a word, then the position
    right before a trailing comma, semicolon or dash so the mark opens the
    next piece. Falls back to ``find_cut_before`` when no such cut exists.
    """
    if limit >= len(text):
        return len(text)

    window_floor = start + max(1, (limit - start) // 3)

    sentence_cuts = [
        cut
        for cut in _sentence_cut_points(text, start, limit + 1)
        if window_floor <= cut <= limit and not _leaves_marker(text, start, cut)
    ]
    if sentence_cuts:
        return sentence_cuts[-1]

    for low, high in ((window_floor, limit), (start + 1, window_floor - 1)):
        for position in range(high, low - 1, -1):
            if text[position].isspace() and not text[position - 1].isspace():
                if not _leaves_marker(text, start, position):
                    return position
        for position in range(high, low - 1, -1):
            if text[position] in _DETACHABLE_MARKERS and text[position - 1].isalnum():
                return position

    return find_cut_before(text, start, limit)


def snap_forward_to_word(text: str, position: int, limit: int) -> int:
    """Move ``position`` forward to the next word start, never past ``limit``."""
    if position <= 0:
        return 0
    if position >= limit:
        return limit
    if text[position - 1].isspace() and not text[position].isspace():
        return position
    cursor = position
    while cursor < limit and not text[cursor].isspace():
        cursor += 1
    while cursor < limit and text[cursor].isspace():
        cursor += 1
    return cursor


def lexical_similarity(first: str, second: str) -> float:
    """Cosine similarity of term-frequency vectors, in [0, 1]."""
    first_counts = Counter(words(first))
    second_counts = Counter(words(second))
    if not first_counts or not second_counts:
        return 0.0
    dot = sum(count * second_counts[word] for word, count in first_counts.items())
    first_norm = math.sqrt(sum(count * count for count in first_counts.values()))
    second_norm = math.sqrt(sum(count * count for count in second_counts.values()))
    return dot / (first_norm * second_norm)


def jaccard(first: set[str], second: set[str]) -> float:
    if not first and not second:
        return 0.0
    return len(first & second) / len(first | second)
