"""Fuzzy scoring in the style of fzf.

A pattern matches a text when its characters appear in the text in order,
case-insensitively. Matches score higher when they start early, stay
contiguous and begin at word boundaries; gaps cost points.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1

BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_NON_WORD = SCORE_MATCH // 2
BONUS_BOUNDARY_WHITE = BONUS_BOUNDARY + 2
BONUS_BOUNDARY_DELIMITER = BONUS_BOUNDARY + 1
BONUS_CAMEL123 = BONUS_BOUNDARY + SCORE_GAP_EXTENSION
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

# Score given to every item when the query is empty
NEUTRAL_SCORE = 1.0

# Per-field decay: label, sub, then tags
FIELD_PENALTY = 0.10
MIN_FIELD_FACTOR = 0.7

DELIMITERS = "/,:;|"


class CharClass(IntEnum):
    WHITE = 0
    NON_WORD = 1
    DELIMITER = 2
    LOWER = 3
    UPPER = 4
    LETTER = 5
    NUMBER = 6


def char_class(c: str) -> CharClass:
    if c.islower():
        return CharClass.LOWER
    if c.isupper():
        return CharClass.UPPER
    if c.isdigit():
        return CharClass.NUMBER
    if c.isalpha():
        return CharClass.LETTER
    if c.isspace():
        return CharClass.WHITE
    if c in DELIMITERS:
        return CharClass.DELIMITER
    return CharClass.NON_WORD


def bonus_for(prev: CharClass, cls: CharClass) -> int:
    if cls >= CharClass.LOWER:
        if prev == CharClass.WHITE:
            return BONUS_BOUNDARY_WHITE
        if prev == CharClass.DELIMITER:
            return BONUS_BOUNDARY_DELIMITER
        if prev == CharClass.NON_WORD:
            return BONUS_BOUNDARY
    if (prev == CharClass.LOWER and cls == CharClass.UPPER) or \
            (prev != CharClass.NUMBER and cls == CharClass.NUMBER):
        return BONUS_CAMEL123
    if cls in (CharClass.NON_WORD, CharClass.DELIMITER):
        return BONUS_NON_WORD
    if cls == CharClass.WHITE:
        return BONUS_BOUNDARY_WHITE
    return 0


@dataclass(frozen=True)
class Match:
    start: int
    end: int
    score: int


def fuzzy_match(text: str, pattern: str) -> Optional[Match]:
    """Find ``pattern`` in ``text`` and score the tightest window.

    The forward pass finds the first occurrence of the last pattern char,
    the backward pass then shrinks the window from the left.
    """
    if not pattern:
        return Match(0, 0, 0)

    # Keep indexes aligned with text even where lower() expands a char
    lowered = "".join(c.lower() if len(c.lower()) == 1 else c for c in text)
    pattern = pattern.lower()

    pidx = 0
    end = -1
    for idx, c in enumerate(lowered):
        if c == pattern[pidx]:
            pidx += 1
            if pidx == len(pattern):
                end = idx + 1
                break
    if end < 0:
        return None

    pidx = len(pattern) - 1
    start = end - 1
    for idx in range(end - 1, -1, -1):
        if lowered[idx] == pattern[pidx]:
            pidx -= 1
            if pidx < 0:
                start = idx
                break

    return Match(start, end, _window_score(text, lowered, pattern, start, end))


def _window_score(text: str, lowered: str, pattern: str, start: int, end: int) -> int:
    pidx = 0
    score = 0
    in_gap = False
    consecutive = 0
    first_bonus = 0
    prev = CharClass.WHITE if start == 0 else char_class(text[start - 1])

    for idx in range(start, end):
        cls = char_class(text[idx])
        if pidx < len(pattern) and lowered[idx] == pattern[pidx]:
            score += SCORE_MATCH
            bonus = bonus_for(prev, cls)
            if consecutive == 0:
                first_bonus = bonus
            else:
                # A boundary bonus carries over the rest of the chunk
                if bonus >= BONUS_BOUNDARY and bonus > first_bonus:
                    first_bonus = bonus
                bonus = max(bonus, first_bonus, BONUS_CONSECUTIVE)
            score += bonus * BONUS_FIRST_CHAR_MULTIPLIER if pidx == 0 else bonus
            in_gap = False
            consecutive += 1
            pidx += 1
        else:
            score += SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            in_gap = True
            consecutive = 0
            first_bonus = 0
        prev = cls

    return score


def field_factor(index: int) -> float:
    return max(MIN_FIELD_FACTOR, 1.0 - FIELD_PENALTY * index)


def fuzzy_score(fields: Sequence[str], query: str) -> float:
    """Relevance of a record for ``query``; 0 means no match.

    The best sub-score across ``fields`` wins and is decayed by the position
    of the field that produced it, so label matches beat tag matches.
    """
    if not query:
        return NEUTRAL_SCORE

    highest = 0.0
    best_index = 0
    for index, text in enumerate(fields):
        if not text:
            continue
        match = fuzzy_match(text, query)
        if match is None:
            continue
        # Matches further into the text are worth less
        score = float(match.score - match.start)
        if score <= 0:
            continue
        if score > highest:
            highest = score
            best_index = index

    if highest == 0:
        return 0.0
    return highest * field_factor(best_index)
