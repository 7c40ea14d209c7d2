from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Dict, List, Sequence


class Mark(str, Enum):
    """Per-cell evaluation result."""

    CORRECT = "correct"
    PRESENT = "present"
    ABSENT = "absent"
    UNSET = "unset"


_RANK = {Mark.UNSET: 0, Mark.ABSENT: 1, Mark.PRESENT: 2, Mark.CORRECT: 3}


def rank(mark: Mark) -> int:
    return _RANK[mark]


def evaluate(guess: Sequence[str], answer: Sequence[str]) -> List[Mark]:
    """Mark each letter of ``guess`` against ``answer``.

    Exact matches are claimed first so that a repeated letter never earns
    more ``correct`` + ``present`` marks than it occurs in the answer.
    """
    guess = [ch.upper() for ch in guess]
    answer = [ch.upper() for ch in answer]
    if len(guess) != len(answer):
        raise ValueError(f"Guess length {len(guess)} does not match answer length {len(answer)}")

    remaining = Counter(answer)
    marks = [Mark.ABSENT] * len(answer)

    for i, (g, a) in enumerate(zip(guess, answer)):
        if g == a:
            marks[i] = Mark.CORRECT
            remaining[g] -= 1

    for i, g in enumerate(guess):
        if marks[i] is Mark.CORRECT:
            continue
        if remaining[g] > 0:
            marks[i] = Mark.PRESENT
            remaining[g] -= 1

    return marks


def update_key_status(
    key_status: Dict[str, Mark],
    guess: Sequence[str],
    marks: Sequence[Mark],
) -> Dict[str, Mark]:
    """Raise each guessed letter's keyboard status to the best mark seen. Mutates and returns ``key_status``."""
    for ch, mark in zip(guess, marks):
        ch = ch.upper()
        current = key_status.get(ch)
        if current is None or rank(mark) > rank(current):
            key_status[ch] = mark
    return key_status
