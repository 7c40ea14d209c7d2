from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from wordscend.core.evaluator import Mark, evaluate, update_key_status
from wordscend.core.oracle import MembershipOracle

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    """Why an attempt operation was refused. State is never changed on rejection."""

    INCOMPLETE = "incomplete"
    NOT_ALLOWED = "not_allowed"
    ALREADY_DONE = "already_done"


@dataclass
class Cursor:
    row: int = 0
    col: int = 0


@dataclass
class AttemptState:
    """One puzzle: a rows x cols board played against a fixed answer."""

    rows: int
    cols: int
    answer: str
    board: List[List[str]]
    row_marks: List[List[Mark]]
    cursor: Cursor = field(default_factory=Cursor)
    done: bool = False
    win: bool = False
    key_status: Dict[str, Mark] = field(default_factory=dict)

    @classmethod
    def fresh(cls, rows: int, cols: int, answer: str) -> "AttemptState":
        if rows <= 0 or cols <= 0:
            raise ValueError(f"rows and cols must be positive, got {rows}x{cols}")
        answer = answer.upper()
        if len(answer) != cols:
            raise ValueError(f"Answer {answer!r} does not have {cols} letters")
        return cls(
            rows=rows,
            cols=cols,
            answer=answer,
            board=[[""] * cols for _ in range(rows)],
            row_marks=[[Mark.UNSET] * cols for _ in range(rows)],
        )

    def current_guess(self) -> str:
        return "".join(self.board[self.cursor.row])


@dataclass
class SubmitResult:
    """Outcome of a submit, consumed by rendering and by the ledger."""

    ok: bool
    attempt: int
    done: bool
    win: bool
    reason: Optional[Rejection] = None
    marks: Optional[List[Mark]] = None


class PuzzleAttempt:
    """Drives a single :class:`AttemptState` from entry to a win or a loss.

    The machine has three states: entering (``done`` is false), won and
    lost. Every operation on a finished attempt is refused.
    """

    def __init__(self, state: AttemptState, oracle: MembershipOracle) -> None:
        self._state = state
        self._oracle = oracle

    @property
    def state(self) -> AttemptState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state.done

    def add_letter(self, ch: str) -> bool:
        """Write ``ch`` at the cursor. Returns False if nothing was written."""
        s = self._state
        if s.done:
            return False
        ch = (ch or "").upper()
        if len(ch) != 1 or not ("A" <= ch <= "Z"):
            return False
        if s.cursor.col >= s.cols:
            return False
        s.board[s.cursor.row][s.cursor.col] = ch
        s.cursor.col += 1
        return True

    def backspace(self) -> bool:
        """Clear the cell before the cursor. Returns False at column 0."""
        s = self._state
        if s.done or s.cursor.col == 0:
            return False
        s.cursor.col -= 1
        s.board[s.cursor.row][s.cursor.col] = ""
        return True

    def submit_row(self) -> SubmitResult:
        s = self._state
        row = s.cursor.row
        if s.done:
            return SubmitResult(ok=False, reason=Rejection.ALREADY_DONE, attempt=row + 1, done=True, win=s.win)
        if s.cursor.col < s.cols:
            return SubmitResult(ok=False, reason=Rejection.INCOMPLETE, attempt=row + 1, done=False, win=False)

        guess = s.current_guess()
        if not self._oracle.has(guess):
            logger.debug("Rejected guess %s: not in dictionary", guess)
            return SubmitResult(ok=False, reason=Rejection.NOT_ALLOWED, attempt=row + 1, done=False, win=False)

        marks = evaluate(guess, s.answer)
        s.row_marks[row] = list(marks)
        update_key_status(s.key_status, guess, marks)

        win = all(m is Mark.CORRECT for m in marks)
        if win:
            s.done = True
            s.win = True
        elif row == s.rows - 1:
            s.done = True
            s.win = False
        else:
            s.cursor = Cursor(row=row + 1, col=0)

        return SubmitResult(ok=True, attempt=row + 1, done=s.done, win=win, marks=list(marks))
