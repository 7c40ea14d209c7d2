"""Mid-puzzle snapshots so an attempt in progress survives a restart.

Persisted snapshots are never trusted: decoding checks the shape, and
restoring checks that the snapshot belongs to the same day, answer and
word length before any of it is used.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from wordscend.core.attempt import AttemptState, Cursor
from wordscend.core.evaluator import Mark

logger = logging.getLogger(__name__)


class CorruptPersistedError(ValueError):
    """A stored document failed shape or identity validation."""


@dataclass
class Snapshot:
    day: str
    state: AttemptState

    @property
    def answer(self) -> str:
        return self.state.answer

    @property
    def cols(self) -> int:
        return self.state.cols

    def to_dict(self) -> Dict[str, Any]:
        s = self.state
        return {
            "day": self.day,
            "answer": s.answer,
            "rows": s.rows,
            "cols": s.cols,
            "board": [list(row) for row in s.board],
            "rowMarks": [[m.value for m in row] for row in s.row_marks],
            "cursor": {"row": s.cursor.row, "col": s.cursor.col},
            "done": s.done,
            "win": s.win,
            "keyStatus": {ch: m.value for ch, m in s.key_status.items()},
        }


def take_snapshot(state: AttemptState, day: str) -> Snapshot:
    """Deep copy of ``state`` stamped with ``day``."""
    return Snapshot(day=day, state=copy.deepcopy(state))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CorruptPersistedError(f"snapshot field {name!r} is not an integer: {value!r}")
    return value


def _as_mark(value: Any) -> Mark:
    try:
        return Mark(value)
    except ValueError:
        return Mark.UNSET


def _is_ascii_word(value: str) -> bool:
    return value.isascii() and value.isalpha()


def _as_letter(value: Any) -> str:
    if isinstance(value, str) and len(value) == 1 and _is_ascii_word(value):
        return value.upper()
    return ""


def _grid(raw: Any, rows: int, cols: int, name: str) -> List[List[Any]]:
    if not isinstance(raw, list) or len(raw) != rows:
        raise CorruptPersistedError(f"snapshot field {name!r} is not a {rows}-row grid")
    for row in raw:
        if not isinstance(row, list) or len(row) != cols:
            raise CorruptPersistedError(f"snapshot field {name!r} has a row that is not {cols} wide")
    return raw


def snapshot_from_dict(payload: Any) -> Snapshot:
    """Decode a persisted snapshot, clamping the cursor and dropping unknown marks.

    Raises :class:`CorruptPersistedError` when the shape cannot be repaired.
    """
    if not isinstance(payload, dict):
        raise CorruptPersistedError("snapshot is not an object")

    day = payload.get("day")
    answer = payload.get("answer")
    if not isinstance(day, str) or not day:
        raise CorruptPersistedError("snapshot has no day stamp")
    if not isinstance(answer, str) or not _is_ascii_word(answer):
        raise CorruptPersistedError("snapshot has no answer")

    rows = _as_int(payload.get("rows"), "rows")
    cols = _as_int(payload.get("cols"), "cols")
    if rows <= 0 or cols <= 0 or len(answer) != cols:
        raise CorruptPersistedError(f"snapshot dimensions {rows}x{cols} do not fit answer")

    board = [[_as_letter(cell) for cell in row] for row in _grid(payload.get("board"), rows, cols, "board")]
    row_marks = [[_as_mark(cell) for cell in row] for row in _grid(payload.get("rowMarks"), rows, cols, "rowMarks")]

    raw_cursor = payload.get("cursor")
    if not isinstance(raw_cursor, dict):
        raise CorruptPersistedError("snapshot cursor is not an object")
    cursor = Cursor(
        row=_clamp(_as_int(raw_cursor.get("row"), "cursor.row"), 0, rows - 1),
        col=_clamp(_as_int(raw_cursor.get("col"), "cursor.col"), 0, cols),
    )

    key_status: Dict[str, Mark] = {}
    raw_keys = payload.get("keyStatus", {})
    if isinstance(raw_keys, dict):
        for ch, value in raw_keys.items():
            letter = _as_letter(ch)
            mark = _as_mark(value)
            if letter and mark is not Mark.UNSET:
                key_status[letter] = mark

    done = payload.get("done") is True
    win = done and payload.get("win") is True

    state = AttemptState(
        rows=rows,
        cols=cols,
        answer=answer.upper(),
        board=board,
        row_marks=row_marks,
        cursor=cursor,
        done=done,
        win=win,
        key_status=key_status,
    )
    return Snapshot(day=day, state=state)


def restore_snapshot(
    stored: Any,
    expected_answer: str,
    expected_cols: int,
    expected_day: str,
) -> Optional[AttemptState]:
    """Rebuild the stored attempt if it belongs to this day, answer and length.

    ``stored`` may be a :class:`Snapshot` or its persisted dict form. Returns
    None when the snapshot is missing, corrupt or belongs to another puzzle.
    """
    if stored is None:
        return None
    try:
        snap = stored if isinstance(stored, Snapshot) else snapshot_from_dict(stored)
    except CorruptPersistedError as e:
        logger.warning("Discarding corrupt snapshot: %s", e)
        return None

    if snap.day != expected_day:
        logger.debug("Snapshot is from %s, not %s", snap.day, expected_day)
        return None
    if snap.answer != expected_answer.upper():
        logger.debug("Snapshot answer does not match today's puzzle")
        return None
    if snap.cols != expected_cols:
        logger.debug("Snapshot has %d columns, expected %d", snap.cols, expected_cols)
        return None
    return copy.deepcopy(snap.state)
