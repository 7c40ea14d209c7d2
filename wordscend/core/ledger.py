from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set

from wordscend.core.snapshot import CorruptPersistedError, Snapshot, snapshot_from_dict
from wordscend.core.streak import (
    FREEZE_THRESHOLD,
    HINT_INTERVAL,
    Streak,
    StreakUpdate,
    is_day_key,
    mark_played_today,
    streak_from_dict,
)

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    NEXT_LEVEL = "next_level"
    RUN_COMPLETE = "run_complete"
    RETRY = "retry"


@dataclass(frozen=True)
class RunSummary:
    """End-of-run card contents, captured before the ledger resets."""

    day: str
    score: int
    streak_current: int
    streak_best: int


@dataclass(frozen=True)
class LevelOutcome:
    kind: OutcomeKind
    level_index: int
    bonus: int = 0
    summary: Optional[RunSummary] = None


def score_for_attempt(score_table: Sequence[int], attempt: int) -> int:
    """Win bonus for solving on ``attempt`` (1-based). Late attempts get the last entry."""
    if not score_table:
        return 0
    index = min(max(attempt, 1), len(score_table)) - 1
    return int(score_table[index])


@dataclass
class Ledger:
    """Durable player record: today's run plus the cross-day streak economy."""

    day: str
    score: int = 0
    level_index: int = 0
    streak: Streak = field(default_factory=Streak)
    progress_by_length: Dict[int, Snapshot] = field(default_factory=dict)
    hint_used_lengths: Set[int] = field(default_factory=set)

    @classmethod
    def default(cls, today: str, milestones: Optional[Sequence[int]] = None) -> "Ledger":
        ledger = cls(day=today)
        if milestones is not None:
            ledger.streak.milestones = sorted(milestones)
        return ledger

    def roll_over(self, today: str) -> bool:
        """Start a new day's run if ``today`` differs from the stored day.

        The streak block is kept; only today's run state is cleared.
        """
        if self.day == today:
            return False
        logger.info("New day %s (was %s): resetting today's run", today, self.day)
        self.day = today
        self._reset_run()
        self.hint_used_lengths = set()
        self.streak.marked_today = False
        return True

    def _reset_run(self) -> None:
        self.score = 0
        self.level_index = 0
        self.progress_by_length = {}

    def mark_played_today(
        self,
        today: str,
        freeze_threshold: int = FREEZE_THRESHOLD,
        hint_interval: int = HINT_INTERVAL,
    ) -> StreakUpdate:
        return mark_played_today(self.streak, today, freeze_threshold, hint_interval)

    def save_progress(self, snapshot: Snapshot) -> None:
        self.progress_by_length[snapshot.cols] = snapshot

    def clear_progress(self, length: int) -> None:
        self.progress_by_length.pop(length, None)

    def record_win(self, attempt: int, length: int, score_table: Sequence[int], level_count: int) -> LevelOutcome:
        """Apply a solved puzzle: award the bonus and move to the next level or finish the run."""
        bonus = score_for_attempt(score_table, attempt)
        self.score += bonus
        self.clear_progress(length)

        if self.level_index < level_count - 1:
            self.level_index += 1
            logger.info("Level solved on attempt %d (+%d), advancing to level %d", attempt, bonus, self.level_index + 1)
            return LevelOutcome(kind=OutcomeKind.NEXT_LEVEL, level_index=self.level_index, bonus=bonus)

        summary = RunSummary(
            day=self.day,
            score=self.score,
            streak_current=self.streak.current,
            streak_best=self.streak.best,
        )
        logger.info("Daily run complete with %d points", self.score)
        self._reset_run()
        return LevelOutcome(kind=OutcomeKind.RUN_COMPLETE, level_index=0, bonus=bonus, summary=summary)

    def record_loss(self, length: int) -> LevelOutcome:
        """Out of attempts: drop the snapshot and replay the same level."""
        self.clear_progress(length)
        logger.info("Level %d lost, restarting it", self.level_index + 1)
        return LevelOutcome(kind=OutcomeKind.RETRY, level_index=self.level_index)

    def can_use_hint(self, length: int) -> bool:
        return self.streak.hints_available > 0 and length not in self.hint_used_lengths

    def use_hint(self, length: int, penalty: int) -> bool:
        """Spend one banked hint on the puzzle of ``length``. Score may go negative."""
        if not self.can_use_hint(length):
            return False
        self.streak.hints_available -= 1
        self.score -= penalty
        self.hint_used_lengths.add(length)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "score": self.score,
            "levelIndex": self.level_index,
            "streak": self.streak.to_dict(),
            "progressByLength": {str(length): snap.to_dict() for length, snap in self.progress_by_length.items()},
            "hintUsedLengths": sorted(self.hint_used_lengths),
        }


def _progress_from_dict(raw: Any) -> Dict[int, Snapshot]:
    progress: Dict[int, Snapshot] = {}
    if not isinstance(raw, dict):
        return progress
    for key, value in raw.items():
        try:
            length = int(key)
            snap = snapshot_from_dict(value)
        except (ValueError, TypeError) as e:
            logger.warning("Dropping stored progress for length %r: %s", key, e)
            continue
        if snap.cols != length:
            logger.warning("Dropping stored progress for length %r: snapshot has %d columns", key, snap.cols)
            continue
        progress[length] = snap
    return progress


def ledger_from_dict(
    payload: Any,
    today: str,
    level_lengths: Sequence[int],
    milestones: Optional[Sequence[int]] = None,
) -> Ledger:
    """Decode a persisted ledger, falling back to defaults field by field.

    The result has already been rolled over to ``today``.
    """
    if not isinstance(payload, dict):
        raise CorruptPersistedError("ledger document is not an object")

    ledger = Ledger(day=today)
    ledger.streak = streak_from_dict(payload.get("streak"), list(milestones) if milestones is not None else None)

    day = payload.get("day")
    if not is_day_key(day):
        logger.warning("Stored ledger has no valid day (%r); keeping only the streak", day)
        ledger.streak.marked_today = False
        return ledger
    ledger.day = day

    score = payload.get("score")
    ledger.score = score if isinstance(score, int) and not isinstance(score, bool) else 0

    level_index = payload.get("levelIndex")
    if level_index is None and payload.get("levelLen") in level_lengths:
        level_index = list(level_lengths).index(payload["levelLen"])
    if isinstance(level_index, int) and not isinstance(level_index, bool) and 0 <= level_index < len(level_lengths):
        ledger.level_index = level_index

    ledger.progress_by_length = _progress_from_dict(payload.get("progressByLength"))
    used: List[Any] = payload.get("hintUsedLengths") if isinstance(payload.get("hintUsedLengths"), list) else []
    ledger.hint_used_lengths = {n for n in used if isinstance(n, int) and n in level_lengths}

    ledger.roll_over(today)
    return ledger
