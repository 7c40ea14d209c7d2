from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from wordscend.core.attempt import AttemptState, PuzzleAttempt, SubmitResult
from wordscend.core.evaluator import Mark
from wordscend.core.ledger import Ledger, LevelOutcome, OutcomeKind, RunSummary
from wordscend.core.levels import LevelRepository
from wordscend.core.oracle import MembershipOracle
from wordscend.core.picker import pick_today
from wordscend.core.progress import LedgerStore
from wordscend.core.snapshot import restore_snapshot, take_snapshot
from wordscend.core.streak import StreakUpdate, today_key

logger = logging.getLogger(__name__)


@dataclass
class TurnOutcome:
    """A submit result plus whatever it triggered in the ledger."""

    result: SubmitResult
    streak: Optional[StreakUpdate] = None
    level: Optional[LevelOutcome] = None


@dataclass
class HintResult:
    ok: bool
    position: Optional[int] = None
    letter: Optional[str] = None
    penalty: int = 0


class PendingAdvance:
    """The start of the next attempt, scheduled for ``due_at`` after a puzzle resolves.

    Settles exactly once, either by being claimed or cancelled.
    """

    def __init__(self, outcome: LevelOutcome, due_at: float) -> None:
        self.outcome = outcome
        self.due_at = due_at
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def is_due(self, now: float) -> bool:
        return not self._settled and now >= self.due_at

    def claim(self) -> bool:
        if self._settled:
            return False
        self._settled = True
        return True

    def cancel(self) -> bool:
        return self.claim()


class DailyGame:
    """Plays today's levels against the ledger, persisting after every accepted move."""

    def __init__(
        self,
        levels: LevelRepository,
        oracle: MembershipOracle,
        store: LedgerStore,
        picker: Callable[[Sequence[str], str], str] = pick_today,
        clock: Callable[[], str] = today_key,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._levels = levels
        self._config = levels.config
        self._oracle = oracle
        self._store = store
        self._picker = picker
        self._clock = clock
        self._timer = timer
        self._ledger: Optional[Ledger] = None
        self._attempt: Optional[PuzzleAttempt] = None
        self._pending: Optional[PendingAdvance] = None
        self._summary: Optional[RunSummary] = None

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            raise RuntimeError("DailyGame.start() has not been called")
        return self._ledger

    @property
    def attempt(self) -> PuzzleAttempt:
        if self._attempt is None:
            raise RuntimeError("DailyGame.start() has not been called")
        return self._attempt

    @property
    def state(self) -> AttemptState:
        return self.attempt.state

    @property
    def pending(self) -> Optional[PendingAdvance]:
        if self._pending is not None and self._pending.settled:
            return None
        return self._pending

    @property
    def summary(self) -> Optional[RunSummary]:
        """Set once the last level of the day has been solved and advanced past."""
        return self._summary

    @property
    def level_length(self) -> int:
        return self.state.cols

    def start(self) -> PuzzleAttempt:
        """Load (or roll over) the ledger and open the current level."""
        today = self._clock()
        if self._ledger is None:
            self._ledger = self._store.load(today)
        elif self._ledger.roll_over(today):
            self._store.save(self._ledger)
        self.cancel_pending()
        self._summary = None
        return self._start_level(self._ledger.level_index)

    def reset(self) -> PuzzleAttempt:
        """Wipe the stored ledger and start over from the first level."""
        self.cancel_pending()
        self._ledger = self._store.reset(self._clock())
        logger.info("Ledger reset")
        return self.start()

    def _start_level(self, level_index: int) -> PuzzleAttempt:
        ledger = self.ledger
        length = self._levels.length_for(level_index)
        answer = self._picker(self._levels.candidates(length), ledger.day).upper()

        stored = ledger.progress_by_length.get(length)
        state = restore_snapshot(stored, answer, length, ledger.day)
        if state is not None and (state.done or state.rows != self._config.rows):
            state = None
        if state is None:
            if stored is not None:
                logger.warning("Discarding saved progress for %d-letter puzzle", length)
                ledger.clear_progress(length)
                self._store.save(ledger)
            state = AttemptState.fresh(self._config.rows, length, answer)
        else:
            logger.info("Resumed %d-letter puzzle at attempt %d", length, state.cursor.row + 1)

        self._attempt = PuzzleAttempt(state, self._oracle)
        return self._attempt

    def _persist_attempt(self) -> None:
        self.ledger.save_progress(take_snapshot(self.state, self.ledger.day))
        self._store.save(self.ledger)

    def add_letter(self, ch: str) -> bool:
        if not self.attempt.add_letter(ch):
            return False
        self._persist_attempt()
        return True

    def backspace(self) -> bool:
        if not self.attempt.backspace():
            return False
        self._persist_attempt()
        return True

    def submit(self) -> TurnOutcome:
        result = self.attempt.submit_row()
        if not result.ok:
            return TurnOutcome(result=result)

        ledger = self.ledger
        streak = ledger.mark_played_today(ledger.day, self._config.freeze_threshold, self._config.hint_interval)
        if streak.changed:
            logger.info("Streak now %d (best %d)", ledger.streak.current, ledger.streak.best)

        if not result.done:
            self._persist_attempt()
            return TurnOutcome(result=result, streak=streak)

        length = self.state.cols
        if result.win:
            outcome = ledger.record_win(result.attempt, length, self._config.score_table, self._config.level_count)
        else:
            outcome = ledger.record_loss(length)
        self._store.save(ledger)
        self._pending = PendingAdvance(outcome, self._timer() + self._config.advance_delay)
        return TurnOutcome(result=result, streak=streak, level=outcome)

    def advance(self, force: bool = False) -> bool:
        """Run the pending transition if it is due. Safe to call repeatedly."""
        pending = self._pending
        if pending is None or pending.settled:
            return False
        if not force and not pending.is_due(self._timer()):
            return False
        pending.claim()
        outcome = pending.outcome
        if outcome.kind is OutcomeKind.RUN_COMPLETE:
            self._summary = outcome.summary
            return True
        self._start_level(outcome.level_index)
        return True

    def cancel_pending(self) -> bool:
        if self._pending is None:
            return False
        cancelled = self._pending.cancel()
        self._pending = None
        return cancelled

    def use_hint(self) -> HintResult:
        """Reveal one unsolved letter of the current answer at a score penalty."""
        state = self.state
        if state.done:
            return HintResult(ok=False)
        position = self._first_unrevealed(state)
        if position is None:
            return HintResult(ok=False)
        if not self.ledger.use_hint(state.cols, self._config.hint_penalty):
            return HintResult(ok=False)
        self._store.save(self.ledger)
        logger.info("Hint used on %d-letter puzzle (-%d)", state.cols, self._config.hint_penalty)
        return HintResult(ok=True, position=position, letter=state.answer[position], penalty=self._config.hint_penalty)

    @staticmethod
    def _first_unrevealed(state: AttemptState) -> Optional[int]:
        solved: List[bool] = [False] * state.cols
        for row in state.row_marks:
            for i, mark in enumerate(row):
                if mark is Mark.CORRECT:
                    solved[i] = True
        for i, done in enumerate(solved):
            if not done:
                return i
        return None

    def close(self) -> None:
        """Final write on teardown."""
        if self._ledger is None:
            return
        if self._attempt is not None and not self._attempt.done:
            self._persist_attempt()
        else:
            self._store.save(self._ledger)

