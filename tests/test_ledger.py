"""Tests for wordscend.core.ledger – score, levels, hints and day rollover."""

from __future__ import annotations

import pytest

from wordscend.core.attempt import AttemptState
from wordscend.core.ledger import (
    Ledger,
    LevelOutcome,
    OutcomeKind,
    RunSummary,
    ledger_from_dict,
    score_for_attempt,
)
from wordscend.core.snapshot import CorruptPersistedError, take_snapshot
from wordscend.core.streak import Streak

TODAY = "2026-05-02"
YESTERDAY = "2026-05-01"
LENGTHS = (4, 5, 6, 7)
TABLE = (100, 70, 50, 35, 25, 18)


def _snap(answer: str, day: str = TODAY):
    return take_snapshot(AttemptState.fresh(6, len(answer), answer), day)


# ---------------------------------------------------------------------------
# score_for_attempt
# ---------------------------------------------------------------------------

class TestScoreForAttempt:
    @pytest.mark.parametrize("attempt,expected", [(1, 100), (2, 70), (6, 18), (9, 18), (0, 100)])
    def test_table_lookup(self, attempt, expected):
        assert score_for_attempt(TABLE, attempt) == expected

    def test_empty_table(self):
        assert score_for_attempt((), 1) == 0


# ---------------------------------------------------------------------------
# Ledger – rollover
# ---------------------------------------------------------------------------

class TestRollOver:
    def test_same_day_is_noop(self):
        ledger = Ledger(day=TODAY, score=50, level_index=2)
        assert not ledger.roll_over(TODAY)
        assert ledger.score == 50 and ledger.level_index == 2

    def test_new_day_resets_run_keeps_streak(self):
        streak = Streak(current=4, best=6, marked_today=True, available_freezes=1, hints_available=2,
                        earned_months={"2026-04"}, hint_earned_days={"2026-04-30"})
        ledger = Ledger(day=YESTERDAY, score=210, level_index=3, streak=streak,
                        progress_by_length={5: _snap("CRANE", YESTERDAY)}, hint_used_lengths={5})
        assert ledger.roll_over(TODAY)
        assert ledger.day == TODAY
        assert ledger.score == 0 and ledger.level_index == 0
        assert ledger.progress_by_length == {}
        assert ledger.hint_used_lengths == set()
        assert not ledger.streak.marked_today
        assert (ledger.streak.current, ledger.streak.best) == (4, 6)
        assert ledger.streak.available_freezes == 1 and ledger.streak.hints_available == 2
        assert ledger.streak.earned_months == {"2026-04"}
        assert ledger.streak.hint_earned_days == {"2026-04-30"}

    def test_default_milestones(self):
        assert Ledger.default(TODAY, [30, 3]).streak.milestones == [3, 30]


# ---------------------------------------------------------------------------
# Ledger – wins and losses
# ---------------------------------------------------------------------------

class TestRecordResults:
    def test_win_advances_level(self):
        ledger = Ledger(day=TODAY, progress_by_length={4: _snap("BOOK")})
        outcome = ledger.record_win(attempt=2, length=4, score_table=TABLE, level_count=4)
        assert outcome == LevelOutcome(kind=OutcomeKind.NEXT_LEVEL, level_index=1, bonus=70)
        assert ledger.score == 70
        assert ledger.level_index == 1
        assert 4 not in ledger.progress_by_length

    def test_win_on_last_level_completes_run(self):
        ledger = Ledger(day=TODAY, score=200, level_index=3, streak=Streak(current=2, best=5),
                        progress_by_length={7: _snap("CAPTAIN")}, hint_used_lengths={6})
        outcome = ledger.record_win(attempt=1, length=7, score_table=TABLE, level_count=4)
        assert outcome.kind is OutcomeKind.RUN_COMPLETE
        assert outcome.bonus == 100
        assert outcome.summary == RunSummary(day=TODAY, score=300, streak_current=2, streak_best=5)
        assert ledger.score == 0 and ledger.level_index == 0
        assert ledger.progress_by_length == {}
        assert ledger.streak.current == 2
        assert ledger.hint_used_lengths == {6}

    def test_loss_restarts_level(self):
        ledger = Ledger(day=TODAY, score=30, level_index=1, progress_by_length={5: _snap("CRANE")})
        outcome = ledger.record_loss(length=5)
        assert outcome == LevelOutcome(kind=OutcomeKind.RETRY, level_index=1)
        assert ledger.level_index == 1 and ledger.score == 30
        assert ledger.progress_by_length == {}


# ---------------------------------------------------------------------------
# Ledger – hints
# ---------------------------------------------------------------------------

class TestHints:
    def test_use_hint(self):
        ledger = Ledger(day=TODAY, score=10, streak=Streak(hints_available=2))
        assert ledger.use_hint(5, penalty=20)
        assert ledger.streak.hints_available == 1
        assert ledger.score == -10
        assert ledger.hint_used_lengths == {5}

    def test_once_per_length(self):
        ledger = Ledger(day=TODAY, streak=Streak(hints_available=2))
        assert ledger.use_hint(5, penalty=20)
        assert not ledger.use_hint(5, penalty=20)
        assert ledger.streak.hints_available == 1
        assert ledger.use_hint(6, penalty=20)

    def test_not_again_after_same_day_run_completes(self):
        ledger = Ledger(day=TODAY, level_index=3, streak=Streak(hints_available=2))
        assert ledger.use_hint(7, penalty=20)
        ledger.record_win(attempt=2, length=7, score_table=TABLE, level_count=4)
        assert ledger.day == TODAY
        assert not ledger.use_hint(7, penalty=20)
        assert ledger.streak.hints_available == 1
        assert ledger.score == 0

    def test_available_again_next_day(self):
        ledger = Ledger(day=YESTERDAY, streak=Streak(hints_available=2), hint_used_lengths={7})
        ledger.roll_over(TODAY)
        assert ledger.hint_used_lengths == set()
        assert ledger.use_hint(7, penalty=20)

    def test_none_available(self):
        ledger = Ledger(day=TODAY, score=10)
        assert not ledger.can_use_hint(5)
        assert not ledger.use_hint(5, penalty=20)
        assert ledger.score == 10


# ---------------------------------------------------------------------------
# ledger_from_dict
# ---------------------------------------------------------------------------

class TestLedgerDecode:
    def test_round_trip_same_day(self):
        ledger = Ledger(day=TODAY, score=-15, level_index=2, streak=Streak(current=1, best=1, last_play_day=TODAY),
                        progress_by_length={6: _snap("PLANET")}, hint_used_lengths={6})
        assert ledger_from_dict(ledger.to_dict(), TODAY, LENGTHS) == ledger

    def test_rolls_over_stale_day(self):
        ledger = Ledger(day=YESTERDAY, score=80, level_index=2, progress_by_length={6: _snap("PLANET", YESTERDAY)})
        decoded = ledger_from_dict(ledger.to_dict(), TODAY, LENGTHS)
        assert decoded.day == TODAY
        assert decoded.score == 0 and decoded.level_index == 0
        assert decoded.progress_by_length == {}

    def test_bad_snapshot_dropped_rest_kept(self):
        data = Ledger(day=TODAY, score=70, level_index=1, progress_by_length={4: _snap("BOOK")}).to_dict()
        data["progressByLength"]["5"] = {"day": TODAY, "answer": "CRANE", "rows": "six"}
        data["progressByLength"]["6"] = _snap("CRANE").to_dict()
        decoded = ledger_from_dict(data, TODAY, LENGTHS)
        assert set(decoded.progress_by_length) == {4}
        assert decoded.score == 70 and decoded.level_index == 1

    def test_out_of_range_level_index(self):
        decoded = ledger_from_dict({"day": TODAY, "levelIndex": 9}, TODAY, LENGTHS)
        assert decoded.level_index == 0

    def test_legacy_level_len(self):
        decoded = ledger_from_dict({"day": TODAY, "levelLen": 6}, TODAY, LENGTHS)
        assert decoded.level_index == 2

    def test_score_type_checked(self):
        assert ledger_from_dict({"day": TODAY, "score": "lots"}, TODAY, LENGTHS).score == 0

    def test_invalid_day_keeps_only_streak(self):
        data = {"day": "someday", "score": 90, "streak": {"current": 3, "best": 4}}
        decoded = ledger_from_dict(data, TODAY, LENGTHS)
        assert decoded.day == TODAY
        assert decoded.score == 0
        assert decoded.streak.current == 3

    def test_not_a_dict(self):
        with pytest.raises(CorruptPersistedError):
            ledger_from_dict([], TODAY, LENGTHS)
