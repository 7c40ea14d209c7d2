from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_MILESTONES = (3, 7, 14, 30, 50, 100)
FREEZE_THRESHOLD = 7
HINT_INTERVAL = 5


def today_key(today: Optional[date] = None) -> str:
    """Local calendar date as ``YYYY-MM-DD``."""
    return (today or date.today()).isoformat()


def shift_day(day: str, days: int) -> str:
    return (date.fromisoformat(day) + timedelta(days=days)).isoformat()


def days_between(earlier: str, later: str) -> int:
    return (date.fromisoformat(later) - date.fromisoformat(earlier)).days


def month_key(day: str) -> str:
    return day[:7]


def is_day_key(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


@dataclass
class Streak:
    current: int = 0
    best: int = 0
    last_play_day: Optional[str] = None
    marked_today: bool = False
    available_freezes: int = 0
    earned_months: Set[str] = field(default_factory=set)
    used_freeze_days: Set[str] = field(default_factory=set)
    milestones: List[int] = field(default_factory=lambda: list(DEFAULT_MILESTONES))
    last_milestone_shown: int = 0
    hints_available: int = 0
    hint_earned_days: Set[str] = field(default_factory=set)
    toast_shown_day: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "best": self.best,
            "lastPlayDay": self.last_play_day,
            "markedToday": self.marked_today,
            "availableFreezes": self.available_freezes,
            "earnedMonths": sorted(self.earned_months),
            "usedFreezeDays": sorted(self.used_freeze_days),
            "milestones": list(self.milestones),
            "lastMilestoneShown": self.last_milestone_shown,
            "hintsAvailable": self.hints_available,
            "hintEarnedDays": sorted(self.hint_earned_days),
            "toastShownDay": self.toast_shown_day,
        }


@dataclass
class StreakUpdate:
    """What :func:`mark_played_today` changed, for the caller to celebrate."""

    changed: bool
    used_freeze: bool = False
    earned_freeze: bool = False
    new_best: bool = False
    milestone: Optional[int] = None
    earned_hint: bool = False
    show_toast: bool = False


def mark_played_today(
    streak: Streak,
    today: str,
    freeze_threshold: int = FREEZE_THRESHOLD,
    hint_interval: int = HINT_INTERVAL,
) -> StreakUpdate:
    """Count ``today`` as played, at most once per day.

    A single missed day is bridged by spending a banked freeze. Reaching
    ``freeze_threshold`` banks one freeze per calendar month, and every
    multiple of ``hint_interval`` banks one hint per day.
    """
    if streak.marked_today and streak.last_play_day == today:
        return StreakUpdate(changed=False)

    if streak.last_play_day == today:
        streak.marked_today = True
        return StreakUpdate(changed=True)

    update = StreakUpdate(changed=True)
    gap = days_between(streak.last_play_day, today) if streak.last_play_day else None
    if gap == 1:
        streak.current += 1
    elif gap == 2 and streak.available_freezes > 0:
        streak.available_freezes -= 1
        streak.used_freeze_days.add(today)
        streak.current += 1
        update.used_freeze = True
        logger.info("Spent a streak freeze to cover %s", shift_day(today, -1))
    else:
        streak.current = 1

    if streak.current > streak.best:
        streak.best = streak.current
        update.new_best = True

    month = month_key(today)
    if streak.current >= freeze_threshold and month not in streak.earned_months:
        streak.earned_months.add(month)
        streak.available_freezes += 1
        update.earned_freeze = True

    if streak.current > 0 and streak.current % hint_interval == 0 and today not in streak.hint_earned_days:
        streak.hint_earned_days.add(today)
        streak.hints_available += 1
        update.earned_hint = True

    reached = [m for m in sorted(streak.milestones) if streak.current >= m > streak.last_milestone_shown]
    if reached:
        update.milestone = reached[-1]
        streak.last_milestone_shown = reached[-1]

    streak.last_play_day = today
    streak.marked_today = True

    if streak.toast_shown_day != today:
        streak.toast_shown_day = today
        update.show_toast = True

    return update


def _non_negative_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _day_set(value: Any, check=is_day_key) -> Set[str]:
    if not isinstance(value, list):
        return set()
    return {item for item in value if check(item)}


def _is_month_key(value: Any) -> bool:
    return isinstance(value, str) and is_day_key(value + "-01")


def streak_from_dict(payload: Any, milestones: Optional[List[int]] = None) -> Streak:
    """Decode a persisted streak block, repairing anything out of range."""
    streak = Streak()
    if milestones is not None:
        streak.milestones = sorted(milestones)
    if not isinstance(payload, dict):
        return streak

    streak.current = _non_negative_int(payload.get("current"))
    streak.best = max(streak.current, _non_negative_int(payload.get("best")))
    last = payload.get("lastPlayDay")
    streak.last_play_day = last if is_day_key(last) else None
    streak.marked_today = payload.get("markedToday") is True
    streak.available_freezes = _non_negative_int(payload.get("availableFreezes"))
    streak.earned_months = _day_set(payload.get("earnedMonths"), _is_month_key)
    streak.used_freeze_days = _day_set(payload.get("usedFreezeDays"))
    if milestones is None and isinstance(payload.get("milestones"), list):
        streak.milestones = sorted(
            {m for m in payload["milestones"] if isinstance(m, int) and not isinstance(m, bool) and m > 0}
        )
    streak.last_milestone_shown = _non_negative_int(payload.get("lastMilestoneShown"))
    streak.hints_available = _non_negative_int(payload.get("hintsAvailable"))
    streak.hint_earned_days = _day_set(payload.get("hintEarnedDays"))
    toast = payload.get("toastShownDay")
    streak.toast_shown_day = toast if is_day_key(toast) else None
    return streak
