"""Recompute a HabitProgress snapshot from the raw activity log."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from habit_models import DailyActivity, Habit, HabitProgress, aligned_now


def _completed_days(activities: Sequence[DailyActivity]) -> List[date]:
    return sorted({a.day for a in activities if a.completed})


def _longest_run(days: List[date]) -> int:
    longest = run = 0
    prev: Optional[date] = None
    for d in days:
        run = run + 1 if prev is not None and d - prev == timedelta(days=1) else 1
        longest = max(longest, run)
        prev = d
    return longest


def _current_run(days: List[date], today: date) -> int:
    """Consecutive completed days ending today, or yesterday if today is still open."""
    done = set(days)
    cursor = today if today in done else today - timedelta(days=1)
    run = 0
    while cursor in done:
        run += 1
        cursor -= timedelta(days=1)
    return run


def compute_progress(
    habit: Habit,
    activities: Sequence[DailyActivity],
    as_of: Optional[datetime] = None,
) -> HabitProgress:
    """Derive totals, streaks and completion rate (unclamped) for one habit."""
    own = [a for a in activities if a.habit_id == habit.id]
    days = _completed_days(own)
    today = aligned_now(habit.created_at, as_of).date()

    total_reps = sum(a.rep_count for a in own)
    rate = total_reps / habit.goal_reps * 100 if habit.goal_reps > 0 else 0.0
    rep_days = [a.day for a in own if a.rep_count > 0]

    current = _current_run(days, today)
    return HabitProgress(
        habit_id=habit.id,
        total_reps=total_reps,
        current_streak=current,
        longest_streak=max(current, _longest_run(days)),
        completion_rate=rate,
        last_rep_date=max(rep_days) if rep_days else None,
    )
