"""
Portfolio roll-up analytics across a user's habits.

Habit strength blends consistency (completion rate) and momentum
(current streak, capped at 30 days) 70/30; the myelin score is the mean
strength. Weekly trends bucket activity records by Sunday-start week.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Sequence

import pandas as pd

from constants import STREAK_NORM
from habit_models import DailyActivity, Habit, HabitProgress, activities_for
from prediction_engine import clamp

TREND_WEEKS = 8


@dataclass
class EnhancedAnalytics:
    average_completion_rate: float = 0.0
    longest_streak: int = 0
    myelin_score: float = 0.0
    habit_strengths: Dict[str, float] = field(default_factory=dict)
    strength_scores: Dict[str, float] = field(default_factory=dict)
    weekly_trends: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _strength(progress: HabitProgress) -> float:
    consistency = (progress.completion_rate or 0) / 100
    streak_factor = min((progress.current_streak or 0) / STREAK_NORM, 1)
    return (consistency * 0.7 + streak_factor * 0.3) * 100


def week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def weekly_trends(activities: Sequence[DailyActivity], weeks: int = TREND_WEEKS) -> List[Dict[str, Any]]:
    if not activities:
        return []
    df = pd.DataFrame(
        {
            "week": [week_start(a.day) for a in activities],
            "completed": [bool(a.completed) for a in activities],
        }
    )
    grouped = df.groupby("week")["completed"].agg(["sum", "count"]).sort_index().tail(weeks)

    trends = []
    for wk, row in grouped.iterrows():
        total = int(row["count"])
        rate = int(row["sum"]) / total * 100 if total else 0.0
        trends.append({
            "week": f"{wk:%b} {wk.day}",
            "week_start": wk.isoformat(),
            "completion_rate": clamp(rate, 0, 100),
            "habit_count": total,
        })
    return trends


def calculate_enhanced_analytics(
    habits: Sequence[Habit],
    progress_map: Dict[str, HabitProgress],
    activities: Sequence[DailyActivity],
) -> EnhancedAnalytics:
    if not progress_map:
        return EnhancedAnalytics(weekly_trends=weekly_trends(activities))

    strengths = {habit_id: _strength(p) for habit_id, p in progress_map.items()}
    rates = [p.completion_rate or 0 for p in progress_map.values()]
    scores = {
        h.id: calculate_habit_strength(h, progress_map[h.id], activities_for(h.id, activities))
        for h in habits
        if h.id in progress_map
    }

    return EnhancedAnalytics(
        average_completion_rate=clamp(sum(rates) / len(rates), 0, 100),
        longest_streak=max(0, max(p.current_streak or 0 for p in progress_map.values())),
        myelin_score=clamp(sum(strengths.values()) / len(strengths), 0, 100),
        habit_strengths=strengths,
        strength_scores=scores,
        weekly_trends=weekly_trends(activities),
    )


def calculate_habit_strength(
    habit: Habit,
    progress: HabitProgress,
    activities: Sequence[DailyActivity],
) -> float:
    """0-100 strength with penalties for very large goals / wrap sizes."""
    if progress is None:
        return 0.0
    consistency = (progress.completion_rate or 0) / 100
    streak_factor = min((progress.current_streak or 0) / STREAK_NORM, 1)
    frequency_factor = min(len(activities) / 30, 1)

    goal_penalty = clamp((habit.goal_reps - 21) / 200, 0, 0.15)
    wrap_penalty = clamp((habit.wrap_size - 7) / 100, 0, 0.1)

    raw = consistency * 0.5 + streak_factor * 0.3 + frequency_factor * 0.2 - goal_penalty - wrap_penalty
    return clamp(raw, 0, 1) * 100
