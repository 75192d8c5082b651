"""Feature and target extraction for the habit network.

Feature order (FeatureVector, 15 slots):
   0  completion rate / 100
   1  current streak / 30
   2  total reps / 100
   3  goal reps / 50
   4  wrap size / 10
   5  days since creation / 365          (days >= 1)
   6  activity records / days            (density)
   7  mean hour of records with reps / 24 (hour 12 when none)
   8  distinct activity days / days      (coverage)
   9  goal reps > 20                     (0/1)
  10  wrap size > 5                      (0/1)
  11  completed share of last-7-day records (0 when none)
  12-14 reserved, zero

Target order (TargetVector, 5 slots):
   0  completion rate / 100
   1  min(current streak + 7, 30) / 30
   2  (100 - completion rate) / 100
   3  mean hour of completed records / 24 (hour 9 when none)
   4  min(activity records / 50, 1)

Every slot of both vectors is clipped to [0, 1], so a completion rate
above 100 saturates at 1 (and its risk slot at 0).
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from constants import (
    CONFIDENCE_RECORDS_NORM,
    DAYS_NORM,
    DEFAULT_FEATURE_HOUR,
    DEFAULT_TARGET_HOUR,
    GOAL_NORM,
    HIGH_GOAL_REPS,
    HOURS_PER_DAY,
    LARGE_WRAP_SIZE,
    RECENT_WINDOW_DAYS,
    STREAK_LOOKAHEAD_DAYS,
    STREAK_NORM,
    TOTAL_REPS_NORM,
    WRAP_NORM,
)
from habit_models import (
    DailyActivity,
    FeatureVector,
    Habit,
    HabitProgress,
    TargetVector,
    aligned_now,
)


def _unit(values: Sequence[float]) -> List[float]:
    return np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0).tolist()


def _mean_hour(activities: Sequence[DailyActivity], default: int) -> float:
    hours = [a.timestamp.hour for a in activities]
    if not hours:
        return float(default)
    return float(np.mean(hours))


def _recent_completion_share(activities: Sequence[DailyActivity], as_of: Optional[datetime]) -> float:
    recent = []
    for a in activities:
        now = aligned_now(a.timestamp, as_of)
        if (now - a.timestamp).total_seconds() / 86400 <= RECENT_WINDOW_DAYS:
            recent.append(a)
    if not recent:
        return 0.0
    return sum(1 for a in recent if a.completed) / len(recent)


def feature_values(
    habit: Habit,
    progress: HabitProgress,
    activities: Sequence[DailyActivity],
    as_of: Optional[datetime] = None,
) -> List[float]:
    """The 12 derived feature values, each clipped to [0, 1], before padding."""
    days = habit.days_since_creation(as_of)
    distinct_days = len({a.day for a in activities})
    with_reps = [a for a in activities if a.rep_count > 0]

    return _unit([
        progress.completion_rate / 100,
        progress.current_streak / STREAK_NORM,
        progress.total_reps / TOTAL_REPS_NORM,
        habit.goal_reps / GOAL_NORM,
        habit.wrap_size / WRAP_NORM,
        days / DAYS_NORM,
        len(activities) / days,
        _mean_hour(with_reps, DEFAULT_FEATURE_HOUR) / HOURS_PER_DAY,
        distinct_days / days,
        1.0 if habit.goal_reps > HIGH_GOAL_REPS else 0.0,
        1.0 if habit.wrap_size > LARGE_WRAP_SIZE else 0.0,
        _recent_completion_share(activities, as_of),
    ])


def extract_features(
    habit: Habit,
    progress: HabitProgress,
    activities: Sequence[DailyActivity],
    as_of: Optional[datetime] = None,
) -> FeatureVector:
    """Build the 15-wide network input for one habit."""
    return FeatureVector.from_values(feature_values(habit, progress, activities, as_of))


def build_targets(
    habit: Habit,
    progress: HabitProgress,
    activities: Sequence[DailyActivity],
) -> TargetVector:
    """Build the 5-wide training target for one habit."""
    completed = [a for a in activities if a.completed]
    lookahead = min(progress.current_streak + STREAK_LOOKAHEAD_DAYS, STREAK_NORM)

    return TargetVector.from_values(_unit([
        progress.completion_rate / 100,
        lookahead / STREAK_NORM,
        (100 - progress.completion_rate) / 100,
        _mean_hour(completed, DEFAULT_TARGET_HOUR) / HOURS_PER_DAY,
        min(len(activities) / CONFIDENCE_RECORDS_NORM, 1.0),
    ]))
