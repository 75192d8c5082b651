"""
Heuristic Prediction & Insight Engine
=====================================
Rule-based scoring straight from aggregate habit statistics; no learned
state. Construct one engine and pass it to whatever needs it.

Completion probability is returned UNCLAMPED (50 + min(2*streak, 20) +
0.8*rate can exceed 100); callers clamp to [0, 100] before display.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from constants import (
    BARRIER_COMPLEXITY,
    BARRIER_MOTIVATION,
    DEFAULT_OPTIMAL_TIME,
    FORMATION_STAGES,
    HIGH_GOAL_REPS,
    RISK_BROKEN_STREAK,
    RISK_HIGH_COMPLEXITY,
    RISK_LOW_COMPLETION,
    STAGE_THRESHOLDS,
    SUGGEST_HABIT_STACKING,
    SUGGEST_HALVE_TARGET,
    SUGGEST_MICRO_HABITS,
    SUGGEST_STRONGER_CUES,
    SUGGEST_STRONGER_REWARD,
)
from habit_models import BehavioralInsight, DailyActivity, Habit, HabitPrediction, HabitProgress

log = logging.getLogger("prediction_engine")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class HeuristicPredictionEngine:
    """Per-habit success prediction and behavioral-psychology profile."""

    # ─── Public API ────────────────────────────────────────

    def predict_habit_success(
        self,
        habit: Habit,
        progress: HabitProgress,
        activities: Sequence[DailyActivity],
    ) -> HabitPrediction:
        rate = progress.completion_rate or 0
        streak = progress.current_streak or 0
        return HabitPrediction(
            habit_id=habit.id,
            completion_probability=round(self.base_probability(rate, streak)),
            optimal_time=self.optimal_time(activities),
            risk_factors=self.risk_factors(habit, progress),
            suggested_modifications=self.suggest_modifications(habit, progress),
            predicted_streak=self.predicted_streak(streak, rate),
            confidence=self.confidence(len(activities)),
        )

    def analyze_behavioral_psychology(
        self,
        habit: Habit,
        progress: HabitProgress,
        activities: Sequence[DailyActivity],
        as_of: Optional[datetime] = None,
    ) -> BehavioralInsight:
        automaticity = self.automaticity(habit, progress, as_of)
        return BehavioralInsight(
            habit_id=habit.id,
            trigger_effectiveness=self.trigger_effectiveness(len(activities)),
            reward_impact=self.reward_impact(habit.wrap_size),
            automaticity_score=automaticity,
            formation_stage=self.formation_stage(automaticity),
            psychological_barriers=self.barriers(habit, progress),
        )

    # ─── Scoring rules ─────────────────────────────────────

    @staticmethod
    def base_probability(completion_rate: float, streak: int) -> float:
        return 50 + min(streak * 2, 20) + completion_rate * 0.8

    @staticmethod
    def optimal_time(activities: Sequence[DailyActivity]) -> str:
        """Most frequent hour across records; ties go to the first hour seen."""
        if not activities:
            return DEFAULT_OPTIMAL_TIME
        hour, _ = Counter(a.timestamp.hour for a in activities).most_common(1)[0]
        return f"{hour:02d}:00"

    @staticmethod
    def risk_factors(habit: Habit, progress: HabitProgress) -> List[str]:
        risks: List[str] = []
        if (progress.completion_rate or 0) < 50:
            risks.append(RISK_LOW_COMPLETION)
        if (progress.current_streak or 0) == 0 and (progress.total_reps or 0) > 10:
            risks.append(RISK_BROKEN_STREAK)
        if habit.goal_reps > HIGH_GOAL_REPS:
            risks.append(RISK_HIGH_COMPLEXITY)
        return risks

    @staticmethod
    def suggest_modifications(habit: Habit, progress: HabitProgress) -> List[str]:
        suggestions: List[str] = []
        if (progress.completion_rate or 0) < 30:
            suggestions.append(SUGGEST_HALVE_TARGET)
            suggestions.append(SUGGEST_MICRO_HABITS)
        if habit.goal_reps > 15:
            suggestions.append(SUGGEST_HABIT_STACKING)
        suggestions.append(SUGGEST_STRONGER_CUES)
        suggestions.append(SUGGEST_STRONGER_REWARD)
        return suggestions

    @staticmethod
    def predicted_streak(current_streak: int, completion_rate: float) -> int:
        return int(round(current_streak + completion_rate / 10))

    @staticmethod
    def confidence(record_count: int) -> int:
        return min(100, record_count * 2)

    @staticmethod
    def trigger_effectiveness(record_count: int) -> float:
        return min(100, 50 + record_count / 10)

    @staticmethod
    def reward_impact(wrap_size: float) -> float:
        return min(100, 60 + wrap_size * 5)

    @staticmethod
    def automaticity(habit: Habit, progress: HabitProgress, as_of: Optional[datetime] = None) -> float:
        # days_since_creation never drops below 1
        return min(100.0, (progress.total_reps or 0) / habit.days_since_creation(as_of) * 100)

    @staticmethod
    def formation_stage(automaticity: float) -> str:
        for threshold, stage in zip(STAGE_THRESHOLDS, FORMATION_STAGES):
            if automaticity < threshold:
                return stage
        return FORMATION_STAGES[-1]

    @staticmethod
    def barriers(habit: Habit, progress: HabitProgress) -> List[str]:
        found: List[str] = []
        if habit.goal_reps > HIGH_GOAL_REPS:
            found.append(BARRIER_COMPLEXITY)
        if (progress.completion_rate or 0) < 40:
            found.append(BARRIER_MOTIVATION)
        return found
