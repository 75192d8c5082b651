"""
Habit Correlation Engine
========================
Pairwise co-occurrence between habits' daily completion patterns.

Architecture (2 layers):
  Layer 0 - Day table:  activity records -> one row per calendar day,
            one column per habit, cell = completed that day (any record),
            NaN when the habit has no record for the day.
  Layer 1 - Agreement:  for every unordered habit pair, keep only days
            present for BOTH habits; strength = agreeing days / shared
            days (both completed or both not completed), 0 with no
            shared days.

Classification maps the agreement ratio to a signed value 2*s - 1 in
[-1, 1]: above +CORRELATION_THRESHOLD -> positive, below the negative
threshold -> negative, otherwise (or with no shared days) neutral.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Dict, List, Sequence

import pandas as pd

from constants import CORRELATION_THRESHOLD
from habit_models import DailyActivity, Habit, HabitCorrelation

log = logging.getLogger("correlation_engine")

MIN_CONFIDENCE = 10
MAX_CONFIDENCE = 100
CONFIDENCE_PER_SHARED_DAY = 3


def classify_relationship(strength: float, shared_days: int) -> str:
    if shared_days == 0:
        return "neutral"
    signed = 2 * strength - 1
    if signed > CORRELATION_THRESHOLD:
        return "positive"
    if signed < -CORRELATION_THRESHOLD:
        return "negative"
    return "neutral"


def agreement_confidence(shared_days: int) -> int:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, shared_days * CONFIDENCE_PER_SHARED_DAY))


class HabitCorrelationEngine:
    """Shared-date agreement correlation across a user's habits."""

    def calculate_habit_correlations(
        self,
        habits: Sequence[Habit],
        activities: Sequence[DailyActivity],
    ) -> List[HabitCorrelation]:
        habit_ids = [h.id for h in habits]
        table = self._layer0_day_table(habit_ids, activities)
        results = [self._layer1_pair(table, a, b) for a, b in combinations(habit_ids, 2)]
        log.info("Computed %d habit correlations over %d days", len(results), len(table))
        return results

    @staticmethod
    def _layer0_day_table(habit_ids: Sequence[str], activities: Sequence[DailyActivity]) -> pd.DataFrame:
        """Days x habits table of completion flags (NaN = no record that day)."""
        wanted = set(habit_ids)
        rows = [
            {"habit_id": a.habit_id, "day": a.day, "completed": bool(a.completed)}
            for a in activities
            if a.habit_id in wanted
        ]
        if not rows:
            return pd.DataFrame(columns=list(habit_ids), dtype=object)

        df = pd.DataFrame(rows)
        daily = df.groupby(["day", "habit_id"])["completed"].any()
        table = daily.unstack("habit_id").reindex(columns=list(habit_ids))
        return table.sort_index()

    @staticmethod
    def _layer1_pair(table: pd.DataFrame, habit1_id: str, habit2_id: str) -> HabitCorrelation:
        shared = table[[habit1_id, habit2_id]].dropna()
        shared_days = len(shared)
        if shared_days:
            matches = int((shared[habit1_id].astype(bool) == shared[habit2_id].astype(bool)).sum())
            strength = matches / shared_days
        else:
            strength = 0.0

        return HabitCorrelation(
            habit1_id=habit1_id,
            habit2_id=habit2_id,
            correlation_strength=strength,
            relationship_type=classify_relationship(strength, shared_days),
            confidence=agreement_confidence(shared_days),
            shared_days=shared_days,
        )


def correlation_matrix(correlations: Sequence[HabitCorrelation], habit_ids: Sequence[str]) -> Dict[str, Dict[str, float]]:
    """Symmetric {habit: {habit: strength}} view with 1.0 on the diagonal."""
    matrix: Dict[str, Dict[str, float]] = {h: {h: 1.0} for h in habit_ids}
    for c in correlations:
        matrix.setdefault(c.habit1_id, {})[c.habit2_id] = c.correlation_strength
        matrix.setdefault(c.habit2_id, {})[c.habit1_id] = c.correlation_strength
    return matrix
