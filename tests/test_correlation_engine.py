"""
Tests for the habit correlation engine.

Covers: shared-date agreement ratio, disjoint / identical schedules,
duplicate records per day, classification thresholds, confidence and
the symmetric matrix view.
"""
import pytest

from correlation_engine import (
    HabitCorrelationEngine,
    agreement_confidence,
    classify_relationship,
    correlation_matrix,
)


@pytest.fixture
def engine():
    return HabitCorrelationEngine()


def _log(make_activity, habit_id, pattern):
    """pattern: {days_ago: completed}"""
    return [
        make_activity(habit_id, days_ago=d, reps=1 if done else 0)
        for d, done in pattern.items()
    ]


# ─── Agreement ratio ──────────────────────────────────────────


class TestAgreementRatio:

    def test_disjoint_dates_give_zero(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = _log(make_activity, "a", {1: True, 2: True}) + _log(make_activity, "b", {5: True, 6: True})

        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.correlation_strength == 0
        assert c.shared_days == 0
        assert c.relationship_type == "neutral"

    def test_identical_completion_days_give_one(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        days = {d: True for d in range(10)}
        acts = _log(make_activity, "a", days) + _log(make_activity, "b", days)

        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.correlation_strength == 1
        assert c.relationship_type == "positive"

    def test_both_missed_counts_as_agreement(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = _log(make_activity, "a", {1: False, 2: True}) + _log(make_activity, "b", {1: False, 2: True})

        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.correlation_strength == 1

    def test_only_shared_dates_count(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = (
            _log(make_activity, "a", {1: True, 2: True, 3: False, 4: True})
            + _log(make_activity, "b", {1: True, 2: False, 3: False, 9: True})
        )
        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.shared_days == 3
        assert c.correlation_strength == pytest.approx(2 / 3)

    def test_opposite_schedules_are_negative(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = (
            _log(make_activity, "a", {d: d % 2 == 0 for d in range(8)})
            + _log(make_activity, "b", {d: d % 2 == 1 for d in range(8)})
        )
        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.correlation_strength == 0
        assert c.relationship_type == "negative"

    def test_multiple_records_same_day_collapse_to_any(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = [
            make_activity("a", days_ago=1, hour=7, reps=0),
            make_activity("a", days_ago=1, hour=19, reps=2),
            make_activity("b", days_ago=1, hour=8, reps=1),
        ]
        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.shared_days == 1
        assert c.correlation_strength == 1


# ─── Pairs ────────────────────────────────────────────────────


class TestPairs:

    def test_every_unordered_pair_reported_once(self, engine, make_habit, make_activity):
        habits = [make_habit(h) for h in ("a", "b", "c", "d")]
        acts = _log(make_activity, "a", {0: True})
        result = engine.calculate_habit_correlations(habits, acts)

        pairs = [(c.habit1_id, c.habit2_id) for c in result]
        assert pairs == [("a", "b"), ("a", "c"), ("a", "d"), ("b", "c"), ("b", "d"), ("c", "d")]

    def test_no_habits_or_no_activity(self, engine, make_habit):
        assert engine.calculate_habit_correlations([], []) == []
        (c,) = engine.calculate_habit_correlations([make_habit("a"), make_habit("b")], [])
        assert c.correlation_strength == 0

    def test_activity_of_unknown_habits_ignored(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = _log(make_activity, "zzz", {0: True, 1: True})
        (c,) = engine.calculate_habit_correlations(habits, acts)
        assert c.shared_days == 0


# ─── Classification & confidence ──────────────────────────────


class TestClassification:

    @pytest.mark.parametrize("strength,expected", [
        (1.0, "positive"), (0.56, "positive"), (0.54, "neutral"),
        (0.5, "neutral"), (0.46, "neutral"), (0.44, "negative"), (0.0, "negative"),
    ])
    def test_thresholds(self, strength, expected):
        assert classify_relationship(strength, shared_days=10) == expected

    def test_no_shared_days_is_neutral(self):
        assert classify_relationship(0.0, shared_days=0) == "neutral"

    def test_confidence_bounds(self):
        assert agreement_confidence(0) == 10
        assert agreement_confidence(5) == 15
        assert agreement_confidence(200) == 100


# ─── Matrix view ──────────────────────────────────────────────


class TestMatrix:

    def test_symmetric_with_unit_diagonal(self, engine, make_habit, make_activity):
        habits = [make_habit("a"), make_habit("b")]
        acts = _log(make_activity, "a", {1: True, 2: True}) + _log(make_activity, "b", {1: True, 2: False})
        m = correlation_matrix(engine.calculate_habit_correlations(habits, acts), ["a", "b"])
        assert m["a"]["a"] == 1.0
        assert m["a"]["b"] == m["b"]["a"] == pytest.approx(0.5)
