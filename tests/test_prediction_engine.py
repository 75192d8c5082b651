"""
Tests for the heuristic prediction & insight engine.

Covers: base probability (including the unclamped >100 case), optimal
time, risk factors, suggestions, streak / confidence formulas and the
behavioral profile (automaticity, formation stage, barriers).
"""
import pytest

from constants import (
    BARRIER_COMPLEXITY,
    BARRIER_MOTIVATION,
    RISK_BROKEN_STREAK,
    RISK_HIGH_COMPLEXITY,
    RISK_LOW_COMPLETION,
    SUGGEST_HABIT_STACKING,
    SUGGEST_HALVE_TARGET,
    SUGGEST_MICRO_HABITS,
    SUGGEST_STRONGER_CUES,
    SUGGEST_STRONGER_REWARD,
)
from habit_models import HabitProgress
from prediction_engine import HeuristicPredictionEngine, clamp


@pytest.fixture
def engine():
    return HeuristicPredictionEngine()


# ─── Scenarios ────────────────────────────────────────────────


class TestScenarios:

    def test_new_hard_habit_with_no_data(self, engine, make_habit, as_of):
        habit = make_habit(goal=21, wrap=7, created_days_ago=10)
        progress = HabitProgress(habit.id, total_reps=0, current_streak=0, completion_rate=0)

        prediction = engine.predict_habit_success(habit, progress, [])
        insight = engine.analyze_behavioral_psychology(habit, progress, [], as_of)

        assert prediction.completion_probability == 50
        assert RISK_LOW_COMPLETION in prediction.risk_factors
        assert prediction.optimal_time == "09:00"
        assert prediction.confidence == 0
        assert insight.automaticity_score == 0
        assert insight.formation_stage == "cue"

    def test_probability_above_100_left_for_caller(self, engine, make_habit):
        habit = make_habit()
        progress = HabitProgress(habit.id, current_streak=30, completion_rate=90)

        prediction = engine.predict_habit_success(habit, progress, [])
        assert prediction.completion_probability == 142
        assert clamp(prediction.completion_probability, 0, 100) == 100


# ─── Scoring rules ────────────────────────────────────────────


class TestScoringRules:

    @pytest.mark.parametrize("rate,streak,expected", [
        (0, 0, 50),
        (0, 5, 60),
        (50, 10, 110),
        (25, 3, 76),
    ])
    def test_base_probability(self, engine, rate, streak, expected):
        assert engine.base_probability(rate, streak) == pytest.approx(expected)

    def test_optimal_time_most_frequent_hour(self, engine, make_activity):
        acts = [make_activity(hour=h) for h in (7, 18, 18, 7, 18)]
        assert engine.optimal_time(acts) == "18:00"

    def test_optimal_time_tie_goes_to_first_seen(self, engine, make_activity):
        acts = [make_activity(hour=h) for h in (21, 6, 6, 21)]
        assert engine.optimal_time(acts) == "21:00"

    def test_optimal_time_counts_all_records(self, engine, make_activity):
        acts = [make_activity(hour=5, reps=0), make_activity(hour=5, reps=0), make_activity(hour=8)]
        assert engine.optimal_time(acts) == "05:00"

    def test_predicted_streak(self, engine):
        assert engine.predicted_streak(4, 60) == 10
        assert engine.predicted_streak(0, 0) == 0

    def test_confidence_caps_at_100(self, engine):
        assert engine.confidence(10) == 20
        assert engine.confidence(80) == 100


# ─── Risk factors & suggestions ───────────────────────────────


class TestRiskAndSuggestions:

    def test_all_risks(self, engine, make_habit):
        habit = make_habit(goal=30)
        progress = HabitProgress(habit.id, total_reps=11, current_streak=0, completion_rate=20)
        assert engine.risk_factors(habit, progress) == [
            RISK_LOW_COMPLETION, RISK_BROKEN_STREAK, RISK_HIGH_COMPLEXITY,
        ]

    def test_no_risks(self, engine, make_habit):
        habit = make_habit(goal=20)
        progress = HabitProgress(habit.id, total_reps=40, current_streak=2, completion_rate=50)
        assert engine.risk_factors(habit, progress) == []

    def test_broken_streak_needs_more_than_ten_reps(self, engine, make_habit):
        habit = make_habit()
        progress = HabitProgress(habit.id, total_reps=10, current_streak=0, completion_rate=80)
        assert RISK_BROKEN_STREAK not in engine.risk_factors(habit, progress)

    def test_struggling_complex_habit_suggestions(self, engine, make_habit):
        habit = make_habit(goal=16)
        progress = HabitProgress(habit.id, completion_rate=29)
        assert engine.suggest_modifications(habit, progress) == [
            SUGGEST_HALVE_TARGET, SUGGEST_MICRO_HABITS, SUGGEST_HABIT_STACKING,
            SUGGEST_STRONGER_CUES, SUGGEST_STRONGER_REWARD,
        ]

    def test_generic_suggestions_always_present(self, engine, make_habit):
        habit = make_habit(goal=15)
        progress = HabitProgress(habit.id, completion_rate=30)
        assert engine.suggest_modifications(habit, progress) == [
            SUGGEST_STRONGER_CUES, SUGGEST_STRONGER_REWARD,
        ]


# ─── Behavioral psychology ────────────────────────────────────


class TestBehavioralProfile:

    def test_trigger_and_reward(self, engine):
        assert engine.trigger_effectiveness(0) == 50
        assert engine.trigger_effectiveness(100) == 60
        assert engine.trigger_effectiveness(1000) == 100
        assert engine.reward_impact(4) == 80
        assert engine.reward_impact(10) == 100

    def test_automaticity_reps_per_day(self, engine, make_habit, as_of):
        habit = make_habit(created_days_ago=20)
        assert engine.automaticity(habit, HabitProgress(habit.id, total_reps=10), as_of) == pytest.approx(50)
        assert engine.automaticity(habit, HabitProgress(habit.id, total_reps=60), as_of) == 100

    def test_automaticity_floor_of_one_day(self, engine, make_habit, as_of):
        habit = make_habit(created_days_ago=0)
        assert engine.automaticity(habit, HabitProgress(habit.id, total_reps=0.5), as_of) == pytest.approx(50)

    def test_automaticity_for_habit_dated_in_the_future(self, engine, make_habit, as_of):
        habit = make_habit(created_days_ago=-3)
        assert engine.automaticity(habit, HabitProgress(habit.id, total_reps=0.4), as_of) == pytest.approx(40)

    @pytest.mark.parametrize("score,stage", [
        (0, "cue"), (24.9, "cue"), (25, "routine"), (49.9, "routine"),
        (50, "reward"), (74.9, "reward"), (75, "automatic"), (100, "automatic"),
    ])
    def test_formation_stage_thresholds(self, engine, score, stage):
        assert engine.formation_stage(score) == stage

    def test_barriers(self, engine, make_habit):
        habit = make_habit(goal=25)
        assert engine.barriers(habit, HabitProgress(habit.id, completion_rate=39)) == [
            BARRIER_COMPLEXITY, BARRIER_MOTIVATION,
        ]
        assert engine.barriers(make_habit(goal=20), HabitProgress(habit.id, completion_rate=40)) == []

    def test_full_insight_record(self, engine, make_habit, make_activity, as_of):
        habit = make_habit(goal=10, wrap=3, created_days_ago=10)
        progress = HabitProgress(habit.id, total_reps=8, current_streak=4, completion_rate=80)
        acts = [make_activity(days_ago=d) for d in range(20)]

        insight = engine.analyze_behavioral_psychology(habit, progress, acts, as_of)
        assert insight.habit_id == habit.id
        assert insight.trigger_effectiveness == pytest.approx(52)
        assert insight.reward_impact == 75
        assert insight.automaticity_score == pytest.approx(80)
        assert insight.formation_stage == "automatic"
        assert insight.psychological_barriers == []
