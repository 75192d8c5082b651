"""Habit Predictor: binds the feed-forward network to the habit domain."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from analytics.feature_layer import build_targets, extract_features
from constants import (
    DROPOUT_RATE,
    EARLY_STOP_MSE,
    FEATURE_SIZE,
    HIDDEN_LAYERS,
    HOURS_PER_DAY,
    LEARNING_RATE,
    STREAK_NORM,
    TARGET_SIZE,
)
from habit_models import (
    DailyActivity,
    FeatureVector,
    Habit,
    HabitForecast,
    HabitProgress,
    TargetVector,
    activities_for,
)
from neural_network import FeedForwardNetwork, ModelStateError, NetworkState, TrainingReport

log = logging.getLogger("habit_predictor")

TrainingExample = Tuple[FeatureVector, TargetVector]


class HabitPredictor:
    """
    One 15 -> [64, 32, 16] -> 5 network per predictor lifetime.
    Retraining mutates that network in place; build a new predictor to
    discard learned state.
    """

    def __init__(self, seed: Optional[int] = None):
        self.network = FeedForwardNetwork(
            input_size=FEATURE_SIZE,
            hidden_layers=HIDDEN_LAYERS,
            output_size=TARGET_SIZE,
            learning_rate=LEARNING_RATE,
            dropout_rate=DROPOUT_RATE,
            seed=seed,
        )

    def prepare_training_data(
        self,
        habits: Sequence[Habit],
        progress_map: Dict[str, HabitProgress],
        activities: Sequence[DailyActivity],
        as_of: Optional[datetime] = None,
    ) -> List[TrainingExample]:
        """One (features, targets) pair per habit that has a progress entry."""
        examples: List[TrainingExample] = []
        skipped = 0
        for habit in habits:
            progress = progress_map.get(habit.id)
            if progress is None:
                skipped += 1
                continue
            habit_activities = activities_for(habit.id, activities)
            examples.append((
                extract_features(habit, progress, habit_activities, as_of),
                build_targets(habit, progress, habit_activities),
            ))
        if skipped:
            log.debug("Skipped %d habits without progress entries", skipped)
        return examples

    def train(
        self,
        habits: Sequence[Habit],
        progress_map: Dict[str, HabitProgress],
        activities: Sequence[DailyActivity],
        epochs: int,
        early_stop_mse: float = EARLY_STOP_MSE,
        as_of: Optional[datetime] = None,
    ) -> TrainingReport:
        examples = self.prepare_training_data(habits, progress_map, activities, as_of)
        log.info("Prepared %d training examples from %d habits", len(examples), len(habits))
        return self.network.fit(examples, epochs=epochs, early_stop_mse=early_stop_mse)

    def predict_habit(
        self,
        habit: Habit,
        progress: HabitProgress,
        activities: Sequence[DailyActivity],
        as_of: Optional[datetime] = None,
    ) -> HabitForecast:
        features = extract_features(habit, progress, activities, as_of)
        out = self.network.predict(features)
        # 23.5h and later rounds up to the next midnight
        hour = int(round(float(out[3]) * HOURS_PER_DAY)) % HOURS_PER_DAY
        return HabitForecast(
            habit_id=habit.id,
            completion_probability=int(round(float(out[0]) * 100)),
            predicted_streak=int(round(float(out[1]) * STREAK_NORM)),
            risk_score=int(round(float(out[2]) * 100)),
            optimal_time=f"{hour:02d}:00",
            confidence=int(round(float(out[4]) * 100)),
        )

    def export_state(self) -> NetworkState:
        return self.network.export_state()

    def load_state(self, state: Union[NetworkState, Dict[str, Any], str]) -> None:
        if isinstance(state, str):
            state = NetworkState.from_json(state)
        elif isinstance(state, dict):
            state = NetworkState.from_dict(state)
        else:
            state.validate()
        sizes = state.layer_sizes
        if sizes[0] != FEATURE_SIZE or sizes[-1] != TARGET_SIZE:
            raise ModelStateError(
                f"habit network needs {FEATURE_SIZE} inputs and {TARGET_SIZE} outputs, state has {sizes}"
            )
        self.network.load_state(state)
