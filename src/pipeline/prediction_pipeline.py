"""Habit prediction pipeline orchestration with explicit health signaling."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import config
from analytics.progress_layer import compute_progress
from correlation_engine import HabitCorrelationEngine, correlation_matrix
from habit_analytics import calculate_enhanced_analytics
from habit_models import (
    BehavioralInsight,
    DailyActivity,
    Habit,
    HabitCorrelation,
    HabitForecast,
    HabitPrediction,
    HabitProgress,
    activities_for,
)
from habit_predictor import HabitPredictor
from neural_network import ModelStateError
from pipeline.insight_builder import build_concise_summary, generate_insights
from prediction_engine import HeuristicPredictionEngine, clamp

log = logging.getLogger("pipeline.prediction")


@dataclass
class PredictionReport:
    predictions: Dict[str, HabitPrediction] = field(default_factory=dict)
    behavioral_insights: Dict[str, BehavioralInsight] = field(default_factory=dict)
    correlations: List[HabitCorrelation] = field(default_factory=list)
    forecasts: Dict[str, HabitForecast] = field(default_factory=dict)
    analytics: Dict[str, Any] = field(default_factory=dict)
    insights: List[str] = field(default_factory=list)
    summary: str = ""
    status: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        habit_ids = list(self.predictions)
        return {
            "predictions": {k: v.to_dict() for k, v in self.predictions.items()},
            "behavioral_insights": {k: v.to_dict() for k, v in self.behavioral_insights.items()},
            "correlations": [c.to_dict() for c in self.correlations],
            "correlation_matrix": correlation_matrix(self.correlations, habit_ids),
            "forecasts": {k: v.to_dict() for k, v in self.forecasts.items()},
            "analytics": self.analytics,
            "insights": self.insights,
            "summary": self.summary,
            "status": self.status,
        }


class PredictionPipeline:
    """Heuristic predictions, correlations and (optionally) neural forecasts in one run."""

    def __init__(
        self,
        engine: Optional[HeuristicPredictionEngine] = None,
        correlation_engine: Optional[HabitCorrelationEngine] = None,
        predictor: Optional[HabitPredictor] = None,
        epochs: Optional[int] = None,
        model_state_path: Optional[str] = None,
        load_existing: bool = True,
    ):
        self.engine = engine or HeuristicPredictionEngine()
        self.correlation_engine = correlation_engine or HabitCorrelationEngine()
        self.predictor = predictor
        self.epochs = epochs if epochs is not None else config.training_epochs()
        self.model_state_path = model_state_path if model_state_path is not None else config.model_state_path()
        self.load_existing = load_existing

    def run(
        self,
        habits: Sequence[Habit],
        progress_map: Dict[str, HabitProgress],
        activities: Sequence[DailyActivity],
        train: bool = True,
        as_of: Optional[datetime] = None,
    ) -> PredictionReport:
        """Execute every stage and record machine-readable status."""
        status: Dict[str, Any] = {
            "run_date": date.today().isoformat(),
            "run_started_at": datetime.utcnow().isoformat() + "Z",
            "habits": len(habits),
            "progress_recomputed": [],
            "heuristics_ok": False,
            "correlation_ok": False,
            "model_loaded": False,
            "training_ok": not train,
            "forecast_ok": False,
            "model_saved": False,
            "analysis_status": "unknown",
            "degraded_reasons": [],
        }
        report = PredictionReport(status=status)

        log.info("=" * 60)
        log.info("  HABIT PREDICTION RUN STARTED (%d habits)", len(habits))
        log.info("=" * 60)

        try:
            progress_map = self._fill_missing_progress(habits, progress_map, activities, as_of, status)

            log.info("Step 1/4: Heuristic predictions + behavioral insights...")
            report.predictions, report.behavioral_insights = self._heuristics(
                habits, progress_map, activities, as_of
            )
            status["heuristics_ok"] = True

            log.info("Step 2/4: Habit correlations...")
            report.correlations = self.correlation_engine.calculate_habit_correlations(habits, activities)
            status["correlation_ok"] = True

            log.info("Step 3/4: Neural forecasts...")
            report.forecasts = self._neural(habits, progress_map, activities, train, as_of, status)

            log.info("Step 4/4: Roll-up analytics...")
            analytics = calculate_enhanced_analytics(habits, progress_map, activities)
            report.analytics = analytics.to_dict()
            report.insights = generate_insights(analytics)
            report.summary = build_concise_summary(
                analytics, report.predictions, {h.id: h.name for h in habits}
            )

            status["analysis_status"] = "degraded" if status["degraded_reasons"] else "success"
        except Exception as e:
            status["analysis_status"] = "failed"
            status["degraded_reasons"].append("pipeline_exception")
            log.exception("Prediction pipeline failed: %s", e)
        finally:
            status["run_finished_at"] = datetime.utcnow().isoformat() + "Z"
            status["overall_status"] = self._overall_status(status)
            self._write_pipeline_status_file(status)
            log.info("=" * 60)
            log.info("  HABIT PREDICTION RUN COMPLETE (status=%s)", status["overall_status"])
            log.info("=" * 60)

        return report

    @staticmethod
    def _fill_missing_progress(habits, progress_map, activities, as_of, status) -> Dict[str, HabitProgress]:
        """Derive progress from the activity log for habits the input left without one."""
        filled = dict(progress_map)
        for habit in habits:
            if habit.id in filled:
                continue
            own = activities_for(habit.id, activities)
            if not own:
                continue
            filled[habit.id] = compute_progress(habit, own, as_of)
            status["progress_recomputed"].append(habit.id)
        if status["progress_recomputed"]:
            log.info("   Recomputed progress for %d habits from activity logs", len(status["progress_recomputed"]))
        return filled

    def _heuristics(self, habits, progress_map, activities, as_of):
        predictions: Dict[str, HabitPrediction] = {}
        insights: Dict[str, BehavioralInsight] = {}
        for habit in habits:
            progress = progress_map.get(habit.id)
            if progress is None:
                continue
            own = activities_for(habit.id, activities)

            prediction = self.engine.predict_habit_success(habit, progress, own)
            prediction.completion_probability = clamp(prediction.completion_probability, 0, 100)
            predictions[habit.id] = prediction
            insights[habit.id] = self.engine.analyze_behavioral_psychology(habit, progress, own, as_of)

        log.info("   %d habits scored (%d without progress skipped)", len(predictions), len(habits) - len(predictions))
        return predictions, insights

    def _neural(self, habits, progress_map, activities, train, as_of, status) -> Dict[str, HabitForecast]:
        """Optional stage: failures degrade the run instead of aborting it."""
        if self.predictor is None:
            self.predictor = HabitPredictor(seed=config.training_seed())

        if self.load_existing and self.model_state_path and os.path.exists(self.model_state_path):
            try:
                with open(self.model_state_path, "r", encoding="utf-8") as fh:
                    self.predictor.load_state(fh.read())
                status["model_loaded"] = True
            except (OSError, ModelStateError) as e:
                log.warning("Could not load model state from %s: %s", self.model_state_path, e)
                status["degraded_reasons"].append("model_state_unreadable")

        if train:
            try:
                result = self.predictor.train(
                    habits, progress_map, activities,
                    epochs=self.epochs,
                    early_stop_mse=config.early_stop_mse(),
                    as_of=as_of,
                )
                status["training_ok"] = True
                status["training_epochs"] = result.epochs_run
                status["training_mse"] = result.final_mse
            except (ValueError, FloatingPointError) as e:
                log.warning("Training failed; forecasts use the untrained network: %s", e)
                status["degraded_reasons"].append("training_failed")

        forecasts: Dict[str, HabitForecast] = {}
        for habit in habits:
            progress = progress_map.get(habit.id)
            if progress is None:
                continue
            forecasts[habit.id] = self.predictor.predict_habit(
                habit, progress, activities_for(habit.id, activities), as_of
            )
        status["forecast_ok"] = True

        if train and status["training_ok"] and self.model_state_path:
            status["model_saved"] = self._save_model_state()
            if not status["model_saved"]:
                status["degraded_reasons"].append("model_state_not_saved")
        return forecasts

    def _save_model_state(self) -> bool:
        try:
            with open(self.model_state_path, "w", encoding="utf-8") as fh:
                fh.write(self.predictor.export_state().to_json())
            log.info("Model state written to %s", self.model_state_path)
            return True
        except OSError as e:
            log.warning("Failed to write model state: %s", e)
            return False

    @staticmethod
    def _overall_status(status: Dict[str, Any]) -> str:
        if status.get("analysis_status") == "failed":
            return "failed"
        if not status.get("heuristics_ok", False) or not status.get("correlation_ok", False):
            return "failed"
        if status.get("analysis_status") == "degraded":
            return "degraded"
        return "success"

    @staticmethod
    def _write_pipeline_status_file(status: Dict[str, Any]) -> None:
        path = config.pipeline_status_path()
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as fh:
                json.dump(status, fh, indent=2, ensure_ascii=False)
            log.info("Pipeline status written to %s", path)
        except OSError as e:
            log.warning("Failed to write pipeline status file: %s", e)
