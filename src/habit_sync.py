"""
Habit Prediction Sync
=====================
Standalone runner.  Given an exported habit dataset:
  1. Score every habit with the heuristic engine
  2. Correlate daily completion patterns across habits
  3. Train the habit network and forecast each habit
  4. Write the combined report as JSON

Usage:
    python habit_sync.py --data export.json                 # Full run
    python habit_sync.py --data export.json --no-train      # Forecast with loaded/initial weights
    python habit_sync.py --data export.json --save-model model.json --seed 7
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

import config

logging.basicConfig(
    level=getattr(logging, config.log_level(), logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("habit_sync")

from habit_models import load_dataset
from habit_predictor import HabitPredictor
from pipeline.prediction_pipeline import PredictionPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Habit prediction pipeline")
    parser.add_argument("--data", required=True,
                        help="JSON file with habits, progress and activities")
    parser.add_argument("--epochs", type=int, default=None,
                        help="Training epoch budget (default: HABIT_NN_EPOCHS or 200)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for weight init and dropout (default: HABIT_NN_SEED)")
    parser.add_argument("--no-train", action="store_true",
                        help="Skip training; forecast with loaded or freshly initialised weights")
    parser.add_argument("--load-model", default=None,
                        help="Network state to load before training")
    parser.add_argument("--save-model", default=None,
                        help="Where to write the network state after training")
    parser.add_argument("--out", default=None,
                        help="Write the report here instead of stdout")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        with open(args.data, "r", encoding="utf-8") as fh:
            habits, progress_map, activities = load_dataset(json.load(fh))
    except (OSError, ValueError, KeyError) as e:
        log.error("Could not read dataset %s: %s", args.data, e)
        return 1

    log.info("Loaded %d habits, %d progress rows, %d activity records",
             len(habits), len(progress_map), len(activities))

    seed = args.seed if args.seed is not None else config.training_seed()
    predictor = HabitPredictor(seed=seed)

    if args.load_model:
        try:
            with open(args.load_model, "r", encoding="utf-8") as fh:
                predictor.load_state(fh.read())
            log.info("Loaded model state from %s", args.load_model)
        except (OSError, ValueError) as e:
            log.error("Could not load model state %s: %s", args.load_model, e)
            return 1

    pipeline = PredictionPipeline(
        predictor=predictor,
        epochs=args.epochs,
        model_state_path=args.save_model or "",
        load_existing=not args.load_model,
    )
    report = pipeline.run(habits, progress_map, activities, train=not args.no_train)

    payload = json.dumps(report.to_dict(), indent=2, default=str)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as fh:
            fh.write(payload)
        log.info("Report written to %s", args.out)
    else:
        sys.stdout.write(payload + "\n")

    return 0 if report.status.get("overall_status") != "failed" else 1


if __name__ == "__main__":
    sys.exit(main())
