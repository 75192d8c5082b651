"""Runtime settings loaded from the environment (optionally via .env)."""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv

from constants import DEFAULT_EPOCHS, EARLY_STOP_MSE

load_dotenv()

log = logging.getLogger("config")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r (expected integer)", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r (expected number)", name, raw)
        return default


def training_epochs() -> int:
    """Epoch budget for habit network training."""
    epochs = _env_int("HABIT_NN_EPOCHS", DEFAULT_EPOCHS)
    return max(1, epochs)


def training_seed() -> Optional[int]:
    """Seed for weight init and dropout; None means nondeterministic."""
    return _env_int("HABIT_NN_SEED", None)


def early_stop_mse() -> float:
    return _env_float("HABIT_NN_EARLY_STOP_MSE", EARLY_STOP_MSE)


def model_state_path() -> str:
    """Path of the persisted network state ('' disables persistence)."""
    return (os.getenv("HABIT_MODEL_STATE_PATH") or "").strip()


def pipeline_status_path() -> str:
    return (os.getenv("HABIT_PIPELINE_STATUS_PATH") or "").strip()


def log_level() -> str:
    return (os.getenv("HABIT_LOG_LEVEL") or "INFO").strip().upper()
