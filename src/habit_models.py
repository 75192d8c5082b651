"""
Habit domain records and fixed-width numeric vectors.

Inputs (Habit, HabitProgress, DailyActivity) are read from the habit
storage layer; outputs (HabitPrediction, BehavioralInsight,
HabitCorrelation, HabitForecast) are plain data for the dashboard.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np

from constants import FEATURE_SIZE, TARGET_SIZE


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) or pass a datetime through."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _optional_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    return parse_timestamp(value).date()


def aligned_now(reference: datetime, as_of: Optional[datetime] = None) -> datetime:
    """Return ``as_of`` (or now) with the same tz-awareness as ``reference``."""
    if as_of is None:
        return datetime.now(reference.tzinfo) if reference.tzinfo else datetime.now()
    if reference.tzinfo is None and as_of.tzinfo is not None:
        return as_of.astimezone(timezone.utc).replace(tzinfo=None)
    if reference.tzinfo is not None and as_of.tzinfo is None:
        return as_of.replace(tzinfo=timezone.utc)
    return as_of


# ─── Input records ─────────────────────────────────────────


@dataclass
class Habit:
    id: str
    name: str
    goal_reps: float
    wrap_size: float
    created_at: datetime

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Habit":
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            goal_reps=float(row.get("goal_reps") or 0),
            wrap_size=float(row.get("wrap_size") or 0),
            created_at=parse_timestamp(row["created_at"]),
        )

    def days_since_creation(self, as_of: Optional[datetime] = None) -> int:
        """Whole days elapsed since creation, never below 1."""
        now = aligned_now(self.created_at, as_of)
        elapsed = (now - self.created_at).total_seconds() / 86400
        return max(1, math.floor(elapsed))


@dataclass
class HabitProgress:
    """Derived progress snapshot. ``completion_rate`` may exceed 100."""

    habit_id: str
    total_reps: float = 0
    current_streak: int = 0
    longest_streak: int = 0
    completion_rate: float = 0.0
    last_rep_date: Optional[date] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any], habit_id: Optional[str] = None) -> "HabitProgress":
        return cls(
            habit_id=str(row.get("habit_id") or habit_id or ""),
            total_reps=float(row.get("total_reps") or 0),
            current_streak=int(row.get("current_streak") or 0),
            longest_streak=int(row.get("longest_streak") or 0),
            completion_rate=float(row.get("completion_rate") or 0),
            last_rep_date=_optional_date(row.get("last_rep_date")),
        )


@dataclass
class DailyActivity:
    habit_id: str
    timestamp: datetime
    rep_count: int = 0
    completed: Optional[bool] = None

    def __post_init__(self):
        if self.completed is None:
            self.completed = self.rep_count > 0

    @property
    def day(self) -> date:
        return self.timestamp.date()

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "DailyActivity":
        completed = row.get("completed")
        return cls(
            habit_id=str(row["habit_id"]),
            timestamp=parse_timestamp(row.get("timestamp") or row["date"]),
            rep_count=int(row.get("rep_count") or 0),
            completed=None if completed is None else bool(completed),
        )


def activities_for(habit_id: str, activities: Iterable[DailyActivity]) -> List[DailyActivity]:
    return [a for a in activities if a.habit_id == habit_id]


# ─── Fixed-width vectors ───────────────────────────────────


class FixedVector:
    """Float64 vector whose length is checked at construction."""

    size: int = 0

    def __init__(self, values: Sequence[float]):
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape[0] != self.size:
            raise ValueError(
                f"{type(self).__name__} requires exactly {self.size} values, got {arr.shape[0]}"
            )
        self._values = arr

    @classmethod
    def from_values(cls, values: Sequence[float]):
        """Right-pad with zeros or truncate to the fixed width; non-finite values become 0."""
        arr = np.zeros(cls.size, dtype=np.float64)
        raw = np.asarray(list(values), dtype=np.float64).reshape(-1)[: cls.size]
        arr[: raw.shape[0]] = raw
        arr[~np.isfinite(arr)] = 0.0
        return cls(arr)

    def to_numpy(self) -> np.ndarray:
        return self._values.copy()

    def tolist(self) -> List[float]:
        return self._values.tolist()

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, idx):
        return self._values[idx]

    def __iter__(self):
        return iter(self._values.tolist())

    def __eq__(self, other) -> bool:
        if not isinstance(other, FixedVector) or other.size != self.size:
            return NotImplemented
        return bool(np.array_equal(self._values, other._values))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values.tolist()!r})"


class FeatureVector(FixedVector):
    size = FEATURE_SIZE


class TargetVector(FixedVector):
    size = TARGET_SIZE


# ─── Output records ────────────────────────────────────────


@dataclass
class HabitPrediction:
    habit_id: str
    completion_probability: float
    optimal_time: str
    risk_factors: List[str] = field(default_factory=list)
    suggested_modifications: List[str] = field(default_factory=list)
    predicted_streak: int = 0
    confidence: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BehavioralInsight:
    habit_id: str
    trigger_effectiveness: float
    reward_impact: float
    automaticity_score: float
    formation_stage: str
    psychological_barriers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HabitCorrelation:
    habit1_id: str
    habit2_id: str
    correlation_strength: float
    relationship_type: str
    confidence: float
    shared_days: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HabitForecast:
    """Network output denormalised to habit-facing units."""

    habit_id: str
    completion_probability: int
    predicted_streak: int
    risk_score: int
    optimal_time: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ─── Dataset loading ───────────────────────────────────────


def load_dataset(payload: Dict[str, Any]):
    """Parse ``{"habits": [...], "progress": {...}, "activities": [...]}``.

    ``progress`` may be a mapping keyed by habit id or a list of rows
    carrying ``habit_id``.
    """
    habits = [Habit.from_dict(row) for row in payload.get("habits") or []]

    raw_progress = payload.get("progress") or {}
    progress_map: Dict[str, HabitProgress] = {}
    if isinstance(raw_progress, dict):
        for habit_id, row in raw_progress.items():
            progress_map[str(habit_id)] = HabitProgress.from_dict(row, habit_id=str(habit_id))
    else:
        for row in raw_progress:
            p = HabitProgress.from_dict(row)
            progress_map[p.habit_id] = p

    activities = [DailyActivity.from_dict(row) for row in payload.get("activities") or []]
    return habits, progress_map, activities
