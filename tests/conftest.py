"""
Shared test configuration.

Adds src/ to sys.path so the flat modules (neural_network,
correlation_engine, habit_models, ...) and the analytics/ and pipeline/
namespace packages import with plain `import module_name`, and provides
a small habit dataset pinned to a fixed reference time.
"""

import os
import sys
from datetime import datetime, timedelta

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from habit_models import DailyActivity, Habit, HabitProgress  # noqa: E402

AS_OF = datetime(2026, 3, 1, 20, 0, 0)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def make_habit():
    def _make(habit_id="h1", goal=10, wrap=5, created_days_ago=30, name=None):
        return Habit(
            id=habit_id,
            name=name or f"Habit {habit_id}",
            goal_reps=goal,
            wrap_size=wrap,
            created_at=AS_OF - timedelta(days=created_days_ago),
        )
    return _make


@pytest.fixture
def make_activity():
    def _make(habit_id="h1", days_ago=0, hour=9, reps=1, completed=None):
        day = (AS_OF - timedelta(days=days_ago)).replace(hour=hour, minute=0, second=0)
        return DailyActivity(habit_id=habit_id, timestamp=day, rep_count=reps, completed=completed)
    return _make


@pytest.fixture
def sample_dataset(make_habit, make_activity):
    """Three habits: two with progress and logs, one without progress."""
    habits = [
        make_habit("read", goal=10, wrap=5, created_days_ago=20, name="Read"),
        make_habit("run", goal=25, wrap=7, created_days_ago=40, name="Run"),
        make_habit("orphan", goal=5, wrap=2, created_days_ago=3, name="Orphan"),
    ]
    progress = {
        "read": HabitProgress("read", total_reps=8, current_streak=3, longest_streak=5, completion_rate=80),
        "run": HabitProgress("run", total_reps=12, current_streak=0, longest_streak=4, completion_rate=20),
    }
    activities = [make_activity("read", days_ago=d, hour=7) for d in range(6)]
    activities += [make_activity("run", days_ago=d, hour=18, reps=1 if d % 2 else 0) for d in range(6)]
    return habits, progress, activities
