"""
Shared constants used across multiple modules.
Single source of truth for the prediction contract widths, the network
architecture and the heuristic thresholds / label strings.
"""

# Fixed vector widths (network input / output layers)
FEATURE_SIZE = 15
TARGET_SIZE = 5

# Habit network architecture
HIDDEN_LAYERS = (64, 32, 16)
LEARNING_RATE = 0.001
DROPOUT_RATE = 0.2

# Training defaults
DEFAULT_EPOCHS = 200
EARLY_STOP_MSE = 1e-3

# Sigmoid pre-activation saturation
SIGMOID_CLAMP = 500.0

# Feature / target normalisers
STREAK_NORM = 30
TOTAL_REPS_NORM = 100
GOAL_NORM = 50
WRAP_NORM = 10
DAYS_NORM = 365
HOURS_PER_DAY = 24
RECENT_WINDOW_DAYS = 7
STREAK_LOOKAHEAD_DAYS = 7
CONFIDENCE_RECORDS_NORM = 50

DEFAULT_FEATURE_HOUR = 12
DEFAULT_TARGET_HOUR = 9
DEFAULT_OPTIMAL_TIME = "09:00"

# Difficulty flags
HIGH_GOAL_REPS = 20
LARGE_WRAP_SIZE = 5

# Heuristic engine labels
RISK_LOW_COMPLETION = "low completion rate"
RISK_BROKEN_STREAK = "broken streak pattern"
RISK_HIGH_COMPLEXITY = "high target complexity"

SUGGEST_HALVE_TARGET = "halve the target reps"
SUGGEST_MICRO_HABITS = "break into smaller micro-habits"
SUGGEST_HABIT_STACKING = "use habit stacking"
SUGGEST_STRONGER_CUES = "add stronger visual cues"
SUGGEST_STRONGER_REWARD = "increase immediate rewards"

BARRIER_COMPLEXITY = "complexity barrier"
BARRIER_MOTIVATION = "motivation barrier"

# Formation stages, ordered by automaticity thresholds (<25, <50, <75, else)
FORMATION_STAGES = ("cue", "routine", "reward", "automatic")
STAGE_THRESHOLDS = (25, 50, 75)

# Correlation classification
CORRELATION_THRESHOLD = 0.1
RELATIONSHIP_TYPES = ("positive", "negative", "neutral")
