"""Helpers for building plain-language habit insights for UI consumption."""

from __future__ import annotations

from typing import Dict, List

from habit_analytics import EnhancedAnalytics
from habit_models import HabitPrediction


def generate_insights(analytics: EnhancedAnalytics) -> List[str]:
    """Consistency, streak and myelin tiers, in that order."""
    insights: List[str] = []

    if analytics.average_completion_rate > 80:
        insights.append("Excellent consistency! Your habits are well-established.")
    elif analytics.average_completion_rate > 60:
        insights.append("Good progress! Focus on consistency to strengthen your neural pathways.")
    else:
        insights.append("Consider starting with fewer habits to build stronger foundations.")

    if analytics.longest_streak > 21:
        insights.append("You've built strong neural pathways - habits are becoming automatic!")
    elif analytics.longest_streak > 7:
        insights.append("Keep going! You're building momentum in your habit formation.")

    if analytics.myelin_score > 75:
        insights.append("Your myelin pathways are highly developed - excellent neural efficiency!")
    elif analytics.myelin_score > 50:
        insights.append("Good myelin development - continue reinforcing these pathways.")

    return insights


def build_concise_summary(
    analytics: EnhancedAnalytics,
    predictions: Dict[str, HabitPrediction],
    habit_names: Dict[str, str],
) -> str:
    """Create a strict 3-bullet, human-friendly summary for dashboard cards."""

    def clip(s: str, limit: int = 260) -> str:
        s = s.replace("\n", " ").strip()
        if len(s) <= limit:
            return s
        return s[: limit - 3].rstrip() + "..."

    def bullet(label: str, value: str) -> str:
        prefix = f"- {label}: "
        allowed = max(48, 280 - len(prefix))
        return prefix + clip(value, allowed)

    if not predictions:
        return (
            "- Where you stand: No tracked habits with progress yet.\n"
            "- Watch out for: Nothing to flag until a few days are logged.\n"
            "- Next step: Log today's reps to start building a baseline."
        )

    where = (
        f"Average completion {analytics.average_completion_rate:.0f}%, "
        f"myelin score {analytics.myelin_score:.0f}, longest streak {analytics.longest_streak} days."
    )

    at_risk = sorted(predictions.values(), key=lambda p: (p.completion_probability, p.habit_id))[0]
    name = habit_names.get(at_risk.habit_id) or at_risk.habit_id
    if at_risk.risk_factors:
        watch = f"{name} ({at_risk.completion_probability:.0f}% likely): {', '.join(at_risk.risk_factors)}."
    else:
        watch = f"{name} is your least certain habit at {at_risk.completion_probability:.0f}%."

    step = at_risk.suggested_modifications[0] if at_risk.suggested_modifications else "keep your routine"
    nxt = f"For {name}: {step}, ideally around {at_risk.optimal_time}."

    return (
        f"{bullet('Where you stand', where)}\n"
        f"{bullet('Watch out for', watch)}\n"
        f"{bullet('Next step', nxt)}"
    )
