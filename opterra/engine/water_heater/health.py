"""
Health Score Aggregator.

Single 0-100 triage score for presentation. The verdict rules never read
it; they reason over the underlying metrics.
"""

from .constants import HEALTH_FAIL_WEIGHT, HEALTH_STRESS_SPAN, HEALTH_STRESS_WEIGHT


def stress_percent(dominant_multiplier: float) -> float:
    """Dominant multiplier scaled so that 1.0 -> 0% and 3.0 or more -> 100%."""
    pct = (dominant_multiplier - 1.0) / (HEALTH_STRESS_SPAN - 1.0) * 100.0
    return min(max(pct, 0.0), 100.0)


def health_score(fail_prob: float, dominant_multiplier: float) -> int:
    penalty = HEALTH_FAIL_WEIGHT * fail_prob + HEALTH_STRESS_WEIGHT * stress_percent(
        dominant_multiplier
    )
    return int(round(max(0.0, 100.0 - penalty)))
