"""
Failure Probability Estimator.

Probability (%) that the unit fails within the next twelve months, as a
logistic function of bio age. The curve is re-based so that a brand-new
unit scores 0 and scaled so that it saturates at the 95% cap.
"""

from scipy.special import expit

from opterra.models.enums import TechnologyClass
from opterra.models.normalized import NormalizedInput

from .constants import FAILURE_CURVE, MAX_FAIL_PROB


def failure_curve(bio_age: float, technology: TechnologyClass) -> float:
    """Statistical failure probability for a bio age, monotonic and within [0, 95]."""
    midpoint, slope = FAILURE_CURVE[technology]
    floor = float(expit(-slope * midpoint))
    raw = float(expit(slope * (max(bio_age, 0.0) - midpoint)))
    return min(max((raw - floor) / (1.0 - floor) * MAX_FAIL_PROB, 0.0), MAX_FAIL_PROB)


def failure_probability(inp: NormalizedInput, bio_age: float) -> float:
    """
    Failure probability with visual overrides.

    Visible rust or a breach of the vessel is failure in progress: pinned at
    the cap regardless of age.
    """
    if inp.visual_rust or inp.is_breach:
        return MAX_FAIL_PROB
    return round(failure_curve(bio_age, inp.technology), 1)
