"""
Financial Projector.

Turns the verdict and the aging projection into a replacement budget and a
year-by-year repair-vs-replace cost forecast.

The replacement cost is an opaque input supplied by the pricing
collaborator. When it is missing, a static tier table estimate is used and
the projection is marked ``estimated``.
"""

import calendar
import math
from datetime import date

import numpy as np

from opterra.models.enums import BudgetUrgency, CostSource, VerdictAction
from opterra.models.normalized import NormalizedInput
from opterra.models.results import FinancialProjection, Verdict

from .anode import AnodeShield
from .constants import (
    ANODE_COST,
    DESCALE_COST,
    EMERGENCY_REPAIR_COST,
    FILTER_COST,
    FLUSH_COST,
    MODERATE_MAX_MONTHS,
    SOON_MAX_MONTHS,
    UPKEEP_COST,
)
from .failure import failure_curve
from .installation import static_installed_cost


def estimate_replacement_cost(inp: NormalizedInput) -> float:
    """Static installed-cost estimate: tier table unit price plus the install preset it needs."""
    return static_installed_cost(inp)


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def budget_urgency(months: int) -> BudgetUrgency:
    if months <= 0:
        return BudgetUrgency.IMMEDIATE
    if months <= SOON_MAX_MONTHS:
        return BudgetUrgency.HIGH
    if months <= MODERATE_MAX_MONTHS:
        return BudgetUrgency.MODERATE
    return BudgetUrgency.LOW


def months_until_target(verdict: Verdict, years_left: float) -> int:
    """Months until replacement should happen, bounded by the verdict."""
    if verdict.action == VerdictAction.REPLACE_NOW:
        return 0
    months = max(int(round(years_left * 12)), 0)
    if verdict.action == VerdictAction.REPLACE_SOON:
        return min(months, SOON_MAX_MONTHS)
    return months


def annual_service_cost(inp: NormalizedInput, shield: AnodeShield) -> float:
    """Routine service spend per year to keep the current unit running."""
    if inp.is_tankless:
        return DESCALE_COST
    cost = FLUSH_COST + ANODE_COST / max(shield.budget, 1.0)
    if inp.is_hybrid:
        cost += FILTER_COST
    return cost


def projected_bio_ages(
    bio_age: float, shield_life: float, rate: float, horizon_years: int
) -> np.ndarray:
    """Bio age at the end of each year 0..horizon, honouring the remaining shield."""
    years = np.arange(horizon_years + 1, dtype=float)
    protected = np.minimum(years, max(shield_life, 0.0))
    return bio_age + protected + (years - protected) * rate


def cost_paths(
    inp: NormalizedInput,
    shield: AnodeShield,
    bio_age: float,
    aging_rate: float,
    replacement_cost: float,
    horizon_years: int,
    inflation_rate: float,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Cumulative repair-path and replace-path costs for years 0..horizon.

    Repair path: service costs grow with the projected failure probability,
    plus the expected cost of an emergency repair each year, plus an inflated
    replacement at the horizon. Replace path: the replacement today and light
    upkeep afterwards.
    """
    bio_path = projected_bio_ages(bio_age, shield.life, aging_rate, horizon_years)
    fail_path = np.array([failure_curve(b, inp.technology) for b in bio_path]) / 100.0

    repair_annual = annual_service_cost(inp, shield) * (1.0 + 2.0 * fail_path)
    repair_annual += fail_path * EMERGENCY_REPAIR_COST
    repair_annual[0] = 0.0
    repair_annual[-1] += replacement_cost * (1.0 + inflation_rate) ** horizon_years

    replace_annual = np.full(horizon_years + 1, UPKEEP_COST)
    replace_annual[0] = replacement_cost

    return np.cumsum(repair_annual), np.cumsum(replace_annual)


def project(
    inp: NormalizedInput,
    shield: AnodeShield,
    bio_age: float,
    aging_rate: float,
    years_left: float,
    verdict: Verdict,
    horizon_years: int = 10,
    inflation_rate: float = 0.03,
) -> FinancialProjection:
    """Build the replacement budget and cost forecast."""
    if inp.replacement_cost is not None:
        cost, source = inp.replacement_cost, CostSource.SUPPLIED
    else:
        cost, source = estimate_replacement_cost(inp), CostSource.ESTIMATED

    months = months_until_target(verdict, years_left)
    future_cost = cost * math.pow(1.0 + inflation_rate, months / 12.0)

    repair_path, replace_path = cost_paths(
        inp, shield, bio_age, aging_rate, cost, horizon_years, inflation_rate
    )
    crossings = np.nonzero(repair_path >= replace_path)[0]
    break_even_year = int(crossings[0]) if crossings.size else None

    return FinancialProjection(
        replacement_cost=round(cost, 2),
        cost_source=source,
        future_replacement_cost=round(future_cost, 2),
        months_until_target=months,
        target_replacement_date=add_months(inp.assessed_on, months),
        monthly_savings=round(future_cost / max(months, 1), 2),
        urgency=budget_urgency(months),
        horizon_years=horizon_years,
        repair_path=[round(float(v), 2) for v in repair_path],
        replace_path=[round(float(v), 2) for v in replace_path],
        break_even_year=break_even_year,
    )
