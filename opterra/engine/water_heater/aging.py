"""
Aging & Wear Model.

Converts stress multipliers and the anode shield into a wear-adjusted
("biological") age, walks sediment forward through recorded flushes, scores
heat-exchanger scale on tankless units and projects how long the unit has
left before it reaches its actuarial ceiling.
"""

import math
from typing import Optional

from pydantic import BaseModel

from opterra.models.enums import AirFilterStatus, DescaleStatus, FlushStatus, FuelType
from opterra.models.normalized import NormalizedInput

from .anode import AnodeShield
from .constants import (
    ACTUARIAL_CEILING,
    FLUSH_REMOVAL,
    HARD_WATER_GPG,
    HARDENED_FLUSH_REMOVAL,
    MAX_BIO_AGE,
    MAX_PROJECTION_MONTHS,
    RUN_TO_FAILURE_AGE,
    SCALE_CRITICAL,
    SCALE_DUE,
    SCALE_LOCKOUT,
    SCALE_PER_GPG_YEAR,
    SEDIMENT_ADVISORY_LBS,
    SEDIMENT_CRITICAL_LBS,
    SEDIMENT_FLUSH_LBS,
    SEDIMENT_FUEL_FACTOR,
    SEDIMENT_LOCKOUT_LBS,
    SEDIMENT_TEMP_FACTOR,
    USAGE_FACTOR,
)
from .stress import StressProfile

HYBRID_FILTER_PENALTY = {
    AirFilterStatus.CLEAN: 0.0,
    AirFilterStatus.DIRTY: 15.0,
    AirFilterStatus.CLOGGED: 40.0,
}
HYBRID_CONDENSATE_PENALTY = 5.0


class WearProfile(BaseModel):
    """Output of the aging model."""

    bio_age: float
    protected_years: float
    exposed_years: float
    sediment_lbs: float
    sediment_rate: float
    flush_status: FlushStatus
    months_to_flush: Optional[int] = None
    months_to_lockout: Optional[int] = None
    scale_score: float = 0.0
    descale_status: Optional[DescaleStatus] = None
    years_left_current: float
    years_left_optimized: float
    life_extension: float
    hybrid_efficiency: Optional[float] = None

    class Config:
        """Pydantic configuration."""

        frozen = True


# =============================================================================
# Biological age
# =============================================================================


def split_exposure(inp: NormalizedInput, shield: AnodeShield) -> tuple[float, float]:
    """
    Split calendar age into (protected, exposed) years.

    Each anode, the original and the current one, protects for one shield
    budget from the day it was installed.
    """
    age = inp.calendar_age
    if inp.is_tankless or shield.budget <= 0:
        return 0.0, age

    current_anode_years = inp.years_since_anode
    prior_years = age - current_anode_years
    protected = min(current_anode_years, shield.budget) + min(prior_years, shield.budget)
    protected = min(protected, age)
    return protected, age - protected


def biological_age(calendar_age: float, protected: float, exposed: float, rate: float) -> float:
    """Protected years age at 1.0x, exposed years at the naked aging rate."""
    raw = protected + exposed * rate
    return min(max(raw, calendar_age), max(MAX_BIO_AGE, calendar_age))


def years_until_bio_age(
    target: float, current_bio: float, shield_life: float, rate: float
) -> float:
    """
    Years until the bio age reaches ``target``.

    Remaining shield years tick at 1.0x, everything after at ``rate``.
    """
    if current_bio >= target:
        return 0.0
    remaining = target - current_bio
    protected = max(shield_life, 0.0)
    if remaining <= protected:
        return remaining
    return protected + (remaining - protected) / max(rate, 1.0)


# =============================================================================
# Sediment (tank and hybrid)
# =============================================================================


def sediment_rate(inp: NormalizedInput) -> float:
    """Sediment accrual in lbs/year."""
    if inp.is_tankless:
        return 0.0
    return (
        inp.effective_hardness
        * SEDIMENT_FUEL_FACTOR.get(inp.fuel_type, SEDIMENT_FUEL_FACTOR[FuelType.GAS])
        * USAGE_FACTOR[inp.usage_type]
        * SEDIMENT_TEMP_FACTOR[inp.temp_setting]
    )


def flush_events(inp: NormalizedInput) -> list[float]:
    """Unit ages (years) at which the tank was flushed, oldest first."""
    last_flush_at = inp.calendar_age - inp.years_since_flush
    if last_flush_at <= 0:
        return []
    events: list[float] = []
    if inp.is_annually_maintained:
        events = [float(year) for year in range(1, math.ceil(last_flush_at)) if year < last_flush_at]
    events.append(last_flush_at)
    return events


def sediment_mass(inp: NormalizedInput, rate: float) -> float:
    """
    Walk sediment forward from install through each flush.

    A flush removes half the loose sediment; once the mass has reached the
    lockout threshold it has hardened and a flush barely moves it.
    """
    mass = 0.0
    elapsed = 0.0
    for at in flush_events(inp):
        mass += rate * (at - elapsed)
        removal = HARDENED_FLUSH_REMOVAL if mass >= SEDIMENT_LOCKOUT_LBS else FLUSH_REMOVAL
        mass *= 1.0 - removal
        elapsed = at
    mass += rate * (inp.calendar_age - elapsed)
    return mass


def flush_status_for(sediment_lbs: float) -> FlushStatus:
    if sediment_lbs >= SEDIMENT_LOCKOUT_LBS:
        return FlushStatus.LOCKOUT
    if sediment_lbs >= SEDIMENT_CRITICAL_LBS:
        return FlushStatus.CRITICAL
    if sediment_lbs >= SEDIMENT_FLUSH_LBS:
        return FlushStatus.DUE
    if sediment_lbs >= SEDIMENT_ADVISORY_LBS:
        return FlushStatus.ADVISORY
    return FlushStatus.OPTIMAL


def months_until_mass(current: float, target: float, rate: float) -> Optional[int]:
    """Whole months until sediment reaches ``target`` lbs; None if it never will."""
    if current >= target:
        return 0
    if rate <= 0:
        return None
    months = (target - current) / rate * 12
    # Vanishing rates overflow to inf: the threshold is never reached
    if not math.isfinite(months) or months > MAX_PROJECTION_MONTHS:
        return None
    return math.ceil(months)


# =============================================================================
# Scale (tankless)
# =============================================================================


def scale_score(inp: NormalizedInput) -> float:
    return min(100.0, inp.effective_hardness * inp.years_since_descale * SCALE_PER_GPG_YEAR)


def descale_status_for(inp: NormalizedInput, score: float) -> DescaleStatus:
    """
    Descale recommendation.

    A hard-water unit that was never descaled and is past six years is left
    to run: descaling it now risks opening pinhole leaks in the exchanger.
    """
    if (
        inp.effective_hardness > HARD_WATER_GPG
        and inp.never_descaled
        and inp.calendar_age > RUN_TO_FAILURE_AGE
    ):
        return DescaleStatus.RUN_TO_FAILURE
    if score >= SCALE_LOCKOUT:
        return DescaleStatus.LOCKOUT
    if score >= SCALE_CRITICAL:
        return DescaleStatus.CRITICAL
    if score >= SCALE_DUE:
        return DescaleStatus.DUE
    return DescaleStatus.OPTIMAL


def hybrid_efficiency(inp: NormalizedInput) -> Optional[float]:
    """Heat pump efficiency 0-100, hybrid units only."""
    if not inp.is_hybrid:
        return None
    efficiency = 100.0 - HYBRID_FILTER_PENALTY[inp.air_filter_status]
    if not inp.is_condensate_clear:
        efficiency -= HYBRID_CONDENSATE_PENALTY
    return max(0.0, min(100.0, efficiency))


def compute_wear(inp: NormalizedInput, shield: AnodeShield, stress: StressProfile) -> WearProfile:
    """Run the aging model for one unit."""
    protected, exposed = split_exposure(inp, shield)
    bio_age = biological_age(inp.calendar_age, protected, exposed, stress.aging_rate)

    rate = sediment_rate(inp)
    mass = sediment_mass(inp, rate) if not inp.is_tankless else 0.0
    if inp.is_tankless:
        flush_status = FlushStatus.OPTIMAL
        months_to_flush = None
        months_to_lockout = None
    else:
        flush_status = flush_status_for(mass)
        months_to_flush = months_until_mass(mass, SEDIMENT_FLUSH_LBS, rate)
        months_to_lockout = (
            None if mass >= SEDIMENT_LOCKOUT_LBS else months_until_mass(mass, SEDIMENT_LOCKOUT_LBS, rate)
        )

    score = scale_score(inp) if inp.is_tankless else 0.0
    descale_status = descale_status_for(inp, score) if inp.is_tankless else None

    ceiling = ACTUARIAL_CEILING[inp.technology]
    years_left_current = years_until_bio_age(ceiling, bio_age, shield.life, stress.aging_rate)
    years_left_optimized = years_until_bio_age(ceiling, bio_age, shield.life, stress.optimized_rate)

    return WearProfile(
        bio_age=max(round(bio_age, 2), inp.calendar_age),
        protected_years=protected,
        exposed_years=exposed,
        sediment_lbs=round(mass, 2),
        sediment_rate=round(rate, 3),
        flush_status=flush_status,
        months_to_flush=months_to_flush,
        months_to_lockout=months_to_lockout,
        scale_score=round(score, 1),
        descale_status=descale_status,
        years_left_current=round(years_left_current, 1),
        years_left_optimized=round(years_left_optimized, 1),
        life_extension=round(max(years_left_optimized - years_left_current, 0.0), 1),
        hybrid_efficiency=hybrid_efficiency(inp),
    )
