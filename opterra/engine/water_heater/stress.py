"""
Stress Factor Calculator.

Each stressor maps the normalized inputs to a multiplier >= 1.0 on the rate
of wear. The multipliers are folded multiplicatively over a fixed, named
registry so that stressors compound (90 PSI in a closed loop is worse than
either alone) and new stressors can be added without touching the aging
model.
"""

import math
from typing import Callable

from pydantic import BaseModel

from opterra.models.enums import TempSetting
from opterra.models.normalized import NormalizedInput

from .anode import AnodeShield
from .constants import (
    CHEMICAL_BASELINE_GPG,
    CHEMICAL_CAP,
    CHEMICAL_PER_GPG,
    CORROSION_NAKED,
    CORROSION_PROTECTED_MAX,
    HOT_SETTING_FACTOR,
    MAX_AGING_RATE,
    PRESSURE_AT_CODE_LIMIT,
    PRESSURE_SLOPE_ABOVE_CODE,
    PRESSURE_SPIKE_FACTOR,
    PSI_CODE_LIMIT,
    PSI_SAFE_LIMIT,
    RECIRCULATION_FACTOR,
    THERMAL_EXPANSION_FACTOR,
)

StressorFn = Callable[[NormalizedInput, AnodeShield], float]

NO_STRESSOR = "none"

# Stressors removed by fixing pressure and expansion (PRV + expansion tank)
OPTIMIZABLE_STRESSORS = frozenset({"pressure", "thermal_expansion"})


def pressure_factor(inp: NormalizedInput, shield: AnodeShield) -> float:
    """
    Fatigue from static pressure.

    Flat up to 60 PSI, a quadratic rise to 1.5x at the 80 PSI code limit,
    then linear (+1.0 per 20 PSI). Without a PRV or a working expansion tank
    the pressure also spikes on every heating cycle.
    """
    psi = inp.house_psi
    if psi <= PSI_SAFE_LIMIT:
        return 1.0
    if psi <= PSI_CODE_LIMIT:
        fraction = (psi - PSI_SAFE_LIMIT) / (PSI_CODE_LIMIT - PSI_SAFE_LIMIT)
        factor = 1.0 + (PRESSURE_AT_CODE_LIMIT - 1.0) * fraction**2
    else:
        factor = PRESSURE_AT_CODE_LIMIT + (psi - PSI_CODE_LIMIT) * PRESSURE_SLOPE_ABOVE_CODE
    if not inp.has_prv and not inp.has_functional_expansion_tank:
        factor *= PRESSURE_SPIKE_FACTOR
    return factor


def chemical_factor(inp: NormalizedInput, shield: AnodeShield) -> float:
    excess = inp.effective_hardness - CHEMICAL_BASELINE_GPG
    return min(max(1.0 + CHEMICAL_PER_GPG * excess, 1.0), CHEMICAL_CAP)


def corrosion_factor(inp: NormalizedInput, shield: AnodeShield) -> float:
    """Rises gently as the anode wears, then jumps to the cap once it is gone."""
    if inp.is_tankless:
        return 1.0
    if shield.life <= 0:
        return CORROSION_NAKED
    return 1.0 + (CORROSION_PROTECTED_MAX - 1.0) * (1.0 - shield.remaining_fraction)


def thermal_expansion_factor(inp: NormalizedInput, shield: AnodeShield) -> float:
    if inp.is_tankless:
        return 1.0
    if inp.is_closed_loop and not inp.has_functional_expansion_tank:
        return THERMAL_EXPANSION_FACTOR
    return 1.0


def recirculation_factor(inp: NormalizedInput, shield: AnodeShield) -> float:
    if inp.has_circ_pump and not inp.circ_pump_has_timer:
        return RECIRCULATION_FACTOR
    return 1.0


def temperature_factor(inp: NormalizedInput, shield: AnodeShield) -> float:
    # LOW settings slow sediment but never drop the multiplier below 1.0
    return HOT_SETTING_FACTOR if inp.temp_setting == TempSetting.HOT else 1.0


STRESSORS: tuple[tuple[str, StressorFn], ...] = (
    ("pressure", pressure_factor),
    ("chemical", chemical_factor),
    ("corrosion", corrosion_factor),
    ("thermal_expansion", thermal_expansion_factor),
    ("recirculation", recirculation_factor),
    ("temperature", temperature_factor),
)


class StressProfile(BaseModel):
    """Per-stressor multipliers and their compounded aging rates."""

    factors: dict[str, float]
    aging_rate: float
    optimized_rate: float
    primary_stressor: str
    dominant_multiplier: float

    class Config:
        """Pydantic configuration."""

        frozen = True


def fold(factors: dict[str, float], exclude: frozenset = frozenset()) -> float:
    """Product of multipliers, capped at the maximum aging rate."""
    rate = math.prod(value for name, value in factors.items() if name not in exclude)
    return min(rate, MAX_AGING_RATE)


def compute_stress(inp: NormalizedInput, shield: AnodeShield) -> StressProfile:
    """Evaluate every registered stressor and fold them into aging rates."""
    factors = {name: round(fn(inp, shield), 4) for name, fn in STRESSORS}

    primary, dominant = max(factors.items(), key=lambda item: item[1])
    if dominant <= 1.0:
        primary = NO_STRESSOR

    return StressProfile(
        factors=factors,
        aging_rate=fold(factors),
        optimized_rate=fold(factors, exclude=OPTIMIZABLE_STRESSORS),
        primary_stressor=primary,
        dominant_multiplier=dominant,
    )
