"""
Sacrificial anode shield budget.

Shared by the stress calculator (corrosion multiplier) and the aging model
(protected vs. exposed years). Reads normalized inputs only.
"""

from pydantic import BaseModel

from opterra.models.enums import AnodeStatus
from opterra.models.normalized import NormalizedInput

from .constants import (
    ANODE_BASE_DECAY,
    ANODE_CIRC_PUMP_DECAY,
    ANODE_INSPECT_YEARS,
    ANODE_REPLACE_YEARS,
    ANODE_SOFTENER_DECAY,
)


class AnodeShield(BaseModel):
    """Anode protection budget and what is left of it."""

    budget: float
    life: float
    status: AnodeStatus

    @property
    def remaining_fraction(self) -> float:
        """Share of the budget still available, 0.0 when exhausted."""
        if self.budget <= 0:
            return 0.0
        return min(max(self.life / self.budget, 0.0), 1.0)

    class Config:
        """Pydantic configuration."""

        frozen = True


def anode_decay_rate(inp: NormalizedInput) -> float:
    """
    Anode consumption rate relative to a plain installation.

    Softened water is more conductive and eats the anode 2.4x as fast;
    a recirculation pump keeps the tank hot and adds another half.
    """
    rate = ANODE_BASE_DECAY
    if inp.has_softener:
        rate += ANODE_SOFTENER_DECAY
    if inp.has_circ_pump:
        rate += ANODE_CIRC_PUMP_DECAY
    return rate


def anode_status(life: float) -> AnodeStatus:
    if life <= 0:
        return AnodeStatus.NAKED
    if life < ANODE_REPLACE_YEARS:
        return AnodeStatus.REPLACE
    if life < ANODE_INSPECT_YEARS:
        return AnodeStatus.INSPECT
    return AnodeStatus.PROTECTED


def anode_shield(inp: NormalizedInput) -> AnodeShield:
    """Shield budget from the warranty, minus years since the last anode install."""
    if inp.is_tankless:
        # No tank, no anode
        return AnodeShield(budget=0.0, life=0.0, status=AnodeStatus.PROTECTED)

    budget = inp.warranty_years / anode_decay_rate(inp)
    life = budget - inp.years_since_anode
    return AnodeShield(budget=budget, life=life, status=anode_status(life))
