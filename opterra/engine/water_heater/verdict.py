"""
Verdict Rule Engine.

The verdict is decided by an ordered table of rules. Each rule pairs a guard
with a builder; the table is evaluated top to bottom and the first guard that
holds determines the verdict. There is no voting and no override: a less
severe tier can never displace a more severe one, and the final ``healthy``
rule always matches, so every assessment is verdicted.

Tiers:
    1. Containment breach
    2. Safety / code hazard requiring replacement
    3. Lockout (sediment or scale past the point of safe service)
    4. Actuarial expiry and liability
    5. Repairable infrastructure and maintenance debt
    6. Monitor / pass

Boundary convention: thresholds are inclusive lower bounds (``>=``). The
two plumbing-code pressure limits (above 80 PSI, above 100 PSI) are strict.
"""

from typing import Callable, NamedTuple

import structlog
from pydantic import BaseModel

from opterra.models.enums import (
    AirFilterStatus,
    DescaleStatus,
    ExpansionTankStatus,
    LocationType,
    RuleTier,
    VerdictAction,
    VerdictBadge,
)
from opterra.models.normalized import NormalizedInput
from opterra.models.results import Verdict

from .aging import WearProfile
from .anode import AnodeShield
from .constants import (
    ACTUARIAL_CEILING,
    ACTUARIAL_FAIL_PROB,
    ELEVATED_BIO_GAP,
    ELEVATED_FAIL_PROB,
    FRAGILE_AGE,
    LIABILITY_FAIL_PROB,
    LIABILITY_RISK_LEVEL,
    LOCATION_RISK,
    OPTIMIZATION_MAX_AGE,
    PSI_CODE_LIMIT,
    PSI_CRITICAL,
    PSI_OPTIMIZATION_FLOOR,
    REPLACE_NOW_FAIL_PROB,
    REPLACE_NOW_MARGIN,
    SEDIMENT_FLUSH_LBS,
    SEDIMENT_LOCKOUT_LBS,
    YOUNG_UNIT_AGE,
)

logger = structlog.get_logger()


def location_risk(location: LocationType, is_finished_area: bool) -> int:
    """Water-damage liability of the install location, 1 (low) to 4 (extreme)."""
    unfinished, finished = LOCATION_RISK[location]
    return finished if is_finished_area else unfinished


class RuleContext(BaseModel):
    """Everything a rule guard may look at."""

    inp: NormalizedInput
    wear: WearProfile
    shield: AnodeShield
    fail_prob: float
    risk_level: int

    @property
    def bio_age(self) -> float:
        return self.wear.bio_age

    @property
    def ceiling(self) -> float:
        return ACTUARIAL_CEILING[self.inp.technology]

    @property
    def is_fragile(self) -> bool:
        """Old or worn enough that disturbing sediment risks starting a leak."""
        return self.inp.calendar_age > FRAGILE_AGE or self.fail_prob >= ACTUARIAL_FAIL_PROB

    @property
    def has_tank(self) -> bool:
        return not self.inp.is_tankless

    class Config:
        """Pydantic configuration."""

        frozen = True


class Outcome(NamedTuple):
    action: VerdictAction
    badge: VerdictBadge
    title: str
    reason: str
    repairable: bool
    urgent: bool = False


class VerdictRule(NamedTuple):
    rule_id: str
    tier: RuleTier
    guard: Callable[[RuleContext], bool]
    build: Callable[[RuleContext], Outcome]


# =============================================================================
# Tier 1 - Breach
# =============================================================================


def _breach(ctx: RuleContext) -> Outcome:
    where = "heat exchanger" if ctx.inp.is_tankless else "tank body"
    return Outcome(
        VerdictAction.REPLACE_NOW,
        VerdictBadge.CRITICAL,
        "Containment Breach",
        f"Water is escaping from the {where} itself. The pressure vessel has failed and cannot be repaired.",
        repairable=False,
        urgent=True,
    )


# =============================================================================
# Tier 2 - Safety
# =============================================================================


def _vessel_fatigue_guard(ctx: RuleContext) -> bool:
    inp = ctx.inp
    return (
        ctx.has_tank
        and inp.house_psi > PSI_CRITICAL
        and not inp.has_prv
        and not inp.has_functional_expansion_tank
        and ctx.bio_age >= FRAGILE_AGE
    )


def _vessel_fatigue(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPLACE_NOW,
        VerdictBadge.CRITICAL,
        "Vessel Fatigue",
        f"Years of unregulated pressure ({ctx.inp.house_psi:.0f} PSI, no PRV or expansion tank) "
        "have fatigued the tank steel past safe limits.",
        repairable=False,
        urgent=True,
    )


def _external_corrosion(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPLACE_SOON,
        VerdictBadge.REPLACE,
        "External Corrosion",
        "Visible rust on the vessel means corrosion has broken through the protective lining.",
        repairable=False,
    )


# =============================================================================
# Tier 3 - Lockout
# =============================================================================


def _sediment_lockout(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPLACE_SOON,
        VerdictBadge.REPLACE,
        "Sediment Lockout",
        f"An estimated {ctx.wear.sediment_lbs:.1f} lbs of hardened sediment has built up. "
        "Flushing now could dislodge it and open a leak.",
        repairable=False,
    )


def _scale_lockout(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPLACE_SOON,
        VerdictBadge.REPLACE,
        "Scale Lockout",
        f"Heat exchanger scale score is {ctx.wear.scale_score:.0f}/100. "
        "Flow is restricted beyond what descaling can recover.",
        repairable=False,
    )


def _scale_run_to_failure(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.MONITOR,
        VerdictBadge.MONITOR,
        "Run to Failure",
        "This unit has run on hard water without descaling for years. "
        "Descaling now risks exposing pinholes; budget for replacement instead.",
        repairable=False,
    )


# =============================================================================
# Tier 4 - Actuarial
# =============================================================================


def _actuarial_guard(ctx: RuleContext) -> bool:
    return ctx.bio_age >= ctx.ceiling or ctx.fail_prob >= ACTUARIAL_FAIL_PROB


def _actuarial_expiry(ctx: RuleContext) -> Outcome:
    severe = (
        ctx.bio_age >= ctx.ceiling * REPLACE_NOW_MARGIN or ctx.fail_prob >= REPLACE_NOW_FAIL_PROB
    )
    reason = (
        f"Wear-adjusted age is {ctx.bio_age:.1f} years against a {ctx.ceiling:.0f}-year service "
        f"life, with a {ctx.fail_prob:.0f}% chance of failure in the next year."
    )
    if ctx.inp.has_repairable_leak:
        return Outcome(
            VerdictAction.REPLACE_SOON,
            VerdictBadge.REPLACE,
            "End of Service Life",
            reason + " The current leak is at a fitting and can be repaired while you plan the replacement.",
            repairable=True,
        )
    if severe:
        return Outcome(
            VerdictAction.REPLACE_NOW,
            VerdictBadge.CRITICAL,
            "End of Service Life",
            reason,
            repairable=False,
            urgent=True,
        )
    return Outcome(
        VerdictAction.REPLACE_SOON,
        VerdictBadge.REPLACE,
        "Approaching End of Life",
        reason,
        repairable=False,
    )


def _liability_hazard(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPLACE_SOON,
        VerdictBadge.REPLACE,
        "Liability Hazard",
        f"A {ctx.fail_prob:.0f}% failure risk in a {ctx.inp.location.value.lower().replace('_', ' ')} "
        "location could cause extensive water damage.",
        repairable=False,
    )


# =============================================================================
# Tier 5 - Repairable
# =============================================================================


def _repair(title: str, reason: str) -> Callable[[RuleContext], Outcome]:
    def build(ctx: RuleContext) -> Outcome:
        return Outcome(VerdictAction.REPAIR, VerdictBadge.SERVICE, title, reason, repairable=True)

    return build


def _maintain(title: str, reason: str) -> Callable[[RuleContext], Outcome]:
    def build(ctx: RuleContext) -> Outcome:
        return Outcome(VerdictAction.MAINTAIN, VerdictBadge.SERVICE, title, reason, repairable=True)

    return build


def _critical_pressure(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPAIR,
        VerdictBadge.SERVICE,
        "High Pressure",
        f"House pressure is {ctx.inp.house_psi:.0f} PSI, above the 80 PSI code limit. "
        "Install a pressure-reducing valve.",
        repairable=True,
    )


def _pressure_optimization(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.REPAIR,
        VerdictBadge.SERVICE,
        "Pressure Optimization",
        f"House pressure of {ctx.inp.house_psi:.0f} PSI is within code but accelerates wear. "
        f"Regulating it adds about {ctx.wear.life_extension:.1f} years of life.",
        repairable=True,
    )


# =============================================================================
# Tier 6 - Nominal
# =============================================================================


def _flush_risk(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.MONITOR,
        VerdictBadge.MONITOR,
        "Flush Not Recommended",
        f"{ctx.wear.sediment_lbs:.1f} lbs of sediment in an aging tank. "
        "Flushing could disturb the seal it has formed; monitor instead.",
        repairable=False,
    )


def _elevated_wear(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.MONITOR,
        VerdictBadge.MONITOR,
        "Elevated Wear",
        f"This unit is aging faster than the calendar (wear-adjusted age {ctx.bio_age:.1f} years). "
        "Keep an eye on it.",
        repairable=True,
    )


def _healthy(ctx: RuleContext) -> Outcome:
    return Outcome(
        VerdictAction.PASS,
        VerdictBadge.OPTIMAL,
        "System Healthy",
        "No significant findings. Keep up routine maintenance.",
        repairable=True,
    )


RULES: tuple[VerdictRule, ...] = (
    VerdictRule("containment_breach", RuleTier.BREACH, lambda c: c.inp.is_breach, _breach),
    VerdictRule("vessel_fatigue", RuleTier.SAFETY, _vessel_fatigue_guard, _vessel_fatigue),
    VerdictRule(
        "external_corrosion", RuleTier.SAFETY, lambda c: c.inp.visual_rust, _external_corrosion
    ),
    VerdictRule(
        "sediment_lockout",
        RuleTier.LOCKOUT,
        lambda c: c.has_tank and c.wear.sediment_lbs >= SEDIMENT_LOCKOUT_LBS,
        _sediment_lockout,
    ),
    VerdictRule(
        "scale_lockout",
        RuleTier.LOCKOUT,
        lambda c: c.wear.descale_status == DescaleStatus.LOCKOUT,
        _scale_lockout,
    ),
    VerdictRule(
        "scale_run_to_failure",
        RuleTier.LOCKOUT,
        lambda c: c.wear.descale_status == DescaleStatus.RUN_TO_FAILURE,
        _scale_run_to_failure,
    ),
    VerdictRule("actuarial_expiry", RuleTier.ACTUARIAL, _actuarial_guard, _actuarial_expiry),
    VerdictRule(
        "liability_hazard",
        RuleTier.ACTUARIAL,
        lambda c: c.risk_level >= LIABILITY_RISK_LEVEL and c.fail_prob >= LIABILITY_FAIL_PROB,
        _liability_hazard,
    ),
    VerdictRule(
        "fitting_leak",
        RuleTier.REPAIRABLE,
        lambda c: c.inp.has_repairable_leak,
        _repair(
            "Fitting Leak",
            "The leak is at a fitting, valve or drain pan, not the tank. A plumber can repair it.",
        ),
    ),
    VerdictRule(
        "missing_expansion_tank",
        RuleTier.REPAIRABLE,
        lambda c: c.has_tank
        and c.inp.is_closed_loop
        and c.inp.expansion_tank_status == ExpansionTankStatus.MISSING,
        _repair(
            "Missing Expansion Tank",
            "This is a closed-loop system with no expansion tank. "
            "Every heating cycle spikes the pressure inside the tank.",
        ),
    ),
    VerdictRule(
        "waterlogged_expansion_tank",
        RuleTier.REPAIRABLE,
        lambda c: c.has_tank and c.inp.expansion_tank_status == ExpansionTankStatus.WATERLOGGED,
        _repair(
            "Waterlogged Expansion Tank",
            "The expansion tank bladder has failed and no longer absorbs thermal expansion.",
        ),
    ),
    VerdictRule(
        "failed_prv",
        RuleTier.REPAIRABLE,
        lambda c: c.inp.has_prv and c.inp.house_psi > PSI_CODE_LIMIT,
        _repair(
            "Failed PRV",
            "A pressure-reducing valve is installed but pressure is still above 80 PSI. The valve has failed.",
        ),
    ),
    VerdictRule(
        "critical_pressure",
        RuleTier.REPAIRABLE,
        lambda c: c.inp.house_psi > PSI_CODE_LIMIT,
        _critical_pressure,
    ),
    VerdictRule(
        "hybrid_filter_clogged",
        RuleTier.REPAIRABLE,
        lambda c: c.inp.air_filter_status == AirFilterStatus.CLOGGED,
        _repair(
            "Clogged Air Filter",
            "The heat pump air filter is clogged. The unit is falling back to its resistance elements.",
        ),
    ),
    VerdictRule(
        "hybrid_condensate_blocked",
        RuleTier.REPAIRABLE,
        lambda c: c.inp.is_hybrid and c.inp.is_condensate_clear is False,
        _repair(
            "Blocked Condensate Drain",
            "The condensate drain is blocked. Standing water can damage the unit and the floor.",
        ),
    ),
    VerdictRule(
        "performance_flush",
        RuleTier.REPAIRABLE,
        lambda c: c.has_tank and c.wear.sediment_lbs >= SEDIMENT_FLUSH_LBS and not c.is_fragile,
        _maintain(
            "Flush Recommended",
            "Sediment has built up enough to reduce efficiency. A flush restores performance.",
        ),
    ),
    VerdictRule(
        "descale_due",
        RuleTier.REPAIRABLE,
        lambda c: c.wear.descale_status in (DescaleStatus.DUE, DescaleStatus.CRITICAL),
        _maintain(
            "Descale Due",
            "Scale is building on the heat exchanger. A descale restores flow and efficiency.",
        ),
    ),
    VerdictRule(
        "anode_refresh",
        RuleTier.REPAIRABLE,
        lambda c: c.has_tank and c.shield.life < 1.0 and c.inp.calendar_age < YOUNG_UNIT_AGE,
        _maintain(
            "Anode Replacement",
            "The sacrificial anode is nearly spent on a young tank. Replacing it now protects the steel.",
        ),
    ),
    VerdictRule(
        "hybrid_filter_dirty",
        RuleTier.REPAIRABLE,
        lambda c: c.inp.air_filter_status == AirFilterStatus.DIRTY,
        _maintain("Dirty Air Filter", "The heat pump air filter is dirty. Clean it to restore efficiency."),
    ),
    VerdictRule(
        "pressure_optimization",
        RuleTier.REPAIRABLE,
        lambda c: PSI_OPTIMIZATION_FLOOR <= c.inp.house_psi <= PSI_CODE_LIMIT
        and not c.inp.has_prv
        and c.inp.calendar_age < OPTIMIZATION_MAX_AGE,
        _pressure_optimization,
    ),
    VerdictRule(
        "flush_risk",
        RuleTier.NOMINAL,
        lambda c: c.has_tank and c.is_fragile and c.wear.sediment_lbs >= SEDIMENT_FLUSH_LBS,
        _flush_risk,
    ),
    VerdictRule(
        "elevated_wear",
        RuleTier.NOMINAL,
        lambda c: c.fail_prob >= ELEVATED_FAIL_PROB
        or c.bio_age >= c.inp.calendar_age + ELEVATED_BIO_GAP,
        _elevated_wear,
    ),
    VerdictRule("healthy", RuleTier.NOMINAL, lambda c: True, _healthy),
)


def evaluate(ctx: RuleContext, rules: tuple[VerdictRule, ...] = RULES) -> Verdict:
    """Return the verdict of the first rule whose guard holds."""
    for rule in rules:
        if rule.guard(ctx):
            outcome = rule.build(ctx)
            logger.debug("verdict_rule_fired", rule_id=rule.rule_id, tier=int(rule.tier))
            return Verdict(
                action=outcome.action,
                badge=outcome.badge,
                title=outcome.title,
                reason=outcome.reason,
                repairable=outcome.repairable,
                urgent=outcome.urgent,
                rule_id=rule.rule_id,
                tier=rule.tier,
            )
    raise ValueError("verdict rule table has no terminal rule")
