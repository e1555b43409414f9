"""
Water heater assessment pipeline.

normalize -> anode shield -> stress -> aging -> failure -> health ->
verdict -> financial -> maintenance. Data flows strictly downward.

The pipeline is a pure function of its arguments: it reads no clock, no
settings and no shared state, so identical snapshots always produce
identical results. Callers that want caching memoize by input fingerprint.
"""

import structlog

from opterra.models.inputs import AssessmentInput
from opterra.models.results import AssessmentResult, Metrics

from .aging import compute_wear
from .anode import anode_shield
from .failure import failure_probability
from .financial import project
from .health import health_score
from .maintenance import schedule
from .normalizer import normalize
from .stress import compute_stress
from .verdict import RuleContext, evaluate, location_risk

logger = structlog.get_logger()


def assess(
    snapshot: AssessmentInput,
    horizon_years: int = 10,
    inflation_rate: float = 0.03,
) -> AssessmentResult:
    """
    Assess one water heater.

    Args:
        snapshot: Complete, immutable input snapshot
        horizon_years: Repair-vs-replace forecast horizon
        inflation_rate: Annual replacement cost inflation

    Returns:
        Metrics, verdict, financial projection and maintenance schedule
    """
    inp = normalize(snapshot)
    shield = anode_shield(inp)
    stress = compute_stress(inp, shield)
    wear = compute_wear(inp, shield, stress)
    fail_prob = failure_probability(inp, wear.bio_age)
    risk_level = location_risk(inp.location, inp.is_finished_area)

    ctx = RuleContext(
        inp=inp,
        wear=wear,
        shield=shield,
        fail_prob=fail_prob,
        risk_level=risk_level,
    )
    verdict = evaluate(ctx)

    financial = project(
        inp,
        shield,
        bio_age=wear.bio_age,
        aging_rate=stress.aging_rate,
        years_left=wear.years_left_current,
        verdict=verdict,
        horizon_years=horizon_years,
        inflation_rate=inflation_rate,
    )
    maintenance = schedule(ctx, stress)

    metrics = Metrics(
        bio_age=wear.bio_age,
        calendar_age=inp.calendar_age,
        technology=inp.technology,
        fail_prob=fail_prob,
        health_score=health_score(fail_prob, stress.dominant_multiplier),
        stress_factors=stress.factors,
        aging_rate=round(stress.aging_rate, 3),
        optimized_rate=round(stress.optimized_rate, 3),
        primary_stressor=stress.primary_stressor,
        shield_budget=round(shield.budget, 2),
        shield_life=round(shield.life, 2),
        anode_status=shield.status,
        sediment_lbs=wear.sediment_lbs,
        sediment_rate=wear.sediment_rate,
        flush_status=wear.flush_status,
        months_to_flush=wear.months_to_flush,
        months_to_lockout=wear.months_to_lockout,
        scale_score=wear.scale_score,
        descale_status=wear.descale_status,
        risk_level=risk_level,
        years_left_current=wear.years_left_current,
        years_left_optimized=wear.years_left_optimized,
        life_extension=wear.life_extension,
        hybrid_efficiency=wear.hybrid_efficiency,
    )

    logger.debug(
        "opterra_assessment_computed",
        technology=inp.technology.value,
        bio_age=metrics.bio_age,
        fail_prob=fail_prob,
        rule_id=verdict.rule_id,
        action=verdict.action.value,
    )

    return AssessmentResult(
        metrics=metrics,
        verdict=verdict,
        financial=financial,
        maintenance=maintenance,
    )
