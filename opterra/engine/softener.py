"""
Water softener assessment.

Softeners wear on three independent clocks:

- Valve seals (the odometer): mechanical wear from each regeneration cycle
- Resin bed: chemical decay from chlorine (city) or iron (well)
- Salt: consumption per regeneration

A softener in 20 GPG water cycles four times as often as one in 5 GPG water,
so the odometer, not the calendar, predicts valve failure.
"""

import math
from datetime import timedelta

import structlog

from opterra.models.enums import ServicePriority, SoftenerAction, SoftenerBadge
from opterra.models.softener import (
    SaltSchedule,
    ServiceMenuItem,
    SoftenerInput,
    SoftenerLifespan,
    SoftenerMetrics,
    SoftenerRecommendation,
    SoftenerResult,
)

logger = structlog.get_logger()

# Valve cycles
SEAL_LIMIT = 600
MOTOR_LIMIT = 1500

# Resin decay, % per year
CITY_WATER_DECAY = 10.0
CITY_WATER_CARBON_DECAY = 5.0
WELL_WATER_DECAY = 12.0
RESIN_FAILURE = 40
RESIN_DEGRADED = 75
RESIN_REBED = 50
RESIN_REPLACE = 30
CARBON_CRITICAL = 60

# Salt
SALT_PER_REGEN_LBS = 9.0
SALT_BAG_LBS = 40.0
BRINE_TANK_LBS = 120.0
MAX_REFILL_DAYS = 365

# Usage
GALLONS_PER_PERSON_PER_DAY = 75.0
CAPACITY_SAFETY_FACTOR = 0.9
UNDERSIZED_REGEN_DAYS = 3.0

# Service menu pricing, USD
VALVE_REBUILD_COST = 350.0
RESIN_DETOX_COST = 199.0
RESIN_REBED_COST = 600.0
CARBON_FILTER_COST = 299.0
UNIT_REPLACEMENT_COST = 2500.0


def resin_decay_rate(data: SoftenerInput) -> float:
    """Chlorine kills resin; a carbon filter halves the damage. Well water fouls it with iron."""
    if data.is_city_water:
        return CITY_WATER_CARBON_DECAY if data.has_carbon_filter else CITY_WATER_DECAY
    return WELL_WATER_DECAY


def daily_load_grains(data: SoftenerInput) -> float:
    return data.people_count * GALLONS_PER_PERSON_PER_DAY * data.hardness_gpg


def days_per_regeneration(data: SoftenerInput) -> float:
    """Days between regenerations, keeping a reserve of the rated capacity."""
    return data.capacity_grains * CAPACITY_SAFETY_FACTOR / max(daily_load_grains(data), 1.0)


def calculate_metrics(data: SoftenerInput) -> SoftenerMetrics:
    daily_load = daily_load_grains(data)
    days_per_cycle = days_per_regeneration(data)
    regens_per_year = 365.0 / days_per_cycle
    resin_health = max(0.0, 100.0 - data.age_years * resin_decay_rate(data))
    salt_per_month = 30.0 / days_per_cycle * SALT_PER_REGEN_LBS

    return SoftenerMetrics(
        odometer=int(round(data.age_years * regens_per_year)),
        resin_health=int(round(resin_health)),
        salt_usage_lbs_per_month=round(salt_per_month, 1),
        regen_interval_days=round(days_per_cycle, 2),
        daily_load_grains=int(round(daily_load)),
        regens_per_year=int(round(regens_per_year)),
    )


def recommend(metrics: SoftenerMetrics) -> SoftenerRecommendation:
    """First matching rule wins: resin failure, motor, seals, resin wear, sizing."""
    if metrics.resin_health < RESIN_FAILURE:
        return SoftenerRecommendation(
            action=SoftenerAction.REBED_OR_REPLACE,
            badge=SoftenerBadge.RESIN_FAILURE,
            reason="Resin beads have broken down and lost most of their softening capacity.",
        )
    if metrics.odometer > MOTOR_LIMIT:
        return SoftenerRecommendation(
            action=SoftenerAction.REPLACE_UNIT,
            badge=SoftenerBadge.MECHANICAL_FAILURE,
            reason=f"Odometer reads {metrics.odometer} cycles, past the {MOTOR_LIMIT}-cycle motor life.",
        )
    if metrics.odometer > SEAL_LIMIT:
        return SoftenerRecommendation(
            action=SoftenerAction.VALVE_REBUILD,
            badge=SoftenerBadge.SEAL_WEAR,
            reason=f"Odometer reads {metrics.odometer} cycles. Piston seals are likely leaking.",
        )
    if metrics.resin_health < RESIN_DEGRADED:
        return SoftenerRecommendation(
            action=SoftenerAction.RESIN_DETOX,
            badge=SoftenerBadge.RESIN_DEGRADED,
            reason="Resin beads are coated in mineral buildup. A chemical detox can restore flow.",
        )
    if metrics.regen_interval_days < UNDERSIZED_REGEN_DAYS:
        return SoftenerRecommendation(
            action=SoftenerAction.UPGRADE_EFFICIENCY,
            badge=SoftenerBadge.HIGH_WASTE,
            reason=(
                f"Unit regenerates every {metrics.regen_interval_days:.1f} days, "
                "wasting water and salt. It is undersized for this household."
            ),
        )
    return SoftenerRecommendation(
        action=SoftenerAction.MONITOR,
        badge=SoftenerBadge.HEALTHY,
        reason="System cycling normally.",
    )


def service_menu(
    data: SoftenerInput, metrics: SoftenerMetrics, recommendation: SoftenerRecommendation
) -> list[ServiceMenuItem]:
    """Priced services that apply to this softener."""
    menu = []

    def priority_for(action: SoftenerAction) -> ServicePriority:
        if recommendation.action == action:
            return ServicePriority.CRITICAL
        return ServicePriority.RECOMMENDED

    if SEAL_LIMIT < metrics.odometer <= MOTOR_LIMIT:
        menu.append(
            ServiceMenuItem(
                item_id="valve-rebuild",
                name="Valve Rebuild",
                trigger=f"Odometer > {SEAL_LIMIT} cycles",
                price=VALVE_REBUILD_COST,
                pitch=(
                    f"The control valve has cycled {metrics.odometer} times against a "
                    f"{SEAL_LIMIT}-cycle seal rating and is likely leaking to drain."
                ),
                priority=priority_for(SoftenerAction.VALVE_REBUILD),
            )
        )
    if RESIN_FAILURE <= metrics.resin_health < RESIN_DEGRADED:
        menu.append(
            ServiceMenuItem(
                item_id="resin-detox",
                name="Resin Detox",
                trigger=f"Resin health {RESIN_FAILURE}-{RESIN_DEGRADED}%",
                price=RESIN_DETOX_COST,
                pitch="A chemical detox strips the coating off the resin and restores flow rates.",
                priority=priority_for(SoftenerAction.RESIN_DETOX),
            )
        )
    if metrics.resin_health < RESIN_REBED:
        menu.append(
            ServiceMenuItem(
                item_id="resin-rebed",
                name="Resin Re-Bed",
                trigger=f"Resin health < {RESIN_REBED}%",
                price=RESIN_REBED_COST,
                pitch="The resin has lost over half its capacity. Fresh resin restores full performance.",
                priority=priority_for(SoftenerAction.REBED_OR_REPLACE),
            )
        )
    if data.is_city_water and not data.has_carbon_filter:
        menu.append(
            ServiceMenuItem(
                item_id="carbon-filter",
                name="Carbon Pre-Filter",
                trigger="City water without chlorine protection",
                price=CARBON_FILTER_COST,
                pitch="A carbon filter blocks chlorine and doubles the life of the resin bed.",
                priority=(
                    ServicePriority.CRITICAL
                    if metrics.resin_health < CARBON_CRITICAL
                    else ServicePriority.OPTIONAL
                ),
            )
        )
    if metrics.odometer > MOTOR_LIMIT or metrics.resin_health < RESIN_REPLACE:
        menu.append(
            ServiceMenuItem(
                item_id="replacement",
                name="Unit Replacement",
                trigger="End of serviceable life",
                price=UNIT_REPLACEMENT_COST,
                pitch="Repair costs exceed replacement value.",
                priority=ServicePriority.CRITICAL,
            )
        )
    return menu


def salt_schedule(data: SoftenerInput, metrics: SoftenerMetrics) -> SaltSchedule:
    burn_rate = metrics.salt_usage_lbs_per_month
    days_of_salt = BRINE_TANK_LBS / burn_rate * 30.0 if burn_rate > 0 else MAX_REFILL_DAYS
    days = int(round(min(days_of_salt, MAX_REFILL_DAYS)))
    return SaltSchedule(
        burn_rate_lbs_per_month=int(round(burn_rate)),
        days_until_refill=days,
        next_refill_date=data.assessed_on + timedelta(days=days),
        monthly_bags_40lb=math.ceil(burn_rate / SALT_BAG_LBS),
    )


def estimate_lifespan(data: SoftenerInput) -> SoftenerLifespan:
    """Age at which each clock runs out; the earlier one wins."""
    resin_death = (100.0 - RESIN_FAILURE) / resin_decay_rate(data)
    regens_per_year = 365.0 / days_per_regeneration(data)
    odometer_now = data.age_years * regens_per_year
    mechanical_death = data.age_years + max(0.0, MOTOR_LIMIT - odometer_now) / regens_per_year
    return SoftenerLifespan(
        resin_death_years=round(resin_death, 1),
        mechanical_death_years=round(mechanical_death, 1),
        effective_death_years=round(min(resin_death, mechanical_death), 1),
    )


def assess_softener(data: SoftenerInput) -> SoftenerResult:
    """Assess one water softener."""
    metrics = calculate_metrics(data)
    recommendation = recommend(metrics)

    logger.debug(
        "softener_assessment_computed",
        odometer=metrics.odometer,
        resin_health=metrics.resin_health,
        action=recommendation.action.value,
    )

    return SoftenerResult(
        metrics=metrics,
        recommendation=recommendation,
        service_menu=service_menu(data, metrics, recommendation),
        salt=salt_schedule(data, metrics),
        lifespan=estimate_lifespan(data),
    )
