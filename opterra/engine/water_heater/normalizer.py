"""
Input normalizer.

Turns a lenient ``AssessmentInput`` into a fully-populated ``NormalizedInput``.
Missing or out-of-range readings are defaulted or clamped here so that the
rest of the pipeline never sees a gap; the engine always produces a verdict.
"""

from typing import Optional

from opterra.models.enums import (
    AirFilterStatus,
    ExpansionTankStatus,
    FuelType,
    HardnessSource,
    LeakSource,
    LocationType,
    QualityTier,
    SoftenerSaltStatus,
    TechnologyClass,
    TempSetting,
    UsageType,
)
from opterra.models.inputs import AssessmentInput
from opterra.models.normalized import NormalizedInput

from .constants import (
    AGE_BOUNDS,
    CAPACITY_BOUNDS,
    GALLONS_PER_PERSON_PER_DAY,
    HARDNESS_BOUNDS,
    PEOPLE_BOUNDS,
    PREMIUM_WARRANTY,
    PROFESSIONAL_WARRANTY,
    PSI_BOUNDS,
    SOFTENED_HARDNESS_GPG,
    SOFTENER_CAPACITY_DEFAULT,
    SOFTENER_SAFETY_FACTOR,
    STANDARD_WARRANTY,
    UNDERSIZED_REGEN_DAYS,
    UNKNOWN_SALT_HARDNESS_GPG,
    WARRANTY_BOUNDS,
)


def clamp(value: Optional[float], bounds: tuple) -> float:
    """Substitute the default for a missing value, then clamp to [low, high]."""
    default, low, high = bounds
    if value is None:
        return default
    return min(max(value, low), high)


def resolve_fuel_type(raw: Optional[str]) -> FuelType:
    """
    Map a free-text fuel description to the nearest known fuel class.

    Anything unrecognized falls back to GAS, the most common tank curve.
    """
    if not raw:
        return FuelType.GAS
    text = raw.strip().upper().replace("_", " ").replace("-", " ")
    if "TANKLESS" in text or "ON DEMAND" in text:
        return FuelType.TANKLESS_ELECTRIC if "ELECTRIC" in text else FuelType.TANKLESS_GAS
    if "HEAT PUMP" in text or "HYBRID" in text:
        return FuelType.HYBRID
    if "ELECTRIC" in text:
        return FuelType.ELECTRIC
    return FuelType.GAS


def technology_for(fuel_type: FuelType) -> TechnologyClass:
    if fuel_type in (FuelType.TANKLESS_GAS, FuelType.TANKLESS_ELECTRIC):
        return TechnologyClass.TANKLESS
    if fuel_type == FuelType.HYBRID:
        return TechnologyClass.HYBRID
    return TechnologyClass.TANK


def tier_for_warranty(warranty_years: float) -> QualityTier:
    if warranty_years >= PREMIUM_WARRANTY:
        return QualityTier.PREMIUM
    if warranty_years >= PROFESSIONAL_WARRANTY:
        return QualityTier.PROFESSIONAL
    if warranty_years >= STANDARD_WARRANTY:
        return QualityTier.STANDARD
    return QualityTier.BUILDER


def softener_regen_interval_days(capacity_grains: float, people: int, street_gpg: float) -> float:
    """Days between softener regenerations for the household's daily grain load."""
    daily_load = max(people * GALLONS_PER_PERSON_PER_DAY * street_gpg, 1.0)
    return capacity_grains * SOFTENER_SAFETY_FACTOR / daily_load


def resolve_hardness(
    street: float,
    measured: Optional[float],
    has_softener: bool,
    salt_status: SoftenerSaltStatus,
    undersized: bool,
) -> tuple[float, HardnessSource]:
    """
    Effective hardness reaching the heater.

    A measured value always wins. Otherwise a softener with salt brings the
    water down to near zero (an undersized one only halves the excess), an
    empty brine tank passes street water through, and an unknown salt level
    is assumed to be a modest baseline.
    """
    if measured is not None:
        return clamp(measured, HARDNESS_BOUNDS), HardnessSource.MEASURED
    if not has_softener:
        return street, HardnessSource.STREET
    if salt_status == SoftenerSaltStatus.EMPTY:
        return street, HardnessSource.INFERRED
    if salt_status == SoftenerSaltStatus.UNKNOWN:
        return min(UNKNOWN_SALT_HARDNESS_GPG, street), HardnessSource.INFERRED
    if undersized:
        softened = SOFTENED_HARDNESS_GPG + max(street - SOFTENED_HARDNESS_GPG, 0.0) / 2
        return softened, HardnessSource.INFERRED
    return min(SOFTENED_HARDNESS_GPG, street), HardnessSource.INFERRED


def _years_ago(value: Optional[float], calendar_age: float) -> float:
    if value is None:
        return calendar_age
    return min(max(value, 0.0), calendar_age)


def normalize(snapshot: AssessmentInput) -> NormalizedInput:
    """Resolve every field of a raw snapshot to a concrete, clamped value."""
    unit = snapshot.unit
    env = snapshot.environment
    cond = snapshot.condition

    fuel_type = resolve_fuel_type(unit.fuel_type)
    technology = technology_for(fuel_type)
    is_tankless = technology == TechnologyClass.TANKLESS
    is_hybrid = technology == TechnologyClass.HYBRID

    calendar_age = clamp(unit.calendar_age, AGE_BOUNDS)
    warranty_years = clamp(unit.warranty_years, WARRANTY_BOUNDS)
    tank_capacity = 0.0 if is_tankless else clamp(unit.tank_capacity, CAPACITY_BOUNDS)

    people_default, people_low, people_high = PEOPLE_BOUNDS
    people_count = people_default if env.people_count is None else int(round(env.people_count))
    people_count = min(max(people_count, people_low), people_high)

    street_hardness = clamp(env.hardness_gpg, HARDNESS_BOUNDS)
    salt_status = env.softener_salt_status or SoftenerSaltStatus.OK
    softener_capacity = env.softener_capacity_grains
    if softener_capacity is None or softener_capacity <= 0:
        softener_capacity = SOFTENER_CAPACITY_DEFAULT
    softener_undersized = env.has_softener and (
        softener_regen_interval_days(softener_capacity, people_count, street_hardness)
        < UNDERSIZED_REGEN_DAYS
    )
    effective_hardness, hardness_source = resolve_hardness(
        street_hardness,
        env.measured_hardness_gpg,
        env.has_softener,
        salt_status,
        softener_undersized,
    )

    if env.expansion_tank_status is not None:
        expansion_tank_status = env.expansion_tank_status
    elif env.has_expansion_tank:
        expansion_tank_status = ExpansionTankStatus.FUNCTIONAL
    else:
        expansion_tank_status = ExpansionTankStatus.MISSING

    leak_source = cond.leak_source or LeakSource.NONE
    is_leaking = cond.is_leaking or leak_source != LeakSource.NONE
    if is_leaking and leak_source == LeakSource.NONE:
        # Unattributed leak: assume the vessel itself
        leak_source = LeakSource.HEAT_EXCHANGER if is_tankless else LeakSource.TANK_BODY

    years_since_flush = _years_ago(cond.last_flush_years_ago, calendar_age)
    if cond.last_flush_years_ago is None and cond.is_annually_maintained:
        years_since_flush = min(1.0, calendar_age)

    return NormalizedInput(
        calendar_age=calendar_age,
        fuel_type=fuel_type,
        technology=technology,
        tank_capacity=tank_capacity,
        warranty_years=warranty_years,
        tier=tier_for_warranty(warranty_years),
        manufacturer=unit.manufacturer,
        model_number=unit.model_number,
        location=unit.location or LocationType.GARAGE,
        is_finished_area=unit.is_finished_area,
        temp_setting=unit.temp_setting or TempSetting.NORMAL,
        house_psi=clamp(env.house_psi, PSI_BOUNDS),
        street_hardness=street_hardness,
        effective_hardness=effective_hardness,
        hardness_source=hardness_source,
        has_prv=env.has_prv,
        expansion_tank_status=expansion_tank_status,
        is_closed_loop=env.is_closed_loop or env.has_prv or env.has_circ_pump,
        has_circ_pump=env.has_circ_pump,
        circ_pump_has_timer=env.has_circ_pump and env.circ_pump_has_timer,
        has_softener=env.has_softener,
        softener_salt_status=salt_status,
        softener_capacity_grains=softener_capacity,
        softener_undersized=softener_undersized,
        has_carbon_filter=env.has_carbon_filter,
        people_count=people_count,
        usage_type=env.usage_type or UsageType.NORMAL,
        is_leaking=is_leaking,
        leak_source=leak_source,
        visual_rust=cond.visual_rust,
        years_since_flush=years_since_flush,
        years_since_anode=_years_ago(cond.last_anode_replace_years_ago, calendar_age),
        years_since_descale=_years_ago(cond.last_descale_years_ago, calendar_age),
        never_descaled=cond.last_descale_years_ago is None,
        is_annually_maintained=cond.is_annually_maintained,
        air_filter_status=(cond.air_filter_status or AirFilterStatus.CLEAN) if is_hybrid else None,
        is_condensate_clear=(
            (cond.is_condensate_clear if cond.is_condensate_clear is not None else True)
            if is_hybrid
            else None
        ),
        assessed_on=snapshot.assessed_on,
        replacement_cost=snapshot.replacement_cost,
    )
