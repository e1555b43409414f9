"""
Enumeration types for the Opterra assessment engine.

This module defines all enum types used across the system for type safety
and consistent validation. All enums inherit from str to ensure JSON
serialization compatibility.
"""

from enum import Enum, IntEnum


class FuelType(str, Enum):
    """
    Fuel / technology of the water heater as recorded on the data plate.

    Raw input strings that do not match a member exactly are resolved to the
    nearest class by the input normalizer.
    """

    GAS = "GAS"
    ELECTRIC = "ELECTRIC"
    HYBRID = "HYBRID"
    TANKLESS_GAS = "TANKLESS_GAS"
    TANKLESS_ELECTRIC = "TANKLESS_ELECTRIC"


class TechnologyClass(str, Enum):
    """Technology family that selects the actuarial curve and rule thresholds."""

    TANK = "tank"
    HYBRID = "hybrid"
    TANKLESS = "tankless"


class LocationType(str, Enum):
    """Installation location, used to grade water-damage liability."""

    ATTIC = "ATTIC"
    UPPER_FLOOR = "UPPER_FLOOR"
    MAIN_LIVING = "MAIN_LIVING"
    BASEMENT = "BASEMENT"
    GARAGE = "GARAGE"
    EXTERIOR = "EXTERIOR"
    CRAWLSPACE = "CRAWLSPACE"


class TempSetting(str, Enum):
    """Thermostat setting (HOT = 140F and above)."""

    LOW = "LOW"
    NORMAL = "NORMAL"
    HOT = "HOT"


class UsageType(str, Enum):
    """Household hot water demand."""

    LIGHT = "light"
    NORMAL = "normal"
    HEAVY = "heavy"


class ExpansionTankStatus(str, Enum):
    """
    Condition of the thermal expansion tank.

    A waterlogged tank (failed bladder) gives no protection and is treated
    the same as a missing one by the stress model.
    """

    FUNCTIONAL = "FUNCTIONAL"
    WATERLOGGED = "WATERLOGGED"
    MISSING = "MISSING"


class LeakSource(str, Enum):
    """
    Where an observed leak originates.

    Only TANK_BODY and HEAT_EXCHANGER are breaches of the primary vessel;
    fittings, valves and drain pans are repairable.
    """

    NONE = "NONE"
    TANK_BODY = "TANK_BODY"
    HEAT_EXCHANGER = "HEAT_EXCHANGER"
    FITTING_VALVE = "FITTING_VALVE"
    DRAIN_PAN = "DRAIN_PAN"


class SoftenerSaltStatus(str, Enum):
    """Salt level observed in the softener brine tank."""

    OK = "OK"
    EMPTY = "EMPTY"
    UNKNOWN = "UNKNOWN"


class AirFilterStatus(str, Enum):
    """Heat pump air filter condition (hybrid units only)."""

    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    CLOGGED = "CLOGGED"


class QualityTier(str, Enum):
    """Product quality tier, inferred from warranty length."""

    BUILDER = "BUILDER"
    STANDARD = "STANDARD"
    PROFESSIONAL = "PROFESSIONAL"
    PREMIUM = "PREMIUM"


class HardnessSource(str, Enum):
    """Where the effective hardness figure came from."""

    MEASURED = "MEASURED"
    INFERRED = "INFERRED"
    STREET = "STREET"


class AnodeStatus(str, Enum):
    """Remaining sacrificial anode protection."""

    PROTECTED = "protected"
    INSPECT = "inspect"
    REPLACE = "replace"
    NAKED = "naked"


class FlushStatus(str, Enum):
    """Sediment-driven flush recommendation for tank units."""

    OPTIMAL = "optimal"
    ADVISORY = "advisory"
    DUE = "due"
    CRITICAL = "critical"
    LOCKOUT = "lockout"


class DescaleStatus(str, Enum):
    """Scale-driven descale recommendation for tankless units."""

    OPTIMAL = "optimal"
    DUE = "due"
    CRITICAL = "critical"
    LOCKOUT = "lockout"
    RUN_TO_FAILURE = "run_to_failure"


class VerdictAction(str, Enum):
    """Closed set of actions the verdict rule engine can recommend."""

    REPLACE_NOW = "REPLACE_NOW"
    REPLACE_SOON = "REPLACE_SOON"
    REPAIR = "REPAIR"
    MAINTAIN = "MAINTAIN"
    MONITOR = "MONITOR"
    PASS = "PASS"


class VerdictBadge(str, Enum):
    """Severity badge shown alongside a verdict."""

    CRITICAL = "CRITICAL"
    REPLACE = "REPLACE"
    SERVICE = "SERVICE"
    MONITOR = "MONITOR"
    OPTIMAL = "OPTIMAL"


class RuleTier(IntEnum):
    """
    Priority tier of a verdict rule. Lower values are more severe and are
    always evaluated first.
    """

    BREACH = 1
    SAFETY = 2
    LOCKOUT = 3
    ACTUARIAL = 4
    REPAIRABLE = 5
    NOMINAL = 6


class BudgetUrgency(str, Enum):
    """How soon the household needs replacement funds."""

    IMMEDIATE = "IMMEDIATE"
    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"


class CostSource(str, Enum):
    """Provenance of the replacement cost used by the financial projector."""

    SUPPLIED = "supplied"
    ESTIMATED = "estimated"


class TaskType(str, Enum):
    """Maintenance task category."""

    FLUSH = "flush"
    ANODE = "anode"
    DESCALE = "descale"
    FILTER = "filter"
    DRAIN = "drain"
    INFRASTRUCTURE_FIX = "infrastructure_fix"


class TaskUrgency(str, Enum):
    """
    Maintenance task urgency. LOCKED marks a task that must not be performed
    (e.g. flushing a tank past the sediment lockout).
    """

    OVERDUE = "overdue"
    DUE = "due"
    SCHEDULE = "schedule"
    UPCOMING = "upcoming"
    LOCKED = "locked"


class InstallComplexity(str, Enum):
    """Installation labor preset used by the pricing collaborator."""

    STANDARD = "STANDARD"
    CODE_UPGRADE = "CODE_UPGRADE"
    DIFFICULT_ACCESS = "DIFFICULT_ACCESS"


class IssueCategory(str, Enum):
    """
    Kind of infrastructure work bundled with a replacement.

    Code violations are fixed in every tier, protective infrastructure in the
    top three and optimizations in the top two.
    """

    VIOLATION = "VIOLATION"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    OPTIMIZATION = "OPTIMIZATION"


class GuidanceSource(str, Enum):
    """Where a guidance text came from."""

    AI = "ai"
    FALLBACK = "fallback"


class SoftenerAction(str, Enum):
    """Recommendations produced by the softener assessment."""

    MONITOR = "MONITOR"
    VALVE_REBUILD = "VALVE_REBUILD"
    RESIN_DETOX = "RESIN_DETOX"
    REBED_OR_REPLACE = "REBED_OR_REPLACE"
    REPLACE_UNIT = "REPLACE_UNIT"
    UPGRADE_EFFICIENCY = "UPGRADE_EFFICIENCY"


class SoftenerBadge(str, Enum):
    """Badge attached to a softener recommendation."""

    HEALTHY = "HEALTHY"
    SEAL_WEAR = "SEAL_WEAR"
    RESIN_DEGRADED = "RESIN_DEGRADED"
    RESIN_FAILURE = "RESIN_FAILURE"
    MECHANICAL_FAILURE = "MECHANICAL_FAILURE"
    HIGH_WASTE = "HIGH_WASTE"


class ServicePriority(str, Enum):
    """Priority of an item on the softener service menu."""

    CRITICAL = "critical"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"
