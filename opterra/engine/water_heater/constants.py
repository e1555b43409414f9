"""
Physical and actuarial constants for the water heater engine.

Pressure, hardness and sediment thresholds follow plumbing practice; the
failure curve parameters are fitted to field anchor points
(bio age 5 -> ~5%, 10 -> ~19%, 15 -> ~49%).
"""

from opterra.models.enums import (
    FuelType,
    LocationType,
    QualityTier,
    TechnologyClass,
    TempSetting,
    UsageType,
)

# Input defaults and clamps: (default, low, high)
AGE_BOUNDS = (8.0, 0.0, 50.0)
PSI_BOUNDS = (60.0, 20.0, 200.0)
HARDNESS_BOUNDS = (10.0, 0.0, 60.0)
CAPACITY_BOUNDS = (50.0, 20.0, 120.0)
WARRANTY_BOUNDS = (6.0, 3.0, 15.0)
PEOPLE_BOUNDS = (3, 1, 12)
SOFTENER_CAPACITY_DEFAULT = 32000.0

# Hardness
SOFTENED_HARDNESS_GPG = 0.5
UNKNOWN_SALT_HARDNESS_GPG = 3.0
CHEMICAL_BASELINE_GPG = 3.0
HARD_WATER_GPG = 10.0
GALLONS_PER_PERSON_PER_DAY = 75.0
SOFTENER_SAFETY_FACTOR = 0.9
UNDERSIZED_REGEN_DAYS = 3.0

# Pressure (PSI)
PSI_SAFE_LIMIT = 60.0
PSI_CODE_LIMIT = 80.0
PSI_CRITICAL = 100.0
PSI_OPTIMIZATION_FLOOR = 65.0

# Stress multipliers
PRESSURE_AT_CODE_LIMIT = 1.5
PRESSURE_SLOPE_ABOVE_CODE = 1.0 / 20.0
PRESSURE_SPIKE_FACTOR = 1.2
CHEMICAL_PER_GPG = 0.015
CHEMICAL_CAP = 1.5
CORROSION_PROTECTED_MAX = 1.1
CORROSION_NAKED = 1.6
THERMAL_EXPANSION_FACTOR = 1.5
RECIRCULATION_FACTOR = 1.2
HOT_SETTING_FACTOR = 1.25
MAX_AGING_RATE = 12.0
MAX_BIO_AGE = 50.0

# Anode
ANODE_BASE_DECAY = 1.0
ANODE_SOFTENER_DECAY = 1.4
ANODE_CIRC_PUMP_DECAY = 0.5
ANODE_INSPECT_YEARS = 2.0
ANODE_REPLACE_YEARS = 1.0

# Sediment (lbs per year per GPG)
SEDIMENT_FUEL_FACTOR = {
    FuelType.GAS: 0.044,
    FuelType.ELECTRIC: 0.08,
    FuelType.HYBRID: 0.06,
}
USAGE_FACTOR = {
    UsageType.LIGHT: 0.75,
    UsageType.NORMAL: 1.0,
    UsageType.HEAVY: 1.5,
}
SEDIMENT_TEMP_FACTOR = {
    TempSetting.LOW: 0.8,
    TempSetting.NORMAL: 1.0,
    TempSetting.HOT: 1.75,
}
FLUSH_REMOVAL = 0.5
HARDENED_FLUSH_REMOVAL = 0.05
SEDIMENT_ADVISORY_LBS = 2.0
SEDIMENT_FLUSH_LBS = 5.0
SEDIMENT_CRITICAL_LBS = 10.0
SEDIMENT_LOCKOUT_LBS = 15.0
# Sediment thresholds further out than this are reported as never reached
MAX_PROJECTION_MONTHS = 1200

# Tankless scale
SCALE_PER_GPG_YEAR = 0.8
SCALE_DUE = 10.0
SCALE_CRITICAL = 25.0
SCALE_LOCKOUT = 60.0
RUN_TO_FAILURE_AGE = 6.0

# Actuarial
ACTUARIAL_CEILING = {
    TechnologyClass.TANK: 10.0,
    TechnologyClass.HYBRID: 12.0,
    TechnologyClass.TANKLESS: 15.0,
}
# (midpoint, slope) of the logistic failure curve
FAILURE_CURVE = {
    TechnologyClass.TANK: (14.7, 0.29),
    TechnologyClass.HYBRID: (14.7, 0.29),
    TechnologyClass.TANKLESS: (20.0, 0.22),
}
MAX_FAIL_PROB = 95.0
REPLACE_NOW_MARGIN = 1.5
REPLACE_NOW_FAIL_PROB = 75.0
ACTUARIAL_FAIL_PROB = 45.0
LIABILITY_RISK_LEVEL = 3
LIABILITY_FAIL_PROB = 15.0
ELEVATED_FAIL_PROB = 15.0
ELEVATED_BIO_GAP = 2.0
FRAGILE_AGE = 10.0
YOUNG_UNIT_AGE = 6.0
OPTIMIZATION_MAX_AGE = 8.0

# Health score
HEALTH_FAIL_WEIGHT = 0.75
HEALTH_STRESS_WEIGHT = 0.25
HEALTH_STRESS_SPAN = 3.0

# Location damage risk (unfinished, finished)
LOCATION_RISK = {
    LocationType.ATTIC: (4, 4),
    LocationType.UPPER_FLOOR: (4, 4),
    LocationType.MAIN_LIVING: (3, 3),
    LocationType.BASEMENT: (2, 3),
    LocationType.GARAGE: (1, 2),
    LocationType.CRAWLSPACE: (1, 2),
    LocationType.EXTERIOR: (1, 1),
}

# Quality tier inferred from warranty years
PREMIUM_WARRANTY = 15.0
PROFESSIONAL_WARRANTY = 12.0
STANDARD_WARRANTY = 9.0

# Static replacement estimates (unit + standard install), USD
TIER_BASE_COST = {
    FuelType.GAS: {
        QualityTier.BUILDER: 1400.0,
        QualityTier.STANDARD: 1900.0,
        QualityTier.PROFESSIONAL: 2600.0,
        QualityTier.PREMIUM: 3500.0,
    },
    FuelType.ELECTRIC: {
        QualityTier.BUILDER: 1200.0,
        QualityTier.STANDARD: 1600.0,
        QualityTier.PROFESSIONAL: 2200.0,
        QualityTier.PREMIUM: 3000.0,
    },
    FuelType.HYBRID: {
        QualityTier.BUILDER: 2800.0,
        QualityTier.STANDARD: 3400.0,
        QualityTier.PROFESSIONAL: 4200.0,
        QualityTier.PREMIUM: 5200.0,
    },
    FuelType.TANKLESS_GAS: {
        QualityTier.BUILDER: 2400.0,
        QualityTier.STANDARD: 3200.0,
        QualityTier.PROFESSIONAL: 4200.0,
        QualityTier.PREMIUM: 5500.0,
    },
    FuelType.TANKLESS_ELECTRIC: {
        QualityTier.BUILDER: 1800.0,
        QualityTier.STANDARD: 2400.0,
        QualityTier.PROFESSIONAL: 3200.0,
        QualityTier.PREMIUM: 4200.0,
    },
}

# Infrastructure bundled with a replacement
PRV_RECOMMENDED_PSI = 70.0
SOFTENER_FAILED_GPG = 15.0

# Service costs, USD per visit
FLUSH_COST = 150.0
ANODE_COST = 250.0
DESCALE_COST = 200.0
FILTER_COST = 40.0
UPKEEP_COST = 75.0
EMERGENCY_REPAIR_COST = 800.0

# Maintenance scheduling
FLUSH_INTERVAL_MONTHS = 12
DESCALE_INTERVAL_HARD_MONTHS = 12
DESCALE_INTERVAL_MONTHS = 18
ANODE_HORIZON_MONTHS = 36
ANODE_SCHEDULE_MONTHS = 6
BUNDLE_WINDOW_MONTHS = 2
SOON_MAX_MONTHS = 12
MODERATE_MAX_MONTHS = 36
