"""
Normalized assessment input.

Produced by the input normalizer: every field is populated, clamped to a
physically sensible range and resolved to a concrete enum member. All
downstream engine stages read this model only.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from .enums import (
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

BREACH_SOURCES = frozenset({LeakSource.TANK_BODY, LeakSource.HEAT_EXCHANGER})
REPAIRABLE_LEAK_SOURCES = frozenset({LeakSource.FITTING_VALVE, LeakSource.DRAIN_PAN})


class NormalizedInput(BaseModel):
    """Fully-populated, clamped view of an ``AssessmentInput``."""

    # Unit
    calendar_age: float = Field(ge=0)
    fuel_type: FuelType
    technology: TechnologyClass
    tank_capacity: float = Field(ge=0)
    warranty_years: float = Field(gt=0)
    tier: QualityTier
    manufacturer: Optional[str] = None
    model_number: Optional[str] = None
    location: LocationType
    is_finished_area: bool
    temp_setting: TempSetting

    # Environment
    house_psi: float
    street_hardness: float = Field(ge=0)
    effective_hardness: float = Field(ge=0)
    hardness_source: HardnessSource
    has_prv: bool
    expansion_tank_status: ExpansionTankStatus
    is_closed_loop: bool = Field(description="Explicit flag, PRV or recirculation pump")
    has_circ_pump: bool
    circ_pump_has_timer: bool
    has_softener: bool
    softener_salt_status: SoftenerSaltStatus
    softener_capacity_grains: float
    softener_undersized: bool
    has_carbon_filter: bool
    people_count: int = Field(ge=1)
    usage_type: UsageType

    # Condition
    is_leaking: bool
    leak_source: LeakSource
    visual_rust: bool
    years_since_flush: float = Field(ge=0)
    years_since_anode: float = Field(ge=0)
    years_since_descale: float = Field(ge=0)
    never_descaled: bool
    is_annually_maintained: bool
    air_filter_status: Optional[AirFilterStatus] = None
    is_condensate_clear: Optional[bool] = None

    # Snapshot
    assessed_on: date
    replacement_cost: Optional[float] = None

    @property
    def is_breach(self) -> bool:
        """Leak from the primary pressure vessel."""
        return self.is_leaking and self.leak_source in BREACH_SOURCES

    @property
    def has_repairable_leak(self) -> bool:
        """Leak from a fitting, valve or drain pan."""
        return self.is_leaking and self.leak_source in REPAIRABLE_LEAK_SOURCES

    @property
    def has_functional_expansion_tank(self) -> bool:
        return self.expansion_tank_status == ExpansionTankStatus.FUNCTIONAL

    @property
    def is_tankless(self) -> bool:
        return self.technology == TechnologyClass.TANKLESS

    @property
    def is_hybrid(self) -> bool:
        return self.technology == TechnologyClass.HYBRID

    class Config:
        """Pydantic configuration."""

        frozen = True
