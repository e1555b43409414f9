"""
Raw assessment input models.

These models describe what a technician or homeowner observed about a water
heater. They are deliberately lenient: numeric fields that arrive as junk
(non-numeric strings, NaN, infinities) are coerced to ``None`` and enum
fields with unknown values fall back to ``None`` so that the input
normalizer can substitute defaults. An assessment is never rejected for a
bad reading.

Snapshots are frozen: the engine receives a complete, immutable picture of
the unit for every call.
"""

import math
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .enums import (
    AirFilterStatus,
    ExpansionTankStatus,
    LeakSource,
    LocationType,
    SoftenerSaltStatus,
    TempSetting,
    UsageType,
)


def coerce_optional_number(value: Any) -> Optional[float]:
    """Return a finite float or None for anything that is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def coerce_optional_enum(enum_cls: type[Enum], value: Any) -> Optional[Enum]:
    """Match a member by value or name (case-insensitive); unknown values become None."""
    if value is None or isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    for member in enum_cls:
        if text.upper() == str(member.value).upper() or text.upper() == member.name:
            return member
    return None


class UnitProfile(BaseModel):
    """
    Identity and installation of the unit being assessed.

    Attributes:
        calendar_age: Years since installation
        fuel_type: Free-text fuel/technology (resolved by the normalizer)
        tank_capacity: Nominal tank capacity in gallons (0 for tankless)
        warranty_years: Manufacturer tank warranty, drives the anode budget
        manufacturer: Optional brand name
        model_number: Optional model number from the data plate
        location: Where the unit is installed
        is_finished_area: Whether the surrounding space is finished
        temp_setting: Thermostat setting
    """

    calendar_age: Optional[float] = Field(default=None, description="Years since installation")
    fuel_type: Optional[str] = Field(default=None, description="Fuel / technology class")
    tank_capacity: Optional[float] = Field(default=None, description="Tank capacity (gallons)")
    warranty_years: Optional[float] = Field(default=None, description="Tank warranty (years)")
    manufacturer: Optional[str] = Field(default=None, description="Manufacturer")
    model_number: Optional[str] = Field(default=None, description="Model number")
    location: Optional[LocationType] = Field(default=None, description="Installation location")
    is_finished_area: bool = Field(default=False, description="Finished surroundings")
    temp_setting: Optional[TempSetting] = Field(default=None, description="Thermostat setting")

    @field_validator("calendar_age", "tank_capacity", "warranty_years", mode="before")
    @classmethod
    def lenient_number(cls, v: Any) -> Optional[float]:
        """Unreadable numbers are treated as missing."""
        return coerce_optional_number(v)

    @field_validator("location", mode="before")
    @classmethod
    def lenient_location(cls, v: Any):
        """Unknown locations are treated as missing."""
        return coerce_optional_enum(LocationType, v)

    @field_validator("temp_setting", mode="before")
    @classmethod
    def lenient_temp(cls, v: Any):
        """Unknown temperature settings are treated as missing."""
        return coerce_optional_enum(TempSetting, v)

    class Config:
        """Pydantic configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "calendar_age": 9,
                "fuel_type": "GAS",
                "tank_capacity": 50,
                "warranty_years": 6,
                "manufacturer": "Rheem",
                "location": "GARAGE",
                "is_finished_area": False,
                "temp_setting": "NORMAL",
            }
        }


class EnvironmentObservations(BaseModel):
    """
    Plumbing system and water chemistry around the unit.

    Attributes:
        house_psi: Static house water pressure
        hardness_gpg: Street (supply) hardness in grains per gallon
        measured_hardness_gpg: Hardness measured at the heater, if tested
        has_prv: Pressure-reducing valve present
        has_expansion_tank: Thermal expansion tank present
        expansion_tank_status: Condition of the expansion tank, when inspected
        is_closed_loop: Check valve / backflow preventer observed
        has_circ_pump: Recirculation pump present
        circ_pump_has_timer: Recirculation pump runs on a timer or on demand
        has_softener: Water softener installed
        softener_salt_status: Brine tank salt level
        softener_capacity_grains: Softener grain capacity
        has_carbon_filter: Carbon pre-filter ahead of the softener
        people_count: Household occupancy
        usage_type: Hot water demand
    """

    house_psi: Optional[float] = Field(default=None, description="House pressure (PSI)")
    hardness_gpg: Optional[float] = Field(default=None, description="Street hardness (GPG)")
    measured_hardness_gpg: Optional[float] = Field(
        default=None, description="Measured hardness at the heater (GPG)"
    )
    has_prv: bool = Field(default=False, description="Pressure-reducing valve present")
    has_expansion_tank: bool = Field(default=False, description="Expansion tank present")
    expansion_tank_status: Optional[ExpansionTankStatus] = Field(
        default=None, description="Expansion tank condition"
    )
    is_closed_loop: bool = Field(default=False, description="Closed-loop indicator")
    has_circ_pump: bool = Field(default=False, description="Recirculation pump present")
    circ_pump_has_timer: bool = Field(default=False, description="Pump on timer/demand control")
    has_softener: bool = Field(default=False, description="Water softener present")
    softener_salt_status: Optional[SoftenerSaltStatus] = Field(
        default=None, description="Softener salt level"
    )
    softener_capacity_grains: Optional[float] = Field(
        default=None, description="Softener grain capacity"
    )
    has_carbon_filter: bool = Field(default=False, description="Carbon pre-filter present")
    people_count: Optional[float] = Field(default=None, description="Household occupancy")
    usage_type: Optional[UsageType] = Field(default=None, description="Hot water demand")

    @field_validator(
        "house_psi",
        "hardness_gpg",
        "measured_hardness_gpg",
        "softener_capacity_grains",
        "people_count",
        mode="before",
    )
    @classmethod
    def lenient_number(cls, v: Any) -> Optional[float]:
        """Unreadable numbers are treated as missing."""
        return coerce_optional_number(v)

    @field_validator("expansion_tank_status", mode="before")
    @classmethod
    def lenient_tank_status(cls, v: Any):
        return coerce_optional_enum(ExpansionTankStatus, v)

    @field_validator("softener_salt_status", mode="before")
    @classmethod
    def lenient_salt_status(cls, v: Any):
        return coerce_optional_enum(SoftenerSaltStatus, v)

    @field_validator("usage_type", mode="before")
    @classmethod
    def lenient_usage(cls, v: Any):
        return coerce_optional_enum(UsageType, v)

    class Config:
        """Pydantic configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "house_psi": 85,
                "hardness_gpg": 14,
                "has_prv": False,
                "has_expansion_tank": False,
                "is_closed_loop": True,
                "has_softener": False,
                "people_count": 4,
                "usage_type": "normal",
            }
        }


class ConditionObservations(BaseModel):
    """
    Visual condition and service history of the unit.

    Attributes:
        is_leaking: Active leak observed
        leak_source: Where the leak originates
        visual_rust: Visible external corrosion on the vessel
        last_flush_years_ago: Years since the last sediment flush
        last_anode_replace_years_ago: Years since the anode rod was replaced
        last_descale_years_ago: Years since the last descale (tankless)
        is_annually_maintained: Unit has been flushed every year
        air_filter_status: Heat pump air filter condition (hybrid only)
        is_condensate_clear: Condensate drain flowing (hybrid only)
    """

    is_leaking: bool = Field(default=False, description="Active leak")
    leak_source: Optional[LeakSource] = Field(default=None, description="Leak origin")
    visual_rust: bool = Field(default=False, description="Visible external corrosion")
    last_flush_years_ago: Optional[float] = Field(default=None, description="Years since flush")
    last_anode_replace_years_ago: Optional[float] = Field(
        default=None, description="Years since anode replacement"
    )
    last_descale_years_ago: Optional[float] = Field(
        default=None, description="Years since descale (tankless)"
    )
    is_annually_maintained: bool = Field(default=False, description="Flushed every year")
    air_filter_status: Optional[AirFilterStatus] = Field(
        default=None, description="Air filter condition (hybrid)"
    )
    is_condensate_clear: Optional[bool] = Field(
        default=None, description="Condensate drain clear (hybrid)"
    )

    @field_validator(
        "last_flush_years_ago",
        "last_anode_replace_years_ago",
        "last_descale_years_ago",
        mode="before",
    )
    @classmethod
    def lenient_number(cls, v: Any) -> Optional[float]:
        """Unreadable numbers are treated as missing."""
        return coerce_optional_number(v)

    @field_validator("leak_source", mode="before")
    @classmethod
    def lenient_leak_source(cls, v: Any):
        return coerce_optional_enum(LeakSource, v)

    @field_validator("air_filter_status", mode="before")
    @classmethod
    def lenient_filter_status(cls, v: Any):
        return coerce_optional_enum(AirFilterStatus, v)

    class Config:
        """Pydantic configuration."""

        frozen = True


class AssessmentInput(BaseModel):
    """
    Complete, immutable input snapshot for one assessment.

    The engine never reads the wall clock: ``assessed_on`` anchors the
    target replacement date. ``replacement_cost`` is supplied by the pricing
    collaborator and treated as an opaque figure.
    """

    unit: UnitProfile = Field(default_factory=UnitProfile)
    environment: EnvironmentObservations = Field(default_factory=EnvironmentObservations)
    condition: ConditionObservations = Field(default_factory=ConditionObservations)
    assessed_on: date = Field(description="Date the observations were taken")
    replacement_cost: Optional[float] = Field(
        default=None, description="Installed replacement cost from the pricing collaborator"
    )

    @field_validator("replacement_cost", mode="before")
    @classmethod
    def lenient_cost(cls, v: Any) -> Optional[float]:
        value = coerce_optional_number(v)
        if value is not None and value <= 0:
            return None
        return value

    class Config:
        """Pydantic configuration."""

        frozen = True
