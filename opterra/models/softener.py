"""
Water softener assessment models.

Softeners wear like cars rather than failing catastrophically: valve seals
wear with every regeneration cycle (the odometer), the resin bed decays
chemically, and salt is burned at a predictable rate.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from .enums import ServicePriority, SoftenerAction, SoftenerBadge
from .inputs import coerce_optional_number


# (low, high) for each numeric reading; out-of-range readings are clamped
READING_BOUNDS = {
    "age_years": (0.0, 50.0),
    "hardness_gpg": (0.0, 100.0),
    "people_count": (1.0, 20.0),
    "capacity_grains": (1000.0, 200000.0),
}


class SoftenerInput(BaseModel):
    """
    Observations about one softener.

    Attributes:
        age_years: Years since installation
        hardness_gpg: Supply hardness in grains per gallon
        people_count: Household occupancy
        is_city_water: Chlorinated municipal supply (False = well water)
        has_carbon_filter: Carbon pre-filter protecting the resin
        capacity_grains: Rated grain capacity
        assessed_on: Date of the observations, anchors the salt refill date
    """

    age_years: float = Field(default=5.0, ge=0, le=50)
    hardness_gpg: float = Field(default=15.0, ge=0, le=100)
    people_count: int = Field(default=3, ge=1, le=20)
    is_city_water: bool = True
    has_carbon_filter: bool = False
    capacity_grains: float = Field(default=32000.0, ge=1000)
    assessed_on: date

    @field_validator("age_years", "hardness_gpg", "people_count", "capacity_grains", mode="before")
    @classmethod
    def clamp_reading(cls, v: Any, info) -> Any:
        """Unreadable numbers fall back to the field default; the rest are clamped into range."""
        value = coerce_optional_number(v)
        if value is None:
            return cls.model_fields[info.field_name].default
        low, high = READING_BOUNDS[info.field_name]
        value = min(max(value, low), high)
        if info.field_name == "people_count":
            return max(int(round(value)), 1)
        return value

    class Config:
        """Pydantic configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "age_years": 7,
                "hardness_gpg": 18,
                "people_count": 4,
                "is_city_water": True,
                "has_carbon_filter": False,
                "capacity_grains": 32000,
                "assessed_on": "2026-03-01",
            }
        }


class SoftenerMetrics(BaseModel):
    """Derived softener wear figures."""

    odometer: int = Field(ge=0, description="Total regeneration cycles to date")
    resin_health: int = Field(ge=0, le=100, description="Remaining resin capacity (%)")
    salt_usage_lbs_per_month: float = Field(ge=0)
    regen_interval_days: float = Field(ge=0)
    daily_load_grains: int = Field(ge=0)
    regens_per_year: int = Field(ge=0)

    class Config:
        """Pydantic configuration."""

        frozen = True


class SoftenerRecommendation(BaseModel):
    """Single recommendation chosen by the softener rule order."""

    action: SoftenerAction
    badge: SoftenerBadge
    reason: str

    class Config:
        """Pydantic configuration."""

        frozen = True


class ServiceMenuItem(BaseModel):
    """Priced service offered for the softener."""

    item_id: str
    name: str
    trigger: str
    price: float = Field(ge=0)
    pitch: str
    priority: ServicePriority

    class Config:
        """Pydantic configuration."""

        frozen = True


class SaltSchedule(BaseModel):
    """Salt consumption and refill planning."""

    burn_rate_lbs_per_month: int = Field(ge=0)
    days_until_refill: int = Field(ge=0)
    next_refill_date: date
    monthly_bags_40lb: int = Field(ge=0)

    class Config:
        """Pydantic configuration."""

        frozen = True


class SoftenerLifespan(BaseModel):
    """Projected end of life from each wear clock (years of age)."""

    resin_death_years: float
    mechanical_death_years: Optional[float] = None
    effective_death_years: float

    class Config:
        """Pydantic configuration."""

        frozen = True


class SoftenerResult(BaseModel):
    """Complete softener assessment."""

    metrics: SoftenerMetrics
    recommendation: SoftenerRecommendation
    service_menu: list[ServiceMenuItem] = Field(default_factory=list)
    salt: SaltSchedule
    lifespan: SoftenerLifespan

    class Config:
        """Pydantic configuration."""

        frozen = True
