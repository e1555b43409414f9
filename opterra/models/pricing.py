"""
Replacement pricing models.

Quotes are cached in DuckDB by the pricing service and refreshed out of band
by the seeding job. The engine only ever sees the final installed figure.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .enums import InstallComplexity, IssueCategory, QualityTier


class PriceQuote(BaseModel):
    """
    Unit price for one model or one (fuel, capacity, tier) class.

    Attributes:
        quote_key: Cache key (``model:<manufacturer>:<model>`` or ``spec:<fuel>:<capacity>:<tier>``)
        retail_price: Retail unit price (USD)
        wholesale_price: Wholesale unit price, when known
        manufacturer: Brand
        model_number: Model number, for model-level quotes
        tier: Quality tier
        fuel_type: Fuel class
        capacity_gallons: Tank capacity (0 for tankless)
        confidence: Lookup confidence 0-1
        source: Where the price came from (``ai_lookup``, ``static``)
        fetched_at: When the quote was obtained
    """

    quote_key: str
    retail_price: float = Field(gt=0)
    wholesale_price: Optional[float] = Field(default=None, gt=0)
    manufacturer: Optional[str] = None
    model_number: Optional[str] = None
    tier: QualityTier
    fuel_type: str
    capacity_gallons: float = Field(ge=0)
    confidence: float = Field(ge=0, le=1)
    source: str
    fetched_at: datetime

    class Config:
        """Pydantic configuration."""

        frozen = True


class InstallPreset(BaseModel):
    """Installation labor, materials and permit cost for one complexity level."""

    complexity: InstallComplexity
    labor_cost: float = Field(ge=0)
    materials_cost: float = Field(ge=0)
    permit_cost: float = Field(ge=0)
    estimated_hours: float = Field(gt=0)
    description: str = ""

    @property
    def total_cost(self) -> float:
        return self.labor_cost + self.materials_cost + self.permit_cost

    class Config:
        """Pydantic configuration."""

        frozen = True


class InfrastructureIssue(BaseModel):
    """
    Infrastructure work bundled with a replacement to protect the new unit.

    Attributes:
        issue_id: Stable identifier (e.g. ``exp_tank_required``)
        name: Display name
        category: Violation, protective infrastructure or optimization
        cost_min: Low end of the installed cost (USD)
        cost_max: High end of the installed cost (USD)
        description: One-line explanation for the homeowner
        included_in_tiers: Quality tiers whose quote includes this work
    """

    issue_id: str
    name: str
    category: IssueCategory
    cost_min: float = Field(ge=0)
    cost_max: float = Field(ge=0)
    description: str = ""
    included_in_tiers: list[QualityTier]

    class Config:
        """Pydantic configuration."""

        frozen = True


class TierIssueCost(BaseModel):
    """Bundled infrastructure cost range for one quality tier."""

    tier: QualityTier
    issue_ids: list[str] = Field(default_factory=list)
    low: float = Field(default=0.0, ge=0)
    high: float = Field(default=0.0, ge=0)

    class Config:
        """Pydantic configuration."""

        frozen = True


class ReplacementQuote(BaseModel):
    """
    Unit price plus installation, the figure handed to the engine.

    ``issues`` lists the infrastructure work detected on the system and
    ``tier_costs`` the bundled cost range each quality tier would add; the
    grand total covers the unit and its install only.
    """

    unit_price: PriceQuote
    install: InstallPreset
    grand_total: float = Field(gt=0)
    stale: bool = False
    issues: list[InfrastructureIssue] = Field(default_factory=list)
    tier_costs: list[TierIssueCost] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""

        frozen = True
