"""
Assessment output models.

This module defines the derived metrics, the verdict, the financial
projection and the maintenance schedule returned by the engine. Outputs are
frozen: they are computed fresh on every call and never mutated afterwards.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .enums import (
    AnodeStatus,
    BudgetUrgency,
    CostSource,
    DescaleStatus,
    FlushStatus,
    RuleTier,
    TaskType,
    TaskUrgency,
    TechnologyClass,
    VerdictAction,
    VerdictBadge,
)


class Metrics(BaseModel):
    """
    Derived wear and risk metrics for one unit.

    Attributes:
        bio_age: Wear-adjusted age in years, never below calendar age
        calendar_age: Years since installation (normalized)
        fail_prob: Probability (%) of failure in the next 12 months, capped at 95
        health_score: 0-100 composite, presentation only
        stress_factors: Per-stressor multipliers (1.0 = no added stress)
        aging_rate: Product of all stress multipliers (naked aging rate)
        optimized_rate: Aging rate if pressure and expansion issues were fixed
        primary_stressor: Name of the dominant stressor
        shield_budget: Total anode protection budget in years
        shield_life: Remaining anode protection in years (negative = overdue)
        anode_status: Anode protection stage
        sediment_lbs: Accumulated sediment (tank units)
        sediment_rate: Sediment accrual in lbs/year
        flush_status: Flush recommendation derived from sediment
        months_to_flush: Months until sediment reaches the flush threshold
        months_to_lockout: Months until the sediment lockout, None when past
        scale_score: Heat exchanger scale score 0-100 (tankless)
        descale_status: Descale recommendation (tankless)
        risk_level: Location damage risk 1 (low) to 4 (extreme)
        years_left_current: Years until the actuarial ceiling at the current rate
        years_left_optimized: Same, with pressure and expansion stress removed
        life_extension: Years gained by the optimization
        hybrid_efficiency: Heat pump efficiency 0-100 (hybrid only)
    """

    bio_age: float = Field(ge=0)
    calendar_age: float = Field(ge=0)
    technology: TechnologyClass
    fail_prob: float = Field(ge=0, le=95)
    health_score: int = Field(ge=0, le=100)
    stress_factors: dict[str, float]
    aging_rate: float = Field(ge=1.0)
    optimized_rate: float = Field(ge=1.0)
    primary_stressor: str
    shield_budget: float = Field(ge=0)
    shield_life: float
    anode_status: AnodeStatus
    sediment_lbs: float = Field(ge=0)
    sediment_rate: float = Field(ge=0)
    flush_status: FlushStatus
    months_to_flush: Optional[int] = None
    months_to_lockout: Optional[int] = None
    scale_score: float = Field(default=0.0, ge=0, le=100)
    descale_status: Optional[DescaleStatus] = None
    risk_level: int = Field(ge=1, le=4)
    years_left_current: float = Field(ge=0)
    years_left_optimized: float = Field(ge=0)
    life_extension: float = Field(ge=0)
    hybrid_efficiency: Optional[float] = None

    @model_validator(mode="after")
    def validate_bio_age(self) -> "Metrics":
        """Wear-adjusted age can never be younger than the unit itself."""
        if self.bio_age < self.calendar_age:
            raise ValueError("bio_age must be >= calendar_age")
        return self

    class Config:
        """Pydantic configuration."""

        frozen = True


class Verdict(BaseModel):
    """
    Recommendation produced by the first verdict rule whose guard matched.

    Attributes:
        action: Recommended action
        badge: Severity badge
        title: Short headline
        reason: Human-readable explanation
        repairable: Whether repairing the unit is still worthwhile
        urgent: Whether the action should happen right away
        rule_id: Identifier of the rule that fired (audit trail)
        tier: Priority tier of that rule
    """

    action: VerdictAction
    badge: VerdictBadge
    title: str
    reason: str
    repairable: bool
    urgent: bool = False
    rule_id: str
    tier: RuleTier

    class Config:
        """Pydantic configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "action": "REPLACE_NOW",
                "badge": "CRITICAL",
                "title": "Containment Breach",
                "reason": "Water is escaping from the tank body itself.",
                "repairable": False,
                "urgent": True,
                "rule_id": "containment_breach",
                "tier": 1,
            }
        }


class FinancialProjection(BaseModel):
    """
    Replacement budget and repair-vs-replace cost forecast.

    ``repair_path`` and ``replace_path`` hold cumulative cost at the end of
    each year; index 0 is today.
    """

    replacement_cost: float = Field(ge=0)
    cost_source: CostSource
    future_replacement_cost: float = Field(ge=0)
    months_until_target: int = Field(ge=0)
    target_replacement_date: date
    monthly_savings: float = Field(ge=0)
    urgency: BudgetUrgency
    horizon_years: int = Field(ge=1)
    repair_path: list[float]
    replace_path: list[float]
    break_even_year: Optional[int] = None

    @model_validator(mode="after")
    def validate_paths(self) -> "FinancialProjection":
        """Both forecast paths cover year 0 through the horizon."""
        expected = self.horizon_years + 1
        if len(self.repair_path) != expected or len(self.replace_path) != expected:
            raise ValueError(f"cost paths must have {expected} entries")
        return self

    class Config:
        """Pydantic configuration."""

        frozen = True


class MaintenanceTask(BaseModel):
    """
    One due or upcoming service task.

    Attributes:
        task_type: Task category
        code: Specific task identifier (e.g. ``prv_install``)
        label: Display label
        months_until_due: Months until due; None when the task is locked
        urgency: Urgency tier
        is_infrastructure: Code-level defect that always sorts first
        aging_multiplier: Aging multiplier removed by fixing an infrastructure defect
        note: Short explanation
    """

    task_type: TaskType
    code: str
    label: str
    months_until_due: Optional[int] = Field(default=None, ge=0)
    urgency: TaskUrgency
    is_infrastructure: bool = False
    aging_multiplier: Optional[float] = None
    note: str = ""

    @model_validator(mode="after")
    def validate_locked(self) -> "MaintenanceTask":
        """Locked tasks have no due date; every other task has one."""
        if (self.urgency == TaskUrgency.LOCKED) != (self.months_until_due is None):
            raise ValueError("months_until_due must be None exactly when the task is locked")
        return self

    class Config:
        """Pydantic configuration."""

        frozen = True


class MaintenanceSchedule(BaseModel):
    """Ordered maintenance tasks plus an optional single-visit bundle."""

    technology: TechnologyClass
    tasks: list[MaintenanceTask] = Field(default_factory=list)
    bundle: list[str] = Field(default_factory=list, description="Task codes to do in one visit")
    bundle_reason: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        frozen = True


class AssessmentResult(BaseModel):
    """Complete engine output for one snapshot."""

    metrics: Metrics
    verdict: Verdict
    financial: FinancialProjection
    maintenance: MaintenanceSchedule

    class Config:
        """Pydantic configuration."""

        frozen = True
