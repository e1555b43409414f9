"""Pydantic models for assessment inputs, results and collaborators."""

from .enums import (
    AirFilterStatus,
    AnodeStatus,
    BudgetUrgency,
    CostSource,
    DescaleStatus,
    ExpansionTankStatus,
    FlushStatus,
    FuelType,
    GuidanceSource,
    HardnessSource,
    InstallComplexity,
    IssueCategory,
    LeakSource,
    LocationType,
    QualityTier,
    RuleTier,
    ServicePriority,
    SoftenerAction,
    SoftenerBadge,
    SoftenerSaltStatus,
    TaskType,
    TaskUrgency,
    TechnologyClass,
    TempSetting,
    UsageType,
    VerdictAction,
    VerdictBadge,
)
from .guidance import Guidance, GuidanceRequest
from .inputs import (
    AssessmentInput,
    ConditionObservations,
    EnvironmentObservations,
    UnitProfile,
)
from .normalized import NormalizedInput
from .pricing import (
    InfrastructureIssue,
    InstallPreset,
    PriceQuote,
    ReplacementQuote,
    TierIssueCost,
)
from .results import (
    AssessmentResult,
    FinancialProjection,
    MaintenanceSchedule,
    MaintenanceTask,
    Metrics,
    Verdict,
)
from .softener import (
    SaltSchedule,
    ServiceMenuItem,
    SoftenerInput,
    SoftenerLifespan,
    SoftenerMetrics,
    SoftenerRecommendation,
    SoftenerResult,
)
from .system import SeedRunManifest

__all__ = [
    "AirFilterStatus",
    "AnodeStatus",
    "AssessmentInput",
    "AssessmentResult",
    "BudgetUrgency",
    "ConditionObservations",
    "CostSource",
    "DescaleStatus",
    "EnvironmentObservations",
    "ExpansionTankStatus",
    "FinancialProjection",
    "FlushStatus",
    "FuelType",
    "Guidance",
    "GuidanceRequest",
    "GuidanceSource",
    "HardnessSource",
    "InfrastructureIssue",
    "InstallComplexity",
    "InstallPreset",
    "IssueCategory",
    "LeakSource",
    "LocationType",
    "MaintenanceSchedule",
    "MaintenanceTask",
    "Metrics",
    "NormalizedInput",
    "PriceQuote",
    "QualityTier",
    "ReplacementQuote",
    "RuleTier",
    "SaltSchedule",
    "SeedRunManifest",
    "ServiceMenuItem",
    "ServicePriority",
    "SoftenerAction",
    "SoftenerBadge",
    "SoftenerInput",
    "SoftenerLifespan",
    "SoftenerMetrics",
    "SoftenerRecommendation",
    "SoftenerResult",
    "SoftenerSaltStatus",
    "TaskType",
    "TaskUrgency",
    "TechnologyClass",
    "TempSetting",
    "TierIssueCost",
    "UnitProfile",
    "UsageType",
    "Verdict",
    "VerdictAction",
    "VerdictBadge",
]
