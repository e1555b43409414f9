"""
Installation and bundled infrastructure.

Chooses the install preset for a replacement and detects the system work
that should be bundled with it. None of this repairs the old unit: it is
work that protects the new one.

Every tier includes code violations, the top three tiers add protective
infrastructure, and only the top two add optimizations.
"""

from opterra.models.enums import (
    ExpansionTankStatus,
    InstallComplexity,
    IssueCategory,
    LocationType,
    QualityTier,
)
from opterra.models.normalized import NormalizedInput
from opterra.models.pricing import InfrastructureIssue, InstallPreset, TierIssueCost

from .constants import (
    HARD_WATER_GPG,
    PRV_RECOMMENDED_PSI,
    PSI_CODE_LIMIT,
    PSI_SAFE_LIMIT,
    SOFTENER_FAILED_GPG,
    TIER_BASE_COST,
)

BASE_LABOR_COST = 400.0

INSTALL_PRESETS: dict[InstallComplexity, InstallPreset] = {
    InstallComplexity.STANDARD: InstallPreset(
        complexity=InstallComplexity.STANDARD,
        labor_cost=BASE_LABOR_COST,
        materials_cost=100.0,
        permit_cost=75.0,
        estimated_hours=2.5,
        description="Like-for-like swap in an accessible location.",
    ),
    InstallComplexity.CODE_UPGRADE: InstallPreset(
        complexity=InstallComplexity.CODE_UPGRADE,
        labor_cost=BASE_LABOR_COST * 1.4,
        materials_cost=200.0,
        permit_cost=75.0,
        estimated_hours=4.0,
        description="Swap plus expansion tank and/or PRV to bring the system to code.",
    ),
    InstallComplexity.DIFFICULT_ACCESS: InstallPreset(
        complexity=InstallComplexity.DIFFICULT_ACCESS,
        labor_cost=BASE_LABOR_COST * 1.6,
        materials_cost=100.0,
        permit_cost=75.0,
        estimated_hours=5.0,
        description="Attic, crawlspace or upper-floor install.",
    ),
}

DIFFICULT_LOCATIONS = frozenset(
    {LocationType.ATTIC, LocationType.CRAWLSPACE, LocationType.UPPER_FLOOR}
)

TIER_ORDER = [
    QualityTier.BUILDER,
    QualityTier.STANDARD,
    QualityTier.PROFESSIONAL,
    QualityTier.PREMIUM,
]

CATEGORY_TIERS: dict[IssueCategory, list[QualityTier]] = {
    IssueCategory.VIOLATION: TIER_ORDER,
    IssueCategory.INFRASTRUCTURE: TIER_ORDER[1:],
    IssueCategory.OPTIMIZATION: TIER_ORDER[2:],
}

PRV_COST = (350.0, 550.0)
EXPANSION_TANK_COST = (250.0, 400.0)


def choose_install_complexity(inp: NormalizedInput) -> InstallComplexity:
    """Difficult access wins over code upgrades; both cost more than a plain swap."""
    if inp.location in DIFFICULT_LOCATIONS:
        return InstallComplexity.DIFFICULT_ACCESS
    needs_expansion_tank = (
        not inp.is_tankless
        and inp.is_closed_loop
        and inp.expansion_tank_status != ExpansionTankStatus.FUNCTIONAL
    )
    needs_prv = inp.house_psi > PSI_CODE_LIMIT and not inp.has_prv
    if needs_expansion_tank or needs_prv:
        return InstallComplexity.CODE_UPGRADE
    return InstallComplexity.STANDARD


def unit_only_cost(inp: NormalizedInput) -> float:
    """Tier table price for the unit alone, with the standard install taken out."""
    installed = TIER_BASE_COST[inp.fuel_type][inp.tier]
    return max(installed - INSTALL_PRESETS[InstallComplexity.STANDARD].total_cost, 1.0)


def static_installed_cost(inp: NormalizedInput) -> float:
    """Tier table unit price plus the install preset this unit needs."""
    return unit_only_cost(inp) + INSTALL_PRESETS[choose_install_complexity(inp)].total_cost


def _issue(
    issue_id: str,
    name: str,
    category: IssueCategory,
    cost: tuple[float, float],
    description: str,
) -> InfrastructureIssue:
    return InfrastructureIssue(
        issue_id=issue_id,
        name=name,
        category=category,
        cost_min=cost[0],
        cost_max=cost[1],
        description=description,
        included_in_tiers=CATEGORY_TIERS[category],
    )


def detect_infrastructure_issues(inp: NormalizedInput) -> list[InfrastructureIssue]:
    """
    Infrastructure work to bundle with a replacement.

    ``is_closed_loop`` already folds in a PRV or a recirculation pump. A
    failed softener (hardness above 15 GPG) is quoted as a replacement and
    never also as a service.
    """
    issues: list[InfrastructureIssue] = []
    tank = inp.expansion_tank_status
    hardness = inp.street_hardness

    # Code violations
    if not inp.is_tankless and inp.is_closed_loop and tank == ExpansionTankStatus.MISSING:
        issues.append(
            _issue(
                "exp_tank_required",
                "Expansion Tank Install",
                IssueCategory.VIOLATION,
                EXPANSION_TANK_COST,
                "Required in closed loop systems to prevent thermal expansion damage.",
            )
        )
    if inp.house_psi > PSI_CODE_LIMIT:
        if inp.has_prv:
            issues.append(
                _issue(
                    "prv_failed",
                    "PRV Replacement",
                    IssueCategory.VIOLATION,
                    PRV_COST,
                    "Existing PRV has failed: pressure exceeds safe limits.",
                )
            )
        else:
            issues.append(
                _issue(
                    "prv_critical",
                    "PRV Installation (Critical)",
                    IssueCategory.VIOLATION,
                    PRV_COST,
                    "Water pressure exceeds safe limits and a PRV is required.",
                )
            )

    # Protective infrastructure
    if not inp.has_prv and PRV_RECOMMENDED_PSI <= inp.house_psi <= PSI_CODE_LIMIT:
        issues.append(
            _issue(
                "prv_recommended",
                "PRV Installation",
                IssueCategory.INFRASTRUCTURE,
                PRV_COST,
                "Pressure is within code but high; a PRV reduces stress on the new unit.",
            )
        )
    if inp.has_softener and HARD_WATER_GPG < hardness <= SOFTENER_FAILED_GPG:
        issues.append(
            _issue(
                "softener_service",
                "Water Softener Service",
                IssueCategory.INFRASTRUCTURE,
                (200.0, 350.0),
                "Softener is not working effectively; a service restores protection.",
            )
        )
    if not inp.is_tankless and inp.is_closed_loop and tank == ExpansionTankStatus.WATERLOGGED:
        issues.append(
            _issue(
                "exp_tank_replace",
                "Expansion Tank Replacement",
                IssueCategory.INFRASTRUCTURE,
                EXPANSION_TANK_COST,
                "Existing expansion tank is waterlogged and should be replaced.",
            )
        )

    # Optimizations
    if inp.has_softener and hardness > SOFTENER_FAILED_GPG:
        issues.append(
            _issue(
                "softener_replace",
                "Water Softener Replacement",
                IssueCategory.OPTIMIZATION,
                (2200.0, 3000.0),
                "Softener is no longer effective; a replacement restores full protection.",
            )
        )
    if not inp.has_prv and PSI_SAFE_LIMIT <= inp.house_psi < PRV_RECOMMENDED_PSI:
        issues.append(
            _issue(
                "prv_longevity",
                "PRV for Extended Life",
                IssueCategory.OPTIMIZATION,
                PRV_COST,
                "A proactive PRV reduces wear and extends the new unit's life.",
            )
        )
    if not inp.has_softener and hardness > HARD_WATER_GPG:
        issues.append(
            _issue(
                "softener_new",
                "Water Softener Installation",
                IssueCategory.OPTIMIZATION,
                (2400.0, 3200.0),
                "Hard water detected; a softener protects the new unit from scale.",
            )
        )

    return issues


def issues_for_tier(issues: list[InfrastructureIssue], tier: QualityTier) -> list[InfrastructureIssue]:
    return [issue for issue in issues if tier in issue.included_in_tiers]


def issue_costs(issues: list[InfrastructureIssue]) -> tuple[float, float]:
    """Total (low, high) cost range of ``issues``."""
    return (
        sum(issue.cost_min for issue in issues),
        sum(issue.cost_max for issue in issues),
    )


def tier_issue_costs(issues: list[InfrastructureIssue]) -> list[TierIssueCost]:
    """Bundled infrastructure cost range per tier, cheapest tier first."""
    costs = []
    for tier in TIER_ORDER:
        included = issues_for_tier(issues, tier)
        low, high = issue_costs(included)
        costs.append(
            TierIssueCost(
                tier=tier,
                issue_ids=[issue.issue_id for issue in included],
                low=low,
                high=high,
            )
        )
    return costs
