"""
AI guidance collaborator.

Turns a verdict finding into a homeowner-facing headline, explanation and
recommendation. The AI endpoint is optional: when it is not configured, times
out or returns anything unusable, the static text for (finding, badge) is
returned instead. Callers never see a guidance failure.
"""

from typing import Any, Optional

import httpx
import structlog

from opterra.models.enums import GuidanceSource, VerdictBadge
from opterra.models.guidance import Guidance
from opterra.models.results import AssessmentResult
from opterra.utils.logging import log_event

logger = structlog.get_logger()


class GuidanceUnavailableError(Exception):
    """Raised when the AI guidance endpoint cannot produce usable text."""

    pass


# (headline, explanation, recommendation)
STATIC_GUIDANCE: dict[tuple[str, VerdictBadge], tuple[str, str, str]] = {
    ("containment_breach", VerdictBadge.CRITICAL): (
        "The tank itself is leaking",
        "Water is escaping from the pressure vessel. Steel tanks cannot be patched once the lining fails.",
        "Shut off the cold supply and the fuel or power, and schedule a replacement today.",
    ),
    ("vessel_fatigue", VerdictBadge.CRITICAL): (
        "Pressure is fatiguing an aging tank",
        "Street pressure above 100 PSI with no regulator or expansion tank flexes the tank on every heating cycle.",
        "Replace the unit and install a PRV and expansion tank with it.",
    ),
    ("external_corrosion", VerdictBadge.REPLACE): (
        "Rust on the outside means corrosion on the inside",
        "Visible rust on the jacket or fittings usually follows the tank lining failing from within.",
        "Plan a replacement in the next few months before it starts to leak.",
    ),
    ("sediment_lockout", VerdictBadge.REPLACE): (
        "Too much sediment to flush safely",
        "Years of mineral build-up now protect the thinned tank bottom. Flushing it now can open a leak.",
        "Do not flush. Budget for a replacement instead.",
    ),
    ("scale_lockout", VerdictBadge.REPLACE): (
        "The heat exchanger is heavily scaled",
        "Scale has built up past the point a descale can reliably clear.",
        "Plan a replacement and add water treatment for the new unit.",
    ),
    ("scale_run_to_failure", VerdictBadge.MONITOR): (
        "Too late to start descaling",
        "This unit has run on hard water for years without a descale. A first descale now can dislodge scale and cause leaks.",
        "Leave it alone and budget for a replacement when it fails.",
    ),
    ("actuarial_expiry", VerdictBadge.REPLACE): (
        "This unit has outlived its expected life",
        "Its wear-adjusted age is past the point where most units of this type fail.",
        "Replace it on your schedule now rather than after a failure.",
    ),
    ("actuarial_expiry", VerdictBadge.CRITICAL): (
        "Failure is likely soon",
        "Its wear-adjusted age is far past the expected life of this type of unit.",
        "Replace it now.",
    ),
    ("liability_hazard", VerdictBadge.REPLACE): (
        "A failure here would be expensive",
        "The unit sits where a leak would damage finished space, and its failure risk is already elevated.",
        "Replace it proactively and add a drain pan with a leak sensor.",
    ),
    ("fitting_leak", VerdictBadge.SERVICE): (
        "A fitting or valve is leaking",
        "The leak is outside the tank and can be repaired.",
        "Have a plumber replace the leaking fitting or valve.",
    ),
    ("missing_expansion_tank", VerdictBadge.SERVICE): (
        "Expansion tank required",
        "In a closed system heated water has nowhere to expand, so pressure spikes on every cycle.",
        "Install a thermal expansion tank.",
    ),
    ("waterlogged_expansion_tank", VerdictBadge.SERVICE): (
        "The expansion tank has failed",
        "A waterlogged expansion tank no longer absorbs pressure spikes.",
        "Replace the expansion tank.",
    ),
    ("failed_prv", VerdictBadge.SERVICE): (
        "The pressure regulator is not working",
        "House pressure is above code even though a PRV is installed.",
        "Replace the pressure reducing valve.",
    ),
    ("critical_pressure", VerdictBadge.SERVICE): (
        "Water pressure is above code",
        "Pressure above 80 PSI strains the tank, fixtures and appliances.",
        "Install a pressure reducing valve.",
    ),
    ("hybrid_filter_clogged", VerdictBadge.SERVICE): (
        "The heat pump filter is clogged",
        "A clogged air filter forces the unit onto its backup elements.",
        "Clean or replace the air filter.",
    ),
    ("hybrid_condensate_blocked", VerdictBadge.SERVICE): (
        "The condensate drain is blocked",
        "Water from the heat pump cannot drain and can overflow.",
        "Clear the condensate line.",
    ),
    ("pressure_optimization", VerdictBadge.SERVICE): (
        "A regulator would extend this unit's life",
        "Pressure is within code but high enough to speed up wear on a young unit.",
        "Consider a pressure reducing valve set to 50 to 60 PSI.",
    ),
    ("performance_flush", VerdictBadge.SERVICE): (
        "Flush due",
        "Sediment is collecting on the tank bottom and insulating the burner or elements.",
        "Schedule a tank flush.",
    ),
    ("descale_due", VerdictBadge.SERVICE): (
        "Descale due",
        "Scale is building in the heat exchanger.",
        "Schedule a descale.",
    ),
    ("anode_refresh", VerdictBadge.SERVICE): (
        "Anode rod due",
        "The sacrificial anode that protects the tank is nearly used up.",
        "Replace the anode rod.",
    ),
    ("hybrid_filter_dirty", VerdictBadge.SERVICE): (
        "Heat pump filter needs cleaning",
        "A dirty filter lowers heat pump efficiency.",
        "Clean the air filter.",
    ),
    ("flush_risk", VerdictBadge.MONITOR): (
        "Do not flush this tank",
        "The tank is old enough that disturbing its sediment could start a leak.",
        "Leave the sediment in place and keep an eye out for moisture.",
    ),
    ("elevated_wear", VerdictBadge.MONITOR): (
        "Wearing faster than its age",
        "Local conditions are aging this unit faster than the calendar.",
        "Keep up with maintenance and check on it yearly.",
    ),
    ("healthy", VerdictBadge.OPTIMAL): (
        "Your water heater is in good shape",
        "Nothing in this inspection needs attention.",
        "Keep up with routine maintenance.",
    ),
}

BADGE_DEFAULTS: dict[VerdictBadge, tuple[str, str, str]] = {
    VerdictBadge.CRITICAL: (
        "Immediate attention required",
        "This inspection found a condition that can cause a failure at any time.",
        "Contact a licensed plumber today.",
    ),
    VerdictBadge.REPLACE: (
        "Plan a replacement",
        "This unit is near the end of its reliable life.",
        "Budget for a replacement in the coming months.",
    ),
    VerdictBadge.SERVICE: (
        "Service recommended",
        "A repair or maintenance task will protect this unit.",
        "Schedule service with a plumber.",
    ),
    VerdictBadge.MONITOR: (
        "Keep an eye on it",
        "Nothing needs doing now, but this unit is showing wear.",
        "Re-check it in a year.",
    ),
    VerdictBadge.OPTIMAL: (
        "All clear",
        "Nothing in this inspection needs attention.",
        "Keep up with routine maintenance.",
    ),
}


def static_guidance(finding: str, badge: VerdictBadge) -> Guidance:
    """Canned guidance for a finding, falling back to the badge default."""
    headline, explanation, recommendation = STATIC_GUIDANCE.get(
        (finding, badge), BADGE_DEFAULTS[badge]
    )
    return Guidance(
        finding=finding,
        badge=badge,
        headline=headline,
        explanation=explanation,
        recommendation=recommendation,
        source=GuidanceSource.FALLBACK,
    )


class GuidanceService:
    """
    Client for the AI guidance endpoint with static fallback.

    Attributes:
        api_url: Endpoint URL; empty disables AI guidance
        api_key: Bearer token sent with each request
        timeout_seconds: Hard per-request timeout
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        api_url: str = "",
        api_key: str = "",
        timeout_seconds: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)

    def _payload(self, result: AssessmentResult, finding: str) -> dict[str, Any]:
        metrics = result.metrics
        return {
            "finding": finding,
            "badge": result.verdict.badge.value,
            "action": result.verdict.action.value,
            "verdict_reason": result.verdict.reason,
            "metrics": {
                "calendar_age": metrics.calendar_age,
                "bio_age": metrics.bio_age,
                "fail_prob": metrics.fail_prob,
                "health_score": metrics.health_score,
                "primary_stressor": metrics.primary_stressor,
                "sediment_lbs": metrics.sediment_lbs,
                "anode_status": metrics.anode_status.value,
            },
        }

    async def request_guidance(self, result: AssessmentResult, finding: str) -> Guidance:
        """
        Ask the AI endpoint to explain one finding.

        Raises:
            GuidanceUnavailableError: If the endpoint is disabled, fails or returns unusable text
        """
        if not self.enabled:
            raise GuidanceUnavailableError("guidance endpoint not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(
                    self.api_url, json=self._payload(result, finding), headers=headers
                )
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GuidanceUnavailableError(f"guidance request failed: {e}") from e

        try:
            return Guidance(
                finding=finding,
                badge=result.verdict.badge,
                headline=body["headline"],
                explanation=body["explanation"],
                recommendation=body["recommendation"],
                source=GuidanceSource.AI,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GuidanceUnavailableError(f"malformed guidance payload: {e}") from e

    async def guidance_for(
        self, result: AssessmentResult, finding: Optional[str] = None
    ) -> Guidance:
        """Guidance for ``finding`` (default: the verdict's rule), never failing."""
        finding = finding or result.verdict.rule_id
        badge = result.verdict.badge
        if not self.enabled:
            return static_guidance(finding, badge)

        try:
            return await self.request_guidance(result, finding)
        except GuidanceUnavailableError as e:
            log_event(
                logger,
                "warning",
                "guidance_fallback_used",
                finding=finding,
                badge=badge.value,
                error=str(e),
            )
            return static_guidance(finding, badge)
