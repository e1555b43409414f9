"""
Water heater assessment router.

Wired to:
- The assessment engine (memoized by snapshot fingerprint)
- PricingService for the replacement cost the engine treats as opaque
- GuidanceService for homeowner-facing explanations
"""

import hashlib
from functools import lru_cache
from typing import Callable, Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from opterra.config import get_settings
from opterra.engine import assess
from opterra.models.guidance import GuidanceRequest
from opterra.models.inputs import AssessmentInput
from opterra.models.pricing import ReplacementQuote
from opterra.models.results import AssessmentResult
from opterra.services import (
    GuidanceService,
    PricingService,
    get_guidance_service,
    get_pricing_service,
)
from opterra.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def fingerprint(snapshot: AssessmentInput) -> str:
    """sha256 of the canonical JSON form of a snapshot."""
    return hashlib.sha256(snapshot.model_dump_json().encode("utf-8")).hexdigest()


def _build_assessor(
    maxsize: int, horizon_years: int, inflation_rate: float
) -> Callable[[str], AssessmentResult]:
    @lru_cache(maxsize=maxsize)
    def assess_canonical(canonical_json: str) -> AssessmentResult:
        snapshot = AssessmentInput.model_validate_json(canonical_json)
        return assess(snapshot, horizon_years=horizon_years, inflation_rate=inflation_rate)

    return assess_canonical


@lru_cache
def get_assessor() -> Callable[[str], AssessmentResult]:
    """Process-wide memoized assessor sized and parameterized from settings."""
    settings = get_settings()
    return _build_assessor(
        settings.assessment_cache_size,
        settings.forecast_horizon_years,
        settings.inflation_rate,
    )


def resolve_replacement_cost(
    snapshot: AssessmentInput, pricing: Optional[PricingService]
) -> tuple[AssessmentInput, Optional[ReplacementQuote]]:
    """Fill in the replacement cost from the pricing service unless one was supplied."""
    if snapshot.replacement_cost is not None or pricing is None:
        return snapshot, None
    quote = pricing.quote_replacement(snapshot)
    return snapshot.model_copy(update={"replacement_cost": quote.grand_total}), quote


def run_assessment(
    snapshot: AssessmentInput, pricing: Optional[PricingService]
) -> tuple[str, AssessmentResult, Optional[ReplacementQuote]]:
    snapshot, quote = resolve_replacement_cost(snapshot, pricing)
    key = fingerprint(snapshot)
    result = get_assessor()(snapshot.model_dump_json())
    return key, result, quote


@router.post("")
def create_assessment(
    snapshot: AssessmentInput,
    pricing: Optional[PricingService] = Depends(get_pricing_service),
):
    """
    Assess one water heater.
    Returns metrics, verdict, financial projection and maintenance schedule.
    """
    key, result, quote = run_assessment(snapshot, pricing)

    logger.info(
        "assessment_completed",
        fingerprint=key[:12],
        rule_id=result.verdict.rule_id,
        action=result.verdict.action.value,
        fail_prob=result.metrics.fail_prob,
    )

    return {
        "success": True,
        "data": {
            "fingerprint": key,
            "assessment": result.model_dump(mode="json"),
            "replacement_quote": quote.model_dump(mode="json") if quote else None,
        },
    }


@router.post("/guidance")
async def create_guidance(
    request: GuidanceRequest,
    pricing: Optional[PricingService] = Depends(get_pricing_service),
    guidance: GuidanceService = Depends(get_guidance_service),
):
    """
    Explain a finding for the homeowner.
    Falls back to static text whenever the AI endpoint is unavailable.
    """
    # Pricing reads DuckDB synchronously
    key, result, _ = await run_in_threadpool(run_assessment, request.snapshot, pricing)
    text = await guidance.guidance_for(result, request.finding)

    logger.info(
        "guidance_served",
        fingerprint=key[:12],
        finding=text.finding,
        source=text.source.value,
    )

    return {"success": True, "data": text.model_dump(mode="json")}
