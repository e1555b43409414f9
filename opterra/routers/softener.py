"""
Water softener assessment router.

Wired to:
- The softener assessment engine (odometer, resin health, salt, service menu)
"""

from fastapi import APIRouter

from opterra.engine import assess_softener
from opterra.models.softener import SoftenerInput
from opterra.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post("/assessments")
async def create_softener_assessment(data: SoftenerInput):
    """
    Assess one water softener.
    Returns wear metrics, the recommendation, the service menu and salt schedule.
    """
    result = assess_softener(data)

    logger.info(
        "softener_assessment_completed",
        action=result.recommendation.action.value,
        odometer=result.metrics.odometer,
        resin_health=result.metrics.resin_health,
        menu_items=len(result.service_menu),
    )

    return {"success": True, "data": result.model_dump(mode="json")}
