"""
Collaborators around the assessment engine: replacement pricing and AI
guidance. Both are wired into the routers through the getters below.
"""

from typing import Optional

import structlog

from opterra.config import get_settings
from opterra.services.guidance import (
    GuidanceService,
    GuidanceUnavailableError,
    static_guidance,
)
from opterra.services.pricing import (
    INSTALL_PRESETS,
    PriceLookupClient,
    PricingLookupError,
    PricingService,
    choose_install_complexity,
    model_quote_key,
    spec_quote_key,
)
from opterra.storage import StorageError, get_storage

logger = structlog.get_logger()


def get_pricing_service() -> Optional[PricingService]:
    """Pricing service over the shared storage backend, or None when storage is down."""
    settings = get_settings()
    try:
        storage = get_storage()
    except StorageError as e:
        logger.warning("pricing_service_unavailable", error=str(e))
        return None
    return PricingService(storage=storage, stale_after_days=settings.price_stale_after_days)


def get_guidance_service() -> GuidanceService:
    """Guidance service configured from settings (static-only when no URL is set)."""
    settings = get_settings()
    return GuidanceService(
        api_url=settings.guidance_api_url,
        api_key=settings.guidance_api_key,
        timeout_seconds=settings.guidance_timeout_seconds,
    )


__all__ = [
    "INSTALL_PRESETS",
    "GuidanceService",
    "GuidanceUnavailableError",
    "PriceLookupClient",
    "PricingLookupError",
    "PricingService",
    "choose_install_complexity",
    "get_guidance_service",
    "get_pricing_service",
    "model_quote_key",
    "spec_quote_key",
    "static_guidance",
]
