"""
System health router.

Wired to:
- StorageBackend for pricing cache diagnostics
- Settings for collaborator configuration
"""

import time

from fastapi import APIRouter

from opterra import __version__
from opterra.config import get_settings
from opterra.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_startup_time = time.time()


@router.get("/health")
def system_health():
    """
    Get system health status.
    The engine has no dependencies; only the pricing cache can degrade.
    Reports how many quotes are cached and when the newest was fetched.
    """
    settings = get_settings()
    uptime = time.time() - _startup_time

    db_status = "healthy"
    cached_quotes = None
    newest_quote_at = None
    try:
        from opterra.storage import get_storage

        storage = get_storage()
        cached_quotes = storage.count_price_quotes()
        newest = storage.read_price_quotes(limit=1)
        if newest:
            newest_quote_at = newest[0].fetched_at.isoformat()
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.warning("pricing_cache_health_failed", error=str(e))

    return {
        "success": True,
        "data": {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": __version__,
            "uptime_seconds": round(uptime, 1),
            "pricing_cache": db_status,
            "cached_quotes": cached_quotes,
            "newest_quote_at": newest_quote_at,
            "guidance": "ai" if settings.guidance_enabled else "static",
        },
    }
