"""
Replacement pricing collaborator.

Resolves the installed replacement cost handed to the engine:

1. Cached quote for the exact (manufacturer, model), if fresh
2. Cached quote for the (fuel type, capacity, tier) class, if fresh
3. Static tier table estimate

plus an installation preset chosen from location access and code
violations, and the infrastructure work each quality tier would bundle
with the replacement. Quotes are refreshed out of band by ``scripts/seed_prices.py``
through ``PriceLookupClient``; a quote older than the staleness window is
ignored.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

import httpx
import structlog

from opterra.engine.water_heater.installation import (
    INSTALL_PRESETS,
    choose_install_complexity,
    detect_infrastructure_issues,
    tier_issue_costs,
    unit_only_cost,
)
from opterra.engine.water_heater.normalizer import normalize
from opterra.models.enums import InstallComplexity, QualityTier
from opterra.models.inputs import AssessmentInput
from opterra.models.normalized import NormalizedInput
from opterra.models.pricing import PriceQuote, ReplacementQuote
from opterra.storage.base import StorageBackend
from opterra.storage.duckdb_storage import StorageError

logger = structlog.get_logger()


class PricingLookupError(Exception):
    """Raised when the AI pricing lookup fails for a model."""

    pass


STATIC_CONFIDENCE = 0.5
WHOLESALE_RATIO = 0.72


def model_quote_key(manufacturer: str, model_number: str) -> str:
    return f"model:{manufacturer.strip().lower()}:{model_number.strip().upper()}"


def spec_quote_key(fuel_type: str, capacity_gallons: float, tier: QualityTier) -> str:
    return f"spec:{fuel_type}:{int(round(capacity_gallons))}:{tier.value}"


class PricingService:
    """
    Resolves replacement quotes from the DuckDB cache.

    Attributes:
        storage: Quote cache backend
        stale_after_days: Quotes older than this are ignored
    """

    def __init__(self, storage: StorageBackend, stale_after_days: int = 30):
        self.storage = storage
        self.stale_after_days = stale_after_days

    def is_stale(self, quote: PriceQuote, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return now - quote.fetched_at > timedelta(days=self.stale_after_days)

    def static_quote(self, inp: NormalizedInput, now: Optional[datetime] = None) -> PriceQuote:
        """Tier table estimate for the unit alone (standard install removed)."""
        unit_price = unit_only_cost(inp)
        return PriceQuote(
            quote_key=spec_quote_key(inp.fuel_type.value, inp.tank_capacity, inp.tier),
            retail_price=unit_price,
            manufacturer=inp.manufacturer,
            model_number=inp.model_number,
            tier=inp.tier,
            fuel_type=inp.fuel_type.value,
            capacity_gallons=inp.tank_capacity,
            confidence=STATIC_CONFIDENCE,
            source="static",
            fetched_at=now or datetime.utcnow(),
        )

    def _cached(self, quote_key: str, now: datetime) -> Optional[PriceQuote]:
        try:
            quote = self.storage.read_price_quote(quote_key)
        except StorageError as e:
            logger.warning("price_cache_unavailable", quote_key=quote_key, error=str(e))
            return None
        if quote is None:
            return None
        if self.is_stale(quote, now):
            logger.info("price_quote_stale", quote_key=quote_key, fetched_at=quote.fetched_at.isoformat())
            return None
        return quote

    def unit_price(self, inp: NormalizedInput, now: Optional[datetime] = None) -> PriceQuote:
        """Best available unit price: model quote, then class quote, then static table."""
        now = now or datetime.utcnow()
        if inp.manufacturer and inp.model_number:
            quote = self._cached(model_quote_key(inp.manufacturer, inp.model_number), now)
            if quote is not None:
                return quote
        quote = self._cached(spec_quote_key(inp.fuel_type.value, inp.tank_capacity, inp.tier), now)
        if quote is not None:
            return quote
        return self.static_quote(inp, now)

    def quote_replacement(
        self,
        snapshot: AssessmentInput,
        complexity: Optional[InstallComplexity] = None,
        now: Optional[datetime] = None,
    ) -> ReplacementQuote:
        """Installed replacement quote for the unit described by ``snapshot``."""
        inp = normalize(snapshot)
        unit = self.unit_price(inp, now)
        install = INSTALL_PRESETS[complexity or choose_install_complexity(inp)]
        grand_total = round(unit.retail_price + install.total_cost, 2)
        issues = detect_infrastructure_issues(inp)

        logger.info(
            "replacement_quote_resolved",
            quote_key=unit.quote_key,
            source=unit.source,
            complexity=install.complexity.value,
            grand_total=grand_total,
            issue_count=len(issues),
        )
        return ReplacementQuote(
            unit_price=unit,
            install=install,
            grand_total=grand_total,
            issues=issues,
            tier_costs=tier_issue_costs(issues),
        )


class PriceLookupClient:
    """
    Async client for the AI pricing lookup endpoint used by the seeding job.

    Attributes:
        lookup_url: Endpoint URL
        timeout_seconds: Per-request timeout
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        lookup_url: str,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.lookup_url = lookup_url
        self.timeout_seconds = timeout_seconds
        self.transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._http_client = httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._http_client:
            await self._http_client.aclose()

    async def lookup_model(
        self,
        manufacturer: str,
        model_number: str,
        tier: QualityTier,
        fuel_type: str,
        capacity_gallons: float,
    ) -> PriceQuote:
        """
        Look up the retail price of one model.

        Raises:
            PricingLookupError: On transport errors, bad status codes or malformed payloads
        """
        if self._http_client is None:
            raise PricingLookupError("client not started; use 'async with'")

        try:
            response = await self._http_client.post(
                self.lookup_url,
                json={
                    "manufacturer": manufacturer,
                    "model_number": model_number,
                    "tier": tier.value,
                    "fuel_type": fuel_type,
                    "capacity_gallons": capacity_gallons,
                },
            )
            response.raise_for_status()
            payload: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PricingLookupError(f"lookup failed for {manufacturer} {model_number}: {e}") from e

        try:
            retail = float(payload["retail_price"])
            wholesale = payload.get("wholesale_price") or round(retail * WHOLESALE_RATIO, 2)
            return PriceQuote(
                quote_key=model_quote_key(manufacturer, model_number),
                retail_price=retail,
                wholesale_price=wholesale,
                manufacturer=manufacturer,
                model_number=model_number,
                tier=tier,
                fuel_type=fuel_type,
                capacity_gallons=capacity_gallons,
                confidence=payload.get("confidence", 0.7),
                source="ai_lookup",
                fetched_at=datetime.utcnow(),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PricingLookupError(
                f"malformed lookup payload for {manufacturer} {model_number}: {e}"
            ) from e
