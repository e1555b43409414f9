#!/usr/bin/env python3
"""
Opterra Price Seeder

Refreshes the replacement price cache from the AI pricing lookup endpoint.
Each catalog model is looked up once (unless a fresh quote is already cached)
and stored under its model key; per-class quotes (fuel, capacity, tier) are
then rebuilt from the median of the model quotes in that class. A failed
lookup is recorded in the run manifest and never aborts the run.

Usage:
    python scripts/seed_prices.py
    python scripts/seed_prices.py --force
    python scripts/seed_prices.py --lookup-url http://localhost:9000/price
"""

import argparse
import asyncio
import logging
import sys
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional
from uuid import uuid4

import numpy as np
import structlog

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from opterra.config import get_settings
from opterra.models.enums import QualityTier
from opterra.models.pricing import PriceQuote
from opterra.models.system import SeedRunManifest
from opterra.services.pricing import (
    PriceLookupClient,
    PricingLookupError,
    PricingService,
    model_quote_key,
    spec_quote_key,
)
from opterra.storage.base import StorageBackend
from opterra.storage.duckdb_storage import DuckDBStorage, StorageError

logger = structlog.get_logger()


class CatalogModel(NamedTuple):
    manufacturer: str
    model_number: str
    tier: QualityTier
    fuel_type: str
    capacity_gallons: float


CATALOG: tuple[CatalogModel, ...] = (
    # Gas, 50 gallon
    CatalogModel("Rheem", "XG50T06EC36U1", QualityTier.BUILDER, "GAS", 50),
    CatalogModel("Rheem", "PROG50-36P RH67", QualityTier.STANDARD, "GAS", 50),
    CatalogModel("Rheem", "PROG50S38N RH95", QualityTier.PROFESSIONAL, "GAS", 50),
    CatalogModel("Bradford White", "RG250T6N", QualityTier.STANDARD, "GAS", 50),
    CatalogModel("Bradford White", "RG250S6N", QualityTier.PROFESSIONAL, "GAS", 50),
    CatalogModel("A.O. Smith", "GPVT-50", QualityTier.BUILDER, "GAS", 50),
    CatalogModel("A.O. Smith", "GPVL-50", QualityTier.PROFESSIONAL, "GAS", 50),
    CatalogModel("A.O. Smith", "GCG-50", QualityTier.STANDARD, "GAS", 50),
    # Electric, 50 gallon
    CatalogModel("Rheem", "XE50T10H45U0", QualityTier.BUILDER, "ELECTRIC", 50),
    CatalogModel("Rheem", "PROE50 T2 RH95", QualityTier.PROFESSIONAL, "ELECTRIC", 50),
    CatalogModel("A.O. Smith", "ENS-50", QualityTier.STANDARD, "ELECTRIC", 50),
    CatalogModel("Bradford White", "RE350T6", QualityTier.STANDARD, "ELECTRIC", 50),
    # 40 gallon
    CatalogModel("Rheem", "XG40T06EC36U1", QualityTier.BUILDER, "GAS", 40),
    CatalogModel("A.O. Smith", "GCG-40", QualityTier.STANDARD, "GAS", 40),
    CatalogModel("Rheem", "XE40M06ST45U1", QualityTier.BUILDER, "ELECTRIC", 40),
    # Hybrid and tankless
    CatalogModel("Rheem", "PROPH50 T2 RH350 D15", QualityTier.PREMIUM, "HYBRID", 50),
    CatalogModel("A.O. Smith", "HPTS-50", QualityTier.PROFESSIONAL, "HYBRID", 50),
    CatalogModel("Navien", "NPE-240A2", QualityTier.PREMIUM, "TANKLESS_GAS", 0),
    CatalogModel("Rinnai", "RU199iN", QualityTier.PROFESSIONAL, "TANKLESS_GAS", 0),
)


def run_status(attempted: int, succeeded: int) -> str:
    if succeeded == attempted:
        return "completed"
    if succeeded == 0:
        return "failed"
    return "partial"


def build_class_quotes(quotes: list[PriceQuote], now: datetime) -> list[PriceQuote]:
    """One quote per (fuel, capacity, tier) class at the median model price."""
    groups: dict[tuple[str, float, QualityTier], list[PriceQuote]] = defaultdict(list)
    for quote in quotes:
        groups[(quote.fuel_type, quote.capacity_gallons, quote.tier)].append(quote)

    class_quotes = []
    for (fuel_type, capacity, tier), members in groups.items():
        retail = float(np.median([q.retail_price for q in members]))
        wholesale = [q.wholesale_price for q in members if q.wholesale_price]
        class_quotes.append(
            PriceQuote(
                quote_key=spec_quote_key(fuel_type, capacity, tier),
                retail_price=round(retail, 2),
                wholesale_price=round(float(np.median(wholesale)), 2) if wholesale else None,
                tier=tier,
                fuel_type=fuel_type,
                capacity_gallons=capacity,
                confidence=round(float(np.mean([q.confidence for q in members])), 2),
                source="ai_lookup_median",
                fetched_at=now,
            )
        )
    return class_quotes


async def seed_prices(
    storage: StorageBackend,
    client: PriceLookupClient,
    catalog: tuple[CatalogModel, ...] = CATALOG,
    stale_after_days: int = 30,
    force: bool = False,
) -> SeedRunManifest:
    """
    Refresh every catalog model and rebuild the class quotes.

    Returns:
        The run manifest, already written to storage
    """
    pricing = PricingService(storage=storage, stale_after_days=stale_after_days)
    manifest = SeedRunManifest(run_id=str(uuid4()), started_at=datetime.utcnow())
    errors: dict[str, str] = {}
    quotes: list[PriceQuote] = []

    for entry in catalog:
        key = model_quote_key(entry.manufacturer, entry.model_number)

        try:
            cached: Optional[PriceQuote] = None if force else storage.read_price_quote(key)
            if cached is not None and not pricing.is_stale(cached):
                logger.info("price_quote_fresh_skipped", quote_key=key)
                quotes.append(cached)
                continue

            quote = await client.lookup_model(
                entry.manufacturer,
                entry.model_number,
                entry.tier,
                entry.fuel_type,
                entry.capacity_gallons,
            )
            storage.write_price_quote(quote)
            quotes.append(quote)
            logger.info("price_quote_seeded", quote_key=key, retail_price=quote.retail_price)
        except (PricingLookupError, StorageError) as e:
            errors[key] = str(e)
            logger.warning("price_quote_seed_failed", quote_key=key, error=str(e))

    now = datetime.utcnow()
    for class_quote in build_class_quotes(quotes, now):
        storage.write_price_quote(class_quote)

    manifest = manifest.model_copy(
        update={
            "completed_at": now,
            "models_attempted": len(catalog),
            "models_succeeded": len(quotes),
            "errors": errors,
            "status": run_status(len(catalog), len(quotes)),
        }
    )
    storage.write_seed_run(manifest)
    return manifest


async def _run(args: argparse.Namespace) -> SeedRunManifest:
    settings = get_settings()
    storage = DuckDBStorage(db_path=settings.db_path)
    async with PriceLookupClient(
        args.lookup_url, timeout_seconds=settings.pricing_lookup_timeout_seconds
    ) as client:
        return await seed_prices(
            storage,
            client,
            stale_after_days=settings.price_stale_after_days,
            force=args.force,
        )


def main():
    """Main entry point for the price seeding script."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Refresh the Opterra replacement price cache")
    parser.add_argument(
        "--lookup-url",
        type=str,
        default=settings.pricing_lookup_url,
        help="AI pricing lookup endpoint (default: PRICING_LOOKUP_URL)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Look up every model even when a fresh quote is cached",
    )
    args = parser.parse_args()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    if not args.lookup_url:
        logger.error("pricing_lookup_url_missing")
        print("\nSet PRICING_LOOKUP_URL or pass --lookup-url.\n")
        sys.exit(2)

    logger.info("price_seeder_started", models=len(CATALOG), force=args.force)

    try:
        manifest = asyncio.run(_run(args))
    except StorageError as e:
        logger.error("price_seeding_failed", error=str(e), exc_info=True)
        print(f"\nSeeding failed: {e}\n")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("PRICE SEEDING REPORT")
    print("=" * 60)
    print(f"  Run:        {manifest.run_id}")
    print(f"  Status:     {manifest.status}")
    print(f"  Succeeded:  {manifest.models_succeeded}/{manifest.models_attempted}")
    if manifest.errors:
        print(f"\n  Errors ({len(manifest.errors)}):")
        for key, error in manifest.errors.items():
            print(f"    - {key}: {error}")
    print("=" * 60)

    if manifest.status == "failed":
        sys.exit(1)


if __name__ == "__main__":
    main()
