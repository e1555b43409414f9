"""
Pytest configuration and shared fixtures for the Opterra test suite.

Snapshot factories build lenient raw inputs the same way the intake forms do;
storage fixtures point DuckDB at a throwaway file per test.
"""

import os
import tempfile
import uuid as _uuid
from datetime import date, datetime
from typing import Any, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

# Set testing environment BEFORE importing app. DuckDB creates the file;
# :memory: gives each thread its own database.
_test_db_path = os.path.join(tempfile.gettempdir(), f"opterra_test_{_uuid.uuid4().hex[:8]}.duckdb")
os.environ["DB_PATH"] = _test_db_path
os.environ["GUIDANCE_API_URL"] = ""


# ---------------------------------------------------------------------------
# Model factories, reusable across all test suites
# ---------------------------------------------------------------------------

from opterra.engine.water_heater.anode import anode_shield
from opterra.engine.water_heater.aging import compute_wear
from opterra.engine.water_heater.failure import failure_probability
from opterra.engine.water_heater.normalizer import normalize
from opterra.engine.water_heater.stress import compute_stress
from opterra.engine.water_heater.verdict import RuleContext, location_risk
from opterra.models.enums import QualityTier
from opterra.models.inputs import (
    AssessmentInput,
    ConditionObservations,
    EnvironmentObservations,
    UnitProfile,
)
from opterra.models.pricing import PriceQuote
from opterra.models.softener import SoftenerInput
from opterra.storage.duckdb_storage import DuckDBStorage

ASSESSED_ON = date(2026, 3, 1)


def make_snapshot(
    unit: Optional[dict[str, Any]] = None,
    environment: Optional[dict[str, Any]] = None,
    condition: Optional[dict[str, Any]] = None,
    assessed_on: date = ASSESSED_ON,
    replacement_cost: Optional[float] = None,
) -> AssessmentInput:
    """Factory for raw snapshots; a nominal 3-year-old gas tank unless overridden."""
    unit_fields = dict(
        calendar_age=3,
        fuel_type="GAS",
        tank_capacity=50,
        warranty_years=6,
        location="GARAGE",
        temp_setting="NORMAL",
    )
    env_fields = dict(house_psi=55, hardness_gpg=5, people_count=3, usage_type="normal")
    cond_fields: dict[str, Any] = {}
    unit_fields.update(unit or {})
    env_fields.update(environment or {})
    cond_fields.update(condition or {})
    return AssessmentInput(
        unit=UnitProfile(**unit_fields),
        environment=EnvironmentObservations(**env_fields),
        condition=ConditionObservations(**cond_fields),
        assessed_on=assessed_on,
        replacement_cost=replacement_cost,
    )


def make_context(snapshot: AssessmentInput) -> RuleContext:
    """Run the pipeline up to the verdict and return the rule context."""
    inp = normalize(snapshot)
    shield = anode_shield(inp)
    stress = compute_stress(inp, shield)
    wear = compute_wear(inp, shield, stress)
    return RuleContext(
        inp=inp,
        wear=wear,
        shield=shield,
        fail_prob=failure_probability(inp, wear.bio_age),
        risk_level=location_risk(inp.location, inp.is_finished_area),
    )


def make_softener(**overrides) -> SoftenerInput:
    """Factory for softener inputs; a 5-year-old city-water unit unless overridden."""
    fields: dict[str, Any] = dict(
        age_years=5,
        hardness_gpg=15,
        people_count=3,
        is_city_water=True,
        has_carbon_filter=False,
        capacity_grains=32000,
        assessed_on=ASSESSED_ON,
    )
    fields.update(overrides)
    return SoftenerInput(**fields)


def make_quote(
    quote_key: str = "model:rheem:XG50T06EC36U1",
    retail_price: float = 750.0,
    fetched_at: Optional[datetime] = None,
    **overrides,
) -> PriceQuote:
    """Factory for cached price quotes."""
    fields: dict[str, Any] = dict(
        quote_key=quote_key,
        retail_price=retail_price,
        wholesale_price=round(retail_price * 0.72, 2),
        manufacturer="Rheem",
        model_number="XG50T06EC36U1",
        tier=QualityTier.BUILDER,
        fuel_type="GAS",
        capacity_gallons=50,
        confidence=0.8,
        source="ai_lookup",
        fetched_at=fetched_at or datetime.utcnow(),
    )
    fields.update(overrides)
    return PriceQuote(**fields)


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def nominal_snapshot():
    """Healthy 3-year-old gas tank at 55 PSI and 5 GPG."""
    return make_snapshot()


@pytest.fixture
def storage(tmp_path):
    """Fresh DuckDB storage backed by a per-test file."""
    return DuckDBStorage(db_path=str(tmp_path / f"opterra_{uuid4().hex[:8]}.duckdb"))


@pytest.fixture
def client():
    """FastAPI test client for integration tests."""
    from opterra.main import app

    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def request_headers():
    """Request headers carrying a caller-supplied request ID."""
    return {"X-Request-ID": str(uuid4())}
