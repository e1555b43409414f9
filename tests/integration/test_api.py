"""
Integration tests for the Opterra API.

All endpoints tested:
- System: health
- Assessments: assess, guidance
- Softener: assess
"""

from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from opterra.main import app
from opterra.services import GuidanceService, PricingService, get_guidance_service, get_pricing_service
from opterra.storage import get_storage
from tests.conftest import make_quote

NOMINAL_PAYLOAD = {
    "unit": {
        "calendar_age": 3,
        "fuel_type": "GAS",
        "tank_capacity": 50,
        "warranty_years": 6,
        "location": "GARAGE",
        "temp_setting": "NORMAL",
    },
    "environment": {"house_psi": 55, "hardness_gpg": 5, "people_count": 3, "usage_type": "normal"},
    "condition": {},
    "assessed_on": "2026-03-01",
}

SOFTENER_PAYLOAD = {
    "age_years": 5,
    "hardness_gpg": 15,
    "people_count": 3,
    "is_city_water": True,
    "has_carbon_filter": False,
    "capacity_grains": 32000,
    "assessed_on": "2026-03-01",
}


@pytest.fixture
def static_pricing(storage):
    """Route pricing through an empty cache so quotes come from the tier table."""
    app.dependency_overrides[get_pricing_service] = lambda: PricingService(storage=storage)
    yield
    app.dependency_overrides.pop(get_pricing_service, None)


@pytest.fixture
def no_pricing():
    """Simulate the pricing cache being down."""
    app.dependency_overrides[get_pricing_service] = lambda: None
    yield
    app.dependency_overrides.pop(get_pricing_service, None)


def ai_guidance(handler):
    """Override the guidance service with one backed by a mock transport."""
    service = GuidanceService(
        api_url="https://guidance.test/v1/explain",
        api_key="test-key",
        transport=httpx.MockTransport(handler),
    )
    app.dependency_overrides[get_guidance_service] = lambda: service


# ============================================================================
# System Endpoints
# ============================================================================


def test_root_health(client: TestClient):
    """Test GET /health returns the load balancer health check."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_system_health_success(client: TestClient):
    """Test GET /api/v1/system/health returns 200 with correct envelope."""
    response = client.get("/api/v1/system/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "status" in data["data"]
    assert "version" in data["data"]
    assert "uptime_seconds" in data["data"]
    assert "pricing_cache" in data["data"]
    assert data["data"]["guidance"] == "static"


def test_system_health_reports_newest_quote(client: TestClient):
    """Test the health check reports when the newest cached quote was fetched."""
    fetched_at = datetime(2030, 1, 1, 12, 0)
    get_storage().write_price_quote(
        make_quote(
            quote_key="spec:GAS:40:PREMIUM",
            manufacturer=None,
            model_number=None,
            fetched_at=fetched_at,
        )
    )

    data = client.get("/api/v1/system/health").json()["data"]

    assert data["cached_quotes"] >= 1
    assert data["newest_quote_at"] == fetched_at.isoformat()


def test_request_id_is_echoed(client: TestClient, request_headers: dict):
    """Test a caller-supplied X-Request-ID comes back on the response."""
    response = client.get("/health", headers=request_headers)

    assert response.headers["X-Request-ID"] == request_headers["X-Request-ID"]


def test_request_id_is_generated(client: TestClient):
    """Test a request without an ID still gets one."""
    response = client.get("/health")

    assert response.headers.get("X-Request-ID")


# ============================================================================
# Assessment Endpoints
# ============================================================================


def test_assessment_success(client: TestClient, static_pricing):
    """Test POST /api/v1/assessments returns the full assessment."""
    response = client.post("/api/v1/assessments", json=NOMINAL_PAYLOAD)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["data"]["fingerprint"]) == 64

    assessment = data["data"]["assessment"]
    assert set(assessment) == {"metrics", "verdict", "financial", "maintenance"}
    assert assessment["verdict"]["action"] == "PASS"
    assert assessment["verdict"]["rule_id"] == "healthy"
    assert assessment["metrics"]["bio_age"] >= assessment["metrics"]["calendar_age"]


def test_assessment_uses_pricing_quote(client: TestClient, static_pricing):
    """Test the replacement cost comes from the pricing service when not supplied."""
    response = client.post("/api/v1/assessments", json=NOMINAL_PAYLOAD)

    data = response.json()["data"]
    quote = data["replacement_quote"]
    assert quote is not None
    assert quote["unit_price"]["source"] == "static"
    assert quote["install"]["complexity"] == "STANDARD"
    assert quote["issues"] == []
    tiers = [cost["tier"] for cost in quote["tier_costs"]]
    assert tiers == ["BUILDER", "STANDARD", "PROFESSIONAL", "PREMIUM"]
    assert data["assessment"]["financial"]["replacement_cost"] == quote["grand_total"]
    assert data["assessment"]["financial"]["cost_source"] == "supplied"


def test_assessment_quote_bundles_infrastructure(client: TestClient, static_pricing):
    """Test the replacement quote lists the infrastructure work each tier bundles."""
    payload = {**NOMINAL_PAYLOAD, "environment": {**NOMINAL_PAYLOAD["environment"], "house_psi": 90}}
    response = client.post("/api/v1/assessments", json=payload)

    quote = response.json()["data"]["replacement_quote"]
    assert [issue["issue_id"] for issue in quote["issues"]] == ["prv_critical"]
    assert quote["issues"][0]["category"] == "VIOLATION"
    assert all(cost["low"] == 350.0 for cost in quote["tier_costs"])


def test_assessment_supplied_cost_skips_pricing(client: TestClient, static_pricing):
    """Test a supplied replacement cost is never re-priced."""
    payload = {**NOMINAL_PAYLOAD, "replacement_cost": 2150}
    response = client.post("/api/v1/assessments", json=payload)

    data = response.json()["data"]
    assert data["replacement_quote"] is None
    assert data["assessment"]["financial"]["replacement_cost"] == 2150.0


def test_assessment_without_pricing(client: TestClient, no_pricing):
    """Test the engine falls back to its own estimate when pricing is down."""
    response = client.post("/api/v1/assessments", json=NOMINAL_PAYLOAD)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["replacement_quote"] is None
    assert data["assessment"]["financial"]["cost_source"] == "estimated"


def test_assessment_fingerprint_is_stable(client: TestClient, no_pricing):
    """Test identical snapshots share a fingerprint and an identical result."""
    first = client.post("/api/v1/assessments", json=NOMINAL_PAYLOAD).json()["data"]
    second = client.post("/api/v1/assessments", json=NOMINAL_PAYLOAD).json()["data"]

    assert first["fingerprint"] == second["fingerprint"]
    assert first["assessment"] == second["assessment"]


def test_assessment_fingerprint_changes_with_input(client: TestClient, no_pricing):
    """Test a different snapshot gets a different fingerprint."""
    payload = {**NOMINAL_PAYLOAD, "unit": {**NOMINAL_PAYLOAD["unit"], "calendar_age": 4}}
    first = client.post("/api/v1/assessments", json=NOMINAL_PAYLOAD).json()["data"]
    second = client.post("/api/v1/assessments", json=payload).json()["data"]

    assert first["fingerprint"] != second["fingerprint"]


def test_assessment_breach(client: TestClient, no_pricing):
    """Test a tank body leak is replaced now."""
    payload = {**NOMINAL_PAYLOAD, "condition": {"leak_source": "TANK_BODY"}}
    response = client.post("/api/v1/assessments", json=payload)

    verdict = response.json()["data"]["assessment"]["verdict"]
    assert verdict["rule_id"] == "containment_breach"
    assert verdict["action"] == "REPLACE_NOW"
    assert verdict["repairable"] is False


def test_assessment_junk_input_still_verdicted(client: TestClient, no_pricing):
    """Test unreadable readings are defaulted instead of rejected."""
    payload = {
        "unit": {"calendar_age": "abc", "fuel_type": "propane", "location": "moon"},
        "environment": {"house_psi": "", "hardness_gpg": -4, "people_count": None},
        "assessed_on": "2026-03-01",
    }
    response = client.post("/api/v1/assessments", json=payload)

    assert response.status_code == 200
    assessment = response.json()["data"]["assessment"]
    assert assessment["metrics"]["calendar_age"] == 8.0
    assert assessment["verdict"]["rule_id"]


def test_assessment_missing_date_rejected(client: TestClient):
    """Test the assessment date is required."""
    response = client.post("/api/v1/assessments", json={"unit": {"calendar_age": 3}})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert any(error["loc"][-1] == "assessed_on" for error in body["details"])


# ============================================================================
# Guidance Endpoints
# ============================================================================


def test_guidance_static(client: TestClient, no_pricing):
    """Test guidance falls back to static text when no endpoint is configured."""
    response = client.post("/api/v1/assessments/guidance", json={"snapshot": NOMINAL_PAYLOAD})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["finding"] == "healthy"
    assert data["source"] == "fallback"
    assert data["headline"]


def test_guidance_explicit_finding(client: TestClient, no_pricing):
    """Test a caller can ask about a finding other than the verdict."""
    response = client.post(
        "/api/v1/assessments/guidance",
        json={"snapshot": NOMINAL_PAYLOAD, "finding": "performance_flush"},
    )

    assert response.json()["data"]["finding"] == "performance_flush"


def test_guidance_from_ai(client: TestClient, no_pricing):
    """Test guidance is taken from the AI endpoint when it answers."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer test-key"
        return httpx.Response(
            200,
            json={
                "headline": "Your heater is in great shape",
                "explanation": "Pressure and hardness are both in range.",
                "recommendation": "Flush the tank once a year.",
            },
        )

    ai_guidance(handler)
    response = client.post("/api/v1/assessments/guidance", json={"snapshot": NOMINAL_PAYLOAD})

    data = response.json()["data"]
    assert data["source"] == "ai"
    assert data["headline"] == "Your heater is in great shape"


def test_guidance_ai_failure_falls_back(client: TestClient, no_pricing):
    """Test an AI endpoint error never fails the request."""
    ai_guidance(lambda request: httpx.Response(503))
    response = client.post("/api/v1/assessments/guidance", json={"snapshot": NOMINAL_PAYLOAD})

    assert response.status_code == 200
    assert response.json()["data"]["source"] == "fallback"


# ============================================================================
# Softener Endpoints
# ============================================================================


def test_softener_assessment_success(client: TestClient):
    """Test POST /api/v1/softener/assessments returns the full assessment."""
    response = client.post("/api/v1/softener/assessments", json=SOFTENER_PAYLOAD)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    result = data["data"]
    assert result["metrics"]["resin_health"] == 50
    assert result["recommendation"]["action"] == "RESIN_DETOX"
    assert [item["item_id"] for item in result["service_menu"]] == ["resin-detox", "carbon-filter"]
    assert result["salt"]["next_refill_date"] == "2026-06-23"


def test_softener_defaults(client: TestClient):
    """Test a softener with only a date uses default readings."""
    response = client.post("/api/v1/softener/assessments", json={"assessed_on": "2026-03-01"})

    assert response.status_code == 200
    assert response.json()["data"]["metrics"]["resin_health"] >= 0


def test_softener_out_of_range_readings(client: TestClient):
    """Test out-of-range softener readings are clamped rather than rejected."""
    payload = {**SOFTENER_PAYLOAD, "age_years": 60, "hardness_gpg": 120, "people_count": 25, "capacity_grains": 500}
    response = client.post("/api/v1/softener/assessments", json=payload)

    assert response.status_code == 200
    assert response.json()["data"]["metrics"]["resin_health"] == 0


# ============================================================================
# Error handling
# ============================================================================


def test_unhandled_error_returns_envelope(request_headers: dict):
    """Test an unexpected failure is reported as a 500 envelope with the request ID."""

    def broken_pricing():
        raise RuntimeError("pricing exploded")

    app.dependency_overrides[get_pricing_service] = broken_pricing
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            response = c.post("/api/v1/assessments", json=NOMINAL_PAYLOAD, headers=request_headers)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["request_id"] == request_headers["X-Request-ID"]
