"""
Unit tests for the water softener assessment.
"""

from datetime import date

import pytest

from opterra.engine.softener import (
    assess_softener,
    calculate_metrics,
    estimate_lifespan,
    recommend,
    resin_decay_rate,
    salt_schedule,
)
from opterra.models.enums import ServicePriority, SoftenerAction, SoftenerBadge
from tests.conftest import make_softener


class TestSoftenerMetrics:
    """Test the odometer, resin and salt figures."""

    def test_default_unit(self):
        """Test a 5-year-old city unit at 15 GPG for three people."""
        metrics = calculate_metrics(make_softener())
        assert metrics.daily_load_grains == 3375
        assert metrics.regen_interval_days == pytest.approx(8.53)
        assert metrics.regens_per_year == 43
        assert metrics.odometer == 214
        assert metrics.resin_health == 50
        assert metrics.salt_usage_lbs_per_month == pytest.approx(31.6)

    def test_carbon_filter_halves_resin_decay(self):
        """Test a carbon pre-filter halves chlorine damage."""
        assert resin_decay_rate(make_softener(has_carbon_filter=True)) == 5.0
        assert resin_decay_rate(make_softener()) == 10.0

    def test_well_water_decay(self):
        """Test well water fouls resin fastest."""
        assert resin_decay_rate(make_softener(is_city_water=False)) == 12.0

    def test_resin_health_floors_at_zero(self):
        """Test resin health never goes negative."""
        assert calculate_metrics(make_softener(age_years=20)).resin_health == 0

    def test_unreadable_age_uses_default(self):
        """Test a junk age falls back to five years."""
        assert make_softener(age_years="abc").age_years == 5.0

    def test_out_of_range_readings_are_clamped(self):
        """Test readings outside their range are clamped instead of rejected."""
        softener = make_softener(age_years=60, hardness_gpg=120, people_count=25, capacity_grains=500)
        assert softener.age_years == 50.0
        assert softener.hardness_gpg == 100.0
        assert softener.people_count == 20
        assert softener.capacity_grains == 1000.0

    def test_low_readings_are_clamped(self):
        """Test negative readings clamp to the bottom of their range."""
        softener = make_softener(age_years=-2, hardness_gpg=-5, people_count=0)
        assert softener.age_years == 0.0
        assert softener.hardness_gpg == 0.0
        assert softener.people_count == 1

    def test_fractional_occupancy_is_rounded(self):
        """Test a fractional or string occupancy is coerced to whole people."""
        assert make_softener(people_count="3.6").people_count == 4
        assert make_softener(people_count="many").people_count == 3


class TestSoftenerRecommendation:
    """Test the first-match recommendation order."""

    def test_resin_failure(self):
        """Test resin below 40% needs a re-bed or replacement."""
        rec = recommend(calculate_metrics(make_softener(age_years=7)))
        assert rec.action == SoftenerAction.REBED_OR_REPLACE
        assert rec.badge == SoftenerBadge.RESIN_FAILURE

    def test_motor_failure(self):
        """Test more than 1500 cycles wears out the motor."""
        metrics = calculate_metrics(
            make_softener(age_years=10, people_count=6, hardness_gpg=30, has_carbon_filter=True)
        )
        assert metrics.odometer > 1500
        rec = recommend(metrics)
        assert rec.action == SoftenerAction.REPLACE_UNIT
        assert rec.badge == SoftenerBadge.MECHANICAL_FAILURE

    def test_seal_wear(self):
        """Test 600-1500 cycles calls for a valve rebuild."""
        metrics = calculate_metrics(
            make_softener(age_years=8, people_count=4, hardness_gpg=20, has_carbon_filter=True)
        )
        assert metrics.odometer == 608
        assert recommend(metrics).action == SoftenerAction.VALVE_REBUILD

    def test_resin_degraded(self):
        """Test resin between 40% and 75% gets a detox."""
        rec = recommend(calculate_metrics(make_softener()))
        assert rec.action == SoftenerAction.RESIN_DETOX
        assert rec.badge == SoftenerBadge.RESIN_DEGRADED

    def test_undersized(self):
        """Test regenerating more often than every three days is wasteful."""
        rec = recommend(
            calculate_metrics(
                make_softener(age_years=1, people_count=6, hardness_gpg=30, has_carbon_filter=True)
            )
        )
        assert rec.action == SoftenerAction.UPGRADE_EFFICIENCY
        assert rec.badge == SoftenerBadge.HIGH_WASTE

    def test_healthy(self):
        """Test a young, well-sized unit."""
        rec = recommend(
            calculate_metrics(make_softener(age_years=1, hardness_gpg=10, has_carbon_filter=True))
        )
        assert rec.action == SoftenerAction.MONITOR
        assert rec.badge == SoftenerBadge.HEALTHY


class TestSoftenerServiceMenu:
    """Test which priced services are offered."""

    def test_default_menu(self):
        """Test a degraded, unfiltered city unit is offered a detox and a carbon filter."""
        menu = assess_softener(make_softener()).service_menu
        assert [item.item_id for item in menu] == ["resin-detox", "carbon-filter"]
        assert all(item.priority == ServicePriority.CRITICAL for item in menu)

    def test_carbon_filter_optional_on_healthy_resin(self):
        """Test the carbon filter is optional while the resin is still healthy."""
        menu = assess_softener(make_softener(age_years=1, hardness_gpg=10)).service_menu
        carbon = next(item for item in menu if item.item_id == "carbon-filter")
        assert carbon.priority == ServicePriority.OPTIONAL

    def test_failed_resin_offers_rebed(self):
        """Test failed resin is offered a re-bed at critical priority."""
        menu = assess_softener(make_softener(age_years=7)).service_menu
        rebed = next(item for item in menu if item.item_id == "resin-rebed")
        assert rebed.priority == ServicePriority.CRITICAL

    def test_worn_motor_offers_replacement(self):
        """Test a worn-out unit is offered a replacement."""
        menu = assess_softener(
            make_softener(age_years=10, people_count=6, hardness_gpg=30, has_carbon_filter=True)
        ).service_menu
        assert "replacement" in [item.item_id for item in menu]
        assert "valve-rebuild" not in [item.item_id for item in menu]

    def test_seal_wear_offers_rebuild(self):
        """Test seal wear is offered a valve rebuild."""
        menu = assess_softener(
            make_softener(age_years=8, people_count=4, hardness_gpg=20, has_carbon_filter=True)
        ).service_menu
        rebuild = next(item for item in menu if item.item_id == "valve-rebuild")
        assert rebuild.priority == ServicePriority.CRITICAL
        assert rebuild.price == 350.0


class TestSaltAndLifespan:
    """Test the salt schedule and lifespan projection."""

    def test_salt_schedule(self):
        """Test refill timing from a 120 lb brine tank."""
        data = make_softener()
        salt = salt_schedule(data, calculate_metrics(data))
        assert salt.burn_rate_lbs_per_month == 32
        assert salt.days_until_refill == 114
        assert salt.next_refill_date == date(2026, 6, 23)
        assert salt.monthly_bags_40lb == 1

    def test_salt_refill_capped_at_a_year(self):
        """Test soft supply water caps the refill window at 365 days."""
        data = make_softener(hardness_gpg=0)
        assert salt_schedule(data, calculate_metrics(data)).days_until_refill == 365

    def test_lifespan(self):
        """Test the resin clock runs out before the motor on the default unit."""
        lifespan = estimate_lifespan(make_softener())
        assert lifespan.resin_death_years == 6.0
        assert lifespan.mechanical_death_years == pytest.approx(35.1, abs=0.1)
        assert lifespan.effective_death_years == 6.0
