"""Tests for delivery eligibility"""

import pytest

from bakery.fulfillment.delivery import DeliveryEligibilityChecker, haversine_miles

ORIGIN = (25.7260901, -80.4559283)


def test_haversine_zero_distance():
    assert haversine_miles(ORIGIN, ORIGIN) == 0


def test_haversine_known_distance():
    # Roughly one degree of latitude
    assert haversine_miles((25.0, -80.0), (26.0, -80.0)) == pytest.approx(69.09, abs=0.05)


@pytest.mark.asyncio
async def test_check_within_radius(monkeypatch):
    checker = DeliveryEligibilityChecker(origin=ORIGIN, max_distance_miles=5.0)

    async def fake_geocode(address):
        return (25.7617, -80.4559283)

    monkeypatch.setattr(checker, "geocode", fake_geocode)
    result = await checker.check("  123   Main St, Miami, FL  ")

    assert result.ok
    assert result.eligible
    assert result.distance_miles == pytest.approx(2.46, abs=0.01)


@pytest.mark.asyncio
async def test_check_outside_radius(monkeypatch):
    checker = DeliveryEligibilityChecker(origin=ORIGIN, max_distance_miles=5.0)

    async def fake_geocode(address):
        return (25.8160, -80.4559283)

    monkeypatch.setattr(checker, "geocode", fake_geocode)
    result = await checker.check("456 Far Rd, Miami, FL")

    assert result.ok
    assert not result.eligible
    assert result.distance_miles > 5.0


@pytest.mark.asyncio
async def test_check_rejects_short_address():
    checker = DeliveryEligibilityChecker()
    result = await checker.check(" 12 ")
    assert not result.ok
    assert result.error


@pytest.mark.asyncio
async def test_check_unverifiable_address(monkeypatch):
    checker = DeliveryEligibilityChecker()

    async def fake_geocode(address):
        return None

    monkeypatch.setattr(checker, "geocode", fake_geocode)
    result = await checker.check("Nowhere in particular")

    assert not result.ok
    assert "couldn't verify" in result.error
