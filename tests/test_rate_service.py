"""
Tests for cached rate lookups and cart-to-criteria collapsing.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from shiplink.models.shipping import Address, Dimensions, DimensionUnit, Rate, RateCriteria, Weight
from shiplink.services.rate_cache import InMemoryRateCache, generate_cache_key
from shiplink.services.rate_service import PackageSpec, RateService, criteria_for_packages

SHIP_TO = Address(
    address_line1="123 Main St",
    city="Vancouver",
    state_province="BC",
    postal_code="V6B1A1",
    country_code="CA",
)

RATE = Rate(
    service_code="expedited",
    service_name="Expedited",
    carrier_id="se-100",
    carrier_code="canada_post",
    carrier_name="Canada Post",
    shipping_amount=12.5,
)


@pytest.fixture
def client():
    mock = MagicMock()
    mock.get_rates = AsyncMock(return_value=[RATE])
    return mock


class TestRateService:

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, client):
        service = RateService(client, InMemoryRateCache(), default_carrier_ids=["se-100"])
        criteria = RateCriteria(ship_to=SHIP_TO, weight=Weight(2, "kg"))

        first = await service.get_rates(criteria)
        second = await service.get_rates(criteria)

        assert first == second == [RATE]
        client.get_rates.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_default_carriers_applied_without_mutating_input(self, client):
        service = RateService(client, InMemoryRateCache(), default_carrier_ids=["se-100", "se-200"])
        criteria = RateCriteria(ship_to=SHIP_TO, weight=Weight(2, "kg"))

        await service.get_rates(criteria)

        sent = client.get_rates.await_args.args[0]
        assert sent.carrier_ids == ["se-100", "se-200"]
        assert criteria.carrier_ids == []

    @pytest.mark.asyncio
    async def test_explicit_carriers_kept(self, client):
        service = RateService(client, InMemoryRateCache(), default_carrier_ids=["se-100"])

        await service.get_rates(RateCriteria(ship_to=SHIP_TO, weight=Weight(2, "kg"), carrier_ids=["se-999"]))

        assert client.get_rates.await_args.args[0].carrier_ids == ["se-999"]

    @pytest.mark.asyncio
    async def test_empty_results_not_cached(self, client):
        client.get_rates.return_value = []
        cache = InMemoryRateCache()
        service = RateService(client, cache, default_carrier_ids=["se-100"])
        criteria = RateCriteria(ship_to=SHIP_TO, weight=Weight(2, "kg"))

        assert await service.get_rates(criteria) == []
        assert await service.get_rates(criteria) == []

        assert client.get_rates.await_count == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_ttl_passed_to_cache(self, client):
        cache = MagicMock()
        cache.get = AsyncMock(return_value=None)
        cache.set = AsyncMock()
        service = RateService(client, cache, ttl_seconds=42)
        criteria = RateCriteria(ship_to=SHIP_TO, weight=Weight(2, "kg"), carrier_ids=["se-100"])

        await service.get_rates(criteria)

        cache.set.assert_awaited_once_with(generate_cache_key(criteria), [RATE], 42)

    @pytest.mark.asyncio
    async def test_invalidate(self, client):
        cache = InMemoryRateCache()
        service = RateService(client, cache)
        criteria = RateCriteria(ship_to=SHIP_TO, weight=Weight(2, "kg"), carrier_ids=["se-100"])
        await service.get_rates(criteria)

        await service.invalidate(criteria)
        await service.get_rates(criteria)

        assert client.get_rates.await_count == 2

    @pytest.mark.asyncio
    async def test_get_rates_for_packages(self, client):
        service = RateService(client, InMemoryRateCache(), default_carrier_ids=["se-100"])

        await service.get_rates_for_packages(SHIP_TO, [PackageSpec(weight=Weight(1, "kg"), quantity=3)])

        sent = client.get_rates.await_args.args[0]
        assert sent.weight.value == 3.0
        assert sent.carrier_ids == ["se-100"]
        assert sent.residential is None

    @pytest.mark.asyncio
    async def test_get_rates_for_packages_passes_residential(self, client):
        service = RateService(client, InMemoryRateCache(), default_carrier_ids=["se-100"])

        await service.get_rates_for_packages(SHIP_TO, [PackageSpec(weight=Weight(1, "kg"))], residential=False)

        assert client.get_rates.await_args.args[0].residential is False


class TestCriteriaForPackages:

    def test_empty_cart_rejected(self):
        with pytest.raises(ValueError):
            criteria_for_packages(SHIP_TO, [])

    def test_weights_summed_in_kilograms(self):
        criteria = criteria_for_packages(SHIP_TO, [
            PackageSpec(weight=Weight(500, "g"), quantity=2),
            PackageSpec(weight=Weight(1, "lb")),
        ])

        assert criteria.weight.value == 1.454
        assert criteria.weight.unit.value == "kilogram"

    def test_missing_weight_defaults_to_one_kilogram(self):
        criteria = criteria_for_packages(SHIP_TO, [PackageSpec(quantity=2), PackageSpec(weight=Weight(0.5, "kg"))])

        assert criteria.weight.value == 2.5

    def test_largest_package_supplies_dimensions_in_cm(self):
        criteria = criteria_for_packages(SHIP_TO, [
            PackageSpec(weight=Weight(1, "kg"), dimensions=Dimensions(30, 20, 10, "cm")),
            PackageSpec(weight=Weight(1, "kg"), dimensions=Dimensions(10, 10, 10, "in")),
        ])

        assert criteria.dimensions.unit == DimensionUnit.CENTIMETER
        assert criteria.dimensions.length == 25.4

    def test_signature_if_any_package_needs_it(self):
        criteria = criteria_for_packages(SHIP_TO, [
            PackageSpec(weight=Weight(1, "kg")),
            PackageSpec(weight=Weight(1, "kg"), requires_signature=True),
        ])

        assert criteria.requires_signature
