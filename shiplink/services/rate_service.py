"""
Rate lookup flow

cache -> provider on miss -> cache store. Empty results are not stored:
the client returns [] for transient provider failures too.
"""
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from shiplink.models.shipping import (
    Address,
    Dimensions,
    DimensionUnit,
    RateCriteria,
    Rate,
    Weight,
    WeightUnit,
)
from shiplink.services.rate_cache import DEFAULT_TTL_SECONDS, RateCache, generate_cache_key
from shiplink.services.shipstation_client import ShipStationClient
from shiplink.utils.units import round_weight, to_centimeters

logger = logging.getLogger(__name__)

# Assumed weight for packages that carry none
DEFAULT_PACKAGE_WEIGHT_KG = 1.0


@dataclass
class PackageSpec:
    """One cart line as far as rating is concerned."""
    weight: Optional[Weight] = None
    dimensions: Optional[Dimensions] = None
    quantity: int = 1
    requires_signature: bool = False


def _dimensions_in_cm(d: Dimensions) -> Dimensions:
    return Dimensions(
        length=to_centimeters(d.length, d.unit.value),
        width=to_centimeters(d.width, d.unit.value),
        height=to_centimeters(d.height, d.unit.value),
        unit=DimensionUnit.CENTIMETER,
    )


def criteria_for_packages(
    ship_to: Address,
    packages: Sequence[PackageSpec],
    carrier_ids: Optional[List[str]] = None,
    shipping_class: Optional[str] = None,
    ship_from: Optional[Address] = None,
    residential: Optional[bool] = None,
) -> RateCriteria:
    """
    Collapse a cart's packages into one rate request.

    Total weight is the quantity-weighted sum in kilograms. The package with
    the largest volume supplies the dimensions, normalized to centimetres.

    Raises:
        ValueError: packages is empty
    """
    if not packages:
        raise ValueError("At least one package is required to quote rates")

    total_kg = 0.0
    largest: Optional[Dimensions] = None
    for package in packages:
        quantity = package.quantity or 1
        kg = package.weight.in_kilograms() if package.weight else DEFAULT_PACKAGE_WEIGHT_KG
        total_kg += kg * quantity

        if package.dimensions:
            candidate = _dimensions_in_cm(package.dimensions)
            if largest is None or candidate.volume > largest.volume:
                largest = candidate

    return RateCriteria(
        ship_to=ship_to,
        ship_from=ship_from,
        weight=Weight(value=round_weight(total_kg), unit=WeightUnit.KILOGRAM),
        dimensions=largest,
        carrier_ids=list(carrier_ids or []),
        shipping_class=shipping_class,
        requires_signature=any(p.requires_signature for p in packages),
        residential=residential,
    )


class RateService:
    """
    Cached rate lookups.

    Args:
        client: Provider client
        cache: Any RateCache backend
        ttl_seconds: Lifetime of stored quotes
        default_carrier_ids: Used when criteria carry no carrier ids
    """

    def __init__(
        self,
        client: ShipStationClient,
        cache: RateCache,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        default_carrier_ids: Optional[List[str]] = None,
    ):
        self.client = client
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.default_carrier_ids = list(default_carrier_ids or [])

    async def get_rates(self, criteria: RateCriteria) -> List[Rate]:
        if not criteria.carrier_ids and self.default_carrier_ids:
            criteria = replace(criteria, carrier_ids=list(self.default_carrier_ids))

        key = generate_cache_key(criteria)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"[RATES] Cache hit for {key}")
            return cached

        rates = await self.client.get_rates(criteria)
        if rates:
            await self.cache.set(key, rates, self.ttl_seconds)
        else:
            logger.info(f"[RATES] No rates for {key}; not caching")
        return rates

    async def get_rates_for_packages(
        self,
        ship_to: Address,
        packages: Sequence[PackageSpec],
        shipping_class: Optional[str] = None,
        residential: Optional[bool] = None,
    ) -> List[Rate]:
        criteria = criteria_for_packages(
            ship_to,
            packages,
            carrier_ids=self.default_carrier_ids,
            shipping_class=shipping_class,
            residential=residential,
        )
        return await self.get_rates(criteria)

    async def invalidate(self, criteria: RateCriteria) -> None:
        await self.cache.invalidate(generate_cache_key(criteria))
