"""
Process-start wiring

Builds the client and rate cache once and hands them to everything that
needs them. Callers hold the returned ShippingStack for the life of the
process and close() it on shutdown.

Usage:
    stack = await create_shipping_stack(get_settings(), order_lookup=find_order)
    rates = await stack.rates.get_rates(criteria)
    ...
    await stack.close()
"""
import logging
from dataclasses import dataclass
from typing import Optional

from shiplink.core.config import Settings
from shiplink.services.order_shipping import OrderShipmentHook, OrderUpdater
from shiplink.services.rate_cache import RateCache, create_rate_cache
from shiplink.services.rate_service import RateService
from shiplink.services.shipment_builder import ShipmentBuilder
from shiplink.services.shipment_service import OrderLookup, ShipmentOrchestrator
from shiplink.services.shipstation_client import ShipStationClient
from shiplink.services.webhooks import WebhookProcessor

logger = logging.getLogger(__name__)


@dataclass
class ShippingStack:
    settings: Settings
    client: ShipStationClient
    cache: RateCache
    rates: RateService
    builder: ShipmentBuilder
    orchestrator: ShipmentOrchestrator
    order_hook: OrderShipmentHook
    webhooks: WebhookProcessor

    async def close(self) -> None:
        await self.cache.close()
        await self.client.close()
        logger.info("[SHIPLINK] Shipping stack closed")


async def create_shipping_stack(
    settings: Settings,
    order_lookup: Optional[OrderLookup] = None,
    order_updater: Optional[OrderUpdater] = None,
) -> ShippingStack:
    """
    Construct every shipping service from settings.

    Raises:
        ConfigurationError: the API key is missing
    """
    client = ShipStationClient.from_settings(settings)
    cache = await create_rate_cache(
        enabled=settings.RATE_CACHE_ENABLED,
        redis_url=settings.REDIS_URL,
        sweep_interval_seconds=settings.RATE_CACHE_SWEEP_INTERVAL_SECONDS,
    )

    builder = ShipmentBuilder(
        configured_warehouse_id=settings.SHIPSTATION_WAREHOUSE_ID,
        default_currency=settings.SHIPPING_DEFAULT_CURRENCY,
    )
    orchestrator = ShipmentOrchestrator(client, builder, order_lookup=order_lookup)

    stack = ShippingStack(
        settings=settings,
        client=client,
        cache=cache,
        rates=RateService(
            client,
            cache,
            ttl_seconds=settings.RATE_CACHE_TTL_SECONDS,
            default_carrier_ids=settings.SHIPSTATION_CARRIER_IDS,
        ),
        builder=builder,
        orchestrator=orchestrator,
        order_hook=OrderShipmentHook(
            orchestrator,
            auto_create=settings.SHIPSTATION_AUTO_CREATE_SHIPMENTS,
            order_lookup=order_lookup,
            order_updater=order_updater,
        ),
        webhooks=WebhookProcessor(
            settings.SHIPSTATION_WEBHOOK_SECRET,
            enabled_events=settings.SHIPSTATION_WEBHOOK_EVENTS,
        ),
    )

    logger.info(
        f"[SHIPLINK] Shipping stack ready: cache={cache.backend}, "
        f"auto_create={settings.SHIPSTATION_AUTO_CREATE_SHIPMENTS}, "
        f"carriers={len(settings.SHIPSTATION_CARRIER_IDS)}, "
        f"webhooks={'on' if settings.SHIPSTATION_WEBHOOK_SECRET else 'off'}"
    )
    return stack
