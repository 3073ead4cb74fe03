"""
Shipment Orchestrator v1.0.0

Sequences ShipmentBuilder -> ShipStationClient -> status determination.

- Success: provider returned at least one shipment and the first carries no
  errors -> status "processing" plus shipping details for the caller to save
- Anything else -> success=False with a message. No exception escapes.

The orchestrator never writes manual_review and never checks for an
existing shipment; both belong to the call site (see order_shipping).
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from shiplink.core.exceptions import ShipStationError
from shiplink.models.order import OrderForShipment
from shiplink.models.shipping import ShippingStatus
from shiplink.services.shipment_builder import ShipmentBuilder
from shiplink.services.shipstation_client import ShipStationClient

logger = logging.getLogger(__name__)

OrderLookup = Callable[[str], Awaitable[Optional[Dict[str, Any]]]]


@dataclass
class ShipmentCreationResult:
    success: bool
    order_id: Optional[str] = None
    shipment_id: Optional[str] = None
    error: Optional[str] = None
    status: Optional[ShippingStatus] = None
    shipping_details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.shipment_id:
            data["shipment_id"] = self.shipment_id
        if self.error:
            data["error"] = self.error
        return data


class ShipmentOrchestrator:
    """
    Creates provider shipments for orders.

    Args:
        client: Provider client, constructed once at startup
        builder: Request builder
        order_lookup: async callable resolving an order id to its document,
            used when the caller does not pass the order in
    """

    def __init__(
        self,
        client: ShipStationClient,
        builder: ShipmentBuilder,
        order_lookup: Optional[OrderLookup] = None,
    ):
        self.client = client
        self.builder = builder
        self.order_lookup = order_lookup

    async def _resolve_order(self, order_id: str, order) -> Optional[OrderForShipment]:
        if isinstance(order, OrderForShipment):
            return order
        if order is None:
            if self.order_lookup is None:
                return None
            order = await self.order_lookup(order_id)
            if not order:
                return None
        return OrderForShipment.from_document(order, order_id=order_id)

    async def create_shipment_for_order(
        self,
        order_id: str,
        order=None,
        warehouse_id: Optional[str] = None,
    ) -> ShipmentCreationResult:
        """
        Build and submit the shipment for one order.

        Args:
            order_id: Order identifier
            order: OrderForShipment, raw order document, or None to look it up
            warehouse_id: Explicit warehouse override

        Returns:
            ShipmentCreationResult; success=False carries the reason in error
        """
        try:
            resolved = await self._resolve_order(order_id, order)
            if resolved is None:
                return self._failure(order_id, "Order not found")

            built = self.builder.build(resolved, warehouse_id)
            if not built.success:
                return self._failure(order_id, built.error)

            response = await self.client.create_shipment(built.request)

            shipment = response.first
            if shipment is None:
                return self._failure(order_id, "ShipStation returned no shipments")

            if shipment.has_errors:
                messages = ", ".join(e.message for e in shipment.errors)
                return self._failure(order_id, f"ShipStation errors: {messages}")

            if not shipment.shipment_id:
                return self._failure(order_id, "ShipStation returned a shipment without an id")

            rate = resolved.selected_rate
            details = {
                "shipmentId": shipment.shipment_id,
                "shipstationShipmentId": shipment.shipment_id,
                "shippingStatus": ShippingStatus.PROCESSING.value,
                "shippingCost": resolved.derived_shipping_cost(),
                "carrierCode": rate.carrier_code if rate else None,
                "serviceCode": rate.service_code if rate else None,
            }

            logger.info(f"[SHIPMENT] Created shipment {shipment.shipment_id} for order {order_id}")
            return ShipmentCreationResult(
                success=True,
                order_id=order_id,
                shipment_id=shipment.shipment_id,
                status=ShippingStatus.PROCESSING,
                shipping_details=details,
            )

        except ShipStationError as e:
            return self._failure(order_id, e.message, code=e.code)
        except Exception as e:
            logger.exception(f"[SHIPMENT] Unexpected error creating shipment for order {order_id}")
            return self._failure(order_id, str(e) or e.__class__.__name__)

    def _failure(self, order_id: str, error: str, code: Optional[str] = None) -> ShipmentCreationResult:
        suffix = f" ({code})" if code else ""
        logger.error(f"[SHIPMENT] Order {order_id} shipment failed: {error}{suffix}")
        return ShipmentCreationResult(success=False, order_id=order_id, error=error)
