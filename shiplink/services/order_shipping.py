"""
Order shipping call sites

Both entry points into shipment creation live here, because the decisions
the orchestrator leaves to its caller live here:
- the idempotency guard (never create a second shipment for an order)
- moving a failed order to manual_review

OrderShipmentHook.after_order_change runs on order saves and edits the
document in place. OrderShipmentHook.trigger is the direct API path and
persists through an injected order updater.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from shiplink.models.shipping import ShippingMethod, ShippingStatus
from shiplink.services.shipment_service import OrderLookup, ShipmentOrchestrator

logger = logging.getLogger(__name__)

OrderUpdater = Callable[[str, Dict[str, Any]], Awaitable[Any]]

TRIGGER_STATUS = "processing"


def _merge_shipping_details(existing: Optional[Dict[str, Any]], update: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay update on existing shippingDetails; None never erases a stored value."""
    merged = dict(existing or {})
    for key, value in update.items():
        if value is not None or key not in merged:
            merged[key] = value
    return merged


class OrderShipmentHook:
    """
    Automatic and manual shipment creation for orders.

    Args:
        orchestrator: Shared ShipmentOrchestrator
        auto_create: Feature toggle for the save hook
        order_lookup: async order_id -> document, for trigger()
        order_updater: async (order_id, data) -> Any, for trigger()
    """

    def __init__(
        self,
        orchestrator: ShipmentOrchestrator,
        auto_create: bool = False,
        order_lookup: Optional[OrderLookup] = None,
        order_updater: Optional[OrderUpdater] = None,
    ):
        self.orchestrator = orchestrator
        self.auto_create = auto_create
        self.order_lookup = order_lookup or orchestrator.order_lookup
        self.order_updater = order_updater

    # ==================== Save Hook ====================

    def should_create(
        self,
        doc: Dict[str, Any],
        previous_doc: Optional[Dict[str, Any]] = None,
        operation: str = "update",
    ) -> bool:
        if not self.auto_create:
            return False

        if doc.get("status") != TRIGGER_STATUS:
            return False
        status_changed = operation == "create" or (previous_doc or {}).get("status") != doc.get("status")
        if not status_changed:
            return False

        order_id = doc.get("id")
        if doc.get("shippingMethod", ShippingMethod.SHIPPING.value) != ShippingMethod.SHIPPING.value:
            logger.info(f"[SHIPMENT] Order {order_id} is a pickup order, skipping shipment creation")
            return False

        if (doc.get("shippingDetails") or {}).get("shipstationShipmentId"):
            logger.info(f"[SHIPMENT] Order {order_id} already has a shipment, skipping")
            return False

        return True

    async def after_order_change(
        self,
        doc: Dict[str, Any],
        previous_doc: Optional[Dict[str, Any]] = None,
        operation: str = "update",
    ) -> Dict[str, Any]:
        """
        Create a shipment when an order moves to processing.

        Edits doc["shippingDetails"] in place and returns doc. On failure the
        order is flagged manual_review. Never raises.
        """
        if not self.should_create(doc, previous_doc, operation):
            return doc

        order_id = str(doc.get("id"))
        logger.info(f"[SHIPMENT] Auto-creating shipment for order {order_id}")

        result = await self.orchestrator.create_shipment_for_order(order_id, doc)

        if result.success:
            doc["shippingDetails"] = _merge_shipping_details(doc.get("shippingDetails"), result.shipping_details)
            if result.shipping_details.get("shippingCost") is None:
                logger.warning(f"[SHIPMENT] Order {order_id}: shipping cost could not be derived")
            logger.info(f"[SHIPMENT] Shipment created for order {order_id}")
        else:
            doc["shippingDetails"] = _merge_shipping_details(
                doc.get("shippingDetails"),
                {"shippingStatus": ShippingStatus.MANUAL_REVIEW.value},
            )
            logger.warning(f"[SHIPMENT] Order {order_id} set to manual review: {result.error}")

        return doc

    # ==================== Direct Trigger ====================

    async def trigger(self, order_id: str) -> Dict[str, Any]:
        """
        Create a shipment on request.

        Returns:
            {"success", "order_id", "status"} plus "shipment_id" or "error".
            A missing order yields {"success": False, "error", "order_id"}
            and nothing is written.
        """
        if not order_id:
            return {"success": False, "error": "Order ID is required"}

        doc = await self.order_lookup(order_id) if self.order_lookup else None
        if doc is None:
            logger.warning(f"[SHIPMENT] Order {order_id} not found, nothing to ship")
            return {"success": False, "error": "Order not found", "order_id": order_id}

        if (doc.get("shippingDetails") or {}).get("shipstationShipmentId"):
            existing = doc["shippingDetails"]["shipstationShipmentId"]
            logger.info(f"[SHIPMENT] Order {order_id} already has shipment {existing}, not creating another")
            return {
                "success": True,
                "shipment_id": existing,
                "order_id": order_id,
                "status": (doc.get("shippingDetails") or {}).get("shippingStatus") or ShippingStatus.PROCESSING.value,
            }

        result = await self.orchestrator.create_shipment_for_order(order_id, doc)

        if not result.success:
            await self._persist(order_id, {"shippingStatus": ShippingStatus.MANUAL_REVIEW.value})
            return {
                "success": False,
                "error": result.error,
                "order_id": order_id,
                "status": ShippingStatus.MANUAL_REVIEW.value,
            }

        await self._persist(order_id, result.shipping_details)
        return {
            "success": True,
            "shipment_id": result.shipment_id,
            "order_id": order_id,
            "status": ShippingStatus.PROCESSING.value,
        }

    async def _persist(self, order_id: str, shipping_details: Dict[str, Any]) -> None:
        if self.order_updater is None:
            return
        try:
            await self.order_updater(order_id, {"shippingDetails": shipping_details})
        except Exception as e:
            logger.error(f"[SHIPMENT] Failed to update order {order_id}: {e}")
