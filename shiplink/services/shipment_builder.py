"""
Shipment Builder v1.0.0

Pure transformation OrderForShipment -> ShipmentRequest.

Validation runs in a fixed order before anything touches the network:
    1. shipping method must be "shipping"
    2. shipping address must be complete
    3. a warehouse must be resolvable

Data problems come back as a failed BuildResult; nothing here raises for
bad order data. This is the only place minor units (cents) become major
units (dollars).
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from shiplink.models.order import OrderForShipment
from shiplink.models.shipping import (
    MoneyAmount,
    Package,
    ShipmentItem,
    ShipmentRequest,
    ShippingMethod,
    Weight,
    WeightUnit,
)
from shiplink.utils.units import round_weight, to_major_units

logger = logging.getLogger(__name__)

WAREHOUSE_ENV_VAR = "SHIPSTATION_WAREHOUSE_ID"

ERROR_NOT_FOR_SHIPPING = "Order is not flagged for shipping"
ERROR_MISSING_ADDRESS = "Order missing required shipping address fields"
ERROR_NO_WAREHOUSE = f"Warehouse ID not configured (set {WAREHOUSE_ENV_VAR})"

# Order address attribute -> field name reported in errors
_ADDRESS_FIELDS = {
    "address_line1": "addressLine1",
    "city": "city",
    "state": "state",
    "postal_code": "postalCode",
    "country": "country",
}


@dataclass
class BuildResult:
    success: bool
    request: Optional[ShipmentRequest] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str) -> "BuildResult":
        return cls(success=False, error=error)


def resolve_shipping_paid(order: OrderForShipment, default_currency: str) -> Optional[MoneyAmount]:
    """
    Shipping charged to the buyer, in major units.

    Cascade: explicit shipping cost -> selected rate cost -> total minus
    amount (when both present and total > amount) -> None. The selected
    rate's own currency wins over the order's for the rate-cost branch.
    """
    currency = order.currency or default_currency

    if order.shipping_cost is not None:
        return MoneyAmount(amount=to_major_units(order.shipping_cost), currency=currency)

    rate = order.selected_rate
    if rate and rate.cost is not None:
        return MoneyAmount(amount=to_major_units(rate.cost), currency=rate.currency or currency)

    if order.total and order.amount and order.total > order.amount:
        return MoneyAmount(amount=to_major_units(order.total - order.amount), currency=currency)

    return None


class ShipmentBuilder:
    """
    Builds provider shipment requests from orders.

    Args:
        configured_warehouse_id: Warehouse from plugin/client configuration,
            the last resort after an explicit override and the environment
        default_currency: Currency when neither item nor order names one
    """

    def __init__(
        self,
        configured_warehouse_id: Optional[str] = None,
        default_currency: str = "CAD",
    ):
        self.configured_warehouse_id = configured_warehouse_id or None
        self.default_currency = default_currency

    def resolve_warehouse_id(self, override: Optional[str] = None) -> Optional[str]:
        return override or os.environ.get(WAREHOUSE_ENV_VAR) or self.configured_warehouse_id

    def validate(self, order: OrderForShipment, warehouse_id: Optional[str] = None) -> Optional[str]:
        """Return the first validation error, or None."""
        if order.shipping_method != ShippingMethod.SHIPPING:
            return ERROR_NOT_FOR_SHIPPING

        address = order.shipping_address
        missing = [
            name for attr, name in _ADDRESS_FIELDS.items()
            if not address or not (getattr(address, attr) or "").strip()
        ]
        if missing:
            return f"{ERROR_MISSING_ADDRESS}: {', '.join(missing)}"

        if not self.resolve_warehouse_id(warehouse_id):
            return ERROR_NO_WAREHOUSE

        return None

    def build(self, order: OrderForShipment, warehouse_id: Optional[str] = None) -> BuildResult:
        """
        Build the create-shipment request for an order.

        Args:
            order: Order to ship
            warehouse_id: Explicit warehouse override

        Returns:
            BuildResult with the request on success, the error otherwise
        """
        error = self.validate(order, warehouse_id)
        if error:
            logger.info(f"[SHIPMENT] Order {order.id} not buildable: {error}")
            return BuildResult.failure(error)

        warnings: List[str] = []
        order_currency = order.currency or self.default_currency

        items: List[ShipmentItem] = []
        total_kg = 0.0
        for line in order.items:
            quantity = line.quantity or 1
            weight = line.effective_weight
            if weight:
                total_kg += weight.in_kilograms() * quantity

            unit_price = None
            if line.unit_price is not None:
                unit_price = MoneyAmount(
                    amount=to_major_units(line.unit_price),
                    currency=line.currency or order_currency,
                )

            items.append(ShipmentItem(
                name=line.display_name,
                sku=line.sku,
                quantity=quantity,
                unit_price=unit_price,
                weight=weight,
            ))

        total_kg = round_weight(total_kg)
        packages = []
        if total_kg > 0:
            packages.append(Package(weight=Weight(value=total_kg, unit=WeightUnit.KILOGRAM)))

        amount_paid = None
        paid_cents = order.total if order.total is not None else order.amount
        if paid_cents is not None:
            amount_paid = MoneyAmount(amount=to_major_units(paid_cents), currency=order_currency)

        shipping_paid = resolve_shipping_paid(order, self.default_currency)
        if shipping_paid is None:
            warnings.append("shipping_paid unresolved (no shipping cost, selected rate cost, or derivable difference)")

        rate = order.selected_rate
        if not (rate and rate.service_code):
            warnings.append("selected rate has no service code; service_code will be absent")

        for warning in warnings:
            logger.warning(f"[SHIPMENT] Order {order.id}: {warning}")

        request = ShipmentRequest(
            external_shipment_id=order.id,
            warehouse_id=self.resolve_warehouse_id(warehouse_id),
            ship_to=order.shipping_address.to_address(),
            items=items,
            packages=packages,
            carrier_id=rate.carrier_id if rate else None,
            service_code=rate.service_code if rate else None,
            amount_paid=amount_paid,
            shipping_paid=shipping_paid,
            notes_from_buyer=order.customer_notes,
        )

        logger.debug(
            f"[SHIPMENT] Built request for order {order.id}: "
            f"{len(items)} items, {total_kg}kg, warehouse {request.warehouse_id}"
        )
        return BuildResult(success=True, request=request, warnings=warnings)
