"""
Order records consumed by the shipment pipeline.

The host CMS stores orders as camelCase documents; from_document() reads the
subset the builder needs. Money is integer minor units (cents) throughout.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shiplink.models.shipping import Address, ResidentialIndicator, ShippingMethod, Weight

logger = logging.getLogger(__name__)


def _weight_from(data: Optional[Dict[str, Any]]) -> Optional[Weight]:
    """Build a Weight from {value, unit}; anything unusable becomes None."""
    if not isinstance(data, dict):
        return None
    value, unit = data.get("value"), data.get("unit")
    if not value or not unit:
        return None
    try:
        return Weight(value=value, unit=unit)
    except (TypeError, ValueError) as e:
        logger.debug(f"[ORDER] Ignoring unusable weight {data!r}: {e}")
        return None


def _catalog_weight(ref: Dict[str, Any]) -> Optional[Weight]:
    return _weight_from((ref.get("shippingDetails") or {}).get("weight"))


@dataclass
class CatalogRef:
    """Product or variant as embedded in an order line."""
    id: Optional[str] = None
    title: Optional[str] = None
    sku: Optional[str] = None
    shipping_weight: Optional[Weight] = None

    @classmethod
    def from_value(cls, value) -> Optional["CatalogRef"]:
        # Unpopulated relationships arrive as bare ids
        if value is None:
            return None
        if not isinstance(value, dict):
            return cls(id=str(value))
        return cls(
            id=value.get("id"),
            title=value.get("title"),
            sku=value.get("sku"),
            shipping_weight=_catalog_weight(value),
        )


@dataclass
class OrderLineItem:
    quantity: int = 1
    product: Optional[CatalogRef] = None
    variant: Optional[CatalogRef] = None
    weight: Optional[Weight] = None
    unit_price: Optional[int] = None  # cents
    currency: Optional[str] = None

    @property
    def effective_weight(self) -> Optional[Weight]:
        """Item weight, else variant catalog weight, else product catalog weight."""
        if self.weight:
            return self.weight
        if self.variant and self.variant.shipping_weight:
            return self.variant.shipping_weight
        if self.product and self.product.shipping_weight:
            return self.product.shipping_weight
        return None

    @property
    def display_name(self) -> str:
        if self.variant and self.variant.title:
            return self.variant.title
        if self.product and self.product.title:
            return self.product.title
        return "Unknown Product"

    @property
    def sku(self) -> Optional[str]:
        return (self.variant and self.variant.sku) or (self.product and self.product.sku) or None

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "OrderLineItem":
        unit_price = data.get("unitPrice")
        return cls(
            quantity=data.get("quantity") or 1,
            product=CatalogRef.from_value(data.get("product")),
            variant=CatalogRef.from_value(data.get("variant")),
            weight=_weight_from(data.get("weight")),
            unit_price=unit_price if isinstance(unit_price, (int, float)) else None,
            currency=data.get("currency"),
        )


@dataclass
class ShippingAddress:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_address(self) -> Address:
        return Address(
            name=self.full_name or "Customer",
            company_name=self.company,
            phone=self.phone,
            address_line1=self.address_line1,
            address_line2=self.address_line2,
            city=self.city,
            state_province=self.state,
            postal_code=self.postal_code,
            country_code=self.country,
            residential=ResidentialIndicator.YES,
        )

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> Optional["ShippingAddress"]:
        if not data:
            return None
        return cls(
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            company=data.get("company"),
            address_line1=data.get("addressLine1"),
            address_line2=data.get("addressLine2"),
            city=data.get("city"),
            state=data.get("state"),
            postal_code=data.get("postalCode"),
            country=data.get("country"),
            phone=data.get("phone"),
        )


@dataclass
class SelectedRate:
    service_name: Optional[str] = None
    service_code: Optional[str] = None
    carrier_code: Optional[str] = None
    carrier_id: Optional[str] = None
    cost: Optional[int] = None  # cents
    currency: Optional[str] = None

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> Optional["SelectedRate"]:
        if not data:
            return None
        return cls(
            service_name=data.get("serviceName"),
            service_code=data.get("serviceCode"),
            carrier_code=data.get("carrierCode"),
            carrier_id=data.get("carrierId"),
            cost=data.get("cost"),
            currency=data.get("currency"),
        )


@dataclass
class OrderForShipment:
    """Read-only view of an order for one shipment-creation attempt."""
    id: str
    shipping_method: ShippingMethod = ShippingMethod.SHIPPING
    shipping_address: Optional[ShippingAddress] = None
    items: List[OrderLineItem] = field(default_factory=list)
    selected_rate: Optional[SelectedRate] = None
    total: Optional[int] = None  # cents
    amount: Optional[int] = None  # cents, pre-shipping
    shipping_cost: Optional[int] = None  # cents
    currency: Optional[str] = None
    customer_notes: Optional[str] = None
    shipment_id: Optional[str] = None
    shipping_status: Optional[str] = None

    @property
    def has_shipment(self) -> bool:
        return bool(self.shipment_id)

    def derived_shipping_cost(self) -> Optional[int]:
        """
        Shipping paid, in cents.

        Explicit shipping cost, else the selected rate's cost, else total minus
        amount when both are present and total exceeds amount. None otherwise.
        """
        if self.shipping_cost is not None:
            return self.shipping_cost
        if self.selected_rate and self.selected_rate.cost is not None:
            return self.selected_rate.cost
        if self.total and self.amount and self.total > self.amount:
            return self.total - self.amount
        return None

    @classmethod
    def from_document(cls, doc: Dict[str, Any], order_id: Optional[str] = None) -> "OrderForShipment":
        """Map an order document. order_id, when given, wins over the document's own id."""
        details = doc.get("shippingDetails") or {}
        method = doc.get("shippingMethod") or ShippingMethod.SHIPPING.value
        try:
            shipping_method = ShippingMethod(method)
        except ValueError:
            raise ValueError(f"Unknown shipping method: {method!r}")

        return cls(
            id=str(order_id or doc.get("id") or ""),
            shipping_method=shipping_method,
            shipping_address=ShippingAddress.from_document(doc.get("shippingAddress")),
            items=[OrderLineItem.from_document(i) for i in doc.get("items") or []],
            selected_rate=SelectedRate.from_document(doc.get("selectedRate")),
            total=doc.get("total"),
            amount=doc.get("amount"),
            shipping_cost=doc.get("shippingCost"),
            currency=doc.get("currency"),
            customer_notes=doc.get("customerNotes"),
            shipment_id=details.get("shipstationShipmentId"),
            shipping_status=details.get("shippingStatus"),
        )
