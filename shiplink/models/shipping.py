"""
Canonical Shipping Records v1.0.0

Carrier- and API-version-agnostic data classes shared by the client, the
rate cache, the shipment builder and the orchestrator. Wire shapes live in
shiplink.schemas and are translated by the wire adapters.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from shiplink.utils.units import (
    normalize_dimensions,
    normalize_weight_unit,
    to_kilograms,
)


# =============================================================================
# Enums
# =============================================================================

class WeightUnit(str, Enum):
    OUNCE = "ounce"
    POUND = "pound"
    GRAM = "gram"
    KILOGRAM = "kilogram"


class DimensionUnit(str, Enum):
    INCH = "inch"
    CENTIMETER = "centimeter"


class ResidentialIndicator(str, Enum):
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    @classmethod
    def from_flag(cls, residential: Optional[bool]) -> "ResidentialIndicator":
        if residential is None:
            return cls.UNKNOWN
        return cls.YES if residential else cls.NO


class ShippingMethod(str, Enum):
    SHIPPING = "shipping"
    PICKUP = "pickup"


class ShippingStatus(str, Enum):
    """Order shipping lifecycle"""
    PENDING = "pending"  # No shipment yet
    PROCESSING = "processing"  # Shipment created at the provider
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"  # Delivery issue
    RETURNED = "returned"
    MANUAL_REVIEW = "manual_review"  # Automation gave up, needs a human

    def can_transition_to(self, target: "ShippingStatus") -> bool:
        """Same-status transitions are allowed as idempotent no-ops."""
        target = ShippingStatus(target)
        if target == self:
            return True
        return target in _TRANSITIONS[self]

    def transition_to(self, target: "ShippingStatus") -> "ShippingStatus":
        """Return the target status or raise ValueError for an illegal move."""
        target = ShippingStatus(target)
        if not self.can_transition_to(target):
            raise ValueError(f"Illegal shipping status transition: {self.value} -> {target.value}")
        return target

    def reopen(self) -> "ShippingStatus":
        """Human resolution of a manual review puts the order back to pending."""
        if self != ShippingStatus.MANUAL_REVIEW:
            raise ValueError(f"Only manual_review orders can be reopened, not {self.value}")
        return ShippingStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]


_S = ShippingStatus
_IN_FLIGHT_EXITS = {_S.EXCEPTION, _S.RETURNED}

# manual_review has no automated exits; reopen() is the only way out
_TRANSITIONS: Dict[ShippingStatus, set] = {
    _S.PENDING: {_S.PROCESSING, _S.MANUAL_REVIEW},
    _S.PROCESSING: {_S.SHIPPED, _S.IN_TRANSIT} | _IN_FLIGHT_EXITS,
    _S.SHIPPED: {_S.IN_TRANSIT, _S.OUT_FOR_DELIVERY, _S.DELIVERED} | _IN_FLIGHT_EXITS,
    _S.IN_TRANSIT: {_S.OUT_FOR_DELIVERY, _S.DELIVERED} | _IN_FLIGHT_EXITS,
    _S.OUT_FOR_DELIVERY: {_S.DELIVERED} | _IN_FLIGHT_EXITS,
    _S.EXCEPTION: {_S.IN_TRANSIT, _S.OUT_FOR_DELIVERY, _S.DELIVERED, _S.RETURNED},
    _S.DELIVERED: set(),
    _S.RETURNED: set(),
    _S.MANUAL_REVIEW: set(),
}


# =============================================================================
# Value records
# =============================================================================

@dataclass
class Address:
    """Postal address in provider-neutral form."""
    address_line1: Optional[str] = None
    city: Optional[str] = None
    state_province: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    address_line2: Optional[str] = None
    name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    residential: ResidentialIndicator = ResidentialIndicator.UNKNOWN

    REQUIRED_FIELDS = ("address_line1", "city", "state_province", "postal_code", "country_code")

    def missing_required_fields(self) -> List[str]:
        return [f for f in self.REQUIRED_FIELDS if not (getattr(self, f) or "").strip()]

    @property
    def is_complete(self) -> bool:
        return not self.missing_required_fields()


@dataclass
class Weight:
    value: float
    unit: WeightUnit = WeightUnit.KILOGRAM

    def __post_init__(self):
        self.unit = WeightUnit(normalize_weight_unit(getattr(self.unit, "value", self.unit)))
        if self.value is None or float(self.value) <= 0:
            raise ValueError(f"Weight must be positive, got {self.value!r}")
        self.value = float(self.value)

    def in_kilograms(self) -> float:
        return to_kilograms(self.value, self.unit.value)


@dataclass
class Dimensions:
    length: float
    width: float
    height: float
    unit: DimensionUnit = DimensionUnit.CENTIMETER

    def __post_init__(self):
        length, width, height, unit = normalize_dimensions(
            self.length, self.width, self.height, getattr(self.unit, "value", self.unit)
        )
        self.length, self.width, self.height = length, width, height
        self.unit = DimensionUnit(unit)

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height


@dataclass
class MoneyAmount:
    """Amount in major units (dollars), as the provider expects."""
    amount: float
    currency: str = "CAD"


@dataclass(frozen=True)
class Rate:
    """Shipping rate quote. Only the client constructs these, from a provider response."""
    service_code: str
    service_name: str
    carrier_id: Optional[str]
    carrier_code: Optional[str]
    carrier_name: Optional[str]
    shipping_amount: float
    currency: str = "CAD"
    other_amount: float = 0.0
    delivery_days: Optional[int] = None
    carrier_delivery_days: Optional[str] = None
    ship_date: Optional[str] = None
    estimated_delivery_date: Optional[str] = None
    rate_id: Optional[str] = None

    @property
    def total_amount(self) -> float:
        return round(self.shipping_amount + self.other_amount, 2)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rate":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class RateCriteria:
    """Everything needed to quote and to derive a cache key."""
    ship_to: Address
    weight: Weight
    dimensions: Optional[Dimensions] = None
    ship_from: Optional[Address] = None
    carrier_ids: List[str] = field(default_factory=list)
    service_codes: List[str] = field(default_factory=list)
    shipping_class: Optional[str] = None
    requires_signature: bool = False
    # None leaves the destination address's own indicator in place
    residential: Optional[bool] = None


# =============================================================================
# Shipment records
# =============================================================================

@dataclass
class Package:
    weight: Weight
    dimensions: Optional[Dimensions] = None


@dataclass
class ShipmentItem:
    name: str
    quantity: int = 1
    sku: Optional[str] = None
    unit_price: Optional[MoneyAmount] = None
    weight: Optional[Weight] = None


@dataclass
class ShipmentRequest:
    """Canonical create-shipment request produced by the ShipmentBuilder."""
    external_shipment_id: str
    warehouse_id: str
    ship_to: Address
    items: List[ShipmentItem] = field(default_factory=list)
    packages: List[Package] = field(default_factory=list)
    carrier_id: Optional[str] = None
    service_code: Optional[str] = None
    amount_paid: Optional[MoneyAmount] = None
    shipping_paid: Optional[MoneyAmount] = None
    notes_from_buyer: Optional[str] = None
    validate_address: str = "validate_and_clean"
    create_sales_order: bool = True
    shipment_status: str = "pending"

    @property
    def total_weight(self) -> Optional[Weight]:
        return self.packages[0].weight if self.packages else None


@dataclass
class ProviderMessage:
    message: str
    error_code: Optional[str] = None
    error_source: Optional[str] = None
    error_type: Optional[str] = None


@dataclass
class ShipmentRecord:
    """A provider-side shipment as returned by create or get."""
    shipment_id: Optional[str]
    external_shipment_id: Optional[str] = None
    shipment_status: Optional[str] = None
    carrier_id: Optional[str] = None
    service_code: Optional[str] = None
    ship_date: Optional[str] = None
    created_at: Optional[str] = None
    errors: List[ProviderMessage] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass
class ShipmentResponse:
    shipments: List[ShipmentRecord] = field(default_factory=list)
    has_errors: bool = False

    @property
    def first(self) -> Optional[ShipmentRecord]:
        return self.shipments[0] if self.shipments else None


# =============================================================================
# Lookup results
# =============================================================================

@dataclass
class CarrierService:
    carrier_id: Optional[str]
    carrier_code: Optional[str]
    service_code: str
    name: str
    domestic: bool = False
    international: bool = False


@dataclass
class Carrier:
    carrier_id: str
    carrier_code: Optional[str] = None
    friendly_name: Optional[str] = None
    nickname: Optional[str] = None
    services: List[CarrierService] = field(default_factory=list)


@dataclass
class AddressValidationResult:
    """Result of address validation."""
    is_valid: bool
    normalized_address: Optional[Address] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    status: str = "unknown"  # verified, unverified, warning, error
