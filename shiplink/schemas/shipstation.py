"""
ShipStation API v2 wire schemas

Closed request/response models per endpoint. Requests are serialized with
exclude_none so optional fields are omitted rather than sent as null.
Responses ignore unknown fields; missing required fields raise
pydantic.ValidationError, which the client turns into ResponseParseError.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ==================== Shared Shapes ====================


class WireMoney(WireModel):
    currency: str = "CAD"
    amount: float = 0.0


class WireWeight(WireModel):
    value: float = Field(..., gt=0)
    unit: Literal["ounce", "pound", "gram", "kilogram"]


class WireDimensions(WireModel):
    length: float
    width: float
    height: float
    unit: Literal["inch", "centimeter"]


class WirePackage(WireModel):
    weight: WireWeight
    dimensions: Optional[WireDimensions] = None


class WireAddress(WireModel):
    name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city_locality: Optional[str] = None
    state_province: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    address_residential_indicator: Optional[Literal["yes", "no", "unknown"]] = None


class WireMessage(WireModel):
    message: str = ""
    error_code: Optional[str] = None
    error_source: Optional[str] = None
    error_type: Optional[str] = None
    type: Optional[str] = None  # address validation: error, warning, info


# ==================== Rates ====================


class RateOptions(WireModel):
    carrier_ids: List[str] = Field(..., min_length=1)
    service_codes: Optional[List[str]] = None


class RateShipment(WireModel):
    validate_address: str = "validate_and_clean"
    ship_to: WireAddress
    ship_from: Optional[WireAddress] = None
    warehouse_id: Optional[str] = None
    packages: List[WirePackage]
    confirmation: Optional[str] = None


class RateRequest(WireModel):
    rate_options: RateOptions
    shipment: RateShipment


class WireRate(WireModel):
    rate_id: Optional[str] = None
    service_code: str
    service_name: Optional[str] = None
    service_type: Optional[str] = None
    carrier_id: Optional[str] = None
    carrier_code: Optional[str] = None
    carrier_friendly_name: Optional[str] = None
    shipping_amount: WireMoney = Field(default_factory=WireMoney)
    other_amount: WireMoney = Field(default_factory=WireMoney)
    delivery_days: Optional[int] = None
    carrier_delivery_days: Optional[str] = None
    ship_date: Optional[str] = None
    estimated_delivery_date: Optional[str] = None


class RateResponseBody(WireModel):
    rates: List[WireRate] = Field(default_factory=list)
    errors: List[WireMessage] = Field(default_factory=list)


class RateResponse(WireModel):
    rate_response: RateResponseBody


# ==================== Shipments ====================


class WireShipmentItem(WireModel):
    name: str
    sku: Optional[str] = None
    quantity: int = 1
    unit_price: Optional[WireMoney] = None
    weight: Optional[WireWeight] = None


class WireShipment(WireModel):
    validate_address: str = "validate_and_clean"
    external_shipment_id: Optional[str] = None
    warehouse_id: Optional[str] = None
    carrier_id: Optional[str] = None
    service_code: Optional[str] = None
    create_sales_order: Optional[bool] = None
    shipment_status: Optional[str] = None
    notes_from_buyer: Optional[str] = None
    amount_paid: Optional[WireMoney] = None
    shipping_paid: Optional[WireMoney] = None
    ship_to: WireAddress
    items: Optional[List[WireShipmentItem]] = None
    packages: Optional[List[WirePackage]] = None


class CreateShipmentRequest(WireModel):
    shipments: List[WireShipment]


class WireShipmentResult(WireModel):
    shipment_id: Optional[str] = None
    external_shipment_id: Optional[str] = None
    shipment_status: Optional[str] = None
    carrier_id: Optional[str] = None
    service_code: Optional[str] = None
    ship_date: Optional[str] = None
    created_at: Optional[str] = None
    errors: Optional[List[WireMessage]] = None


class CreateShipmentResponse(WireModel):
    has_errors: bool = False
    shipments: List[WireShipmentResult]
    errors: Optional[List[WireMessage]] = None


class GetShipmentResponse(WireShipmentResult):
    shipment_id: str


# ==================== Carriers ====================


class WireCarrierService(WireModel):
    carrier_id: Optional[str] = None
    carrier_code: Optional[str] = None
    service_code: str
    name: str = ""
    domestic: bool = False
    international: bool = False


class WireCarrier(WireModel):
    carrier_id: str
    carrier_code: Optional[str] = None
    friendly_name: Optional[str] = None
    carrier_name: Optional[str] = None
    nickname: Optional[str] = None
    services: List[WireCarrierService] = Field(default_factory=list)


class ListCarriersResponse(WireModel):
    carriers: List[WireCarrier] = Field(default_factory=list)


class ListServicesResponse(WireModel):
    services: List[WireCarrierService] = Field(default_factory=list)


# ==================== Address Validation ====================


class AddressValidationEntry(WireModel):
    status: Literal["unverified", "verified", "warning", "error"]
    original_address: Optional[WireAddress] = None
    matched_address: Optional[WireAddress] = None
    messages: List[WireMessage] = Field(default_factory=list)
