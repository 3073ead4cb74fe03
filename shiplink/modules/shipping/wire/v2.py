"""
ShipStation API v2 Wire Adapter v1.0.0

- Implements WireAdapter for the /v2 REST endpoints
- Registered via @register_adapter decorator
- Money crosses this boundary already in major units; the builder converts
"""
import logging
from typing import Any, Dict, List, Optional

from shiplink.models.shipping import (
    Address,
    AddressValidationResult,
    Carrier,
    CarrierService,
    Dimensions,
    MoneyAmount,
    Package,
    ProviderMessage,
    RateCriteria,
    Rate,
    ResidentialIndicator,
    ShipmentRecord,
    ShipmentRequest,
    ShipmentResponse,
    Weight,
)
from shiplink.modules.shipping.wire import register_adapter
from shiplink.modules.shipping.wire.base import WireAdapter
from shiplink.schemas.shipstation import (
    AddressValidationEntry,
    CreateShipmentRequest,
    CreateShipmentResponse,
    GetShipmentResponse,
    ListCarriersResponse,
    ListServicesResponse,
    RateOptions,
    RateRequest,
    RateResponse,
    RateShipment,
    WireAddress,
    WireCarrier,
    WireCarrierService,
    WireDimensions,
    WireMessage,
    WireMoney,
    WirePackage,
    WireShipment,
    WireShipmentItem,
    WireShipmentResult,
    WireWeight,
)

logger = logging.getLogger(__name__)

DEFAULT_SHIP_TO_NAME = "Recipient"
DEFAULT_SHIP_FROM_NAME = "Sender"


def _address_to_wire(address: Address, default_name: Optional[str] = None) -> WireAddress:
    return WireAddress(
        name=address.name or default_name,
        company_name=address.company_name,
        phone=address.phone,
        address_line1=address.address_line1,
        address_line2=address.address_line2,
        city_locality=address.city,
        state_province=address.state_province,
        postal_code=address.postal_code,
        country_code=address.country_code,
        address_residential_indicator=ResidentialIndicator(address.residential).value,
    )


def _address_from_wire(wire: WireAddress) -> Address:
    return Address(
        name=wire.name,
        company_name=wire.company_name,
        phone=wire.phone,
        address_line1=wire.address_line1,
        address_line2=wire.address_line2,
        city=wire.city_locality,
        state_province=wire.state_province,
        postal_code=wire.postal_code,
        country_code=wire.country_code,
        residential=ResidentialIndicator(wire.address_residential_indicator or "unknown"),
    )


def _weight_to_wire(weight: Weight) -> WireWeight:
    return WireWeight(value=weight.value, unit=weight.unit.value)


def _dimensions_to_wire(dimensions: Dimensions) -> WireDimensions:
    return WireDimensions(
        length=dimensions.length,
        width=dimensions.width,
        height=dimensions.height,
        unit=dimensions.unit.value,
    )


def _package_to_wire(package: Package) -> WirePackage:
    return WirePackage(
        weight=_weight_to_wire(package.weight),
        dimensions=_dimensions_to_wire(package.dimensions) if package.dimensions else None,
    )


def _money_to_wire(money: Optional[MoneyAmount]) -> Optional[WireMoney]:
    if money is None:
        return None
    return WireMoney(currency=money.currency, amount=money.amount)


def _messages(wire_messages: Optional[List[WireMessage]]) -> List[ProviderMessage]:
    return [
        ProviderMessage(
            message=m.message,
            error_code=m.error_code,
            error_source=m.error_source,
            error_type=m.error_type,
        )
        for m in wire_messages or []
    ]


def _shipment_from_wire(wire: WireShipmentResult) -> ShipmentRecord:
    return ShipmentRecord(
        shipment_id=wire.shipment_id,
        external_shipment_id=wire.external_shipment_id,
        shipment_status=wire.shipment_status,
        carrier_id=wire.carrier_id,
        service_code=wire.service_code,
        ship_date=wire.ship_date,
        created_at=wire.created_at,
        errors=_messages(wire.errors),
    )


def _service_from_wire(wire: WireCarrierService, carrier: Optional[WireCarrier] = None) -> CarrierService:
    return CarrierService(
        carrier_id=wire.carrier_id or (carrier.carrier_id if carrier else None),
        carrier_code=wire.carrier_code or (carrier.carrier_code if carrier else None),
        service_code=wire.service_code,
        name=wire.name or wire.service_code,
        domestic=wire.domestic,
        international=wire.international,
    )


def _carrier_from_wire(wire: WireCarrier) -> Carrier:
    return Carrier(
        carrier_id=wire.carrier_id,
        carrier_code=wire.carrier_code,
        friendly_name=wire.friendly_name or wire.carrier_name,
        nickname=wire.nickname,
        services=[_service_from_wire(s, wire) for s in wire.services],
    )


@register_adapter("v2")
class ShipStationV2Adapter(WireAdapter):
    """ShipStation API v2 (api.shipstation.com/v2)."""

    # =========================================================================
    # Endpoints
    # =========================================================================

    def rates_path(self) -> str:
        return "/v2/rates"

    def shipments_path(self) -> str:
        return "/v2/shipments"

    def shipment_path(self, shipment_id: str) -> str:
        return f"/v2/shipments/{shipment_id}"

    def cancel_shipment_path(self, shipment_id: str) -> str:
        return f"/v2/shipments/{shipment_id}/cancel"

    def carriers_path(self) -> str:
        return "/v2/carriers"

    def carrier_path(self, carrier_id: str) -> str:
        return f"/v2/carriers/{carrier_id}"

    def carrier_services_path(self, carrier_id: str) -> str:
        return f"/v2/carriers/{carrier_id}/services"

    def validate_address_path(self) -> str:
        return "/v2/addresses/validate"

    # =========================================================================
    # Requests
    # =========================================================================

    def build_rate_request(
        self,
        criteria: RateCriteria,
        warehouse_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Build a /v2/rates body.

        Uses ship_from when the criteria carry an origin, otherwise the
        warehouse. Raises ValueError if carrier_ids is empty.
        """
        if not criteria.carrier_ids:
            raise ValueError("At least one carrier_id is required for rate requests")

        package = Package(weight=criteria.weight, dimensions=criteria.dimensions)
        shipment = RateShipment(
            ship_to=_address_to_wire(criteria.ship_to, DEFAULT_SHIP_TO_NAME),
            packages=[_package_to_wire(package)],
            confirmation="signature" if criteria.requires_signature else None,
        )
        if criteria.residential is not None:
            indicator = ResidentialIndicator.from_flag(criteria.residential)
            shipment.ship_to.address_residential_indicator = indicator.value
        if criteria.ship_from:
            shipment.ship_from = _address_to_wire(criteria.ship_from, DEFAULT_SHIP_FROM_NAME)
        elif warehouse_id:
            shipment.warehouse_id = warehouse_id

        request = RateRequest(
            rate_options=RateOptions(
                carrier_ids=list(criteria.carrier_ids),
                service_codes=list(criteria.service_codes) or None,
            ),
            shipment=shipment,
        )
        return request.model_dump(exclude_none=True)

    def build_create_shipment_request(self, request: ShipmentRequest) -> Dict[str, Any]:
        items = [
            WireShipmentItem(
                name=item.name,
                sku=item.sku,
                quantity=item.quantity,
                unit_price=_money_to_wire(item.unit_price),
                weight=_weight_to_wire(item.weight) if item.weight else None,
            )
            for item in request.items
        ]
        shipment = WireShipment(
            validate_address=request.validate_address,
            external_shipment_id=request.external_shipment_id,
            warehouse_id=request.warehouse_id,
            carrier_id=request.carrier_id,
            service_code=request.service_code,
            create_sales_order=request.create_sales_order,
            shipment_status=request.shipment_status,
            notes_from_buyer=request.notes_from_buyer,
            amount_paid=_money_to_wire(request.amount_paid),
            shipping_paid=_money_to_wire(request.shipping_paid),
            ship_to=_address_to_wire(request.ship_to),
            items=items,
            packages=[_package_to_wire(p) for p in request.packages] or None,
        )
        return CreateShipmentRequest(shipments=[shipment]).model_dump(exclude_none=True)

    def build_address_validation_request(self, address: Address) -> Any:
        return [_address_to_wire(address).model_dump(exclude_none=True)]

    # =========================================================================
    # Responses
    # =========================================================================

    def parse_rates(self, body: Any) -> List[Rate]:
        response = self._validate(RateResponse, body)
        for error in response.rate_response.errors:
            logger.warning(f"[SHIPSTATION] Rate error: {error.error_code or ''} {error.message}")

        return [
            Rate(
                rate_id=r.rate_id,
                service_code=r.service_code,
                service_name=r.service_name or r.service_code,
                carrier_id=r.carrier_id,
                carrier_code=r.carrier_code or r.carrier_id,
                carrier_name=r.carrier_friendly_name,
                shipping_amount=r.shipping_amount.amount,
                currency=r.shipping_amount.currency,
                other_amount=r.other_amount.amount,
                delivery_days=r.delivery_days,
                carrier_delivery_days=r.carrier_delivery_days,
                ship_date=r.ship_date,
                estimated_delivery_date=r.estimated_delivery_date,
            )
            for r in response.rate_response.rates
        ]

    def parse_create_shipment(self, body: Any) -> ShipmentResponse:
        response = self._validate(CreateShipmentResponse, body)
        shipments = [_shipment_from_wire(s) for s in response.shipments]
        return ShipmentResponse(
            shipments=shipments,
            has_errors=response.has_errors or bool(response.errors) or any(s.has_errors for s in shipments),
        )

    def parse_shipment(self, body: Any) -> ShipmentRecord:
        return _shipment_from_wire(self._validate(GetShipmentResponse, body))

    def parse_carriers(self, body: Any) -> List[Carrier]:
        return [_carrier_from_wire(c) for c in self._validate(ListCarriersResponse, body).carriers]

    def parse_carrier(self, body: Any) -> Carrier:
        return _carrier_from_wire(self._validate(WireCarrier, body))

    def parse_carrier_services(self, body: Any) -> List[CarrierService]:
        return [_service_from_wire(s) for s in self._validate(ListServicesResponse, body).services]

    def parse_address_validation(self, body: Any) -> AddressValidationResult:
        # The endpoint answers with one entry per submitted address
        if isinstance(body, list):
            body = body[0] if body else None
        entry = self._validate(AddressValidationEntry, body)

        warnings = [m.message for m in entry.messages if m.type == "warning"]
        errors = [m.message for m in entry.messages if m.type == "error"]
        if entry.status == "error" and not errors:
            errors.append("Address could not be validated")

        return AddressValidationResult(
            is_valid=entry.status in ("verified", "warning"),
            normalized_address=_address_from_wire(entry.matched_address) if entry.matched_address else None,
            warnings=warnings,
            errors=errors,
            status=entry.status,
        )
