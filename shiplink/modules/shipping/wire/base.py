"""
Base Wire Adapter Interface v1.0.0

One adapter per provider API version. Adapters translate between the
canonical records in shiplink.models.shipping and the JSON bodies of one
API version, so the builder and orchestrator never see wire shapes.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from shiplink.core.exceptions import ResponseParseError
from shiplink.models.shipping import (
    Address,
    AddressValidationResult,
    Carrier,
    CarrierService,
    RateCriteria,
    Rate,
    ShipmentRecord,
    ShipmentRequest,
    ShipmentResponse,
)

M = TypeVar("M", bound=BaseModel)


class WireAdapter(ABC):
    """
    Abstract base for provider API versions.

    Build methods return JSON-ready dicts; parse methods accept decoded JSON
    and raise ResponseParseError when it does not match the endpoint schema.
    """

    version: str = ""

    # =========================================================================
    # Endpoints
    # =========================================================================

    @abstractmethod
    def rates_path(self) -> str:
        pass

    @abstractmethod
    def shipments_path(self) -> str:
        pass

    @abstractmethod
    def shipment_path(self, shipment_id: str) -> str:
        pass

    @abstractmethod
    def cancel_shipment_path(self, shipment_id: str) -> str:
        pass

    @abstractmethod
    def carriers_path(self) -> str:
        pass

    @abstractmethod
    def carrier_path(self, carrier_id: str) -> str:
        pass

    @abstractmethod
    def carrier_services_path(self, carrier_id: str) -> str:
        pass

    @abstractmethod
    def validate_address_path(self) -> str:
        pass

    # =========================================================================
    # Requests
    # =========================================================================

    @abstractmethod
    def build_rate_request(
        self,
        criteria: RateCriteria,
        warehouse_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    def build_create_shipment_request(self, request: ShipmentRequest) -> Dict[str, Any]:
        pass

    @abstractmethod
    def build_address_validation_request(self, address: Address) -> Any:
        pass

    # =========================================================================
    # Responses
    # =========================================================================

    @abstractmethod
    def parse_rates(self, body: Any) -> List[Rate]:
        pass

    @abstractmethod
    def parse_create_shipment(self, body: Any) -> ShipmentResponse:
        pass

    @abstractmethod
    def parse_shipment(self, body: Any) -> ShipmentRecord:
        pass

    @abstractmethod
    def parse_carriers(self, body: Any) -> List[Carrier]:
        pass

    @abstractmethod
    def parse_carrier(self, body: Any) -> Carrier:
        pass

    @abstractmethod
    def parse_carrier_services(self, body: Any) -> List[CarrierService]:
        pass

    @abstractmethod
    def parse_address_validation(self, body: Any) -> AddressValidationResult:
        pass

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate(self, model: Type[M], body: Any) -> M:
        """Validate a decoded body against a wire model."""
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise ResponseParseError(
                f"Unexpected {model.__name__} payload from provider",
                details={"errors": e.errors(include_url=False), "api_version": self.version},
            )
