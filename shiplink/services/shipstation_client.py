"""
ShipStation API Client v1.0.0

Single point of contact with the ShipStation REST API.
- API-Key header authentication
- Retry/backoff via ResilientHTTPClient (transport errors and 5xx only)
- Every failure classified as ShipStationError with a stable code
- Wire shapes delegated to a versioned WireAdapter

Rate lookups and address validation are advisory and never raise.
Shipment and carrier operations raise ShipStationError.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from shiplink.core.config import SHIPSTATION_PRODUCTION_URL, Settings
from shiplink.core.exceptions import ConfigurationError, ResponseParseError, ShipStationError
from shiplink.core.http_client import ResilientHTTPClient, RetryConfig
from shiplink.core.utils import mask_secret, sanitize_for_logging
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
from shiplink.modules.shipping.wire import DEFAULT_API_VERSION, get_adapter

logger = logging.getLogger(__name__)


class ShipStationClient:
    """
    ShipStation API client.

    Stateless between calls: holds credentials, base URL, retry config and
    one pooled HTTP connection.

    Usage:
        async with ShipStationClient(api_key="...", warehouse_id="se-123") as client:
            rates = await client.get_rates(criteria)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = SHIPSTATION_PRODUCTION_URL,
        warehouse_id: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        api_version: str = DEFAULT_API_VERSION,
    ):
        if not api_key or not api_key.strip():
            raise ConfigurationError("ShipStation API key is required", code="SHIPSTATION_API_KEY_MISSING")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.warehouse_id = warehouse_id or None
        self.adapter = get_adapter(api_version)

        self._http = ResilientHTTPClient(
            base_url=self.base_url,
            retry_config=RetryConfig(max_retries=max_retries, base_delay=retry_delay),
            timeout=timeout,
            default_headers={
                "API-Key": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

        logger.info(
            f"[SHIPSTATION] Client configured: {self.base_url} (API {api_version}, "
            f"key {mask_secret(api_key)}, retries {max_retries})"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShipStationClient":
        return cls(
            api_key=settings.SHIPSTATION_API_KEY,
            base_url=settings.shipstation_base_url,
            warehouse_id=settings.SHIPSTATION_WAREHOUSE_ID,
            max_retries=settings.SHIPSTATION_MAX_RETRIES,
            retry_delay=settings.retry_delay_seconds,
            timeout=settings.SHIPSTATION_TIMEOUT_SECONDS,
        )

    async def __aenter__(self):
        await self._http.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._http.close()

    # ==================== Transport ====================

    async def _make_request(
        self,
        method: str,
        path: str,
        data: Optional[Any] = None,
        params: Optional[Dict] = None,
    ) -> Any:
        """
        Make an authenticated request and decode the JSON body.

        Returns:
            Decoded JSON, or {} for 204 / empty bodies

        Raises:
            ShipStationError: transport failure after retries or non-2xx status
            ResponseParseError: 2xx body that is not JSON
        """
        try:
            response = await self._http.request(method, path, json=data, params=params)
        except httpx.TransportError as e:
            logger.error(f"[SHIPSTATION] {method} {path} failed: {e.__class__.__name__}: {e}")
            raise ShipStationError(f"Network error: {e}", details={"path": path})

        logger.debug(f"[SHIPSTATION] {method} {path} -> {response.status_code}")

        if response.status_code >= 400:
            try:
                error_data = response.json()
                if not isinstance(error_data, dict):
                    error_data = {"message": response.text}
            except ValueError:
                error_data = {"message": response.text}

            error = ShipStationError.from_response_body(response.status_code, error_data)
            logger.error(
                f"[SHIPSTATION] {method} {path}: {error.code} - "
                f"{sanitize_for_logging(error.message)}"
            )
            raise error

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError:
            raise ResponseParseError(
                f"Invalid JSON in response to {method} {path}",
                status_code=response.status_code,
                details={"body": sanitize_for_logging(response.text)},
            )

    def _handle_error(self, error: Exception, message: str) -> ShipStationError:
        """Keep ShipStationErrors as-is, wrap anything else as UNKNOWN_ERROR."""
        if isinstance(error, ShipStationError):
            return error
        return ShipStationError(f"{message}: {error}")

    # ==================== Rates ====================

    async def get_rates(self, criteria: RateCriteria) -> List[Rate]:
        """
        Quote rates for a package.

        Advisory: any failure is logged and an empty list returned.
        """
        if not criteria.carrier_ids:
            logger.warning("[SHIPSTATION] get_rates called without carrier_ids; returning no rates")
            return []

        try:
            body = self.adapter.build_rate_request(criteria, self.warehouse_id)
            logger.debug(f"[SHIPSTATION] Rate request: {sanitize_for_logging(body)}")
            data = await self._make_request("POST", self.adapter.rates_path(), data=body)
            rates = self.adapter.parse_rates(data)
        except Exception as e:
            logger.error(f"[SHIPSTATION] Failed to get rates: {e}")
            return []

        logger.info(f"[SHIPSTATION] {len(rates)} rates for {criteria.ship_to.postal_code}")
        return rates

    # ==================== Shipments ====================

    async def create_shipment(self, request: ShipmentRequest) -> ShipmentResponse:
        try:
            body = self.adapter.build_create_shipment_request(request)
            logger.debug(f"[SHIPSTATION] Create shipment: {sanitize_for_logging(body)}")
            data = await self._make_request("POST", self.adapter.shipments_path(), data=body)
            return self.adapter.parse_create_shipment(data)
        except Exception as e:
            raise self._handle_error(e, "Failed to create shipment")

    async def get_shipment(self, shipment_id: str) -> ShipmentRecord:
        try:
            data = await self._make_request("GET", self.adapter.shipment_path(shipment_id))
            return self.adapter.parse_shipment(data)
        except Exception as e:
            raise self._handle_error(e, "Failed to get shipment")

    async def cancel_shipment(self, shipment_id: str) -> Dict[str, bool]:
        try:
            await self._make_request("PUT", self.adapter.cancel_shipment_path(shipment_id))
            logger.info(f"[SHIPSTATION] Cancelled shipment {shipment_id}")
            return {"success": True}
        except Exception as e:
            raise self._handle_error(e, "Failed to cancel shipment")

    # ==================== Carriers ====================

    async def list_carriers(self) -> List[Carrier]:
        try:
            data = await self._make_request("GET", self.adapter.carriers_path())
            return self.adapter.parse_carriers(data)
        except Exception as e:
            raise self._handle_error(e, "Failed to list carriers")

    async def get_carrier(self, carrier_id: str) -> Carrier:
        try:
            data = await self._make_request("GET", self.adapter.carrier_path(carrier_id))
            return self.adapter.parse_carrier(data)
        except Exception as e:
            raise self._handle_error(e, "Failed to get carrier")

    async def list_carrier_services(self, carrier_id: str) -> List[CarrierService]:
        try:
            data = await self._make_request("GET", self.adapter.carrier_services_path(carrier_id))
            return self.adapter.parse_carrier_services(data)
        except Exception as e:
            raise self._handle_error(e, "Failed to list carrier services")

    # ==================== Address Validation ====================

    async def validate_address(self, address: Address) -> AddressValidationResult:
        """
        Validate and normalize an address.

        Best-effort: provider failures produce is_valid=False with the
        reason in errors, so checkout can decide whether to proceed.
        """
        try:
            body = self.adapter.build_address_validation_request(address)
            data = await self._make_request("POST", self.adapter.validate_address_path(), data=body)
            return self.adapter.parse_address_validation(data)
        except Exception as e:
            error = self._handle_error(e, "Failed to validate address")
            logger.warning(f"[SHIPSTATION] Address validation unavailable: {error.code} {error.message}")
            return AddressValidationResult(
                is_valid=False,
                errors=[f"Address validation unavailable: {error.message}"],
                status="error",
            )
