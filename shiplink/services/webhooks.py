"""
ShipStation webhook verification

Signature: hex HMAC-SHA256 of the raw request body with the shared secret,
sent in the x-shipstation-signature header and compared in constant time.
Verified events are mapped to the ShippingStatus they imply; persisting that
status is the caller's job.
"""
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Union

from shiplink.core.exceptions import WebhookError
from shiplink.models.shipping import ShippingStatus

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-shipstation-signature"

SHIPMENT_CREATED = "shipment.created"
LABEL_CREATED = "label.created"
TRACKING_UPDATED = "tracking.updated"
TRACKING_DELIVERED = "tracking.delivered"
TRACKING_EXCEPTION = "tracking.exception"

KNOWN_EVENTS = (
    SHIPMENT_CREATED,
    LABEL_CREATED,
    TRACKING_UPDATED,
    TRACKING_DELIVERED,
    TRACKING_EXCEPTION,
)

# Event type -> implied order status (None = informational only)
EVENT_STATUS_MAP: Dict[str, Optional[ShippingStatus]] = {
    SHIPMENT_CREATED: ShippingStatus.PROCESSING,
    LABEL_CREATED: None,
    TRACKING_UPDATED: ShippingStatus.IN_TRANSIT,
    TRACKING_DELIVERED: ShippingStatus.DELIVERED,
    TRACKING_EXCEPTION: ShippingStatus.EXCEPTION,
}


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def compute_signature(raw_body: Union[str, bytes], secret: str) -> str:
    return hmac.new(_to_bytes(secret), _to_bytes(raw_body), hashlib.sha256).hexdigest()


def verify_signature(raw_body: Union[str, bytes], signature: Optional[str], secret: str) -> bool:
    """Constant-time check of a webhook signature. A missing signature fails."""
    if not signature or not secret:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(signature.strip().lower().encode("utf-8"), expected.encode("ascii"))


@dataclass
class WebhookEvent:
    event_type: str
    timestamp: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def shipment_id(self) -> Optional[str]:
        return self.data.get("shipmentId")

    @property
    def tracking_number(self) -> Optional[str]:
        return self.data.get("trackingNumber")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "WebhookEvent":
        event_type = payload.get("eventType")
        if not event_type:
            raise WebhookError("Webhook payload has no eventType", code="INVALID_PAYLOAD")
        return cls(
            event_type=event_type,
            timestamp=payload.get("timestamp"),
            data=payload.get("data") or {},
        )

    def implied_status(self) -> Optional[ShippingStatus]:
        """
        Status this event moves an order to.

        tracking.updated carries the provider's own status when it names one
        we know; otherwise it means in_transit.
        """
        if self.event_type == TRACKING_UPDATED:
            reported = (self.data.get("status") or "").lower()
            try:
                return ShippingStatus(reported)
            except ValueError:
                pass
        return EVENT_STATUS_MAP.get(self.event_type)


@dataclass
class WebhookResult:
    received: bool = True
    processed: bool = False
    event: Optional[WebhookEvent] = None
    status: Optional[ShippingStatus] = None


class WebhookProcessor:
    """
    Verifies and interprets inbound webhook deliveries.

    Args:
        secret: Shared HMAC secret
        enabled_events: Event types to act on; empty means all
    """

    def __init__(self, secret: str, enabled_events: Optional[Iterable[str]] = None):
        self.secret = secret
        self.enabled_events = set(enabled_events or [])

    def is_enabled(self, event_type: str) -> bool:
        return not self.enabled_events or event_type in self.enabled_events

    def handle(self, raw_body: Union[str, bytes], signature: Optional[str]) -> WebhookResult:
        """
        Verify and parse one delivery.

        Raises:
            WebhookError: secret missing, signature invalid, or body malformed
        """
        if not self.secret:
            logger.warning("[WEBHOOK] Webhook received but no secret configured")
            raise WebhookError("Webhook secret not configured", code="WEBHOOK_SECRET_MISSING")

        if not verify_signature(raw_body, signature, self.secret):
            logger.warning("[WEBHOOK] Invalid webhook signature")
            raise WebhookError("Invalid signature", code="INVALID_SIGNATURE", severity="P1")

        try:
            payload = json.loads(raw_body)
        except (TypeError, ValueError) as e:
            raise WebhookError(f"Webhook body is not valid JSON: {e}", code="INVALID_PAYLOAD")
        if not isinstance(payload, dict):
            raise WebhookError("Webhook body must be a JSON object", code="INVALID_PAYLOAD")

        event = WebhookEvent.from_payload(payload)

        if not self.is_enabled(event.event_type):
            logger.info(f"[WEBHOOK] Event {event.event_type} not enabled, ignoring")
            return WebhookResult(processed=False, event=event)

        if event.event_type not in KNOWN_EVENTS:
            logger.info(f"[WEBHOOK] Unknown webhook event type: {event.event_type}")
            return WebhookResult(processed=True, event=event)

        status = event.implied_status()
        logger.info(
            f"[WEBHOOK] Received {event.event_type} for shipment {event.shipment_id}"
            + (f" -> {status.value}" if status else "")
        )
        return WebhookResult(processed=True, event=event, status=status)
