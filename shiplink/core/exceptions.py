"""
ShipLink Exception Hierarchy

Structured exception classes for the shipping-provider integration.
All exceptions carry code, message, and details so failures can be logged
and surfaced to callers without losing the provider's context.

Exception Hierarchy:
    ShipLinkError
    ├── ShipStationError
    │   └── ResponseParseError
    ├── ConfigurationError
    ├── RateCacheError
    └── WebhookError
"""
import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class ShipLinkError(Exception):
    """
    Base exception for all ShipLink errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
        severity: P0-P3 severity level
    """

    default_code: str = "SHIPLINK_ERROR"
    default_severity: str = "P2"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# PROVIDER ERRORS
# =============================================================================

class ShipStationError(ShipLinkError):
    """
    Any failure talking to ShipStation.

    code is the provider's error_code when it sent one, HTTP_<status> when
    only a status is known, and UNKNOWN_ERROR for transport failures.
    """
    default_code = "UNKNOWN_ERROR"
    default_severity = "P1"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.status_code = status_code
        details = kwargs.pop("details", {}) or {}
        if status_code is not None:
            details.setdefault("status_code", status_code)
        super().__init__(message, details=details, **kwargs)

    @property
    def is_retryable(self) -> bool:
        """Transport failures and 5xx responses are worth another attempt."""
        return self.status_code is None or self.status_code >= 500

    @classmethod
    def from_response_body(
        cls,
        status_code: int,
        body: Dict[str, Any],
    ) -> "ShipStationError":
        """
        Classify a non-2xx response.

        Args:
            status_code: HTTP status of the response
            body: Parsed JSON body, or {"message": <raw text>} when it was not JSON

        Returns:
            ShipStationError with the provider's message and code when present
        """
        message = body.get("message")
        code = body.get("error_code")

        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            message = message or errors[0].get("message")
            code = code or errors[0].get("error_code")

        return cls(
            message or f"HTTP {status_code}",
            status_code=status_code,
            code=code or f"HTTP_{status_code}",
            details={"response": body},
        )


class ResponseParseError(ShipStationError):
    """A 2xx response whose body could not be decoded into the expected shape."""
    default_code = "INVALID_RESPONSE"


# =============================================================================
# LOCAL ERRORS
# =============================================================================

class ConfigurationError(ShipLinkError):
    """Required configuration is missing or invalid."""
    default_code = "CONFIGURATION_ERROR"
    default_severity = "P0"


class RateCacheError(ShipLinkError):
    """Rate cache backend failure."""
    default_code = "RATE_CACHE_ERROR"
    default_severity = "P3"


class WebhookError(ShipLinkError):
    """Inbound webhook could not be accepted."""
    default_code = "WEBHOOK_ERROR"

    def __init__(
        self,
        message: str,
        event_type: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {}) or {}
        if event_type:
            details["event_type"] = event_type
        super().__init__(message, details=details, **kwargs)
