"""
ShipLink configuration

SECURITY: SHIPSTATION_API_KEY has no default (construction fails if not set).
Everything else defaults to the provider's documented behaviour.
"""
import json
import logging
from functools import lru_cache
from typing import List, Union

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

SHIPSTATION_PRODUCTION_URL = "https://api.shipstation.com"


def _parse_list(v):
    """Accept a JSON array or a comma-separated string."""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if not v.strip():
            return []
        # Try JSON first
        if v.strip().startswith("["):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fallback to comma-separated
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    # ShipStation - NO DEFAULT API KEY (will fail if not set)
    SHIPSTATION_API_KEY: str
    SHIPSTATION_WAREHOUSE_ID: str = ""
    SHIPSTATION_API_URL: str = ""  # base URL override, e.g. a test double or proxy

    # Retry / timeout
    SHIPSTATION_MAX_RETRIES: int = 3
    SHIPSTATION_RETRY_DELAY_MS: int = 1000
    SHIPSTATION_TIMEOUT_SECONDS: float = 30.0

    # Rate requests - accepts JSON array or comma-separated string
    SHIPSTATION_CARRIER_IDS: Union[str, List[str]] = []

    # Webhooks
    SHIPSTATION_WEBHOOK_SECRET: str = ""
    SHIPSTATION_WEBHOOK_EVENTS: Union[str, List[str]] = []  # empty = all

    # Order pipeline
    SHIPSTATION_AUTO_CREATE_SHIPMENTS: bool = False
    SHIPPING_DEFAULT_CURRENCY: str = "CAD"

    # Rate cache
    RATE_CACHE_ENABLED: bool = True
    RATE_CACHE_TTL_SECONDS: int = 300
    RATE_CACHE_SWEEP_INTERVAL_SECONDS: int = 300
    REDIS_URL: str = ""  # empty = in-memory cache

    @field_validator("SHIPSTATION_CARRIER_IDS", "SHIPSTATION_WEBHOOK_EVENTS", mode="before")
    @classmethod
    def parse_list_fields(cls, v):
        return _parse_list(v)

    @field_validator("SHIPSTATION_API_KEY")
    @classmethod
    def validate_api_key(cls, v):
        if not v or not v.strip():
            raise ValueError("SHIPSTATION_API_KEY must not be blank")
        return v.strip()

    @field_validator("SHIPPING_DEFAULT_CURRENCY")
    @classmethod
    def normalize_currency(cls, v):
        return v.strip().upper()

    @model_validator(mode="after")
    def validate_ranges(self):
        """Reject values that would break the retry loop or the cache."""
        errors = []

        if self.SHIPSTATION_MAX_RETRIES < 0:
            errors.append("SHIPSTATION_MAX_RETRIES must be >= 0")
        if self.SHIPSTATION_RETRY_DELAY_MS < 0:
            errors.append("SHIPSTATION_RETRY_DELAY_MS must be >= 0")
        if self.SHIPSTATION_TIMEOUT_SECONDS <= 0:
            errors.append("SHIPSTATION_TIMEOUT_SECONDS must be > 0")
        if self.RATE_CACHE_TTL_SECONDS <= 0:
            errors.append("RATE_CACHE_TTL_SECONDS must be > 0")
        if self.RATE_CACHE_SWEEP_INTERVAL_SECONDS <= 0:
            errors.append("RATE_CACHE_SWEEP_INTERVAL_SECONDS must be > 0")

        if errors:
            raise ValueError(
                "INVALID SHIPPING CONFIGURATION:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        if not self.SHIPSTATION_WAREHOUSE_ID:
            logger.warning(
                "SHIPSTATION_WAREHOUSE_ID not set; shipment creation will fail "
                "unless a warehouse is passed explicitly"
            )

        return self

    @property
    def shipstation_base_url(self) -> str:
        if self.SHIPSTATION_API_URL:
            return self.SHIPSTATION_API_URL.rstrip("/")
        return SHIPSTATION_PRODUCTION_URL

    @property
    def retry_delay_seconds(self) -> float:
        return self.SHIPSTATION_RETRY_DELAY_MS / 1000.0

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
