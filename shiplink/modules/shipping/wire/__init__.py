"""
Wire Adapter Registry v1.0.0

Adapters register themselves per API version; the client asks for one by
version string. Importing this package registers every bundled adapter.
"""
from typing import Dict, Type
import logging

from shiplink.modules.shipping.wire.base import WireAdapter

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "v2"

# Registry of adapter implementations
_ADAPTER_REGISTRY: Dict[str, Type[WireAdapter]] = {}


def register_adapter(version: str):
    """
    Decorator to register a wire adapter implementation.

    Usage:
        @register_adapter("v2")
        class ShipStationV2Adapter(WireAdapter):
            ...
    """
    def decorator(cls: Type[WireAdapter]):
        cls.version = version
        _ADAPTER_REGISTRY[version] = cls
        logger.debug(f"Registered wire adapter: {version} -> {cls.__name__}")
        return cls
    return decorator


def get_adapter(version: str = DEFAULT_API_VERSION) -> WireAdapter:
    """Instantiate the adapter for an API version. Raises KeyError if unknown."""
    adapter_cls = _ADAPTER_REGISTRY.get(version)
    if not adapter_cls:
        raise KeyError(
            f"No wire adapter registered for API version {version!r} "
            f"(available: {sorted(_ADAPTER_REGISTRY)})"
        )
    return adapter_cls()


def available_versions():
    return sorted(_ADAPTER_REGISTRY)


# Register bundled adapters
from shiplink.modules.shipping.wire import v2  # noqa: E402,F401
