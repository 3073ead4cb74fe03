"""
Pytest configuration and fixtures for ShipLink tests.
"""
import copy
import os
from typing import Callable, List

import httpx
import pytest

# Set test environment before importing shiplink modules
os.environ.setdefault("SHIPSTATION_API_KEY", "test-api-key-for-unit-tests-only")

from shiplink.services.shipstation_client import ShipStationClient


ORDER_DOCUMENT = {
    "id": "order_123",
    "status": "processing",
    "shippingMethod": "shipping",
    "total": 15000,
    "amount": 13800,
    "currency": "CAD",
    "customerNotes": "Please handle with care",
    "shippingAddress": {
        "firstName": "John",
        "lastName": "Doe",
        "company": "Test Company",
        "addressLine1": "123 Main St",
        "addressLine2": "Suite 100",
        "city": "Vancouver",
        "state": "BC",
        "postalCode": "V6B1A1",
        "country": "CA",
        "phone": "604-555-0100",
    },
    "selectedRate": {
        "serviceName": "Canada Post Expedited",
        "serviceCode": "expedited",
        "carrierCode": "canada_post",
        "carrierId": "se-100",
        "cost": 1200,
        "currency": "CAD",
    },
    "items": [
        {
            "quantity": 2,
            "unitPrice": 5000,
            "product": {
                "id": "prod_1",
                "title": "Test Product 1",
                "sku": "TEST-001",
                "shippingDetails": {"weight": {"value": 1.5, "unit": "kg"}},
            },
            "variant": None,
        },
        {
            "quantity": 1,
            "unitPrice": 5000,
            "product": {
                "id": "prod_2",
                "title": "Test Product 2",
                "sku": "TEST-002",
                "shippingDetails": {"weight": {"value": 0.5, "unit": "kg"}},
            },
            "variant": None,
        },
    ],
    "shippingDetails": {},
}


@pytest.fixture(autouse=True)
def _isolate_warehouse_env(monkeypatch):
    """The builder reads SHIPSTATION_WAREHOUSE_ID; keep the host env out of tests."""
    monkeypatch.delenv("SHIPSTATION_WAREHOUSE_ID", raising=False)


@pytest.fixture
def order_doc() -> dict:
    """Fresh copy of a complete, shippable order document."""
    return copy.deepcopy(ORDER_DOCUMENT)


class RecordingTransport:
    """
    Scripted httpx transport.

    Each entry in responses is an httpx.Response or an exception instance to
    raise; the last entry repeats once the script runs out.
    """

    def __init__(self, responses: List):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        outcome = self.responses[index]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.requests)


def attach_transport(client: ShipStationClient, handler: Callable) -> None:
    """Route a client's HTTP traffic through a mock handler."""
    client._http._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=client.base_url,
        headers=client._http.default_headers,
    )


@pytest.fixture
def make_client():
    """
    Factory for a ShipStationClient wired to scripted responses.

    Usage:
        client, transport = make_client([httpx.Response(200, json={...})])
    """
    def _make(responses, **kwargs):
        kwargs.setdefault("api_key", "test-key")
        kwargs.setdefault("base_url", "https://api.shipstation.test")
        kwargs.setdefault("warehouse_id", "se-warehouse-1")
        kwargs.setdefault("retry_delay", 0)
        client = ShipStationClient(**kwargs)
        transport = RecordingTransport(responses)
        attach_transport(client, transport)
        return client, transport

    return _make


class FakeRedis:
    """In-process stand-in for redis.asyncio.Redis (only the calls the cache makes)."""

    def __init__(self, fail: bool = False):
        self.store = {}
        self.ttls = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match=None):
        self._check()
        prefix = (match or "*").rstrip("*")
        for key in list(self.store):
            if key.startswith(prefix):
                yield key

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
