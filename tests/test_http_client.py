import asyncio

import httpx
import pytest

from shiplink.core.http_client import ResilientHTTPClient, RetryConfig


def _client(handler, max_retries=3, base_delay=0.0) -> ResilientHTTPClient:
    client = ResilientHTTPClient(
        base_url="https://example.com",
        retry_config=RetryConfig(max_retries=max_retries, base_delay=base_delay),
        timeout=5.0,
    )
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=client.base_url,
        timeout=client.timeout,
    )
    return client


@pytest.mark.asyncio
async def test_server_errors_are_retried_until_success():
    """Two 500s then 200: three transport calls, final response returned."""
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        if call_count <= 2:
            return httpx.Response(500, json={"message": "boom"})
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    resp = await client.get("/test")
    await client.close()

    assert resp.status_code == 200
    assert call_count == 3


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(400, json={"message": "bad request"})

    client = _client(handler)
    resp = await client.post("/test", json={})
    await client.close()

    assert resp.status_code == 400
    assert call_count == 1


@pytest.mark.asyncio
async def test_exhausted_server_errors_return_last_response():
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(503)

    client = _client(handler, max_retries=2)
    resp = await client.get("/test")
    await client.close()

    assert resp.status_code == 503
    assert call_count == 3


@pytest.mark.asyncio
async def test_transport_errors_retry_then_raise_last():
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler, max_retries=2)
    with pytest.raises(httpx.ConnectError):
        await client.get("/test")
    await client.close()

    assert call_count == 3


@pytest.mark.asyncio
async def test_timeout_then_success():
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        if call_count == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    resp = await client.get("/test")
    await client.close()

    assert resp.status_code == 200
    assert call_count == 2


def test_backoff_doubles_per_attempt():
    client = ResilientHTTPClient(retry_config=RetryConfig(base_delay=1.0, max_delay=60.0))

    assert client._calculate_backoff(0) == 1.0
    assert client._calculate_backoff(1) == 2.0
    assert client._calculate_backoff(2) == 4.0


def test_backoff_is_capped():
    client = ResilientHTTPClient(retry_config=RetryConfig(base_delay=1.0, max_delay=5.0))

    assert client._calculate_backoff(10) == 5.0


@pytest.mark.asyncio
async def test_backoff_sleeps_between_attempts(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("shiplink.core.http_client.asyncio.sleep", fake_sleep)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    client = _client(handler, max_retries=3, base_delay=1.0)
    await client.get("/test")
    await client.close()

    assert delays == [1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_cancelling_caller_stops_retry_loop():
    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(500)

    client = _client(handler, max_retries=5, base_delay=30.0)
    task = asyncio.create_task(client.get("/test"))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    await client.close()

    assert call_count == 1
