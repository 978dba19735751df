"""Testes do retry/backoff do EvolutionHttpClient."""

from __future__ import annotations

import httpx
import pytest

from api.connectors.evolution import EvolutionHttpClient, HttpClientConfig, HttpError


def _client(handler, max_retries: int = 2) -> EvolutionHttpClient:
    return EvolutionHttpClient(
        base_url="https://evolution.test/",
        api_key="k",
        config=HttpClientConfig(max_retries=max_retries, backoff_base_seconds=0.0),
        transport=httpx.MockTransport(handler),
    )


async def test_retries_transient_status() -> None:
    calls: list[int] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(503 if len(calls) == 1 else 200, json={})

    client = _client(_handler)
    response = await client.get("/instance/fetchInstances")

    assert response.status_code == 200
    assert len(calls) == 2
    await client.aclose()


async def test_client_errors_are_returned_without_retry() -> None:
    calls: list[int] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404)

    client = _client(_handler)
    response = await client.delete("/instance/delete/wa_1")

    assert response.status_code == 404
    assert len(calls) == 1


async def test_exhausted_retries_raise_http_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429)

    client = _client(_handler, max_retries=1)

    with pytest.raises(HttpError) as exc_info:
        await client.post("/instance/create", json={})

    assert exc_info.value.status_code == 429
    assert exc_info.value.is_retryable is True


async def test_connection_error_is_wrapped() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("recusado", request=request)

    client = _client(_handler, max_retries=1)

    with pytest.raises(HttpError, match="ConnectError"):
        await client.get("/instance/connectionState/wa_1")
