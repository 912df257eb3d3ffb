from __future__ import annotations

from dataclasses import replace

import pytest
import responses

from kasir_client_sdk.config import ClientConfig
from kasir_client_sdk.exceptions import NotFoundError, ServerError, TransportError
from kasir_client_sdk.http_client import TRACE_HEADER, HttpClient, TraceContext

BASE = "https://kasir.example.com"


@responses.activate
def test_trace_id_is_sent_and_refreshed(config: ClientConfig) -> None:
    responses.add(responses.GET, f"{BASE}/rest/v1/products", json=[], status=200, headers={"sb-request-id": "srv-1"})
    trace = TraceContext(trace_id="client-1")
    client = HttpClient(config=config, trace=trace)

    assert client.request("GET", "/rest/v1/products", module="products", operation="list") == []

    assert responses.calls[0].request.headers[TRACE_HEADER] == "client-1"
    assert trace.trace_id == "srv-1"
    assert client.last_request is not None
    assert client.last_request.ok
    assert client.last_request.module == "products"
    assert client.last_request.attempts == 1


@responses.activate
def test_plain_text_error_body(config: ClientConfig) -> None:
    responses.add(responses.GET, f"{BASE}/rest/v1/nothing", body="gone", status=404)
    seen: list[int] = []
    client = HttpClient(config=config)

    with pytest.raises(NotFoundError) as excinfo:
        client.request("GET", "rest/v1/nothing", response_hook=lambda response: seen.append(response.status_code))

    assert excinfo.value.message == "gone"
    assert excinfo.value.trace_id == client.trace.trace_id
    assert seen == [404]
    assert client.last_request.status_code == 404


@responses.activate
def test_mutations_are_not_retried_by_default(config: ClientConfig) -> None:
    responses.add(responses.POST, f"{BASE}/rest/v1/transactions", json={"message": "down"}, status=503)
    sleeps: list[float] = []
    client = HttpClient(config=replace(config, retries=3), sleep=sleeps.append)

    with pytest.raises(ServerError):
        client.request("POST", "/rest/v1/transactions", json_body={"total": 1})

    assert len(responses.calls) == 1
    assert sleeps == []


@responses.activate
def test_marked_mutations_are_retried(config: ClientConfig) -> None:
    responses.add(responses.DELETE, f"{BASE}/rest/v1/transactions", status=502)
    responses.add(responses.DELETE, f"{BASE}/rest/v1/transactions", status=204)
    client = HttpClient(config=replace(config, retries=1), sleep=lambda _: None)

    assert client.request("DELETE", "/rest/v1/transactions", params={"id": "eq.1"}, retry_mutation=True) is None
    assert client.last_request.attempts == 2


@responses.activate
def test_transport_errors_retry_with_backoff(config: ClientConfig) -> None:
    sleeps: list[float] = []
    client = HttpClient(config=replace(config, retries=2, retry_backoff_seconds=0.5), sleep=sleeps.append)

    with pytest.raises(TransportError) as excinfo:
        client.request("GET", "/rest/v1/unreachable")

    assert sleeps == [0.5, 1.0]
    assert excinfo.value.status_code == 0
    assert client.last_request.attempts == 3
