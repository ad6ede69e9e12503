import asyncio

import httpx

from milevalue.services.award_provider_client import AwardProviderClient


def _client(handler, **kwargs) -> AwardProviderClient:
    return AwardProviderClient(
        base_url="https://awards.example.test",
        api_key="secret",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_unconfigured_client_returns_nothing():
    client = AwardProviderClient(base_url="")

    assert not client.configured
    assert asyncio.run(client.fetch_awards("UA")) == []


def test_fetch_sends_carrier_and_bearer_key():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"provider": "awardtool-direct"}, "junk"])

    records = asyncio.run(_client(handler).fetch_awards("UA", origin="SFO", departure_date="2026-03-01"))

    assert records == [{"provider": "awardtool-direct"}]
    assert seen[0].url.path == "/v2/awards"
    assert seen[0].url.params["carrier"] == "UA"
    assert seen[0].url.params["date"] == "2026-03-01"
    assert seen[0].headers["Authorization"] == "Bearer secret"


def test_rate_limit_is_retried():
    responses = [httpx.Response(429), httpx.Response(200, json={"data": [{"provider": "x"}]})]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    assert asyncio.run(_client(handler).fetch_awards("UA")) == [{"provider": "x"}]


def test_server_error_yields_empty_batch():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    assert asyncio.run(_client(handler).fetch_awards("UA")) == []


def test_transport_errors_exhaust_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    assert asyncio.run(_client(handler, max_retries=1).fetch_awards("UA")) == []
    assert len(calls) == 1
