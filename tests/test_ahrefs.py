from datetime import date

import httpx
import pytest
from tenacity import wait_none

from seo_enrichment_service.enrichment.ahrefs import AhrefsClient
from seo_enrichment_service.enrichment.errors import AuthError, Forbidden, RateLimited, UpstreamError
from seo_enrichment_service.jobs.models import EnrichmentKind


def _client(handler, api_key="secret", **kwargs):
    transport = httpx.MockTransport(handler)
    return AhrefsClient(
        api_key,
        base_url="https://ahrefs.test/v3",
        retry_wait=wait_none(),
        client=httpx.AsyncClient(transport=transport),
        **kwargs,
    )


async def test_traffic_history_request_and_parsing():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(
            200,
            json={
                "metrics": [
                    {"date": "2026-09-01T00:00:00Z", "org_traffic": 1500, "paid_traffic": None},
                    {"date": "2026-10-01T00:00:00Z", "org_traffic": "1750", "paid_traffic": 20},
                ]
            },
        )

    client = _client(handler)
    history = await client.traffic_history("shop.nl", today=date(2026, 10, 19))

    assert seen["path"] == "/v3/site-explorer/metrics-history"
    assert seen["auth"] == "Bearer secret"
    assert seen["params"]["date_from"] == "2025-10-19"
    assert seen["params"]["date_to"] == "2026-10-19"
    assert seen["params"]["history_grouping"] == "monthly"
    assert history == [
        {"date": "2026-09", "organic_traffic": 1500.0, "paid_traffic": 0.0},
        {"date": "2026-10", "organic_traffic": 1750.0, "paid_traffic": 20.0},
    ]


async def test_organic_keywords_totals():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["country"] == "nl"
        assert request.url.params["limit"] == "1000"
        assert request.url.params["order_by"] == "traffic:desc"
        return httpx.Response(
            200,
            json={
                "keywords": [
                    {"keyword": "dakkapel plaatsen", "volume": 900, "traffic": 40, "position": 2, "difficulty": 11},
                    {"keyword": "aannemer", "volume": 300, "traffic": 5, "position": 9, "difficulty": None},
                ]
            },
        )

    result = await _client(handler).fetch("bouw.nl", EnrichmentKind.BOUWBEDRIJF)

    assert result["total_keywords"] == 2
    assert result["total_traffic"] == 45
    assert result["keywords"][1]["difficulty"] == 0


async def test_rows_key_and_bare_list_are_accepted():
    responses = iter([{"rows": [{"keyword": "a", "traffic": 1}]}, [{"keyword": "b", "traffic": 2}]])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=next(responses))

    client = _client(handler)
    assert (await client.organic_keywords("x.nl"))["total_traffic"] == 1
    assert (await client.organic_keywords("x.nl"))["total_traffic"] == 2


@pytest.mark.parametrize(
    "status, error, message",
    [
        (429, RateLimited, "Ahrefs rate limited (429). Try again later."),
        (401, AuthError, "Ahrefs authentication failed (401). Check your API key."),
        (403, Forbidden, "Ahrefs access denied (403). Your plan may not support this endpoint."),
        (500, UpstreamError, "Ahrefs API error: 500 - upstream broke"),
    ],
)
async def test_status_codes_map_to_errors(status, error, message):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="upstream broke")

    with pytest.raises(error) as excinfo:
        await _client(handler).fetch("shop.nl", EnrichmentKind.WEBSHOP)
    assert str(excinfo.value) == message
    assert excinfo.value.status_code == status


async def test_unexpected_payload_shape():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "nope"})

    with pytest.raises(UpstreamError, match="Keys: error"):
        await _client(handler).traffic_history("shop.nl")


async def test_invalid_json():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with pytest.raises(UpstreamError, match="invalid JSON"):
        await _client(handler).traffic_history("shop.nl")


async def test_missing_api_key_fails_without_calling():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(AuthError, match="AHREFS_API_KEY is not set"):
        await _client(handler, api_key="").traffic_history("shop.nl")


async def test_transport_errors_are_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, json=[])

    assert await _client(handler, transport_retries=2).traffic_history("shop.nl") == []
    assert len(attempts) == 2


async def test_transport_errors_surface_as_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError, match="Ahrefs request failed"):
        await _client(handler, transport_retries=2).traffic_history("shop.nl")
