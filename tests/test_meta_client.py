"""Tests for the Meta Graph API client and endpoint helpers."""

import json

import httpx
import pytest

from adpulse.connectors.meta.client import MetaAPIError, MetaClient
from adpulse.connectors.meta.endpoints import (
    AD_FIELDS,
    MetaEndpoints,
    account_path,
    date_params,
)
from adpulse.models.sync_models import TimeRange

GRAPH = "https://graph.test/v19.0"


def make_client(handler, **kwargs) -> MetaClient:
    return MetaClient(
        access_token="tok",
        graph_url=GRAPH,
        transport=httpx.MockTransport(handler),
        retry_base_delay=0,
        **kwargs,
    )


def test_account_path_prefix():
    assert account_path("123") == "act_123"
    assert account_path("act_123") == "act_123"


def test_date_params_preset_and_range():
    assert date_params("yesterday") == {"date_preset": "yesterday"}
    params = date_params(TimeRange.single_day("2024-06-01"))
    assert json.loads(params["time_range"]) == {"since": "2024-06-01", "until": "2024-06-01"}


@pytest.mark.asyncio
async def test_paginated_get_follows_next_links():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        if request.url.params.get("after") == "c2":
            return httpx.Response(200, json={"data": [{"id": "3"}]})
        return httpx.Response(
            200,
            json={
                "data": [{"id": "1"}, {"id": "2"}],
                "paging": {"next": f"{GRAPH}/act_1/ads?after=c2&limit=2"},
            },
        )

    async with make_client(handler) as client:
        data = await client._paginated_get(f"{GRAPH}/act_1/ads", {"limit": 2})

    assert [d["id"] for d in data] == ["1", "2", "3"]
    assert len(seen) == 2
    assert all(url.params.get("access_token") == "tok" for url in seen)


@pytest.mark.asyncio
async def test_graph_error_maps_to_meta_api_error():
    def handler(request):
        return httpx.Response(
            400, json={"error": {"message": "Invalid OAuth access token.", "code": 190}}
        )

    async with make_client(handler) as client:
        with pytest.raises(MetaAPIError) as excinfo:
            await client._request("GET", f"{GRAPH}/me")

    assert excinfo.value.status_code == 400
    assert excinfo.value.error_code == 190
    assert "Invalid OAuth" in str(excinfo.value)


@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(429, json={"error": {"message": "slow down", "code": 17}})
        return httpx.Response(200, json={"data": []})

    async with make_client(handler, max_retries=3) as client:
        assert await client._request("GET", f"{GRAPH}/me") == {"data": []}
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_single_attempt_when_retries_disabled():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(503, json={"error": {"message": "unavailable", "code": 2}})

    async with make_client(handler, max_retries=1) as client:
        with pytest.raises(MetaAPIError):
            await client._request("GET", f"{GRAPH}/me")
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_malformed_page_raises():
    def handler(request):
        return httpx.Response(200, json={"unexpected": True})

    async with make_client(handler) as client:
        with pytest.raises(MetaAPIError, match="Malformed"):
            await client._paginated_get(f"{GRAPH}/act_1/ads")


@pytest.mark.asyncio
async def test_exchange_token_request():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json={"access_token": "long", "token_type": "bearer"})

    client = MetaClient(graph_url=GRAPH, transport=httpx.MockTransport(handler))
    try:
        token = await client.exchange_token("app", "secret", "short")
    finally:
        await client.close()

    assert token == "long"
    assert captured["path"] == "/v19.0/oauth/access_token"
    assert captured["params"] == {
        "grant_type": "fb_exchange_token",
        "client_id": "app",
        "client_secret": "secret",
        "fb_exchange_token": "short",
    }


@pytest.mark.asyncio
async def test_exchange_without_token_in_response_fails():
    client = MetaClient(
        graph_url=GRAPH,
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
    )
    with pytest.raises(MetaAPIError):
        await client.exchange_token("app", "secret", "short")
    await client.close()


@pytest.mark.asyncio
async def test_endpoint_requests_carry_fields_and_dates():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    client = make_client(handler)
    endpoints = MetaEndpoints(client, page_size=100)
    day = TimeRange.single_day("2024-06-01")
    await endpoints.fetch_ads("123")
    await endpoints.fetch_ad_insights("987", day)
    await endpoints.fetch_audience_insights("act_123", "today")
    await client.close()

    ads, ad_insights, audience = requests
    assert ads.url.path == "/v19.0/act_123/ads"
    assert ads.url.params["fields"] == AD_FIELDS
    assert ads.url.params["limit"] == "100"

    assert ad_insights.url.path == "/v19.0/987/insights"
    assert ad_insights.url.params["fields"] == "spend,impressions,clicks,actions,date_start"
    assert json.loads(ad_insights.url.params["time_range"])["since"] == "2024-06-01"

    assert audience.url.path == "/v19.0/act_123/insights"
    assert audience.url.params["level"] == "campaign"
    assert audience.url.params["breakdowns"] == "age,gender"
    assert audience.url.params["date_preset"] == "today"
