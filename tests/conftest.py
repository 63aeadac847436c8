"""
Test configuration and fixtures.

Provides:
- Settings isolated from the environment / .env file
- In-memory SQLite engine with all tables created
- FakeGraph: an httpx.MockTransport handler standing in for the Graph API
- SyncContext wired to both
"""
import json
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from adpulse.config import Settings
from adpulse.database import create_db_engine, init_db
from adpulse.models.sync_models import TokenType
from adpulse.sync.context import SyncContext


class FakeGraph:
    """Routes Graph API requests to canned data.

    Insight rows without a ``date_start`` get the ``since`` date of the
    request's time_range, so the same template serves every day.
    """

    def __init__(self) -> None:
        self.ads: Dict[str, List[Dict[str, Any]]] = {}
        self.ad_insights: Dict[str, List[Dict[str, Any]]] = {}
        self.audience: Dict[str, List[Dict[str, Any]]] = {}
        self.errors: Dict[str, Tuple[int, Dict[str, Any]]] = {}
        self.exchange: Union[Tuple[int, Any], httpx.Response] = (200, {"access_token": "long-token"})
        self.debug_token: Dict[str, Any] = {
            "data": {"is_valid": True, "expires_at": 0, "scopes": ["ads_read"], "app_id": "app"}
        }
        self.requests: List[httpx.Request] = []

    @staticmethod
    def _since(request: httpx.Request) -> Optional[str]:
        raw = request.url.params.get("time_range")
        return json.loads(raw)["since"] if raw else None

    def _with_date(self, rows, request):
        since = self._since(request)
        return [{"date_start": since, **row} for row in rows]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # "/v19.0/act_123/ads" -> "act_123/ads"
        route = request.url.path.strip("/").split("/", 1)[1]

        if route in self.errors:
            status, body = self.errors[route]
            return httpx.Response(status, json=body)
        if route == "oauth/access_token":
            if isinstance(self.exchange, httpx.Response):
                return self.exchange
            status, body = self.exchange
            return httpx.Response(status, json=body)
        if route == "debug_token":
            return httpx.Response(200, json=self.debug_token)

        node, edge = route.rsplit("/", 1)
        if edge == "ads":
            return httpx.Response(200, json={"data": self.ads.get(node, [])})
        if edge == "insights" and node.startswith("act_"):
            rows = self._with_date(self.audience.get(node, []), request)
            return httpx.Response(200, json={"data": rows})
        if edge == "insights":
            rows = self._with_date(self.ad_insights.get(node, []), request)
            return httpx.Response(200, json={"data": rows})
        return httpx.Response(404, json={"error": {"message": f"Unknown route {route}", "code": 803}})

    def routes(self) -> List[str]:
        return [r.url.path.strip("/").split("/", 1)[1] for r in self.requests]


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        meta_app_id="app-id",
        meta_app_secret="app-secret",
        meta_ad_account_ids="123",
        meta_access_token="",
        meta_max_retries=1,
        sync_lookback_days=14,
        sync_day_delay_seconds=0,
        scheduler_enabled=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def ctx(settings, engine, graph) -> SyncContext:
    return SyncContext.from_settings(
        settings, engine=engine, transport=httpx.MockTransport(graph.handler)
    )


@pytest.fixture
def long_lived_token(ctx) -> str:
    ctx.credentials.save_token("facebook", "stored-long-token", TokenType.LONG_LIVED)
    return "stored-long-token"


def lead_ad(ad_id: str, campaign: str, **extra) -> Dict[str, Any]:
    ad = {"id": ad_id, "name": f"Ad {ad_id}", "status": "ACTIVE", "campaign": {"name": campaign}}
    ad.update(extra)
    return ad


def insight(spend: Any, leads: Optional[int] = None, **extra) -> Dict[str, Any]:
    row: Dict[str, Any] = {"spend": str(spend), "impressions": "1000", "clicks": "10"}
    if leads is not None:
        row["actions"] = [
            {"action_type": "link_click", "value": "7"},
            {"action_type": "lead", "value": str(leads)},
        ]
    row.update(extra)
    return row
