"""
Tests for the Umami analytics sink

Analytics must never fail a request: every error is swallowed.
"""

import json

import httpx
import pytest

from qr_gateway.config import Environment, GatewayConfig
from qr_gateway.core import Analytics, AnalyticsEvent

pytestmark = pytest.mark.anyio

PRODUCTION = GatewayConfig(
    environment=Environment.PRODUCTION,
    telegram_bot_name="joel_bot",
    umami_host="umami.test",
    umami_id="website-1",
)


def make_analytics(config, handler) -> Analytics:
    return Analytics(config, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestAnalytics:

    def test_payload(self):
        analytics = Analytics(PRODUCTION)
        payload = analytics.build_payload(AnalyticsEvent.QR_PEOPLE, {"size": 300})

        assert payload == {
            "payload": {
                "hostname": "umami.test",
                "website": "website-1",
                "name": "/qr-people",
                "data": {"size": 300, "messageApp": "qr-gateway"},
            },
            "type": "event",
        }

    async def test_posts_in_production(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        analytics = make_analytics(PRODUCTION, handler)
        assert analytics.enabled
        await analytics.log(AnalyticsEvent.LINK_ORGANISATION)

        request = seen[0]
        assert str(request.url) == "https://umami.test/api/send"
        assert json.loads(request.content)["payload"]["name"] == "/link-organisation"
        assert "Mozilla" in request.headers["user-agent"]

    async def test_disabled_outside_production(self):
        def handler(request):
            raise AssertionError("no request expected")

        config = GatewayConfig(
            environment=Environment.DEVELOPMENT,
            telegram_bot_name="joel_bot",
            umami_host="umami.test",
            umami_id="website-1",
        )
        analytics = make_analytics(config, handler)
        assert not analytics.enabled
        await analytics.log(AnalyticsEvent.QR_DEFAULT)

    async def test_error_status_swallowed(self):
        def handler(request):
            return httpx.Response(500)

        await make_analytics(PRODUCTION, handler).log(AnalyticsEvent.QR_TAG)

    async def test_transport_error_swallowed(self):
        def handler(request):
            raise httpx.ConnectTimeout("timeout", request=request)

        await make_analytics(PRODUCTION, handler).log(AnalyticsEvent.QR_TAG)

    async def test_unexpected_error_swallowed(self):
        def handler(request):
            raise RuntimeError("boom")

        await make_analytics(PRODUCTION, handler).log(AnalyticsEvent.QR_TAG)
