"""
Analytics Sink

Fire-and-forget events sent to an Umami instance.

Events are posted after the response has been sent (FastAPI
BackgroundTasks). A failing analytics call is logged and dropped: it
must never change what the client received.

Outside production the sink only logs the event name.
"""

from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ..config import GatewayConfig
from ..observability import get_logger
from ..schemas import TargetKind

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0"
MESSAGE_APP = "qr-gateway"


class AnalyticsEvent(str, Enum):
    """Every event name the gateway may emit."""
    QR_PEOPLE = "/qr-people"
    QR_ORGANISATION = "/qr-organisation"
    QR_TAG = "/qr-tag"
    QR_DEFAULT = "/qr-default"
    LINK_PEOPLE = "/link-people"
    LINK_ORGANISATION = "/link-organisation"
    LINK_TAG = "/link-tag"
    LINK_DEFAULT = "/link-default"
    DIRECTORY_PEOPLE = "/jorfsearch-request-people"
    DIRECTORY_PEOPLE_FORMATTED = "/jorfsearch-request-people-formatted"
    DIRECTORY_TAG = "/jorfsearch-request-tag"
    DIRECTORY_ORGANISATION = "/jorfsearch-request-organisation"


QR_EVENTS = {
    TargetKind.PERSON: AnalyticsEvent.QR_PEOPLE,
    TargetKind.ORGANISATION: AnalyticsEvent.QR_ORGANISATION,
    TargetKind.FUNCTION_TAG: AnalyticsEvent.QR_TAG,
}

LINK_EVENTS = {
    TargetKind.PERSON: AnalyticsEvent.LINK_PEOPLE,
    TargetKind.ORGANISATION: AnalyticsEvent.LINK_ORGANISATION,
    TargetKind.FUNCTION_TAG: AnalyticsEvent.LINK_TAG,
}

DIRECTORY_EVENTS = {
    TargetKind.PERSON: AnalyticsEvent.DIRECTORY_PEOPLE,
    TargetKind.ORGANISATION: AnalyticsEvent.DIRECTORY_ORGANISATION,
    TargetKind.FUNCTION_TAG: AnalyticsEvent.DIRECTORY_TAG,
}


class Analytics:
    """
    Umami event client.

    Disabled (log-only) unless the gateway runs in production with a
    configured Umami host and website id.
    """

    def __init__(self, config: GatewayConfig, client: Optional[httpx.AsyncClient] = None):
        self._host = config.umami_host
        self._website_id = config.umami_id
        self._enabled = config.is_production and bool(self._host) and bool(self._website_id)
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def endpoint(self) -> str:
        return f"https://{self._host}/api/send"

    def build_payload(self, event: AnalyticsEvent, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "payload": {
                "hostname": self._host,
                "website": self._website_id,
                "name": event.value,
                "data": {**(data or {}), "messageApp": MESSAGE_APP},
            },
            "type": "event",
        }

    async def log(self, event: AnalyticsEvent, data: Optional[Dict[str, Any]] = None) -> None:
        """Send one event. Never raises."""
        if not self._enabled or self._client is None:
            logger.debug("Analytics event", analytics_event=event.value)
            return

        try:
            response = await self._client.post(
                self.endpoint,
                json=self.build_payload(event, data),
                headers={"User-Agent": USER_AGENT},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "Analytics event dropped",
                analytics_event=event.value,
                error=str(e),
            )
        except Exception:
            logger.exception("Analytics event failed", analytics_event=event.value)
