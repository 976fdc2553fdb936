"""
Public Routes: landing page and messenger redirects

These pages are public; nothing here requires a session.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
)

from ..config import Messenger
from ..core.analytics import DIRECTORY_EVENTS, LINK_EVENTS, AnalyticsEvent
from ..core.urls import encode_uri
from ..errors import AmbiguousTarget, NoTarget, TargetValidationError
from ..observability import get_logger
from ..schemas import TargetParams, parse_flag
from .deps import get_config, get_page_renderer, get_resolver, track

logger = get_logger(__name__)

router = APIRouter()


def _organisation_param(organisation_id: Optional[str], legacy: Optional[str]) -> Optional[str]:
    """Merge the legacy `organisation` alias; two different ids are ambiguous."""
    current = (organisation_id or "").strip()
    previous = (legacy or "").strip()
    if current and previous and current.upper() != previous.upper():
        raise AmbiguousTarget()
    return current or previous or None


@router.get("/", response_class=HTMLResponse)
async def landing_page(
    request: Request,
    background_tasks: BackgroundTasks,
    name: Optional[str] = None,
    organisation_id: Optional[str] = None,
    organisation: Optional[str] = None,
    function_tag: Optional[str] = None,
    verify: Optional[str] = None,
):
    """
    Messenger choice page for a follow target.

    Without any target the visitor is sent to the marketing site.
    `organisation` is accepted as an alias of `organisation_id` for
    QR codes printed before the parameter was renamed.
    """
    config = get_config(request)
    resolver = get_resolver(request)
    renderer = get_page_renderer(request)

    try:
        target = await resolver.resolve(
            TargetParams(
                name=name,
                organisation_id=_organisation_param(organisation_id, organisation),
                function_tag=function_tag,
            ),
            verify=parse_flag(verify, default=True),
        )
        content = renderer.render(target, request.headers.get("user-agent"))

    except NoTarget:
        track(request, background_tasks, AnalyticsEvent.LINK_DEFAULT)
        return RedirectResponse(url=config.home_website_url)
    except TargetValidationError as e:
        logger.info("Landing page request rejected", error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=e.status_code, content={"error": str(e)})
    except Exception:
        logger.exception("Page generation failed")
        return JSONResponse(status_code=500, content={"error": "Page generation failed."})

    events = [LINK_EVENTS[target.kind]]
    if target.verified:
        events.insert(0, DIRECTORY_EVENTS[target.kind])
    track(request, background_tasks, *events)

    return HTMLResponse(content)


def _messenger_redirect(request: Request, messenger: Messenger) -> RedirectResponse:
    config = get_config(request)
    base = config.messenger_base(messenger)
    if base is None:
        return RedirectResponse(url=config.home_website_url)
    return RedirectResponse(url=encode_uri(base))


@router.get("/whatsapp", include_in_schema=False)
def whatsapp(request: Request):
    return _messenger_redirect(request, Messenger.WHATSAPP)


@router.get("/telegram", include_in_schema=False)
def telegram(request: Request):
    return _messenger_redirect(request, Messenger.TELEGRAM)


@router.get("/matrix", include_in_schema=False)
def matrix(request: Request):
    return _messenger_redirect(request, Messenger.MATRIX)


@router.get("/tchap", include_in_schema=False)
def tchap(request: Request):
    return _messenger_redirect(request, Messenger.TCHAP)


@router.get("/signal", include_in_schema=False)
def signal(request: Request):
    """Signal has no bot yet; always falls back to the marketing site."""
    return _messenger_redirect(request, Messenger.SIGNAL)


@router.get("/status", response_class=PlainTextResponse, tags=["System"])
def status():
    return "JOEL QR server is running."
