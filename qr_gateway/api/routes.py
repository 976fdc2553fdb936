"""
QR Image API

GET /qrcode renders the follow target as a PNG QR code, framed by
default. The QR encodes the landing page URL of the target.

Query parameters:
    name | organisation_id | function_tag   exactly one
    size     explicit pixel size, only with frame=false
    frame    "false" returns the bare QR (default: framed)
    verify   "false" skips the directory check (default: verify)
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from ..core.analytics import DIRECTORY_EVENTS, QR_EVENTS, AnalyticsEvent
from ..core.urls import landing_url
from ..errors import NoTarget, TargetValidationError
from ..observability import get_logger
from ..schemas import RenderRequest, TargetParams, parse_flag
from ..web.deps import get_compositor, get_config, get_resolver, track

logger = get_logger(__name__)

router = APIRouter(tags=["QR"])

CACHE_CONTROL_IMAGE = "public, max-age=300"


@router.get(
    "/qrcode",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def qrcode_image(
    request: Request,
    background_tasks: BackgroundTasks,
    name: Optional[str] = None,
    organisation_id: Optional[str] = None,
    function_tag: Optional[str] = None,
    size: Optional[str] = None,
    frame: Optional[str] = None,
    verify: Optional[str] = None,
):
    """Render a follow target as a PNG QR code."""
    config = get_config(request)
    resolver = get_resolver(request)
    compositor = get_compositor(request)

    try:
        frame_enabled = parse_flag(frame, default=True)
        verify_flag = parse_flag(verify, default=True)
        size_px = RenderRequest.parse_size(size, frame_enabled, config.max_qr_size)

        target = await resolver.resolve(
            TargetParams(
                name=name,
                organisation_id=organisation_id,
                function_tag=function_tag,
            ),
            verify=verify_flag,
        )

        render_request = RenderRequest(
            url=landing_url(config.base_url, target),
            size=size_px,
            frame=frame_enabled,
            verify=verify_flag,
        )
        png = await run_in_threadpool(compositor.render, render_request, target.canonical_label)

    except NoTarget as e:
        track(request, background_tasks, AnalyticsEvent.QR_DEFAULT)
        return JSONResponse(status_code=e.status_code, content={"error": str(e)})
    except TargetValidationError as e:
        logger.info("QR request rejected", error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=e.status_code, content={"error": str(e)})
    except Exception:
        logger.exception("QR code generation failed")
        return JSONResponse(status_code=500, content={"error": "QR code generation failed."})

    logger.info(
        "QR code generated",
        kind=target.kind.value,
        frame=frame_enabled,
        bytes=len(png),
    )

    events = [QR_EVENTS[target.kind]]
    if target.verified:
        events.insert(0, DIRECTORY_EVENTS[target.kind])
    track(request, background_tasks, *events)

    return Response(
        content=png,
        media_type="image/png",
        headers={"Cache-Control": CACHE_CONTROL_IMAGE},
    )
