"""
Request-scoped accessors for the services built in the lifespan.

Everything lives on app.state and is read-only after startup.
"""

from fastapi import BackgroundTasks, Request

from ..config import GatewayConfig
from ..core.analytics import Analytics, AnalyticsEvent
from ..core.compositor import ImageCompositor
from ..core.resolver import TargetResolver
from .page import PageRenderer


def get_config(request: Request) -> GatewayConfig:
    return request.app.state.config


def get_resolver(request: Request) -> TargetResolver:
    return request.app.state.resolver


def get_compositor(request: Request) -> ImageCompositor:
    return request.app.state.compositor


def get_page_renderer(request: Request) -> PageRenderer:
    return request.app.state.page_renderer


def get_analytics(request: Request) -> Analytics:
    return request.app.state.analytics


def track(request: Request, background_tasks: BackgroundTasks, *events: AnalyticsEvent) -> None:
    """Queue analytics events to be sent after the response."""
    analytics = get_analytics(request)
    for event in events:
        background_tasks.add_task(analytics.log, event)
