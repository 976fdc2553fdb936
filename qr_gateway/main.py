"""
JOEL QR Gateway

Main application entry point.

Turns a person, an organisation or a function tag into a branded QR code
and a landing page with deep links into the JOEL messenger bots.
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .config import GatewayConfig
from .core.analytics import Analytics
from .core.compositor import BrandAssets, ImageCompositor
from .core.directory import DirectoryClient
from .core.resolver import Directory, TargetResolver
from .observability import RequestContextMiddleware, get_logger, setup_logging
from .web.page import PageRenderer

# Setup logging at import time
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


def create_app(
    config: Optional[GatewayConfig] = None,
    directory: Optional[Directory] = None,
    assets: Optional[BrandAssets] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Gateway configuration (default: read from the environment at startup)
        directory: Directory implementation (default: JORFSearch over HTTP)
        assets: Brand assets (default: loaded from config.assets_dir)
        http_transport: Transport for the shared outbound HTTP client
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build every service once; all of it is read-only afterwards."""
        gateway_config = config or GatewayConfig.from_env()
        gateway_config.validate()

        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(gateway_config.http_timeout_seconds),
            follow_redirects=True,
            transport=http_transport,
        )
        brand_assets = assets or BrandAssets.load(gateway_config.assets_dir)

        app.state.config = gateway_config
        app.state.analytics = Analytics(gateway_config, http_client)
        app.state.resolver = TargetResolver(
            directory or DirectoryClient(http_client, gateway_config.directory_base_url)
        )
        app.state.compositor = ImageCompositor(
            brand_assets,
            qr_size=gateway_config.qr_size,
            logo_scale=gateway_config.logo_scale,
            font_size=gateway_config.font_size,
            text_color=gateway_config.text_color,
        )
        app.state.page_renderer = PageRenderer(gateway_config)

        if gateway_config.assets_dir.is_dir():
            app.mount(
                "/static",
                StaticFiles(directory=str(gateway_config.assets_dir)),
                name="static",
            )

        logger.info(
            "QR gateway started",
            base_url=gateway_config.base_url,
            environment=gateway_config.environment.value,
            messengers=[m.value for m in gateway_config.messenger_bases],
            analytics_enabled=app.state.analytics.enabled,
        )

        yield

        await http_client.aclose()
        logger.info("QR gateway shutdown complete")

    app = FastAPI(
        title="JOEL QR Gateway",
        description="QR codes and messenger deep links for following people, "
                    "organisations and function tags on JOEL.",
        version=VERSION,
        lifespan=lifespan,
    )

    # Add request context middleware for logging
    app.add_middleware(RequestContextMiddleware)

    from .api.routes import router as qr_router
    from .web.routes import router as public_router
    app.include_router(qr_router)
    app.include_router(public_router)

    @app.get("/health", tags=["System"])
    async def health():
        """Returns 200 if the service is running."""
        return {"status": "healthy", "service": "qr-gateway", "version": VERSION}

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the gateway with uvicorn."""
    import uvicorn

    uvicorn.run(
        "qr_gateway.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        log_config=None,
    )
