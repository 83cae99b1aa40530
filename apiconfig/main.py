from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from apiconfig.config import get_settings
from apiconfig.config_runtime import api_config_integration
from apiconfig.routers import health_router, metrics_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app.state.settings = settings

    integration = await api_config_integration(settings)
    app.state.api_config = integration
    app.state.published_config = integration.published
    app.state.poll_state = integration.state

    logger.info("application startup complete")
    try:
        yield
    finally:
        await integration.aclose()
        logger.info("application shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(title="API Config Gateway", version="0.1.0", lifespan=lifespan)
    app.include_router(health_router)
    app.include_router(metrics_router)
    return app


app = create_app()
