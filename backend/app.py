"""
FastAPI application entry point for the keepsake backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.config import Settings, get_settings
from backend.dependencies import build_gateway
from backend.gateway import DataGateway
from backend.routes import router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None, gateway: DataGateway | None = None
) -> FastAPI:
    settings = settings or get_settings()
    gateway = gateway or build_gateway(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Keepsake backend started")
        yield
        app.state.gateway.close()

    app = FastAPI(title="Keepsake Box", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = gateway
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
