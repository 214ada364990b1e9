"""Entry points for running the FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import router as api_router
from .config import get_settings
from .db.session import dispose_engine
from .logging_utils import configure_logging
from .monitoring.metrics import metrics_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_file, settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info("Starting SEO Enrichment Service", extra={"environment": settings.environment})
        yield
        await dispose_engine()

    app = FastAPI(title="SEO Enrichment Service", version="0.1.0", lifespan=lifespan)
    app.include_router(api_router, prefix="/api")

    if settings.enable_metrics:
        app.include_router(metrics_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()

__all__ = ["create_app", "app"]
