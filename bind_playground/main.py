"""
FastAPI application entrypoint.

Run locally:  uvicorn bind_playground.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from bind_playground.api.dependencies import Playground
from bind_playground.api.routes import router
from bind_playground.config import settings
from bind_playground.exchange.client import ExchangeClient
from bind_playground.exchange.directory import DirectoryClient
from bind_playground.models.database import make_session_factory
from bind_playground.schemas.registry import SchemaRegistry
from bind_playground.services.terminology import TerminologyClient

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    database_url: Optional[str] = None,
    http: Optional[httpx.AsyncClient] = None,
    debounce_seconds: Optional[float] = None,
) -> FastAPI:
    """
    Build the API. `http` replaces the outbound HTTP client for the exchange,
    directory and terminology services (tests pass one with a mock transport).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        playground = Playground.build(
            session_factory=make_session_factory(database_url or settings.DATABASE_URL),
            registry=SchemaRegistry.builtin(settings.SCHEMA_DIR or None),
            exchange=ExchangeClient(http=http),
            directory=DirectoryClient(http=http),
            terminology=TerminologyClient(http=http),
            debounce_seconds=debounce_seconds,
        )
        app.state.playground = playground
        if playground.issuer:
            playground.refresh_directory_status()
        logger.info(
            "Playground ready: %d schemas, %d bundle entries, key %s",
            len(playground.registry.all_names()),
            len(playground.bundle.bundle["entry"]),
            playground.key_pair.kid if playground.key_pair else "not set",
        )
        try:
            yield
        finally:
            await playground.close()

    app = FastAPI(
        title="BIND Playground API",
        description=(
            "Build BIND resources from their JSON schemas, collect them in a "
            "Bundle, then sign, encrypt and share it through the BIND Exchange."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(router, prefix="/api/v1")
    return app


app = create_app()
