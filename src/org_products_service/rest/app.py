"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from org_products_service import __version__
from org_products_service.db.engine import create_engine, create_session_factory
from org_products_service.rest.errors import register_error_handlers
from org_products_service.rest.routes.auth import router as auth_router
from org_products_service.rest.routes.health import router as health_router
from org_products_service.rest.routes.organizations import router as organizations_router
from org_products_service.rest.routes.products import router as products_router
from org_products_service.settings import Settings, get_settings

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = create_engine(app.state.settings)
    app.state.session_factory = create_session_factory(engine)
    log.info("database_connected")
    try:
        yield
    finally:
        app.state.session_factory = None
        await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Organization Products API",
        description="Multi-tenant organization products service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.session_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Public routes
    app.include_router(health_router, tags=["health"])

    # login is public; /auth/me and everything under /organizations runs the admission guards
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(organizations_router, prefix="/api/v1")
    app.include_router(products_router, prefix="/api/v1")

    return app
