# backend/app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings as default_settings
from .db import Database
from .logging_config import configure_logging

from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.transactions import router as transactions_router
from .routers.admin import router as admin_router
from .routers.transaction_form import router as transaction_form_router

API_PREFIX = "/api"

log = logging.getLogger("portal.app")


def _cors_origins(settings: Settings) -> list[str]:
    val = settings.cors_allow_origins
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def create_app(settings: Optional[Settings] = None, *, database: Optional[Database] = None) -> FastAPI:
    """
    Build the portal app. Tests pass their own settings and/or an in-memory
    Database; otherwise one is created from settings.database_url and
    disposed when the app shuts down.
    """
    settings = settings or default_settings
    owns_db = database is None
    db = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        if settings.auto_create_schema:
            db.create_all()
        log.info("transaction portal started (env=%s)", settings.app_env)
        try:
            yield
        finally:
            if owns_db:
                db.dispose()

    app = FastAPI(
        title="Transaction Portal",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db

    # CORS is added last so it runs outermost.
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Core
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)

    # Transactions
    app.include_router(transactions_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
    app.include_router(transaction_form_router, prefix=API_PREFIX)

    return app


app = create_app()
