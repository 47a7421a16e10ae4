"""RigSnap Notifications API -- Main Application Entry Point

Creates the FastAPI application, configures logging and CORS, and registers
the API route modules under the /api/v1 prefix.

Run with::

    uvicorn rigsnap.main:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rigsnap.core.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown hooks
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Shutdown:
      - Dispose of the database engine's connection pool.
    """
    logger.info("%s %s starting", settings.app_name, settings.app_version)

    yield

    from rigsnap.api.deps import engine

    await engine.dispose()


# ---------------------------------------------------------------------------
# Application instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health():
    """Lightweight health check for load balancers and readiness probes."""
    return {"status": "ok", "version": settings.app_version}


# ---------------------------------------------------------------------------
# Register API route modules
# ---------------------------------------------------------------------------

from rigsnap.api.routes import (  # noqa: E402
    notifications,
    providers,
    users,
    webhooks,
)

_prefix = settings.api_v1_prefix

app.include_router(webhooks.router, prefix=_prefix)
app.include_router(users.router, prefix=_prefix)
app.include_router(providers.router, prefix=_prefix)
app.include_router(notifications.router, prefix=_prefix)
