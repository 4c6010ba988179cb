"""
FastAPI application entry point for the CallVista API.

Configures logging and CORS, wires the per-tenant pool registry, repository
and dashboard service in the lifespan, and registers the routers.

Run locally:
    uvicorn callvista.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callvista import __version__
from callvista.api import api_router
from callvista.core.config import get_settings
from callvista.core.database import TenantPoolRegistry
from callvista.services.dashboard import DashboardService
from callvista.services.repository import PostgresCallRepository


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Create the pool registry and dashboard service on startup, close every
    tenant pool on shutdown. Pools open lazily on a tenant's first request.
    """
    settings = get_settings()
    registry = TenantPoolRegistry(settings)
    app.state.pool_registry = registry
    app.state.dashboard_service = DashboardService(
        PostgresCallRepository(registry, settings.report_timezone),
        settings,
    )
    logger.info(f"CallVista API starting, tenants configured: {registry.tenant_ids}")

    yield

    logger.info("CallVista API shutting down")
    try:
        await registry.close_all()
        logger.info("Tenant connection pools closed")
    except Exception as e:
        logger.error(f"Error closing tenant pools: {e}")


app = FastAPI(
    title="CallVista API",
    version=__version__,
    description=(
        "Multi-tenant call analytics backend. Normalizes tenant call records "
        "and serves dashboard metrics and cost breakdowns."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "CallVista API",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "callvista.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
