"""
FastAPI dependency injection module for the CallVista backend.

The pool registry and the dashboard service are created once in the
application lifespan and stored on app.state. Endpoints receive them through
the dependencies below, which tests replace with
app.dependency_overrides.

Usage:
    @router.get("/{tenant_id}")
    async def get_dashboard(tenant_id: str, service: DashboardServiceDep):
        return await service.recompute_with_filters(tenant_id)
"""

from typing import Annotated

from fastapi import Depends, Request

from callvista.core.database import TenantPoolRegistry
from callvista.services.dashboard import DashboardService


def get_pool_registry(request: Request) -> TenantPoolRegistry:
    return request.app.state.pool_registry


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

PoolRegistryDep = Annotated[TenantPoolRegistry, Depends(get_pool_registry)]

DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]


__all__ = [
    'get_pool_registry',
    'get_dashboard_service',
    'PoolRegistryDep',
    'DashboardServiceDep',
]
