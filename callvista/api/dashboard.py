"""
FastAPI router for tenant dashboards.

Key Endpoints:
- GET /dashboard/tenants - Known tenants and whether each has a database
- GET /dashboard/{tenant_id} - Run a dashboard cycle with the given filters
- GET /dashboard/{tenant_id}/latest - Last report published for the tenant

Query parameters mirror the dashboard filter bar: agent, timeRange,
callType, status, channel, country. "all" disables a filter. An invalid
timeRange is rejected with 422 by FastAPI validation.

A failed fetch is not an HTTP error: the endpoint returns the empty report
with success=false and the error message so the dashboard can render it.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from callvista.core.dependencies import DashboardServiceDep, PoolRegistryDep
from callvista.core.tenants import TENANT_CONFIGS, get_tenant_config
from callvista.models.enums import TimeRange
from callvista.models.schemas import DashboardFilters, DashboardReport, TenantInfo


logger = logging.getLogger(__name__)


router = APIRouter()


@router.get("/tenants", response_model=List[TenantInfo])
async def list_tenants(registry: PoolRegistryDep) -> List[TenantInfo]:
    tenant_ids = sorted(set(TENANT_CONFIGS) | set(registry.tenant_ids))
    return [
        TenantInfo(
            tenantId=tenant_id,
            name=get_tenant_config(tenant_id).name,
            configured=registry.is_configured(tenant_id),
        )
        for tenant_id in tenant_ids
    ]


@router.get("/{tenant_id}", response_model=DashboardReport)
async def get_dashboard(
    tenant_id: str,
    service: DashboardServiceDep,
    agent: str = Query(default='all', description="Agent id or 'all'"),
    time_range: TimeRange = Query(default=TimeRange.MONTH, alias='timeRange'),
    call_type: str = Query(default='all', alias='callType'),
    status: str = Query(default='all'),
    channel: str = Query(default='all'),
    country: str = Query(default='all'),
) -> DashboardReport:
    """Fetch, normalize and aggregate the tenant's calls for one filter set."""
    filters = DashboardFilters(
        agent=agent,
        timeRange=time_range,
        callType=call_type,
        status=status,
        channel=channel,
        country=country,
    )
    report = await service.recompute_with_filters(tenant_id, filters)
    if not report.success:
        logger.warning(f"Dashboard for tenant {tenant_id} returned empty: {report.error}")
    return report


@router.get("/{tenant_id}/latest", response_model=DashboardReport)
async def get_latest_dashboard(tenant_id: str, service: DashboardServiceDep) -> DashboardReport:
    report = service.get_latest_report(tenant_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"No report computed yet for tenant '{tenant_id}'")
    return report
