"""
Dashboard pipeline.

One dashboard cycle for a tenant and a filter set:

1. Fetch calls + agents and additional client data concurrently, bounded by
   the fetch timeout
2. Normalize the calls with one field mapping for the batch
3. Apply the agent / call type / status / channel / country filters on the
   normalized values
4. Allocate costs, aggregate metrics and link additional data
5. Assemble a DashboardReport

A failed calls fetch never produces a partial report: the cycle returns the
empty, zero-filled report with success=False and the error message. The
additional data is optional: when it cannot be read the report keeps its
metrics and costs and carries empty relation stats.

Only known tenants (listed in TENANT_CONFIGS or with a configured database)
are sequenced and published. Any other tenant id gets the failure report
with requestId 0 and leaves no state behind.

Requests are numbered per tenant. Only the newest request publishes its
report as the tenant's latest; an older request that finishes afterwards
still returns its report to its caller, flagged superseded.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from callvista.core.config import Settings, get_settings
from callvista.core.database import TenantNotConfiguredError
from callvista.core.tenants import TENANT_CONFIGS, get_tenant_config
from callvista.models.schemas import (
    Agent,
    DashboardFilters,
    DashboardReport,
    NormalizedCall,
    RelationStats,
)
from callvista.services.costs import allocate_costs, normalize_country_code
from callvista.services.metrics import aggregate_metrics
from callvista.services.normalizer import normalize_calls
from callvista.services.relations import compute_relation_stats
from callvista.services.repository import CallRepository, FetchError


logger = logging.getLogger(__name__)


ALL: str = 'all'


def apply_filters(calls: Sequence[NormalizedCall], filters: DashboardFilters) -> List[NormalizedCall]:
    """
    Keep the calls matching every active filter.

    The time window is applied by the repository. Channel comparison is
    case-insensitive and country codes are compared after ISO normalization.
    """
    def active(value: str) -> bool:
        return bool(value) and value.lower() != ALL

    result = list(calls)
    if active(filters.agent):
        result = [c for c in result if c.agent_id == filters.agent]
    if active(filters.callType):
        result = [c for c in result if c.call_type.value == filters.callType.lower()]
    if active(filters.status):
        result = [c for c in result if c.status.value == filters.status.lower()]
    if active(filters.channel):
        channel = filters.channel.lower()
        result = [c for c in result if (c.channel or '').lower() == channel]
    if active(filters.country):
        country = normalize_country_code(filters.country)
        result = [c for c in result if c.country_code and normalize_country_code(c.country_code) == country]
    return result


class DashboardService:
    """
    Runs dashboard cycles and keeps the latest published report per tenant.

    Args:
        repository: Backing-store access.
        settings: Timezone, fetch timeout and cost rounding.
        known_tenants: Tenants allowed to keep state, defaults to TENANT_CONFIGS
            plus every tenant with a configured database.
    """

    def __init__(
        self,
        repository: CallRepository,
        settings: Optional[Settings] = None,
        known_tenants: Optional[Iterable[str]] = None,
    ):
        self._repository = repository
        self._settings = settings or get_settings()
        if known_tenants is None:
            known_tenants = set(TENANT_CONFIGS) | set(self._settings.tenant_database_urls)
        self._known_tenants = frozenset(known_tenants)
        self._sequence: Dict[str, int] = {}
        self._published: Dict[str, int] = {}
        self._latest: Dict[str, DashboardReport] = {}

    def get_latest_report(self, tenant_id: str) -> Optional[DashboardReport]:
        return self._latest.get(tenant_id)

    def is_known_tenant(self, tenant_id: str) -> bool:
        return tenant_id in self._known_tenants

    def _next_request_id(self, tenant_id: str) -> int:
        request_id = self._sequence.get(tenant_id, 0) + 1
        self._sequence[tenant_id] = request_id
        return request_id

    async def _fetch(self, tenant_id: str, filters: DashboardFilters):
        return await asyncio.wait_for(
            asyncio.gather(
                self._repository.fetch_calls(tenant_id, filters),
                self._fetch_additional_data(tenant_id),
            ),
            timeout=self._settings.fetch_timeout_seconds,
        )

    async def _fetch_additional_data(self, tenant_id: str) -> Optional[List[Mapping[str, Any]]]:
        try:
            return await self._repository.fetch_additional_data(tenant_id)
        except FetchError as e:
            logger.warning(f"Additional data unavailable for tenant {tenant_id}: {e}")
            return None

    def _build_report(
        self,
        tenant_id: str,
        request_id: int,
        filters: DashboardFilters,
        calls: Sequence[NormalizedCall],
        agents: Sequence[Agent],
        relations: RelationStats,
        error: Optional[str] = None,
    ) -> DashboardReport:
        settings = self._settings
        return DashboardReport(
            tenantId=tenant_id,
            tenantName=get_tenant_config(tenant_id).name,
            requestId=request_id,
            generatedAt=datetime.now(timezone.utc),
            filters=filters,
            success=error is None,
            error=error,
            calls=len(calls),
            metrics=aggregate_metrics(calls, filters.timeRange, agents, settings.report_timezone),
            costs=allocate_costs(
                calls,
                tenant_id,
                agents,
                decimals=settings.cost_decimals,
                timezone=settings.report_timezone,
            ),
            relations=relations,
        )

    def _publish(self, tenant_id: str, report: DashboardReport) -> DashboardReport:
        if report.requestId < self._sequence.get(tenant_id, 0):
            report = report.model_copy(update={'superseded': True})
        if report.requestId > self._published.get(tenant_id, 0):
            self._published[tenant_id] = report.requestId
            self._latest[tenant_id] = report
        return report

    async def recompute_with_filters(
        self,
        tenant_id: str,
        filters: Optional[DashboardFilters] = None,
    ) -> DashboardReport:
        """
        Run one fetch, normalize and aggregate cycle.

        Args:
            tenant_id: Tenant to report on.
            filters: Filter set, defaults to the last month with no filters.

        Returns:
            DashboardReport: The full report, or the empty report with
                success=False when the fetch failed or timed out, or the
                tenant is unknown.
        """
        filters = filters or DashboardFilters()
        if not self.is_known_tenant(tenant_id):
            logger.warning(f"Dashboard requested for unknown tenant {tenant_id!r}")
            return self._build_report(
                tenant_id, 0, filters, [], [], RelationStats(), error=str(TenantNotConfiguredError(tenant_id)),
            )

        request_id = self._next_request_id(tenant_id)
        logger.info(f"Dashboard request {request_id} for tenant {tenant_id}: {filters.model_dump(mode='json')}")

        try:
            fetched, additional = await self._fetch(tenant_id, filters)
        except asyncio.TimeoutError:
            logger.exception(f"Fetch timed out for tenant {tenant_id}")
            error = f"Timed out after {self._settings.fetch_timeout_seconds}s fetching data for tenant '{tenant_id}'"
            return self._publish(tenant_id, self._build_report(
                tenant_id, request_id, filters, [], [], RelationStats(), error=error,
            ))
        except (FetchError, TenantNotConfiguredError) as e:
            logger.exception(f"Fetch failed for tenant {tenant_id}")
            return self._publish(tenant_id, self._build_report(
                tenant_id, request_id, filters, [], [], RelationStats(), error=str(e),
            ))

        normalized = normalize_calls(fetched.records, tenant_id)
        calls = apply_filters(normalized, filters)
        relations = compute_relation_stats(calls, additional) if additional is not None else RelationStats()

        report = self._build_report(tenant_id, request_id, filters, calls, fetched.agents, relations)
        logger.info(f"Dashboard request {request_id} for tenant {tenant_id} done: {len(calls)} calls")
        return self._publish(tenant_id, report)


__all__ = [
    'apply_filters',
    'DashboardService',
]
