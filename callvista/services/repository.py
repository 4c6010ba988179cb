"""
Backing-store access for tenant call data.

The dashboard pipeline only depends on the CallRepository protocol:

    fetch_calls(tenant_id, filters)     -> FetchResult(records, agents)
    fetch_additional_data(tenant_id)    -> List[raw record]

PostgresCallRepository implements it on top of the per-tenant asyncpg pools
of TenantPoolRegistry. Only the time window is applied in SQL, on the
tenant's start-time column; every other filter compares normalized values
and is applied after normalization.

Database failures are raised as FetchError. A tenant with no configured
database raises TenantNotConfiguredError from the registry.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import asyncpg
import pandas as pd

from callvista.core.database import TenantPoolRegistry
from callvista.core.tenants import get_tenant_config
from callvista.models.enums import TimeRange
from callvista.models.schemas import Agent, DashboardFilters
from callvista.services.field_mapping import resolve_field_mapping


logger = logging.getLogger(__name__)


RawRecord = Dict[str, Any]

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class FetchError(Exception):
    """Raised when tenant data cannot be read from its backing store."""

    def __init__(self, tenant_id: str, message: str):
        self.tenant_id = tenant_id
        super().__init__(f"[{tenant_id}] {message}")


@dataclass
class FetchResult:
    """Raw call rows plus the agents they reference."""
    records: List[RawRecord] = field(default_factory=list)
    agents: List[Agent] = field(default_factory=list)


class CallRepository(Protocol):
    async def fetch_calls(self, tenant_id: str, filters: DashboardFilters) -> FetchResult:
        ...

    async def fetch_additional_data(self, tenant_id: str) -> List[RawRecord]:
        ...


def quote_identifier(name: str) -> str:
    """Double-quote a table or column name after validating it."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def time_range_start(time_range: TimeRange, timezone: str = 'UTC', now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Lower bound of started_at for a time range, None for "all".

    today starts at local midnight, week is the last 7 days and month the
    last calendar month.
    """
    time_range = TimeRange(time_range)
    if time_range == TimeRange.ALL:
        return None

    current = pd.Timestamp(now) if now is not None else pd.Timestamp.now(tz=timezone)
    if current.tzinfo is None:
        current = current.tz_localize(timezone)
    else:
        current = current.tz_convert(timezone)

    if time_range == TimeRange.TODAY:
        start = current.normalize()
    elif time_range == TimeRange.WEEK:
        start = current - pd.Timedelta(days=7)
    else:
        start = current - pd.DateOffset(months=1)
    return start.to_pydatetime()


def _agent_from_row(row: RawRecord) -> Agent:
    agent_id = str(row.get('id'))
    return Agent(id=agent_id, name=row.get('name') or agent_id, email=row.get('email'))


class PostgresCallRepository:
    """
    CallRepository reading each tenant's own PostgreSQL database.

    Args:
        registry: Per-tenant pool registry.
        timezone: Timezone used to compute the start of the time window.
    """

    def __init__(self, registry: TenantPoolRegistry, timezone: str = 'UTC'):
        self._registry = registry
        self._timezone = timezone

    async def fetch_calls(self, tenant_id: str, filters: DashboardFilters) -> FetchResult:
        tables = get_tenant_config(tenant_id).tables
        started_column = resolve_field_mapping(tenant_id).source_for('started_at')

        query = f"SELECT * FROM {quote_identifier(tables.calls)}"
        args: List[Any] = []
        start = time_range_start(filters.timeRange, self._timezone)
        if start is not None:
            query += f" WHERE {quote_identifier(started_column)} >= $1"
            args.append(start)
        query += f" ORDER BY {quote_identifier(started_column)} DESC"

        try:
            rows = await self._registry.fetch(tenant_id, query, *args)
            agent_rows = await self._registry.fetch(tenant_id, f"SELECT * FROM {quote_identifier(tables.agents)}")
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Failed to fetch calls for tenant {tenant_id}: {e}")
            raise FetchError(tenant_id, f"Error fetching calls: {e}") from e

        records = [dict(row) for row in rows]
        agents = [_agent_from_row(dict(row)) for row in agent_rows]
        logger.info(f"Fetched {len(records)} calls and {len(agents)} agents for tenant {tenant_id}")
        return FetchResult(records=records, agents=agents)

    async def fetch_additional_data(self, tenant_id: str) -> List[RawRecord]:
        tables = get_tenant_config(tenant_id).tables
        query = (
            f"SELECT * FROM {quote_identifier(tables.additional_data)} "
            f"WHERE client_id = $1 AND is_visible = true"
        )
        try:
            rows = await self._registry.fetch(tenant_id, query, tenant_id)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Failed to fetch additional data for tenant {tenant_id}: {e}")
            raise FetchError(tenant_id, f"Error fetching additional data: {e}") from e
        return [dict(row) for row in rows]


__all__ = [
    'RawRecord',
    'FetchError',
    'FetchResult',
    'CallRepository',
    'quote_identifier',
    'time_range_start',
    'PostgresCallRepository',
]
