"""
Per-tenant asyncpg connection pool registry.

Every tenant keeps its calls in its own PostgreSQL database, so instead of a
single global pool this module provides a registry of pools keyed by tenant
id. The registry is created once at application startup (FastAPI lifespan),
handed to the repository, and closed at shutdown.

Key Components:
- TenantNotConfiguredError: raised for a tenant with no configured DSN
- TenantPoolRegistry: lazy, insert-once pool cache guarded by an asyncio.Lock

Concurrency:
    Lookups are read-mostly. A pool is created at most once per tenant id;
    concurrent first requests for the same tenant wait on the lock and then
    reuse the pool the first request created. A tenant without a DSN is never
    served another tenant's database.

Usage:
    registry = TenantPoolRegistry(get_settings())

    pool = await registry.get_pool("cliente1")
    async with pool.acquire() as conn:
        rows = await conn.fetch('SELECT * FROM "calls"')

    await registry.close_all()
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import asyncpg
from asyncpg import Pool

from callvista.core.config import Settings, get_settings


logger = logging.getLogger(__name__)


PoolFactory = Callable[..., Awaitable[Pool]]


class TenantNotConfiguredError(LookupError):
    """Raised when a tenant has no backing-store connection configured."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"No database configured for tenant '{tenant_id}'")


class TenantPoolRegistry:
    """
    Registry of asyncpg pools, one per tenant.

    Args:
        settings: Application settings. Supplies the tenant DSNs and pool sizes.
        pool_factory: Coroutine used to open a pool. Defaults to
            asyncpg.create_pool; tests pass a mock.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        pool_factory: Optional[PoolFactory] = None,
    ):
        self._settings = settings or get_settings()
        self._pool_factory = pool_factory or asyncpg.create_pool
        self._pools: Dict[str, Pool] = {}
        self._lock = asyncio.Lock()

    @property
    def tenant_ids(self) -> List[str]:
        """Tenants that have a DSN configured."""
        return sorted(self._settings.tenant_database_urls)

    def is_configured(self, tenant_id: str) -> bool:
        return tenant_id in self._settings.tenant_database_urls

    async def get_pool(self, tenant_id: str) -> Pool:
        """
        Return the pool for a tenant, opening it on first use.

        Raises:
            TenantNotConfiguredError: If the tenant has no DSN.
            asyncpg.PostgresError / OSError: If the database is unreachable.
        """
        pool = self._pools.get(tenant_id)
        if pool is not None:
            return pool

        dsn = self._settings.tenant_database_urls.get(tenant_id)
        if not dsn:
            raise TenantNotConfiguredError(tenant_id)

        async with self._lock:
            # Another task may have opened it while we waited
            pool = self._pools.get(tenant_id)
            if pool is None:
                logger.info(f"Opening connection pool for tenant {tenant_id}")
                pool = await self._pool_factory(
                    dsn=dsn,
                    min_size=self._settings.pool_min_size,
                    max_size=self._settings.pool_max_size,
                    command_timeout=self._settings.fetch_timeout_seconds,
                )
                self._pools[tenant_id] = pool
        return pool

    async def fetch(self, tenant_id: str, query: str, *args: Any) -> List[asyncpg.Record]:
        """Run one query against a tenant database and return all rows."""
        pool = await self.get_pool(tenant_id)
        async with pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def close_all(self) -> None:
        """Close every open pool. Safe to call more than once."""
        async with self._lock:
            pools = list(self._pools.items())
            self._pools.clear()
        for tenant_id, pool in pools:
            logger.info(f"Closing connection pool for tenant {tenant_id}")
            await pool.close()


__all__ = [
    'TenantNotConfiguredError',
    'TenantPoolRegistry',
]
