"""
Static tenant configuration.

Each tenant (client organization) keeps its calls in its own PostgreSQL
database. The connection string comes from Settings.tenant_database_urls;
everything else a tenant needs (display name, table names) lives here and is
read-only at runtime.

Tenants without an entry here fall back to DEFAULT_TENANT for table names,
field mappings, vocabularies and cost tables.
"""

from dataclasses import dataclass, field
from typing import Dict


DEFAULT_TENANT: str = 'cliente1'


@dataclass(frozen=True)
class TenantTables:
    """Table names inside one tenant database."""
    calls: str = 'calls'
    agents: str = 'agents'
    additional_data: str = 'additional_client_data'


@dataclass(frozen=True)
class TenantConfig:
    """
    Read-only description of a tenant.

    Attributes:
        tenant_id: Stable identifier used in URLs and configuration keys.
        name: Human readable name.
        tables: Table names in the tenant database.
    """
    tenant_id: str
    name: str
    tables: TenantTables = field(default_factory=TenantTables)


TENANT_CONFIGS: Dict[str, TenantConfig] = {
    'cliente1': TenantConfig(tenant_id='cliente1', name='Cliente 1'),
    'cliente2': TenantConfig(tenant_id='cliente2', name='Cliente 2'),
    'cliente3': TenantConfig(tenant_id='cliente3', name='Cliente 3'),
}


def get_tenant_config(tenant_id: str) -> TenantConfig:
    """
    Return the static configuration for a tenant.

    Unknown tenants get the default tenant's table layout under their own id,
    so table names resolve while data stays isolated to the tenant's database.
    """
    config = TENANT_CONFIGS.get(tenant_id)
    if config is not None:
        return config
    default = TENANT_CONFIGS[DEFAULT_TENANT]
    return TenantConfig(tenant_id=tenant_id, name=tenant_id, tables=default.tables)
