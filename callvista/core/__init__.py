"""
Core infrastructure package for the CallVista backend.

Provides:
- Configuration management via pydantic-settings
- Static tenant configuration
- Per-tenant asyncpg connection pools

Dependency injection helpers live in callvista.core.dependencies; they are
not re-exported here because they import the service layer.

Usage:
    from callvista.core import get_settings, TenantPoolRegistry
"""

from callvista.core.config import Settings, get_settings
from callvista.core.database import TenantNotConfiguredError, TenantPoolRegistry
from callvista.core.tenants import (
    DEFAULT_TENANT,
    TENANT_CONFIGS,
    TenantConfig,
    TenantTables,
    get_tenant_config,
)


__all__ = [
    # Configuration
    'Settings',
    'get_settings',
    # Tenants
    'DEFAULT_TENANT',
    'TENANT_CONFIGS',
    'TenantConfig',
    'TenantTables',
    'get_tenant_config',
    # Connection pools
    'TenantNotConfiguredError',
    'TenantPoolRegistry',
]
