"""
CallVista Analytics Backend Package.

FastAPI service layer for the multi-tenant call analytics dashboard.
Fetches call records from each tenant's own PostgreSQL store, normalizes
them onto a canonical call shape and derives cost and dashboard metrics.

Subpackages:
    - api: FastAPI route handlers
    - core: Settings, tenant configuration, connection pools, dependencies
    - models: Pydantic schemas and enums
    - services: Normalization, cost, metrics and pipeline services
"""

__version__ = "1.0.0"
