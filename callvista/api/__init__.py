"""
CallVista API package.

Router modules:
- dashboard: tenant dashboard reports
"""

from fastapi import APIRouter

from callvista.api.dashboard import router as dashboard_router

api_router = APIRouter()
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])

__all__ = [
    "api_router",
    "dashboard_router",
]
