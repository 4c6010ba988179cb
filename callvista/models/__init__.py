"""
Package initialization file for CallVista models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from callvista.models directly.

Usage:
    from callvista.models import CallStatus, NormalizedCall, DashboardReport
"""

# =============================================================================
# Enums
# =============================================================================

from callvista.models.enums import (
    CallStatus,
    CallType,
    Sentiment,
    DisconnectCategory,
    TimeRange,
    FieldMappingSource,
)

# =============================================================================
# Schemas
# =============================================================================

from callvista.models.schemas import (
    NormalizedCall,
    Agent,
    FieldMappingEntry,
    DashboardFilters,
    CountryCostEntry,
    CountryCost,
    CallTypeCost,
    AgentCost,
    DayCost,
    CostSplit,
    CostReport,
    SeriesPoint,
    InboundOutboundPoint,
    HourlySuccess,
    SuccessInsights,
    SentimentSlice,
    SentimentTrendPoint,
    AgentStats,
    DisconnectionReason,
    DisconnectionCategorySummary,
    DisconnectionMetrics,
    FailedMetrics,
    StatusCount,
    MetricsReport,
    RelationStats,
    DashboardReport,
    TenantInfo,
)


__all__ = [
    # Enums
    'CallStatus',
    'CallType',
    'Sentiment',
    'DisconnectCategory',
    'TimeRange',
    'FieldMappingSource',
    # Schemas
    'NormalizedCall',
    'Agent',
    'FieldMappingEntry',
    'DashboardFilters',
    'CountryCostEntry',
    'CountryCost',
    'CallTypeCost',
    'AgentCost',
    'DayCost',
    'CostSplit',
    'CostReport',
    'SeriesPoint',
    'InboundOutboundPoint',
    'HourlySuccess',
    'SuccessInsights',
    'SentimentSlice',
    'SentimentTrendPoint',
    'AgentStats',
    'DisconnectionReason',
    'DisconnectionCategorySummary',
    'DisconnectionMetrics',
    'FailedMetrics',
    'StatusCount',
    'MetricsReport',
    'RelationStats',
    'DashboardReport',
    'TenantInfo',
]
