"""
Pydantic schemas for the CallVista backend.

This module defines the canonical call record produced by the normalizer and
every response model assembled by the cost engine, the metrics aggregator and
the dashboard pipeline. Field names of report models are camelCase because
they are consumed directly by the dashboard frontend.

Sections:
- Call records: NormalizedCall, Agent, FieldMappingEntry
- Filters: DashboardFilters
- Cost: CountryCostEntry, CostReport and its breakdown rows
- Metrics: MetricsReport and its series / distribution rows
- Relations: RelationStats
- Dashboard: DashboardReport, TenantInfo
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from callvista.models.enums import (
    CallStatus,
    CallType,
    DisconnectCategory,
    FieldMappingSource,
    Sentiment,
    TimeRange,
)


# =============================================================================
# Call Records
# =============================================================================


class NormalizedCall(BaseModel):
    """
    Canonical, tenant-independent call record.

    Created once per raw record during a fetch cycle and never mutated.
    status and call_type are always members of their enums; sentiment is a
    member or None. Numeric fields are finite and non-negative.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Call identifier")
    status: CallStatus = Field(..., description="Normalized call outcome")
    call_type: CallType = Field(..., description="Call direction")
    sentiment: Optional[Sentiment] = Field(
        default=None,
        description="Customer sentiment, None when not detected"
    )

    duration: float = Field(default=0.0, ge=0.0, description="Duration in seconds")
    cost: float = Field(default=0.0, ge=0.0, description="Stored call cost")
    retell_cost: float = Field(default=0.0, ge=0.0, description="Provider-reported cost")
    latency: float = Field(default=0.0, ge=0.0, description="Average response latency")

    customer_phone: str = Field(default='', description="Customer phone number")
    country_code: Optional[str] = Field(default=None, description="ISO country code")
    country_name: Optional[str] = None
    started_at: Optional[str] = Field(default=None, description="ISO start timestamp")
    ended_at: Optional[str] = Field(default=None, description="ISO end timestamp")
    disconnect_reason: Optional[str] = None
    agent_id: Optional[str] = Field(default=None, description="Agent identifier")
    channel: Optional[str] = Field(default=None, description="Contact channel (voz, whatsapp)")

    transcription: Optional[str] = None
    call_summary: Optional[str] = None
    call_objective: Optional[str] = None
    call_id: Optional[str] = None
    agent_number: Optional[str] = None
    call_id_retell: Optional[str] = None

    # Legacy passthrough, raw values as stored
    call_status: Optional[str] = None
    call_successful: Optional[str] = None
    timestamp: Optional[str] = None

    tenant_id: str = Field(
        ...,
        serialization_alias='_client',
        description="Tenant the record was normalized for"
    )


class Agent(BaseModel):
    """Agent record fetched alongside the calls."""
    id: str
    name: str
    email: Optional[str] = None


class FieldMappingEntry(BaseModel):
    """Diagnostic view of one resolved canonical field."""
    canonical: str = Field(..., description="Canonical field name")
    source: str = Field(..., description="Source column name in the tenant schema")
    present: bool = Field(..., description="Whether the first record carries the source column")
    sample: Optional[Any] = Field(default=None, description="Value found in the first record")
    mappingSource: FieldMappingSource


# =============================================================================
# Filters
# =============================================================================


class DashboardFilters(BaseModel):
    """
    Filter set applied to one dashboard cycle.

    "all" disables a filter. timeRange defaults to the last month.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "agent": "all",
                "timeRange": "month",
                "callType": "inbound",
                "status": "all",
                "channel": "voz",
                "country": "cl"
            }
        }
    )

    agent: str = Field(default='all', description="Agent id or 'all'")
    timeRange: TimeRange = Field(default=TimeRange.MONTH, description="Time window and bucketing")
    callType: str = Field(default='all', description="inbound, outbound or 'all'")
    status: str = Field(default='all', description="Normalized status or 'all'")
    channel: str = Field(default='all', description="voz, whatsapp or 'all'")
    country: str = Field(default='all', description="ISO country code or 'all'")


# =============================================================================
# Cost Models
# =============================================================================


class CountryCostEntry(BaseModel):
    """Per-minute cost for one country in one tenant's cost table."""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="ISO-2 country code, or '*' for the wildcard entry")
    name: str
    costPerMinute: float = Field(..., ge=0.0)
    currency: str = 'USD'
    flag: str = ''


class CountryCost(BaseModel):
    code: str
    name: str
    flag: str = ''
    cost: float
    calls: int
    averageCost: float
    percentage: float = Field(..., description="Share of the total cost, in percent")


class CallTypeCost(BaseModel):
    callType: CallType
    cost: float
    calls: int
    averageCost: float


class AgentCost(BaseModel):
    agentId: str
    name: str
    cost: float
    calls: int
    averageCost: float


class DayCost(BaseModel):
    day: str = Field(..., description="Weekday label (Mon..Sun)")
    cost: float
    minutes: float


class CostSplit(BaseModel):
    """Provider-reported cost versus per-minute call cost."""
    providerCost: float
    callMinuteCost: float
    providerPercentage: float
    callMinutePercentage: float


class CostReport(BaseModel):
    """
    Cost allocation for one set of calls.

    Monetary values are rounded once, here at output. For zero-cost tenants
    every monetary value is 0 while counts and minutes are still reported.
    """
    tenantId: str
    currency: str = 'USD'
    totalCost: float
    totalCalls: int
    totalMinutes: float
    averageCostPerCall: float
    averageCostPerMinute: float
    split: CostSplit
    byCountry: List[CountryCost] = Field(default_factory=list)
    byCallType: List[CallTypeCost] = Field(default_factory=list)
    byAgent: List[AgentCost] = Field(default_factory=list)
    byDay: List[DayCost] = Field(default_factory=list)


# =============================================================================
# Metrics Models
# =============================================================================


class SeriesPoint(BaseModel):
    """One bucket of a time series (hour, weekday or day of month)."""
    name: str
    value: float


class InboundOutboundPoint(BaseModel):
    name: str
    inbound: int
    outbound: int


class HourlySuccess(BaseModel):
    hour: str = Field(..., description="Hour bucket label, e.g. '09:00'")
    total: int
    successful: int
    successRate: int


class SuccessInsights(BaseModel):
    bestHour: Optional[HourlySuccess] = None
    worstHour: Optional[HourlySuccess] = None
    overallSuccessRate: int = 0


class SentimentSlice(BaseModel):
    name: Sentiment
    value: int = Field(..., description="Percentage of sentiment-bearing calls")


class SentimentTrendPoint(BaseModel):
    name: str = Field(..., description="Weekday label")
    positive: int
    neutral: int
    negative: int


class AgentStats(BaseModel):
    """Performance of one agent, before pivoting."""
    agentId: str
    name: str
    totalCalls: int
    successRate: int
    transferRate: int
    averageDuration: float = Field(..., description="Average call duration in minutes")
    satisfaction: int = Field(..., description="Positive share of sentiment-bearing calls, 50 when none")
    callsPerHour: float


class DisconnectionReason(BaseModel):
    reason: str
    count: int
    percentage: int
    category: DisconnectCategory


class DisconnectionCategorySummary(BaseModel):
    category: DisconnectCategory
    count: int
    percentage: int


class DisconnectionMetrics(BaseModel):
    totalWithReason: int = 0
    reasons: List[DisconnectionReason] = Field(default_factory=list)
    byCategory: List[DisconnectionCategorySummary] = Field(default_factory=list)


class FailedMetrics(BaseModel):
    totalFailed: int = 0
    failureRate: int = 0
    topReasons: List[DisconnectionReason] = Field(default_factory=list)


class StatusCount(BaseModel):
    status: CallStatus
    count: int
    percentage: int


class MetricsReport(BaseModel):
    """
    Dashboard metrics for one set of calls.

    Rates are integer percentages. agentPerformance holds one row per metric
    with a "metric" key and one key per agent display name.
    """
    timeRange: TimeRange
    totalCalls: int = 0
    pickupRate: int = 0
    successRate: int = 0
    transferRate: int = 0
    voicemailRate: int = 0
    averageDuration: float = 0.0
    averageLatency: float = 0.0

    callVolume: List[SeriesPoint] = Field(default_factory=list)
    callDuration: List[SeriesPoint] = Field(default_factory=list)
    latency: List[SeriesPoint] = Field(default_factory=list)
    inboundOutbound: List[InboundOutboundPoint] = Field(default_factory=list)

    successByHour: List[HourlySuccess] = Field(default_factory=list)
    successInsights: SuccessInsights = Field(default_factory=SuccessInsights)

    sentiment: List[SentimentSlice] = Field(default_factory=list)
    sentimentTrend: List[SentimentTrendPoint] = Field(default_factory=list)

    agentStats: List[AgentStats] = Field(default_factory=list)
    agentPerformance: List[Dict[str, Any]] = Field(default_factory=list)

    disconnection: DisconnectionMetrics = Field(default_factory=DisconnectionMetrics)
    failedMetrics: FailedMetrics = Field(default_factory=FailedMetrics)
    statusDistribution: List[StatusCount] = Field(default_factory=list)


# =============================================================================
# Relations
# =============================================================================


class RelationStats(BaseModel):
    """How many calls could be linked to a row of additional client data."""
    totalCalls: int = 0
    totalAdditional: int = 0
    callsWithRetellId: int = 0
    additionalWithRetellId: int = 0
    matchedRelations: int = 0
    matchRate: float = Field(default=0.0, description="Matched share of calls carrying a retell id, in percent")


# =============================================================================
# Dashboard
# =============================================================================


class DashboardReport(BaseModel):
    """
    Result of one dashboard cycle.

    On a fetch failure success is False, error carries the message and every
    section is the empty, zero-filled shape. superseded is True when a newer
    request for the same tenant published its report first.
    """
    tenantId: str
    tenantName: str
    requestId: int = Field(..., ge=0, description="Per-tenant request sequence number")
    generatedAt: datetime
    filters: DashboardFilters
    success: bool = True
    error: Optional[str] = None
    superseded: bool = False
    calls: int = Field(default=0, description="Calls left after filtering")
    metrics: MetricsReport
    costs: CostReport
    relations: RelationStats = Field(default_factory=RelationStats)


class TenantInfo(BaseModel):
    tenantId: str
    name: str
    configured: bool = Field(..., description="Whether a database connection is configured")


__all__ = [
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
