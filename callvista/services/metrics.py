"""
Dashboard metrics aggregation.

Derives every dashboard section from a list of normalized calls:

- Rate scalars (pickup, success, transfer, voicemail) as integer percentages
- Time series bucketed by hour (today), weekday (week, all) or day of month
  (month, empty days omitted)
- Hourly success rate with best / worst hour insights
- Sentiment distribution and weekday sentiment trend
- Per-agent performance, pivoted one row per metric for charting
- Disconnection reasons with their categories, failure summary and status
  distribution

All rates are 0 when their denominator is 0, so an empty input produces a
well-formed, zero-filled report.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from callvista.models.enums import CallStatus, CallType, DisconnectCategory, Sentiment, TimeRange
from callvista.models.schemas import (
    Agent,
    AgentStats,
    DisconnectionCategorySummary,
    DisconnectionMetrics,
    DisconnectionReason,
    FailedMetrics,
    HourlySuccess,
    InboundOutboundPoint,
    MetricsReport,
    NormalizedCall,
    SentimentSlice,
    SentimentTrendPoint,
    SeriesPoint,
    StatusCount,
    SuccessInsights,
)
from callvista.services.disconnection import categorize_disconnect_reason
from callvista.services.frames import HOUR_LABELS, WEEKDAY_LABELS, calls_to_frame, percentage


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Answered means the customer picked up
UNANSWERED_STATUSES: List[str] = [CallStatus.FAILED.value, CallStatus.VOICEMAIL.value]

STATUS_DISPLAY_ORDER: List[CallStatus] = [
    CallStatus.SUCCESSFUL,
    CallStatus.VOICEMAIL,
    CallStatus.TRANSFERRED,
    CallStatus.ONGOING,
    CallStatus.FAILED,
]

SENTIMENT_ORDER: List[Sentiment] = [Sentiment.POSITIVE, Sentiment.NEUTRAL, Sentiment.NEGATIVE]

CATEGORY_ORDER: List[DisconnectCategory] = [
    DisconnectCategory.ENDED,
    DisconnectCategory.NOT_CONNECTED,
    DisconnectCategory.ERROR,
]

AGENT_METRIC_LABELS: Dict[str, str] = {
    'successRate': 'Success rate (%)',
    'transferRate': 'Transfer rate (%)',
    'averageDuration': 'Average duration (min)',
    'satisfaction': 'Satisfaction (%)',
    'callsPerHour': 'Calls per hour',
    'totalCalls': 'Total calls',
}

# Satisfaction reported for an agent without sentiment-bearing calls
NEUTRAL_SATISFACTION: int = 50

TOP_FAILURE_REASONS: int = 5


# =============================================================================
# Bucketing
# =============================================================================


def _bucket_layout(df: pd.DataFrame, time_range: TimeRange) -> Tuple[str, List[Any], List[str]]:
    """
    Return (bucket column, bucket keys, labels) for a time range.

    Month buckets only cover days that have calls.
    """
    if time_range == TimeRange.TODAY:
        return 'hour', list(range(24)), HOUR_LABELS
    if time_range == TimeRange.MONTH:
        days = sorted(int(day) for day in df['day'].dropna().unique())
        return 'day', days, [str(day) for day in days]
    return 'weekday', list(range(7)), WEEKDAY_LABELS


def _time_series(df: pd.DataFrame, time_range: TimeRange):
    column, keys, labels = _bucket_layout(df, time_range)
    bucketed = df.dropna(subset=[column])
    grouped = bucketed.groupby(column)

    volume = grouped.size().reindex(keys, fill_value=0)
    duration = grouped['minutes'].mean().reindex(keys).fillna(0.0)
    latency = grouped['latency'].mean().reindex(keys).fillna(0.0)
    inbound = bucketed[bucketed['call_type'] == CallType.INBOUND.value].groupby(column).size().reindex(keys, fill_value=0)
    outbound = bucketed[bucketed['call_type'] == CallType.OUTBOUND.value].groupby(column).size().reindex(keys, fill_value=0)

    call_volume = [SeriesPoint(name=label, value=int(volume.iloc[i])) for i, label in enumerate(labels)]
    call_duration = [SeriesPoint(name=label, value=round(float(duration.iloc[i]), 2)) for i, label in enumerate(labels)]
    latency_series = [SeriesPoint(name=label, value=round(float(latency.iloc[i]), 2)) for i, label in enumerate(labels)]
    inbound_outbound = [
        InboundOutboundPoint(name=label, inbound=int(inbound.iloc[i]), outbound=int(outbound.iloc[i]))
        for i, label in enumerate(labels)
    ]
    return call_volume, call_duration, latency_series, inbound_outbound


# =============================================================================
# Sections
# =============================================================================


def compute_success_by_hour(df: pd.DataFrame) -> Tuple[List[HourlySuccess], SuccessInsights]:
    """
    Success rate per hour of day, empty hours omitted.

    Best and worst hour use strict comparisons, so the earliest hour wins
    a tie.
    """
    bucketed = df.dropna(subset=['hour'])
    if bucketed.empty:
        return [], SuccessInsights()

    successful = bucketed['status'] == CallStatus.SUCCESSFUL.value
    grouped = (
        bucketed.assign(successful=successful.astype(int))
        .groupby('hour')
        .agg(total=('id', 'size'), successful=('successful', 'sum'))
        .sort_index()
    )

    series = [
        HourlySuccess(
            hour=HOUR_LABELS[int(hour)],
            total=int(row.total),
            successful=int(row.successful),
            successRate=percentage(row.successful, row.total),
        )
        for hour, row in zip(grouped.index, grouped.itertuples(index=False))
        if row.total > 0
    ]

    best = worst = series[0]
    for point in series[1:]:
        if point.successRate > best.successRate:
            best = point
        if point.successRate < worst.successRate:
            worst = point

    insights = SuccessInsights(
        bestHour=best,
        worstHour=worst,
        overallSuccessRate=percentage(int(grouped['successful'].sum()), int(grouped['total'].sum())),
    )
    return series, insights


def compute_sentiment(df: pd.DataFrame) -> Tuple[List[SentimentSlice], List[SentimentTrendPoint]]:
    """Sentiment shares over sentiment-bearing calls only."""
    bearing = df.dropna(subset=['sentiment'])
    counts = bearing['sentiment'].value_counts()
    total = int(len(bearing))
    distribution = [
        SentimentSlice(name=sentiment, value=percentage(int(counts.get(sentiment.value, 0)), total))
        for sentiment in SENTIMENT_ORDER
    ]

    trend = []
    dated = bearing.dropna(subset=['weekday'])
    for weekday, label in enumerate(WEEKDAY_LABELS):
        day = dated[dated['weekday'] == weekday]
        day_counts = day['sentiment'].value_counts()
        day_total = int(len(day))
        trend.append(SentimentTrendPoint(
            name=label,
            positive=percentage(int(day_counts.get(Sentiment.POSITIVE.value, 0)), day_total),
            neutral=percentage(int(day_counts.get(Sentiment.NEUTRAL.value, 0)), day_total),
            negative=percentage(int(day_counts.get(Sentiment.NEGATIVE.value, 0)), day_total),
        ))
    return distribution, trend


def _agent_display_names(agent_ids: List[str], agents: Sequence[Agent]) -> Dict[str, str]:
    names = {agent.id: agent.name for agent in agents}
    display = {agent_id: names.get(agent_id, agent_id) for agent_id in agent_ids}
    taken: Dict[str, int] = {}
    for name in display.values():
        taken[name] = taken.get(name, 0) + 1
    # Two agents sharing a name would collide as pivot columns
    return {
        agent_id: name if taken[name] == 1 else f"{name} ({agent_id})"
        for agent_id, name in display.items()
    }


def compute_agent_stats(df: pd.DataFrame, agents: Sequence[Agent] = ()) -> List[AgentStats]:
    """
    Performance per agent. Calls without an agent are skipped.

    Calls per hour is total calls over total talk hours, or total/2 when the
    agent has no recorded duration.
    """
    assigned = df[df['agent_id'].notna() & (df['agent_id'] != '')]
    if assigned.empty:
        return []

    agent_ids = list(dict.fromkeys(assigned['agent_id']))
    display_names = _agent_display_names(agent_ids, agents)

    stats = []
    for agent_id in agent_ids:
        calls = assigned[assigned['agent_id'] == agent_id]
        total = int(len(calls))
        successful = int((calls['status'] == CallStatus.SUCCESSFUL.value).sum())
        transferred = int((calls['status'] == CallStatus.TRANSFERRED.value).sum())

        bearing = calls['sentiment'].dropna()
        if len(bearing):
            satisfaction = percentage(int((bearing == Sentiment.POSITIVE.value).sum()), int(len(bearing)))
        else:
            satisfaction = NEUTRAL_SATISFACTION

        hours = float(calls['duration'].sum()) / 3600.0
        calls_per_hour = total / hours if hours > 0 else 0.0
        if calls_per_hour == 0:
            calls_per_hour = total / 2

        stats.append(AgentStats(
            agentId=agent_id,
            name=display_names[agent_id],
            totalCalls=total,
            successRate=percentage(successful, total),
            transferRate=percentage(transferred, total),
            averageDuration=round(float(calls['minutes'].mean()), 2),
            satisfaction=satisfaction,
            callsPerHour=round(calls_per_hour, 1),
        ))
    return stats


def pivot_agent_performance(stats: Sequence[AgentStats]) -> List[Dict[str, Any]]:
    """One row per metric, one column per agent display name."""
    if not stats:
        return []
    rows = []
    for field, label in AGENT_METRIC_LABELS.items():
        row: Dict[str, Any] = {'metric': label}
        for agent in stats:
            row[agent.name] = getattr(agent, field)
        rows.append(row)
    return rows


def _reason_counts(reasons: pd.Series) -> List[DisconnectionReason]:
    counts = reasons.value_counts(sort=False)
    total = int(counts.sum())
    ordered = counts.sort_values(ascending=False, kind='stable')
    return [
        DisconnectionReason(
            reason=str(reason),
            count=int(count),
            percentage=percentage(int(count), total),
            category=categorize_disconnect_reason(str(reason)),
        )
        for reason, count in ordered.items()
    ]


def compute_disconnection(df: pd.DataFrame) -> DisconnectionMetrics:
    """Reasons and category summary over calls carrying a disconnect reason."""
    reasons = df['disconnect_reason'].dropna()
    reasons = reasons[reasons.astype(str).str.strip() != '']
    total = int(len(reasons))
    if total == 0:
        return DisconnectionMetrics()

    rows = _reason_counts(reasons)
    by_category = []
    for category in CATEGORY_ORDER:
        count = sum(row.count for row in rows if row.category == category)
        if count:
            by_category.append(DisconnectionCategorySummary(
                category=category,
                count=count,
                percentage=percentage(count, total),
            ))
    return DisconnectionMetrics(totalWithReason=total, reasons=rows, byCategory=by_category)


def compute_failed_metrics(df: pd.DataFrame) -> FailedMetrics:
    failed = df[df['status'] == CallStatus.FAILED.value]
    total_failed = int(len(failed))
    reasons = failed['disconnect_reason'].dropna()
    reasons = reasons[reasons.astype(str).str.strip() != '']
    return FailedMetrics(
        totalFailed=total_failed,
        failureRate=percentage(total_failed, int(len(df))),
        topReasons=_reason_counts(reasons)[:TOP_FAILURE_REASONS] if len(reasons) else [],
    )


def compute_status_distribution(df: pd.DataFrame) -> List[StatusCount]:
    counts = df['status'].value_counts()
    total = int(len(df))
    return [
        StatusCount(status=status, count=int(counts[status.value]), percentage=percentage(int(counts[status.value]), total))
        for status in STATUS_DISPLAY_ORDER
        if int(counts.get(status.value, 0)) > 0
    ]


# =============================================================================
# Entry Point
# =============================================================================


def aggregate_metrics(
    calls: Sequence[NormalizedCall],
    time_range: TimeRange = TimeRange.MONTH,
    agents: Optional[Sequence[Agent]] = None,
    timezone: str = 'UTC',
) -> MetricsReport:
    """
    Compute the dashboard metrics for a set of normalized calls.

    Args:
        calls: Normalized calls, already filtered.
        time_range: Selects the bucketing of the time series.
        agents: Agents used to name agent performance columns.
        timezone: Timezone applied to started_at before bucketing.

    Returns:
        MetricsReport: Complete report. Empty input gives zero rates and
            zero-filled buckets.
    """
    time_range = TimeRange(time_range)
    df = calls_to_frame(calls, timezone)
    total = int(len(df))

    status = df['status']
    answered = int((~status.isin(UNANSWERED_STATUSES)).sum())
    successful = int((status == CallStatus.SUCCESSFUL.value).sum())
    transferred = int((status == CallStatus.TRANSFERRED.value).sum())
    voicemail = int((status == CallStatus.VOICEMAIL.value).sum())

    call_volume, call_duration, latency, inbound_outbound = _time_series(df, time_range)
    success_by_hour, insights = compute_success_by_hour(df)
    sentiment, sentiment_trend = compute_sentiment(df)
    agent_stats = compute_agent_stats(df, agents or [])

    return MetricsReport(
        timeRange=time_range,
        totalCalls=total,
        pickupRate=percentage(answered, total),
        successRate=percentage(successful, total),
        transferRate=percentage(transferred, total),
        voicemailRate=percentage(voicemail, total),
        averageDuration=round(float(df['minutes'].mean()), 2) if total else 0.0,
        averageLatency=round(float(df['latency'].mean()), 2) if total else 0.0,
        callVolume=call_volume,
        callDuration=call_duration,
        latency=latency,
        inboundOutbound=inbound_outbound,
        successByHour=success_by_hour,
        successInsights=insights,
        sentiment=sentiment,
        sentimentTrend=sentiment_trend,
        agentStats=agent_stats,
        agentPerformance=pivot_agent_performance(agent_stats),
        disconnection=compute_disconnection(df),
        failedMetrics=compute_failed_metrics(df),
        statusDistribution=compute_status_distribution(df),
    )


__all__ = [
    'UNANSWERED_STATUSES',
    'STATUS_DISPLAY_ORDER',
    'AGENT_METRIC_LABELS',
    'NEUTRAL_SATISFACTION',
    'compute_success_by_hour',
    'compute_sentiment',
    'compute_agent_stats',
    'pivot_agent_performance',
    'compute_disconnection',
    'compute_failed_metrics',
    'compute_status_distribution',
    'aggregate_metrics',
]
