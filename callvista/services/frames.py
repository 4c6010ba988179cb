"""
DataFrame helpers shared by the cost engine and the metrics aggregator.

Normalized calls are turned into one pandas DataFrame per cycle, with the
start timestamp parsed once and converted to the report timezone so every
hour / weekday / day-of-month bucket is computed the same way.
"""

import math
from typing import List, Sequence

import pandas as pd

from callvista.models.schemas import NormalizedCall


WEEKDAY_LABELS: List[str] = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

HOUR_LABELS: List[str] = [f"{hour:02d}:00" for hour in range(24)]

FRAME_COLUMNS: List[str] = [
    'id',
    'status',
    'call_type',
    'sentiment',
    'duration',
    'retell_cost',
    'latency',
    'country_code',
    'disconnect_reason',
    'agent_id',
    'channel',
    'started_at',
]


def calls_to_frame(calls: Sequence[NormalizedCall], timezone: str = 'UTC') -> pd.DataFrame:
    """
    Build a DataFrame of calls with parsed time buckets.

    Adds:
        minutes: duration in minutes
        hour / weekday / day: start bucket in the report timezone (nullable,
            NA when started_at is missing or unparseable; weekday 0 is Monday)
    """
    rows = [call.model_dump(mode='json', include=set(FRAME_COLUMNS)) for call in calls]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)

    for col in ('duration', 'retell_cost', 'latency'):
        df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0.0).astype(float)
    df['minutes'] = df['duration'] / 60.0

    started = pd.to_datetime(df['started_at'], utc=True, errors='coerce', format='ISO8601')
    started = started.dt.tz_convert(timezone)
    df['hour'] = started.dt.hour.astype('Int64')
    df['weekday'] = started.dt.dayofweek.astype('Int64')
    df['day'] = started.dt.day.astype('Int64')
    return df


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, halves up."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def percentage(part: float, total: float) -> int:
    """Integer percentage, 0 when total is 0."""
    if not total:
        return 0
    return round_half_up(part / total * 100)


def ratio(part: float, total: float) -> float:
    """Plain ratio, 0 when total is 0."""
    if not total:
        return 0.0
    return float(part) / float(total)


__all__ = [
    'WEEKDAY_LABELS',
    'HOUR_LABELS',
    'calls_to_frame',
    'round_half_up',
    'percentage',
    'ratio',
]
