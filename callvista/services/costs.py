"""
Cost allocation engine.

Per call:
    call_minute_cost = duration / 60 * cost_per_minute(tenant, country)
    total_cost       = retell_cost + call_minute_cost

Cost per minute comes from the tenant's country cost table. A country
missing from the table uses the tenant's wildcard entry ('*'), and a table
without a wildcard uses DEFAULT_COST_PER_MINUTE. A tenant without a table
uses the default tenant's table.

Zero-cost tenants are listed explicitly in ZERO_COST_TENANTS. For them every
monetary figure is 0: per-call costs, breakdowns and totals. Call counts and
minutes are still reported.

Aggregates are accumulated unrounded and rounded once when the CostReport
is built. Ratios with a zero denominator are 0.
"""

import logging
from typing import Dict, FrozenSet, Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from callvista.core.tenants import DEFAULT_TENANT
from callvista.models.enums import CallType
from callvista.models.schemas import (
    Agent,
    AgentCost,
    CallTypeCost,
    CostReport,
    CostSplit,
    CountryCost,
    CountryCostEntry,
    DayCost,
    NormalizedCall,
)
from callvista.services.frames import WEEKDAY_LABELS, calls_to_frame, ratio


logger = logging.getLogger(__name__)


# =============================================================================
# Cost Tables
# =============================================================================

WILDCARD: str = '*'

DEFAULT_COST_PER_MINUTE: float = 0.05

UNKNOWN_FLAG: str = '🏳️'

UNASSIGNED_AGENT: str = 'unassigned'

ZERO_COST_TENANTS: FrozenSet[str] = frozenset({'cliente2'})

# Three-letter codes some tenants store
COUNTRY_CODE_ALIASES: Dict[str, str] = {
    'ARG': 'AR',
    'CHL': 'CL',
    'ESP': 'ES',
    'MEX': 'MX',
}


def _table(*entries: CountryCostEntry) -> Dict[str, CountryCostEntry]:
    return {entry.code: entry for entry in entries}


COUNTRY_COST_TABLES: Dict[str, Dict[str, CountryCostEntry]] = {
    'cliente1': _table(
        CountryCostEntry(code='CL', name='Chile', costPerMinute=0.04, flag='🇨🇱'),
        CountryCostEntry(code='AR', name='Argentina', costPerMinute=0.0019, flag='🇦🇷'),
        CountryCostEntry(code='MX', name='México', costPerMinute=0.02, flag='🇲🇽'),
        CountryCostEntry(code='ES', name='España', costPerMinute=0.91, flag='🇪🇸'),
        CountryCostEntry(code=WILDCARD, name='Other', costPerMinute=0.05, flag=UNKNOWN_FLAG),
    ),
    'cliente2': _table(
        CountryCostEntry(code='CL', name='Chile', costPerMinute=0.0, flag='🇨🇱'),
        CountryCostEntry(code='AR', name='Argentina', costPerMinute=0.0, flag='🇦🇷'),
        CountryCostEntry(code=WILDCARD, name='Other', costPerMinute=0.0, flag=UNKNOWN_FLAG),
    ),
    'cliente3': _table(
        CountryCostEntry(code='CL', name='Chile', costPerMinute=0.04, flag='🇨🇱'),
        CountryCostEntry(code='MX', name='México', costPerMinute=0.02, flag='🇲🇽'),
        CountryCostEntry(code=WILDCARD, name='Other', costPerMinute=0.05, flag=UNKNOWN_FLAG),
    ),
}


# =============================================================================
# Lookups
# =============================================================================


def get_cost_table(tenant_id: str) -> Dict[str, CountryCostEntry]:
    table = COUNTRY_COST_TABLES.get(tenant_id)
    if table is None:
        logger.debug(f"No cost table for tenant {tenant_id}, using {DEFAULT_TENANT}")
        table = COUNTRY_COST_TABLES[DEFAULT_TENANT]
    return table


def normalize_country_code(country_code: Optional[str]) -> str:
    """Upper-case ISO-2 code, or the wildcard when missing."""
    if not country_code or not str(country_code).strip():
        return WILDCARD
    code = str(country_code).strip().upper()
    return COUNTRY_CODE_ALIASES.get(code, code)


def get_country_cost(country_code: Optional[str], tenant_id: str) -> CountryCostEntry:
    """
    Resolve the cost entry for a country.

    Unmapped countries keep their own code and get the wildcard rate.
    """
    code = normalize_country_code(country_code)
    table = get_cost_table(tenant_id)

    entry = table.get(code) if code != WILDCARD else None
    if entry is not None:
        return entry

    wildcard = table.get(WILDCARD)
    cost_per_minute = wildcard.costPerMinute if wildcard is not None else DEFAULT_COST_PER_MINUTE
    name = 'Unknown' if code == WILDCARD else f"Country {code}"
    return CountryCostEntry(code=code, name=name, costPerMinute=cost_per_minute, flag=UNKNOWN_FLAG)


def is_zero_cost_tenant(tenant_id: str) -> bool:
    return tenant_id in ZERO_COST_TENANTS


# =============================================================================
# Per-call Costs
# =============================================================================


def calculate_call_minute_cost(call: NormalizedCall, tenant_id: str) -> float:
    if is_zero_cost_tenant(tenant_id):
        return 0.0
    entry = get_country_cost(call.country_code, tenant_id)
    return call.duration / 60.0 * entry.costPerMinute


def calculate_call_cost(call: NormalizedCall, tenant_id: str) -> float:
    """Provider cost plus per-minute cost for one call. Unrounded."""
    if is_zero_cost_tenant(tenant_id):
        return 0.0
    return call.retell_cost + calculate_call_minute_cost(call, tenant_id)


def calculate_total_cost(calls: Iterable[NormalizedCall], tenant_id: str) -> float:
    if is_zero_cost_tenant(tenant_id):
        return 0.0
    return float(sum(calculate_call_cost(call, tenant_id) for call in calls))


# =============================================================================
# Allocation
# =============================================================================


def _cost_frame(calls: Sequence[NormalizedCall], tenant_id: str, timezone: str) -> pd.DataFrame:
    df = calls_to_frame(calls, timezone)

    # Frame rows follow call order
    entries = [get_country_cost(call.country_code, tenant_id) for call in calls]
    df['country_key'] = [entry.code for entry in entries]
    df['country_name'] = [entry.name for entry in entries]
    df['flag'] = [entry.flag for entry in entries]
    df['cost_per_minute'] = pd.Series([entry.costPerMinute for entry in entries], index=df.index, dtype=float)
    df['agent_key'] = df['agent_id'].fillna(UNASSIGNED_AGENT).replace('', UNASSIGNED_AGENT)

    if is_zero_cost_tenant(tenant_id):
        df['provider_cost'] = 0.0
        df['minute_cost'] = 0.0
    else:
        df['provider_cost'] = df['retell_cost']
        df['minute_cost'] = df['minutes'] * df['cost_per_minute']
    df['total_cost'] = df['provider_cost'] + df['minute_cost']
    return df


def allocate_costs(
    calls: Sequence[NormalizedCall],
    tenant_id: str,
    agents: Optional[Sequence[Agent]] = None,
    decimals: int = 4,
    timezone: str = 'UTC',
) -> CostReport:
    """
    Allocate call costs across countries, call types, agents and weekdays.

    Args:
        calls: Normalized calls of one tenant.
        tenant_id: Tenant whose cost table applies.
        agents: Agents used to name the per-agent breakdown.
        decimals: Decimal places of monetary output.
        timezone: Timezone of the weekday buckets.

    Returns:
        CostReport: Breakdowns with rounded monetary values.
    """
    df = _cost_frame(calls, tenant_id, timezone)
    agent_names = {agent.id: agent.name for agent in agents or []}

    def money(value: float) -> float:
        return round(float(value), decimals)

    total_calls = int(len(df))
    total_minutes = float(df['minutes'].sum())
    provider_total = float(df['provider_cost'].sum())
    minute_total = float(df['minute_cost'].sum())
    total_cost = provider_total + minute_total

    # Country
    by_country = []
    if total_calls:
        grouped = (
            df.groupby('country_key', sort=False)
            .agg(
                name=('country_name', 'first'),
                flag=('flag', 'first'),
                cost=('total_cost', 'sum'),
                calls=('id', 'size'),
            )
            .reset_index()
            .sort_values('cost', ascending=False, kind='stable')
        )
        grouped['averageCost'] = np.where(grouped['calls'] > 0, grouped['cost'] / grouped['calls'], 0.0)
        for row in grouped.itertuples(index=False):
            by_country.append(CountryCost(
                code=row.country_key,
                name=row.name,
                flag=row.flag,
                cost=money(row.cost),
                calls=int(row.calls),
                averageCost=money(row.averageCost),
                percentage=round(ratio(row.cost, total_cost) * 100, 2),
            ))

    # Call type
    by_call_type = []
    for call_type in CallType:
        subset = df[df['call_type'] == call_type.value]
        cost = float(subset['total_cost'].sum())
        by_call_type.append(CallTypeCost(
            callType=call_type,
            cost=money(cost),
            calls=int(len(subset)),
            averageCost=money(ratio(cost, len(subset))),
        ))

    # Agent
    by_agent = []
    if total_calls:
        grouped = (
            df.groupby('agent_key', sort=False)
            .agg(cost=('total_cost', 'sum'), calls=('id', 'size'))
            .reset_index()
            .sort_values('cost', ascending=False, kind='stable')
        )
        for row in grouped.itertuples(index=False):
            default_name = 'Unassigned' if row.agent_key == UNASSIGNED_AGENT else row.agent_key
            by_agent.append(AgentCost(
                agentId=row.agent_key,
                name=agent_names.get(row.agent_key, default_name),
                cost=money(row.cost),
                calls=int(row.calls),
                averageCost=money(ratio(row.cost, row.calls)),
            ))

    # Weekday, fixed Mon..Sun
    dated = df.dropna(subset=['weekday'])
    daily = (
        dated.groupby('weekday')
        .agg(cost=('total_cost', 'sum'), minutes=('minutes', 'sum'))
        .reindex(range(7), fill_value=0.0)
    )
    by_day = [
        DayCost(day=WEEKDAY_LABELS[weekday], cost=money(row.cost), minutes=round(float(row.minutes), 2))
        for weekday, row in zip(range(7), daily.itertuples(index=False))
    ]

    split = CostSplit(
        providerCost=money(provider_total),
        callMinuteCost=money(minute_total),
        providerPercentage=round(ratio(provider_total, total_cost) * 100, 2),
        callMinutePercentage=round(ratio(minute_total, total_cost) * 100, 2),
    )

    return CostReport(
        tenantId=tenant_id,
        totalCost=money(total_cost),
        totalCalls=total_calls,
        totalMinutes=round(total_minutes, 2),
        averageCostPerCall=money(ratio(total_cost, total_calls)),
        averageCostPerMinute=money(ratio(total_cost, total_minutes)),
        split=split,
        byCountry=by_country,
        byCallType=by_call_type,
        byAgent=by_agent,
        byDay=by_day,
    )


__all__ = [
    'WILDCARD',
    'DEFAULT_COST_PER_MINUTE',
    'ZERO_COST_TENANTS',
    'COUNTRY_CODE_ALIASES',
    'COUNTRY_COST_TABLES',
    'get_cost_table',
    'normalize_country_code',
    'get_country_cost',
    'is_zero_cost_tenant',
    'calculate_call_minute_cost',
    'calculate_call_cost',
    'calculate_total_cost',
    'allocate_costs',
]
