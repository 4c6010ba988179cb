"""
CallVista Services Module

Business logic of the analytics pipeline. Everything except the repository
and the dashboard service is synchronous and free of side effects beyond
logging.

Services:
- field_mapping: canonical field -> tenant column resolution
- vocabulary: status / call type / sentiment value resolution
- normalizer: raw rows -> NormalizedCall
- disconnection: disconnect reason categories
- costs: per-call cost and cost breakdowns
- metrics: dashboard metrics aggregation
- relations: calls <-> additional client data
- repository: tenant database access
- dashboard: the fetch / normalize / aggregate cycle

Library helpers outside the dashboard cycle:
- link_additional_data: call id -> related additional data row, for callers
  that show the linked rows next to a call
- is_call_successful: success check on a raw status and disconnect reason,
  for callers working with unnormalized rows
"""

# =============================================================================
# Normalization
# =============================================================================

from callvista.services.field_mapping import (
    FieldMapping,
    resolve_field_mapping,
    describe_field_mapping,
)
from callvista.services.vocabulary import (
    get_value_vocabulary,
    normalize_value,
    normalize_status,
    normalize_call_type,
    normalize_sentiment,
)
from callvista.services.normalizer import (
    parse_number,
    normalize_call,
    normalize_calls,
)

# =============================================================================
# Derived Reports
# =============================================================================

from callvista.services.disconnection import (
    categorize_disconnect_reason,
    is_call_successful,
)
from callvista.services.costs import (
    allocate_costs,
    calculate_call_cost,
    calculate_total_cost,
)
from callvista.services.metrics import aggregate_metrics
from callvista.services.relations import (
    link_additional_data,
    compute_relation_stats,
)

# =============================================================================
# Pipeline
# =============================================================================

from callvista.services.repository import (
    CallRepository,
    FetchError,
    FetchResult,
    PostgresCallRepository,
)
from callvista.services.dashboard import DashboardService, apply_filters


__all__ = [
    'FieldMapping',
    'resolve_field_mapping',
    'describe_field_mapping',
    'get_value_vocabulary',
    'normalize_value',
    'normalize_status',
    'normalize_call_type',
    'normalize_sentiment',
    'parse_number',
    'normalize_call',
    'normalize_calls',
    'categorize_disconnect_reason',
    'is_call_successful',
    'allocate_costs',
    'calculate_call_cost',
    'calculate_total_cost',
    'aggregate_metrics',
    'link_additional_data',
    'compute_relation_stats',
    'CallRepository',
    'FetchError',
    'FetchResult',
    'PostgresCallRepository',
    'DashboardService',
    'apply_filters',
]
