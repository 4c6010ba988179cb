"""
Record normalization service.

Transforms raw tenant call rows into NormalizedCall records:

- Resolves the tenant's FieldMapping once per batch and threads it through
- Maps status / call type / sentiment through the value vocabulary
- Parses duration, cost, retell cost and latency into non-negative floats
- Renders timestamps as ISO strings, falling back to created_at for the start
- Keeps legacy and passthrough fields for traceability

Nothing here raises for bad data. Unparseable numbers become 0 with a
WARNING log, unknown enum values take the category default, missing columns
read as absent.

Example:
    >>> calls = normalize_calls(rows, "cliente1")
    >>> calls[0].status
    <CallStatus.SUCCESSFUL: 'successful'>
"""

import hashlib
import json
import logging
import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence

from callvista.services.field_mapping import FieldMapping, resolve_field_mapping
from callvista.services.vocabulary import (
    ValueVocabulary,
    get_value_vocabulary,
    normalize_call_type,
    normalize_sentiment,
    normalize_status,
)
from callvista.models.schemas import NormalizedCall


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

NUMERIC_FIELDS: List[str] = ['duration', 'cost', 'retell_cost', 'latency']

TEXT_FIELDS: List[str] = [
    'country_code',
    'country_name',
    'disconnect_reason',
    'agent_id',
    'channel',
    'transcription',
    'call_summary',
    'call_objective',
    'call_id',
    'agent_number',
    'call_id_retell',
    'call_status',
    'call_successful',
]

# "5m 3s", "5m", "45s"
_MINUTES_SECONDS = re.compile(r'^(?:(\d+(?:\.\d+)?)\s*m)?\s*(?:(\d+(?:\.\d+)?)\s*s)?$', re.IGNORECASE)
# "0:21", "12:05"
_CLOCK_MM_SS = re.compile(r'^(\d+):(\d{1,2})$')
# "1:02:03"
_CLOCK_H_MM_SS = re.compile(r'^(\d+):(\d{1,2}):(\d{1,2})$')


# =============================================================================
# Value Parsing
# =============================================================================


def parse_number(value: Any, field: str = 'value') -> float:
    """
    Parse a numeric field into a non-negative float.

    Accepts numbers, "<m>m <s>s" durations, "MM:SS" and "H:MM:SS" clocks and
    numeric strings. Anything else, negatives and non-finite values yield 0
    with a warning. Absent or empty values yield 0 silently.

    Examples:
        >>> parse_number("5m 3s")
        303.0
        >>> parse_number("0:21")
        21.0
        >>> parse_number("45")
        45.0
    """
    if value is None:
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        number = _parse_number_text(text)
        if number is None:
            logger.warning(f"Could not parse {field} {value!r}, using 0")
            return 0.0

    if not math.isfinite(number) or number < 0:
        logger.warning(f"Out of range {field} {value!r}, using 0")
        return 0.0
    # -0.0 passes the range check
    return abs(number)


def _parse_number_text(text: str) -> Optional[float]:
    match = _MINUTES_SECONDS.match(text)
    if match and (match.group(1) or match.group(2)):
        minutes = float(match.group(1) or 0)
        seconds = float(match.group(2) or 0)
        return minutes * 60 + seconds

    match = _CLOCK_MM_SS.match(text)
    if match:
        return int(match.group(1)) * 60 + float(match.group(2))

    match = _CLOCK_H_MM_SS.match(text)
    if match:
        hours, minutes, seconds = (int(g) for g in match.groups())
        return float(hours * 3600 + minutes * 60 + seconds)

    try:
        return float(text)
    except ValueError:
        return None


def to_iso(value: Any) -> Optional[str]:
    """Render a timestamp as an ISO string. Strings pass through."""
    if value is None or value == '':
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def derive_call_id(raw: Mapping[str, Any], tenant_id: str) -> str:
    """Deterministic id for a row without one: tenant id plus a content hash."""
    payload = json.dumps(dict(raw), sort_keys=True, default=str)
    digest = hashlib.sha1(payload.encode('utf-8')).hexdigest()[:12]
    return f"{tenant_id}-{digest}"


# =============================================================================
# Normalization
# =============================================================================


def normalize_call(
    raw: Mapping[str, Any],
    tenant_id: str,
    all_raw_records: Optional[Sequence[Mapping[str, Any]]] = None,
    field_mapping: Optional[FieldMapping] = None,
    vocabulary: Optional[ValueVocabulary] = None,
) -> NormalizedCall:
    """
    Normalize one raw call row.

    Args:
        raw: Row as returned by the tenant database.
        tenant_id: Tenant the row belongs to.
        all_raw_records: Batch used for autodetection when no mapping is given.
        field_mapping: Mapping resolved for the batch. Resolved here when None.
        vocabulary: Value vocabulary for the tenant. Resolved here when None.

    Returns:
        NormalizedCall: Canonical record. Same inputs give an equal record.
    """
    if field_mapping is None:
        field_mapping = resolve_field_mapping(tenant_id, all_raw_records or [raw])
    if vocabulary is None:
        vocabulary = get_value_vocabulary(tenant_id)

    read = field_mapping.read

    call_id = _to_text(read(raw, 'id'))
    if not call_id:
        call_id = derive_call_id(raw, tenant_id)

    started_at = read(raw, 'started_at')
    if started_at is None:
        started_at = raw.get('created_at')

    values = {name: parse_number(read(raw, name), name) for name in NUMERIC_FIELDS}
    values.update({name: _to_text(read(raw, name)) for name in TEXT_FIELDS})

    return NormalizedCall(
        id=call_id,
        status=normalize_status(read(raw, 'status'), vocabulary),
        call_type=normalize_call_type(read(raw, 'call_type'), vocabulary),
        sentiment=normalize_sentiment(read(raw, 'sentiment'), vocabulary),
        customer_phone=_to_text(read(raw, 'customer_phone')) or '',
        started_at=to_iso(started_at),
        ended_at=to_iso(read(raw, 'ended_at')),
        timestamp=to_iso(read(raw, 'timestamp')),
        tenant_id=tenant_id,
        **values,
    )


def normalize_calls(
    raw_records: Sequence[Mapping[str, Any]],
    tenant_id: str,
    field_mapping: Optional[FieldMapping] = None,
) -> List[NormalizedCall]:
    """
    Normalize a batch of raw rows for one tenant.

    The field mapping and vocabulary are resolved once for the whole batch.
    A row that still fails validation is logged and skipped; it never aborts
    the batch.
    """
    if not raw_records:
        return []

    if field_mapping is None:
        field_mapping = resolve_field_mapping(tenant_id, raw_records)
    vocabulary = get_value_vocabulary(tenant_id)

    normalized: List[NormalizedCall] = []
    for index, raw in enumerate(raw_records):
        try:
            normalized.append(normalize_call(raw, tenant_id, raw_records, field_mapping, vocabulary))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping row {index} for tenant {tenant_id}: {e}")

    logger.info(f"Normalized {len(normalized)} of {len(raw_records)} calls for tenant {tenant_id}")
    return normalized


__all__ = [
    'NUMERIC_FIELDS',
    'parse_number',
    'to_iso',
    'derive_call_id',
    'normalize_call',
    'normalize_calls',
]
