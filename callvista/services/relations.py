"""
Linking of calls with additional client data.

Tenants can upload extra rows per call (case data, CRM fields) into the
additional data table. A row belongs to a call when both carry the same
call_id_retell; rows without it fall back to the legacy link, where the
row's call_id equals the call id.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from callvista.models.schemas import NormalizedCall, RelationStats


logger = logging.getLogger(__name__)


def _retell_id(record: Mapping[str, Any]) -> Optional[str]:
    value = record.get('call_id_retell')
    return str(value) if value else None


def link_additional_data(
    calls: Sequence[NormalizedCall],
    additional_records: Sequence[Mapping[str, Any]],
) -> Dict[str, Mapping[str, Any]]:
    """
    Map call id -> first additional data row related to the call.

    Calls without a related row are absent from the result.
    """
    by_retell: Dict[str, Mapping[str, Any]] = {}
    by_call_id: Dict[str, Mapping[str, Any]] = {}
    for record in additional_records:
        retell_id = _retell_id(record)
        if retell_id:
            by_retell.setdefault(retell_id, record)
        call_id = record.get('call_id')
        if call_id:
            by_call_id.setdefault(str(call_id), record)

    linked: Dict[str, Mapping[str, Any]] = {}
    for call in calls:
        if call.call_id_retell and call.call_id_retell in by_retell:
            linked[call.id] = by_retell[call.call_id_retell]
        elif call.id in by_call_id:
            linked[call.id] = by_call_id[call.id]
    return linked


def compute_relation_stats(
    calls: Sequence[NormalizedCall],
    additional_records: Sequence[Mapping[str, Any]],
) -> RelationStats:
    """
    Count how many calls carrying a retell id have matching additional data.

    matchRate is a percentage of calls with a retell id, 0 when none has one.
    """
    calls_with_retell = [call for call in calls if call.call_id_retell]
    additional_ids = {rid for rid in (_retell_id(r) for r in additional_records) if rid}
    matched = sum(1 for call in calls_with_retell if call.call_id_retell in additional_ids)

    match_rate = matched / len(calls_with_retell) * 100 if calls_with_retell else 0.0
    logger.debug(f"Linked {matched} of {len(calls_with_retell)} calls to additional data")

    return RelationStats(
        totalCalls=len(calls),
        totalAdditional=len(additional_records),
        callsWithRetellId=len(calls_with_retell),
        additionalWithRetellId=sum(1 for r in additional_records if _retell_id(r)),
        matchedRelations=matched,
        matchRate=round(match_rate, 2),
    )


__all__ = [
    'link_additional_data',
    'compute_relation_stats',
]
