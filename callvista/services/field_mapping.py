"""
Field mapping resolution for tenant call schemas.

Each tenant stores calls with its own column names (``tipo_de_llamada``
instead of ``call_type``, ``api`` instead of ``agent_id``...). This module
resolves, once per batch, which source column feeds each canonical field:

1. A manual per-tenant mapping wins (source "manual").
2. Otherwise, given sample records, each field with a pattern list takes the
   first pattern present in the first record, or the first pattern as a
   guess (source "detected"). Fields without patterns keep the base name.
3. Otherwise the default tenant's mapping is used (source "default").

Missing columns are never an error: the guessed name simply reads as absent
and the normalizer applies the field's default.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from callvista.core.tenants import DEFAULT_TENANT
from callvista.models.enums import FieldMappingSource
from callvista.models.schemas import FieldMappingEntry


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CANONICAL_FIELDS: List[str] = [
    'id',
    'status',
    'call_type',
    'sentiment',
    'duration',
    'cost',
    'retell_cost',
    'customer_phone',
    'country_code',
    'country_name',
    'started_at',
    'ended_at',
    'disconnect_reason',
    'transcription',
    'call_summary',
    'agent_id',
    'channel',
    'call_objective',
    'call_id',
    'agent_number',
    'latency',
    'call_id_retell',
    # Legacy
    'call_status',
    'call_successful',
    'timestamp',
]

# Column names of the reference schema shared by the known tenants
BASE_FIELD_MAPPING: Dict[str, str] = {
    'id': 'id',
    'status': 'status',
    'call_type': 'tipo_de_llamada',
    'sentiment': 'sentiment',
    'duration': 'duration',
    'cost': 'cost',
    'retell_cost': 'retell_cost',
    'customer_phone': 'customer_phone',
    'country_code': 'country_code',
    'country_name': 'country_name',
    'started_at': 'started_at',
    'ended_at': 'ended_at',
    'disconnect_reason': 'disconnect_reason',
    'transcription': 'transcription',
    'call_summary': 'resumen_llamada',
    'agent_id': 'api',
    'channel': 'channel',
    'call_objective': 'objetivo_de_la_llamada',
    'call_id': 'call_id',
    'agent_number': 'numero_agente',
    'latency': 'latency',
    'call_id_retell': 'call_id_retell',
    'call_status': 'status',
    'call_successful': 'status',
    'timestamp': 'started_at',
}

MANUAL_FIELD_MAPPINGS: Dict[str, Dict[str, str]] = {
    'cliente1': dict(BASE_FIELD_MAPPING),
    'cliente2': dict(BASE_FIELD_MAPPING),
    'cliente3': dict(BASE_FIELD_MAPPING),
}

# Candidate column names, in priority order, for autodetection
FIELD_PATTERNS: Dict[str, List[str]] = {
    'status': ['status', 'call_status', 'result', 'call_result', 'state'],
    'call_type': ['call_type', 'tipo_de_llamada', 'direction', 'call_direction', 'type'],
    'duration': ['duration', 'call_duration', 'duracion', 'length', 'call_length'],
    'cost': ['cost', 'call_cost', 'costo', 'price'],
    'retell_cost': ['retell_cost', 'provider_cost', 'costo_proveedor'],
    'customer_phone': ['customer_phone', 'phone', 'customer_number', 'numero'],
    'country_code': ['country_code', 'country', 'pais', 'countrycode'],
    'sentiment': ['sentiment', 'call_sentiment', 'sentimiento', 'feeling'],
    'agent_id': ['agent_id', 'api', 'agent', 'agente_id'],
    'started_at': ['started_at', 'start_time', 'start_timestamp', 'fecha_inicio', 'created_at'],
    'disconnect_reason': ['disconnect_reason', 'disconnection_reason', 'end_reason', 'motivo_desconexion'],
    'latency': ['latency', 'avg_latency', 'latencia', 'response_latency'],
}


# =============================================================================
# FieldMapping Value Object
# =============================================================================


@dataclass(frozen=True)
class FieldMapping:
    """
    Immutable canonical field -> source column mapping for one tenant.

    Every canonical field resolves to exactly one source name.
    """
    tenant_id: str
    source: FieldMappingSource
    fields: Mapping[str, str]

    def __post_init__(self):
        complete = {name: self.fields.get(name) or BASE_FIELD_MAPPING[name] for name in CANONICAL_FIELDS}
        object.__setattr__(self, 'fields', MappingProxyType(complete))

    def source_for(self, canonical: str) -> str:
        return self.fields[canonical]

    def read(self, record: Mapping[str, Any], canonical: str) -> Any:
        """Read a canonical field from a raw record, None when absent."""
        return record.get(self.fields[canonical])


# =============================================================================
# Resolution
# =============================================================================


def detect_fields(sample_records: Sequence[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Autodetect source columns from the keys of the first sample record.

    Only the first record is inspected. A field whose patterns are all absent
    takes its first pattern.
    """
    available = set(sample_records[0].keys())
    detected = dict(BASE_FIELD_MAPPING)
    for canonical, patterns in FIELD_PATTERNS.items():
        found = next((p for p in patterns if p in available), None)
        if found is None:
            logger.debug(f"No column found for '{canonical}', guessing '{patterns[0]}'")
        detected[canonical] = found or patterns[0]
    return detected


def resolve_field_mapping(
    tenant_id: str,
    sample_records: Optional[Sequence[Mapping[str, Any]]] = None,
) -> FieldMapping:
    """
    Resolve the field mapping for a tenant.

    Args:
        tenant_id: Tenant whose schema is being read.
        sample_records: Raw records used for autodetection when the tenant has
            no manual mapping.

    Returns:
        FieldMapping: Complete mapping tagged with how it was obtained.
    """
    manual = MANUAL_FIELD_MAPPINGS.get(tenant_id)
    if manual is not None:
        return FieldMapping(tenant_id, FieldMappingSource.MANUAL, manual)

    if sample_records:
        logger.info(f"Autodetecting field mapping for tenant {tenant_id}")
        return FieldMapping(tenant_id, FieldMappingSource.DETECTED, detect_fields(sample_records))

    logger.info(f"No mapping or sample for tenant {tenant_id}, using {DEFAULT_TENANT} mapping")
    return FieldMapping(tenant_id, FieldMappingSource.DEFAULT, MANUAL_FIELD_MAPPINGS[DEFAULT_TENANT])


def describe_field_mapping(
    records: Sequence[Mapping[str, Any]],
    tenant_id: str,
) -> List[FieldMappingEntry]:
    """
    Report how each canonical field resolves against the first record.

    Diagnostic helper: every entry is also logged at DEBUG.
    """
    mapping = resolve_field_mapping(tenant_id, records)
    first: Mapping[str, Any] = records[0] if records else {}

    entries = []
    for canonical in CANONICAL_FIELDS:
        source = mapping.source_for(canonical)
        entry = FieldMappingEntry(
            canonical=canonical,
            source=source,
            present=source in first,
            sample=first.get(source),
            mappingSource=mapping.source,
        )
        logger.debug(
            f"[{tenant_id}] {canonical} <- {source} "
            f"({'present' if entry.present else 'missing'}): {entry.sample!r}"
        )
        entries.append(entry)
    return entries


__all__ = [
    'CANONICAL_FIELDS',
    'BASE_FIELD_MAPPING',
    'MANUAL_FIELD_MAPPINGS',
    'FIELD_PATTERNS',
    'FieldMapping',
    'detect_fields',
    'resolve_field_mapping',
    'describe_field_mapping',
]
