"""
Value vocabulary resolution.

Tenants store enumerated values in their own words ("Ended", "exitoso",
"entrante", "positivo"...). The shared vocabulary below maps every known
variant to the internal value; per-tenant overrides merge on top.

The category wrappers clamp the result to the internal enums, so a
normalized call never carries an arbitrary string:

- status falls back to "failed"
- call_type falls back to "inbound"
- sentiment falls back to None
"""

import logging
from typing import Any, Dict, Optional

from callvista.models.enums import CallStatus, CallType, Sentiment


logger = logging.getLogger(__name__)


ValueVocabulary = Dict[str, Dict[str, str]]


# =============================================================================
# Shared Vocabulary
# =============================================================================

SHARED_VOCABULARY: ValueVocabulary = {
    'status': {
        'successful': 'successful',
        'exitoso': 'successful',
        'completed': 'successful',
        'ended': 'successful',
        'Ended': 'successful',
        'failed': 'failed',
        'fallido': 'failed',
        'error': 'failed',
        'not_connected': 'failed',
        'ongoing': 'ongoing',
        'en_curso': 'ongoing',
        'in_progress': 'ongoing',
        'progress': 'ongoing',
        'voicemail': 'voicemail',
        'buzon': 'voicemail',
        'voice_mail': 'voicemail',
        'transferred': 'transferred',
        'transferido': 'transferred',
        'transfer': 'transferred',
    },
    'call_type': {
        'inbound': 'inbound',
        'entrante': 'inbound',
        'incoming': 'inbound',
        'entrada': 'inbound',
        'outbound': 'outbound',
        'saliente': 'outbound',
        'outgoing': 'outbound',
        'salida': 'outbound',
    },
    'sentiment': {
        'positive': 'positive',
        'positivo': 'positive',
        'good': 'positive',
        'negative': 'negative',
        'negativo': 'negative',
        'bad': 'negative',
        'neutral': 'neutral',
        'regular': 'neutral',
    },
}

TENANT_VALUE_OVERRIDES: Dict[str, ValueVocabulary] = {
    'cliente3': {
        'status': {
            'Not Connected': 'failed',
            'Completada': 'successful',
        },
    },
}

_STATUS_VALUES = {s.value for s in CallStatus}
_CALL_TYPE_VALUES = {t.value for t in CallType}
_SENTIMENT_VALUES = {s.value for s in Sentiment}


# =============================================================================
# Resolution
# =============================================================================


def get_value_vocabulary(tenant_id: Optional[str] = None) -> ValueVocabulary:
    """
    Return the shared vocabulary merged with the tenant's overrides.

    A tenant without overrides gets the shared vocabulary. The returned dict
    is a fresh copy.
    """
    vocabulary = {category: dict(values) for category, values in SHARED_VOCABULARY.items()}
    for category, values in TENANT_VALUE_OVERRIDES.get(tenant_id, {}).items():
        vocabulary.setdefault(category, {}).update(values)
    return vocabulary


def normalize_value(raw: Any, vocabulary: Dict[str, str], default: Optional[str]) -> Optional[str]:
    """
    Map a raw value through a category vocabulary.

    Exact match on the trimmed string wins, then a case-insensitive match.
    Unknown values come back trimmed and verbatim, or as default when empty.
    """
    if raw is None:
        return default

    value = str(raw).strip()
    if value in vocabulary:
        return vocabulary[value]

    lowered = value.lower()
    for variant, canonical in vocabulary.items():
        if variant.lower() == lowered:
            return canonical

    return value or default


def normalize_status(raw: Any, vocabulary: Optional[ValueVocabulary] = None) -> CallStatus:
    vocabulary = vocabulary or SHARED_VOCABULARY
    value = normalize_value(raw, vocabulary['status'], CallStatus.FAILED.value)
    if value not in _STATUS_VALUES:
        logger.debug(f"Unknown status {raw!r}, using '{CallStatus.FAILED.value}'")
        return CallStatus.FAILED
    return CallStatus(value)


def normalize_call_type(raw: Any, vocabulary: Optional[ValueVocabulary] = None) -> CallType:
    vocabulary = vocabulary or SHARED_VOCABULARY
    value = normalize_value(raw, vocabulary['call_type'], CallType.INBOUND.value)
    if value not in _CALL_TYPE_VALUES:
        logger.debug(f"Unknown call type {raw!r}, using '{CallType.INBOUND.value}'")
        return CallType.INBOUND
    return CallType(value)


def normalize_sentiment(raw: Any, vocabulary: Optional[ValueVocabulary] = None) -> Optional[Sentiment]:
    """Empty or unknown sentiment means no sentiment, never neutral."""
    if not raw:
        return None
    vocabulary = vocabulary or SHARED_VOCABULARY
    value = normalize_value(raw, vocabulary['sentiment'], None)
    if value not in _SENTIMENT_VALUES:
        return None
    return Sentiment(value)


__all__ = [
    'ValueVocabulary',
    'SHARED_VOCABULARY',
    'TENANT_VALUE_OVERRIDES',
    'get_value_vocabulary',
    'normalize_value',
    'normalize_status',
    'normalize_call_type',
    'normalize_sentiment',
]
