"""
Disconnect reason categorization.

Every disconnect reason reported by the telephony provider falls in one of
three categories. Reasons missing from the tables below are categorized as
errors so that new failure modes show up on the dashboard instead of
blending into normal endings.
"""

from typing import Any, FrozenSet, Optional

from callvista.models.enums import DisconnectCategory


ENDED_REASONS: FrozenSet[str] = frozenset({
    'user_hangup',
    'agent_hangup',
    'Call ended by customer',
    'Agent ended call',
    'voicemail_reached',
    'max_duration_reached',
})

NOT_CONNECTED_REASONS: FrozenSet[str] = frozenset({
    'dial_busy',
    'dial_no_answer',
    'dial_failed',
    'user_declined',
    'inactivity',
    'registered_call_timeout',
})

ERROR_REASONS: FrozenSet[str] = frozenset({
    'invalid_destination',
    'telephony_provider_permission_denied',
    'telephony_provider_unavailable',
    'sip_routing_error',
    'error_llm_websocket_open',
    'error_llm_websocket_lost_connection',
    'error_llm_websocket_runtime',
    'error_llm_websocket_corrupt_payload',
    'error_no_audio_received',
    'error_asr',
    'error_retell',
    'error_unknown',
    'error_user_not_joined',
    'marked_as_spam',
    'scam_detected',
    'no_valid_payment',
    'concurrency_limit_reached',
})


def categorize_disconnect_reason(reason: Optional[str]) -> DisconnectCategory:
    if reason in ENDED_REASONS:
        return DisconnectCategory.ENDED
    if reason in NOT_CONNECTED_REASONS:
        return DisconnectCategory.NOT_CONNECTED
    return DisconnectCategory.ERROR


def is_call_successful(status: Any, reason: Optional[str]) -> bool:
    """A raw 'ended' status counts as a success only with a normal ending reason."""
    if status is None or str(status).strip().lower() != 'ended':
        return False
    return reason in ENDED_REASONS


__all__ = [
    'ENDED_REASONS',
    'NOT_CONNECTED_REASONS',
    'ERROR_REASONS',
    'categorize_disconnect_reason',
    'is_call_successful',
]
