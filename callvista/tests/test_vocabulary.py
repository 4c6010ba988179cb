"""
Tests for value vocabulary resolution and the enum clamping wrappers.
"""

import pytest

from callvista.models.enums import CallStatus, CallType, Sentiment
from callvista.services.vocabulary import (
    SHARED_VOCABULARY,
    get_value_vocabulary,
    normalize_call_type,
    normalize_sentiment,
    normalize_status,
    normalize_value,
)


class TestNormalizeValue:
    """Generic lookup: exact, then case-insensitive, then verbatim."""

    def test_none_returns_default(self):
        assert normalize_value(None, SHARED_VOCABULARY['status'], 'failed') == 'failed'

    def test_exact_match_after_trim(self):
        assert normalize_value('  exitoso ', SHARED_VOCABULARY['status'], 'failed') == 'successful'

    def test_case_insensitive_match(self):
        assert normalize_value('ENTRANTE', SHARED_VOCABULARY['call_type'], 'inbound') == 'inbound'
        assert normalize_value('Transferido', SHARED_VOCABULARY['status'], 'failed') == 'transferred'

    def test_unknown_value_is_returned_verbatim(self):
        assert normalize_value(' mystery ', SHARED_VOCABULARY['status'], 'failed') == 'mystery'

    def test_empty_value_returns_default(self):
        assert normalize_value('   ', SHARED_VOCABULARY['status'], 'failed') == 'failed'


class TestNormalizeStatus:

    @pytest.mark.parametrize('raw, expected', [
        ('Ended', CallStatus.SUCCESSFUL),
        ('completed', CallStatus.SUCCESSFUL),
        ('Error', CallStatus.FAILED),
        ('not_connected', CallStatus.FAILED),
        ('en_curso', CallStatus.ONGOING),
        ('buzon', CallStatus.VOICEMAIL),
        ('transfer', CallStatus.TRANSFERRED),
    ])
    def test_known_variants(self, raw, expected):
        assert normalize_status(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 'garbage', 42, 'ENDED_BADLY'])
    def test_unknown_values_clamp_to_failed(self, raw):
        assert normalize_status(raw) == CallStatus.FAILED


class TestNormalizeCallType:

    @pytest.mark.parametrize('raw, expected', [
        ('inbound', CallType.INBOUND),
        ('Saliente', CallType.OUTBOUND),
        ('outgoing', CallType.OUTBOUND),
        ('entrada', CallType.INBOUND),
    ])
    def test_known_variants(self, raw, expected):
        assert normalize_call_type(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 'web_call', 'sideways'])
    def test_unknown_values_clamp_to_inbound(self, raw):
        assert normalize_call_type(raw) == CallType.INBOUND


class TestNormalizeSentiment:

    @pytest.mark.parametrize('raw, expected', [
        ('Positive', Sentiment.POSITIVE),
        ('negativo', Sentiment.NEGATIVE),
        ('regular', Sentiment.NEUTRAL),
        ('good', Sentiment.POSITIVE),
    ])
    def test_known_variants(self, raw, expected):
        assert normalize_sentiment(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 0, 'Unknown', 'ecstatic'])
    def test_missing_or_unknown_is_none_not_neutral(self, raw):
        assert normalize_sentiment(raw) is None


class TestTenantVocabulary:
    """Per-tenant overrides merge on top of the shared vocabulary."""

    def test_tenant_without_overrides_gets_shared_vocabulary(self):
        assert get_value_vocabulary('cliente1') == SHARED_VOCABULARY
        assert get_value_vocabulary('unknown-tenant') == SHARED_VOCABULARY

    def test_overrides_are_merged(self):
        vocabulary = get_value_vocabulary('cliente3')
        assert normalize_status('Completada', vocabulary) == CallStatus.SUCCESSFUL
        assert normalize_status('Not Connected', vocabulary) == CallStatus.FAILED
        assert normalize_status('exitoso', vocabulary) == CallStatus.SUCCESSFUL

    def test_override_does_not_leak_to_other_tenants(self):
        assert normalize_status('Completada', get_value_vocabulary('cliente1')) == CallStatus.FAILED

    def test_returned_vocabulary_is_a_copy(self):
        vocabulary = get_value_vocabulary('cliente1')
        vocabulary['status']['weird'] = 'successful'
        assert 'weird' not in SHARED_VOCABULARY['status']
