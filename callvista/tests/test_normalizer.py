"""
Tests for the record normalizer.

Covers number parsing (durations, clocks, garbage), enum closure,
idempotence, timestamp handling and batch behavior.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from callvista.models.enums import CallStatus, CallType, FieldMappingSource, Sentiment
from callvista.services.field_mapping import FieldMapping, resolve_field_mapping
from callvista.services.normalizer import (
    derive_call_id,
    normalize_call,
    normalize_calls,
    parse_number,
    to_iso,
)
from callvista.tests.conftest import make_raw_call


class TestParseNumber:
    """Numeric parsing never raises."""

    @pytest.mark.parametrize('raw, expected', [
        ('5m 3s', 303.0),
        ('2m 30s', 150.0),
        ('5m', 300.0),
        ('45s', 45.0),
        ('0:21', 21.0),
        ('12:05', 725.0),
        ('1:02:03', 3723.0),
        ('45', 45.0),
        ('12.5', 12.5),
        (45, 45.0),
        (1.25, 1.25),
        (Decimal('0.10'), 0.1),
    ])
    def test_recognized_formats(self, raw, expected):
        assert parse_number(raw) == pytest.approx(expected)

    def test_garbage_is_zero_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger='callvista.services.normalizer'):
            assert parse_number('garbage', 'duration') == 0.0
        assert any('garbage' in message for message in caplog.messages)

    @pytest.mark.parametrize('raw', [-5, '-3', float('nan'), 'inf', float('inf')])
    def test_negative_or_non_finite_is_zero(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger='callvista.services.normalizer'):
            assert parse_number(raw) == 0.0
        assert caplog.records

    @pytest.mark.parametrize('raw', ['-0', -0.0, '-0.0'])
    def test_negative_zero_loses_its_sign(self, raw):
        assert str(parse_number(raw)) == '0.0'

    @pytest.mark.parametrize('raw', [None, '', '   '])
    def test_absent_is_zero_without_warning(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger='callvista.services.normalizer'):
            assert parse_number(raw) == 0.0
        assert not caplog.records


class TestNormalizeCall:
    """Single record normalization for the reference schema."""

    def test_maps_reference_schema(self):
        call = normalize_call(make_raw_call('abc', resumen_llamada='Summary', numero_agente='7'), 'cliente1')

        assert call.id == 'abc'
        assert call.status == CallStatus.SUCCESSFUL
        assert call.call_type == CallType.INBOUND
        assert call.sentiment == Sentiment.POSITIVE
        assert call.duration == 120.0
        assert call.retell_cost == pytest.approx(0.1)
        assert call.latency == 800.0
        assert call.agent_id == 'agent-1'
        assert call.country_code == 'cl'
        assert call.call_summary == 'Summary'
        assert call.agent_number == '7'
        assert call.call_id_retell == 'retell-abc'
        assert call.tenant_id == 'cliente1'

    def test_legacy_fields_pass_through_raw_values(self):
        call = normalize_call(make_raw_call('abc', status='Ended'), 'cliente1')
        assert call.call_status == 'Ended'
        assert call.call_successful == 'Ended'
        assert call.timestamp == '2024-01-15T10:15:00+00:00'

    def test_tenant_serialized_as_client(self):
        call = normalize_call(make_raw_call(), 'cliente1')
        dumped = call.model_dump(by_alias=True)
        assert dumped['_client'] == 'cliente1'
        assert 'tenant_id' not in dumped

    def test_missing_columns_take_defaults(self):
        call = normalize_call({'id': 'x'}, 'cliente1')
        assert call.status == CallStatus.FAILED
        assert call.call_type == CallType.INBOUND
        assert call.sentiment is None
        assert call.duration == 0.0
        assert call.customer_phone == ''
        assert call.started_at is None
        assert call.agent_id is None

    def test_datetime_values_become_iso_strings(self):
        started = datetime(2024, 1, 15, 10, 15, tzinfo=timezone.utc)
        call = normalize_call(make_raw_call(started_at=started, ended_at=None), 'cliente1')
        assert call.started_at == '2024-01-15T10:15:00+00:00'
        assert call.ended_at is None

    def test_started_at_falls_back_to_created_at(self):
        raw = make_raw_call(created_at='2024-02-01T08:00:00+00:00')
        del raw['started_at']
        call = normalize_call(raw, 'cliente1')
        assert call.started_at == '2024-02-01T08:00:00+00:00'

    def test_missing_id_is_derived_deterministically(self):
        raw = make_raw_call()
        del raw['id']
        first = normalize_call(raw, 'cliente1')
        second = normalize_call(dict(raw), 'cliente1')
        assert first.id.startswith('cliente1-')
        assert first.id == second.id == derive_call_id(raw, 'cliente1')

    def test_uses_given_field_mapping(self):
        mapping = FieldMapping('custom', FieldMappingSource.MANUAL, {'status': 'estado', 'call_type': 'sentido'})
        call = normalize_call({'id': '1', 'estado': 'exitoso', 'sentido': 'salida'}, 'custom', field_mapping=mapping)
        assert call.status == CallStatus.SUCCESSFUL
        assert call.call_type == CallType.OUTBOUND

    def test_unknown_tenant_autodetects_from_record(self):
        raw = {'id': '1', 'call_status': 'completed', 'direction': 'outgoing', 'call_duration': '1:30'}
        call = normalize_call(raw, 'newclient')
        assert call.status == CallStatus.SUCCESSFUL
        assert call.call_type == CallType.OUTBOUND
        assert call.duration == 90.0


class TestIdempotence:
    """Same raw record and mapping always give the same NormalizedCall."""

    def test_normalizing_twice_gives_equal_records(self):
        raw = make_raw_call('same', duration='3m 10s', sentiment='Regular')
        mapping = resolve_field_mapping('cliente1')
        assert normalize_call(raw, 'cliente1', field_mapping=mapping) == normalize_call(raw, 'cliente1', field_mapping=mapping)

    def test_raw_record_is_not_mutated(self):
        raw = make_raw_call('same')
        snapshot = dict(raw)
        normalize_call(raw, 'cliente1')
        assert raw == snapshot

    def test_batch_is_repeatable(self, sample_raw_calls):
        assert normalize_calls(sample_raw_calls, 'cliente1') == normalize_calls(sample_raw_calls, 'cliente1')


class TestEnumClosure:
    """status and call_type are always members of their enums."""

    @pytest.mark.parametrize('status, call_type, sentiment', [
        (None, None, None),
        ('', '', ''),
        ('garbage', 'garbage', 'garbage'),
        (17, 3.5, 0),
        ('ENDED', 'INBOUND', 'POSITIVE'),
    ])
    def test_closure(self, status, call_type, sentiment):
        call = normalize_call(
            make_raw_call(status=status, tipo_de_llamada=call_type, sentiment=sentiment),
            'cliente1',
        )
        assert call.status in set(CallStatus)
        assert call.call_type in set(CallType)
        assert call.sentiment is None or call.sentiment in set(Sentiment)


class TestNormalizeCalls:

    def test_empty_batch(self):
        assert normalize_calls([], 'cliente1') == []

    def test_batch_keeps_order(self, sample_raw_calls):
        calls = normalize_calls(sample_raw_calls, 'cliente1')
        assert [c.id for c in calls] == ['c1', 'c2', 'c3', 'c4', 'c5']
        assert calls[2].status == CallStatus.FAILED
        assert calls[4].call_type == CallType.OUTBOUND
        assert calls[4].sentiment == Sentiment.NEGATIVE

    def test_mapping_resolved_once_per_batch(self, sample_raw_calls, monkeypatch):
        import callvista.services.normalizer as normalizer

        seen = []
        original = normalizer.resolve_field_mapping

        def counting(tenant_id, sample_records=None):
            seen.append(tenant_id)
            return original(tenant_id, sample_records)

        monkeypatch.setattr(normalizer, 'resolve_field_mapping', counting)
        normalize_calls(sample_raw_calls, 'cliente1')
        assert seen == ['cliente1']


class TestToIso:

    def test_values(self):
        assert to_iso(None) is None
        assert to_iso('') is None
        assert to_iso('2024-01-01T00:00:00Z') == '2024-01-01T00:00:00Z'
        assert to_iso(datetime(2024, 1, 1, 12, 0)) == '2024-01-01T12:00:00'
