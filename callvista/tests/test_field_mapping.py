"""
Tests for field mapping resolution.

Covers manual tenant mappings, autodetection from sample records, the
default-tenant fallback and the mapping diagnostics.
"""

import logging

import pytest

from callvista.models.enums import FieldMappingSource
from callvista.services.field_mapping import (
    BASE_FIELD_MAPPING,
    CANONICAL_FIELDS,
    FIELD_PATTERNS,
    FieldMapping,
    describe_field_mapping,
    detect_fields,
    resolve_field_mapping,
)
from callvista.tests.conftest import make_raw_call


class TestResolveFieldMapping:
    """Resolution order: manual, detected, default."""

    def test_manual_mapping_wins_over_sample(self):
        mapping = resolve_field_mapping('cliente1', [{'direction': 'inbound'}])
        assert mapping.source == FieldMappingSource.MANUAL
        assert mapping.source_for('call_type') == 'tipo_de_llamada'
        assert mapping.source_for('agent_id') == 'api'
        assert mapping.source_for('call_summary') == 'resumen_llamada'

    def test_unknown_tenant_with_sample_is_detected(self):
        sample = [{'call_status': 'ended', 'direction': 'outbound', 'call_duration': 30, 'agent': 'a1'}]
        mapping = resolve_field_mapping('newclient', sample)
        assert mapping.source == FieldMappingSource.DETECTED
        assert mapping.source_for('status') == 'call_status'
        assert mapping.source_for('call_type') == 'direction'
        assert mapping.source_for('duration') == 'call_duration'
        assert mapping.source_for('agent_id') == 'agent'

    def test_detection_guesses_first_pattern_when_absent(self):
        mapping = resolve_field_mapping('newclient', [{'unrelated': 1}])
        for canonical, patterns in FIELD_PATTERNS.items():
            assert mapping.source_for(canonical) == patterns[0]

    def test_fields_without_patterns_keep_base_name(self):
        mapping = resolve_field_mapping('newclient', [{'status': 'ended'}])
        assert mapping.source_for('transcription') == BASE_FIELD_MAPPING['transcription']
        assert mapping.source_for('call_id_retell') == 'call_id_retell'

    def test_only_first_sample_record_is_inspected(self):
        sample = [{'status': 'ended'}, {'call_status': 'ended', 'state': 'x'}]
        mapping = resolve_field_mapping('newclient', sample)
        assert mapping.source_for('status') == 'status'

    @pytest.mark.parametrize('sample', [None, []])
    def test_unknown_tenant_without_sample_uses_default(self, sample):
        mapping = resolve_field_mapping('newclient', sample)
        assert mapping.source == FieldMappingSource.DEFAULT
        assert mapping.tenant_id == 'newclient'
        assert mapping.source_for('call_type') == 'tipo_de_llamada'


class TestFieldMappingValueObject:
    """Every canonical field resolves, and the mapping cannot be changed."""

    def test_every_canonical_field_resolves(self):
        mapping = FieldMapping('t', FieldMappingSource.MANUAL, {'status': 'estado'})
        for canonical in CANONICAL_FIELDS:
            assert mapping.source_for(canonical)
        assert mapping.source_for('status') == 'estado'

    def test_fields_are_read_only(self):
        mapping = resolve_field_mapping('cliente1')
        with pytest.raises(TypeError):
            mapping.fields['status'] = 'other'

    def test_read_returns_none_for_missing_column(self):
        mapping = resolve_field_mapping('cliente1')
        assert mapping.read({'status': 'Ended'}, 'status') == 'Ended'
        assert mapping.read({}, 'sentiment') is None

    def test_detect_fields_includes_all_base_fields(self):
        detected = detect_fields([{'status': 'ended'}])
        assert set(BASE_FIELD_MAPPING) <= set(detected)


class TestDescribeFieldMapping:
    """Diagnostic report of the resolved mapping."""

    def test_reports_presence_and_sample(self, caplog):
        row = make_raw_call('abc')
        with caplog.at_level(logging.DEBUG, logger='callvista.services.field_mapping'):
            entries = describe_field_mapping([row], 'cliente1')

        by_field = {entry.canonical: entry for entry in entries}
        assert len(entries) == len(CANONICAL_FIELDS)
        assert by_field['id'].present is True
        assert by_field['id'].sample == 'abc'
        assert by_field['call_type'].source == 'tipo_de_llamada'
        assert by_field['transcription'].present is False
        assert by_field['status'].mappingSource == FieldMappingSource.MANUAL
        assert any('call_type <- tipo_de_llamada' in message for message in caplog.messages)

    def test_empty_records(self):
        entries = describe_field_mapping([], 'newclient')
        assert all(entry.present is False for entry in entries)
        assert entries[0].mappingSource == FieldMappingSource.DEFAULT
