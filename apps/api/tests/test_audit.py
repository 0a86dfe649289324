"""
Tests for the audit recorder.
"""
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from prometheus_client import REGISTRY

from apps.clinical import services as clinical
from apps.clinical.models import Patient
from apps.ops.models import AuditLog
from apps.ops.services import audit_history, record_audit, snapshot


@pytest.mark.django_db
class TestAuditRecorder:
    def test_snapshot_is_json_safe(self, patient):
        patient.birth_date = '1985-03-04'
        patient.save()
        patient.refresh_from_db()
        data = snapshot(patient)
        assert data['birth_date'] == '1985-03-04'
        assert data['first_name'] == 'Lucía'

    def test_anonymous_actor_stored_as_null(self, patient):
        entry = record_audit('patient', patient.id, 'update', before={}, after={}, actor=None)
        assert entry.actor is None

    def test_failure_never_raises(self, teacher_user):
        before = REGISTRY.get_sample_value('audit_write_failures_total', {'table': 'patient'}) or 0

        with patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('disk full')):
            patient = clinical.create_patient({'first_name': 'Ana', 'last_name': 'Soto'}, actor=teacher_user)

        assert Patient.objects.filter(pk=patient.id).exists()
        assert not AuditLog.objects.exists()
        after = REGISTRY.get_sample_value('audit_write_failures_total', {'table': 'patient'})
        assert after == before + 1

    def test_history_newest_first(self, patient, teacher_user):
        clinical.update_patient(patient.id, {'phone': '1'}, actor=teacher_user)
        clinical.update_patient(patient.id, {'phone': '2'}, actor=teacher_user)
        entries = list(audit_history('patient', patient.id))
        assert [e.after['phone'] for e in entries] == ['2', '1']
        assert entries[0].before['phone'] == '1'

    def test_delete_keeps_before_image(self, patient):
        clinical.delete_patient(patient.id)
        entry = AuditLog.objects.get(table_name='patient', action='delete')
        assert entry.record_id == patient.id
        assert entry.before['national_id'] == '30111222'
        assert entry.after is None
