"""
Tests for observability layer.

Validates request correlation, health endpoints, metrics exposition and
that logs never carry patient data.
"""
import json
import logging

import pytest

from apps.core.observability.logging import SanitizedJSONFormatter, sanitize_dict


@pytest.mark.django_db
class TestEndpoints:
    def test_healthz(self, client):
        response = client.get('/healthz')
        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    def test_readyz(self, client):
        response = client.get('/readyz')
        assert response.status_code == 200
        assert response.json()['checks'] == {'database': True, 'attachment_storage': True}

    def test_request_id_propagated(self, client):
        response = client.get('/healthz', HTTP_X_REQUEST_ID='req-123')
        assert response['X-Request-ID'] == 'req-123'

    def test_request_id_generated(self, client):
        assert client.get('/healthz')['X-Request-ID']

    def test_metrics_exposition(self, client, booking):
        from apps.scheduling.services import create_appointment
        create_appointment(booking)
        response = client.get('/metrics')
        assert response.status_code == 200
        assert b'appointments_created_total' in response.content


class TestSanitization:
    def test_sanitize_dict_redacts_nested(self):
        data = {'patient_id': 4, 'payload': {'first_name': 'Ana', 'notes': 'dolor'}}
        assert sanitize_dict(data) == {
            'patient_id': 4,
            'payload': {'first_name': '[REDACTED]', 'notes': '[REDACTED]'},
        }

    def test_formatter_redacts_extra_fields(self):
        record = logging.LogRecord('apps.test', logging.INFO, __file__, 1, 'hello', None, None)
        record.national_id = '30111222'
        record.history_id = 9
        output = json.loads(SanitizedJSONFormatter().format(record))
        assert output['national_id'] == '[REDACTED]'
        assert output['history_id'] == 9
        assert output['message'] == 'hello'
