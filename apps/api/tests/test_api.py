"""
API tests: routing, role permissions and the error envelope.
"""
from datetime import timedelta

import pytest

from apps.clinical.teeth import healthy_teeth
from apps.scheduling.models import Appointment

ORAL_STATUS = {'tartar': False, 'periodontal_disease': False, 'hygiene': 'very_good'}


@pytest.mark.django_db
class TestAuthentication:
    def test_anonymous_rejected(self, api_client):
        response = api_client.get('/api/v1/patients/')
        assert response.status_code == 401
        assert response.data['error']['status'] == 401

    def test_token_and_me(self, api_client, student_user):
        response = api_client.post(
            '/api/auth/token/',
            {'email': 'estudiante@clinica.edu', 'password': 'testpass123'},
            format='json',
        )
        assert response.status_code == 200
        access = response.data['access']

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
        me = api_client.get('/api/auth/me/')
        assert me.status_code == 200
        assert me.data['email'] == 'estudiante@clinica.edu'
        assert me.data['roles'] == ['student']


@pytest.mark.django_db
class TestErrorEnvelope:
    def test_not_found(self, teacher_client):
        response = teacher_client.get('/api/v1/patients/987654/')
        assert response.status_code == 404
        assert response.data['error']['code'] == 'not_found'
        assert response.data['error']['message'] == 'Paciente con ID 987654 no encontrado.'

    def test_serializer_validation(self, reception_client):
        response = reception_client.post('/api/v1/appointments/', {}, format='json')
        assert response.status_code == 400
        error = response.data['error']
        assert error['code'] == 'validation_error'
        assert 'patient_id' in error['details']

    def test_conflict(self, reception_client, booking):
        assert reception_client.post('/api/v1/appointments/', booking, format='json').status_code == 201
        booking.update(start_time='10:00', end_time='10:30')
        response = reception_client.post('/api/v1/appointments/', booking, format='json')
        assert response.status_code == 409
        assert response.data['error']['code'] == 'conflict'
        assert 'conflicting_appointment_id' in response.data['error']['details']

    @pytest.mark.parametrize('path', [
        '/api/v1/appointments/abc/',
        '/api/v1/time-slot-templates/abc/',
        '/api/v1/patients/abc/',
    ])
    def test_non_numeric_id_is_not_found(self, reception_client, path):
        assert reception_client.get(path).status_code == 404

    @pytest.mark.parametrize('client_name, path, field', [
        ('reception_client', '/api/v1/appointments/', 'patient_id'),
        ('reception_client', '/api/v1/appointments/', 'responsible_id'),
        ('reception_client', '/api/v1/time-slot-templates/', 'specialty_id'),
        ('reception_client', '/api/v1/shifts/', 'student_id'),
        ('teacher_client', '/api/v1/encounters/', 'history_id'),
        ('teacher_client', '/api/v1/attachments/', 'history_id'),
        ('admin_client', '/api/v1/audit/', 'record_id'),
    ])
    def test_non_numeric_filter(self, request, client_name, path, field):
        client = request.getfixturevalue(client_name)
        response = client.get(path, {field: 'abc'})
        assert response.status_code == 400
        error = response.data['error']
        assert error['code'] == 'validation_error'
        assert error['details'] == {'field': field, 'value': 'abc'}


@pytest.mark.django_db
class TestPermissions:
    def test_reception_books_appointments(self, reception_client, booking):
        response = reception_client.post('/api/v1/appointments/', booking, format='json')
        assert response.status_code == 201
        assert response.data['state'] == 'scheduled'

    def test_reception_manages_patients(self, reception_client):
        response = reception_client.post(
            '/api/v1/patients/', {'first_name': 'Eva', 'last_name': 'Luna'}, format='json'
        )
        assert response.status_code == 201

    @pytest.mark.parametrize('path', [
        '/api/v1/clinical-histories/',
        '/api/v1/dental-charts/',
        '/api/v1/encounters/',
        '/api/v1/attachments/',
    ])
    def test_reception_blocked_from_clinical_records(self, reception_client, path):
        response = reception_client.get(path)
        assert response.status_code == 403
        assert response.data['error']['code'] == 'permission_denied'

    def test_student_cannot_manage_specialties(self, student_client):
        response = student_client.post('/api/v1/specialties/', {'name': 'Cirugía'}, format='json')
        assert response.status_code == 403

    def test_admin_manages_specialties(self, admin_client):
        response = admin_client.post('/api/v1/specialties/', {'name': 'Cirugía'}, format='json')
        assert response.status_code == 201

    def test_teacher_creates_templates(self, teacher_client, specialty, teacher_user):
        response = teacher_client.post('/api/v1/time-slot-templates/', {
            'day_of_week': 1,
            'specialty_id': specialty.id,
            'responsible_id': teacher_user.id,
            'start_time': '08:00',
            'end_time': '10:00',
            'appointment_duration_minutes': 30,
        }, format='json')
        assert response.status_code == 201
        assert response.data['computed_capacity'] == 4
        assert response.data['start_time'] == '08:00'

    def test_audit_log_admin_only(self, teacher_client, admin_client):
        assert teacher_client.get('/api/v1/audit/').status_code == 403
        assert admin_client.get('/api/v1/audit/').status_code == 200


@pytest.mark.django_db
class TestAppointmentEndpoints:
    @pytest.fixture
    def appointment_id(self, reception_client, booking):
        return reception_client.post('/api/v1/appointments/', booking, format='json').data['id']

    def test_availability(self, reception_client, appointment_id, template, booking_date):
        response = reception_client.get(
            f'/api/v1/appointments/availability/{template.id}/', {'date': booking_date.isoformat()}
        )
        assert response.status_code == 200
        assert response.data['occupied_slots'] == 1

    def test_state_change(self, reception_client, appointment_id):
        response = reception_client.post(
            f'/api/v1/appointments/{appointment_id}/state/', {'state': 'cancelled', 'notes': 'Avisó'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['state'] == 'cancelled'
        assert '[CANCELLED] Avisó' in response.data['notes']

    def test_patch_ignores_state(self, reception_client, appointment_id):
        response = reception_client.patch(
            f'/api/v1/appointments/{appointment_id}/', {'state': 'attended', 'reason': 'Dolor'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['state'] == 'scheduled'
        assert response.data['reason'] == 'Dolor'

    def test_by_patient(self, reception_client, appointment_id, patient):
        response = reception_client.get(f'/api/v1/appointments/by-patient/{patient.id}/')
        assert [row['id'] for row in response.data] == [appointment_id]

    def test_by_responsible(self, teacher_client, appointment_id, teacher_user, booking_date):
        path = f'/api/v1/appointments/by-responsible/{teacher_user.id}/'

        agenda = teacher_client.get(path, {'date': booking_date.isoformat()})
        assert agenda.status_code == 200
        assert [row['id'] for row in agenda.data] == [appointment_id]

        later = (booking_date + timedelta(days=7)).isoformat()
        assert teacher_client.get(path, {'date': later}).data == []

        listed = teacher_client.get('/api/v1/appointments/', {'responsible_id': teacher_user.id})
        assert [row['id'] for row in listed.data] == [appointment_id]

    def test_fetch_by_id_round_trip(self, reception_client, appointment_id, booking):
        first = reception_client.get(f'/api/v1/appointments/{appointment_id}/')
        second = reception_client.get(f'/api/v1/appointments/{appointment_id}/')

        assert first.status_code == 200
        assert first.data['date'] == booking['date']
        assert first.data['start_time'] == '09:00'
        assert first.data['end_time'] == '09:30'
        assert first.data['state'] == 'scheduled'
        assert first.data['template']['id'] == booking['template_id']
        assert first.data['patient'] == booking['patient_id']
        assert second.data == first.data

    def test_audit_trail_of_appointment(self, admin_client, reception_client, appointment_id):
        reception_client.patch(f'/api/v1/appointments/{appointment_id}/', {'reason': 'Control'}, format='json')
        response = admin_client.get('/api/v1/audit/', {'table': 'appointment', 'record_id': appointment_id})
        assert [row['action'] for row in response.data['results']] == ['update', 'insert']


@pytest.mark.django_db
class TestClinicalEndpoints:
    def test_chart_flow(self, student_client, history):
        latest = student_client.get(f'/api/v1/dental-charts/history/{history.id}/latest/')
        assert latest.status_code == 200
        assert latest.data['version'] == 1
        assert latest.data['created_by'] is None

        teeth = healthy_teeth()
        teeth[0]['status'] = 'caries'
        created = student_client.post(
            '/api/v1/dental-charts/', {'history_id': history.id, 'teeth': teeth}, format='json'
        )
        assert created.status_code == 201
        assert created.data['version'] == 2

        stats = student_client.get(f"/api/v1/dental-charts/{created.data['id']}/stats/")
        assert stats.data['teeth_needing_attention'] == ['1.1']
        assert stats.data['history_versions'] == 2

        rejected = student_client.patch(
            f"/api/v1/dental-charts/{created.data['id']}/", {'teeth': healthy_teeth()}, format='json'
        )
        assert rejected.status_code == 400

    def test_chart_with_31_teeth(self, student_client, history):
        response = student_client.post(
            '/api/v1/dental-charts/', {'history_id': history.id, 'teeth': healthy_teeth()[1:]}, format='json'
        )
        assert response.status_code == 400
        assert response.data['error']['details'] == {'received': 31}

    def test_encounter_flow(self, student_client, reception_client, booking, history):
        appointment_id = reception_client.post('/api/v1/appointments/', booking, format='json').data['id']

        response = student_client.post('/api/v1/encounters/', {
            'appointment_id': appointment_id,
            'presumptive_diagnosis': 'Gingivitis',
            'treatment_plan': 'Profilaxis',
            'oral_status': ORAL_STATUS,
        }, format='json')
        assert response.status_code == 201
        assert Appointment.objects.get(pk=appointment_id).state == 'attended'

        again = reception_client.delete(f'/api/v1/appointments/{appointment_id}/')
        assert again.status_code == 409

        mine = student_client.get('/api/v1/encounters/mine/')
        assert [row['id'] for row in mine.data] == [response.data['id']]

        deleted = student_client.delete(f"/api/v1/encounters/{response.data['id']}/")
        assert deleted.status_code == 204
        assert Appointment.objects.get(pk=appointment_id).state == 'scheduled'

        removed = reception_client.delete(f'/api/v1/appointments/{appointment_id}/')
        assert removed.status_code == 204
        assert not Appointment.objects.filter(pk=appointment_id).exists()

    def test_questionnaire_templates(self, teacher_client):
        response = teacher_client.get('/api/v1/clinical-histories/templates/medical/')
        assert response.status_code == 200
        assert 'family_history' in response.data
