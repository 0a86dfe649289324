"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Users and authenticated API clients by role
- Scheduling and clinical model instances
"""
from datetime import time, timedelta

import pytest
from rest_framework.test import APIClient

from apps.authz.models import Role, RoleChoices, User, UserRole
from apps.clinical.models import ClinicalHistory, Patient
from apps.scheduling.models import Specialty, TimeSlotTemplate
from apps.scheduling.timeutils import clinic_today


def next_weekday(day_of_week, weeks_ahead=0):
    """First date strictly after today falling on `day_of_week` (ISO), plus whole weeks."""
    today = clinic_today()
    delta = (day_of_week - today.isoweekday()) % 7 or 7
    return today + timedelta(days=delta + 7 * weeks_ahead)


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def make_user(db):
    """Factory: make_user('student', email='x@clinica.edu') -> User with that role."""
    counter = {'n': 0}

    def _make(role, email=None, **extra):
        counter['n'] += 1
        user = User.objects.create_user(
            email=email or f'{role}{counter["n"]}@clinica.edu',
            password='testpass123',
            first_name=extra.pop('first_name', role.capitalize()),
            last_name=extra.pop('last_name', f'Test{counter["n"]}'),
            **extra
        )
        role_obj, _ = Role.objects.get_or_create(name=role)
        UserRole.objects.create(user=user, role=role_obj)
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(RoleChoices.ADMIN, email='admin@clinica.edu', is_staff=True)


@pytest.fixture
def teacher_user(make_user):
    return make_user(RoleChoices.TEACHER, email='docente@clinica.edu')


@pytest.fixture
def student_user(make_user):
    return make_user(RoleChoices.STUDENT, email='estudiante@clinica.edu')


@pytest.fixture
def reception_user(make_user):
    return make_user(RoleChoices.RECEPTION, email='recepcion@clinica.edu')


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def teacher_client(teacher_user):
    return _client_for(teacher_user)


@pytest.fixture
def student_client(student_user):
    return _client_for(student_user)


@pytest.fixture
def reception_client(reception_user):
    return _client_for(reception_user)


# ============================================================================
# Domain objects
# ============================================================================

@pytest.fixture
def specialty(db):
    return Specialty.objects.create(name='Operatoria', description='Operatoria dental')


@pytest.fixture
def template(specialty, teacher_user):
    """Thursday 08:00-12:00, 30 minute appointments."""
    return TimeSlotTemplate.objects.create(
        day_of_week=4,
        specialty=specialty,
        responsible=teacher_user,
        start_time=time(8, 0),
        end_time=time(12, 0),
        appointment_duration_minutes=30,
    )


@pytest.fixture
def booking_date(template):
    """Next date matching the template's weekday."""
    return next_weekday(template.day_of_week)


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        first_name='Lucía',
        last_name='Fernández',
        national_id='30111222',
        phone='11-5555-0000',
    )


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(first_name='Martín', last_name='Gómez', national_id='28999000')


@pytest.fixture
def history(patient, teacher_user):
    return ClinicalHistory.objects.create(patient=patient, created_by=teacher_user)


@pytest.fixture
def booking(patient, template, booking_date):
    """Valid appointment payload for the template fixture."""
    return {
        'patient_id': patient.id,
        'template_id': template.id,
        'date': booking_date.isoformat(),
        'start_time': '09:00',
        'end_time': '09:30',
    }
