"""
Tests for time-slot templates, specialties, clinic hours and shifts.
"""
from datetime import datetime, time, timedelta

import pytest
from django.utils import timezone

from apps.core.exceptions import Conflict, NotFound, ValidationFailed
from apps.scheduling import services
from apps.scheduling.models import ShiftStateChoices, Specialty, TemplateStatusChoices


@pytest.fixture
def template_data(specialty, teacher_user):
    return {
        'day_of_week': 2,
        'specialty_id': specialty.id,
        'responsible_id': teacher_user.id,
        'start_time': '14:00',
        'end_time': '18:00',
        'appointment_duration_minutes': 45,
    }


@pytest.mark.django_db
class TestTimeSlotTemplates:
    def test_create(self, template_data):
        template = services.create_template(template_data)
        assert template.status == TemplateStatusChoices.ACTIVE
        # 240 minutes / 45 = 5 full slots
        assert template.computed_capacity == 5

    def test_fixed_capacity_wins(self, template_data):
        template_data['max_capacity'] = 3
        assert services.create_template(template_data).computed_capacity == 3

    @pytest.mark.parametrize('duration', [10, 121, '30'])
    def test_duration_bounds(self, template_data, duration):
        template_data['appointment_duration_minutes'] = duration
        with pytest.raises(ValidationFailed):
            services.create_template(template_data)

    def test_day_of_week_range(self, template_data):
        template_data['day_of_week'] = 8
        with pytest.raises(ValidationFailed):
            services.create_template(template_data)

    def test_same_responsible_overlap_is_conflict(self, template_data):
        services.create_template(template_data)
        template_data.update(start_time='17:00', end_time='19:00')
        with pytest.raises(Conflict):
            services.create_template(template_data)

    def test_inactive_template_does_not_block(self, template_data):
        first = services.create_template(template_data)
        services.update_template(first.id, {'status': TemplateStatusChoices.INACTIVE})
        assert services.create_template(template_data).pk

    def test_other_responsible_may_overlap(self, template_data, make_user):
        services.create_template(template_data)
        template_data['responsible_id'] = make_user('teacher').id
        assert services.create_template(template_data).pk

    def test_update_excludes_itself(self, template_data):
        template = services.create_template(template_data)
        updated = services.update_template(template.id, {'end_time': '17:30'})
        assert updated.end_time == time(17, 30)

    def test_lookup_by_day_and_specialty_returns_active_only(self, template_data, specialty):
        active = services.create_template(template_data)
        template_data.update(start_time='08:00', end_time='10:00', status=TemplateStatusChoices.SUSPENDED)
        services.create_template(template_data)

        found = list(services.list_templates(day=2, specialty_id=specialty.id))
        assert found == [active]

    def test_delete_with_appointments_is_conflict(self, booking, template):
        services.create_appointment(booking)
        with pytest.raises(Conflict):
            services.delete_template(template.id)


@pytest.mark.django_db
class TestSpecialties:
    def test_duplicate_name_is_conflict(self, specialty):
        with pytest.raises(Conflict):
            services.create_specialty({'name': 'operatoria'})

    def test_blank_name(self):
        with pytest.raises(ValidationFailed):
            services.create_specialty({'name': '  '})

    def test_delete_with_templates_is_conflict(self, template, specialty):
        with pytest.raises(Conflict):
            services.delete_specialty(specialty.id)

    def test_delete_unused(self):
        specialty = services.create_specialty({'name': 'Endodoncia'})
        services.delete_specialty(specialty.id)
        assert not Specialty.objects.filter(pk=specialty.id).exists()


@pytest.mark.django_db
class TestClinicSchedules:
    def test_create_and_cover(self):
        schedule = services.create_clinic_schedule({
            'days_of_week': [5, 1, 3],
            'opening_time': '08:00',
            'closing_time': '13:00',
        })
        assert schedule.days_of_week == [1, 3, 5]
        assert schedule.covers(3, time(8, 0), time(8, 30))
        assert not schedule.covers(2, time(8, 0), time(8, 30))
        assert not schedule.covers(3, time(12, 45), time(13, 15))

    @pytest.mark.parametrize('days', [[], [0], [1, 1], 'lunes'])
    def test_invalid_days(self, days):
        with pytest.raises(ValidationFailed):
            services.create_clinic_schedule({
                'days_of_week': days, 'opening_time': '08:00', 'closing_time': '13:00',
            })

    def test_availability_flags_slots_outside_clinic_hours(self, template, booking_date):
        services.create_clinic_schedule({
            'days_of_week': [4], 'opening_time': '08:00', 'closing_time': '10:00',
        })
        result = services.AvailabilityService.template_availability(template.id, booking_date)
        flags = [slot['within_clinic_hours'] for slot in result['slots']]
        assert flags == [True] * 4 + [False] * 4


@pytest.mark.django_db
class TestShifts:
    @pytest.fixture
    def starts_at(self):
        return timezone.make_aware(datetime.combine(timezone.localdate() + timedelta(days=3), time(9, 0)))

    @pytest.fixture
    def shift_data(self, patient, student_user, teacher_user, starts_at):
        return {
            'patient_id': patient.id,
            'student_id': student_user.id,
            'supervisor_id': teacher_user.id,
            'starts_at': starts_at,
            'ends_at': starts_at + timedelta(hours=1),
            'room': 'Box 3',
            'state': ShiftStateChoices.CONFIRMED,
        }

    def test_create_defaults_to_pending(self, shift_data):
        del shift_data['state']
        assert services.create_shift(shift_data).state == ShiftStateChoices.PENDING

    def test_end_after_start(self, shift_data, starts_at):
        shift_data['ends_at'] = starts_at
        with pytest.raises(ValidationFailed):
            services.create_shift(shift_data)

    def test_student_must_hold_student_role(self, shift_data, teacher_user):
        shift_data['student_id'] = teacher_user.id
        with pytest.raises(NotFound):
            services.create_shift(shift_data)

    def test_confirmed_student_overlap_is_conflict(self, shift_data, starts_at):
        services.create_shift(shift_data)
        shift_data.update(room='Box 4', starts_at=starts_at + timedelta(minutes=30),
                          ends_at=starts_at + timedelta(minutes=90))
        with pytest.raises(Conflict):
            services.create_shift(shift_data)

    def test_confirmed_room_overlap_is_conflict(self, shift_data, make_user):
        services.create_shift(shift_data)
        shift_data['student_id'] = make_user('student').id
        with pytest.raises(Conflict):
            services.create_shift(shift_data)

    def test_pending_shift_does_not_block(self, shift_data):
        shift_data['state'] = ShiftStateChoices.PENDING
        services.create_shift(shift_data)
        assert services.create_shift(shift_data).pk

    def test_check_in(self, shift_data):
        shift = services.create_shift(shift_data)
        assert services.check_in_shift(shift.id).state == ShiftStateChoices.ATTENDED
        with pytest.raises(ValidationFailed):
            services.check_in_shift(shift.id)

    def test_check_in_cancelled(self, shift_data):
        shift_data['state'] = ShiftStateChoices.CANCELLED
        shift = services.create_shift(shift_data)
        with pytest.raises(ValidationFailed):
            services.check_in_shift(shift.id)
