"""
Tests for the appointment booking rules and lifecycle services.
"""
from datetime import timedelta

import pytest

from apps.core.exceptions import Conflict, NotFound, ValidationFailed
from apps.ops.models import AuditLog
from apps.scheduling import services
from apps.scheduling.models import Appointment, AppointmentStateChoices, TemplateStatusChoices

from .conftest import next_weekday


@pytest.mark.django_db
class TestCreateAppointment:
    def test_valid_booking(self, booking, reception_user):
        appointment = services.create_appointment(booking, actor=reception_user)

        assert appointment.state == AppointmentStateChoices.SCHEDULED
        assert f'{appointment.start_time:%H:%M}' == '09:00'
        assert appointment.created_by == reception_user
        entry = AuditLog.objects.get(table_name='appointment', record_id=appointment.id)
        assert entry.action == 'insert'
        assert entry.actor == reception_user
        assert entry.after['state'] == 'scheduled'

    def test_single_digit_hour_accepted(self, booking):
        booking.update(start_time='9:00', end_time='9:30')
        assert services.create_appointment(booking).start_time.hour == 9

    @pytest.mark.parametrize('start, end', [('09:30', '09:00'), ('25:00', '26:00'), ('0900', '0930')])
    def test_bad_times(self, booking, start, end):
        booking.update(start_time=start, end_time=end)
        with pytest.raises(ValidationFailed):
            services.create_appointment(booking)

    def test_unknown_patient(self, booking):
        booking['patient_id'] = 999999
        with pytest.raises(NotFound):
            services.create_appointment(booking)

    def test_unknown_template(self, booking):
        booking['template_id'] = 999999
        with pytest.raises(NotFound):
            services.create_appointment(booking)

    def test_inactive_template(self, booking, template):
        template.status = TemplateStatusChoices.SUSPENDED
        template.save()
        with pytest.raises(ValidationFailed):
            services.create_appointment(booking)

    def test_past_date(self, booking, booking_date):
        booking['date'] = (booking_date - timedelta(days=14)).isoformat()
        with pytest.raises(ValidationFailed) as exc_info:
            services.create_appointment(booking)
        assert 'pasadas' in exc_info.value.message

    def test_outside_template_window(self, booking):
        booking.update(start_time='11:45', end_time='12:15')
        with pytest.raises(ValidationFailed):
            services.create_appointment(booking)

    def test_window_edges_allowed(self, booking):
        booking.update(start_time='11:30', end_time='12:00')
        assert services.create_appointment(booking).pk

    def test_wrong_weekday(self, booking, booking_date):
        booking['date'] = (booking_date + timedelta(days=1)).isoformat()
        with pytest.raises(ValidationFailed) as exc_info:
            services.create_appointment(booking)
        assert exc_info.value.details['template_day_of_week'] == 4

    def test_overlap_is_conflict(self, booking, other_patient):
        first = services.create_appointment(booking)
        booking.update(patient_id=other_patient.id, start_time='09:15', end_time='09:45')
        with pytest.raises(Conflict) as exc_info:
            services.create_appointment(booking)
        assert exc_info.value.details['conflicting_appointment_id'] == first.id

    def test_touching_appointments_allowed(self, booking, other_patient):
        services.create_appointment(booking)
        booking.update(patient_id=other_patient.id, start_time='09:30', end_time='10:00')
        assert services.create_appointment(booking).pk

    def test_cancelled_does_not_block(self, booking, other_patient):
        first = services.create_appointment(booking)
        services.change_appointment_state(first.id, AppointmentStateChoices.CANCELLED)
        booking['patient_id'] = other_patient.id
        assert services.create_appointment(booking).pk

    def test_patient_same_day_is_conflict(self, booking):
        services.create_appointment(booking)
        booking.update(start_time='10:00', end_time='10:30')
        with pytest.raises(Conflict) as exc_info:
            services.create_appointment(booking)
        assert 'ese día' in exc_info.value.message

    def test_patient_other_day_allowed(self, booking, template):
        services.create_appointment(booking)
        booking['date'] = next_weekday(template.day_of_week, weeks_ahead=1).isoformat()
        assert services.create_appointment(booking).pk

    def test_attended_state_rejected_on_create(self, booking):
        booking['state'] = AppointmentStateChoices.ATTENDED
        with pytest.raises(ValidationFailed):
            services.create_appointment(booking)
        assert not Appointment.objects.exists()

    def test_nothing_written_on_failure(self, booking):
        booking['end_time'] = '13:00'
        with pytest.raises(ValidationFailed):
            services.create_appointment(booking)
        assert not Appointment.objects.exists()
        assert not AuditLog.objects.exists()


@pytest.mark.django_db
class TestAppointmentLifecycle:
    @pytest.fixture
    def appointment(self, booking):
        return services.create_appointment(booking)

    def test_update_reason_keeps_slot(self, appointment):
        updated = services.update_appointment(appointment.id, {'reason': 'Control'})
        assert updated.reason == 'Control'

    def test_update_time_excludes_itself(self, appointment):
        updated = services.update_appointment(appointment.id, {'start_time': '09:15', 'end_time': '09:45'})
        assert f'{updated.start_time:%H:%M}' == '09:15'

    def test_update_records_before_and_after(self, appointment, teacher_user):
        services.update_appointment(appointment.id, {'notes': 'Traer radiografía'}, actor=teacher_user)
        entry = AuditLog.objects.get(table_name='appointment', record_id=appointment.id, action='update')
        assert entry.before['notes'] == ''
        assert entry.after['notes'] == 'Traer radiografía'

    def test_reschedule(self, appointment, template):
        new_date = next_weekday(template.day_of_week, weeks_ahead=1)
        moved = services.reschedule_appointment(appointment.id, {
            'template_id': template.id,
            'date': new_date.isoformat(),
            'start_time': '10:00',
            'end_time': '10:30',
            'reason': 'Pedido del paciente',
        })
        assert moved.id == appointment.id
        assert moved.date == new_date
        assert moved.state == AppointmentStateChoices.RESCHEDULED
        assert '[REAGENDADA] Pedido del paciente' in moved.notes

    def test_reschedule_requires_target(self, appointment):
        with pytest.raises(ValidationFailed):
            services.reschedule_appointment(appointment.id, {'date': '2030-01-03'})

    def test_change_state_appends_note(self, appointment):
        changed = services.change_appointment_state(appointment.id, 'no_show', notes='No vino')
        assert changed.state == 'no_show'
        assert changed.notes.endswith('[NO_SHOW] No vino')

    def test_change_state_rejects_unknown(self, appointment):
        with pytest.raises(ValidationFailed):
            services.change_appointment_state(appointment.id, 'lost')

    def test_attended_is_frozen(self, appointment, template):
        Appointment.objects.filter(pk=appointment.id).update(state=AppointmentStateChoices.ATTENDED)

        with pytest.raises(Conflict):
            services.update_appointment(appointment.id, {'reason': 'x'})
        with pytest.raises(Conflict):
            services.reschedule_appointment(appointment.id, {
                'template_id': template.id,
                'date': next_weekday(4, weeks_ahead=1).isoformat(),
                'start_time': '10:00',
                'end_time': '10:30',
            })
        with pytest.raises(Conflict):
            services.delete_appointment(appointment.id)
        assert Appointment.objects.filter(pk=appointment.id).exists()

    def test_delete(self, appointment):
        services.delete_appointment(appointment.id)
        assert not Appointment.objects.filter(pk=appointment.id).exists()
        assert AuditLog.objects.filter(table_name='appointment', action='delete').count() == 1

    def test_pending_attention(self, appointment):
        assert list(services.pending_attention()) == [appointment]
        services.change_appointment_state(appointment.id, 'cancelled')
        assert list(services.pending_attention()) == []

    def test_fetch_by_id_returns_stored_values(self, appointment, booking):
        first = services.get_appointment(appointment.id)
        second = services.get_appointment(appointment.id)

        assert first.date.isoformat() == booking['date']
        assert f'{first.start_time:%H:%M}' == booking['start_time']
        assert f'{first.end_time:%H:%M}' == booking['end_time']
        assert first.state == AppointmentStateChoices.SCHEDULED
        assert first.template_id == booking['template_id']
        assert first.patient_id == booking['patient_id']
        fields = ('date', 'start_time', 'end_time', 'state', 'template_id', 'patient_id')
        assert [getattr(second, f) for f in fields] == [getattr(first, f) for f in fields]


@pytest.mark.django_db
class TestAppointmentQueries:
    @pytest.fixture
    def appointment(self, booking):
        return services.create_appointment(booking)

    def test_by_responsible(self, appointment, teacher_user, make_user, booking_date):
        assert list(services.list_appointments(responsible_id=teacher_user.id)) == [appointment]
        agenda = services.list_appointments(responsible_id=str(teacher_user.id), date=booking_date)
        assert list(agenda) == [appointment]

        other_day = booking_date + timedelta(days=7)
        assert list(services.list_appointments(responsible_id=teacher_user.id, date=other_day)) == []

        colleague = make_user('teacher')
        assert list(services.list_appointments(responsible_id=colleague.id)) == []

    @pytest.mark.parametrize('field', ['patient_id', 'template_id', 'responsible_id'])
    def test_non_integer_filter_rejected(self, field):
        with pytest.raises(ValidationFailed) as excinfo:
            services.list_appointments(**{field: 'abc'})
        assert excinfo.value.details == {'field': field, 'value': 'abc'}

    def test_empty_filter_ignored(self, appointment):
        assert list(services.list_appointments(patient_id='', template_id=None)) == [appointment]


@pytest.mark.django_db
class TestAvailability:
    def test_slots_marked_occupied(self, booking, template, booking_date):
        appointment = services.create_appointment(booking)

        result = services.AvailabilityService.template_availability(template.id, booking_date.isoformat())

        assert result['total_slots'] == 8
        assert result['occupied_slots'] == 1
        assert result['available_slots'] == 7
        occupied = [slot for slot in result['slots'] if not slot['available']]
        assert occupied == [{
            'start_time': '09:00',
            'end_time': '09:30',
            'available': False,
            'appointment_id': appointment.id,
            'within_clinic_hours': True,
        }]

    def test_wrong_weekday(self, template, booking_date):
        with pytest.raises(ValidationFailed):
            services.AvailabilityService.template_availability(
                template.id, (booking_date + timedelta(days=2)).isoformat()
            )

    def test_unknown_template(self, booking_date):
        with pytest.raises(NotFound):
            services.AvailabilityService.template_availability(424242, booking_date.isoformat())

    def test_clinic_hours_read_once(self, template, booking_date, django_assert_num_queries):
        services.create_clinic_schedule({
            'days_of_week': [4], 'opening_time': '08:00', 'closing_time': '10:00',
        })

        # template, booked appointments, active clinic schedules
        with django_assert_num_queries(3):
            result = services.AvailabilityService.template_availability(template.id, booking_date)

        assert result['total_slots'] == 8
        assert [slot['within_clinic_hours'] for slot in result['slots']].count(False) == 4
