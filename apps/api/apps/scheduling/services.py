"""
Scheduling services.

Appointment lifecycle (create, update, reschedule, change state, remove),
availability, and the template/specialty/clinic-hours/shift services.

Every write validates first and raises on the first violated rule
(`NotFound`, `ValidationFailed`, `Conflict`); nothing is persisted until
all rules pass. Booking writes lock the template row so concurrent
bookings on the same template are serialized, closing the window between
the overlap check and the insert.
"""
import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import transaction

from apps.authz.models import RoleChoices
from apps.clinical.models import Patient
from apps.core.exceptions import Conflict, NotFound, ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.core.params import parse_id
from apps.core.observability.events import log_appointment_transition, log_booking_rejected
from apps.ops.services import audit_delete, audit_insert, audit_update, snapshot

from .models import (
    Appointment,
    AppointmentStateChoices,
    ClinicSchedule,
    DayOfWeekChoices,
    Shift,
    ShiftStateChoices,
    Specialty,
    TemplateStatusChoices,
    TimeSlotTemplate,
)
from .overlap import find_conflict, overlap_q
from .slots import generate_slots
from .timeutils import (
    clinic_today,
    format_hhmm,
    format_hhmmss,
    iso_weekday,
    parse_date,
    parse_time_range,
)

logger = logging.getLogger(__name__)

User = get_user_model()

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 120


# ============================================================================
# Appointment booking rules
# ============================================================================

def _reject(rule, exc):
    metrics.appointment_rejections_total.labels(rule=rule).inc()
    log_booking_rejected(rule, error_code=exc.get_codes())
    return exc


@metrics.track_duration(metrics.booking_validation_duration_seconds)
def validate_booking(
    patient_id, template_id, date, start_time, end_time,
    exclude_id: Optional[int] = None, lock: bool = False,
) -> tuple:
    """
    Apply the booking rule set in order and return the resolved values.

    1. times are HH:MM and start < end
    2. patient exists
    3. template exists and is active
    4. date is not before today (clinic calendar)
    5. [start, end) lies inside the template window
    6. date's ISO weekday equals the template's day of week
    7. no overlap with non-cancelled appointments on the same template and date
    8. patient has no other scheduled appointment that date

    Returns:
        (patient, template, date, start_time, end_time)
    """
    try:
        start, end = parse_time_range(start_time, end_time)
    except ValidationFailed as exc:
        raise _reject('time_format', exc)

    patient = Patient.objects.filter(pk=patient_id).first()
    if patient is None:
        raise _reject('patient_missing', NotFound(f'Paciente con ID {patient_id} no encontrado.'))

    templates = TimeSlotTemplate.objects.select_related('specialty', 'responsible')
    if lock:
        templates = templates.select_for_update(of=('self',))
    template = templates.filter(pk=template_id).first()
    if template is None:
        raise _reject('template_missing', NotFound(f'Franja horaria con ID {template_id} no encontrada.'))
    if not template.is_active:
        raise _reject('template_inactive', ValidationFailed(
            'La franja horaria no está activa.',
            details={'template_id': template.id, 'status': template.status},
        ))

    day = parse_date(date)
    if day < clinic_today():
        raise _reject('past_date', ValidationFailed(
            'No se pueden agendar citas en fechas pasadas.',
            details={'date': day.isoformat()},
        ))

    if not (format_hhmmss(template.start_time) <= format_hhmmss(start)
            and format_hhmmss(end) <= format_hhmmss(template.end_time)):
        raise _reject('window', ValidationFailed(
            f'El horario debe estar dentro de la franja '
            f'{format_hhmm(template.start_time)}-{format_hhmm(template.end_time)}.',
            details={'template_start': format_hhmm(template.start_time),
                     'template_end': format_hhmm(template.end_time)},
        ))

    if iso_weekday(day) != template.day_of_week:
        raise _reject('weekday', ValidationFailed(
            f'La fecha no corresponde al día de la franja ({template.get_day_of_week_display()}).',
            details={'date_weekday': iso_weekday(day), 'template_day_of_week': template.day_of_week},
        ))

    booked = (
        Appointment.objects
        .filter(template=template, date=day)
        .exclude(state=AppointmentStateChoices.CANCELLED)
        .values_list('id', 'start_time', 'end_time')
    )
    conflict = find_conflict(start, end, booked, exclude_id=exclude_id)
    if conflict is not None:
        raise _reject('overlap', Conflict(
            f'El horario se superpone con otra cita '
            f'({format_hhmm(conflict.start)}-{format_hhmm(conflict.end)}).',
            details={'conflicting_appointment_id': conflict.id},
        ))

    same_day = Appointment.objects.filter(
        patient=patient, date=day, state=AppointmentStateChoices.SCHEDULED
    )
    if exclude_id is not None:
        same_day = same_day.exclude(pk=exclude_id)
    other = same_day.first()
    if other is not None:
        raise _reject('patient_same_day', Conflict(
            'El paciente ya tiene una cita programada para ese día.',
            details={'conflicting_appointment_id': other.id},
        ))

    return patient, template, day, start, end


def _state_value(state):
    if state not in AppointmentStateChoices.values:
        raise ValidationFailed(
            f'Estado de cita inválido: {state}.',
            details={'allowed': AppointmentStateChoices.values},
        )
    return state


def _append_note(notes, tag, text):
    return f"{notes or ''}\n[{tag}] {text}"


# ============================================================================
# Appointment lifecycle
# ============================================================================

def get_appointment(appointment_id, for_update: bool = False) -> Appointment:
    queryset = Appointment.objects.select_related('patient', 'template__specialty', 'template__responsible')
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    appointment = queryset.filter(pk=appointment_id).first()
    if appointment is None:
        raise NotFound(f'Cita con ID {appointment_id} no encontrada.')
    return appointment


def create_appointment(data: Dict[str, Any], actor=None) -> Appointment:
    """
    Book an appointment.

    `data` keys: patient_id, template_id, date, start_time, end_time and
    optionally state (defaults to scheduled), reason, notes.
    """
    state = _state_value(data.get('state') or AppointmentStateChoices.SCHEDULED)
    if state == AppointmentStateChoices.ATTENDED:
        raise ValidationFailed('Una cita solo pasa a "atendida" al registrar la atención.')

    with transaction.atomic():
        patient, template, day, start, end = validate_booking(
            data.get('patient_id'),
            data.get('template_id'),
            data.get('date'),
            data.get('start_time'),
            data.get('end_time'),
            lock=True,
        )
        appointment = Appointment.objects.create(
            patient=patient,
            template=template,
            date=day,
            start_time=start,
            end_time=end,
            state=state,
            reason=data.get('reason') or '',
            notes=data.get('notes') or '',
            created_by=actor if getattr(actor, 'is_authenticated', False) else None,
        )

    audit_insert(appointment, actor)
    metrics.appointments_created_total.inc()
    log_domain_event(
        'appointment.created',
        entity_type='Appointment',
        entity_id=appointment.id,
        entity_ids={'template_id': template.id, 'patient_id': patient.id},
        date=day.isoformat(),
        start_time=format_hhmm(start),
        end_time=format_hhmm(end),
    )
    return appointment


BOOKING_FIELDS = ('patient_id', 'template_id', 'date', 'start_time', 'end_time')


def update_appointment(appointment_id, data: Dict[str, Any], actor=None) -> Appointment:
    """
    Edit an appointment. Blocked once attended; booking rules re-run when
    any of patient/template/date/start/end is supplied.
    """
    with transaction.atomic():
        appointment = get_appointment(appointment_id, for_update=True)
        if appointment.is_attended:
            raise Conflict('No se puede modificar una cita que ya fue atendida.')

        before = snapshot(appointment)

        if any(field in data for field in BOOKING_FIELDS):
            patient, template, day, start, end = validate_booking(
                data.get('patient_id', appointment.patient_id),
                data.get('template_id', appointment.template_id),
                data.get('date', appointment.date),
                data.get('start_time', appointment.start_time),
                data.get('end_time', appointment.end_time),
                exclude_id=appointment.id,
                lock=True,
            )
            appointment.patient = patient
            appointment.template = template
            appointment.date = day
            appointment.start_time = start
            appointment.end_time = end

        for field in ('reason', 'notes'):
            if field in data:
                setattr(appointment, field, data[field] or '')

        appointment.save()

    audit_update(appointment, before, actor)
    return appointment


def reschedule_appointment(appointment_id, data: Dict[str, Any], actor=None) -> Appointment:
    """
    Move an appointment to a new template/date/time on the same row.

    The target is validated like a new booking (excluding this row), the
    state becomes `rescheduled` and the reason is appended to the notes.
    """
    missing = [field for field in ('template_id', 'date', 'start_time', 'end_time') if not data.get(field)]
    if missing:
        raise ValidationFailed('Faltan datos para reagendar.', details={'missing': missing})

    with transaction.atomic():
        appointment = get_appointment(appointment_id, for_update=True)
        if appointment.is_attended:
            raise Conflict('No se puede reagendar una cita que ya fue atendida.')

        before = snapshot(appointment)
        previous_state = appointment.state

        _, template, day, start, end = validate_booking(
            appointment.patient_id,
            data['template_id'],
            data['date'],
            data['start_time'],
            data['end_time'],
            exclude_id=appointment.id,
            lock=True,
        )
        appointment.template = template
        appointment.date = day
        appointment.start_time = start
        appointment.end_time = end
        appointment.state = AppointmentStateChoices.RESCHEDULED
        if data.get('reason'):
            appointment.notes = _append_note(appointment.notes, 'REAGENDADA', data['reason'])
        appointment.save()

    audit_update(appointment, before, actor)
    metrics.appointment_state_changes_total.labels(
        from_state=previous_state, to_state=appointment.state
    ).inc()
    log_appointment_transition(
        appointment, previous_state, appointment.state,
        date=day.isoformat(), start_time=format_hhmm(start),
    )
    return appointment


def change_appointment_state(
    appointment_id, state: str, notes: Optional[str] = None, actor=None
) -> Appointment:
    """Write `state` unconditionally; a note is appended as ``[STATE] note``."""
    state = _state_value(state)

    with transaction.atomic():
        appointment = get_appointment(appointment_id, for_update=True)
        before = snapshot(appointment)
        previous_state = appointment.state

        appointment.state = state
        if notes:
            appointment.notes = _append_note(appointment.notes, state.upper(), notes)
        appointment.save(update_fields=['state', 'notes', 'updated_at'])

    audit_update(appointment, before, actor)
    metrics.appointment_state_changes_total.labels(from_state=previous_state, to_state=state).inc()
    log_appointment_transition(appointment, previous_state, state)
    return appointment


def delete_appointment(appointment_id, actor=None) -> None:
    with transaction.atomic():
        appointment = get_appointment(appointment_id, for_update=True)
        if appointment.is_attended:
            raise Conflict('No se puede eliminar una cita que ya fue atendida.')
        before = snapshot(appointment)
        appointment.delete()

    audit_delete(Appointment._meta.db_table, appointment_id, before, actor)
    log_domain_event('appointment.deleted', entity_type='Appointment', entity_id=appointment_id)


def list_appointments(
    patient_id: Any = None,
    template_id: Any = None,
    date: Any = None,
    date_from: Any = None,
    date_to: Any = None,
    state: Optional[str] = None,
    responsible_id: Any = None,
):
    queryset = Appointment.objects.select_related('patient', 'template__specialty', 'template__responsible')
    patient_id = parse_id(patient_id, 'patient_id')
    template_id = parse_id(template_id, 'template_id')
    responsible_id = parse_id(responsible_id, 'responsible_id')
    if patient_id:
        queryset = queryset.filter(patient_id=patient_id)
    if template_id:
        queryset = queryset.filter(template_id=template_id)
    if responsible_id:
        queryset = queryset.filter(template__responsible_id=responsible_id)
    if date:
        queryset = queryset.filter(date=parse_date(date))
    if date_from:
        queryset = queryset.filter(date__gte=parse_date(date_from, 'date_from'))
    if date_to:
        queryset = queryset.filter(date__lte=parse_date(date_to, 'date_to'))
    if state:
        queryset = queryset.filter(state=state)
    return queryset.order_by('date', 'start_time')


def pending_attention():
    """Scheduled appointments from today on, ready to be attended."""
    return list_appointments(state=AppointmentStateChoices.SCHEDULED).filter(date__gte=clinic_today())


# ============================================================================
# Availability
# ============================================================================

def active_clinic_schedules() -> list:
    return list(ClinicSchedule.objects.filter(is_active=True))


def clinic_is_open(day_of_week: int, start, end, schedules: Optional[list] = None) -> bool:
    """
    True when an active clinic schedule covers [start, end) on that weekday.
    With no active schedule configured the clinic is treated as open.

    Pass `schedules` (from `active_clinic_schedules`) when checking many
    ranges so the table is read once.
    """
    if schedules is None:
        schedules = active_clinic_schedules()
    if not schedules:
        return True
    return any(schedule.covers(day_of_week, start, end) for schedule in schedules)


class AvailabilityService:
    """Slot occupancy of a template on a given date."""

    @staticmethod
    def template_availability(template_id, date) -> Dict[str, Any]:
        template = TimeSlotTemplate.objects.select_related('specialty', 'responsible').filter(pk=template_id).first()
        if template is None:
            raise NotFound(f'Franja horaria con ID {template_id} no encontrada.')

        day = parse_date(date)
        if iso_weekday(day) != template.day_of_week:
            raise ValidationFailed(
                f'La fecha no corresponde al día de la franja ({template.get_day_of_week_display()}).',
                details={'date_weekday': iso_weekday(day), 'template_day_of_week': template.day_of_week},
            )

        booked = list(
            Appointment.objects
            .filter(template=template, date=day)
            .exclude(state=AppointmentStateChoices.CANCELLED)
            .values_list('id', 'start_time', 'end_time')
        )
        schedules = active_clinic_schedules()

        slots = []
        for slot in generate_slots(template.start_time, template.end_time, template.appointment_duration_minutes):
            conflict = find_conflict(slot.start, slot.end, booked)
            slots.append({
                'start_time': format_hhmm(slot.start),
                'end_time': format_hhmm(slot.end),
                'available': conflict is None,
                'appointment_id': conflict.id if conflict else None,
                'within_clinic_hours': clinic_is_open(
                    template.day_of_week, slot.start, slot.end, schedules=schedules
                ),
            })

        available = sum(1 for slot in slots if slot['available'])
        return {
            'template': {
                'id': template.id,
                'specialty': template.specialty.name,
                'responsible': template.responsible.full_name,
                'day_of_week': template.day_of_week,
                'start_time': format_hhmm(template.start_time),
                'end_time': format_hhmm(template.end_time),
                'appointment_duration_minutes': template.appointment_duration_minutes,
                'status': template.status,
                'capacity': template.computed_capacity,
            },
            'date': day.isoformat(),
            'slots': slots,
            'total_slots': len(slots),
            'available_slots': available,
            'occupied_slots': len(slots) - available,
        }


# ============================================================================
# Time-slot templates
# ============================================================================

def get_template(template_id) -> TimeSlotTemplate:
    template = TimeSlotTemplate.objects.select_related('specialty', 'responsible').filter(pk=template_id).first()
    if template is None:
        raise NotFound(f'Franja horaria con ID {template_id} no encontrada.')
    return template


def list_templates(
    day: Any = None,
    specialty_id: Any = None,
    responsible_id: Any = None,
    status: Optional[str] = None,
):
    """
    Day + specialty returns only active templates (booking lookup);
    responsible returns all of that staff member's templates.
    """
    day = parse_id(day, 'day')
    specialty_id = parse_id(specialty_id, 'specialty_id')
    responsible_id = parse_id(responsible_id, 'responsible_id')
    queryset = TimeSlotTemplate.objects.select_related('specialty', 'responsible')
    if day and specialty_id:
        queryset = queryset.filter(
            day_of_week=day, specialty_id=specialty_id, status=TemplateStatusChoices.ACTIVE
        )
    elif responsible_id:
        queryset = queryset.filter(responsible_id=responsible_id)
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('day_of_week', 'start_time')


def _validate_template_values(values):
    start, end = parse_time_range(values.get('start_time'), values.get('end_time'))

    day = values.get('day_of_week')
    if day not in DayOfWeekChoices.values:
        raise ValidationFailed('El día de la semana debe estar entre 1 y 7.', details={'day_of_week': day})

    duration = values.get('appointment_duration_minutes')
    if duration is None:
        duration = 30
    if not isinstance(duration, int) or not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
        raise ValidationFailed(
            f'La duración debe estar entre {MIN_DURATION_MINUTES} y {MAX_DURATION_MINUTES} minutos.',
            details={'appointment_duration_minutes': duration},
        )

    capacity = values.get('max_capacity')
    if capacity is not None and (not isinstance(capacity, int) or capacity < 1):
        raise ValidationFailed('La capacidad máxima debe ser al menos 1.', details={'max_capacity': capacity})

    status = values.get('status') or TemplateStatusChoices.ACTIVE
    if status not in TemplateStatusChoices.values:
        raise ValidationFailed(f'Estado de franja inválido: {status}.')

    specialty = Specialty.objects.filter(pk=values.get('specialty_id')).first()
    if specialty is None:
        raise NotFound(f"Especialidad con ID {values.get('specialty_id')} no encontrada.")

    responsible = User.objects.select_for_update().filter(pk=values.get('responsible_id'), is_active=True).first()
    if responsible is None:
        raise NotFound(f"Responsable con ID {values.get('responsible_id')} no encontrado.")

    return {
        'day_of_week': day,
        'start_time': start,
        'end_time': end,
        'appointment_duration_minutes': duration,
        'max_capacity': capacity,
        'status': status,
        'specialty': specialty,
        'responsible': responsible,
    }


def _check_template_overlap(cleaned, exclude_id=None):
    """No two active templates of one responsible may overlap on the same day."""
    if cleaned['status'] != TemplateStatusChoices.ACTIVE:
        return
    existing = (
        TimeSlotTemplate.objects
        .filter(
            responsible=cleaned['responsible'],
            day_of_week=cleaned['day_of_week'],
            status=TemplateStatusChoices.ACTIVE,
        )
        .values_list('id', 'start_time', 'end_time')
    )
    conflict = find_conflict(cleaned['start_time'], cleaned['end_time'], existing, exclude_id=exclude_id)
    if conflict is not None:
        raise Conflict(
            f'Ya existe una franja horaria que se superpone '
            f'({format_hhmm(conflict.start)}-{format_hhmm(conflict.end)}).',
            details={'conflicting_template_id': conflict.id},
        )


TEMPLATE_FIELDS = (
    'day_of_week', 'specialty_id', 'responsible_id', 'start_time', 'end_time',
    'appointment_duration_minutes', 'max_capacity', 'status',
)


def create_template(data: Dict[str, Any], actor=None) -> TimeSlotTemplate:
    with transaction.atomic():
        cleaned = _validate_template_values(data)
        _check_template_overlap(cleaned)
        template = TimeSlotTemplate.objects.create(notes=data.get('notes') or '', **cleaned)

    audit_insert(template, actor)
    log_domain_event(
        'time_slot_template.created',
        entity_type='TimeSlotTemplate',
        entity_id=template.id,
        entity_ids={'responsible_id': template.responsible_id, 'specialty_id': template.specialty_id},
        day_of_week=template.day_of_week,
    )
    return template


def update_template(template_id, data: Dict[str, Any], actor=None) -> TimeSlotTemplate:
    with transaction.atomic():
        template = get_template(template_id)
        before = snapshot(template)

        merged = {field: getattr(template, field) for field in TEMPLATE_FIELDS}
        merged.update({field: data[field] for field in TEMPLATE_FIELDS if field in data})
        cleaned = _validate_template_values(merged)
        _check_template_overlap(cleaned, exclude_id=template.id)

        for field, value in cleaned.items():
            setattr(template, field, value)
        if 'notes' in data:
            template.notes = data['notes'] or ''
        template.save()

    audit_update(template, before, actor)
    return template


def delete_template(template_id, actor=None) -> None:
    with transaction.atomic():
        template = get_template(template_id)
        if template.appointments.exists():
            raise Conflict('No se puede eliminar una franja horaria con citas asociadas.')
        before = snapshot(template)
        template.delete()

    audit_delete(TimeSlotTemplate._meta.db_table, template_id, before, actor)


# ============================================================================
# Specialties
# ============================================================================

def get_specialty(specialty_id) -> Specialty:
    specialty = Specialty.objects.filter(pk=specialty_id).first()
    if specialty is None:
        raise NotFound(f'Especialidad con ID {specialty_id} no encontrada.')
    return specialty


def _clean_specialty_name(name, exclude_id=None):
    name = (name or '').strip()
    if not name:
        raise ValidationFailed('El nombre de la especialidad es obligatorio.')
    duplicates = Specialty.objects.filter(name__iexact=name)
    if exclude_id is not None:
        duplicates = duplicates.exclude(pk=exclude_id)
    if duplicates.exists():
        raise Conflict(f'Ya existe una especialidad con el nombre "{name}".')
    return name


def create_specialty(data: Dict[str, Any], actor=None) -> Specialty:
    with transaction.atomic():
        specialty = Specialty.objects.create(
            name=_clean_specialty_name(data.get('name')),
            description=data.get('description') or '',
            is_active=data.get('is_active', True),
        )
    audit_insert(specialty, actor)
    return specialty


def update_specialty(specialty_id, data: Dict[str, Any], actor=None) -> Specialty:
    with transaction.atomic():
        specialty = get_specialty(specialty_id)
        before = snapshot(specialty)
        if 'name' in data:
            specialty.name = _clean_specialty_name(data['name'], exclude_id=specialty.id)
        if 'description' in data:
            specialty.description = data['description'] or ''
        if 'is_active' in data:
            specialty.is_active = data['is_active']
        specialty.save()
    audit_update(specialty, before, actor)
    return specialty


def delete_specialty(specialty_id, actor=None) -> None:
    with transaction.atomic():
        specialty = get_specialty(specialty_id)
        if specialty.templates.exists():
            raise Conflict('No se puede eliminar una especialidad con franjas horarias asociadas.')
        before = snapshot(specialty)
        specialty.delete()
    audit_delete(Specialty._meta.db_table, specialty_id, before, actor)


# ============================================================================
# Clinic hours
# ============================================================================

def get_clinic_schedule(schedule_id) -> ClinicSchedule:
    schedule = ClinicSchedule.objects.filter(pk=schedule_id).first()
    if schedule is None:
        raise NotFound(f'Horario de clínica con ID {schedule_id} no encontrado.')
    return schedule


def _clean_days(days):
    if not isinstance(days, (list, tuple)) or not days:
        raise ValidationFailed('Debe indicar al menos un día de la semana.')
    if any(day not in DayOfWeekChoices.values for day in days):
        raise ValidationFailed('Los días de la semana deben estar entre 1 y 7.', details={'days_of_week': list(days)})
    if len(set(days)) != len(days):
        raise ValidationFailed('Los días de la semana no pueden repetirse.', details={'days_of_week': list(days)})
    return sorted(days)


def create_clinic_schedule(data: Dict[str, Any], actor=None) -> ClinicSchedule:
    days = _clean_days(data.get('days_of_week'))
    opening, closing = parse_time_range(
        data.get('opening_time'), data.get('closing_time'), 'opening_time', 'closing_time'
    )
    schedule = ClinicSchedule.objects.create(
        days_of_week=days,
        opening_time=opening,
        closing_time=closing,
        is_active=data.get('is_active', True),
        description=data.get('description') or '',
    )
    audit_insert(schedule, actor)
    return schedule


def update_clinic_schedule(schedule_id, data: Dict[str, Any], actor=None) -> ClinicSchedule:
    schedule = get_clinic_schedule(schedule_id)
    before = snapshot(schedule)
    if 'days_of_week' in data:
        schedule.days_of_week = _clean_days(data['days_of_week'])
    schedule.opening_time, schedule.closing_time = parse_time_range(
        data.get('opening_time', schedule.opening_time),
        data.get('closing_time', schedule.closing_time),
        'opening_time', 'closing_time',
    )
    for field in ('is_active', 'description'):
        if field in data:
            setattr(schedule, field, data[field])
    schedule.save()
    audit_update(schedule, before, actor)
    return schedule


def delete_clinic_schedule(schedule_id, actor=None) -> None:
    schedule = get_clinic_schedule(schedule_id)
    before = snapshot(schedule)
    schedule.delete()
    audit_delete(ClinicSchedule._meta.db_table, schedule_id, before, actor)


# ============================================================================
# Shifts
# ============================================================================

def get_shift(shift_id) -> Shift:
    shift = Shift.objects.select_related('patient', 'student', 'supervisor').filter(pk=shift_id).first()
    if shift is None:
        raise NotFound(f'Turno con ID {shift_id} no encontrado.')
    return shift


def list_shifts(patient_id: Any = None, student_id: Any = None, state: Optional[str] = None):
    queryset = Shift.objects.select_related('patient', 'student', 'supervisor')
    patient_id = parse_id(patient_id, 'patient_id')
    student_id = parse_id(student_id, 'student_id')
    if patient_id:
        queryset = queryset.filter(patient_id=patient_id)
    if student_id:
        queryset = queryset.filter(student_id=student_id)
    if state:
        queryset = queryset.filter(state=state)
    return queryset.order_by('starts_at')


def _staff_with_role(user_id, role, label):
    user = User.objects.filter(pk=user_id, is_active=True, user_roles__role__name=role).first()
    if user is None:
        raise NotFound(f'{label} con ID {user_id} no encontrado.')
    return user


def _confirmed_shifts():
    return Shift.objects.filter(state=ShiftStateChoices.CONFIRMED)


def _check_shift_overlap(starts_at, ends_at, student, room, exclude_id=None):
    """A confirmed shift blocks the same student and the same room."""
    if student is not None:
        booked = (
            _confirmed_shifts()
            .filter(overlap_q(starts_at, ends_at, 'starts_at', 'ends_at'), student=student)
            .values_list('id', 'starts_at', 'ends_at')
        )
        if find_conflict(starts_at, ends_at, booked, exclude_id=exclude_id):
            raise Conflict('El estudiante ya tiene un turno confirmado en ese horario.')

    if room:
        booked = (
            _confirmed_shifts()
            .filter(overlap_q(starts_at, ends_at, 'starts_at', 'ends_at'), room=room)
            .values_list('id', 'starts_at', 'ends_at')
        )
        if find_conflict(starts_at, ends_at, booked, exclude_id=exclude_id):
            raise Conflict(f'El consultorio {room} ya está ocupado en ese horario.')


def _resolve_shift_values(values):
    starts_at, ends_at = values.get('starts_at'), values.get('ends_at')
    if starts_at is None or ends_at is None:
        raise ValidationFailed('Debe indicar inicio y fin del turno.')
    if ends_at <= starts_at:
        raise ValidationFailed('La fecha de fin debe ser posterior a la fecha de inicio.')

    patient = Patient.objects.filter(pk=values.get('patient_id')).first()
    if patient is None:
        raise NotFound(f"Paciente con ID {values.get('patient_id')} no encontrado.")

    student = None
    if values.get('student_id'):
        student = _staff_with_role(values['student_id'], RoleChoices.STUDENT, 'Estudiante')

    supervisor = None
    if values.get('supervisor_id'):
        supervisor = _staff_with_role(values['supervisor_id'], RoleChoices.TEACHER, 'Supervisor')

    state = values.get('state') or ShiftStateChoices.PENDING
    if state not in ShiftStateChoices.values:
        raise ValidationFailed(f'Estado de turno inválido: {state}.')

    return {
        'patient': patient,
        'starts_at': starts_at,
        'ends_at': ends_at,
        'student': student,
        'supervisor': supervisor,
        'room': values.get('room') or '',
        'state': state,
    }


SHIFT_FIELDS = ('patient_id', 'starts_at', 'ends_at', 'student_id', 'supervisor_id', 'room', 'state')


def create_shift(data: Dict[str, Any], actor=None) -> Shift:
    with transaction.atomic():
        cleaned = _resolve_shift_values(data)
        _check_shift_overlap(cleaned['starts_at'], cleaned['ends_at'], cleaned['student'], cleaned['room'])
        shift = Shift.objects.create(**cleaned)
    audit_insert(shift, actor)
    return shift


def update_shift(shift_id, data: Dict[str, Any], actor=None) -> Shift:
    with transaction.atomic():
        shift = get_shift(shift_id)
        before = snapshot(shift)

        merged = {field: getattr(shift, field) for field in SHIFT_FIELDS}
        merged.update({field: data[field] for field in SHIFT_FIELDS if field in data})
        cleaned = _resolve_shift_values(merged)

        if {'starts_at', 'ends_at', 'student_id', 'room', 'state'} & set(data):
            _check_shift_overlap(
                cleaned['starts_at'], cleaned['ends_at'], cleaned['student'], cleaned['room'],
                exclude_id=shift.id,
            )

        for field, value in cleaned.items():
            setattr(shift, field, value)
        shift.save()
    audit_update(shift, before, actor)
    return shift


def check_in_shift(shift_id, actor=None) -> Shift:
    shift = get_shift(shift_id)
    if shift.state == ShiftStateChoices.ATTENDED:
        raise ValidationFailed('El turno ya ha sido atendido.')
    if shift.state == ShiftStateChoices.CANCELLED:
        raise ValidationFailed('No se puede hacer check-in en un turno cancelado.')
    before = snapshot(shift)
    shift.state = ShiftStateChoices.ATTENDED
    shift.save(update_fields=['state'])
    audit_update(shift, before, actor)
    return shift


def delete_shift(shift_id, actor=None) -> None:
    shift = get_shift(shift_id)
    before = snapshot(shift)
    shift.delete()
    audit_delete(Shift._meta.db_table, shift_id, before, actor)
