"""
Clinical services: patients, clinical histories, dental charts (versioned),
encounters and attachments.

Same contract as the scheduling services: validate first, raise
`NotFound` / `ValidationFailed` / `Conflict` / `Forbidden` on the first
violated rule, then write and hand the change to the audit recorder.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Max, Q

from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from apps.core.observability import log_domain_event, metrics
from apps.core.observability.events import log_appointment_transition
from apps.core.params import parse_id
from apps.ops.services import audit_delete, audit_insert, audit_update, snapshot
from apps.scheduling.models import Appointment, AppointmentStateChoices
from apps.scheduling.timeutils import clinic_today, parse_date

from .models import (
    Attachment,
    AttachmentKindChoices,
    ClinicalHistory,
    DentalChart,
    Encounter,
    MaritalStatusChoices,
    OralHygieneChoices,
    Patient,
    SexChoices,
)
from .questionnaires import build_dental_questionnaire, build_questionnaire
from .teeth import chart_stats, healthy_teeth, validate_teeth

logger = logging.getLogger(__name__)

ALLOWED_ATTACHMENT_MIME_TYPES = (
    'image/jpeg',
    'image/png',
    'image/gif',
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'text/plain',
)

SEED_CHART_NOTES = 'Odontograma inicial generado automáticamente'


def _author(actor):
    return actor if getattr(actor, 'is_authenticated', False) else None


# ============================================================================
# Patients
# ============================================================================

PATIENT_FIELDS = (
    'first_name', 'last_name', 'national_id', 'birth_date', 'marital_status',
    'sex', 'phone', 'email', 'address', 'nationality',
)


def get_patient(patient_id) -> Patient:
    patient = Patient.objects.filter(pk=patient_id).first()
    if patient is None:
        raise NotFound(f'Paciente con ID {patient_id} no encontrado.')
    return patient


def list_patients(q: Optional[str] = None):
    queryset = Patient.objects.all()
    if q:
        queryset = queryset.filter(
            Q(first_name__icontains=q) | Q(last_name__icontains=q) | Q(national_id__icontains=q)
        )
    return queryset.order_by('last_name', 'first_name')


def _clean_patient_values(values, exclude_id=None):
    cleaned = {field: values[field] for field in PATIENT_FIELDS if field in values}

    for field in ('first_name', 'last_name'):
        if field in cleaned:
            cleaned[field] = (cleaned[field] or '').strip()
            if not cleaned[field]:
                raise ValidationFailed('Nombre y apellido son obligatorios.', details={'field': field})

    if 'national_id' in cleaned:
        national_id = (cleaned['national_id'] or '').strip() or None
        if national_id:
            duplicates = Patient.objects.filter(national_id=national_id)
            if exclude_id is not None:
                duplicates = duplicates.exclude(pk=exclude_id)
            if duplicates.exists():
                raise Conflict('Ya existe un paciente con ese documento.')
        cleaned['national_id'] = national_id

    if cleaned.get('birth_date'):
        cleaned['birth_date'] = parse_date(cleaned['birth_date'], 'birth_date')
    elif 'birth_date' in cleaned:
        cleaned['birth_date'] = None

    if cleaned.get('sex') and cleaned['sex'] not in SexChoices.values:
        raise ValidationFailed('Sexo inválido.', details={'allowed': SexChoices.values})
    if cleaned.get('marital_status') and cleaned['marital_status'] not in MaritalStatusChoices.values:
        raise ValidationFailed('Estado civil inválido.', details={'allowed': MaritalStatusChoices.values})

    for field in ('marital_status', 'sex', 'phone', 'email', 'address', 'nationality'):
        if field in cleaned and cleaned[field] is None:
            cleaned[field] = ''
    return cleaned


def create_patient(data: Dict[str, Any], actor=None) -> Patient:
    missing = [field for field in ('first_name', 'last_name') if not data.get(field)]
    if missing:
        raise ValidationFailed('Nombre y apellido son obligatorios.', details={'missing': missing})

    with transaction.atomic():
        patient = Patient.objects.create(**_clean_patient_values(data))
    audit_insert(patient, actor)
    log_domain_event('patient.created', entity_type='Patient', entity_id=patient.id)
    return patient


def update_patient(patient_id, data: Dict[str, Any], actor=None) -> Patient:
    with transaction.atomic():
        patient = get_patient(patient_id)
        before = snapshot(patient)
        for field, value in _clean_patient_values(data, exclude_id=patient.id).items():
            setattr(patient, field, value)
        patient.save()
    audit_update(patient, before, actor)
    return patient


def delete_patient(patient_id, actor=None) -> None:
    with transaction.atomic():
        patient = get_patient(patient_id)
        before = snapshot(patient)
        patient.delete()
    audit_delete(Patient._meta.db_table, patient_id, before, actor)
    log_domain_event('patient.deleted', entity_type='Patient', entity_id=patient_id)


# ============================================================================
# Clinical histories
# ============================================================================

def get_history(history_id, for_update: bool = False) -> ClinicalHistory:
    queryset = ClinicalHistory.objects.select_related('patient', 'created_by')
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    history = queryset.filter(pk=history_id).first()
    if history is None:
        raise NotFound(f'Historia clínica con ID {history_id} no encontrada.')
    return history


def list_histories(patient_id: Any = None):
    queryset = ClinicalHistory.objects.select_related('patient', 'created_by')
    patient_id = parse_id(patient_id, 'patient_id')
    if patient_id:
        queryset = queryset.filter(patient_id=patient_id)
    return queryset.order_by('-created_at', '-id')


def latest_history_for_patient(patient_id) -> Optional[ClinicalHistory]:
    return list_histories(patient_id=patient_id).first()


def create_history(data: Dict[str, Any], actor=None) -> ClinicalHistory:
    """
    `data` keys: patient_id, and optionally questionnaire_structured,
    questionnaire (direct answers), dental_questionnaire, observations.
    """
    patient = get_patient(data.get('patient_id'))

    questionnaire = build_questionnaire(
        structured=data.get('questionnaire_structured'),
        direct=data.get('questionnaire'),
    )
    dental = None
    if data.get('dental_questionnaire') is not None:
        dental = build_dental_questionnaire(data['dental_questionnaire'])

    with transaction.atomic():
        history = ClinicalHistory.objects.create(
            patient=patient,
            questionnaire=questionnaire,
            dental_questionnaire=dental,
            observations=data.get('observations') or '',
            created_by=_author(actor),
        )
    audit_insert(history, actor)
    log_domain_event(
        'clinical_history.created',
        entity_type='ClinicalHistory',
        entity_id=history.id,
        entity_ids={'patient_id': patient.id},
        questionnaire_kind=questionnaire['kind'],
    )
    return history


def update_history(history_id, data: Dict[str, Any], actor=None) -> ClinicalHistory:
    """
    Replace questionnaire payloads that are supplied; the replaced payload
    is kept as `previous` on the new one.
    """
    with transaction.atomic():
        history = get_history(history_id, for_update=True)
        before = snapshot(history)

        if data.get('questionnaire_structured') is not None or data.get('questionnaire') is not None:
            history.questionnaire = build_questionnaire(
                structured=data.get('questionnaire_structured'),
                direct=data.get('questionnaire'),
                previous=history.questionnaire,
            )
        if data.get('dental_questionnaire') is not None:
            history.dental_questionnaire = build_dental_questionnaire(
                data['dental_questionnaire'],
                previous=history.dental_questionnaire,
            )
        if 'observations' in data:
            history.observations = data['observations'] or ''
        history.save()

    audit_update(history, before, actor)
    return history


def delete_history(history_id, actor=None) -> None:
    with transaction.atomic():
        history = get_history(history_id)
        before = snapshot(history)
        stored_files = list(history.attachments.values_list('file', flat=True))
        history.delete()
    storage = Attachment._meta.get_field('file').storage
    for name in stored_files:
        storage.delete(name)
    audit_delete(ClinicalHistory._meta.db_table, history_id, before, actor)


# ============================================================================
# Dental charts
# ============================================================================

def get_chart(chart_id) -> DentalChart:
    chart = DentalChart.objects.select_related('history', 'created_by').filter(pk=chart_id).first()
    if chart is None:
        raise NotFound(f'Odontograma con ID {chart_id} no encontrado.')
    return chart


def list_charts():
    return DentalChart.objects.select_related('history', 'created_by').order_by('-created_at', '-version')


def charts_for_history(history_id):
    get_history(history_id)
    return DentalChart.objects.select_related('created_by').filter(history_id=history_id).order_by('-version')


def _next_version(history):
    current = DentalChart.objects.filter(history=history).aggregate(max_version=Max('version'))['max_version']
    return (current or 0) + 1


def _append_version(history, teeth, actor, date=None, notes='', origin='manual'):
    """Insert the next version for `history`; caller holds the history row lock."""
    chart = DentalChart.objects.create(
        history=history,
        version=_next_version(history),
        teeth=teeth,
        date=date or clinic_today(),
        notes=notes,
        created_by=_author(actor),
    )
    metrics.dental_chart_versions_total.labels(origin=origin).inc()
    return chart


def create_chart(data: Dict[str, Any], actor=None) -> DentalChart:
    """
    Append a new chart version to a history.

    `data` keys: history_id, teeth (32 records), optional date, notes.
    The history row is locked while the version is computed so concurrent
    creates for one history get distinct, consecutive versions.
    """
    teeth = validate_teeth(data.get('teeth'))
    date = parse_date(data['date']) if data.get('date') else None

    with transaction.atomic():
        history = get_history(data.get('history_id'), for_update=True)
        chart = _append_version(history, teeth, actor, date=date, notes=data.get('notes') or '')

    audit_insert(chart, actor)
    log_domain_event(
        'dental_chart.version_created',
        entity_type='DentalChart',
        entity_id=chart.id,
        entity_ids={'history_id': history.id},
        version=chart.version,
    )
    return chart


def latest_chart(history_id) -> DentalChart:
    """
    Highest version for a history. With no chart yet, version 1 is seeded
    with every tooth healthy and attributed to the system (no actor).
    """
    chart = DentalChart.objects.filter(history_id=history_id).order_by('-version').first()
    if chart is not None:
        return chart

    with transaction.atomic():
        history = get_history(history_id, for_update=True)
        chart = DentalChart.objects.filter(history=history).order_by('-version').first()
        if chart is not None:
            return chart
        chart = _append_version(history, healthy_teeth(), None, notes=SEED_CHART_NOTES, origin='seed')

    audit_insert(chart, None)
    log_domain_event(
        'dental_chart.seeded',
        entity_type='DentalChart',
        entity_id=chart.id,
        entity_ids={'history_id': history.id},
        version=chart.version,
    )
    return chart


def update_chart_notes(chart_id, data: Dict[str, Any], actor=None) -> DentalChart:
    """Only `notes` may change; chart content changes go through create_chart."""
    rejected = sorted(set(data) - {'notes'})
    if rejected:
        raise ValidationFailed(
            'Solo se pueden modificar las observaciones. Cree una nueva versión para cambiar los dientes.',
            details={'fields': rejected},
        )

    chart = get_chart(chart_id)
    before = snapshot(chart)
    chart.notes = data.get('notes') or ''
    chart.save(update_fields=['notes'])
    audit_update(chart, before, actor)
    return chart


def delete_chart(chart_id, actor=None) -> None:
    chart = get_chart(chart_id)
    before = snapshot(chart)
    chart.delete()
    audit_delete(DentalChart._meta.db_table, chart_id, before, actor)
    log_domain_event('dental_chart.deleted', entity_type='DentalChart', entity_id=chart_id)


def chart_statistics(chart_id) -> Dict[str, Any]:
    chart = get_chart(chart_id)
    stats = chart_stats(chart.teeth)
    stats.update({
        'chart_id': chart.id,
        'history_id': chart.history_id,
        'version': chart.version,
        'history_versions': DentalChart.objects.filter(history_id=chart.history_id).count(),
    })
    return stats


# ============================================================================
# Encounters
# ============================================================================

def _clean_oral_status(value):
    if not isinstance(value, dict):
        raise ValidationFailed('El estado bucal general es obligatorio.', details={'field': 'oral_status'})
    for field in ('tartar', 'periodontal_disease'):
        if not isinstance(value.get(field), bool):
            raise ValidationFailed(
                f'El campo {field} del estado bucal debe ser booleano.',
                details={'field': f'oral_status.{field}'},
            )
    if value.get('hygiene') not in OralHygieneChoices.values:
        raise ValidationFailed(
            'Higiene bucal inválida.',
            details={'field': 'oral_status.hygiene', 'allowed': OralHygieneChoices.values},
        )
    return {
        'tartar': value['tartar'],
        'periodontal_disease': value['periodontal_disease'],
        'hygiene': value['hygiene'],
        'other': value.get('other') or '',
    }


def _require_text(data, field, message):
    text = (data.get(field) or '').strip()
    if not text:
        raise ValidationFailed(message, details={'field': field})
    return text


def get_encounter(encounter_id) -> Encounter:
    encounter = (
        Encounter.objects
        .select_related('appointment__patient', 'appointment__template__specialty', 'history', 'attended_by')
        .filter(pk=encounter_id)
        .first()
    )
    if encounter is None:
        raise NotFound(f'Atención con ID {encounter_id} no encontrada.')
    return encounter


def list_encounters(patient_id: Any = None, history_id: Any = None, attended_by: Any = None):
    queryset = Encounter.objects.select_related(
        'appointment__patient', 'appointment__template__specialty', 'history', 'attended_by'
    )
    patient_id = parse_id(patient_id, 'patient_id')
    history_id = parse_id(history_id, 'history_id')
    attended_by = parse_id(attended_by, 'attended_by')
    if patient_id:
        queryset = queryset.filter(appointment__patient_id=patient_id)
    if history_id:
        queryset = queryset.filter(history_id=history_id)
    if attended_by:
        queryset = queryset.filter(attended_by_id=attended_by)
    return queryset.order_by('-attended_at')


def encounter_for_appointment(appointment_id) -> Encounter:
    encounter = list_encounters().filter(appointment_id=appointment_id).first()
    if encounter is None:
        raise NotFound('No se encontró atención para esta cita.')
    return encounter


def create_encounter(data: Dict[str, Any], actor) -> Encounter:
    """
    Record an encounter for a scheduled appointment and mark it attended.

    Rules, in order: appointment exists; appointment is scheduled; it has
    no encounter yet; the patient has a clinical history (latest is used).
    """
    with transaction.atomic():
        appointment = (
            Appointment.objects.select_for_update(of=('self',))
            .select_related('patient')
            .filter(pk=data.get('appointment_id'))
            .first()
        )
        if appointment is None:
            raise NotFound('Cita no encontrada.')
        if appointment.state != AppointmentStateChoices.SCHEDULED:
            raise ValidationFailed(
                'Solo se pueden atender citas en estado programada.',
                details={'state': appointment.state},
            )
        if Encounter.objects.filter(appointment=appointment).exists():
            raise Conflict('Esta cita ya ha sido atendida.')

        history = latest_history_for_patient(appointment.patient_id)
        if history is None:
            raise ValidationFailed('No se encontró historia clínica para este paciente.')

        encounter = Encounter(
            appointment=appointment,
            history=history,
            presumptive_diagnosis=_require_text(
                data, 'presumptive_diagnosis', 'El diagnóstico presuntivo es obligatorio.'
            ),
            treatment_plan=_require_text(data, 'treatment_plan', 'El plan de tratamiento es obligatorio.'),
            notes=data.get('notes') or '',
            oral_status=_clean_oral_status(data.get('oral_status')),
            attended_by=actor,
        )
        encounter.save()

        appointment_before = snapshot(appointment)
        appointment.state = AppointmentStateChoices.ATTENDED
        appointment.save(update_fields=['state', 'updated_at'])

    audit_insert(encounter, actor)
    audit_update(appointment, appointment_before, actor)
    metrics.encounters_total.labels(action='created').inc()
    metrics.appointment_state_changes_total.labels(
        from_state=AppointmentStateChoices.SCHEDULED, to_state=AppointmentStateChoices.ATTENDED
    ).inc()
    log_appointment_transition(
        appointment, AppointmentStateChoices.SCHEDULED, AppointmentStateChoices.ATTENDED,
        encounter_id=encounter.id,
    )
    log_domain_event(
        'encounter.created',
        entity_type='Encounter',
        entity_id=encounter.id,
        entity_ids={'appointment_id': appointment.id, 'history_id': history.id},
    )
    return encounter


def _ensure_author(encounter, actor, verb):
    if encounter.attended_by_id != getattr(actor, 'pk', None):
        raise Forbidden(f'Solo puedes {verb} tus propias atenciones.')


def update_encounter(encounter_id, data: Dict[str, Any], actor) -> Encounter:
    with transaction.atomic():
        encounter = get_encounter(encounter_id)
        _ensure_author(encounter, actor, 'modificar')
        before = snapshot(encounter)

        if 'presumptive_diagnosis' in data:
            encounter.presumptive_diagnosis = _require_text(
                data, 'presumptive_diagnosis', 'El diagnóstico presuntivo es obligatorio.'
            )
        if 'treatment_plan' in data:
            encounter.treatment_plan = _require_text(data, 'treatment_plan', 'El plan de tratamiento es obligatorio.')
        if 'notes' in data:
            encounter.notes = data['notes'] or ''
        if 'oral_status' in data:
            encounter.oral_status = _clean_oral_status(data['oral_status'])
        encounter.save()

    audit_update(encounter, before, actor)
    return encounter


def delete_encounter(encounter_id, actor) -> None:
    """Remove an encounter and return its appointment to `scheduled`."""
    with transaction.atomic():
        encounter = get_encounter(encounter_id)
        _ensure_author(encounter, actor, 'eliminar')

        appointment = Appointment.objects.select_for_update().get(pk=encounter.appointment_id)
        before = snapshot(encounter)
        appointment_before = snapshot(appointment)
        previous_state = appointment.state

        encounter.delete()
        appointment.state = AppointmentStateChoices.SCHEDULED
        appointment.save(update_fields=['state', 'updated_at'])

    audit_delete(Encounter._meta.db_table, encounter_id, before, actor)
    audit_update(appointment, appointment_before, actor)
    metrics.encounters_total.labels(action='deleted').inc()
    metrics.appointment_state_changes_total.labels(
        from_state=previous_state, to_state=AppointmentStateChoices.SCHEDULED
    ).inc()
    log_appointment_transition(appointment, previous_state, AppointmentStateChoices.SCHEDULED)
    log_domain_event('encounter.deleted', entity_type='Encounter', entity_id=encounter_id)


def encounter_stats() -> Dict[str, int]:
    today = clinic_today()
    encounters = Encounter.objects.all()
    return {
        'total': encounters.count(),
        'today': encounters.filter(attended_at__date=today).count(),
        'last_7_days': encounters.filter(attended_at__date__gte=today - timedelta(days=7)).count(),
        'this_month': encounters.filter(
            attended_at__year=today.year, attended_at__month=today.month
        ).count(),
    }


# ============================================================================
# Attachments
# ============================================================================

def get_attachment(attachment_id) -> Attachment:
    attachment = Attachment.objects.select_related('history', 'created_by').filter(pk=attachment_id).first()
    if attachment is None:
        raise NotFound(f'Adjunto con ID {attachment_id} no encontrado.')
    return attachment


def list_attachments(history_id: Any = None):
    queryset = Attachment.objects.select_related('created_by')
    history_id = parse_id(history_id, 'history_id')
    if history_id:
        queryset = queryset.filter(history_id=history_id)
    return queryset.order_by('-uploaded_at', '-id')


def _clean_kind(kind):
    kind = kind or AttachmentKindChoices.DOCUMENT
    if kind not in AttachmentKindChoices.values:
        raise ValidationFailed('Tipo de adjunto inválido.', details={'allowed': AttachmentKindChoices.values})
    return kind


def upload_attachment(history_id, uploaded_file, data: Dict[str, Any], actor=None) -> Attachment:
    """
    Store an uploaded file for a history.

    Rules: history exists; a file is present; size <= ATTACHMENT_MAX_BYTES;
    MIME type in ALLOWED_ATTACHMENT_MIME_TYPES.
    """
    history = get_history(history_id)
    if uploaded_file is None:
        raise ValidationFailed('No se proporcionó ningún archivo.')

    max_bytes = settings.ATTACHMENT_MAX_BYTES
    if uploaded_file.size > max_bytes:
        raise ValidationFailed(
            f'El archivo supera el tamaño máximo permitido de {max_bytes // (1024 * 1024)}MB.',
            details={'size_bytes': uploaded_file.size, 'max_bytes': max_bytes},
        )

    mime_type = getattr(uploaded_file, 'content_type', None)
    if mime_type not in ALLOWED_ATTACHMENT_MIME_TYPES:
        raise ValidationFailed(
            'Tipo de archivo no permitido.',
            details={'mime_type': mime_type, 'allowed': list(ALLOWED_ATTACHMENT_MIME_TYPES)},
        )

    attachment = Attachment(
        history=history,
        file=uploaded_file,
        original_name=uploaded_file.name,
        kind=_clean_kind(data.get('kind')),
        mime_type=mime_type,
        size_bytes=uploaded_file.size,
        description=data.get('description') or '',
        created_by=_author(actor),
    )
    try:
        attachment.save()
    except DatabaseError:
        if attachment.file.name:
            attachment.file.storage.delete(attachment.file.name)
        raise

    audit_insert(attachment, actor)
    log_domain_event(
        'attachment.uploaded',
        entity_type='Attachment',
        entity_id=attachment.id,
        entity_ids={'history_id': history.id},
        mime_type=mime_type,
        size_bytes=attachment.size_bytes,
    )
    return attachment


def update_attachment(attachment_id, data: Dict[str, Any], actor=None) -> Attachment:
    rejected = sorted(set(data) - {'description', 'kind'})
    if rejected:
        raise ValidationFailed(
            'Solo se pueden modificar la descripción y el tipo del adjunto.',
            details={'fields': rejected},
        )

    attachment = get_attachment(attachment_id)
    before = snapshot(attachment)
    if 'description' in data:
        attachment.description = data['description'] or ''
    if 'kind' in data:
        attachment.kind = _clean_kind(data['kind'])
    attachment.save(update_fields=['description', 'kind'])
    audit_update(attachment, before, actor)
    return attachment


def delete_attachment(attachment_id, actor=None) -> None:
    attachment = get_attachment(attachment_id)
    before = snapshot(attachment)
    file_name = attachment.file.name
    storage = attachment.file.storage

    attachment.delete()
    if file_name:
        storage.delete(file_name)

    audit_delete(Attachment._meta.db_table, attachment_id, before, actor)
    log_domain_event('attachment.deleted', entity_type='Attachment', entity_id=attachment_id)
