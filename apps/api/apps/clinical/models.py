"""
Clinical models: patient, clinical_history, dental_chart, encounter, attachment.

Ownership:
- Patient owns its clinical histories (cascade).
- ClinicalHistory owns dental charts, attachments and encounters (cascade).
- Appointment owns its encounter 1:1 (cascade).
"""
import os
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


# ============================================================================
# Enums
# ============================================================================

class SexChoices(models.TextChoices):
    FEMALE = 'female', 'Femenino'
    MALE = 'male', 'Masculino'
    OTHER = 'other', 'Otro'


class MaritalStatusChoices(models.TextChoices):
    SINGLE = 'single', 'Soltero/a'
    MARRIED = 'married', 'Casado/a'
    DIVORCED = 'divorced', 'Divorciado/a'
    WIDOWED = 'widowed', 'Viudo/a'
    OTHER = 'other', 'Otro'


class OralHygieneChoices(models.TextChoices):
    VERY_GOOD = 'very_good', 'Muy bueno'
    GOOD = 'good', 'Bueno'
    POOR = 'poor', 'Deficiente'
    BAD = 'bad', 'Malo'


class AttachmentKindChoices(models.TextChoices):
    XRAY = 'xray', 'Radiografía'
    PHOTO = 'photo', 'Fotografía'
    LAB_RESULT = 'lab_result', 'Análisis'
    DOCUMENT = 'document', 'Documento'
    OTHER = 'other', 'Otro'


# ============================================================================
# Patients
# ============================================================================

class Patient(models.Model):
    """Patient demographics and contact data."""
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    national_id = models.CharField(
        max_length=50,
        unique=True,
        blank=True,
        null=True,
        help_text='National identity document number'
    )
    birth_date = models.DateField(blank=True, null=True)
    marital_status = models.CharField(
        max_length=20,
        choices=MaritalStatusChoices.choices,
        blank=True
    )
    sex = models.CharField(max_length=10, choices=SexChoices.choices, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    email = models.EmailField(max_length=200, blank=True)
    address = models.CharField(max_length=200, blank=True)
    nationality = models.CharField(max_length=50, blank=True)
    registered_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# ============================================================================
# Clinical histories
# ============================================================================

class ClinicalHistory(models.Model):
    """
    Intake record of a patient.

    `questionnaire` and `dental_questionnaire` hold tagged payloads
    ``{kind, version, data, recorded_at, previous}`` built by
    `apps.clinical.questionnaires`.
    """
    patient = models.ForeignKey(
        Patient,
        on_delete=models.CASCADE,
        related_name='clinical_histories'
    )
    recorded_at = models.DateTimeField(default=timezone.now)
    questionnaire = models.JSONField(default=dict)
    dental_questionnaire = models.JSONField(blank=True, null=True)
    observations = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='clinical_histories_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clinical_history'
        verbose_name = 'Clinical History'
        verbose_name_plural = 'Clinical Histories'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['patient', 'created_at'], name='idx_history_patient_created'),
        ]

    def __str__(self):
        return f"Historia #{self.pk} - {self.patient}"


# ============================================================================
# Dental charts
# ============================================================================

class DentalChart(models.Model):
    """
    One version of a history's odontogram.

    Versions per history are 1, 2, 3... and rows are never rewritten;
    only `notes` may change after creation.
    """
    history = models.ForeignKey(
        ClinicalHistory,
        on_delete=models.CASCADE,
        related_name='dental_charts'
    )
    date = models.DateField(default=timezone.localdate)
    version = models.PositiveIntegerField()
    teeth = models.JSONField(help_text='32 tooth records')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='dental_charts_created',
        help_text='Null when seeded by the system'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'dental_chart'
        verbose_name = 'Dental Chart'
        verbose_name_plural = 'Dental Charts'
        ordering = ['history', '-version']
        constraints = [
            models.UniqueConstraint(fields=['history', 'version'], name='uq_dental_chart_history_version'),
        ]

    def __str__(self):
        return f"Odontograma v{self.version} (historia #{self.history_id})"


# ============================================================================
# Encounters
# ============================================================================

class Encounter(models.Model):
    """
    Clinical record of an attended appointment.

    `oral_status`: {tartar: bool, periodontal_disease: bool,
    hygiene: OralHygieneChoices, other: str}
    """
    appointment = models.OneToOneField(
        'scheduling.Appointment',
        on_delete=models.CASCADE,
        related_name='encounter'
    )
    history = models.ForeignKey(
        ClinicalHistory,
        on_delete=models.CASCADE,
        related_name='encounters'
    )
    presumptive_diagnosis = models.TextField()
    treatment_plan = models.TextField()
    notes = models.TextField(blank=True)
    oral_status = models.JSONField(default=dict)
    attended_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='encounters_attended'
    )
    attended_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'encounter'
        verbose_name = 'Encounter'
        verbose_name_plural = 'Encounters'
        ordering = ['-attended_at']
        indexes = [
            models.Index(fields=['attended_by', 'attended_at'], name='idx_encounter_attended_by'),
            models.Index(fields=['history'], name='idx_encounter_history'),
        ]

    def __str__(self):
        return f"Atención #{self.pk} (cita #{self.appointment_id})"


# ============================================================================
# Attachments
# ============================================================================

def attachment_upload_to(instance, filename):
    """attachments/<history id>/<uuid><ext>; the original name is kept on the row."""
    extension = os.path.splitext(filename)[1].lower()
    return f"attachments/{instance.history_id}/{uuid.uuid4().hex}{extension}"


class Attachment(models.Model):
    history = models.ForeignKey(
        ClinicalHistory,
        on_delete=models.CASCADE,
        related_name='attachments'
    )
    file = models.FileField(upload_to=attachment_upload_to, max_length=255)
    original_name = models.CharField(max_length=255)
    kind = models.CharField(
        max_length=50,
        choices=AttachmentKindChoices.choices,
        default=AttachmentKindChoices.DOCUMENT
    )
    mime_type = models.CharField(max_length=100)
    size_bytes = models.PositiveIntegerField()
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='attachments_uploaded'
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'attachment'
        verbose_name = 'Attachment'
        verbose_name_plural = 'Attachments'
        ordering = ['-uploaded_at', '-id']
        indexes = [
            models.Index(fields=['history', 'uploaded_at'], name='idx_attachment_history'),
        ]

    def __str__(self):
        return self.original_name
