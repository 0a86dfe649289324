"""
Scheduling models: specialty, clinic_schedule, time_slot_template,
appointment, shift.

Booking rules live in `apps.scheduling.services`; models only carry the
schema, DB-level constraints and small derived properties.
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q

from .timeutils import to_minutes


# ============================================================================
# Enums
# ============================================================================

class DayOfWeekChoices(models.IntegerChoices):
    """ISO weekday numbering."""
    MONDAY = 1, 'Lunes'
    TUESDAY = 2, 'Martes'
    WEDNESDAY = 3, 'Miércoles'
    THURSDAY = 4, 'Jueves'
    FRIDAY = 5, 'Viernes'
    SATURDAY = 6, 'Sábado'
    SUNDAY = 7, 'Domingo'


class TemplateStatusChoices(models.TextChoices):
    ACTIVE = 'active', 'Activa'
    INACTIVE = 'inactive', 'Inactiva'
    SUSPENDED = 'suspended', 'Suspendida'


class AppointmentStateChoices(models.TextChoices):
    """
    scheduled -> attended | cancelled | no_show | rescheduled

    `attended` is set by encounter creation and blocks further edits.
    """
    SCHEDULED = 'scheduled', 'Programada'
    ATTENDED = 'attended', 'Atendida'
    CANCELLED = 'cancelled', 'Cancelada'
    NO_SHOW = 'no_show', 'No asistió'
    RESCHEDULED = 'rescheduled', 'Reagendada'


class ShiftStateChoices(models.TextChoices):
    PENDING = 'pending', 'Pendiente'
    CONFIRMED = 'confirmed', 'Confirmado'
    ATTENDED = 'attended', 'Atendido'
    CANCELLED = 'cancelled', 'Cancelado'


# ============================================================================
# Specialties and clinic hours
# ============================================================================

class Specialty(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'specialty'
        verbose_name = 'Specialty'
        verbose_name_plural = 'Specialties'
        ordering = ['name']

    def __str__(self):
        return self.name


class ClinicSchedule(models.Model):
    """Opening hours of the clinic for a set of weekdays."""
    days_of_week = models.JSONField(
        default=list,
        help_text='ISO weekdays (1=Monday .. 7=Sunday) this schedule applies to'
    )
    opening_time = models.TimeField()
    closing_time = models.TimeField()
    is_active = models.BooleanField(default=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clinic_schedule'
        verbose_name = 'Clinic Schedule'
        verbose_name_plural = 'Clinic Schedules'
        ordering = ['opening_time']
        constraints = [
            models.CheckConstraint(
                check=Q(opening_time__lt=F('closing_time')),
                name='ck_clinic_schedule_open_before_close',
            ),
        ]

    def __str__(self):
        days = ','.join(str(d) for d in self.days_of_week)
        return f"[{days}] {self.opening_time:%H:%M}-{self.closing_time:%H:%M}"

    def covers(self, day_of_week, start, end):
        return (
            self.is_active
            and day_of_week in self.days_of_week
            and self.opening_time <= start
            and end <= self.closing_time
        )


# ============================================================================
# Time-slot templates
# ============================================================================

class TimeSlotTemplate(models.Model):
    """
    Recurring weekly availability window of one staff member in one specialty.

    Appointments on a given date are cut from [start_time, end_time) in
    steps of `appointment_duration_minutes`.
    """
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeekChoices.choices)
    specialty = models.ForeignKey(
        Specialty,
        on_delete=models.PROTECT,
        related_name='templates'
    )
    responsible = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='time_slot_templates',
        help_text='Staff member (teacher/student) in charge of this window'
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    appointment_duration_minutes = models.PositiveSmallIntegerField(
        default=30,
        validators=[MinValueValidator(15), MaxValueValidator(120)]
    )
    max_capacity = models.PositiveIntegerField(
        blank=True,
        null=True,
        help_text='Fixed capacity; computed from window/duration when empty'
    )
    status = models.CharField(
        max_length=20,
        choices=TemplateStatusChoices.choices,
        default=TemplateStatusChoices.ACTIVE
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'time_slot_template'
        verbose_name = 'Time Slot Template'
        verbose_name_plural = 'Time Slot Templates'
        ordering = ['day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['day_of_week', 'specialty'], name='idx_template_day_specialty'),
            models.Index(fields=['responsible', 'day_of_week'], name='idx_template_responsible_day'),
            models.Index(fields=['status'], name='idx_template_status'),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(start_time__lt=F('end_time')),
                name='ck_template_start_before_end',
            ),
            models.CheckConstraint(
                check=Q(day_of_week__gte=1) & Q(day_of_week__lte=7),
                name='ck_template_day_of_week_range',
            ),
        ]

    def __str__(self):
        return (
            f"{self.specialty} {self.get_day_of_week_display()} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"
        )

    @property
    def is_active(self):
        return self.status == TemplateStatusChoices.ACTIVE

    @property
    def computed_capacity(self):
        if self.max_capacity:
            return self.max_capacity
        window = to_minutes(self.end_time) - to_minutes(self.start_time)
        return window // self.appointment_duration_minutes


# ============================================================================
# Appointments
# ============================================================================

class Appointment(models.Model):
    """
    Concrete booking cut from a time-slot template on a calendar date.

    Rescheduling rewrites date/time/template on this same row, sets the
    state to `rescheduled` and appends a note; the audit log keeps the
    prior values.
    """
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    template = models.ForeignKey(
        TimeSlotTemplate,
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    state = models.CharField(
        max_length=20,
        choices=AppointmentStateChoices.choices,
        default=AppointmentStateChoices.SCHEDULED
    )
    reason = models.TextField(blank=True, help_text='Reason for the visit')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='appointments_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['date', 'start_time']
        indexes = [
            models.Index(fields=['template', 'date'], name='idx_appointment_template_date'),
            models.Index(fields=['patient', 'date'], name='idx_appointment_patient_date'),
            models.Index(fields=['state'], name='idx_appointment_state'),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(start_time__lt=F('end_time')),
                name='ck_appointment_start_before_end',
            ),
        ]

    def __str__(self):
        return f"{self.patient} {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    @property
    def is_attended(self):
        return self.state == AppointmentStateChoices.ATTENDED


# ============================================================================
# Shifts
# ============================================================================

class Shift(models.Model):
    """
    Free-form clinic block for a patient with an optional student, a
    supervising teacher and a room.
    """
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='shifts'
    )
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    state = models.CharField(
        max_length=20,
        choices=ShiftStateChoices.choices,
        default=ShiftStateChoices.PENDING
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='shifts_as_student'
    )
    supervisor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='shifts_as_supervisor'
    )
    room = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'shift'
        verbose_name = 'Shift'
        verbose_name_plural = 'Shifts'
        ordering = ['starts_at']
        indexes = [
            models.Index(fields=['starts_at'], name='idx_shift_starts_at'),
        ]

    def __str__(self):
        return f"{self.patient} {self.starts_at:%Y-%m-%d %H:%M}"
