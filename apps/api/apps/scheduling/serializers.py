"""
Scheduling serializers.

Read serializers render model rows; write serializers only shape request
input. Times are accepted as ``HH:MM`` strings and checked by the
services, which own every booking rule.
"""
from rest_framework import serializers

from .models import (
    Appointment,
    AppointmentStateChoices,
    ClinicSchedule,
    Shift,
    ShiftStateChoices,
    Specialty,
    TemplateStatusChoices,
    TimeSlotTemplate,
)

HHMM = '%H:%M'


# ============================================================================
# Specialties / clinic hours
# ============================================================================

class SpecialtySerializer(serializers.ModelSerializer):
    class Meta:
        model = Specialty
        fields = ['id', 'name', 'description', 'is_active', 'created_at', 'updated_at']
        read_only_fields = fields


class SpecialtyWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class ClinicScheduleSerializer(serializers.ModelSerializer):
    opening_time = serializers.TimeField(format=HHMM)
    closing_time = serializers.TimeField(format=HHMM)

    class Meta:
        model = ClinicSchedule
        fields = [
            'id', 'days_of_week', 'opening_time', 'closing_time',
            'is_active', 'description', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ClinicScheduleWriteSerializer(serializers.Serializer):
    days_of_week = serializers.ListField(child=serializers.IntegerField())
    opening_time = serializers.CharField()
    closing_time = serializers.CharField()
    is_active = serializers.BooleanField(required=False)
    description = serializers.CharField(required=False, allow_blank=True)


# ============================================================================
# Time-slot templates
# ============================================================================

class TimeSlotTemplateSerializer(serializers.ModelSerializer):
    specialty_name = serializers.CharField(source='specialty.name', read_only=True)
    responsible_name = serializers.CharField(source='responsible.full_name', read_only=True)
    day_of_week_display = serializers.CharField(source='get_day_of_week_display', read_only=True)
    start_time = serializers.TimeField(format=HHMM)
    end_time = serializers.TimeField(format=HHMM)
    computed_capacity = serializers.IntegerField(read_only=True)

    class Meta:
        model = TimeSlotTemplate
        fields = [
            'id',
            'day_of_week',
            'day_of_week_display',
            'specialty',
            'specialty_name',
            'responsible',
            'responsible_name',
            'start_time',
            'end_time',
            'appointment_duration_minutes',
            'max_capacity',
            'computed_capacity',
            'status',
            'notes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class TimeSlotTemplateWriteSerializer(serializers.Serializer):
    day_of_week = serializers.IntegerField()
    specialty_id = serializers.IntegerField()
    responsible_id = serializers.IntegerField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    appointment_duration_minutes = serializers.IntegerField(required=False)
    max_capacity = serializers.IntegerField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=TemplateStatusChoices.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


# ============================================================================
# Appointments
# ============================================================================

class AppointmentListSerializer(serializers.ModelSerializer):
    patient_name = serializers.SerializerMethodField()
    specialty_name = serializers.CharField(source='template.specialty.name', read_only=True)
    start_time = serializers.TimeField(format=HHMM)
    end_time = serializers.TimeField(format=HHMM)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'patient',
            'patient_name',
            'template',
            'specialty_name',
            'date',
            'start_time',
            'end_time',
            'state',
        ]
        read_only_fields = fields

    def get_patient_name(self, obj):
        return obj.patient.full_name


class AppointmentDetailSerializer(AppointmentListSerializer):
    template = TimeSlotTemplateSerializer(read_only=True)
    state_display = serializers.CharField(source='get_state_display', read_only=True)
    has_encounter = serializers.SerializerMethodField()

    class Meta(AppointmentListSerializer.Meta):
        fields = AppointmentListSerializer.Meta.fields + [
            'state_display',
            'reason',
            'notes',
            'has_encounter',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_has_encounter(self, obj):
        return hasattr(obj, 'encounter')


class AppointmentWriteSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField()
    template_id = serializers.IntegerField()
    date = serializers.CharField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    state = serializers.ChoiceField(choices=AppointmentStateChoices.choices, required=False)
    reason = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentRescheduleSerializer(serializers.Serializer):
    template_id = serializers.IntegerField()
    date = serializers.CharField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    reason = serializers.CharField(required=False, allow_blank=True)


class AppointmentStateSerializer(serializers.Serializer):
    state = serializers.ChoiceField(choices=AppointmentStateChoices.choices)
    notes = serializers.CharField(required=False, allow_blank=True)


# ============================================================================
# Shifts
# ============================================================================

class ShiftSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)

    class Meta:
        model = Shift
        fields = [
            'id', 'patient', 'patient_name', 'starts_at', 'ends_at', 'state',
            'student', 'supervisor', 'room', 'created_at',
        ]
        read_only_fields = fields


class ShiftWriteSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField()
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    state = serializers.ChoiceField(choices=ShiftStateChoices.choices, required=False)
    student_id = serializers.IntegerField(required=False, allow_null=True)
    supervisor_id = serializers.IntegerField(required=False, allow_null=True)
    room = serializers.CharField(required=False, allow_blank=True, max_length=50)
