"""
Clinical serializers.

Read serializers render rows; write serializers only shape input for
`apps.clinical.services`, which owns the rules.
"""
from rest_framework import serializers

from .models import (
    Attachment,
    AttachmentKindChoices,
    ClinicalHistory,
    DentalChart,
    Encounter,
    MaritalStatusChoices,
    Patient,
    SexChoices,
)


# ============================================================================
# Patients
# ============================================================================

class PatientListSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'first_name', 'last_name', 'full_name', 'national_id', 'phone', 'registered_at']
        read_only_fields = fields


class PatientDetailSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'full_name',
            'national_id',
            'birth_date',
            'marital_status',
            'sex',
            'phone',
            'email',
            'address',
            'nationality',
            'registered_at',
            'updated_at',
        ]
        read_only_fields = fields


class PatientWriteSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    national_id = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    birth_date = serializers.DateField(required=False, allow_null=True)
    marital_status = serializers.ChoiceField(
        choices=MaritalStatusChoices.choices, required=False, allow_blank=True
    )
    sex = serializers.ChoiceField(choices=SexChoices.choices, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    email = serializers.EmailField(max_length=200, required=False, allow_blank=True)
    address = serializers.CharField(max_length=200, required=False, allow_blank=True)
    nationality = serializers.CharField(max_length=50, required=False, allow_blank=True)


# ============================================================================
# Clinical histories
# ============================================================================

class ClinicalHistorySerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)

    class Meta:
        model = ClinicalHistory
        fields = [
            'id',
            'patient',
            'patient_name',
            'recorded_at',
            'questionnaire',
            'dental_questionnaire',
            'observations',
            'created_by',
            'created_by_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ClinicalHistoryWriteSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField()
    questionnaire_structured = serializers.JSONField(required=False)
    questionnaire = serializers.JSONField(required=False)
    dental_questionnaire = serializers.JSONField(required=False)
    observations = serializers.CharField(required=False, allow_blank=True)


# ============================================================================
# Dental charts
# ============================================================================

class DentalChartSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)

    class Meta:
        model = DentalChart
        fields = [
            'id', 'history', 'date', 'version', 'teeth', 'notes',
            'created_by', 'created_by_name', 'created_at',
        ]
        read_only_fields = fields


class DentalChartWriteSerializer(serializers.Serializer):
    history_id = serializers.IntegerField()
    date = serializers.CharField(required=False)
    teeth = serializers.JSONField()
    notes = serializers.CharField(required=False, allow_blank=True)


# ============================================================================
# Encounters
# ============================================================================

class EncounterSerializer(serializers.ModelSerializer):
    patient_id = serializers.IntegerField(source='appointment.patient_id', read_only=True)
    patient_name = serializers.CharField(source='appointment.patient.full_name', read_only=True)
    appointment_date = serializers.DateField(source='appointment.date', read_only=True)
    attended_by_name = serializers.CharField(source='attended_by.full_name', read_only=True)

    class Meta:
        model = Encounter
        fields = [
            'id',
            'appointment',
            'appointment_date',
            'patient_id',
            'patient_name',
            'history',
            'presumptive_diagnosis',
            'treatment_plan',
            'notes',
            'oral_status',
            'attended_by',
            'attended_by_name',
            'attended_at',
            'updated_at',
        ]
        read_only_fields = fields


class EncounterWriteSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField()
    presumptive_diagnosis = serializers.CharField(allow_blank=True)
    treatment_plan = serializers.CharField(allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    oral_status = serializers.JSONField()


# ============================================================================
# Attachments
# ============================================================================

class AttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Attachment
        fields = [
            'id', 'history', 'original_name', 'kind', 'mime_type', 'size_bytes',
            'description', 'created_by', 'uploaded_at',
        ]
        read_only_fields = fields


class AttachmentUploadSerializer(serializers.Serializer):
    history_id = serializers.IntegerField()
    file = serializers.FileField(required=False)
    kind = serializers.ChoiceField(choices=AttachmentKindChoices.choices, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
