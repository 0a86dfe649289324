from django.contrib import admin

from .models import Attachment, ClinicalHistory, DentalChart, Encounter, Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['id', 'last_name', 'first_name', 'national_id', 'phone', 'registered_at']
    search_fields = ['last_name', 'first_name', 'national_id']
    readonly_fields = ['registered_at', 'updated_at']


@admin.register(ClinicalHistory)
class ClinicalHistoryAdmin(admin.ModelAdmin):
    list_display = ['id', 'patient', 'recorded_at', 'created_by', 'created_at']
    raw_id_fields = ['patient', 'created_by']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(DentalChart)
class DentalChartAdmin(admin.ModelAdmin):
    """Charts are append-only; content is read-only here."""
    list_display = ['id', 'history', 'version', 'date', 'created_by', 'created_at']
    raw_id_fields = ['history', 'created_by']
    readonly_fields = ['history', 'version', 'teeth', 'date', 'created_by', 'created_at']


@admin.register(Encounter)
class EncounterAdmin(admin.ModelAdmin):
    list_display = ['id', 'appointment', 'history', 'attended_by', 'attended_at']
    raw_id_fields = ['appointment', 'history', 'attended_by']
    readonly_fields = ['attended_at', 'updated_at']


@admin.register(Attachment)
class AttachmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'history', 'original_name', 'kind', 'mime_type', 'size_bytes', 'uploaded_at']
    list_filter = ['kind', 'mime_type']
    raw_id_fields = ['history', 'created_by']
