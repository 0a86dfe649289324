from django.contrib import admin

from .models import Appointment, ClinicSchedule, Shift, Specialty, TimeSlotTemplate


@admin.register(Specialty)
class SpecialtyAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']


@admin.register(ClinicSchedule)
class ClinicScheduleAdmin(admin.ModelAdmin):
    list_display = ['id', 'days_of_week', 'opening_time', 'closing_time', 'is_active']
    list_filter = ['is_active']


@admin.register(TimeSlotTemplate)
class TimeSlotTemplateAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'specialty', 'responsible', 'day_of_week',
        'start_time', 'end_time', 'appointment_duration_minutes', 'status',
    ]
    list_filter = ['status', 'day_of_week', 'specialty']
    raw_id_fields = ['responsible']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['id', 'patient', 'template', 'date', 'start_time', 'end_time', 'state']
    list_filter = ['state', 'date']
    raw_id_fields = ['patient', 'template', 'created_by']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'date'


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ['id', 'patient', 'starts_at', 'ends_at', 'state', 'student', 'supervisor', 'room']
    list_filter = ['state', 'room']
    raw_id_fields = ['patient', 'student', 'supervisor']
