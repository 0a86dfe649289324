"""
Scheduling API views.

Thin HTTP layer over `apps.scheduling.services`: viewsets shape input with
the write serializers, call the service with the requesting user as actor
and render the result with the read serializers.
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from . import services
from .models import ClinicSchedule, Specialty
from .permissions import (
    AppointmentPermission,
    SchedulingCatalogPermission,
    ShiftPermission,
    TimeSlotTemplatePermission,
)
from .serializers import (
    AppointmentDetailSerializer,
    AppointmentListSerializer,
    AppointmentRescheduleSerializer,
    AppointmentStateSerializer,
    AppointmentWriteSerializer,
    ClinicScheduleSerializer,
    ClinicScheduleWriteSerializer,
    ShiftSerializer,
    ShiftWriteSerializer,
    SpecialtySerializer,
    SpecialtyWriteSerializer,
    TimeSlotTemplateSerializer,
    TimeSlotTemplateWriteSerializer,
)


def _validated(serializer_class, request, partial=False):
    serializer = serializer_class(data=request.data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


# ============================================================================
# Appointments
# ============================================================================

class AppointmentViewSet(viewsets.GenericViewSet):
    """
    Appointment booking.

    Endpoints:
    - GET /api/v1/appointments/ - List appointments
    - POST /api/v1/appointments/ - Book an appointment
    - GET /api/v1/appointments/{id}/ - Appointment detail
    - PATCH /api/v1/appointments/{id}/ - Edit (re-runs booking rules)
    - DELETE /api/v1/appointments/{id}/ - Remove (not once attended)
    - POST /api/v1/appointments/{id}/reschedule/ - Move to new template/date/time
    - POST /api/v1/appointments/{id}/state/ - Set state
    - GET /api/v1/appointments/availability/{template_id}/?date=YYYY-MM-DD
    - GET /api/v1/appointments/pending/ - Scheduled from today on
    - GET /api/v1/appointments/by-patient/{patient_id}/
    - GET /api/v1/appointments/by-responsible/{responsible_id}/?date=YYYY-MM-DD - Staff agenda

    Query parameters (list):
    - ?patient_id=, ?template_id=, ?responsible_id=, ?state=
    - ?date=YYYY-MM-DD or ?date_from= / ?date_to=
    """
    permission_classes = [AppointmentPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_serializer_class(self):
        if self.action == 'list':
            return AppointmentListSerializer
        return AppointmentDetailSerializer

    def list(self, request):
        params = request.query_params
        queryset = services.list_appointments(
            patient_id=params.get('patient_id'),
            template_id=params.get('template_id'),
            date=params.get('date'),
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
            state=params.get('state'),
            responsible_id=params.get('responsible_id'),
        )
        return Response(AppointmentListSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        appointment = services.get_appointment(pk)
        return Response(AppointmentDetailSerializer(appointment).data)

    def create(self, request):
        data = _validated(AppointmentWriteSerializer, request)
        appointment = services.create_appointment(data, actor=request.user)
        return Response(AppointmentDetailSerializer(appointment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(AppointmentWriteSerializer, request, partial=True)
        data.pop('state', None)
        appointment = services.update_appointment(pk, data, actor=request.user)
        return Response(AppointmentDetailSerializer(appointment).data)

    def destroy(self, request, pk=None):
        services.delete_appointment(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def reschedule(self, request, pk=None):
        data = _validated(AppointmentRescheduleSerializer, request)
        appointment = services.reschedule_appointment(pk, data, actor=request.user)
        return Response(AppointmentDetailSerializer(appointment).data)

    @action(detail=True, methods=['post'], url_path='state')
    def change_state(self, request, pk=None):
        data = _validated(AppointmentStateSerializer, request)
        appointment = services.change_appointment_state(
            pk, data['state'], notes=data.get('notes'), actor=request.user
        )
        return Response(AppointmentDetailSerializer(appointment).data)

    @action(detail=False, methods=['get'], url_path=r'availability/(?P<template_id>\d+)')
    def availability(self, request, template_id=None):
        date = request.query_params.get('date')
        return Response(services.AvailabilityService.template_availability(template_id, date))

    @action(detail=False, methods=['get'])
    def pending(self, request):
        queryset = services.pending_attention()
        return Response(AppointmentListSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'by-patient/(?P<patient_id>\d+)')
    def by_patient(self, request, patient_id=None):
        queryset = services.list_appointments(patient_id=patient_id)
        return Response(AppointmentListSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'by-responsible/(?P<responsible_id>\d+)')
    def by_responsible(self, request, responsible_id=None):
        queryset = services.list_appointments(
            responsible_id=responsible_id, date=request.query_params.get('date')
        )
        return Response(AppointmentListSerializer(queryset, many=True).data)


# ============================================================================
# Time-slot templates
# ============================================================================

class TimeSlotTemplateViewSet(viewsets.GenericViewSet):
    """
    Recurring weekly windows.

    Query parameters:
    - ?day=1..7&specialty_id= - active templates for booking lookup
    - ?responsible_id= - all templates of one staff member
    - ?status=active|inactive|suspended
    """
    serializer_class = TimeSlotTemplateSerializer
    permission_classes = [TimeSlotTemplatePermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        params = request.query_params
        queryset = services.list_templates(
            day=params.get('day'),
            specialty_id=params.get('specialty_id'),
            responsible_id=params.get('responsible_id'),
            status=params.get('status'),
        )
        return Response(TimeSlotTemplateSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(TimeSlotTemplateSerializer(services.get_template(pk)).data)

    def create(self, request):
        data = _validated(TimeSlotTemplateWriteSerializer, request)
        template = services.create_template(data, actor=request.user)
        return Response(TimeSlotTemplateSerializer(template).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(TimeSlotTemplateWriteSerializer, request, partial=True)
        template = services.update_template(pk, data, actor=request.user)
        return Response(TimeSlotTemplateSerializer(template).data)

    def destroy(self, request, pk=None):
        services.delete_template(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Specialties / clinic hours
# ============================================================================

class SpecialtyViewSet(viewsets.GenericViewSet):
    serializer_class = SpecialtySerializer
    permission_classes = [SchedulingCatalogPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        queryset = Specialty.objects.all()
        if request.query_params.get('active') == 'true':
            queryset = queryset.filter(is_active=True)
        return Response(SpecialtySerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(SpecialtySerializer(services.get_specialty(pk)).data)

    def create(self, request):
        data = _validated(SpecialtyWriteSerializer, request)
        specialty = services.create_specialty(data, actor=request.user)
        return Response(SpecialtySerializer(specialty).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(SpecialtyWriteSerializer, request, partial=True)
        specialty = services.update_specialty(pk, data, actor=request.user)
        return Response(SpecialtySerializer(specialty).data)

    def destroy(self, request, pk=None):
        services.delete_specialty(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ClinicScheduleViewSet(viewsets.GenericViewSet):
    serializer_class = ClinicScheduleSerializer
    permission_classes = [SchedulingCatalogPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        return Response(ClinicScheduleSerializer(ClinicSchedule.objects.all(), many=True).data)

    def retrieve(self, request, pk=None):
        return Response(ClinicScheduleSerializer(services.get_clinic_schedule(pk)).data)

    def create(self, request):
        data = _validated(ClinicScheduleWriteSerializer, request)
        schedule = services.create_clinic_schedule(data, actor=request.user)
        return Response(ClinicScheduleSerializer(schedule).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(ClinicScheduleWriteSerializer, request, partial=True)
        schedule = services.update_clinic_schedule(pk, data, actor=request.user)
        return Response(ClinicScheduleSerializer(schedule).data)

    def destroy(self, request, pk=None):
        services.delete_clinic_schedule(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Shifts
# ============================================================================

class ShiftViewSet(viewsets.GenericViewSet):
    """
    Clinic shifts.

    - POST /api/v1/shifts/{id}/check-in/ - mark attended

    Query parameters:
    - ?patient_id=, ?student_id=, ?state=
    """
    serializer_class = ShiftSerializer
    permission_classes = [ShiftPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        params = request.query_params
        queryset = services.list_shifts(
            patient_id=params.get('patient_id'),
            student_id=params.get('student_id'),
            state=params.get('state'),
        )
        return Response(ShiftSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(ShiftSerializer(services.get_shift(pk)).data)

    def create(self, request):
        data = _validated(ShiftWriteSerializer, request)
        shift = services.create_shift(data, actor=request.user)
        return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(ShiftWriteSerializer, request, partial=True)
        shift = services.update_shift(pk, data, actor=request.user)
        return Response(ShiftSerializer(shift).data)

    def destroy(self, request, pk=None):
        services.delete_shift(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='check-in')
    def check_in(self, request, pk=None):
        shift = services.check_in_shift(pk, actor=request.user)
        return Response(ShiftSerializer(shift).data)
