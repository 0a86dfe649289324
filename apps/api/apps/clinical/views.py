"""
Clinical API views.

Viewsets translate HTTP into `apps.clinical.services` calls with the
requesting user as actor.
"""
from django.http import FileResponse
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.core.exceptions import NotFound

from . import services
from .permissions import ClinicalRecordPermission, PatientPermission
from .questionnaires import dental_template, medical_template
from .serializers import (
    AttachmentSerializer,
    AttachmentUploadSerializer,
    ClinicalHistorySerializer,
    ClinicalHistoryWriteSerializer,
    DentalChartSerializer,
    DentalChartWriteSerializer,
    EncounterSerializer,
    EncounterWriteSerializer,
    PatientDetailSerializer,
    PatientListSerializer,
    PatientWriteSerializer,
)


def _validated(serializer_class, request, partial=False):
    serializer = serializer_class(data=request.data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _raw(request):
    """Submitted keys as a plain dict, for operations that reject unknown fields."""
    return {key: request.data.get(key) for key in request.data}


# ============================================================================
# Patients
# ============================================================================

class PatientViewSet(viewsets.GenericViewSet):
    """
    Endpoints:
    - GET /api/v1/patients/?q=term - List / search by name or national id
    - POST /api/v1/patients/
    - GET /api/v1/patients/{id}/
    - PATCH /api/v1/patients/{id}/
    - DELETE /api/v1/patients/{id}/
    """
    permission_classes = [PatientPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_serializer_class(self):
        if self.action == 'list':
            return PatientListSerializer
        return PatientDetailSerializer

    def list(self, request):
        queryset = services.list_patients(q=request.query_params.get('q'))
        return Response(PatientListSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(PatientDetailSerializer(services.get_patient(pk)).data)

    def create(self, request):
        patient = services.create_patient(_validated(PatientWriteSerializer, request), actor=request.user)
        return Response(PatientDetailSerializer(patient).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(PatientWriteSerializer, request, partial=True)
        patient = services.update_patient(pk, data, actor=request.user)
        return Response(PatientDetailSerializer(patient).data)

    def destroy(self, request, pk=None):
        services.delete_patient(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Clinical histories
# ============================================================================

class ClinicalHistoryViewSet(viewsets.GenericViewSet):
    """
    Endpoints:
    - GET /api/v1/clinical-histories/?patient_id=
    - POST /api/v1/clinical-histories/
    - GET /api/v1/clinical-histories/{id}/
    - PATCH /api/v1/clinical-histories/{id}/ - Replace questionnaires / observations
    - DELETE /api/v1/clinical-histories/{id}/
    - GET /api/v1/clinical-histories/by-patient/{patient_id}/
    - GET /api/v1/clinical-histories/templates/medical/
    - GET /api/v1/clinical-histories/templates/dental/
    """
    serializer_class = ClinicalHistorySerializer
    permission_classes = [ClinicalRecordPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        queryset = services.list_histories(patient_id=request.query_params.get('patient_id'))
        return Response(ClinicalHistorySerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(ClinicalHistorySerializer(services.get_history(pk)).data)

    def create(self, request):
        data = _validated(ClinicalHistoryWriteSerializer, request)
        history = services.create_history(data, actor=request.user)
        return Response(ClinicalHistorySerializer(history).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(ClinicalHistoryWriteSerializer, request, partial=True)
        history = services.update_history(pk, data, actor=request.user)
        return Response(ClinicalHistorySerializer(history).data)

    def destroy(self, request, pk=None):
        services.delete_history(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path=r'by-patient/(?P<patient_id>\d+)')
    def by_patient(self, request, patient_id=None):
        services.get_patient(patient_id)
        queryset = services.list_histories(patient_id=patient_id)
        return Response(ClinicalHistorySerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'], url_path='templates/medical')
    def medical_questionnaire(self, request):
        return Response(medical_template())

    @action(detail=False, methods=['get'], url_path='templates/dental')
    def dental_questionnaire(self, request):
        return Response(dental_template())


# ============================================================================
# Dental charts
# ============================================================================

class DentalChartViewSet(viewsets.GenericViewSet):
    """
    Versioned odontograms.

    Endpoints:
    - GET /api/v1/dental-charts/
    - POST /api/v1/dental-charts/ - Append a new version
    - GET /api/v1/dental-charts/{id}/
    - PATCH /api/v1/dental-charts/{id}/ - Notes only
    - DELETE /api/v1/dental-charts/{id}/
    - GET /api/v1/dental-charts/{id}/stats/
    - GET /api/v1/dental-charts/history/{history_id}/ - Versions, newest first
    - GET /api/v1/dental-charts/history/{history_id}/latest/ - Seeds v1 when empty
    """
    serializer_class = DentalChartSerializer
    permission_classes = [ClinicalRecordPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        return Response(DentalChartSerializer(services.list_charts(), many=True).data)

    def retrieve(self, request, pk=None):
        return Response(DentalChartSerializer(services.get_chart(pk)).data)

    def create(self, request):
        data = _validated(DentalChartWriteSerializer, request)
        chart = services.create_chart(data, actor=request.user)
        return Response(DentalChartSerializer(chart).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        chart = services.update_chart_notes(pk, _raw(request), actor=request.user)
        return Response(DentalChartSerializer(chart).data)

    def destroy(self, request, pk=None):
        services.delete_chart(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        return Response(services.chart_statistics(pk))

    @action(detail=False, methods=['get'], url_path=r'history/(?P<history_id>\d+)')
    def by_history(self, request, history_id=None):
        queryset = services.charts_for_history(history_id)
        return Response(DentalChartSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'history/(?P<history_id>\d+)/latest')
    def latest(self, request, history_id=None):
        return Response(DentalChartSerializer(services.latest_chart(history_id)).data)


# ============================================================================
# Encounters
# ============================================================================

class EncounterViewSet(viewsets.GenericViewSet):
    """
    Endpoints:
    - GET /api/v1/encounters/?patient_id=&history_id=
    - POST /api/v1/encounters/ - Attend a scheduled appointment
    - GET /api/v1/encounters/{id}/
    - PATCH /api/v1/encounters/{id}/ - Author only
    - DELETE /api/v1/encounters/{id}/ - Author only; appointment back to scheduled
    - GET /api/v1/encounters/by-appointment/{appointment_id}/
    - GET /api/v1/encounters/mine/
    - GET /api/v1/encounters/stats/
    """
    serializer_class = EncounterSerializer
    permission_classes = [ClinicalRecordPermission]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        params = request.query_params
        queryset = services.list_encounters(
            patient_id=params.get('patient_id'),
            history_id=params.get('history_id'),
        )
        return Response(EncounterSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(EncounterSerializer(services.get_encounter(pk)).data)

    def create(self, request):
        data = _validated(EncounterWriteSerializer, request)
        encounter = services.create_encounter(data, actor=request.user)
        return Response(EncounterSerializer(encounter).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        data = _validated(EncounterWriteSerializer, request, partial=True)
        data.pop('appointment_id', None)
        encounter = services.update_encounter(pk, data, actor=request.user)
        return Response(EncounterSerializer(encounter).data)

    def destroy(self, request, pk=None):
        services.delete_encounter(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path=r'by-appointment/(?P<appointment_id>\d+)')
    def by_appointment(self, request, appointment_id=None):
        return Response(EncounterSerializer(services.encounter_for_appointment(appointment_id)).data)

    @action(detail=False, methods=['get'])
    def mine(self, request):
        queryset = services.list_encounters(attended_by=request.user.pk)
        return Response(EncounterSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(services.encounter_stats())


# ============================================================================
# Attachments
# ============================================================================

class AttachmentViewSet(viewsets.GenericViewSet):
    """
    Endpoints:
    - GET /api/v1/attachments/?history_id=
    - POST /api/v1/attachments/ - multipart: history_id, file, kind, description
    - GET /api/v1/attachments/{id}/
    - GET /api/v1/attachments/{id}/download/
    - PATCH /api/v1/attachments/{id}/ - description / kind only
    - DELETE /api/v1/attachments/{id}/ - Removes the stored file too
    """
    serializer_class = AttachmentSerializer
    permission_classes = [ClinicalRecordPermission]
    lookup_value_regex = r'\d+'
    parser_classes = [MultiPartParser, FormParser, JSONParser]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request):
        queryset = services.list_attachments(history_id=request.query_params.get('history_id'))
        return Response(AttachmentSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(AttachmentSerializer(services.get_attachment(pk)).data)

    def create(self, request):
        data = _validated(AttachmentUploadSerializer, request)
        attachment = services.upload_attachment(
            data['history_id'], data.get('file'), data, actor=request.user
        )
        return Response(AttachmentSerializer(attachment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        attachment = services.update_attachment(pk, _raw(request), actor=request.user)
        return Response(AttachmentSerializer(attachment).data)

    def destroy(self, request, pk=None):
        services.delete_attachment(pk, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        attachment = services.get_attachment(pk)
        try:
            handle = attachment.file.open('rb')
        except FileNotFoundError:
            raise NotFound('El archivo del adjunto no existe en el almacenamiento.')
        return FileResponse(
            handle,
            as_attachment=True,
            filename=attachment.original_name,
            content_type=attachment.mime_type,
        )
