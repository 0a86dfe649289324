"""
Clinical URLs - patients, clinical histories, dental charts, encounters, attachments.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AttachmentViewSet,
    ClinicalHistoryViewSet,
    DentalChartViewSet,
    EncounterViewSet,
    PatientViewSet,
)

router = DefaultRouter()
router.register(r'patients', PatientViewSet, basename='patient')
router.register(r'clinical-histories', ClinicalHistoryViewSet, basename='clinical-history')
router.register(r'dental-charts', DentalChartViewSet, basename='dental-chart')
router.register(r'encounters', EncounterViewSet, basename='encounter')
router.register(r'attachments', AttachmentViewSet, basename='attachment')

urlpatterns = [
    path('', include(router.urls)),
]
