"""
Scheduling URLs.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AppointmentViewSet,
    ClinicScheduleViewSet,
    ShiftViewSet,
    SpecialtyViewSet,
    TimeSlotTemplateViewSet,
)

router = DefaultRouter()
router.register(r'appointments', AppointmentViewSet, basename='appointment')
router.register(r'time-slot-templates', TimeSlotTemplateViewSet, basename='time-slot-template')
router.register(r'specialties', SpecialtyViewSet, basename='specialty')
router.register(r'clinic-schedules', ClinicScheduleViewSet, basename='clinic-schedule')
router.register(r'shifts', ShiftViewSet, basename='shift')

urlpatterns = [
    path('', include(router.urls)),
]
