"""Scheduling app configuration."""
from django.apps import AppConfig


class SchedulingConfig(AppConfig):
    """Specialties, clinic hours, time-slot templates, appointments and shifts."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.scheduling'
    verbose_name = 'Scheduling'
