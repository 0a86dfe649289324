"""
Liveness and readiness endpoints (/healthz, /readyz).
"""
import logging

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


class HealthzView(View):
    """Process is up. No dependency checks."""

    def get(self, request):
        health_data = {
            'status': 'ok',
            'version': getattr(settings, 'VERSION', 'unknown'),
        }
        commit_hash = getattr(settings, 'COMMIT_HASH', None)
        if commit_hash:
            health_data['commit'] = commit_hash
        return JsonResponse(health_data, status=200)


class ReadyzView(View):
    """
    Ready to serve traffic: the database answers and the attachment
    storage root is reachable.
    """

    def get(self, request):
        checks = {
            'database': self._check_database(),
            'attachment_storage': self._check_storage(),
        }
        all_healthy = all(checks.values())
        return JsonResponse(
            {'status': 'ready' if all_healthy else 'not_ready', 'checks': checks},
            status=200 if all_healthy else 503,
        )

    def _check_database(self):
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
            return True
        except DatabaseError as e:
            logger.error(
                'Database health check failed',
                extra={'event': 'health_check_failed', 'check': 'database', 'error': str(e)},
            )
            return False

    def _check_storage(self):
        try:
            default_storage.listdir('')
            return True
        except OSError as e:
            logger.error(
                'Storage health check failed',
                extra={'event': 'health_check_failed', 'check': 'attachment_storage', 'error': str(e)},
            )
            return False
