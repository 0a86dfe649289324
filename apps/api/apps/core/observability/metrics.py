"""
Prometheus metrics registry.

All collectors are created once at import time and reached through the
module-level `metrics` instance.
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """Typed access to every application metric."""

    def __init__(self):
        self._setup_metrics()

    def _setup_metrics(self):
        # ===================================================================
        # HTTP Metrics
        # ===================================================================
        self.http_requests_total = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['path', 'method', 'status'],
        )

        self.http_request_duration_seconds = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['path', 'method'],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        )

        # ===================================================================
        # Scheduling Metrics
        # ===================================================================
        self.appointments_created_total = Counter(
            'appointments_created_total',
            'Appointments booked',
        )

        self.appointment_rejections_total = Counter(
            'appointment_rejections_total',
            'Appointment writes rejected by a booking rule',
            ['rule'],  # time_format, template_inactive, past_date, window, weekday, overlap, patient_same_day
        )

        self.appointment_state_changes_total = Counter(
            'appointment_state_changes_total',
            'Appointment state transitions',
            ['from_state', 'to_state'],
        )

        self.booking_validation_duration_seconds = Histogram(
            'booking_validation_duration_seconds',
            'Duration of the appointment validation rule set',
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5],
        )

        # ===================================================================
        # Clinical Metrics
        # ===================================================================
        self.dental_chart_versions_total = Counter(
            'dental_chart_versions_total',
            'Dental chart versions created',
            ['origin'],  # manual, seed
        )

        self.encounters_total = Counter(
            'encounters_total',
            'Encounter lifecycle events',
            ['action'],  # created, deleted
        )

        # ===================================================================
        # Audit Metrics
        # ===================================================================
        self.audit_entries_total = Counter(
            'audit_entries_total',
            'Audit entries written',
            ['table', 'action'],
        )

        self.audit_write_failures_total = Counter(
            'audit_write_failures_total',
            'Audit entries that could not be persisted',
            ['table'],
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to observe a function's wall time.

        Usage:
            @metrics.track_duration(metrics.booking_validation_duration_seconds)
            def validate_booking(...):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


metrics = MetricsRegistry()
