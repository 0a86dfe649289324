"""
Observability for the clinic API.

Structured logging, Prometheus metrics and health checks with PHI/PII
protection.
"""
from .events import log_domain_event
from .logging import get_sanitized_logger
from .metrics import metrics

__all__ = ['metrics', 'log_domain_event', 'get_sanitized_logger']
