"""
Domain events logging helpers.

Structured event logging for scheduling and clinical operations.
"""
from typing import Any, Dict, Optional

from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger('apps.events')


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    entity_ids: Optional[Dict[str, Any]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'appointment.created')
        entity_type: Type of entity (e.g., 'Appointment', 'DentalChart')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, blocked, failure)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'dental_chart.version_created',
            entity_type='DentalChart',
            entity_id=chart.id,
            entity_ids={'history_id': chart.history_id},
            version=chart.version,
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id is not None:
        event_data['entity_id'] = str(entity_id)

    if entity_ids:
        event_data.update({key: str(value) for key, value in entity_ids.items()})

    event_data.update(sanitize_dict(extra_fields))

    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'blocked']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_appointment_transition(appointment, from_state, to_state, **extra):
    """Log an appointment state change."""
    log_domain_event(
        'appointment.state_changed',
        entity_type='Appointment',
        entity_id=appointment.id,
        entity_ids={'template_id': appointment.template_id},
        from_state=from_state,
        to_state=to_state,
        **extra
    )


def log_booking_rejected(rule, **extra):
    """Log an appointment write rejected by one of the booking rules."""
    log_domain_event(
        'appointment.rejected',
        entity_type='Appointment',
        result='blocked',
        rule=rule,
        **extra
    )
