"""
Wall-clock helpers shared by the scheduling services.

Appointment and template times are naive wall-clock times in the clinic's
time zone; dates are calendar dates with no time-of-day component.
"""
import re
from datetime import date, datetime, time

from django.utils import timezone

from apps.core.exceptions import ValidationFailed

HHMM_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$')


def parse_hhmm(value, field='time'):
    """
    Parse an ``HH:MM`` string (hour may be a single digit) into a ``time``.

    ``time`` instances pass through untouched.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str) or not HHMM_PATTERN.match(value):
        raise ValidationFailed(
            f'Formato de hora inválido en "{field}". Use HH:MM.',
            details={'field': field, 'value': value},
        )
    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


def parse_time_range(start, end, start_field='start_time', end_field='end_time'):
    """Parse both bounds and require start < end."""
    start_time = parse_hhmm(start, start_field)
    end_time = parse_hhmm(end, end_field)
    if start_time >= end_time:
        raise ValidationFailed(
            'La hora de inicio debe ser anterior a la hora de fin.',
            details={start_field: format_hhmm(start_time), end_field: format_hhmm(end_time)},
        )
    return start_time, end_time


def parse_date(value, field='date'):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationFailed(
            f'Fecha inválida en "{field}". Use YYYY-MM-DD.',
            details={'field': field, 'value': value},
        )


def to_minutes(value):
    return value.hour * 60 + value.minute


def from_minutes(minutes):
    return time(minutes // 60, minutes % 60)


def format_hhmm(value):
    return value.strftime('%H:%M')


def format_hhmmss(value):
    """Zero-padded ``HH:MM:SS``, the form window containment is compared in."""
    return value.strftime('%H:%M:%S')


def iso_weekday(value):
    """Monday=1 .. Sunday=7."""
    return value.isoweekday()


def clinic_today():
    """Today's date in the clinic's configured time zone."""
    return timezone.localdate()
