"""
Query-string parsing shared by the list endpoints.

Filters arrive as raw strings; ids are coerced here so a malformed value
surfaces as a validation_error instead of a database error.
"""
from typing import Any, Optional

from apps.core.exceptions import ValidationFailed


def parse_id(value: Any, field: str = 'id') -> Optional[int]:
    """
    Coerce a filter value to a positive integer.

    Empty values (None, '') mean "no filter" and return None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationFailed(
            f'Valor inválido en "{field}". Debe ser un número entero.',
            details={'field': field, 'value': value},
        )
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(
            f'Valor inválido en "{field}". Debe ser un número entero.',
            details={'field': field, 'value': value},
        )
    if number < 1:
        raise ValidationFailed(
            f'Valor inválido en "{field}". Debe ser un número entero positivo.',
            details={'field': field, 'value': value},
        )
    return number
