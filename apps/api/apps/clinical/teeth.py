"""
Odontogram tooth records.

A chart holds the 32 permanent teeth in FDI notation (``q.n``: quadrant
1-4, tooth 1-8). Each record::

    {
        "id": 1,                      # 1..32
        "number": "1.1",
        "position": "Superior Derecho",
        "group": 1,                   # 1..6, see TOOTH_GROUPS
        "status": "healthy",
        "surfaces": {"vestibular": ..., "occlusal": ..., "distal": ...,
                     "lingual": ..., "mesial": ...},
        "is_temporary": false,
        "observations": ""            # optional
    }

Pure functions only; no database access.
"""
import re
from collections import Counter

from apps.core.exceptions import ValidationFailed

TOOTH_COUNT = 32

TOOTH_STATUSES = (
    'healthy',
    'caries',
    'filled',
    'crown',
    'root_canal',
    'implant',
    'extracted',
    'fracture',
    'bridge',
    'extraction_indicated',
)
HEALTHY = 'healthy'

# Statuses that call for treatment.
ATTENTION_STATUSES = ('caries', 'fracture', 'extraction_indicated')

SURFACES = ('vestibular', 'occlusal', 'distal', 'lingual', 'mesial')

FDI_PATTERN = re.compile(r'^[1-4]\.[1-8]$')

QUADRANT_POSITIONS = {
    1: 'Superior Derecho',
    2: 'Superior Izquierdo',
    3: 'Inferior Izquierdo',
    4: 'Inferior Derecho',
}

TOOTH_GROUPS = {
    1: 'Incisivo central',
    2: 'Incisivo lateral',
    3: 'Canino',
    4: 'Premolares',
    5: 'Molares',
    6: 'Tercer molar',
}

FDI_NUMBERS = tuple(
    f"{quadrant}.{tooth}"
    for quadrant in range(1, 5)
    for tooth in range(1, 9)
)


def tooth_group(tooth):
    """Group for the tooth digit of an FDI number (1..8)."""
    if tooth <= 3:
        return tooth
    if tooth <= 5:
        return 4
    if tooth <= 7:
        return 5
    return 6


def healthy_teeth():
    """Canonical chart: all 32 teeth and every surface healthy."""
    teeth = []
    for index, number in enumerate(FDI_NUMBERS, start=1):
        quadrant, tooth = (int(part) for part in number.split('.'))
        teeth.append({
            'id': index,
            'number': number,
            'position': QUADRANT_POSITIONS[quadrant],
            'group': tooth_group(tooth),
            'status': HEALTHY,
            'surfaces': {surface: HEALTHY for surface in SURFACES},
            'is_temporary': False,
            'observations': '',
        })
    return teeth


def _invalid(message, index, field, value=None):
    details = {'tooth_index': index, 'field': field}
    if value is not None:
        details['value'] = value
    return ValidationFailed(message, details=details)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_teeth(teeth):
    """
    Check a submitted tooth list and return a normalized copy.

    Raises ValidationFailed on the first problem found.
    """
    if not isinstance(teeth, list):
        raise ValidationFailed('Los dientes deben enviarse como una lista.')
    if len(teeth) != TOOTH_COUNT:
        raise ValidationFailed(
            f'El odontograma debe contener exactamente {TOOTH_COUNT} dientes.',
            details={'received': len(teeth)},
        )

    normalized = []
    seen_numbers = set()
    seen_ids = set()
    for index, tooth in enumerate(teeth):
        if not isinstance(tooth, dict):
            raise _invalid('Cada diente debe ser un objeto.', index, 'tooth')

        tooth_id = tooth.get('id')
        if not _is_int(tooth_id) or not 1 <= tooth_id <= TOOTH_COUNT:
            raise _invalid('El id del diente debe estar entre 1 y 32.', index, 'id', tooth_id)
        if tooth_id in seen_ids:
            raise _invalid('Id de diente repetido.', index, 'id', tooth_id)
        seen_ids.add(tooth_id)

        number = tooth.get('number')
        if not isinstance(number, str) or not FDI_PATTERN.match(number):
            raise _invalid('Formato FDI inválido.', index, 'number', number)
        if number in seen_numbers:
            raise _invalid('Número de diente repetido.', index, 'number', number)
        seen_numbers.add(number)

        position = tooth.get('position')
        if not isinstance(position, str):
            raise _invalid('La posición del diente es obligatoria.', index, 'position')

        group = tooth.get('group')
        if not _is_int(group) or group not in TOOTH_GROUPS:
            raise _invalid('El grupo dental debe estar entre 1 y 6.', index, 'group', group)

        status = tooth.get('status')
        if status not in TOOTH_STATUSES:
            raise _invalid('Estado de diente inválido.', index, 'status', status)

        surfaces = tooth.get('surfaces')
        if not isinstance(surfaces, dict):
            raise _invalid('Las superficies del diente son obligatorias.', index, 'surfaces')
        for surface in SURFACES:
            if surfaces.get(surface) not in TOOTH_STATUSES:
                raise _invalid(
                    f'Estado inválido en la superficie {surface}.',
                    index, f'surfaces.{surface}', surfaces.get(surface),
                )

        is_temporary = tooth.get('is_temporary')
        if not isinstance(is_temporary, bool):
            raise _invalid('is_temporary debe ser booleano.', index, 'is_temporary')

        observations = tooth.get('observations') or ''
        if not isinstance(observations, str):
            raise _invalid('Las observaciones del diente deben ser texto.', index, 'observations')

        normalized.append({
            'id': tooth_id,
            'number': number,
            'position': position,
            'group': group,
            'status': status,
            'surfaces': {surface: surfaces[surface] for surface in SURFACES},
            'is_temporary': is_temporary,
            'observations': observations,
        })

    return normalized


def chart_stats(teeth):
    """
    Summary of one chart.

    Returns:
        {
            'total_teeth': 32,
            'by_status': {status: tooth count},
            'surfaces_by_status': {status: surface count, non-healthy only},
            'teeth_needing_attention': [FDI numbers],
        }
    """
    by_status = Counter(tooth['status'] for tooth in teeth)
    surfaces_by_status = Counter(
        value
        for tooth in teeth
        for value in tooth['surfaces'].values()
        if value != HEALTHY
    )
    needing_attention = [
        tooth['number']
        for tooth in teeth
        if tooth['status'] in ATTENTION_STATUSES
        or any(value in ATTENTION_STATUSES for value in tooth['surfaces'].values())
    ]
    return {
        'total_teeth': len(teeth),
        'by_status': {status: by_status.get(status, 0) for status in TOOTH_STATUSES},
        'surfaces_by_status': dict(surfaces_by_status),
        'teeth_needing_attention': needing_attention,
    }
