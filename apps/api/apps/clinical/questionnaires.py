"""
Clinical history questionnaires.

Payloads are stored as an explicit tagged union instead of being sniffed by
shape at read time::

    {
        "kind": "structured" | "direct" | "empty" | "dental",
        "version": "2.0" | "2.1" | "1.0",
        "data": {...},
        "recorded_at": "<ISO-8601>",
        "previous": {...} | None,   # only the immediately-prior payload
    }

`structured` answers carry one object per question (``{"answer": ...,
"detail": ...}``); `direct` answers carry plain values.
"""
from django.utils import timezone

from apps.core.exceptions import ValidationFailed

KIND_STRUCTURED = 'structured'
KIND_DIRECT = 'direct'
KIND_EMPTY = 'empty'
KIND_DENTAL = 'dental'

KIND_VERSIONS = {
    KIND_STRUCTURED: '2.0',
    KIND_DIRECT: '2.1',
    KIND_EMPTY: '1.0',
    KIND_DENTAL: '1.0',
}

EMPTY_DATA = {'reason': 'No especificado'}


def _payload(kind, data, previous=None):
    payload = {
        'kind': kind,
        'version': KIND_VERSIONS[kind],
        'data': data,
        'recorded_at': timezone.now().isoformat(),
        'previous': None,
    }
    if previous:
        # Keep one level only; older snapshots live in the audit log.
        payload['previous'] = {**previous, 'previous': None}
    return payload


def _require_object(value, field):
    if not isinstance(value, dict):
        raise ValidationFailed(f'{field} debe ser un objeto.', details={'field': field})
    return value


def build_questionnaire(structured=None, direct=None, previous=None):
    """
    Medical questionnaire payload. `structured` wins over `direct`; with
    neither an `empty` payload is produced.
    """
    if structured is not None:
        return _payload(KIND_STRUCTURED, _require_object(structured, 'questionnaire_structured'), previous)
    if direct is not None:
        return _payload(KIND_DIRECT, _require_object(direct, 'questionnaire'), previous)
    return _payload(KIND_EMPTY, dict(EMPTY_DATA), previous)


def build_dental_questionnaire(data, previous=None):
    return _payload(KIND_DENTAL, _require_object(data, 'dental_questionnaire'), previous)


# ============================================================================
# Templates
# ============================================================================

ANSWER_TYPES = {
    'yes_no': {'description': 'Respuesta de Sí o No', 'shape': {'answer': 'boolean'}},
    'text': {'description': 'Respuesta en texto libre', 'shape': {'answer': 'string (opcional)'}},
    'mixed': {
        'description': 'Respuesta Sí/No con detalle adicional',
        'shape': {'answer': 'boolean', 'detail': 'string (opcional)'},
    },
    'multiple_choice': {
        'description': 'Selección múltiple de opciones',
        'shape': {'answer': 'string[] (opcional)'},
    },
    'single_choice': {
        'description': 'Selección única de opciones',
        'shape': {'answer': 'string (opcional)'},
    },
}


def _q(question, answer_type, field, **extra):
    item = {'question': question, 'type': answer_type, 'field': field}
    item.update(extra)
    return item


MEDICAL_TEMPLATE = {
    'family_history': [
        _q('¿Padre con vida?', 'yes_no', 'father_alive'),
        _q('Enfermedad que padece o padeció (padre)', 'text', 'father_illness'),
        _q('¿Madre con vida?', 'yes_no', 'mother_alive'),
        _q('Enfermedad que padece o padeció (madre)', 'text', 'mother_illness'),
        _q('¿Hermanos?', 'mixed', 'siblings', detail='¿Sanos?'),
        _q('¿Sufre de alguna enfermedad?', 'mixed', 'has_illness', detail='¿De qué?'),
        _q('¿Hace algún tratamiento médico?', 'mixed', 'medical_treatment', detail='¿Cuál?'),
        _q('¿Qué medicamentos consume habitualmente?', 'text', 'usual_medication'),
        _q('¿Qué medicamentos ha consumido en los últimos 5 años?', 'text', 'medication_last_5_years'),
    ],
    'habits_and_medical_history': [
        _q('¿Realiza algún deporte?', 'yes_no', 'practices_sport'),
        _q('¿Nota algún malestar al realizarlo?', 'yes_no', 'discomfort_during_sport'),
        _q('¿Es alérgico a alguna droga?', 'yes_no', 'drug_allergy'),
        _q('¿Es alérgico a la anestesia?', 'yes_no', 'anesthesia_allergy'),
        _q('¿Es alérgico a la penicilina?', 'yes_no', 'penicillin_allergy'),
        _q('¿Es alérgico a otros medicamentos?', 'text', 'other_medication_allergy'),
        _q('Cuando le sacan una muela o se lastima, ¿cicatriza bien?', 'yes_no', 'heals_well'),
        _q('Cuando se lastima, ¿sangra mucho?', 'yes_no', 'bleeds_heavily'),
        _q('¿Tiene problema de colágeno (hiperlaxitud)?', 'yes_no', 'collagen_disorder'),
        _q('¿Antecedentes de fiebre reumática?', 'yes_no', 'rheumatic_fever'),
        _q('¿Se encuentra con alguna medicación?', 'text', 'current_medication'),
        _q('¿Es diabético?', 'yes_no', 'diabetic'),
        _q('¿Está controlado?', 'mixed', 'diabetes_controlled', detail='¿Con qué?'),
        _q('¿Tiene algún problema cardíaco?', 'mixed', 'heart_condition', detail='¿Cuál?'),
        _q('¿Toma seguido aspirina y/o anticoagulante?', 'mixed', 'takes_anticoagulants',
           detail='¿Con qué frecuencia?'),
        _q('¿Tiene presión alta?', 'yes_no', 'high_blood_pressure'),
        _q('¿Chagas?', 'yes_no', 'chagas'),
        _q('¿Está en tratamiento por Chagas?', 'yes_no', 'chagas_treatment'),
        _q('¿Tiene problemas renales?', 'yes_no', 'kidney_problems'),
        _q('¿Úlcera gástrica?', 'yes_no', 'gastric_ulcer'),
        _q('¿Tuvo hepatitis?', 'yes_no', 'had_hepatitis'),
        _q('Tipo de hepatitis', 'text', 'hepatitis_type'),
        _q('¿Tiene algún problema hepático?', 'mixed', 'liver_condition', detail='¿Cuál?'),
        _q('¿Tuvo convulsiones?', 'yes_no', 'had_seizures'),
        _q('¿Es epiléptico?', 'yes_no', 'epileptic'),
        _q('Medicación que toma', 'text', 'seizure_medication'),
        _q('¿Ha tenido sífilis o gonorrea?', 'yes_no', 'syphilis_or_gonorrhea'),
        _q('¿Otra enfermedad infecto-contagiosa?', 'yes_no', 'other_infectious_disease'),
        _q('¿Tuvo transfusiones?', 'yes_no', 'had_transfusions'),
        _q('¿Fue operado alguna vez?', 'mixed', 'had_surgery', detail='¿De qué y cuándo?'),
        _q('¿Tiene algún problema respiratorio?', 'mixed', 'respiratory_condition', detail='¿Cuál?'),
        _q('¿Fuma?', 'yes_no', 'smokes'),
        _q('¿Está embarazada?', 'mixed', 'pregnant', detail='¿De cuántos meses?'),
        _q('¿Otra enfermedad o recomendación de su médico?', 'text', 'other_recommendation'),
        _q('¿Realiza tratamiento homeopático, acupuntura u otro?', 'mixed', 'alternative_treatment',
           detail='¿Cuál?'),
        _q('Médico clínico', 'text', 'general_practitioner'),
        _q('Clínica/Hospital para derivación', 'text', 'referral_hospital'),
    ],
}

DENTAL_TEMPLATE = {
    'initial_visit': [
        _q('¿Por qué asistió a la consulta?', 'text', 'visit_reason'),
        _q('¿Consultó antes con algún otro profesional?', 'yes_no', 'consulted_before'),
        _q('¿Tomó algún medicamento?', 'yes_no', 'took_medication'),
        _q('Nombre de los medicamentos', 'text', 'medication_names'),
        _q('¿Desde cuándo?', 'text', 'medication_since'),
        _q('¿Obtuvo resultados?', 'yes_no', 'medication_helped'),
    ],
    'pain': {
        'group': 'Información sobre dolor',
        'fields': [
            _q('¿Ha tenido dolor?', 'yes_no', 'had_pain'),
            _q('¿De qué tipo de dolor?', 'multiple_choice', 'pain_intensity',
               options=['Suave', 'Moderado', 'Intenso']),
            _q('Frecuencia del dolor', 'multiple_choice', 'pain_frequency',
               options=['Temporal', 'Intermitente', 'Continuo', 'Espontáneo']),
            _q('Dolor provocado', 'multiple_choice', 'pain_trigger',
               options=['Al frío', 'Al calor', 'Localizado', 'Difuso']),
            _q('¿Irradiado?', 'yes_no', 'pain_radiates'),
            _q('¿Hacia dónde?', 'text', 'pain_radiates_to'),
            _q('¿Puede calmarlo con algo?', 'text', 'pain_relief'),
        ],
    },
    'trauma': [
        _q('¿Sufrió algún golpe en los dientes?', 'yes_no', 'dental_trauma'),
        _q('¿Cuándo?', 'text', 'dental_trauma_when'),
        _q('¿Cómo se produjo?', 'text', 'dental_trauma_how'),
        _q('¿Se le fracturó algún diente?', 'yes_no', 'fractured_tooth'),
        _q('¿Cuál?', 'text', 'fractured_tooth_which'),
        _q('¿Recibió algún tratamiento?', 'text', 'fractured_tooth_treatment'),
    ],
    'functional_difficulties': [
        _q('¿Tiene dificultad para hablar?', 'yes_no', 'difficulty_speaking'),
        _q('¿Tiene dificultad para masticar?', 'yes_no', 'difficulty_chewing'),
        _q('¿Tiene dificultad para abrir la boca?', 'yes_no', 'difficulty_opening_mouth'),
        _q('¿Tiene dificultad para tragar los alimentos?', 'yes_no', 'difficulty_swallowing'),
    ],
    'abnormal_findings': [
        _q('¿Ha observado algo anormal en los labios?', 'text', 'abnormal_lips'),
        _q('¿Ha observado algo anormal en la lengua?', 'text', 'abnormal_tongue'),
        _q('¿Ha observado algo anormal en el paladar?', 'text', 'abnormal_palate'),
        _q('¿Ha observado algo anormal en el piso de boca?', 'text', 'abnormal_mouth_floor'),
        _q('¿Ha observado algo anormal en los carrillos?', 'text', 'abnormal_cheeks'),
        _q('¿Ha observado algo anormal en otras zonas?', 'text', 'abnormal_other'),
    ],
    'lesion_types': {
        'group': '¿Qué tipo de lesiones presenta?',
        'fields': [
            _q('Manchas', 'yes_no', 'spots'),
            _q('Abultamiento de los tejidos', 'yes_no', 'tissue_swelling'),
            _q('Ulceraciones', 'yes_no', 'ulcerations'),
            _q('Ampollas', 'yes_no', 'blisters'),
            _q('Otros', 'yes_no', 'other_lesions'),
        ],
    },
    'gum_bleeding': [
        _q('¿Le sangran las encías?', 'yes_no', 'gums_bleed'),
        _q('¿Cuándo?', 'text', 'gums_bleed_when'),
    ],
    'suppuration': [
        _q('¿Sale pus de algún lugar de su boca?', 'yes_no', 'suppuration'),
        _q('¿De dónde?', 'text', 'suppuration_where'),
    ],
    'mobility_and_occlusion': [
        _q('¿Tiene movilidad en sus dientes?', 'yes_no', 'tooth_mobility'),
        _q('¿Al morder siente altos los dientes?', 'yes_no', 'high_bite'),
    ],
    'facial_swelling': [
        _q('¿Ha tenido la cara hinchada?', 'yes_no', 'facial_swelling'),
        _q('¿Qué hizo? (hielo, calor, otros)', 'text', 'facial_swelling_treatment'),
    ],
    'hygiene_habits': [
        _q('Momentos de azúcar diario', 'text', 'daily_sugar_moments'),
        _q('Índice de placa', 'text', 'plaque_index'),
        _q('Estado de la higiene bucal', 'single_choice', 'oral_hygiene',
           options=['Muy bueno', 'Bueno', 'Deficiente', 'Malo']),
    ],
}


def medical_template():
    return {**MEDICAL_TEMPLATE, 'answer_types': ANSWER_TYPES}


def dental_template():
    return {**DENTAL_TEMPLATE, 'answer_types': ANSWER_TYPES}
