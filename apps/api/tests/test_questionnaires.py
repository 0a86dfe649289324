"""
Tests for clinical history questionnaire payloads and templates.
"""
import pytest

from apps.clinical.questionnaires import (
    build_dental_questionnaire,
    build_questionnaire,
    dental_template,
    medical_template,
)
from apps.core.exceptions import ValidationFailed


class TestBuildQuestionnaire:
    def test_structured_wins_over_direct(self):
        payload = build_questionnaire(
            structured={'smokes': {'answer': 'no'}},
            direct={'smokes': 'yes'},
        )
        assert payload['kind'] == 'structured'
        assert payload['version'] == '2.0'
        assert payload['data'] == {'smokes': {'answer': 'no'}}
        assert payload['previous'] is None

    def test_direct(self):
        payload = build_questionnaire(direct={'smokes': 'yes'})
        assert payload['kind'] == 'direct'
        assert payload['version'] == '2.1'

    def test_empty(self):
        payload = build_questionnaire()
        assert payload['kind'] == 'empty'
        assert payload['data'] == {'reason': 'No especificado'}

    def test_rejects_non_object(self):
        with pytest.raises(ValidationFailed):
            build_questionnaire(direct=['yes'])

    def test_keeps_only_immediate_previous(self):
        first = build_questionnaire(direct={'a': 1})
        second = build_questionnaire(direct={'a': 2}, previous=first)
        third = build_questionnaire(direct={'a': 3}, previous=second)
        assert third['previous']['data'] == {'a': 2}
        assert third['previous']['previous'] is None

    def test_dental(self):
        payload = build_dental_questionnaire({'bruxism': 'no'})
        assert payload['kind'] == 'dental'
        assert payload['version'] == '1.0'


class TestTemplates:
    def test_medical_template_sections(self):
        template = medical_template()
        assert 'family_history' in template
        assert 'habits_and_medical_history' in template
        assert 'answer_types' in template

    def test_dental_template_has_answer_types(self):
        assert 'answer_types' in dental_template()
