"""
Tests for odontogram tooth validation and statistics.
"""
import copy

import pytest

from apps.clinical.teeth import (
    FDI_NUMBERS,
    SURFACES,
    TOOTH_STATUSES,
    chart_stats,
    healthy_teeth,
    validate_teeth,
)
from apps.core.exceptions import ValidationFailed


class TestHealthyTeeth:
    def test_thirty_two_teeth_in_fdi_order(self):
        teeth = healthy_teeth()
        assert len(teeth) == 32
        assert [t['number'] for t in teeth] == list(FDI_NUMBERS)
        assert [t['id'] for t in teeth] == list(range(1, 33))

    def test_every_surface_healthy(self):
        for tooth in healthy_teeth():
            assert tooth['status'] == 'healthy'
            assert set(tooth['surfaces']) == set(SURFACES)
            assert set(tooth['surfaces'].values()) == {'healthy'}
            assert tooth['is_temporary'] is False

    def test_groups(self):
        groups = {t['number']: t['group'] for t in healthy_teeth()}
        assert groups['1.1'] == 1
        assert groups['2.2'] == 2
        assert groups['3.3'] == 3
        assert groups['4.5'] == 4
        assert groups['1.7'] == 5
        assert groups['2.8'] == 6


class TestValidateTeeth:
    def test_healthy_chart_is_valid(self):
        assert validate_teeth(healthy_teeth()) == healthy_teeth()

    def test_requires_list(self):
        with pytest.raises(ValidationFailed):
            validate_teeth({'1.1': 'healthy'})

    def test_requires_exactly_32(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_teeth(healthy_teeth()[:31])
        assert exc_info.value.details == {'received': 31}

    @pytest.mark.parametrize('field, value', [
        ('number', '5.1'),
        ('number', '11'),
        ('status', 'broken'),
        ('group', 7),
        ('is_temporary', 'no'),
        ('id', 33),
    ])
    def test_rejects_invalid_field(self, field, value):
        teeth = healthy_teeth()
        teeth[4][field] = value
        with pytest.raises(ValidationFailed) as exc_info:
            validate_teeth(teeth)
        assert exc_info.value.details['tooth_index'] == 4
        assert exc_info.value.details['field'] == field

    def test_rejects_invalid_surface(self):
        teeth = healthy_teeth()
        teeth[0]['surfaces']['occlusal'] = 'rotten'
        with pytest.raises(ValidationFailed) as exc_info:
            validate_teeth(teeth)
        assert exc_info.value.details['field'] == 'surfaces.occlusal'

    def test_rejects_missing_surface(self):
        teeth = healthy_teeth()
        del teeth[0]['surfaces']['mesial']
        with pytest.raises(ValidationFailed):
            validate_teeth(teeth)

    def test_rejects_duplicate_number(self):
        teeth = healthy_teeth()
        teeth[1]['number'] = teeth[0]['number']
        with pytest.raises(ValidationFailed) as exc_info:
            validate_teeth(teeth)
        assert exc_info.value.details['field'] == 'number'

    def test_missing_observations_normalized(self):
        teeth = healthy_teeth()
        del teeth[3]['observations']
        assert validate_teeth(teeth)[3]['observations'] == ''


class TestChartStats:
    def test_all_healthy(self):
        stats = chart_stats(healthy_teeth())
        assert stats['total_teeth'] == 32
        assert stats['by_status']['healthy'] == 32
        assert set(stats['by_status']) == set(TOOTH_STATUSES)
        assert stats['surfaces_by_status'] == {}
        assert stats['teeth_needing_attention'] == []

    def test_counts_and_attention(self):
        teeth = copy.deepcopy(healthy_teeth())
        teeth[0]['status'] = 'caries'
        teeth[1]['status'] = 'filled'
        teeth[2]['surfaces']['distal'] = 'fracture'
        stats = chart_stats(teeth)
        assert stats['by_status']['caries'] == 1
        assert stats['by_status']['filled'] == 1
        assert stats['by_status']['healthy'] == 30
        assert stats['surfaces_by_status'] == {'fracture': 1}
        assert stats['teeth_needing_attention'] == ['1.1', '1.3']
