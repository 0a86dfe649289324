"""
Tests for slot generation, overlap detection and wall-clock parsing.
"""
from datetime import datetime, time

import pytest

from apps.core.exceptions import ValidationFailed
from apps.scheduling.overlap import find_conflict, overlaps
from apps.scheduling.slots import generate_slots
from apps.scheduling.timeutils import parse_hhmm, parse_time_range


def _labels(slots):
    return [(f'{s.start:%H:%M}', f'{s.end:%H:%M}') for s in slots]


class TestGenerateSlots:
    def test_exact_division(self):
        slots = generate_slots('08:00', '10:00', 30)
        assert _labels(slots) == [
            ('08:00', '08:30'), ('08:30', '09:00'), ('09:00', '09:30'), ('09:30', '10:00'),
        ]

    def test_trailing_partial_slot_is_dropped(self):
        assert _labels(generate_slots('08:00', '09:45', 30)) == [
            ('08:00', '08:30'), ('08:30', '09:00'), ('09:00', '09:30'),
        ]

    def test_duration_longer_than_window(self):
        slots = generate_slots('08:00', '08:20', 30)
        assert list(slots) == []
        assert len(slots) == 0

    def test_accepts_time_objects(self):
        slots = generate_slots(time(14, 0), time(15, 0), 20)
        assert len(slots) == 3
        assert _labels(slots)[-1] == ('14:40', '15:00')

    def test_sequence_is_restartable(self):
        slots = generate_slots('08:00', '09:00', 15)
        assert list(slots) == list(slots)

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            generate_slots('08:00', '09:00', 0)


class TestOverlap:
    def test_touching_ranges_do_not_overlap(self):
        assert not overlaps(time(9, 0), time(9, 30), time(9, 30), time(10, 0))

    def test_contained_range_overlaps(self):
        assert overlaps(time(9, 0), time(11, 0), time(9, 30), time(10, 0))

    def test_partial_overlap(self):
        assert overlaps(time(9, 0), time(9, 45), time(9, 30), time(10, 0))

    def test_find_conflict_returns_first_overlapping(self):
        booked = [(1, time(8, 0), time(8, 30)), (2, time(9, 0), time(9, 30))]
        conflict = find_conflict(time(9, 15), time(9, 45), booked)
        assert conflict.id == 2

    def test_find_conflict_skips_excluded_record(self):
        booked = [(7, time(9, 0), time(9, 30))]
        assert find_conflict(time(9, 0), time(9, 30), booked, exclude_id=7) is None

    def test_works_with_datetimes(self):
        booked = [(3, datetime(2026, 10, 22, 9, 0), datetime(2026, 10, 22, 10, 0))]
        assert find_conflict(datetime(2026, 10, 22, 9, 30), datetime(2026, 10, 22, 11, 0), booked).id == 3


class TestParseTimes:
    @pytest.mark.parametrize('value', ['8:00', '08:00', '23:59', '0:05'])
    def test_valid_hhmm(self, value):
        assert isinstance(parse_hhmm(value), time)

    @pytest.mark.parametrize('value', ['24:00', '08:60', '0800', '8', '', None, '08:00:00'])
    def test_invalid_hhmm(self, value):
        with pytest.raises(ValidationFailed):
            parse_hhmm(value)

    def test_range_requires_start_before_end(self):
        with pytest.raises(ValidationFailed):
            parse_time_range('10:00', '10:00')
        with pytest.raises(ValidationFailed):
            parse_time_range('11:00', '10:00')
