"""
Overlap detection for half-open time ranges.

Two ranges [a, b) and [c, d) overlap iff a < d and c < b, so a booking
ending at 09:30 never collides with one starting at 09:30. Works for any
comparable bounds: ``time`` for appointments, ``datetime`` for shifts.
"""
from collections import namedtuple

from django.db.models import Q

BookedRange = namedtuple('BookedRange', ['id', 'start', 'end'])


def overlaps(a_start, a_end, b_start, b_end):
    return a_start < b_end and b_start < a_end


def find_conflict(start, end, existing, exclude_id=None):
    """
    Return the first range in `existing` that overlaps [start, end), or None.

    Args:
        start, end: candidate bounds
        existing: iterable of `BookedRange` (or any (id, start, end) triple)
        exclude_id: id of the record being updated, skipped so it never
            conflicts with itself
    """
    for booked in existing:
        booked = BookedRange(*booked)
        if exclude_id is not None and booked.id == exclude_id:
            continue
        if overlaps(start, end, booked.start, booked.end):
            return booked
    return None


def overlap_q(start, end, start_field='start_time', end_field='end_time'):
    """ORM filter for rows whose [start_field, end_field) overlaps [start, end)."""
    return Q(**{f'{start_field}__lt': end}) & Q(**{f'{end_field}__gt': start})
