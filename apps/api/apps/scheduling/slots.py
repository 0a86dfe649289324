"""
Time-slot generator.

Splits a schedule window into contiguous fixed-length slots. A trailing
slot that would run past the window end is not emitted.
"""
from collections import namedtuple

from .timeutils import from_minutes, parse_hhmm, to_minutes

Slot = namedtuple('Slot', ['start', 'end'])


class SlotSequence:
    """
    Lazy, restartable sequence of `Slot` pairs covering [start, end).

    Every iteration recomputes the slots, so the same object can be walked
    any number of times.
    """

    def __init__(self, window_start, window_end, duration_minutes):
        if duration_minutes is None or int(duration_minutes) <= 0:
            raise ValueError('duration_minutes must be a positive integer')
        self.window_start = parse_hhmm(window_start, 'window_start')
        self.window_end = parse_hhmm(window_end, 'window_end')
        self.duration_minutes = int(duration_minutes)

    def __iter__(self):
        current = to_minutes(self.window_start)
        end = to_minutes(self.window_end)
        while current + self.duration_minutes <= end:
            slot_end = current + self.duration_minutes
            yield Slot(from_minutes(current), from_minutes(slot_end))
            current = slot_end

    def __len__(self):
        span = to_minutes(self.window_end) - to_minutes(self.window_start)
        return max(span, 0) // self.duration_minutes

    def __repr__(self):
        return (
            f'SlotSequence({self.window_start:%H:%M}-{self.window_end:%H:%M}, '
            f'{self.duration_minutes}min)'
        )


def generate_slots(window_start, window_end, duration_minutes):
    """
    Slots for a window given as ``time`` objects or ``HH:MM`` strings.

    >>> [f'{s.start:%H:%M}' for s in generate_slots('08:00', '09:45', 30)]
    ['08:00', '08:30', '09:00']
    """
    return SlotSequence(window_start, window_end, duration_minutes)
