# backend/slotbook/services/slots/intervals.py
"""
Time-of-day interval arithmetic.

A range is half-open [start, end) in minutes since local midnight,
0 <= start < end <= 1440. Inputs are not assumed sorted or merged.
"""

from dataclasses import dataclass
from typing import Iterable

from ..errors import BookingValidationError
from .config import MINUTES_PER_DAY, time_str_to_minutes


@dataclass(frozen=True, order=True)
class TimeRange:
    start: int
    end: int

    def __post_init__(self):
        if not (0 <= self.start < self.end <= MINUTES_PER_DAY):
            raise BookingValidationError(
                f"Invalid time range [{self.start}, {self.end})"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "TimeRange":
        """'09:00', '17:00' -> TimeRange(540, 1020). '00:00' as end means midnight."""
        start_min = time_str_to_minutes(start)
        end_min = time_str_to_minutes(end)
        if end_min == 0:
            end_min = MINUTES_PER_DAY
        return cls(start_min, end_min)

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end


def subtract_ranges(
    open_ranges: Iterable[TimeRange],
    blocked: Iterable[TimeRange],
) -> list[TimeRange]:
    """
    Remove every blocked range from every open range.

    Blocked ranges are applied one at a time, each subtraction folding into
    the input of the next, so overlapping blocks compound. Partially covered
    ranges are split, fully covered ones dropped.
    """
    result = list(open_ranges)

    for block in blocked:
        remaining: list[TimeRange] = []
        for rng in result:
            if not rng.overlaps(block):
                remaining.append(rng)
                continue
            if block.start > rng.start:
                remaining.append(TimeRange(rng.start, block.start))
            if block.end < rng.end:
                remaining.append(TimeRange(block.end, rng.end))
        result = remaining

    return result


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Sort and merge overlapping or touching ranges into a disjoint list."""
    merged: list[TimeRange] = []
    for rng in sorted(ranges):
        if merged and rng.start <= merged[-1].end:
            last = merged[-1]
            if rng.end > last.end:
                merged[-1] = TimeRange(last.start, rng.end)
        else:
            merged.append(rng)
    return merged
