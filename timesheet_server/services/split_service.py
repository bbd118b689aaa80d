"""
Morning/night split of a single shift.

All arithmetic is in minutes on a forward timeline starting at the clock-in
day. Wage windows recur daily, so a window is matched against every day the
shift touches. Minutes outside both windows are reported as unassigned.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from timesheet_server.core.errors import IncompleteShiftError, ParseError
from timesheet_server.models.wage import ShiftRecord, ShiftSplit, WageWindowConfig
from timesheet_server.services.time_utils import MINUTES_PER_DAY, parse_date, to_minutes

CENTS = Decimal("0.01")


def round_half_up(value) -> float:
    """Round to 2 decimals, halves away from zero."""
    return float(Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP))


def minutes_to_hours(minutes: int) -> float:
    return float((Decimal(minutes) / Decimal(60)).quantize(CENTS, rounding=ROUND_HALF_UP))


def _forward(start: int, end: int) -> Tuple[int, int]:
    """End before start means the range runs into the next day."""
    if end < start:
        return start, end + MINUTES_PER_DAY
    return start, end


def overlap_minutes(shift_start: int, shift_end: int, window_start: int, window_end: int) -> int:
    """Minutes of [shift_start, shift_end) that fall inside the daily window.

    Either range may wrap past midnight (end < start) or already be expressed
    beyond 1440. The window is repeated once per day of the shift timeline,
    including the day before it starts, so a window that wraps from the
    previous evening is matched too.
    """
    shift_start, shift_end = _forward(shift_start, shift_end)
    window_start, window_end = _forward(window_start, window_end)
    if shift_end <= shift_start or window_end <= window_start:
        return 0

    total = 0
    first_day = shift_start // MINUTES_PER_DAY - 1
    last_day = shift_end // MINUTES_PER_DAY
    for day in range(first_day, last_day + 1):
        offset = day * MINUTES_PER_DAY
        start = max(shift_start, window_start + offset)
        end = min(shift_end, window_end + offset)
        if end > start:
            total += end - start
    return total


def shift_interval(shift: ShiftRecord) -> Tuple[int, int]:
    """(start minute of day, duration in minutes) from the clock-in/out fields.

    An out time earlier than the in time on the same date is taken to be the
    next morning.
    """
    if not shift.is_complete:
        raise IncompleteShiftError(f"Entry {shift.id} has no clock-out")

    start = to_minutes(shift.clock_in_time)
    end = to_minutes(shift.clock_out_time)
    days = (parse_date(shift.clock_out_date) - parse_date(shift.clock_in_date)).days

    if days < 0:
        raise ParseError(
            f"Entry {shift.id} clocks out on {shift.clock_out_date} before clocking in on {shift.clock_in_date}"
        )

    duration = days * MINUTES_PER_DAY + end - start
    if duration < 0:
        duration += MINUTES_PER_DAY
    return start, duration


def shift_duration_minutes(shift: ShiftRecord) -> int:
    return shift_interval(shift)[1]


def split_shift(shift: ShiftRecord, config: WageWindowConfig) -> ShiftSplit:
    """Split a completed shift into morning, night and unassigned hours."""
    start, duration = shift_interval(shift)
    if duration == 0:
        return ShiftSplit()

    end = start + duration
    morning = overlap_minutes(start, end, config.morning_start_minutes, config.morning_end_minutes)
    night = overlap_minutes(start, end, config.night_start_minutes, config.night_end_minutes)
    unassigned = max(0, duration - morning - night)

    return ShiftSplit(
        morning_hours=max(0.0, minutes_to_hours(morning)),
        night_hours=max(0.0, minutes_to_hours(night)),
        unassigned_hours=max(0.0, minutes_to_hours(unassigned)),
        total_hours=minutes_to_hours(duration),
    )
