"""Slot generation and weekly expansion.

Everything in this module is pure: no I/O, no shared state.
"""

from datetime import date, datetime, timedelta
from typing import Iterable

from facility_slots.scheduling.models import (
    MONDAY_KEY_FORMAT,
    AvailableSlot,
    BusyInterval,
    DaySchedule,
    WeeklySchedule,
)

CACHE_KEY_PREFIX = "weekly_availability_"


def _is_busy(slot_start: datetime, slot_end: datetime, busy: Iterable[BusyInterval]) -> bool:
    """True if any busy interval intersects ``[slot_start, slot_end)``."""
    return any(b.start < slot_end and b.end > slot_start for b in busy)


def generate_slots(
    period_start: datetime,
    period_end: datetime,
    slot_duration_minutes: int,
    busy: list[BusyInterval],
    day_of_week: str = "",
) -> list[AvailableSlot]:
    """Cut ``[period_start, period_end)`` into back-to-back slots.

    A slot that would run past ``period_end`` is dropped, and any slot that
    touches a busy interval is skipped whole. Busy intervals may be unsorted,
    duplicated or overlapping.
    """
    if slot_duration_minutes <= 0:
        raise ValueError(f"slot_duration_minutes must be positive, got {slot_duration_minutes}")

    delta = timedelta(minutes=slot_duration_minutes)
    slots: list[AvailableSlot] = []
    current = period_start

    while current + delta <= period_end:
        slot_end = current + delta
        if not _is_busy(current, slot_end, busy):
            slots.append(
                AvailableSlot(
                    start=current,
                    end=slot_end,
                    day_of_week=day_of_week,
                )
            )
        current = slot_end
    return slots


def expand_day(
    day: DaySchedule | None,
    day_date: date,
    day_of_week: str,
    slot_duration_minutes: int,
) -> list[AvailableSlot]:
    """Generate the morning then afternoon slots of a single day."""
    if day is None or day.work_period is None:
        return []

    wp = day.work_period
    midnight = datetime(day_date.year, day_date.month, day_date.day)

    def at(hour: int) -> datetime:
        # hour 24 is midnight at the end of the day
        return midnight + timedelta(hours=hour)

    morning = generate_slots(
        at(wp.start_hour), at(wp.lunch_start_hour),
        slot_duration_minutes, day.busy_slots, day_of_week,
    )
    afternoon = generate_slots(
        at(wp.lunch_end_hour), at(wp.end_hour),
        slot_duration_minutes, day.busy_slots, day_of_week,
    )
    return morning + afternoon


def expand_week(schedule: WeeklySchedule, monday: date) -> list[AvailableSlot]:
    """Apply slot generation to all seven days, Monday→Sunday."""
    slots: list[AvailableSlot] = []
    for offset, (day_name, day) in enumerate(schedule.days()):
        slots.extend(
            expand_day(
                day,
                monday + timedelta(days=offset),
                day_name,
                schedule.slot_duration_minutes,
            )
        )
    return slots


# ------------------------------------------------------------------
# Week keys
# ------------------------------------------------------------------

def monday_of(value: date | datetime) -> date:
    """Round a date or datetime down to the Monday of its week."""
    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.weekday())


def format_monday(monday: date) -> str:
    return monday.strftime(MONDAY_KEY_FORMAT)


def week_cache_key(monday: date | str) -> str:
    """Cache key for the week starting on *monday*."""
    if not isinstance(monday, str):
        monday = format_monday(monday)
    return f"{CACHE_KEY_PREFIX}{monday}"
