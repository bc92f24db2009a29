"""Day and wall-clock time primitives shared by the conflict and stats services."""
from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from smart_scheduler.core.config import get_settings
from smart_scheduler.core.exceptions import ScheduleValidationError
from smart_scheduler.schemas.timetable import Day, TimeOfDay, TimeSlot, split_time

MINUTES_PER_DAY = 24 * 60


class Ordering(str, Enum):
    before = "before"
    equal = "equal"
    after = "after"


def parse_time(text: str) -> TimeOfDay:
    try:
        hour, minute = split_time(text)
    except ValueError as exc:
        raise ScheduleValidationError(str(exc), details={"value": text}) from exc
    return TimeOfDay(hour=hour, minute=minute)


def format_time(value: TimeOfDay) -> str:
    return value.format()


def compare(a: TimeOfDay, b: TimeOfDay) -> Ordering:
    if a < b:
        return Ordering.before
    if a == b:
        return Ordering.equal
    return Ordering.after


def duration_minutes(start: TimeOfDay, end: TimeOfDay) -> int:
    if end <= start:
        raise ScheduleValidationError(
            f"End time {end} must be after start time {start}",
            details={"start": str(start), "end": str(end)},
        )
    return end.minutes - start.minutes


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open overlap test on minutes; touching intervals do not overlap."""
    return max(start_a, start_b) < min(end_a, end_b)


def slot_id(day: Day, start: TimeOfDay) -> str:
    return f"{day.value}-{start.hour:02d}{start.minute:02d}"


def generate_slots(
    days: Iterable[Day | str],
    start_hour: int,
    end_hour: int,
    slot_width_minutes: int,
) -> list[TimeSlot]:
    """Build a contiguous slot grid for each day.

    Ids are derived from the day and start time, so regenerating the same grid
    yields identical slots. A trailing slot that would run past ``end_hour`` is
    not produced.
    """
    if not 0 <= start_hour < end_hour <= 24:
        raise ScheduleValidationError(
            "Slot hours must satisfy 0 <= start_hour < end_hour <= 24",
            details={"start_hour": start_hour, "end_hour": end_hour},
        )
    if slot_width_minutes < 1:
        raise ScheduleValidationError(
            "Slot width must be at least one minute",
            details={"slot_width_minutes": slot_width_minutes},
        )

    try:
        resolved_days = [Day(day) for day in days]
    except ValueError as exc:
        raise ScheduleValidationError(str(exc)) from exc

    first = start_hour * 60
    # 24:00 is not representable as a time of day, so the grid stops at 23:59.
    last = min(end_hour * 60, MINUTES_PER_DAY - 1)
    slots: list[TimeSlot] = []
    for day in resolved_days:
        cursor = first
        while cursor + slot_width_minutes <= last:
            start = TimeOfDay(hour=cursor // 60, minute=cursor % 60)
            end_minutes = cursor + slot_width_minutes
            end = TimeOfDay(hour=end_minutes // 60, minute=end_minutes % 60)
            slots.append(
                TimeSlot(id=slot_id(day, start), day=day, startTime=start.format(), endTime=end.format())
            )
            cursor = end_minutes
    return slots


def default_slots() -> list[TimeSlot]:
    settings = get_settings()
    return generate_slots(
        settings.slot_days,
        settings.slot_start_hour,
        settings.slot_end_hour,
        settings.slot_width_minutes,
    )
