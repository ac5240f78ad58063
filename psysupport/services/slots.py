"""Slot generation for recurring weekly availability windows.

Stateless: no DB access. The booking ledger resolves the window and the set of
already-booked start times, this module turns them into free slots.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, Protocol

from pydantic import BaseModel


class TimeSlot(BaseModel):
    start_time: time
    end_time: time
    duration_minutes: int


class WindowLike(Protocol):
    start_time: time
    end_time: time
    slot_duration_minutes: int


def day_of_week(d: date) -> int:
    """Weekday index used by availability windows: 0 = Sunday ... 6 = Saturday."""
    return d.isoweekday() % 7


def generate_free_slots(window: WindowLike | None, booked_times: Iterable[time]) -> list[TimeSlot]:
    """Cut a window into fixed-size slots and drop the booked ones.

    Boundaries are always window.start_time + k * duration; a booked slot is
    removed without shifting the slots after it. The last slot must end at or
    before window.end_time, so a trailing remainder shorter than one slot is
    never offered.
    """
    if window is None:
        return []

    duration = window.slot_duration_minutes
    if duration <= 0:
        return []

    step = timedelta(minutes=duration)
    booked = set(booked_times)

    # Anchor on an arbitrary day so arithmetic cannot wrap past midnight
    anchor = date.min
    current = datetime.combine(anchor, window.start_time)
    end = datetime.combine(anchor, window.end_time)

    slots: list[TimeSlot] = []
    while current + step <= end:
        if current.time() not in booked:
            slots.append(TimeSlot(
                start_time=current.time(),
                end_time=(current + step).time(),
                duration_minutes=duration,
            ))
        current += step
    return slots
