"""Business-hours slot grid used to offer appointment times for a day"""

import datetime as dt
from typing import Optional

BUSINESS_START_HOUR = 8
BUSINESS_END_HOUR = 18
BUSINESS_DAYS = (0, 1, 2, 3, 4, 5)  # Monday to Saturday, date.weekday()
BUSINESS_DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SLOT_INTERVAL_MINUTES = 30
TRAVEL_BUFFER_MINUTES = 30
DEFAULT_BOOKING_MINUTES = 60

EVENT_DURATIONS = {
    "estimate": 60,
    "measurement": 30,
    "site_visit": 120,
    "junk_pickup": 120,
}


def is_business_day(day: dt.date) -> bool:
    return day.weekday() in BUSINESS_DAYS


def format_slot_label(start: dt.datetime) -> str:
    """8:00 AM style label"""
    hour = start.hour % 12 or 12
    suffix = "AM" if start.hour < 12 else "PM"
    return f"{hour}:{start.minute:02d} {suffix}"


def generate_day_slots(day: dt.date, duration_minutes: int) -> list[tuple[dt.datetime, dt.datetime]]:
    """Every 30-minute start whose appointment ends by closing time"""
    closing = dt.datetime.combine(day, dt.time(BUSINESS_END_HOUR))
    cursor = dt.datetime.combine(day, dt.time(BUSINESS_START_HOUR))
    slots = []
    while cursor < closing:
        end = cursor + dt.timedelta(minutes=duration_minutes)
        if end <= closing:
            slots.append((cursor, end))
        cursor += dt.timedelta(minutes=SLOT_INTERVAL_MINUTES)
    return slots


def blocked_window(day: dt.date, slot_time: str) -> tuple[dt.datetime, dt.datetime]:
    """An existing booking blocks its hour plus travel time on both sides"""
    hours, minutes = (int(part) for part in slot_time.split(":"))
    start = dt.datetime.combine(day, dt.time(hours, minutes))
    buffer = dt.timedelta(minutes=TRAVEL_BUFFER_MINUTES)
    return start - buffer, start + dt.timedelta(minutes=DEFAULT_BOOKING_MINUTES) + buffer


def available_slots(
    day: dt.date,
    duration_minutes: int,
    booked_times: list[str],
    not_before: Optional[dt.datetime] = None,
) -> tuple[list[tuple[dt.datetime, dt.datetime]], int]:
    """
    Free slots for the day and the size of the full grid.

    not_before drops starts that are already in the past (naive, business time).
    """
    all_slots = generate_day_slots(day, duration_minutes)
    blocked = [blocked_window(day, slot_time) for slot_time in booked_times]

    free = []
    for start, end in all_slots:
        if not_before is not None and start <= not_before:
            continue
        if any(start < block_end and end > block_start for block_start, block_end in blocked):
            continue
        free.append((start, end))
    return free, len(all_slots)
