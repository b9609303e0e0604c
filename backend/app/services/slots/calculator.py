# backend/app/services/slots/calculator.py
"""
Level 1: consultation slot generation.

Produces the ordered list of bookable start times ("HH:MM") for one day
from a BusinessHoursConfig snapshot. Pure: no I/O, no clock unless `now`
is passed to calculate_day_slots.

Contains:
✓ operating window (start_time .. end_time)
✓ lunch blackout (skip-and-jump to lunch_end)
✓ consultation_duration + interval_between stepping
✓ available_days / allow_weekends (calculate_day_slots)

Does NOT contain:
✗ Existing appointments (checked at Level 2, see availability.py)
"""

import logging
from datetime import date, datetime

from ...errors import ConfigValidationError, ParseError
from .config import BusinessHoursConfig, minutes_to_time_str, time_str_to_minutes

logger = logging.getLogger(__name__)


def generate_time_slots(config: BusinessHoursConfig) -> list[str]:
    """
    Generate slot start times for a day.

    Raises:
        ParseError: a time field is not "HH:MM".

    Returns:
        Start times, earliest first. Empty if the window fits no slot
        or the config is internally inconsistent (logged).
    """
    start = time_str_to_minutes(config.start_time)
    end = time_str_to_minutes(config.end_time)
    duration = config.consultation_duration
    step = duration + config.interval_between

    lunch = None
    if config.enable_lunch_break:
        lunch = (
            time_str_to_minutes(config.lunch_start),
            time_str_to_minutes(config.lunch_end),
        )

    if duration <= 0 or step <= 0:
        logger.error(
            "Slot generation aborted: non-positive step (duration=%s, interval=%s)",
            duration, config.interval_between,
        )
        return []

    if lunch and lunch[1] < lunch[0]:
        logger.error(
            "Slot generation aborted: lunch ends before it starts (%s-%s)",
            config.lunch_start, config.lunch_end,
        )
        return []

    slots: list[str] = []
    cursor = start

    while cursor < end:
        slot_end = cursor + duration

        if lunch:
            lunch_start, lunch_end = lunch
            # Closed-interval overlap; a cursor already at lunch_end is past the break
            if cursor < lunch_end and slot_end >= lunch_start:
                cursor = lunch_end
                continue

        if slot_end <= end:
            slots.append(minutes_to_time_str(cursor))

        cursor += step

    return slots


def safe_generate_time_slots(config: BusinessHoursConfig) -> list[str]:
    """generate_time_slots that never raises: bad config → empty list."""
    try:
        return generate_time_slots(config)
    except (ParseError, ConfigValidationError) as e:
        logger.warning("Slot generation failed, returning no slots: %s", e)
        return []


def calculate_day_slots(
    config: BusinessHoursConfig,
    target_date: date,
    now: datetime | None = None,
) -> list[str]:
    """
    Slots for a specific date.

    Returns:
        Empty list when the date is not a bookable day or already past.
        For today, only slots starting after `now` are kept.
    """
    if not config.is_bookable_day(target_date):
        return []

    slots = safe_generate_time_slots(config)

    if now is None:
        return slots

    today = now.date()
    if target_date < today:
        return []
    if target_date == today:
        now_min = now.hour * 60 + now.minute
        slots = [t for t in slots if time_str_to_minutes(t) > now_min]

    return slots
