# backend/app/services/slots/availability.py
"""
Level 2: Day availability.

Takes the Level 1 slot list for a date and marks the times already held
by a non-cancelled appointment.
"""

from datetime import date, datetime, timedelta
from sqlalchemy.orm import Session

from .config import BusinessHoursConfig
from .calculator import calculate_day_slots


def calculate_day_availability(
    db: Session,
    target_date: date,
    config: BusinessHoursConfig,
    now: datetime | None = None,
) -> dict:
    """
    Calculate slots with availability flags for one day.

    Returns:
        Dict for SlotsDayResponse.
    """
    now = now or datetime.now()

    times = calculate_day_slots(config, target_date, now)
    booked = get_booked_times(db, target_date)

    return {
        "date": target_date,
        "is_bookable_day": config.is_bookable_day(target_date),
        "consultation_duration": config.consultation_duration,
        "slots": [
            {"time": t, "is_available": t not in booked}
            for t in times
        ],
    }


def calculate_calendar(
    db: Session,
    start_date: date,
    end_date: date,
    config: BusinessHoursConfig,
    now: datetime | None = None,
) -> list[dict]:
    """Per-day open slot counts for [start_date, end_date]."""
    now = now or datetime.now()

    booked_by_day = _get_booked_times_range(db, start_date, end_date)

    days = []
    current = start_date
    while current <= end_date:
        times = calculate_day_slots(config, current, now)
        booked = booked_by_day.get(current.isoformat(), set())
        count = len([t for t in times if t not in booked])
        days.append({
            "date": current,
            "has_slots": count > 0,
            "open_slots_count": count,
        })
        current += timedelta(days=1)

    return days


# ── Helpers ──────────────────────────────────────────────────────────────


def get_booked_times(db: Session, target_date: date) -> set[str]:
    """Times held by non-cancelled appointments on target_date."""
    from ...models.generated import Appointments

    rows = (
        db.query(Appointments.time)
        .filter(
            Appointments.date == target_date.isoformat(),
            Appointments.status != "CANCELLED",
        )
        .all()
    )
    return {r.time for r in rows}


def _get_booked_times_range(db: Session, start_date: date, end_date: date) -> dict[str, set[str]]:
    from ...models.generated import Appointments

    rows = (
        db.query(Appointments.date, Appointments.time)
        .filter(
            Appointments.date >= start_date.isoformat(),
            Appointments.date <= end_date.isoformat(),
            Appointments.status != "CANCELLED",
        )
        .all()
    )
    result: dict[str, set[str]] = {}
    for r in rows:
        result.setdefault(r.date, set()).add(r.time)
    return result
