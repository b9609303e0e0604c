"""
backend/app/services/appointments.py

Appointment booking against generated slots.

A requested (date, time) is accepted only if:
- date is not in the past and within the booking horizon
- date is a bookable day for the active business hours
- time is one of the day's generated slots (and still in the future)
- no other non-cancelled appointment holds the same (date, time)
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import AppointmentError
from ..models.generated import Appointments as DBAppointment
from .slots import BusinessHoursConfig, calculate_day_slots, get_booked_times

logger = logging.getLogger(__name__)

# Allowed status transitions
STATUS_TRANSITIONS = {
    "PENDING": {"CONFIRMED", "CANCELLED"},
    "CONFIRMED": {"COMPLETED", "CANCELLED"},
    "CANCELLED": set(),
    "COMPLETED": set(),
}


def book_appointment(
    db: Session,
    user_id: int,
    target_date: date,
    time_str: str,
    config: BusinessHoursConfig,
    *,
    horizon_days: int,
    consultation_type: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DBAppointment:
    now = now or datetime.now()
    today = now.date()

    if target_date < today:
        raise AppointmentError("Date cannot be in the past")
    if target_date > today + timedelta(days=horizon_days):
        raise AppointmentError(f"Date cannot be more than {horizon_days} days ahead")
    if not config.is_bookable_day(target_date):
        raise AppointmentError("Clinic is closed on this day")

    if time_str not in calculate_day_slots(config, target_date, now):
        raise AppointmentError("Time is not an available slot")

    if time_str in get_booked_times(db, target_date):
        raise AppointmentError("Time slot already booked")

    appointment = DBAppointment(
        user_id=user_id,
        date=target_date.isoformat(),
        time=time_str,
        status="PENDING",
        consultation_type=consultation_type,
        notes=notes,
    )
    db.add(appointment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Concurrent booking rejected: %s %s", target_date, time_str)
        raise AppointmentError("Time slot already booked") from None
    db.refresh(appointment)

    logger.info(
        "Appointment booked: id=%s user=%s %s %s",
        appointment.id, user_id, appointment.date, appointment.time,
    )
    return appointment


def change_status(db: Session, appointment: DBAppointment, new_status: str) -> DBAppointment:
    if new_status == appointment.status:
        return appointment

    allowed = STATUS_TRANSITIONS.get(appointment.status, set())
    if new_status not in allowed:
        raise AppointmentError(
            f"Cannot change status from {appointment.status} to {new_status}"
        )

    appointment.status = new_status
    db.commit()
    db.refresh(appointment)
    return appointment
