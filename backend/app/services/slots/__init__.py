# backend/app/services/slots/__init__.py
"""
Slots calculation module.

Level 1: Slot generation from business hours (pure)
Level 2: Day availability against existing appointments
"""

from .config import (
    BusinessHoursConfig,
    get_business_hours,
    save_business_hours,
    time_str_to_minutes,
    minutes_to_time_str,
)
from .calculator import generate_time_slots, safe_generate_time_slots, calculate_day_slots
from .availability import calculate_day_availability, calculate_calendar, get_booked_times

__all__ = [
    "BusinessHoursConfig",
    "get_business_hours",
    "save_business_hours",
    "time_str_to_minutes",
    "minutes_to_time_str",
    "generate_time_slots",
    "safe_generate_time_slots",
    "calculate_day_slots",
    "calculate_day_availability",
    "calculate_calendar",
    "get_booked_times",
]
