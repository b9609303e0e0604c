# backend/app/schemas/slots.py
"""
Pydantic schemas for business hours and slots API.
"""

from datetime import date
from pydantic import BaseModel, Field


class BusinessHoursBase(BaseModel):
    start_time: str = Field("08:00", description="HH:MM, 24h")
    end_time: str = Field("18:00", description="HH:MM, 24h")
    lunch_start: str = "12:00"
    lunch_end: str = "13:00"
    consultation_duration: int = Field(30, description="Minutes per slot (15..120)")
    interval_between: int = Field(15, description="Minutes between slots (0..60)")
    enable_lunch_break: bool = True
    allow_weekends: bool = False
    available_days: list[str] = Field(
        default_factory=lambda: ["monday", "tuesday", "wednesday", "thursday", "friday"]
    )

    model_config = {"from_attributes": True}


class BusinessHoursUpdate(BusinessHoursBase):
    pass


class BusinessHoursRead(BusinessHoursBase):
    pass


class SlotsPreviewResponse(BaseModel):
    """Slots for a posted config (nothing saved)."""
    slots: list[str]
    total_slots: int


class SlotInfo(BaseModel):
    """Information about a single slot."""
    time: str  # "HH:MM"
    is_available: bool


class SlotsDayResponse(BaseModel):
    """Slots of a day with availability (Level 2)."""
    date: date
    is_bookable_day: bool
    consultation_duration: int
    slots: list[SlotInfo]


class SlotsDayStatus(BaseModel):
    """Status of a single day in calendar."""
    date: date
    has_slots: bool
    open_slots_count: int = 0


class SlotsCalendarResponse(BaseModel):
    """Response with calendar of available days."""
    start_date: date
    end_date: date
    days: list[SlotsDayStatus]

    # Metadata
    horizon_days: int
    consultation_duration: int
