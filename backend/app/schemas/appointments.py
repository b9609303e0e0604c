# backend/app/schemas/appointments.py

from datetime import date as date_type
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from ..services.slots.config import time_str_to_minutes
from ..errors import ParseError


AppointmentStatus = Literal["PENDING", "CONFIRMED", "CANCELLED", "COMPLETED"]


class AppointmentCreate(BaseModel):
    date: date_type
    time: str = Field(description="Time in HH:MM format")
    consultation_type: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        try:
            time_str_to_minutes(v)
        except ParseError as e:
            raise ValueError(str(e)) from None
        return v.strip()


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentRead(BaseModel):
    id: int
    user_id: int
    date: date_type
    time: str
    status: AppointmentStatus
    consultation_type: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
