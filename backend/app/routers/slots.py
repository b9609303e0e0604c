# backend/app/routers/slots.py
"""
Slots API endpoints.

POST /slots/preview  - Slots for an unsaved config (admin form preview)
GET  /slots/day      - Slots of a day with availability (Level 2)
GET  /slots/calendar - Calendar of bookable days
"""

from datetime import date, datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas.slots import (
    BusinessHoursUpdate,
    SlotsCalendarResponse,
    SlotsDayResponse,
    SlotsDayStatus,
    SlotsPreviewResponse,
)
from ..services.slots import (
    BusinessHoursConfig,
    calculate_calendar,
    calculate_day_availability,
    get_business_hours,
    safe_generate_time_slots,
)


router = APIRouter(prefix="/slots", tags=["slots"])


@router.post("/preview", response_model=SlotsPreviewResponse)
def preview_slots(data: BusinessHoursUpdate):
    """Generate slots for a posted config without saving it."""
    config = BusinessHoursConfig.from_dict(data.model_dump())
    slots = safe_generate_time_slots(config)
    return SlotsPreviewResponse(slots=slots, total_slots=len(slots))


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    """Get time slots with availability for a specific day."""
    horizon = settings.booking_horizon_days
    today = date.today()

    if target_date < today:
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    if target_date > today + timedelta(days=horizon):
        raise HTTPException(status_code=400, detail=f"Date cannot be more than {horizon} days ahead")

    config = get_business_hours(db)
    result = calculate_day_availability(db, target_date, config, datetime.now())

    return SlotsDayResponse(**result)


@router.get("/calendar", response_model=SlotsCalendarResponse)
def get_slots_calendar(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """Get calendar of days with open slots."""
    horizon = settings.booking_horizon_days
    today = date.today()

    if start_date is None:
        start_date = today
    if end_date is None:
        end_date = start_date + timedelta(days=horizon)

    if start_date < today:
        start_date = today
    if end_date > today + timedelta(days=horizon):
        end_date = today + timedelta(days=horizon)
    if end_date < start_date:
        end_date = start_date

    config = get_business_hours(db)
    days = calculate_calendar(db, start_date, end_date, config, datetime.now())

    return SlotsCalendarResponse(
        start_date=start_date,
        end_date=end_date,
        days=[SlotsDayStatus(**d) for d in days],
        horizon_days=horizon,
        consultation_duration=config.consultation_duration,
    )
