# backend/app/routers/appointments.py
"""
Appointment endpoints.

POST  /appointments              - book a generated slot
GET   /appointments/me           - caller's appointments
GET   /appointments              - admin: all appointments (optional ?date=)
PATCH /appointments/{id}/status  - admin: status transition
POST  /appointments/{id}/cancel  - owner or admin
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis import Redis
from sqlalchemy.orm import Session

from ..auth import get_current_user, require_admin
from ..config import settings
from ..database import get_db
from ..models.generated import Appointments as DBAppointment, Users as DBUsers
from ..redis_client import get_redis
from ..schemas.appointments import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatusUpdate,
)
from ..errors import AppointmentError
from ..services.appointments import book_appointment, change_status
from ..services.events import emit_event
from ..services.slots import get_business_hours

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _get_or_404(db: Session, id: int) -> DBAppointment:
    obj = db.get(DBAppointment, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    config = get_business_hours(db)
    try:
        obj = book_appointment(
            db,
            user.id,
            data.date,
            data.time,
            config,
            horizon_days=settings.booking_horizon_days,
            consultation_type=data.consultation_type,
            notes=data.notes,
        )
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    emit_event(redis, "appointment_created", {
        "appointment_id": obj.id,
        "user_id": user.id,
        "date": obj.date,
        "time": obj.time,
    })
    return obj


@router.get("/me", response_model=list[AppointmentRead])
def list_my_appointments(
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(DBAppointment)
        .filter(DBAppointment.user_id == user.id)
        .order_by(DBAppointment.date.asc(), DBAppointment.time.asc())
        .all()
    )


@router.get("/", response_model=list[AppointmentRead])
def list_appointments(
    target_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    query = db.query(DBAppointment)
    if target_date is not None:
        query = query.filter(DBAppointment.date == target_date.isoformat())
    return query.order_by(DBAppointment.date.asc(), DBAppointment.time.asc()).all()


@router.patch("/{id}/status", response_model=AppointmentRead)
def update_status(
    id: int,
    data: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
    _admin=Depends(require_admin),
):
    obj = _get_or_404(db, id)
    previous = obj.status
    try:
        obj = change_status(db, obj, data.status)
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    if obj.status != previous:
        emit_event(redis, "appointment_status_changed", {
            "appointment_id": obj.id,
            "user_id": obj.user_id,
            "status": obj.status,
        })
    return obj


@router.post("/{id}/cancel", response_model=AppointmentRead)
def cancel_appointment(
    id: int,
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    obj = _get_or_404(db, id)
    if obj.user_id != user.id and user.role != "ADMIN":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    try:
        obj = change_status(db, obj, "CANCELLED")
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    emit_event(redis, "appointment_cancelled", {
        "appointment_id": obj.id,
        "user_id": obj.user_id,
    })
    return obj
