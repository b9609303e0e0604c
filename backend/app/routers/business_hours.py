# backend/app/routers/business_hours.py
# Single active policy: GET = public, PUT = admin (full replace)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..schemas.slots import BusinessHoursRead, BusinessHoursUpdate
from ..services.slots import BusinessHoursConfig, get_business_hours, save_business_hours

router = APIRouter(prefix="/business-hours", tags=["business-hours"])


@router.get("/", response_model=BusinessHoursRead)
def read_business_hours(db: Session = Depends(get_db)):
    return get_business_hours(db).to_dict()


@router.put("/", response_model=BusinessHoursRead)
def update_business_hours(
    data: BusinessHoursUpdate,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    config = BusinessHoursConfig.from_dict(data.model_dump())
    # ConfigValidationError → 422 (handler in main.py)
    return save_business_hours(db, config).to_dict()
