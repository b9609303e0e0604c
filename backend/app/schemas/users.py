# backend/app/schemas/users.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel


class UserUpdate(BaseModel):
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    id: int
    external_id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: Literal["ADMIN", "USER"]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
