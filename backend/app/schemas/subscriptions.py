# backend/app/schemas/subscriptions.py

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field


SubscriptionStatus = Literal["ACTIVE", "INACTIVE", "CANCELLED", "EXPIRED"]


class SubscriptionRead(BaseModel):
    id: int
    user_id: int
    status: SubscriptionStatus
    plan_name: str
    preapproval_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SubscriptionLink(BaseModel):
    """Attach the provider's preapproval after checkout."""
    preapproval_id: str = Field(min_length=1)
    plan_name: Optional[str] = None


class WebhookNotification(BaseModel):
    """Provider notification: {"type": "preapproval", "data": {"id": "..."}}."""
    type: Optional[str] = None
    action: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookResult(BaseModel):
    received: bool = True
    updated: bool = False
    status: Optional[SubscriptionStatus] = None


class ReconcileResult(BaseModel):
    checked: int
    changed: int
    failed: int


class PremiumAccessResponse(BaseModel):
    user_id: int
    has_access: bool
