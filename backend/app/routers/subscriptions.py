# backend/app/routers/subscriptions.py
"""
Subscription endpoints.

POST /subscriptions/webhook   - provider notification (preapproval updates)
POST /subscriptions/reconcile - admin: refresh all linked subscriptions
GET  /subscriptions/me        - caller's subscription
PUT  /subscriptions/me        - link preapproval after checkout
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user, require_admin
from ..database import get_db
from ..errors import ExternalProviderError
from ..models.generated import Subscriptions as DBSubscription, Users as DBUsers
from ..schemas.subscriptions import (
    ReconcileResult,
    SubscriptionLink,
    SubscriptionRead,
    WebhookNotification,
    WebhookResult,
)
from ..services.premium import (
    PremiumAccessCache,
    SubscriptionStatusProvider,
    get_premium_cache,
    get_status_provider,
)
from ..services.subscriptions import (
    handle_preapproval_webhook,
    link_preapproval,
    reconcile_subscriptions,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/webhook", response_model=WebhookResult)
def subscription_webhook(
    data: WebhookNotification,
    db: Session = Depends(get_db),
    provider: SubscriptionStatusProvider = Depends(get_status_provider),
    cache: PremiumAccessCache = Depends(get_premium_cache),
):
    preapproval_id = data.data.get("id")
    if data.type not in (None, "preapproval", "subscription_preapproval") or not preapproval_id:
        return WebhookResult(received=True, updated=False)

    try:
        status = handle_preapproval_webhook(db, str(preapproval_id), provider, cache)
    except ExternalProviderError as e:
        logger.error("Webhook refresh failed for preapproval=%s: %s", preapproval_id, e)
        raise HTTPException(status_code=502, detail="Subscription provider unavailable") from None

    return WebhookResult(received=True, updated=status is not None, status=status)


@router.post("/reconcile", response_model=ReconcileResult)
def reconcile(
    db: Session = Depends(get_db),
    provider: SubscriptionStatusProvider = Depends(get_status_provider),
    cache: PremiumAccessCache = Depends(get_premium_cache),
    _admin=Depends(require_admin),
):
    return reconcile_subscriptions(db, provider, cache)


@router.get("/me", response_model=SubscriptionRead)
def get_my_subscription(
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    obj = db.query(DBSubscription).filter(DBSubscription.user_id == user.id).first()
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.put("/me", response_model=SubscriptionRead)
def link_my_subscription(
    data: SubscriptionLink,
    user: DBUsers = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: PremiumAccessCache = Depends(get_premium_cache),
):
    taken = (
        db.query(DBSubscription)
        .filter(
            DBSubscription.preapproval_id == data.preapproval_id,
            DBSubscription.user_id != user.id,
        )
        .first()
    )
    if taken:
        raise HTTPException(status_code=400, detail="Preapproval already linked to another user")

    return link_preapproval(db, user.id, data.preapproval_id, data.plan_name, cache)
