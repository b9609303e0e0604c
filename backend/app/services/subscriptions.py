"""
backend/app/services/subscriptions.py

Subscription status writes: provider webhook and periodic reconciliation.

The premium resolver only reads subscriptions; this module keeps the local
`status` in step with the provider and drops cached access decisions.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import ExternalProviderError
from ..models.generated import Subscriptions as DBSubscription
from .premium import PremiumAccessCache, SubscriptionStatusProvider

logger = logging.getLogger(__name__)

# Provider status → local status
PROVIDER_STATUS_MAP = {
    "authorized": "ACTIVE",
    "pending": "INACTIVE",
    "paused": "INACTIVE",
    "cancelled": "CANCELLED",
}


def map_provider_status(provider_status: str) -> str:
    return PROVIDER_STATUS_MAP.get(provider_status, "EXPIRED")


def refresh_subscription(
    db: Session,
    subscription: DBSubscription,
    provider: SubscriptionStatusProvider,
    cache: Optional[PremiumAccessCache] = None,
) -> str:
    """
    Pull the provider status for one subscription and store the mapped value.

    Raises:
        ExternalProviderError: provider unreachable or returned garbage.
    """
    provider_status = provider.get_preapproval_status(subscription.preapproval_id)
    new_status = map_provider_status(provider_status)

    if subscription.status != new_status:
        logger.info(
            "Subscription %s: %s → %s (provider=%s)",
            subscription.id, subscription.status, new_status, provider_status,
        )
        subscription.status = new_status
        if new_status == "ACTIVE" and not subscription.start_date:
            subscription.start_date = datetime.now()
        if new_status in ("CANCELLED", "EXPIRED"):
            subscription.end_date = datetime.now()

    db.commit()

    if cache:
        cache.invalidate(subscription.user_id)
    return new_status


def handle_preapproval_webhook(
    db: Session,
    preapproval_id: str,
    provider: SubscriptionStatusProvider,
    cache: Optional[PremiumAccessCache] = None,
) -> Optional[str]:
    """Refresh the subscription behind a webhook notification. None if unknown."""
    subscription = (
        db.query(DBSubscription)
        .filter(DBSubscription.preapproval_id == preapproval_id)
        .first()
    )
    if not subscription:
        logger.info("Webhook for unknown preapproval %s ignored", preapproval_id)
        return None

    return refresh_subscription(db, subscription, provider, cache)


def reconcile_subscriptions(
    db: Session,
    provider: SubscriptionStatusProvider,
    cache: Optional[PremiumAccessCache] = None,
) -> dict:
    """Refresh every subscription linked to the provider. Failures are counted, not raised."""
    subscriptions = (
        db.query(DBSubscription)
        .filter(DBSubscription.preapproval_id.isnot(None))
        .all()
    )

    result = {"checked": 0, "changed": 0, "failed": 0}
    for sub in subscriptions:
        result["checked"] += 1
        previous = sub.status
        try:
            status = refresh_subscription(db, sub, provider, cache)
        except ExternalProviderError as e:
            db.rollback()
            result["failed"] += 1
            logger.warning("Reconciliation failed for subscription %s: %s", sub.id, e)
            continue
        if status != previous:
            result["changed"] += 1

    logger.info("Subscription reconciliation: %s", result)
    return result


def link_preapproval(
    db: Session,
    user_id: int,
    preapproval_id: str,
    plan_name: Optional[str] = None,
    cache: Optional[PremiumAccessCache] = None,
) -> DBSubscription:
    """Create or update the user's single subscription after checkout."""
    subscription = (
        db.query(DBSubscription)
        .filter(DBSubscription.user_id == user_id)
        .first()
    )
    if not subscription:
        subscription = DBSubscription(user_id=user_id)
        db.add(subscription)

    subscription.preapproval_id = preapproval_id
    subscription.status = "INACTIVE"
    if plan_name:
        subscription.plan_name = plan_name

    db.commit()
    db.refresh(subscription)

    if cache:
        cache.invalidate(user_id)
    return subscription
