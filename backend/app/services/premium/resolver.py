"""
Premium access resolution.

Answers "does user U currently have premium entitlement?":

1. No subscription row         → False
2. preapproval_id present      → live provider status == "authorized"
3. no preapproval_id           → local status == ACTIVE

Fail-closed: every error path yields False and is logged, nothing is raised.
"""

import logging

from sqlalchemy.orm import Session

from ...errors import ExternalProviderError
from .cache import PremiumAccessCache
from .provider import AUTHORIZED, SubscriptionStatusProvider

logger = logging.getLogger(__name__)


class PremiumAccessResolver:

    def __init__(
        self,
        db: Session,
        provider: SubscriptionStatusProvider,
        cache: PremiumAccessCache | None = None,
    ):
        self.db = db
        self.provider = provider
        self.cache = cache

    def has_premium_access(self, user_id: int) -> bool:
        if self.cache:
            cached = self.cache.get(user_id)
            if cached is not None:
                return cached

        try:
            granted, cacheable = self._resolve(user_id)
        except Exception:
            logger.exception("Premium access check failed for user=%s", user_id)
            return False

        if cacheable and self.cache:
            self.cache.set(user_id, granted)
        return granted

    def _resolve(self, user_id: int) -> tuple[bool, bool]:
        """Return (granted, cacheable). Provider failures are not cached."""
        from ...models.generated import Subscriptions

        subscription = (
            self.db.query(Subscriptions)
            .filter(Subscriptions.user_id == user_id)
            .first()
        )
        if not subscription:
            return False, True

        if subscription.preapproval_id:
            try:
                status = self.provider.get_preapproval_status(subscription.preapproval_id)
            except ExternalProviderError as e:
                logger.warning(
                    "Subscription provider unavailable for user=%s preapproval=%s: %s",
                    user_id, subscription.preapproval_id, e,
                )
                return False, False
            return status == AUTHORIZED, True

        return subscription.status == "ACTIVE", True
