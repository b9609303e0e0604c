# backend/app/services/premium/__init__.py
"""
Premium access module.

Resolver (subscription row + live provider status), provider interface
with HTTP and in-memory implementations, and a short-TTL Redis cache.
"""

from fastapi import Depends
from redis import Redis
from sqlalchemy.orm import Session

from ...config import settings
from ...database import get_db
from ...redis_client import get_redis
from .cache import PremiumAccessCache
from .provider import (
    AUTHORIZED,
    InMemoryStatusProvider,
    MercadoPagoStatusProvider,
    SubscriptionStatusProvider,
)
from .resolver import PremiumAccessResolver


def get_status_provider() -> SubscriptionStatusProvider:
    """FastAPI dependency: provider configured from settings."""
    return MercadoPagoStatusProvider(
        settings.mercado_pago_api_url,
        settings.mercado_pago_access_token,
        timeout=settings.provider_timeout_seconds,
    )


def get_premium_cache(redis: Redis = Depends(get_redis)) -> PremiumAccessCache:
    return PremiumAccessCache(redis, settings.premium_cache_ttl_seconds)


def get_premium_resolver(
    db: Session = Depends(get_db),
    provider: SubscriptionStatusProvider = Depends(get_status_provider),
    cache: PremiumAccessCache = Depends(get_premium_cache),
) -> PremiumAccessResolver:
    return PremiumAccessResolver(db, provider, cache)


__all__ = [
    "AUTHORIZED",
    "InMemoryStatusProvider",
    "MercadoPagoStatusProvider",
    "PremiumAccessCache",
    "PremiumAccessResolver",
    "SubscriptionStatusProvider",
    "get_premium_cache",
    "get_premium_resolver",
    "get_status_provider",
]
