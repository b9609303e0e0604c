"""
backend/app/auth.py

Identity from the external identity provider.

The provider issues a signed JWT (Authorization: Bearer ...). Claims used:
sub (stable user id), email, name, role ("ADMIN" / "USER").
The first request of a new `sub` creates the local Users row; later
requests keep email/name/role in sync with the claims.
"""

import logging
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .models.generated import Users as DBUsers

logger = logging.getLogger(__name__)

ROLES = ("ADMIN", "USER")


def decode_token(token: str) -> dict:
    """Verify signature/expiry and return claims. Raises jwt.InvalidTokenError."""
    claims = jwt.decode(
        token,
        settings.auth_secret,
        algorithms=[settings.auth_algorithm],
        options={"require": ["sub"]},
    )
    return claims


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def _sync_user(db: Session, claims: dict) -> DBUsers:
    external_id = str(claims["sub"])
    role = claims.get("role") if claims.get("role") in ROLES else "USER"
    email = claims.get("email") or ""
    name = claims.get("name") or email or external_id

    user = db.query(DBUsers).filter(DBUsers.external_id == external_id).first()
    if not user:
        user = DBUsers(external_id=external_id, email=email, name=name, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("User created from identity provider: id=%s sub=%s", user.id, external_id)
        return user

    if (user.email, user.name, user.role) != (email, name, role):
        user.email = email
        user.name = name
        user.role = role
        db.commit()
        db.refresh(user)
    return user


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[DBUsers]:
    """Current user, or None for anonymous requests. Invalid tokens are rejected."""
    token = _bearer_token(authorization)
    if not token:
        return None

    try:
        claims = decode_token(token)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from None

    return _sync_user(db, claims)


def get_current_user(
    user: Optional[DBUsers] = Depends(get_optional_user),
) -> DBUsers:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_admin(
    user: DBUsers = Depends(get_current_user),
) -> DBUsers:
    if user.role != "ADMIN":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
